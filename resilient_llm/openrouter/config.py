"""Configuration for the OpenRouter client."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..settings import Settings


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3  # Total attempts, not additional retries
    initial_delay: float = 1.0  # Initial delay in seconds
    max_delay: float = 10.0  # Maximum delay in seconds
    jitter: bool = True  # Add up to one second of random jitter

    def __post_init__(self):
        if self.max_retries < 1:
            raise ConfigurationError("max_retries", "must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("delay", "must not be negative")


@dataclass
class TimeoutConfig:
    """Configuration for request timeouts."""

    connect_timeout: float = 10.0  # Time to establish connection
    read_timeout: float = 120.0  # Time to receive response
    stream_timeout: float = 60.0  # Deadline for a whole streaming session

    # Per-model timeout overrides
    model_timeouts: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def get_timeout(self, model: str) -> Tuple[float, float]:
        """Get timeout for a specific model."""
        if model in self.model_timeouts:
            return self.model_timeouts[model]
        return (self.connect_timeout, self.read_timeout)


@dataclass
class OpenRouterConfig:
    """Complete configuration for the OpenRouter client."""

    api_key: str = ""
    base_url: str = "https://openrouter.ai/api/v1"

    retry: RetryConfig = field(default_factory=RetryConfig)
    # Later, cheaper cascade tiers get a smaller budget
    fallback_retry: RetryConfig = field(
        default_factory=lambda: RetryConfig(max_retries=2, initial_delay=0.5)
    )
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    # Request defaults
    default_model: str = "anthropic/claude-3.5-sonnet"
    default_temperature: float = 0.7
    default_max_tokens: int = 1000

    # App attribution headers
    referer: Optional[str] = None
    title: Optional[str] = None

    # Logging
    log_requests: bool = True
    log_responses: bool = False  # Can be verbose

    def __post_init__(self):
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("api_key", "OpenRouter API key is not set")
        self.base_url = self.base_url.rstrip("/")

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def headers(self) -> Dict[str, str]:
        """Request headers carrying the explicit credential."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        if self.title:
            headers["X-Title"] = self.title
        return headers

    @classmethod
    def from_settings(cls, settings: "Settings") -> "OpenRouterConfig":
        """Build a client config from environment-backed settings."""
        return cls(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            retry=RetryConfig(
                max_retries=settings.max_retries,
                initial_delay=settings.retry_base_delay,
                max_delay=settings.retry_max_delay,
                jitter=settings.retry_jitter,
            ),
            fallback_retry=RetryConfig(
                max_retries=settings.fallback_max_retries,
                initial_delay=settings.fallback_base_delay,
                max_delay=settings.retry_max_delay,
                jitter=settings.retry_jitter,
            ),
            timeout=TimeoutConfig(
                connect_timeout=settings.connect_timeout,
                read_timeout=settings.read_timeout,
                stream_timeout=settings.stream_timeout,
            ),
            referer=settings.app_referer or None,
            title=settings.app_title or None,
        )
