"""
OpenRouter client package.

Provides a resilient HTTP client for the OpenRouter API with:
- Retry with exponential backoff
- Degradation cascade across fallback models
- Streaming with an overall deadline
- Comprehensive error classification
"""

from .cascade import (
    CascadeResult,
    CascadeStep,
    DegradationCascade,
    RequestSpec,
    build_cascade,
    execute_cascade,
)
from .client import CompletionResult, OpenRouterClient
from .config import OpenRouterConfig, RetryConfig, TimeoutConfig
from .retry import (
    AttemptOutcome,
    BackoffState,
    OutcomeKind,
    RetryableOperation,
    calculate_delay,
    classify_status,
    compute_delay,
    execute_with_retry,
    with_retry,
)

__all__ = [
    # Client
    "OpenRouterClient",
    "CompletionResult",
    # Config
    "OpenRouterConfig",
    "RetryConfig",
    "TimeoutConfig",
    # Retry
    "AttemptOutcome",
    "OutcomeKind",
    "BackoffState",
    "classify_status",
    "compute_delay",
    "calculate_delay",
    "execute_with_retry",
    "with_retry",
    "RetryableOperation",
    # Cascade
    "RequestSpec",
    "CascadeStep",
    "CascadeResult",
    "DegradationCascade",
    "build_cascade",
    "execute_cascade",
]
