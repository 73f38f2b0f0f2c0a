"""Exception hierarchy for the completion resilience layer."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ErrorDetails:
    """Parsed ``{"error": {"message", "code", "metadata"}}`` failure envelope."""

    message: str
    code: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def parse_error_envelope(status_code: int, body: Any) -> ErrorDetails:
    """
    Extract the human-readable reason from a non-2xx response body.

    ``body`` may be the decoded JSON object, raw text or bytes. Anything
    that does not follow the envelope falls back to the raw text.
    """
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")

    if isinstance(body, str):
        try:
            body = json.loads(body)
        except ValueError:
            text = body.strip()
            return ErrorDetails(message=text or f"HTTP {status_code}", code=status_code)

    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        return ErrorDetails(
            message=str(error.get("message") or "Unknown error"),
            code=error.get("code", status_code),
            metadata=error.get("metadata") or {},
        )

    return ErrorDetails(message=f"HTTP {status_code}", code=status_code)


_REMEDIATION = {
    400: "Check request structure and parameters",
    401: "Verify API key is valid and set correctly",
    402: "Add credits to your account",
    403: "Check permissions and guardrails settings",
    429: "Implement rate limiting, use retry logic",
    502: "Use model fallbacks, retry with backoff",
    503: "Use model fallbacks, retry with backoff",
}


def describe_error(details: ErrorDetails) -> str:
    """Return a one-line remediation hint for a parsed error."""
    try:
        code = int(details.code)
    except (TypeError, ValueError):
        code = None

    hint = _REMEDIATION.get(code, "Check error message and metadata for guidance")
    if code == 429 and details.metadata.get("reset"):
        hint += f" (rate limit resets at {details.metadata['reset']})"
    return hint


class CompletionError(Exception):
    """Base exception for completion request errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(CompletionError):
    """Raised when the client is constructed with invalid configuration."""

    def __init__(self, field_name: str, message: str):
        super().__init__(f"Invalid configuration for {field_name}: {message}")
        self.field_name = field_name


class TerminalFailureError(CompletionError):
    """Raised for failures that retrying cannot fix (4xx other than 408)."""


class RetriesExhaustedError(CompletionError):
    """Raised when a retryable failure persists past the attempt budget."""

    def __init__(self, attempts: int, last_reason: str, status_code: Optional[int] = None):
        super().__init__(
            f"Max retries ({attempts}) exceeded: {last_reason}",
            status_code=status_code,
        )
        self.attempts = attempts
        self.last_reason = last_reason


@dataclass(frozen=True)
class StepFailure:
    """Why one cascade step failed."""

    label: str
    reason: str
    status_code: Optional[int] = None
    exhausted: bool = False
    attempts: int = 0


class NoStrategiesConfiguredError(CompletionError):
    """Raised when a cascade is run with no steps."""

    def __init__(self):
        super().__init__("No strategies configured")


class AllStrategiesFailedError(CompletionError):
    """Raised when every cascade step failed. Keeps per-step reasons in order."""

    def __init__(self, failures: List[StepFailure]):
        summary = "; ".join(f"{f.label}: {f.reason}" for f in failures)
        super().__init__(f"All degradation strategies failed ({summary})")
        self.failures = list(failures)

    @property
    def reasons(self) -> List[str]:
        return [f.reason for f in self.failures]


class StreamTimeoutError(CompletionError):
    """Raised when a streaming session exceeds its overall deadline."""

    def __init__(self, timeout: float):
        super().__init__(f"Stream timed out after {timeout} seconds")
        self.timeout = timeout


class StreamDecodeError(CompletionError):
    """One malformed event-stream line. Recorded, never raised out of a stream."""

    def __init__(self, line: str, error: str):
        super().__init__(f"Malformed stream record: {error}")
        self.line = line
        self.error = error


class SchemaValidationError(CompletionError):
    """Raised when a caller rejects a payload that failed schema validation."""

    def __init__(self, errors: List[str]):
        super().__init__("Schema validation failed: " + "; ".join(errors))
        self.errors = list(errors)


class StructuredOutputError(CompletionError):
    """Raised when a structured-output response is not valid JSON."""


class ToolError(CompletionError):
    """Base exception for tool execution failures."""


class UnknownToolError(ToolError):
    """Raised when the model requests a tool that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class MaxIterationsExceededError(CompletionError):
    """Raised when an agent loop does not finish within its iteration bound."""

    def __init__(self, max_iterations: int):
        super().__init__(f"Agentic loop exceeded max iterations ({max_iterations})")
        self.max_iterations = max_iterations
