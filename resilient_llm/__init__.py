"""
Resilience layer for calling LLM chat completion endpoints over HTTP.

Retries transient failures with backoff, degrades across fallback models,
and consumes streamed responses under a cancellable deadline.
"""

from .agent import AgentResult, run_agent_loop
from .exceptions import (
    AllStrategiesFailedError,
    CompletionError,
    ConfigurationError,
    MaxIterationsExceededError,
    NoStrategiesConfiguredError,
    RetriesExhaustedError,
    SchemaValidationError,
    StepFailure,
    StreamDecodeError,
    StreamTimeoutError,
    StructuredOutputError,
    TerminalFailureError,
    ToolError,
    UnknownToolError,
)
from .openrouter import (
    CascadeStep,
    CompletionResult,
    OpenRouterClient,
    OpenRouterConfig,
    RequestSpec,
    RetryConfig,
    execute_cascade,
    execute_with_retry,
)
from .streaming import consume_stream
from .validation import ValidationReport, validate

__all__ = [
    "OpenRouterClient",
    "OpenRouterConfig",
    "RetryConfig",
    "CompletionResult",
    "RequestSpec",
    "CascadeStep",
    "execute_with_retry",
    "execute_cascade",
    "consume_stream",
    "validate",
    "ValidationReport",
    "run_agent_loop",
    "AgentResult",
    # Exceptions
    "CompletionError",
    "ConfigurationError",
    "TerminalFailureError",
    "RetriesExhaustedError",
    "NoStrategiesConfiguredError",
    "AllStrategiesFailedError",
    "StepFailure",
    "StreamTimeoutError",
    "StreamDecodeError",
    "SchemaValidationError",
    "StructuredOutputError",
    "ToolError",
    "UnknownToolError",
    "MaxIterationsExceededError",
]
