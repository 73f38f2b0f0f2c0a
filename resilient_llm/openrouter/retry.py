"""Retry executor with exponential backoff."""

import asyncio
import functools
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from ..exceptions import CompletionError, RetriesExhaustedError, TerminalFailureError
from .config import RetryConfig

logger = logging.getLogger(__name__)

IssueAttempt = Callable[[], Awaitable["AttemptOutcome"]]


class OutcomeKind(str, Enum):
    """Classification of a single attempt."""

    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


def classify_status(status_code: int) -> OutcomeKind:
    """Map an HTTP status to an outcome kind."""
    if 200 <= status_code < 300:
        return OutcomeKind.SUCCESS
    # Client errors won't get better on retry, except request timeout
    if 400 <= status_code < 500 and status_code != 408:
        return OutcomeKind.TERMINAL
    return OutcomeKind.RETRYABLE


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one attempt: success, retryable failure or terminal failure."""

    kind: OutcomeKind
    body: Any = None
    reason: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def success(cls, body: Any, status_code: Optional[int] = 200) -> "AttemptOutcome":
        return cls(OutcomeKind.SUCCESS, body=body, status_code=status_code)

    @classmethod
    def retryable(cls, reason: str, status_code: Optional[int] = None) -> "AttemptOutcome":
        return cls(OutcomeKind.RETRYABLE, reason=reason, status_code=status_code)

    @classmethod
    def terminal(cls, reason: str, status_code: Optional[int] = None) -> "AttemptOutcome":
        return cls(OutcomeKind.TERMINAL, reason=reason, status_code=status_code)

    @classmethod
    def from_status(cls, status_code: int, reason: str) -> "AttemptOutcome":
        """Classify a failed HTTP response."""
        kind = classify_status(status_code)
        if kind is OutcomeKind.SUCCESS:
            raise ValueError(f"Status {status_code} is not a failure")
        return cls(kind, reason=reason, status_code=status_code)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "AttemptOutcome":
        """Transport-level exceptions (network errors, timeouts) are retryable."""
        return cls.retryable(f"Request failed: {exc or type(exc).__name__}")

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


def compute_delay(
    attempt_index: int,
    base_delay: float,
    max_delay: float,
    jitter: bool,
    rng: Any = random,
) -> float:
    """Exponential backoff capped at ``max_delay``, plus up to 1s of jitter."""
    delay = min(base_delay * (2 ** attempt_index), max_delay)
    if jitter:
        delay += rng.random()
    return delay


def calculate_delay(attempt: int, config: RetryConfig, rng: Any = random) -> float:
    """Calculate delay before next retry attempt."""
    return compute_delay(
        attempt, config.initial_delay, config.max_delay, config.jitter, rng
    )


@dataclass
class BackoffState:
    """Attempt counter and policy for one retry invocation."""

    config: RetryConfig
    attempt: int = 0
    total_delay: float = 0.0

    @property
    def is_last_attempt(self) -> bool:
        return self.attempt >= self.config.max_retries - 1

    def next_delay(self, rng: Any = random) -> float:
        delay = calculate_delay(self.attempt, self.config, rng)
        self.total_delay += delay
        return delay


async def execute_with_retry(
    issue_attempt: IssueAttempt,
    config: Optional[RetryConfig] = None,
    *,
    operation_name: str = "request",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    rng: Any = random,
) -> Any:
    """
    Issue an attempt until it succeeds, fails terminally or runs out of budget.

    ``config.max_retries`` is the total number of attempts. Attempts run
    strictly one after another.

    Returns:
        The body of the first successful attempt

    Raises:
        TerminalFailureError: a non-retryable failure, raised without further attempts
        RetriesExhaustedError: the last attempt failed with a retryable failure
    """
    config = config or RetryConfig()
    state = BackoffState(config)

    for attempt in range(config.max_retries):
        state.attempt = attempt
        logger.debug(
            f"{operation_name}: attempt {attempt + 1}/{config.max_retries}",
            extra={"attempt": attempt + 1, "max_attempts": config.max_retries},
        )

        try:
            outcome = await issue_attempt()
        except CompletionError:
            raise
        except Exception as e:
            outcome = AttemptOutcome.from_exception(e)

        if outcome.ok:
            if attempt:
                logger.info(
                    f"{operation_name}: succeeded on attempt {attempt + 1}",
                    extra={"attempt": attempt + 1},
                )
            return outcome.body

        if outcome.kind is OutcomeKind.TERMINAL:
            logger.error(
                f"{operation_name}: non-retryable error: {outcome.reason}",
                extra={"attempt": attempt + 1, "status_code": outcome.status_code},
            )
            raise TerminalFailureError(outcome.reason or "Request failed", outcome.status_code)

        if state.is_last_attempt:
            logger.error(
                f"{operation_name}: max retries ({config.max_retries}) exceeded: {outcome.reason}",
                extra={"attempt": attempt + 1, "status_code": outcome.status_code},
            )
            raise RetriesExhaustedError(
                config.max_retries, outcome.reason or "Request failed", outcome.status_code
            )

        delay = state.next_delay(rng)
        logger.warning(
            f"{operation_name}: retry {attempt + 1}/{config.max_retries - 1} "
            f"after {delay:.2f}s: {outcome.reason}",
            extra={
                "attempt": attempt + 1,
                "delay": round(delay, 3),
                "status_code": outcome.status_code,
            },
        )
        await sleep(delay)

    # max_retries >= 1 is enforced by RetryConfig
    raise AssertionError("unreachable")


def with_retry(config: Optional[RetryConfig] = None):
    """
    Decorator for retrying async functions that return an AttemptOutcome.

    Usage:
        @with_retry(RetryConfig(max_retries=3))
        async def my_function():
            ...
    """
    config = config or RetryConfig()

    def decorator(func: Callable[..., Awaitable[AttemptOutcome]]):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            return await execute_with_retry(
                lambda: func(*args, **kwargs),
                config,
                operation_name=func.__name__,
            )

        return wrapper

    return decorator


class RetryableOperation:
    """
    Context manager for retryable operations with progress tracking.

    Usage:
        async with RetryableOperation(config, "query_model") as op:
            body = await op.execute(issue_attempt)
        op.attempts  # how many attempts were made
    """

    def __init__(
        self,
        config: RetryConfig,
        operation_name: str,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.operation_name = operation_name
        self.sleep = sleep
        self.attempts = 0
        self.last_outcome: Optional[AttemptOutcome] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    async def execute(self, issue_attempt: IssueAttempt) -> Any:
        """Execute an attempt factory with retry logic."""

        async def tracked() -> AttemptOutcome:
            self.attempts += 1
            try:
                outcome = await issue_attempt()
            except CompletionError:
                raise
            except Exception as e:
                outcome = AttemptOutcome.from_exception(e)
            self.last_outcome = outcome
            return outcome

        return await execute_with_retry(
            tracked,
            self.config,
            operation_name=self.operation_name,
            sleep=self.sleep,
        )
