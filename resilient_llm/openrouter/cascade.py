"""Ordered degradation cascade across fallback request variants."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from ..exceptions import (
    AllStrategiesFailedError,
    NoStrategiesConfiguredError,
    RetriesExhaustedError,
    StepFailure,
    TerminalFailureError,
)
from .config import RetryConfig
from .retry import AttemptOutcome, RetryableOperation

logger = logging.getLogger(__name__)

Issuer = Callable[["RequestSpec"], Awaitable[AttemptOutcome]]


@dataclass(frozen=True)
class RequestSpec:
    """Immutable description of one completion attempt."""

    url: str
    payload: Mapping[str, Any]
    headers: Mapping[str, str] = field(default_factory=dict)
    label: str = ""

    def __post_init__(self):
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        if not self.label:
            object.__setattr__(self, "label", str(self.payload.get("model", self.url)))

    @property
    def model(self) -> Optional[str]:
        return self.payload.get("model")

    def body(self) -> Dict[str, Any]:
        """Payload as a plain dict, ready for serialization."""
        return dict(self.payload)

    def with_payload(self, label: Optional[str] = None, **changes: Any) -> "RequestSpec":
        """Return a new spec with payload fields replaced."""
        payload = {**self.payload, **changes}
        return replace(self, payload=payload, label=label or "")


@dataclass(frozen=True)
class CascadeStep:
    """A request variant plus the retry budget for its tier."""

    spec: RequestSpec
    retry: RetryConfig = field(default_factory=RetryConfig)

    @property
    def label(self) -> str:
        return self.spec.label


@dataclass
class CascadeResult:
    """The winning response and which tier served it."""

    body: Any
    label: str
    failures: List[StepFailure] = field(default_factory=list)


async def execute_cascade(
    steps: Sequence[CascadeStep],
    issue: Issuer,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> CascadeResult:
    """
    Try each step in order until one succeeds.

    Step N starts only after step N-1 has fully resolved. A failing step is
    recorded and skipped; the error surfaces only if every step fails.

    Raises:
        NoStrategiesConfiguredError: ``steps`` is empty
        AllStrategiesFailedError: every step failed; one reason per step, in order
    """
    if not steps:
        raise NoStrategiesConfiguredError()

    failures: List[StepFailure] = []

    for index, step in enumerate(steps):
        logger.info(
            f"Trying strategy {index + 1}/{len(steps)}: {step.label}",
            extra={"strategy": step.label, "model": step.spec.model},
        )

        async with RetryableOperation(step.retry, step.label, sleep=sleep) as op:
            try:
                body = await op.execute(lambda step=step: issue(step.spec))
            except TerminalFailureError as e:
                failure = StepFailure(
                    step.label, e.message, e.status_code, exhausted=False, attempts=op.attempts
                )
            except RetriesExhaustedError as e:
                failure = StepFailure(
                    step.label, e.message, e.status_code, exhausted=True, attempts=op.attempts
                )
            else:
                logger.info(
                    f"Success with: {step.label}",
                    extra={"strategy": step.label, "attempt": op.attempts},
                )
                return CascadeResult(body=body, label=step.label, failures=failures)

        logger.warning(
            f"Strategy failed: {step.label}: {failure.reason}",
            extra={"strategy": step.label, "status_code": failure.status_code},
        )
        failures.append(failure)

    logger.error(f"All {len(steps)} degradation strategies failed")
    raise AllStrategiesFailedError(failures)


class DegradationCascade:
    """
    Reusable cascade bound to an issuer.

    Usage:
        cascade = DegradationCascade(client.issue)
        result = await cascade.run(build_cascade(spec, fallbacks, retry, fallback_retry))
    """

    def __init__(
        self,
        issue: Issuer,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.issue = issue
        self.sleep = sleep

    async def run(self, steps: Sequence[CascadeStep]) -> CascadeResult:
        return await execute_cascade(steps, self.issue, sleep=self.sleep)


def build_cascade(
    base_spec: RequestSpec,
    fallback_models: Sequence[str],
    retry: Optional[RetryConfig] = None,
    fallback_retry: Optional[RetryConfig] = None,
    tier_params: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> List[CascadeStep]:
    """
    Map a primary request and its fallback models to ordered cascade steps.

    The primary tier uses ``retry``; every fallback tier uses
    ``fallback_retry``. Duplicates of the primary model are skipped.
    ``tier_params`` maps a model id to payload fields that replace the base
    payload's for that model's tier (e.g. a smaller ``max_tokens`` for a
    free model).
    """
    retry = retry or RetryConfig()
    fallback_retry = fallback_retry or retry
    tier_params = tier_params or {}
    primary = base_spec.model

    steps = [
        CascadeStep(
            spec=base_spec.with_payload(
                label=f"Primary ({primary})", **tier_params.get(primary, {})
            ),
            retry=retry,
        )
    ]

    seen = {primary}
    for model in fallback_models:
        if model in seen:
            continue
        seen.add(model)
        overrides = {**tier_params.get(model, {}), "model": model}
        steps.append(
            CascadeStep(
                spec=base_spec.with_payload(
                    label=f"Fallback {len(steps)} ({model})", **overrides
                ),
                retry=fallback_retry,
            )
        )

    return steps
