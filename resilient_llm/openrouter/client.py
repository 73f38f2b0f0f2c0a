"""Resilient OpenRouter HTTP client."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import httpx

from ..exceptions import (
    CompletionError,
    ErrorDetails,
    TerminalFailureError,
    describe_error,
    parse_error_envelope,
)
from ..logging_config import request_scope
from ..routing import ModelRequirements, get_fallback_models, get_tier_params, select_model
from ..streaming import StreamResult, stream_session
from ..streaming.consumer import EventCallback
from ..validation import StructuredOutput, build_response_format, parse_structured_output
from .cascade import RequestSpec, build_cascade, execute_cascade
from .config import OpenRouterConfig, RetryConfig
from .retry import AttemptOutcome, OutcomeKind, classify_status, execute_with_retry

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Final result of a completion, whichever path produced it."""

    content: Optional[str]
    total_tokens: int = 0
    finish_reason: Optional[str] = None
    strategy_label: Optional[str] = None
    model: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    reasoning: Optional[str] = None
    message: Dict[str, Any] = field(default_factory=dict)

    @property
    def tool_calls(self) -> List[Dict[str, Any]]:
        return self.message.get("tool_calls") or []

    @classmethod
    def from_response(cls, data: Dict[str, Any], strategy_label: Optional[str] = None) -> "CompletionResult":
        choice = (data.get("choices") or [{}])[0]
        message = choice.get("message") or {}
        usage = data.get("usage") or None

        return cls(
            content=message.get("content"),
            total_tokens=int((usage or {}).get("total_tokens") or 0),
            finish_reason=choice.get("finish_reason"),
            strategy_label=strategy_label,
            model=data.get("model"),
            usage=usage,
            # Reasoning models (o1, etc.)
            reasoning=message.get("reasoning_content") or message.get("reasoning"),
            message=message,
        )

    @classmethod
    def from_stream(cls, result: StreamResult, strategy_label: Optional[str] = None) -> "CompletionResult":
        return cls(
            content=result.content,
            total_tokens=result.total_tokens,
            finish_reason=result.finish_reason,
            strategy_label=strategy_label,
            model=result.model,
            usage=result.usage,
            message={"role": "assistant", "content": result.content},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "total_tokens": self.total_tokens,
            "finish_reason": self.finish_reason,
            "strategy_label": self.strategy_label,
        }


class OpenRouterClient:
    """
    Resilient HTTP client for the OpenRouter chat completions API.

    Features:
    - Retry with exponential backoff and jitter
    - Degradation cascade across fallback models
    - Streaming with a single overall deadline
    - Structured output with schema validation
    - Comprehensive error classification
    """

    def __init__(
        self,
        config: Optional[OpenRouterConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if config is None:
            from ..settings import get_settings

            config = OpenRouterConfig.from_settings(get_settings())
        self.config = config
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "OpenRouterClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _timeout(self, model: Optional[str]) -> httpx.Timeout:
        connect_timeout, read_timeout = self.config.timeout.get_timeout(model or "")
        return httpx.Timeout(connect_timeout, read=read_timeout)

    def build_spec(
        self,
        model: str,
        messages: Sequence[Dict[str, Any]],
        label: Optional[str] = None,
        **params: Any,
    ) -> RequestSpec:
        """Build the immutable request for one completion attempt."""
        payload: Dict[str, Any] = {
            "model": model,
            "messages": list(messages),
            "temperature": self.config.default_temperature,
            "max_tokens": self.config.default_max_tokens,
        }
        payload.update({k: v for k, v in params.items() if v is not None})

        return RequestSpec(
            url=self.config.completions_url,
            payload=payload,
            headers=self.config.headers(),
            label=label or model,
        )

    def _log_error(self, details: ErrorDetails) -> None:
        logger.warning(
            f"Error {details.code}: {details.message}. Fix: {describe_error(details)}",
            extra={"status_code": details.code},
        )

    async def issue(self, spec: RequestSpec) -> AttemptOutcome:
        """Send one request and classify the result. Never raises for HTTP or network failures."""
        if self.config.log_requests:
            logger.info(
                f"OpenRouter request: {len(spec.payload.get('messages', []))} message(s)",
                extra={"strategy": spec.label, "model": spec.model},
            )

        try:
            client = await self._get_client()
            response = await client.post(
                spec.url,
                json=spec.body(),
                headers=dict(spec.headers),
                timeout=self._timeout(spec.model),
            )
        except httpx.TimeoutException as e:
            return AttemptOutcome.retryable(f"Request timed out: {e or 'timeout'}")
        except httpx.TransportError as e:
            return AttemptOutcome.retryable(f"Connection failed: {e or type(e).__name__}")

        status = response.status_code
        if not 200 <= status < 300:
            details = parse_error_envelope(status, response.content)
            self._log_error(details)
            return AttemptOutcome.from_status(status, details.message)

        try:
            data = response.json()
        except ValueError:
            return AttemptOutcome.retryable("Invalid JSON in response body", status)

        if not isinstance(data, dict):
            return AttemptOutcome.retryable(
                f"Unexpected response body: expected a JSON object, got {type(data).__name__}",
                status,
            )

        # Some upstream failures arrive with a 2xx status and an error envelope
        if "error" in data and not data.get("choices"):
            details = parse_error_envelope(status, data)
            self._log_error(details)
            code = details.code if isinstance(details.code, int) else 502
            if classify_status(code) is OutcomeKind.SUCCESS:
                code = 502
            return AttemptOutcome.from_status(code, details.message)

        if self.config.log_responses:
            logger.info(f"OpenRouter response: model={data.get('model')}, status={status}")

        return AttemptOutcome.success(data, status)

    async def complete(
        self,
        model: str,
        messages: Sequence[Dict[str, Any]],
        retry_config: Optional[RetryConfig] = None,
        **params: Any,
    ) -> CompletionResult:
        """
        Query one model with automatic retry on transient failures.

        Raises:
            TerminalFailureError: non-retryable failure (4xx other than 408)
            RetriesExhaustedError: transient failures outlasted the retry budget
        """
        spec = self.build_spec(model, messages, **params)
        with request_scope():
            body = await execute_with_retry(
                lambda: self.issue(spec),
                retry_config or self.config.retry,
                operation_name=f"query_{model}",
            )
        return CompletionResult.from_response(body, spec.label)

    async def complete_with_fallbacks(
        self,
        messages: Sequence[Dict[str, Any]],
        model: Optional[str] = None,
        requirements: Optional[ModelRequirements] = None,
        fallbacks: Optional[Sequence[str]] = None,
        tier_params: Optional[Dict[str, Dict[str, Any]]] = None,
        **params: Any,
    ) -> CompletionResult:
        """
        Query through the degradation cascade: the primary model, then each fallback.

        The primary model is ``model``, else chosen from ``requirements``,
        else the configured default. ``fallbacks`` defaults to the model's
        known fallback chain. ``tier_params`` maps a model to payload fields
        for its tier; by default free fallback models get a smaller
        ``max_tokens``. ``strategy_label`` on the result names the tier that
        served the request.

        Raises:
            AllStrategiesFailedError: every tier failed; carries one reason per tier
        """
        if model is None:
            model = select_model(requirements) if requirements else self.config.default_model
        if fallbacks is None:
            fallbacks = get_fallback_models(model)
        if tier_params is None:
            tier_params = {m: get_tier_params(m) for m in fallbacks}

        steps = build_cascade(
            self.build_spec(model, messages, **params),
            fallbacks,
            self.config.retry,
            self.config.fallback_retry,
            tier_params,
        )
        with request_scope():
            result = await execute_cascade(steps, self.issue)

            completion = CompletionResult.from_response(result.body, result.label)
            logger.info(
                f"Served by {result.label} (tokens={completion.total_tokens}, "
                f"failed tiers={len(result.failures)})",
                extra={"strategy": result.label, "model": completion.model},
            )
        return completion

    def _stream_failure(self, status: int, details: ErrorDetails) -> CompletionError:
        if classify_status(status) is OutcomeKind.TERMINAL:
            return TerminalFailureError(details.message, status)
        return CompletionError(f"OpenRouter API error: {details.message}", status)

    async def stream(
        self,
        model: str,
        messages: Sequence[Dict[str, Any]],
        timeout: Optional[float] = None,
        on_event: Optional[EventCallback] = None,
        **params: Any,
    ) -> CompletionResult:
        """
        Stream a completion and return it once the stream ends.

        ``timeout`` bounds the whole session, connection included. Partial
        content is observable through ``on_event`` only.

        Raises:
            StreamTimeoutError: the deadline fired
            TerminalFailureError: the request was rejected with a 4xx
            CompletionError: any other failure to open or read the stream
        """
        timeout = timeout if timeout is not None else self.config.timeout.stream_timeout
        spec = self.build_spec(
            model,
            messages,
            stream=True,
            stream_options={"include_usage": True},
            **params,
        )

        @asynccontextmanager
        async def open_stream() -> AsyncIterator[AsyncIterator[bytes]]:
            client = await self._get_client()
            try:
                async with client.stream(
                    "POST",
                    spec.url,
                    json=spec.body(),
                    headers=dict(spec.headers),
                    timeout=self._timeout(model),
                ) as response:
                    if not 200 <= response.status_code < 300:
                        # Read full response for error details
                        await response.aread()
                        details = parse_error_envelope(response.status_code, response.content)
                        self._log_error(details)
                        raise self._stream_failure(response.status_code, details)

                    yield response.aiter_bytes()

            except httpx.TimeoutException as e:
                raise CompletionError(f"Stream read timed out: {e or 'timeout'}") from e
            except httpx.TransportError as e:
                raise CompletionError(f"Connection failed: {e or type(e).__name__}") from e

        with request_scope():
            result = await stream_session(open_stream, timeout, on_event=on_event)
        return CompletionResult.from_stream(result, spec.label)

    async def complete_structured(
        self,
        model: str,
        messages: Sequence[Dict[str, Any]],
        schema: Dict[str, Any],
        name: str = "response",
        **params: Any,
    ) -> StructuredOutput:
        """
        Request JSON matching ``schema`` and validate what comes back.

        Schema violations are reported on the result, not raised.

        Raises:
            StructuredOutputError: the response content is not JSON
        """
        params.setdefault("temperature", 0.3)  # Lower for consistent structure
        result = await self.complete(
            model,
            messages,
            response_format=build_response_format(name, schema),
            plugins=[{"id": "response-healing"}],
            **params,
        )
        return parse_structured_output(result.content or "", schema)
