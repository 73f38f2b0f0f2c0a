"""Consume a streamed chat completion under a single overall deadline."""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncContextManager,
    AsyncIterable,
    Callable,
    Dict,
    List,
    Optional,
    Tuple,
    Union,
)

from ..exceptions import StreamDecodeError, StreamTimeoutError
from .events import (
    ContentDeltaEvent,
    DecodeErrorEvent,
    DoneEvent,
    FinishEvent,
    StreamEvent,
    StreamTimeoutEvent,
    UsageEvent,
)
from .sse import RecordKind, SSEDecoder, SSERecord

logger = logging.getLogger(__name__)

ByteSource = AsyncIterable[Union[bytes, str]]
EventCallback = Callable[[StreamEvent], Any]


def token_count(usage: Dict[str, Any], key: str) -> int:
    """Read one usage counter; a missing or null counter is zero."""
    try:
        return int(usage.get(key) or 0)
    except (TypeError, ValueError) as e:
        raise ValueError(f"usage.{key} should be a number, got {usage.get(key)!r}") from e


@dataclass
class StreamResult:
    """Outcome of a completed stream."""

    content: str
    total_tokens: int = 0
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    model: Optional[str] = None
    decode_errors: List[StreamDecodeError] = field(default_factory=list)


@dataclass
class StreamState:
    """Accumulator for one in-flight streamed response."""

    content_parts: List[str] = field(default_factory=list)
    usage: Optional[Dict[str, Any]] = None
    total_tokens: int = 0
    finish_reason: Optional[str] = None
    model: Optional[str] = None
    done: bool = False
    chunks_received: int = 0
    decode_errors: List[StreamDecodeError] = field(default_factory=list)

    @property
    def content(self) -> str:
        return "".join(self.content_parts)

    def apply(self, chunk: Dict[str, Any]) -> Tuple[str, Optional[Dict[str, Any]], Optional[str]]:
        """
        Merge one parsed chunk.

        Returns the content fragment, usage and finish reason it carried.
        A later non-null finish reason replaces an earlier one. A chunk with
        an unexpected shape raises ValueError and leaves the state untouched.
        """
        choices = chunk.get("choices") or []
        if not isinstance(choices, list):
            raise ValueError(f"choices should be a list, got {type(choices).__name__}")
        choice = choices[0] if choices else {}
        if not isinstance(choice, dict):
            raise ValueError(f"choice should be an object, got {type(choice).__name__}")
        delta = choice.get("delta") or {}
        if not isinstance(delta, dict):
            raise ValueError(f"delta should be an object, got {type(delta).__name__}")

        fragment = delta.get("content")
        if fragment is not None and not isinstance(fragment, str):
            raise ValueError(f"content should be a string, got {type(fragment).__name__}")

        finish_reason = choice.get("finish_reason")
        if finish_reason is not None and not isinstance(finish_reason, str):
            raise ValueError(
                f"finish_reason should be a string, got {type(finish_reason).__name__}"
            )

        usage = chunk.get("usage")
        if usage is not None:
            if not isinstance(usage, dict):
                raise ValueError(f"usage should be an object, got {type(usage).__name__}")
            for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
                token_count(usage, key)

        if fragment:
            self.content_parts.append(fragment)
        if usage is not None:
            self.usage = usage
            self.total_tokens = token_count(usage, "total_tokens")
        if finish_reason:
            self.finish_reason = finish_reason
        if chunk.get("model"):
            self.model = chunk["model"]

        return fragment or "", usage, finish_reason

    def result(self) -> StreamResult:
        return StreamResult(
            content=self.content,
            total_tokens=self.total_tokens,
            finish_reason=self.finish_reason,
            usage=self.usage,
            model=self.model,
            decode_errors=list(self.decode_errors),
        )


class _Emitter:
    def __init__(self, on_event: Optional[EventCallback]):
        self.on_event = on_event

    def __call__(self, event: StreamEvent) -> None:
        if self.on_event is not None:
            self.on_event(event)


def _handle_record(record: SSERecord, state: StreamState, emit: _Emitter) -> None:
    if record.kind is RecordKind.COMMENT:
        return

    if record.kind is RecordKind.DONE:
        state.done = True
        emit(DoneEvent(full_content=state.content))
        return

    try:
        chunk = json.loads(record.data)
        if not isinstance(chunk, dict):
            raise ValueError(f"expected a JSON object, got {type(chunk).__name__}")
        fragment, usage, finish_reason = state.apply(chunk)
    except ValueError as e:
        error = StreamDecodeError(record.data, str(e))
        state.decode_errors.append(error)
        logger.warning(f"Skipping malformed stream record: {e}")
        emit(DecodeErrorEvent(line=record.data, error=str(e)))
        return

    if fragment:
        emit(ContentDeltaEvent(content=fragment, full_content=state.content))
    if usage is not None:
        emit(
            UsageEvent(
                prompt_tokens=token_count(usage, "prompt_tokens"),
                completion_tokens=token_count(usage, "completion_tokens"),
                total_tokens=state.total_tokens,
                cost=usage.get("cost"),
            )
        )
    if finish_reason:
        emit(FinishEvent(finish_reason=finish_reason))


async def _drain(source: ByteSource, state: StreamState, emit: _Emitter) -> None:
    decoder = SSEDecoder()

    async for chunk in source:
        state.chunks_received += 1
        if state.done:
            # Logically complete; keep reading until the source ends
            continue
        for record in decoder.feed(chunk):
            _handle_record(record, state, emit)
            if state.done:
                break

    if not state.done:
        for record in decoder.flush():
            _handle_record(record, state, emit)


async def _run_with_deadline(run, state: StreamState, timeout: float, emit: _Emitter) -> StreamResult:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    try:
        await asyncio.wait_for(run(), timeout)
    except asyncio.TimeoutError:
        if loop.time() < deadline:
            # Raised by the source itself, not by the session deadline
            raise
        logger.warning(
            f"Stream cancelled by timeout after {timeout}s",
            extra={"chunks": state.chunks_received},
        )
        emit(StreamTimeoutEvent(timeout=timeout, partial_content=state.content))
        raise StreamTimeoutError(timeout) from None

    if state.decode_errors:
        logger.info(f"Stream completed with {len(state.decode_errors)} malformed record(s)")
    return state.result()


async def consume_stream(
    source: ByteSource,
    timeout: float,
    *,
    on_event: Optional[EventCallback] = None,
) -> StreamResult:
    """
    Read an event stream to the end and accumulate the completion.

    Args:
        source: Async iterable of raw byte (or text) chunks
        timeout: Deadline in seconds for the whole session, not per chunk
        on_event: Optional callback receiving StreamEvents as they happen

    Returns:
        StreamResult with the accumulated content, usage and finish reason

    Raises:
        StreamTimeoutError: the deadline fired before the source ended
    """
    state = StreamState()
    emit = _Emitter(on_event)
    return await _run_with_deadline(lambda: _drain(source, state, emit), state, timeout, emit)


async def stream_session(
    open_stream: Callable[[], AsyncContextManager[ByteSource]],
    timeout: float,
    *,
    on_event: Optional[EventCallback] = None,
) -> StreamResult:
    """
    Like consume_stream, but the deadline is armed before the request is issued.

    ``open_stream`` returns an async context manager that sends the request
    and yields the response byte iterator.
    """
    state = StreamState()
    emit = _Emitter(on_event)

    async def run() -> None:
        async with open_stream() as source:
            await _drain(source, state, emit)

    return await _run_with_deadline(run, state, timeout, emit)
