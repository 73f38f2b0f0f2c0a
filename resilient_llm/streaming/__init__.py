"""
Streaming package.

Decodes server-sent event framing from a chunked response body and
accumulates the streamed completion under a single overall deadline.
"""

from .consumer import StreamResult, StreamState, consume_stream, stream_session
from .events import (
    ContentDeltaEvent,
    DecodeErrorEvent,
    DoneEvent,
    EventType,
    FinishEvent,
    StreamEvent,
    StreamTimeoutEvent,
    UsageEvent,
)
from .sse import DONE_SENTINEL, RecordKind, SSEDecoder, SSERecord, parse_line

__all__ = [
    # Consumer
    "consume_stream",
    "stream_session",
    "StreamResult",
    "StreamState",
    # Framing
    "SSEDecoder",
    "SSERecord",
    "RecordKind",
    "parse_line",
    "DONE_SENTINEL",
    # Events
    "EventType",
    "StreamEvent",
    "ContentDeltaEvent",
    "UsageEvent",
    "FinishEvent",
    "DecodeErrorEvent",
    "DoneEvent",
    "StreamTimeoutEvent",
]
