"""Event types emitted while consuming a streamed completion."""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional


class EventType(str, Enum):
    """Types of stream consumer events."""

    CONTENT_DELTA = "content_delta"
    USAGE = "usage"
    FINISH = "finish"
    DECODE_ERROR = "decode_error"
    DONE = "done"
    TIMEOUT = "timeout"


@dataclass
class StreamEvent:
    """Base class for stream consumer events."""

    type: EventType

    def to_sse(self) -> str:
        """Convert to Server-Sent Event format."""
        return f"data: {json.dumps(self.to_dict())}\n\n"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["type"] = self.type.value
        return data


@dataclass
class ContentDeltaEvent(StreamEvent):
    """Emitted for every content fragment, in arrival order."""

    type: EventType = EventType.CONTENT_DELTA
    content: str = ""
    full_content: str = ""


@dataclass
class UsageEvent(StreamEvent):
    """Emitted when a chunk carries token usage."""

    type: EventType = EventType.USAGE
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: Optional[float] = None


@dataclass
class FinishEvent(StreamEvent):
    """Emitted when a chunk carries a finish reason."""

    type: EventType = EventType.FINISH
    finish_reason: str = ""


@dataclass
class DecodeErrorEvent(StreamEvent):
    """Emitted for a malformed data line. The stream keeps going."""

    type: EventType = EventType.DECODE_ERROR
    line: str = ""
    error: str = ""


@dataclass
class DoneEvent(StreamEvent):
    """Emitted on the ``[DONE]`` sentinel."""

    type: EventType = EventType.DONE
    full_content: str = ""


@dataclass
class StreamTimeoutEvent(StreamEvent):
    """Emitted when the deadline fires, carrying whatever arrived before it."""

    type: EventType = EventType.TIMEOUT
    timeout: float = 0.0
    partial_content: str = ""
