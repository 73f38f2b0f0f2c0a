"""Incremental decoder for server-sent event framing."""

import codecs
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class RecordKind(str, Enum):
    DATA = "data"
    COMMENT = "comment"
    DONE = "done"


@dataclass(frozen=True)
class SSERecord:
    """One complete, meaningful line of an event stream."""

    kind: RecordKind
    data: str = ""


def parse_line(line: str) -> Optional[SSERecord]:
    """
    Classify a single complete line.

    Blank lines and fields other than ``data`` yield None.
    """
    line = line.rstrip("\r")
    if not line.strip():
        return None
    if line.startswith(":"):
        return SSERecord(RecordKind.COMMENT, line[1:].strip())
    if not line.startswith(DATA_PREFIX):
        return None

    data = line[len(DATA_PREFIX):]
    if data.strip() == DONE_SENTINEL:
        return SSERecord(RecordKind.DONE)
    return SSERecord(RecordKind.DATA, data)


class SSEDecoder:
    """
    Splits a chunked byte stream into event-stream records.

    A line may be split anywhere across chunk boundaries, including inside
    the ``data: `` prefix or a multi-byte character. The trailing
    incomplete fragment stays in ``buffer`` until its newline arrives.
    """

    def __init__(self):
        self.buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: Union[bytes, str]) -> List[SSERecord]:
        """Decode a chunk and return the records for every line it completes."""
        if isinstance(chunk, str):
            text = chunk
        else:
            text = self._decoder.decode(chunk)

        self.buffer += text
        *lines, self.buffer = self.buffer.split("\n")
        return [record for record in map(parse_line, lines) if record is not None]

    def flush(self) -> List[SSERecord]:
        """Return the record for the final unterminated line, if any."""
        line = self.buffer + self._decoder.decode(b"", final=True)
        self.buffer = ""
        record = parse_line(line)
        return [record] if record is not None else []
