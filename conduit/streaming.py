"""
Conduit - Streaming wire format support.

Parses the ``data: <json>`` frames of the Messages streaming protocol and
assembles text deltas into a running buffer. Each request owns its own
accumulator, so concurrent streams can never corrupt each other's text.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger("conduit.streaming")

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class FrameType(str, Enum):
    """Frame types the client cares about; everything else is skipped."""

    CONTENT_BLOCK_DELTA = "content_block_delta"
    ERROR = "error"


@dataclass
class StreamFrame:
    """One decoded ``data:`` line of the stream."""

    type: str
    data: dict[str, Any] = field(default_factory=dict)
    done: bool = False

    @classmethod
    def from_raw(cls, payload: str) -> Optional["StreamFrame"]:
        """Decode a frame payload; returns None for payloads to skip."""
        if payload == DONE_SENTINEL:
            return cls(type="done", done=True)
        try:
            data = json.loads(payload) if payload else None
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        return cls(type=str(data.get("type", "")), data=data)

    @property
    def is_delta(self) -> bool:
        return self.type == FrameType.CONTENT_BLOCK_DELTA

    @property
    def delta_text(self) -> str:
        """Text carried by a delta frame; a missing text folds as ''."""
        delta = self.data.get("delta")
        if isinstance(delta, dict):
            text = delta.get("text")
            if isinstance(text, str):
                return text
        return ""


def parse_frame(line: str) -> Optional[StreamFrame]:
    """
    Parse one line of the response body.

    Returns None for blank lines, ``event:`` lines, comments and payloads
    that are not JSON objects. One optional space after ``data:`` is
    removed.
    """
    line = line.rstrip("\r\n")
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    return StreamFrame.from_raw(payload.strip())


class DeltaAccumulator:
    """
    Running text buffer for a single streamed response.

    Usage:
        ```python
        acc = DeltaAccumulator(on_partial=print)
        for line in lines:
            if not acc.feed_line(line):
                break
        text = acc.text
        ```
    """

    def __init__(self, on_partial: Optional[Callable[[str], None]] = None) -> None:
        self._text = ""
        self._on_partial = on_partial
        self.frames = 0
        self.deltas = 0
        self.skipped = 0
        self.done = False

    @property
    def text(self) -> str:
        return self._text

    def feed_line(self, line: str) -> bool:
        """Consume one line; returns False once the stream is finished."""
        if self.done:
            return False
        frame = parse_frame(line)
        if frame is None:
            if line.strip():
                self.skipped += 1
            return True
        self.frames += 1
        if frame.done:
            self.done = True
            return False
        if frame.is_delta:
            self.append(frame.delta_text)
        elif frame.type == FrameType.ERROR:
            logger.warning("Stream reported an error frame: %s", frame.data.get("error"))
        return True

    def append(self, delta: str) -> None:
        """Fold a delta into the buffer and notify the partial callback."""
        self._text += delta
        self.deltas += 1
        if self._on_partial is not None:
            try:
                self._on_partial(self._text)
            except Exception:
                logger.warning("Partial-text callback raised", exc_info=True)
