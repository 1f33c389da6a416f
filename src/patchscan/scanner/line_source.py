"""Line source with a single slot of pushback.

Works on non-seekable streams (pipes, stdin): lookahead is done by reading a
line and handing it back with :meth:`LineSource.unread`, never by seeking.
"""

from __future__ import annotations

from typing import IO, NamedTuple, Optional, Union

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class SourceLine(NamedTuple):
    text: str  # line without its trailing newline
    number: int  # 1-based
    position: int  # byte offset of the first character
    raw: str  # line as read, terminator included


class LineSource:
    """Read one line at a time from a text or binary stream."""

    def __init__(self, stream: IO) -> None:
        self._stream = stream
        self._pending: Optional[SourceLine] = None
        self.lines_read = 0
        self.bytes_read = 0

    def next_line(self) -> Optional[SourceLine]:
        """Return the next line, or ``None`` at end of input.

        A pushed-back line is returned first, with the number and position it
        was originally read at. ``OSError`` from the stream propagates.
        """
        if self._pending is not None:
            line, self._pending = self._pending, None
            return line

        data: Union[str, bytes] = self._stream.readline()
        if not data:
            return None

        if isinstance(data, bytes):
            size = len(data)
            raw = data.decode(_ENCODING, _ERRORS)
        else:
            raw = data
            size = len(data.encode(_ENCODING, _ERRORS))

        position = self.bytes_read
        self.bytes_read += size
        self.lines_read += 1
        text = raw[:-1] if raw.endswith("\n") else raw
        return SourceLine(text, self.lines_read, position, raw)

    def unread(self, line: SourceLine) -> None:
        """Push *line* back so the next :meth:`next_line` returns it."""
        if self._pending is not None:
            raise ValueError("only one line of pushback is supported")
        self._pending = line

    @property
    def has_pending(self) -> bool:
        return self._pending is not None
