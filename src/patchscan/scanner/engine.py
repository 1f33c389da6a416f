"""Patch scanner — pull-style state machine over a line stream.

Each call to :meth:`Scanner.next_event` reads only as many lines as it needs
to produce one event, so the scanner is safe to drive from a live pipe.

States::

    SEEKING_PATCH ─▶ ACCUMULATING_HEADERS ─▶ IN_PATCH ◀─▶ IN_HUNK
          ▲                  │                  │
          └──── degrade ─────┘                  └─▶ BINARY_READY (one shot)

Header blocks that never validate are handed back as NonPatch events, one per
accumulated line, so no input is lost.
"""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import IO, Deque, Iterator, List, Optional

from patchscan.logging import get_logger
from patchscan.scanner import headers as hdr
from patchscan.scanner import hunks
from patchscan.scanner.errors import (
    HeaderAccumulationOverflow,
    MalformedHunkHeader,
    ScanError,
    ScanIOError,
)
from patchscan.scanner.line_source import LineSource, SourceLine
from patchscan.scanner.models import (
    Binary,
    Event,
    Headers,
    Hunk,
    HunkHeader,
    HunkLineEvent,
    LineSide,
    LineType,
    NoNewline,
    NonPatch,
    PatchHeaders,
    PatchType,
)

logger = get_logger(__name__)

DEFAULT_MAX_HEADER_LINES = 1024


class ScannerState(str, Enum):
    SEEKING_PATCH = "seeking_patch"
    ACCUMULATING_HEADERS = "accumulating_headers"
    IN_PATCH = "in_patch"
    IN_HUNK = "in_hunk"
    BINARY_READY = "binary_ready"
    ERROR = "error"


class Scanner:
    """Turn a patch stream into a sequence of structural events.

    Usage::

        scanner = Scanner(stream)
        for event in scanner:
            if isinstance(event, Headers):
                ...
            elif isinstance(event, HunkLineEvent):
                ...
    """

    def __init__(self, stream: IO, *,
                 max_header_lines: int = DEFAULT_MAX_HEADER_LINES) -> None:
        self._source = LineSource(stream)
        self._max_header_lines = max_header_lines
        self._state = ScannerState.SEEKING_PATCH
        self._error: Optional[ScanError] = None

        self._accumulated: List[SourceLine] = []
        self._degraded: Deque[NonPatch] = deque()
        self._reprocess: Optional[SourceLine] = None

        self._headers: Optional[PatchHeaders] = None
        self._pending_binary: Optional[Binary] = None
        self._hunk: Optional[Hunk] = None
        self._orig_remaining = 0
        self._new_remaining = 0
        self._section: Optional[LineSide] = None  # context diffs only
        self._after_hunk_line = False

    # ── public API ────────────────────────────────────────────────────────

    @property
    def state(self) -> ScannerState:
        return self._state

    @property
    def line_number(self) -> int:
        """Number of lines read from the underlying stream so far."""
        return self._source.lines_read

    @property
    def position(self) -> int:
        """Byte offset just past the last line read from the stream."""
        return self._source.bytes_read

    @property
    def headers(self) -> Optional[PatchHeaders]:
        return self._headers

    @property
    def hunk(self) -> Optional[Hunk]:
        return self._hunk

    def __iter__(self) -> Iterator[Event]:
        while True:
            event = self.next_event()
            if event is None:
                return
            yield event

    def next_event(self) -> Optional[Event]:
        """Return the next event, or ``None`` at end of input.

        Raises :class:`ScanError` subclasses on I/O failure or header
        overflow; once that happens every later call raises again.
        """
        if self._state is ScannerState.ERROR:
            raise ScanError("scanner is in an error state") from self._error

        if self._degraded:
            return self._degraded.popleft()

        if self._pending_binary is not None:
            event, self._pending_binary = self._pending_binary, None
            self._state = ScannerState.SEEKING_PATCH
            return event

        while True:
            if self._reprocess is not None:
                src, self._reprocess = self._reprocess, None
            else:
                src = self._read()

            if src is None:
                return self._at_eof()

            if self._state is ScannerState.SEEKING_PATCH:
                event = self._seeking(src)
            elif self._state is ScannerState.ACCUMULATING_HEADERS:
                event = self._accumulating(src)
            elif self._state is ScannerState.IN_PATCH:
                event = self._in_patch(src)
            else:
                event = self._in_hunk(src)

            self._after_hunk_line = isinstance(event, HunkLineEvent)
            if event is not None:
                return event

    def skip_current_patch(self) -> None:
        """Discard the rest of the current patch body.

        Stops at the start of the next patch, whose headers the following
        :meth:`next_event` call still reports.
        """
        if self._state is ScannerState.ERROR:
            raise ScanError("scanner is in an error state") from self._error

        while self._state in (ScannerState.IN_PATCH, ScannerState.IN_HUNK):
            if self._reprocess is not None:
                src, self._reprocess = self._reprocess, None
            else:
                src = self._read()
            if src is None:
                return
            if self._state is ScannerState.IN_PATCH:
                self._in_patch(src)
            else:
                self._in_hunk(src)
        self._after_hunk_line = False

    def at_patch_start(self) -> bool:
        return self._state in (
            ScannerState.ACCUMULATING_HEADERS, ScannerState.IN_PATCH,
        )

    # ── line input ────────────────────────────────────────────────────────

    def _read(self) -> Optional[SourceLine]:
        try:
            return self._source.next_line()
        except OSError as exc:
            self._fail(ScanIOError(f"error reading patch input: {exc}"))
            raise self._error from exc

    def _peek(self) -> Optional[str]:
        line = self._read()
        if line is None:
            return None
        self._source.unread(line)
        return line.text

    def _fail(self, error: ScanError) -> None:
        self._state = ScannerState.ERROR
        self._error = error

    # ── state handlers ────────────────────────────────────────────────────

    def _at_eof(self) -> Optional[Event]:
        if self._state is ScannerState.ACCUMULATING_HEADERS and self._accumulated:
            self._degrade()
            return self._degraded.popleft()
        return None

    def _seeking(self, src: SourceLine) -> Optional[Event]:
        if hdr.is_patch_start(src.text):
            self._start_accumulating(src)
            return None
        return self._non_patch(src)

    def _accumulating(self, src: SourceLine) -> Optional[Event]:
        if not hdr.is_header_continuation(src.text):
            self._degrade()
            self._reprocess = src
            return self._degraded.popleft()

        if len(self._accumulated) >= self._max_header_lines:
            self._fail(HeaderAccumulationOverflow(
                f"more than {self._max_header_lines} header lines starting at "
                f"line {self._accumulated[0].number}"
            ))
            raise self._error
        self._accumulated.append(src)

        lines = [line.text for line in self._accumulated]
        if not hdr.validate_headers(lines, self._peek):
            return None
        return self._emit_headers(lines)

    def _in_patch(self, src: SourceLine) -> Optional[Event]:
        text = src.text

        if text.startswith("@@ "):
            return self._start_unified_hunk(src)
        if hunks.is_context_old_range(text):
            return self._start_context_hunk(src)
        if text.startswith(hunks.CONTEXT_SEPARATOR):
            return None
        if text.startswith(("Binary files ", "GIT binary patch")):
            return self._binary_event(src)
        if text.startswith("\\") and self._after_hunk_line:
            return NoNewline(src.number, src.position, text)
        if hdr.is_patch_start(text):
            self._reset_patch()
            self._start_accumulating(src)
            return None
        return self._non_patch(src)

    def _in_hunk(self, src: SourceLine) -> Optional[Event]:
        text = src.text
        is_context = (
            self._headers is not None and self._headers.type is PatchType.CONTEXT
        )

        if hunks.is_hunk_line(text, context=is_context):
            return self._hunk_line(src)
        if text.startswith("\\"):
            return NoNewline(src.number, src.position, text)
        if is_context and hunks.is_context_new_range(text):
            return self._refine_context_hunk(src)
        if text.startswith("@@ "):
            return self._start_unified_hunk(src)
        if hunks.is_context_old_range(text):
            return self._start_context_hunk(src)
        if text.startswith(hunks.CONTEXT_SEPARATOR):
            self._close_hunk()
            return None

        # Anything else ends the patch; look at the line again from scratch.
        self._close_hunk()
        self._state = ScannerState.SEEKING_PATCH
        self._reprocess = src
        return None

    # ── headers ───────────────────────────────────────────────────────────

    def _start_accumulating(self, src: SourceLine) -> None:
        self._state = ScannerState.ACCUMULATING_HEADERS
        self._accumulated = [src]

    def _degrade(self) -> None:
        first = self._accumulated[0]
        logger.debug(
            "header_block_degraded",
            start_line=first.number,
            lines=len(self._accumulated),
        )
        self._degraded.extend(self._non_patch(line) for line in self._accumulated)
        self._accumulated = []
        self._state = ScannerState.SEEKING_PATCH

    def _emit_headers(self, lines: List[str]) -> Headers:
        first = self._accumulated[0]
        headers = hdr.parse_headers(
            lines, start_line=first.number, start_position=first.position,
        )
        self._headers = headers
        self._hunk = None

        marker = hdr.binary_marker_index(lines)
        if headers.is_binary and marker is not None:
            self._pending_binary = self._binary_event(self._accumulated[marker])
            self._state = ScannerState.BINARY_READY
        else:
            self._pending_binary = None
            self._state = ScannerState.IN_PATCH

        if self._source.has_pending and not headers.has_file_lines:
            logger.debug("metadata_only_block", start_line=first.number)

        self._accumulated = []
        return Headers(first.number, first.position, headers)

    def _reset_patch(self) -> None:
        self._headers = None
        self._hunk = None
        self._close_hunk()

    # ── hunks ─────────────────────────────────────────────────────────────

    def _malformed(self, src: SourceLine, exc: MalformedHunkHeader) -> None:
        logger.warning("malformed_hunk_header", line=src.number, error=str(exc))
        self._close_hunk()
        self._state = ScannerState.SEEKING_PATCH
        self._reprocess = src

    def _start_unified_hunk(self, src: SourceLine) -> Optional[Event]:
        try:
            hunk = hunks.parse_unified_hunk_header(
                src.text, position=src.position, line_number=src.number,
            )
        except MalformedHunkHeader as exc:
            self._malformed(src, exc)
            return None

        self._hunk = hunk
        self._orig_remaining = hunk.orig_count
        self._new_remaining = hunk.new_count
        self._section = None
        self._state = ScannerState.IN_HUNK
        return HunkHeader(src.number, src.position, hunk)

    def _start_context_hunk(self, src: SourceLine) -> Optional[Event]:
        try:
            hunk = hunks.parse_context_old_range(
                src.text, position=src.position, line_number=src.number,
            )
        except MalformedHunkHeader as exc:
            self._malformed(src, exc)
            return None

        self._hunk = hunk
        self._orig_remaining = hunk.orig_count
        self._new_remaining = 0
        self._section = LineSide.OLD
        self._state = ScannerState.IN_HUNK
        return HunkHeader(src.number, src.position, hunk)

    def _refine_context_hunk(self, src: SourceLine) -> Optional[Event]:
        try:
            new_offset, new_count = hunks.parse_context_new_range(src.text)
        except MalformedHunkHeader as exc:
            self._malformed(src, exc)
            return None

        if self._hunk is None:
            err = MalformedHunkHeader(f"context range outside a hunk: {src.text!r}")
            self._malformed(src, err)
            return None
        self._hunk.new_offset = new_offset
        self._hunk.new_count = new_count
        self._orig_remaining = 0
        self._new_remaining = new_count
        self._section = LineSide.NEW
        if new_count == 0:
            self._close_hunk()
        return None

    def _hunk_line(self, src: SourceLine) -> HunkLineEvent:
        hunk_line = hunks.classify_line(src.text, src.position, self._section)
        self._consume(hunk_line.type)

        if self._orig_remaining == 0 and self._new_remaining == 0:
            if self._section is not LineSide.OLD:
                self._close_hunk()
        return HunkLineEvent(src.number, src.position, hunk_line)

    def _consume(self, line_type: LineType) -> None:
        """Decrement the remaining-line counters for one content line."""
        if self._section is LineSide.OLD:
            takes_orig, takes_new = True, False
        elif self._section is LineSide.NEW:
            takes_orig, takes_new = False, True
        else:
            takes_orig = line_type is not LineType.ADDED
            takes_new = line_type is not LineType.REMOVED

        if takes_orig and self._orig_remaining > 0:
            self._orig_remaining -= 1
        if takes_new and self._new_remaining > 0:
            self._new_remaining -= 1

    def _close_hunk(self) -> None:
        self._orig_remaining = 0
        self._new_remaining = 0
        self._section = None
        if self._state is ScannerState.IN_HUNK:
            self._state = ScannerState.IN_PATCH

    # ── event builders ────────────────────────────────────────────────────

    @staticmethod
    def _non_patch(src: SourceLine) -> NonPatch:
        return NonPatch(src.number, src.position, src.text, src.raw)

    @staticmethod
    def _binary_event(src: SourceLine) -> Binary:
        return Binary(
            src.number,
            src.position,
            src.text,
            src.text.startswith("GIT binary patch"),
        )
