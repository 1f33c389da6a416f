"""Hunk header parsing and hunk-line classification."""

from __future__ import annotations

import re
from typing import Optional, Tuple

from patchscan.scanner.errors import MalformedHunkHeader
from patchscan.scanner.models import Hunk, HunkLine, LineSide, LineType

_UNIFIED_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")
_CONTEXT_OLD_RE = re.compile(r"^\*\*\* (\d+)(?:,(\d+))? \*\*\*\*")
_CONTEXT_NEW_RE = re.compile(r"^--- (\d+)(?:,(\d+))? ----")

CONTEXT_SEPARATOR = "***************"
HUNK_LINE_PREFIXES = (" ", "+", "-", "!")


def _bare_count(offset: int) -> int:
    """Count implied by a range without a comma: 1, or 0 for an empty side."""
    return 0 if offset == 0 else 1


def parse_unified_hunk_header(line: str, *, position: int = 0,
                              line_number: int = 0) -> Hunk:
    """Parse ``@@ -o[,c] +o[,c] @@ [context]``."""
    m = _UNIFIED_HUNK_RE.match(line.rstrip("\r"))
    if not m:
        raise MalformedHunkHeader(f"unparseable hunk header: {line!r}")

    orig_offset = int(m.group(1))
    new_offset = int(m.group(3))
    orig_count = int(m.group(2)) if m.group(2) is not None else _bare_count(orig_offset)
    new_count = int(m.group(4)) if m.group(4) is not None else _bare_count(new_offset)

    context = m.group(5)
    if context.startswith(" "):
        context = context[1:]

    return Hunk(
        orig_offset=orig_offset,
        orig_count=orig_count,
        new_offset=new_offset,
        new_count=new_count,
        context=context or None,
        position=position,
        line_number=line_number,
    )


def _context_range(m: re.Match) -> Tuple[int, int]:
    """Context ranges are ``start[,end]``; return ``(offset, count)``."""
    start = int(m.group(1))
    if m.group(2) is None:
        return start, _bare_count(start)
    end = int(m.group(2))
    return start, (end - start + 1 if end >= start else 0)


def is_context_old_range(line: str) -> bool:
    return line.startswith("*** ") and " ****" in line


def is_context_new_range(line: str) -> bool:
    return line.startswith("--- ") and " ----" in line


def parse_context_old_range(line: str, *, position: int = 0,
                            line_number: int = 0) -> Hunk:
    """Parse ``*** start[,end] ****``; the new range is filled in later."""
    m = _CONTEXT_OLD_RE.match(line)
    if not m:
        raise MalformedHunkHeader(f"unparseable context range: {line!r}")
    offset, count = _context_range(m)
    return Hunk(
        orig_offset=offset,
        orig_count=count,
        position=position,
        line_number=line_number,
    )


def parse_context_new_range(line: str) -> Tuple[int, int]:
    """Parse ``--- start[,end] ----`` into ``(new_offset, new_count)``."""
    m = _CONTEXT_NEW_RE.match(line)
    if not m:
        raise MalformedHunkHeader(f"unparseable context range: {line!r}")
    return _context_range(m)


def is_hunk_line(line: str, *, context: bool = False) -> bool:
    """Content-prefixed line.

    In a context diff a ``--- N[,M] ----`` line is the new-range delimiter, not
    a removed line. Unified diffs have no such delimiter, so a removed
    ``-- ----`` comment stays content there.
    """
    if not line.startswith(HUNK_LINE_PREFIXES):
        return False
    return not (context and is_context_new_range(line))


def classify_line(line: str, position: int,
                  section: Optional[LineSide] = None) -> HunkLine:
    """Build a :class:`HunkLine` from a content-prefixed line.

    *section* is the context-diff half being scanned (``OLD``/``NEW``), or
    ``None`` for unified diffs, whose lines always apply to both sides.
    """
    line_type = LineType(line[0])
    if section is None or line_type is LineType.CONTEXT:
        side = LineSide.BOTH
    else:
        side = section
    return HunkLine(
        type=line_type,
        side=side,
        line=line,
        content=line[1:],
        position=position,
    )
