"""Number ranges for the ``--files``, ``--lines`` and ``--hunks`` options.

A range list is a comma-separated sequence of ``N``, ``N-M``, ``N-``, ``-M``
or ``-`` items; a missing bound is open. A leading ``x`` inverts the
selection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

_ITEM_RE = re.compile(r"^(\d*)(-(\d*))?$")


class RangeError(ValueError):
    """Raised when a range list does not parse."""


@dataclass(frozen=True)
class Range:
    start: Optional[int] = None
    end: Optional[int] = None

    def contains(self, number: int) -> bool:
        return (self.start is None or self.start <= number) and (
            self.end is None or number <= self.end
        )

    def overlaps(self, offset: int, count: int) -> bool:
        """True if lines ``offset`` .. ``offset + count - 1`` touch the range.

        An empty span (``count == 0``) counts as line *offset*.
        """
        count = count or 1
        return (self.start is None or self.start < offset + count) and (
            self.end is None or self.end >= offset
        )


@dataclass(frozen=True)
class RangeSet:
    ranges: Tuple[Range, ...]
    exclude: bool = False

    @classmethod
    def parse(cls, spec: str) -> "RangeSet":
        exclude = spec.startswith("x")
        body = spec[1:] if exclude else spec

        ranges = []
        for item in body.split(","):
            if not item:
                raise RangeError(f"missing number in range list: {spec!r}")
            m = _ITEM_RE.match(item)
            if not m or not (m.group(1) or m.group(2)):
                raise RangeError(f"not understood: {item!r}")

            start = int(m.group(1)) if m.group(1) else None
            if m.group(2) is None:
                end = start
            else:
                end = int(m.group(3)) if m.group(3) else None
            if start is not None and end is not None and start > end:
                raise RangeError(f"invalid range: {start}-{end}")
            ranges.append(Range(start, end))

        return cls(tuple(ranges), exclude)

    def contains(self, number: int) -> bool:
        return any(r.contains(number) for r in self.ranges)

    def overlaps(self, offset: int, count: int) -> bool:
        return any(r.overlaps(offset, count) for r in self.ranges)

    def selects(self, number: int) -> bool:
        """Membership with the ``x`` inversion applied."""
        return self.contains(number) != self.exclude

    def selects_lines(self, offset: int, count: int) -> bool:
        return self.overlaps(offset, count) != self.exclude
