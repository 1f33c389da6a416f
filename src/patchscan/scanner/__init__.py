"""Scanner — line source, header parsing, hunk state machine, events."""

from patchscan.scanner.engine import DEFAULT_MAX_HEADER_LINES, Scanner, ScannerState
from patchscan.scanner.errors import (
    HeaderAccumulationOverflow,
    MalformedHunkHeader,
    ScanError,
    ScanIOError,
)
from patchscan.scanner.models import (
    Binary,
    Event,
    GitDiffType,
    Headers,
    Hunk,
    HunkHeader,
    HunkLine,
    HunkLineEvent,
    LineSide,
    LineType,
    NoNewline,
    NonPatch,
    PatchHeaders,
    PatchType,
)

__all__ = [
    "DEFAULT_MAX_HEADER_LINES",
    "Binary",
    "Event",
    "GitDiffType",
    "HeaderAccumulationOverflow",
    "Headers",
    "Hunk",
    "HunkHeader",
    "HunkLine",
    "HunkLineEvent",
    "LineSide",
    "LineType",
    "MalformedHunkHeader",
    "NoNewline",
    "NonPatch",
    "PatchHeaders",
    "PatchType",
    "ScanError",
    "ScanIOError",
    "Scanner",
    "ScannerState",
]
