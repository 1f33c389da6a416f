"""Data models for the patch scanner — header records, hunks, and events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class PatchType(str, Enum):
    UNIFIED = "unified"
    CONTEXT = "context"
    GIT_EXTENDED = "git_extended"


class GitDiffType(str, Enum):
    NORMAL = "normal"
    NEW_FILE = "new_file"
    DELETED_FILE = "deleted_file"
    RENAME = "rename"
    PURE_RENAME = "pure_rename"
    COPY = "copy"
    MODE_ONLY = "mode_only"
    MODE_CHANGE = "mode_change"
    BINARY = "binary"


class LineType(str, Enum):
    CONTEXT = " "
    ADDED = "+"
    REMOVED = "-"
    CHANGED = "!"
    NO_NEWLINE = "\\"


class LineSide(str, Enum):
    """Which half of a context-diff hunk a line came from."""

    BOTH = "both"
    OLD = "old"
    NEW = "new"


@dataclass(frozen=True)
class PatchHeaders:
    """One file's validated header block."""

    type: PatchType
    git_type: GitDiffType = GitDiffType.NORMAL
    old_name: Optional[str] = None
    new_name: Optional[str] = None
    git_old_name: Optional[str] = None  # raw "a/..." from diff --git
    git_new_name: Optional[str] = None
    old_mode: Optional[int] = None
    new_mode: Optional[int] = None
    old_hash: Optional[str] = None
    new_hash: Optional[str] = None
    similarity_index: Optional[int] = None
    dissimilarity_index: Optional[int] = None
    rename_from: Optional[str] = None
    rename_to: Optional[str] = None
    copy_from: Optional[str] = None
    copy_to: Optional[str] = None
    is_binary: bool = False
    header_lines: Tuple[str, ...] = ()
    start_line: int = 0
    start_position: int = 0

    @property
    def has_file_lines(self) -> bool:
        """True when the block carried ``---``/``+++`` (or ``***``) name lines."""
        return any(
            line.startswith(("--- ", "+++ ", "*** ")) for line in self.header_lines
        )


@dataclass
class Hunk:
    """A hunk header. Context hunks get their new range filled in later."""

    orig_offset: int
    orig_count: int
    new_offset: int = 0
    new_count: int = 0
    context: Optional[str] = None  # text after the closing @@
    position: int = 0
    line_number: int = 0


@dataclass(frozen=True, slots=True)
class HunkLine:
    """A single content line inside a hunk."""

    type: LineType
    side: LineSide
    line: str  # full line, prefix included
    content: str  # prefix stripped
    position: int


# --- Events ---


@dataclass(frozen=True)
class NonPatch:
    line_number: int
    position: int
    line: str
    raw: str  # exact input text, terminator included

    @property
    def length(self) -> int:
        return len(self.line)


@dataclass(frozen=True)
class Headers:
    line_number: int
    position: int
    headers: PatchHeaders


@dataclass(frozen=True)
class HunkHeader:
    line_number: int
    position: int
    hunk: Hunk


@dataclass(frozen=True)
class HunkLineEvent:
    line_number: int
    position: int
    hunk_line: HunkLine


@dataclass(frozen=True)
class NoNewline:
    line_number: int
    position: int
    line: str


@dataclass(frozen=True)
class Binary:
    line_number: int
    position: int
    line: str
    is_git_binary: bool


Event = Union[NonPatch, Headers, HunkHeader, HunkLineEvent, NoNewline, Binary]
