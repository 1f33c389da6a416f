"""Header block handling — classification, order validation, field parsing.

A header block is accumulated line by line while the scanner is looking for
the start of a patch. After each new line the block is validated against the
grammar of its apparent format; once it validates, the raw lines are parsed
into a :class:`PatchHeaders` record.

Git blocks that carry only metadata (a mode change, a rename, an empty new
file) have no closing ``+++`` line, so completeness is decided by peeking at
the following line.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Sequence

from patchscan.scanner.models import GitDiffType, PatchHeaders, PatchType

# --- Line prefixes ---

_GIT_DIFF = "diff --git "
_BINARY_FILES = "Binary files "
_GIT_BINARY = "GIT binary patch"
_CONTEXT_SEPARATOR = "***************"

_GIT_EXTENDED_PREFIXES = (
    "old mode ",
    "new mode ",
    "deleted file mode ",
    "new file mode ",
    "similarity index ",
    "dissimilarity index ",
    "rename from ",
    "rename to ",
    "copy from ",
    "copy to ",
    "index ",
)

_CONTINUATION_PREFIXES = _GIT_EXTENDED_PREFIXES + (_GIT_DIFF, "+++ ", _GIT_BINARY)

_MODE_RE = re.compile(r"^[0-7]{1,6}$")
_PERCENT_RE = re.compile(r"^\s*(\d+)%")
_MAX_MODE = 0o177777

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

PeekFn = Callable[[], Optional[str]]


def is_binary_marker(line: str) -> bool:
    return _BINARY_FILES in line or line.startswith(_GIT_BINARY)


def is_git_extended_header(line: str) -> bool:
    return line.startswith(_GIT_EXTENDED_PREFIXES) or is_binary_marker(line)


# ── classification ────────────────────────────────────────────────────────────


def is_patch_start(line: str) -> bool:
    """Return True if *line* could begin a new file's header block."""
    if line.startswith("diff "):
        return True
    if line.startswith("--- "):
        return " ----" not in line
    if line.startswith("*** "):
        return " ****" not in line
    return False


def is_header_continuation(line: str) -> bool:
    """Return True if *line* may extend a header block being accumulated."""
    if line.startswith("*** "):
        return " ****" not in line
    if line.startswith("--- "):
        return " ----" not in line
    if line.startswith(_CONTEXT_SEPARATOR):
        return False
    return line.startswith(_CONTINUATION_PREFIXES) or _BINARY_FILES in line


# ── order validation ──────────────────────────────────────────────────────────


def detect_patch_type(lines: Sequence[str]) -> PatchType:
    patch_type = PatchType.UNIFIED
    for line in lines:
        if line.startswith(_GIT_DIFF):
            patch_type = PatchType.GIT_EXTENDED
        elif line.startswith("*** "):
            patch_type = PatchType.CONTEXT
    return patch_type


def _validate_unified(lines: Sequence[str]) -> bool:
    seen_old = seen_new = False
    for line in lines:
        if line.startswith("--- "):
            if seen_new:
                return False
            seen_old = True
        elif line.startswith("+++ "):
            if not seen_old:
                return False
            seen_new = True
    return seen_old and seen_new


def _validate_context(lines: Sequence[str]) -> bool:
    seen_old = seen_new = False
    for line in lines:
        if line.startswith("*** "):
            if seen_new:
                return False
            seen_old = True
        elif line.startswith("--- "):
            if not seen_old:
                return False
            seen_new = True
    return seen_old and seen_new


def _more_headers_follow(next_line: Optional[str]) -> bool:
    """Decide from the peeked line whether the git block is still open."""
    if next_line is None:
        return False
    if next_line.startswith(("--- ", "+++ ")):
        return True
    return is_git_extended_header(next_line)


def _validate_git(lines: Sequence[str], peek: PeekFn) -> bool:
    seen_git = seen_old = seen_new = False
    in_extended = False

    for line in lines:
        if line.startswith(_GIT_DIFF):
            if seen_git or seen_old or seen_new:
                return False
            seen_git = True
            in_extended = True
        elif line.startswith("--- "):
            if not seen_git or seen_new:
                return False
            seen_old = True
            in_extended = False
        elif line.startswith("+++ "):
            if not seen_old:
                return False
            seen_new = True
        elif in_extended:
            if not is_git_extended_header(line):
                return False
        elif seen_new:
            return False

    if any(is_binary_marker(line) for line in lines):
        return seen_git

    if seen_git and not seen_old and not seen_new:
        metadata_only = any(
            line.startswith((
                "rename from ", "rename to ", "copy from ", "copy to ",
                "old mode ", "new mode ", "new file mode ", "deleted file mode ",
            ))
            for line in lines
        )
        if not metadata_only:
            return False
        return not _more_headers_follow(peek())

    return seen_git and seen_old and seen_new


def validate_headers(lines: Sequence[str], peek: PeekFn) -> bool:
    """Return True once *lines* form a complete header block.

    *peek* returns the next input line without consuming it (``None`` at
    EOF). It is only called for git blocks whose completeness is ambiguous.
    """
    patch_type = detect_patch_type(lines)
    if patch_type is PatchType.GIT_EXTENDED:
        return _validate_git(lines, peek)
    if patch_type is PatchType.CONTEXT:
        return _validate_context(lines)
    return _validate_unified(lines)


# ── field parsing ─────────────────────────────────────────────────────────────


def _find_timestamp_start(name: str) -> Optional[int]:
    """Return the index where a trailing timestamp begins, if one is found."""
    length = len(name)
    pos = 0
    while pos < length:
        if name[pos] not in " \t":
            pos += 1
            continue

        after = pos
        while after < length and name[after] in " \t":
            after += 1
        if after >= length:
            break

        rest = name[after:]
        found = (
            (rest[:2] in ("19", "20") and rest[2:4].isdigit() and len(rest) >= 4)
            or (rest[:3] in _MONTHS and rest[3:4] in (" ", "\t"))
            or (rest[:3] in _WEEKDAYS and rest[3:4] in (",", " ", "\t"))
            or (
                len(rest) >= 5
                and rest[:2].isdigit()
                and rest[2] == ":"
                and rest[3:5].isdigit()
            )
        )
        if found:
            while pos > 0 and name[pos - 1] in " \t":
                pos -= 1
            return pos
        pos += 1
    return None


def extract_filename(line: str, prefix_len: int) -> str:
    """Pull the filename out of a ``---``/``+++``/``***`` header line."""
    name = line[prefix_len:].lstrip(" \t")
    end = _find_timestamp_start(name)
    if end is None:
        tab = name.find("\t")
        if tab != -1:
            end = tab
        else:
            end = len(name.rstrip("\r\n"))
    return name[:end].rstrip(" \t")


def parse_mode(line: str) -> Optional[int]:
    """Octal mode from the last word of *line*; ``None`` if implausible."""
    token = line.rstrip("\r").rsplit(" ", 1)[-1]
    if not _MODE_RE.match(token):
        return None
    mode = int(token, 8)
    return mode if mode <= _MAX_MODE else None


def parse_percentage(line: str, prefix: str) -> Optional[int]:
    m = _PERCENT_RE.match(line[len(prefix):])
    if not m:
        return None
    value = int(m.group(1))
    return value if 0 <= value <= 100 else None


def _parse_git_diff_line(line: str, fields: Dict[str, object]) -> None:
    a_start = line.find(" a/")
    b_start = line.find(" b/")
    if a_start == -1 or b_start == -1 or a_start >= b_start:
        return
    a_end = line.find(" ", a_start + 1)
    if a_end != -1 and a_end <= b_start:
        fields["git_old_name"] = line[a_start + 1:a_end]
    fields["git_new_name"] = line[b_start + 1:].rstrip("\r")


def _parse_index_line(line: str, fields: Dict[str, object]) -> None:
    body = line[len("index "):].rstrip("\r")
    old, sep, rest = body.partition("..")
    if not sep:
        return
    fields["old_hash"] = old
    fields["new_hash"] = rest.split(" ", 1)[0]


def _derive_git_type(fields: Dict[str, object], initial: GitDiffType) -> GitDiffType:
    rename = fields.get("rename_from") is not None and fields.get("rename_to") is not None
    copy = fields.get("copy_from") is not None and fields.get("copy_to") is not None
    old_mode = fields.get("old_mode")
    new_mode = fields.get("new_mode")

    if rename and fields.get("similarity_index") == 100:
        return GitDiffType.PURE_RENAME
    if rename:
        return GitDiffType.RENAME
    if copy:
        return GitDiffType.COPY
    if old_mode is not None and new_mode is not None and old_mode != new_mode:
        return GitDiffType.MODE_CHANGE
    if fields.get("is_binary") and initial not in (
        GitDiffType.NEW_FILE, GitDiffType.DELETED_FILE,
    ):
        return GitDiffType.BINARY
    return initial


def _resolve_names(patch_type: PatchType, git_type: GitDiffType,
                   fields: Dict[str, object]) -> None:
    """Fill old/new names from the best source available."""
    if patch_type is not PatchType.GIT_EXTENDED:
        return
    if fields.get("old_name") is None:
        if git_type is GitDiffType.NEW_FILE:
            fields["old_name"] = "/dev/null"
        else:
            fields["old_name"] = (
                fields.get("rename_from") or fields.get("copy_from")
                or fields.get("git_old_name")
            )
    if fields.get("new_name") is None:
        if git_type is GitDiffType.DELETED_FILE:
            fields["new_name"] = "/dev/null"
        else:
            fields["new_name"] = (
                fields.get("rename_to") or fields.get("copy_to")
                or fields.get("git_new_name")
            )


def parse_headers(lines: Sequence[str], *, start_line: int = 0,
                  start_position: int = 0) -> PatchHeaders:
    """Build a :class:`PatchHeaders` from a validated block of raw lines."""
    fields: Dict[str, object] = {}
    patch_type = PatchType.UNIFIED
    git_type = GitDiffType.NORMAL
    is_context = any(line.startswith("*** ") for line in lines)

    for line in lines:
        if line.startswith(_GIT_DIFF):
            patch_type = PatchType.GIT_EXTENDED
            _parse_git_diff_line(line, fields)
        elif line.startswith("--- "):
            key = "new_name" if is_context else "old_name"
            fields[key] = extract_filename(line, 4)
        elif line.startswith("+++ "):
            fields["new_name"] = extract_filename(line, 4)
        elif line.startswith("*** "):
            patch_type = PatchType.CONTEXT
            fields["old_name"] = extract_filename(line, 4)
        elif line.startswith("index "):
            _parse_index_line(line, fields)
        elif line.startswith("new file mode "):
            git_type = GitDiffType.NEW_FILE
            fields["new_mode"] = parse_mode(line)
        elif line.startswith("deleted file mode "):
            git_type = GitDiffType.DELETED_FILE
            fields["old_mode"] = parse_mode(line)
        elif line.startswith("old mode "):
            fields["old_mode"] = parse_mode(line)
        elif line.startswith("new mode "):
            fields["new_mode"] = parse_mode(line)
        elif line.startswith("similarity index "):
            fields["similarity_index"] = parse_percentage(line, "similarity index ")
        elif line.startswith("dissimilarity index "):
            fields["dissimilarity_index"] = parse_percentage(line, "dissimilarity index ")
        elif line.startswith("rename from "):
            git_type = GitDiffType.RENAME
            fields["rename_from"] = line[len("rename from "):].rstrip("\r")
        elif line.startswith("rename to "):
            fields["rename_to"] = line[len("rename to "):].rstrip("\r")
        elif line.startswith("copy from "):
            git_type = GitDiffType.COPY
            fields["copy_from"] = line[len("copy from "):].rstrip("\r")
        elif line.startswith("copy to "):
            fields["copy_to"] = line[len("copy to "):].rstrip("\r")
        elif is_binary_marker(line):
            fields["is_binary"] = True

    git_type = _derive_git_type(fields, git_type)
    _resolve_names(patch_type, git_type, fields)

    return PatchHeaders(
        type=patch_type,
        git_type=git_type,
        header_lines=tuple(lines),
        start_line=start_line,
        start_position=start_position,
        **fields,  # type: ignore[arg-type]
    )


def binary_marker_index(lines: List[str]) -> Optional[int]:
    """Index of the first binary marker line in *lines*, if any."""
    for idx, line in enumerate(lines):
        if is_binary_marker(line):
            return idx
    return None
