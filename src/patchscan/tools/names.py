"""Filename selection and file-status helpers shared by the listing tools."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from patchscan.scanner.models import GitDiffType, PatchHeaders, PatchType

DEV_NULL = "/dev/null"
UNKNOWN_NAME = "(unknown)"

STATUS_NEW = "+"
STATUS_DELETED = "-"
STATUS_MODIFIED = "!"

SIDE_OLD = "old"
SIDE_NEW = "new"

_ISO_TS_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[ T](\d{1,2}):(\d{2}):(\d{2})(?:\.\d+)?"
    r"(?:\s*([+-])(\d{2}):?(\d{2}))?"
)
_CTIME_TS_RE = re.compile(
    r"^[A-Z][a-z]{2},?\s+([A-Z][a-z]{2})\s+(\d{1,2})\s+"
    r"(\d{1,2}):(\d{2}):(\d{2})\s+(\d{4})"
)
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ── path manipulation ─────────────────────────────────────────────────────────


def strip_git_prefix(name: str, mode: str) -> str:
    """Drop a leading ``a/`` or ``b/`` when *mode* is ``strip``."""
    if mode == "strip" and name.startswith(("a/", "b/")):
        return name[2:]
    return name


def strip_components(name: str, count: int) -> str:
    """Remove *count* leading path components; too few leaves *name* intact."""
    if count <= 0:
        return name
    rest = name
    for _ in range(count):
        slash = rest.find("/")
        if slash == -1:
            return name
        rest = rest[slash + 1:]
    return rest


def _components(name: str) -> int:
    return name.count("/") + 1 if name else 0


def _basename(name: str) -> str:
    return name.rsplit("/", 1)[-1]


def _best_index(names: Sequence[Optional[str]]) -> Optional[int]:
    present = [(i, n) for i, n in enumerate(names) if n]
    if not present:
        return None
    real = [(i, n) for i, n in present if n != DEV_NULL]
    if not real:
        return present[0][0]

    def rank(item: Tuple[int, str]) -> Tuple[int, int, int, int]:
        idx, name = item
        return (_components(name), len(_basename(name)), len(name), idx)

    return min(real, key=rank)[0]


def choose_best_name(names: Sequence[Optional[str]]) -> Optional[str]:
    """Pick the most plausible name among *names*.

    Fewest path components wins, then the shortest basename, then the
    shortest full name; ties go to the earliest candidate. ``/dev/null`` is
    only returned when nothing else is available.
    """
    idx = _best_index(names)
    return None if idx is None else names[idx]


def _candidates(headers: PatchHeaders) -> List[Tuple[Optional[str], str]]:
    """Candidate names in preference order, each tagged with its side."""
    if headers.type is PatchType.GIT_EXTENDED:
        if headers.has_file_lines:
            if headers.git_type is GitDiffType.NEW_FILE:
                return [(headers.new_name, SIDE_NEW), (headers.git_new_name, SIDE_NEW),
                        (headers.old_name, SIDE_OLD), (headers.git_old_name, SIDE_OLD)]
            return [(headers.git_old_name, SIDE_OLD), (headers.old_name, SIDE_OLD),
                    (headers.git_new_name, SIDE_NEW), (headers.new_name, SIDE_NEW)]
        return [(headers.git_old_name, SIDE_OLD), (headers.git_new_name, SIDE_NEW)]
    return [(headers.old_name, SIDE_OLD), (headers.new_name, SIDE_NEW)]


def _best(headers: PatchHeaders, git_prefixes: str) -> Tuple[str, Optional[str]]:
    candidates = _candidates(headers)
    names = [
        strip_git_prefix(name, git_prefixes) if name else name
        for name, _ in candidates
    ]
    idx = _best_index(names)
    if idx is None:
        return UNKNOWN_NAME, None
    return names[idx], candidates[idx][1]


def best_filename(headers: PatchHeaders, *, git_prefixes: str = "keep") -> str:
    """Return the display name for the file described by *headers*."""
    return _best(headers, git_prefixes)[0]


def display_name(headers: PatchHeaders, *, git_prefixes: str = "keep",
                 strip: int = 0, add_prefix: Optional[str] = None,
                 add_old_prefix: Optional[str] = None,
                 add_new_prefix: Optional[str] = None) -> str:
    """Best filename with output stripping and prefixing applied.

    *add_prefix* applies to every name and wins over the side-specific
    prefixes, which apply according to whether the chosen name came from the
    old or the new side of the patch.
    """
    name, side = _best(headers, git_prefixes)
    name = strip_components(name, strip)
    if add_prefix:
        return f"{add_prefix}{name}"
    if side == SIDE_OLD and add_old_prefix:
        return f"{add_old_prefix}{name}"
    if side == SIDE_NEW and add_new_prefix:
        return f"{add_new_prefix}{name}"
    return name


# ── file status ───────────────────────────────────────────────────────────────


def _parse_timestamp(text: str) -> Optional[Tuple[int, int, int, int, int, int, Optional[int]]]:
    """Return ``(year, month, day, hour, minute, second, zone)`` or ``None``.

    *zone* is the UTC offset as the ``hhmm`` integer diff writes (``-0800``
    becomes ``-800``), or ``None`` when the timestamp has no zone.
    """
    text = text.strip()
    m = _ISO_TS_RE.match(text)
    if m:
        zone = None
        if m.group(7):
            zone = int(m.group(8)) * 100 + int(m.group(9))
            if m.group(7) == "-":
                zone = -zone
        return (int(m.group(1)), int(m.group(2)), int(m.group(3)),
                int(m.group(4)), int(m.group(5)), int(m.group(6)), zone)
    m = _CTIME_TS_RE.match(text)
    if m and m.group(1) in _MONTHS:
        return (int(m.group(6)), _MONTHS.index(m.group(1)) + 1, int(m.group(2)),
                int(m.group(3)), int(m.group(4)), int(m.group(5)), None)
    return None


def _is_epoch(timestamp: str) -> bool:
    """True for timestamps that are ``ctime(0)`` rendered in some time zone."""
    parsed = _parse_timestamp(timestamp)
    if parsed is None:
        return False
    year, month, day, hour, minute, second, zone = parsed
    if second != 0 or minute % 15 != 0:
        return False

    if (year, month, day) == (1969, 12, 31) and hour >= 9:
        offset = 100 * (hour - 24)
        if minute:
            offset += 100 + minute - 60
    elif (year, month, day) == (1970, 1, 1) and hour <= 15:
        offset = 100 * hour + minute
    else:
        return False

    return zone is None or zone == offset


def file_exists(name: Optional[str], timestamp: Optional[str]) -> bool:
    """Decide whether one side of a unified/context diff names a real file."""
    if name == DEV_NULL:
        return False
    if timestamp is None:
        return True
    return not _is_epoch(timestamp)


def _timestamp(line: str) -> Optional[str]:
    tab = line.find("\t", 4)
    return line[tab + 1:] if tab != -1 else None


def file_status(headers: PatchHeaders) -> str:
    """Return ``+`` for a new file, ``-`` for a deleted one, else ``!``."""
    old_exists = new_exists = True

    if headers.type is PatchType.GIT_EXTENDED:
        if headers.git_type is GitDiffType.NEW_FILE:
            old_exists = False
        elif headers.git_type is GitDiffType.DELETED_FILE:
            new_exists = False
    else:
        old_exists = headers.old_name != DEV_NULL
        new_exists = headers.new_name != DEV_NULL
        if old_exists and new_exists:
            is_context = headers.type is PatchType.CONTEXT
            for line in headers.header_lines:
                if line.startswith("*** ") and is_context:
                    old_exists = file_exists(headers.old_name, _timestamp(line))
                elif line.startswith("--- "):
                    if is_context:
                        new_exists = file_exists(headers.new_name, _timestamp(line))
                    else:
                        old_exists = file_exists(headers.old_name, _timestamp(line))
                elif line.startswith("+++ "):
                    new_exists = file_exists(headers.new_name, _timestamp(line))

    if not old_exists and new_exists:
        return STATUS_NEW
    if old_exists and not new_exists:
        return STATUS_DELETED
    return STATUS_MODIFIED
