"""Include/exclude filename filtering for the listing tools.

Patterns are shell globs matched with :func:`fnmatch.fnmatch` against the
whole path, so ``*`` also matches ``/``. Pattern files hold one glob per
line; blank lines are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional

from patchscan.tools.names import strip_components


def read_pattern_file(path: Path) -> List[str]:
    """Return the globs listed in *path*. ``OSError`` propagates."""
    patterns: List[str] = []
    with open(path, encoding="utf-8", errors="surrogateescape") as f:
        for raw in f:
            line = raw.rstrip("\r\n")
            if line.strip():
                patterns.append(line)
    return patterns


@dataclass
class FileFilter:
    """Decide which files a listing should report."""

    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    strip_match: int = 0  # components removed before matching

    @classmethod
    def build(
        cls,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        include_files: Iterable[Path] = (),
        exclude_files: Iterable[Path] = (),
        strip_match: int = 0,
    ) -> "FileFilter":
        instance = cls(list(include), list(exclude), strip_match)
        for path in include_files:
            instance.include.extend(read_pattern_file(path))
        for path in exclude_files:
            instance.exclude.extend(read_pattern_file(path))
        return instance

    @property
    def active(self) -> bool:
        return bool(self.include or self.exclude)

    def matches(self, filename: Optional[str]) -> bool:
        """Return True if *filename* passes the include and exclude lists."""
        if not self.active:
            return True
        if filename is None:
            return not self.include
        name = strip_components(filename, self.strip_match)
        if any(fnmatch(name, pat) for pat in self.exclude):
            return False
        if self.include:
            return any(fnmatch(name, pat) for pat in self.include)
        return True
