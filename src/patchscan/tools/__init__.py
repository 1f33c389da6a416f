"""Front-end tools built on the scanner — file listing and hunk grep."""

from patchscan.tools.grepdiff import HunkGrepper, PatternError, compile_patterns
from patchscan.tools.lsdiff import FileLister, ListedFile, ListedHunk, ListOptions
from patchscan.tools.names import best_filename, choose_best_name, file_status
from patchscan.tools.patterns import FileFilter
from patchscan.tools.ranges import RangeError, RangeSet

__all__ = [
    "FileFilter",
    "FileLister",
    "HunkGrepper",
    "ListOptions",
    "ListedFile",
    "ListedHunk",
    "PatternError",
    "RangeError",
    "RangeSet",
    "best_filename",
    "choose_best_name",
    "compile_patterns",
    "file_status",
]
