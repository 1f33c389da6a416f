"""List the files touched by a patch (``patchscan ls``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence

from patchscan.logging import get_logger
from patchscan.scanner import (
    DEFAULT_MAX_HEADER_LINES,
    Headers,
    Hunk,
    HunkHeader,
    HunkLine,
    HunkLineEvent,
    LineType,
    PatchHeaders,
    PatchType,
    Scanner,
)
from patchscan.tools.inputs import input_name, open_patch
from patchscan.tools.names import STATUS_DELETED, STATUS_NEW, display_name, file_status
from patchscan.tools.patterns import FileFilter
from patchscan.tools.ranges import RangeSet

logger = get_logger(__name__)


@dataclass
class ListOptions:
    """Options shared by the listing tools."""

    file_filter: FileFilter = field(default_factory=FileFilter)
    git_prefixes: str = "keep"
    strip: int = 0  # components removed from displayed names
    add_prefix: Optional[str] = None
    add_old_prefix: Optional[str] = None
    add_new_prefix: Optional[str] = None
    files: Optional[RangeSet] = None  # by file number
    lines: Optional[RangeSet] = None  # against each hunk's old-side lines
    hunks: Optional[RangeSet] = None  # by hunk number within a file
    empty_as_absent: bool = False
    decompress: bool = False
    max_header_lines: int = DEFAULT_MAX_HEADER_LINES

    def name_for(self, headers: PatchHeaders) -> str:
        return display_name(
            headers,
            git_prefixes=self.git_prefixes,
            strip=self.strip,
            add_prefix=self.add_prefix,
            add_old_prefix=self.add_old_prefix,
            add_new_prefix=self.add_new_prefix,
        )

    def selects_file(self, headers: PatchHeaders, file_number: int) -> bool:
        """Name patterns and ``--files``; names are matched before output prefixing."""
        if not self.file_filter.matches(display_name(headers, git_prefixes=self.git_prefixes)):
            return False
        return self.files is None or self.files.selects(file_number)

    def selects_hunk(self, number: int, hunk: Hunk) -> bool:
        """Whether one hunk passes ``--hunks`` and ``--lines`` on its own."""
        if self.hunks is not None and not self.hunks.selects(number):
            return False
        if self.lines is not None and not self.lines.selects_lines(hunk.orig_offset, hunk.orig_count):
            return False
        return True


@dataclass(frozen=True)
class ListedHunk:
    number: int  # 1-based within its file
    line_number: int
    context: Optional[str] = None


@dataclass
class ListedFile:
    """One file entry in a listing."""

    patch: str  # input the entry came from
    filename: str
    status: str
    line_number: int  # first header line, counted across all inputs
    file_number: int  # 1-based, counted across all inputs
    hunks: List[ListedHunk] = field(default_factory=list)


class FileState:
    """Bookkeeping for the file currently being walked.

    Tracks hunk numbering, whether any hunk fell inside the ``--lines`` /
    ``--hunks`` ranges, and whether either side of the file has content.
    """

    def __init__(self, entry: Optional[ListedFile], headers: PatchHeaders) -> None:
        self.entry = entry  # None when the name or file number filtered it out
        self.is_context = headers.type is PatchType.CONTEXT
        self.hunk_count = 0
        self.lines_hit = False
        self.hunks_hit = False
        self.old_empty = True
        self.new_empty = True

    def add_hunk(self, hunk: Hunk, options: ListOptions) -> int:
        """Count a hunk and return its 1-based number."""
        self.hunk_count += 1
        if options.lines is not None and options.lines.overlaps(hunk.orig_offset, hunk.orig_count):
            self.lines_hit = True
        if options.hunks is not None and options.hunks.contains(self.hunk_count):
            self.hunks_hit = True

        if hunk.orig_count > 0:
            self.old_empty = False
        # Context hunks learn their new range later; their lines decide instead.
        if not self.is_context and hunk.new_count > 0:
            self.new_empty = False
        return self.hunk_count

    def add_line(self, line: HunkLine) -> None:
        if not self.is_context:
            return
        if line.type in (LineType.CONTEXT, LineType.CHANGED):
            self.old_empty = self.new_empty = False
        elif line.type is LineType.REMOVED:
            self.old_empty = False
        elif line.type is LineType.ADDED:
            self.new_empty = False

    def passes_ranges(self, options: ListOptions) -> bool:
        """Include mode needs a hunk in range; ``x`` mode needs none."""
        if options.lines is not None and self.lines_hit == options.lines.exclude:
            return False
        if options.hunks is not None and self.hunks_hit == options.hunks.exclude:
            return False
        return True

    def status(self, status: str) -> str:
        """Apply empty-files-as-absent to *status*."""
        if self.old_empty and not self.new_empty:
            return STATUS_NEW
        if not self.old_empty and self.new_empty:
            return STATUS_DELETED
        return status


class FileLister:
    """Scan one or more inputs and collect :class:`ListedFile` entries.

    Line and file numbers keep counting across inputs, so a listing of
    several patches reads as if they were concatenated.
    """

    def __init__(self, options: ListOptions) -> None:
        self.options = options
        self._line_offset = 0
        self._file_count = 0

    def _finish(self, state: Optional[FileState], entries: List[ListedFile]) -> None:
        if state is None or state.entry is None:
            return
        if not state.passes_ranges(self.options):
            return
        if self.options.empty_as_absent:
            state.entry.status = state.status(state.entry.status)
        entries.append(state.entry)

    def list_stream(self, stream: BinaryIO, patch_name: str) -> List[ListedFile]:
        opts = self.options
        scanner = Scanner(stream, max_header_lines=opts.max_header_lines)
        entries: List[ListedFile] = []
        state: Optional[FileState] = None

        for event in scanner:
            if isinstance(event, Headers):
                self._finish(state, entries)
                self._file_count += 1
                headers = event.headers
                entry = None
                if opts.selects_file(headers, self._file_count):
                    entry = ListedFile(
                        patch=patch_name,
                        filename=opts.name_for(headers),
                        status=file_status(headers),
                        line_number=self._line_offset + headers.start_line,
                        file_number=self._file_count,
                    )
                state = FileState(entry, headers)
            elif isinstance(event, HunkHeader) and state is not None:
                number = state.add_hunk(event.hunk, opts)
                if state.entry is not None:
                    state.entry.hunks.append(ListedHunk(
                        number=number,
                        line_number=self._line_offset + event.line_number,
                        context=event.hunk.context,
                    ))
            elif isinstance(event, HunkLineEvent) and state is not None:
                state.add_line(event.hunk_line)
        self._finish(state, entries)

        self._line_offset += scanner.line_number
        logger.debug("listed_input", patch=patch_name, files=len(entries))
        return entries

    def list_paths(self, paths: Sequence[Optional[Path]]) -> List[ListedFile]:
        """List every input in order; an empty *paths* reads stdin."""
        entries: List[ListedFile] = []
        for path in paths or [None]:
            with open_patch(path, decompress=self.options.decompress) as stream:
                entries.extend(self.list_stream(stream, input_name(path)))
        return entries
