"""List files whose changed lines match a regex (``patchscan grep``)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Pattern, Sequence

from patchscan.logging import get_logger
from patchscan.scanner import Headers, HunkHeader, HunkLineEvent, LineType, Scanner
from patchscan.tools.inputs import input_name, open_patch
from patchscan.tools.lsdiff import FileState, ListedFile, ListedHunk, ListOptions
from patchscan.tools.names import file_status

logger = get_logger(__name__)


class PatternError(ValueError):
    """Raised when a search regex does not compile."""


def compile_patterns(patterns: Iterable[str], *, ignore_case: bool = False) -> List[Pattern[str]]:
    flags = re.IGNORECASE if ignore_case else 0
    compiled: List[Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, flags))
        except re.error as exc:
            raise PatternError(f"invalid regex {pattern!r}: {exc}") from exc
    return compiled


class HunkGrepper:
    """Collect files that have an added, removed or changed line matching."""

    def __init__(self, patterns: Sequence[Pattern[str]], options: ListOptions) -> None:
        if not patterns:
            raise PatternError("no search pattern given")
        self.patterns = list(patterns)
        self.options = options
        self._line_offset = 0
        self._file_count = 0

    def _matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)

    def _finish(self, state: Optional[FileState]) -> None:
        if state is not None and state.entry is not None and self.options.empty_as_absent:
            state.entry.status = state.status(state.entry.status)

    def grep_stream(self, stream: BinaryIO, patch_name: str) -> List[ListedFile]:
        opts = self.options
        scanner = Scanner(stream, max_header_lines=opts.max_header_lines)
        entries: List[ListedFile] = []
        state: Optional[FileState] = None
        hunk: Optional[ListedHunk] = None
        searching = False  # current hunk is in range and has not matched yet

        for event in scanner:
            if isinstance(event, Headers):
                self._finish(state)
                self._file_count += 1
                hunk = None
                searching = False
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
                hunk = ListedHunk(
                    number=number,
                    line_number=self._line_offset + event.line_number,
                    context=event.hunk.context,
                )
                searching = state.entry is not None and opts.selects_hunk(number, event.hunk)
            elif isinstance(event, HunkLineEvent) and state is not None:
                line = event.hunk_line
                state.add_line(line)
                if not searching or line.type is LineType.CONTEXT:
                    continue
                text = line.content
                if state.is_context and text.startswith(" "):
                    text = text[1:]
                current = state.entry
                if current is not None and self._matches(text):
                    searching = False
                    if not entries or entries[-1] is not current:
                        entries.append(current)
                    if hunk is not None:
                        current.hunks.append(hunk)
        self._finish(state)

        self._line_offset += scanner.line_number
        logger.debug("grepped_input", patch=patch_name, files=len(entries))
        return entries

    def grep_paths(self, paths: Sequence[Optional[Path]]) -> List[ListedFile]:
        """Search every input in order; an empty *paths* reads stdin."""
        entries: List[ListedFile] = []
        for path in paths or [None]:
            with open_patch(path, decompress=self.options.decompress) as stream:
                entries.extend(self.grep_stream(stream, input_name(path)))
        return entries


def read_regex_file(path: Path) -> List[str]:
    """One regex per line; blank lines are skipped. ``OSError`` propagates."""
    with open(path, encoding="utf-8", errors="surrogateescape") as f:
        return [line.rstrip("\r\n") for line in f if line.strip()]
