"""Terminal rendering — plain listing lines and a Rich events table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from patchscan.scanner import (
    Binary,
    Event,
    Headers,
    HunkHeader,
    HunkLineEvent,
    NoNewline,
    NonPatch,
    PatchType,
)
from patchscan.tools.lsdiff import ListedFile, ListedHunk

_EVENT_STYLE = {
    "headers": "bold cyan",
    "hunk_header": "magenta",
    "hunk_line": "green",
    "no_newline": "yellow",
    "binary": "bold yellow",
    "non_patch": "dim",
}


@dataclass
class ListingStyle:
    with_filename: bool = False
    line_numbers: bool = False
    number_files: bool = False
    show_status: bool = False
    verbose: int = 0


def format_entry(entry: ListedFile, style: ListingStyle) -> str:
    parts: List[str] = []
    if style.with_filename:
        parts.append(f"{entry.patch}:")
    if style.line_numbers:
        parts.append(f"{entry.line_number}\t")
    if style.number_files:
        parts.append(f"File #{entry.file_number:<3}\t")
    if style.show_status:
        parts.append(f"{entry.status} ")
    parts.append(entry.filename)
    return "".join(parts)


def format_hunk(entry: ListedFile, hunk: ListedHunk, style: ListingStyle) -> str:
    prefix = f"{entry.patch}-" if style.with_filename else ""
    line = f"{prefix}\t{hunk.line_number}\tHunk #{hunk.number}"
    if style.verbose > 1 and hunk.context:
        line += f"\t{hunk.context}"
    return line


def listing_lines(entries: Iterable[ListedFile], style: ListingStyle) -> List[str]:
    """Lines of a listing; hunks are included for ``-v`` with line numbers."""
    lines: List[str] = []
    show_hunks = style.verbose > 0 and style.line_numbers
    for entry in entries:
        lines.append(format_entry(entry, style))
        if show_hunks:
            lines.extend(format_hunk(entry, hunk, style) for hunk in entry.hunks)
    return lines


def render_listing(entries: Iterable[ListedFile], style: ListingStyle) -> None:
    """Print a listing to stdout, one file per line."""
    for line in listing_lines(entries, style):
        print(line)


# ── events ────────────────────────────────────────────────────────────────────


def event_kind(event: Event) -> str:
    if isinstance(event, Headers):
        return "headers"
    if isinstance(event, HunkHeader):
        return "hunk_header"
    if isinstance(event, HunkLineEvent):
        return "hunk_line"
    if isinstance(event, NoNewline):
        return "no_newline"
    if isinstance(event, Binary):
        return "binary"
    return "non_patch"


def describe_event(event: Event) -> str:
    """One-line human summary of *event*."""
    if isinstance(event, Headers):
        h = event.headers
        detail = f"{h.type.value} {h.old_name} -> {h.new_name}"
        if h.type is PatchType.GIT_EXTENDED:
            detail += f" [{h.git_type.value}]"
        return detail
    if isinstance(event, HunkHeader):
        hunk = event.hunk
        detail = (
            f"-{hunk.orig_offset},{hunk.orig_count} "
            f"+{hunk.new_offset},{hunk.new_count}"
        )
        return f"{detail} {hunk.context}" if hunk.context else detail
    if isinstance(event, HunkLineEvent):
        line = event.hunk_line
        return f"{line.type.value!r} {line.side.value}: {line.content}"
    if isinstance(event, (NoNewline, Binary, NonPatch)):
        return event.line
    return ""


def render_events(events: Sequence[Event]) -> None:
    """Print scanner events as a Rich table on stdout."""
    console = Console()
    table = Table(
        title="Scanner Events",
        title_style="bold",
        border_style="dim",
    )
    table.add_column("Line", justify="right", style="green")
    table.add_column("Offset", justify="right", style="dim")
    table.add_column("Event", no_wrap=True)
    table.add_column("Detail", overflow="fold")

    for event in events:
        kind = event_kind(event)
        table.add_row(
            str(event.line_number),
            str(event.position),
            Text(kind, style=_EVENT_STYLE[kind]),
            Text(describe_event(event)),
        )

    console.print(table)
    console.print(f"[dim]Events:[/dim] {len(events)}")
