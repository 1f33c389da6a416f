"""JSON rendering for listings and event dumps."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Sequence

from patchscan import __version__
from patchscan.output.terminal import event_kind
from patchscan.scanner import (
    Binary,
    Event,
    Headers,
    HunkHeader,
    HunkLineEvent,
    NoNewline,
    NonPatch,
)
from patchscan.tools.lsdiff import ListedFile


def listing_to_dict(entries: Iterable[ListedFile]) -> Dict[str, Any]:
    """Convert listing entries to a JSON-serialisable dict."""
    files: List[Dict[str, Any]] = []
    for entry in entries:
        files.append({
            "patch": entry.patch,
            "file": entry.filename,
            "status": entry.status,
            "line": entry.line_number,
            "number": entry.file_number,
            "hunks": [
                {
                    "number": h.number,
                    "line": h.line_number,
                    **({"context": h.context} if h.context else {}),
                }
                for h in entry.hunks
            ],
        })
    return {"version": __version__, "total_files": len(files), "files": files}


def event_to_dict(event: Event) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "event": event_kind(event),
        "line": event.line_number,
        "position": event.position,
    }
    if isinstance(event, Headers):
        h = event.headers
        data["headers"] = {
            "type": h.type.value,
            "git_type": h.git_type.value,
            "old_name": h.old_name,
            "new_name": h.new_name,
            "git_old_name": h.git_old_name,
            "git_new_name": h.git_new_name,
            "old_mode": f"{h.old_mode:06o}" if h.old_mode is not None else None,
            "new_mode": f"{h.new_mode:06o}" if h.new_mode is not None else None,
            "old_hash": h.old_hash,
            "new_hash": h.new_hash,
            "similarity_index": h.similarity_index,
            "dissimilarity_index": h.dissimilarity_index,
            "rename_from": h.rename_from,
            "rename_to": h.rename_to,
            "copy_from": h.copy_from,
            "copy_to": h.copy_to,
            "is_binary": h.is_binary,
            "header_lines": list(h.header_lines),
        }
    elif isinstance(event, HunkHeader):
        hunk = event.hunk
        data["hunk"] = {
            "orig_offset": hunk.orig_offset,
            "orig_count": hunk.orig_count,
            "new_offset": hunk.new_offset,
            "new_count": hunk.new_count,
            "context": hunk.context,
        }
    elif isinstance(event, HunkLineEvent):
        line = event.hunk_line
        data["hunk_line"] = {
            "type": line.type.value,
            "side": line.side.value,
            "content": line.content,
        }
    elif isinstance(event, Binary):
        data["text"] = event.line
        data["is_git_binary"] = event.is_git_binary
    elif isinstance(event, (NoNewline, NonPatch)):
        data["text"] = event.line
    return data


def render_listing(entries: Iterable[ListedFile]) -> str:
    """Return formatted JSON string."""
    return json.dumps(listing_to_dict(entries), indent=2)


def render_events(events: Sequence[Event]) -> str:
    return json.dumps(
        {"version": __version__, "total_events": len(events),
         "events": [event_to_dict(e) for e in events]},
        indent=2,
    )
