"""Open patch inputs, decompressing ``.gz`` and ``.bz2`` files on request."""

from __future__ import annotations

import bz2
import gzip
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

STDIN_NAME = "(standard input)"


def input_name(path: Optional[Path]) -> str:
    """Name used for *path* in listings; ``-`` and ``None`` mean stdin."""
    if path is None or str(path) == "-":
        return STDIN_NAME
    return str(path)


@contextmanager
def open_patch(path: Optional[Path], *, decompress: bool = False) -> Iterator[BinaryIO]:
    """Yield a binary stream for *path*.

    ``None`` or ``-`` reads standard input, which is never closed here.
    With *decompress*, a ``.gz`` or ``.bz2`` suffix selects the matching
    decompressor; other files are read as-is. ``OSError`` propagates.
    """
    if path is None or str(path) == "-":
        yield sys.stdin.buffer
        return

    suffix = path.suffix if decompress else ""
    if suffix == ".gz":
        stream: BinaryIO = gzip.open(path, "rb")  # type: ignore[assignment]
    elif suffix == ".bz2":
        stream = bz2.open(path, "rb")  # type: ignore[assignment]
    else:
        stream = open(path, "rb")
    try:
        yield stream
    finally:
        stream.close()
