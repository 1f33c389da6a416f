"""Scanner exceptions."""

from __future__ import annotations


class ScanError(Exception):
    """Base class for errors raised while scanning a patch stream."""


class ScanIOError(ScanError):
    """Reading the underlying stream failed."""


class HeaderAccumulationOverflow(ScanError):
    """Too many header lines accumulated without forming a valid block."""


class MalformedHunkHeader(ScanError):
    """A hunk range could not be parsed."""
