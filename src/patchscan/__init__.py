"""patchscan — event scanner and listing tools for unified, context and git diffs."""

__version__ = "0.1.0"
