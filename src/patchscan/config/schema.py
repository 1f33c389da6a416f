"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from patchscan.scanner.engine import DEFAULT_MAX_HEADER_LINES

OutputFormat = Literal["terminal", "json"]
GitPrefixes = Literal["strip", "keep"]
LogFormat = Literal["console", "json"]

OUTPUT_FORMATS = ("terminal", "json")
GIT_PREFIX_MODES = ("strip", "keep")
LOG_FORMATS = ("console", "json")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass
class ScannerConfig:
    max_header_lines: int = DEFAULT_MAX_HEADER_LINES


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    git_prefixes: GitPrefixes = "keep"  # strip a/ and b/ from git names


@dataclass
class LoggingConfig:
    level: str = "warning"
    format: LogFormat = "console"


@dataclass
class PatchScanConfig:
    version: str = "1.0"
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
