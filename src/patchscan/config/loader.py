"""Load and merge configuration from .patchscan.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import-not-found]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

from patchscan.config.schema import (
    GIT_PREFIX_MODES,
    LOG_FORMATS,
    LOG_LEVELS,
    OUTPUT_FORMATS,
    LoggingConfig,
    OutputConfig,
    PatchScanConfig,
    ScannerConfig,
)

CONFIG_FILENAME = ".patchscan.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(base_dir: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = base_dir / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    body = data.get(section, {})
    if not isinstance(body, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in body.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: PatchScanConfig) -> None:
    limit = cfg.scanner.max_header_lines
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ConfigError(
            f"scanner.max_header_lines must be a positive integer, got {limit!r}"
        )
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Unknown output format: {cfg.output.format!r}")
    if cfg.output.git_prefixes not in GIT_PREFIX_MODES:
        raise ConfigError(f"Unknown git_prefixes mode: {cfg.output.git_prefixes!r}")
    if str(cfg.logging.level).lower() not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level: {cfg.logging.level!r}")
    if cfg.logging.format not in LOG_FORMATS:
        raise ConfigError(f"Unknown log format: {cfg.logging.format!r}")


def _merge_env_overrides(cfg: PatchScanConfig) -> None:
    """Apply PATCHSCAN_* environment variable overrides."""
    if val := os.environ.get("PATCHSCAN_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.logging.level = val.lower()
    if val := os.environ.get("PATCHSCAN_LOG_FORMAT"):
        if val in LOG_FORMATS:
            cfg.logging.format = val  # type: ignore[assignment]
    if val := os.environ.get("PATCHSCAN_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("PATCHSCAN_MAX_HEADER_LINES"):
        try:
            limit = int(val)
        except ValueError:
            pass
        else:
            if limit > 0:
                cfg.scanner.max_header_lines = limit


def load_config(
    base_dir: Optional[Path] = None,
    config_override: Optional[str] = None,
) -> PatchScanConfig:
    """Load, validate, and return a PatchScanConfig."""
    config_path = find_config_file(base_dir or Path.cwd(), config_override)

    if config_path is None:
        cfg = PatchScanConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = PatchScanConfig(
                version=str(raw.get("version", "1.0")),
                scanner=_build_section(raw, ScannerConfig, "scanner"),
                output=_build_section(raw, OutputConfig, "output"),
                logging=_build_section(raw, LoggingConfig, "logging"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg
