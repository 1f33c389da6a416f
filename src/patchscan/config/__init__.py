"""Configuration loading, schema, and defaults."""

from patchscan.config.loader import ConfigError, load_config
from patchscan.config.schema import PatchScanConfig

__all__ = [
    "ConfigError",
    "PatchScanConfig",
    "load_config",
]
