"""Scan configuration."""

from settings.config import (
    CONFIG_FILENAME,
    DEFAULT_MAX_FUNCTION_LINES,
    ApiClientConfig,
    ConfigError,
    ScanConfig,
    load_config,
    resolve_api_routes_dir,
)

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_MAX_FUNCTION_LINES",
    "ApiClientConfig",
    "ConfigError",
    "ScanConfig",
    "load_config",
    "resolve_api_routes_dir",
]
