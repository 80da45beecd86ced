from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "apisurface.toml"

DEFAULT_MAX_FUNCTION_LINES = 300

DEFAULT_INCLUDE_PATTERNS = ["**/*.{js,jsx,ts,tsx,mjs,cjs}"]

DEFAULT_PATH_ALIASES = {"@/": "", "~/": ""}

ApiClientType = Literal["fetch", "axios", "custom"]


class ApiClientConfig(BaseModel):
    """An API client the scan should recognize."""

    type: ApiClientType = Field(description="Detector id this entry enables")
    name: str | None = Field(
        default=None,
        description="Human-readable client name (e.g. 'apiClient')",
    )
    patterns: list[str] = Field(
        default_factory=list,
        description="Callee glob patterns for custom clients (e.g. 'api.*')",
    )


class ScanConfig(BaseModel):
    """Configuration for a single apisurface scan."""

    model_config = ConfigDict(extra="forbid")

    root_dir: Path = Field(description="Repository root to scan")
    include: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS),
        description="Glob patterns for files to include",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    api_clients: list[ApiClientConfig] = Field(
        default_factory=list,
        description="Allowed detector types (empty = all enabled detectors)",
    )
    max_function_lines: int = Field(
        default=DEFAULT_MAX_FUNCTION_LINES,
        ge=1,
        description="Maximum lines of extracted function code",
    )
    api_routes_dir: str | None = Field(
        default=None,
        description="Route handler directory relative to root (e.g. 'src/app/api')",
    )
    api_routes_url_prefix: str = Field(
        default="/api",
        description="URL prefix served by the route handler directory",
    )
    path_aliases: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_PATH_ALIASES),
        description="Import alias prefix -> directory relative to root",
    )
    additional_include_files: list[str] = Field(
        default_factory=list,
        description="Extra files merged into the scan set",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    function_code_output_dir: str | None = Field(
        default=None,
        description="Directory for one JSON file per endpoint (optional)",
    )

    @field_validator("api_routes_dir", mode="before")
    @classmethod
    def blank_api_routes_dir_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("api_routes_url_prefix")
    @classmethod
    def validate_url_prefix(cls, v: str) -> str:
        """Normalize the prefix to ``/segment`` form without a trailing slash."""
        stripped = v.strip().strip("/")
        if not stripped:
            msg = "api_routes_url_prefix must name at least one path segment"
            raise ValueError(msg)
        return f"/{stripped}"

    @field_validator("path_aliases", mode="before")
    @classmethod
    def validate_path_aliases(cls, v: Any) -> Any:
        if v is None:
            return dict(DEFAULT_PATH_ALIASES)

        if not isinstance(v, dict):
            msg = "path_aliases must be a mapping of prefix -> directory"
            raise TypeError(msg)

        for prefix, target in v.items():
            if not isinstance(prefix, str) or not isinstance(target, str):
                msg = "path_aliases must be a mapping of str -> str"
                raise TypeError(msg)
            if not prefix:
                msg = "path_aliases prefixes must be non-empty"
                raise ValueError(msg)

        return v

    def active_client_types(self) -> set[str]:
        return {client.type for client in self.api_clients}

    def custom_patterns(self) -> list[str]:
        patterns: list[str] = []
        for client in self.api_clients:
            if client.type == "custom":
                patterns.extend(client.patterns)
        return patterns


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_api_routes_dir(root: Path, api_routes_dir: str) -> Path:
    """Resolve a config-provided api_routes_dir safely within the repo root.

    The value must be a non-empty relative path that remains within the
    repository root after resolution. Absolute paths and paths that escape
    the root are rejected.
    """
    if not api_routes_dir:
        msg = "api_routes_dir must be a non-empty relative path"
        raise ConfigError(msg)

    if api_routes_dir.startswith("~"):
        msg = "api_routes_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    routes_path = Path(api_routes_dir)
    if routes_path.is_absolute():
        msg = "api_routes_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_routes = (resolved_root / routes_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve api_routes_dir '{api_routes_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_routes.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"api_routes_dir '{api_routes_dir}' escapes the repository root"
        raise ConfigError(msg) from exc

    return resolved_routes


def load_config(root: Path, **overrides: Any) -> ScanConfig:
    """Load configuration from apisurface.toml if it exists.

    ``root_dir`` always comes from the caller, never from the file. Keyword
    overrides (e.g. from the command line) win over file values.
    """
    config_path = Path(root) / CONFIG_FILENAME

    data: dict[str, Any] = {}
    if config_path.is_file():
        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {config_path}: {e}"
            raise ConfigError(msg) from e

    data.pop("root_dir", None)
    data.update({key: value for key, value in overrides.items() if value is not None})
    data["root_dir"] = Path(root).resolve()

    try:
        config = ScanConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e

    if config.api_routes_dir is not None:
        resolve_api_routes_dir(config.root_dir, config.api_routes_dir)

    return config


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_MAX_FUNCTION_LINES",
    "ApiClientConfig",
    "ConfigError",
    "ScanConfig",
    "load_config",
    "resolve_api_routes_dir",
]
