from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from settings.config import (
    DEFAULT_MAX_FUNCTION_LINES,
    ConfigError,
    ScanConfig,
    load_config,
    resolve_api_routes_dir,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_load_config_defaults_without_file(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root_dir == tmp_path.resolve()
    assert config.max_function_lines == DEFAULT_MAX_FUNCTION_LINES
    assert config.api_routes_dir is None
    assert config.api_routes_url_prefix == "/api"
    assert config.path_aliases == {"@/": "", "~/": ""}
    assert config.api_clients == []
    assert config.nested_gitignore is False


def test_load_config_reads_file_and_overrides_win(tmp_path: Path) -> None:
    (tmp_path / "app" / "api").mkdir(parents=True)
    (tmp_path / "apisurface.toml").write_text(
        """
root_dir = "/somewhere/else"
api_routes_dir = "app/api"
max_function_lines = 50
exclude = ["**/*.test.ts"]

[[api_clients]]
type = "custom"
patterns = ["api.*", "http.*"]
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path, max_function_lines=20, function_code_output_dir=None)

    assert config.root_dir == tmp_path.resolve()
    assert config.api_routes_dir == "app/api"
    assert config.max_function_lines == 20
    assert config.exclude == ["**/*.test.ts"]
    assert config.active_client_types() == {"custom"}
    assert config.custom_patterns() == ["api.*", "http.*"]


def test_unknown_key_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "apisurface.toml").write_text("max_lines = 5\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid config"):
        load_config(tmp_path)


def test_invalid_toml_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "apisurface.toml").write_text("api_routes_dir = \n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(tmp_path)


@pytest.mark.parametrize("value", ["../outside", "/etc", "~/api"])
def test_api_routes_dir_must_stay_in_root(tmp_path: Path, value: str) -> None:
    with pytest.raises(ConfigError):
        resolve_api_routes_dir(tmp_path, value)


def test_escaping_api_routes_dir_fails_config_load(tmp_path: Path) -> None:
    (tmp_path / "apisurface.toml").write_text(
        'api_routes_dir = "../../api"\n', encoding="utf-8"
    )

    with pytest.raises(ConfigError, match="escapes"):
        load_config(tmp_path)


def test_blank_api_routes_dir_means_unset(tmp_path: Path) -> None:
    config = ScanConfig(root_dir=tmp_path, api_routes_dir="  ")

    assert config.api_routes_dir is None


def test_url_prefix_is_normalized(tmp_path: Path) -> None:
    config = ScanConfig(root_dir=tmp_path, api_routes_url_prefix="rest/")

    assert config.api_routes_url_prefix == "/rest"

    with pytest.raises(ValueError, match="api_routes_url_prefix"):
        ScanConfig(root_dir=tmp_path, api_routes_url_prefix="/")


def test_path_aliases_must_be_string_mapping(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="path_aliases"):
        ScanConfig(root_dir=tmp_path, path_aliases={"": "src"})
