from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from cli import main


def _copy_mini_app_fixture(root: Path) -> None:
    fixture_repo = Path(__file__).parent / "fixtures" / "mini_app"
    shutil.copytree(fixture_repo, root)


def test_cli_scan_writes_results(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_app_fixture(repo_root)
    out_path = tmp_path / "api-surface.json"

    exit_code = main(["scan", str(repo_root), "--out", str(out_path)])

    assert exit_code == 0
    document = json.loads(out_path.read_text(encoding="utf-8"))
    assert document["summary"]["unique_endpoints"] == 6
    assert document["summary"]["files_scanned"] == 6
    captured = capsys.readouterr()
    assert "API Surface Scan Results" in captured.out
    assert f"Results saved to {out_path.resolve()}" in captured.out


def test_cli_scan_without_out_prints_summary_only(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_app_fixture(repo_root)

    exit_code = main(["scan", str(repo_root)])

    assert exit_code == 0
    captured = capsys.readouterr()
    assert "Total API calls found:     6" in captured.out
    assert "Results saved" not in captured.out
    assert not (repo_root / "api-surface.json").exists()


def test_cli_scan_function_code_dir(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_app_fixture(repo_root)
    functions_dir = tmp_path / "functions"

    exit_code = main(
        ["scan", str(repo_root), "--function-code-dir", str(functions_dir)]
    )

    assert exit_code == 0
    names = sorted(path.name for path in functions_dir.iterdir())
    assert "GET_api_users.json" in names
    assert "GET_api_widgets.json" in names
    assert "POST_api_users_userId_orders.json" not in names


def test_cli_invalid_config_exits_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    (repo_root / "apisurface.toml").write_text("unknown_key = 1\n", encoding="utf-8")

    exit_code = main(["scan", str(repo_root)])

    assert exit_code == 2
    assert "error: Invalid config" in capsys.readouterr().err


def test_cli_escaping_api_routes_dir_exits_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()

    exit_code = main(["scan", str(repo_root), "--api-routes-dir", "../outside"])

    assert exit_code == 2
    assert "escapes the repository root" in capsys.readouterr().err


def test_cli_missing_root_exits_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["scan", str(tmp_path / "missing")])

    assert exit_code == 2
    assert "root is not a directory" in capsys.readouterr().err


def test_cli_verify_round_trip(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_app_fixture(repo_root)
    results_path = tmp_path / "api-surface.json"

    assert main(["scan", str(repo_root), "--out", str(results_path)]) == 0
    assert main(["verify", str(repo_root), "--results", str(results_path)]) == 0

    results_path.write_text("{}", encoding="utf-8")
    capsys.readouterr()

    assert main(["verify", str(repo_root), "--results", str(results_path)]) == 1
    assert "mismatches: api-surface.json" in capsys.readouterr().err


def test_cli_verify_missing_results_exits_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_app_fixture(repo_root)
    results_path = tmp_path / "missing.json"

    exit_code = main(["verify", str(repo_root), "--results", str(results_path)])

    assert exit_code == 2
    captured = capsys.readouterr()
    assert f"results: {results_path.resolve()}" in captured.err
    assert "Results file does not exist" in captured.err
