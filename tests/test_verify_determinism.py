from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from models.calls import RawCall, ScanResult
from output.write import write_function_code_per_endpoint, write_results
from settings.config import ScanConfig
from verify.verify import DeterminismResult, verify_determinism

if TYPE_CHECKING:
    from pathlib import Path


def _call(method: str, url: str) -> RawCall:
    return RawCall(
        method=method,
        url=url,
        line=1,
        column=1,
        file="src/a.ts",
        source="fetch",
        confidence="high",
        function_name="load",
        function_file="src/a.ts",
        function_code="function load() {}",
        function_resolution_confidence="high",
    )


def _fake_scanner(monkeypatch: pytest.MonkeyPatch, result: ScanResult) -> None:
    class _FakeScanner:
        def __init__(self, config: ScanConfig) -> None:
            self.config = config

        def scan(self) -> ScanResult:
            return result

    monkeypatch.setattr("verify.verify.ApiScanner", _FakeScanner)


def test_verify_determinism_requires_results_file(tmp_path: Path) -> None:
    config = ScanConfig(root_dir=tmp_path)

    missing = tmp_path / "missing.json"
    with pytest.raises(FileNotFoundError, match="Results file does not exist"):
        verify_determinism(config=config, results_path=missing)


def test_verify_determinism_requires_function_code_dir(tmp_path: Path) -> None:
    config = ScanConfig(root_dir=tmp_path)
    results_path = tmp_path / "api-surface.json"
    results_path.write_text("{}", encoding="utf-8")
    not_a_dir = tmp_path / "file.json"
    not_a_dir.write_text("{}", encoding="utf-8")

    with pytest.raises(FileNotFoundError, match="Function code directory"):
        verify_determinism(
            config=config,
            results_path=results_path,
            function_code_dir=tmp_path / "missing",
        )
    with pytest.raises(NotADirectoryError):
        verify_determinism(
            config=config, results_path=results_path, function_code_dir=not_a_dir
        )


def test_verify_determinism_matching_outputs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    result = ScanResult(api_calls=[_call("GET", "/api/a")], files_scanned=1)
    results_path = write_results(result, tmp_path / "api-surface.json")
    _fake_scanner(monkeypatch, result)

    outcome = verify_determinism(
        config=ScanConfig(root_dir=tmp_path), results_path=results_path
    )

    assert outcome == DeterminismResult(ok=True)


def test_verify_determinism_relative_paths_and_sorted_mismatches(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    original = ScanResult(
        api_calls=[_call("GET", "/api/a"), _call("GET", "/api/b")], files_scanned=1
    )
    results_path = write_results(original, tmp_path / "api-surface.json")
    functions_dir = tmp_path / "functions"
    write_function_code_per_endpoint(original.api_calls, functions_dir)
    (functions_dir / "GET_api_a.json").write_text("{}", encoding="utf-8")

    regenerated = ScanResult(
        api_calls=[_call("GET", "/api/a"), _call("POST", "/api/c")], files_scanned=1
    )
    _fake_scanner(monkeypatch, regenerated)

    outcome = verify_determinism(
        config=ScanConfig(root_dir=tmp_path),
        results_path=results_path,
        function_code_dir=functions_dir,
    )

    assert outcome == DeterminismResult(
        ok=False,
        mismatches=("api-surface.json", "GET_api_a.json"),
        missing=("GET_api_b.json",),
        extra=("POST_api_c.json",),
    )
