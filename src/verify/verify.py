"""Determinism verification for apisurface outputs."""

from __future__ import annotations

import filecmp
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from output.write import write_function_code_per_endpoint, write_results
from pipeline.scan import ApiScanner
from settings.config import resolve_api_routes_dir

if TYPE_CHECKING:
    from settings.config import ScanConfig


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)
    missing: tuple[str, ...] = field(default_factory=tuple)
    extra: tuple[str, ...] = field(default_factory=tuple)


def _list_relative_files(root: Path) -> set[Path]:
    return {path.relative_to(root) for path in root.rglob("*") if path.is_file()}


def verify_determinism(
    *,
    config: ScanConfig,
    results_path: Path,
    function_code_dir: Path | None = None,
    pretty: bool = True,
    include_raw: bool = False,
) -> DeterminismResult:
    """Verify that a scan reproduces existing outputs.

    Re-runs the scan, writes the results (and per-endpoint files when
    ``function_code_dir`` is given) into a temporary directory, and compares
    them byte-for-byte with the existing outputs. The write options must
    match the ones used to produce the originals.

    Returns:
        DeterminismResult with ok status and lists of missing, extra, and
        mismatched relative paths.

    Raises:
        FileNotFoundError: If results_path or function_code_dir does not exist.
        NotADirectoryError: If function_code_dir is not a directory.
    """
    if not results_path.is_file():
        msg = f"Results file does not exist: {results_path}"
        raise FileNotFoundError(msg)
    if function_code_dir is not None:
        if not function_code_dir.exists():
            msg = f"Function code directory does not exist: {function_code_dir}"
            raise FileNotFoundError(msg)
        if not function_code_dir.is_dir():
            msg = f"Function code path is not a directory: {function_code_dir}"
            raise NotADirectoryError(msg)

    result = ApiScanner(config).scan()

    mismatches: list[str] = []
    missing: list[str] = []
    extra: list[str] = []

    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        regenerated_results = write_results(
            result,
            temp_path / results_path.name,
            pretty=pretty,
            include_raw=include_raw,
        )
        if not filecmp.cmp(results_path, regenerated_results, shallow=False):
            mismatches.append(results_path.name)

        if function_code_dir is not None:
            regenerated_dir = temp_path / "functions"
            routes_root = (
                resolve_api_routes_dir(config.root_dir, config.api_routes_dir)
                if config.api_routes_dir
                else None
            )
            write_function_code_per_endpoint(
                result.api_calls,
                regenerated_dir,
                pretty=pretty,
                api_function_only=routes_root is not None,
                api_routes_dir=routes_root,
            )
            original_files = _list_relative_files(function_code_dir)
            regenerated_files = _list_relative_files(regenerated_dir)

            missing = sorted(str(p) for p in original_files - regenerated_files)
            extra = sorted(str(p) for p in regenerated_files - original_files)
            for path in sorted(original_files & regenerated_files):
                if not filecmp.cmp(
                    function_code_dir / path, regenerated_dir / path, shallow=False
                ):
                    mismatches.append(str(path))

    ok = not missing and not extra and not mismatches
    return DeterminismResult(
        ok=ok,
        mismatches=tuple(mismatches),
        missing=tuple(missing),
        extra=tuple(extra),
    )


__all__ = ["DeterminismResult", "verify_determinism"]
