from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from scan.files import _build_gitignore_matcher, find_source_files, matches_any

if TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, rel_path: str, content: str = "export {};\n") -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _relative(root: Path, **kwargs: object) -> list[str]:
    return [
        path.relative_to(root.resolve()).as_posix()
        for path in find_source_files(root, **kwargs)  # type: ignore[arg-type]
    ]


def test_find_source_files_sorted_and_filtered_by_extension(tmp_path: Path) -> None:
    _write(tmp_path, "src/b.ts")
    _write(tmp_path, "src/a.tsx")
    _write(tmp_path, "src/c.mjs")
    _write(tmp_path, "src/readme.md", "# docs\n")
    _write(tmp_path, "src/styles.css", "body {}\n")

    assert _relative(tmp_path) == ["src/a.tsx", "src/b.ts", "src/c.mjs"]


def test_find_source_files_prunes_dependency_and_hidden_dirs(tmp_path: Path) -> None:
    _write(tmp_path, "src/app.js")
    _write(tmp_path, "node_modules/lib/index.js")
    _write(tmp_path, "dist/bundle.js")
    _write(tmp_path, ".next/server.js")
    _write(tmp_path, ".hidden/tool.js")
    _write(tmp_path, "packages/ui/node_modules/dep/index.js")

    assert _relative(tmp_path) == ["src/app.js"]


def test_find_source_files_include_and_exclude_patterns(tmp_path: Path) -> None:
    _write(tmp_path, "index.ts")
    _write(tmp_path, "src/api.ts")
    _write(tmp_path, "src/api.test.ts")
    _write(tmp_path, "scripts/seed.js")

    result = _relative(
        tmp_path,
        include_patterns=["**/*.{ts,tsx}"],
        exclude_patterns=["**/*.test.ts"],
    )

    assert result == ["index.ts", "src/api.ts"]


def test_find_source_files_respects_root_gitignore(tmp_path: Path) -> None:
    _write(tmp_path, "src/keep.ts")
    _write(tmp_path, "generated/client.ts")
    (tmp_path / ".gitignore").write_text("generated/\n", encoding="utf-8")

    assert _relative(tmp_path) == ["src/keep.ts"]


def test_nested_gitignore_only_when_enabled(tmp_path: Path) -> None:
    _write(tmp_path, "pkg/keep.ts")
    _write(tmp_path, "pkg/skip.ts")
    (tmp_path / "pkg" / ".gitignore").write_text("skip.ts\n", encoding="utf-8")

    assert _relative(tmp_path) == ["pkg/keep.ts", "pkg/skip.ts"]
    assert _relative(tmp_path, nested_gitignore=True) == ["pkg/keep.ts"]


def test_matches_any_expands_braces_and_leading_globstar() -> None:
    assert matches_any("app.tsx", ["**/*.{ts,tsx}"])
    assert matches_any("src/deep/app.ts", ["**/*.{ts,tsx}"])
    assert matches_any("src/app.ts", ["src/**/*.ts"])
    assert not matches_any("src/app.js", ["**/*.{ts,tsx}"])


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_find_source_files_skips_symlinked_dirs(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _write(repo_root, "src/module.ts")

    external_root = tmp_path / "external"
    _write(external_root, "leak.ts")

    (repo_root / "linked").symlink_to(external_root, target_is_directory=True)

    results = _relative(repo_root)

    assert "src/module.ts" in results
    assert "linked/leak.ts" not in results


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_nested_gitignore_skips_symlinked_gitignore(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _write(repo_root, "pkg/module.ts")
    (repo_root / ".gitignore").write_text("*.bin\n", encoding="utf-8")

    external_root = tmp_path / "external"
    external_root.mkdir()
    (external_root / "outside.gitignore").write_text(
        "pkg/module.ts\n", encoding="utf-8"
    )
    (repo_root / "pkg" / ".gitignore").symlink_to(external_root / "outside.gitignore")

    matcher = _build_gitignore_matcher(repo_root.resolve(), nested_gitignore=True)
    assert matcher is not None
    assert matcher(str(repo_root.resolve() / "pkg" / "module.ts")) is False
