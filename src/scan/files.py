"""File scanning utilities for apisurface."""

from __future__ import annotations

import os
import re
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

SUPPORTED_EXTENSIONS = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"})

# Always pruned, whatever the user's include/exclude patterns say.
IGNORED_DIR_NAMES = frozenset(
    {
        "node_modules",
        ".git",
        ".svn",
        ".hg",
        "dist",
        "build",
        ".next",
        ".nuxt",
        ".cache",
        "coverage",
        ".nyc_output",
        ".vscode",
        ".idea",
    }
)

_BRACE_GROUP = re.compile(r"\{([^{}]*)\}")


def is_supported_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def is_dependency_path(path: str | Path) -> bool:
    """Return True when any path segment is a dependency/build/VCS directory."""
    return any(part in IGNORED_DIR_NAMES for part in Path(path).parts)


def is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


def _expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives into plain fnmatch patterns."""
    match = _BRACE_GROUP.search(pattern)
    if match is None:
        return [pattern]

    expanded: list[str] = []
    head, tail = pattern[: match.start()], pattern[match.end() :]
    for option in match.group(1).split(","):
        expanded.extend(_expand_braces(f"{head}{option}{tail}"))
    return expanded


def _pattern_variants(pattern: str) -> set[str]:
    variants: set[str] = set()
    for expanded in _expand_braces(pattern):
        variants.add(expanded)
        # ``**/`` may match zero directories.
        if expanded.startswith("**/"):
            variants.add(expanded[3:])
        if "/**/" in expanded:
            variants.add(expanded.replace("/**/", "/"))
    return variants


def matches_any(rel_path_str: str, patterns: Iterable[str]) -> bool:
    """Match a POSIX relative path against glob patterns."""
    return any(
        fnmatch(rel_path_str, variant)
        for pattern in patterns
        for variant in _pattern_variants(pattern)
    )


def _should_include_file(
    path: Path,
    directory: Path,
    gitignore_matches: Callable[[str], bool] | None,
    include_patterns: list[str] | None,
    exclude_patterns: list[str] | None,
) -> bool:
    """Check if a file should be included based on all filtering rules."""
    if not path.is_file() or path.is_symlink():
        return False

    if not is_supported_file(path):
        return False

    if not is_within_root(path, directory):
        return False

    try:
        rel_path = path.relative_to(directory)
    except ValueError:
        return False

    if is_dependency_path(rel_path):
        return False

    rel_path_str = rel_path.as_posix()

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    if include_patterns and not matches_any(rel_path_str, include_patterns):
        return False

    has_excluded_match = exclude_patterns and matches_any(
        rel_path_str, exclude_patterns
    )
    return not has_excluded_match


def _iter_gitignore_files(root: Path) -> list[Path]:
    """Return sorted list of .gitignore files under root (including root)."""
    gitignore_paths = [root / ".gitignore"]
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if name not in IGNORED_DIR_NAMES]
        if ".gitignore" in filenames:
            gitignore_paths.append(Path(dirpath) / ".gitignore")
    unique_paths = {
        path for path in gitignore_paths if path.is_file() and not path.is_symlink()
    }
    return sorted(unique_paths, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    gitignore_paths = _iter_gitignore_files(root)
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def _walk_candidate_files(directory: Path) -> Iterator[Path]:
    """Walk the tree, pruning ignored and hidden directories before descent."""
    for dirpath, dirnames, filenames in os.walk(directory, followlinks=False):
        dirnames[:] = sorted(
            name
            for name in dirnames
            if name not in IGNORED_DIR_NAMES and not name.startswith(".")
        )
        for filename in filenames:
            if filename.startswith("."):
                continue
            yield Path(dirpath) / filename


def find_source_files(
    directory: Path,
    *,
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> Iterator[Path]:
    """Find all JavaScript/TypeScript files in a directory, respecting .gitignore.

    Args:
        directory: Directory to search for source files
        include_patterns: Optional list of glob patterns; if provided,
            files must match at least one pattern to be included
        exclude_patterns: Optional list of glob patterns; files matching
            any pattern are excluded
        nested_gitignore: Compose every .gitignore under the root instead
            of only the root one

    Yields:
        Absolute Path objects for each source file found, sorted
        lexicographically for deterministic ordering.
    """
    directory = directory.resolve()
    gitignore_matches = _build_gitignore_matcher(
        directory,
        nested_gitignore=nested_gitignore,
    )

    matched_files = {
        path
        for path in _walk_candidate_files(directory)
        if _should_include_file(
            path,
            directory,
            gitignore_matches,
            include_patterns,
            exclude_patterns,
        )
    }

    yield from sorted(matched_files, key=str)


__all__ = [
    "IGNORED_DIR_NAMES",
    "SUPPORTED_EXTENSIONS",
    "_should_include_file",
    "find_source_files",
    "is_dependency_path",
    "is_supported_file",
    "is_within_root",
    "matches_any",
]
