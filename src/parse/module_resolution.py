"""Resolve import specifiers to source files inside the scanned repository."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from scan.files import is_dependency_path, is_supported_file, is_within_root

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

RESOLVABLE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

TSCONFIG_FILENAMES = ("tsconfig.json", "jsconfig.json")

# ``import "./x.js"`` in TypeScript sources refers to ``./x.ts``.
_JS_TO_TS_EXTENSIONS = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
}


@dataclass(frozen=True)
class TsConfigPaths:
    """``compilerOptions.paths`` and ``baseUrl`` from the nearest tsconfig."""

    base_dir: Path
    has_base_url: bool
    paths: tuple[tuple[str, tuple[str, ...]], ...]


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments and trailing commas from JSONC."""
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False
    while i < length:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            i += 1
            continue
        if text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
            continue
        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = length if close == -1 else close + 2
            continue
        out.append(char)
        i += 1

    stripped = "".join(out)
    # Trailing commas before a closing bracket.
    result: list[str] = []
    in_string = False
    escaped = False
    for index, char in enumerate(stripped):
        if in_string:
            result.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == ",":
            rest = stripped[index + 1 :].lstrip()
            if rest[:1] in ("}", "]"):
                continue
        result.append(char)
    return "".join(result)


def _find_tsconfig(root: Path) -> Path | None:
    for directory in (root, *root.parents):
        for filename in TSCONFIG_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
    return None


def load_tsconfig_paths(root: Path) -> TsConfigPaths | None:
    """Read path mappings from the nearest ``tsconfig.json``/``jsconfig.json``.

    Unreadable or malformed files are logged and treated as absent.
    """
    config_path = _find_tsconfig(root)
    if config_path is None:
        return None

    try:
        data = json.loads(strip_json_comments(config_path.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", config_path, exc)
        return None

    options = data.get("compilerOptions") if isinstance(data, dict) else None
    if not isinstance(options, dict):
        return None

    base_url = options.get("baseUrl")
    has_base_url = isinstance(base_url, str)
    base_dir = config_path.parent / base_url if has_base_url else config_path.parent

    raw_paths = options.get("paths")
    paths: list[tuple[str, tuple[str, ...]]] = []
    if isinstance(raw_paths, dict):
        for pattern, targets in raw_paths.items():
            if not isinstance(pattern, str) or not isinstance(targets, list):
                continue
            clean = tuple(t for t in targets if isinstance(t, str))
            if clean:
                paths.append((pattern, clean))

    if not has_base_url and not paths:
        return None

    return TsConfigPaths(
        base_dir=Path(os.path.normpath(base_dir)),
        has_base_url=has_base_url,
        paths=tuple(paths),
    )


def _source_file(candidate: Path) -> Path | None:
    if candidate.is_file() and is_supported_file(candidate):
        return candidate
    return None


def resolve_file_candidate(candidate: Path) -> Path | None:
    """Map an extensionless or directory path to an actual source file."""
    found = _source_file(candidate)
    if found is not None:
        return found

    if not candidate.name:
        return None

    for extension in RESOLVABLE_EXTENSIONS:
        found = _source_file(candidate.with_name(candidate.name + extension))
        if found is not None:
            return found

    for replacement in _JS_TO_TS_EXTENSIONS.get(candidate.suffix, ()):
        found = _source_file(candidate.with_suffix(replacement))
        if found is not None:
            return found

    if candidate.is_dir():
        for extension in RESOLVABLE_EXTENSIONS:
            found = _source_file(candidate / f"index{extension}")
            if found is not None:
                return found

    return None


def _match_path_pattern(pattern: str, specifier: str) -> str | None:
    """Return the ``*`` capture of a tsconfig paths pattern, or None."""
    if "*" not in pattern:
        return "" if pattern == specifier else None
    prefix, _, suffix = pattern.partition("*")
    if (
        specifier.startswith(prefix)
        and specifier.endswith(suffix)
        and len(specifier) >= len(prefix) + len(suffix)
    ):
        return specifier[len(prefix) : len(specifier) - len(suffix)]
    return None


class ModuleResolver:
    """Resolve module specifiers the way a bundler would, minus node_modules.

    Relative specifiers resolve against the importing file. Configured alias
    prefixes (``@/`` and ``~/`` by default) resolve against the repository
    root. ``tsconfig.json`` ``paths``/``baseUrl`` are consulted after that.
    Bare package names resolve to nothing.
    """

    def __init__(
        self,
        root_dir: Path,
        path_aliases: Mapping[str, str] | None = None,
        *,
        use_tsconfig: bool = True,
    ) -> None:
        self.root_dir = root_dir.resolve()
        aliases = dict(path_aliases or {})
        # Longest prefix wins.
        self._aliases = sorted(aliases.items(), key=lambda item: -len(item[0]))
        self._use_tsconfig = use_tsconfig
        self._tsconfig: TsConfigPaths | None = None
        self._tsconfig_loaded = False

    @property
    def tsconfig(self) -> TsConfigPaths | None:
        if not self._tsconfig_loaded:
            self._tsconfig = (
                load_tsconfig_paths(self.root_dir) if self._use_tsconfig else None
            )
            self._tsconfig_loaded = True
        return self._tsconfig

    def _accept(self, candidate: Path) -> str | None:
        resolved = resolve_file_candidate(Path(os.path.normpath(candidate)))
        if resolved is None or not is_within_root(resolved, self.root_dir):
            return None
        resolved = resolved.resolve()
        if is_dependency_path(resolved.relative_to(self.root_dir)):
            return None
        return str(resolved)

    def _candidates(self, specifier: str, from_file: Path) -> list[Path]:
        if specifier.startswith(("./", "../")) or specifier in (".", ".."):
            return [from_file.parent / specifier]

        candidates: list[Path] = []
        for prefix, target in self._aliases:
            if specifier.startswith(prefix):
                candidates.append(self.root_dir / target / specifier[len(prefix) :])
                break

        tsconfig = self.tsconfig
        if tsconfig is not None:
            for pattern, targets in tsconfig.paths:
                capture = _match_path_pattern(pattern, specifier)
                if capture is None:
                    continue
                candidates.extend(
                    tsconfig.base_dir / target.replace("*", capture, 1)
                    for target in targets
                )
            if tsconfig.has_base_url:
                candidates.append(tsconfig.base_dir / specifier)

        return candidates

    def resolve(self, specifier: str, from_file: str | Path) -> str | None:
        """Return the absolute path of the file ``specifier`` names, or None."""
        if not specifier:
            return None
        for candidate in self._candidates(specifier, Path(from_file)):
            accepted = self._accept(candidate)
            if accepted is not None:
                return accepted
        return None


__all__ = [
    "RESOLVABLE_EXTENSIONS",
    "ModuleResolver",
    "TsConfigPaths",
    "load_tsconfig_paths",
    "resolve_file_candidate",
    "strip_json_comments",
]
