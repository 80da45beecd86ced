"""Locate App Router style ``route.ts`` files and their exported handlers.

A route directory maps to a URL path: ``api/users/route.ts`` serves
``/api/users``. Route groups such as ``(admin)`` do not add a segment and
bracketed directories (``[id]``, ``[...slug]``, ``[[...slug]]``) match
dynamic segments.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from parse.syntax import (
    FUNCTION_DECLARATION_TYPES,
    VARIABLE_STATEMENT_TYPES,
    declaration_name,
)
from scan.files import IGNORED_DIR_NAMES

if TYPE_CHECKING:
    from tree_sitter import Node

    from parse.source_model import SourceModel

ROUTE_FILENAMES = ("route.ts", "route.tsx", "route.js")


def find_route_file(directory: Path) -> Path | None:
    for filename in ROUTE_FILENAMES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def find_all_route_files(routes_root: Path) -> list[Path]:
    """Every route file under ``routes_root``, sorted by path."""
    found: list[Path] = []
    if not routes_root.is_dir():
        return found
    for dirpath, dirnames, _filenames in os.walk(routes_root):
        dirnames[:] = sorted(
            name
            for name in dirnames
            if name not in IGNORED_DIR_NAMES and not name.startswith(".")
        )
        route_file = find_route_file(Path(dirpath))
        if route_file is not None:
            found.append(route_file)
    return sorted(found, key=str)


def is_route_group(name: str) -> bool:
    return name.startswith("(") and name.endswith(")")


def _is_catch_all(name: str) -> bool:
    return name.startswith(("[...", "[[..."))


def _is_dynamic(name: str) -> bool:
    return name.startswith("[") and name.endswith("]") and not _is_catch_all(name)


def route_url_path(route_file: Path, routes_root: Path) -> str:
    """URL path segments (no leading slash) served by a route file."""
    relative = route_file.parent.relative_to(routes_root)
    return "/".join(part for part in relative.parts if not is_route_group(part))


def pathname_from_url(url: str) -> str:
    """Strip origin, query string and fragment from a call URL."""
    if url.startswith(("http://", "https://")):
        try:
            return urlsplit(url).path or "/"
        except ValueError:
            pass
    return url.split("?", 1)[0].split("#", 1)[0]


def _child_dirs(directory: Path) -> list[Path]:
    try:
        return sorted(child for child in directory.iterdir() if child.is_dir())
    except OSError:
        return []


def match_route_dir(directory: Path, segments: list[str]) -> Path | None:
    """Find the route directory serving ``segments``.

    Literal directory names win over dynamic ones. Segments are matched
    against existing child directories only, so ``..`` cannot escape.
    """
    if not segments:
        if find_route_file(directory) is not None:
            return directory
        for child in _child_dirs(directory):
            if is_route_group(child.name) or child.name.startswith("[[..."):
                found = match_route_dir(child, segments)
                if found is not None:
                    return found
        return None

    head, rest = segments[0], segments[1:]
    children = _child_dirs(directory)

    for child in children:
        if child.name == head:
            found = match_route_dir(child, rest)
            if found is not None:
                return found

    for child in children:
        if is_route_group(child.name):
            found = match_route_dir(child, segments)
        elif _is_dynamic(child.name):
            found = match_route_dir(child, rest)
        elif _is_catch_all(child.name):
            found = child if find_route_file(child) is not None else None
        else:
            continue
        if found is not None:
            return found

    return None


def find_exported_handler(source: SourceModel, name: str) -> Node | None:
    """Return the exported top-level function or variable called ``name``.

    The ``export`` statement itself is returned so its text includes the
    keyword.
    """
    for child in source.root_node.named_children:
        if child.type != "export_statement":
            continue
        declaration = child.child_by_field_name("declaration")
        if declaration is None:
            continue
        if declaration.type in FUNCTION_DECLARATION_TYPES:
            if declaration_name(source.source_bytes, declaration) == name:
                return child
        elif declaration.type in VARIABLE_STATEMENT_TYPES:
            for declarator in declaration.named_children:
                if (
                    declarator.type == "variable_declarator"
                    and declaration_name(source.source_bytes, declarator) == name
                ):
                    return child
    return None


__all__ = [
    "ROUTE_FILENAMES",
    "find_all_route_files",
    "find_exported_handler",
    "find_route_file",
    "is_route_group",
    "match_route_dir",
    "pathname_from_url",
    "route_url_path",
]
