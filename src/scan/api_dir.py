"""Expand the scan set with the API routes directory and what it imports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from scan.files import find_source_files, is_within_root
from settings.config import resolve_api_routes_dir

if TYPE_CHECKING:
    from parse.source_model import SourceCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiDirResolution:
    """Files under the API directory and the in-repo files they import."""

    api_dir_files: list[str]
    related_files: list[str]

    @property
    def all_files(self) -> list[str]:
        return sorted({*self.api_dir_files, *self.related_files})


def list_api_dir_files(root: Path, api_routes_dir: str) -> list[str]:
    """Return every supported source file under the API routes directory."""
    routes_root = resolve_api_routes_dir(root, api_routes_dir)
    if not routes_root.is_dir():
        logger.warning("API routes directory %s does not exist", routes_root)
        return []
    return [str(path) for path in find_source_files(routes_root)]


def resolve_api_dir_files(
    root: Path,
    api_routes_dir: str,
    cache: SourceCache,
) -> ApiDirResolution:
    """Collect API directory files plus the repository files they import.

    Imports are followed one level deep. Type-only imports and specifiers
    that resolve outside ``root`` (or not at all) are skipped.
    """
    api_dir_files = list_api_dir_files(root, api_routes_dir)
    api_dir_set = set(api_dir_files)
    related: set[str] = set()

    for file_path in api_dir_files:
        model = cache.parse(file_path)
        if model is None:
            continue
        for info in model.imports:
            if info.is_type_only:
                continue
            resolved = model.resolve_import_path(info.module_specifier)
            if resolved is None or resolved in api_dir_set:
                continue
            if is_within_root(Path(resolved), root):
                related.add(resolved)

    logger.info(
        "API dir %s: %d files, %d related",
        api_routes_dir,
        len(api_dir_files),
        len(related),
    )
    return ApiDirResolution(
        api_dir_files=api_dir_files,
        related_files=sorted(related),
    )


__all__ = ["ApiDirResolution", "list_api_dir_files", "resolve_api_dir_files"]
