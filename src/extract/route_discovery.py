"""Turn route handler files into calls, even when nothing in the repo calls them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from extract.code_text import node_code
from extract.route_files import (
    find_all_route_files,
    find_exported_handler,
    route_url_path,
)
from models.calls import RawCall
from settings.config import DEFAULT_MAX_FUNCTION_LINES, resolve_api_routes_dir

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from parse.source_model import SourceCache

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


@dataclass(frozen=True)
class DiscoveredRouteHandler:
    method: str
    url: str
    function_file: str
    function_name: str
    function_code: str


def route_url(route_file: Path, routes_root: Path, url_prefix: str = "/api") -> str:
    prefix = "/" + url_prefix.strip("/")
    path = route_url_path(route_file, routes_root)
    return f"{prefix}/{path}" if path else prefix


def discover_route_handlers(
    cache: SourceCache,
    root_dir: Path,
    api_routes_dir: str,
    max_function_lines: int = DEFAULT_MAX_FUNCTION_LINES,
    url_prefix: str = "/api",
) -> list[DiscoveredRouteHandler]:
    """List every exported HTTP handler of every route file under the API dir."""
    routes_root = resolve_api_routes_dir(root_dir, api_routes_dir)
    discovered: list[DiscoveredRouteHandler] = []

    for route_file in find_all_route_files(routes_root):
        source = cache.parse(route_file)
        if source is None:
            continue
        url = route_url(route_file, routes_root, url_prefix)
        for method in HTTP_METHODS:
            handler = find_exported_handler(source, method)
            if handler is None:
                continue
            code = node_code(source, handler, max_function_lines)
            if code is None:
                continue
            discovered.append(
                DiscoveredRouteHandler(
                    method=method,
                    url=url,
                    function_file=str(route_file),
                    function_name=method,
                    function_code=code,
                )
            )

    logger.info("Discovered %d route handler(s) under %s", len(discovered), routes_root)
    return discovered


def handlers_to_calls(handlers: Iterable[DiscoveredRouteHandler]) -> list[RawCall]:
    return [
        RawCall(
            method=handler.method,
            url=handler.url,
            line=1,
            column=1,
            file=handler.function_file,
            source="custom",
            confidence="high",
            function_name=handler.function_name,
            function_file=handler.function_file,
            function_code=handler.function_code,
            function_resolution_confidence="high",
        )
        for handler in handlers
    ]


def merge_discovered_calls(
    detected: list[RawCall], discovered: Iterable[RawCall]
) -> list[RawCall]:
    """Append discovered calls whose (method, url) no detected call covers."""
    seen = {call.endpoint_key() for call in detected}
    merged = list(detected)
    added = 0
    for call in discovered:
        key = call.endpoint_key()
        if key in seen:
            continue
        seen.add(key)
        merged.append(call)
        added += 1
    if added:
        logger.info("Added %d route handler(s) not referenced by any call", added)
    return merged


__all__ = [
    "HTTP_METHODS",
    "DiscoveredRouteHandler",
    "discover_route_handlers",
    "handlers_to_calls",
    "merge_discovered_calls",
    "route_url",
]
