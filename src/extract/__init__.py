"""Function code extraction and route handler discovery."""

from extract.code_text import TRUNCATION_MARKER, limit_code_lines
from extract.function_extractor import FunctionExtraction, FunctionExtractor
from extract.route_discovery import (
    HTTP_METHODS,
    DiscoveredRouteHandler,
    discover_route_handlers,
    handlers_to_calls,
    merge_discovered_calls,
)

__all__ = [
    "HTTP_METHODS",
    "TRUNCATION_MARKER",
    "DiscoveredRouteHandler",
    "FunctionExtraction",
    "FunctionExtractor",
    "discover_route_handlers",
    "handlers_to_calls",
    "limit_code_lines",
    "merge_discovered_calls",
]
