"""End-to-end scan: discover files, detect calls, extract function code."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from detect.axios import AxiosDetector
from detect.fetch import FetchDetector
from detect.patterns import PatternDetector
from detect.registry import DetectorRegistry
from detect.visitor import DetectorVisitor
from extract.function_extractor import FunctionExtractor
from extract.route_discovery import (
    discover_route_handlers,
    handlers_to_calls,
    merge_discovered_calls,
)
from models.calls import RawCall, ScanError, ScanResult
from parse.module_resolution import ModuleResolver
from parse.source_model import SourceCache
from scan.api_dir import resolve_api_dir_files
from scan.files import find_source_files, is_within_root

if TYPE_CHECKING:
    from detect.base import Detector
    from settings.config import ScanConfig

logger = logging.getLogger(__name__)


def build_default_registry(config: ScanConfig) -> DetectorRegistry:
    """Registry with the fetch, axios and custom-pattern detectors."""
    registry = DetectorRegistry()
    registry.register(FetchDetector())
    registry.register(AxiosDetector())
    registry.register(PatternDetector(config.custom_patterns()))
    return registry


class ApiScanner:
    """Runs one scan over ``config.root_dir``.

    Phases: file discovery (plus API directory expansion and extra files),
    per-file detection, function extraction, then route handler discovery
    when an API routes directory is configured.
    """

    def __init__(
        self,
        config: ScanConfig,
        registry: DetectorRegistry | None = None,
        cache: SourceCache | None = None,
    ) -> None:
        self.config = config
        self.root_dir = config.root_dir.resolve()
        self.registry = registry if registry is not None else build_default_registry(config)
        self.cache = (
            cache
            if cache is not None
            else SourceCache(ModuleResolver(self.root_dir, config.path_aliases))
        )

    def register_detector(self, detector: Detector) -> None:
        self.registry.register(detector)

    def collect_files(self) -> list[str]:
        """The sorted, deduplicated scan set."""
        files = {
            str(path)
            for path in find_source_files(
                self.root_dir,
                include_patterns=self.config.include,
                exclude_patterns=self.config.exclude,
                nested_gitignore=self.config.nested_gitignore,
            )
        }

        if self.config.api_routes_dir:
            try:
                resolution = resolve_api_dir_files(
                    self.root_dir, self.config.api_routes_dir, self.cache
                )
            except OSError as exc:
                logger.warning("Could not resolve API dir related files: %s", exc)
            else:
                files.update(resolution.all_files)

        for extra in self.config.additional_include_files:
            path = Path(extra)
            if not path.is_absolute():
                path = self.root_dir / path
            if not is_within_root(path, self.root_dir):
                logger.warning("Skipping additional file outside root: %s", extra)
                continue
            files.add(str(path.resolve()))

        return sorted(files)

    def detect(self, files: list[str]) -> tuple[list[RawCall], list[ScanError], int]:
        calls: list[RawCall] = []
        errors: list[ScanError] = []
        parsed = 0
        visitor = DetectorVisitor(self.registry, self.config)
        for file_path in files:
            source = self.cache.parse(file_path)
            if source is None:
                errors.append(
                    ScanError(
                        file=file_path,
                        message=self.cache.failure_for(file_path) or "Failed to parse file",
                    )
                )
                continue
            parsed += 1
            calls.extend(visitor.traverse(source))
        return calls, errors, parsed

    def discover_routes(self, calls: list[RawCall]) -> list[RawCall]:
        if not self.config.api_routes_dir:
            return calls
        try:
            handlers = discover_route_handlers(
                self.cache,
                self.root_dir,
                self.config.api_routes_dir,
                self.config.max_function_lines,
                self.config.api_routes_url_prefix,
            )
        except OSError as exc:
            logger.warning("Route discovery failed: %s", exc)
            return calls
        return merge_discovered_calls(calls, handlers_to_calls(handlers))

    def scan(self) -> ScanResult:
        files = self.collect_files()
        logger.info("Found %d files to scan", len(files))

        calls, errors, parsed = self.detect(files)
        logger.info("Parsed %d files, detected %d API calls", parsed, len(calls))

        extractor = FunctionExtractor(
            self.cache,
            self.root_dir,
            self.config.max_function_lines,
            self.config.api_routes_dir,
            self.config.api_routes_url_prefix,
        )
        calls = extractor.apply(calls)
        calls = self.discover_routes(calls)

        return ScanResult(api_calls=calls, files_scanned=parsed, errors=errors)


def scan_repository(
    config: ScanConfig, registry: DetectorRegistry | None = None
) -> ScanResult:
    return ApiScanner(config, registry=registry).scan()


__all__ = ["ApiScanner", "build_default_registry", "scan_repository"]
