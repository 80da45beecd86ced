"""Scan entry points."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from detect.registry import DetectorRegistry
    from models.calls import ScanResult
    from settings.config import ScanConfig


def scan_repository(
    config: ScanConfig, registry: DetectorRegistry | None = None
) -> ScanResult:
    """Run a scan via lazy import so ``pipeline`` stays cheap to import."""
    from pipeline.scan import scan_repository as _scan_repository

    return _scan_repository(config, registry=registry)


__all__ = ["scan_repository"]
