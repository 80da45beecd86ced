"""Detector registry keyed by detector id."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from detect.base import Detector
    from settings.config import ScanConfig

logger = logging.getLogger(__name__)


class DetectorRegistry:
    """Holds detectors in registration order and tracks which are enabled."""

    def __init__(self) -> None:
        self._detectors: dict[str, Detector] = {}
        self._disabled: set[str] = set()

    def register(self, detector: Detector) -> None:
        if detector.id in self._detectors:
            logger.warning(
                "Detector %r is already registered; overwriting", detector.id
            )
        self._detectors[detector.id] = detector
        self._disabled.discard(detector.id)

    def unregister(self, detector_id: str) -> bool:
        self._disabled.discard(detector_id)
        return self._detectors.pop(detector_id, None) is not None

    def get(self, detector_id: str) -> Detector | None:
        return self._detectors.get(detector_id)

    def all(self) -> list[Detector]:
        return list(self._detectors.values())

    def enabled(self) -> list[Detector]:
        return [d for d in self._detectors.values() if d.id not in self._disabled]

    def enable(self, detector_id: str) -> bool:
        if detector_id not in self._detectors:
            return False
        self._disabled.discard(detector_id)
        return True

    def disable(self, detector_id: str) -> bool:
        if detector_id not in self._detectors:
            return False
        self._disabled.add(detector_id)
        return True

    def is_enabled(self, detector_id: str) -> bool:
        return detector_id in self._detectors and detector_id not in self._disabled

    def clear(self) -> None:
        self._detectors.clear()
        self._disabled.clear()

    def count(self) -> int:
        return len(self._detectors)

    def filter_by_config(self, config: ScanConfig) -> list[Detector]:
        """Enabled detectors allowed by ``config.api_clients``.

        An empty ``api_clients`` list allows every enabled detector.
        """
        allowed = config.active_client_types()
        enabled = self.enabled()
        if not allowed:
            return enabled
        return [d for d in enabled if d.id in allowed]


__all__ = ["DetectorRegistry"]
