from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tree_sitter import Node

    from detect.base import Detector
    from detect.registry import DetectorRegistry
    from models.calls import RawCall
    from parse.source_model import SourceModel
    from settings.config import ScanConfig

logger = logging.getLogger(__name__)


class DetectorVisitor:
    """Walks every node of a file and collects what the detectors report.

    A detector that raises is logged and skipped for that node; traversal
    and the other detectors carry on.
    """

    def __init__(self, registry: DetectorRegistry, config: ScanConfig) -> None:
        self._registry = registry
        self._config = config
        self._calls: list[RawCall] = []

    def traverse(self, source: SourceModel) -> list[RawCall]:
        """Run the configured detectors over ``source``; return its calls."""
        detectors = self._registry.filter_by_config(self._config)
        found: list[RawCall] = []
        if not detectors:
            return found
        for node in source.iter_nodes():
            found.extend(self._visit(node, source, detectors))
        self._calls.extend(found)
        return found

    def _visit(
        self,
        node: Node,
        source: SourceModel,
        detectors: Sequence[Detector],
    ) -> list[RawCall]:
        found: list[RawCall] = []
        for detector in detectors:
            try:
                if not detector.should_detect(node):
                    continue
                call = detector.detect(node, source, self._config)
            except Exception as exc:
                line, column = source.position_of(node)
                logger.warning(
                    "Detector %s failed at %s:%d:%d: %s",
                    detector.id,
                    source.path,
                    line,
                    column,
                    exc,
                )
                continue
            if call is not None:
                found.append(call)
        return found

    @property
    def calls(self) -> list[RawCall]:
        return list(self._calls)

    def count(self) -> int:
        return len(self._calls)

    def clear(self) -> None:
        self._calls.clear()


__all__ = ["DetectorVisitor"]
