"""Detector for project-specific API clients configured by callee pattern."""

from __future__ import annotations

import logging
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

from detect.base import HTTP_VERBS, BaseDetector, extract_url, method_from_options
from parse.syntax import call_arguments, normalize_callee_expr

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tree_sitter import Node

    from models.calls import RawCall
    from parse.source_model import SourceModel
    from settings.config import ScanConfig

logger = logging.getLogger(__name__)


class PatternDetector(BaseDetector):
    """Matches callees such as ``apiClient.get`` against glob patterns.

    Patterns come from ``api_clients`` entries of type ``custom`` unless
    given explicitly. The callee's last segment supplies the method when it
    is an HTTP verb; an options object with ``method`` overrides it.
    """

    id = "custom"
    name = "Custom Client Detector"
    call_source = "custom"

    def __init__(self, patterns: Sequence[str] = ()) -> None:
        self._patterns = tuple(patterns)

    def should_detect(self, node: Node) -> bool:
        return node.type == "call_expression"

    def patterns_for(self, config: ScanConfig) -> tuple[str, ...]:
        return self._patterns or tuple(config.custom_patterns())

    def detect(
        self, node: Node, source: SourceModel, config: ScanConfig
    ) -> RawCall | None:
        if not self.should_detect(node):
            return None

        patterns = self.patterns_for(config)
        if not patterns:
            return None

        callee = normalize_callee_expr(
            source.source_bytes, node.child_by_field_name("function")
        )
        if callee.startswith("<"):
            return None
        if not any(fnmatchcase(callee, pattern) for pattern in patterns):
            return None

        args = call_arguments(node)
        if not args:
            return None

        verb = callee.rsplit(".", 1)[-1].lower()
        method = verb.upper() if verb in HTTP_VERBS else "GET"
        for extra in args[1:]:
            if extra.type == "object":
                method = method_from_options(extra, source) or method
                break

        url = extract_url(args[0], source)
        logger.debug("%s -> %s %s in %s", callee, method, url.url, source.path)
        return self.create_call(method, url.url, node, source, url.confidence)


__all__ = ["PatternDetector"]
