"""Detector for the Fetch API (``fetch(url, init)``)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from detect.base import BaseDetector, extract_url, method_from_options
from parse.syntax import call_arguments

if TYPE_CHECKING:
    from tree_sitter import Node

    from models.calls import RawCall
    from parse.source_model import SourceModel
    from settings.config import ScanConfig

logger = logging.getLogger(__name__)


class FetchDetector(BaseDetector):
    """Matches ``fetch(...)`` and ``<anything>.fetch(...)``."""

    id = "fetch"
    name = "Fetch API Detector"
    call_source = "fetch"

    def should_detect(self, node: Node) -> bool:
        return node.type == "call_expression"

    def _is_fetch_call(self, node: Node, source: SourceModel) -> bool:
        callee = node.child_by_field_name("function")
        if callee is None:
            return False
        if callee.type == "identifier":
            return source.node_text(callee) == "fetch"
        if callee.type == "member_expression":
            prop = callee.child_by_field_name("property")
            return prop is not None and source.node_text(prop) == "fetch"
        return False

    def detect(
        self, node: Node, source: SourceModel, config: ScanConfig
    ) -> RawCall | None:
        if not self.should_detect(node) or not self._is_fetch_call(node, source):
            return None

        args = call_arguments(node)
        if not args:
            return None

        url = extract_url(args[0], source)
        method = "GET"
        if len(args) > 1 and args[1].type == "object":
            method = method_from_options(args[1], source) or method

        call = self.create_call(method, url.url, node, source, url.confidence)
        logger.debug(
            "fetch %s %s at %s:%d:%d", method, url.url, call.file, call.line, call.column
        )
        return call


__all__ = ["FetchDetector"]
