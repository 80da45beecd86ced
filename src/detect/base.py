"""Detector protocol, base class and shared argument helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

from models.calls import CallSource, Confidence, RawCall
from parse.syntax import (
    decode_node_text,
    object_properties,
    string_literal_value,
    template_has_substitution,
    template_literal_value,
    template_raw_text,
)

if TYPE_CHECKING:
    from tree_sitter import Node

    from parse.source_model import SourceModel
    from settings.config import ScanConfig

HTTP_VERBS = frozenset({"get", "post", "put", "patch", "delete", "head", "options"})


@runtime_checkable
class Detector(Protocol):
    """Recognizes one kind of HTTP call."""

    id: str
    name: str

    def should_detect(self, node: Node) -> bool: ...

    def detect(
        self, node: Node, source: SourceModel, config: ScanConfig
    ) -> RawCall | None: ...


@dataclass(frozen=True)
class UrlArgument:
    url: str
    confidence: Confidence


def extract_url(node: Node, source: SourceModel) -> UrlArgument:
    """Read a URL argument and grade how literal it is.

    String literals and substitution-free templates are ``high``. Templates
    with ``${...}`` keep their raw text and are ``medium``. Anything else is
    the expression text at ``low``.
    """
    if node.type == "string":
        return UrlArgument(string_literal_value(source.source_bytes, node), "high")
    if node.type == "template_string":
        if template_has_substitution(node):
            return UrlArgument(template_raw_text(source.source_bytes, node), "medium")
        return UrlArgument(template_literal_value(source.source_bytes, node), "high")
    return UrlArgument(decode_node_text(source.source_bytes, node), "low")


def literal_or_text(node: Node, source: SourceModel) -> str:
    if node.type == "string":
        return string_literal_value(source.source_bytes, node)
    if node.type == "template_string" and not template_has_substitution(node):
        return template_literal_value(source.source_bytes, node)
    return decode_node_text(source.source_bytes, node)


def object_property(node: Node, source: SourceModel, key: str) -> Node | None:
    """Return the value of ``key`` in an object literal, if present."""
    for name, value in object_properties(source.source_bytes, node):
        if name == key:
            return value
    return None


def method_from_options(node: Node, source: SourceModel) -> str | None:
    """Return the uppercased ``method`` of an options object literal."""
    value = object_property(node, source, "method")
    if value is None:
        return None
    return literal_or_text(value, source).upper()


class BaseDetector:
    """Default ``should_detect`` and record construction for detectors."""

    id: ClassVar[str]
    name: ClassVar[str]
    call_source: ClassVar[CallSource]

    def should_detect(self, node: Node) -> bool:
        return True

    def detect(
        self, node: Node, source: SourceModel, config: ScanConfig
    ) -> RawCall | None:
        raise NotImplementedError

    def create_call(
        self,
        method: str,
        url: str,
        node: Node,
        source: SourceModel,
        confidence: Confidence = "high",
    ) -> RawCall:
        line, column = source.position_of(node)
        return RawCall(
            method=method,
            url=url,
            line=line,
            column=column,
            file=source.path,
            source=self.call_source,
            confidence=confidence,
        )


__all__ = [
    "HTTP_VERBS",
    "BaseDetector",
    "Detector",
    "UrlArgument",
    "extract_url",
    "literal_or_text",
    "method_from_options",
    "object_property",
]
