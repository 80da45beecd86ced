"""Detector for axios calls.

Recognized shapes, in files that import ``axios`` (or a module path ending
in ``/axios``):

- ``axios.get(url)`` and the other verbs, through the default or namespace
  binding;
- ``get(url)`` when the verb was imported by name, including an aliased
  ``import { post as send }``;
- ``axios.request({url, method})`` and a named ``request({url, method})``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from detect.base import (
    HTTP_VERBS,
    BaseDetector,
    extract_url,
    literal_or_text,
    object_property,
)
from detect.cache import FileKeyedCache
from parse.syntax import call_arguments

if TYPE_CHECKING:
    from tree_sitter import Node

    from models.calls import RawCall
    from parse.source_model import SourceModel
    from settings.config import ScanConfig

logger = logging.getLogger(__name__)

AXIOS_MODULE = "axios"
AXIOS_METHODS = HTTP_VERBS | {"request"}


@dataclass(frozen=True)
class AxiosBindings:
    """How a file imported axios."""

    client_names: frozenset[str] = frozenset()
    # local binding -> axios method, for verbs imported by name
    verb_names: dict[str, str] = field(default_factory=dict)

    @property
    def is_imported(self) -> bool:
        return bool(self.client_names or self.verb_names)


def _read_bindings(source: SourceModel) -> AxiosBindings:
    clients: set[str] = set()
    verbs: dict[str, str] = {}
    for info in source.imports:
        module = info.module_specifier
        if module != AXIOS_MODULE and not module.endswith(f"/{AXIOS_MODULE}"):
            continue
        if info.default_import:
            clients.add(info.default_import)
        if info.namespace_import:
            clients.add(info.namespace_import)
        for local, exported in info.imported_names.items():
            if exported.lower() in AXIOS_METHODS:
                verbs[local] = exported.lower()
    if clients:
        clients.add(AXIOS_MODULE)
    return AxiosBindings(client_names=frozenset(clients), verb_names=verbs)


class AxiosDetector(BaseDetector):
    id = "axios"
    name = "Axios API Detector"
    call_source = "axios"

    def __init__(self) -> None:
        self._imports: FileKeyedCache[AxiosBindings] = FileKeyedCache()

    def should_detect(self, node: Node) -> bool:
        return node.type == "call_expression"

    def bindings_for(self, source: SourceModel) -> AxiosBindings:
        return self._imports.get_or_compute(
            source.path, lambda: _read_bindings(source)
        )

    def clear_cache(self) -> None:
        self._imports.clear()

    def _called_verb(
        self, node: Node, source: SourceModel, bindings: AxiosBindings
    ) -> str | None:
        callee = node.child_by_field_name("function")
        if callee is None:
            return None

        if callee.type == "member_expression":
            obj = callee.child_by_field_name("object")
            prop = callee.child_by_field_name("property")
            if obj is None or prop is None or obj.type != "identifier":
                return None
            verb = source.node_text(prop).lower()
            if source.node_text(obj) in bindings.client_names and verb in AXIOS_METHODS:
                return verb
            return None

        if callee.type == "identifier":
            name = source.node_text(callee)
            return bindings.verb_names.get(name)

        return None

    def _from_request_config(
        self, node: Node, args: list[Node], source: SourceModel
    ) -> RawCall | None:
        config_arg = args[0]
        if config_arg.type != "object":
            return None
        url_node = object_property(config_arg, source, "url")
        if url_node is None:
            return None
        url = extract_url(url_node, source)
        method_node = object_property(config_arg, source, "method")
        method = (
            literal_or_text(method_node, source).upper()
            if method_node is not None
            else "GET"
        )
        return self.create_call(method, url.url, node, source, url.confidence)

    def detect(
        self, node: Node, source: SourceModel, config: ScanConfig
    ) -> RawCall | None:
        if not self.should_detect(node):
            return None

        bindings = self.bindings_for(source)
        if not bindings.is_imported:
            return None

        verb = self._called_verb(node, source, bindings)
        if verb is None:
            return None

        args = call_arguments(node)
        if not args:
            return None

        if verb == "request":
            call = self._from_request_config(node, args, source)
        else:
            url = extract_url(args[0], source)
            call = self.create_call(verb.upper(), url.url, node, source, url.confidence)

        if call is not None:
            logger.debug(
                "axios %s %s (%s confidence) at %s:%d:%d",
                call.method,
                call.url,
                call.confidence,
                call.file,
                call.line,
                call.column,
            )
        return call


__all__ = ["AXIOS_METHODS", "AxiosBindings", "AxiosDetector"]
