"""Find the code of the function that issues each detected call.

Resolution order for one call:

1. Route handler: when an API routes directory is configured and the URL
   path lives under the URL prefix, the exported ``GET``/``POST``/...
   handler of the matching ``route.ts`` (confidence ``high``).
2. Direct containment: the nearest enclosing function, method or arrow
   function around the call (confidence ``high``).
3. Imported symbol: for ``api.getUsers()`` where ``api`` is imported from a
   repository file, the ``getUsers`` definition in that file, following
   ``export ... from`` re-exports (confidence ``medium``). Each module is
   visited at most once per resolution, which also ends re-export cycles.
4. Nothing found: confidence ``low`` and no code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from extract.code_text import node_code
from extract.route_files import (
    find_exported_handler,
    find_route_file,
    match_route_dir,
    pathname_from_url,
)
from parse.syntax import (
    CLASS_DECLARATION_TYPES,
    FUNCTION_DECLARATION_TYPES,
    FUNCTION_VALUE_TYPES,
    VARIABLE_STATEMENT_TYPES,
    declaration_name,
    iter_descendants,
    member_parts,
    object_properties,
    string_literal_value,
    unwrap_export,
)
from scan.files import is_dependency_path, is_within_root
from settings.config import DEFAULT_MAX_FUNCTION_LINES, resolve_api_routes_dir

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tree_sitter import Node

    from models.calls import Confidence, RawCall
    from parse.source_model import SourceCache, SourceModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunctionExtraction:
    """What extraction learned about one call."""

    confidence: Confidence
    name: str | None = None
    file: str | None = None
    code: str | None = None

    def apply(self, call: RawCall) -> RawCall:
        """Return ``call`` rebuilt with the extraction fields filled in."""
        update: dict[str, object] = {"function_resolution_confidence": self.confidence}
        if self.name is not None:
            update["function_name"] = self.name
        if self.file is not None:
            update["function_file"] = self.file
        if self.code is not None:
            update["function_code"] = self.code
        return call.model_copy(update=update)


UNRESOLVED = FunctionExtraction(confidence="low")


class FunctionExtractor:
    def __init__(
        self,
        cache: SourceCache,
        root_dir: Path,
        max_function_lines: int = DEFAULT_MAX_FUNCTION_LINES,
        api_routes_dir: str | None = None,
        api_routes_url_prefix: str = "/api",
    ) -> None:
        self._cache = cache
        self.root_dir = root_dir.resolve()
        self.max_function_lines = max_function_lines
        self._routes_root: Path | None = (
            resolve_api_routes_dir(self.root_dir, api_routes_dir)
            if api_routes_dir
            else None
        )
        self._url_prefix = "/" + api_routes_url_prefix.strip("/")

    def _code(self, source: SourceModel, node: Node) -> str | None:
        return node_code(source, node, self.max_function_lines)

    def extract(self, call: RawCall) -> FunctionExtraction:
        if self._routes_root is not None:
            routed = self.resolve_route_handler(call)
            if routed is not None:
                return routed

        source = self._cache.parse(call.file)
        if source is None:
            return UNRESOLVED

        call_node = source.call_expression_at(call.line, call.column)
        if call_node is None:
            logger.debug(
                "No call expression at %s:%d:%d", call.file, call.line, call.column
            )
            return UNRESOLVED

        direct = self.extract_containing_function(source, call_node)
        if direct is not None:
            return direct

        imported = self.resolve_imported_call(source, call_node)
        if imported is not None:
            return imported

        return UNRESOLVED

    def apply(self, calls: Iterable[RawCall]) -> list[RawCall]:
        """Rebuild every call with its extraction result."""
        return [self.extract(call).apply(call) for call in calls]

    # Route handlers

    def route_file_for_url(self, url: str) -> Path | None:
        if self._routes_root is None:
            return None
        pathname = pathname_from_url(url)
        if not pathname.startswith(self._url_prefix + "/"):
            return None
        segments = [s for s in pathname[len(self._url_prefix) :].split("/") if s]
        if not segments:
            return None
        route_dir = match_route_dir(self._routes_root, segments)
        if route_dir is None:
            return None
        return find_route_file(route_dir)

    def resolve_route_handler(self, call: RawCall) -> FunctionExtraction | None:
        route_file = self.route_file_for_url(call.url)
        if route_file is None:
            return None
        source = self._cache.parse(route_file)
        if source is None:
            return None
        method = call.method.upper()
        handler = find_exported_handler(source, method)
        if handler is None:
            return None
        code = self._code(source, handler)
        if code is None:
            return None
        return FunctionExtraction(
            confidence="high", name=method, file=str(route_file), code=code
        )

    # Direct containment

    def extract_containing_function(
        self, source: SourceModel, call_node: Node
    ) -> FunctionExtraction | None:
        node: Node | None = call_node
        while node is not None:
            if node.type in FUNCTION_DECLARATION_TYPES or node.type == "method_definition":
                return self._found(
                    source, node, declaration_name(source.source_bytes, node), "high"
                )
            if node.type in FUNCTION_VALUE_TYPES:
                binding = _binding_statement(node)
                if binding is not None:
                    declarator, statement = binding
                    return self._found(
                        source,
                        statement,
                        declaration_name(source.source_bytes, declarator),
                        "high",
                    )
                return self._found(source, node, None, "high")
            node = node.parent
        return None

    def _found(
        self,
        source: SourceModel,
        node: Node,
        name: str | None,
        confidence: Confidence,
    ) -> FunctionExtraction | None:
        code = self._code(source, node)
        if code is None:
            return None
        return FunctionExtraction(
            confidence=confidence, name=name, file=source.path, code=code
        )

    # Imported symbols

    def resolve_imported_call(
        self, source: SourceModel, call_node: Node
    ) -> FunctionExtraction | None:
        parts = member_parts(source.source_bytes, call_node.child_by_field_name("function"))
        if parts is None:
            return None
        object_name, member_name = parts

        for info in source.imports:
            if info.is_type_only or not info.binds(object_name):
                continue
            target_path = self._repo_file(source.resolve_import_path(info.module_specifier))
            if target_path is None:
                continue
            found = self._find_in_module(target_path, member_name, set())
            if found is not None:
                return found
        return None

    def _repo_file(self, path: str | None) -> str | None:
        if path is None:
            return None
        resolved = Path(path)
        if not is_within_root(resolved, self.root_dir):
            return None
        if is_dependency_path(resolved.resolve().relative_to(self.root_dir)):
            return None
        return path

    def _find_in_module(
        self, path: str, name: str, visited: set[str]
    ) -> FunctionExtraction | None:
        if path in visited:
            return None
        visited.add(path)

        target = self._cache.parse(path)
        if target is None:
            return None

        node = find_definition(target, name)
        if node is not None:
            return self._found(target, node, name, "medium")

        for specifier, exported_name in _reexport_sources(target, name):
            next_path = self._repo_file(target.resolve_import_path(specifier))
            if next_path is None:
                continue
            found = self._find_in_module(next_path, exported_name, visited)
            if found is not None:
                return found
        return None


def _binding_statement(function_node: Node) -> tuple[Node, Node] | None:
    """The declarator and variable statement binding a function value, if any."""
    declarator = function_node.parent
    if declarator is None or declarator.type != "variable_declarator":
        return None
    statement = declarator.parent
    if statement is None or statement.type not in VARIABLE_STATEMENT_TYPES:
        return None
    return declarator, statement


def _top_level_declarations(source: SourceModel) -> Iterable[Node]:
    for child in source.root_node.named_children:
        declaration = unwrap_export(child)
        if declaration is not None:
            yield declaration


def find_definition(source: SourceModel, name: str) -> Node | None:
    """Locate ``name`` in a module.

    Looks for a class method first, then a top-level function declaration,
    then a top-level variable statement binding it, then a method or
    function-valued property of a top-level object literal.
    """
    data = source.source_bytes

    for node in iter_descendants(source.root_node):
        if node.type not in CLASS_DECLARATION_TYPES:
            continue
        body = node.child_by_field_name("body")
        if body is None:
            continue
        for member in body.named_children:
            if member.type == "method_definition" and declaration_name(data, member) == name:
                return member

    declarations = list(_top_level_declarations(source))

    for declaration in declarations:
        if (
            declaration.type in FUNCTION_DECLARATION_TYPES
            and declaration_name(data, declaration) == name
        ):
            return declaration

    for declaration in declarations:
        if declaration.type not in VARIABLE_STATEMENT_TYPES:
            continue
        for declarator in declaration.named_children:
            if (
                declarator.type == "variable_declarator"
                and declaration_name(data, declarator) == name
            ):
                return declaration

    for obj in _top_level_objects(source, declarations):
        for child in obj.named_children:
            if child.type == "method_definition" and declaration_name(data, child) == name:
                return child
        for key, value in object_properties(data, obj):
            if key == name and value.type in FUNCTION_VALUE_TYPES:
                return value.parent

    return None


def _top_level_objects(source: SourceModel, declarations: list[Node]) -> list[Node]:
    """Object literals bound at module level or exported as default."""
    objects: list[Node] = []
    for declaration in declarations:
        if declaration.type in VARIABLE_STATEMENT_TYPES:
            for declarator in declaration.named_children:
                value = declarator.child_by_field_name("value")
                if value is not None and value.type == "object":
                    objects.append(value)
    for child in source.root_node.named_children:
        if child.type != "export_statement":
            continue
        value = child.child_by_field_name("value")
        if value is not None and value.type == "object":
            objects.append(value)
    return objects


def _reexport_sources(source: SourceModel, name: str) -> list[tuple[str, str]]:
    """``(specifier, exported name)`` pairs of re-exports that may carry ``name``."""
    data = source.source_bytes
    found: list[tuple[str, str]] = []
    for child in source.root_node.named_children:
        if child.type != "export_statement":
            continue
        source_node = child.child_by_field_name("source")
        if source_node is None or source_node.type != "string":
            continue
        specifier = string_literal_value(data, source_node)
        clause = next(
            (c for c in child.named_children if c.type == "export_clause"), None
        )
        if clause is None:
            # export * from "./x"
            if not any(c.type == "namespace_export" for c in child.named_children):
                found.append((specifier, name))
            continue
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            original = spec.child_by_field_name("name")
            alias = spec.child_by_field_name("alias")
            if original is None:
                continue
            original_name = source.node_text(original)
            exported = source.node_text(alias) if alias is not None else original_name
            if exported == name:
                found.append((specifier, original_name))
    return found


__all__ = [
    "UNRESOLVED",
    "FunctionExtraction",
    "FunctionExtractor",
    "find_definition",
]
