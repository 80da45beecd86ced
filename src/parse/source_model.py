"""Parsed JS/TS source files and the per-scan cache that owns them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from parse.syntax import decode_node_text, iter_descendants, string_literal_value

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Tree

    from parse.module_resolution import ModuleResolver

logger = logging.getLogger(__name__)

_GRAMMAR_BY_EXTENSION = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

_PARSERS: dict[str, Parser] = {}


def _get_parser(grammar: str) -> Parser:
    """Initialize and return the Tree-sitter parser for a grammar."""
    parser = _PARSERS.get(grammar)
    if parser is None:
        if grammar == "typescript":
            lang = Language(tree_sitter_typescript.language_typescript())
        elif grammar == "tsx":
            lang = Language(tree_sitter_typescript.language_tsx())
        else:
            lang = Language(tree_sitter_javascript.language())
        parser = Parser(lang)
        _PARSERS[grammar] = parser
    return parser


def grammar_for(path: str | Path) -> str | None:
    return _GRAMMAR_BY_EXTENSION.get(Path(path).suffix.lower())


class SourceParseError(Exception):
    """Raised when a file cannot be read or has no JS/TS grammar."""


@dataclass(frozen=True)
class ImportInfo:
    """One ``import`` declaration of a source file."""

    module_specifier: str
    default_import: str | None = None
    named_imports: tuple[str, ...] = ()
    namespace_import: str | None = None
    is_type_only: bool = False
    line: int = 0
    column: int = 0
    # local binding -> exported name, for ``import { a as b }``
    imported_names: dict[str, str] = field(default_factory=dict, compare=False)

    def binds(self, name: str) -> bool:
        return (
            name == self.default_import
            or name == self.namespace_import
            or name in self.named_imports
        )


class SourceModel:
    """A parsed file plus position helpers and import queries.

    Positions are 1-based lines and 1-based character columns, counted in
    decoded characters rather than bytes.
    """

    def __init__(
        self,
        path: str,
        source_bytes: bytes,
        tree: Tree,
        resolver: ModuleResolver | None = None,
    ) -> None:
        self.path = path
        self.source_bytes = source_bytes
        self.tree = tree
        self._resolver = resolver

    @classmethod
    def parse(
        cls,
        path: str | Path,
        resolver: ModuleResolver | None = None,
    ) -> SourceModel:
        """Read and parse a file.

        Raises:
            SourceParseError: if the file cannot be read or its extension has
                no grammar.
        """
        file_path = Path(path)
        grammar = grammar_for(file_path)
        if grammar is None:
            msg = f"Unsupported file type: {file_path.suffix or file_path.name}"
            raise SourceParseError(msg)
        try:
            source_bytes = file_path.read_bytes()
        except OSError as exc:
            msg = f"Failed to read {file_path}: {exc}"
            raise SourceParseError(msg) from exc
        tree = _get_parser(grammar).parse(source_bytes)
        return cls(str(file_path), source_bytes, tree, resolver)

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    @property
    def has_syntax_errors(self) -> bool:
        return self.root_node.has_error

    def node_text(self, node: Node) -> str:
        return decode_node_text(self.source_bytes, node)

    @cached_property
    def _line_starts(self) -> list[int]:
        starts = [0]
        index = self.source_bytes.find(b"\n")
        while index != -1:
            starts.append(index + 1)
            index = self.source_bytes.find(b"\n", index + 1)
        return starts

    def position_of(self, node: Node) -> tuple[int, int]:
        """Return the 1-based (line, column) where ``node`` starts."""
        row = node.start_point[0]
        line_start = self._line_starts[row]
        prefix = self.source_bytes[line_start : node.start_byte]
        return row + 1, len(prefix.decode("utf8", errors="surrogateescape")) + 1

    def offset_of(self, line: int, column: int) -> int | None:
        """Translate a 1-based (line, column) back to a byte offset."""
        if line < 1 or line > len(self._line_starts) or column < 1:
            return None
        start = self._line_starts[line - 1]
        end = (
            self._line_starts[line] - 1
            if line < len(self._line_starts)
            else len(self.source_bytes)
        )
        decoded = self.source_bytes[start:end].decode("utf8", errors="surrogateescape")
        if column > len(decoded) + 1:
            return None
        return start + len(
            decoded[: column - 1].encode("utf8", errors="surrogateescape")
        )

    def iter_nodes(self) -> Iterator[Node]:
        return iter_descendants(self.root_node)

    def call_expression_at(self, line: int, column: int) -> Node | None:
        """Return the call expression starting at a position.

        Chained calls like ``fetch(u).then(f)`` share a start offset. The
        innermost one is the call a detector matched.
        """
        offset = self.offset_of(line, column)
        if offset is None:
            return None
        found: Node | None = None
        node: Node | None = self.root_node
        while node is not None:
            if node.type == "call_expression" and node.start_byte == offset:
                found = node
            node = next(
                (
                    child
                    for child in node.children
                    if child.start_byte <= offset < child.end_byte
                ),
                None,
            )
        return found

    @cached_property
    def imports(self) -> list[ImportInfo]:
        """Top-level import declarations in source order."""
        return [
            info
            for child in self.root_node.named_children
            if child.type == "import_statement"
            for info in [self._import_info(child)]
            if info is not None
        ]

    def _import_info(self, node: Node) -> ImportInfo | None:
        source_node = node.child_by_field_name("source")
        if source_node is None or source_node.type != "string":
            return None
        specifier = string_literal_value(self.source_bytes, source_node)

        default_import: str | None = None
        namespace_import: str | None = None
        named: list[str] = []
        imported_names: dict[str, str] = {}
        is_type_only = any(child.type == "type" for child in node.children)

        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    default_import = self.node_text(part)
                elif part.type == "namespace_import":
                    for ident in part.named_children:
                        if ident.type == "identifier":
                            namespace_import = self.node_text(ident)
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        name_node = spec.child_by_field_name("name")
                        alias_node = spec.child_by_field_name("alias")
                        if name_node is None:
                            continue
                        imported = self.node_text(name_node)
                        local = (
                            self.node_text(alias_node) if alias_node else imported
                        )
                        named.append(local)
                        imported_names[local] = imported

        line, column = self.position_of(node)
        return ImportInfo(
            module_specifier=specifier,
            default_import=default_import,
            named_imports=tuple(named),
            namespace_import=namespace_import,
            is_type_only=is_type_only,
            line=line,
            column=column,
            imported_names=imported_names,
        )

    def is_imported(self, specifier: str, binding: str | None = None) -> bool:
        """Return True when a module (optionally a given binding) is imported.

        A specifier matches exactly or as a path suffix, so ``axios`` also
        matches ``./vendor/axios``.
        """
        for info in self.imports:
            module = info.module_specifier
            if module != specifier and not module.endswith(f"/{specifier}"):
                continue
            if binding is None or info.binds(binding):
                return True
        return False

    def resolve_import_path(self, specifier: str) -> str | None:
        """Return the absolute path ``specifier`` names, if it is in the repo."""
        if self._resolver is None:
            return None
        return self._resolver.resolve(specifier, self.path)


class SourceCache:
    """Owns every parsed file for one scan.

    A failed parse is remembered so later lookups do not retry it.
    """

    def __init__(self, resolver: ModuleResolver | None = None) -> None:
        self.resolver = resolver
        self._models: dict[str, SourceModel] = {}
        self._failures: dict[str, str] = {}

    def parse(self, path: str | Path) -> SourceModel | None:
        key = str(path)
        model = self._models.get(key)
        if model is not None:
            return model
        if key in self._failures:
            return None
        try:
            model = SourceModel.parse(key, self.resolver)
        except SourceParseError as exc:
            logger.warning("Could not parse %s: %s", key, exc)
            self._failures[key] = str(exc)
            return None
        self._models[key] = model
        return model

    def failure_for(self, path: str | Path) -> str | None:
        return self._failures.get(str(path))

    def __contains__(self, path: object) -> bool:
        return str(path) in self._models

    def __len__(self) -> int:
        return len(self._models)

    def clear(self) -> None:
        self._models.clear()
        self._failures.clear()


__all__ = [
    "ImportInfo",
    "SourceCache",
    "SourceModel",
    "SourceParseError",
    "grammar_for",
]
