"""Tree-sitter node helpers shared by detectors and extractors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node

FUNCTION_DECLARATION_TYPES = frozenset(
    {"function_declaration", "generator_function_declaration"}
)
FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
VARIABLE_STATEMENT_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
CLASS_DECLARATION_TYPES = frozenset(
    {"class_declaration", "abstract_class_declaration", "class"}
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def decode_node_text(source_bytes: bytes, node: Node) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode(
        "utf8", errors="replace"
    )


def _decode_escape(sequence: str) -> str:
    body = sequence[1:]
    if not body:
        return ""
    if body[0] in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body[0]]
    if body[0] in ("\n", "\r"):
        # Line continuation.
        return ""
    if body[0] in ("x", "u"):
        digits = body[1:].strip("{}")
        try:
            return chr(int(digits, 16))
        except ValueError:
            return body
    return body


def _cooked_text(source_bytes: bytes, node: Node, start: int, end: int) -> str:
    """Return the text between ``start`` and ``end`` with escapes decoded."""
    parts: list[str] = []
    cursor = start
    for child in node.children:
        if child.type != "escape_sequence":
            continue
        parts.append(source_bytes[cursor : child.start_byte].decode("utf8", "replace"))
        parts.append(_decode_escape(decode_node_text(source_bytes, child)))
        cursor = child.end_byte
    parts.append(source_bytes[cursor:end].decode("utf8", "replace"))
    return "".join(parts)


def string_literal_value(source_bytes: bytes, node: Node) -> str:
    """Return the value of a ``string`` node without its quotes."""
    return _cooked_text(source_bytes, node, node.start_byte + 1, node.end_byte - 1)


def template_has_substitution(node: Node) -> bool:
    return any(child.type == "template_substitution" for child in node.children)


def template_raw_text(source_bytes: bytes, node: Node) -> str:
    """Return the template text with its backticks removed, ``${...}`` kept."""
    return decode_node_text(source_bytes, node).removeprefix("`").removesuffix("`")


def template_literal_value(source_bytes: bytes, node: Node) -> str:
    """Return the value of a template literal that has no substitutions."""
    return _cooked_text(source_bytes, node, node.start_byte + 1, node.end_byte - 1)


def call_arguments(call_node: Node) -> list[Node] | None:
    """Return the argument nodes of a call, or None for tagged templates."""
    arguments = call_node.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        return None
    return [child for child in arguments.named_children if child.type != "comment"]


def property_key(source_bytes: bytes, key_node: Node | None) -> str | None:
    if key_node is None:
        return None
    if key_node.type in ("property_identifier", "identifier", "number"):
        return decode_node_text(source_bytes, key_node)
    if key_node.type == "string":
        return string_literal_value(source_bytes, key_node)
    return None


def object_properties(source_bytes: bytes, node: Node) -> Iterator[tuple[str, Node]]:
    """Yield ``(key, value)`` for the statically named properties of an object."""
    if node.type != "object":
        return
    for child in node.named_children:
        if child.type == "pair":
            key = property_key(source_bytes, child.child_by_field_name("key"))
            value = child.child_by_field_name("value")
            if key is not None and value is not None:
                yield key, value
        elif child.type == "shorthand_property_identifier":
            yield decode_node_text(source_bytes, child), child


def normalize_callee_expr(source_bytes: bytes, callee_node: Node | None) -> str:
    """Render a callee as ``a.b.c`` or a ``<kind>`` placeholder."""
    if callee_node is None:
        return "<complex_expr>"

    if callee_node.type in ("identifier", "this", "super"):
        return decode_node_text(source_bytes, callee_node).strip()

    if callee_node.type == "member_expression":
        object_node = callee_node.child_by_field_name("object")
        property_node = callee_node.child_by_field_name("property")

        normalized_object = normalize_callee_expr(source_bytes, object_node)
        if property_node is None or property_node.type not in (
            "property_identifier",
            "private_property_identifier",
        ):
            return "<member>"

        prop_name = decode_node_text(source_bytes, property_node).strip()
        if normalized_object.startswith("<") and normalized_object.endswith(">"):
            return "<member>"
        return f"{normalized_object}.{prop_name}".strip()

    placeholder_map = {
        "subscript_expression": "<subscript>",
        "call_expression": "<call>",
        "arrow_function": "<lambda>",
        "parenthesized_expression": "<parenthesized>",
    }
    return placeholder_map.get(callee_node.type, f"<{callee_node.type}>")


def member_parts(source_bytes: bytes, callee_node: Node | None) -> tuple[str, str] | None:
    """Split ``ident.member`` into its two names; anything else yields None."""
    if callee_node is None or callee_node.type != "member_expression":
        return None
    object_node = callee_node.child_by_field_name("object")
    property_node = callee_node.child_by_field_name("property")
    if object_node is None or object_node.type != "identifier":
        return None
    if property_node is None:
        return None
    return (
        decode_node_text(source_bytes, object_node),
        decode_node_text(source_bytes, property_node),
    )


def declaration_name(source_bytes: bytes, node: Node) -> str | None:
    """Return the identifier bound by a declaration, declarator or method."""
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    if name_node.type in (
        "identifier",
        "type_identifier",
        "property_identifier",
        "private_property_identifier",
    ):
        return decode_node_text(source_bytes, name_node)
    if name_node.type == "string":
        return string_literal_value(source_bytes, name_node)
    return None


def with_export(node: Node) -> Node:
    """Widen a declaration to its ``export`` statement when it has one."""
    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        return parent
    return node


def unwrap_export(node: Node) -> Node | None:
    """Return the declaration carried by a top-level statement."""
    if node.type != "export_statement":
        return node
    return node.child_by_field_name("declaration")


def iter_descendants(node: Node) -> Iterator[Node]:
    """Pre-order traversal without recursion (deep trees stay safe)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


__all__ = [
    "CLASS_DECLARATION_TYPES",
    "FUNCTION_DECLARATION_TYPES",
    "FUNCTION_VALUE_TYPES",
    "VARIABLE_STATEMENT_TYPES",
    "call_arguments",
    "declaration_name",
    "decode_node_text",
    "iter_descendants",
    "member_parts",
    "normalize_callee_expr",
    "object_properties",
    "property_key",
    "string_literal_value",
    "template_has_substitution",
    "template_literal_value",
    "template_raw_text",
    "unwrap_export",
    "with_export",
]
