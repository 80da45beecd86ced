from __future__ import annotations

import re
from typing import TYPE_CHECKING

from parse.syntax import with_export

if TYPE_CHECKING:
    from tree_sitter import Node

    from parse.source_model import SourceModel

TRUNCATION_MARKER = "/* ... truncated (max {max_lines} lines) */"

_LINE_BREAK = re.compile(r"\r?\n")


def limit_code_lines(text: str, max_lines: int) -> str | None:
    """Trim ``text`` and cut it to ``max_lines`` plus one marker line.

    Returns None for empty text.
    """
    trimmed = text.strip()
    if not trimmed:
        return None
    lines = _LINE_BREAK.split(trimmed)
    if len(lines) <= max_lines:
        return trimmed
    kept = "\n".join(lines[:max_lines])
    return f"{kept}\n{TRUNCATION_MARKER.format(max_lines=max_lines)}"


def node_code(source: SourceModel, node: Node, max_lines: int) -> str | None:
    """Verbatim code of ``node``, including an ``export`` that wraps it."""
    return limit_code_lines(source.node_text(with_export(node)), max_lines)


__all__ = ["TRUNCATION_MARKER", "limit_code_lines", "node_code"]
