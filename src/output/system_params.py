"""Environment variables read by the code behind each endpoint."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.calls import RawCall

ENV_DOT_RE = re.compile(r"process\.env\.([A-Z_][A-Z0-9_]*)", re.IGNORECASE)
ENV_BRACKET_RE = re.compile(r"process\.env\s*\[\s*[\"']([^\"']+)[\"']\s*\]")

SNIPPET_MAX_LEN = 200
_WHITESPACE = re.compile(r"\s+")


class SystemParam(BaseModel):
    name: str
    code_snippet: str | None = None


def code_snippet(code: str, index: int, max_len: int = SNIPPET_MAX_LEN) -> str:
    """Whitespace-collapsed context around ``index``, at most ``max_len`` chars."""
    start = max(0, index - 40)
    end = code.find("\n", index)
    if end == -1:
        end = len(code)
    end = min(len(code), end + 80)
    snippet = _WHITESPACE.sub(" ", code[start:end]).strip()
    if len(snippet) > max_len:
        snippet = snippet[:max_len] + "..."
    return snippet


def extract_system_params(calls: Iterable[RawCall]) -> list[SystemParam]:
    """Collect ``process.env`` names from extracted function code.

    The first occurrence of each name supplies its snippet. The result is
    sorted by name.
    """
    by_name: dict[str, str] = {}
    for call in calls:
        code = call.function_code
        if not code:
            continue
        for match in ENV_DOT_RE.finditer(code):
            by_name.setdefault(match.group(1), code_snippet(code, match.start()))
        for match in ENV_BRACKET_RE.finditer(code):
            by_name.setdefault(match.group(1).strip(), code_snippet(code, match.start()))

    return [
        SystemParam(name=name, code_snippet=snippet)
        for name, snippet in sorted(by_name.items())
    ]


__all__ = ["SystemParam", "code_snippet", "extract_system_params"]
