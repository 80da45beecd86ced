from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

from output.normalize import normalize_results

if TYPE_CHECKING:
    from models.calls import ScanResult

RULE = "═" * 60
TOP_ENDPOINTS = 10
MAX_LISTED_ERRORS = 5

CONFIDENCE_MARKS = {"high": "✓", "medium": "~", "low": "?"}


def _by_count_desc(counts: dict[str, int]) -> list[tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def format_summary(result: ScanResult) -> str:
    """Render the human-readable scan report printed by ``apisurface scan``."""
    normalized = normalize_results(result.api_calls)
    lines: list[str] = ["", RULE, "  API Surface Scan Results", RULE, ""]

    lines.append("Overview:")
    lines.append(f"  Total API calls found:     {normalized.total_calls}")
    lines.append(f"  Unique endpoints:           {normalized.unique_endpoints}")
    lines.append(f"  Files scanned:              {result.files_scanned}")
    if result.errors:
        lines.append(f"  Errors encountered:         {len(result.errors)}")
    lines.append("")

    if normalized.by_method:
        lines.append("By HTTP Method:")
        lines.extend(
            f"  {method:<8} {count}"
            for method, count in _by_count_desc(normalized.by_method)
        )
        lines.append("")

    if normalized.by_source:
        lines.append("By Source:")
        lines.extend(
            f"  {source:<8} {count}"
            for source, count in _by_count_desc(normalized.by_source)
        )
        lines.append("")

    if normalized.by_confidence:
        lines.append("By Confidence:")
        for level in ("high", "medium", "low"):
            count = normalized.by_confidence.get(level, 0)
            if count:
                lines.append(f"  {CONFIDENCE_MARKS[level]} {level:<8} {count}")
        lines.append("")

    if normalized.endpoints:
        lines.append("Top Endpoints:")
        top = sorted(normalized.endpoints, key=lambda e: -e.call_count)
        for endpoint in top[:TOP_ENDPOINTS]:
            plural = "s" if endpoint.call_count > 1 else ""
            lines.append(
                f"  {endpoint.method:<8} {endpoint.url:<40} "
                f"{CONFIDENCE_MARKS[endpoint.confidence]} "
                f"({endpoint.call_count} call{plural})"
            )
        lines.append("")

    if result.errors:
        lines.append("Errors:")
        for error in result.errors[:MAX_LISTED_ERRORS]:
            line = error.line if error.line is not None else "?"
            lines.append(f"  {PurePath(error.file).name}:{line} - {error.message}")
        if len(result.errors) > MAX_LISTED_ERRORS:
            lines.append(f"  ... and {len(result.errors) - MAX_LISTED_ERRORS} more")
        lines.append("")

    lines.append(RULE)
    lines.append("")
    return "\n".join(lines)


__all__ = ["format_summary"]
