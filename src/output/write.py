"""JSON outputs of a scan."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

from output.normalize import normalize_results
from output.system_params import extract_system_params
from scan.files import is_within_root

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from models.calls import RawCall, ScanResult

logger = logging.getLogger(__name__)

_SLUG_CHARS = re.compile(r"[^A-Za-z0-9]+")


def _to_dict(obj: object) -> object:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    return obj


def _dumps(payload: object, *, pretty: bool) -> bytes:
    opts = orjson.OPT_SORT_KEYS
    if pretty:
        opts |= orjson.OPT_INDENT_2
    return orjson.dumps(payload, option=opts)


def _write_json(path: Path, obj: object, *, pretty: bool = True) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_dumps(_to_dict(obj), pretty=pretty))


def build_results_document(
    result: ScanResult, *, include_raw: bool = False
) -> dict[str, Any]:
    """The results document: summary, endpoints, and optional sections."""
    normalized = normalize_results(result.api_calls)
    document: dict[str, Any] = {
        "summary": {
            "total_calls": normalized.total_calls,
            "unique_endpoints": normalized.unique_endpoints,
            "files_scanned": result.files_scanned,
            "errors": len(result.errors),
            "by_method": normalized.by_method,
            "by_source": normalized.by_source,
            "by_confidence": normalized.by_confidence,
        },
        "endpoints": [endpoint.model_dump(mode="json") for endpoint in normalized.endpoints],
    }
    if result.errors:
        document["errors"] = [error.model_dump(mode="json") for error in result.errors]
    if include_raw:
        document["raw_calls"] = [call.model_dump(mode="json") for call in result.api_calls]
    params = extract_system_params(result.api_calls)
    if params:
        document["required_system_params"] = [
            param.model_dump(mode="json") for param in params
        ]
    return document


def write_results(
    result: ScanResult,
    output_path: Path,
    *,
    pretty: bool = True,
    include_raw: bool = False,
) -> Path:
    """Write the results document; return the resolved output path."""
    resolved = output_path.expanduser().resolve()
    _write_json(
        resolved,
        build_results_document(result, include_raw=include_raw),
        pretty=pretty,
    )
    logger.info("Results written to %s", resolved)
    return resolved


def endpoint_filename(method: str, url: str) -> str:
    slug = _SLUG_CHARS.sub("_", url).strip("_") or "root"
    return f"{method.upper()}_{slug}.json"


def _is_api_function(call: RawCall, routes_root: Path | None) -> bool:
    if routes_root is None:
        return True
    if call.function_file is None:
        return False
    return is_within_root(Path(call.function_file), routes_root)


def _endpoint_functions(
    calls: Sequence[RawCall], routes_root: Path | None
) -> list[dict[str, Any]]:
    functions: list[dict[str, Any]] = []
    seen: set[tuple[str | None, str | None, str]] = set()
    for call in calls:
        if not call.function_code or not _is_api_function(call, routes_root):
            continue
        key = (call.function_file, call.function_name, call.function_code)
        if key in seen:
            continue
        seen.add(key)
        functions.append(
            {
                "function_name": call.function_name,
                "function_file": call.function_file,
                "function_code": call.function_code,
                "function_resolution_confidence": call.function_resolution_confidence,
                "call_sites": [
                    {"file": c.file, "line": c.line, "column": c.column}
                    for c in calls
                    if c.function_code == call.function_code
                    and c.function_file == call.function_file
                ],
            }
        )
    return functions


def write_function_code_per_endpoint(
    calls: Iterable[RawCall],
    out_dir: Path,
    *,
    pretty: bool = True,
    api_function_only: bool = False,
    api_routes_dir: Path | None = None,
) -> list[Path]:
    """Write one ``<METHOD>_<url>.json`` file per endpoint.

    With ``api_function_only`` only functions defined under
    ``api_routes_dir`` are kept, and endpoints left with none are skipped.
    Returns the written paths in endpoint order.
    """
    grouped: dict[tuple[str, str], list[RawCall]] = {}
    for call in calls:
        grouped.setdefault(call.endpoint_key(), []).append(call)

    routes_root = api_routes_dir if api_function_only else None
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    used_names: set[str] = set()

    for method, url in sorted(grouped):
        functions = _endpoint_functions(grouped[(method, url)], routes_root)
        if api_function_only and not functions:
            continue

        filename = endpoint_filename(method, url)
        stem = filename.removesuffix(".json")
        counter = 2
        while filename in used_names:
            filename = f"{stem}_{counter}.json"
            counter += 1
        used_names.add(filename)

        path = out_dir / filename
        _write_json(
            path,
            {"method": method, "url": url, "functions": functions},
            pretty=pretty,
        )
        written.append(path)

    logger.info("Wrote %d endpoint file(s) to %s", len(written), out_dir)
    return written


__all__ = [
    "build_results_document",
    "endpoint_filename",
    "write_function_code_per_endpoint",
    "write_results",
]
