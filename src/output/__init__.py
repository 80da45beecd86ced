"""Normalized results, reports and JSON outputs."""

from output.normalize import normalize_results
from output.summary import format_summary
from output.system_params import SystemParam, extract_system_params
from output.write import (
    build_results_document,
    write_function_code_per_endpoint,
    write_results,
)

__all__ = [
    "SystemParam",
    "build_results_document",
    "extract_system_params",
    "format_summary",
    "normalize_results",
    "write_function_code_per_endpoint",
    "write_results",
]
