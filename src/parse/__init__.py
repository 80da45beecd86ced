"""Parsing utilities for JavaScript and TypeScript sources."""

from parse.module_resolution import ModuleResolver, load_tsconfig_paths
from parse.source_model import ImportInfo, SourceCache, SourceModel, SourceParseError

__all__ = [
    "ImportInfo",
    "ModuleResolver",
    "SourceCache",
    "SourceModel",
    "SourceParseError",
    "load_tsconfig_paths",
]
