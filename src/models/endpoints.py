"""Endpoint models for the normalized (deduplicated) inventory."""

from __future__ import annotations

from pydantic import BaseModel, Field

from models.calls import CallSource, Confidence


class CallSite(BaseModel):
    """One textual occurrence of a call targeting an endpoint."""

    file: str
    line: int
    column: int
    confidence: Confidence


class NormalizedEndpoint(BaseModel):
    """A unique (method, url) pair with every call site that targets it."""

    method: str
    url: str
    source: CallSource
    call_sites: list[CallSite] = Field(default_factory=list)
    confidence: Confidence = "low"
    call_count: int = 0


class NormalizedResult(BaseModel):
    """Normalized endpoints plus aggregate counts."""

    endpoints: list[NormalizedEndpoint] = Field(default_factory=list)
    total_calls: int = 0
    unique_endpoints: int = 0
    by_method: dict[str, int] = Field(default_factory=dict)
    by_source: dict[str, int] = Field(default_factory=dict)
    by_confidence: dict[str, int] = Field(default_factory=dict)


__all__ = ["CallSite", "NormalizedEndpoint", "NormalizedResult"]
