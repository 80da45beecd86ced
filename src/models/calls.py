"""Call-site models produced by detection and refined by extraction."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Confidence = Literal["high", "medium", "low"]
CallSource = Literal["fetch", "axios", "custom"]

CONFIDENCE_RANK: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


def highest_confidence(current: Confidence, candidate: Confidence) -> Confidence:
    """Return whichever of two confidence levels ranks higher."""
    if CONFIDENCE_RANK[candidate] > CONFIDENCE_RANK[current]:
        return candidate
    return current


class RawCall(BaseModel):
    """A single detected HTTP call expression.

    ``line`` and ``column`` are 1-based and point at the first character of
    the call expression the detector matched. Extraction fields are empty
    until the extraction phase rebuilds the record.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    line: int
    column: int
    file: str
    source: CallSource
    confidence: Confidence = "low"
    function_name: str | None = None
    function_file: str | None = None
    function_code: str | None = None
    function_resolution_confidence: Confidence | None = Field(
        default=None,
        description="How reliably function_code is the code issuing this call",
    )

    def endpoint_key(self) -> tuple[str, str]:
        return (self.method.upper(), self.url)


class ScanError(BaseModel):
    """A non-fatal, per-file failure surfaced next to the results."""

    file: str
    message: str
    line: int | None = None


class ScanResult(BaseModel):
    """Everything a scan hands to the output collaborators."""

    api_calls: list[RawCall] = Field(default_factory=list)
    files_scanned: int = 0
    errors: list[ScanError] = Field(default_factory=list)


__all__ = [
    "CONFIDENCE_RANK",
    "CallSource",
    "Confidence",
    "RawCall",
    "ScanError",
    "ScanResult",
    "highest_confidence",
]
