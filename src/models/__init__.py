"""Model namespace for apisurface records."""

from models.calls import (
    CallSource,
    Confidence,
    RawCall,
    ScanError,
    ScanResult,
    highest_confidence,
)
from models.endpoints import CallSite, NormalizedEndpoint, NormalizedResult

__all__ = [
    "CallSite",
    "CallSource",
    "Confidence",
    "NormalizedEndpoint",
    "NormalizedResult",
    "RawCall",
    "ScanError",
    "ScanResult",
    "highest_confidence",
]
