"""HTTP call detectors and the machinery that runs them."""

from detect.axios import AxiosDetector
from detect.base import BaseDetector, Detector
from detect.fetch import FetchDetector
from detect.patterns import PatternDetector
from detect.registry import DetectorRegistry
from detect.visitor import DetectorVisitor

__all__ = [
    "AxiosDetector",
    "BaseDetector",
    "Detector",
    "DetectorRegistry",
    "DetectorVisitor",
    "FetchDetector",
    "PatternDetector",
]
