"""
Vehicle Detection - Detection Module

Post-processing of backend candidates and the error taxonomy shared with the
backends. The service lives in ``detection.service`` (it depends on
``inference``, which depends on this package).
"""

from .errors import (
    BackendNotReady,
    DetectionError,
    InferenceFailure,
    ModelLoadFailure,
    NotInitialized,
)
from .postprocess import calculate_iou, non_max_suppression, process

__all__ = [
    "BackendNotReady",
    "DetectionError",
    "InferenceFailure",
    "ModelLoadFailure",
    "NotInitialized",
    "calculate_iou",
    "non_max_suppression",
    "process",
]
