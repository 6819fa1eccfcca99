"""
Typed models for the vehicle detection pipeline.

These models are immutable value objects shared by the backends, the
detection service, the frame scheduler and the status API.
"""

from .frame import Frame
from .detection import (
    COCO_VEHICLE_CLASSES,
    BoundingBox,
    Detection,
    Dimensions,
    RawCandidate,
    VehicleClass,
    detections_to_numpy,
)
from .stats import ProcessingStats
from .config import (
    BackendConfig,
    Config,
    DetectionConfig,
    FrameProcessingConfig,
    SourceConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "Frame",
    # Detection
    "COCO_VEHICLE_CLASSES",
    "BoundingBox",
    "Detection",
    "Dimensions",
    "RawCandidate",
    "VehicleClass",
    "detections_to_numpy",
    # Stats
    "ProcessingStats",
    # Config
    "BackendConfig",
    "Config",
    "DetectionConfig",
    "FrameProcessingConfig",
    "SourceConfig",
    "WebConfig",
]
