"""
Detection models for vehicle detection results.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

import numpy as np


class VehicleClass(str, Enum):
    """Closed set of vehicle classes the pipeline reports."""
    CAR = "car"
    TRUCK = "truck"
    BUS = "bus"


# COCO dataset class ids for the vehicle classes we keep
COCO_VEHICLE_CLASSES: Dict[int, VehicleClass] = {
    2: VehicleClass.CAR,
    5: VehicleClass.BUS,
    7: VehicleClass.TRUCK,
}


@dataclass(frozen=True)
class Dimensions:
    """Width/height pair in pixels."""
    width: float
    height: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.width, self.height)


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates with a top-left origin.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x, self.y, self.x2, self.y2)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class RawCandidate:
    """
    An unfiltered detection produced by a backend for one frame.

    Attributes:
        vehicle_class: Detected vehicle class.
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in frame pixel coordinates.
    """
    vehicle_class: VehicleClass
    confidence: float
    bbox: BoundingBox


def _new_detection_id() -> str:
    return f"det_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Detection:
    """
    A final detection handed to the renderer.

    Attributes:
        vehicle_class: Detected vehicle class.
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in screen-space pixels.
        id: Identifier unique per detection instance.
    """
    vehicle_class: VehicleClass
    confidence: float
    bbox: BoundingBox
    id: str = field(default_factory=_new_detection_id)

    @classmethod
    def from_candidate(cls, candidate: RawCandidate) -> "Detection":
        """Adapter: promote a RawCandidate to a Detection with a fresh id."""
        return cls(
            vehicle_class=candidate.vehicle_class,
            confidence=candidate.confidence,
            bbox=candidate.bbox,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "class": self.vehicle_class.value,
            "confidence": self.confidence,
            "bounding_box": self.bbox.to_dict(),
        }

    def to_numpy(self) -> np.ndarray:
        """Convert to numpy array [x, y, width, height, confidence]."""
        return np.array([
            self.bbox.x, self.bbox.y, self.bbox.width, self.bbox.height,
            self.confidence,
        ])


def detections_to_numpy(detections: List[Detection]) -> np.ndarray:
    """
    Adapter: Convert list of Detection objects to numpy array.

    Returns:
        Array of shape (N, 5) with [x, y, width, height, confidence].
    """
    if not detections:
        return np.array([])
    return np.array([d.to_numpy() for d in detections])
