from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class StatsModel(BaseModel):
    frames_processed: int
    average_processing_time: float = Field(..., description="Mean of the last 30 detection durations (ms)")
    current_fps: float = Field(..., description="Throughput, capped at target_fps")
    dropped_frames: int
    skipped_frames: int
    rate_limited_frames: int
    in_flight: int


class StatusResponse(BaseModel):
    """
    Pipeline status optimized for frontend polling.
    """
    ready: bool = Field(..., description="True if the detection service can accept frames")
    running: bool = Field(..., description="True if the scheduler admits frames")
    degraded: bool = Field(..., description="True if running on the simulated fallback backend")
    backend: str
    engine_fps: int = Field(..., description="Unclamped throughput estimate")
    last_result_age_s: Optional[float] = Field(None, description="Seconds since the last result")
    stats: StatsModel


class BoundingBoxModel(BaseModel):
    x: float
    y: float
    width: float
    height: float


class DetectionModel(BaseModel):
    id: str
    vehicle_class: str = Field(..., alias="class")
    confidence: float
    bounding_box: BoundingBoxModel

    model_config = {"populate_by_name": True}


class DetectionsResponse(BaseModel):
    frame_uri: Optional[str]
    frame_timestamp: Optional[float] = Field(None, description="Capture time of the frame (ms since epoch)")
    count: int
    detections: List[DetectionModel]


class DetectionConfigModel(BaseModel):
    confidence_threshold: float
    nms_threshold: float
    max_detections: int
    model_input_size: int
    model_path: Optional[str] = None


class FrameConfigModel(BaseModel):
    target_fps: float
    skip_frames: int
    max_concurrent: int
    image_quality: float


class ConfigResponse(BaseModel):
    detection: DetectionConfigModel
    frames: FrameConfigModel


class DetectionConfigUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    confidence_threshold: Optional[float] = None
    nms_threshold: Optional[float] = None
    max_detections: Optional[int] = None
    model_input_size: Optional[int] = None


class FrameConfigUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    target_fps: Optional[float] = None
    skip_frames: Optional[int] = None
    max_concurrent: Optional[int] = None
    image_quality: Optional[float] = None
