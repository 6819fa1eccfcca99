"""
Observation layer for pluggable frame sources.

This layer abstracts where frames come from (synthetic references, camera,
video file) from the detection pipeline. Each source implements the
FrameSource interface and returns Frame objects.
"""

from typing import Optional

from models.config import SourceConfig

from .base import FrameSource, SourceOptions
from .opencv_source import OpenCVSource, OpenCVSourceOptions
from .synthetic_source import SyntheticSource, SyntheticSourceOptions

SOURCE_KINDS = ("synthetic", "opencv")


def create_source_from_config(
    source_cfg: SourceConfig,
    source_id: str = "main-camera",
    max_frames: Optional[int] = None,
) -> FrameSource:
    """
    Create a frame source from the ``source`` config section.

    A numeric string device_id ("0") is treated as a camera index.

    Raises:
        ValueError: If the source kind is unknown.
    """
    if source_cfg.kind == "synthetic":
        return SyntheticSource(SyntheticSourceOptions(
            source_id=source_id,
            max_frames=max_frames,
            width=source_cfg.width,
            height=source_cfg.height,
        ))

    if source_cfg.kind == "opencv":
        device_id = source_cfg.device_id
        if isinstance(device_id, str) and device_id.isdigit():
            device_id = int(device_id)
        return OpenCVSource(OpenCVSourceOptions(
            source_id=source_id,
            max_frames=max_frames,
            device_id=device_id,
            width=source_cfg.width,
            height=source_cfg.height,
        ))

    raise ValueError(f"Unknown source kind '{source_cfg.kind}', expected one of {SOURCE_KINDS}")


__all__ = [
    "FrameSource",
    "SourceOptions",
    "OpenCVSource",
    "OpenCVSourceOptions",
    "SyntheticSource",
    "SyntheticSourceOptions",
    "SOURCE_KINDS",
    "create_source_from_config",
]
