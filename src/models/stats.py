"""
Processing statistics snapshot.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ProcessingStats:
    """
    Read-only snapshot of frame scheduler throughput.

    Attributes:
        frames_processed: Frames that completed detection (monotonic).
        average_processing_time: Mean duration of the recent window, in ms.
        current_fps: Estimated throughput, capped at the target FPS.
        dropped_frames: Frames rejected because the concurrency bound was hit.
        skipped_frames: Frames discarded by the frame-skip policy.
        rate_limited_frames: Frames rejected by the rate gate.
        in_flight: Frames currently inside detection.
    """
    frames_processed: int = 0
    average_processing_time: float = 0.0
    current_fps: float = 0.0
    dropped_frames: int = 0
    skipped_frames: int = 0
    rate_limited_frames: int = 0
    in_flight: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
