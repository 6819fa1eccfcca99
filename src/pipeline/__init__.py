"""
Pipeline module for the vehicle detection system.

The pipeline orchestrates the processing flow:
- Frame acquisition from observation sources (DetectionLoop)
- Admission control and backpressure (FrameScheduler)
- Detection results pushed to result callbacks
"""

from .engine import DetectionLoop, LoopConfig, create_loop_from_config
from .scheduler import Admission, AdmissionOutcome, FrameScheduler

__all__ = [
    "Admission",
    "AdmissionOutcome",
    "DetectionLoop",
    "FrameScheduler",
    "LoopConfig",
    "create_loop_from_config",
]
