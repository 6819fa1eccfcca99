"""
Inference backends for vehicle detection.

- SimulatedBackend: seeded stand-in used when no model is available
- ScriptedBackend: replays scripted candidates (tests, demos)
- UltralyticsBackend: real YOLO model via ultralytics
"""

from __future__ import annotations

from typing import Optional

from models.config import BackendConfig, DetectionConfig

from .backend import BackendState, DetectionBackend
from .scripted_backend import ScriptedBackend
from .simulated_backend import SimulatedBackend
from .ultralytics_backend import UltralyticsBackend

BACKENDS = ("simulated", "ultralytics")


def create_backend(
    backend_cfg: BackendConfig,
    detection_cfg: Optional[DetectionConfig] = None,
) -> DetectionBackend:
    """
    Factory: build a backend from the ``backend`` config section.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if backend_cfg.name == "simulated":
        return SimulatedBackend(
            detection_cfg,
            seed=backend_cfg.seed,
            load_delay=backend_cfg.load_delay,
        )
    if backend_cfg.name == "ultralytics":
        return UltralyticsBackend(detection_cfg)
    raise ValueError(f"Unknown backend '{backend_cfg.name}', expected one of: {', '.join(BACKENDS)}")


__all__ = [
    "BACKENDS",
    "BackendState",
    "DetectionBackend",
    "ScriptedBackend",
    "SimulatedBackend",
    "UltralyticsBackend",
    "create_backend",
]
