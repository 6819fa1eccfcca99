"""
Detection service.

Binds one DetectionBackend to a DetectionConfig and exposes a stable
``detect`` contract regardless of which backend is behind it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import fields
from typing import Any, Callable, List, Optional

from algorithms.coordinates import to_screen_space
from inference.backend import DetectionBackend
from inference.simulated_backend import SimulatedBackend
from models.config import DetectionConfig
from models.detection import Detection, Dimensions, RawCandidate
from models.frame import Frame

from . import postprocess
from .errors import NotInitialized

BackendFactory = Callable[[DetectionConfig], DetectionBackend]


def default_fallback(config: DetectionConfig) -> DetectionBackend:
    return SimulatedBackend(config, load_delay=0.0)


class DetectionService:
    """
    Runs backend inference plus post-processing for single frames.

    Example:
        service = DetectionService(SimulatedBackend(seed=7))
        if service.initialize():
            detections = service.detect(frame)

    Args:
        backend: Backend owned by this service.
        config: Initial detection config.
        fallback: Factory for the stand-in backend used when loading fails;
            None disables the fallback.
    """

    def __init__(
        self,
        backend: DetectionBackend,
        config: Optional[DetectionConfig] = None,
        fallback: Optional[BackendFactory] = default_fallback,
    ):
        self._config = config or DetectionConfig()
        self._backend = backend
        self._backend.update_config(**self._backend_fields(self._config))
        self._fallback = fallback
        self._ready = False
        self._degraded = False
        self._disposed = False
        self._screen_size: Optional[Dimensions] = None
        self._lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_degraded(self) -> bool:
        """True when running on the fallback stand-in after a load failure."""
        return self._degraded

    @property
    def backend_name(self) -> str:
        return self._backend.name

    def get_config(self) -> DetectionConfig:
        return self._config

    @staticmethod
    def _backend_fields(config: DetectionConfig) -> dict:
        return {f.name: getattr(config, f.name) for f in fields(config)}

    def initialize(self) -> bool:
        """
        Load the backend. Falls back to the stand-in if loading fails.

        Returns:
            True if the service is ready for detect().
        """
        logging.info("Initializing vehicle detection service...")
        with self._lock:
            if self._ready:
                return True
            if self._disposed:
                logging.error("Detection service was disposed, create a new one to reinitialize")
                return False

            if self._backend.load(self._config.model_path):
                self._ready = True
                logging.info(f"Vehicle detection service initialized (backend={self._backend.name})")
                return True

            if self._fallback is None:
                logging.error(f"Failed to load backend '{self._backend.name}', no fallback configured")
                return False

            logging.warning(
                f"Backend '{self._backend.name}' failed to load, falling back to simulated detection"
            )
            self._backend.dispose()
            self._backend = self._fallback(self._config)
            if not self._backend.load():
                logging.error("Fallback backend failed to load")
                return False

            self._ready = True
            self._degraded = True
            logging.info(f"Vehicle detection service initialized in degraded mode (backend={self._backend.name})")
            return True

    def set_screen_size(self, screen: Optional[Dimensions]) -> None:
        """Map frame-space boxes to this display size (None keeps frame space)."""
        self._screen_size = screen

    def detect(self, frame: Frame) -> List[Detection]:
        """
        Detect vehicles in one frame.

        Raises:
            NotInitialized: If the service is not ready.
        """
        if not self._ready:
            raise NotInitialized("Detection service not initialized")

        config = self._config
        screen = self._screen_size
        try:
            candidates = self._backend.infer(frame)
            if screen is not None:
                candidates = [self._to_screen(c, frame, screen) for c in candidates]
        except Exception as e:
            logging.error(f"Vehicle detection failed for {frame.uri}: {e}")
            return []

        return postprocess.process(
            candidates,
            confidence_threshold=config.confidence_threshold,
            nms_threshold=config.nms_threshold,
            max_detections=config.max_detections,
        )

    @staticmethod
    def _to_screen(candidate: RawCandidate, frame: Frame, screen: Dimensions) -> RawCandidate:
        return RawCandidate(
            vehicle_class=candidate.vehicle_class,
            confidence=candidate.confidence,
            bbox=to_screen_space(candidate.bbox, screen, frame.size),
        )

    def update_config(self, **changes: Any) -> DetectionConfig:
        """Merge config fields and forward them to the backend."""
        with self._lock:
            config = self._config.merged(**changes)
            self._config = config
            self._backend.update_config(**changes)
        logging.info(f"Detection config updated: {config}")
        return config

    def dispose(self) -> None:
        with self._lock:
            self._ready = False
            self._disposed = True
            self._backend.dispose()
        logging.info("Vehicle detection service disposed")
