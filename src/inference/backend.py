"""
Inference backend interface.

Backends own the model lifecycle and return raw candidates in the frame's
pixel coordinate system:

    UNLOADED -> LOADING -> READY -> DISPOSED
                   \\-> UNLOADED (load failure)
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional

from detection.errors import BackendNotReady
from models.config import DetectionConfig
from models.detection import RawCandidate
from models.frame import Frame


class BackendState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    DISPOSED = "disposed"


class DetectionBackend(ABC):
    """
    Base class for detection backends.

    Subclasses implement ``_load_model``, ``_infer`` and optionally
    ``_release``; the base class enforces the state machine.

    Contract for ``infer`` results: confidence in [0, 1], class in the
    vehicle class set, boxes inside or overlapping the frame bounds.
    """

    name = "base"

    def __init__(self, config: Optional[DetectionConfig] = None):
        self._config = config or DetectionConfig()
        self._state = BackendState.UNLOADED
        self._state_lock = threading.Lock()
        self._load_lock = threading.Lock()

    @property
    def config(self) -> DetectionConfig:
        return self._config

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == BackendState.READY

    def _set_state(self, state: BackendState) -> None:
        with self._state_lock:
            self._state = state

    def load(self, model_path: Optional[str] = None) -> bool:
        """
        Load the model and move to READY.

        Returns True immediately if already READY. On failure the backend
        returns to UNLOADED and False is returned.
        """
        with self._load_lock:
            if self._state == BackendState.READY:
                return True
            if self._state == BackendState.DISPOSED:
                logging.warning(f"Backend '{self.name}' is disposed, refusing to load")
                return False

            self._set_state(BackendState.LOADING)
            logging.info(f"Loading backend '{self.name}' model: {model_path or 'default'}")
            try:
                self._load_model(model_path)
            except Exception as e:
                self._set_state(BackendState.UNLOADED)
                logging.error(f"Failed to load backend '{self.name}': {e}")
                return False

            self._set_state(BackendState.READY)
            logging.info(f"Backend '{self.name}' ready")
            return True

    def infer(self, frame: Frame) -> List[RawCandidate]:
        """
        Produce raw candidates for one frame.

        Raises:
            BackendNotReady: If the backend is not READY.
        """
        if self._state != BackendState.READY:
            raise BackendNotReady(f"Backend '{self.name}' is {self._state.value}, not ready")
        return self._infer(frame)

    def update_config(self, **changes: Any) -> None:
        """Merge config fields; applies to subsequent infer calls."""
        self._config = self._config.merged(**changes)

    def dispose(self) -> None:
        """Release model resources; infer fails afterwards."""
        with self._load_lock:
            if self._state == BackendState.DISPOSED:
                return
            try:
                self._release()
            finally:
                self._set_state(BackendState.DISPOSED)
        logging.info(f"Backend '{self.name}' disposed")

    @abstractmethod
    def _load_model(self, model_path: Optional[str]) -> None:
        """Load model resources; raise on failure."""

    @abstractmethod
    def _infer(self, frame: Frame) -> List[RawCandidate]:
        """Run inference on a frame known to be admitted while READY."""

    def _release(self) -> None:
        pass
