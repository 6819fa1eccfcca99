"""
Simulated inference backend (stand-in).

Generates plausible vehicle candidates without a model so the pipeline stays
usable when model artifacts are missing. Seeded, so runs are reproducible.
"""

from __future__ import annotations

import threading
import time
from typing import Dict, List, Optional, Tuple

import numpy as np

from models.config import DetectionConfig
from models.detection import COCO_VEHICLE_CLASSES, BoundingBox, RawCandidate, VehicleClass
from models.frame import Frame

from .backend import DetectionBackend

# Box sizes below are tuned for a 390px wide portrait display
REFERENCE_WIDTH = 390.0

# (low, spread) per class; confidence = low + U(0,1) * spread, capped
CONFIDENCE_BANDS: Dict[VehicleClass, Tuple[float, float]] = {
    VehicleClass.CAR: (0.75, 0.20),
    VehicleClass.TRUCK: (0.65, 0.25),
    VehicleClass.BUS: (0.70, 0.20),
}
MAX_CONFIDENCE = 0.95

# ((min_w, max_w), (min_h, max_h)) per class at REFERENCE_WIDTH
SIZE_RANGES: Dict[VehicleClass, Tuple[Tuple[float, float], Tuple[float, float]]] = {
    VehicleClass.CAR: ((100.0, 180.0), (80.0, 120.0)),
    VehicleClass.TRUCK: ((150.0, 220.0), (100.0, 140.0)),
    VehicleClass.BUS: ((180.0, 250.0), (120.0, 160.0)),
}


class SimulatedBackend(DetectionBackend):
    """
    Deterministic stand-in for a real detector.

    Args:
        config: Detection config (unused by generation, kept for the contract).
        seed: Seed for the random generator; same seed, same candidates.
        load_delay: Seconds spent "loading" the model.
        min_candidates: Minimum candidates generated per frame.
        max_candidates: Maximum candidates generated per frame.
    """

    name = "simulated"

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        seed: Optional[int] = None,
        load_delay: float = 1.5,
        min_candidates: int = 1,
        max_candidates: int = 4,
    ):
        super().__init__(config)
        if min_candidates < 0 or max_candidates < min_candidates:
            raise ValueError("need 0 <= min_candidates <= max_candidates")
        self.seed = seed
        self.load_delay = load_delay
        self.min_candidates = min_candidates
        self.max_candidates = max_candidates
        self._rng = np.random.default_rng(seed)
        self._rng_lock = threading.Lock()
        self._classes = list(COCO_VEHICLE_CLASSES.values())

    def _load_model(self, model_path: Optional[str]) -> None:
        if self.load_delay > 0:
            time.sleep(self.load_delay)

    def _infer(self, frame: Frame) -> List[RawCandidate]:
        # numpy Generators are not thread-safe
        with self._rng_lock:
            count = int(self._rng.integers(self.min_candidates, self.max_candidates + 1))
            return [self._generate_candidate(frame) for _ in range(count)]

    def _generate_candidate(self, frame: Frame) -> RawCandidate:
        rng = self._rng
        vehicle_class = self._classes[int(rng.integers(0, len(self._classes)))]

        low, spread = CONFIDENCE_BANDS[vehicle_class]
        confidence = min(MAX_CONFIDENCE, low + float(rng.random()) * spread)

        scale = frame.width / REFERENCE_WIDTH
        (min_w, max_w), (min_h, max_h) = SIZE_RANGES[vehicle_class]
        width = min(frame.width, (min_w + float(rng.random()) * (max_w - min_w)) * scale)
        height = min(frame.height, (min_h + float(rng.random()) * (max_h - min_h)) * scale)

        center_x = float(rng.random()) * frame.width
        center_y = float(rng.random()) * frame.height
        x = float(np.clip(center_x - width / 2, 0, frame.width - width))
        y = float(np.clip(center_y - height / 2, 0, frame.height - height))

        return RawCandidate(
            vehicle_class=vehicle_class,
            confidence=confidence,
            bbox=BoundingBox(x=x, y=y, width=width, height=height),
        )

    def _release(self) -> None:
        with self._rng_lock:
            self._rng = np.random.default_rng(self.seed)
