"""
Ultralytics YOLO inference backend.

Runs a real YOLO model when ``ultralytics`` and a model artifact are
available. Either missing raises ModelLoadFailure during load, which the
detection service answers by switching to the simulated backend.
"""

from __future__ import annotations

import os
from typing import Any, List, Optional

import cv2
import numpy as np

from algorithms.coordinates import resize_for_model, to_screen_space
from detection.errors import InferenceFailure, ModelLoadFailure
from models.config import DetectionConfig
from models.detection import COCO_VEHICLE_CLASSES, BoundingBox, Dimensions, RawCandidate
from models.frame import Frame

from .assets import DEFAULT_MODEL_PATH
from .backend import DetectionBackend


def _to_numpy(values: Any) -> np.ndarray:
    return values.cpu().numpy() if hasattr(values, "cpu") else np.asarray(values)


class UltralyticsBackend(DetectionBackend):
    """
    YOLO backend keeping only COCO vehicle classes.

    Frames carrying a pixel payload are resized to the model input size
    (aspect preserved) and boxes are mapped back to frame coordinates.
    Frames without a payload are passed to the model by URI.
    """

    name = "ultralytics"

    def __init__(self, config: Optional[DetectionConfig] = None):
        super().__init__(config)
        self._model = None

    def _load_model(self, model_path: Optional[str]) -> None:
        path = model_path or self.config.model_path or DEFAULT_MODEL_PATH
        if not os.path.exists(path):
            raise ModelLoadFailure(f"Model artifact not found: {path}")
        try:
            from ultralytics import YOLO  # type: ignore
        except ImportError as e:
            raise ModelLoadFailure(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or switch backend.name to 'simulated'."
            ) from e

        self._model = YOLO(path)

    def _infer(self, frame: Frame) -> List[RawCandidate]:
        cfg = self.config
        source: Any = frame.uri
        model_dims: Optional[Dimensions] = None
        if frame.image is not None:
            model_dims = resize_for_model(frame.size, cfg.model_input_size)
            source = cv2.resize(frame.image, (int(model_dims.width), int(model_dims.height)))

        try:
            results = self._model.predict(
                source=source,
                conf=cfg.confidence_threshold,
                iou=cfg.nms_threshold,
                imgsz=cfg.model_input_size,
                classes=list(COCO_VEHICLE_CLASSES),
                verbose=False,
            )
        except Exception as e:
            raise InferenceFailure(f"YOLO prediction failed for {frame.uri}: {e}") from e

        if not results:
            return []
        boxes = getattr(results[0], "boxes", None)
        if boxes is None:
            return []

        xyxy = _to_numpy(boxes.xyxy)
        conf = _to_numpy(boxes.conf)
        cls = _to_numpy(boxes.cls)

        out: List[RawCandidate] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            vehicle_class = COCO_VEHICLE_CLASSES.get(int(k))
            if vehicle_class is None:
                continue
            bbox = BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2))
            if model_dims is not None:
                bbox = to_screen_space(bbox, frame.size, model_dims)
            out.append(
                RawCandidate(
                    vehicle_class=vehicle_class,
                    confidence=float(np.clip(c, 0.0, 1.0)),
                    bbox=bbox,
                )
            )
        return out

    def _release(self) -> None:
        self._model = None
