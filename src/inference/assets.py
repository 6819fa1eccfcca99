"""
Model asset contract.

Real inference expects two exported YOLO artifacts under ``assets/models``.
Their absence is not fatal: the detection service falls back to the
simulated backend.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_MODELS_DIR = os.path.join("assets", "models")


@dataclass(frozen=True)
class ModelArtifact:
    name: str
    description: str
    format: str
    max_size_mb: float


REQUIRED_MODELS: List[ModelArtifact] = [
    ModelArtifact(
        name="yolov5s.mlmodel",
        description="YOLOv5s Core ML model for iOS",
        format="Core ML (.mlmodel)",
        max_size_mb=50.0,
    ),
    ModelArtifact(
        name="yolov5s.tflite",
        description="YOLOv5s TensorFlow Lite model for Android",
        format="TensorFlow Lite (.tflite)",
        max_size_mb=30.0,
    ),
]

DEFAULT_MODEL_PATH = os.path.join(DEFAULT_MODELS_DIR, "yolov5s.tflite")


@dataclass(frozen=True)
class ArtifactStatus:
    artifact: ModelArtifact
    path: str
    size_mb: Optional[float] = None

    @property
    def present(self) -> bool:
        return self.size_mb is not None

    @property
    def oversized(self) -> bool:
        return self.size_mb is not None and self.size_mb > self.artifact.max_size_mb


@dataclass
class AssetReport:
    models_dir: str
    present: List[ArtifactStatus] = field(default_factory=list)
    missing: List[ArtifactStatus] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


def check_model_assets(models_dir: str = DEFAULT_MODELS_DIR) -> AssetReport:
    """Report which required model artifacts exist under ``models_dir``."""
    report = AssetReport(models_dir=models_dir)
    for artifact in REQUIRED_MODELS:
        path = os.path.join(models_dir, artifact.name)
        if os.path.isfile(path):
            size_mb = os.path.getsize(path) / (1024 * 1024)
            report.present.append(ArtifactStatus(artifact=artifact, path=path, size_mb=size_mb))
        else:
            report.missing.append(ArtifactStatus(artifact=artifact, path=path))
    return report
