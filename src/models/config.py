"""
Typed configuration models matching the YAML config structure.

Every config struct enumerates and defaults all of its fields. Updates go
through ``merged()``: a field-by-field overwrite-if-present, never a deep merge.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Union


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class _MergeableConfig:
    """Shared partial-update behaviour for the config dataclasses."""

    def validate(self) -> None:
        pass

    def merged(self, **changes: Any):
        """
        Return a copy with the given fields overwritten.

        Keys mapped to None are ignored so callers can forward optional
        values untouched. Unknown keys raise ValueError.

        Raises:
            ValueError: If a key is unknown or a merged value is out of range.
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(
                f"Unknown {type(self).__name__} field(s): {', '.join(sorted(unknown))}"
            )
        updates = {k: v for k, v in changes.items() if v is not None}
        result = replace(self, **updates)
        result.validate()
        return result

    def merged_from(self, partial: Optional[Mapping[str, Any]]):
        return self.merged(**dict(partial or {}))


@dataclass(frozen=True)
class DetectionConfig(_MergeableConfig):
    """Detection post-processing and model configuration."""
    confidence_threshold: float = 0.7
    nms_threshold: float = 0.4
    max_detections: int = 8
    model_input_size: int = 640
    model_path: Optional[str] = None

    def validate(self) -> None:
        if not _is_number(self.confidence_threshold) or not 0 <= self.confidence_threshold <= 1:
            raise ValueError("confidence_threshold must be between 0 and 1")
        if not _is_number(self.nms_threshold) or not 0 <= self.nms_threshold <= 1:
            raise ValueError("nms_threshold must be between 0 and 1")
        if not _is_int(self.max_detections) or self.max_detections < 0:
            raise ValueError("max_detections must be a non-negative integer")
        if not _is_int(self.model_input_size) or self.model_input_size <= 0:
            raise ValueError("model_input_size must be a positive integer")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        cfg = cls(
            confidence_threshold=d.get("confidence_threshold", 0.7),
            nms_threshold=d.get("nms_threshold", 0.4),
            max_detections=d.get("max_detections", 8),
            model_input_size=d.get("model_input_size", 640),
            model_path=d.get("model_path"),
        )
        cfg.validate()
        return cfg

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "confidence_threshold": self.confidence_threshold,
            "nms_threshold": self.nms_threshold,
            "max_detections": self.max_detections,
            "model_input_size": self.model_input_size,
        }
        if self.model_path is not None:
            d["model_path"] = self.model_path
        return d


@dataclass(frozen=True)
class FrameProcessingConfig(_MergeableConfig):
    """Frame admission configuration."""
    target_fps: float = 10.0
    skip_frames: int = 2
    max_concurrent: int = 2
    image_quality: float = 0.7

    @property
    def target_interval_ms(self) -> float:
        return 1000.0 / self.target_fps

    def validate(self) -> None:
        if not _is_number(self.target_fps) or self.target_fps <= 0:
            raise ValueError("target_fps must be a positive number")
        if not _is_int(self.skip_frames) or self.skip_frames < 0:
            raise ValueError("skip_frames must be a non-negative integer")
        if not _is_int(self.max_concurrent) or self.max_concurrent < 1:
            raise ValueError("max_concurrent must be an integer >= 1")
        if not _is_number(self.image_quality) or not 0 < self.image_quality <= 1:
            raise ValueError("image_quality must be in (0, 1]")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FrameProcessingConfig":
        cfg = cls(
            target_fps=d.get("target_fps", 10.0),
            skip_frames=d.get("skip_frames", 2),
            max_concurrent=d.get("max_concurrent", 2),
            image_quality=d.get("image_quality", 0.7),
        )
        cfg.validate()
        return cfg

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_fps": self.target_fps,
            "skip_frames": self.skip_frames,
            "max_concurrent": self.max_concurrent,
            "image_quality": self.image_quality,
        }


@dataclass(frozen=True)
class BackendConfig:
    """Inference backend selection."""
    name: str = "simulated"
    seed: Optional[int] = None
    load_delay: float = 1.5
    fallback_to_simulation: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BackendConfig":
        return cls(
            name=d.get("name", "simulated"),
            seed=d.get("seed"),
            load_delay=d.get("load_delay", 1.5),
            fallback_to_simulation=d.get("fallback_to_simulation", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "load_delay": self.load_delay,
            "fallback_to_simulation": self.fallback_to_simulation,
        }
        if self.seed is not None:
            d["seed"] = self.seed
        return d


@dataclass(frozen=True)
class SourceConfig:
    """Frame source configuration."""
    kind: str = "synthetic"
    device_id: Union[int, str] = 0
    width: int = 640
    height: int = 640

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        return cls(
            kind=d.get("kind", "synthetic"),
            device_id=d.get("device_id", 0),
            width=d.get("width", 640),
            height=d.get("height", 640),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "device_id": self.device_id,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class WebConfig:
    """Status API configuration."""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    frames: FrameProcessingConfig = field(default_factory=FrameProcessingConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/vehicle_detection.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            frames=FrameProcessingConfig.from_dict(d.get("frames", {}) or {}),
            backend=BackendConfig.from_dict(d.get("backend", {}) or {}),
            source=SourceConfig.from_dict(d.get("source", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/vehicle_detection.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "detection": self.detection.to_dict(),
            "frames": self.frames.to_dict(),
            "backend": self.backend.to_dict(),
            "source": self.source.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
