"""
Tests for DetectionService: initialization, fallback, detect and config.
"""

import threading
import time

import pytest

from conftest import make_candidate, make_frame
from detection.errors import InferenceFailure, NotInitialized
from detection.service import DetectionService
from inference import ScriptedBackend, SimulatedBackend
from models.config import DetectionConfig
from models.detection import Dimensions


class TestInitialize:
    def test_ready_after_successful_load(self):
        service = DetectionService(ScriptedBackend())

        assert service.initialize() is True
        assert service.is_ready
        assert not service.is_degraded
        assert service.backend_name == "scripted"

    def test_loads_configured_model_path(self):
        backend = ScriptedBackend()
        service = DetectionService(backend, DetectionConfig(model_path="assets/models/yolov5s.tflite"))
        service.initialize()
        assert backend.loaded_paths == ["assets/models/yolov5s.tflite"]

    def test_failed_load_without_fallback(self, frame):
        service = DetectionService(ScriptedBackend(fail_load=True), fallback=None)

        assert service.initialize() is False
        assert not service.is_ready
        with pytest.raises(NotInitialized):
            service.detect(frame)

    def test_failed_load_falls_back_to_simulation(self, frame):
        failed = ScriptedBackend(fail_load=True)
        service = DetectionService(
            failed,
            fallback=lambda cfg: SimulatedBackend(cfg, seed=1, load_delay=0),
        )

        assert service.initialize() is True
        assert service.is_ready
        assert service.is_degraded
        assert service.backend_name == "simulated"
        assert failed.state.value == "disposed"
        assert isinstance(service.detect(frame), list)

    def test_failing_fallback(self):
        service = DetectionService(
            ScriptedBackend(fail_load=True),
            fallback=lambda cfg: ScriptedBackend(fail_load=True),
        )
        assert service.initialize() is False
        assert not service.is_ready

    def test_config_forwarded_to_backend(self):
        backend = ScriptedBackend()
        DetectionService(backend, DetectionConfig(confidence_threshold=0.3))
        assert backend.config.confidence_threshold == 0.3


class TestDetect:
    def test_detect_before_initialize(self, frame):
        with pytest.raises(NotInitialized):
            DetectionService(ScriptedBackend()).detect(frame)

    def test_postprocesses_candidates(self, frame):
        keep = make_candidate(0, 0, 100, 100, confidence=0.9)
        overlapping = make_candidate(25, 0, 100, 100, confidence=0.8)
        weak = make_candidate(300, 300, 50, 50, confidence=0.5)
        service = DetectionService(ScriptedBackend([[weak, overlapping, keep]]))
        service.initialize()

        result = service.detect(frame)

        assert len(result) == 1
        assert result[0].bbox == keep.bbox
        assert result[0].confidence == 0.9

    def test_backend_failure_yields_empty(self, frame):
        service = DetectionService(ScriptedBackend([InferenceFailure("boom"), RuntimeError("bad")]))
        service.initialize()

        assert service.detect(frame) == []
        assert service.detect(frame) == []
        assert service.is_ready

    def test_screen_mapping(self):
        frame = make_frame(width=640, height=360)
        cand = make_candidate(320, 180, 64, 36, confidence=0.9)
        service = DetectionService(ScriptedBackend([[cand], [cand]]))
        service.initialize()

        service.set_screen_size(Dimensions(1920, 1080))
        mapped = service.detect(frame)[0]
        service.set_screen_size(None)
        unmapped = service.detect(frame)[0]

        assert mapped.bbox.as_tuple() == pytest.approx((960, 540, 192, 108))
        assert unmapped.bbox == cand.bbox

    def test_dispose(self, frame):
        backend = ScriptedBackend()
        service = DetectionService(backend)
        service.initialize()

        service.dispose()

        assert not service.is_ready
        assert backend.state.value == "disposed"
        with pytest.raises(NotInitialized):
            service.detect(frame)


class TestUpdateConfig:
    def test_update_applies_to_next_detect(self, frame):
        cand = make_candidate(0, 0, 10, 10, confidence=0.6)
        service = DetectionService(ScriptedBackend([[cand]], repeat=True))
        service.initialize()

        assert service.detect(frame) == []
        new_config = service.update_config(confidence_threshold=0.5)

        assert new_config.confidence_threshold == 0.5
        assert service.get_config() == new_config
        assert len(service.detect(frame)) == 1

    def test_max_detections_cap(self, frame):
        cands = [make_candidate(i * 100, 0, 50, 50) for i in range(6)]
        service = DetectionService(ScriptedBackend([cands], repeat=True))
        service.initialize()
        service.update_config(max_detections=2)
        assert len(service.detect(frame)) == 2

    def test_invalid_update_keeps_config(self):
        service = DetectionService(ScriptedBackend())
        with pytest.raises(ValueError):
            service.update_config(nms_threshold=5)
        assert service.get_config() == DetectionConfig()

    def test_backend_sees_update(self):
        backend = ScriptedBackend()
        service = DetectionService(backend)
        service.update_config(max_detections=3)
        assert backend.config.max_detections == 3

    def test_concurrent_updates_are_serialized(self):
        class SlowMergeConfig(DetectionConfig):
            def merged(self, **changes):
                time.sleep(0.05)
                return super().merged(**changes)

        backend = ScriptedBackend()
        service = DetectionService(backend, SlowMergeConfig())
        threads = [
            threading.Thread(target=service.update_config, kwargs={"confidence_threshold": 0.5}),
            threading.Thread(target=service.update_config, kwargs={"max_detections": 3}),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        config = service.get_config()
        assert (config.confidence_threshold, config.max_detections) == (0.5, 3)
        assert (backend.config.confidence_threshold, backend.config.max_detections) == (0.5, 3)


class TestLifecycle:
    def test_initialize_after_dispose_refused(self, frame):
        backend = ScriptedBackend()
        service = DetectionService(backend, fallback=lambda cfg: SimulatedBackend(cfg, seed=1, load_delay=0))
        service.initialize()
        service.dispose()

        assert service.initialize() is False
        assert not service.is_ready
        assert not service.is_degraded
        assert service.backend_name == "scripted"
        with pytest.raises(NotInitialized):
            service.detect(frame)

    def test_screen_mapping_error_yields_empty(self):
        cand = make_candidate(0, 0, 10, 10, confidence=0.9)
        service = DetectionService(ScriptedBackend([[cand]], repeat=True))
        service.initialize()
        service.set_screen_size(Dimensions(1920, 1080))

        assert service.detect(make_frame(width=0, height=360)) == []
        assert service.is_ready
