"""
Tests for the detection loop.
"""

import threading
from unittest.mock import MagicMock

from conftest import make_candidate, make_frame
from detection.service import DetectionService
from inference import ScriptedBackend
from models.config import Config, FrameProcessingConfig, SourceConfig
from observation import SyntheticSource, SyntheticSourceOptions
from pipeline.engine import DetectionLoop, LoopConfig, create_loop_from_config
from pipeline.scheduler import AdmissionOutcome, FrameScheduler


def _scheduler(backend=None, **frame_config):
    service = DetectionService(backend or ScriptedBackend(), fallback=None)
    assert service.initialize()
    ticks = iter(range(0, 10_000_000, 1000))
    return FrameScheduler(
        service,
        FrameProcessingConfig(**frame_config),
        clock=lambda: float(next(ticks)),
    )


class TestDetectionLoop:
    def test_runs_until_source_exhausted(self):
        cand = make_candidate(0, 0, 50, 50)
        scheduler = _scheduler(ScriptedBackend([[cand]], repeat=True), skip_frames=2)
        source = SyntheticSource(SyntheticSourceOptions(max_frames=9))
        outcomes = []
        results = []
        scheduler.add_callback(lambda frame, dets, stats: results.append(frame))

        loop = DetectionLoop(source, scheduler, LoopConfig(inline=True))
        loop.add_callback(lambda frame, outcome: outcomes.append(outcome))
        loop.run()

        assert outcomes.count(AdmissionOutcome.ADMITTED) == 3
        assert outcomes.count(AdmissionOutcome.SKIPPED) == 6
        assert loop.stats.frames_read == 9
        assert loop.stats.frames_admitted == 3
        assert [f.frame_index for f in results] == [3, 6, 9]
        assert not source.is_open
        assert not loop.is_running

    def test_read_failures_stop_loop(self):
        source = MagicMock()
        source.source_id = "flaky"
        source.read.return_value = None
        source.is_exhausted = False

        loop = DetectionLoop(source, _scheduler(), LoopConfig(max_consecutive_failures=3, retry_delay=0))
        loop.run()

        assert source.read.call_count == 3
        source.close.assert_called_once()

    def test_failure_counter_resets_on_success(self):
        source = MagicMock()
        source.source_id = "flaky"
        frames = [None, None, make_frame(1), None, None, make_frame(2)]
        source.read.side_effect = frames + [None] * 3
        source.is_exhausted = False

        loop = DetectionLoop(
            source, _scheduler(skip_frames=0), LoopConfig(max_consecutive_failures=3, retry_delay=0, inline=True),
        )
        loop.run()

        assert loop.stats.frames_read == 2
        assert source.read.call_count == len(frames) + 3

    def test_stop_from_another_thread(self):
        release = threading.Event()
        scheduler = _scheduler(ScriptedBackend(on_infer=lambda f: release.wait(5)), skip_frames=0)
        source = SyntheticSource(SyntheticSourceOptions())
        cleared = []
        scheduler.add_callback(lambda frame, dets, stats: cleared.append(frame))
        loop = DetectionLoop(source, scheduler, LoopConfig(read_interval=0.005))

        thread = threading.Thread(target=loop.run)
        thread.start()
        while loop.stats.frames_admitted == 0:
            threading.Event().wait(0.001)
        loop.stop()
        thread.join(timeout=5)
        release.set()

        assert not thread.is_alive()
        assert not scheduler.is_running
        # the display was cleared by stop(); in-flight results are discarded
        assert cleared[0] is None
        scheduler.dispose()
        assert all(frame is None for frame in cleared)

    def test_duration_limit(self):
        source = SyntheticSource(SyntheticSourceOptions())
        loop = DetectionLoop(source, _scheduler(), LoopConfig(duration=0.05, read_interval=0.01, inline=True))

        loop.run()

        assert 0 < loop.stats.frames_read < 50
        assert not source.is_open

    def test_callback_error_does_not_stop_loop(self):
        source = SyntheticSource(SyntheticSourceOptions(max_frames=3))
        loop = DetectionLoop(source, _scheduler(), LoopConfig(inline=True))
        loop.add_callback(MagicMock(side_effect=RuntimeError("boom")))

        loop.run()

        assert loop.stats.frames_read == 3


class TestCreateLoop:
    def test_synthetic_is_paced(self):
        loop = create_loop_from_config(Config(), MagicMock(), _scheduler(), duration=5)
        assert loop.config.read_interval is not None
        assert loop.config.duration == 5

    def test_camera_is_not_paced(self):
        config = Config(source=SourceConfig(kind="opencv"))
        loop = create_loop_from_config(config, MagicMock(), _scheduler())
        assert loop.config.read_interval is None
