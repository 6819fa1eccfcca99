"""
Detection loop for the vehicle detection pipeline.

Reads frames from a FrameSource and offers each one to the FrameScheduler,
which decides whether it reaches the detection service. The loop is the
single admission thread; detections complete on the scheduler's workers
(or inline when ``inline`` is set).
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.config import Config
from models.frame import Frame
from observation import FrameSource

from .scheduler import AdmissionOutcome, FrameScheduler

# Pace used for synthetic sources, which otherwise produce frames as fast as they are read
SYNTHETIC_CAMERA_FPS = 30.0


@dataclass
class LoopConfig:
    """
    Configuration for the detection loop.

    Attributes:
        max_consecutive_failures: Max frame read failures before stopping.
        retry_delay: Seconds to wait after a failed read.
        stats_log_interval: Seconds between status log messages.
        read_interval: Seconds between source reads (None = as fast as the source delivers).
        duration: Stop after this many seconds (None = until stopped or exhausted).
        inline: Run detection in the loop thread instead of the worker pool.
    """
    max_consecutive_failures: int = 10
    retry_delay: float = 0.5
    stats_log_interval: float = 60.0
    read_interval: Optional[float] = None
    duration: Optional[float] = None
    inline: bool = False


@dataclass
class LoopStats:
    """Runtime statistics for the loop itself (admission counters live in the scheduler)."""
    frames_read: int = 0
    frames_admitted: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class DetectionLoop:
    """
    Main processing loop feeding a FrameScheduler from a FrameSource.

    stop() may be called from any thread: it wakes the loop out of any wait
    and stops the scheduler, so results of detections still in flight are
    discarded.

    Example:
        loop = DetectionLoop(source, scheduler, LoopConfig(duration=30))
        loop.add_callback(lambda frame, outcome: ...)
        loop.run()
    """

    def __init__(
        self,
        source: FrameSource,
        scheduler: FrameScheduler,
        config: Optional[LoopConfig] = None,
    ):
        self.source = source
        self.scheduler = scheduler
        self.config = config or LoopConfig()
        self.stats = LoopStats()
        self._stop_event = threading.Event()
        self._callbacks: List[Callable[[Frame, AdmissionOutcome], None]] = []

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()

    def add_callback(self, callback: Callable[[Frame, AdmissionOutcome], None]) -> None:
        """
        Add a callback called with (frame, outcome) after each frame is offered.

        Detection results are delivered through the scheduler's callbacks.
        """
        self._callbacks.append(callback)

    def run(self) -> None:
        """
        Run the loop until stopped, the source is exhausted or the duration elapses.

        Opens the source on entry and closes it on exit.
        """
        self._stop_event.clear()
        self.stats = LoopStats()
        self.scheduler.start()
        started = time.monotonic()

        try:
            self.source.open()
            logging.info(f"Detection loop started: source={self.source.source_id}")

            while not self._stop_event.is_set():
                if self.config.duration is not None and time.monotonic() - started >= self.config.duration:
                    logging.info(f"Duration of {self.config.duration}s elapsed, stopping")
                    break

                frame = self.source.read()

                if frame is None:
                    if self.source.is_exhausted:
                        logging.info("Frame source exhausted")
                        break
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    self._stop_event.wait(self.config.retry_delay)
                    continue

                self.stats.consecutive_failures = 0
                self._offer(frame)
                self._handle_periodic_tasks()

                if self.config.read_interval:
                    self._stop_event.wait(self.config.read_interval)

        except KeyboardInterrupt:
            logging.info("Detection loop interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the loop to stop and halt the scheduler."""
        self._stop_event.set()
        self.scheduler.stop()

    def _offer(self, frame: Frame) -> None:
        self.stats.frames_read += 1
        if self.config.inline:
            admission = self.scheduler.submit_inline(frame)
        else:
            admission = self.scheduler.submit(frame)

        if admission.admitted:
            self.stats.frames_admitted += 1
        self._notify(frame, admission.outcome)

    def _notify(self, frame: Frame, outcome: AdmissionOutcome) -> None:
        for callback in self._callbacks:
            try:
                callback(frame, outcome)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            stats = self.scheduler.get_stats()
            logging.info(
                f"Pipeline stats: frames_read={self.stats.frames_read}, "
                f"processed={stats.frames_processed}, dropped={stats.dropped_frames}, "
                f"skipped={stats.skipped_frames}, rate_limited={stats.rate_limited_frames}, "
                f"avg_ms={stats.average_processing_time:.1f}, fps={stats.current_fps:.1f}, "
                f"engine_fps={self.scheduler.engine_fps()}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._stop_event.set()
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        logging.info(
            f"Detection loop stopped: frames_read={self.stats.frames_read}, "
            f"admitted={self.stats.frames_admitted}"
        )


def create_loop_from_config(
    config: Config,
    source: FrameSource,
    scheduler: FrameScheduler,
    duration: Optional[float] = None,
) -> DetectionLoop:
    """
    Factory function to create a DetectionLoop from the typed config.

    Synthetic sources are paced at SYNTHETIC_CAMERA_FPS; camera and file
    reads are paced by the device.
    """
    read_interval = 1.0 / SYNTHETIC_CAMERA_FPS if config.source.kind == "synthetic" else None
    loop_config = LoopConfig(read_interval=read_interval, duration=duration)
    return DetectionLoop(source, scheduler, loop_config)
