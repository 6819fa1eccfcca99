"""
Frame scheduler: admission control and backpressure in front of the
detection service.

Each incoming frame passes three independent gates, in order:

1. frame skip: only every (skip_frames + 1)-th frame is considered
2. concurrency: at most max_concurrent frames inside detect(); extra frames
   are dropped, never queued
3. rate gate: at most one admission per 1000 / target_fps ms

Shared state (counters, in-flight set, rolling window) is only touched under
``self._lock``; the lock is never held across a detect() call.
"""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from detection.errors import NotInitialized
from detection.service import DetectionService
from models.config import FrameProcessingConfig
from models.detection import Detection
from models.frame import Frame
from models.stats import ProcessingStats
from ops.timing import Clock, PerformanceMonitor, RateLimiter, monotonic_ms

ResultCallback = Callable[[Optional[Frame], List[Detection], ProcessingStats], None]


class AdmissionOutcome(str, Enum):
    ADMITTED = "admitted"
    SKIPPED = "skipped"
    DROPPED = "dropped"  # concurrency bound reached (queue full)
    RATE_LIMITED = "rate_limited"
    NOT_READY = "not_ready"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Admission:
    """Result of offering a frame to the scheduler."""
    outcome: AdmissionOutcome
    frame: Frame
    future: Optional["Future[List[Detection]]"] = None

    @property
    def admitted(self) -> bool:
        return self.outcome == AdmissionOutcome.ADMITTED


class FrameScheduler:
    """
    Admission/backpressure layer over DetectionService.detect.

    ``submit`` runs admitted frames on a thread pool and returns at once;
    ``process_frame`` runs them inline in the caller's thread. Completed
    results are pushed to registered callbacks (the renderer contract):
    a full replacement detection list plus a stats snapshot.

    Stopping does not cancel detections already in flight; their results
    are discarded when they complete.

    Example:
        scheduler = FrameScheduler(service, FrameProcessingConfig(target_fps=10))
        scheduler.add_callback(lambda frame, detections, stats: render(detections))
        for frame in source:
            scheduler.submit(frame)
    """

    def __init__(
        self,
        service: DetectionService,
        config: Optional[FrameProcessingConfig] = None,
        clock: Optional[Clock] = None,
        max_samples: int = 30,
    ):
        self._service = service
        self._config = config or FrameProcessingConfig()
        self._config.validate()
        self._clock = clock or monotonic_ms
        self._rate_limiter = RateLimiter(self._config.target_fps, clock=self._clock)
        self._monitor = PerformanceMonitor(max_samples=max_samples, clock=self._clock)

        self._lock = threading.Lock()
        self._tickets = itertools.count(1)
        self._in_flight: Set[int] = set()
        self._frame_count = 0
        self._frames_processed = 0
        self._dropped_frames = 0
        self._skipped_frames = 0
        self._rate_limited_frames = 0
        self._stats = ProcessingStats()
        # Bumped by stop()/reset(); completions from an older epoch are stale
        self._epoch = 0
        self._running = True

        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_workers = 0
        self._callbacks: List[ResultCallback] = []

    @property
    def config(self) -> FrameProcessingConfig:
        return self._config

    @property
    def service(self) -> DetectionService:
        return self._service

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def queue_size(self) -> int:
        """Number of frames currently inside detection."""
        with self._lock:
            return len(self._in_flight)

    def is_idle(self) -> bool:
        return self.queue_size == 0

    def add_callback(self, callback: ResultCallback) -> None:
        """
        Add a callback receiving (frame, detections, stats) per completion.

        Callbacks run on the completing thread; completions may arrive out
        of admission order. stop() calls them once with frame=None and an
        empty list to clear the display.
        """
        self._callbacks.append(callback)

    # -- admission ---------------------------------------------------------

    def _admit(self, frame: Frame) -> Tuple[AdmissionOutcome, int, int]:
        with self._lock:
            if not self._running:
                return AdmissionOutcome.STOPPED, 0, self._epoch
            if not self._service.is_ready:
                logging.debug("Detection service not ready, skipping frame")
                return AdmissionOutcome.NOT_READY, 0, self._epoch

            self._frame_count += 1
            if self._frame_count <= self._config.skip_frames:
                self._skipped_frames += 1
                self._refresh_stats()
                return AdmissionOutcome.SKIPPED, 0, self._epoch
            self._frame_count = 0

            if len(self._in_flight) >= self._config.max_concurrent:
                self._dropped_frames += 1
                self._refresh_stats()
                logging.debug(f"Processing queue full, dropping frame {frame.uri}")
                return AdmissionOutcome.DROPPED, 0, self._epoch

            if not self._rate_limiter.should_admit():
                self._rate_limited_frames += 1
                self._refresh_stats()
                logging.debug(f"Rate limited, rejecting frame {frame.uri}")
                return AdmissionOutcome.RATE_LIMITED, 0, self._epoch

            ticket = next(self._tickets)
            self._in_flight.add(ticket)
            self._refresh_stats()
            return AdmissionOutcome.ADMITTED, ticket, self._epoch

    def submit(self, frame: Frame) -> Admission:
        """Offer a frame; admitted frames run on the worker pool. Never blocks."""
        outcome, ticket, epoch = self._admit(frame)
        if outcome != AdmissionOutcome.ADMITTED:
            return Admission(outcome=outcome, frame=frame)

        executor = self._ensure_executor()
        future = executor.submit(self._run, frame, ticket, epoch)
        return Admission(outcome=outcome, frame=frame, future=future)

    def submit_inline(self, frame: Frame) -> Admission:
        """Like submit, but detect in the caller's thread; the future is already resolved."""
        outcome, ticket, epoch = self._admit(frame)
        if outcome != AdmissionOutcome.ADMITTED:
            return Admission(outcome=outcome, frame=frame)

        future: "Future[List[Detection]]" = Future()
        try:
            future.set_result(self._run(frame, ticket, epoch))
        except Exception as e:
            future.set_exception(e)
        return Admission(outcome=outcome, frame=frame, future=future)

    def process_frame(self, frame: Frame) -> List[Detection]:
        """Offer a frame and, if admitted, detect inline. Rejections return []."""
        admission = self.submit_inline(frame)
        if not admission.admitted:
            return []
        return admission.future.result()

    def process_batch(self, frames: Sequence[Frame]) -> List[List[Detection]]:
        """Process frames one after another through process_frame."""
        return [self.process_frame(frame) for frame in frames]

    # -- completion --------------------------------------------------------

    def _run(self, frame: Frame, ticket: int, epoch: int) -> List[Detection]:
        start = self._clock()
        try:
            detections = self._service.detect(frame)
        except NotInitialized as e:
            logging.warning(f"Frame {frame.uri} reached a stopped detection service: {e}")
            detections = []
        finally:
            current = self._complete(ticket, epoch, self._clock() - start)

        if not current:
            logging.debug(f"Discarding stale result for frame {frame.uri}")
            return []

        stats = self.get_stats()
        for callback in self._callbacks:
            try:
                callback(frame, detections, stats)
            except Exception as e:
                logging.warning(f"Result callback error: {e}")
        return detections

    def _complete(self, ticket: int, epoch: int, elapsed_ms: float) -> bool:
        with self._lock:
            self._in_flight.discard(ticket)
            current = epoch == self._epoch
            if current:
                self._monitor.record(elapsed_ms)
                self._frames_processed += 1
            self._refresh_stats()
            return current

    def _refresh_stats(self) -> None:
        average = self._monitor.average_processing_time()
        current_fps = min(self._config.target_fps, 1000.0 / average) if average > 0 else 0.0
        self._stats = ProcessingStats(
            frames_processed=self._frames_processed,
            average_processing_time=average,
            current_fps=current_fps,
            dropped_frames=self._dropped_frames,
            skipped_frames=self._skipped_frames,
            rate_limited_frames=self._rate_limited_frames,
            in_flight=len(self._in_flight),
        )

    # -- control -----------------------------------------------------------

    def get_stats(self) -> ProcessingStats:
        with self._lock:
            return self._stats

    def engine_fps(self) -> int:
        """Unclamped throughput estimate from the rolling window."""
        with self._lock:
            return self._monitor.current_fps()

    def update_config(self, **changes: Any) -> FrameProcessingConfig:
        """
        Merge config fields. A new target_fps applies to the next admission;
        frames already in flight are left alone.
        """
        with self._lock:
            new_config = self._config.merged(**changes)
            if new_config.target_fps != self._config.target_fps:
                self._rate_limiter.update_target_fps(new_config.target_fps)
            self._config = new_config
            self._refresh_stats()
        if self._executor is not None and new_config.max_concurrent > self._executor_workers:
            self._ensure_executor()
        logging.info(f"Frame processor config updated: {new_config}")
        return new_config

    def start(self) -> None:
        with self._lock:
            self._running = True
            self._rate_limiter.reset()
        logging.info("Frame scheduler started")

    def stop(self) -> None:
        """
        Halt future admissions and clear the displayed detections.

        In-flight detections keep running; their results are discarded.
        """
        with self._lock:
            self._running = False
            self._epoch += 1
            self._frame_count = 0
            stats = self._stats
            in_flight = len(self._in_flight)
        if in_flight:
            logging.info(f"Frame scheduler stopped, discarding {in_flight} in-flight result(s)")
        else:
            logging.info("Frame scheduler stopped")
        for callback in self._callbacks:
            try:
                callback(None, [], stats)
            except Exception as e:
                logging.warning(f"Result callback error: {e}")

    def reset(self) -> None:
        """Clear counters, the in-flight set and the rolling window."""
        with self._lock:
            self._epoch += 1
            self._frame_count = 0
            self._frames_processed = 0
            self._dropped_frames = 0
            self._skipped_frames = 0
            self._rate_limited_frames = 0
            self._in_flight.clear()
            self._monitor.reset()
            self._rate_limiter.reset()
            self._stats = ProcessingStats()
        logging.info("Frame processor reset")

    def _ensure_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            workers = self._config.max_concurrent
            if self._executor is None or workers > self._executor_workers:
                old = self._executor
                self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="detect")
                self._executor_workers = workers
                if old is not None:
                    # Running detections finish on the old pool
                    old.shutdown(wait=False)
            return self._executor

    def dispose(self, wait: bool = True) -> None:
        self.stop()
        self.reset()
        with self._lock:
            executor, self._executor = self._executor, None
            self._executor_workers = 0
        if executor is not None:
            executor.shutdown(wait=wait)
        logging.info("Frame scheduler disposed")
