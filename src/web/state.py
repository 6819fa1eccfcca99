import threading
import time
from typing import List, Optional

from models.detection import Detection
from models.frame import Frame
from models.stats import ProcessingStats


class DetectionState:
    """
    Latest detection result shared between the scheduler's workers and the
    web server.

    Registered as a FrameScheduler result callback. Each completion replaces
    the whole detection list; with concurrent workers the last completion to
    arrive wins, whatever its capture time.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._detections: List[Detection] = []
        self._stats = ProcessingStats()
        self._frame_uri: Optional[str] = None
        self._frame_timestamp: Optional[float] = None
        self._updated_at: Optional[float] = None
        self._updates = 0

    def __call__(self, frame: Optional[Frame], detections: List[Detection], stats: ProcessingStats) -> None:
        self.set_result(frame, detections, stats)

    def set_result(self, frame: Optional[Frame], detections: List[Detection], stats: ProcessingStats) -> None:
        """Replace the current result. frame=None clears the display."""
        with self._lock:
            self._detections = list(detections)
            self._stats = stats
            self._frame_uri = frame.uri if frame is not None else None
            self._frame_timestamp = frame.timestamp if frame is not None else None
            self._updated_at = time.time()
            self._updates += 1

    def clear(self) -> None:
        with self._lock:
            self._detections = []
            self._frame_uri = None
            self._frame_timestamp = None
            self._updated_at = time.time()

    def get_detections(self) -> List[Detection]:
        with self._lock:
            return list(self._detections)

    def get_stats(self) -> ProcessingStats:
        with self._lock:
            return self._stats

    def get_frame_info(self):
        """Return (uri, capture timestamp ms) of the frame behind the current result."""
        with self._lock:
            return self._frame_uri, self._frame_timestamp

    def get_last_update_age(self) -> Optional[float]:
        """Seconds since the last result, None if there never was one."""
        with self._lock:
            if self._updated_at is None:
                return None
            return time.time() - self._updated_at

    @property
    def update_count(self) -> int:
        with self._lock:
            return self._updates
