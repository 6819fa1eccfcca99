"""
OpenCV-based frame source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- Video files (device_id as file path)

Frames carry the decoded pixel array so pixel-consuming backends can use it.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2

from models.frame import Frame

from .base import FrameSource, SourceOptions


@dataclass
class OpenCVSourceOptions(SourceOptions):
    """
    Attributes:
        device_id: Camera index (int) or video file path (str).
        width: Requested capture width for cameras (None = device default).
        height: Requested capture height for cameras.
        max_retries: Attempts to open the device before giving up.
    """
    device_id: Union[int, str] = 0
    width: Optional[int] = None
    height: Optional[int] = None
    max_retries: int = 3


class OpenCVSource(FrameSource):
    """
    Wraps cv2.VideoCapture to provide Frame objects.

    Example:
        options = OpenCVSourceOptions(device_id="traffic.mp4")
        with OpenCVSource(options) as source:
            for frame in source:
                scheduler.submit(frame)
    """

    def __init__(self, options: OpenCVSourceOptions):
        super().__init__(options)
        self._opencv_options = options
        self._cap: Optional[cv2.VideoCapture] = None
        self._end_of_file = False

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_options.device_id

    @property
    def is_exhausted(self) -> bool:
        return self._end_of_file or super().is_exhausted

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        opts = self._opencv_options
        for attempt in range(1, opts.max_retries + 1):
            self._cap = cv2.VideoCapture(self.device_id)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
            if attempt < opts.max_retries:
                wait_time = min(2 ** attempt, 10)
                logging.warning(
                    f"Failed to open device {self.device_id} (attempt {attempt}/{opts.max_retries}), "
                    f"retrying in {wait_time}s"
                )
                time.sleep(wait_time)
        else:
            raise RuntimeError(f"Failed to open device {self.device_id} after {opts.max_retries} attempts")

        if isinstance(self.device_id, int) and opts.width and opts.height:
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, opts.width)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, opts.height)

        self._is_open = True
        self._frame_index = 0
        self._end_of_file = False
        logging.info(f"OpenCVSource opened: source_id={self.source_id}, device={self.device_id}")

    def read(self) -> Optional[Frame]:
        if not self._is_open or self._cap is None or self.is_exhausted:
            return None

        ret, image = self._cap.read()
        if not ret or image is None:
            if self.is_file:
                self._end_of_file = True
                logging.info("End of video file reached")
            else:
                logging.warning(f"Failed to read frame from device {self.device_id}")
            return None

        self._frame_index += 1
        return Frame.from_numpy(
            image,
            uri=f"{self.source_id}#frame={self._frame_index}",
            timestamp=time.time() * 1000.0,
            frame_index=self._frame_index,
        )

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"OpenCVSource closed: source_id={self.source_id}")

    def get_video_info(self) -> Dict[str, Any]:
        """Get information about the video source."""
        if self._cap is None or not self._cap.isOpened():
            return {}

        return {
            "width": int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            "height": int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            "fps": self._cap.get(cv2.CAP_PROP_FPS),
            "frame_count": int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT)) if self.is_file else None,
        }
