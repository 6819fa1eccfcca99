"""
Frame model for captured camera frames.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .detection import Dimensions


@dataclass(frozen=True, eq=False)
class Frame:
    """
    An immutable reference to a captured frame.

    Attributes:
        uri: Opaque reference to the image (file path, mock URI, stream tag).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Capture time in milliseconds since the epoch.
        frame_index: Sequential frame number since the source opened.
        image: Optional pixel payload (BGR) for backends that consume pixels.
    """
    uri: str
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    image: Optional[np.ndarray] = None

    @classmethod
    def from_numpy(
        cls,
        image: np.ndarray,
        uri: str,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
    ) -> "Frame":
        """Create a Frame carrying a numpy image."""
        h, w = image.shape[:2]
        return cls(
            uri=uri,
            width=w,
            height=h,
            timestamp=timestamp if timestamp is not None else time.time() * 1000.0,
            frame_index=frame_index,
            image=image,
        )

    @property
    def size(self) -> Dimensions:
        """Return frame dimensions."""
        return Dimensions(width=self.width, height=self.height)
