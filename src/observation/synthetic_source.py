"""
Synthetic frame source.

Produces frame references with fixed dimensions and mock URIs, for running
the pipeline without a camera.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from models.frame import Frame

from .base import FrameSource, SourceOptions


@dataclass
class SyntheticSourceOptions(SourceOptions):
    width: int = 640
    height: int = 640


class SyntheticSource(FrameSource):
    """
    Frame source yielding ``mock://<source_id>/frame_<n>`` references.

    Args:
        options: Dimensions and frame limit.
        clock: Returns the capture timestamp in ms (defaults to wall time).
    """

    def __init__(self, options: SyntheticSourceOptions, clock: Optional[Callable[[], float]] = None):
        super().__init__(options)
        self._synthetic_options = options
        self._clock = clock or (lambda: time.time() * 1000.0)

    def open(self) -> None:
        self._is_open = True
        self._frame_index = 0
        logging.info(
            f"SyntheticSource opened: source_id={self.source_id}, "
            f"size={self._synthetic_options.width}x{self._synthetic_options.height}"
        )

    def read(self) -> Optional[Frame]:
        if not self._is_open or self.is_exhausted:
            return None

        self._frame_index += 1
        return Frame(
            uri=f"mock://{self.source_id}/frame_{self._frame_index}",
            width=self._synthetic_options.width,
            height=self._synthetic_options.height,
            timestamp=self._clock(),
            frame_index=self._frame_index,
        )

    def close(self) -> None:
        self._is_open = False
