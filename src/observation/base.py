"""
FrameSource interface for pluggable frame providers.

The pipeline only needs stable dimensions and a capture timestamp from a
frame; how it was captured or encoded is up to the source:
- synthetic/mock frames (tests, demo mode)
- USB cameras and video files via OpenCV
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from models.frame import Frame


@dataclass
class SourceOptions:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Identifier used in frame URIs and logs.
        max_frames: Stop after this many frames. None = unbounded.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    max_frames: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with options
        2. Call open() to initialize the source
        3. Call read() repeatedly to get frames
        4. Call close() to release resources

    Can also be used as a context manager:
        with SyntheticSource(options) as source:
            for frame in source:
                scheduler.submit(frame)
    """

    def __init__(self, options: SourceOptions):
        self._options = options
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._options.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames read since open."""
        return self._frame_index

    @property
    def is_exhausted(self) -> bool:
        """True once the source can produce no more frames."""
        limit = self._options.max_frames
        return limit is not None and self._frame_index >= limit

    @abstractmethod
    def open(self) -> None:
        """
        Open the source. Must be called before read().

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[Frame]:
        """Return the next frame, or None if no frame is available."""

    @abstractmethod
    def close(self) -> None:
        """Release resources. Safe to call multiple times."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[Frame]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame = self.read()
            if frame is None:
                break
            yield frame
