"""
Scripted inference backend.

Replays a fixed sequence of results, one entry per ``infer`` call. Used to
drive the post-processor and scheduler deterministically.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional, Sequence, Union

from detection.errors import ModelLoadFailure
from models.config import DetectionConfig
from models.detection import RawCandidate
from models.frame import Frame

from .backend import DetectionBackend

ScriptEntry = Union[Sequence[RawCandidate], Exception]


class ScriptedBackend(DetectionBackend):
    """
    Backend returning scripted candidate lists.

    Args:
        script: Entries consumed in order. A list of candidates is returned
            as-is; an Exception instance is raised from that call.
        repeat: Cycle through the script instead of returning [] once it
            is exhausted.
        fail_load: Make ``load`` fail with ModelLoadFailure.
        on_infer: Hook called with each frame before its entry is consumed;
            tests use it to block or delay inference.
    """

    name = "scripted"

    def __init__(
        self,
        script: Optional[Sequence[ScriptEntry]] = None,
        config: Optional[DetectionConfig] = None,
        repeat: bool = False,
        fail_load: bool = False,
        on_infer: Optional[Callable[[Frame], None]] = None,
    ):
        super().__init__(config)
        self._script: List[ScriptEntry] = list(script or [])
        self._repeat = repeat
        self._fail_load = fail_load
        self._on_infer = on_infer
        self._position = 0
        self._lock = threading.Lock()
        self.infer_calls = 0
        self.loaded_paths: List[Optional[str]] = []

    def _load_model(self, model_path: Optional[str]) -> None:
        self.loaded_paths.append(model_path)
        if self._fail_load:
            raise ModelLoadFailure(f"scripted load failure for {model_path or 'default model'}")

    def _next_entry(self) -> ScriptEntry:
        with self._lock:
            self.infer_calls += 1
            if not self._script:
                return []
            if self._position >= len(self._script):
                if not self._repeat:
                    return []
                self._position = 0
            entry = self._script[self._position]
            self._position += 1
            return entry

    def _infer(self, frame: Frame) -> List[RawCandidate]:
        if self._on_infer is not None:
            self._on_infer(frame)
        entry = self._next_entry()
        if isinstance(entry, Exception):
            raise entry
        return list(entry)
