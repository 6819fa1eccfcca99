"""
Detection pipeline errors.

Only NotInitialized is meant to reach callers of DetectionService.detect;
the rest are raised inside backends and recovered by the service.
"""

from __future__ import annotations


class DetectionError(Exception):
    """Base class for detection pipeline errors."""


class NotInitialized(DetectionError):
    """detect() called before initialize() succeeded or after dispose()."""


class ModelLoadFailure(DetectionError):
    """A backend could not load its model."""


class InferenceFailure(DetectionError):
    """A single inference call failed."""


class BackendNotReady(InferenceFailure):
    """infer() called on a backend that is not in the READY state."""
