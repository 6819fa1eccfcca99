"""
Geometry helpers for the detection pipeline.
"""

from .coordinates import resize_for_model, to_model_space, to_screen_space

__all__ = [
    "resize_for_model",
    "to_model_space",
    "to_screen_space",
]
