"""
Coordinate mapping between display (screen) space and model-input space.

All functions are pure; rectangles are BoundingBox values with a top-left
origin and dimensions are Dimensions values in pixels.
"""

from __future__ import annotations

import math

from models.detection import BoundingBox, Dimensions


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _check_dimensions(dims: Dimensions, name: str) -> None:
    if dims.width <= 0 or dims.height <= 0:
        raise ValueError(f"{name} must have positive width and height, got {dims.width}x{dims.height}")


def resize_for_model(dimensions: Dimensions, target_size: int = 640) -> Dimensions:
    """
    Compute model-input dimensions preserving the aspect ratio.

    The longer side becomes ``target_size``; the other side is scaled and
    rounded half-up. Square inputs map to (target_size, target_size).

    Args:
        dimensions: Source image dimensions.
        target_size: Model input size (square side length).

    Returns:
        Resized dimensions.
    """
    _check_dimensions(dimensions, "dimensions")
    if target_size <= 0:
        raise ValueError("target_size must be positive")

    width, height = dimensions.width, dimensions.height
    if width >= height:
        return Dimensions(width=target_size, height=_round_half_up(target_size * height / width))
    return Dimensions(width=_round_half_up(target_size * width / height), height=target_size)


def to_model_space(rect: BoundingBox, screen: Dimensions, model: Dimensions) -> BoundingBox:
    """Scale a screen-space rectangle into model-input space."""
    _check_dimensions(screen, "screen")
    _check_dimensions(model, "model")
    scale_x = model.width / screen.width
    scale_y = model.height / screen.height
    return BoundingBox(
        x=rect.x * scale_x,
        y=rect.y * scale_y,
        width=rect.width * scale_x,
        height=rect.height * scale_y,
    )


def to_screen_space(rect: BoundingBox, screen: Dimensions, model: Dimensions) -> BoundingBox:
    """Scale a model-space rectangle back into screen space."""
    _check_dimensions(screen, "screen")
    _check_dimensions(model, "model")
    scale_x = screen.width / model.width
    scale_y = screen.height / model.height
    return BoundingBox(
        x=rect.x * scale_x,
        y=rect.y * scale_y,
        width=rect.width * scale_x,
        height=rect.height * scale_y,
    )
