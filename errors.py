"""Typed errors raised by the frame quality core."""

from __future__ import annotations


class FrameQualityError(ValueError):
    """Base class for validation failures in the analysis and comparison core."""


class InvalidDimensionsError(FrameQualityError):
    """Buffer, crop or estimate inputs have unusable dimensions."""


class DimensionMismatchError(FrameQualityError):
    """Two buffers passed to the comparator do not share a shape."""

    def __init__(self, shape_a: tuple, shape_b: tuple):
        super().__init__(
            f"cannot compare buffers of different dimensions: {shape_a[1]}x{shape_a[0]} vs {shape_b[1]}x{shape_b[0]}"
        )
        self.shape_a = shape_a
        self.shape_b = shape_b
