"""Buffer validation and centre cropping."""

from __future__ import annotations

import math

import numpy as np

from errors import InvalidDimensionsError


def ensure_gray(buffer: np.ndarray) -> np.ndarray:
    """Validate an 8-bit single-channel buffer and return it unchanged."""

    if not isinstance(buffer, np.ndarray):
        raise InvalidDimensionsError(f"expected a numpy array, got {type(buffer).__name__}")
    if buffer.ndim != 2:
        raise InvalidDimensionsError(f"expected a 2-D grayscale buffer, got shape {buffer.shape}")
    if buffer.dtype != np.uint8:
        raise InvalidDimensionsError(f"expected dtype uint8, got {buffer.dtype}")
    if buffer.size == 0:
        raise InvalidDimensionsError("buffer has zero pixels")
    return buffer


def crop_to_percent(buffer: np.ndarray, percent: float) -> np.ndarray:
    """Centre-crop a buffer to ``percent`` of its width and height.

    Used to cut away lens vignetting before analysis. The aspect ratio is
    preserved up to integer truncation and the original buffer is untouched.
    """

    gray = ensure_gray(buffer)
    if not (0.0 < percent <= 1.0):
        raise InvalidDimensionsError(f"crop percent must be in (0, 1], got {percent}")

    height, width = gray.shape
    new_width = int(math.floor(width * percent))
    new_height = int(math.floor(height * percent))
    if new_width == 0 or new_height == 0:
        raise InvalidDimensionsError(
            f"cropping {width}x{height} to {percent:.3f} leaves no pixels"
        )
    left = (width - new_width) // 2
    top = (height - new_height) // 2
    return np.ascontiguousarray(gray[top : top + new_height, left : left + new_width]).copy()
