"""FAST corner counts as a texture density proxy."""

from __future__ import annotations

from enum import Enum

import numpy as np
from skimage.feature import corner_fast

from errors import InvalidDimensionsError
from geometry import ensure_gray

DEFAULT_CORNER_THRESHOLD = 32

# Radius-3 Bresenham circle; no pixel closer than this to an edge is tested.
_BORDER = 3


class CornerVariant(str, Enum):
    """Contiguous-arc requirement on the 16-pixel circle."""

    FAST12 = "fast12"
    FAST9 = "fast9"

    @property
    def arc_length(self) -> int:
        return 12 if self is CornerVariant.FAST12 else 9


def count_corners(
    buffer: np.ndarray,
    threshold: int = DEFAULT_CORNER_THRESHOLD,
    variant: CornerVariant = CornerVariant.FAST12,
) -> int:
    """Count FAST keypoints without non-maximum suppression.

    A pixel qualifies when ``variant.arc_length`` contiguous circle pixels are
    all brighter than ``centre + threshold`` or all darker than
    ``centre - threshold``. Coordinates are discarded.
    """

    gray = ensure_gray(buffer)
    height, width = gray.shape
    if height <= 2 * _BORDER or width <= 2 * _BORDER:
        return 0
    variant = CornerVariant(variant)
    # float64 input skips skimage's rescale to [0, 1], keeping the threshold in intensity units
    response = corner_fast(gray.astype(np.float64), n=variant.arc_length, threshold=float(threshold))
    return int(np.count_nonzero(response))


def count_corners_fast12(buffer: np.ndarray, threshold: int = DEFAULT_CORNER_THRESHOLD) -> int:
    return count_corners(buffer, threshold, CornerVariant.FAST12)


def count_corners_fast9(buffer: np.ndarray, threshold: int = DEFAULT_CORNER_THRESHOLD) -> int:
    return count_corners(buffer, threshold, CornerVariant.FAST9)


def estimate_max_corners(width: int, height: int, density: int) -> int:
    """Upper bound on corners for a frame size.

    ``density`` is the ratio of non-corner to corner pixels, around 25 for
    FAST-12 on natural scenes.
    """

    if density <= 0:
        raise InvalidDimensionsError("corner density must be positive")
    if width <= 2 * _BORDER or height <= 2 * _BORDER:
        raise InvalidDimensionsError(
            f"{width}x{height} leaves no pixels inside the {_BORDER}px detector border"
        )
    return (width - 2 * _BORDER) * (height - 2 * _BORDER) // density


def corner_density(count: int, width: int, height: int) -> float:
    """Corners per testable pixel, comparable across frame sizes."""

    return count / float(estimate_max_corners(width, height, 1))
