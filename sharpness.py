"""Laplacian-variance sharpness estimate."""

from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from geometry import ensure_gray

LAPLACIAN_KERNEL = np.array(
    [[0.0, -1.0, 0.0], [-1.0, 4.0, -1.0], [0.0, -1.0, 0.0]],
    dtype=np.float32,
)


def laplacian_sharpness(buffer: np.ndarray) -> Tuple[np.ndarray, float]:
    """Return the 8-bit Laplacian response and its population variance.

    The response saturates to 0..255 like any uint8 convolution, so only the
    positive side of each edge contributes. Higher -> sharper.
    """

    gray = ensure_gray(buffer)
    filtered = cv2.filter2D(gray, -1, LAPLACIAN_KERNEL, borderType=cv2.BORDER_REPLICATE)
    return filtered, float(filtered.var(dtype=np.float64))
