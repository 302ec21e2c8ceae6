"""Pairwise frame comparison: RMS error, SSIM and histogram correlation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

import cv2
import numpy as np
from skimage.metrics import structural_similarity

from errors import DimensionMismatchError, InvalidDimensionsError
from geometry import ensure_gray
from logging_utils import get_logger

LOGGER = get_logger(__name__)

DEFAULT_WIN_SIZE = 7

COLORMAPS = {
    "jet": cv2.COLORMAP_JET,
    "inferno": cv2.COLORMAP_INFERNO,
    "viridis": cv2.COLORMAP_VIRIDIS,
    "turbo": cv2.COLORMAP_TURBO,
}


@dataclass(frozen=True)
class ComparisonResult:
    """Similarity of a frame to a reference frame."""

    rms_error: Optional[float]
    ssim_score: float
    hsim_score: float
    diff_map: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    def as_dict(self) -> Dict[str, Optional[float]]:
        return {
            "rms_error": self.rms_error,
            "ssim_score": self.ssim_score,
            "hsim_score": self.hsim_score,
        }


def rms_error(a: np.ndarray, b: np.ndarray) -> float:
    diff = a.astype(np.float64) - b.astype(np.float64)
    return float(np.sqrt(np.mean(diff * diff)))


def _fit_window(shape: tuple, win_size: int) -> int:
    win = min(win_size, *shape)
    if win % 2 == 0:
        win -= 1
    if win < 3:
        raise InvalidDimensionsError(f"{shape[1]}x{shape[0]} is too small for an SSIM window")
    return win


def ssim_map(a: np.ndarray, b: np.ndarray, win_size: int = DEFAULT_WIN_SIZE):
    """Mean SSIM and the per-pixel SSIM map.

    Single-scale Wang et al. formulation with a uniform window, K1=0.01,
    K2=0.03 and an 8-bit dynamic range. The window shrinks to fit small
    buffers.
    """

    win = _fit_window(a.shape, win_size)
    score, full_map = structural_similarity(a, b, win_size=win, data_range=255, full=True)
    return float(score), full_map


def histogram_correlation(a: np.ndarray, b: np.ndarray) -> float:
    """Pearson correlation of the two 256-bucket histograms, -1..1."""

    hist_a = cv2.calcHist([a], [0], None, [256], [0, 256])
    hist_b = cv2.calcHist([b], [0], None, [256], [0, 256])
    return float(cv2.compareHist(hist_a, hist_b, cv2.HISTCMP_CORREL))


def render_diff_map(full_map: np.ndarray, colormap: str = "jet") -> np.ndarray:
    """False-colour BGR rendering of an SSIM map; low similarity is cold."""

    scaled = (np.clip(full_map, 0.0, 1.0) * 255.0).round().astype(np.uint8)
    return cv2.applyColorMap(scaled, COLORMAPS[colormap])


def compare(
    buffer_a: np.ndarray,
    buffer_b: np.ndarray,
    generate_diff_map: bool = False,
    compute_rms: bool = True,
    win_size: int = DEFAULT_WIN_SIZE,
    colormap: str = "jet",
) -> ComparisonResult:
    """Compare two same-sized grayscale buffers.

    Raises DimensionMismatchError before doing any work if the shapes differ.
    The colour map is only synthesised when ``generate_diff_map`` is set.
    """

    a = ensure_gray(buffer_a)
    b = ensure_gray(buffer_b)
    if a.shape != b.shape:
        raise DimensionMismatchError(a.shape, b.shape)

    rms = rms_error(a, b) if compute_rms else None
    ssim_score, full_map = ssim_map(a, b, win_size)
    hsim_score = histogram_correlation(a, b)

    diff_map = None
    if generate_diff_map:
        diff_map = render_diff_map(full_map, colormap)
        LOGGER.debug("Rendered %s SSIM map for %dx%d pair", colormap, a.shape[1], a.shape[0])

    return ComparisonResult(rms_error=rms, ssim_score=ssim_score, hsim_score=hsim_score, diff_map=diff_map)


def compare_with_previous(
    previous: Optional[np.ndarray],
    current: np.ndarray,
    **kwargs,
) -> Optional[ComparisonResult]:
    """Compare ``current`` against the caller-held previous frame, if any."""

    if previous is None:
        return None
    return compare(previous, current, **kwargs)
