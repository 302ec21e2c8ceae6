"""No-reference frame quality scoring."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np

from config import AnalysisConfig, NominalRangeConfig
from corners import CornerVariant, count_corners
from geometry import ensure_gray
from histogram import histogram_stats
from sharpness import laplacian_sharpness


class AnalysisMode(str, Enum):
    """FULL computes every metric; FAST keeps the cheap per-frame subset."""

    FULL = "full"
    FAST = "fast"


@dataclass(frozen=True)
class QualityAttributes:
    """Inherent quality of one grayscale frame."""

    width: int
    height: int
    sharpness: float = 0.0
    mean_intensity: int = 0
    hist_spread: float = 0.0
    hist_flatness: float = 0.0
    dark_pixel_count: int = 0
    bright_pixel_count: int = 0
    dark_percent: float = 0.0
    bright_percent: float = 0.0
    hist_spike_count: int = 0
    corner_count_fast12: int = 0
    corner_count_fast9: int = 0

    def as_dict(self) -> Dict[str, Union[int, float]]:
        return asdict(self)


@dataclass
class FrameEvaluation:
    """Result of checking a frame against calibrated nominal ranges."""

    passes: bool
    scores: Dict[str, float]
    failed_filters: List[str] = field(default_factory=list)


def analyze(
    buffer: np.ndarray,
    mode: Union[AnalysisMode, str] = AnalysisMode.FULL,
    config: Optional[AnalysisConfig] = None,
) -> QualityAttributes:
    """Compute the quality attributes of a grayscale buffer.

    FAST mode skips the Laplacian, the histogram entropy and the FAST-9
    detector; those fields stay at zero.
    """

    gray = ensure_gray(buffer)
    mode = AnalysisMode(mode)
    config = config or AnalysisConfig()
    full = mode is AnalysisMode.FULL

    sharpness = laplacian_sharpness(gray)[1] if full else 0.0
    hist = histogram_stats(
        gray,
        include_entropy=full,
        dark_threshold=config.dark_threshold,
        bright_threshold=config.bright_threshold,
        spike_ratio=config.spike_ratio,
    )
    fast12 = count_corners(gray, config.corner_threshold, CornerVariant.FAST12)
    fast9 = count_corners(gray, config.corner_threshold, CornerVariant.FAST9) if full else 0

    height, width = gray.shape
    return QualityAttributes(
        width=width,
        height=height,
        sharpness=sharpness,
        mean_intensity=hist.mean_intensity,
        hist_spread=hist.hist_spread,
        hist_flatness=hist.hist_flatness,
        dark_pixel_count=hist.dark_pixel_count,
        bright_pixel_count=hist.bright_pixel_count,
        dark_percent=hist.dark_percent,
        bright_percent=hist.bright_percent,
        hist_spike_count=hist.spike_count,
        corner_count_fast12=fast12,
        corner_count_fast9=fast9,
    )


def _zscore(value: float, mean: float, stddev: float) -> float:
    return (value - mean) / stddev


def evaluate_nominal(attrs: QualityAttributes, ranges: NominalRangeConfig) -> FrameEvaluation:
    """Flag frames whose intensity, spread or FAST-12 texture leave the calibrated band."""

    scores = {
        "intensity": _zscore(attrs.mean_intensity, ranges.intensity_mean, ranges.intensity_stddev),
        "spread": _zscore(attrs.hist_spread, ranges.spread_mean, ranges.spread_stddev),
        "corners": _zscore(attrs.corner_count_fast12, ranges.corners_mean, ranges.corners_stddev),
    }
    failed = [name for name, score in scores.items() if abs(score) > ranges.max_zscore]
    return FrameEvaluation(passes=not failed, scores=scores, failed_filters=failed)
