"""Single-pass intensity histogram statistics."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from geometry import ensure_gray

# Assuming a mid-gray Gaussian spread of intensities, values within roughly
# one standard deviation (255 / 6) of either end are treated as exceptional.
# Calibrated for one camera/lens; override through AnalysisConfig.
DARK_THRESHOLD = 43
BRIGHT_THRESHOLD = 255 - DARK_THRESHOLD

SPIKE_RATIO = 0.1

_BUCKETS = np.arange(256, dtype=np.int64)


@dataclass(frozen=True)
class HistogramStats:
    """Summary of a 256-bucket intensity histogram."""

    counts: np.ndarray
    total_pixels: int
    mean_intensity: int
    hist_spread: float
    hist_flatness: float
    dark_pixel_count: int
    bright_pixel_count: int
    dark_percent: float
    bright_percent: float
    spike_count: int


def intensity_histogram(buffer: np.ndarray) -> np.ndarray:
    """Return 256 int64 bucket counts."""

    gray = ensure_gray(buffer)
    return np.bincount(gray.ravel(), minlength=256).astype(np.int64)


def quartile_buckets(counts: np.ndarray, total: int) -> tuple[int, int]:
    """First buckets whose cumulative count reaches ``total // 4`` and ``3 * total // 4``."""

    cumulative = np.cumsum(counts)
    q1 = int(np.searchsorted(cumulative, total // 4, side="left"))
    q3 = int(np.searchsorted(cumulative, 3 * total // 4, side="left"))
    return q1, q3


def histogram_entropy(counts: np.ndarray, total: int) -> float:
    """Shannon entropy in bits of the normalised histogram, 0..8."""

    probabilities = counts[counts > 0] / float(total)
    return float(0.0 - np.sum(probabilities * np.log2(probabilities)))


def count_spikes(counts: np.ndarray, total: int, spike_ratio: float = SPIKE_RATIO) -> int:
    """Count populated buckets that jump above the previous populated bucket.

    The baseline for the first populated bucket is zero, so a histogram with
    one dominant bucket reports a single spike.
    """

    populated = counts[counts > 0]
    if populated.size == 0:
        return 0
    baseline = np.concatenate(([0], populated[:-1]))
    threshold = int(total * spike_ratio)
    return int(np.count_nonzero(populated - baseline > threshold))


def histogram_stats(
    buffer: np.ndarray,
    include_entropy: bool = True,
    dark_threshold: int = DARK_THRESHOLD,
    bright_threshold: int = BRIGHT_THRESHOLD,
    spike_ratio: float = SPIKE_RATIO,
) -> HistogramStats:
    """Compute mean, spread, flatness, exposure tails and spikes in one histogram pass."""

    counts = intensity_histogram(buffer)
    total = int(counts.sum())

    # halves round up
    mean_intensity = (2 * int(counts @ _BUCKETS) + total) // (2 * total)
    q1, q3 = quartile_buckets(counts, total)
    flatness = histogram_entropy(counts, total) if include_entropy else 0.0

    dark = int(counts[:dark_threshold].sum())
    bright = int(counts[bright_threshold + 1 :].sum())

    return HistogramStats(
        counts=counts,
        total_pixels=total,
        mean_intensity=mean_intensity,
        hist_spread=(q3 - q1) / 255.0,
        hist_flatness=flatness,
        dark_pixel_count=dark,
        bright_pixel_count=bright,
        dark_percent=dark / total,
        bright_percent=bright / total,
        spike_count=count_spikes(counts, total, spike_ratio),
    )
