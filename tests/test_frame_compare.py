"""Unit tests for pairwise frame comparison."""

import cv2
import numpy as np
import pytest

from errors import DimensionMismatchError, InvalidDimensionsError
from frame_compare import ComparisonResult, compare, compare_with_previous


def _frame(seed=7, shape=(64, 64)):
    img = np.random.default_rng(seed).integers(0, 256, shape, dtype=np.uint8)
    return cv2.GaussianBlur(img, (5, 5), 1.5)


def test_self_comparison_is_a_fixed_point():
    img = _frame()
    result = compare(img, img, False)
    assert result.ssim_score == pytest.approx(1.0)
    assert result.rms_error == 0.0
    assert result.hsim_score == pytest.approx(1.0)
    assert result.diff_map is None


def test_different_dimensions_fail_fast():
    with pytest.raises(DimensionMismatchError) as excinfo:
        compare(_frame(shape=(64, 64)), _frame(shape=(48, 64)))
    assert "64x64" in str(excinfo.value)
    assert "64x48" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)


def test_rms_error_of_constant_offset():
    a = np.zeros((16, 16), dtype=np.uint8)
    b = np.full((16, 16), 10, dtype=np.uint8)
    assert compare(a, b).rms_error == pytest.approx(10.0)


def test_rms_can_be_skipped():
    img = _frame()
    assert compare(img, img, compute_rms=False).rms_error is None


def test_distorted_frame_scores_lower():
    img = _frame()
    noisy = np.clip(img.astype(np.int16) + np.random.default_rng(8).integers(-40, 41, img.shape), 0, 255).astype(
        np.uint8
    )
    result = compare(img, noisy)
    assert result.ssim_score < 0.99
    assert result.rms_error > 0.0


def test_diff_map_only_on_request():
    a = _frame(seed=9)
    b = _frame(seed=10)
    assert compare(a, b).diff_map is None
    diff_map = compare(a, b, generate_diff_map=True).diff_map
    assert diff_map.shape == (64, 64, 3)
    assert diff_map.dtype == np.uint8


def test_comparison_is_deterministic():
    a = _frame(seed=11)
    b = _frame(seed=12)
    assert compare(a, b) == compare(a, b)


def test_window_shrinks_for_small_frames():
    a = np.arange(16, dtype=np.uint8).reshape(4, 4)
    assert compare(a, a).ssim_score == pytest.approx(1.0)


def test_frames_too_small_for_ssim_are_rejected():
    a = np.zeros((2, 2), dtype=np.uint8)
    with pytest.raises(InvalidDimensionsError):
        compare(a, a)


def test_histogram_correlation_ignores_pixel_positions():
    a = _frame(seed=13)
    flipped = np.ascontiguousarray(a[:, ::-1])
    result = compare(a, flipped)
    assert result.hsim_score == pytest.approx(1.0)
    assert result.ssim_score < 1.0


def test_compare_with_previous_handles_first_frame():
    img = _frame()
    assert compare_with_previous(None, img) is None
    result = compare_with_previous(img, img, compute_rms=False)
    assert isinstance(result, ComparisonResult)
    assert result.rms_error is None


def test_as_dict_omits_diff_map():
    img = _frame()
    data = compare(img, img, generate_diff_map=True).as_dict()
    assert set(data) == {"rms_error", "ssim_score", "hsim_score"}
