"""Unit tests for FAST corner counting."""

import numpy as np
import pytest

from corners import (
    CornerVariant,
    corner_density,
    count_corners,
    count_corners_fast9,
    count_corners_fast12,
    estimate_max_corners,
)
from errors import InvalidDimensionsError


def test_flat_frame_has_no_corners():
    img = np.full((40, 40), 128, dtype=np.uint8)
    assert count_corners_fast12(img) == 0
    assert count_corners_fast9(img) == 0


def test_isolated_bright_pixel_is_one_corner():
    img = np.zeros((20, 20), dtype=np.uint8)
    img[10, 10] = 255
    assert count_corners(img, variant=CornerVariant.FAST12) == 1
    assert count_corners(img, variant=CornerVariant.FAST9) == 1


def test_contrast_below_threshold_is_ignored():
    img = np.zeros((20, 20), dtype=np.uint8)
    img[10, 10] = 20
    assert count_corners(img, threshold=32) == 0
    assert count_corners(img, threshold=10) == 1


def test_short_arc_is_more_permissive():
    img = np.zeros((32, 32), dtype=np.uint8)
    img[11:21, 11:21] = 255
    fast9 = count_corners_fast9(img)
    assert fast9 > 0
    assert fast9 >= count_corners_fast12(img)


def test_textured_frame_counts_hold_across_variants():
    img = np.random.default_rng(4).integers(0, 256, (48, 48), dtype=np.uint8)
    assert count_corners_fast9(img) >= count_corners_fast12(img) > 0


def test_pixels_inside_border_are_not_tested():
    img = np.zeros((20, 20), dtype=np.uint8)
    img[1, 1] = 255
    assert count_corners(img) == 0


def test_tiny_frames_have_no_testable_pixels():
    img = np.zeros((6, 40), dtype=np.uint8)
    img[3, 20] = 255
    assert count_corners(img) == 0


def test_variant_accepts_string_names():
    img = np.zeros((20, 20), dtype=np.uint8)
    img[10, 10] = 255
    assert count_corners(img, variant="fast9") == 1
    assert CornerVariant.FAST12.arc_length == 12
    assert CornerVariant.FAST9.arc_length == 9


def test_estimate_max_corners():
    assert estimate_max_corners(100, 50, 25) == (94 * 44) // 25
    assert estimate_max_corners(7, 7, 1) == 1


@pytest.mark.parametrize("width,height,density", [(100, 100, 0), (6, 100, 25), (100, 6, 25), (100, 100, -1)])
def test_estimate_rejects_degenerate_inputs(width, height, density):
    with pytest.raises(InvalidDimensionsError):
        estimate_max_corners(width, height, density)


def test_corner_density_normalises_by_testable_area():
    assert corner_density(47, 16, 16) == pytest.approx(47 / 100.0)
