"""Unit tests for the Laplacian sharpness estimate."""

import cv2
import numpy as np

from sharpness import laplacian_sharpness


def test_constant_frame_has_zero_sharpness():
    img = np.full((32, 32), 128, dtype=np.uint8)
    filtered, score = laplacian_sharpness(img)
    assert score == 0.0
    assert filtered.shape == img.shape
    assert filtered.dtype == np.uint8
    assert not filtered.any()


def test_blur_metric_detects_soft_frames():
    sharp = np.zeros((64, 64), dtype=np.uint8)
    sharp[:, 32:] = 255
    blurred = cv2.GaussianBlur(sharp, (9, 9), 5)

    _, sharp_score = laplacian_sharpness(sharp)
    _, blur_score = laplacian_sharpness(blurred)
    assert sharp_score > blur_score


def test_response_saturates_to_eight_bits():
    img = np.zeros((16, 16), dtype=np.uint8)
    img[:, 8:] = 255
    filtered, _ = laplacian_sharpness(img)
    # bright side of the step: 4*255 - 3*255 = 255; dark side clips to 0
    assert np.all(filtered[:, 8] == 255)
    assert np.all(filtered[:, 7] == 0)


def test_noise_is_sharper_than_its_smoothed_copy():
    noise = np.random.default_rng(3).integers(0, 256, (64, 64), dtype=np.uint8)
    smooth = cv2.blur(noise, (5, 5))
    assert laplacian_sharpness(noise)[1] > laplacian_sharpness(smooth)[1] >= 0.0
