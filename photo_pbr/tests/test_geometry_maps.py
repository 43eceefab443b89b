"""Tests for the height and ambient occlusion generators."""
from __future__ import annotations

import pytest

pytest.importorskip("numpy")
pytest.importorskip("scipy")

import numpy as np

from photo_pbr.core.pixel_buffer import PixelBuffer
from photo_pbr.modules.geometry_maps import ambient_occlusion, height_map


def _gray_buffer(values: np.ndarray) -> PixelBuffer:
    return PixelBuffer.from_gray(values)


def test_height_flat_surface_keeps_luminance() -> None:
    result = height_map.generate(PixelBuffer.blank(5, 5, (100, 100, 100)))
    assert np.all(result.data[..., :3] == 100)
    assert np.all(result.data[..., 3] == 255)


def test_height_local_contrast_enhancement() -> None:
    values = np.full((5, 5), 100.0)
    values[2, 2] = 200.0
    result = height_map.generate(_gray_buffer(values)).data

    expected = np.full((5, 5), 40)  # 100 + (100 - 150) * 1.2
    expected[2, 2] = 255  # 200 + (200 - 150) * 1.2, clamped
    np.testing.assert_array_equal(result[..., 0], expected)
    np.testing.assert_array_equal(result[..., 0], result[..., 1])
    np.testing.assert_array_equal(result[..., 1], result[..., 2])


def test_height_low_contrast_window_untouched() -> None:
    values = np.full((5, 5), 100.0)
    values[2, 2] = 108.0
    result = height_map.generate(_gray_buffer(values)).data[..., 0]
    np.testing.assert_array_equal(result, values.astype(np.uint8))


def test_height_tiny_image_is_plain_grayscale() -> None:
    data = np.array([[[10, 20, 30], [200, 100, 50]]], dtype=np.uint8)
    source = PixelBuffer.from_array(data)
    result = height_map.generate(source)
    np.testing.assert_array_equal(result.data[..., 0], height_map.grayscale(source).astype(np.uint8))


def test_occlusion_kernel_shape() -> None:
    weights = ambient_occlusion.occlusion_weights(3)
    assert weights.shape == (7, 7)
    assert weights[3, 3] == pytest.approx(3.0)
    assert weights[0, 0] == 0.0
    assert weights[3, 0] == pytest.approx(0.0)


def test_occlusion_uniform_gray() -> None:
    result = ambient_occlusion.generate(PixelBuffer.blank(6, 6, (101, 101, 101)))
    assert np.all(result.data[..., :3] == 231)  # (255 - 101) * 1.5


@pytest.mark.parametrize("size", [(4, 4), (9, 6), (32, 32)])
def test_occlusion_half_step_gray_is_uniform(size) -> None:
    result = ambient_occlusion.generate(PixelBuffer.blank(*size, (128, 128, 128)))
    # (255 - 128) * 1.5 = 190.5, rounded half to even
    assert np.all(result.data[..., :3] == 190)


def test_occlusion_bright_surroundings_read_open() -> None:
    values = np.zeros((10, 10))
    values[:, :5] = 255.0
    result = ambient_occlusion.generate(_gray_buffer(values)).data[..., 0]
    assert result[5, 0] == 50
    assert result[5, 9] == 255
    assert result[5, 4] < result[5, 5]
