"""Unit tests for the albedo, normal, metallic and roughness generators."""
from __future__ import annotations

import pytest

pytest.importorskip("numpy")

import numpy as np

from photo_pbr.core.pixel_buffer import PixelBuffer
from photo_pbr.modules.surface_maps import albedo_map, metallic_map, normal_map, roughness_map


def _gray_buffer(values: np.ndarray) -> PixelBuffer:
    return PixelBuffer.from_gray(values)


def _textured(size: int = 12, seed: int = 3) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer.from_array(rng.integers(0, 256, size=(size, size, 3), dtype=np.uint8))


def _assert_grayscale(buffer: PixelBuffer) -> None:
    rgb = buffer.data[..., :3]
    np.testing.assert_array_equal(rgb[..., 0], rgb[..., 1])
    np.testing.assert_array_equal(rgb[..., 1], rgb[..., 2])


def test_albedo_boosts_saturation() -> None:
    source = PixelBuffer.blank(2, 2, (100, 150, 200))
    result = albedo_map.generate(source)
    assert tuple(result.data[0, 0]) == (95, 150, 205, 255)


def test_albedo_clamps_and_keeps_gray() -> None:
    data = np.array([[[0, 0, 255], [90, 90, 90]]], dtype=np.uint8)
    result = albedo_map.generate(PixelBuffer.from_array(data))
    assert tuple(result.data[0, 0, :3]) == (0, 0, 255)
    assert tuple(result.data[0, 1, :3]) == (90, 90, 90)
    assert np.all(result.data[..., 3] == 255)


def test_generators_do_not_mutate_input() -> None:
    source = _textured()
    snapshot = source.data.copy()
    for module in (albedo_map, metallic_map, normal_map, roughness_map):
        module.generate(source)
    np.testing.assert_array_equal(source.data, snapshot)


@pytest.mark.parametrize(
    ("color", "expected"),
    [
        ((200, 200, 200), 255),
        ((150, 150, 150), 200),
        ((50, 50, 50), 0),
        ((255, 0, 0), 0),
    ],
)
def test_metallic_heuristic(color, expected) -> None:
    result = metallic_map.generate(PixelBuffer.blank(3, 3, color))
    assert int(result.data[1, 1, 0]) == expected
    _assert_grayscale(result)
    assert np.all(result.data[..., 3] == 255)


def test_metallic_is_grayscale_on_texture() -> None:
    _assert_grayscale(metallic_map.generate(_textured()))


def test_roughness_flat_surface_is_smooth() -> None:
    result = roughness_map.generate(PixelBuffer.blank(6, 6, (120, 80, 60)))
    assert np.all(result.data[..., :3] == 255)


def test_roughness_uses_eight_neighbour_average() -> None:
    values = np.full((5, 5), 100.0)
    values[2, 2] = 124.0
    result = roughness_map.generate(_gray_buffer(values)).data[..., 0]

    assert result[2, 2] == 183  # 255 - 24 * 3
    expected = np.full((5, 5), 246)  # 255 - (24 / 8) * 3, borders replicated
    expected[2, 2] = 183
    np.testing.assert_array_equal(result, expected)


def test_roughness_floor() -> None:
    yy, xx = np.mgrid[0:6, 0:6]
    checker = np.where((xx + yy) % 2 == 0, 0.0, 255.0)
    result = roughness_map.generate(_gray_buffer(checker))
    assert np.all(result.data[..., :3] == 80)


def test_roughness_tiny_image() -> None:
    result = roughness_map.generate(PixelBuffer.blank(2, 5, (10, 200, 30)))
    assert result.size == (2, 5)
    assert np.all(result.data[..., :3] == 255)


def test_normal_flat_surface() -> None:
    result = normal_map.generate(PixelBuffer.blank(4, 4, (90, 90, 90)))
    assert np.all(result.data[..., 0] == 128)
    assert np.all(result.data[..., 1] == 128)
    assert np.all(result.data[..., 2] == 255)
    assert normal_map.normal_blue_mean(result) > 128


def test_normal_tilts_against_brightening_direction() -> None:
    ramp = np.tile(np.linspace(0, 255, 8), (8, 1))
    result = normal_map.generate(_gray_buffer(ramp))
    interior = result.data[2:-2, 2:-2]
    assert np.all(interior[..., 0] < 128)
    assert np.all(interior[..., 1] == 128)


@pytest.mark.parametrize("kind", ["sobel", "scharr", "prewitt", "roberts", "laplacian"])
def test_normal_vectors_have_unit_length(kind: str) -> None:
    result = normal_map.generate(_textured(), kind)
    lengths = np.linalg.norm(normal_map.decode(result), axis=-1)
    assert np.all(np.abs(lengths - 1.0) < 0.02)
    assert np.all(result.data[..., 3] == 255)


def test_edge_detection_changes_normal_map() -> None:
    source = _textured()
    sobel_map = normal_map.generate(source, "sobel")
    laplacian_map = normal_map.generate(source, "laplacian")
    assert sobel_map != laplacian_map


def test_renormalize_restores_unit_length() -> None:
    data = np.zeros((2, 2, 4), dtype=np.uint8)
    data[..., 0] = 128
    data[..., 1] = 200
    data[..., 2] = 128
    data[..., 3] = 255
    data[0, 0, :3] = (128, 128, 128)  # zero vector
    result = normal_map.renormalize(PixelBuffer(data))
    lengths = np.linalg.norm(normal_map.decode(result), axis=-1)
    assert np.all(np.abs(lengths - 1.0) < 0.02)
    assert tuple(result.data[0, 0, :3]) == (128, 128, 255)


def test_renormalize_keeps_short_but_real_vectors() -> None:
    data = np.zeros((1, 2, 4), dtype=np.uint8)
    data[..., 3] = 255
    data[0, 0, :3] = (129, 127, 128)  # inside one encoding step of zero
    data[0, 1, :3] = (140, 128, 128)  # short vector pointing along +x
    result = normal_map.renormalize(PixelBuffer(data))
    assert tuple(result.data[0, 0, :3]) == (128, 128, 255)
    tilted = result.data[0, 1]
    assert tilted[0] == 255
    assert tilted[1] == tilted[2]
