"""Tests for configuration, pixel buffers and the image/IO helpers."""
from __future__ import annotations

import json

import pytest

pytest.importorskip("numpy")
pytest.importorskip("PIL")

import numpy as np
from PIL import Image

from photo_pbr.core import config
from photo_pbr.core.errors import InvalidInputError, PBRPipelineError, PipelineBusyError
from photo_pbr.core.pixel_buffer import PixelBuffer
from photo_pbr.core.utils_image import (
    center_crop_box,
    crop_to_square,
    decode_image,
    encode_png,
    tile_grid,
    to_data_url,
    to_pil_image,
)
from photo_pbr.core.utils_io import SafeFileManager
from photo_pbr.core.utils_parallel import run_parallel


def test_build_config_defaults_and_overrides() -> None:
    defaults = config.build_config()
    assert defaults["RESOLUTION"] == 512
    assert defaults["EDGE_DETECTION"] == "sobel"
    assert defaults["ENABLE_TILING"] is True
    assert "IMAGE_FORMAT" not in defaults

    cfg = config.build_config({"RESOLUTION": 256, "UNKNOWN": 1, "TILING": {"max_blend": 16}})
    assert cfg["RESOLUTION"] == 256
    assert "UNKNOWN" not in cfg
    assert cfg["TILING"]["max_blend"] == 16
    assert cfg["TILING"]["min_blend"] == 8


def test_tiling_settings_accepts_flat_and_nested() -> None:
    assert config.tiling_settings()["seam_tolerance"] == 2
    assert config.tiling_settings({"TILING": {"blend_ratio": 0.3}})["blend_ratio"] == 0.3
    assert config.tiling_settings({"zone_ratio": 0.1})["zone_ratio"] == 0.1


def test_error_hierarchy() -> None:
    assert issubclass(PipelineBusyError, PBRPipelineError)
    assert issubclass(PipelineBusyError, RuntimeError)
    assert issubclass(InvalidInputError, ValueError)


def test_pixel_buffer_rejects_bad_shapes() -> None:
    with pytest.raises(InvalidInputError):
        PixelBuffer.blank(0, 4)
    with pytest.raises(InvalidInputError):
        PixelBuffer.from_bytes(2, 2, b"\x00" * 15)
    with pytest.raises(InvalidInputError):
        PixelBuffer(np.zeros((2, 2, 3), dtype=np.uint8))


def test_pixel_buffer_from_array_adds_opaque_alpha() -> None:
    buffer = PixelBuffer.from_array(np.full((3, 5), 70, dtype=np.uint8))
    assert buffer.size == (5, 3)
    assert buffer.data.shape == (3, 5, 4)
    assert np.all(buffer.data[..., :3] == 70)
    assert np.all(buffer.data[..., 3] == 255)
    assert PixelBuffer.from_bytes(5, 3, buffer.tobytes()) == buffer


def test_luminance_weights() -> None:
    buffer = PixelBuffer.blank(1, 1, (255, 0, 0))
    assert buffer.luminance()[0, 0] == pytest.approx(76.245)


def test_center_crop_box() -> None:
    assert center_crop_box(60, 20) == (20, 0, 40, 20)
    assert center_crop_box(10, 15) == (0, 2.5, 10, 12.5)
    with pytest.raises(InvalidInputError):
        center_crop_box(0, 5)


def test_crop_to_square_keeps_centre() -> None:
    data = np.zeros((20, 60, 3), dtype=np.uint8)
    data[:, :20, 0] = 255
    data[:, 20:40, 1] = 255
    data[:, 40:, 2] = 255
    result = crop_to_square(Image.fromarray(data), 20)
    assert result.size == (20, 20)
    rgb = result.rgb()
    assert rgb[..., 1].mean() > 200
    assert rgb[..., 0].mean() < 30
    assert rgb[..., 2].mean() < 30


def test_crop_to_square_resamples() -> None:
    result = crop_to_square(Image.new("RGB", (30, 50), (10, 120, 200)), 16)
    assert result.size == (16, 16)
    assert np.all(np.abs(result.rgb() - (10, 120, 200)) <= 1)
    assert np.all(result.data[..., 3] == 255)


def test_to_pil_image_rejects_unknown_types() -> None:
    with pytest.raises(InvalidInputError):
        to_pil_image(42)
    assert to_pil_image(PixelBuffer.blank(3, 2)).size == (3, 2)


def test_png_encoding_and_data_url() -> None:
    buffer = PixelBuffer.from_array(np.arange(48, dtype=np.uint8).reshape(4, 4, 3))
    payload = encode_png(buffer)
    assert decode_image(payload) == buffer
    url = to_data_url(payload)
    assert url.startswith("data:image/png;base64,")


def test_tile_grid_shape() -> None:
    grid = tile_grid(PixelBuffer.blank(3, 2, (1, 2, 3)), 2, 2)
    assert grid.shape == (4, 6, 4)


def test_run_parallel_preserves_order_and_raises() -> None:
    items = {"b": 2, "a": 1, "c": 3}
    assert list(run_parallel(lambda key, value: value * 10, items, max_workers=3).items()) == [
        ("b", 20),
        ("a", 10),
        ("c", 30),
    ]
    assert run_parallel(lambda key, value: key, items, max_workers=1) == {"b": "b", "a": "a", "c": "c"}

    def failing(key, value):
        if key == "a":
            raise KeyError(key)
        return value

    with pytest.raises(KeyError):
        run_parallel(failing, items, max_workers=2)


def test_safe_file_manager_writes_atomically(tmp_path) -> None:
    manager = SafeFileManager(tmp_path / "out")
    target = manager.atomic_write(b"payload", "nested/file.bin")
    assert target.read_bytes() == b"payload"
    info = manager.atomic_write_json({"value": 1, "path": tmp_path}, "info.json")
    assert json.loads(info.read_text(encoding="utf-8"))["value"] == 1
    manager.atomic_write(b"replaced", "nested/file.bin")
    assert target.read_bytes() == b"replaced"
    leftovers = [path.name for path in (tmp_path / "out").rglob("*.tmp")]
    assert leftovers == []


def test_pixel_buffer_rounds_float_data() -> None:
    data = np.full((1, 2, 4), 255.0)
    data[0, 0, :3] = (1.6, 2.4, 300.0)
    data[0, 1, :3] = (-3.0, 127.5, 128.5)
    buffer = PixelBuffer(data)
    assert buffer.data.dtype == np.uint8
    assert tuple(buffer.data[0, 0, :3]) == (2, 2, 255)
    assert tuple(buffer.data[0, 1, :3]) == (0, 128, 128)
    assert PixelBuffer(data) == PixelBuffer.from_array(data)
