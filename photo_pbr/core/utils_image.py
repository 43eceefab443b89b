"""Image helpers for decoding sources, square cropping and encoding maps."""
from __future__ import annotations

import base64
import io
from typing import Union

import numpy as np
from PIL import Image

from .errors import InvalidInputError
from .pixel_buffer import PixelBuffer

SourceImage = Union[Image.Image, np.ndarray, PixelBuffer]


def to_pil_image(source: SourceImage) -> Image.Image:
    """Return *source* as an RGBA :class:`~PIL.Image.Image`."""

    if isinstance(source, PixelBuffer):
        return source.to_image()
    if isinstance(source, Image.Image):
        width, height = source.size
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
        return source.convert("RGBA")
    if isinstance(source, np.ndarray):
        if source.ndim < 2 or source.shape[0] == 0 or source.shape[1] == 0:
            raise InvalidInputError(f"Image array must be non-empty, got shape {source.shape}")
        return PixelBuffer.from_array(source).to_image()
    raise InvalidInputError(f"Unsupported source image type: {type(source).__name__}")


def center_crop_box(width: int, height: int) -> tuple[float, float, float, float]:
    """Return the ``(left, top, right, bottom)`` box of the centred square crop."""

    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
    source_size = min(width, height)
    offset_x = (width - source_size) / 2
    offset_y = (height - source_size) / 2
    return offset_x, offset_y, offset_x + source_size, offset_y + source_size


def crop_to_square(source: SourceImage, resolution: int) -> PixelBuffer:
    """Center-crop *source* to a square and resample it to ``resolution x resolution``.

    The crop uses the shorter side so the output is never distorted. Resampling
    is bicubic; sub-pixel crop offsets on odd differences are handled by the
    resampling box rather than by rounding.
    """

    if resolution <= 0:
        raise InvalidInputError(f"Resolution must be positive, got {resolution}")
    image = to_pil_image(source)
    box = center_crop_box(*image.size)
    if image.size == (resolution, resolution):
        return PixelBuffer.from_image(image)
    resized = image.resize((resolution, resolution), resample=Image.Resampling.BICUBIC, box=box)
    return PixelBuffer.from_image(resized)


def encode_png(buffer: PixelBuffer) -> bytes:
    """Encode *buffer* as PNG bytes."""

    stream = io.BytesIO()
    buffer.to_image().save(stream, format="PNG")
    return stream.getvalue()


def decode_image(payload: bytes) -> PixelBuffer:
    """Decode encoded image bytes (PNG, JPEG, ...) into a buffer."""

    with Image.open(io.BytesIO(payload)) as image:
        image.load()
        return PixelBuffer.from_image(image)


def to_data_url(payload: bytes, mime_type: str = "image/png") -> str:
    """Return *payload* as a ``data:`` URL."""

    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def tile_grid(buffer: PixelBuffer, columns: int = 2, rows: int = 2) -> np.ndarray:
    """Repeat *buffer* in a ``rows x columns`` grid and return the raw array."""

    return np.tile(buffer.data, (rows, columns, 1))


__all__ = [
    "SourceImage",
    "center_crop_box",
    "crop_to_square",
    "decode_image",
    "encode_png",
    "tile_grid",
    "to_data_url",
    "to_pil_image",
]
