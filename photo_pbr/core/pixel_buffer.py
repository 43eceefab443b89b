"""RGBA raster container shared by every stage of the pipeline."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image

from .errors import InvalidInputError

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@dataclass
class PixelBuffer:
    """A ``width x height`` RGBA image stored row-major as ``uint8``.

    ``data`` has shape ``(height, width, 4)`` so ``data.size`` is always
    ``width * height * 4``. Stages treat an incoming buffer as read-only and
    return a freshly allocated one.
    """

    data: np.ndarray

    def __post_init__(self) -> None:
        array = np.asarray(self.data)
        if array.ndim != 3 or array.shape[2] != 4:
            raise InvalidInputError(f"PixelBuffer expects (height, width, 4) data, got {array.shape}")
        if array.shape[0] <= 0 or array.shape[1] <= 0:
            raise InvalidInputError(f"PixelBuffer dimensions must be positive, got {array.shape[1]}x{array.shape[0]}")
        if array.dtype != np.uint8:
            array = np.clip(np.rint(array), 0, 255).astype(np.uint8)
        self.data = np.ascontiguousarray(array)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @classmethod
    def blank(cls, width: int, height: int, color: tuple[int, int, int] = (0, 0, 0)) -> "PixelBuffer":
        """Return an opaque buffer filled with *color*."""

        if width <= 0 or height <= 0:
            raise InvalidInputError(f"PixelBuffer dimensions must be positive, got {width}x{height}")
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[..., :3] = color
        data[..., 3] = 255
        return cls(data)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build a buffer from a gray, RGB or RGBA array; missing alpha becomes 255."""

        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.repeat(arr[..., None], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise InvalidInputError(f"Unsupported array shape for PixelBuffer: {arr.shape}")
        if arr.dtype != np.uint8:
            arr = np.clip(np.rint(arr), 0, 255).astype(np.uint8)
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        return cls(arr.copy())

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Decode a PIL image into an RGBA buffer."""

        width, height = image.size
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def from_bytes(cls, width: int, height: int, raw: bytes) -> "PixelBuffer":
        """Wrap a raw RGBA byte string of exactly ``width * height * 4`` bytes."""

        if width <= 0 or height <= 0:
            raise InvalidInputError(f"PixelBuffer dimensions must be positive, got {width}x{height}")
        if len(raw) != width * height * 4:
            raise InvalidInputError(
                f"Expected {width * height * 4} bytes for a {width}x{height} buffer, got {len(raw)}"
            )
        array = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, 4)
        return cls(array.copy())

    @classmethod
    def from_gray(cls, values: np.ndarray) -> "PixelBuffer":
        """Build an opaque grayscale buffer (R == G == B) from a 2-D array of 0-255 values."""

        channel = np.clip(np.rint(values), 0, 255).astype(np.uint8)
        data = np.empty(channel.shape + (4,), dtype=np.uint8)
        data[..., 0] = channel
        data[..., 1] = channel
        data[..., 2] = channel
        data[..., 3] = 255
        return cls(data)

    def rgb(self) -> np.ndarray:
        """Return the color channels as ``float64``."""

        return self.data[..., :3].astype(np.float64)

    def luminance(self) -> np.ndarray:
        """Perceptual luminance ``0.299R + 0.587G + 0.114B`` in the 0-255 range."""

        rgb = self.rgb()
        return rgb[..., 0] * LUMA_WEIGHTS[0] + rgb[..., 1] * LUMA_WEIGHTS[1] + rgb[..., 2] * LUMA_WEIGHTS[2]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(np.array_equal(self.data, other.data))


__all__ = ["LUMA_WEIGHTS", "PixelBuffer"]
