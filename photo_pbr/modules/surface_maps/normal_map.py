"""Generate tangent-space normal maps from image luminance."""
from __future__ import annotations

import logging
import math

import numpy as np

from photo_pbr.core.parameters import MAP_PARAMETERS
from photo_pbr.core.pixel_buffer import PixelBuffer

from .edge_kernels import EdgeDetection, compute_gradients

LOGGER = logging.getLogger("photo_pbr.surface_maps.normal")

# one quantisation step on every axis; shorter encoded vectors carry no direction
DEGENERATE_LENGTH = 2.0 / 255.0 * math.sqrt(3.0)


def _encode(normal: np.ndarray) -> np.ndarray:
    # round half up, matching the canvas encoding
    encoded = np.floor((normal * 0.5 + 0.5) * 255.0 + 0.5)
    return np.clip(encoded, 0, 255).astype(np.uint8)


def _to_buffer(normal: np.ndarray) -> PixelBuffer:
    rgb = _encode(normal)
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return PixelBuffer(np.concatenate([rgb, alpha], axis=2))


def _unit(vectors: np.ndarray) -> np.ndarray:
    length = np.linalg.norm(vectors, axis=-1, keepdims=True)
    return vectors / np.clip(length, 1e-12, None)


def decode(buffer: PixelBuffer) -> np.ndarray:
    """Decode encoded pixels back to vectors in ``[-1, 1]``."""

    return buffer.rgb() / 255.0 * 2.0 - 1.0


def generate(
    buffer: PixelBuffer,
    edge_detection: EdgeDetection | str = EdgeDetection.SOBEL,
    strength: float = MAP_PARAMETERS["NORMAL_STRENGTH"],
) -> PixelBuffer:
    """Create a tangent-space normal map using the selected gradient operator.

    Heights are luminance normalised to ``[0, 1]``. Each gradient becomes
    ``(-dx * strength, -dy * strength, 1)`` before normalisation and is stored as
    ``R = x``, ``G = y``, ``B = z``.
    """

    kind = EdgeDetection.parse(edge_detection)
    heights = buffer.luminance() / 255.0
    dx, dy = compute_gradients(heights, kind)

    normal = np.stack([-dx * strength, -dy * strength, np.ones_like(dx)], axis=-1)
    result = _to_buffer(_unit(normal))
    LOGGER.debug(
        "Normal map stats (%s): average blue channel = %.1f",
        kind.value,
        normal_blue_mean(result),
    )
    return result


def renormalize(buffer: PixelBuffer) -> PixelBuffer:
    """Re-project every encoded pixel onto a unit vector.

    Needed after any linear blend in encoded space, such as seamless tiling.
    A vector shorter than one encoding step becomes the flat normal ``(0, 0, 1)``.
    """

    vectors = decode(buffer)
    length = np.linalg.norm(vectors, axis=-1)
    flat = length < DEGENERATE_LENGTH
    if np.any(flat):
        vectors[flat] = (0.0, 0.0, 1.0)
    return _to_buffer(_unit(vectors))


def normal_blue_mean(buffer: PixelBuffer) -> float:
    """Mean blue channel; a flat-ish surface should score above 128."""

    return float(buffer.data[..., 2].mean())


if __name__ == "__main__":  # pragma: no cover - manual smoke test
    sample = PixelBuffer.blank(16, 16, (120, 100, 90))
    generate(sample).to_image().show()
