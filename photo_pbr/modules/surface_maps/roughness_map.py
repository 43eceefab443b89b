"""Derive roughness from local luminance variation."""
from __future__ import annotations

import numpy as np

from photo_pbr.core.parameters import MAP_PARAMETERS
from photo_pbr.core.pixel_buffer import PixelBuffer

_NEIGHBOUR_OFFSETS = tuple((dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0))


def local_variation(luminance: np.ndarray) -> np.ndarray:
    """Mean absolute luminance difference between each interior pixel and its 8 neighbours.

    Returns an array of shape ``(height - 2, width - 2)``.
    """

    height, width = luminance.shape
    center = luminance[1:-1, 1:-1]
    total = np.zeros_like(center)
    for dy, dx in _NEIGHBOUR_OFFSETS:
        neighbour = luminance[1 + dy : height - 1 + dy, 1 + dx : width - 1 + dx]
        total += np.abs(neighbour - center)
    return total / len(_NEIGHBOUR_OFFSETS)


def generate(buffer: PixelBuffer) -> PixelBuffer:
    """Flat areas come out bright (255), busy areas darker, never below the floor."""

    luminance = buffer.luminance()
    height, width = luminance.shape
    if height < 3 or width < 3:
        return PixelBuffer.from_gray(np.full((height, width), 255.0))

    variance = local_variation(luminance)
    roughness = 255.0 - np.minimum(255.0, variance * MAP_PARAMETERS["ROUGHNESS_VARIANCE_GAIN"])
    roughness = np.maximum(roughness, MAP_PARAMETERS["ROUGHNESS_FLOOR"])
    # border pixels replicate the nearest interior row/column
    return PixelBuffer.from_gray(np.pad(roughness, 1, mode="edge"))


if __name__ == "__main__":  # pragma: no cover
    sample = PixelBuffer.blank(16, 16, (200, 180, 120))
    generate(sample).to_image().show()
