"""Approximate ambient occlusion from neighbourhood brightness."""
from __future__ import annotations

import numpy as np
from scipy import ndimage

from photo_pbr.core.parameters import MAP_PARAMETERS
from photo_pbr.core.pixel_buffer import PixelBuffer


def occlusion_weights(radius: int) -> np.ndarray:
    """Square ``(2r+1)^2`` kernel of ``max(0, radius - euclidean distance)``."""

    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    dy, dx = np.meshgrid(offsets, offsets, indexing="ij")
    return np.maximum(0.0, radius - np.sqrt(dx * dx + dy * dy))


def weighted_mean_luminance(luminance: np.ndarray, radius: int) -> np.ndarray:
    """Distance-weighted mean of each pixel's neighbourhood, clipped at the image bounds."""

    weights = occlusion_weights(radius)
    total = ndimage.correlate(luminance, weights, mode="constant", cval=0.0)
    coverage = ndimage.correlate(np.ones_like(luminance), weights, mode="constant", cval=0.0)
    return total / coverage


def generate(buffer: PixelBuffer, radius: int = MAP_PARAMETERS["AO_RADIUS"]) -> PixelBuffer:
    """Create a soft ambient occlusion approximation: bright surroundings read as open."""

    # flat input must quantise to a single value; last-bit noise in the ratio would split it
    average = np.round(weighted_mean_luminance(buffer.luminance(), radius), 6)
    occlusion = np.minimum(255.0, (255.0 - average) * MAP_PARAMETERS["AO_GAIN"])
    occlusion = np.maximum(occlusion, MAP_PARAMETERS["AO_FLOOR"])
    return PixelBuffer.from_gray(occlusion)


if __name__ == "__main__":  # pragma: no cover
    sample = PixelBuffer.blank(16, 16, (40, 80, 120))
    generate(sample).to_image().show()
