"""Generate height maps from luminance with local contrast enhancement."""
from __future__ import annotations

import numpy as np
from scipy import ndimage

from photo_pbr.core.parameters import MAP_PARAMETERS
from photo_pbr.core.pixel_buffer import PixelBuffer


def grayscale(buffer: PixelBuffer) -> np.ndarray:
    """Luminance rounded half-up to whole 0-255 steps."""

    return np.floor(buffer.luminance() + 0.5)


def enhance_local_contrast(
    gray: np.ndarray,
    threshold: float = MAP_PARAMETERS["HEIGHT_CONTRAST_THRESHOLD"],
    factor: float = MAP_PARAMETERS["HEIGHT_CONTRAST_FACTOR"],
) -> np.ndarray:
    """Push interior pixels away from the midpoint of their 3x3 window.

    Only windows whose range exceeds *threshold* are touched. Returns the
    ``(height - 2, width - 2)`` interior.
    """

    window_min = ndimage.minimum_filter(gray, size=3, mode="nearest")[1:-1, 1:-1]
    window_max = ndimage.maximum_filter(gray, size=3, mode="nearest")[1:-1, 1:-1]
    center = gray[1:-1, 1:-1]
    midpoint = (window_min + window_max) / 2.0
    enhanced = np.where(
        (window_max - window_min) > threshold,
        center + (center - midpoint) * factor,
        center,
    )
    return np.clip(enhanced, 0.0, 255.0)


def generate(buffer: PixelBuffer) -> PixelBuffer:
    """Convert luminance to a contrast-enhanced height map."""

    gray = grayscale(buffer)
    height, width = gray.shape
    if height < 3 or width < 3:
        return PixelBuffer.from_gray(gray)
    interior = enhance_local_contrast(gray)
    # border pixels replicate the nearest interior row/column
    return PixelBuffer.from_gray(np.pad(interior, 1, mode="edge"))


if __name__ == "__main__":  # pragma: no cover
    sample = PixelBuffer.blank(16, 16, (40, 80, 120))
    generate(sample).to_image().show()
