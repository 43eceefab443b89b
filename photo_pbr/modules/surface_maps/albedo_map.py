"""Base color (albedo) map with a mild saturation lift."""
from __future__ import annotations

import numpy as np

from photo_pbr.core.parameters import MAP_PARAMETERS
from photo_pbr.core.pixel_buffer import PixelBuffer


def generate(buffer: PixelBuffer, boost: float = MAP_PARAMETERS["ALBEDO_SATURATION_BOOST"]) -> PixelBuffer:
    """Push every channel away from the pixel's gray average by *boost*."""

    rgb = buffer.rgb()
    avg = rgb.sum(axis=-1, keepdims=True) / 3.0
    boosted = np.clip(avg + (rgb - avg) * boost, 0.0, 255.0)
    return PixelBuffer.from_array(np.rint(boosted).astype(np.uint8))


if __name__ == "__main__":  # pragma: no cover
    sample = PixelBuffer.blank(16, 16, (200, 120, 80))
    generate(sample).to_image().show()
