"""Metalness estimation from brightness and lack of saturation."""
from __future__ import annotations

import numpy as np

from photo_pbr.core.parameters import MAP_PARAMETERS
from photo_pbr.core.pixel_buffer import PixelBuffer


def _saturation(rgb: np.ndarray) -> np.ndarray:
    maxc = rgb.max(axis=-1)
    minc = rgb.min(axis=-1)
    sat = np.zeros_like(maxc)
    valid = maxc > 0
    sat[valid] = (maxc[valid] - minc[valid]) / maxc[valid] * 255.0
    return sat


def _grayishness(rgb: np.ndarray) -> np.ndarray:
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    return 255.0 - np.abs(r - g) - np.abs(g - b) - np.abs(r - b)


def generate(buffer: PixelBuffer) -> PixelBuffer:
    """Estimate metallic regions: bright, desaturated and near-gray pixels score high."""

    rgb = buffer.rgb()
    luminance = buffer.luminance()
    saturation = _saturation(rgb)

    lum_min = MAP_PARAMETERS["METALLIC_LUMINANCE_MIN"]
    metallic = np.where(
        luminance > lum_min,
        ((luminance - lum_min) / MAP_PARAMETERS["METALLIC_LUMINANCE_SPAN"])
        * 255.0
        * (1.0 - saturation / 255.0)
        * MAP_PARAMETERS["METALLIC_DESATURATION_BOOST"],
        0.0,
    )

    grayish = _grayishness(rgb)
    boost = (grayish > MAP_PARAMETERS["METALLIC_GRAYISH_MIN"]) & (
        luminance > MAP_PARAMETERS["METALLIC_GRAYISH_LUMINANCE_MIN"]
    )
    metallic = np.where(
        boost,
        np.minimum(255.0, metallic + grayish * MAP_PARAMETERS["METALLIC_GRAYISH_WEIGHT"]),
        metallic,
    )
    return PixelBuffer.from_gray(np.clip(metallic, 0.0, 255.0))


if __name__ == "__main__":  # pragma: no cover
    sample = PixelBuffer.blank(16, 16, (180, 180, 190))
    generate(sample).to_image().show()
