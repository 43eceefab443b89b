"""Constants shared by the map generators."""
from __future__ import annotations

MAP_PARAMETERS = {
    # Albedo
    "ALBEDO_SATURATION_BOOST": 1.1,
    # Height local-contrast enhancement
    "HEIGHT_CONTRAST_THRESHOLD": 10,
    "HEIGHT_CONTRAST_FACTOR": 1.2,
    # Normal encoding
    "NORMAL_STRENGTH": 2.0,
    "NORMAL_FLAT_BLUE_MIN": 128.0,
    # Metallic heuristics
    "METALLIC_LUMINANCE_MIN": 100.0,
    "METALLIC_LUMINANCE_SPAN": 155.0,
    "METALLIC_DESATURATION_BOOST": 1.5,
    "METALLIC_GRAYISH_MIN": 200.0,
    "METALLIC_GRAYISH_LUMINANCE_MIN": 120.0,
    "METALLIC_GRAYISH_WEIGHT": 0.3,
    # Roughness
    "ROUGHNESS_VARIANCE_GAIN": 3.0,
    "ROUGHNESS_FLOOR": 80.0,
    # Ambient occlusion
    "AO_RADIUS": 3,
    "AO_GAIN": 1.5,
    "AO_FLOOR": 50.0,
}

TEXTURE_KINDS = ("albedo", "height", "normal", "metallic", "roughness", "occlusion")
GRAYSCALE_KINDS = ("height", "metallic", "roughness", "occlusion")

__all__ = ["GRAYSCALE_KINDS", "MAP_PARAMETERS", "TEXTURE_KINDS"]
