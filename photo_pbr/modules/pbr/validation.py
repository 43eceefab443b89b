"""Invariant checks and quality metrics for a generated PBR map set."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

import logging
import numpy as np

from photo_pbr.core.parameters import GRAYSCALE_KINDS, MAP_PARAMETERS
from photo_pbr.core.pixel_buffer import PixelBuffer
from photo_pbr.modules.surface_maps import normal_map
from photo_pbr.modules.tiling.seamless import seam_error

LOGGER = logging.getLogger("photo_pbr.pbr.validation")

NORMAL_LENGTH_TOLERANCE = 0.02


VALIDATION_CHECKS = {
    "dimensions": "Map is exactly resolution x resolution",
    "opaque_alpha": "Every alpha value equals 255",
    "grayscale": "R == G == B for every pixel of scalar maps",
    "unit_normals": "Decoded normals have unit length",
    "seamless": "Opposite borders match when the map is tiled",
}


@dataclass
class ValidationReport:
    issues: Dict[str, List[str]]

    @property
    def failing(self) -> Dict[str, List[str]]:
        return {name: values for name, values in self.issues.items() if values}

    def as_dict(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self.issues.items()}


def calculate_entropy(array: np.ndarray) -> float:
    """Shannon entropy (bits) of a ``[0, 1]`` array quantised to 256 bins."""

    values = np.clip((array * 255).astype(np.uint8), 0, 255)
    hist, _ = np.histogram(values, bins=256, range=(0, 255), density=False)
    prob = hist / max(hist.sum(), 1)
    prob = prob[prob > 0]
    return float(-(prob * np.log2(prob)).sum())


def _uniform_ratio(array: np.ndarray) -> float:
    _, counts = np.unique((array * 255).astype(np.uint8), return_counts=True)
    if len(counts) == 0:
        return 1.0
    return float(counts.max() / counts.sum())


def _gray_array(buffer: PixelBuffer) -> np.ndarray:
    return buffer.luminance() / 255.0


def normal_length_error(buffer: PixelBuffer) -> float:
    """Largest ``abs(|v| - 1)`` over the decoded normal vectors."""

    vectors = normal_map.decode(buffer)
    return float(np.abs(np.linalg.norm(vectors, axis=-1) - 1.0).max())


def validate_maps(
    maps: Mapping[str, PixelBuffer],
    resolution: Optional[int] = None,
    *,
    seamless: Iterable[str] = (),
    seam_tolerance: int = 2,
) -> ValidationReport:
    """Check the structural invariants every generated map must satisfy.

    *seamless* names the maps that went through tiling successfully; only those
    are held to the seam tolerance.
    """

    issues: Dict[str, List[str]] = {name: [] for name in maps.keys()}
    tiled = set(seamless)
    for name, buffer in maps.items():
        if resolution is not None and buffer.size != (resolution, resolution):
            issues[name].append("dimensions")
        if not np.all(buffer.data[..., 3] == 255):
            issues[name].append("opaque_alpha")
        if name in GRAYSCALE_KINDS:
            rgb = buffer.data[..., :3]
            if not (np.array_equal(rgb[..., 0], rgb[..., 1]) and np.array_equal(rgb[..., 1], rgb[..., 2])):
                issues[name].append("grayscale")
        if name == "normal" and normal_length_error(buffer) > NORMAL_LENGTH_TOLERANCE:
            issues[name].append("unit_normals")
        if name in tiled and seam_error(buffer) > seam_tolerance:
            issues[name].append("seamless")
    return ValidationReport(issues=issues)


def normal_map_diagnostics(buffer: PixelBuffer) -> Dict[str, object]:
    """Quality signal for a normal map; informative only, never enforced."""

    blue_mean = normal_map.normal_blue_mean(buffer)
    flat_min = MAP_PARAMETERS["NORMAL_FLAT_BLUE_MIN"]
    if blue_mean <= flat_min:
        LOGGER.warning(
            "Normal map average blue channel %.1f is not above %.0f; surface reads as steep",
            blue_mean,
            flat_min,
        )
    return {"average_blue": blue_mean, "flat_ok": blue_mean > flat_min}


def generate_quality_report(maps: Mapping[str, PixelBuffer]) -> Dict[str, object]:
    report: Dict[str, object] = {
        "flatness_analysis": {},
        "entropy_metrics": {},
    }
    for name, buffer in maps.items():
        array = _gray_array(buffer)
        report["flatness_analysis"][name] = {
            "min": float(array.min()),
            "max": float(array.max()),
            "ptp": float(array.max() - array.min()),
            "uniform_ratio": _uniform_ratio(array),
        }
        report["entropy_metrics"][name] = calculate_entropy(array)
    return report


def log_validation_issues(report: ValidationReport) -> None:
    failing = report.failing
    if not failing:
        LOGGER.info("All PBR maps validated successfully")
        return
    for name, values in failing.items():
        for check in values:
            LOGGER.warning("Map %s failed %s check: %s", name, check, VALIDATION_CHECKS[check])


__all__ = [
    "NORMAL_LENGTH_TOLERANCE",
    "VALIDATION_CHECKS",
    "ValidationReport",
    "calculate_entropy",
    "generate_quality_report",
    "log_validation_issues",
    "normal_length_error",
    "normal_map_diagnostics",
    "validate_maps",
]
