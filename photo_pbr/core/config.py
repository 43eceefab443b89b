"""Configuration module for the photo-to-PBR texture pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional


BASE_DIR = Path(__file__).resolve().parent.parent

PATH_INPUT = BASE_DIR / "input"
PATH_OUTPUT = BASE_DIR / "materials"

DEFAULT_RESOLUTION = 512
DEFAULT_EDGE_DETECTION = "sobel"
ENABLE_TILING = True
GENERATOR_NAME = "photo-pbr"


TILING_CONFIG: Dict[str, float] = {
    # blend zone thickness = clamp(floor(min(w, h) * blend_ratio), min_blend, max_blend)
    "blend_ratio": 0.15,
    "min_blend": 8,
    "max_blend": 32,
    # pixels this close (fraction of the side) to an edge take part in the blend
    "zone_ratio": 0.25,
    "edge_weight": 0.7,
    "radial_weight": 0.3,
    # max channel difference allowed across a 2x2 tiled seam
    "seam_tolerance": 2,
}


@dataclass
class PipelineConfig:
    """Runtime configuration for the PBR texture pipeline."""

    input_path: Path = PATH_INPUT
    output_path: Path = PATH_OUTPUT
    resolution: int = DEFAULT_RESOLUTION
    edge_detection: str = DEFAULT_EDGE_DETECTION
    enable_tiling: bool = ENABLE_TILING
    threads: int = 6
    log_file: Path = BASE_DIR / "processing.log"
    tiling: Dict[str, float] = field(default_factory=lambda: dict(TILING_CONFIG))

    def as_dict(self) -> Dict[str, object]:
        """Return the configuration as a plain dictionary."""

        return {
            "PATH_INPUT": self.input_path,
            "PATH_OUTPUT": self.output_path,
            "RESOLUTION": self.resolution,
            "EDGE_DETECTION": self.edge_detection,
            "ENABLE_TILING": self.enable_tiling,
            "THREADS": self.threads,
            "LOG_FILE": self.log_file,
            "TILING": self.tiling,
        }


def build_config(overrides: Optional[Mapping[str, object]] = None) -> Dict[str, object]:
    """Create a configuration dictionary with optional overrides.

    Unknown keys are ignored. A ``TILING`` override is merged into the defaults
    so callers can adjust a single tunable.
    """

    config = PipelineConfig()
    if overrides:
        mutable: MutableMapping[str, object] = config.as_dict()
        for key, value in overrides.items():
            if key == "TILING" and isinstance(value, Mapping):
                merged = dict(TILING_CONFIG)
                merged.update(value)
                mutable[key] = merged
            elif key in mutable:
                mutable[key] = value
        return dict(mutable)
    return config.as_dict()


def tiling_settings(config: Optional[Mapping[str, object]] = None) -> Dict[str, float]:
    """Return the tiling tunables from *config*, falling back to the defaults."""

    settings = dict(TILING_CONFIG)
    if config:
        nested = config.get("TILING")
        source = nested if isinstance(nested, Mapping) else config
        for key in TILING_CONFIG:
            if key in source:
                settings[key] = source[key]  # type: ignore[assignment]
    return settings
