"""Photo-to-PBR texture generation pipeline."""
from __future__ import annotations

from .pipeline import PBRTextureGenerator, PipelineSettings, generate_pbr_textures
from .validation import ValidationReport, generate_quality_report, validate_maps

__all__ = [
    "PBRTextureGenerator",
    "PipelineSettings",
    "ValidationReport",
    "generate_pbr_textures",
    "generate_quality_report",
    "validate_maps",
]
