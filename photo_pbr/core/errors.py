"""Exception hierarchy for the photo-to-PBR pipeline."""
from __future__ import annotations


class PBRPipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class PipelineBusyError(PBRPipelineError, RuntimeError):
    """A generation request arrived while another one is still running."""


class InvalidInputError(PBRPipelineError, ValueError):
    """The caller supplied an unusable image, resolution or option."""


class GenerationError(PBRPipelineError):
    """Map generation failed; the underlying exception is chained as ``__cause__``."""


class SeamlessTilingError(PBRPipelineError):
    """Tiling a single texture failed. Never escalates past that texture."""


__all__ = [
    "GenerationError",
    "InvalidInputError",
    "PBRPipelineError",
    "PipelineBusyError",
    "SeamlessTilingError",
]
