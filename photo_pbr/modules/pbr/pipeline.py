"""Primary orchestration for the photo-to-PBR texture pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

import logging
import threading

from photo_pbr.core import config as config_module
from photo_pbr.core.errors import GenerationError, InvalidInputError, PipelineBusyError
from photo_pbr.core.parameters import TEXTURE_KINDS
from photo_pbr.core.pixel_buffer import PixelBuffer
from photo_pbr.core.utils_image import SourceImage, crop_to_square, encode_png, to_pil_image
from photo_pbr.core.utils_parallel import run_parallel
from photo_pbr.modules.geometry_maps import ambient_occlusion, height_map
from photo_pbr.modules.surface_maps import albedo_map, metallic_map, normal_map, roughness_map
from photo_pbr.modules.surface_maps.edge_kernels import EdgeDetection
from photo_pbr.modules.tiling.seamless import make_seamless

from .validation import (
    generate_quality_report,
    log_validation_issues,
    normal_map_diagnostics,
    validate_maps,
)

LOGGER = logging.getLogger("photo_pbr.pbr.pipeline")

Encoder = Callable[[PixelBuffer], object]

GENERATION_ORDER = TEXTURE_KINDS


@dataclass(frozen=True)
class PipelineSettings:
    """Echo of the request, kept with the result for provenance."""

    resolution: int
    edge_detection: EdgeDetection
    tiling_enabled: bool

    def as_dict(self) -> Dict[str, object]:
        return {
            "resolution": self.resolution,
            "edge_detection": self.edge_detection.value,
            "tiling_enabled": self.tiling_enabled,
        }


def _generator_table(edge_detection: EdgeDetection) -> Dict[str, Callable[[PixelBuffer], PixelBuffer]]:
    return {
        "albedo": albedo_map.generate,
        "height": height_map.generate,
        "normal": lambda buffer: normal_map.generate(buffer, edge_detection),
        "metallic": metallic_map.generate,
        "roughness": roughness_map.generate,
        "occlusion": ambient_occlusion.generate,
    }


def _validate_resolution(resolution: object) -> int:
    if isinstance(resolution, bool) or not isinstance(resolution, int):
        raise InvalidInputError(f"Resolution must be a positive integer, got {resolution!r}")
    if resolution <= 0:
        raise InvalidInputError(f"Resolution must be a positive integer, got {resolution}")
    return resolution


def generate_maps(
    base: PixelBuffer,
    edge_detection: EdgeDetection | str = EdgeDetection.SOBEL,
    *,
    max_workers: Optional[int] = None,
) -> Dict[str, PixelBuffer]:
    """Run the six map generators on *base*.

    Generators are independent pure functions, so they run concurrently; any
    failure propagates unchanged.
    """

    table = _generator_table(EdgeDetection.parse(edge_detection))

    def _run(name: str, generator: Callable[[PixelBuffer], PixelBuffer]) -> PixelBuffer:
        result = generator(base)
        LOGGER.debug("%s map generated", name)
        return result

    return run_parallel(_run, table, max_workers=max_workers)


def tile_maps(
    maps: Mapping[str, PixelBuffer],
    tiling_config: Optional[Mapping[str, object]] = None,
    *,
    max_workers: Optional[int] = None,
) -> Tuple[Dict[str, PixelBuffer], Dict[str, Dict[str, object]]]:
    """Make every map seamless, isolating failures per texture.

    A map whose tiling raises keeps its untiled version and gets an
    ``{"error": ...}`` report entry; the others are unaffected.
    """

    def _tile(name: str, buffer: PixelBuffer) -> Tuple[PixelBuffer, Dict[str, object]]:
        try:
            outcome = make_seamless(buffer, tiling_config, label=name)
            tiled = outcome.buffer
            if name == "normal" and outcome.ok:
                tiled = normal_map.renormalize(tiled)
        except Exception as exc:
            LOGGER.warning("Seamless tiling failed for %s map, keeping untiled output: %s", name, exc)
            return buffer, {"error": str(exc) or type(exc).__name__}
        return tiled, outcome.report

    results = run_parallel(_tile, maps, max_workers=max_workers)
    tiled_maps = {name: result[0] for name, result in results.items()}
    report = {name: result[1] for name, result in results.items()}
    return tiled_maps, report


class PBRTextureGenerator:
    """Turns a photograph into a tileable set of PBR texture maps.

    One instance runs one generation at a time; a concurrent call is rejected
    with :class:`PipelineBusyError` instead of queueing. Nothing else is kept
    between calls.
    """

    def __init__(
        self,
        config: Optional[Mapping[str, object]] = None,
        *,
        encoder: Encoder = encode_png,
    ) -> None:
        self.config: Dict[str, object] = config_module.build_config(config)
        self.encoder = encoder
        self._lock = threading.Lock()

    @property
    def is_generating(self) -> bool:
        return self._lock.locked()

    def generate(
        self,
        source_image: SourceImage,
        resolution: Optional[int] = None,
        edge_detection: EdgeDetection | str | None = None,
        enable_tiling: Optional[bool] = None,
    ) -> Dict[str, object]:
        """Generate the texture bundle for *source_image*.

        Unset arguments fall back to the configuration (512, sobel, tiling on).
        Returns a dict with ``textures`` (encoded maps), ``maps``
        (:class:`PixelBuffer` per kind), ``tiling_info`` (``None`` when tiling
        is off), ``settings`` and ``diagnostics``.
        """

        resolution = _validate_resolution(self.config["RESOLUTION"] if resolution is None else resolution)
        kind = EdgeDetection.parse(self.config["EDGE_DETECTION"] if edge_detection is None else edge_detection)
        tiling_enabled = bool(self.config["ENABLE_TILING"] if enable_tiling is None else enable_tiling)
        image = to_pil_image(source_image)

        if not self._lock.acquire(blocking=False):
            raise PipelineBusyError("Texture generation already in progress")
        try:
            settings = PipelineSettings(resolution=resolution, edge_detection=kind, tiling_enabled=tiling_enabled)
            return self._run(image, settings)
        finally:
            self._lock.release()

    def _run(self, image, settings: PipelineSettings) -> Dict[str, object]:
        LOGGER.info(
            "Starting PBR texture generation (%dx%d, %s edges, tiling=%s)",
            settings.resolution,
            settings.resolution,
            settings.edge_detection.value,
            settings.tiling_enabled,
        )
        workers = int(self.config.get("THREADS") or 1)
        try:
            base = crop_to_square(image, settings.resolution)
            maps = generate_maps(base, settings.edge_detection, max_workers=workers)
        except Exception as exc:
            LOGGER.error("Texture generation failed: %s", exc)
            raise GenerationError(f"Failed to generate PBR textures: {exc}") from exc

        tiling_info: Optional[Dict[str, Dict[str, object]]] = None
        if settings.tiling_enabled:
            maps, tiling_info = tile_maps(maps, self.config.get("TILING"), max_workers=workers)

        ordered = {name: maps[name] for name in GENERATION_ORDER}
        try:
            textures = {name: self.encoder(buffer) for name, buffer in ordered.items()}
            diagnostics = self._diagnose(ordered, tiling_info, settings)
        except Exception as exc:
            LOGGER.error("Texture encoding failed: %s", exc)
            raise GenerationError(f"Failed to encode PBR textures: {exc}") from exc

        LOGGER.info("All PBR textures generated successfully")
        return {
            "textures": textures,
            "maps": ordered,
            "tiling_info": tiling_info,
            "settings": settings,
            "diagnostics": diagnostics,
        }

    def _diagnose(
        self,
        maps: Mapping[str, PixelBuffer],
        tiling_info: Optional[Mapping[str, Mapping[str, object]]],
        settings: PipelineSettings,
    ) -> Dict[str, object]:
        seamless = [name for name, entry in (tiling_info or {}).items() if "error" not in entry]
        tiling_params = config_module.tiling_settings(self.config)
        validation = validate_maps(
            maps,
            settings.resolution,
            seamless=seamless,
            seam_tolerance=int(tiling_params["seam_tolerance"]),
        )
        log_validation_issues(validation)
        return {
            "normal": normal_map_diagnostics(maps["normal"]),
            "validation": validation.as_dict(),
            "quality_report": generate_quality_report(maps),
        }


def generate_pbr_textures(
    source_image: SourceImage,
    resolution: int = config_module.DEFAULT_RESOLUTION,
    edge_detection: EdgeDetection | str = EdgeDetection.SOBEL,
    enable_tiling: bool = True,
    *,
    config: Optional[Mapping[str, object]] = None,
) -> Dict[str, object]:
    """One-shot convenience wrapper around :class:`PBRTextureGenerator`."""

    return PBRTextureGenerator(config).generate(source_image, resolution, edge_detection, enable_tiling)


__all__ = [
    "GENERATION_ORDER",
    "PBRTextureGenerator",
    "PipelineSettings",
    "generate_maps",
    "generate_pbr_textures",
    "tile_maps",
]
