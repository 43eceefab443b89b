"""Seamless tiling: rewrite a map's border region so it wraps without seams.

The procedure has three stages:

* edge averages are measured along every border (per row for left/right, per
  column for top/bottom) plus the four corners;
* pixels inside the blend zone are pulled toward the colour waiting on the
  opposite side of the seam, weighted by a radial falloff that vanishes in the
  interior and approaches 1 at the border;
* a final pass forces opposite border pixels to identical values so the wrap is
  bit-exact, with the earlier blend providing the smooth approach.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from photo_pbr.core.config import tiling_settings
from photo_pbr.core.errors import SeamlessTilingError
from photo_pbr.core.pixel_buffer import PixelBuffer
from photo_pbr.core.utils_image import tile_grid

LOGGER = logging.getLogger("photo_pbr.tiling.seamless")

METHOD_NAME = "radial_edge_blend"
BLANK_INPUT_ERROR = "input was blank"


@dataclass
class EdgeAverages:
    """Border colours measured before blending, all ``float64`` RGB."""

    left: np.ndarray  # (height, 3)
    right: np.ndarray  # (height, 3)
    top: np.ndarray  # (width, 3)
    bottom: np.ndarray  # (width, 3)
    top_left: np.ndarray
    top_right: np.ndarray
    bottom_left: np.ndarray
    bottom_right: np.ndarray


@dataclass
class TilingOutcome:
    buffer: PixelBuffer
    report: Dict[str, object]

    @property
    def ok(self) -> bool:
        return "error" not in self.report


def compute_blend_width(width: int, height: int, settings: Optional[Mapping[str, float]] = None) -> int:
    """Blend zone thickness: 15% of the short side, bounded to ``[8, 32]`` by default."""

    params = tiling_settings(settings)
    raw = math.floor(min(width, height) * float(params["blend_ratio"]))
    return int(max(int(params["min_blend"]), min(int(params["max_blend"]), raw)))


def is_blank(buffer: PixelBuffer) -> bool:
    """True when every RGB value is zero."""

    return not np.any(buffer.data[..., :3])


def compute_edge_averages(rgb: np.ndarray, blend_width: int) -> EdgeAverages:
    height, width = rgb.shape[:2]
    depth_x = max(1, min(blend_width // 8, width))
    depth_y = max(1, min(blend_width // 8, height))

    left = rgb[:, :depth_x].mean(axis=1)
    right = rgb[:, width - depth_x :].mean(axis=1)
    top = rgb[:depth_y].mean(axis=0)
    bottom = rgb[height - depth_y :].mean(axis=0)
    return EdgeAverages(
        left=left,
        right=right,
        top=top,
        bottom=bottom,
        top_left=(left[0] + top[0]) / 2.0,
        top_right=(right[0] + top[-1]) / 2.0,
        bottom_left=(left[-1] + bottom[0]) / 2.0,
        bottom_right=(right[-1] + bottom[-1]) / 2.0,
    )


def edge_influence(
    width: int,
    height: int,
    blend_width: int,
    settings: Optional[Mapping[str, float]] = None,
) -> np.ndarray:
    """Per-pixel blend weight in ``[0, 1]``.

    Combines a quadratic falloff over the distance to the nearest border with a
    cosine falloff over the distance from the image centre (70% / 30% by
    default). Pixels further than *blend_width* from every border get 0.
    """

    params = tiling_settings(settings)
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)

    border_distance = np.minimum(np.minimum(xs, width - 1 - xs), np.minimum(ys, height - 1 - ys))
    edge_distance = np.minimum(border_distance / max(blend_width, 1), 1.0)
    edge_term = 1.0 - edge_distance**2

    cx = (width - 1) / 2.0
    cy = (height - 1) / 2.0
    max_radius = max(math.hypot(cx, cy), 1e-9)
    radius = np.clip(np.hypot(xs - cx, ys - cy) / max_radius, 0.0, 1.0)
    radial_term = (1.0 - np.cos(np.pi * radius)) / 2.0

    influence = edge_term * (float(params["edge_weight"]) + float(params["radial_weight"]) * radial_term)
    return np.clip(influence, 0.0, 1.0)


def _zone_masks(width: int, height: int, zone_ratio: float) -> Tuple[np.ndarray, ...]:
    zone_x = max(1, math.ceil(width * zone_ratio))
    zone_y = max(1, math.ceil(height * zone_ratio))
    ys, xs = np.mgrid[0:height, 0:width]
    near_left = (xs < zone_x) & (xs < width - 1 - xs)
    near_right = (width - 1 - xs < zone_x) & ~near_left & (xs != width - 1 - xs)
    near_top = (ys < zone_y) & (ys < height - 1 - ys)
    near_bottom = (height - 1 - ys < zone_y) & ~near_top & (ys != height - 1 - ys)
    return near_left, near_right, near_top, near_bottom


def blend_toward_opposite_edges(
    rgb: np.ndarray,
    edges: EdgeAverages,
    influence: np.ndarray,
    zone_ratio: float,
) -> np.ndarray:
    """Pull border-zone pixels toward the colour on the far side of their seam.

    Side zones move half-way (each side meets the other at the shared seam
    colour); corner zones move toward the mean of their own corner, the opposite
    row and column colours and the diagonal corner.
    """

    height, width = rgb.shape[:2]
    near_left, near_right, near_top, near_bottom = _zone_masks(width, height, zone_ratio)
    horizontal_zone = near_left | near_right
    vertical_zone = near_top | near_bottom

    shape = (height, width, 3)
    right_per_row = np.broadcast_to(edges.right[:, None, :], shape)
    left_per_row = np.broadcast_to(edges.left[:, None, :], shape)
    bottom_per_col = np.broadcast_to(edges.bottom[None, :, :], shape)
    top_per_col = np.broadcast_to(edges.top[None, :, :], shape)

    horizontal_target = np.where(near_left[..., None], right_per_row, left_per_row)
    vertical_target = np.where(near_top[..., None], bottom_per_col, top_per_col)

    top_side = near_top[..., None]
    left_side = near_left[..., None]
    own_corner = np.where(
        top_side,
        np.where(left_side, edges.top_left, edges.top_right),
        np.where(left_side, edges.bottom_left, edges.bottom_right),
    )
    diagonal_corner = np.where(
        top_side,
        np.where(left_side, edges.bottom_right, edges.bottom_left),
        np.where(left_side, edges.top_right, edges.top_left),
    )
    corner_target = (own_corner + horizontal_target + vertical_target + diagonal_corner) / 4.0

    weight = influence[..., None]
    half = weight * 0.5
    corner_zone = (horizontal_zone & vertical_zone)[..., None]
    side_h = (horizontal_zone & ~vertical_zone)[..., None]
    side_v = (vertical_zone & ~horizontal_zone)[..., None]

    blended = rgb.copy()
    blended = np.where(side_h, rgb + (horizontal_target - rgb) * half, blended)
    blended = np.where(side_v, rgb + (vertical_target - rgb) * half, blended)
    blended = np.where(corner_zone, rgb + (corner_target - rgb) * weight, blended)
    return blended


def enforce_edge_equality(rgb: np.ndarray) -> np.ndarray:
    """Make opposite borders identical so a wrap lands on matching pixels.

    All four corners take one unified colour (the mean of the corner pixels and
    their border neighbours); every other row averages its left/right pair and
    every other column its top/bottom pair.
    """

    out = rgb.copy()
    height, width = out.shape[:2]
    last_y, last_x = height - 1, width - 1
    y1, x1 = min(1, last_y), min(1, last_x)
    y2, x2 = max(last_y - 1, 0), max(last_x - 1, 0)

    samples = np.stack(
        [
            out[0, 0], out[0, x1], out[y1, 0],
            out[0, last_x], out[0, x2], out[y1, last_x],
            out[last_y, 0], out[last_y, x1], out[y2, 0],
            out[last_y, last_x], out[last_y, x2], out[y2, last_x],
        ]
    )
    unified_corner = samples.mean(axis=0)

    if height > 2:
        rows = slice(1, last_y)
        pair = (out[rows, 0] + out[rows, last_x]) / 2.0
        out[rows, 0] = pair
        out[rows, last_x] = pair
    if width > 2:
        cols = slice(1, last_x)
        pair = (out[0, cols] + out[last_y, cols]) / 2.0
        out[0, cols] = pair
        out[last_y, cols] = pair

    for y, x in ((0, 0), (0, last_x), (last_y, 0), (last_y, last_x)):
        out[y, x] = unified_corner
    return out


def seam_error(buffer: PixelBuffer) -> int:
    """Largest RGB difference across the interior seams of a 2x2 tiling."""

    grid = tile_grid(buffer, 2, 2)[..., :3].astype(np.int16)
    height, width = buffer.height, buffer.width
    vertical = np.abs(grid[:, width - 1] - grid[:, width])
    horizontal = np.abs(grid[height - 1] - grid[height])
    return int(max(vertical.max(), horizontal.max()))


def make_seamless(
    buffer: PixelBuffer,
    config: Optional[Mapping[str, object]] = None,
    *,
    label: str = "texture",
) -> TilingOutcome:
    """Return a tileable copy of *buffer* and its report entry.

    An all-black input is returned unchanged with ``{"error": "input was
    blank"}``. A result whose wrapped seams still differ by more than
    ``seam_tolerance`` raises :class:`SeamlessTilingError`.
    """

    if is_blank(buffer):
        LOGGER.warning("Seamless tiling skipped for %s: %s", label, BLANK_INPUT_ERROR)
        return TilingOutcome(buffer=buffer, report={"error": BLANK_INPUT_ERROR})

    params = tiling_settings(config)
    width, height = buffer.size
    blend_width = compute_blend_width(width, height, params)

    rgb = buffer.rgb()
    edges = compute_edge_averages(rgb, blend_width)
    influence = edge_influence(width, height, blend_width, params)
    blended = blend_toward_opposite_edges(rgb, edges, influence, float(params["zone_ratio"]))
    seamless = enforce_edge_equality(blended)

    data = np.empty((height, width, 4), dtype=np.uint8)
    data[..., :3] = np.clip(np.rint(seamless), 0, 255).astype(np.uint8)
    data[..., 3] = 255
    result = PixelBuffer(data)

    error = seam_error(result)
    tolerance = int(params["seam_tolerance"])
    if error > tolerance:
        raise SeamlessTilingError(f"Seam difference {error} exceeds tolerance {tolerance} for {label}")

    LOGGER.debug("Seamless tiling applied to %s (blend width %d, seam error %d)", label, blend_width, error)
    return TilingOutcome(
        buffer=result,
        report={"blend_width": blend_width, "method": METHOD_NAME, "seam_error": error},
    )


__all__ = [
    "BLANK_INPUT_ERROR",
    "EdgeAverages",
    "METHOD_NAME",
    "TilingOutcome",
    "blend_toward_opposite_edges",
    "compute_blend_width",
    "compute_edge_averages",
    "edge_influence",
    "enforce_edge_equality",
    "is_blank",
    "make_seamless",
    "seam_error",
]
