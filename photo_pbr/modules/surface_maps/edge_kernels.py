"""Gradient operators used to derive normal maps from a height field."""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Tuple, Union

import numpy as np

from photo_pbr.core.errors import InvalidInputError

Coordinate = Union[int, np.ndarray]
Gradient = Tuple[Union[float, np.ndarray], Union[float, np.ndarray]]


class EdgeDetection(str, Enum):
    """Selectable gradient operator for normal map generation."""

    SOBEL = "sobel"
    SCHARR = "scharr"
    PREWITT = "prewitt"
    ROBERTS = "roberts"
    LAPLACIAN = "laplacian"

    @classmethod
    def parse(cls, value: "EdgeDetection | str | None") -> "EdgeDetection":
        if value is None:
            return cls.SOBEL
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(kind.value for kind in cls)
            raise InvalidInputError(f"Unknown edge detection {value!r}; expected one of: {choices}") from None


class HeightSampler:
    """Clamped-coordinate access to a 2-D height field in ``[0, 1]``.

    Coordinates may be plain integers or integer arrays; out-of-range
    positions are clamped to the nearest edge pixel.
    """

    def __init__(self, heights: np.ndarray) -> None:
        self.heights = np.asarray(heights, dtype=np.float64)
        self.max_y = self.heights.shape[0] - 1
        self.max_x = self.heights.shape[1] - 1

    def __call__(self, px: Coordinate, py: Coordinate):
        px = np.clip(px, 0, self.max_x)
        py = np.clip(py, 0, self.max_y)
        return self.heights[py, px]


Sampler = Callable[[Coordinate, Coordinate], Union[float, np.ndarray]]
Kernel = Callable[[Sampler, Coordinate, Coordinate], Gradient]


def _neighbourhood(sampler: Sampler, x: Coordinate, y: Coordinate):
    tl, tc, tr = sampler(x - 1, y - 1), sampler(x, y - 1), sampler(x + 1, y - 1)
    ml, mr = sampler(x - 1, y), sampler(x + 1, y)
    bl, bc, br = sampler(x - 1, y + 1), sampler(x, y + 1), sampler(x + 1, y + 1)
    return tl, tc, tr, ml, mr, bl, bc, br


def sobel(sampler: Sampler, x: Coordinate, y: Coordinate) -> Gradient:
    tl, tc, tr, ml, mr, bl, bc, br = _neighbourhood(sampler, x, y)
    dx = (-1 * tl + 1 * tr - 2 * ml + 2 * mr - 1 * bl + 1 * br) / 8.0
    dy = (-1 * tl - 2 * tc - 1 * tr + 1 * bl + 2 * bc + 1 * br) / 8.0
    return dx, dy


def scharr(sampler: Sampler, x: Coordinate, y: Coordinate) -> Gradient:
    tl, tc, tr, ml, mr, bl, bc, br = _neighbourhood(sampler, x, y)
    dx = (-3 * tl + 3 * tr - 10 * ml + 10 * mr - 3 * bl + 3 * br) / 32.0
    dy = (-3 * tl - 10 * tc - 3 * tr + 3 * bl + 10 * bc + 3 * br) / 32.0
    return dx, dy


def prewitt(sampler: Sampler, x: Coordinate, y: Coordinate) -> Gradient:
    tl, tc, tr, ml, mr, bl, bc, br = _neighbourhood(sampler, x, y)
    dx = (-tl + tr - ml + mr - bl + br) / 6.0
    dy = (-tl - tc - tr + bl + bc + br) / 6.0
    return dx, dy


def roberts(sampler: Sampler, x: Coordinate, y: Coordinate) -> Gradient:
    # 2x2 cross; no full neighbourhood
    center = sampler(x, y)
    right = sampler(x + 1, y)
    below = sampler(x, y + 1)
    diag = sampler(x + 1, y + 1)
    dx = (diag - center) / 2.0
    dy = (below - right) / 2.0
    return dx, dy


def laplacian(sampler: Sampler, x: Coordinate, y: Coordinate) -> Gradient:
    center = sampler(x, y)
    top = sampler(x, y - 1)
    bottom = sampler(x, y + 1)
    left = sampler(x - 1, y)
    right = sampler(x + 1, y)
    lap = 4 * center - top - bottom - left - right
    dx = (right - left) / 2.0 + lap * 0.1
    dy = (bottom - top) / 2.0 + lap * 0.1
    return dx, dy


EDGE_KERNELS: Dict[EdgeDetection, Kernel] = {
    EdgeDetection.SOBEL: sobel,
    EdgeDetection.SCHARR: scharr,
    EdgeDetection.PREWITT: prewitt,
    EdgeDetection.ROBERTS: roberts,
    EdgeDetection.LAPLACIAN: laplacian,
}


def compute_gradients(heights: np.ndarray, kind: EdgeDetection | str = EdgeDetection.SOBEL) -> Tuple[np.ndarray, np.ndarray]:
    """Evaluate the selected kernel at every pixel of *heights*.

    Returns ``(dx, dy)`` arrays shaped like *heights*.
    """

    kernel = EDGE_KERNELS[EdgeDetection.parse(kind)]
    field = np.asarray(heights, dtype=np.float64)
    ys, xs = np.mgrid[0 : field.shape[0], 0 : field.shape[1]]
    dx, dy = kernel(HeightSampler(field), xs, ys)
    return np.asarray(dx, dtype=np.float64), np.asarray(dy, dtype=np.float64)


__all__ = [
    "EDGE_KERNELS",
    "EdgeDetection",
    "HeightSampler",
    "compute_gradients",
    "laplacian",
    "prewitt",
    "roberts",
    "scharr",
    "sobel",
]
