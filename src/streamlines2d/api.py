from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from .integrator import DensityFn, FieldFn
from .scheduler import MaskObserver, PlacementConfig, PlacementScheduler, StreamlineCallback
from .shuffle import RandomSource
from .vector import Vector

FloatArray = NDArray[np.float64]


# ----------------------
# Generator construction
# ----------------------

def create_streamline_generator(
    field: FieldFn,
    density: DensityFn,
    width: int,
    height: int,
    *,
    seed: Vector | Sequence[float] | None = None,
    rand: RandomSource | None = None,
    min_start_dist: float = 8.0,
    max_start_dist: float = 36.0,
    end_ratio: float = 0.4,
    min_points_per_line: int = 5,
    step_length: float = 2.0,
    steps_per_iteration: int = 8,
    max_msec_per_iteration: float = 500.0,
    use_numba: bool = False,
    on_streamline_added: StreamlineCallback | None = None,
    on_mask_updated: MaskObserver | None = None,
) -> PlacementScheduler:
    """Validate options and build a PlacementScheduler.

    Raises ValueError for out-of-range options; nothing is built in that case.
    """
    config = PlacementConfig(
        width=width,
        height=height,
        min_start_dist=min_start_dist,
        max_start_dist=max_start_dist,
        end_ratio=end_ratio,
        min_points_per_line=min_points_per_line,
        step_length=step_length,
        steps_per_iteration=steps_per_iteration,
        max_msec_per_iteration=max_msec_per_iteration,
        use_numba=use_numba,
    )
    return PlacementScheduler(
        field, density, config,
        seed=seed, rand=rand,
        on_streamline_added=on_streamline_added,
        on_mask_updated=on_mask_updated,
    )


def streamline_to_array(points: Sequence[Vector]) -> FloatArray:
    """(N, 2) float64 array of the x, y coordinates of a streamline."""
    return np.array([(p.x, p.y) for p in points], dtype=np.float64).reshape(-1, 2)


def generate_streamlines(
    field: FieldFn,
    density: DensityFn,
    width: int,
    height: int,
    **options,
) -> list[FloatArray]:
    """Run a generator synchronously and return every retained streamline as (N, 2) arrays.

    Accepts the keyword options of ``create_streamline_generator``. A caller's
    ``on_streamline_added`` is still invoked.
    """
    lines: list[FloatArray] = []
    user_cb = options.pop("on_streamline_added", None)

    def collect(points: tuple[Vector, ...]) -> None:
        lines.append(streamline_to_array(points))
        if user_cb is not None:
            user_cb(points)

    gen = create_streamline_generator(field, density, width, height, on_streamline_added=collect, **options)
    gen.run()
    return lines


# ----------------------
# Field / density helpers
# ----------------------

def constant_field(dx: float, dy: float) -> FieldFn:
    """Uniform flow in direction (dx, dy)."""
    v = Vector(float(dx), float(dy))
    return lambda _p: v


def constant_density(value: float) -> DensityFn:
    return lambda _p: float(value)


def rotational_field(center: tuple[float, float]) -> FieldFn:
    """Unit-speed circulation around ``center``; undefined at the centre itself."""
    cx, cy = float(center[0]), float(center[1])

    def field(p: Vector) -> Vector | None:
        rx = p.x - cx
        ry = p.y - cy
        r = math.hypot(rx, ry)
        if r == 0.0:
            return None
        return Vector(-ry / r, rx / r)

    return field


def _bilinear(arr: np.ndarray, x: float, y: float) -> np.ndarray | None:
    h, w = arr.shape[:2]
    if not (0.0 <= x <= w - 1 and 0.0 <= y <= h - 1):
        return None
    x0 = min(int(math.floor(x)), max(w - 2, 0))
    y0 = min(int(math.floor(y)), max(h - 2, 0))
    x1 = min(x0 + 1, w - 1)
    y1 = min(y0 + 1, h - 1)
    tx = x - x0
    ty = y - y0
    return ((1 - tx) * (1 - ty) * arr[y0, x0] + tx * (1 - ty) * arr[y0, x1]
            + (1 - tx) * ty * arr[y1, x0] + tx * ty * arr[y1, x1])


def grid_field(vectors: np.ndarray, depth: np.ndarray | None = None) -> FieldFn:
    """Bilinearly sampled field from an (H, W, 2) array; None outside the grid.

    depth: optional (H, W) array sampled the same way and attached as ``depth``.
    """
    arr = np.asarray(vectors, dtype=np.float64)
    if arr.ndim != 3 or arr.shape[2] != 2:
        raise ValueError("vectors must have shape (H, W, 2).")
    dep = None
    if depth is not None:
        dep = np.asarray(depth, dtype=np.float64)
        if dep.shape != arr.shape[:2]:
            raise ValueError("depth must have shape (H, W) matching vectors.")

    def field(p: Vector) -> Vector | None:
        v = _bilinear(arr, p.x, p.y)
        if v is None:
            return None
        d = None if dep is None else float(_bilinear(dep, p.x, p.y))
        return Vector(float(v[0]), float(v[1]), d)

    return field


def grid_density(values: np.ndarray, *, invert: bool = False, power: float = 1.0) -> DensityFn:
    """Bilinearly sampled density from an (H, W) array in [0, 1] (e.g. image luminance).

    invert: use ``1 - value`` so dark regions get dense streamlines.
    power: exponent applied after inversion, sharpening the contrast.
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 2:
        raise ValueError("values must be 2-D (H, W).")

    def density(p: Vector) -> float:
        v = _bilinear(arr, p.x, p.y)
        if v is None:
            return 1.0
        d = min(1.0, max(0.0, float(v)))
        if invert:
            d = 1.0 - d
        return d ** power

    return density
