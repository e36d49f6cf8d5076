from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator

import numpy as np
from numpy.typing import NDArray

from .vector import Vector

_LOGGER = logging.getLogger(__name__)

BLOCKED = 255
_LEVELS = 254

# ---------------------------
# Optional Numba (JIT) support
# ---------------------------
try:
    from numba import njit  # type: ignore
    _NUMBA = True
except Exception:  # pragma: no cover
    _NUMBA = False


def _maybe_njit(func):
    # Decorate with njit if available; else return the plain function
    if _NUMBA:  # pragma: no cover
        return njit(cache=True, nogil=True)(func)  # type: ignore[misc]
    return func


@_maybe_njit
def _hline_jit(data: np.ndarray, x1: int, x2: int, y: int, cx: int, cy: int,
               min_dist: float, dist_range: float) -> None:
    h, w = data.shape
    if y < 0 or y >= h:
        return
    if x1 < 0:
        x1 = 0
    if x2 > w - 1:
        x2 = w - 1
    dy = float(y - cy)
    for x in range(x1, x2 + 1):
        v = data[y, x]
        if v == 255:
            continue
        limit = min_dist + (v / 254.0) * dist_range
        dx = float(x - cx)
        if limit < math.sqrt(dx * dx + dy * dy):
            continue
        data[y, x] = 255


@_maybe_njit
def _stamp_circle_jit(data: np.ndarray, cx: int, cy: int, rad: int,
                      min_dist: float, dist_range: float) -> None:
    x = rad - 1
    y = 0
    dx = 1
    dy = 1
    err = dx - (rad << 1)
    while x >= y:
        _hline_jit(data, cx - x, cx + x, cy + y, cx, cy, min_dist, dist_range)
        _hline_jit(data, cx - x, cx + x, cy - y, cx, cy, min_dist, dist_range)
        _hline_jit(data, cx - y, cx + y, cy + x, cx, cy, min_dist, dist_range)
        _hline_jit(data, cx - y, cx + y, cy - x, cx, cy, min_dist, dist_range)
        if err <= 0:
            y += 1
            err += dy
            dy += 2
        if err > 0:
            x -= 1
            dx += 2
            err += dx - (rad << 1)


def circle_spans(cx: int, cy: int, rad: int) -> Iterator[tuple[int, int, int]]:
    """Midpoint circle as horizontal spans ``(row, x_start, x_end)``, inclusive.

    Four octant-symmetric spans per iteration; rows may repeat.
    """
    x = rad - 1
    y = 0
    dx = 1
    dy = 1
    err = dx - (rad << 1)
    while x >= y:
        yield cy + y, cx - x, cx + x
        yield cy - y, cx - x, cx + x
        yield cy + x, cx - y, cx + y
        yield cy - x, cx - y, cx + y
        if err <= 0:
            y += 1
            err += dy
            dy += 2
        if err > 0:
            x -= 1
            dx += 2
            err += dx - (rad << 1)


def quantize_density(density: Callable[[Vector], float], width: int, height: int) -> NDArray[np.uint8]:
    """Sample density once per integer cell and quantize to [0, 254]."""
    values = np.empty((height, width), dtype=np.float64)
    for y in range(height):
        for x in range(width):
            values[y, x] = density(Vector(float(x), float(y)))
    values = np.nan_to_num(values, nan=0.0, posinf=1.0, neginf=0.0)
    values = np.clip(values, 0.0, 1.0)
    return np.floor(values * _LEVELS + 0.5).astype(np.uint8)


class ExclusionMask:
    """Raster of required-separation levels; 255 marks a blocked cell.

    A level ``v`` in [0, 254] means a cell may only be blocked by a stamp whose
    centre lies within ``min_dist + v/254 * (max_dist - min_dist)``. Cells only
    ever move to 255.
    """

    def __init__(
        self,
        width: int,
        height: int,
        density: Callable[[Vector], float],
        min_dist: float,
        max_dist: float,
        *,
        use_numba: bool = False,
    ) -> None:
        levels = quantize_density(density, width, height)
        self._init(levels, min_dist, max_dist, use_numba)

    @classmethod
    def from_levels(
        cls,
        levels: NDArray[np.uint8],
        min_dist: float,
        max_dist: float,
        *,
        use_numba: bool = False,
    ) -> ExclusionMask:
        """Build from a pre-quantized (height, width) raster; the raster is copied."""
        arr = np.asarray(levels)
        if arr.ndim != 2:
            raise ValueError("levels must be a 2-D (height, width) raster.")
        if arr.size and int(arr.max()) > _LEVELS:
            raise ValueError("levels must lie in [0, 254].")
        mask = cls.__new__(cls)
        mask._init(arr.astype(np.uint8, copy=True), min_dist, max_dist, use_numba)
        return mask

    def _init(self, levels: NDArray[np.uint8], min_dist: float, max_dist: float, use_numba: bool) -> None:
        self._data: NDArray[np.uint8] = np.ascontiguousarray(levels, dtype=np.uint8)
        self._height, self._width = self._data.shape
        self._min_dist = float(min_dist)
        self._max_dist = float(max_dist)
        self._dist_range = self._max_dist - self._min_dist
        self._use_jit = bool(use_numba) and _NUMBA
        if use_numba and not _NUMBA:
            _LOGGER.debug("numba requested but not installed; stamping with numpy spans")

    # -------- properties --------
    @property
    def width(self) -> int: return self._width

    @property
    def height(self) -> int: return self._height

    @property
    def min_dist(self) -> float: return self._min_dist

    @property
    def max_dist(self) -> float: return self._max_dist

    @property
    def raster(self) -> NDArray[np.uint8]:
        """Read-only view of the raw (height, width) raster."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    @property
    def free_count(self) -> int:
        return int(np.count_nonzero(self._data != BLOCKED))

    # -------- queries --------
    def required_distance(self, level: float) -> float:
        return self._min_dist + level / _LEVELS * self._dist_range

    def is_usable(self, x: float, y: float) -> bool:
        if not (0 <= x < self._width and 0 <= y < self._height):
            return False
        return bool(self._data[int(math.floor(y)), int(math.floor(x))] != BLOCKED)

    def free_cells(self) -> NDArray[np.int64]:
        """(N, 2) integer array of ``(x, y)`` for every cell not yet blocked, row-major."""
        ys, xs = np.nonzero(self._data != BLOCKED)
        return np.stack([xs, ys], axis=1).astype(np.int64)

    # -------- stamping --------
    def stamp_circle(self, center: Vector, radius: float) -> None:
        """Block cells around ``center`` that need no more separation than their distance.

        Not a disk fill: a cell inside ``radius`` whose own required distance is
        below its distance to the centre stays free.
        """
        cx = int(math.floor(center.x))
        cy = int(math.floor(center.y))
        rad = int(math.floor(radius + 0.5))
        if rad <= 0:
            return
        if self._use_jit:
            _stamp_circle_jit(self._data, cx, cy, rad, self._min_dist, self._dist_range)
            return
        for row, x1, x2 in circle_spans(cx, cy, rad):
            self._fill_span(row, x1, x2, cx, cy)

    def _fill_span(self, row: int, x1: int, x2: int, cx: int, cy: int) -> None:
        if row < 0 or row >= self._height:
            return
        x1 = max(x1, 0)
        x2 = min(x2, self._width - 1)
        if x1 > x2:
            return
        span = self._data[row, x1:x2 + 1]
        xs = np.arange(x1, x2 + 1, dtype=np.float64)
        dist = np.sqrt((xs - cx) ** 2 + float(row - cy) ** 2)
        limit = self._min_dist + (span / 254.0) * self._dist_range
        span[(span != BLOCKED) & (limit >= dist)] = BLOCKED
