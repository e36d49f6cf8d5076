from __future__ import annotations

import math

from .vector import Vector


class SpatialHash:
    """Sparse grid bucketing the points of one streamline.

    The domain's bounding square (side ``max(width, height)``) is split into
    ``ceil(side / sep)`` cells per axis. Queries only look at the 3x3 cells
    around the query, so the actual cell width ``bbox_size / cells_count``
    must be at least the largest query limit; ``covering`` builds such a hash.
    """

    def __init__(self, width: float, height: float, sep: float) -> None:
        if not (sep > 0.0 and math.isfinite(sep)):
            raise ValueError("sep must be positive and finite.")
        self.width = width
        self.height = height
        self.sep = float(sep)
        self.bbox_size = float(max(width, height))
        self.cells_count = int(math.ceil(self.bbox_size / self.sep))
        self._cells: dict[tuple[int, int], list[Vector]] = {}
        self._size = 0

    @classmethod
    def covering(cls, width: float, height: float, limit: float) -> SpatialHash:
        """Hash whose cells are at least ``limit`` wide, so 3x3 queries up to ``limit`` see every point."""
        if not (limit > 0.0 and math.isfinite(limit)):
            raise ValueError("limit must be positive and finite.")
        side = float(max(width, height))
        n = max(1, int(math.floor(side / limit)))
        # Nudge sep up so ceil(side / sep) lands on n despite rounding
        return cls(width, height, side / n * (1.0 + 1e-9))

    def __len__(self) -> int:
        return self._size

    @property
    def cell_size(self) -> float: return self.bbox_size / self.cells_count

    def cell_index(self, coord: float) -> int:
        return int(math.floor(self.cells_count * coord / self.bbox_size))

    def insert(self, point: Vector) -> None:
        key = (self.cell_index(point.x), self.cell_index(point.y))
        self._cells.setdefault(key, []).append(point)
        self._size += 1

    def _neighbours(self, x: float, y: float):
        cx = self.cell_index(x)
        cy = self.cell_index(y)
        n = self.cells_count
        for col in range(cx - 1, cx + 2):
            if col < 0 or col >= n:
                continue
            for row in range(cy - 1, cy + 2):
                if row < 0 or row >= n:
                    continue
                bucket = self._cells.get((col, row))
                if bucket:
                    yield bucket

    def has_closer_than(self, x: float, y: float, limit: float) -> bool:
        for bucket in self._neighbours(x, y):
            for p in bucket:
                if math.hypot(p.x - x, p.y - y) < limit:
                    return True
        return False

    def nearest_distance(self, x: float, y: float) -> float:
        """Distance to the closest stored point in the 3x3 neighbourhood (inf if none)."""
        best = math.inf
        for bucket in self._neighbours(x, y):
            for p in bucket:
                d = math.hypot(p.x - x, p.y - y)
                if d < best:
                    best = d
        return best
