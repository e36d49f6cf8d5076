from __future__ import annotations

import enum
import math
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .lookup_grid import SpatialHash
from .masker import ExclusionMask
from .vector import Vector, as_vector

FieldFn = Callable[[Vector], Any]
DensityFn = Callable[[Vector], float]

# Own points closer than this fraction of a step count as curling back.
SELF_DISTANCE_RATIO = 0.9
# Depth guard: reject when the new depth jump is this many times the previous one ...
DEPTH_JUMP_FACTOR = 3.0
# ... and larger than this in absolute units.
DEPTH_JUMP_MIN = 1.0


class IntegratorState(enum.Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    DONE = "done"


@dataclass(slots=True)
class IntegratorSettings:
    """Everything a StreamlineIntegrator needs besides its seed and the masks."""
    field: FieldFn
    density: DensityFn
    width: int
    height: int
    min_start_dist: float
    max_start_dist: float
    end_ratio: float
    step_length: float

    def separation(self, point: Vector) -> float:
        """Density-interpolated distance between new streamlines at ``point``."""
        # max() with 0.0 first also maps NaN to 0
        den = min(1.0, max(0.0, float(self.density(point))))
        return self.min_start_dist + den * (self.max_start_dist - self.min_start_dist)


class StreamlineIntegrator:
    """Grows one streamline forward then backward from a seed with RK4 steps.

    Each candidate step must land on a usable cell of the stop mask, keep
    ``0.9 * step_length`` away from the line's own points, and not jump across
    a depth discontinuity. When both directions halt, every point stamps its
    exclusion circle into the start and stop masks.
    """

    def __init__(
        self,
        seed: Vector,
        start_mask: ExclusionMask,
        stop_mask: ExclusionMask,
        settings: IntegratorSettings,
    ) -> None:
        self._settings = settings
        self._start_mask = start_mask
        self._stop_mask = stop_mask
        self._step = float(settings.step_length)
        self._self_limit = SELF_DISTANCE_RATIO * self._step

        sample = self.read_field(seed)
        if sample is not None and sample.depth is not None:
            seed = seed.with_depth(sample.depth)
        self._seed = seed
        self._points: deque[Vector] = deque([seed])
        self._final: tuple[Vector, ...] | None = None
        self._current = seed
        self._state = IntegratorState.FORWARD
        self._last_checked_seed = -1
        self._own_grid = SpatialHash.covering(settings.width, settings.height, self._self_limit)
        self._own_grid.insert(seed)

    # -------- properties --------
    @property
    def state(self) -> IntegratorState: return self._state

    @property
    def seed(self) -> Vector: return self._seed

    @property
    def is_done(self) -> bool: return self._state is IntegratorState.DONE

    @property
    def points(self) -> tuple[Vector, ...]:
        if self._final is not None:
            return self._final
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    # -------- state machine --------
    def step(self) -> bool:
        """Advance one transition. Returns True once the streamline is finished."""
        if self._state is IntegratorState.FORWARD:
            point = self._next_point(forward=True)
            if point is not None:
                self._points.append(point)
                self._own_grid.insert(point)
                self._current = point
            else:
                # Restart from the seed and grow the tail
                self._current = self._seed
                self._state = IntegratorState.BACKWARD
        elif self._state is IntegratorState.BACKWARD:
            point = self._next_point(forward=False)
            if point is not None:
                self._points.appendleft(point)
                self._own_grid.insert(point)
                self._current = point
            else:
                self._state = IntegratorState.DONE
                self._final = tuple(self._points)
                self._stamp_masks()
        return self._state is IntegratorState.DONE

    def run(self) -> tuple[Vector, ...]:
        """Step until finished and return the points."""
        while not self.step():
            pass
        return self.points

    def _stamp_masks(self) -> None:
        cfg = self._settings
        for pt in self.points:
            dist_start = cfg.separation(pt)
            self._start_mask.stamp_circle(pt, dist_start - 1.0)
            self._stop_mask.stamp_circle(pt, dist_start * cfg.end_ratio)
        # The own grid is only needed while growing
        self._own_grid = None  # type: ignore[assignment]

    # -------- growth --------
    def _next_point(self, forward: bool) -> Vector | None:
        delta = self.rk4(self._current)
        if delta is None:
            return None
        if not forward:
            delta = delta.mul_scalar(-1.0)
        nxt = self._current.add(delta)

        # Too close to an existing streamline
        if not self._stop_mask.is_usable(nxt.x, nxt.y):
            return None
        # Curling back onto ourselves
        if self._own_grid.has_closer_than(nxt.x, nxt.y, self._self_limit):
            return None

        sample = self.read_field(nxt)
        if sample is not None and sample.depth is not None:
            nxt = nxt.with_depth(sample.depth)
        if len(self._points) >= 2 and self._depth_jump(nxt, forward):
            return None
        return nxt

    def _depth_jump(self, nxt: Vector, forward: bool) -> bool:
        if forward:
            last, prev = self._points[-1], self._points[-2]
        else:
            last, prev = self._points[0], self._points[1]
        if nxt.depth is None or last.depth is None or prev.depth is None:
            return False
        prev_delta = abs(last.depth - prev.depth)
        new_delta = abs(nxt.depth - last.depth)
        return new_delta > prev_delta * DEPTH_JUMP_FACTOR and new_delta > DEPTH_JUMP_MIN

    def read_field(self, point: Vector) -> Vector | None:
        """Sample the field; None where it is undefined, NaN/inf, or zero.

        The sample is scaled by ``1/|v|^2`` (not ``1/|v|``), so only unit-length
        samples come back unit length. Depth is carried over unchanged.
        """
        raw = as_vector(self._settings.field(point))
        if raw is None:
            return None
        if not (math.isfinite(raw.x) and math.isfinite(raw.y)):
            return None
        l2 = raw.x * raw.x + raw.y * raw.y
        if l2 == 0.0 or not math.isfinite(l2):
            return None
        return raw.mul_scalar(1.0 / l2).with_depth(raw.depth)

    def rk4(self, point: Vector) -> Vector | None:
        """Displacement of one RK4 step of length ``step_length`` from ``point``."""
        h = self._step
        k1 = self.read_field(point)
        if k1 is None:
            return None
        k2 = self.read_field(point.add(k1.mul_scalar(h * 0.5)))
        if k2 is None:
            return None
        k3 = self.read_field(point.add(k2.mul_scalar(h * 0.5)))
        if k3 is None:
            return None
        k4 = self.read_field(point.add(k3.mul_scalar(h)))
        if k4 is None:
            return None
        return (k1.mul_scalar(h / 6.0)
                .add(k2.mul_scalar(h / 3.0))
                .add(k3.mul_scalar(h / 3.0))
                .add(k4.mul_scalar(h / 6.0)))

    # -------- seeding --------
    def next_seed_candidate(self) -> Vector | None:
        """Next start point beside this streamline that the start mask still allows.

        Scans the points in order, resuming where the previous call stopped.
        For each point the two normals to the field are tried at the local
        separation; when the first side is accepted the scan stays on the same
        point so the other side is tried on the next call.
        """
        pts = self.points
        while self._last_checked_seed < len(pts) - 1:
            self._last_checked_seed += 1
            pt = pts[self._last_checked_seed]
            direction = self.read_field(pt)
            if direction is None:
                continue
            dist = self._settings.separation(pt)

            cx = pt.x - direction.y * dist
            cy = pt.y + direction.x * dist
            if self._start_mask.is_usable(cx, cy):
                self._last_checked_seed -= 1
                return Vector(cx, cy)

            ox = pt.x + direction.y * dist
            oy = pt.y - direction.x * dist
            if self._start_mask.is_usable(ox, oy):
                return Vector(ox, oy)
        return None
