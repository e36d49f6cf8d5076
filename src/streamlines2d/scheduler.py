from __future__ import annotations

import asyncio
import enum
import logging
import math
import time
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .integrator import DensityFn, FieldFn, IntegratorSettings, StreamlineIntegrator
from .masker import ExclusionMask, quantize_density
from .shuffle import RandomSource, default_random_source, fisher_yates_shuffle
from .vector import Vector, as_vector

_LOGGER = logging.getLogger(__name__)

StreamlineCallback = Callable[[tuple[Vector, ...]], Any]
MaskObserver = Callable[[NDArray[np.uint8], NDArray[np.uint8]], Any]


# ----------------------
# Configuration
# ----------------------

@dataclass(slots=True)
class PlacementConfig:
    """Domain and spacing controls for one generation run.

    min_start_dist / max_start_dist: separation of new streamlines at density 0 / 1
    end_ratio: scales both distances for the stop mask (streamlines may run closer
        to existing ones than new ones may start)
    steps_per_iteration / max_msec_per_iteration: size of one cooperative burst
    """
    width: int
    height: int
    min_start_dist: float = 8.0
    max_start_dist: float = 36.0
    end_ratio: float = 0.4
    min_points_per_line: int = 5
    step_length: float = 2.0
    steps_per_iteration: int = 8
    max_msec_per_iteration: float = 500.0
    use_numba: bool = False

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}.")
            setattr(self, name, int(value))
        for name in ("min_start_dist", "max_start_dist"):
            value = getattr(self, name)
            if not (2 <= value <= 254):
                raise ValueError(f"2 <= {name} <= 254 expected, got {value!r}.")
        if not (0.1 <= self.end_ratio < 1):
            raise ValueError(f"0.1 <= end_ratio < 1 expected, got {self.end_ratio!r}.")
        if self.min_points_per_line < 0:
            raise ValueError("min_points_per_line must be non-negative.")
        if not (math.isfinite(self.step_length) and self.step_length > 0):
            raise ValueError("step_length must be positive and finite.")
        value = self.steps_per_iteration
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
            raise ValueError(f"steps_per_iteration must be a positive integer, got {value!r}.")
        self.steps_per_iteration = int(value)
        if not self.max_msec_per_iteration > 0:
            raise ValueError("max_msec_per_iteration must be positive.")


class SchedulerState(enum.Enum):
    INIT = "init"
    GROW_STREAMLINE = "grow_streamline"
    SEED_NEXT = "seed_next"
    DONE = "done"


# ----------------------
# Scheduler
# ----------------------

class PlacementScheduler:
    """Places evenly spaced streamlines until the start mask is saturated.

    One ``step()`` is one state transition: grow a streamline to completion, or
    pick the next seed. Seeds come from the oldest finished streamline that
    still has room beside it; when none has, a random free cell of the start
    mask is used. ``run``/``run_async`` drive the steps in bursts bounded by
    ``steps_per_iteration`` and ``max_msec_per_iteration``.
    """

    def __init__(
        self,
        field: FieldFn,
        density: DensityFn,
        config: PlacementConfig,
        *,
        seed: Vector | Sequence[float] | None = None,
        rand: RandomSource | None = None,
        on_streamline_added: StreamlineCallback | None = None,
        on_mask_updated: MaskObserver | None = None,
    ) -> None:
        if not callable(field):
            raise TypeError("field must be callable.")
        if not callable(density):
            raise TypeError("density must be callable.")
        self._config = config
        self._rand: RandomSource = rand if rand is not None else default_random_source()
        self._on_streamline_added = on_streamline_added
        self._on_mask_updated = on_mask_updated

        w, h = config.width, config.height
        levels = quantize_density(density, w, h)
        self._start_mask = ExclusionMask.from_levels(
            levels, config.min_start_dist, config.max_start_dist, use_numba=config.use_numba,
        )
        self._stop_mask = ExclusionMask.from_levels(
            levels,
            config.min_start_dist * config.end_ratio,
            config.max_start_dist * config.end_ratio,
            use_numba=config.use_numba,
        )
        self._settings = IntegratorSettings(
            field=field,
            density=density,
            width=w,
            height=h,
            min_start_dist=config.min_start_dist,
            max_start_dist=config.max_start_dist,
            end_ratio=config.end_ratio,
            step_length=config.step_length,
        )

        if seed is None:
            seed = Vector(self._rand() * w, self._rand() * h)
        self._seed: Vector = as_vector(seed)  # type: ignore[assignment]

        self._state = SchedulerState.INIT
        self._integrator: StreamlineIntegrator | None = None
        self._queue: deque[StreamlineIntegrator] = deque()
        self._free_cells: NDArray[np.int64] | None = None
        self._free_order: list[int] = []
        self._free_cursor = 0
        self._cancelled = False
        self._running = False
        self._steps = 0
        self._streamlines = 0

    # -------- properties --------
    @property
    def config(self) -> PlacementConfig: return self._config

    @property
    def state(self) -> SchedulerState: return self._state

    @property
    def is_running(self) -> bool: return self._running

    @property
    def is_cancelled(self) -> bool: return self._cancelled

    @property
    def streamline_count(self) -> int: return self._streamlines

    @property
    def steps_taken(self) -> int: return self._steps

    @property
    def start_mask(self) -> ExclusionMask: return self._start_mask

    @property
    def stop_mask(self) -> ExclusionMask: return self._stop_mask

    # -------- state machine --------
    def step(self) -> SchedulerState:
        """Perform one transition and return the new state."""
        if self._state is SchedulerState.INIT:
            self._grow_streamline(self._new_integrator(self._seed))
        elif self._state is SchedulerState.GROW_STREAMLINE and self._integrator is not None:
            self._grow_streamline(self._integrator)
        elif self._state is SchedulerState.SEED_NEXT:
            self._seed_next()
        else:
            return self._state
        self._steps += 1
        return self._state

    def _new_integrator(self, seed: Vector) -> StreamlineIntegrator:
        return StreamlineIntegrator(seed, self._start_mask, self._stop_mask, self._settings)

    def _grow_streamline(self, integrator: StreamlineIntegrator) -> None:
        points = integrator.run()
        self._integrator = None
        # Bookkeeping is final before any user callback runs
        self._state = SchedulerState.SEED_NEXT
        retained = self._qualifies(len(points))
        if retained:
            self._queue.append(integrator)
            self._streamlines += 1
            _LOGGER.debug("streamline %d added: %d points from seed (%.2f, %.2f)",
                          self._streamlines, len(points), integrator.seed.x, integrator.seed.y)
        else:
            _LOGGER.debug("streamline from seed (%.2f, %.2f) discarded: %d points",
                          integrator.seed.x, integrator.seed.y, len(points))

        if self._on_mask_updated is not None:
            self._on_mask_updated(self._start_mask.raster, self._stop_mask.raster)
        if retained and self._on_streamline_added is not None:
            self._on_streamline_added(points)

    def _qualifies(self, n_points: int) -> bool:
        min_points = self._config.min_points_per_line
        return n_points > 1 and (min_points <= 0 or n_points >= min_points)

    def _seed_next(self) -> None:
        while self._queue:
            candidate = self._queue[0].next_seed_candidate()
            if candidate is not None:
                self._integrator = self._new_integrator(candidate)
                self._state = SchedulerState.GROW_STREAMLINE
                return
            self._queue.popleft()

        candidate = self._random_free_seed()
        if candidate is None:
            self._state = SchedulerState.DONE
            return
        _LOGGER.debug("queue exhausted; reseeding at free cell (%.1f, %.1f)", candidate.x, candidate.y)
        self._integrator = self._new_integrator(candidate)
        self._state = SchedulerState.GROW_STREAMLINE

    def _random_free_seed(self) -> Vector | None:
        # Cells only ever get blocked, so one shuffled snapshot can be walked lazily
        if self._free_cells is None:
            self._free_cells = self._start_mask.free_cells()
            self._free_order = fisher_yates_shuffle(list(range(len(self._free_cells))), self._rand)  # type: ignore[assignment]
            self._free_cursor = 0
        cells = self._free_cells
        while self._free_cursor < len(self._free_order):
            x, y = cells[self._free_order[self._free_cursor]]
            self._free_cursor += 1
            cx = float(x) + 0.5
            cy = float(y) + 0.5
            if self._start_mask.is_usable(cx, cy):
                return Vector(cx, cy)
        return None

    # -------- driving --------
    def _run_burst(self) -> bool:
        """Run one bounded burst of steps. Returns True when the run is finished."""
        budget = self._config.max_msec_per_iteration / 1000.0
        start = time.perf_counter()
        for _ in range(self._config.steps_per_iteration):
            if self.step() is SchedulerState.DONE:
                return True
            if time.perf_counter() - start > budget:
                break
        return False

    def _begin(self) -> float:
        if self._running:
            raise RuntimeError("generator is already running.")
        self._running = True
        _LOGGER.info("placing streamlines on %dx%d domain", self._config.width, self._config.height)
        return time.perf_counter()

    def _end(self, started: float) -> None:
        self._running = False
        elapsed = time.perf_counter() - started
        if self._cancelled and self._state is not SchedulerState.DONE:
            _LOGGER.info("cancelled after %d streamlines (%.3f s)", self._streamlines, elapsed)
        else:
            _LOGGER.info("done: %d streamlines in %d steps (%.3f s)", self._streamlines, self._steps, elapsed)

    def run(self) -> int:
        """Run to completion (or cancellation) without yielding. Returns the streamline count."""
        started = self._begin()
        try:
            while not self._cancelled:
                if self._run_burst():
                    break
        finally:
            self._end(started)
        return self._streamlines

    async def run_async(self) -> int:
        """Run in bursts, yielding to the event loop between them.

        Completes when the domain is saturated or ``cancel()`` was called.
        """
        started = self._begin()
        try:
            while not self._cancelled:
                if self._run_burst():
                    break
                await asyncio.sleep(0)
        finally:
            self._end(started)
        return self._streamlines

    def cancel(self) -> None:
        """Request early termination; honoured at the next burst boundary."""
        self._cancelled = True
