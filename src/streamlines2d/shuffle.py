from __future__ import annotations

from collections.abc import MutableSequence
from typing import Protocol, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource(Protocol):
    """Zero-argument callable returning a float in [0, 1)."""

    def __call__(self) -> float: ...


def default_random_source(seed: int | None = None) -> RandomSource:
    """Seedable source backed by numpy's default Generator."""
    rng = np.random.default_rng(seed)
    return lambda: float(rng.random())


def fisher_yates_shuffle(items: MutableSequence[T], rand: RandomSource) -> MutableSequence[T]:
    """Uniform in-place permutation driven by ``rand``; returns ``items``."""
    ix = len(items)
    while ix != 0:
        rand_ix = min(int(rand() * ix), ix - 1)
        ix -= 1
        items[ix], items[rand_ix] = items[rand_ix], items[ix]
    return items
