from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Vector:
    """Immutable 2D point/direction.

    depth: optional scalar tag carried by field samples (e.g. a depth map behind
    the field). It never takes part in equality or arithmetic.
    """
    x: float
    y: float
    depth: float | None = field(default=None, compare=False)

    def add(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y)

    def mul_scalar(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def distance_to(self, other: Vector) -> float:
        dx = other.x - self.x
        dy = other.y - self.y
        return math.sqrt(dx * dx + dy * dy)

    def equals(self, other: Vector) -> bool:
        return self.x == other.x and self.y == other.y

    def with_depth(self, depth: float | None) -> Vector:
        return Vector(self.x, self.y, depth)

    def __add__(self, other: Vector) -> Vector:
        return self.add(other)

    def __mul__(self, scalar: float) -> Vector:
        return self.mul_scalar(scalar)

    __rmul__ = __mul__

    def __iter__(self):
        yield self.x
        yield self.y


def as_vector(value: Any) -> Vector | None:
    """Coerce a field sample into a Vector.

    Accepts a Vector, anything with ``x``/``y`` (and optionally ``depth``)
    attributes, or a sequence ``(x, y)`` / ``(x, y, depth)``. None passes through.
    """
    if value is None or isinstance(value, Vector):
        return value
    if hasattr(value, "x") and hasattr(value, "y"):
        depth = getattr(value, "depth", None)
        return Vector(float(value.x), float(value.y), None if depth is None else float(depth))
    items = tuple(value)
    if len(items) == 2:
        return Vector(float(items[0]), float(items[1]))
    if len(items) == 3:
        depth = items[2]
        return Vector(float(items[0]), float(items[1]), None if depth is None else float(depth))
    raise ValueError(f"field sample must have 2 or 3 components, got {len(items)}.")
