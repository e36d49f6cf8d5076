from __future__ import annotations

import math

import numpy as np
import pytest

from streamlines2d import Vector, as_vector


def test_arithmetic_is_pure() -> None:
    a = Vector(1.0, 2.0)
    b = Vector(3.0, -1.0)
    assert a + b == Vector(4.0, 1.0)
    assert a.mul_scalar(2.0) == Vector(2.0, 4.0)
    assert 3 * a == Vector(3.0, 6.0)
    assert a == Vector(1.0, 2.0)


def test_length_and_distance() -> None:
    assert Vector(3.0, 4.0).length() == 5.0
    assert Vector(1.0, 1.0).distance_to(Vector(4.0, 5.0)) == 5.0


def test_depth_not_part_of_equality_or_arithmetic() -> None:
    a = Vector(1.0, 1.0, depth=3.0)
    b = Vector(1.0, 1.0, depth=7.0)
    assert a == b
    assert a.equals(b)
    assert hash(a) == hash(b)
    assert (a + b).depth is None
    assert a.mul_scalar(2.0).depth is None


def test_as_vector_accepts_common_shapes() -> None:
    assert as_vector(None) is None
    assert as_vector((1, 2)) == Vector(1.0, 2.0)
    v = as_vector(np.array([0.5, -0.5]))
    assert v == Vector(0.5, -0.5) and v.depth is None
    d = as_vector((1.0, 0.0, 4.5))
    assert d.depth == 4.5

    class Sample:
        x = 2.0
        y = 3.0
        depth = 1.0

    s = as_vector(Sample())
    assert s == Vector(2.0, 3.0) and s.depth == 1.0


def test_as_vector_rejects_bad_arity() -> None:
    with pytest.raises(ValueError):
        as_vector((1.0,))
    with pytest.raises(ValueError):
        as_vector((1.0, 2.0, 3.0, 4.0))


def test_as_vector_keeps_nan_for_caller_to_reject() -> None:
    v = as_vector((math.nan, 1.0))
    assert math.isnan(v.x)
