from __future__ import annotations

import math

import numpy as np
import pytest

from streamlines2d import (
    Vector, constant_density, constant_field, generate_streamlines, grid_density, grid_field,
    rotational_field, streamline_to_array,
)


def test_generate_streamlines_returns_arrays() -> None:
    seen: list[int] = []
    lines = generate_streamlines(
        constant_field(1.0, 0.0), constant_density(0.5), 100, 100,
        seed=(50.0, 50.0), on_streamline_added=lambda pts: seen.append(len(pts)),
    )
    assert len(lines) == 5
    assert all(line.ndim == 2 and line.shape[1] == 2 and line.dtype == np.float64 for line in lines)
    assert seen == [len(line) for line in lines]


def test_generate_streamlines_validates() -> None:
    with pytest.raises(ValueError):
        generate_streamlines(constant_field(1.0, 0.0), constant_density(0.5), 100, 100, min_start_dist=300)


def test_streamline_to_array_empty() -> None:
    assert streamline_to_array([]).shape == (0, 2)
    arr = streamline_to_array([Vector(1.0, 2.0), Vector(3.0, 4.0)])
    np.testing.assert_array_equal(arr, [[1.0, 2.0], [3.0, 4.0]])


def test_rotational_field() -> None:
    field = rotational_field((10.0, 10.0))
    assert field(Vector(10.0, 10.0)) is None
    v = field(Vector(13.0, 14.0))
    assert v.length() == pytest.approx(1.0)
    # Tangent: orthogonal to the radius
    assert v.x * 3.0 + v.y * 4.0 == pytest.approx(0.0, abs=1e-12)


def test_grid_field_bilinear_and_depth() -> None:
    vecs = np.zeros((3, 4, 2))
    vecs[..., 0] = np.arange(4)[None, :]
    vecs[..., 1] = 1.0
    depth = np.tile(np.arange(3, dtype=float)[:, None], (1, 4))
    field = grid_field(vecs, depth=depth)
    v = field(Vector(1.5, 0.5))
    assert (v.x, v.y) == pytest.approx((1.5, 1.0))
    assert v.depth == pytest.approx(0.5)
    assert field(Vector(3.0, 2.0)) is not None
    assert field(Vector(3.5, 1.0)) is None
    assert field(Vector(-0.1, 1.0)) is None


def test_grid_field_shape_checks() -> None:
    with pytest.raises(ValueError):
        grid_field(np.zeros((3, 4)))
    with pytest.raises(ValueError):
        grid_field(np.zeros((3, 4, 2)), depth=np.zeros((4, 3)))


def test_grid_density_invert_and_power() -> None:
    img = np.array([[0.0, 1.0], [0.5, 0.25]])
    dens = grid_density(img)
    assert dens(Vector(0.5, 0.0)) == pytest.approx(0.5)
    inv = grid_density(img, invert=True, power=2.0)
    assert inv(Vector(0.0, 1.0)) == pytest.approx(0.25)
    assert inv(Vector(5.0, 5.0)) == 1.0
    with pytest.raises(ValueError):
        grid_density(np.zeros(3))


def test_grid_inputs_drive_generation() -> None:
    h, w = 40, 60
    vecs = np.zeros((h, w, 2))
    vecs[..., 1] = 1.0
    lines = generate_streamlines(
        grid_field(vecs), grid_density(np.full((h, w), 0.3)), w, h,
        seed=(30.0, 20.0), min_start_dist=6, max_start_dist=20,
    )
    assert lines
    first = lines[0]
    assert np.allclose(first[:, 0], 30.0)
    assert np.all(np.diff(first[:, 1]) > 0)
    assert all(math.isfinite(v) for line in lines for v in line.ravel())
