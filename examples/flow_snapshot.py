from __future__ import annotations

import math

import numpy as np

from streamlines2d import Vector, generate_streamlines, plot_streamlines


def swirl_field(width: int, height: int):
    """Smooth pseudo-noise flow: angle from a few sine waves."""
    def field(p: Vector) -> Vector:
        u = p.x / width
        v = p.y / height
        angle = 2.2 * math.pi * (math.sin(3.1 * u + 1.7 * v) + 0.5 * math.cos(5.3 * v - 2.1 * u))
        return Vector(math.cos(angle), math.sin(angle))
    return field


def main() -> None:
    width, height = 600, 400

    def density(p: Vector) -> float:
        # Dense on the left, sparse on the right
        return float(np.clip(p.x / width, 0.0, 1.0)) ** 1.5

    lines = generate_streamlines(
        swirl_field(width, height),
        density,
        width,
        height,
        min_start_dist=4,
        max_start_dist=40,
        end_ratio=0.5,
        min_points_per_line=5,
        step_length=2,
    )
    plot_streamlines(lines, width, height, title="Density-adaptive streamlines")


if __name__ == "__main__":
    main()
