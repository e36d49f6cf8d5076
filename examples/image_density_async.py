from __future__ import annotations

import asyncio
import logging

import numpy as np

from streamlines2d import (
    create_streamline_generator, default_random_source, grid_density, plot_streamlines,
    rotational_field, streamline_to_array,
)


def synthetic_luminance(width: int, height: int) -> np.ndarray:
    """Stand-in for a photo: a bright disc on a dark gradient, values in [0, 1]."""
    ys, xs = np.mgrid[0:height, 0:width]
    disc = np.exp(-((xs - 0.6 * width) ** 2 + (ys - 0.45 * height) ** 2) / (2 * (0.2 * width) ** 2))
    gradient = xs / width * 0.3
    return np.clip(disc + gradient, 0.0, 1.0)


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    width, height = 400, 300
    lines: list[np.ndarray] = []

    def on_added(points) -> None:
        lines.append(streamline_to_array(points))
        if len(lines) % 25 == 0:
            print(f"{len(lines)} streamlines so far")

    gen = create_streamline_generator(
        rotational_field((width / 2, height / 2)),
        grid_density(synthetic_luminance(width, height), invert=True, power=5.0),
        width,
        height,
        rand=default_random_source(2024),
        min_start_dist=4,
        max_start_dist=120,
        end_ratio=0.9,
        min_points_per_line=3,
        step_length=2,
        max_msec_per_iteration=20,
        on_streamline_added=on_added,
    )
    await gen.run_async()
    plot_streamlines(lines, width, height, title="Photo-style density (inverted luminance)")


if __name__ == "__main__":
    asyncio.run(main())
