from __future__ import annotations

import os

import numpy as np
import matplotlib.pyplot as plt

from streamlines2d import (
    Vector, create_streamline_generator, default_random_source, plot_mask, plot_streamlines,
    rotational_field, streamline_to_array,
)


ART = os.environ.get("ARTIFACTS_DIR", "artifacts")
os.makedirs(ART, exist_ok=True)


def mask_progress_plots() -> None:
    """Save the start/stop masks after the first few streamlines, plus the final result."""
    width = height = 200
    snapshots: list[tuple[np.ndarray, np.ndarray]] = []
    lines: list[np.ndarray] = []

    def density(p: Vector) -> float:
        return p.y / height

    def observer(start: np.ndarray, stop: np.ndarray) -> None:
        if len(snapshots) < 4:
            snapshots.append((start.copy(), stop.copy()))

    gen = create_streamline_generator(
        rotational_field((width / 2, height / 2)), density, width, height,
        rand=default_random_source(0),
        on_streamline_added=lambda pts: lines.append(streamline_to_array(pts)),
        on_mask_updated=observer,
    )
    gen.run()

    for k, (start, stop) in enumerate(snapshots):
        fig = plot_mask(start, title=f"start mask after streamline {k + 1}", show=False)
        fig.savefig(os.path.join(ART, f"start_mask_{k + 1}.png"), dpi=120)
        plt.close(fig)
        fig = plot_mask(stop, title=f"stop mask after streamline {k + 1}", show=False)
        fig.savefig(os.path.join(ART, f"stop_mask_{k + 1}.png"), dpi=120)
        plt.close(fig)

    fig = plot_streamlines(lines, width, height, save_path=os.path.join(ART, "streamlines.png"), show=False)
    plt.close(fig)


if __name__ == "__main__":
    mask_progress_plots()
