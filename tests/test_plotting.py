from __future__ import annotations

import numpy as np
import pytest
from matplotlib.collections import LineCollection

from streamlines2d import ExclusionMask, PlotConfig, Vector, plot_mask, plot_streamlines


def sample_lines() -> list[np.ndarray]:
    xs = np.linspace(0.0, 90.0, 10)
    return [np.stack([xs, np.full_like(xs, y)], axis=1) for y in (10.0, 40.0, 70.0)] + [np.zeros((1, 2))]


def test_plot_streamlines_draws_one_collection(tmp_path) -> None:
    out = tmp_path / "lines.png"
    fig = plot_streamlines(sample_lines(), 100, 100, config=PlotConfig(show_seeds=True),
                           save_path=str(out), show=False)
    ax = fig.axes[0]
    collections = [c for c in ax.collections if isinstance(c, LineCollection)]
    assert len(collections) == 1
    assert len(collections[0].get_segments()) == 3
    assert ax.get_ylim() == (100.0, 0.0)
    assert out.exists()


def test_plot_mask_marks_blocked_cells() -> None:
    mask = ExclusionMask.from_levels(np.zeros((20, 30), dtype=np.uint8), 4.0, 4.0)
    mask.stamp_circle(Vector(10.0, 10.0), 4)
    fig = plot_mask(mask, show=False)
    assert "blocked" in fig.axes[0].get_title()
    fig2 = plot_mask(mask.raster, show=False)
    assert len(fig2.axes[0].images) == 2


def test_plot_streamlines_interactive() -> None:
    pytest.importorskip("plotly")
    from streamlines2d import PlotlyStreamlineConfig, plot_streamlines_interactive

    fig = plot_streamlines_interactive(sample_lines(), 100, 100)
    assert len(fig.data) == 1
    xs = list(fig.data[0].x)
    assert xs.count(None) == 3

    fig = plot_streamlines_interactive(sample_lines(), 100, 100,
                                       config=PlotlyStreamlineConfig(color_by_length=True))
    assert len(fig.data) == 3
