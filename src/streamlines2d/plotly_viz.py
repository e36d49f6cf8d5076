from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

try:
    import plotly.graph_objects as go
    from plotly.colors import get_colorscale, sample_colorscale
    _PLOTLY = True
except Exception:  # pragma: no cover
    _PLOTLY = False


@dataclass(slots=True)
class PlotlyStreamlineConfig:
    line_color: str = "#4e2e0e"
    line_width: float = 1.0
    colorscale: str = "Viridis"
    color_by_length: bool = False
    invert_y: bool = True


def _line_segments(lines: Sequence[np.ndarray]) -> tuple[list[float | None], list[float | None]]:
    """Concatenate polylines into one x/y list separated by None (one Scatter trace)."""
    xs: list[float | None] = []
    ys: list[float | None] = []
    for line in lines:
        arr = np.asarray(line, dtype=np.float64)
        if len(arr) < 2:
            continue
        xs.extend(arr[:, 0].tolist())
        ys.extend(arr[:, 1].tolist())
        xs.append(None)
        ys.append(None)
    return xs, ys


def plot_streamlines_interactive(
    lines: Sequence[np.ndarray],
    width: int,
    height: int,
    *,
    config: PlotlyStreamlineConfig | None = None,
    save_html: str | None = None,
) -> Any:
    """Interactive streamline plot with Plotly (pan/zoom, hover). Returns the Figure."""
    if not _PLOTLY:
        raise RuntimeError("plotly is not installed. `pip install plotly`")

    cfg = config or PlotlyStreamlineConfig()
    fig = go.Figure()

    if cfg.color_by_length:
        # One trace per line so each can carry its own colour
        lengths = [len(line) for line in lines if len(line) > 1]
        top = max(lengths, default=1)
        scale = get_colorscale(cfg.colorscale)
        for line in lines:
            arr = np.asarray(line, dtype=np.float64)
            if len(arr) < 2:
                continue
            color = sample_colorscale(scale, [len(arr) / top])[0]
            fig.add_trace(go.Scatter(x=arr[:, 0], y=arr[:, 1], mode="lines",
                                     line=dict(width=cfg.line_width, color=color),
                                     showlegend=False, hovertext=f"{len(arr)} points"))
    else:
        xs, ys = _line_segments(lines)
        fig.add_trace(go.Scatter(x=xs, y=ys, mode="lines",
                                 line=dict(width=cfg.line_width, color=cfg.line_color),
                                 name="streamlines"))

    y_range = [height, 0] if cfg.invert_y else [0, height]
    fig.update_layout(
        title=f"{sum(1 for line in lines if len(line) > 1)} streamlines",
        xaxis=dict(scaleanchor="y", scaleratio=1, range=[0, width]),
        yaxis=dict(range=y_range),
        template="plotly_white",
    )

    if save_html:
        fig.write_html(save_html, include_plotlyjs="cdn")
    return fig
