from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure

from .masker import BLOCKED, ExclusionMask


@dataclass(slots=True)
class PlotConfig:
    figsize: tuple[float, float] = (8.0, 8.0)
    line_color: str = "#4e2e0e"
    background: str = "#fdfaf7"
    linewidth: float = 1.0
    show_seeds: bool = False
    invert_y: bool = True  # raster convention: y grows downwards


def plot_streamlines(
    lines: Sequence[np.ndarray],
    width: int,
    height: int,
    *,
    config: PlotConfig | None = None,
    title: str | None = None,
    save_path: str | None = None,
    show: bool = True,
) -> Figure:
    """Draw streamlines given as (N, 2) arrays on the [0, width] x [0, height] domain."""
    cfg = config or PlotConfig()
    fig, ax = plt.subplots(figsize=cfg.figsize)
    ax.set_facecolor(cfg.background)

    segments = [np.asarray(line, dtype=np.float64) for line in lines if len(line) > 1]
    if segments:
        ax.add_collection(LineCollection(segments, colors=cfg.line_color, linewidths=cfg.linewidth))
    if cfg.show_seeds and segments:
        mids = np.array([seg[len(seg) // 2] for seg in segments])
        ax.scatter(mids[:, 0], mids[:, 1], s=6.0, c="tab:red", marker=".")

    ax.set_xlim(0, width)
    if cfg.invert_y:
        ax.set_ylim(height, 0)
    else:
        ax.set_ylim(0, height)
    ax.set_aspect("equal", adjustable="box")
    ax.set_title(title if title is not None else f"{len(segments)} streamlines")
    ax.set_xticks([])
    ax.set_yticks([])

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    return fig


def plot_mask(
    mask: ExclusionMask | np.ndarray,
    *,
    figsize: tuple[float, float] = (6.0, 6.0),
    title: str = "Exclusion mask",
    show: bool = True,
) -> Figure:
    """Show blocked cells in red over the separation levels of a mask raster."""
    raster = mask.raster if isinstance(mask, ExclusionMask) else np.asarray(mask)
    blocked = raster == BLOCKED
    levels = np.where(blocked, np.nan, raster.astype(np.float64))

    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(levels, cmap="viridis", vmin=0, vmax=254, origin="upper", interpolation="nearest")
    overlay = np.zeros(raster.shape + (4,), dtype=np.float64)
    overlay[blocked] = (1.0, 24 / 255, 24 / 255, 0.5)
    ax.imshow(overlay, origin="upper", interpolation="nearest")
    fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04).set_label("separation level")
    ax.set_title(f"{title} ({int(blocked.sum())}/{blocked.size} blocked)")
    ax.set_xlabel("x [cells]")
    ax.set_ylabel("y [cells]")
    if show:
        plt.show()
    return fig
