"""
Overlay plot of the loaded sweeps.

Design goals:
- Read-only with respect to the session: plotting never changes visibility.
- Hidden series are not drawn; the average curve is drawn in black on top.
- Works headless (Agg) so that PNG export and tests need no display.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

from coil_sweep_analyzer.models.series import AverageSeries, Kind, Series


def _get_pyplot():
    import matplotlib.pyplot as plt  # late import: backend is chosen by the notebook
    return plt


def series_colors(n: int) -> list:
    """``n`` distinct colors, stable for a given store order."""
    import matplotlib as mpl

    cmap = mpl.colormaps["tab20"] if n > 10 else mpl.colormaps["tab10"]
    return [cmap(i % cmap.N) for i in range(max(n, 0))]


def plot_overlay(
    ax,
    series: Sequence[Series],
    kind: Kind | str,
    *,
    average: Optional[AverageSeries] = None,
    limit_lines: Sequence[float] = (),
    limit_color: str = "green",
    show_legend: bool = True,
    markers: bool = True,
) -> int:
    """
    Draw every visible series of ``kind`` (plus the average) on ``ax``.

    ``limit_lines`` are horizontal dashed guides in ``limit_color``.

    Returns the number of drawn curves, average included.
    """
    k = Kind.parse(kind)
    pool = [s for s in series if s.kind is k]
    colors = series_colors(len(pool))
    marker = "o" if markers else None

    n = 0
    for s, c in zip(pool, colors):
        if not s.visible:
            continue
        ax.plot(s.frequencies, s.values, color=c, marker=marker, markersize=4,
                markeredgecolor="black", markeredgewidth=0.5, linewidth=1.0, label=s.name)
        n += 1

    if average is not None and average.available:
        ax.plot(average.frequencies, average.values, color="black", marker=marker, markersize=4,
                linewidth=1.6, label=average.label)
        n += 1

    for y in limit_lines:
        ax.axhline(float(y), color=limit_color, linewidth=1.0, linestyle="--")

    ax.set_xlabel("FREQUENCY")
    ax.set_ylabel(f"{k.value} Average" if average is not None and average.available else k.value)
    ax.grid(True, alpha=0.3)
    if show_legend and n:
        ax.legend(loc="best", fontsize="small")
    return n


def new_overlay_figure(
    series: Sequence[Series],
    kind: Kind | str,
    *,
    average: Optional[AverageSeries] = None,
    limit_lines: Sequence[float] = (),
    limit_color: str = "green",
    show_legend: bool = True,
    figsize: Tuple[float, float] = (11.0, 5.5),
):
    plt = _get_pyplot()
    fig, ax = plt.subplots(figsize=figsize)
    plot_overlay(
        ax, series, kind,
        average=average, limit_lines=limit_lines, limit_color=limit_color, show_legend=show_legend,
    )
    fig.tight_layout()
    return fig, ax


def save_png(fig, path: str | Path, dpi: int = 150) -> Path:
    p = Path(path).expanduser()
    if p.suffix.lower() != ".png":
        p = p.with_suffix(".png")
    p.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(p, dpi=int(dpi), format="png")
    return p


def y_limits(series: Sequence[Series], kind: Kind | str) -> Tuple[float, float]:
    """Value range of the visible series (used to seed the limit-line inputs)."""
    k = Kind.parse(kind)
    vals = [s.values for s in series if s.kind is k and s.visible and s.n_samples]
    if not vals:
        return 0.0, 0.0
    allv = np.concatenate(vals)
    return float(np.min(allv)), float(np.max(allv))
