"""Distance ratios -- ranks each series by its deviation from the average curve.

Two passes over the series of one kind:

1. every *visible* series gets its mean absolute deviation from the average,
   measured over the series' own samples; the largest one is the worst offender;
2. every series gets a ratio: hidden series the :data:`HIDDEN_RATIO` sentinel,
   visible series ``deviation / worst`` (so the worst one is exactly 1.0), or
   0.0 when all visible series coincide with the average.

The threshold control shows a series iff ``ratio <= t``. Hidden series carry the
sentinel, so loosening the threshold never brings them back.
"""

from __future__ import annotations

from typing import Dict, Sequence

import numpy as np

from coil_sweep_analyzer.errors import NoAverageError
from coil_sweep_analyzer.models.series import AverageSeries, Series
from .locate import nearest_indices


#: Ratio assigned to hidden series. Always above any legitimate [0, 1] ratio.
HIDDEN_RATIO = 101.10


def mean_abs_deviation(series: Series, average: AverageSeries) -> float:
    """Mean of ``|value[i] - average(frequency[i])|`` over the series' own samples."""
    if series.n_samples == 0:
        return 0.0
    if series.same_axis(average.frequencies):
        avg = average.values
    else:
        avg = average.values[nearest_indices(average.frequencies, series.frequencies)]
    return float(np.mean(np.abs(series.values - avg)))


def rank_series(series: Sequence[Series], average: AverageSeries) -> Dict[str, float]:
    """
    Distance ratio per series name, in store order.

    Raises
    ------
    NoAverageError
        If ``average`` is not available (empty kind or nothing visible).
    """
    if not average.available:
        raise NoAverageError(
            f"No {average.kind.value} average available. Calculate the average graph first "
            "(at least one series must be visible)."
        )

    pool = [s for s in series if s.kind is average.kind]

    deviations: Dict[str, float] = {}
    worst = 0.0
    for s in pool:
        if not s.visible:
            continue
        dev = mean_abs_deviation(s, average)
        deviations[s.name] = dev
        if dev > worst:
            worst = dev

    ratios: Dict[str, float] = {}
    for s in pool:
        if not s.visible:
            ratios[s.name] = HIDDEN_RATIO
        elif worst > 0.0:
            ratios[s.name] = deviations[s.name] / worst
        else:
            ratios[s.name] = 0.0
    return ratios


def apply_threshold(series: Sequence[Series], ratios: Dict[str, float], threshold: float) -> Dict[str, bool]:
    """
    Set ``visible = ratio <= threshold`` for every ranked series.

    ``series`` must be of the kind the ratios were computed for. ``threshold`` is a fraction in [0, 1]. Series absent from ``ratios`` are left
    untouched. Returns the new visibility per name.
    """
    t = float(threshold)
    if not (0.0 <= t <= 1.0):
        raise ValueError(f"threshold must be within [0, 1]; got {threshold!r}")

    out: Dict[str, bool] = {}
    for s in series:
        r = ratios.get(s.name)
        if r is None:
            continue
        s.visible = bool(r <= t)
        out[s.name] = s.visible
    return out
