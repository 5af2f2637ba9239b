from __future__ import annotations

from typing import List, Sequence

import numpy as np

from coil_sweep_analyzer.models.series import AverageSeries, Kind, Series
from .locate import nearest_indices


def values_on_axis(series: Series, axis: np.ndarray) -> np.ndarray:
    """
    Return ``series`` sampled at every frequency of ``axis``.

    A series recorded on exactly ``axis`` is returned as-is (positional pairing).
    Any other series contributes its nearest sample to each axis frequency, so a
    file with a different length or grid is matched by frequency instead of being
    silently mis-paired by index.
    """
    if series.same_axis(axis):
        return series.values
    if series.n_samples == 0:
        return np.zeros_like(axis, dtype=np.float64)
    return series.values[nearest_indices(series.frequencies, axis)]


def compute_average(
    series: Sequence[Series],
    kind: Kind | str,
    only_visible: bool = True,
) -> AverageSeries:
    """
    Per-frequency arithmetic mean over the series of one kind.

    Parameters
    ----------
    series:
        Series in store order. Entries of another kind are ignored.
    kind:
        Measurement kind to average.
    only_visible:
        If True, hidden series are excluded. The flag is read now, never cached.

    Returns
    -------
    AverageSeries
        Sized to the first series of ``kind`` (the reference axis). Empty when the
        kind has no series. If nothing is included the accumulator stays at zero
        and ``available`` is False.
    """
    k = Kind.parse(kind)
    pool = [s for s in series if s.kind is k]
    if not pool:
        empty = np.zeros(0, dtype=np.float64)
        return AverageSeries(kind=k, frequencies=empty, values=empty.copy(), n_included=0)

    axis = pool[0].frequencies.copy()
    acc = np.zeros(axis.size, dtype=np.float64)
    included: List[str] = []

    for s in pool:
        if only_visible and not s.visible:
            continue
        acc += values_on_axis(s, axis)
        included.append(s.name)

    if included:
        acc /= float(len(included))

    return AverageSeries(
        kind=k,
        frequencies=axis,
        values=acc,
        n_included=len(included),
        included=tuple(included),
    )
