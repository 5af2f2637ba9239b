"""Nearest-sample lookup on a sorted frequency axis.

Every point-based feature (comparison rows, the interactive cursor, key-based
alignment of series that were not sampled on the same grid) goes through
:func:`nearest_index` or its vectorized twin :func:`nearest_indices`.

Tie-break: when the target sits exactly half-way between two samples the
upper neighbour wins. Both functions share that rule.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from coil_sweep_analyzer.errors import EmptyInputError


def nearest_index(sorted_frequencies, target: float) -> int:
    """Index of the sample closest to ``target``.

    Parameters
    ----------
    sorted_frequencies : array-like
        Non-decreasing frequency axis.
    target : float
        Frequency to look up.

    Returns
    -------
    int
        Exact match if present; 0 below the first sample; the last index above
        the last sample; otherwise the nearer of the two neighbours.

    Raises
    ------
    EmptyInputError
        If the axis has no samples.
    """
    f = np.asarray(sorted_frequencies, dtype=np.float64)
    n = int(f.size)
    if n == 0:
        raise EmptyInputError("nearest-point lookup on an empty frequency axis")

    x = float(target)
    lo = 0
    hi = n - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        fm = f[mid]
        if x < fm:
            hi = mid - 1
        elif x > fm:
            lo = mid + 1
        else:
            return mid

    # search collapsed: hi is the sample below, lo the sample above
    if hi < 0:
        return 0
    if lo >= n:
        return n - 1
    return hi if abs(x - f[hi]) < abs(x - f[lo]) else lo


def find_nearest(sorted_frequencies, target: float) -> Optional[int]:
    """Like :func:`nearest_index` but returns ``None`` for an empty axis."""
    try:
        return nearest_index(sorted_frequencies, target)
    except EmptyInputError:
        return None


def nearest_indices(sorted_frequencies, targets) -> np.ndarray:
    """Vectorized :func:`nearest_index` over many targets (same tie-break)."""
    f = np.asarray(sorted_frequencies, dtype=np.float64)
    t = np.asarray(targets, dtype=np.float64)
    n = int(f.size)
    if n == 0:
        raise EmptyInputError("nearest-point lookup on an empty frequency axis")

    upper = np.searchsorted(f, t, side="left")
    upper_c = np.clip(upper, 0, n - 1)
    lower_c = np.clip(upper - 1, 0, n - 1)

    exact = (upper < n) & (f[upper_c] == t)
    take_lower = np.abs(t - f[lower_c]) < np.abs(t - f[upper_c])

    idx = np.where(take_lower, lower_c, upper_c)
    idx = np.where(upper <= 0, 0, idx)
    idx = np.where(upper >= n, n - 1, idx)
    idx = np.where(exact, upper_c, idx)
    return idx.astype(np.intp)
