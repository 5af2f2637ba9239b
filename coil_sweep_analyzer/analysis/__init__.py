"""Analysis package.

Design principle:
  - Ingest produces validated :class:`~coil_sweep_analyzer.models.series.Series` objects.
  - Analysis consumes Series and produces derived, transient quantities
    (average curve, distance ratios, recorded comparison points).

Nothing here caches a "visible set": every function re-reads ``Series.visible``.
"""

from .locate import find_nearest, nearest_index, nearest_indices
from .averaging import compute_average
from .distance import HIDDEN_RATIO, apply_threshold, rank_series
from .compare import ComparisonRecorder, comparison_table

__all__ = [
    "find_nearest",
    "nearest_index",
    "nearest_indices",
    "compute_average",
    "HIDDEN_RATIO",
    "apply_threshold",
    "rank_series",
    "ComparisonRecorder",
    "comparison_table",
]
