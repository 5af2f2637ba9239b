"""Coil Sweep Analyzer -- review tool for Ls/Rs frequency sweeps of wound cores.

A lab exports one CSV per measured core (``FREQUENCY,Ls,Rs``). This package
overlays those sweeps, builds the per-frequency average curve and ranks every
core by how far it sits from that average, so that outliers can be highlighted
or hidden before the average is exported.

This package provides tools for:
- Ingesting sweep CSV files through a per-kind frequency window
- Averaging the visible subset of series
- Ranking series by normalized mean absolute deviation from the average
- Recording point comparisons at a chosen frequency
- Exporting the average curve and the comparison log

Key principles:
- No hidden state: everything lives in an explicit ``SweepSession``
- No stale rankings: averages and ratios are recomputed on every request
- Strict ingestion: a malformed file rejects the whole batch

Main subpackages:
- analysis: Locator, averaging, distance ratios, comparison, units, export
- gui: Interactive ipywidgets GUI
- ingest: CSV reader and frequency-range settings store
- models: Data models (Series, AverageSeries, RecordedPoint, FrequencySettings)
"""

from .session import SweepSession

__all__ = ["SweepSession"]
