"""Session -- the command API over loaded series, averages, rankings and comparisons.

One :class:`SweepSession` per open document. It owns the series store and the
comparison log and is the only mutable state; GUI and CLI call its methods and
never touch module-level state.

Commands are synchronous. A failing command raises before mutating anything:
a bad file leaves the store as it was, a missing average leaves visibility and
the comparison log as they were.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from coil_sweep_analyzer.analysis.averaging import compute_average
from coil_sweep_analyzer.analysis.compare import ComparisonRecorder, comparison_table
from coil_sweep_analyzer.analysis.distance import apply_threshold, rank_series
from coil_sweep_analyzer.analysis.export import (
    DEFAULT_AVERAGE_NAME,
    default_export_dir,
    export_average_csv,
    export_comparison_csv,
)
from coil_sweep_analyzer.analysis.locate import nearest_index
from coil_sweep_analyzer.errors import NoAverageError
from coil_sweep_analyzer.ingest.readers_csv import SweepCsvReader, SweepFile, parse_rows
from coil_sweep_analyzer.ingest.settings_store import SettingsStore
from coil_sweep_analyzer.models.series import AverageSeries, Kind, RecordedPoint
from coil_sweep_analyzer.models.settings import FrequencySettings
from coil_sweep_analyzer.store import SeriesStore


@dataclass(frozen=True)
class LoadReport:
    """Outcome of one successful load: the admitted files and every non-fatal finding."""
    files: Tuple[SweepFile, ...]
    warnings: Tuple[str, ...] = ()

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.files]


class SweepSession:
    """
    Explicit session state: store + comparison log + frequency settings.

    Parameters
    ----------
    settings:
        Frequency windows used by every subsequent load.
    reader:
        CSV reader (defaults to a strict :class:`SweepCsvReader`).
    """

    def __init__(self, settings: FrequencySettings, reader: Optional[SweepCsvReader] = None) -> None:
        self._settings = settings.validate()
        self.reader = reader or SweepCsvReader()
        self.store = SeriesStore()
        self.recorder = ComparisonRecorder()
        self._average_requested: Dict[Kind, bool] = {Kind.LS: False, Kind.RS: False}

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def settings(self) -> FrequencySettings:
        return self._settings

    def update_settings(self, settings: FrequencySettings, store: Optional[SettingsStore] = None) -> None:
        """Validate, persist (if a store is given) and use for the next load."""
        settings.validate()
        if store is not None:
            store.save(settings)
        self._settings = settings

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _admit(self, files: Sequence[SweepFile]) -> LoadReport:
        warnings: List[str] = []
        for sf in files:
            warnings.extend(f"{sf.name}: {msg}" for msg in sf.warnings)
        warnings.extend(self.store.admit(files))
        return LoadReport(files=tuple(files), warnings=tuple(warnings))

    def load_files(self, paths: Iterable[str | Path]) -> LoadReport:
        """Read every file, then admit all of them. One malformed file admits none."""
        files = self.reader.read_batch(list(paths), self._settings)
        return self._admit(files)

    def load_rows(self, rows: Iterable[Sequence[object]], name: str) -> LoadReport:
        """Admit one series pair from already parsed ``(frequency, Ls, Rs)`` rows."""
        sf = parse_rows(((None, r) for r in rows), name, self._settings)
        return self._admit([sf])

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def set_visibility(self, kind: Kind | str, name: str, visible: bool) -> None:
        self.store.set_visibility(kind, name, visible)

    def hide_series(self, kind: Kind | str, names: Iterable[str]) -> None:
        targets = set(names)
        for s in self.store.series(kind):
            if s.name in targets:
                s.visible = False

    def show_only(self, kind: Kind | str, names: Iterable[str]) -> None:
        keep = set(names)
        for s in self.store.series(kind):
            s.visible = s.name in keep

    def show_all(self, kind: Kind | str) -> None:
        self.store.set_all_visible(kind, True)

    # ------------------------------------------------------------------
    # Average / ranking
    # ------------------------------------------------------------------

    def compute_average(self, kind: Kind | str, only_visible: bool = True) -> AverageSeries:
        """The explicit "calculate average" command; enables ranking and comparison."""
        k = Kind.parse(kind)
        avg = compute_average(self.store.series(k), k, only_visible=only_visible)
        if not self.store.is_empty(k):
            self._average_requested[k] = True
        return avg

    def average(self, kind: Kind | str) -> AverageSeries:
        """Current average of the visible series; requires :meth:`compute_average` first."""
        k = Kind.parse(kind)
        if not self._average_requested[k]:
            raise NoAverageError(f"Please calculate the {k.value} average graph first.")
        avg = compute_average(self.store.series(k), k, only_visible=True)
        if not avg.available:
            raise NoAverageError(f"No visible {k.value} series; the average graph is empty.")
        return avg

    def has_average(self, kind: Kind | str) -> bool:
        return self._average_requested[Kind.parse(kind)]

    def rank_series(self, kind: Kind | str) -> Dict[str, float]:
        """Distance ratio per series, recomputed against the current visibility."""
        k = Kind.parse(kind)
        return rank_series(self.store.series(k), self.average(k))

    def highlight(self, kind: Kind | str, threshold: float) -> Dict[str, bool]:
        """Show exactly the series whose fresh ratio is ``<= threshold`` (fraction in [0, 1])."""
        k = Kind.parse(kind)
        t = float(threshold)
        if not (0.0 <= t <= 1.0):
            raise ValueError(f"threshold must be within [0, 1]; got {threshold!r}")
        ratios = self.rank_series(k)
        return apply_threshold(self.store.series(k), ratios, t)

    # ------------------------------------------------------------------
    # Point comparison / cursor
    # ------------------------------------------------------------------

    def record_comparison(self, frequency: float, kind: Kind | str, include_average: bool = False) -> List[RecordedPoint]:
        k = Kind.parse(kind)
        return self.recorder.compare_at(
            frequency,
            self.average(k),
            self.store.series(k),
            include_average=include_average,
        )

    @property
    def recorded_points(self) -> Tuple[RecordedPoint, ...]:
        return tuple(self.recorder.points)

    def clear_recorded_points(self) -> None:
        self.recorder.clear()

    def comparison_table(self) -> pd.DataFrame:
        return comparison_table(self.recorder.points, self._settings)

    def cursor(self, kind: Kind | str, name: str, frequency: float) -> Tuple[float, float]:
        """Nearest ``(frequency, value)`` sample of one series (interactive cursor read-out)."""
        s = self.store.get(kind, name)
        i = nearest_index(s.frequencies, frequency)
        return float(s.frequencies[i]), float(s.values[i])

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_average(
        self,
        kind: Kind | str,
        path: Optional[str | Path] = None,
        *,
        base_dir: str | Path = ".",
    ) -> Path:
        """Write the current average to ``path`` (default ``<base_dir>/CSV DATA/<time>-AVG/average_data.csv``)."""
        avg = self.average(kind)
        target = Path(path) if path is not None else default_export_dir(base_dir) / DEFAULT_AVERAGE_NAME
        return export_average_csv(target, avg)

    def export_comparison(self, path: str | Path) -> Path:
        if not self.recorder.points:
            raise ValueError("No recorded points. Please compare points first.")
        return export_comparison_csv(path, self.recorder.points, self._settings)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Forget every series, every recorded point and the average."""
        self.store.clear()
        self.recorder.clear()
        for k in self._average_requested:
            self._average_requested[k] = False
