from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pandas as pd

from coil_sweep_analyzer.errors import NoAverageError
from coil_sweep_analyzer.models.series import AverageSeries, Kind, RecordedPoint, Series
from coil_sweep_analyzer.models.settings import FrequencySettings
from .locate import find_nearest, nearest_index
from .units import format_frequency, format_value


TABLE_COLUMNS = (
    "Frequency",
    "Value",
    "Max bound",
    "Min bound",
    "Series name",
    "Distance Ratio (%)",
    "Absolute Distance",
)


@dataclass
class ComparisonRecorder:
    """
    Session log of point comparisons.

    Each :meth:`compare_at` call appends one row per visible series; rows are
    never replaced or expired, only removed by :meth:`clear`. Calling twice at
    the same frequency therefore yields duplicate rows (a running log).
    """
    points: List[RecordedPoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def clear(self) -> None:
        self.points.clear()

    def compare_at(
        self,
        target_frequency: float,
        average: Optional[AverageSeries],
        series: Sequence[Series],
        *,
        include_average: bool = False,
    ) -> List[RecordedPoint]:
        """
        Record every visible series' value at the sample nearest to ``target_frequency``.

        Parameters
        ----------
        target_frequency:
            Frequency picked by the user [Hz].
        average:
            Average curve of the kind being compared.
        series:
            Series in store order; only visible series of ``average.kind`` are used.
        include_average:
            Also record the average curve itself (ratio 0, distance 0).

        Returns
        -------
        list of RecordedPoint
            The rows appended by this call.
        """
        if average is None or not average.available:
            raise NoAverageError("Please calculate the average first.")

        kind = average.kind
        i_avg = nearest_index(average.frequencies, target_frequency)
        avg_y = float(average.values[i_avg])

        # (series, nearest index, value) for every visible series with samples
        picks = []
        for s in series:
            if s.kind is not kind or not s.visible:
                continue
            i = find_nearest(s.frequencies, target_frequency)
            if i is None:
                continue
            picks.append((s, i, float(s.values[i])))

        max_difference = 0.0
        for _, _, y in picks:
            d = abs(y - avg_y)
            if d > max_difference:
                max_difference = d

        new_points: List[RecordedPoint] = []
        for s, i, y in picks:
            d = abs(y - avg_y)
            ratio = d / max_difference if max_difference > 0.0 else 0.0
            new_points.append(
                RecordedPoint(
                    frequency=float(s.frequencies[i]),
                    value=y,
                    series_name=s.name,
                    distance_ratio=ratio,
                    distance_to_average=d,
                    kind=kind,
                )
            )

        if include_average:
            new_points.append(
                RecordedPoint(
                    frequency=float(average.frequencies[i_avg]),
                    value=avg_y,
                    series_name=average.label,
                    distance_ratio=0.0,
                    distance_to_average=0.0,
                    kind=kind,
                )
            )

        self.points.extend(new_points)
        return new_points


def comparison_table(points: Sequence[RecordedPoint], settings: FrequencySettings) -> pd.DataFrame:
    """
    Display table of recorded points (all cells formatted as strings).

    Columns: ``Frequency | Value | Max bound | Min bound | Series name |
    Distance Ratio (%) | Absolute Distance``. Value and bounds are formatted
    with the units of each row's kind.
    """
    rows = []
    for p in points:
        k = Kind.parse(p.kind)
        r = settings.range_for(k)
        rows.append(
            {
                "Frequency": format_frequency(p.frequency),
                "Value": format_value(p.value, k),
                "Max bound": format_frequency(r.max_hz),
                "Min bound": format_frequency(r.min_hz),
                "Series name": p.series_name,
                "Distance Ratio (%)": f"{p.distance_ratio * 100:g}%",
                "Absolute Distance": f"{p.distance_to_average:g}",
            }
        )
    return pd.DataFrame(rows, columns=list(TABLE_COLUMNS))


def points_frame(points: Sequence[RecordedPoint]) -> pd.DataFrame:
    """Raw numeric view of the recorded points (one row per point)."""
    return pd.DataFrame(
        {
            "frequency_hz": [p.frequency for p in points],
            "value": [p.value for p in points],
            "series_name": [p.series_name for p in points],
            "distance_ratio": [p.distance_ratio for p in points],
            "distance_to_average": [p.distance_to_average for p in points],
            "kind": [Kind.parse(p.kind).value for p in points],
        }
    )
