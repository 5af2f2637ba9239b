"""Average-curve and comparison-log export.

The average CSV uses the same ``FREQUENCY,Ls,Rs`` layout as the input files so
it can be loaded back as one more sweep: an Ls export writes ``f,avg,0``, an Rs
export ``f,0,avg``. Numbers are written with :data:`CSV_FLOAT_FORMAT`
(10 significant digits, relative round-trip error below 5e-10).
"""

from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from coil_sweep_analyzer.errors import NoAverageError
from coil_sweep_analyzer.models.series import AverageSeries, Kind, RecordedPoint
from coil_sweep_analyzer.models.settings import FrequencySettings
from .compare import comparison_table

CSV_HEADER = ("FREQUENCY", "Ls", "Rs")
CSV_FLOAT_FORMAT = "%.10g"
DEFAULT_AVERAGE_NAME = "average_data.csv"


def default_export_dir(base_dir: str | Path, now: Optional[_dt.datetime] = None) -> Path:
    """``<base_dir>/CSV DATA/<hh_mm_ss>-AVG`` (not created)."""
    t = now or _dt.datetime.now()
    return Path(base_dir).expanduser() / "CSV DATA" / f"{t:%H_%M_%S}-AVG"


def average_frame(average: AverageSeries) -> pd.DataFrame:
    zeros = np.zeros_like(average.values)
    if average.kind is Kind.LS:
        ls, rs = average.values, zeros
    else:
        ls, rs = zeros, average.values
    return pd.DataFrame({CSV_HEADER[0]: average.frequencies, CSV_HEADER[1]: ls, CSV_HEADER[2]: rs})


def export_average_csv(path: str | Path, average: AverageSeries, *, write_readme: bool = True) -> Path:
    """
    Write ``average`` to ``path`` (parent folders are created).

    With ``write_readme`` a ``README.txt`` next to the CSV lists the series the
    average was computed from.
    """
    if not average.available:
        raise NoAverageError("There is no average graph. Calculate the average graph first.")

    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    average_frame(average).to_csv(p, index=False, float_format=CSV_FLOAT_FORMAT, lineterminator="\n")

    if write_readme:
        lines = ["Average Graph Data", "Using the following Core for calculation:"]
        lines += [f"CORE: {name}" for name in average.included]
        (p.parent / "README.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")
    return p


def export_comparison_csv(
    path: str | Path,
    points: Sequence[RecordedPoint],
    settings: FrequencySettings,
) -> Path:
    """Write the formatted comparison table to ``path``."""
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    comparison_table(points, settings).to_csv(p, index=False, encoding="utf-8")
    return p
