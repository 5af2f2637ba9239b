from __future__ import annotations

import io
import math
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from coil_sweep_analyzer.errors import FormatError
from coil_sweep_analyzer.models.series import Kind, Series
from coil_sweep_analyzer.models.settings import FrequencySettings


_FORMAT_HINT = "CSV files should be in this format: FREQUENCY,Ls,Rs."


@dataclass(frozen=True)
class SweepReaderConfig:
    """
    Reader configuration for sweep CSV files.

    header_lines:
      number of leading lines skipped unconditionally (the ``FREQUENCY,Ls,Rs`` header).
    encoding:
      text encoding; the default also accepts a UTF-8 byte-order mark.
    """
    delimiter: str = ","
    header_lines: int = 1
    encoding: str = "utf-8-sig"


@dataclass(frozen=True)
class SweepFile:
    """
    One parsed sweep file after the frequency-window filter.

    ``ls`` / ``rs`` are None when no row of the file fell inside that kind's window.
    """
    name: str
    source_path: Optional[Path]
    n_rows: int
    ls: Optional[Series]
    rs: Optional[Series]
    warnings: Tuple[str, ...] = ()

    def series(self) -> List[Series]:
        return [s for s in (self.ls, self.rs) if s is not None]


def _to_float(field: object, what: str, source: Optional[str], line_no: Optional[int]) -> float:
    try:
        if isinstance(field, (int, float)):
            v = float(field)
        else:
            text = str(field).strip()
            # float() would take "1_000"
            if "_" in text:
                raise ValueError(text)
            v = float(text)
    except ValueError:
        raise FormatError(f"non-numeric {what} field {str(field)!r}. {_FORMAT_HINT}", source=source, line_no=line_no)
    if not math.isfinite(v):
        raise FormatError(f"non-finite {what} value {str(field)!r}.", source=source, line_no=line_no)
    return v


def parse_rows(
    rows: Iterable[Tuple[Optional[int], Sequence[object]]],
    name: str,
    settings: FrequencySettings,
    *,
    source_path: Optional[Path] = None,
) -> SweepFile:
    """
    Apply the ingestion filter to already split rows.

    Parameters
    ----------
    rows:
        ``(line_no, fields)`` pairs; ``line_no`` may be None for rows that did not
        come from a file. Only the first three fields (frequency, Ls, Rs) are used.
    name:
        Display name of the resulting series.
    settings:
        Frequency windows. A row enters the Ls series iff its frequency lies in the
        Ls window, and the Rs series iff it lies in the Rs window.

    Raises
    ------
    FormatError
        On the first row with fewer than three fields, a non-numeric / non-finite
        field, or a frequency lower than the previous row. Nothing is returned for
        a partially valid input.
    """
    src = str(source_path) if source_path is not None else name
    ls_range = settings.range_for(Kind.LS)
    rs_range = settings.range_for(Kind.RS)

    f_ls: List[float] = []
    v_ls: List[float] = []
    f_rs: List[float] = []
    v_rs: List[float] = []
    warnings: List[str] = []

    n_rows = 0
    prev_f: Optional[float] = None
    for line_no, fields in rows:
        if len(fields) < 3:
            raise FormatError(f"expected 3 fields, got {len(fields)}. {_FORMAT_HINT}", source=src, line_no=line_no)
        f = _to_float(fields[0], "FREQUENCY", src, line_no)
        ls = _to_float(fields[1], "Ls", src, line_no)
        rs = _to_float(fields[2], "Rs", src, line_no)

        if prev_f is not None and f < prev_f:
            raise FormatError(
                f"frequency decreases ({prev_f:g} -> {f:g}); sweep rows must be in ascending order.",
                source=src,
                line_no=line_no,
            )
        prev_f = f
        n_rows += 1

        if ls_range.contains(f):
            f_ls.append(f)
            v_ls.append(ls)
        if rs_range.contains(f):
            f_rs.append(f)
            v_rs.append(rs)

    if n_rows == 0:
        warnings.append("file has no data rows")

    def _build(kind: Kind, freqs: List[float], vals: List[float]) -> Optional[Series]:
        if not freqs:
            r = settings.range_for(kind)
            warnings.append(
                f"no rows inside the {kind.value} window [{r.min_hz:g}, {r.max_hz:g}] Hz; "
                f"no {kind.value} series created"
            )
            return None
        return Series(
            name=name,
            kind=kind,
            frequencies=np.asarray(freqs, dtype=np.float64),
            values=np.asarray(vals, dtype=np.float64),
            visible=True,
            source_path=source_path,
        )

    ls_series = _build(Kind.LS, f_ls, v_ls)
    rs_series = _build(Kind.RS, f_rs, v_rs)

    return SweepFile(
        name=name,
        source_path=source_path,
        n_rows=n_rows,
        ls=ls_series,
        rs=rs_series,
        warnings=tuple(warnings),
    )


class SweepCsvReader:
    """
    STRICT reader for ``FREQUENCY,Ls,Rs`` sweep exports.

    Contract:
      - The first ``header_lines`` lines are skipped without inspection.
      - Every other non-blank line must carry at least three numeric fields;
        extra fields are ignored.
      - Frequencies must not decrease from one line to the next.
      - One malformed line rejects the file; :meth:`read_batch` rejects the batch.
      - The display name is the file name without its suffix.
    """

    def __init__(self, config: Optional[SweepReaderConfig] = None):
        self.config = config or SweepReaderConfig()

    def _load_table(self, source, src: str) -> pd.DataFrame:
        """
        Load the data lines as strings, three columns wide.

        Blank lines stay as all-NaN rows so line numbers hold. Short lines are
        padded with NaN; fields past the third are dropped (``index_col=False``),
        whatever the width of the first line.
        """
        try:
            with warnings.catch_warnings():
                # "Length of header or names does not match length of data"
                warnings.simplefilter("ignore", pd.errors.ParserWarning)
                return pd.read_csv(
                    source,
                    sep=self.config.delimiter,
                    header=None,
                    names=[0, 1, 2],
                    index_col=False,
                    skiprows=self.config.header_lines,
                    dtype=str,
                    skip_blank_lines=False,
                    encoding=self.config.encoding,
                    engine="python",
                )
        except pd.errors.ParserError as exc:
            raise FormatError(f"cannot parse CSV ({exc}). {_FORMAT_HINT}", source=src) from exc
        except UnicodeDecodeError as exc:
            raise FormatError(f"not a text file ({exc.reason}).", source=src) from exc

    def _table_rows(self, df: pd.DataFrame) -> List[Tuple[int, List[str]]]:
        rows: List[Tuple[int, List[str]]] = []
        for idx, rec in enumerate(df.itertuples(index=False, name=None)):
            fields = ["" if pd.isna(v) else str(v) for v in rec]
            # padding of short lines
            while fields and not fields[-1].strip():
                fields.pop()
            if not fields:
                continue
            rows.append((self.config.header_lines + idx + 1, fields))
        return rows

    def read_text(self, text: str, name: str, settings: FrequencySettings, source_path: Optional[Path] = None) -> SweepFile:
        src = str(source_path) if source_path is not None else name
        df = self._load_table(io.StringIO(text), src)
        return parse_rows(self._table_rows(df), name, settings, source_path=source_path)

    def read(self, path: str | Path, settings: FrequencySettings) -> SweepFile:
        p = Path(path).expanduser().resolve()
        if not p.is_file():
            raise FileNotFoundError(f"Sweep file not found: {p}")
        df = self._load_table(p, str(p))
        return parse_rows(self._table_rows(df), p.stem, settings, source_path=p)

    def read_batch(self, paths: Iterable[str | Path], settings: FrequencySettings) -> List[SweepFile]:
        """Parse every file first; the first failure aborts the whole batch."""
        return [self.read(p, settings) for p in paths]
