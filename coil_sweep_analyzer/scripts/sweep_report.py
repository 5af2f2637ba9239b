"""
Headless report over a set of sweep CSV files.

Loads the files through the frequency window, computes the average of one
quantity, prints the distance ratio of every series, optionally records point
comparisons and writes the average, the formatted comparison table and the raw comparison
points as CSV.

Examples
--------
Shell::

    python -m coil_sweep_analyzer.scripts.sweep_report cores/*.csv --kind Ls \\
        --ls-khz 1 1000 --threshold 0.25 --compare-at 10000 --outdir out

Python:

>>> from coil_sweep_analyzer.scripts.sweep_report import main
>>> main(["a.csv", "b.csv", "--kind", "Rs", "--outdir", "out"])  # doctest: +SKIP
0
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, Sequence

from coil_sweep_analyzer.analysis.compare import points_frame
from coil_sweep_analyzer.analysis.distance import HIDDEN_RATIO
from coil_sweep_analyzer.analysis.export import CSV_FLOAT_FORMAT, DEFAULT_AVERAGE_NAME
from coil_sweep_analyzer.errors import FormatError, InvalidSettingsError, NoAverageError
from coil_sweep_analyzer.ingest.settings_store import SettingsStore
from coil_sweep_analyzer.models.series import Kind
from coil_sweep_analyzer.models.settings import FrequencySettings
from coil_sweep_analyzer.session import SweepSession

EXIT_DOMAIN_ERROR = 2


def resolve_settings(
    settings_path: Optional[str],
    ls_khz: Optional[Sequence[float]],
    rs_khz: Optional[Sequence[float]],
) -> FrequencySettings:
    """
    Frequency window for the run.

    Explicit ``--ls-khz`` / ``--rs-khz`` override the matching half of the stored
    settings. With nothing stored and nothing given, every row is kept.
    """
    base = SettingsStore(Path(settings_path) if settings_path else None).load()
    if base is None:
        base = FrequencySettings.unbounded()
    min_ls, max_ls = base.min_ls_hz, base.max_ls_hz
    min_rs, max_rs = base.min_rs_hz, base.max_rs_hz
    if ls_khz is not None:
        min_ls, max_ls = ls_khz[0] * 1e3, ls_khz[1] * 1e3
    if rs_khz is not None:
        min_rs, max_rs = rs_khz[0] * 1e3, rs_khz[1] * 1e3
    return FrequencySettings(min_ls_hz=min_ls, max_ls_hz=max_ls, min_rs_hz=min_rs, max_rs_hz=max_rs).validate()


def run(
    files: Sequence[str],
    kind: Kind,
    settings: FrequencySettings,
    *,
    threshold: Optional[float] = None,
    compare_at: Sequence[float] = (),
    include_average: bool = False,
    outdir: Optional[Path] = None,
) -> List[str]:
    """Execute the report; returns the printed lines (also useful in tests)."""
    lines: List[str] = []
    session = SweepSession(settings)

    report = session.load_files(files)
    lines.append(f"Loaded {len(report.files)} file(s): {', '.join(report.names)}")
    lines.extend(f"CHECK: {msg}" for msg in report.warnings)

    avg = session.compute_average(kind)
    if not avg.available:
        raise NoAverageError(f"No {kind.value} series inside the frequency window.")
    lines.append(f"{avg.label}: {avg.n_included} series, {avg.frequencies.size} samples")

    if threshold is not None:
        vis = session.highlight(kind, threshold)
        lines.append(f"Threshold {threshold:g}: {sum(vis.values())} of {len(vis)} series kept")

    ratios = session.rank_series(kind)
    for name, r in sorted(ratios.items(), key=lambda kv: kv[1]):
        shown = "hidden" if r == HIDDEN_RATIO else f"{r * 100:.2f}%"
        lines.append(f"  {name:<40s} {shown}")

    for f in compare_at:
        pts = session.record_comparison(f, kind, include_average=include_average)
        lines.append(f"Compared at {f:g} Hz: {len(pts)} point(s)")

    if outdir is not None:
        outdir = Path(outdir).expanduser()
        p = session.export_average(kind, outdir / f"{kind.value}_{DEFAULT_AVERAGE_NAME}")
        lines.append(f"wrote: {p}")
        if session.recorded_points:
            p = session.export_comparison(outdir / f"{kind.value}_comparison.csv")
            lines.append(f"wrote: {p}")
            p = outdir / f"{kind.value}_comparison_points.csv"
            points_frame(session.recorded_points).to_csv(
                p, index=False, float_format=CSV_FLOAT_FORMAT, lineterminator="\n"
            )
            lines.append(f"wrote: {p}")
    elif session.recorded_points:
        lines.append(session.comparison_table().to_string(index=False))

    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse

    p = argparse.ArgumentParser(
        prog="python -m coil_sweep_analyzer.scripts.sweep_report",
        description="Average a set of Ls/Rs sweep CSV files and rank every file against the average.",
    )
    p.add_argument("files", nargs="+", help="Sweep CSV files (FREQUENCY,Ls,Rs)")
    p.add_argument("--kind", default="Ls", choices=["Ls", "Rs"], help="Quantity to average (default: Ls)")
    p.add_argument("--settings", default=None, help="Settings JSON (default: the GUI settings file)")
    p.add_argument("--ls-khz", nargs=2, type=float, metavar=("MIN", "MAX"), default=None,
                   help="Ls frequency window in kHz")
    p.add_argument("--rs-khz", nargs=2, type=float, metavar=("MIN", "MAX"), default=None,
                   help="Rs frequency window in kHz")
    p.add_argument("--threshold", type=float, default=None,
                   help="Hide series whose distance ratio exceeds this fraction (0..1)")
    p.add_argument("--compare-at", type=float, action="append", default=[],
                   help="Record a point comparison at this frequency [Hz] (repeatable)")
    p.add_argument("--include-average", action="store_true", help="Add the average row to each comparison")
    p.add_argument("--outdir", default=None, help="Write the average and comparison CSV files here")

    ns = p.parse_args(list(argv) if argv is not None else None)

    try:
        settings = resolve_settings(ns.settings, ns.ls_khz, ns.rs_khz)
        lines = run(
            ns.files,
            Kind.parse(ns.kind),
            settings,
            threshold=ns.threshold,
            compare_at=ns.compare_at,
            include_average=ns.include_average,
            outdir=Path(ns.outdir) if ns.outdir else None,
        )
    except (FormatError, InvalidSettingsError, NoAverageError, ValueError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_DOMAIN_ERROR

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
