from __future__ import annotations

import glob
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import ipywidgets as w
import pandas as pd
from IPython.display import display

from coil_sweep_analyzer.analysis.distance import HIDDEN_RATIO
from coil_sweep_analyzer.analysis.units import format_frequency, format_value
from coil_sweep_analyzer.errors import NoAverageError
from coil_sweep_analyzer.ingest.settings_store import SettingsStore
from coil_sweep_analyzer.models.series import Kind
from coil_sweep_analyzer.models.settings import FrequencySettings
from coil_sweep_analyzer.session import SweepSession
from .log_view import SessionLog
from .plots import new_overlay_figure, save_png, y_limits
from .settings_panel import build_settings_panel


# Keep a single active GUI instance per kernel to avoid duplicated callbacks / stacked widgets.
_ACTIVE_GUI: Optional[w.Widget] = None

LIMIT_COLORS = ["green", "red", "blue", "orange", "black"]


@dataclass
class AppState:
    session: SweepSession
    settings_ready: bool = False
    show_average: bool = False
    limit_lines: List[float] = field(default_factory=list)
    fig: object | None = None


def resolve_paths(text: str) -> List[Path]:
    """
    Expand the "Files" field: a folder (all ``*.csv`` inside), glob patterns, or
    several entries separated by ``;``.
    """
    out: List[Path] = []
    for part in (text or "").split(";"):
        part = part.strip()
        if not part:
            continue
        p = Path(part).expanduser()
        if p.is_dir():
            out.extend(sorted(p.glob("*.csv")))
        elif any(ch in part for ch in "*?["):
            out.extend(sorted(Path(m) for m in glob.glob(str(p))))
        else:
            out.append(p)
    return out


def _browse_for_files() -> Optional[str]:
    try:
        import tkinter as tk
        from tkinter import filedialog

        root = tk.Tk()
        root.withdraw()
        root.attributes("-topmost", True)
        picked = filedialog.askopenfilenames(title="Select CSV Files", filetypes=[("CSV Files", "*.csv")])
        root.destroy()
        return ";".join(picked) if picked else None
    except Exception:
        return None


def ratio_frame(ratios: dict) -> pd.DataFrame:
    rows = []
    for name, r in ratios.items():
        hidden = r == HIDDEN_RATIO
        rows.append({
            "Series name": name,
            "Distance Ratio (%)": "excluded" if hidden else f"{r * 100:.2f}%",
        })
    return pd.DataFrame(rows, columns=["Series name", "Distance Ratio (%)"])


def build_gui(settings_store: Optional[SettingsStore] = None) -> w.Widget:
    """
    Notebook GUI: a "Sweeps" tab (load, overlay, average, highlight, compare,
    export) and a "Settings" tab (frequency range).

    Notes
    - Closes the previous GUI instance created from this module.
    - Until a frequency range is stored, loading is refused and the Settings tab
      is selected.
    """
    global _ACTIVE_GUI
    if _ACTIVE_GUI is not None:
        try:
            _ACTIVE_GUI.close()
        except Exception:
            pass
        _ACTIVE_GUI = None

    store = settings_store or SettingsStore()
    log = SessionLog(title="Log", height_px=180)

    try:
        stored = store.load()
    except ValueError as exc:
        log.error(f"ERROR: {exc}")
        stored = None

    state = AppState(session=SweepSession(stored or FrequencySettings.unbounded()), settings_ready=stored is not None)
    session = state.session

    # -----------------------
    # Widgets
    # -----------------------
    files = w.Text(
        description="Files",
        placeholder="folder, glob (*.csv) or file1.csv;file2.csv",
        layout=w.Layout(width="70%"),
    )
    btn_browse = w.Button(description="Browse…", layout=w.Layout(width="110px"))
    btn_load = w.Button(description="Load CSV", button_style="primary", layout=w.Layout(width="120px"))
    btn_clear = w.Button(description="Clear", button_style="warning", layout=w.Layout(width="100px"))

    kind_tb = w.ToggleButtons(options=[("Ls", Kind.LS.value), ("Rs", Kind.RS.value)], value=Kind.LS.value,
                              description="View")

    sel_series = w.SelectMultiple(options=[], description="Series", rows=8, layout=w.Layout(width="420px"))
    btn_hide = w.Button(description="Hide selected")
    btn_only = w.Button(description="Show only selected")
    btn_default = w.Button(description="Show all")

    btn_avg = w.Button(description="Calculate average", button_style="success")
    thr = w.FloatSlider(value=100.0, min=0.0, max=100.0, step=0.5, description="Threshold %",
                        readout_format=".1f", layout=w.Layout(width="420px"))
    btn_highlight = w.Button(description="Highlight")

    cmp_freq = w.FloatText(value=0.0, description="Freq [Hz]", layout=w.Layout(width="220px"))
    cb_cmp_avg = w.Checkbox(value=False, description="Record average row", indent=False)
    btn_compare = w.Button(description="Compare")
    btn_table = w.Button(description="Show table")
    btn_table_clear = w.Button(description="Clear table")

    cur_series = w.Dropdown(options=[], description="Cursor", layout=w.Layout(width="320px"))
    cur_freq = w.FloatSlider(value=0.0, min=0.0, max=1.0, step=1.0, description="f [Hz]",
                             continuous_update=False, layout=w.Layout(width="520px"))
    cur_readout = w.HTML("")

    line_min = w.FloatText(value=0.0, description="Min value", layout=w.Layout(width="200px"))
    line_max = w.FloatText(value=0.0, description="Max value", layout=w.Layout(width="200px"))
    btn_lines = w.Button(description="Add lines")
    btn_lines_clear = w.Button(description="Clear lines")
    line_color = w.Dropdown(options=LIMIT_COLORS, value="green", description="Line color",
                            layout=w.Layout(width="200px"))
    cb_lines = w.Checkbox(value=True, description="Show lines", indent=False)
    cb_legend = w.Checkbox(value=True, description="Legend", indent=False)

    export_dir = w.Text(value=str(Path.home()), description="Export to", layout=w.Layout(width="60%"))
    btn_export_avg = w.Button(description="Export AVG as CSV")
    btn_export_table = w.Button(description="Export table as CSV")
    btn_png = w.Button(description="Export graph as PNG")

    out_plot = w.Output(layout=w.Layout(border="1px solid #ddd", padding="6px", min_height="420px"))
    out_table = w.Output(layout=w.Layout(border="1px solid #ddd", padding="6px"))

    # -----------------------
    # Helpers
    # -----------------------
    def _kind() -> Kind:
        return Kind.parse(kind_tb.value)

    def _average_or_none():
        if not state.show_average or not session.has_average(_kind()):
            return None
        try:
            return session.average(_kind())
        except NoAverageError:
            return None

    def _refresh_lists() -> None:
        k = _kind()
        opts = []
        for s in session.store.series(k):
            mark = "" if s.visible else "  [hidden]"
            opts.append((f"{s.name}{mark}", s.name))
        sel_series.options = opts
        cur_series.options = [(n, n) for n in session.store.names(k)]
        _refresh_cursor_range()

    def _refresh_cursor_range() -> None:
        name = cur_series.value
        if not name:
            cur_readout.value = ""
            return
        s = session.store.get(_kind(), name)
        lo, hi = float(s.frequencies[0]), float(s.frequencies[-1])
        if hi <= lo:
            hi = lo + 1.0
        cur_freq.min, cur_freq.max = -1e300, 1e300
        cur_freq.min, cur_freq.max = lo, hi
        cur_freq.step = max((hi - lo) / 1000.0, 1e-9)
        cur_freq.value = lo
        _update_cursor()

    def _update_cursor(_change=None) -> None:
        name = cur_series.value
        if not name:
            return
        k = _kind()
        f, v = session.cursor(k, name, cur_freq.value)
        cur_readout.value = f"<b>{name}</b>: {format_frequency(f)} &rarr; {format_value(v, k)}"

    def _redraw() -> None:
        import matplotlib.pyplot as plt

        k = _kind()
        with out_plot:
            out_plot.clear_output(wait=True)
            if state.fig is not None:
                plt.close(state.fig)
                state.fig = None
            if session.store.is_empty(k):
                print(f"No {k.value} series loaded.")
                return
            fig, _ax = new_overlay_figure(
                session.store.series(k),
                k,
                average=_average_or_none(),
                limit_lines=state.limit_lines if cb_lines.value else (),
                limit_color=line_color.value,
                show_legend=cb_legend.value,
            )
            state.fig = fig
            plt.show()

    def _show_ratios() -> None:
        with out_table:
            out_table.clear_output(wait=True)
            ratios = session.rank_series(_kind())
            display(ratio_frame(ratios))

    def _refresh_all() -> None:
        _refresh_lists()
        _redraw()

    # -----------------------
    # Callbacks
    # -----------------------
    def _on_browse(_):
        picked = _browse_for_files()
        if picked is None:
            log.warning("WARNING: Browse failed (headless environment). Please paste the paths manually.")
            return
        files.value = picked

    def _on_load(_):
        if not state.settings_ready:
            log.warning("WARNING: Please set frequency range values in the Settings tab.")
            gui.selected_index = 1
            return
        paths = resolve_paths(files.value)
        if not paths:
            log.warning("WARNING: No CSV files selected.")
            return
        try:
            report = session.load_files(paths)
        except (OSError, ValueError) as exc:
            log.error(f"ERROR: {exc}")
            return
        log.load_report(f"Loaded {len(report.files)} file(s): {', '.join(report.names)}", report.warnings)
        _refresh_all()

    def _on_clear(_):
        session.clear()
        state.show_average = False
        state.limit_lines.clear()
        with out_table:
            out_table.clear_output()
        log.info("Session cleared.")
        _refresh_all()

    def _on_kind(_change):
        state.show_average = False
        _refresh_all()

    def _on_hide(_):
        session.hide_series(_kind(), sel_series.value)
        _refresh_all()

    def _on_only(_):
        session.show_only(_kind(), sel_series.value)
        _refresh_all()

    def _on_default(_):
        if session.store.is_empty():
            log.warning("WARNING: No CSV data loaded. Load CSV files first.")
            return
        session.show_all(_kind())
        _refresh_all()

    def _on_avg(_):
        k = _kind()
        if session.store.is_empty(k):
            log.warning(f"WARNING: No {k.value} data loaded. Load CSV files first.")
            return
        avg = session.compute_average(k)
        if not avg.available:
            log.warning("WARNING: No visible series; the average graph is empty.")
            return
        state.show_average = True
        log.info(f"{avg.label} computed from {avg.n_included} series.")
        _redraw()
        _show_ratios()

    def _on_highlight(_):
        k = _kind()
        try:
            vis = session.highlight(k, thr.value / 100.0)
        except (RuntimeError, ValueError) as exc:
            log.error(f"ERROR: {exc}")
            return
        n_vis = sum(1 for v in vis.values() if v)
        log.info(f"Highlight at {thr.value:.1f}%: {n_vis} of {len(vis)} series visible.")
        _refresh_all()
        if n_vis:
            _show_ratios()

    def _on_compare(_):
        k = _kind()
        try:
            pts = session.record_comparison(cmp_freq.value, k, include_average=cb_cmp_avg.value)
        except (RuntimeError, ValueError) as exc:
            log.error(f"ERROR: {exc}")
            return
        log.info(f"Recorded {len(pts)} point(s) near {format_frequency(cmp_freq.value)} "
                 f"({len(session.recorded_points)} in table).")

    def _on_table(_):
        if not session.recorded_points:
            log.warning("WARNING: Please compare points first.")
            return
        with out_table:
            out_table.clear_output(wait=True)
            display(session.comparison_table())

    def _on_table_clear(_):
        session.clear_recorded_points()
        with out_table:
            out_table.clear_output()
        log.info("Comparison table cleared.")

    def _on_lines(_):
        state.limit_lines = [float(line_min.value), float(line_max.value)]
        _redraw()

    def _on_lines_clear(_):
        state.limit_lines = []
        lo, hi = y_limits(session.store.series(_kind()), _kind())
        line_min.value, line_max.value = lo, hi
        _redraw()

    def _on_export_avg(_):
        try:
            p = session.export_average(_kind(), base_dir=export_dir.value)
        except (OSError, RuntimeError, ValueError) as exc:
            log.error(f"ERROR: {exc}")
            return
        log.info(f"Average graph data exported to: {p}")

    def _on_export_table(_):
        target = Path(export_dir.value).expanduser() / "comparison_table.csv"
        try:
            p = session.export_comparison(target)
        except (OSError, ValueError) as exc:
            log.error(f"ERROR: {exc}")
            return
        log.info(f"Comparison table exported to: {p}")

    def _on_png(_):
        if state.fig is None:
            log.warning("WARNING: Nothing plotted yet.")
            return
        target = Path(export_dir.value).expanduser() / f"sweeps_{_kind().value}.png"
        try:
            p = save_png(state.fig, target)
        except OSError as exc:
            log.error(f"ERROR: {exc}")
            return
        log.info(f"Graph exported to: {p}")

    def _on_settings_saved(settings: FrequencySettings) -> None:
        session.update_settings(settings)
        state.settings_ready = True
        log.info("Frequency range updated; it applies to the next load.")

    btn_browse.on_click(_on_browse)
    btn_load.on_click(_on_load)
    btn_clear.on_click(_on_clear)
    kind_tb.observe(_on_kind, names="value")
    btn_hide.on_click(_on_hide)
    btn_only.on_click(_on_only)
    btn_default.on_click(_on_default)
    btn_avg.on_click(_on_avg)
    btn_highlight.on_click(_on_highlight)
    btn_compare.on_click(_on_compare)
    btn_table.on_click(_on_table)
    btn_table_clear.on_click(_on_table_clear)
    btn_lines.on_click(_on_lines)
    btn_lines_clear.on_click(_on_lines_clear)
    cb_legend.observe(lambda _c: _redraw(), names="value")
    line_color.observe(lambda _c: _redraw(), names="value")
    cb_lines.observe(lambda _c: _redraw(), names="value")
    cur_series.observe(lambda _c: _refresh_cursor_range(), names="value")
    cur_freq.observe(_update_cursor, names="value")
    btn_export_avg.on_click(_on_export_avg)
    btn_export_table.on_click(_on_export_table)
    btn_png.on_click(_on_png)

    # -----------------------
    # Layout
    # -----------------------
    sweeps = w.VBox([
        w.HBox([files, btn_browse, btn_load, btn_clear]),
        w.HBox([kind_tb, cb_legend]),
        w.HBox([
            sel_series,
            w.VBox([btn_hide, btn_only, btn_default]),
            w.VBox([btn_avg, thr, btn_highlight]),
        ]),
        out_plot,
        w.HBox([cur_series, cur_freq]),
        cur_readout,
        w.HBox([cmp_freq, cb_cmp_avg, btn_compare, btn_table, btn_table_clear]),
        w.HBox([line_min, line_max, btn_lines, btn_lines_clear, line_color, cb_lines]),
        w.HBox([export_dir, btn_export_avg, btn_export_table, btn_png]),
        out_table,
        log.panel,
    ])
    settings_tab = build_settings_panel(store, _on_settings_saved, current=stored)

    gui = w.Tab(children=[sweeps, settings_tab])
    gui.set_title(0, "Sweeps")
    gui.set_title(1, "Settings")
    gui.selected_index = 0
    if not state.settings_ready:
        log.warning("WARNING: No frequency range stored yet. Please set it in the Settings tab.")
        gui.selected_index = 1

    _ACTIVE_GUI = gui
    return gui
