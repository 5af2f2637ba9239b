from __future__ import annotations

"""Headless smoke tests for the notebook GUI.

These tests run without a display and verify that:
1. build_gui returns a Tab with an Output widget for the plot
2. First run (no stored range) refuses to load files
3. Buttons drive the session: load, average, compare, export
4. The session log classifies, stamps and counts lines
"""

import re
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import ipywidgets as w
import pytest

from coil_sweep_analyzer.gui.app import build_gui, ratio_frame, resolve_paths
from coil_sweep_analyzer.gui.log_view import SessionLog
from coil_sweep_analyzer.gui.plots import new_overlay_figure, plot_overlay, save_png, y_limits
from coil_sweep_analyzer.gui.settings_panel import build_settings_panel
from coil_sweep_analyzer.analysis.averaging import compute_average
from coil_sweep_analyzer.ingest.settings_store import SettingsStore
from coil_sweep_analyzer.models.series import Kind, Series
from coil_sweep_analyzer.models.settings import FrequencySettings


def walk(widget):
    yield widget
    for child in getattr(widget, "children", ()):
        yield from walk(child)


def find(widget, cls, description=None):
    for x in walk(widget):
        if isinstance(x, cls) and (description is None or getattr(x, "description", None) == description):
            return x
    raise AssertionError(f"no {cls.__name__} with description {description!r}")


def log_text(widget) -> str:
    return "\n".join(x.value for x in walk(widget) if isinstance(x, w.HTML))


def _write_sweeps(folder: Path) -> None:
    folder.mkdir(parents=True, exist_ok=True)
    for name, ls in (("core_a", (1.0, 2.0, 3.0)), ("core_b", (2.0, 2.0, 2.0)), ("core_c", (3.0, 2.0, 1.0))):
        lines = ["FREQUENCY,Ls,Rs"] + [f"{f},{v},{v * 10}" for f, v in zip((1000, 2000, 3000), ls)]
        (folder / f"{name}.csv").write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.fixture()
def stored(tmp_path: Path) -> SettingsStore:
    store = SettingsStore(tmp_path / "settings.json")
    store.save(FrequencySettings.from_khz(0.5, 5, 0.5, 5))
    return store


def test_build_gui_returns_tab_with_plot_output(stored: SettingsStore) -> None:
    gui = build_gui(stored)
    assert isinstance(gui, w.Tab)
    assert len(gui.children) == 2
    assert find(gui, w.Output) is not None
    assert gui.selected_index == 0


def test_first_run_refuses_to_load(tmp_path: Path) -> None:
    gui = build_gui(SettingsStore(tmp_path / "none.json"))
    assert gui.selected_index == 1

    _write_sweeps(tmp_path / "data")
    find(gui, w.Text, "Files").value = str(tmp_path / "data")
    gui.selected_index = 0
    find(gui, w.Button, "Load CSV").click()

    assert gui.selected_index == 1
    assert find(gui, w.SelectMultiple, "Series").options == ()
    assert "frequency range" in log_text(gui)


def test_settings_tab_enables_loading(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "s.json")
    gui = build_gui(store)
    find(gui, w.FloatText, "Min Ls [kHz]").value = 0.5
    find(gui, w.FloatText, "Max Ls [kHz]").value = 5.0
    find(gui, w.FloatText, "Min Rs [kHz]").value = 0.5
    find(gui, w.FloatText, "Max Rs [kHz]").value = 5.0
    find(gui, w.Button, "Save range").click()
    assert store.load() == FrequencySettings.from_khz(0.5, 5.0, 0.5, 5.0)

    _write_sweeps(tmp_path / "data")
    find(gui, w.Text, "Files").value = str(tmp_path / "data")
    find(gui, w.Button, "Load CSV").click()
    assert len(find(gui, w.SelectMultiple, "Series").options) == 3


def test_load_average_compare_export(stored: SettingsStore, tmp_path: Path) -> None:
    _write_sweeps(tmp_path / "data")
    gui = build_gui(stored)
    find(gui, w.Text, "Files").value = str(tmp_path / "data" / "*.csv")
    find(gui, w.Button, "Load CSV").click()

    sel = find(gui, w.SelectMultiple, "Series")
    assert [v for _, v in sel.options] == ["core_a", "core_b", "core_c"]

    find(gui, w.Button, "Calculate average").click()
    assert "Average LS computed from 3 series." in log_text(gui)

    find(gui, w.FloatText, "Freq [Hz]").value = 1000.0
    find(gui, w.Button, "Compare").click()
    assert "Recorded 3 point(s)" in log_text(gui)

    out_dir = tmp_path / "exports"
    find(gui, w.Text, "Export to").value = str(out_dir)
    find(gui, w.Button, "Export AVG as CSV").click()
    find(gui, w.Button, "Export table as CSV").click()
    assert list(out_dir.glob("CSV DATA/*-AVG/average_data.csv"))
    assert (out_dir / "comparison_table.csv").is_file()

    find(gui, w.Button, "Export graph as PNG").click()
    assert (out_dir / "sweeps_Ls.png").is_file()


def test_highlight_hides_outliers(stored: SettingsStore, tmp_path: Path) -> None:
    _write_sweeps(tmp_path / "data")
    gui = build_gui(stored)
    find(gui, w.Text, "Files").value = str(tmp_path / "data")
    find(gui, w.Button, "Load CSV").click()
    find(gui, w.Button, "Calculate average").click()
    find(gui, w.FloatSlider, "Threshold %").value = 50.0
    find(gui, w.Button, "Highlight").click()

    labels = [lbl for lbl, _ in find(gui, w.SelectMultiple, "Series").options]
    assert labels == ["core_a  [hidden]", "core_b", "core_c  [hidden]"]
    assert "1 of 3 series visible" in log_text(gui)


def test_compare_without_average_logs_error(stored: SettingsStore, tmp_path: Path) -> None:
    _write_sweeps(tmp_path / "data")
    gui = build_gui(stored)
    find(gui, w.Text, "Files").value = str(tmp_path / "data")
    find(gui, w.Button, "Load CSV").click()
    find(gui, w.Button, "Compare").click()
    assert "ERROR:" in log_text(gui)


def test_bad_file_logs_error_and_loads_nothing(stored: SettingsStore, tmp_path: Path) -> None:
    _write_sweeps(tmp_path / "data")
    (tmp_path / "data" / "zz_bad.csv").write_text("FREQUENCY,Ls,Rs\n1000,1\n", encoding="utf-8")
    gui = build_gui(stored)
    find(gui, w.Text, "Files").value = str(tmp_path / "data")
    find(gui, w.Button, "Load CSV").click()
    assert "ERROR:" in log_text(gui)
    assert find(gui, w.SelectMultiple, "Series").options == ()


def test_settings_panel_rejects_inverted_range(tmp_path: Path) -> None:
    saved = []
    store = SettingsStore(tmp_path / "s.json")
    panel = build_settings_panel(store, saved.append)
    find(panel, w.FloatText, "Min Ls [kHz]").value = 10.0
    find(panel, w.FloatText, "Max Ls [kHz]").value = 1.0
    find(panel, w.Button, "Save range").click()
    assert saved == []
    assert not store.exists()


def test_resolve_paths(tmp_path: Path) -> None:
    _write_sweeps(tmp_path)
    assert [p.name for p in resolve_paths(str(tmp_path))] == ["core_a.csv", "core_b.csv", "core_c.csv"]
    two = f"{tmp_path / 'core_a.csv'}; {tmp_path / 'core_c.csv'}"
    assert [p.name for p in resolve_paths(two)] == ["core_a.csv", "core_c.csv"]
    assert resolve_paths("  ") == []


def test_ratio_frame_marks_hidden() -> None:
    df = ratio_frame({"a": 0.5, "b": 101.10})
    assert list(df["Distance Ratio (%)"]) == ["50.00%", "excluded"]


class TestSessionLog:
    def test_coalesces_repeated_lines(self) -> None:
        log = SessionLog()
        log.info("same")
        log.info("same")
        log.warning("same")
        assert [(e.level, e.count) for e in log.entries] == [("info", 2), ("warning", 1)]
        assert "(x2)" in log.widget.value

    def test_write_classifies_by_prefix(self) -> None:
        log = SessionLog()
        log.write("ERROR: boom\n\nCHECK: odd grid\nplain")
        assert [e.level for e in log.entries] == ["error", "warning", "info"]

    def test_entries_are_time_stamped(self) -> None:
        log = SessionLog()
        log.info("hello")
        assert re.fullmatch(r"\d\d:\d\d:\d\d", log.entries[0].stamp)
        assert f"[{log.entries[0].stamp}]" in log.widget.value

    def test_header_counts_outlive_history(self) -> None:
        log = SessionLog(max_entries=2)
        log.error("ERROR: first")
        log.info("a")
        log.info("b")
        assert [e.message for e in log.entries] == ["a", "b"]
        assert log.count("error") == 1
        assert "1 error(s)" in log.header.value
        log.clear()
        assert log.count("error") == 0
        assert "error" not in log.header.value

    def test_load_report_marks_checks(self) -> None:
        log = SessionLog()
        log.load_report("Loaded 2 file(s): a, b", ["grid differs"])
        assert [(e.level, e.message) for e in log.entries] == [
            ("info", "Loaded 2 file(s): a, b"),
            ("warning", "CHECK: grid differs"),
        ]


def test_load_logs_grid_checks_as_warnings(stored: SettingsStore, tmp_path: Path) -> None:
    _write_sweeps(tmp_path / "data")
    (tmp_path / "data" / "zz_odd.csv").write_text("FREQUENCY,Ls,Rs\n1500,1,10\n2500,1,10\n", encoding="utf-8")
    gui = build_gui(stored)
    find(gui, w.Text, "Files").value = str(tmp_path / "data")
    find(gui, w.Button, "Load CSV").click()
    text = log_text(gui)
    assert "Loaded 4 file(s)" in text
    assert "CHECK: Ls series &#x27;zz_odd&#x27; has a different frequency grid" in text
    assert "warning(s)" in text


def _dashed_colors() -> list:
    import matplotlib.pyplot as plt

    return [ln.get_color() for ln in plt.gcf().axes[0].get_lines() if ln.get_linestyle() == "--"]


def test_limit_lines_colour_and_visibility(stored: SettingsStore, tmp_path: Path) -> None:
    _write_sweeps(tmp_path / "data")
    gui = build_gui(stored)
    find(gui, w.Text, "Files").value = str(tmp_path / "data")
    find(gui, w.Button, "Load CSV").click()

    find(gui, w.FloatText, "Min value").value = 1.5
    find(gui, w.FloatText, "Max value").value = 2.5
    find(gui, w.Dropdown, "Line color").value = "red"
    find(gui, w.Button, "Add lines").click()
    assert _dashed_colors() == ["red", "red"]

    find(gui, w.Checkbox, "Show lines").value = False
    assert _dashed_colors() == []

    find(gui, w.Checkbox, "Show lines").value = True
    find(gui, w.Dropdown, "Line color").value = "blue"
    assert _dashed_colors() == ["blue", "blue"]


def test_plot_overlay_skips_hidden_and_draws_average(tmp_path: Path) -> None:
    import matplotlib.pyplot as plt

    s = [
        Series("a", Kind.RS, [1, 2, 3], [1, 2, 3]),
        Series("b", Kind.RS, [1, 2, 3], [3, 2, 1], visible=False),
    ]
    avg = compute_average(s, Kind.RS)
    fig, ax = plt.subplots()
    n = plot_overlay(ax, s, Kind.RS, average=avg, limit_lines=(0.5, 3.5))
    assert n == 2
    assert [ln.get_label() for ln in ax.get_lines()][:2] == ["a", "Average RS"]
    plt.close(fig)

    fig, _ = new_overlay_figure(s, "Rs")
    p = save_png(fig, tmp_path / "plot")
    assert p.suffix == ".png" and p.is_file()
    plt.close(fig)

    assert y_limits(s, Kind.RS) == (1.0, 3.0)


def test_plot_overlay_limit_color() -> None:
    import matplotlib.pyplot as plt

    s = [Series("a", Kind.LS, [1, 2, 3], [1, 2, 3])]
    fig, ax = plt.subplots()
    plot_overlay(ax, s, Kind.LS, limit_lines=(1.5,), limit_color="orange")
    dashed = [ln for ln in ax.get_lines() if ln.get_linestyle() == "--"]
    assert [ln.get_color() for ln in dashed] == ["orange"]
    plt.close(fig)
