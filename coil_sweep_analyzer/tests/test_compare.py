"""Tests for point comparisons and the comparison table."""

from __future__ import annotations

import pytest

from coil_sweep_analyzer.analysis.averaging import compute_average
from coil_sweep_analyzer.analysis.compare import (
    TABLE_COLUMNS,
    ComparisonRecorder,
    comparison_table,
    points_frame,
)
from coil_sweep_analyzer.errors import NoAverageError
from coil_sweep_analyzer.models.series import Kind, Series
from coil_sweep_analyzer.models.settings import FrequencySettings


F = [1000.0, 2000.0, 3000.0]
SETTINGS = FrequencySettings(500.0, 5000.0, 500.0, 5000.0)


def _series(kind: Kind = Kind.LS) -> list:
    return [
        Series("A", kind, F, [1.0, 2.0, 3.0]),
        Series("B", kind, F, [2.0, 2.0, 2.0]),
        Series("C", kind, F, [3.0, 2.0, 1.0]),
    ]


class TestComparisonRecorder:
    def test_ratios_at_exact_frequency(self) -> None:
        s = _series()
        rec = ComparisonRecorder()
        pts = rec.compare_at(1000.0, compute_average(s, Kind.LS), s)
        assert [p.series_name for p in pts] == ["A", "B", "C"]
        assert [p.value for p in pts] == [1.0, 2.0, 3.0]
        assert [p.distance_to_average for p in pts] == [1.0, 0.0, 1.0]
        assert [p.distance_ratio for p in pts] == [1.0, 0.0, 1.0]
        assert all(p.frequency == 1000.0 for p in pts)
        assert all(p.kind is Kind.LS for p in pts)

    def test_nearest_sample_is_recorded(self) -> None:
        s = _series()
        rec = ComparisonRecorder()
        pts = rec.compare_at(2600.0, compute_average(s, Kind.LS), s)
        assert {p.frequency for p in pts} == {3000.0}

    def test_repeat_appends_duplicates(self) -> None:
        s = _series()
        avg = compute_average(s, Kind.LS)
        rec = ComparisonRecorder()
        rec.compare_at(1000.0, avg, s)
        rec.compare_at(1000.0, avg, s)
        assert len(rec) == 6
        assert rec.points[:3] == rec.points[3:]

    def test_hidden_series_not_recorded(self) -> None:
        s = _series()
        s[2].visible = False
        rec = ComparisonRecorder()
        pts = rec.compare_at(1000.0, compute_average(s, Kind.LS), s)
        assert [p.series_name for p in pts] == ["A", "B"]

    def test_all_equal_gives_zero_ratio(self) -> None:
        s = _series()
        rec = ComparisonRecorder()
        pts = rec.compare_at(2000.0, compute_average(s, Kind.LS), s)
        assert all(p.distance_ratio == 0.0 for p in pts)

    def test_include_average_row(self) -> None:
        s = _series()
        avg = compute_average(s, Kind.LS)
        rec = ComparisonRecorder()
        pts = rec.compare_at(3000.0, avg, s, include_average=True)
        assert len(pts) == 4
        last = pts[-1]
        assert last.series_name == avg.label
        assert last.value == pytest.approx(2.0)
        assert last.distance_ratio == 0.0

    def test_no_average_raises_and_records_nothing(self) -> None:
        s = _series()
        for x in s:
            x.visible = False
        rec = ComparisonRecorder()
        with pytest.raises(NoAverageError):
            rec.compare_at(1000.0, compute_average(s, Kind.LS), s)
        with pytest.raises(NoAverageError):
            rec.compare_at(1000.0, None, s)
        assert len(rec) == 0

    def test_clear(self) -> None:
        s = _series()
        rec = ComparisonRecorder()
        rec.compare_at(1000.0, compute_average(s, Kind.LS), s)
        rec.clear()
        assert len(rec) == 0


def test_comparison_table_columns_and_units() -> None:
    s = _series(Kind.RS)
    rec = ComparisonRecorder()
    rec.compare_at(1000.0, compute_average(s, Kind.RS), s)
    df = comparison_table(rec.points, SETTINGS)
    assert tuple(df.columns) == TABLE_COLUMNS
    assert len(df) == 3
    row = df.iloc[0]
    assert row["Frequency"] == "1.00 kHz"
    assert row["Value"] == "1.00 Ω"
    assert row["Max bound"] == "5.00 kHz"
    assert row["Min bound"] == "500.00 Hz"
    assert row["Series name"] == "A"
    assert row["Distance Ratio (%)"] == "100%"
    assert row["Absolute Distance"] == "1"


def test_comparison_table_empty() -> None:
    df = comparison_table([], SETTINGS)
    assert tuple(df.columns) == TABLE_COLUMNS
    assert df.empty


def test_points_frame_numeric() -> None:
    s = _series()
    rec = ComparisonRecorder()
    rec.compare_at(1000.0, compute_average(s, Kind.LS), s)
    df = points_frame(rec.points)
    assert list(df["distance_ratio"]) == [1.0, 0.0, 1.0]
    assert set(df["kind"]) == {"Ls"}
