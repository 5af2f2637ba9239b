"""Tests for FrequencySettings and the JSON settings store."""

from __future__ import annotations

import dataclasses
import json
import math
from pathlib import Path

import pytest

from coil_sweep_analyzer.errors import InvalidSettingsError
from coil_sweep_analyzer.ingest.settings_store import ENV_HOME, SETTINGS_FILENAME, SettingsStore, default_settings_path
from coil_sweep_analyzer.models.series import Kind
from coil_sweep_analyzer.models.settings import FrequencySettings


def test_from_khz_converts_to_hz() -> None:
    s = FrequencySettings.from_khz(1, 100, 2, 200)
    assert (s.min_ls_hz, s.max_ls_hz, s.min_rs_hz, s.max_rs_hz) == (1000.0, 100000.0, 2000.0, 200000.0)
    assert s.to_khz() == {"min_ls_khz": 1.0, "max_ls_khz": 100.0, "min_rs_khz": 2.0, "max_rs_khz": 200.0}


def test_range_for_kind() -> None:
    s = FrequencySettings(1.0, 2.0, 3.0, 4.0)
    assert s.range_for(Kind.LS).contains(2.0)
    assert not s.range_for("Rs").contains(2.0)


@pytest.mark.parametrize(
    "args",
    [
        (10.0, 10.0, 1.0, 2.0),
        (10.0, 5.0, 1.0, 2.0),
        (1.0, 2.0, 3.0, 3.0),
        (math.nan, 2.0, 1.0, 2.0),
    ],
)
def test_validate_rejects_bad_windows(args) -> None:
    with pytest.raises(InvalidSettingsError):
        FrequencySettings(*args).validate()


def test_settings_frozen() -> None:
    s = FrequencySettings(1.0, 2.0, 3.0, 4.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.min_ls_hz = 0.0  # type: ignore[misc]


def test_unbounded_keeps_everything() -> None:
    s = FrequencySettings.unbounded().validate()
    assert s.range_for(Kind.LS).contains(1e12)
    assert s.range_for(Kind.RS).contains(-1.0)


def test_dict_roundtrip() -> None:
    s = FrequencySettings(1.0, 2.0, 3.0, 4.0)
    assert FrequencySettings.from_dict(s.to_dict()) == s


def test_from_dict_missing_key() -> None:
    with pytest.raises(InvalidSettingsError):
        FrequencySettings.from_dict({"min_ls_hz": 1.0})


class TestSettingsStore:
    def test_first_run_returns_none(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "s.json")
        assert not store.exists()
        assert store.load() is None

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "nested" / "s.json")
        s = FrequencySettings.from_khz(1, 10, 2, 20)
        store.save(s)
        assert store.load() == s
        doc = json.loads(store.path.read_text(encoding="utf-8"))
        assert doc["frequency_range"]["max_rs_hz"] == 20000.0

    def test_invalid_settings_never_written(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "s.json")
        with pytest.raises(InvalidSettingsError):
            store.save(FrequencySettings(5.0, 1.0, 1.0, 2.0))
        assert not store.exists()

    def test_corrupt_file(self, tmp_path: Path) -> None:
        p = tmp_path / "s.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidSettingsError):
            SettingsStore(p).load()

    def test_missing_section(self, tmp_path: Path) -> None:
        p = tmp_path / "s.json"
        p.write_text(json.dumps({"other": {}}), encoding="utf-8")
        with pytest.raises(InvalidSettingsError):
            SettingsStore(p).load()

    def test_env_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_HOME, str(tmp_path))
        assert default_settings_path() == tmp_path / SETTINGS_FILENAME
        assert SettingsStore().path == tmp_path / SETTINGS_FILENAME
