"""Persistence of the frequency-range settings.

The settings live in a small JSON document::

    {"frequency_range": {"min_ls_hz": ..., "max_ls_hz": ..., "min_rs_hz": ..., "max_rs_hz": ...}}

Default location: ``~/.local/share/coil_sweep_analyzer/frequency_range.json``.
Set ``COIL_SWEEP_ANALYZER_HOME`` to use another directory.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from coil_sweep_analyzer.errors import InvalidSettingsError
from coil_sweep_analyzer.models.settings import FrequencySettings

ENV_HOME = "COIL_SWEEP_ANALYZER_HOME"
SETTINGS_FILENAME = "frequency_range.json"
_SECTION = "frequency_range"


def default_settings_path() -> Path:
    home = os.environ.get(ENV_HOME)
    if home:
        return Path(home).expanduser() / SETTINGS_FILENAME
    return Path.home() / ".local" / "share" / "coil_sweep_analyzer" / SETTINGS_FILENAME


@dataclass
class SettingsStore:
    """
    Key-value store for :class:`FrequencySettings`.

    ``load`` returns None when nothing was stored yet (first run: the GUI then
    asks for a range before any file can be loaded). ``save`` validates first, so
    an invalid range never reaches disk.
    """
    path: Optional[Path] = None

    def __post_init__(self) -> None:
        self.path = Path(self.path).expanduser() if self.path is not None else default_settings_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[FrequencySettings]:
        if not self.exists():
            return None
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidSettingsError(f"Corrupt settings file {self.path}: {exc}") from exc
        section = doc.get(_SECTION) if isinstance(doc, dict) else None
        if not isinstance(section, dict):
            raise InvalidSettingsError(f"Settings file {self.path} has no '{_SECTION}' section.")
        return FrequencySettings.from_dict(section).validate()

    def save(self, settings: FrequencySettings) -> Path:
        settings.validate()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        doc = {_SECTION: settings.to_dict()}
        self.path.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
        return self.path
