"""Ingest package - sweep file reader and settings persistence.

This package handles:
- Reading ``FREQUENCY,Ls,Rs`` CSV exports (one file -> up to one Ls and one Rs series)
- Applying the per-kind frequency window while reading
- Loading / saving the frequency window itself

Key classes:
- SweepCsvReader: strict CSV reader, batch-atomic
- SettingsStore: JSON persistence of FrequencySettings

Design principle:
- Readers produce validated Series objects or raise FormatError
- Non-fatal findings travel with the result as a ``warnings`` tuple
"""

from .readers_csv import SweepCsvReader, SweepFile, SweepReaderConfig, parse_rows
from .settings_store import SettingsStore, default_settings_path

__all__ = [
    "SweepCsvReader",
    "SweepFile",
    "SweepReaderConfig",
    "parse_rows",
    "SettingsStore",
    "default_settings_path",
]
