"""Frequency-range settings -- the ingestion window per measurement kind.

A :class:`FrequencySettings` groups the four bounds that decide which rows of a
sweep file are kept. It can be:

- Loaded from / saved to the JSON settings store
- Built from the kHz values typed in the settings panel (``from_khz``)
- Serialized to/from a dict for persistence
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict

from coil_sweep_analyzer.errors import InvalidSettingsError
from coil_sweep_analyzer.models.series import Kind


@dataclass(frozen=True)
class FrequencyRange:
    """Inclusive ``[min_hz, max_hz]`` window."""
    min_hz: float
    max_hz: float

    def contains(self, frequency: float) -> bool:
        return self.min_hz <= frequency <= self.max_hz


@dataclass(frozen=True)
class FrequencySettings:
    """Frozen ingestion window for both kinds, in Hz.

    Fields
    ------
    min_ls_hz, max_ls_hz : float
        Window applied to the Ls column.
    min_rs_hz, max_rs_hz : float
        Window applied to the Rs column.
    """

    min_ls_hz: float
    max_ls_hz: float
    min_rs_hz: float
    max_rs_hz: float

    # ------------------------------------------------------------------
    # Validation / access
    # ------------------------------------------------------------------

    def validate(self) -> "FrequencySettings":
        """Raise :class:`InvalidSettingsError` unless ``max > min`` on both axes."""
        for kind in Kind:
            r = self.range_for(kind)
            if math.isnan(r.min_hz) or math.isnan(r.max_hz):
                raise InvalidSettingsError(f"{kind.value} frequency bounds must be numbers.")
            if r.max_hz <= r.min_hz:
                raise InvalidSettingsError(
                    f"Maximum {kind.value} frequency cannot be smaller than or equal to the minimum "
                    f"({r.max_hz:g} Hz <= {r.min_hz:g} Hz)."
                )
        return self

    def range_for(self, kind: Kind | str) -> FrequencyRange:
        if Kind.parse(kind) is Kind.LS:
            return FrequencyRange(self.min_ls_hz, self.max_ls_hz)
        return FrequencyRange(self.min_rs_hz, self.max_rs_hz)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_khz(cls, min_ls: float, max_ls: float, min_rs: float, max_rs: float) -> "FrequencySettings":
        """Build from the kHz values shown in the settings panel."""
        return cls(
            min_ls_hz=float(min_ls) * 1000.0,
            max_ls_hz=float(max_ls) * 1000.0,
            min_rs_hz=float(min_rs) * 1000.0,
            max_rs_hz=float(max_rs) * 1000.0,
        )

    @classmethod
    def unbounded(cls) -> "FrequencySettings":
        """Window that keeps every frequency (CLI default when no settings are stored)."""
        return cls(-math.inf, math.inf, -math.inf, math.inf)

    def to_khz(self) -> Dict[str, float]:
        return {k.replace("_hz", "_khz"): v / 1000.0 for k, v in asdict(self).items()}

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FrequencySettings":
        try:
            return cls(
                min_ls_hz=float(d["min_ls_hz"]),
                max_ls_hz=float(d["max_ls_hz"]),
                min_rs_hz=float(d["min_rs_hz"]),
                max_rs_hz=float(d["max_rs_hz"]),
            )
        except KeyError as exc:
            raise InvalidSettingsError(f"Missing frequency setting: {exc.args[0]}") from exc
        except (TypeError, ValueError) as exc:
            raise InvalidSettingsError(f"Frequency settings must be numeric: {exc}") from exc
