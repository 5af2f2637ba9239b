"""Unit formatting for table cells and cursor read-outs.

Frequency bands: Hz below 1 kHz, kHz up to 1 MHz, MHz from 100 kHz upward. The
kHz band is tested first, so the overlapping 100 kHz .. 1 MHz range renders in
kHz and MHz effectively starts at 1 MHz.
"""

from __future__ import annotations

from coil_sweep_analyzer.models.series import Kind


def format_frequency(hz: float) -> str:
    f = float(hz)
    if 0 <= f < 1_000:
        return f"{f:.2f} Hz"
    if 1_000 <= f < 1_000_000:
        return f"{f / 1_000:.2f} kHz"
    if f >= 100_000:
        return f"{f / 1_000_000:.2f} MHz"
    return f"{0:.2f} Hz"


def format_inductance(henry: float) -> str:
    return f"{float(henry) * 1000.0:.2f} mH"


def format_resistance(ohm: float) -> str:
    r = float(ohm)
    if r < 0:
        return f"{r * 1000:.2f} mΩ"
    if r < 1_000:
        return f"{r:.2f} Ω"
    if r < 1_000_000:
        return f"{r / 1_000:.2f} kΩ"
    if r >= 1_000_000:
        return f"{r / 1_000_000:.4f} MΩ"
    # NaN
    return f"{0:.2f} Ω"


def format_value(value: float, kind: Kind | str) -> str:
    """Ls values in mH, Rs values in the resistance bands."""
    if Kind.parse(kind) is Kind.LS:
        return format_inductance(value)
    return format_resistance(value)
