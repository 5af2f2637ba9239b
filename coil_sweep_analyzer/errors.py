"""Exception types raised by the analysis core.

All of them derive from a builtin exception so that callers which only know
about ``ValueError`` / ``RuntimeError`` keep working.
"""

from __future__ import annotations

from typing import Optional


class FormatError(ValueError):
    """A sweep file (or row batch) does not follow ``FREQUENCY,Ls,Rs``."""

    def __init__(self, message: str, *, source: Optional[str] = None, line_no: Optional[int] = None) -> None:
        self.source = source
        self.line_no = line_no
        where = ""
        if source is not None:
            where = f"{source}"
            if line_no is not None:
                where += f":{line_no}"
            where += ": "
        super().__init__(where + message)


class EmptyInputError(ValueError):
    """Nearest-point lookup requested on an empty frequency axis."""


class NoAverageError(RuntimeError):
    """Ranking or comparison requested before an average is available."""


class InvalidSettingsError(ValueError):
    """Frequency range with ``max <= min`` (or non-finite bounds)."""
