from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

import numpy as np


class Kind(str, Enum):
    """Measurement axis of a sweep file."""

    LS = "Ls"
    RS = "Rs"

    @classmethod
    def parse(cls, value: "Kind | str") -> "Kind":
        if isinstance(value, Kind):
            return value
        v = str(value).strip().lower()
        for k in cls:
            if k.value.lower() == v:
                return k
        raise ValueError(f"Unknown measurement kind: {value!r} (expected 'Ls' or 'Rs').")


@dataclass(eq=False)
class Series:
    """
    One loaded file's samples for one measurement kind.

    Notes
    - ``frequencies`` keeps the source order (non-decreasing, never re-sorted).
    - ``values[i]`` belongs to ``frequencies[i]``.
    - ``visible`` is the only mutable field; every averaging / ranking /
      comparison call re-reads it.
    """
    name: str
    kind: Kind
    frequencies: np.ndarray
    values: np.ndarray
    visible: bool = True
    source_path: Optional[Path] = None

    def __post_init__(self) -> None:
        self.kind = Kind.parse(self.kind)
        self.frequencies = np.asarray(self.frequencies, dtype=np.float64)
        self.values = np.asarray(self.values, dtype=np.float64)
        if self.frequencies.ndim != 1 or self.values.ndim != 1:
            raise ValueError(f"Series '{self.name}': frequencies and values must be 1-D.")
        if self.frequencies.shape != self.values.shape:
            raise ValueError(
                f"Series '{self.name}': len(frequencies)={self.frequencies.size} "
                f"!= len(values)={self.values.size}."
            )

    @property
    def n_samples(self) -> int:
        return int(self.frequencies.size)

    def same_axis(self, other_frequencies: np.ndarray) -> bool:
        """True when this series is sampled on exactly ``other_frequencies``."""
        other = np.asarray(other_frequencies, dtype=np.float64)
        return other.shape == self.frequencies.shape and bool(np.array_equal(other, self.frequencies))


@dataclass(frozen=True)
class AverageSeries:
    """
    Per-frequency mean over the included series of one kind.

    Attributes
    ----------
    frequencies:
        Reference axis (the first series of the kind in the store).
    values:
        Mean value per reference frequency. All zeros when nothing was included.
    n_included:
        Number of series that contributed.
    included:
        Names of the contributing series, in store order.
    """
    kind: Kind
    frequencies: np.ndarray
    values: np.ndarray
    n_included: int
    included: Tuple[str, ...] = ()

    @property
    def available(self) -> bool:
        """False for an empty kind or a zero-count (all hidden) average."""
        return self.n_included > 0 and self.values.size > 0

    @property
    def label(self) -> str:
        return f"Average {self.kind.value.upper()}"


@dataclass(frozen=True)
class RecordedPoint:
    """One row of a point comparison. Immutable once recorded."""
    frequency: float
    value: float
    series_name: str
    distance_ratio: float
    distance_to_average: float
    kind: Kind = field(default=Kind.LS)
