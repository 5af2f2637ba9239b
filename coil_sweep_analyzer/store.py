from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from coil_sweep_analyzer.ingest.readers_csv import SweepFile
from coil_sweep_analyzer.models.series import Kind, Series


@dataclass
class SeriesStore:
    """
    Loaded series, one ordered list per kind.

    A file contributes independently to both lists, so the Ls and Rs lists may
    differ in length and order position. Names are unique per file: both series
    of one file carry the same name, and no two files share one.
    """
    _by_kind: Dict[Kind, List[Series]] = field(default_factory=lambda: {Kind.LS: [], Kind.RS: []})

    # -------------------------
    # Accessors
    # -------------------------
    def series(self, kind: Kind | str) -> List[Series]:
        return self._by_kind[Kind.parse(kind)]

    def visible(self, kind: Kind | str) -> List[Series]:
        return [s for s in self.series(kind) if s.visible]

    def names(self, kind: Kind | str) -> List[str]:
        return [s.name for s in self.series(kind)]

    def get(self, kind: Kind | str, name: str) -> Series:
        for s in self.series(kind):
            if s.name == name:
                return s
        raise KeyError(f"No {Kind.parse(kind).value} series named '{name}'.")

    def is_empty(self, kind: Optional[Kind | str] = None) -> bool:
        if kind is None:
            return not any(self._by_kind.values())
        return not self.series(kind)

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_kind.values())

    # -------------------------
    # Mutation
    # -------------------------
    def _unique_name(self, name: str) -> str:
        taken = set(self.names(Kind.LS)) | set(self.names(Kind.RS))
        if name not in taken:
            return name
        k = 2
        while f"{name} ({k})" in taken:
            k += 1
        return f"{name} ({k})"

    def admit(self, files: Iterable[SweepFile]) -> List[str]:
        """
        Append the series of already validated files.

        Returns warnings for series whose frequency axis differs from the first
        series of the same kind (they are averaged by frequency key, not by index).
        """
        notes: List[str] = []
        for sf in files:
            # one name per file, shared by its Ls and Rs series
            name = self._unique_name(sf.name)
            for s in sf.series():
                pool = self._by_kind[s.kind]
                s.name = name
                if pool and not s.same_axis(pool[0].frequencies):
                    notes.append(
                        f"{s.kind.value} series '{s.name}' has a different frequency grid than "
                        f"'{pool[0].name}' ({s.n_samples} vs {pool[0].n_samples} samples); "
                        "it is aligned by nearest frequency."
                    )
                pool.append(s)
        return notes

    def set_visibility(self, kind: Kind | str, name: str, visible: bool) -> None:
        self.get(kind, name).visible = bool(visible)

    def set_all_visible(self, kind: Kind | str, visible: bool = True) -> None:
        for s in self.series(kind):
            s.visible = bool(visible)

    def clear(self) -> None:
        for pool in self._by_kind.values():
            pool.clear()
