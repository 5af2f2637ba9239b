from __future__ import annotations

import html
import re
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Dict, List, Literal, Sequence

import ipywidgets as w


Level = Literal["info", "warning", "error"]

_COLORS = {"info": "#222222", "warning": "#b26a00", "error": "#b00020"}
_TAG = re.compile(r"<[^>]+>")
_PREFIXES: Dict[Level, tuple] = {
    "error": ("ERROR:", "Error:", "Traceback"),
    "warning": ("WARNING:", "Warning:", "CHECK:"),
}


@dataclass
class LogEntry:
    stamp: str
    level: Level
    message: str
    count: int = 1


class SessionLog:
    """
    Time-stamped session log shown under the sweep plot.

    The header keeps a running count of warnings and errors so a problem in an
    early load stays visible after the entry itself has scrolled away. A repeated
    message (same level and text) bumps the count of the last entry instead of
    adding a line. At most ``max_entries`` lines are kept.
    """

    def __init__(self, *, title: str = "Log", height_px: int = 180, max_entries: int = 1000) -> None:
        self._title = title
        self._height_px = int(height_px)
        self._entries: Deque[LogEntry] = deque(maxlen=int(max_entries))
        self._totals: Dict[Level, int] = {"info": 0, "warning": 0, "error": 0}
        self.header = w.HTML()
        self.widget = w.HTML()
        self.panel = w.VBox([self.header, self.widget])
        self.clear()

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def count(self, level: Level) -> int:
        return self._totals[level]

    def clear(self) -> None:
        self._entries.clear()
        self._totals = {k: 0 for k in self._totals}
        self._render()

    def info(self, message: str) -> None:
        self._add("info", message)

    def warning(self, message: str) -> None:
        self._add("warning", message)

    def error(self, message: str) -> None:
        self._add("error", message)

    def write(self, text: str) -> None:
        """Log a block of text; every line gets its level from its prefix."""
        for line in _TAG.sub("", text or "").splitlines():
            if line.strip():
                self._add(self.classify(line), line)

    def load_report(self, summary: str, checks: Sequence[str]) -> None:
        """Log a load summary followed by one ``CHECK:`` line per non-fatal finding."""
        self.write("\n".join([summary, *(f"CHECK: {c}" for c in checks)]))

    @staticmethod
    def classify(line: str) -> Level:
        s = line.lstrip()
        for level, prefixes in _PREFIXES.items():
            if s.startswith(prefixes):
                return level
        return "info"

    def _add(self, level: Level, message: str) -> None:
        self._totals[level] += 1
        last = self._entries[-1] if self._entries else None
        if last is not None and last.level == level and last.message == message:
            last.count += 1
            last.stamp = datetime.now().strftime("%H:%M:%S")
        else:
            self._entries.append(LogEntry(datetime.now().strftime("%H:%M:%S"), level, message))
        self._render()

    def _render(self) -> None:
        n_warn, n_err = self._totals["warning"], self._totals["error"]
        badges = []
        if n_warn:
            badges.append(f"<span style='color:{_COLORS['warning']};'>{n_warn} warning(s)</span>")
        if n_err:
            badges.append(f"<span style='color:{_COLORS['error']};'>{n_err} error(s)</span>")
        self.header.value = f"<b>{html.escape(self._title)}</b> " + " &middot; ".join(badges)

        lines = []
        for e in self._entries:
            repeat = f" (x{e.count})" if e.count > 1 else ""
            lines.append(
                f"<span style='color:#888;'>[{e.stamp}]</span> "
                f"<span style='color:{_COLORS[e.level]};'>{html.escape(e.message)}{repeat}</span>"
            )
        body = "<br>".join(lines) if lines else "<span style='color:#666;'>Log is empty.</span>"
        self.widget.value = (
            f"<div style='border:1px solid #ddd; padding:6px; max-height:{self._height_px}px; "
            f"overflow-y:auto; font-family:monospace; white-space:pre-wrap;'>{body}</div>"
        )
