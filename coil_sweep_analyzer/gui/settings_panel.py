from __future__ import annotations

from typing import Callable, Optional

import ipywidgets as w

from coil_sweep_analyzer.errors import InvalidSettingsError
from coil_sweep_analyzer.ingest.settings_store import SettingsStore
from coil_sweep_analyzer.models.settings import FrequencySettings
from .log_view import SessionLog


def build_settings_panel(
    store: SettingsStore,
    on_saved: Callable[[FrequencySettings], None],
    *,
    current: Optional[FrequencySettings] = None,
    log: Optional[SessionLog] = None,
) -> w.Widget:
    """
    Frequency-range editor (values in kHz, stored in Hz).

    ``on_saved`` is called with the validated settings after they were written to
    ``store``. An invalid range (max <= min) is reported and nothing is saved.
    """
    log = log or SessionLog(height_px=80)

    khz = current.to_khz() if current is not None else {}

    def _box(key: str, label: str) -> w.FloatText:
        return w.FloatText(
            value=float(khz.get(key, 0.0)),
            description=label,
            style={"description_width": "initial"},
            layout=w.Layout(width="230px"),
        )

    min_ls = _box("min_ls_khz", "Min Ls [kHz]")
    max_ls = _box("max_ls_khz", "Max Ls [kHz]")
    min_rs = _box("min_rs_khz", "Min Rs [kHz]")
    max_rs = _box("max_rs_khz", "Max Rs [kHz]")
    btn_save = w.Button(description="Save range", button_style="primary")
    where = w.HTML(f"<small>Stored in: {store.path}</small>")

    def _on_save(_):
        try:
            settings = FrequencySettings.from_khz(min_ls.value, max_ls.value, min_rs.value, max_rs.value)
            store.save(settings)
        except InvalidSettingsError as exc:
            log.error(f"ERROR: {exc}")
            return
        log.info(
            f"Frequency range saved: Ls [{settings.min_ls_hz:g}, {settings.max_ls_hz:g}] Hz, "
            f"Rs [{settings.min_rs_hz:g}, {settings.max_rs_hz:g}] Hz"
        )
        on_saved(settings)

    btn_save.on_click(_on_save)

    return w.VBox([
        w.HTML("<b>Frequency range</b> (rows outside the window are dropped while loading)"),
        w.HBox([min_ls, max_ls]),
        w.HBox([min_rs, max_rs]),
        w.HBox([btn_save, where]),
        log.panel,
    ])
