"""GUI package - interactive ipywidgets interface.

Two tabs:
1. Sweeps: load CSV sweeps, overlay plot, average, highlight, point comparison, export
2. Settings: per-quantity frequency window (kHz in the editor, Hz on disk)

Entry point:
    from coil_sweep_analyzer.gui.app import build_gui
    gui = build_gui()

Design principles:
- The GUI holds no analysis state of its own; every action is a SweepSession command
- Failures are reported in the log panel and never leave a half-applied change
"""
