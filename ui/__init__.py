# ui/__init__.py
"""
UI package for the gate-level simulator.

This package contains the waveform viewer used for transient results.
"""

from ui.waveform_viewer import (
    WaveformViewer,
    WaveformPlot,
    WaveformLegendItem,
    CursorReadout
)

__all__ = [
    "WaveformViewer",
    "WaveformPlot",
    "WaveformLegendItem",
    "CursorReadout"
]
