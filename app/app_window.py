# app/app_window.py
"""
Main application window for the gate-level simulator.

Holds the loaded device list, the transient analysis it is simulated
with, and the toolbar that starts runs and shows netlists.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from PySide6.QtWidgets import (
    QMainWindow, QPlainTextEdit, QFileDialog, QMessageBox, QToolBar
)
from PySide6.QtGui import QAction, QFont

from app.progress_window import ProgressWindow
from app.qt_diagram import QtDiagram
from core.gate_library import GateLibrary
from simulation.device_classifier import NetlistError
from simulation.ngspice_engine import NgspiceEngine
from simulation.netlist_normalizer import format_netlist, gate_netlist
from simulation.run_orchestrator import TransientAnalysis
from simulation.settings import SimulatorSettings
from ui.waveform_viewer import WaveformViewer

logger = logging.getLogger(__name__)


def load_device_file(path: Path) -> List:
    """Reads a JSON list of [type, connections, properties] entries."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of devices")
    return data


class AppWindow(QMainWindow):
    """
    The main entry point window for the gate-level simulator.
    Coordinates the device list, the Transient Analysis run and its windows.
    """

    def __init__(self, settings: Optional[SimulatorSettings] = None, engine=None, devices=()):
        super().__init__()
        self.setWindowTitle("Gate-level Simulator")
        self.resize(900, 600)

        self.settings = settings or SimulatorSettings()
        self.gate_library = GateLibrary()
        self.engine = engine or NgspiceEngine(self.settings)
        self.diagram = QtDiagram(devices, parent=self)

        self._dark_mode = True

        self.analysis = TransientAnalysis(
            self.diagram,
            self.engine,
            gate_library=self.gate_library,
            settings=self.settings,
            progress_factory=ProgressWindow,
            plotter=self._make_viewer
        )

        # --- Device listing ---
        self._device_view = QPlainTextEdit()
        self._device_view.setReadOnly(True)
        self._device_view.setFont(QFont("monospace"))
        self.setCentralWidget(self._device_view)

        self._create_toolbar()
        self._refresh_device_view()

    def _create_toolbar(self) -> None:
        toolbar = QToolBar("Simulation")
        self.addToolBar(toolbar)

        self.open_action = QAction("Open Devices...", self)
        self.open_action.triggered.connect(self._on_open)
        toolbar.addAction(self.open_action)

        toolbar.addSeparator()

        self.gate_action = QAction("GATE", self)
        self.gate_action.setToolTip("Gate-level simulation")
        self.gate_action.triggered.connect(self._on_gate)
        toolbar.addAction(self.gate_action)

        self.netlist_action = QAction("View Netlist...", self)
        self.netlist_action.triggered.connect(self._on_view_netlist)
        toolbar.addAction(self.netlist_action)

        toolbar.addSeparator()

        self.theme_action = QAction("Light Mode", self)
        self.theme_action.triggered.connect(self._toggle_theme)
        toolbar.addAction(self.theme_action)

    def _on_gate(self) -> None:
        # The progress window pumps the event loop, so block re-entry from the toolbar
        self.gate_action.setEnabled(False)
        try:
            self.analysis.start()
        finally:
            self.gate_action.setEnabled(True)

    def _make_viewer(self, series) -> WaveformViewer:
        viewer = WaveformViewer.from_series(series)
        viewer.set_dark_mode(self._dark_mode)
        viewer.resize(900, 500)
        return viewer

    def load_devices(self, path: Path) -> None:
        """Replaces the current device list with the contents of a JSON file."""
        self.diagram.set_devices(load_device_file(path))
        logger.info("Loaded %d devices from %s", len(self.diagram.devices), path)
        self._refresh_device_view()

    def _on_open(self) -> None:
        filename, _ = QFileDialog.getOpenFileName(
            self, "Open Devices", "", "JSON Files (*.json);;All Files (*)"
        )
        if not filename:
            return
        try:
            self.load_devices(Path(filename))
        except (OSError, ValueError) as e:
            logger.warning("Could not load %s: %s", filename, e)
            QMessageBox.warning(self, "Open Devices", f"Could not load {filename}:\n\n{e}")

    def _refresh_device_view(self) -> None:
        lines = [f"{d.type_tag:<20} {d.properties.get('name', '')}" for d in self.diagram.devices]
        self._device_view.setPlainText("\n".join(lines) or "No devices loaded.")

    def netlist_text(self) -> str:
        """Returns the normalized netlist, followed by the last ngspice deck if any."""
        text = format_netlist(gate_netlist(self.diagram, self.gate_library))
        deck = self.engine.get_last_deck() if hasattr(self.engine, "get_last_deck") else ""
        if deck:
            text += "\n\n" + deck
        return text

    def _on_view_netlist(self) -> None:
        try:
            text = self.netlist_text()
        except NetlistError as e:
            self.diagram.show_message(f"Netlist: {e}")
            return

        view = QPlainTextEdit(text)
        view.setReadOnly(True)
        view.setFont(QFont("monospace"))
        view.resize(700, 500)
        self.diagram.open_window("Netlist", view)

    def _toggle_theme(self) -> None:
        """Toggles between light and dark mode for result windows."""
        self._dark_mode = not self._dark_mode
        self.theme_action.setText("Light Mode" if self._dark_mode else "Dark Mode")
        for window in self.diagram.windows:
            if isinstance(window, WaveformViewer):
                window.set_dark_mode(self._dark_mode)
