# tests/test_qt_adapters.py
"""
Unit tests for the Qt diagram, progress window and main window.
"""

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Check if we can run GUI tests
try:
    from PySide6.QtWidgets import QApplication, QLabel

    GUI_AVAILABLE = True
except ImportError:
    GUI_AVAILABLE = False

from core.device import RawDevice
from simulation.engine import Finished
from simulation.waveform_data import StepWaveform, LOGIC_0, LOGIC_1

DEVICES = [
    ["analog:v_source", {"nplus": "in", "nminus": "gnd"}, {"name": "Vin", "value": "dc(1)"}],
    ["ground", {"gnd": "gnd"}, {}],
    ["gates:inverter", {"a": "in", "z": "out"}, {"name": "inv1"}],
    ["analog:v_probe", {"probe": "out"}, {"color": "red"}],
    ["text", {}, {"text": "a comment"}],
]


class _GuiTestCase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        """Create QApplication for tests."""
        if not QApplication.instance():
            cls.app = QApplication(sys.argv)
        else:
            cls.app = QApplication.instance()


@unittest.skipUnless(GUI_AVAILABLE, "PySide6 not available")
class TestQtDiagram(_GuiTestCase):
    """Tests for QtDiagram."""

    def test_extract_flattened_devices(self):
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram(DEVICES)
        devices = diagram.extract_flattened_devices(["ground", "analog:v_probe"])

        self.assertEqual([d.type_tag for d in devices], ["ground", "analog:v_probe"])
        self.assertIsInstance(devices[0], RawDevice)

    def test_properties(self):
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram()
        self.assertEqual(diagram.get_property("tran_tstop", "100ns"), "100ns")
        diagram.set_property("tran_tstop", "5ns")
        self.assertEqual(diagram.get_property("tran_tstop"), "5ns")

    def test_annotations(self):
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram()
        diagram.annotate("n1", "1")
        diagram.clear_annotations()
        self.assertEqual(diagram.annotations, {})

    @patch("app.qt_diagram.QMessageBox.warning")
    def test_show_message(self, mock_warning):
        from app.qt_diagram import QtDiagram, MESSAGE_TITLE
        diagram = QtDiagram()
        diagram.show_message("hello")
        mock_warning.assert_called_once_with(None, MESSAGE_TITLE, "hello")

    def test_modal_dialog_accepted(self):
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram()
        on_accept = MagicMock()
        with patch("app.qt_diagram.FieldsDialog.exec", return_value=1):
            diagram.show_modal_dialog("Transient Analysis", {"Stop Time (seconds)": "100ns"}, on_accept)
        on_accept.assert_called_once_with({"Stop Time (seconds)": "100ns"})

    def test_modal_dialog_cancelled(self):
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram()
        on_accept = MagicMock()
        with patch("app.qt_diagram.FieldsDialog.exec", return_value=0):
            diagram.show_modal_dialog("Transient Analysis", {"Stop Time (seconds)": "100ns"}, on_accept)
        on_accept.assert_not_called()

    def test_open_window(self):
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram()
        label = QLabel("content")
        diagram.open_window("Results", label)

        self.assertEqual(label.windowTitle(), "Results")
        self.assertIn(label, diagram.windows)
        label.close()

    def test_closed_windows_released(self):
        """Test that windows closed by the user are dropped on the next open."""
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram()
        first = QLabel("first")
        second = QLabel("second")
        diagram.open_window("First", first)
        diagram.open_window("Second", second)
        first.close()

        third = QLabel("third")
        diagram.open_window("Third", third)

        self.assertEqual(diagram.windows, [second, third])
        second.close()
        third.close()

    def test_non_widget_content_not_kept(self):
        from app.qt_diagram import QtDiagram
        diagram = QtDiagram()
        content = object()
        self.assertIs(diagram.open_window("Plain", content), content)
        self.assertEqual(diagram.windows, [])


@unittest.skipUnless(GUI_AVAILABLE, "PySide6 not available")
class TestProgressWindow(_GuiTestCase):
    """Tests for ProgressWindow."""

    def test_update_progress(self):
        from app.progress_window import ProgressWindow
        window = ProgressWindow()
        window.update_progress(42.4)
        self.assertEqual(window.get_value(), 42)
        self.assertEqual(window.percent, 42.4)

    def test_request_stop(self):
        from app.progress_window import ProgressWindow
        window = ProgressWindow()
        self.assertFalse(window.stop_requested)
        window._stop_btn.click()
        self.assertTrue(window.stop_requested)


class FakeEngine:
    """Finishes immediately with a waveform for node 'out'."""

    def __init__(self):
        self.calls = 0

    def run_transient_analysis(self, netlist, stop_time, probe_nodes, on_event):
        self.calls += 1
        on_event(Finished(100.0, {"out": StepWaveform(times=[0.0, 1e-9], values=[LOGIC_1, LOGIC_0])}))

    def get_last_deck(self):
        return "* deck"


class ActionStateEngine(FakeEngine):
    """Records whether the GATE action is enabled while a run is in progress."""

    def __init__(self):
        super().__init__()
        self.window = None
        self.enabled_during_run = []

    def run_transient_analysis(self, netlist, stop_time, probe_nodes, on_event):
        self.enabled_during_run.append(self.window.gate_action.isEnabled())
        super().run_transient_analysis(netlist, stop_time, probe_nodes, on_event)


@unittest.skipUnless(GUI_AVAILABLE, "PySide6 not available")
class TestAppWindow(_GuiTestCase):
    """Tests for AppWindow wiring."""

    def test_gate_action_runs_analysis(self):
        from app.app_window import AppWindow
        from simulation.run_orchestrator import RunState
        from ui.waveform_viewer import WaveformViewer

        engine = FakeEngine()
        window = AppWindow(engine=engine, devices=DEVICES)
        with patch("app.qt_diagram.FieldsDialog.exec", return_value=1):
            window.gate_action.trigger()

        self.assertEqual(engine.calls, 1)
        self.assertIs(window.analysis.state, RunState.COMPLETED)
        viewer = window.diagram.windows[-1]
        self.assertIsInstance(viewer, WaveformViewer)
        self.assertEqual(viewer.get_trace_names(), ["out"])
        for w in window.diagram.windows:
            w.close()

    def test_gate_action_disabled_while_running(self):
        from app.app_window import AppWindow

        engine = ActionStateEngine()
        window = AppWindow(engine=engine, devices=DEVICES)
        engine.window = window
        with patch("app.qt_diagram.FieldsDialog.exec", return_value=1):
            window.gate_action.trigger()

        self.assertEqual(engine.enabled_during_run, [False])
        self.assertTrue(window.gate_action.isEnabled())
        for w in window.diagram.windows:
            w.close()

    def test_netlist_text(self):
        from app.app_window import AppWindow
        window = AppWindow(engine=FakeEngine(), devices=DEVICES)
        text = window.netlist_text()
        self.assertIn("* Devices: 4", text)
        self.assertIn("* deck", text)

    def test_load_devices(self):
        from app.app_window import AppWindow
        window = AppWindow(engine=FakeEngine())
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "devices.json"
            path.write_text(json.dumps(DEVICES), encoding="utf-8")
            window.load_devices(path)
        self.assertEqual(len(window.diagram.devices), 5)

    def test_load_devices_rejects_non_list(self):
        from app.app_window import load_device_file
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "devices.json"
            path.write_text('{"devices": []}', encoding="utf-8")
            with self.assertRaises(ValueError):
                load_device_file(path)


if __name__ == '__main__':
    unittest.main()
