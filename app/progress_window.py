# app/progress_window.py
"""
Progress Window — Shows how far a transient analysis has got.

The analysis runs on the GUI thread and reports progress through
update_progress(); each update pumps pending Qt events so the Stop
button can be clicked while ngspice is working.
"""

from PySide6.QtWidgets import QApplication, QWidget, QVBoxLayout, QLabel, QProgressBar, QPushButton
from PySide6.QtCore import Qt


class ProgressWindow(QWidget):
    """Progress bar with a Stop button; the orchestrator polls stop_requested."""

    def __init__(self, parent=None):
        super().__init__(parent, Qt.Window)
        self.stop_requested = False
        self.percent = 0.0

        self.setMinimumWidth(320)
        layout = QVBoxLayout(self)

        self._status_label = QLabel("Running transient analysis...")
        layout.addWidget(self._status_label)

        self._progress_bar = QProgressBar()
        self._progress_bar.setRange(0, 100)
        self._progress_bar.setValue(0)
        layout.addWidget(self._progress_bar)

        self._stop_btn = QPushButton("Stop")
        self._stop_btn.clicked.connect(self.request_stop)
        layout.addWidget(self._stop_btn)

    def update_progress(self, percent: float) -> None:
        self.percent = percent
        self._progress_bar.setValue(int(round(percent)))
        self._status_label.setText(f"Running transient analysis... {percent:.0f}%")
        QApplication.processEvents()

    def request_stop(self) -> None:
        """Marks the run for cancellation at the next progress report."""
        self.stop_requested = True
        self._stop_btn.setEnabled(False)
        self._status_label.setText("Stopping...")

    def get_value(self) -> int:
        return self._progress_bar.value()
