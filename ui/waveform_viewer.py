# ui/waveform_viewer.py
"""
Waveform Viewer — PyQtGraph-based plot widget for gate-level results.

Each probed node is drawn as a digital trace in its own horizontal lane,
top to bottom in the order the series arrive. A crosshair cursor reports
the logic level of every trace at the pointer time.
"""

from typing import Dict, List, Optional, Tuple
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QCheckBox, QScrollArea, QFrame, QSplitter, QGroupBox
)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor
import pyqtgraph as pg

from simulation.results_renderer import DisplaySeries
from simulation.units import format_number
from simulation.waveform_data import (
    LOGIC_0, LOGIC_1, LOGIC_X, LOGIC_Z, logic_label, step_points, value_at_time
)

# Vertical position of each logic level inside a lane
DIGITAL_LEVELS = {LOGIC_0: 0.0, LOGIC_1: 1.0, LOGIC_X: 0.5, LOGIC_Z: 0.5}

LANE_HEIGHT = 1.5

# Used when a probe's color is not a valid color name
TRACE_COLORS = [
    '#4ECDC4', '#FF6B6B', '#FFE66D', '#95E1D3',
    '#F38181', '#AA96DA', '#FCBAD3', '#A8D8EA'
]


def trace_color(name: Optional[str], index: int) -> str:
    """Returns a hex color for a probe color name, falling back to the palette."""
    color = QColor(name) if name else QColor()
    if color.isValid():
        return color.name()
    return TRACE_COLORS[index % len(TRACE_COLORS)]


def lane_points(series: DisplaySeries, lane: int, end_time: Optional[float] = None) -> Tuple[List[float], List[float]]:
    """Returns the plotted (x, y) points of a series placed in the given lane."""
    base = lane * LANE_HEIGHT
    if series.render_style == "digital":
        levels = [DIGITAL_LEVELS.get(v, 0.5) for v in series.y_values]
    else:
        levels = [float(v) for v in series.y_values]
    xs, ys = step_points(series.x_values, levels, end_time)
    return xs, [base + series.offset + y for y in ys]


class WaveformPlot(QWidget):
    """
    A single plot widget holding the stacked traces.

    Uses PyQtGraph for high-performance rendering.
    """

    # Signal emitted when cursor position changes
    cursor_moved = Signal(float)  # x

    def __init__(self, title: str = "", parent=None):
        super().__init__(parent)

        self._title = title
        self._traces: Dict[str, object] = {}  # label -> plot item
        self._ticks: List[Tuple[float, str]] = []
        self._dark_mode = True

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        pg.setConfigOptions(antialias=True)

        self._plot_widget = pg.PlotWidget()
        self._plot_widget.setBackground('#1e1e1e')
        self._plot_widget.showGrid(x=True, y=False, alpha=0.3)
        self._plot_widget.setTitle(self._title, color='w', size='12pt')
        self._plot_widget.setLabel('bottom', "Time", units='s', color='w')

        # Zoom along time only
        self._plot_widget.setMouseEnabled(x=True, y=False)

        self._vline = pg.InfiniteLine(angle=90, movable=False, pen=pg.mkPen('y', width=1, style=Qt.DashLine))
        self._plot_widget.addItem(self._vline, ignoreBounds=True)
        self._vline.hide()

        self._plot_widget.scene().sigMouseMoved.connect(self._on_mouse_moved)

        layout.addWidget(self._plot_widget)

    def _on_mouse_moved(self, pos):
        """Handles mouse movement for the crosshair cursor."""
        if self._plot_widget.sceneBoundingRect().contains(pos):
            mouse_point = self._plot_widget.getPlotItem().vb.mapSceneToView(pos)
            x = mouse_point.x()
            self._vline.setPos(x)
            self._vline.show()
            self.cursor_moved.emit(x)
        else:
            self._vline.hide()

    def add_trace(self, series: DisplaySeries, lane: int, color: str, end_time: Optional[float] = None):
        """
        Adds a trace in the given lane.

        Args:
            series: The series to draw.
            lane: Lane index counted from the bottom.
            color: Hex color string.
            end_time: Time up to which the last level is drawn.
        """
        if series.label in self._traces:
            self.remove_trace(series.label)

        xs, ys = lane_points(series, lane, end_time)
        plot_item = self._plot_widget.plot(xs, ys, pen=pg.mkPen(color=color, width=2), name=series.label)
        self._traces[series.label] = plot_item

        self._ticks.append((lane * LANE_HEIGHT + 0.5, series.label))
        self._plot_widget.getAxis('left').setTicks([self._ticks])

    def remove_trace(self, label: str) -> bool:
        if label not in self._traces:
            return False
        self._plot_widget.removeItem(self._traces.pop(label))
        self._ticks = [(y, name) for y, name in self._ticks if name != label]
        self._plot_widget.getAxis('left').setTicks([self._ticks])
        return True

    def clear_all(self):
        """Removes all traces from the plot."""
        for label in list(self._traces):
            self.remove_trace(label)
        self._plot_widget.clear()
        self._plot_widget.addItem(self._vline, ignoreBounds=True)

    def set_trace_visible(self, label: str, visible: bool):
        if label in self._traces:
            self._traces[label].setVisible(visible)

    def auto_range(self):
        """Auto-scales the plot to fit all data."""
        self._plot_widget.autoRange()

    def get_trace_names(self) -> List[str]:
        return list(self._traces.keys())

    def set_dark_mode(self, dark: bool):
        """Sets the color scheme."""
        self._dark_mode = dark
        if dark:
            self._plot_widget.setBackground('#1e1e1e')
            text_color = 'w'
            grid_alpha = 0.3
        else:
            self._plot_widget.setBackground('#ffffff')
            text_color = 'k'
            grid_alpha = 0.2

        self._plot_widget.setTitle(self._title, color=text_color, size='12pt')
        self._plot_widget.setLabel('bottom', "Time", units='s', color=text_color)
        self._plot_widget.showGrid(x=True, y=False, alpha=grid_alpha)

    def export_image(self, filename: str):
        """Exports the plot as an image."""
        import pyqtgraph.exporters
        exporter = pyqtgraph.exporters.ImageExporter(self._plot_widget.getPlotItem())
        exporter.export(filename)


class WaveformLegendItem(QWidget):
    """A single item in the trace legend with visibility toggle."""

    visibility_changed = Signal(str, bool)  # label, visible

    def __init__(self, name: str, color: str, parent=None):
        super().__init__(parent)
        self._name = name

        layout = QHBoxLayout(self)
        layout.setContentsMargins(2, 2, 2, 2)
        layout.setSpacing(5)

        self._checkbox = QCheckBox()
        self._checkbox.setChecked(True)
        self._checkbox.toggled.connect(self._on_toggled)
        layout.addWidget(self._checkbox)

        swatch = QFrame()
        swatch.setFixedSize(16, 16)
        swatch.setStyleSheet(f"background-color: {color}; border-radius: 2px;")
        layout.addWidget(swatch)

        self._label = QLabel(name)
        self._label.setStyleSheet("color: white;")
        layout.addWidget(self._label)

        layout.addStretch()

    @property
    def name(self) -> str:
        return self._name

    def _on_toggled(self, checked: bool):
        self.visibility_changed.emit(self._name, checked)

    def set_dark_mode(self, dark: bool):
        """Updates colors for theme."""
        text_color = "white" if dark else "black"
        self._label.setStyleSheet(f"color: {text_color};")


class CursorReadout(QWidget):
    """Displays the cursor time and the logic level of each trace there."""

    def __init__(self, parent=None):
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(5, 2, 5, 2)

        self._time_label = QLabel("t: ---")
        layout.addWidget(self._time_label)

        layout.addSpacing(20)

        self._values_label = QLabel("")
        layout.addWidget(self._values_label)

        layout.addStretch()

        self._series: List[DisplaySeries] = []
        self.set_dark_mode(True)

    def set_series(self, series: List[DisplaySeries]):
        self._series = list(series)

    def readout_text(self, t: float) -> str:
        """Returns "label=level" for every trace at time t ("-" before its first sample)."""
        parts = []
        for s in self._series:
            value = value_at_time(t, s.x_values, s.y_values)
            if value is None:
                text = "-"
            elif s.render_style == "digital":
                text = logic_label(value)
            else:
                text = format_number(value)
            parts.append(f"{s.label}={text}")
        return "  ".join(parts)

    def update_position(self, t: float):
        """Updates the displayed cursor time and levels."""
        self._time_label.setText(f"t: {format_number(t, 's')}")
        self._values_label.setText(self.readout_text(t))

    def set_dark_mode(self, dark: bool):
        """Updates colors for theme."""
        text_color = "white" if dark else "black"
        style = f"color: {text_color}; font-family: monospace;"
        self._time_label.setStyleSheet(style)
        self._values_label.setStyleSheet(style)


class WaveformViewer(QWidget):
    """
    Results viewer for one gate-level transient analysis.

    Shows the plotted series, a legend with visibility toggles and a
    cursor readout.
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        self._series: List[DisplaySeries] = []
        self._dark_mode = True

        self._setup_ui()

    @classmethod
    def from_series(cls, series: List[DisplaySeries]) -> 'WaveformViewer':
        """Builds a viewer already showing the given series."""
        viewer = cls()
        viewer.set_series(series)
        return viewer

    def _setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        self._splitter = QSplitter(Qt.Horizontal)

        plot_container = QWidget()
        plot_layout = QVBoxLayout(plot_container)
        plot_layout.setContentsMargins(5, 5, 5, 5)

        self._cursor_readout = CursorReadout()
        plot_layout.addWidget(self._cursor_readout)

        self._plot = WaveformPlot(title="Transient Analysis")
        self._plot.cursor_moved.connect(self._cursor_readout.update_position)
        plot_layout.addWidget(self._plot, stretch=1)

        self._splitter.addWidget(plot_container)
        self._splitter.addWidget(self._create_legend_panel())
        self._splitter.setSizes([750, 200])

        # Toolbar (create AFTER plot)
        main_layout.addWidget(self._create_toolbar())
        main_layout.addWidget(self._splitter, stretch=1)

        self._apply_theme()

    def _create_toolbar(self) -> QWidget:
        toolbar = QWidget()
        toolbar.setFixedHeight(40)
        layout = QHBoxLayout(toolbar)
        layout.setContentsMargins(5, 5, 5, 5)

        auto_range_btn = QPushButton("Auto Range")
        auto_range_btn.clicked.connect(self._plot.auto_range)
        layout.addWidget(auto_range_btn)

        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(self.clear)
        layout.addWidget(clear_btn)

        layout.addStretch()

        export_btn = QPushButton("Export...")
        export_btn.clicked.connect(self._on_export)
        layout.addWidget(export_btn)

        return toolbar

    def _create_legend_panel(self) -> QWidget:
        panel = QGroupBox("Probes")
        layout = QVBoxLayout(panel)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        self._legend_content = QWidget()
        self._legend_layout = QVBoxLayout(self._legend_content)
        self._legend_layout.setAlignment(Qt.AlignTop)
        scroll.setWidget(self._legend_content)

        layout.addWidget(scroll)
        return panel

    def set_series(self, series: List[DisplaySeries]):
        """
        Replaces the displayed traces.

        Args:
            series: Series to draw; the first one goes in the top lane.
        """
        self._plot.clear_all()
        self._clear_legend()
        self._series = list(series)
        self._cursor_readout.set_series(self._series)

        end_time = max((s.x_values[-1] for s in self._series if s.x_values), default=None)
        for i, s in enumerate(self._series):
            color = trace_color(s.color, i)
            lane = len(self._series) - 1 - i
            self._plot.add_trace(s, lane, color, end_time)
            self._add_legend_item(s.label, color)

        self._plot.auto_range()

    def get_series(self) -> List[DisplaySeries]:
        return list(self._series)

    def get_trace_names(self) -> List[str]:
        return self._plot.get_trace_names()

    def readout_text(self, t: float) -> str:
        return self._cursor_readout.readout_text(t)

    def _add_legend_item(self, name: str, color: str):
        item = WaveformLegendItem(name, color)
        item.visibility_changed.connect(self._plot.set_trace_visible)
        item.set_dark_mode(self._dark_mode)
        self._legend_layout.addWidget(item)

    def _clear_legend(self):
        while self._legend_layout.count():
            item = self._legend_layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

    def _on_export(self):
        """Handles export button click."""
        from PySide6.QtWidgets import QFileDialog

        filename, _ = QFileDialog.getSaveFileName(
            self,
            "Export Waveform",
            "",
            "PNG Image (*.png);;All Files (*)"
        )

        if filename:
            if not filename.endswith('.png'):
                filename += '.png'
            self._plot.export_image(filename)

    def clear(self):
        """Clears all displayed data."""
        self._plot.clear_all()
        self._clear_legend()
        self._series = []
        self._cursor_readout.set_series([])

    def set_dark_mode(self, dark: bool):
        """Sets the color scheme."""
        self._dark_mode = dark
        self._apply_theme()

    def _apply_theme(self):
        self._plot.set_dark_mode(self._dark_mode)
        self._cursor_readout.set_dark_mode(self._dark_mode)

        if self._dark_mode:
            bg_color = "#2d2d2d"
            text_color = "white"
        else:
            bg_color = "#f5f5f5"
            text_color = "black"

        self.setStyleSheet(f"""
            QWidget {{
                background-color: {bg_color};
                color: {text_color};
            }}
            QGroupBox {{
                font-weight: bold;
                border: 1px solid #555555;
                border-radius: 4px;
                margin-top: 10px;
                padding-top: 10px;
            }}
            QPushButton {{
                background-color: {'#3d3d3d' if self._dark_mode else '#e0e0e0'};
                border: 1px solid #555555;
                border-radius: 4px;
                padding: 5px 10px;
                min-height: 20px;
            }}
            QScrollArea {{
                border: none;
            }}
        """)

        for i in range(self._legend_layout.count()):
            item = self._legend_layout.itemAt(i)
            if item and item.widget():
                item.widget().set_dark_mode(self._dark_mode)
