# app/qt_diagram.py
"""
Qt Diagram — A flattened device list presented through Qt dialogs and windows.

Implements the collaborator a TransientAnalysis talks to: it hands out
the leaf devices, shows messages and the stop-time dialog, keeps the
diagram's module properties and owns the windows a run opens.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QFormLayout, QLabel, QLineEdit,
    QMessageBox, QVBoxLayout, QWidget
)

from core.device import RawDevice

logger = logging.getLogger(__name__)

MESSAGE_TITLE = "Gate-level Simulation"


class FieldsDialog(QDialog):
    """Modal form with one line edit per field."""

    def __init__(self, title: str, fields: Dict[str, str], parent=None):
        super().__init__(parent)
        self.setWindowTitle(title)

        # Maps field labels to their QLineEdit widgets
        self.edits: Dict[str, QLineEdit] = {}

        main_layout = QVBoxLayout(self)
        form_layout = QFormLayout()
        for label, value in fields.items():
            line_edit = QLineEdit(str(value))
            form_layout.addRow(QLabel(label), line_edit)
            self.edits[label] = line_edit
        main_layout.addLayout(form_layout)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        main_layout.addWidget(buttons)

    def values(self) -> Dict[str, str]:
        return {label: edit.text().strip() for label, edit in self.edits.items()}


class QtDiagram:
    """
    A diagram whose hierarchy has already been flattened to leaf devices.

    Args:
        devices: RawDevice records or [type, connections, properties] triples.
        parent: Widget used as parent for dialogs and message boxes.
    """

    def __init__(self, devices: Sequence[Union[RawDevice, Sequence]] = (), parent: Optional[QWidget] = None):
        self.parent = parent
        self._devices: List[RawDevice] = [
            d if isinstance(d, RawDevice) else RawDevice.from_list(d) for d in devices
        ]
        self._properties: Dict[str, str] = {}
        self.annotations: Dict[str, str] = {}  # node -> note shown on the schematic
        self.windows: List[Any] = []

    @property
    def devices(self) -> List[RawDevice]:
        return list(self._devices)

    def set_devices(self, devices: Sequence[Union[RawDevice, Sequence]]) -> None:
        self._devices = [d if isinstance(d, RawDevice) else RawDevice.from_list(d) for d in devices]

    def extract_flattened_devices(self, leaf_types: List[str]) -> List[RawDevice]:
        """Returns the devices whose type is one of leaf_types, in order."""
        wanted = set(leaf_types)
        devices = [d for d in self._devices if d.type_tag in wanted]
        skipped = len(self._devices) - len(devices)
        if skipped:
            logger.debug("Skipped %d devices that are not simulation leaves", skipped)
        return devices

    def clear_annotations(self) -> None:
        self.annotations.clear()

    def annotate(self, node: str, text: str) -> None:
        self.annotations[node] = text

    def show_message(self, text: str) -> None:
        logger.info("Message: %s", text)
        QMessageBox.warning(self.parent, MESSAGE_TITLE, text)

    def show_modal_dialog(
            self,
            title: str,
            fields: Dict[str, str],
            on_accept: Callable[[Dict[str, str]], None]
    ) -> None:
        """Shows a modal form; on_accept receives the entered values on OK."""
        dialog = FieldsDialog(title, fields, self.parent)
        if dialog.exec():
            on_accept(dialog.values())
        else:
            logger.debug("%s dialog cancelled", title)

    def open_window(self, title: str, content: Any) -> Any:
        """Shows content in its own top-level window and keeps it alive while open."""
        # Drop references to windows the user has closed
        self.windows = [w for w in self.windows if w.isVisible()]
        if isinstance(content, QWidget):
            content.setWindowTitle(title)
            content.show()
            self.windows.append(content)
        else:
            logger.debug("Window %s has no widget content", title)
        return content

    def get_property(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._properties.get(name, default)

    def set_property(self, name: str, value: str) -> None:
        self._properties[name] = value
