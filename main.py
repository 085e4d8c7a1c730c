# main.py
"""
Gate-level Simulator — application entry point.

Usage: python main.py [devices.json]
"""

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from app.app_window import AppWindow, load_device_file
from simulation.settings import SimulatorSettings


def main():
    settings = SimulatorSettings.load()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    settings.apply_environment()

    devices = []
    if len(sys.argv) > 1:
        devices = load_device_file(Path(sys.argv[1]))

    app = QApplication(sys.argv)
    window = AppWindow(settings=settings, devices=devices)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
