# app/__init__.py
"""
Application package for the gate-level simulator.

This package contains the main window and the Qt implementations of the
diagram and progress collaborators.
"""

from app.app_window import AppWindow
from app.progress_window import ProgressWindow
from app.qt_diagram import QtDiagram

__all__ = [
    "AppWindow",
    "ProgressWindow",
    "QtDiagram"
]
