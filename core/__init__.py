# core package
# Expose main classes for convenience

from .device import (
    DeviceKind,
    RawDevice,
    NormalizedDevice,
    Netlist,
    SourceSpec,
    ProbeRecord,
    X_AXIS_COLOR,
)
from .gate_library import GateLibrary, DEFAULT_GATE_NAMES
