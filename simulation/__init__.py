# simulation/__init__.py
"""
Simulation package for the gate-level simulator.

This package turns a schematic's devices into a gate-level netlist, runs
transient analysis through an engine (ngspice via PySpice) and hands the
resulting step waveforms to the plotting layer.
"""

from simulation.units import parse_number, format_number

from simulation.device_classifier import (
    NetlistError,
    SourceSpecError,
    DeviceClassificationError,
    classify,
    parse_source_spec
)

from simulation.netlist_normalizer import (
    normalize,
    gate_netlist,
    find_probes,
    format_netlist,
    leaf_types
)

from simulation.engine import (
    SimulationEngine,
    SimulationError,
    EngineUnavailableError,
    UnsupportedDeviceError,
    Progress,
    Finished
)

from simulation.waveform_data import (
    StepWaveform,
    value_at_time,
    logic_label
)

from simulation.results_renderer import DisplaySeries, render_results
from simulation.run_orchestrator import RunState, TransientAnalysis
from simulation.settings import SimulatorSettings

__all__ = [
    # Units
    "parse_number",
    "format_number",
    # Netlist
    "NetlistError",
    "SourceSpecError",
    "DeviceClassificationError",
    "classify",
    "parse_source_spec",
    "normalize",
    "gate_netlist",
    "find_probes",
    "format_netlist",
    "leaf_types",
    # Engine
    "SimulationEngine",
    "SimulationError",
    "EngineUnavailableError",
    "UnsupportedDeviceError",
    "Progress",
    "Finished",
    # Waveform Data
    "StepWaveform",
    "value_at_time",
    "logic_label",
    # Runs
    "DisplaySeries",
    "render_results",
    "RunState",
    "TransientAnalysis",
    "SimulatorSettings"
]
