# simulation/engine.py
"""
Simulation Engine Protocol — The contract between a run and its engine.

The engine owns the run loop. It reports progress and completion as
events delivered to a single callback; the callback's return value on a
Progress event tells the engine whether the user asked to stop.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Union

from core.device import Netlist
from simulation.waveform_data import StepWaveform


class SimulationError(Exception):
    """Base exception for simulation engine errors."""
    pass


class EngineUnavailableError(SimulationError):
    """Raised when the simulator backend cannot be loaded."""
    pass


class UnsupportedDeviceError(SimulationError):
    """Raised when a device has no equivalent in the simulator backend."""

    def __init__(self, device_name: Optional[str], message: str):
        self.device_name = device_name
        super().__init__(f"{device_name or '<unnamed>'}: {message}")


# node label -> waveform; a string is an engine error message
SimulationResults = Union[Dict[str, StepWaveform], str, None]


@dataclass(frozen=True)
class Progress:
    """The run is still going; percent is 0-100."""
    percent: float


@dataclass(frozen=True)
class Finished:
    """The run is over."""
    percent: float
    results: SimulationResults = None

    @property
    def failed(self) -> bool:
        return isinstance(self.results, str)


EngineEvent = Union[Progress, Finished]

# Returns True on a Progress event to request cancellation
EventCallback = Callable[[EngineEvent], Optional[bool]]


class SimulationEngine(Protocol):
    """
    Anything that can run a transient analysis of a gate-level netlist.

    run_transient_analysis calls on_event with Progress events, stops
    calling back once a Progress callback returns True, delivers at most
    one Finished event, and returns when it will make no further calls.
    """

    def run_transient_analysis(
            self,
            netlist: Netlist,
            stop_time: float,
            probe_nodes: List[str],
            on_event: EventCallback
    ) -> None:
        ...
