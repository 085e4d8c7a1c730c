# simulation/run_orchestrator.py
"""
Run Orchestrator — Drives one gate-level transient analysis.

A run goes Idle -> Configuring (netlist extracted, stop time requested)
-> Validated -> Running, and ends Completed, Cancelled or Failed. The
engine pushes Progress and Finished events; cancellation is cooperative,
signalled through the return value of each progress callback.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from core.device import Netlist, ProbeRecord, RawDevice
from core.gate_library import GateLibrary
from simulation.device_classifier import NetlistError
from simulation.engine import EngineEvent, Finished, Progress, SimulationEngine
from simulation.netlist_normalizer import find_probes, gate_netlist
from simulation.results_renderer import ERROR_MESSAGE_PREFIX, render_results
from simulation.settings import SimulatorSettings
from simulation.units import parse_number

logger = logging.getLogger(__name__)

DIALOG_TITLE = "Transient Analysis"
STOP_TIME_LABEL = "Stop Time (seconds)"
STOP_TIME_PROPERTY = "tran_tstop"
NO_PROBES_MESSAGE = "Transient Analysis: there are no probes in the diagram!"


class RunState(Enum):
    """Lifecycle of a transient analysis run."""
    IDLE = "idle"
    CONFIGURING = "configuring"
    VALIDATED = "validated"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class Diagram(Protocol):
    """The schematic a run is started from."""

    def extract_flattened_devices(self, leaf_types: List[str]) -> List[RawDevice]: ...

    def clear_annotations(self) -> None: ...

    def show_message(self, text: str) -> None: ...

    def show_modal_dialog(
            self, title: str, fields: Dict[str, str], on_accept: Callable[[Dict[str, str]], None]
    ) -> None: ...

    def open_window(self, title: str, content: Any) -> Any: ...

    def get_property(self, name: str, default: Optional[str] = None) -> Optional[str]: ...

    def set_property(self, name: str, value: str) -> None: ...


class ProgressReport:
    """Progress indicator for a running analysis, with a stop request flag."""

    def __init__(self):
        self.percent = 0.0
        self.stop_requested = False
        self.closed = False

    def update_progress(self, percent: float) -> None:
        self.percent = percent

    def request_stop(self) -> None:
        self.stop_requested = True

    def close(self) -> None:
        self.closed = True


class TransientAnalysis:
    """
    Runs gate-level transient analysis for a diagram.

    One instance serves one diagram; start() is ignored while a run is in
    progress.
    """

    def __init__(
            self,
            diagram: Diagram,
            engine: SimulationEngine,
            gate_library: Optional[GateLibrary] = None,
            settings: Optional[SimulatorSettings] = None,
            progress_factory: Callable[[], Any] = ProgressReport,
            plotter: Optional[Callable] = None
    ):
        self.diagram = diagram
        self.engine = engine
        self.gate_library = gate_library or GateLibrary()
        self.settings = settings or SimulatorSettings()
        self._progress_factory = progress_factory
        self._plotter = plotter

        self._state = RunState.IDLE
        self._netlist: Netlist = []
        self._probes: List[ProbeRecord] = []
        self._progress = None
        self._cancel_requested = False
        self.stop_time: Optional[float] = None
        self.last_error: Optional[str] = None
        self.series: List = []

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def netlist(self) -> Netlist:
        return self._netlist

    @property
    def probes(self) -> List[ProbeRecord]:
        return self._probes

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def _set_state(self, state: RunState) -> None:
        logger.debug("Transient analysis: %s -> %s", self._state.value, state.value)
        self._state = state

    def start(self) -> None:
        """Extracts the netlist and asks the user for a stop time."""
        if self._state is RunState.RUNNING:
            logger.warning("Transient analysis already running; start ignored")
            return

        self._set_state(RunState.CONFIGURING)
        self.last_error = None
        self.diagram.clear_annotations()

        try:
            self._netlist = gate_netlist(self.diagram, self.gate_library)
        except NetlistError as e:
            logger.warning("Netlist extraction failed: %s", e)
            self.diagram.show_message(f"Transient Analysis: {e}")
            self._set_state(RunState.IDLE)
            return

        self._probes = find_probes(self._netlist)
        if not self._probes:
            self.diagram.show_message(NO_PROBES_MESSAGE)
            self._set_state(RunState.IDLE)
            return

        self._prompt_stop_time()

    def _prompt_stop_time(self) -> None:
        default = self.diagram.get_property(STOP_TIME_PROPERTY, None)
        if default is None:
            default = self.settings.default_stop_time
        fields = {STOP_TIME_LABEL: default}
        self.diagram.show_modal_dialog(DIALOG_TITLE, fields, self._on_dialog_accepted)

    def _on_dialog_accepted(self, values: Dict[str, str]) -> None:
        if self._state is not RunState.CONFIGURING:
            return

        # Remember the entry for next time, even if it doesn't parse
        text = values.get(STOP_TIME_LABEL, "")
        self.diagram.set_property(STOP_TIME_PROPERTY, text)

        stop_time = self._parse_stop_time(text)
        if stop_time is None:
            self._prompt_stop_time()
            return

        self.stop_time = stop_time
        self._set_state(RunState.VALIDATED)
        self._submit()

    def _parse_stop_time(self, text: str) -> Optional[float]:
        try:
            value = parse_number(text)
        except ValueError:
            self.diagram.show_message(f'{STOP_TIME_LABEL}: could not interpret "{text}" as a number.')
            return None
        if value <= 0:
            self.diagram.show_message(f"{STOP_TIME_LABEL}: must be greater than zero.")
            return None
        return value

    def _submit(self) -> None:
        # Gather the probed nodes so the engine can record them
        probe_nodes = [probe.label for probe in self._probes]

        self._cancel_requested = False
        self._progress = self._progress_factory()
        self.diagram.open_window("Progress", self._progress)

        self._set_state(RunState.RUNNING)
        logger.info("Starting transient analysis: stop=%g s, %d devices, probes=%s",
                    self.stop_time, len(self._netlist), probe_nodes)

        try:
            self.engine.run_transient_analysis(self._netlist, self.stop_time, probe_nodes, self.on_event)
        except Exception as e:
            logger.exception("Transient analysis engine raised")
            if self._state is RunState.RUNNING:
                self._close_progress()
                self._fail(str(e) or type(e).__name__)
            return

        if self._state is RunState.RUNNING and self._cancel_requested:
            # The engine stopped calling back after seeing the stop request
            self._close_progress()
            self._set_state(RunState.CANCELLED)
            logger.info("Transient analysis cancelled")

    def request_cancel(self) -> None:
        """Asks the engine to stop at its next progress report."""
        if self._state is RunState.RUNNING:
            self._cancel_requested = True

    def on_event(self, event: EngineEvent) -> Optional[bool]:
        """Engine callback; returns True on Progress once a stop was requested."""
        if self._state is not RunState.RUNNING:
            logger.debug("Ignoring %s received while %s", type(event).__name__, self._state.value)
            return True

        if isinstance(event, Progress):
            self._progress.update_progress(event.percent)
            if getattr(self._progress, "stop_requested", False):
                self._cancel_requested = True
            return self._cancel_requested

        if isinstance(event, Finished):
            self._close_progress()
            if event.failed:
                self._fail(event.results)
            else:
                self._set_state(RunState.COMPLETED)
                logger.info("Transient analysis complete")
                self.series = render_results(event.results, self._probes, self.diagram, self._plotter)
            return None

        raise TypeError(f"Unknown engine event: {event!r}")

    def _fail(self, message: str) -> None:
        """Reports an engine failure and returns to Idle."""
        self.last_error = message
        logger.warning("Transient analysis failed: %s", message)
        self._set_state(RunState.FAILED)
        self.diagram.show_message(ERROR_MESSAGE_PREFIX + message)
        self._set_state(RunState.IDLE)

    def _close_progress(self) -> None:
        if self._progress is not None:
            self._progress.close()
            self._progress = None
