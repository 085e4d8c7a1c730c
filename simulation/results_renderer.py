# simulation/results_renderer.py
"""
Results Renderer — Turns engine output into plot series for each probe.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from core.device import ProbeRecord
from simulation.engine import SimulationResults

logger = logging.getLogger(__name__)

RESULTS_WINDOW_TITLE = "Results of Gate-level simulation"
NO_RESULTS_MESSAGE = "Sorry, no results from transient analysis to plot!"
ERROR_MESSAGE_PREFIX = "Error during Transient analysis:\n\n"


@dataclass
class DisplaySeries:
    """One trace handed to the plotting layer."""
    x_values: List[float]
    y_values: List[Any]
    label: str
    color: str
    x_units: str = "s"
    render_style: str = "digital"
    offset: float = 0.0


def missing_node_message(probe: ProbeRecord) -> str:
    return (f'The {probe.color} probe is connected to node "{probe.label}" '
            f'which is not an actual circuit node')


def render_results(
        results: SimulationResults,
        probes: List[ProbeRecord],
        diagram,
        plotter: Optional[Callable[[List[DisplaySeries]], Any]] = None
) -> List[DisplaySeries]:
    """
    Builds one series per plotted probe and shows them in a window.

    Probes whose node is missing from the results are reported one by one
    and skipped. Probes marked as the x-axis only select the horizontal
    signal and are not plotted.

    Args:
        results: node label -> StepWaveform, an engine error string, or None.
        probes: The probes found in the netlist, in declaration order.
        diagram: Collaborator used for messages and windows.
        plotter: Builds the window content from the series; the series
                 list itself is shown when omitted.

    Returns:
        List[DisplaySeries]: The plotted series (empty on error).
    """
    if isinstance(results, str):
        diagram.show_message(ERROR_MESSAGE_PREFIX + results)
        return []
    if results is None:
        diagram.show_message(NO_RESULTS_MESSAGE)
        return []

    series: List[DisplaySeries] = []
    for probe in reversed(probes):
        waveform = results.get(probe.label)
        if waveform is None:
            logger.warning("Probe node %s not found in results", probe.label)
            diagram.show_message(missing_node_message(probe))
        elif not probe.is_x_axis:
            series.append(DisplaySeries(
                x_values=list(waveform.times),
                y_values=list(waveform.values),
                label=probe.label,
                color=probe.color,
                offset=probe.offset
            ))

    content = plotter(series) if plotter is not None else series
    diagram.open_window(RESULTS_WINDOW_TITLE, content)
    return series
