# simulation/ngspice_engine.py
"""
ngspice Engine — Runs gate-level netlists through ngspice's XSPICE digital models.

Gates become XSPICE code-model instances, sources stay analog, and
adc/dac bridges join the two domains so that every probed node can be
read back as a voltage. The run happens on ngspice's background thread;
this module polls it, reports progress and halts it on request.
"""

import functools
import logging
import re
import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from core.device import DeviceKind, Netlist, NormalizedDevice, SourceSpec
from simulation.engine import (
    EngineUnavailableError, EventCallback, Finished, Progress,
    SimulationError, UnsupportedDeviceError
)
from simulation.settings import SimulatorSettings
from simulation.waveform_data import LOGIC_0, LOGIC_1, LOGIC_X, StepWaveform

logger = logging.getLogger(__name__)

GROUND_NODE = "0"

# gate family -> XSPICE code model
GATE_MODELS = {
    "and": "d_and",
    "nand": "d_nand",
    "or": "d_or",
    "nor": "d_nor",
    "xor": "d_xor",
    "xnor": "d_xnor",
    "inverter": "d_inverter",
    "buffer": "d_buffer",
    "tristate": "d_tristate",
    "dreg": "d_dff",
}

# Models taking their inputs as a [vector]
VECTOR_INPUT_MODELS = {"d_and", "d_nand", "d_or", "d_nor", "d_xor", "d_xnor"}

# Gates with no code model, built from the ones above
MUX_FAMILY = "mux"
MUX_INPUT_PINS = ("d0", "d1", "s")

OUTPUT_PINS = ("z", "q", "y")

MIN_DELAY = 1e-12

_FAMILY_RE = re.compile(r"^([a-z]+?)(\d*)$")
_PROGRESS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")


def parse_progress(message: str) -> Optional[float]:
    """Extracts the percentage from an ngspice status message ("tran: 42.1%")."""
    m = _PROGRESS_RE.search(message or "")
    if m:
        return min(float(m.group(1)), 100.0)
    return None


def gate_family(primitive: str) -> str:
    """Strips the input count from a gate name: 'nand3' -> 'nand'."""
    m = _FAMILY_RE.match(primitive or "")
    return m.group(1) if m else primitive


def to_step_waveform(times: Sequence[float], volts: Sequence[float], v_il: float, v_ih: float) -> StepWaveform:
    """
    Converts sampled voltages to logic levels, keeping only the samples
    where the level changes.
    """
    times = np.asarray(times, dtype=float)
    volts = np.asarray(volts, dtype=float)
    if len(times) == 0:
        return StepWaveform()

    levels = np.where(volts <= v_il, LOGIC_0, np.where(volts >= v_ih, LOGIC_1, LOGIC_X))
    changes = np.concatenate(([True], levels[1:] != levels[:-1]))

    return StepWaveform(
        times=[float(t) for t in times[changes]],
        values=[int(v) for v in levels[changes]]
    )


class _NodeNamer:
    """Merges jumpered nodes and gives each merged net an ngspice-safe name."""

    def __init__(self, netlist: Netlist):
        self._parent: Dict[str, str] = {}
        self._names: Dict[str, str] = {}
        self._grounded = set()

        for device in netlist:
            for node in device.connections:
                self._find(node)
            if device.kind is DeviceKind.CONNECT:
                for node in device.connections[1:]:
                    self._union(device.connections[0], node)

        for device in netlist:
            if device.kind is DeviceKind.GROUND:
                self._grounded.add(self._find(device.connections[0]))

    def _find(self, node: str) -> str:
        self._parent.setdefault(node, node)
        root = node
        while self._parent[root] != root:
            root = self._parent[root]
        self._parent[node] = root
        return root

    def _union(self, a: str, b: str) -> None:
        root_a, root_b = self._find(a), self._find(b)
        if root_a != root_b:
            self._parent[root_b] = root_a

    def root(self, node: str) -> str:
        return self._find(node)

    def name(self, node: str) -> str:
        root = self._find(node)
        if root in self._grounded:
            return GROUND_NODE
        if root not in self._names:
            self._names[root] = f"n{len(self._names) + 1}"
        return self._names[root]


def _fmt(value: float) -> str:
    return f"{value:.6g}"


def _source_value(device: NormalizedDevice) -> str:
    """Translates a source's kind(args) into an ngspice source specification."""
    spec: SourceSpec = device.properties["value"]
    kind, args = spec.kind.lower(), list(spec.args)

    if kind == "dc" and len(args) == 1:
        return f"DC {_fmt(args[0])}"

    if kind == "step" and len(args) >= 2:
        v_init, v_plateau = args[0], args[1]
        t_delay = args[2] if len(args) > 2 else 0.0
        t_rise = args[3] if len(args) > 3 else 1e-10
        points = [0.0, v_init, t_delay, v_init, t_delay + t_rise, v_plateau]
        return "PWL(" + " ".join(_fmt(p) for p in points) + ")"

    if kind == "square" and len(args) >= 3:
        v_init, v_plateau, freq = args[0], args[1], args[2]
        duty = args[3] if len(args) > 3 else 50.0
        if freq <= 0:
            raise UnsupportedDeviceError(device.name, f"square wave frequency must be positive: {freq}")
        period = 1.0 / freq
        edge = period * 1e-3
        width = max(period * duty / 100.0 - edge, 0.0)
        points = [v_init, v_plateau, 0.0, edge, edge, width, period]
        return "PULSE(" + " ".join(_fmt(p) for p in points) + ")"

    if kind == "pulse" and len(args) >= 2:
        return "PULSE(" + " ".join(_fmt(a) for a in args[:7]) + ")"

    if kind == "sin" and len(args) >= 3:
        v_offset, v_amplitude, freq = args[0], args[1], args[2]
        t_delay = args[3] if len(args) > 3 else 0.0
        phase = args[4] if len(args) > 4 else 0.0
        points = [v_offset, v_amplitude, freq, t_delay, 0.0, phase]
        return "SIN(" + " ".join(_fmt(p) for p in points) + ")"

    if kind == "pwl" and args and len(args) % 2 == 0:
        return "PWL(" + " ".join(_fmt(a) for a in args) + ")"

    raise UnsupportedDeviceError(device.name, f"unsupported source {spec.kind}({len(args)} args)")


def _gate_model_params(model: str, props: Dict) -> List[str]:
    params = []
    tpd = props.get("tpd")
    cin = props.get("cin")
    delay = _fmt(max(tpd, MIN_DELAY)) if tpd is not None else None
    load = _fmt(cin * 1e12) if cin is not None else None  # XSPICE loads are in pF

    if model == "d_dff":
        if delay:
            params.append(f"clk_delay={delay}")
        if load:
            params += [f"data_load={load}", f"clk_load={load}"]
    elif model == "d_tristate":
        if delay:
            params.append(f"delay={delay}")
        if load:
            params += [f"input_load={load}", f"enable_load={load}"]
    else:
        if delay:
            params += [f"rise_delay={delay}", f"fall_delay={delay}"]
        if load:
            params.append(f"input_load={load}")
    return params


def _gate_ports(device: NormalizedDevice, model: str) -> Tuple[List[str], str]:
    """Returns (input nodes in model port order, output node)."""
    pins = device.pins or {str(i): node for i, node in enumerate(device.connections)}

    output_pin = next((p for p in OUTPUT_PINS if p in pins), None)
    if output_pin is None:
        raise UnsupportedDeviceError(device.name, f"{device.primitive} has no output pin")

    if model == "d_dff":
        required = ("d", "clk")
    elif model == "d_tristate":
        required = ("a", "e")
    else:
        required = None

    if required is not None:
        missing = [p for p in required if p not in pins]
        if missing:
            raise UnsupportedDeviceError(device.name, f"{device.primitive} missing pins {missing}")
        inputs = [pins[p] for p in required]
    else:
        inputs = [node for pin, node in pins.items() if pin != output_pin]

    if not inputs:
        raise UnsupportedDeviceError(device.name, f"{device.primitive} has no inputs")
    return inputs, pins[output_pin]


def _mux_gates(device: NormalizedDevice, namer: _NodeNamer, index: int) -> List[Tuple]:
    """
    Expands a 2:1 mux into z = d0 & ~s | d1 & s.

    Returns (device, model, input names, output name, properties) entries;
    the internal nets only exist on the digital side. The propagation
    delay goes on the final or, input loading on the first stage.
    """
    pins = device.pins or {}
    missing = [p for p in MUX_INPUT_PINS if p not in pins]
    output_pin = next((p for p in OUTPUT_PINS if p in pins), None)
    if missing or output_pin is None:
        raise UnsupportedDeviceError(
            device.name, f"{device.primitive} needs pins d0, d1, s and an output, missing {missing}"
        )

    d0, d1, s = (namer.name(pins[p]) for p in MUX_INPUT_PINS)
    s_n, p0, p1 = (f"mux{index}_{suffix}" for suffix in ("sn", "p0", "p1"))
    load = {"cin": device.properties["cin"]} if device.properties.get("cin") is not None else {}
    delay = {"tpd": device.properties["tpd"]} if device.properties.get("tpd") is not None else {}

    return [
        (device, "d_inverter", [s], s_n, load),
        (device, "d_and", [d0, s_n], p0, load),
        (device, "d_and", [d1, s], p1, load),
        (device, "d_or", [p0, p1], namer.name(pins[output_pin]), delay),
    ]


def build_deck(
        netlist: Netlist,
        stop_time: float,
        probe_nodes: Sequence[str],
        settings: SimulatorSettings
) -> Tuple[str, Dict[str, str]]:
    """
    Builds an ngspice deck for a gate-level netlist.

    Args:
        netlist: Normalized devices.
        stop_time: Transient stop time (seconds).
        probe_nodes: Node labels to read back.
        settings: Logic thresholds and time resolution.

    Returns:
        (deck text, probe label -> ngspice node name). Labels of nodes that
        no simulated device touches are left out of the mapping.

    Raises:
        UnsupportedDeviceError: For gates or sources ngspice can't express.
    """
    namer = _NodeNamer(netlist)
    circuit_roots = set()
    gate_lines: List[str] = []
    source_lines: List[str] = []
    gate_inputs: List[str] = []  # analog node names, first-use order
    driven = set()  # analog names driven by a gate output
    internal = set()  # digital-only nets inside expanded gates

    gate_count = 0
    source_count = 0
    mux_count = 0
    gates = []

    for device in netlist:
        if device.kind in (DeviceKind.VOLTAGE_PROBE, DeviceKind.CONNECT):
            continue
        circuit_roots.update(namer.root(node) for node in device.connections)

        if device.kind is DeviceKind.VOLTAGE_SOURCE:
            source_count += 1
            if device.pins and "nplus" in device.pins and "nminus" in device.pins:
                plus, minus = device.pins["nplus"], device.pins["nminus"]
            elif len(device.connections) >= 2:
                plus, minus = device.connections[0], device.connections[1]
            else:
                raise UnsupportedDeviceError(device.name, "voltage source needs two terminals")
            source_lines.append(
                f"V{source_count} {namer.name(plus)} {namer.name(minus)} {_source_value(device)}"
            )

        elif device.kind is DeviceKind.PRIMITIVE_GATE:
            family = gate_family(device.primitive)
            if family == MUX_FAMILY:
                mux_count += 1
                expanded = _mux_gates(device, namer, mux_count)
                gates.extend(expanded)
                internal.update(output for _, _, _, output, _ in expanded[:-1])
                driven.add(expanded[-1][3])
                continue

            model = GATE_MODELS.get(family)
            if model is None:
                raise UnsupportedDeviceError(device.name, f"no ngspice model for gate {device.primitive}")
            inputs, output = _gate_ports(device, model)
            gates.append((device, model, [namer.name(n) for n in inputs], namer.name(output), device.properties))
            driven.add(namer.name(output))

    for device, model, inputs, output, props in gates:
        gate_count += 1
        d_inputs = [f"d_{n}" for n in inputs]
        for n in inputs:
            if n not in driven and n not in internal and n not in gate_inputs:
                gate_inputs.append(n)

        if model in VECTOR_INPUT_MODELS:
            ports = f"[{' '.join(d_inputs)}] d_{output}"
        elif model == "d_dff":
            ports = f"{d_inputs[0]} {d_inputs[1]} NULL NULL d_{output} NULL"
        elif model == "d_tristate":
            ports = f"{d_inputs[0]} {d_inputs[1]} d_{output}"
        else:
            ports = f"{d_inputs[0]} d_{output}"

        model_name = f"m_{device.primitive}_{gate_count}"
        params = " ".join(_gate_model_params(model, props))
        gate_lines.append(f"* {device.name or device.primitive}")
        gate_lines.append(f"A{gate_count} {ports} {model_name}")
        gate_lines.append(f".model {model_name} {model}({params})")

    lines = [
        "* Gate-level netlist",
        f"* Devices: {len(netlist)}",
        "",
        "* --- Logic Family ---",
        f".model adc_logic adc_bridge(in_low={_fmt(settings.v_il)} in_high={_fmt(settings.v_ih)})",
        f".model dac_logic dac_bridge(out_low=0 out_high={_fmt(settings.vdd)} "
        f"out_undef={_fmt(settings.vdd / 2)})",
        "",
        "* --- Sources ---",
    ]
    lines.extend(source_lines)
    lines.append("")
    lines.append("* --- Gates ---")
    lines.extend(gate_lines)
    lines.append("")

    lines.append("* --- Bridges ---")
    if gate_inputs:
        analog = " ".join(gate_inputs)
        digital = " ".join(f"d_{n}" for n in gate_inputs)
        lines.append(f"Aadc [{analog}] [{digital}] adc_logic")
    outputs = sorted(driven)
    if outputs:
        digital = " ".join(f"d_{n}" for n in outputs)
        analog = " ".join(outputs)
        lines.append(f"Adac [{digital}] [{analog}] dac_logic")
    lines.append("")

    step = stop_time / settings.time_points
    lines.append(f".tran {_fmt(step)} {_fmt(stop_time)}")
    lines.append(".end")

    node_names = {}
    for label in probe_nodes:
        if namer.root(label) in circuit_roots:
            node_names[label] = namer.name(label)

    return "\n".join(lines), node_names


@functools.lru_cache(maxsize=None)
def _shared_class():
    """Builds the NgSpiceShared subclass on first use (loads PySpice lazily)."""
    from PySpice.Spice.NgSpice.Shared import NgSpiceShared

    class GateLevelNgSpiceShared(NgSpiceShared):
        """NgSpiceShared that records the latest progress report."""

        progress = 0.0

        def send_stat(self, message, ngspice_id):
            percent = parse_progress(message)
            if percent is not None:
                self.progress = percent
            return 0

        def send_char(self, message, ngspice_id):
            logger.debug("ngspice: %s", message)
            return super().send_char(message, ngspice_id)

        def is_busy(self) -> bool:
            return bool(self._ngspice_shared.ngSpice_running())

    return GateLevelNgSpiceShared


class NgspiceEngine:
    """
    SimulationEngine backed by the ngspice shared library.

    The background run is polled every settings.poll_interval seconds;
    each poll produces a Progress event. A True answer halts ngspice and
    ends the run without a Finished event.
    """

    def __init__(self, settings: Optional[SimulatorSettings] = None, shared=None):
        self.settings = settings or SimulatorSettings()
        self._shared = shared
        self._last_deck = ""

    def _get_shared(self):
        if self._shared is None:
            self.settings.apply_environment()
            try:
                self._shared = _shared_class().new_instance()
            except (ImportError, OSError) as e:
                raise EngineUnavailableError(f"ngspice shared library could not be loaded: {e}") from e
        return self._shared

    def get_last_deck(self) -> str:
        """Returns the last deck sent to ngspice."""
        return self._last_deck

    def run_transient_analysis(
            self,
            netlist: Netlist,
            stop_time: float,
            probe_nodes: List[str],
            on_event: EventCallback
    ) -> None:
        percent = 0.0
        try:
            deck, node_names = build_deck(netlist, stop_time, probe_nodes, self.settings)
            self._last_deck = deck
            logger.debug("ngspice deck:\n%s", deck)

            shared = self._get_shared()
            shared.progress = 0.0
            shared.load_circuit(deck)
            shared.run(background=True)

            while shared.is_busy():
                time.sleep(self.settings.poll_interval)
                percent = shared.progress
                if on_event(Progress(percent)):
                    shared.halt()
                    logger.info("ngspice run halted at %.1f%%", percent)
                    return

            results = self._collect_results(shared, node_names)

        except SimulationError as e:
            on_event(Finished(percent, str(e)))
            return
        except Exception as e:
            # ngspice reports deck and convergence problems as exceptions
            logger.warning("ngspice run failed: %s", e)
            on_event(Finished(percent, str(e) or type(e).__name__))
            return

        on_event(Finished(100.0, results))

    def _collect_results(self, shared, node_names: Dict[str, str]) -> Dict[str, StepWaveform]:
        """Reads the probed vectors of the last plot as logic step waveforms."""
        plot = shared.plot(None, shared.last_plot)
        if "time" not in plot:
            raise SimulationError("ngspice produced no transient data")

        times = np.asarray(plot["time"].to_waveform(to_real=True), dtype=float)
        results: Dict[str, StepWaveform] = {}

        for label, name in node_names.items():
            if name == GROUND_NODE:
                results[label] = StepWaveform(times=[float(times[0])], values=[LOGIC_0])
                continue
            vector = plot.get(name)
            if vector is None:
                logger.debug("No vector for node %s (%s)", label, name)
                continue
            volts = np.asarray(vector.to_waveform(to_real=True), dtype=float)
            results[label] = to_step_waveform(times, volts, self.settings.v_il, self.settings.v_ih)

        return results
