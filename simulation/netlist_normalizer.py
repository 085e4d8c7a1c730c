# simulation/netlist_normalizer.py
"""
Netlist Normalizer — Converts an extracted device list to a gate-level netlist.

The diagram flattens its hierarchy down to a fixed set of leaf devices
(analog sources, probes, ground, jumpers and the gates library). This
module classifies each of those devices, in order, producing the netlist
handed to the simulation engine.
"""

import logging
from typing import Container, Dict, Iterable, List, Sequence, Union

from core.device import DeviceKind, Netlist, ProbeRecord, RawDevice, SourceSpec
from core.gate_library import GateLibrary
from simulation.device_classifier import classify

logger = logging.getLogger(__name__)

# Leaf types extracted from every diagram, in addition to the gates library
LEAF_TYPES = ("ground", "jumper", "analog:v_source", "analog:v_probe")

PROBE_PIN = "probe"


def leaf_types(gate_library: Iterable[str]) -> List[str]:
    """Returns the type tags the diagram should flatten down to."""
    types = list(LEAF_TYPES)
    types.extend(f"gates:{name}" for name in gate_library)
    return types


def normalize(
        raw_devices: Iterable[Union[RawDevice, Sequence]],
        gate_library_names: Container[str]
) -> Netlist:
    """
    Classifies every raw device, keeping input order and dropping the
    devices that have no simulation counterpart.

    Args:
        raw_devices: Extracted devices, as RawDevice or [type, connections,
                     properties] triples.
        gate_library_names: Names of the known gate primitives.

    Returns:
        Netlist: The normalized devices.

    Raises:
        DeviceClassificationError: If a recognized device is malformed.
    """
    netlist: Netlist = []
    dropped = 0

    for raw in raw_devices:
        if not isinstance(raw, RawDevice):
            raw = RawDevice.from_list(raw)
        device = classify(raw, gate_library_names)
        if device is None:
            dropped += 1
        else:
            netlist.append(device)

    logger.info("Normalized netlist: %d devices (%d ignored)", len(netlist), dropped)
    return netlist


def gate_netlist(diagram, gate_library: GateLibrary) -> Netlist:
    """Asks the diagram for its flattened devices and normalizes them."""
    raw_devices = diagram.extract_flattened_devices(leaf_types(gate_library))
    return normalize(raw_devices, gate_library)


def find_probes(netlist: Netlist) -> List[ProbeRecord]:
    """Returns one record per voltage probe, in declaration order."""
    probes = []
    for device in netlist:
        if device.kind is not DeviceKind.VOLTAGE_PROBE:
            continue
        label = device.pins.get(PROBE_PIN)
        if label is None and device.connections:
            label = device.connections[0]
        probes.append(ProbeRecord(
            color=device.properties.get("color"),
            label=label,
            offset=device.properties.get("offset", 0.0)
        ))
    return probes


def summarize(netlist: Netlist) -> Dict[DeviceKind, int]:
    """Returns a count of devices by kind."""
    counts: Dict[DeviceKind, int] = {}
    for device in netlist:
        counts[device.kind] = counts.get(device.kind, 0) + 1
    return counts


def format_netlist(netlist: Netlist) -> str:
    """Formats the netlist for display, one device per line."""
    lines = [
        "* Gate-level netlist",
        f"* Devices: {len(netlist)}",
        "",
    ]

    for device in netlist:
        kind = device.primitive if device.kind is DeviceKind.PRIMITIVE_GATE else device.kind.value
        name = device.name or "-"
        if device.pins:
            nodes = " ".join(f"{pin}={node}" for pin, node in device.pins.items())
        else:
            nodes = " ".join(device.connections)

        params = []
        for key, value in device.properties.items():
            if key == "name" or value is None:
                continue
            if isinstance(value, SourceSpec):
                args = ",".join(f"{a:g}" for a in value.args)
                params.append(f"{key}={value.kind}({args})")
            elif isinstance(value, float):
                params.append(f"{key}={value:g}")
            else:
                params.append(f"{key}={value}")

        line = f"{kind:<14} {name:<10} {nodes}"
        if params:
            line += "  " + " ".join(params)
        lines.append(line.rstrip())

    return "\n".join(lines)
