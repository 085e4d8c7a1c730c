# simulation/device_classifier.py
"""
Device Classifier — Maps extracted diagram devices to simulation primitives.

Each raw device record is resolved to one DeviceKind. Recognized devices
are rewritten with their numeric properties evaluated; devices with no
simulation counterpart are ignored so that new diagram primitives never
break gate-level simulation.
"""

import logging
import re
from typing import Any, Container, Dict, Mapping, Optional

from core.device import DeviceKind, NormalizedDevice, RawDevice, SourceSpec
from simulation.units import parse_number

logger = logging.getLogger(__name__)

# Timing and sizing properties the gate-level engine reads from each gate
GATE_PROPERTIES = ("tcd", "tpd", "tr", "tf", "cin", "size", "ts", "th")

GROUND_PIN = "gnd"

_SOURCE_RE = re.compile(r"^\s*(\w+)\s*\((.*)\)\s*$", re.DOTALL)


class NetlistError(Exception):
    """Base exception for netlist normalization errors."""
    pass


class SourceSpecError(NetlistError):
    """Raised when a source value is not of the form kind(arg, ...)."""

    def __init__(self, text: str, message: str = "expected kind(arg1,arg2,...)"):
        self.text = text
        super().__init__(f"Invalid source value {text!r}: {message}")


class DeviceClassificationError(NetlistError):
    """Raised when a recognized device cannot be converted."""

    def __init__(self, device_name: Optional[str], type_tag: str, message: str):
        self.device_name = device_name
        self.type_tag = type_tag
        label = device_name or "<unnamed>"
        super().__init__(f"Invalid device {label} ({type_tag}): {message}")


def parse_source_spec(text: str) -> SourceSpec:
    """
    Parses a source value such as "pulse(0,5,1e-9)".

    The whole string must match; text before the kind or after the closing
    parenthesis is rejected.

    Raises:
        SourceSpecError: If the text does not match the grammar or an
            argument is not a number.
    """
    if not isinstance(text, str):
        raise SourceSpecError(str(text), "value is not text")

    m = _SOURCE_RE.match(text)
    if not m:
        raise SourceSpecError(text)

    kind, arg_text = m.group(1), m.group(2)
    if not arg_text.strip():
        raise SourceSpecError(text, "expected at least one argument")

    args = []
    for arg in arg_text.split(","):
        try:
            args.append(parse_number(arg))
        except ValueError:
            raise SourceSpecError(text, f"argument {arg.strip()!r} is not a number")

    return SourceSpec(kind=kind, args=tuple(args))


def classify(raw_device: RawDevice, library_gate_names: Container[str]) -> Optional[NormalizedDevice]:
    """
    Converts one extracted device into its simulation form.

    Args:
        raw_device: The device as produced by the diagram extractor.
        library_gate_names: Names of the known gate primitives.

    Returns:
        NormalizedDevice, or None if the device is not simulated.

    Raises:
        DeviceClassificationError: If a recognized device carries a
            malformed source value or numeric property.
    """
    kind = DeviceKind.from_type_tag(raw_device.type_tag, library_gate_names)
    props = raw_device.properties

    if kind is DeviceKind.PRIMITIVE_GATE:
        properties: Dict[str, Any] = {"name": props.get("name")}
        for pname in GATE_PROPERTIES:
            value = props.get(pname)
            if value is None or value == "":
                continue
            properties[pname] = _numeric(raw_device, pname, value)
        return NormalizedDevice(
            kind=kind,
            connections=raw_device.node_list(),
            properties=properties,
            pins=_pin_map(raw_device),
            primitive=raw_device.name,
        )

    elif kind is DeviceKind.VOLTAGE_SOURCE:
        try:
            value = parse_source_spec(props.get("value", ""))
        except SourceSpecError as e:
            raise DeviceClassificationError(props.get("name"), raw_device.type_tag, str(e)) from e
        return NormalizedDevice(
            kind=kind,
            connections=raw_device.node_list(),
            properties={"name": props.get("name"), "value": value},
            pins=_pin_map(raw_device),
        )

    elif kind is DeviceKind.GROUND:
        connections = raw_device.connections
        if isinstance(connections, Mapping):
            node = connections.get(GROUND_PIN)
        else:
            node = connections[0] if connections else None
        if node is None:
            raise DeviceClassificationError(
                props.get("name"), raw_device.type_tag, f"no connection on pin '{GROUND_PIN}'"
            )
        return NormalizedDevice(kind=kind, connections=[node])

    elif kind is DeviceKind.CONNECT:
        # A jumper ties together every attached node whatever the pin names
        return NormalizedDevice(kind=kind, connections=raw_device.node_list())

    elif kind is DeviceKind.VOLTAGE_PROBE:
        offset = props.get("offset")
        return NormalizedDevice(
            kind=kind,
            connections=raw_device.node_list(),
            properties={
                "name": props.get("name"),
                "color": props.get("color"),
                "offset": 0.0 if offset is None or offset == "" else _numeric(raw_device, "offset", offset),
            },
            pins=_pin_map(raw_device),
        )

    # Unrecognized device: not simulated, not an error
    logger.debug("Ignoring device of type %s", raw_device.type_tag)
    return None


def _numeric(raw_device: RawDevice, pname: str, value: Any) -> float:
    try:
        return parse_number(value)
    except ValueError:
        raise DeviceClassificationError(
            raw_device.properties.get("name"),
            raw_device.type_tag,
            f"property {pname}={value!r} is not a number",
        )


def _pin_map(raw_device: RawDevice) -> Dict[str, str]:
    if isinstance(raw_device.connections, Mapping):
        return dict(raw_device.connections)
    return {}
