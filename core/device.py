# core/device.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

# Color value a probe uses to select the horizontal axis signal
X_AXIS_COLOR = "x-axis"

Connections = Union[Mapping[str, str], Sequence[str]]


class DeviceKind(Enum):
    """Simulation primitive kinds understood by the gate-level engine."""
    PRIMITIVE_GATE = "gate"
    VOLTAGE_SOURCE = "voltage source"
    GROUND = "ground"
    CONNECT = "connect"
    VOLTAGE_PROBE = "voltage probe"

    @classmethod
    def from_type_tag(cls, type_tag: str, gate_names: Iterable[str]) -> Optional['DeviceKind']:
        """
        Resolves an extracted type tag to a device kind.

        Returns None for tags that have no simulation counterpart.
        """
        namespace, _, name = type_tag.partition(":")
        if name and namespace == "gates":
            return cls.PRIMITIVE_GATE if name in gate_names else None
        return _BUILTIN_KINDS.get(type_tag)


_BUILTIN_KINDS = {
    "analog:v_source": DeviceKind.VOLTAGE_SOURCE,
    "ground": DeviceKind.GROUND,
    "jumper": DeviceKind.CONNECT,
    "analog:v_probe": DeviceKind.VOLTAGE_PROBE,
}


@dataclass(frozen=True)
class RawDevice:
    """
    A device record as produced by the diagram's netlist extraction.

    Attributes:
        type_tag: "<namespace>:<name>" or a bare built-in name ("ground").
        connections: pin name -> node id, or an ordered list of node ids.
        properties: the device's property bag (strings or numbers).
    """
    type_tag: str
    connections: Connections = field(default_factory=dict)
    properties: Mapping[str, Any] = field(default_factory=dict)

    @property
    def namespace(self) -> str:
        return self.type_tag.partition(":")[0] if ":" in self.type_tag else ""

    @property
    def name(self) -> str:
        return self.type_tag.partition(":")[2] if ":" in self.type_tag else self.type_tag

    def node_list(self) -> List[str]:
        """Returns the connected nodes in pin order."""
        if isinstance(self.connections, Mapping):
            return list(self.connections.values())
        return list(self.connections)

    @classmethod
    def from_list(cls, entry: Sequence[Any]) -> 'RawDevice':
        """Builds a device from an extractor triple [type, connections, properties]."""
        type_tag = entry[0]
        connections = entry[1] if len(entry) > 1 else {}
        properties = entry[2] if len(entry) > 2 else {}
        return cls(type_tag=type_tag, connections=connections, properties=properties or {})


@dataclass(frozen=True)
class SourceSpec:
    """A parsed waveform source value, e.g. pulse(0,1,1n) -> kind='pulse'."""
    kind: str
    args: Tuple[float, ...] = ()


@dataclass
class NormalizedDevice:
    """
    A device in the form consumed by the simulation engine.

    Properties hold only numbers or structured values (SourceSpec); no
    numeric literal survives as a string.
    """
    kind: DeviceKind
    connections: List[str]
    properties: Dict[str, Any] = field(default_factory=dict)
    pins: Dict[str, str] = field(default_factory=dict)
    primitive: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        return self.properties.get("name")


Netlist = List[NormalizedDevice]


@dataclass(frozen=True)
class ProbeRecord:
    """A voltage probe: which node to plot and in what color."""
    color: str
    label: str
    offset: float = 0.0

    @property
    def is_x_axis(self) -> bool:
        return self.color == X_AXIS_COLOR
