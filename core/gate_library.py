# core/gate_library.py
from typing import Iterable, Iterator, Optional

DEFAULT_GATE_NAMES = (
    "and2", "and3", "and4",
    "nand2", "nand3", "nand4",
    "or2", "or3", "or4",
    "nor2", "nor3", "nor4",
    "xor2", "xnor2",
    "inverter", "buffer", "tristate",
    "dreg", "mux2",
)


class GateLibrary:
    """
    The set of gate primitives known to the simulator.

    Devices tagged "gates:<name>" are simulated only when <name> is a
    member; everything else in the gates namespace is ignored.
    """

    def __init__(self, names: Optional[Iterable[str]] = None):
        self._names = tuple(DEFAULT_GATE_NAMES if names is None else names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def type_tags(self):
        """Returns the qualified type tag of every member."""
        return [f"gates:{name}" for name in self._names]
