# simulation/waveform_data.py
"""
Waveform Data Structures — Step waveforms produced by gate-level simulation.

A node's history is stored as the times at which its value changed and the
value it took at each of those times. The value holds from its time point
up to (not including) the next one.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple

# Logic levels reported for digital nodes
LOGIC_0 = 0
LOGIC_1 = 1
LOGIC_X = 2
LOGIC_Z = 3

_LOGIC_LABELS = {LOGIC_0: "0", LOGIC_1: "1", LOGIC_X: "X", LOGIC_Z: "Z"}


def logic_label(value: Any) -> str:
    """Returns the display label for a logic level ("0", "1", "X", "Z")."""
    return _LOGIC_LABELS.get(value, str(value))


def value_at_time(t: float, times: Sequence[float], values: Optional[Sequence[Any]]) -> Optional[Any]:
    """
    Returns the value in force at time t.

    Args:
        t: The query time.
        times: Sample times, strictly increasing.
        values: The value recorded at each sample time, or None if the
                node was never recorded.

    Returns:
        The value of the most recent sample at or before t. The last
        sample holds from its time onwards. None when t precedes the first
        sample or there are no values.
    """
    if values is None or len(values) == 0:
        return None

    for i, sample_time in enumerate(times):
        if t < sample_time:
            # t falls between times[i-1] and times[i]
            if i == 0:
                return None
            return values[i - 1]
    return values[len(times) - 1]


@dataclass
class StepWaveform:
    """
    A right-continuous step function sampled at irregular times.

    Attributes:
        times: Time points, strictly increasing (seconds).
        values: Value taken at each time point.
    """
    times: List[float] = field(default_factory=list)
    values: List[Any] = field(default_factory=list)

    def __post_init__(self):
        """Validate that times and values have the same length."""
        if len(self.times) != len(self.values):
            raise ValueError(
                f"times and values must have same length: "
                f"{len(self.times)} != {len(self.values)}"
            )

    def __len__(self) -> int:
        return len(self.times)

    def __iter__(self) -> Iterator[Tuple[float, Any]]:
        return iter(zip(self.times, self.values))

    @property
    def is_empty(self) -> bool:
        return len(self.times) == 0

    @property
    def end_time(self) -> Optional[float]:
        return self.times[-1] if self.times else None

    def value_at(self, t: float) -> Optional[Any]:
        """Returns the value in force at time t (see value_at_time)."""
        return value_at_time(t, self.times, self.values)

    def transitions(self) -> List[Tuple[float, Any]]:
        """Returns (time, value) pairs where the value differs from the previous one."""
        result = []
        previous = object()
        for t, v in zip(self.times, self.values):
            if v != previous:
                result.append((t, v))
                previous = v
        return result


def step_points(
        times: Sequence[float],
        values: Sequence[float],
        end_time: Optional[float] = None
) -> Tuple[List[float], List[float]]:
    """
    Expands a step waveform into polyline points with vertical edges.

    Args:
        times: Sample times, strictly increasing.
        values: Numeric value taken at each sample time.
        end_time: Where to stop drawing the last value; defaults to the
                  last sample time.

    Returns:
        (x, y) lists suitable for a line plot.
    """
    xs: List[float] = []
    ys: List[float] = []
    for i, (t, v) in enumerate(zip(times, values)):
        if i > 0:
            xs.append(t)
            ys.append(ys[-1])
        xs.append(t)
        ys.append(v)
    if xs and end_time is not None and end_time > xs[-1]:
        xs.append(end_time)
        ys.append(ys[-1])
    return xs, ys
