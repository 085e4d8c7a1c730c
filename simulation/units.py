# simulation/units.py
"""
Engineering Units — Parses and formats numbers with SPICE scale suffixes.

Device properties and dialog fields arrive as text such as "10ns",
"2.2k" or "0x1F". Everything numeric in a normalized netlist passes
through parse_number.
"""

import re
from typing import Union

# Order matters: "meg" and "mil" must be tried before "m"
SCALE_SUFFIXES = [
    ("meg", 1e6),
    ("mil", 25.4e-6),
    ("t", 1e12),
    ("g", 1e9),
    ("k", 1e3),
    ("m", 1e-3),
    ("u", 1e-6),
    ("n", 1e-9),
    ("p", 1e-12),
    ("f", 1e-15),
]

_DECIMAL_RE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?)([a-z]*)$")
_HEX_RE = re.compile(r"^([+-]?)0x([0-9a-f]+)$")
_BINARY_RE = re.compile(r"^([+-]?)0b([01]+)$")


def parse_number(text: Union[str, int, float]) -> float:
    """
    Parses a number that may carry an engineering scale suffix.

    Args:
        text: The literal, e.g. "1e-9", "10ns", "4.7k", "0x10".
              Ints and floats are returned as floats unchanged.

    Returns:
        float: The numeric value.

    Raises:
        ValueError: If the text is not a recognizable number.
    """
    if isinstance(text, bool):
        raise ValueError(f"Invalid number: {text!r}")
    if isinstance(text, (int, float)):
        return float(text)
    if not isinstance(text, str):
        raise ValueError(f"Invalid number: {text!r}")

    s = text.strip().lower()

    m = _HEX_RE.match(s)
    if m:
        value = float(int(m.group(2), 16))
        return -value if m.group(1) == "-" else value

    m = _BINARY_RE.match(s)
    if m:
        value = float(int(m.group(2), 2))
        return -value if m.group(1) == "-" else value

    m = _DECIMAL_RE.match(s)
    if not m:
        raise ValueError(f"Invalid number: {text!r}")

    value = float(m.group(1))
    rest = m.group(2)

    # Whatever follows the scale suffix is a unit name ("s", "v", "ohm")
    for suffix, multiplier in SCALE_SUFFIXES:
        if rest.startswith(suffix):
            return value * multiplier

    return value


def format_number(value: float, unit: str = "") -> str:
    """Formats a value with an engineering suffix, e.g. 1e-8 -> '10n'."""
    if value == 0:
        return f"0{unit}"

    magnitude = abs(value)
    if magnitude >= 1e12:
        scaled, suffix = value / 1e12, "T"
    elif magnitude >= 1e9:
        scaled, suffix = value / 1e9, "G"
    elif magnitude >= 1e6:
        scaled, suffix = value / 1e6, "MEG"
    elif magnitude >= 1e3:
        scaled, suffix = value / 1e3, "k"
    elif magnitude >= 1:
        scaled, suffix = value, ""
    elif magnitude >= 1e-3:
        scaled, suffix = value * 1e3, "m"
    elif magnitude >= 1e-6:
        scaled, suffix = value * 1e6, "u"
    elif magnitude >= 1e-9:
        scaled, suffix = value * 1e9, "n"
    elif magnitude >= 1e-12:
        scaled, suffix = value * 1e12, "p"
    else:
        scaled, suffix = value * 1e15, "f"

    return f"{scaled:.4g}{suffix}{unit}"
