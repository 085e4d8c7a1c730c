# simulation/settings.py
"""
Simulator Settings — Defaults for transient runs and the ngspice backend.

Priority (highest to lowest):
1. Environment variables
2. Config file (~/.gatesim/config.toml)
3. Default values
"""

import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from simulation.units import parse_number

DEFAULT_CONFIG_PATH = Path.home() / ".gatesim" / "config.toml"

# field name -> environment variable
ENV_VARS = {
    "default_stop_time": "GATESIM_STOP_TIME",
    "vdd": "GATESIM_VDD",
    "v_il": "GATESIM_VIL",
    "v_ih": "GATESIM_VIH",
    "time_points": "GATESIM_TIME_POINTS",
    "poll_interval": "GATESIM_POLL_INTERVAL",
    "spice_scripts": "SPICE_SCRIPTS",
    "log_level": "GATESIM_LOG_LEVEL",
}


@dataclass
class SimulatorSettings:
    """Configuration for gate-level transient analysis."""

    default_stop_time: str = "100ns"  # Pre-filled in the stop time dialog

    # Logic family (volts)
    vdd: float = 1.0
    v_il: float = 0.3
    v_ih: float = 0.6

    time_points: int = 1000  # Transient step = stop time / time_points
    poll_interval: float = 0.05  # Seconds between progress reports

    spice_scripts: Optional[str] = None  # ngspice scripts dir (spinit)
    log_level: str = "INFO"

    def __post_init__(self):
        if self.v_il > self.v_ih:
            raise ValueError(f"v_il ({self.v_il}) must not exceed v_ih ({self.v_ih})")
        if self.time_points < 1:
            raise ValueError(f"time_points must be positive: {self.time_points}")

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "SimulatorSettings":
        """Load settings from the config file and environment variables."""
        values: Dict[str, Any] = {}

        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            values.update(data.get("simulation", {}))
            if "level" in data.get("logging", {}):
                values["log_level"] = data["logging"]["level"]

        for name, env_var in ENV_VARS.items():
            if env_var in os.environ:
                values[name] = os.environ[env_var]

        return cls(**_coerce(values))

    def apply_environment(self) -> None:
        """Exports backend settings ngspice reads from the environment."""
        if self.spice_scripts:
            os.environ["SPICE_SCRIPTS"] = self.spice_scripts


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    """Converts raw config values to each field's type."""
    result = {}
    known = {f.name for f in fields(SimulatorSettings)}

    for name, raw in values.items():
        if name not in known:
            raise ValueError(f"Unknown setting: {name}")
        try:
            if name in ("vdd", "v_il", "v_ih", "poll_interval"):
                result[name] = parse_number(raw)
            elif name == "time_points":
                result[name] = int(parse_number(raw))
            elif name == "log_level":
                result[name] = str(raw).upper()
            else:
                result[name] = str(raw)
        except ValueError:
            raise ValueError(f"Invalid value for {name}: {raw!r}")

    return result
