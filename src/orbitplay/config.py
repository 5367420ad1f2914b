# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Playback Configuration

Defaults, validation helpers and environment overrides for the playback
engine.

Supported environment variables
-------------------------------
ORBITPLAY_DATA_ROOT      Root path or URL of the trajectory data tree
ORBITPLAY_HTTP_TIMEOUT   Fetch timeout in seconds
ORBITPLAY_DEFAULT_SPEED  Initial speed multiplier

All values are optional; numeric values are validated.

Usage
-----
>>> from orbitplay.config import load_config, validate_speed
>>> config = load_config()
>>> config["steps_per_speed_unit"]
10.0
>>> validate_speed(0.0)  # InvalidSpeedError
"""

import math
import os
from typing import Mapping, Optional, Tuple

from typing_extensions import TypedDict

# ============================================================================
# Exceptions
# ============================================================================


class ConfigError(ValueError):
    """Raised when a configuration value is invalid"""
    pass


class InvalidSpeedError(ConfigError):
    """Raised when a speed multiplier is not a positive finite real"""
    pass


# ============================================================================
# Defaults
# ============================================================================

DEFAULT_SPEED: float = 1.0
STEPS_PER_SPEED_UNIT: float = 10.0  # samples per second at speed 1.0
HISTORY_CAPACITY: int = 200
R_MAX_TOLERANCE: float = 0.1
DEFAULT_DELIMITER: str = ","
HTTP_TIMEOUT_S: float = 10.0
DATA_ROOT: str = "/trajectory_data"

# Inclusive quantum number ranges offered by the controls
N_RANGE: Tuple[int, int] = (1, 5)
K_RANGE_2D: Tuple[int, int] = (0, 5)
K_RANGE_3D: Tuple[int, int] = (1, 5)
M_RANGE: Tuple[int, int] = (0, 5)

ENV_DATA_ROOT = "ORBITPLAY_DATA_ROOT"
ENV_HTTP_TIMEOUT = "ORBITPLAY_HTTP_TIMEOUT"
ENV_DEFAULT_SPEED = "ORBITPLAY_DEFAULT_SPEED"


class PlaybackConfig(TypedDict):
    """
    Engine configuration.

    Fields
    ------
    speed : float
        Initial speed multiplier
    steps_per_speed_unit : float
        Samples advanced per second at speed 1.0
    history_capacity : int
        Maximum number of signal records kept
    tolerance : float
        |r - r_max| threshold for signal capture
    delimiter : str
        Column delimiter of trajectory tables
    http_timeout : float
        Fetch timeout in seconds
    data_root : str
        Root path or URL of the trajectory data tree
    """

    speed: float
    steps_per_speed_unit: float
    history_capacity: int
    tolerance: float
    delimiter: str
    http_timeout: float
    data_root: str


DEFAULT_PLAYBACK_CONFIG: PlaybackConfig = {
    "speed": DEFAULT_SPEED,
    "steps_per_speed_unit": STEPS_PER_SPEED_UNIT,
    "history_capacity": HISTORY_CAPACITY,
    "tolerance": R_MAX_TOLERANCE,
    "delimiter": DEFAULT_DELIMITER,
    "http_timeout": HTTP_TIMEOUT_S,
    "data_root": DATA_ROOT,
}


# ============================================================================
# Validation
# ============================================================================


def validate_speed(speed: float) -> float:
    """
    Validate a speed multiplier.

    Parameters
    ----------
    speed : float
        Candidate multiplier

    Returns
    -------
    float
        The multiplier as a float

    Raises
    ------
    InvalidSpeedError
        If speed is not a positive finite real

    Examples
    --------
    >>> validate_speed(2)
    2.0
    >>> validate_speed(-1.0)  # InvalidSpeedError
    """
    try:
        value = float(speed)
    except (TypeError, ValueError) as e:
        raise InvalidSpeedError(f"Speed must be a real number, got {speed!r}") from e
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidSpeedError(f"Speed must be positive and finite, got {speed!r}")
    return value


def validate_positive(name: str, value: float) -> float:
    """Validate that a named setting is a positive finite real."""
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a real number, got {value!r}") from e
    if not math.isfinite(v) or v <= 0.0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return v


def validate_range(name: str, value: int, bounds: Tuple[int, int]) -> int:
    """Validate an integer against an inclusive (low, high) range."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    low, high = bounds
    if not low <= value <= high:
        raise ConfigError(f"{name} must be in [{low}, {high}], got {value}")
    return value


# ============================================================================
# Environment
# ============================================================================


def _get_float(env: Mapping[str, str], name: str) -> Optional[float]:
    v = env.get(name)
    if v is None or v.strip() == "":
        return None
    try:
        return float(v)
    except ValueError:
        raise ConfigError(f"Invalid float for {name}: {v!r}")


def load_config(env: Optional[Mapping[str, str]] = None, **overrides) -> PlaybackConfig:
    """
    Build a PlaybackConfig from defaults, environment and keyword overrides.

    Precedence: overrides > environment > defaults.

    Parameters
    ----------
    env : Optional[Mapping[str, str]]
        Environment mapping (default: os.environ)
    **overrides
        Any PlaybackConfig field

    Returns
    -------
    PlaybackConfig
        Validated configuration

    Raises
    ------
    ConfigError
        If an environment value or override is invalid

    Examples
    --------
    >>> load_config({"ORBITPLAY_DEFAULT_SPEED": "2.5"})["speed"]
    2.5
    >>> load_config(history_capacity=50)["history_capacity"]
    50
    """
    env = os.environ if env is None else env
    config: PlaybackConfig = dict(DEFAULT_PLAYBACK_CONFIG)  # type: ignore[assignment]

    root = env.get(ENV_DATA_ROOT)
    if root is not None and root.strip() != "":
        config["data_root"] = root.strip()

    timeout = _get_float(env, ENV_HTTP_TIMEOUT)
    if timeout is not None:
        config["http_timeout"] = timeout

    speed = _get_float(env, ENV_DEFAULT_SPEED)
    if speed is not None:
        config["speed"] = speed

    unknown = set(overrides) - set(DEFAULT_PLAYBACK_CONFIG)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")
    config.update(overrides)  # type: ignore[typeddict-item]

    config["speed"] = validate_speed(config["speed"])
    config["steps_per_speed_unit"] = validate_positive(
        "steps_per_speed_unit", config["steps_per_speed_unit"]
    )
    config["tolerance"] = validate_positive("tolerance", config["tolerance"])
    config["http_timeout"] = validate_positive("http_timeout", config["http_timeout"])
    capacity = config["history_capacity"]
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise ConfigError(f"history_capacity must be a positive integer, got {capacity!r}")
    if not config["delimiter"]:
        raise ConfigError("delimiter must be a non-empty string")

    return config


__all__ = [
    "ConfigError",
    "InvalidSpeedError",
    "DEFAULT_SPEED",
    "STEPS_PER_SPEED_UNIT",
    "HISTORY_CAPACITY",
    "R_MAX_TOLERANCE",
    "DEFAULT_DELIMITER",
    "HTTP_TIMEOUT_S",
    "DATA_ROOT",
    "N_RANGE",
    "K_RANGE_2D",
    "K_RANGE_3D",
    "M_RANGE",
    "PlaybackConfig",
    "DEFAULT_PLAYBACK_CONFIG",
    "validate_speed",
    "validate_positive",
    "validate_range",
    "load_config",
]
