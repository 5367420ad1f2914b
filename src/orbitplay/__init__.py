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
orbitplay - Precomputed Orbit Playback

Loads precomputed electron trajectories (2D polar or 3D spherical
samples), plays them back on a pausable, speed-adjustable virtual clock
with smooth interpolation, and records the angle at the outer turning
point to expose perihelion precession.

Usage
-----
>>> from orbitplay import QuantumNumbers, TrajectoryEngine, TrajectoryKind
>>> engine = TrajectoryEngine.for_kind(TrajectoryKind.R_2D)
>>> engine.select(None, QuantumNumbers(n=2, k=1), root="trajectory_data")
True
>>> frame = engine.advance()
>>> x, y, z = frame["position"]
"""

__version__ = "0.1.0"

from .config import (
    DEFAULT_PLAYBACK_CONFIG,
    ConfigError,
    InvalidSpeedError,
    PlaybackConfig,
    load_config,
)
from .geometry import CoordinateTransform, Polar2D, Spherical3D, get_transform
from .playback import (
    ClockSnapshot,
    LoadStatus,
    PlaybackClock,
    SignalHistory,
    TrajectoryEngine,
    TrajectorySampler,
)
from .trajectory import (
    EmptyTableError,
    LoadError,
    MalformedTableError,
    MissingColumnsError,
    QuantumNumbers,
    SampleTable,
    SourceUnreachableError,
    TableLoader,
    TrajectoryKind,
    resolve_source,
)
from .types import PlaybackFrame, SignalRecord

__all__ = [
    "__version__",
    # Configuration
    "PlaybackConfig",
    "DEFAULT_PLAYBACK_CONFIG",
    "load_config",
    # Data
    "SampleTable",
    "TableLoader",
    "TrajectoryKind",
    "QuantumNumbers",
    "resolve_source",
    # Geometry
    "CoordinateTransform",
    "Polar2D",
    "Spherical3D",
    "get_transform",
    # Playback
    "PlaybackClock",
    "ClockSnapshot",
    "TrajectorySampler",
    "SignalHistory",
    "TrajectoryEngine",
    "LoadStatus",
    # Results
    "PlaybackFrame",
    "SignalRecord",
    # Errors
    "ConfigError",
    "InvalidSpeedError",
    "LoadError",
    "SourceUnreachableError",
    "MalformedTableError",
    "MissingColumnsError",
    "EmptyTableError",
]
