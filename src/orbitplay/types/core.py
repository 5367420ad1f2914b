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
Core Types - Fundamental Building Blocks

Defines the most basic types used throughout the playback engine:
- Field names and samples (one row of trajectory data)
- Cartesian positions handed to the renderer
- Timestamps and durations

Usage
-----
>>> from orbitplay.types.core import Sample, Position, Timestamp
>>>
>>> def radius(sample: Sample) -> float:
...     return sample["r"]
"""

from typing import Iterable, Mapping, Tuple, Union

import numpy as np

# ============================================================================
# Sample Types
# ============================================================================

FieldName = str
"""
Name of a numeric column in a trajectory table.

Examples: 'r', 'psi', 'phi', 'theta', 'delta_psi'.
"""

Sample = Mapping[FieldName, float]
"""
One row of trajectory data: named fields mapped to finite reals.

Examples
--------
>>> sample: Sample = {"r": 1.0, "psi": 0.0}
>>> sample3d: Sample = {"r": 2.0, "phi": 0.5, "theta": 1.2}
"""

FieldSet = Iterable[FieldName]
"""Collection of required field names (set, tuple or list)."""

# ============================================================================
# Geometry Types
# ============================================================================

Position = np.ndarray
"""
Cartesian render position, shape (3,), dtype float64.

2D trajectories live in the z = 0 plane.
"""

PositionArray = np.ndarray
"""Batch of Cartesian positions, shape (n_samples, 3)."""

PositionTuple = Tuple[float, float, float]
"""Plain (x, y, z) triple returned by the scalar transform functions."""

# ============================================================================
# Time Types
# ============================================================================

Timestamp = float
"""
Wall-clock reading in milliseconds.

Only differences between timestamps are meaningful.
"""

ScalarLike = Union[float, int, np.floating, np.integer]
"""Real scalar accepted at API boundaries."""


__all__ = [
    "FieldName",
    "Sample",
    "FieldSet",
    "Position",
    "PositionArray",
    "PositionTuple",
    "Timestamp",
    "ScalarLike",
]
