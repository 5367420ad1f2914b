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
Coordinate Transform - Sample Space to Render Space

Maps polar (2D) and spherical (3D) trajectory samples to Cartesian
positions. These are the only components that know a field schema; the
sampler, history and engine work over named fields and ask the transform
which fields are required and which of them are angles.

Conventions
-----------
Polar2D      (r, psi)          -> (r cos psi, r sin psi, 0)
Spherical3D  (r, phi, theta)   -> (r sin theta cos phi, r cos theta, r sin theta sin phi)

theta is the polar angle measured from the +y axis and phi the azimuth
around it, so the renderer's "up" axis is y.

Usage
-----
>>> from orbitplay.geometry import get_transform, polar_to_cartesian
>>> polar_to_cartesian(1.0, 0.0)
(1.0, 0.0, 0.0)
>>> transform = get_transform("spherical3d")
>>> transform.to_cartesian({"r": 1.0, "phi": 0.0, "theta": 0.0})
array([0., 1., 0.])
"""

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Tuple, Type

import numpy as np

from orbitplay.types.core import Position, PositionArray, PositionTuple, Sample

if TYPE_CHECKING:
    from orbitplay.trajectory.sample_table import SampleTable


# ============================================================================
# Scalar Transforms
# ============================================================================


def polar_to_cartesian(r: float, psi: float) -> PositionTuple:
    """Polar (r, psi) to Cartesian (x, y, 0)."""
    return r * math.cos(psi), r * math.sin(psi), 0.0


def spherical_to_cartesian(r: float, phi: float, theta: float) -> PositionTuple:
    """
    Spherical (r, phi, theta) to Cartesian (x, y, z).

    Parameters
    ----------
    r : float
        Radial distance
    phi : float
        Azimuthal angle (rotation around the y axis)
    theta : float
        Polar angle (inclination from the y axis)

    Returns
    -------
    Tuple[float, float, float]
        (x, y, z)
    """
    s = math.sin(theta)
    return r * s * math.cos(phi), r * math.cos(theta), r * s * math.sin(phi)


# ============================================================================
# Transform Variants
# ============================================================================


class CoordinateTransform(ABC):
    """
    Abstract sample-to-Cartesian transform.

    Subclasses declare the fields they consume and which of those are
    angles (interpolated on the circle rather than the line).

    Attributes
    ----------
    name : str
        Registry name
    dimension : int
        Dimension of the trajectory (2 or 3)
    required_fields : Tuple[str, ...]
        Fields the transform reads
    angular_fields : Tuple[str, ...]
        Subset of required_fields measured in radians
    """

    name: str = ""
    dimension: int = 3
    required_fields: Tuple[str, ...] = ()
    angular_fields: Tuple[str, ...] = ()

    @abstractmethod
    def to_tuple(self, sample: Sample) -> PositionTuple:
        """Convert one sample to an (x, y, z) triple."""
        pass

    @abstractmethod
    def _vectorized(self, columns: Dict[str, np.ndarray]) -> PositionArray:
        """Convert whole columns at once, returning (n, 3)."""
        pass

    def to_cartesian(self, sample: Sample) -> Position:
        """Convert one sample to a (3,) float64 array."""
        return np.array(self.to_tuple(sample), dtype=np.float64)

    def table_to_cartesian(self, table: "SampleTable") -> PositionArray:
        """
        Convert every sample of a table.

        Returns
        -------
        np.ndarray
            Positions, shape (len(table), 3)
        """
        columns = {name: table.column(name) for name in self.required_fields}
        return self._vectorized(columns)

    def __call__(self, sample: Sample) -> Position:
        return self.to_cartesian(sample)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fields={self.required_fields})"


class Polar2D(CoordinateTransform):
    """Planar orbit: (r, psi) -> (x, y, 0)."""

    name = "polar2d"
    dimension = 2
    required_fields = ("r", "psi")
    angular_fields = ("psi",)

    def to_tuple(self, sample: Sample) -> PositionTuple:
        return polar_to_cartesian(sample["r"], sample["psi"])

    def _vectorized(self, columns: Dict[str, np.ndarray]) -> PositionArray:
        r, psi = columns["r"], columns["psi"]
        return np.column_stack([r * np.cos(psi), r * np.sin(psi), np.zeros_like(r)])


class Spherical3D(CoordinateTransform):
    """Spatial orbit: (r, phi, theta) -> (x, y, z) with y as the polar axis."""

    name = "spherical3d"
    dimension = 3
    required_fields = ("r", "phi", "theta")
    angular_fields = ("phi", "theta")

    def to_tuple(self, sample: Sample) -> PositionTuple:
        return spherical_to_cartesian(sample["r"], sample["phi"], sample["theta"])

    def _vectorized(self, columns: Dict[str, np.ndarray]) -> PositionArray:
        r, phi, theta = columns["r"], columns["phi"], columns["theta"]
        s = np.sin(theta)
        return np.column_stack([r * s * np.cos(phi), r * np.cos(theta), r * s * np.sin(phi)])


# ============================================================================
# Registry
# ============================================================================

_TRANSFORMS: Dict[str, Type[CoordinateTransform]] = {
    Polar2D.name: Polar2D,
    Spherical3D.name: Spherical3D,
}


def get_transform(name: str) -> CoordinateTransform:
    """
    Look up a transform by name.

    Parameters
    ----------
    name : str
        'polar2d' or 'spherical3d' (case-insensitive)

    Raises
    ------
    ValueError
        If the name is unknown
    """
    key = name.lower().replace("-", "").replace("_", "")
    if key not in _TRANSFORMS:
        raise ValueError(f"Unknown transform '{name}'. Available: {sorted(_TRANSFORMS)}")
    return _TRANSFORMS[key]()


__all__ = [
    "polar_to_cartesian",
    "spherical_to_cartesian",
    "CoordinateTransform",
    "Polar2D",
    "Spherical3D",
    "get_transform",
]
