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
Trajectory Sources - Kinds and Quantum Number Addressing

Each precomputed orbit lives at a path derived from its trajectory kind
and quantum numbers:

    {root}/2d/{rel|nr}/{n}_{k}.csv
    {root}/3d/{rel|nr}/{n}_{k}_{m}.csv

Usage
-----
>>> kind = TrajectoryKind.from_name("2DR")
>>> resolve_source(kind, QuantumNumbers(n=2, k=1), root="/trajectory_data")
'/trajectory_data/2d/rel/2_1.csv'
>>> kind.required_fields
('r', 'psi', 'delta_psi')
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple

from orbitplay.config import (
    DATA_ROOT,
    K_RANGE_2D,
    K_RANGE_3D,
    M_RANGE,
    N_RANGE,
    ConfigError,
    validate_range,
)


class TrajectoryKind(Enum):
    """
    Trajectory variant: dimensionality × relativistic treatment.

    Attributes
    ----------
    NR_2D : str
        Planar, non-relativistic ('2DNR')
    R_2D : str
        Planar, relativistic ('2DR'); perihelion precession, carries delta_psi
    NR_3D : str
        Spatial, non-relativistic ('3DNR')
    R_3D : str
        Spatial, relativistic ('3DR')
    """

    NR_2D = "2DNR"
    R_2D = "2DR"
    NR_3D = "3DNR"
    R_3D = "3DR"

    @classmethod
    def from_name(cls, name: str) -> "TrajectoryKind":
        """Parse '2DNR', '2dr', ... into a kind."""
        key = name.strip().upper()
        for kind in cls:
            if kind.value == key:
                return kind
        raise ConfigError(f"Unknown trajectory kind '{name}'. Available: {[k.value for k in cls]}")

    @property
    def dimension(self) -> int:
        return 2 if self.value.startswith("2D") else 3

    @property
    def relativistic(self) -> bool:
        return self.value.endswith("DR")

    @property
    def transform_name(self) -> str:
        return "polar2d" if self.dimension == 2 else "spherical3d"

    @property
    def uses_m(self) -> bool:
        """Whether the magnetic quantum number selects the file."""
        return self.dimension == 3

    @property
    def required_fields(self) -> Tuple[str, ...]:
        if self.dimension == 2:
            return ("r", "psi", "delta_psi") if self.relativistic else ("r", "psi")
        return ("r", "phi", "theta")

    @property
    def directory(self) -> str:
        return f"{self.dimension}d/{'rel' if self.relativistic else 'nr'}"


@dataclass(frozen=True)
class QuantumNumbers:
    """
    Quantum numbers selecting one precomputed orbit.

    Attributes
    ----------
    n : int
        Principal quantum number
    k : int
        Azimuthal quantum number
    m : int
        Magnetic quantum number (3D only)
    """

    n: int = 1
    k: int = 1
    m: int = 0

    def validate(self, kind: TrajectoryKind) -> "QuantumNumbers":
        """
        Check ranges for a trajectory kind.

        Raises
        ------
        ConfigError
            If any number is out of range
        """
        validate_range("n", self.n, N_RANGE)
        validate_range("k", self.k, K_RANGE_2D if kind.dimension == 2 else K_RANGE_3D)
        if kind.uses_m:
            validate_range("m", self.m, M_RANGE)
        return self

    def stem(self, kind: TrajectoryKind) -> str:
        """File stem: 'n_k' in 2D, 'n_k_m' in 3D."""
        if kind.uses_m:
            return f"{self.n}_{self.k}_{self.m}"
        return f"{self.n}_{self.k}"


def resolve_source(
    kind: TrajectoryKind,
    quantum_numbers: QuantumNumbers,
    root: str = DATA_ROOT,
) -> str:
    """
    Build the source identifier for a kind and quantum numbers.

    Parameters
    ----------
    kind : TrajectoryKind
        Trajectory variant
    quantum_numbers : QuantumNumbers
        Validated against the kind's ranges
    root : str
        Filesystem directory or base URL of the data tree

    Returns
    -------
    str
        Path or URL of the CSV resource

    Raises
    ------
    ConfigError
        If quantum numbers are out of range
    """
    quantum_numbers.validate(kind)
    relative = f"{kind.directory}/{quantum_numbers.stem(kind)}.csv"
    if root.lower().startswith(("http://", "https://")):
        return f"{root.rstrip('/')}/{relative}"
    return (Path(root) / relative).as_posix()


__all__ = ["TrajectoryKind", "QuantumNumbers", "resolve_source"]
