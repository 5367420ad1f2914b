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
Trajectory Sampler - Progress to Interpolated Position

Maps the clock's virtual progress onto a looping index into a
SampleTable and interpolates between neighbouring samples:

    index      = floor(progress) mod N
    next_index = (index + 1) mod N
    t          = progress - floor(progress)

The trajectory is a closed cycle: after the last sample comes sample 0.

Positions are interpolated in Cartesian space after the transform, never
by lerping raw angles, so a psi/phi step across the 0/2π seam does not
snap the particle through the origin side of the orbit. Sample fields
themselves are interpolated linearly, except angular fields which follow
the shortest arc.

Cost per frame is O(1) in the table length.
"""

import math
from typing import Dict, Sequence, Tuple, Union

import numpy as np

from orbitplay.geometry.coordinate_transform import CoordinateTransform, get_transform
from orbitplay.playback.clock import PlaybackClock
from orbitplay.trajectory.sample_table import SampleTable
from orbitplay.types.core import Position, Timestamp
from orbitplay.types.playback import PlaybackFrame

TWO_PI = 2.0 * math.pi


def locate(progress: float, length: int) -> Tuple[int, int, float]:
    """
    Resolve virtual progress to (index, next_index, t).

    Parameters
    ----------
    progress : float
        Virtual progress in sample steps; non-finite or negative values
        are treated as 0
    length : int
        Table length (>= 1)

    Returns
    -------
    Tuple[int, int, float]
        index in [0, length), next_index, t in [0, 1)

    Examples
    --------
    >>> locate(0.5, 2)
    (0, 1, 0.5)
    >>> locate(5.25, 4)
    (1, 2, 0.25)
    >>> locate(3.0, 1)
    (0, 0, 0.0)
    """
    if not math.isfinite(progress) or progress < 0.0:
        progress = 0.0
    whole = math.floor(progress)
    t = progress - whole
    if t >= 1.0:  # rounding at the top of the interval
        whole += 1
        t = 0.0
    index = int(whole) % length
    return index, (index + 1) % length, t


def interpolate_angle(a: float, b: float, t: float) -> float:
    """
    Interpolate from angle a towards b along the shortest arc.

    The result is not wrapped, so accumulated angles (e.g. a precessing
    psi beyond 2π) stay continuous.

    Examples
    --------
    >>> round(interpolate_angle(6.2, 0.1, 0.5), 4)  # crosses 2π, not back through π
    6.2916
    """
    delta = (b - a + math.pi) % TWO_PI - math.pi
    return a + t * delta


class TrajectorySampler:
    """
    Samples a SampleTable at the clock's current progress.

    Schema-agnostic: the transform names the position fields and which of
    them are angles; any other column (e.g. delta_psi) is interpolated
    linearly and passed through in the frame's sample.

    Parameters
    ----------
    transform : CoordinateTransform or str
        Transform instance or registry name ('polar2d', 'spherical3d')

    Examples
    --------
    >>> sampler = TrajectorySampler("polar2d")
    >>> clock = PlaybackClock()
    >>> clock.start(now=0.0)
    True
    >>> frame = sampler.advance(table, clock, now=50.0)
    >>> frame["index"], frame["t"]
    (0, 0.5)
    """

    def __init__(self, transform: Union[CoordinateTransform, str]):
        if isinstance(transform, str):
            transform = get_transform(transform)
        self.transform = transform
        self._angular = frozenset(transform.angular_fields)

    def advance(
        self,
        table: SampleTable,
        clock: PlaybackClock,
        now: Timestamp,
    ) -> PlaybackFrame:
        """
        Produce the frame for wall-clock reading ``now``.

        The clock is started on first use. Assumes a non-empty table
        carrying the transform's fields; never raises for finite ``now``.

        Returns
        -------
        PlaybackFrame
            Position, indices, interpolation factor and clock readings
        """
        clock.start(now)
        snap = clock.snapshot(now)
        position, sample, index, next_index, t = self.sample_at(table, snap.progress)
        return PlaybackFrame(
            position=position,
            index=index,
            next_index=next_index,
            t=t,
            progress=snap.progress,
            elapsed=snap.elapsed_seconds,
            speed=snap.speed,
            paused=snap.paused,
            sample=sample,
        )

    def sample_at(
        self,
        table: SampleTable,
        progress: float,
    ) -> Tuple[Position, Dict[str, float], int, int, float]:
        """
        Interpolate the table at a given virtual progress.

        Returns
        -------
        Tuple
            (position, sample, index, next_index, t)
        """
        index, next_index, t = locate(progress, len(table))
        current = table[index]
        following = table[next_index]

        p0 = self.transform.to_cartesian(current)
        p1 = self.transform.to_cartesian(following)
        position = p0 + (p1 - p0) * t

        sample = self.interpolate_fields(table.field_names, current, following, t)
        return position, sample, index, next_index, t

    def interpolate_fields(
        self,
        field_names: Sequence[str],
        current: Dict[str, float],
        following: Dict[str, float],
        t: float,
    ) -> Dict[str, float]:
        """Field-wise interpolation; angular fields take the shortest arc."""
        out: Dict[str, float] = {}
        for name in field_names:
            a, b = current[name], following[name]
            if name in self._angular:
                out[name] = interpolate_angle(a, b, t)
            else:
                out[name] = a + (b - a) * t
        return out

    def path(self, table: SampleTable) -> np.ndarray:
        """Cartesian positions of every sample, shape (N, 3)."""
        return self.transform.table_to_cartesian(table)


__all__ = ["TrajectorySampler", "locate", "interpolate_angle"]
