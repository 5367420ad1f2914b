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
Playback Result Types

Result types are TypedDict, following the same convention as the rest of
the package: a frame produced by the sampler and a record kept by the
signal history are plain dictionaries with a declared shape.
"""

from typing import Dict

from typing_extensions import TypedDict

from .core import Position


class PlaybackFrame(TypedDict):
    """
    One rendered frame of trajectory playback.

    Returned by TrajectorySampler.advance() and TrajectoryEngine.advance().

    Fields
    ------
    position : Position
        Interpolated Cartesian position (3,)
    index : int
        Current sample index, always in [0, len(table))
    next_index : int
        Sample interpolated towards, (index + 1) mod len(table)
    t : float
        Interpolation factor in [0, 1)
    progress : float
        Virtual progress in sample steps
    elapsed : float
        Elapsed playback seconds, pauses excluded
    speed : float
        Speed multiplier the frame was computed with
    paused : bool
        Whether the clock was paused
    sample : Dict[str, float]
        Interpolated sample fields (angles via shortest arc)

    Examples
    --------
    >>> frame = sampler.advance(table, clock, now=50.0)
    >>> frame["index"], frame["t"]
    (0, 0.5)
    >>> x, y, z = frame["position"]
    """

    position: Position
    index: int
    next_index: int
    t: float
    progress: float
    elapsed: float
    speed: float
    paused: bool
    sample: Dict[str, float]


class SignalRecord(TypedDict):
    """
    Derived signal captured near the trajectory's outer turning point.

    Fields
    ------
    time : float
        Elapsed playback seconds at capture
    value : float
        |psi| in radians
    angle : float
        Signed psi in degrees, for display
    """

    time: float
    value: float
    angle: float


__all__ = ["PlaybackFrame", "SignalRecord"]
