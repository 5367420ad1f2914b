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
Signal History - |psi| at the Outer Turning Point

Records the angular position of the particle each time it passes close
to r_max, the largest radius of the loaded trajectory. For a precessing
relativistic orbit the captured |psi| drifts from cycle to cycle, which
is what the signal chart shows.

A record is appended only when |r - r_max| < tolerance, so the stream
carries roughly one value per revolution instead of one per frame. The
buffer holds the most recent ``capacity`` records (FIFO eviction).
"""

import math
from collections import deque
from typing import Deque, List, Mapping, Optional

import numpy as np

from orbitplay.config import HISTORY_CAPACITY, R_MAX_TOLERANCE, validate_positive
from orbitplay.trajectory.sample_table import SampleTable
from orbitplay.types.playback import PlaybackFrame, SignalRecord


class SignalHistory:
    """
    Bounded rolling buffer of SignalRecords.

    Parameters
    ----------
    capacity : int
        Maximum number of records kept (default 200)
    tolerance : float
        Capture threshold on |r - r_max| (default 0.1)
    radial_field : str
        Sample field holding the radius
    angle_field : str
        Sample field holding the captured angle

    Examples
    --------
    >>> history = SignalHistory()
    >>> history.reset(r_max=5.0)
    >>> history.observe({"r": 5.05, "psi": -0.5}, time=1.2)
    {'time': 1.2, 'value': 0.5, 'angle': -28.64788975654116}
    >>> history.observe({"r": 3.0, "psi": 1.0}, time=1.3) is None
    True
    >>> len(history)
    1
    """

    def __init__(
        self,
        capacity: int = HISTORY_CAPACITY,
        tolerance: float = R_MAX_TOLERANCE,
        radial_field: str = "r",
        angle_field: str = "psi",
    ):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._tolerance = validate_positive("tolerance", tolerance)
        self.radial_field = radial_field
        self.angle_field = angle_field
        self._records: Deque[SignalRecord] = deque(maxlen=capacity)
        self._r_max: Optional[float] = None

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def r_max(self) -> Optional[float]:
        """Turning-point radius the history captures at"""
        return self._r_max

    def reset(self, r_max: Optional[float] = None) -> None:
        """Clear all records and set the turning-point radius."""
        self._records.clear()
        self._r_max = None if r_max is None else float(r_max)

    def reset_from_table(self, table: SampleTable) -> None:
        """Clear all records; r_max becomes the table's largest radius."""
        self.reset(table.max(self.radial_field))

    def observe(
        self,
        sample: Mapping[str, float],
        time: float,
        r_max: Optional[float] = None,
        tolerance: Optional[float] = None,
    ) -> Optional[SignalRecord]:
        """
        Append a record if the sample is near the turning point.

        Parameters
        ----------
        sample : Mapping[str, float]
            Interpolated sample carrying the radial and angle fields
        time : float
            Elapsed playback seconds
        r_max : Optional[float]
            Override of the stored turning-point radius
        tolerance : Optional[float]
            Override of the stored tolerance

        Returns
        -------
        Optional[SignalRecord]
            The appended record, or None if nothing was captured
        """
        r_max = self._r_max if r_max is None else r_max
        if r_max is None:
            return None
        tolerance = self._tolerance if tolerance is None else tolerance

        if abs(sample[self.radial_field] - r_max) >= tolerance:
            return None

        angle = sample[self.angle_field]
        record = SignalRecord(time=float(time), value=abs(angle), angle=math.degrees(angle))
        self._records.append(record)
        return record

    def observe_frame(self, frame: PlaybackFrame) -> Optional[SignalRecord]:
        """Observe the interpolated sample of a playback frame."""
        return self.observe(frame["sample"], frame["elapsed"])

    # ========================================================================
    # Reads
    # ========================================================================

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> List[SignalRecord]:
        """Records oldest first (copy)."""
        return list(self._records)

    def latest(self) -> Optional[SignalRecord]:
        return self._records[-1] if self._records else None

    def times(self) -> np.ndarray:
        return np.array([r["time"] for r in self._records], dtype=np.float64)

    def values(self) -> np.ndarray:
        return np.array([r["value"] for r in self._records], dtype=np.float64)

    def angles(self) -> np.ndarray:
        return np.array([r["angle"] for r in self._records], dtype=np.float64)


__all__ = ["SignalHistory"]
