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
Playback Clock - Virtual Time with Pause and Speed

Converts wall-clock readings (milliseconds), pause/resume events and a
speed multiplier into two monotone quantities:

- elapsed seconds: real time since first activation, pauses excluded
- virtual progress: position in sample steps, advancing at
  speed × steps_per_speed_unit steps per elapsed second

Pause accounting is done in real time. Speed only scales how fast
progress grows; when it changes, the progress reached so far becomes the
new base, so the trajectory position never jumps.

Every operation accepts an explicit ``now`` so frame callbacks and tests
control time; omitted, the injectable time source is used.

Usage
-----
>>> clock = PlaybackClock(speed=1.0)
>>> clock.start(now=0.0)
True
>>> clock.elapsed_seconds(now=500.0)
0.5
>>> clock.set_paused(True, now=500.0)
True
>>> clock.elapsed_seconds(now=9000.0)  # frozen while paused
0.5
>>> clock.set_paused(False, now=9000.0)
True
>>> clock.elapsed_seconds(now=9500.0)
1.0
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from orbitplay.config import (
    DEFAULT_SPEED,
    STEPS_PER_SPEED_UNIT,
    validate_positive,
    validate_speed,
)
from orbitplay.types.core import Timestamp


def perf_counter_ms() -> Timestamp:
    """Monotonic wall clock in milliseconds."""
    return time.perf_counter() * 1000.0


@dataclass(frozen=True)
class ClockSnapshot:
    """
    Consistent read of the clock at one instant.

    Attributes
    ----------
    elapsed_seconds : float
        Playback seconds, pauses excluded
    progress : float
        Virtual progress in sample steps
    speed : float
        Speed multiplier in effect
    paused : bool
        Whether playback is paused
    started : bool
        Whether the epoch has been set
    """

    elapsed_seconds: float
    progress: float
    speed: float
    paused: bool
    started: bool


class PlaybackClock:
    """
    Single-owner virtual clock for one playback session.

    All state is guarded by one lock so UI handlers (pause, speed) can
    interleave with render-loop reads without torn snapshots.

    Parameters
    ----------
    speed : float
        Initial speed multiplier (positive)
    steps_per_speed_unit : float
        Sample steps per elapsed second at speed 1.0
    time_source : Optional[Callable[[], float]]
        Millisecond clock used when ``now`` is omitted

    Raises
    ------
    InvalidSpeedError
        If the initial speed is not positive
    ConfigError
        If steps_per_speed_unit is not positive
    """

    def __init__(
        self,
        speed: float = DEFAULT_SPEED,
        steps_per_speed_unit: float = STEPS_PER_SPEED_UNIT,
        time_source: Optional[Callable[[], Timestamp]] = None,
    ):
        self._speed = validate_speed(speed)
        self._steps_per_speed_unit = validate_positive("steps_per_speed_unit", steps_per_speed_unit)
        self._time_source = time_source or perf_counter_ms
        self._lock = threading.Lock()

        self._epoch: Optional[Timestamp] = None
        self._paused = False
        self._paused_accumulated = 0.0  # ms
        self._pause_began_at: Optional[Timestamp] = None

        # Progress reached at the last speed change
        self._base_progress = 0.0
        self._base_elapsed = 0.0

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def speed(self) -> float:
        """Current speed multiplier"""
        with self._lock:
            return self._speed

    @property
    def paused(self) -> bool:
        with self._lock:
            return self._paused

    @property
    def started(self) -> bool:
        with self._lock:
            return self._epoch is not None

    @property
    def steps_per_speed_unit(self) -> float:
        return self._steps_per_speed_unit

    @property
    def steps_per_second(self) -> float:
        """Sample steps advanced per elapsed second at the current speed"""
        with self._lock:
            return self._speed * self._steps_per_speed_unit

    @property
    def paused_duration_ms(self) -> float:
        """Total time charged to completed pauses, in milliseconds"""
        with self._lock:
            return self._paused_accumulated

    # ========================================================================
    # Mutators
    # ========================================================================

    def start(self, now: Optional[Timestamp] = None) -> bool:
        """
        Fix the epoch at ``now``. Only the first call has an effect.

        Returns
        -------
        bool
            True if this call started the clock
        """
        with self._lock:
            if self._epoch is not None:
                return False
            t = self._resolve(now)
            self._epoch = t
            if self._paused:
                # Paused before activation: freeze at zero
                self._pause_began_at = t
            return True

    def set_paused(self, paused: bool, now: Optional[Timestamp] = None) -> bool:
        """
        Pause or resume playback.

        Pausing records when the pause began; resuming charges the pause
        duration once. Requests for the current state are no-ops.

        Returns
        -------
        bool
            True if the paused state changed
        """
        with self._lock:
            if bool(paused) == self._paused:
                return False
            self._apply_paused(bool(paused), self._resolve(now))
            return True

    def toggle_pause(self, now: Optional[Timestamp] = None) -> bool:
        """Flip the paused state; returns the new state."""
        with self._lock:
            target = not self._paused
            self._apply_paused(target, self._resolve(now))
            return target

    def _apply_paused(self, paused: bool, t: float) -> None:
        # Caller holds self._lock
        if paused:
            self._paused = True
            self._pause_began_at = t if self._epoch is not None else None
        else:
            self._paused = False
            if self._pause_began_at is not None:
                self._paused_accumulated += max(0.0, t - self._pause_began_at)
            self._pause_began_at = None

    def set_speed(self, multiplier: float, now: Optional[Timestamp] = None) -> float:
        """
        Replace the speed multiplier.

        Progress reached at ``now`` becomes the new base, so the next
        frame continues from the same position at the new rate.

        Returns
        -------
        float
            The new multiplier

        Raises
        ------
        InvalidSpeedError
            If multiplier is not a positive finite real; the previous
            speed is retained
        """
        value = validate_speed(multiplier)
        with self._lock:
            elapsed = self._elapsed(self._resolve(now))
            self._base_progress = self._progress(elapsed)
            self._base_elapsed = elapsed
            self._speed = value
        return value

    def reset(self) -> None:
        """
        Forget the epoch and all accumulated time.

        Speed and the paused flag are kept; the next start() begins a new
        session from progress zero.
        """
        with self._lock:
            self._epoch = None
            self._paused_accumulated = 0.0
            self._pause_began_at = None
            self._base_progress = 0.0
            self._base_elapsed = 0.0

    # ========================================================================
    # Reads
    # ========================================================================

    def now(self) -> Timestamp:
        """Current reading of the time source, in milliseconds."""
        return float(self._time_source())

    def elapsed_seconds(self, now: Optional[Timestamp] = None) -> float:
        """
        Playback seconds since the epoch, excluding pauses.

        Frozen at the pause instant while paused; 0 before start() or for
        readings earlier than the epoch. No side effects.
        """
        with self._lock:
            return self._elapsed(self._resolve(now))

    def progress(self, now: Optional[Timestamp] = None) -> float:
        """Virtual progress in sample steps at ``now``."""
        with self._lock:
            return self._progress(self._elapsed(self._resolve(now)))

    def snapshot(self, now: Optional[Timestamp] = None) -> ClockSnapshot:
        """Atomic read of elapsed time, progress, speed and pause state."""
        with self._lock:
            elapsed = self._elapsed(self._resolve(now))
            return ClockSnapshot(
                elapsed_seconds=elapsed,
                progress=self._progress(elapsed),
                speed=self._speed,
                paused=self._paused,
                started=self._epoch is not None,
            )

    # ========================================================================
    # Internals (caller holds the lock)
    # ========================================================================

    def _resolve(self, now: Optional[Timestamp]) -> Timestamp:
        return float(self._time_source() if now is None else now)

    def _elapsed(self, t: Timestamp) -> float:
        if self._epoch is None:
            return 0.0
        if self._paused and self._pause_began_at is not None:
            t = self._pause_began_at
        ms = t - self._epoch - self._paused_accumulated
        return max(0.0, ms / 1000.0)

    def _progress(self, elapsed: float) -> float:
        delta = max(0.0, elapsed - self._base_elapsed)
        return self._base_progress + delta * self._speed * self._steps_per_speed_unit

    def __repr__(self) -> str:
        return (
            f"PlaybackClock(speed={self._speed}, paused={self._paused}, "
            f"started={self._epoch is not None})"
        )


__all__ = ["PlaybackClock", "ClockSnapshot", "perf_counter_ms"]
