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
Unit Tests for PlaybackClock

All timing is driven by explicit ``now`` values in milliseconds.
"""

import threading

import pytest

from orbitplay.config import ConfigError, InvalidSpeedError
from orbitplay.playback.clock import ClockSnapshot, PlaybackClock

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Clock started at t = 0 ms."""
    c = PlaybackClock(speed=1.0)
    c.start(now=0.0)
    return c


class FakeTime:
    """Manually advanced millisecond time source."""

    def __init__(self, t=0.0):
        self.t = t

    def __call__(self):
        return self.t


# ============================================================================
# Construction and Start
# ============================================================================


class TestInitialization:
    def test_defaults(self):
        c = PlaybackClock()
        assert c.speed == 1.0
        assert c.steps_per_speed_unit == 10.0
        assert c.steps_per_second == 10.0
        assert not c.paused
        assert not c.started

    def test_invalid_initial_speed(self):
        with pytest.raises(InvalidSpeedError):
            PlaybackClock(speed=0.0)

    def test_invalid_steps(self):
        with pytest.raises(ConfigError):
            PlaybackClock(steps_per_speed_unit=-1.0)


class TestStart:
    def test_not_started_reads_zero(self):
        c = PlaybackClock()
        assert c.elapsed_seconds(now=5000.0) == 0.0
        assert c.progress(now=5000.0) == 0.0

    def test_start_once(self):
        c = PlaybackClock()
        assert c.start(now=100.0) is True
        assert c.start(now=900.0) is False
        assert c.elapsed_seconds(now=1100.0) == pytest.approx(1.0)

    def test_reading_before_epoch_clamped(self, clock):
        assert clock.elapsed_seconds(now=-500.0) == 0.0

    def test_time_source_used_when_now_omitted(self):
        fake = FakeTime(1000.0)
        c = PlaybackClock(time_source=fake)
        c.start()
        fake.t = 1250.0
        assert c.elapsed_seconds() == pytest.approx(0.25)
        assert c.now() == 1250.0


# ============================================================================
# Elapsed and Progress
# ============================================================================


class TestProgress:
    """Progress grows at speed × 10 steps per second."""

    def test_elapsed(self, clock):
        assert clock.elapsed_seconds(now=500.0) == pytest.approx(0.5)

    def test_progress_at_unit_speed(self, clock):
        assert clock.progress(now=50.0) == pytest.approx(0.5)
        assert clock.progress(now=1000.0) == pytest.approx(10.0)

    def test_monotone(self, clock):
        readings = [clock.progress(now=t) for t in range(0, 5000, 37)]
        assert readings == sorted(readings)

    def test_reads_have_no_side_effects(self, clock):
        first = clock.snapshot(now=700.0)
        second = clock.snapshot(now=700.0)
        assert first == second

    def test_snapshot_fields(self, clock):
        snap = clock.snapshot(now=200.0)
        assert isinstance(snap, ClockSnapshot)
        assert snap.elapsed_seconds == pytest.approx(0.2)
        assert snap.progress == pytest.approx(2.0)
        assert snap.speed == 1.0
        assert snap.paused is False
        assert snap.started is True


# ============================================================================
# Pause
# ============================================================================


class TestPause:
    """Pause freezes elapsed time; resume continues without a jump."""

    def test_frozen_while_paused(self, clock):
        clock.set_paused(True, now=500.0)
        assert clock.elapsed_seconds(now=500.0) == pytest.approx(0.5)
        assert clock.elapsed_seconds(now=9000.0) == pytest.approx(0.5)

    def test_resume_continuous(self, clock):
        clock.set_paused(True, now=500.0)
        clock.set_paused(False, now=9000.0)
        assert clock.elapsed_seconds(now=9000.0) == pytest.approx(0.5)
        assert clock.elapsed_seconds(now=9500.0) == pytest.approx(1.0)
        assert clock.paused_duration_ms == pytest.approx(8500.0)

    @pytest.mark.parametrize("duration", [0.0, 1.0, 250.0, 60000.0])
    def test_pause_duration_irrelevant(self, duration):
        c = PlaybackClock()
        c.start(now=0.0)
        c.set_paused(True, now=300.0)
        c.set_paused(False, now=300.0 + duration)
        assert c.elapsed_seconds(now=400.0 + duration) == pytest.approx(0.4)

    def test_repeated_pause_is_noop(self, clock):
        assert clock.set_paused(True, now=100.0) is True
        assert clock.set_paused(True, now=800.0) is False
        clock.set_paused(False, now=1000.0)
        assert clock.elapsed_seconds(now=1000.0) == pytest.approx(0.1)

    def test_repeated_resume_is_noop(self, clock):
        assert clock.set_paused(False, now=100.0) is False
        assert clock.paused_duration_ms == 0.0

    def test_toggle(self, clock):
        assert clock.toggle_pause(now=100.0) is True
        assert clock.paused
        assert clock.toggle_pause(now=300.0) is False
        assert clock.elapsed_seconds(now=300.0) == pytest.approx(0.1)

    def test_concurrent_toggles_each_flip(self, clock):
        """Every toggle flips the state exactly once."""
        n_threads = 8
        barrier = threading.Barrier(n_threads)
        results = []

        def toggle():
            barrier.wait(timeout=5.0)
            results.append(clock.toggle_pause(now=100.0))

        threads = [threading.Thread(target=toggle) for _ in range(n_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

        assert sorted(results) == [False] * 4 + [True] * 4
        assert clock.paused is False

    def test_paused_before_start(self):
        c = PlaybackClock()
        c.set_paused(True, now=0.0)
        c.start(now=100.0)
        assert c.elapsed_seconds(now=5000.0) == 0.0
        c.set_paused(False, now=5000.0)
        assert c.elapsed_seconds(now=5100.0) == pytest.approx(0.1)

    def test_progress_frozen_while_paused(self, clock):
        clock.set_paused(True, now=250.0)
        assert clock.progress(now=250.0) == clock.progress(now=4000.0)


# ============================================================================
# Speed
# ============================================================================


class TestSpeed:
    """Speed changes rescale the growth rate without a jump."""

    def test_doubling_speed_doubles_rate(self, clock):
        clock.set_speed(2.0, now=1000.0)
        assert clock.progress(now=1000.0) == pytest.approx(10.0)
        assert clock.progress(now=1500.0) == pytest.approx(20.0)
        assert clock.steps_per_second == 20.0

    def test_no_discontinuity(self, clock):
        before = clock.progress(now=1234.0)
        clock.set_speed(3.7, now=1234.0)
        assert clock.progress(now=1234.0) == pytest.approx(before)

    def test_speed_change_while_paused(self, clock):
        clock.set_paused(True, now=1000.0)
        clock.set_speed(0.5, now=3000.0)
        assert clock.progress(now=3000.0) == pytest.approx(10.0)
        clock.set_paused(False, now=5000.0)
        assert clock.progress(now=6000.0) == pytest.approx(15.0)

    def test_speed_before_start(self):
        c = PlaybackClock()
        c.set_speed(2.0, now=0.0)
        c.start(now=0.0)
        assert c.progress(now=500.0) == pytest.approx(10.0)

    @pytest.mark.parametrize("bad", [0.0, -2.0, float("nan"), float("inf"), "x"])
    def test_invalid_speed_retains_previous(self, clock, bad):
        clock.set_speed(2.0, now=0.0)
        with pytest.raises(InvalidSpeedError):
            clock.set_speed(bad, now=100.0)
        assert clock.speed == 2.0
        assert clock.progress(now=1000.0) == pytest.approx(20.0)


# ============================================================================
# Reset
# ============================================================================


class TestReset:
    def test_reset_forgets_epoch(self, clock):
        clock.set_speed(2.0, now=500.0)
        clock.reset()
        assert not clock.started
        assert clock.progress(now=10000.0) == 0.0
        clock.start(now=10000.0)
        assert clock.progress(now=10500.0) == pytest.approx(10.0)

    def test_reset_keeps_speed_and_pause(self, clock):
        clock.set_speed(3.0, now=0.0)
        clock.set_paused(True, now=100.0)
        clock.reset()
        assert clock.speed == 3.0
        assert clock.paused
        clock.start(now=0.0)
        assert clock.elapsed_seconds(now=1000.0) == 0.0
