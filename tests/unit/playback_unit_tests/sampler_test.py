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
Unit Tests for TrajectorySampler

Tests index resolution, looping, interpolation and frame assembly.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from orbitplay.geometry import Polar2D, Spherical3D
from orbitplay.playback.clock import PlaybackClock
from orbitplay.playback.sampler import TrajectorySampler, interpolate_angle, locate
from orbitplay.trajectory.sample_table import SampleTable

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def quarter_table():
    """Two samples a quarter turn apart on the unit circle."""
    return SampleTable(("r", "psi"), [[1.0, 0.0], [1.0, math.pi / 2]])


@pytest.fixture
def relativistic_table():
    return SampleTable(
        ("r", "psi", "delta_psi"),
        [[1.0, 0.0, 0.0], [2.0, 1.0, 0.2], [3.0, 2.0, 0.4], [2.0, 3.0, 0.6]],
    )


@pytest.fixture
def clock():
    return PlaybackClock(speed=1.0)


# ============================================================================
# locate
# ============================================================================


class TestLocate:
    """Test progress to (index, next_index, t) resolution."""

    def test_midpoint(self):
        assert locate(0.5, 2) == (0, 1, 0.5)

    def test_wraps_to_start(self):
        index, next_index, t = locate(5.25, 4)
        assert (index, next_index) == (1, 2)
        assert t == pytest.approx(0.25)

    def test_last_sample_links_to_first(self):
        assert locate(3.0, 4)[:2] == (3, 0)

    def test_single_sample(self):
        assert locate(7.3, 1)[:2] == (0, 0)

    @pytest.mark.parametrize("bad", [-1.0, math.nan, math.inf])
    def test_invalid_progress_treated_as_zero(self, bad):
        assert locate(bad, 5) == (0, 1, 0.0)

    @pytest.mark.parametrize("progress", [0.0, 0.3, 2.75, 17.5, 123.125])
    def test_looping(self, progress):
        """progress and progress + N land on the same sample."""
        n = 6
        index_a, _, t_a = locate(progress, n)
        index_b, _, t_b = locate(progress + n, n)
        assert index_a == index_b
        assert t_a == pytest.approx(t_b)

    def test_index_always_in_range(self):
        for progress in np.linspace(0.0, 50.0, 997):
            index, next_index, t = locate(float(progress), 7)
            assert 0 <= index < 7
            assert 0 <= next_index < 7
            assert 0.0 <= t < 1.0


# ============================================================================
# interpolate_angle
# ============================================================================


class TestInterpolateAngle:
    def test_plain(self):
        assert interpolate_angle(0.0, 1.0, 0.25) == pytest.approx(0.25)

    def test_crosses_seam_forward(self):
        result = interpolate_angle(6.2, 0.1, 0.5)
        assert result == pytest.approx(6.2 + (0.1 + 2 * math.pi - 6.2) / 2)

    def test_crosses_seam_backward(self):
        result = interpolate_angle(0.1, 6.2, 0.5)
        assert result < 0.1

    def test_endpoints(self):
        assert interpolate_angle(1.0, 2.0, 0.0) == 1.0
        assert interpolate_angle(1.0, 2.0, 1.0) == pytest.approx(2.0)


# ============================================================================
# TrajectorySampler
# ============================================================================


class TestSampleAt:
    """Test interpolation at a given progress."""

    def test_quarter_turn_midpoint(self, quarter_table):
        sampler = TrajectorySampler("polar2d")
        position, sample, index, next_index, t = sampler.sample_at(quarter_table, 0.5)
        assert (index, next_index, t) == (0, 1, 0.5)
        assert_allclose(position, [0.5, 0.5, 0.0], atol=1e-12)
        assert sample["psi"] == pytest.approx(math.pi / 4)

    def test_on_sample_matches_transform(self, relativistic_table):
        sampler = TrajectorySampler(Polar2D())
        position, sample, *_ = sampler.sample_at(relativistic_table, 2.0)
        assert_allclose(position, Polar2D().to_cartesian(relativistic_table[2]))
        assert sample == relativistic_table[2]

    def test_extra_fields_interpolated(self, relativistic_table):
        sampler = TrajectorySampler("polar2d")
        _, sample, *_ = sampler.sample_at(relativistic_table, 1.5)
        assert sample["r"] == pytest.approx(2.5)
        assert sample["delta_psi"] == pytest.approx(0.3)

    def test_seam_does_not_cut_through_origin(self):
        table = SampleTable(("r", "psi"), [[1.0, 6.2], [1.0, 0.1]])
        position, sample, *_ = TrajectorySampler("polar2d").sample_at(table, 0.5)
        assert position[0] > 0.95
        assert math.cos(sample["psi"]) > 0.99

    def test_spherical(self):
        table = SampleTable(
            ("r", "phi", "theta"), [[1.0, 0.0, math.pi / 2], [1.0, 0.0, 0.0]]
        )
        position, *_ = TrajectorySampler(Spherical3D()).sample_at(table, 0.5)
        assert_allclose(position, [0.5, 0.5, 0.0], atol=1e-12)

    def test_path(self, quarter_table):
        path = TrajectorySampler("polar2d").path(quarter_table)
        assert path.shape == (2, 3)


class TestAdvance:
    """Test frame assembly from the clock."""

    def test_midpoint_frame(self, quarter_table, clock):
        sampler = TrajectorySampler("polar2d")
        sampler.advance(quarter_table, clock, now=0.0)
        frame = sampler.advance(quarter_table, clock, now=50.0)
        assert frame["progress"] == pytest.approx(0.5)
        assert frame["index"] == 0
        assert frame["next_index"] == 1
        assert frame["t"] == pytest.approx(0.5)
        assert_allclose(frame["position"], [0.5, 0.5, 0.0], atol=1e-9)
        assert frame["elapsed"] == pytest.approx(0.05)
        assert frame["speed"] == 1.0
        assert frame["paused"] is False

    def test_first_frame_starts_clock(self, quarter_table, clock):
        frame = TrajectorySampler("polar2d").advance(quarter_table, clock, now=1234.0)
        assert clock.started
        assert frame["index"] == 0
        assert frame["t"] == 0.0

    def test_paused_frame_repeats_position(self, relativistic_table, clock):
        sampler = TrajectorySampler("polar2d")
        sampler.advance(relativistic_table, clock, now=0.0)
        clock.set_paused(True, now=170.0)
        a = sampler.advance(relativistic_table, clock, now=170.0)
        b = sampler.advance(relativistic_table, clock, now=5000.0)
        assert_allclose(a["position"], b["position"])
        assert b["paused"] is True

    def test_loops_over_table(self, relativistic_table, clock):
        sampler = TrajectorySampler("polar2d")
        sampler.advance(relativistic_table, clock, now=0.0)
        # 4 samples at 10 steps/s: one full cycle every 400 ms
        a = sampler.advance(relativistic_table, clock, now=130.0)
        b = sampler.advance(relativistic_table, clock, now=530.0)
        assert a["index"] == b["index"]
        assert_allclose(a["position"], b["position"], atol=1e-9)
