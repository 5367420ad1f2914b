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
Unit Tests for OrbitPlotter

Tests 2D and 3D orbit figures, nucleus and electron markers and theming.
"""

import math

import numpy as np
import plotly.graph_objects as go
import pytest
from numpy.testing import assert_allclose

from orbitplay.geometry import Polar2D
from orbitplay.trajectory.sample_table import SampleTable
from orbitplay.visualization.orbit_plotter import OrbitPlotter
from orbitplay.visualization.themes import ColorSchemes

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def plotter():
    return OrbitPlotter()


@pytest.fixture
def planar_table():
    psi = np.linspace(0.0, 2 * math.pi, 50, endpoint=False)
    return SampleTable(("r", "psi"), np.column_stack([np.full(50, 2.0), psi]), source="2_1.csv")


@pytest.fixture
def spatial_table():
    phi = np.linspace(0.0, 2 * math.pi, 40, endpoint=False)
    return SampleTable(
        ("r", "phi", "theta"), np.column_stack([np.full(40, 1.5), phi, np.full(40, math.pi / 3)])
    )


def _frame(position):
    return {
        "position": np.asarray(position, dtype=float),
        "index": 0,
        "next_index": 1,
        "t": 0.0,
        "progress": 0.0,
        "elapsed": 0.0,
        "speed": 1.0,
        "paused": False,
        "sample": {},
    }


def _trace(fig, name):
    matches = [t for t in fig.data if t.name == name]
    assert len(matches) == 1, f"expected one '{name}' trace"
    return matches[0]


# ============================================================================
# 2D Orbits
# ============================================================================


class TestPlanarOrbit:
    """Test polar orbit figures."""

    def test_returns_figure(self, plotter, planar_table):
        fig = plotter.plot_orbit(planar_table, "polar2d")
        assert isinstance(fig, go.Figure)
        assert isinstance(_trace(fig, "Orbit"), go.Scatter)

    def test_path_matches_transform(self, plotter, planar_table):
        fig = plotter.plot_orbit(planar_table, Polar2D())
        orbit = _trace(fig, "Orbit")
        path = Polar2D().table_to_cartesian(planar_table)
        assert_allclose(orbit.x, path[:, 0])
        assert_allclose(orbit.y, path[:, 1])

    def test_nucleus_at_origin(self, plotter, planar_table):
        nucleus = _trace(plotter.plot_orbit(planar_table, "polar2d"), "Nucleus")
        assert tuple(nucleus.x) == (0.0,)
        assert tuple(nucleus.y) == (0.0,)
        assert nucleus.marker.color == ColorSchemes.ATOM["nucleus"]

    def test_nucleus_optional(self, plotter, planar_table):
        fig = plotter.plot_orbit(planar_table, "polar2d", show_nucleus=False)
        assert all(t.name != "Nucleus" for t in fig.data)

    def test_electron_from_frame(self, plotter, planar_table):
        fig = plotter.plot_orbit(planar_table, "polar2d", frame=_frame([0.5, -1.0, 0.0]))
        electron = _trace(fig, "Electron")
        assert tuple(electron.x) == (0.5,)
        assert tuple(electron.y) == (-1.0,)

    def test_no_electron_without_frame(self, plotter, planar_table):
        fig = plotter.plot_orbit(planar_table, "polar2d")
        assert all(t.name != "Electron" for t in fig.data)

    def test_equal_aspect(self, plotter, planar_table):
        fig = plotter.plot_orbit(planar_table, "polar2d")
        assert fig.layout.yaxis.scaleanchor == "x"

    def test_title_defaults_to_source(self, plotter, planar_table):
        assert plotter.plot_orbit(planar_table, "polar2d").layout.title.text == "2_1.csv"
        fig = plotter.plot_orbit(planar_table, "polar2d", title="n=2, k=1")
        assert fig.layout.title.text == "n=2, k=1"

    def test_missing_fields(self, plotter, planar_table):
        with pytest.raises(KeyError):
            plotter.plot_orbit(planar_table, "spherical3d")


# ============================================================================
# 3D Orbits
# ============================================================================


class TestSpatialOrbit:
    def test_scatter3d(self, plotter, spatial_table):
        fig = plotter.plot_orbit(spatial_table, "spherical3d", frame=_frame([1.0, 2.0, 3.0]))
        assert isinstance(_trace(fig, "Orbit"), go.Scatter3d)
        electron = _trace(fig, "Electron")
        assert tuple(electron.z) == (3.0,)
        assert fig.layout.scene.aspectmode == "data"

    def test_untitled_table(self, plotter, spatial_table):
        assert plotter.plot_orbit(spatial_table, "spherical3d").layout.title.text == "Orbit"


# ============================================================================
# Styling
# ============================================================================


class TestStyling:
    def test_color_scheme(self, planar_table):
        fig = OrbitPlotter(color_scheme="colorblind_safe").plot_orbit(planar_table, "polar2d")
        assert _trace(fig, "Orbit").line.color == ColorSchemes.COLORBLIND_SAFE["path"]

    def test_theme_applied(self, planar_table):
        fig = OrbitPlotter(theme="dark").plot_orbit(planar_table, "polar2d")
        assert fig.layout.paper_bgcolor == "#000000"

    def test_unknown_scheme(self):
        with pytest.raises(ValueError):
            OrbitPlotter(color_scheme="neon")
