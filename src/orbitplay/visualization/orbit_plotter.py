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
Orbit Plotter - Static Views of a Trajectory and the Current Frame

Draws the full orbit of a SampleTable in Cartesian space, the nucleus at
the origin and, when a PlaybackFrame is given, the electron at its
interpolated position. Planar transforms produce a 2D figure with equal
aspect ratio; spatial transforms produce a rotatable 3D scene.

Usage
-----
>>> plotter = OrbitPlotter()
>>> fig = plotter.plot_orbit(engine.table, engine.transform, frame=engine.advance())
>>> fig.show()
"""

from typing import Optional, Union

import numpy as np
import plotly.graph_objects as go

from orbitplay.geometry.coordinate_transform import CoordinateTransform, get_transform
from orbitplay.trajectory.sample_table import SampleTable
from orbitplay.types.playback import PlaybackFrame
from orbitplay.visualization.themes import ColorSchemes, PlotThemes


class OrbitPlotter:
    """
    Plotly views of orbits.

    Parameters
    ----------
    color_scheme : str
        Palette name passed to ColorSchemes.get_scheme
    theme : str or dict
        Layout theme passed to PlotThemes.apply_theme

    Examples
    --------
    >>> plotter = OrbitPlotter(color_scheme='colorblind_safe', theme='dark')
    >>> fig = plotter.plot_orbit(table, 'spherical3d')
    """

    def __init__(self, color_scheme: str = "atom", theme: Union[str, dict] = "default"):
        self.colors = ColorSchemes.get_scheme(color_scheme)
        self.theme = theme

    # =========================================================================
    # Main Plotting Methods
    # =========================================================================

    def plot_orbit(
        self,
        table: SampleTable,
        transform: Union[CoordinateTransform, str],
        frame: Optional[PlaybackFrame] = None,
        title: Optional[str] = None,
        show_nucleus: bool = True,
    ) -> go.Figure:
        """
        Plot the orbit of a table.

        Parameters
        ----------
        table : SampleTable
            Loaded trajectory carrying the transform's fields
        transform : CoordinateTransform or str
            Transform instance or name
        frame : Optional[PlaybackFrame]
            Frame whose position is marked as the electron
        title : Optional[str]
            Figure title (default: the table source)
        show_nucleus : bool
            Mark the origin

        Returns
        -------
        go.Figure
            Scatter (2D) or Scatter3d (3D) figure

        Raises
        ------
        KeyError
            If the table lacks a field the transform needs
        """
        if isinstance(transform, str):
            transform = get_transform(transform)
        path = transform.table_to_cartesian(table)
        position = None if frame is None else np.asarray(frame["position"], dtype=np.float64)
        if title is None:
            title = table.source or "Orbit"

        if transform.dimension == 2:
            fig = self._plot_2d(path, position, show_nucleus)
        else:
            fig = self._plot_3d(path, position, show_nucleus)

        fig.update_layout(title=title, showlegend=True)
        return PlotThemes.apply_theme(fig, theme=self.theme)

    def _plot_2d(
        self,
        path: np.ndarray,
        position: Optional[np.ndarray],
        show_nucleus: bool,
    ) -> go.Figure:
        fig = go.Figure()
        fig.add_trace(
            go.Scatter(
                x=path[:, 0],
                y=path[:, 1],
                mode="lines",
                name="Orbit",
                line=dict(color=self.colors["path"], width=2),
            )
        )
        if show_nucleus:
            fig.add_trace(
                go.Scatter(
                    x=[0.0],
                    y=[0.0],
                    mode="markers",
                    name="Nucleus",
                    marker=dict(color=self.colors["nucleus"], size=16, symbol="circle"),
                )
            )
        if position is not None:
            fig.add_trace(
                go.Scatter(
                    x=[position[0]],
                    y=[position[1]],
                    mode="markers",
                    name="Electron",
                    marker=dict(color=self.colors["electron"], size=10, symbol="circle"),
                )
            )
        fig.update_layout(xaxis_title="x", yaxis_title="y", width=700, height=600)

        # Equal aspect ratio so orbits are not distorted
        fig.update_yaxes(scaleanchor="x", scaleratio=1)
        return fig

    def _plot_3d(
        self,
        path: np.ndarray,
        position: Optional[np.ndarray],
        show_nucleus: bool,
    ) -> go.Figure:
        fig = go.Figure()
        fig.add_trace(
            go.Scatter3d(
                x=path[:, 0],
                y=path[:, 1],
                z=path[:, 2],
                mode="lines",
                name="Orbit",
                line=dict(color=self.colors["path"], width=3),
            )
        )
        if show_nucleus:
            fig.add_trace(
                go.Scatter3d(
                    x=[0.0],
                    y=[0.0],
                    z=[0.0],
                    mode="markers",
                    name="Nucleus",
                    marker=dict(color=self.colors["nucleus"], size=8),
                )
            )
        if position is not None:
            fig.add_trace(
                go.Scatter3d(
                    x=[position[0]],
                    y=[position[1]],
                    z=[position[2]],
                    mode="markers",
                    name="Electron",
                    marker=dict(color=self.colors["electron"], size=5),
                )
            )
        fig.update_layout(
            scene=dict(
                xaxis_title="x",
                yaxis_title="y",
                zaxis_title="z",
                aspectmode="data",
            ),
            width=800,
            height=700,
        )
        return fig


__all__ = ["OrbitPlotter"]
