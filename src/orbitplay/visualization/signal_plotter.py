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

"""Signal chart: |psi| captured at the outer turning point versus time."""

from typing import Union

import numpy as np
import plotly.graph_objects as go

from orbitplay.playback.signal_history import SignalHistory
from orbitplay.visualization.themes import ColorSchemes, PlotThemes


class SignalPlotter:
    """
    Line chart of a SignalHistory.

    The y axis shows |psi| in degrees; hovering a point also shows the
    signed angle.

    Examples
    --------
    >>> fig = SignalPlotter().plot_history(engine.history)
    >>> fig.show()
    """

    def __init__(self, color_scheme: str = "atom", theme: Union[str, dict] = "default"):
        self.colors = ColorSchemes.get_scheme(color_scheme)
        self.theme = theme

    def plot_history(
        self,
        history: SignalHistory,
        title: str = "|ψ| at r_max",
    ) -> go.Figure:
        """
        Plot every record of the history, oldest first.

        An empty history gives a figure with an empty trace.
        """
        times = history.times()
        magnitudes = np.degrees(history.values())
        angles = history.angles()

        fig = go.Figure()
        fig.add_trace(
            go.Scatter(
                x=times,
                y=magnitudes,
                customdata=angles,
                mode="lines+markers",
                name="|ψ|",
                line=dict(color=self.colors["signal"], width=2),
                marker=dict(size=4),
                hovertemplate="t=%{x:.2f} s<br>|ψ|=%{y:.2f}°<br>ψ=%{customdata:.2f}°<extra></extra>",
            )
        )
        fig.update_layout(
            title=title,
            xaxis_title="Time (s)",
            yaxis_title="|ψ| (degrees)",
            width=700,
            height=350,
            showlegend=False,
        )
        return PlotThemes.apply_theme(fig, theme=self.theme)


__all__ = ["SignalPlotter"]
