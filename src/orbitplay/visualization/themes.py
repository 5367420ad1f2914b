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
Plotting Themes and Orbit Color Roles

Colors for the elements every orbit scene draws (nucleus, electron, path,
signal trace) and complete layout themes applied to Plotly figures.

Main Classes
------------
ColorSchemes : Role-based palettes
    ATOM : Default scene colors (orange nucleus, blue electron)
    COLORBLIND_SAFE : Wong palette mapped onto the same roles
    MONOCHROME : Grayscale for print

PlotThemes : Layout configurations
    DEFAULT : plotly_white
    DARK : plotly_dark, matching a black scene background
    PUBLICATION : simple_white with serif fonts

Usage
-----
>>> from orbitplay.visualization.themes import ColorSchemes, PlotThemes
>>> colors = ColorSchemes.get_scheme('colorblind_safe')
>>> colors['electron']
'#0173B2'
>>> fig = PlotThemes.apply_theme(fig, theme='dark')
"""

from typing import Dict, Union

import plotly.graph_objects as go

ColorRoles = Dict[str, str]


class ColorSchemes:
    """
    Palettes keyed by scene role.

    Every scheme defines the same roles:

    - 'nucleus': marker at the origin
    - 'electron': current position marker
    - 'path': full trajectory line
    - 'signal': |psi| trace in the signal chart

    Examples
    --------
    >>> ColorSchemes.get_scheme('atom')['nucleus']
    '#FFA500'
    """

    ATOM: ColorRoles = {
        "nucleus": "#FFA500",
        "electron": "#00BFFF",
        "path": "#636EFA",
        "signal": "#8884D8",
    }

    COLORBLIND_SAFE: ColorRoles = {
        "nucleus": "#DE8F05",
        "electron": "#0173B2",
        "path": "#029E73",
        "signal": "#CC78BC",
    }

    MONOCHROME: ColorRoles = {
        "nucleus": "#222222",
        "electron": "#000000",
        "path": "#7f7f7f",
        "signal": "#444444",
    }

    _SCHEMES = {
        "atom": "ATOM",
        "default": "ATOM",
        "colorblind_safe": "COLORBLIND_SAFE",
        "wong": "COLORBLIND_SAFE",
        "monochrome": "MONOCHROME",
    }

    @staticmethod
    def get_scheme(scheme: str = "atom") -> ColorRoles:
        """
        Get a palette by name.

        Parameters
        ----------
        scheme : str
            'atom', 'colorblind_safe' or 'monochrome'

        Returns
        -------
        ColorRoles
            Copy of the role → hex color mapping

        Raises
        ------
        ValueError
            If the scheme name is not recognized
        """
        key = scheme.lower().replace("-", "_").replace(" ", "_")
        if key not in ColorSchemes._SCHEMES:
            raise ValueError(
                f"Unknown color scheme '{scheme}'. "
                f"Available: atom, colorblind_safe, monochrome"
            )
        return dict(getattr(ColorSchemes, ColorSchemes._SCHEMES[key]))


class PlotThemes:
    """
    Layout themes for orbit and signal figures.

    Examples
    --------
    >>> fig = PlotThemes.apply_theme(fig, theme='publication')
    >>>
    >>> custom = dict(PlotThemes.DEFAULT, font_size=16)
    >>> fig = PlotThemes.apply_theme(fig, theme=custom)
    """

    DEFAULT = {
        "template": "plotly_white",
        "font_family": "Arial, sans-serif",
        "font_size": 12,
        "line_width": 2,
    }

    DARK = {
        "template": "plotly_dark",
        "font_family": "Arial, sans-serif",
        "font_size": 12,
        "line_width": 2,
        "paper_bgcolor": "#000000",
    }

    PUBLICATION = {
        "template": "simple_white",
        "font_family": "Times New Roman, serif",
        "font_size": 14,
        "line_width": 2.5,
        "showlegend": True,
    }

    @staticmethod
    def get_theme(theme: str) -> dict:
        """Look up a theme by name ('default', 'dark', 'publication')."""
        themes = {
            "default": PlotThemes.DEFAULT,
            "dark": PlotThemes.DARK,
            "publication": PlotThemes.PUBLICATION,
        }
        try:
            return themes[theme.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown theme '{theme}'. Available: {list(themes)}"
            ) from None

    @staticmethod
    def apply_theme(fig: go.Figure, theme: Union[str, dict] = "default") -> go.Figure:
        """
        Apply a theme to a Plotly figure in place.

        Parameters
        ----------
        fig : go.Figure
            Figure to style
        theme : str or dict
            Theme name or custom theme dictionary

        Returns
        -------
        go.Figure
            The styled figure

        Raises
        ------
        ValueError
            Unknown theme name
        TypeError
            theme is neither str nor dict
        """
        if isinstance(theme, str):
            config = PlotThemes.get_theme(theme)
        elif isinstance(theme, dict):
            config = theme
        else:
            raise TypeError("theme must be str or dict")

        if "template" in config:
            fig.update_layout(template=config["template"])

        font = {}
        if "font_family" in config:
            font["family"] = config["font_family"]
        if "font_size" in config:
            font["size"] = config["font_size"]
        if font:
            fig.update_layout(font=font)

        if "paper_bgcolor" in config:
            fig.update_layout(paper_bgcolor=config["paper_bgcolor"])

        if "showlegend" in config:
            fig.update_layout(showlegend=config["showlegend"])

        # Markers keep their size; only line traces are restyled
        if "line_width" in config:
            for trace in fig.data:
                mode = getattr(trace, "mode", None) or ""
                if "lines" in mode:
                    trace.line.width = config["line_width"]

        return fig


__all__ = ["ColorSchemes", "PlotThemes", "ColorRoles"]
