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
Table Loader - Fetch, Parse and Validate Trajectory Tables

Turns a delimiter-separated text resource (header row + numeric rows) into
a SampleTable holding only the requested columns.

Failure taxonomy
----------------
SourceUnreachableError  fetch failed (I/O error, HTTP error status)
MalformedTableError     fewer than two lines, or unparseable text
MissingColumnsError     a required column is absent from the header
EmptyTableError         no row survived numeric parsing

Rows whose required values are not all finite numbers are dropped with a
UserWarning rather than failing the load; ragged or corrupt trailing rows
are common in exported trajectory files. Extra cells on over-long rows are
ignored, missing cells on short rows invalidate the row.

Usage
-----
>>> loader = TableLoader()
>>> table = loader.load("trajectory_data/2d/rel/1_1.csv", {"r", "psi"})
>>> len(table), table.field_names
(1000, ('r', 'psi'))
>>>
>>> try:
...     loader.load("missing.csv", ["r", "psi"])
... except LoadError as e:
...     print(e.kind)
unreachable
"""

import io
import logging
import math
import warnings
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import requests

from orbitplay.config import DEFAULT_DELIMITER, HTTP_TIMEOUT_S
from orbitplay.trajectory.sample_table import SampleTable
from orbitplay.types.core import FieldSet

logger = logging.getLogger(__name__)


# ============================================================================
# Exceptions
# ============================================================================


class LoadError(Exception):
    """
    Base class for trajectory load failures.

    Attributes
    ----------
    kind : str
        'unreachable', 'malformed', 'missing_columns' or 'empty'
    source : Optional[str]
        Identifier of the resource being loaded
    """

    kind: str = "load"

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class SourceUnreachableError(LoadError):
    """Raised when the raw text cannot be fetched"""

    kind = "unreachable"


class MalformedTableError(LoadError):
    """Raised when the text has no data rows or cannot be tokenised"""

    kind = "malformed"


class MissingColumnsError(LoadError):
    """Raised when required columns are absent from the header"""

    kind = "missing_columns"

    def __init__(self, missing: Sequence[str], source: Optional[str] = None):
        self.missing: Tuple[str, ...] = tuple(missing)
        super().__init__(f"Table is missing required columns: {list(self.missing)}", source)


class EmptyTableError(LoadError):
    """Raised when no row survives numeric parsing"""

    kind = "empty"


# ============================================================================
# Helpers
# ============================================================================


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _parse_float(cell) -> float:
    """Strict float parse; anything unparseable becomes NaN."""
    if not isinstance(cell, str):
        return math.nan
    if "_" in cell:
        # float() accepts digit-group underscores
        return math.nan
    try:
        return float(cell.strip())
    except ValueError:
        return math.nan


def _order_fields(required_fields: FieldSet, header: Sequence[str]) -> List[str]:
    """Deduplicate required fields; sets follow header order, sequences keep theirs."""
    if isinstance(required_fields, (set, frozenset)):
        position = {name: i for i, name in reversed(list(enumerate(header)))}
        return sorted(required_fields, key=lambda f: (position.get(f, len(header)), f))
    seen = []
    for name in required_fields:
        if name not in seen:
            seen.append(name)
    return seen


# ============================================================================
# Loader
# ============================================================================


class TableLoader:
    """
    Loads trajectory tables from local files or HTTP(S) URLs.

    The loader keeps no per-load state: raw text is discarded once parsed,
    and concurrent calls are independent. Supersession of in-flight loads
    is the caller's job (see TrajectoryEngine).

    Parameters
    ----------
    delimiter : str
        Column delimiter (default ',')
    timeout : float
        HTTP timeout in seconds
    session : Optional[requests.Session]
        Session used for URL sources (default: module-level requests.get)

    Examples
    --------
    >>> loader = TableLoader(delimiter=",", timeout=5.0)
    >>> table = loader.parse("r,psi\\n1,0\\n1,1.57\\n", ("r", "psi"))
    >>> len(table)
    2
    """

    def __init__(
        self,
        delimiter: str = DEFAULT_DELIMITER,
        timeout: float = HTTP_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        if not delimiter:
            raise ValueError("delimiter must be a non-empty string")
        self.delimiter = delimiter
        self.timeout = timeout
        self.session = session

    # ========================================================================
    # Public API
    # ========================================================================

    def load(self, source, required_fields: FieldSet) -> SampleTable:
        """
        Fetch and parse a trajectory table.

        Parameters
        ----------
        source : str or PathLike
            Local path or http(s) URL
        required_fields : FieldSet
            Column names to extract

        Returns
        -------
        SampleTable
            Table with exactly the required fields

        Raises
        ------
        SourceUnreachableError, MalformedTableError,
        MissingColumnsError, EmptyTableError
        """
        source = str(source)
        logger.info(f"Loading trajectory table from: {source}")
        text = self.fetch_text(source)
        table = self.parse(text, required_fields, source=source)
        logger.info(f"Loaded {len(table)} samples from {source}")
        return table

    def fetch_text(self, source: str) -> str:
        """
        Read the raw text of a source.

        Raises
        ------
        SourceUnreachableError
            On any I/O failure or non-success HTTP status
        """
        if _is_url(source):
            get = self.session.get if self.session is not None else requests.get
            try:
                response = get(source, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise SourceUnreachableError(f"Could not fetch {source}: {e}", source) from e
            return response.text

        try:
            return Path(source).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnreachableError(f"Could not read {source}: {e}", source) from e

    def parse(
        self,
        text: str,
        required_fields: FieldSet,
        source: Optional[str] = None,
    ) -> SampleTable:
        """
        Parse delimiter-separated text into a SampleTable.

        Parameters
        ----------
        text : str
            Header line followed by data lines
        required_fields : FieldSet
            Column names to extract
        source : Optional[str]
            Identifier used in messages and stored on the table

        Returns
        -------
        SampleTable

        Raises
        ------
        MalformedTableError, MissingColumnsError, EmptyTableError
        """
        stripped = text.strip()
        lines = stripped.splitlines()
        if len(lines) < 2:
            raise MalformedTableError(
                "Table seems empty or has no data rows "
                f"({len(lines)} line{'s' if len(lines) != 1 else ''})",
                source,
            )

        n_columns = len(lines[0].split(self.delimiter))

        def _truncate(bad_line: List[str]) -> List[str]:
            # Over-long rows keep their leading cells
            return bad_line[:n_columns]

        try:
            frame = pd.read_csv(
                io.StringIO(stripped),
                sep=self.delimiter,
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
                index_col=False,
                engine="python",
                on_bad_lines=_truncate,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise MalformedTableError(f"Could not parse table: {e}", source) from e

        # Duplicate header names are mangled by pandas ('r', 'r.1'); the first one wins
        frame.columns = [str(c).strip() for c in frame.columns]
        header = list(frame.columns)

        fields = _order_fields(required_fields, header)
        if not fields:
            raise ValueError("required_fields must name at least one column")

        missing = [f for f in fields if f not in header]
        if missing:
            raise MissingColumnsError(missing, source)

        if len(frame):
            values = np.column_stack(
                [
                    frame.iloc[:, header.index(name)].map(_parse_float).to_numpy(dtype=np.float64)
                    for name in fields
                ]
            )
        else:
            values = np.empty((0, len(fields)))

        valid = np.isfinite(values).all(axis=1)
        n_dropped = int((~valid).sum())
        if n_dropped:
            dropped_rows = np.flatnonzero(~valid)[:5].tolist()
            logger.debug(f"Dropped data rows {dropped_rows} (first 5) from {source}")
            warnings.warn(
                f"Skipped {n_dropped} row(s) with invalid numbers"
                + (f" in {source}" if source else ""),
                UserWarning,
                stacklevel=2,
            )

        values = values[valid]
        if values.shape[0] == 0:
            raise EmptyTableError("No valid data rows found after parsing", source)

        return SampleTable(fields, values, source=source)


__all__ = [
    "LoadError",
    "SourceUnreachableError",
    "MalformedTableError",
    "MissingColumnsError",
    "EmptyTableError",
    "TableLoader",
]
