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
Sample Table - Validated Trajectory Samples

An ordered, non-empty, immutable table of trajectory samples sharing one
field schema. Row order defines trajectory progression and the loop point:
index 0 follows the last index.

Storage is a read-only (n_samples, n_fields) float64 NumPy array, so a
table can be shared freely between the render loop and any UI reader.
A new source produces a new table; tables are never edited in place.

Usage
-----
>>> table = SampleTable(("r", "psi"), [[1.0, 0.0], [1.0, 1.57]])
>>> len(table)
2
>>> table[1]
{'r': 1.0, 'psi': 1.57}
>>> table.max("r")
1.0
"""

from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np

from orbitplay.types.core import FieldName


class SampleTable:
    """
    Immutable table of trajectory samples.

    Invariants
    ----------
    - At least one row
    - Every value finite
    - Field names unique and non-empty

    Parameters
    ----------
    field_names : Sequence[str]
        Column names, in storage order
    values : array-like
        Shape (n_samples, n_fields)
    source : Optional[str]
        Identifier the table was loaded from (informational)

    Raises
    ------
    ValueError
        If any invariant is violated

    Examples
    --------
    >>> table = SampleTable.from_records([{"r": 1.0, "psi": 0.0}])
    >>> table.field_names
    ('r', 'psi')
    >>> table.column("r")
    array([1.])
    """

    __slots__ = ("_field_names", "_index", "_values", "_source")

    def __init__(
        self,
        field_names: Sequence[FieldName],
        values,
        source: Optional[str] = None,
    ):
        names = tuple(str(n) for n in field_names)
        if not names:
            raise ValueError("SampleTable requires at least one field")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate field names: {names}")
        if any(n == "" for n in names):
            raise ValueError("Field names must be non-empty")

        data = np.array(values, dtype=np.float64)
        if data.ndim == 1 and len(names) == 1:
            data = data.reshape(-1, 1)
        if data.ndim != 2 or data.shape[1] != len(names):
            raise ValueError(
                f"values must have shape (n_samples, {len(names)}), got {data.shape}"
            )
        if data.shape[0] == 0:
            raise ValueError("SampleTable must contain at least one sample")
        if not np.all(np.isfinite(data)):
            raise ValueError("SampleTable values must all be finite")

        data.setflags(write=False)
        self._field_names: Tuple[str, ...] = names
        self._index: Dict[str, int] = {n: i for i, n in enumerate(names)}
        self._values: np.ndarray = data
        self._source = source

    @classmethod
    def from_records(
        cls,
        records: Sequence[Mapping[str, float]],
        field_names: Optional[Sequence[FieldName]] = None,
        source: Optional[str] = None,
    ) -> "SampleTable":
        """
        Build a table from a sequence of sample mappings.

        Parameters
        ----------
        records : Sequence[Mapping[str, float]]
            Samples; every record must contain every field
        field_names : Optional[Sequence[str]]
            Column order (default: keys of the first record)
        source : Optional[str]
            Informational source identifier
        """
        if len(records) == 0:
            raise ValueError("SampleTable must contain at least one sample")
        names = tuple(field_names) if field_names is not None else tuple(records[0].keys())
        try:
            rows = [[float(rec[n]) for n in names] for rec in records]
        except KeyError as e:
            raise ValueError(f"Record is missing field {e.args[0]!r}") from e
        return cls(names, rows, source=source)

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def field_names(self) -> Tuple[str, ...]:
        """Column names in storage order"""
        return self._field_names

    @property
    def values(self) -> np.ndarray:
        """Read-only (n_samples, n_fields) array"""
        return self._values

    @property
    def source(self) -> Optional[str]:
        """Identifier the table was loaded from, if known"""
        return self._source

    # ========================================================================
    # Access
    # ========================================================================

    def __len__(self) -> int:
        return self._values.shape[0]

    def __getitem__(self, index: int) -> Dict[str, float]:
        row = self._values[index]
        return {name: float(row[i]) for i, name in enumerate(self._field_names)}

    def __iter__(self) -> Iterator[Dict[str, float]]:
        for i in range(len(self)):
            yield self[i]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def has_fields(self, names) -> bool:
        """True if every name is a column of this table."""
        return all(n in self._index for n in names)

    def field_index(self, name: FieldName) -> int:
        """Column position of a field."""
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(
                f"Unknown field '{name}'. Available: {list(self._field_names)}"
            ) from None

    def column(self, name: FieldName) -> np.ndarray:
        """Read-only view of one field over all samples."""
        return self._values[:, self.field_index(name)]

    def row(self, index: int) -> np.ndarray:
        """Read-only view of one sample as a (n_fields,) array."""
        return self._values[index]

    def max(self, name: FieldName) -> float:
        """Largest value of a field, e.g. r_max = table.max('r')."""
        return float(self.column(name).max())

    def min(self, name: FieldName) -> float:
        """Smallest value of a field."""
        return float(self.column(name).min())

    def __repr__(self) -> str:
        src = f", source={self._source!r}" if self._source else ""
        return f"SampleTable(n_samples={len(self)}, fields={self._field_names}{src})"


__all__ = ["SampleTable"]
