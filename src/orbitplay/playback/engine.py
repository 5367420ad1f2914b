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
Trajectory Engine - One Playback Session

Owns everything a scene needs to animate one orbit: the active
SampleTable, its PlaybackClock, a TrajectorySampler bound to a coordinate
transform and an optional SignalHistory. One generic engine covers every
trajectory kind; the kind only selects the transform and the columns to
load.

Loads and supersession
----------------------
Every load takes a generation token. Only the result carrying the newest
token is applied; a slower, older load that finishes late is discarded so
stale data never replaces the active table. Applying a table resets the
clock epoch and the signal history.

Frame loop
----------
``advance(now)`` is called once per rendered frame. It reads the table
reference and generation under the engine lock and takes an atomic clock
snapshot. If a load begins or commits before the frame is finished, the
frame is dropped, so a frame never mixes two tables or two clock states.

Usage
-----
>>> engine = TrajectoryEngine.for_kind(TrajectoryKind.R_2D)
>>> engine.load("trajectory_data/2d/rel/1_1.csv")
>>> frame = engine.advance(now=0.0)
>>> engine.set_speed(2.0)
>>> engine.set_paused(True)
>>> engine.history.records()
[]
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from orbitplay.config import DEFAULT_PLAYBACK_CONFIG, ConfigError, PlaybackConfig
from orbitplay.geometry.coordinate_transform import CoordinateTransform
from orbitplay.playback.clock import PlaybackClock
from orbitplay.playback.sampler import TrajectorySampler
from orbitplay.playback.signal_history import SignalHistory
from orbitplay.trajectory.sample_table import SampleTable
from orbitplay.trajectory.sources import QuantumNumbers, TrajectoryKind, resolve_source
from orbitplay.trajectory.table_loader import LoadError, TableLoader
from orbitplay.types.core import Timestamp
from orbitplay.types.playback import PlaybackFrame

logger = logging.getLogger(__name__)


class LoadStatus(Enum):
    """
    Lifecycle of the engine's data source.

    Attributes
    ----------
    IDLE : str
        Nothing requested yet
    LOADING : str
        A load is in flight
    READY : str
        A table is active
    ERROR : str
        The latest load failed; no table is active
    """

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class TrajectoryEngine:
    """
    Generic playback engine parameterised by a coordinate transform.

    Parameters
    ----------
    transform : CoordinateTransform or str
        Transform instance or name ('polar2d', 'spherical3d')
    extra_fields : Iterable[str]
        Columns to load beyond the transform's own (e.g. 'delta_psi')
    loader : Optional[TableLoader]
        Table loader (default built from config)
    clock : Optional[PlaybackClock]
        Clock owned by this engine (default built from config)
    history : Optional[SignalHistory]
        Signal history (default built from config)
    track_signal : Optional[bool]
        Feed the history every frame. Default: only if the history's
        angle field is among the loaded columns
    config : Optional[PlaybackConfig]
        Settings (default: DEFAULT_PLAYBACK_CONFIG)
    kind : Optional[TrajectoryKind]
        Trajectory kind, enables select()

    Examples
    --------
    >>> engine = TrajectoryEngine("spherical3d")
    >>> engine.required_fields
    ('r', 'phi', 'theta')
    >>> engine.advance(now=0.0) is None  # nothing loaded
    True
    """

    def __init__(
        self,
        transform: Union[CoordinateTransform, str] = "polar2d",
        extra_fields: Iterable[str] = (),
        loader: Optional[TableLoader] = None,
        clock: Optional[PlaybackClock] = None,
        history: Optional[SignalHistory] = None,
        track_signal: Optional[bool] = None,
        config: Optional[PlaybackConfig] = None,
        kind: Optional[TrajectoryKind] = None,
    ):
        self.config: PlaybackConfig = config if config is not None else DEFAULT_PLAYBACK_CONFIG
        self.sampler = TrajectorySampler(transform)
        self.transform = self.sampler.transform
        self.kind = kind

        fields = list(self.transform.required_fields)
        for name in extra_fields:
            if name not in fields:
                fields.append(name)
        self.required_fields: Tuple[str, ...] = tuple(fields)

        self.loader = loader or TableLoader(
            delimiter=self.config["delimiter"],
            timeout=self.config["http_timeout"],
        )
        self.clock = clock or PlaybackClock(
            speed=self.config["speed"],
            steps_per_speed_unit=self.config["steps_per_speed_unit"],
        )
        self.history = history or SignalHistory(
            capacity=self.config["history_capacity"],
            tolerance=self.config["tolerance"],
        )
        if track_signal is None:
            track_signal = (
                self.history.angle_field in self.required_fields
                and self.history.radial_field in self.required_fields
            )
        self.track_signal = bool(track_signal)

        self._lock = threading.Lock()
        self._table: Optional[SampleTable] = None
        self._source: Optional[str] = None
        self._pending_source: Optional[str] = None
        self._generation = 0
        self._status = LoadStatus.IDLE
        self._error: Optional[LoadError] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def for_kind(cls, kind: Union[TrajectoryKind, str], **kwargs) -> "TrajectoryEngine":
        """Build an engine for a trajectory kind ('2DNR', '2DR', '3DNR', '3DR')."""
        if isinstance(kind, str):
            kind = TrajectoryKind.from_name(kind)
        return cls(
            transform=kind.transform_name,
            extra_fields=kind.required_fields,
            kind=kind,
            **kwargs,
        )

    # ========================================================================
    # State
    # ========================================================================

    @property
    def table(self) -> Optional[SampleTable]:
        """Active table, or None"""
        with self._lock:
            return self._table

    @property
    def source(self) -> Optional[str]:
        """Identifier of the active table"""
        with self._lock:
            return self._source

    @property
    def status(self) -> LoadStatus:
        with self._lock:
            return self._status

    @property
    def error(self) -> Optional[LoadError]:
        """Error of the latest failed load, if the engine is in ERROR"""
        with self._lock:
            return self._error

    @property
    def generation(self) -> int:
        """Token of the newest load request"""
        with self._lock:
            return self._generation

    # ========================================================================
    # Loading
    # ========================================================================

    def begin_load(self, source: Optional[str] = None) -> int:
        """
        Register a new load request and return its generation token.

        Any earlier request still in flight becomes stale.
        """
        with self._lock:
            self._generation += 1
            self._status = LoadStatus.LOADING
            self._error = None
            self._pending_source = source
            return self._generation

    def commit_load(self, token: int, table: SampleTable) -> bool:
        """
        Apply a loaded table if its token is still current.

        Resets the clock epoch and the signal history.

        Returns
        -------
        bool
            False if the result was stale and discarded
        """
        with self._lock:
            if token != self._generation:
                logger.debug(f"Discarding stale load {token} (current {self._generation})")
                return False
            self._table = table
            self._source = self._pending_source if self._pending_source is not None else table.source
            self._status = LoadStatus.READY
            self._error = None
            self.clock.reset()
            if self.track_signal:
                self.history.reset_from_table(table)
            else:
                self.history.reset()
        logger.info(f"Active trajectory: {self._source} ({len(table)} samples)")
        return True

    def fail_load(self, token: int, error: LoadError) -> bool:
        """
        Record a failed load if its token is still current.

        The active table is cleared, as is the history.

        Returns
        -------
        bool
            False if the failure was stale and ignored
        """
        with self._lock:
            if token != self._generation:
                logger.debug(f"Ignoring stale load failure {token}: {error}")
                return False
            self._table = None
            self._source = None
            self._status = LoadStatus.ERROR
            self._error = error
            self.clock.reset()
            self.history.reset()
        logger.warning(f"Error loading trajectory data ({error.kind}): {error}")
        return True

    def load(self, source) -> SampleTable:
        """
        Load a source synchronously and make it the active table.

        Raises
        ------
        LoadError
            After recording the ERROR status; no retry is attempted
        """
        source = str(source)
        token = self.begin_load(source)
        try:
            table = self.loader.load(source, self.required_fields)
        except LoadError as e:
            self.fail_load(token, e)
            raise
        self.commit_load(token, table)
        return table

    def load_in_background(self, source) -> "Future[bool]":
        """
        Load a source on the engine's worker thread.

        A newer load (background or not) supersedes this one.

        Returns
        -------
        Future[bool]
            Resolves to True if applied, False if superseded; raises the
            LoadError if the load failed
        """
        source = str(source)
        token = self.begin_load(source)
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="orbitplay-load"
                )
            executor = self._executor
        return executor.submit(self._load_worker, token, source)

    def _load_worker(self, token: int, source: str) -> bool:
        try:
            table = self.loader.load(source, self.required_fields)
        except LoadError as e:
            if not self.fail_load(token, e):
                return False
            raise
        return self.commit_load(token, table)

    def select(
        self,
        kind: Optional[Union[TrajectoryKind, str]],
        quantum_numbers: QuantumNumbers,
        root: Optional[str] = None,
        background: bool = False,
    ) -> bool:
        """
        Switch to the orbit addressed by quantum numbers.

        Reloads only when the resolved source differs from the active or
        pending one.

        Parameters
        ----------
        kind : TrajectoryKind, str or None
            Trajectory kind; None uses the engine's own kind
        quantum_numbers : QuantumNumbers
            Orbit to select
        root : Optional[str]
            Data root (default: config data_root)
        background : bool
            Load on the worker thread instead of blocking

        Returns
        -------
        bool
            True if a load was started

        Raises
        ------
        ConfigError
            If no kind is known, the kind does not match the transform, or
            the quantum numbers are out of range
        """
        if isinstance(kind, str):
            kind = TrajectoryKind.from_name(kind)
        kind = kind or self.kind
        if kind is None:
            raise ConfigError("select() needs a trajectory kind")
        if kind.transform_name != self.transform.name:
            raise ConfigError(
                f"Kind {kind.value} needs transform '{kind.transform_name}', "
                f"engine uses '{self.transform.name}'"
            )
        source = resolve_source(kind, quantum_numbers, root or self.config["data_root"])
        with self._lock:
            current = self._pending_source if self._status == LoadStatus.LOADING else self._source
        if source == current:
            return False
        if background:
            self.load_in_background(source)
        else:
            self.load(source)
        return True

    def reload(self, background: bool = False):
        """Load the active (or last requested) source again."""
        with self._lock:
            source = self._source or self._pending_source
        if source is None:
            raise ConfigError("Nothing to reload: no source has been requested")
        if background:
            return self.load_in_background(source)
        return self.load(source)

    def close(self) -> None:
        """Stop the background worker."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "TrajectoryEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ========================================================================
    # Playback Controls
    # ========================================================================

    def set_paused(self, paused: bool, now: Optional[Timestamp] = None) -> bool:
        return self.clock.set_paused(paused, now)

    def toggle_pause(self, now: Optional[Timestamp] = None) -> bool:
        return self.clock.toggle_pause(now)

    def set_speed(self, multiplier: float, now: Optional[Timestamp] = None) -> float:
        """Change playback speed; InvalidSpeedError keeps the old speed."""
        return self.clock.set_speed(multiplier, now)

    # ========================================================================
    # Frame Loop
    # ========================================================================

    def advance(self, now: Optional[Timestamp] = None) -> Optional[PlaybackFrame]:
        """
        Compute the frame for ``now``.

        Returns None while no table is active (idle, loading or error), and
        when a load begins or commits while the frame is being computed.
        When signal tracking is on and playback is running, the frame's
        sample is offered to the history.
        """
        with self._lock:
            table = self._table
            generation = self._generation
        if table is None:
            return None
        if now is None:
            now = self.clock.now()
        frame = self.sampler.advance(table, self.clock, now)
        with self._lock:
            if self._generation != generation:
                # Superseded while sampling
                return None
            if self.track_signal and not frame["paused"]:
                self.history.observe_frame(frame)
        return frame

    def __repr__(self) -> str:
        return (
            f"TrajectoryEngine(transform={self.transform.name!r}, "
            f"fields={self.required_fields}, status={self._status.value})"
        )


__all__ = ["TrajectoryEngine", "LoadStatus"]
