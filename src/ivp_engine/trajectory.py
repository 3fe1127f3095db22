"""Time-ordered snapshot sequences produced by the integration drivers."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import cast

import numpy as np

from .problems import FloatArray, Point2D

_EMPTY_TRAJECTORY_ERROR = "Trajectory must contain at least one snapshot"
_SHAPE_ERROR = "states shape {actual} does not match ({n}, dim) for {n} times"
_SKIP_ERROR = "skip_n must be a non-negative integer; got {skip_n!r}"


@dataclass(frozen=True, slots=True)
class Trajectory:
    """Snapshots ``(times[i], states[i])`` in time order.

    Attributes:
        times: 1D array of snapshot times, shape (n,).
        states: 2D array of state vectors, shape (n, dim).
    """

    times: FloatArray
    states: FloatArray

    def __post_init__(self) -> None:
        times = np.asarray(self.times, dtype=np.float64)
        states = np.asarray(self.states, dtype=np.float64)
        if times.size == 0:
            raise ValueError(_EMPTY_TRAJECTORY_ERROR)
        if states.ndim != 2 or states.shape[0] != times.size:
            raise ValueError(_SHAPE_ERROR.format(actual=states.shape, n=times.size))
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "states", states)

    def __len__(self) -> int:
        return int(self.times.size)

    def __iter__(self) -> Iterator[tuple[float, FloatArray]]:
        for t, state in zip(self.times, self.states, strict=True):
            yield float(t), state

    @property
    def dim(self) -> int:
        """Number of state components."""
        return int(self.states.shape[1])

    @property
    def final_time(self) -> float:
        """Time of the last snapshot."""
        return float(self.times[-1])

    @property
    def final_state(self) -> FloatArray:
        """State of the last snapshot."""
        return cast("FloatArray", self.states[-1])

    def component(self, idx: int) -> FloatArray:
        """Return the time series of one state component.

        Args:
            idx: Component index.

        Returns:
            1D array of shape (n,).
        """
        return cast("FloatArray", self.states[:, idx])

    def points(self, idx: int = 0) -> list[Point2D]:
        """Return one component as a list of (time, value) points.

        Args:
            idx: Component index.

        Returns:
            List of Point2D, in time order.
        """
        return [
            Point2D(x=float(t), y=float(v))
            for t, v in zip(self.times, self.states[:, idx], strict=True)
        ]

    def as_array(self) -> FloatArray:
        """Return a (n, 1 + dim) array with time in the first column."""
        return np.column_stack((self.times, self.states))

    def step_sizes(self) -> FloatArray:
        """Differences between consecutive snapshot times.

        Only equals the integrator's step sizes when skip_n == 0.
        """
        return cast("FloatArray", np.diff(self.times))


class TrajectoryBuilder:
    """Collect snapshots, applying the decimation countdown.

    ``push`` always records a snapshot. ``offer`` records one only when the
    countdown (started at ``skip_n``) has run out, so every ``skip_n + 1``-th
    offered snapshot is kept. ``flush`` records the last offered snapshot if
    it was suppressed, guaranteeing the final state is always present.
    """

    def __init__(self, skip_n: int = 0) -> None:
        if isinstance(skip_n, bool) or int(skip_n) != skip_n or skip_n < 0:
            raise ValueError(_SKIP_ERROR.format(skip_n=skip_n))
        self.skip_n = int(skip_n)
        self._countdown = self.skip_n
        self._times: list[float] = []
        self._states: list[FloatArray] = []
        self._pending: tuple[float, FloatArray] | None = None

    def __len__(self) -> int:
        return len(self._times)

    def push(self, t: float, state: FloatArray) -> None:
        """Record a snapshot unconditionally."""
        self._times.append(float(t))
        self._states.append(np.array(state, dtype=np.float64, copy=True))
        self._pending = None

    def offer(self, t: float, state: FloatArray) -> bool:
        """Record a snapshot if the decimation countdown allows it.

        Returns:
            True if the snapshot was recorded.
        """
        if self._countdown <= 0:
            self._countdown = self.skip_n
            self.push(t, state)
            return True
        self._countdown -= 1
        self._pending = (float(t), state)
        return False

    def flush(self) -> None:
        """Record the last suppressed snapshot, if any."""
        if self._pending is not None:
            t, state = self._pending
            self.push(t, state)

    def build(self) -> Trajectory:
        """Return the collected snapshots as a Trajectory."""
        return Trajectory(
            times=np.asarray(self._times, dtype=np.float64),
            states=np.vstack(self._states),
        )
