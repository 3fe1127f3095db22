# tests/ivp_engine/test_trajectory.py
"""Tests for Trajectory and the decimating TrajectoryBuilder."""

from __future__ import annotations

import numpy as np
import pytest

from ivp_engine.problems import Point2D
from ivp_engine.trajectory import Trajectory, TrajectoryBuilder


def _offer_all(builder: TrajectoryBuilder, n: int) -> None:
    for idx in range(1, n + 1):
        builder.offer(float(idx), np.array([float(idx)]))


# -----------------------------------------------------------------------------
# Trajectory
# -----------------------------------------------------------------------------


def test_trajectory_accessors() -> None:
    """Shapes, final snapshot and per-component views."""
    trajectory = Trajectory(
        times=[0.0, 0.5, 1.0],
        states=[[1.0, 0.0], [0.8, 0.2], [0.7, 0.3]],
    )

    assert len(trajectory) == 3
    assert trajectory.dim == 2
    assert trajectory.final_time == 1.0
    np.testing.assert_array_equal(trajectory.final_state, [0.7, 0.3])
    np.testing.assert_array_equal(trajectory.component(1), [0.0, 0.2, 0.3])
    np.testing.assert_allclose(trajectory.step_sizes(), [0.5, 0.5])


def test_trajectory_iterates_snapshots() -> None:
    """Iteration yields (time, state) pairs in order."""
    trajectory = Trajectory(times=[0.0, 1.0], states=[[2.0], [3.0]])
    pairs = [(t, float(s[0])) for t, s in trajectory]

    assert pairs == [(0.0, 2.0), (1.0, 3.0)]


def test_points_and_array_layout() -> None:
    """points() and as_array() put time first."""
    trajectory = Trajectory(times=[0.0, 1.0], states=[[2.0, 5.0], [3.0, 6.0]])

    assert trajectory.points(1) == [Point2D(0.0, 5.0), Point2D(1.0, 6.0)]
    np.testing.assert_array_equal(
        trajectory.as_array(), [[0.0, 2.0, 5.0], [1.0, 3.0, 6.0]]
    )


@pytest.mark.parametrize(
    ("times", "states"),
    [
        ([], np.empty((0, 1))),
        ([0.0, 1.0], [[1.0]]),
        ([0.0, 1.0], [1.0, 2.0]),
    ],
)
def test_trajectory_shape_validation(times: list[float], states: object) -> None:
    """Empty or misaligned snapshot arrays are rejected."""
    with pytest.raises(ValueError):
        Trajectory(times=times, states=states)


# -----------------------------------------------------------------------------
# Builder
# -----------------------------------------------------------------------------


def test_builder_without_decimation_keeps_everything() -> None:
    """skip_n = 0 records every offered snapshot."""
    builder = TrajectoryBuilder()
    builder.push(0.0, np.array([0.0]))
    _offer_all(builder, 5)
    builder.flush()

    np.testing.assert_array_equal(builder.build().times, [0, 1, 2, 3, 4, 5])


def test_builder_keeps_every_third_and_flushes_last() -> None:
    """skip_n = 2 keeps offers 3, 6, ... and the final pending one."""
    builder = TrajectoryBuilder(2)
    builder.push(0.0, np.array([0.0]))
    _offer_all(builder, 7)
    builder.flush()

    np.testing.assert_array_equal(builder.build().times, [0, 3, 6, 7])


def test_flush_after_recorded_snapshot_is_noop() -> None:
    """No duplicate when the final offer was already recorded."""
    builder = TrajectoryBuilder(2)
    builder.push(0.0, np.array([0.0]))
    _offer_all(builder, 6)
    builder.flush()
    builder.flush()

    np.testing.assert_array_equal(builder.build().times, [0, 3, 6])


def test_builder_copies_pushed_states() -> None:
    """Later mutation of a working array does not leak into snapshots."""
    state = np.array([1.0])
    builder = TrajectoryBuilder()
    builder.push(0.0, state)
    state[0] = 5.0
    builder.push(1.0, state)

    np.testing.assert_array_equal(builder.build().states[:, 0], [1.0, 5.0])


@pytest.mark.parametrize("skip_n", [-1, 1.5, True])
def test_builder_rejects_bad_skip(skip_n: object) -> None:
    """skip_n must be a non-negative integer."""
    with pytest.raises(ValueError, match="skip_n"):
        TrajectoryBuilder(skip_n)
