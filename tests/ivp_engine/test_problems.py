# tests/ivp_engine/test_problems.py
"""Tests for problem descriptors and grid helpers."""

from __future__ import annotations

import numpy as np
import pytest

from ivp_engine.errors import ProblemDefinitionError
from ivp_engine.problems import (
    BoundaryValueProblem,
    InitialValueProblem,
    InitialValueSystemProblem,
    Interval,
    make_supporting_points,
    resolve_problem,
)

# -----------------------------------------------------------------------------
# Initial value problems
# -----------------------------------------------------------------------------


def test_system_problem_normalizes_inputs() -> None:
    """Start values become a float tuple and dfs a tuple."""
    problem = InitialValueSystemProblem(
        start_time=1,
        start_values=[1, 2],
        dfs=[lambda t, v: v[0], lambda t, v: v[1]],
    )

    assert problem.start_time == 1.0
    assert problem.start_values == (1.0, 2.0)
    assert isinstance(problem.dfs, tuple)
    assert problem.dim == 2


def test_initial_state_is_a_fresh_copy(
    relaxation_problem: InitialValueSystemProblem,
) -> None:
    """Mutating the returned array leaves the descriptor intact."""
    state = relaxation_problem.initial_state()
    state[0] = 99.0

    assert relaxation_problem.initial_state()[0] == 1.0


def test_mismatched_dfs_are_rejected() -> None:
    """One right-hand side per component."""
    with pytest.raises(ProblemDefinitionError, match="dfs"):
        InitialValueSystemProblem(
            start_time=0.0, start_values=(1.0, 2.0), dfs=(lambda t, v: 0.0,)
        )


def test_empty_system_is_rejected() -> None:
    """A system needs at least one component."""
    with pytest.raises(ProblemDefinitionError):
        InitialValueSystemProblem(start_time=0.0, start_values=(), dfs=())


def test_restarted_shares_right_hand_sides(
    relaxation_problem: InitialValueSystemProblem,
) -> None:
    """restarted() only replaces the start point."""
    moved = relaxation_problem.restarted(0.5, np.array([0.7, 0.3]))

    assert moved.start_time == 0.5
    assert moved.start_values == (0.7, 0.3)
    assert moved.dfs is relaxation_problem.dfs
    assert relaxation_problem.start_time == 0.0


def test_scalar_problem_adapts_calling_convention(
    quadratic_ivp: InitialValueProblem,
) -> None:
    """to_system_problem reads state[0]; to_scalar_system keeps df as-is."""
    system = quadratic_ivp.to_system_problem()
    scalar = quadratic_ivp.to_scalar_system()

    assert system.dfs[0](0.0, np.array([3.0])) == 9.0
    assert scalar.dfs[0] is quadratic_ivp.df
    assert system.start_values == scalar.start_values == (1.0,)


def test_resolve_problem_accepts_value_and_factory(
    relaxation_problem: InitialValueSystemProblem,
) -> None:
    """Values pass through; factories are called once."""
    assert resolve_problem(relaxation_problem) is relaxation_problem
    assert resolve_problem(lambda: relaxation_problem) is relaxation_problem


def test_resolve_problem_rejects_bad_factory() -> None:
    """A factory must produce an InitialValueSystemProblem."""
    with pytest.raises(ProblemDefinitionError, match="factory"):
        resolve_problem(lambda: 42)


# -----------------------------------------------------------------------------
# Intervals and grids
# -----------------------------------------------------------------------------


def test_interval_span_is_absolute() -> None:
    """Reversed intervals have a positive span."""
    assert Interval(0.0, 2.0).span() == 2.0
    assert Interval(2.0, -1.0).span() == 3.0


def test_supporting_points_end_exactly() -> None:
    """n + 1 points, last one exactly interval.end."""
    pts = make_supporting_points(3, Interval(0.0, 0.3))

    assert pts.shape == (4,)
    assert pts[0] == 0.0
    assert pts[-1] == 0.3
    np.testing.assert_allclose(np.diff(pts), 0.1)


def test_supporting_points_reversed_interval() -> None:
    """A reversed interval yields a decreasing grid."""
    pts = make_supporting_points(4, Interval(1.0, 0.0))

    np.testing.assert_allclose(pts, [1.0, 0.75, 0.5, 0.25, 0.0])


def test_supporting_points_need_one_split() -> None:
    """n must be at least 1."""
    with pytest.raises(ProblemDefinitionError):
        make_supporting_points(0, Interval(0.0, 1.0))


def test_boundary_value_problem_defaults() -> None:
    """end_value defaults to zero."""
    bvp = BoundaryValueProblem(
        ddf=lambda x: 0.0, interval=Interval(0.0, 1.0), start_value=1.0
    )

    assert bvp.end_value == 0.0
