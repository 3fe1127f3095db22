# tests/ivp_engine/test_newton_implicit.py
"""Tests for Newton's method and the implicit Euler step built on it."""

from __future__ import annotations

import math

import numpy as np
import pytest

from ivp_engine.batch import convergence_orders
from ivp_engine.errors import ConvergenceError, ProblemDefinitionError
from ivp_engine.functions import SimpleDifferentiableFunction
from ivp_engine.implicit_euler import (
    ImplicitEulerStep,
    implicit_euler,
    implicit_euler_interval,
    make_implicit_euler_method,
)
from ivp_engine.newton import newton_method, newton_step
from ivp_engine.one_step import explicit_euler
from ivp_engine.problems import InitialValueProblem


@pytest.fixture
def stiff_ivp() -> InitialValueProblem:
    """x' = -1000 x, x(0) = 1."""
    return InitialValueProblem(
        start_time=0.0,
        start_value=1.0,
        df=SimpleDifferentiableFunction(
            lambda t, x: -1000.0 * x,
            lambda t, x: -1000.0,
        ),
    )


# -----------------------------------------------------------------------------
# Newton
# -----------------------------------------------------------------------------


def test_newton_finds_square_root() -> None:
    """x^2 - 2 from 2 converges to sqrt(2)."""
    g = SimpleDifferentiableFunction(lambda t, x: x * x - 2.0, lambda t, x: 2.0 * x)

    assert newton_method(g, 0.0, 2.0, 1e-12) == pytest.approx(math.sqrt(2.0))


def test_newton_uses_fixed_first_argument() -> None:
    """t is passed through unchanged: root of x - t."""
    g = SimpleDifferentiableFunction(lambda t, x: x - t, lambda t, x: 1.0)

    assert newton_method(g, 3.5, 0.0, 1e-12) == 3.5


def test_newton_returns_start_when_already_small() -> None:
    """|g(start)| < eps skips the iteration."""
    g = SimpleDifferentiableFunction(
        lambda t, x: x * x - 2.0,
        lambda t, x: pytest.fail("derivative should not be evaluated"),
    )

    assert newton_method(g, 0.0, 1.41421356, 1e-6) == 1.41421356


def test_newton_single_step() -> None:
    """newton_step is x - g/g'."""
    g = SimpleDifferentiableFunction(lambda t, x: x * x - 2.0, lambda t, x: 2.0 * x)

    assert newton_step(g, 0.0, 2.0) == 1.5


def test_newton_zero_derivative_raises() -> None:
    """A flat tangent cannot produce a step."""
    g = SimpleDifferentiableFunction(lambda t, x: x * x + 1.0, lambda t, x: 2.0 * x)

    with pytest.raises(ConvergenceError, match="zero derivative"):
        newton_method(g, 0.0, 0.0, 1e-8)


def test_newton_without_root_exhausts_iterations() -> None:
    """x^2 + 1 has no real root; iteration is bounded."""
    g = SimpleDifferentiableFunction(lambda t, x: x * x + 1.0, lambda t, x: 2.0 * x)

    with pytest.raises(ConvergenceError):
        newton_method(g, 0.0, 1.0, 1e-10, max_iter=20)


def test_convergence_error_is_runtime_error() -> None:
    """Callers can catch ConvergenceError as RuntimeError."""
    assert issubclass(ConvergenceError, RuntimeError)


# -----------------------------------------------------------------------------
# Implicit Euler
# -----------------------------------------------------------------------------


def test_implicit_euler_is_stable_on_stiff_decay(
    stiff_ivp: InitialValueProblem,
) -> None:
    """Ten steps of h = 1/1024 on x' = -1000 x give (1 / (1 + 1000 h))^10."""
    h = 1.0 / 1024.0
    value = implicit_euler(stiff_ivp, h, 10 * h)
    expected = (1.0 / (1.0 + 1000.0 * h)) ** 10

    assert value == pytest.approx(expected, rel=1e-9)


def test_explicit_euler_blows_up_where_implicit_does_not(
    stiff_ivp: InitialValueProblem,
) -> None:
    """The same step size is unstable for explicit Euler."""
    h = 1.0 / 128.0
    plain = InitialValueProblem(0.0, 1.0, lambda t, x: -1000.0 * x)

    assert abs(explicit_euler(plain, h, 1.0)) > 1e50
    assert abs(implicit_euler(stiff_ivp, h, 1.0)) < 1.0


def test_implicit_euler_converges_with_order_one() -> None:
    """x' = -x on [0, 1]: empirical order approaches 1."""
    ivp = InitialValueProblem(
        0.0,
        1.0,
        SimpleDifferentiableFunction(lambda t, x: -x, lambda t, x: -1.0),
    )
    hs = [2.0**-k for k in range(6, 10)]
    errors = [abs(implicit_euler(ivp, h, 1.0) - math.exp(-1.0)) for h in hs]

    assert convergence_orders(hs, errors)[-1] == pytest.approx(1.0, abs=0.05)


def test_implicit_euler_interval_hits_target(stiff_ivp: InitialValueProblem) -> None:
    """The one-step driver lands on t_target with the implicit step."""
    trajectory = implicit_euler_interval(stiff_ivp, 0.03, 0.1)

    assert trajectory.final_time == 0.1
    assert np.all(np.diff(trajectory.component(0)) < 0.0)


def test_implicit_euler_zero_step_is_identity(stiff_ivp: InitialValueProblem) -> None:
    """h = 0 returns the last state without solving."""
    dfs = stiff_ivp.to_scalar_system().dfs
    result = ImplicitEulerStep().step(dfs, 0.0, np.array([0.25]), 0.0)

    np.testing.assert_array_equal(result, [0.25])


def test_implicit_euler_requires_differentiable_rhs() -> None:
    """A plain callable has no partial derivative."""
    ivp = InitialValueProblem(0.0, 1.0, lambda t, x: -x)

    with pytest.raises(ProblemDefinitionError):
        make_implicit_euler_method(ivp, 0.1).interval(1.0)
