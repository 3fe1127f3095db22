"""Global pytest configuration and shared fixtures for ivp_engine."""

from __future__ import annotations

import math
from collections.abc import Callable

import numpy as np
import pytest
from scipy.linalg import expm

from ivp_engine.problems import InitialValueProblem, InitialValueSystemProblem

# -----------------------------------------------------------------------------
# Global markers registration safety (for local pytest runs)
# -----------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used by the test suite."""
    config.addinivalue_line(
        "markers",
        "slow: long-running convergence studies",
    )


# -----------------------------------------------------------------------------
# Shared problems
# -----------------------------------------------------------------------------

RELAXATION_MATRIX = np.array([[-1.0, 1.0], [1.0, -1.0]], dtype=np.float64)


def _relaxation_exact(t: float) -> np.ndarray:
    return expm(RELAXATION_MATRIX * t) @ np.array([1.0, 0.0])


@pytest.fixture
def relaxation_exact() -> Callable[[float], np.ndarray]:
    """Exact solution of the relaxation system from (1, 0), via expm."""
    return _relaxation_exact


@pytest.fixture
def relaxation_problem() -> InitialValueSystemProblem:
    """Symmetric exponential relaxation ``x' = -x + y``, ``y' = x - y``."""
    return InitialValueSystemProblem(
        start_time=0.0,
        start_values=(1.0, 0.0),
        dfs=(
            lambda t, v: -v[0] + v[1],
            lambda t, v: v[0] - v[1],
        ),
    )


@pytest.fixture
def decay_problem() -> InitialValueSystemProblem:
    """``x' = -x``, ``x(0) = 1``; exact ``exp(-t)``."""
    return InitialValueSystemProblem(
        start_time=0.0,
        start_values=(1.0,),
        dfs=(lambda t, v: -v[0],),
    )


@pytest.fixture
def quadratic_ivp() -> InitialValueProblem:
    """Scalar ``x' = x^2``, ``x(0) = 1``; exact ``1 / (1 - t)``."""
    return InitialValueProblem(start_time=0.0, start_value=1.0, df=lambda t, x: x * x)


@pytest.fixture
def exp_decay_exact() -> float:
    """exp(-1), the decay problem's value at t = 1."""
    return math.exp(-1.0)
