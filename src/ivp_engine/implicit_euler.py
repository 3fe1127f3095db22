# src/ivp_engine/implicit_euler.py
"""Implicit Euler for scalar problems, solved with Newton's method.

Each step solves

    x = last + h * f(t + h, x)

for x. The right-hand side must be a DifferentiableFunction whose
``derivative_at(t, x)`` is the partial derivative of f in x. Newton starts
from ``last`` and stops at a residual of ``0.001 * h``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from .errors import raise_problem_definition
from .functions import ClosureDifferentiableFunction, DifferentiableFunction
from .newton import newton_method
from .one_step import OneStepMethod, OneStepStep
from .problems import FloatArray, InitialValueProblem
from .trajectory import Trajectory

_NEWTON_EPS_FACTOR = 0.001


def _residual(t: float, x: float, data: tuple[float, float, Any]) -> float:
    last, delta, df = data
    return last + delta * df.value_at(t + delta, x) - x


def _residual_derivative(t: float, x: float, data: tuple[float, float, Any]) -> float:
    _, delta, df = data
    return delta * df.derivative_at(t + delta, x) - 1.0


class ImplicitEulerStep(OneStepStep):
    """Scalar implicit Euler step."""

    def __init__(self, max_iter: int = 100) -> None:
        self.max_iter = max_iter

    def step(
        self,
        dfs: Sequence[Any],
        t: float,
        last_values: FloatArray,
        h: float,
    ) -> FloatArray:
        if len(dfs) != 1 or not isinstance(dfs[0], DifferentiableFunction):
            raise_problem_definition(
                name="dfs",
                expected="a single DifferentiableFunction right-hand side",
                got=[type(df).__name__ for df in dfs],
            )
        last = float(last_values[0])
        if h == 0.0:
            return np.array([last], dtype=np.float64)

        func = ClosureDifferentiableFunction(
            (last, h, dfs[0]), _residual, _residual_derivative
        )
        value = newton_method(
            func, t, last, _NEWTON_EPS_FACTOR * abs(h), max_iter=self.max_iter
        )
        return np.array([value], dtype=np.float64)


def make_implicit_euler_method(ivp: InitialValueProblem, h: float) -> OneStepMethod:
    """Implicit Euler driver for a scalar problem."""
    return OneStepMethod(ImplicitEulerStep(), ivp.to_scalar_system(), h)


def implicit_euler_interval(
    ivp: InitialValueProblem,
    h: float,
    t_target: float,
    skip_n: int = 0,
) -> Trajectory:
    """Implicit Euler snapshots; lands exactly on t_target."""
    return make_implicit_euler_method(ivp, h).interval(t_target, skip_n)


def implicit_euler(ivp: InitialValueProblem, h: float, t_target: float) -> float:
    """Approximate x(t_target) with implicit Euler.

    Example::

        stiff = InitialValueProblem(
            0.0,
            1.0,
            SimpleDifferentiableFunction(
                lambda t, x: -1000.0 * x,
                lambda t, x: -1000.0,
            ),
        )
        implicit_euler(stiff, 0.001, 1.0)
    """
    return float(implicit_euler_interval(ivp, h, t_target).final_state[0])
