# src/ivp_engine/one_step.py
"""Generic one-step driver and the Euler step strategies.

A one-step method is a driver loop plus a pluggable step strategy:

    state_{n+1} = step(dfs, t_n, state_n, h)

The driver advances from ``problem.start_time`` while ``t + h < t_target`` and
then takes one final, shortened step of size ``t_target - t``. The last
snapshot therefore lands exactly on ``t_target`` regardless of whether the
span is an integer multiple of ``h``. When ``t_target == start_time`` the
final step has size zero; every strategy in this package is a no-op for
``h == 0``.

Failure semantics are permissive: non-finite right-hand side values propagate
through the state vector and are not trapped here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, cast

import numpy as np

from .errors import raise_problem_definition, require_positive_step
from .functions import DifferentiableFunction, evaluate_all
from .problems import (
    FloatArray,
    InitialValueProblem,
    InitialValueSystemProblem,
    ProblemSource,
    resolve_problem,
)
from .trajectory import Trajectory, TrajectoryBuilder

logger = logging.getLogger(__name__)

_NOT_DIFFERENTIABLE_MSG = (
    "ModifiedExplicitEulerStep needs a right-hand side exposing derivative_at"
)


# =============================================================================
# Interfaces
# =============================================================================


class ODEMethod(ABC):
    """A configured integrator that can be sampled over an interval."""

    @abstractmethod
    def interval(self, t_target: float, skip_n: int = 0) -> Trajectory:
        """Integrate from the problem's start time towards t_target.

        Args:
            t_target: Target time.
            skip_n: Emit every (skip_n + 1)-th intermediate snapshot.

        Returns:
            Trajectory of (time, state) snapshots.
        """

    def value_at(self, t: float) -> FloatArray:
        """Return the final state of ``interval(t)``."""
        return self.interval(t, 0).final_state


class OneStepStep(ABC):
    """A step strategy: a pure map from (t, state, h) to the next state."""

    @abstractmethod
    def step(
        self,
        dfs: Sequence[Any],
        t: float,
        last_values: FloatArray,
        h: float,
    ) -> FloatArray:
        """Advance one step.

        Args:
            dfs: Right-hand sides, one per state component.
            t: Current time.
            last_values: Current state.
            h: Step size (may be zero or shortened for the final step).

        Returns:
            Next state, same length as last_values.
        """


# =============================================================================
# Euler strategies
# =============================================================================


class ExplicitEulerStep(OneStepStep):
    """``next = last + h * f(t, last)``."""

    def step(
        self,
        dfs: Sequence[Any],
        t: float,
        last_values: FloatArray,
        h: float,
    ) -> FloatArray:
        return last_values + h * evaluate_all(dfs, t, last_values)


class ModifiedExplicitEulerStep(OneStepStep):
    """Taylor-2 Euler: ``next = last + h f + (h^2 / 2) f'``.

    Scalar only. ``dfs[0]`` must be a DifferentiableFunction evaluated with the
    scalar calling convention ``value_at(t, x)`` / ``derivative_at(t, x)``,
    where the derivative is the total derivative of f along the solution.
    """

    def step(
        self,
        dfs: Sequence[Any],
        t: float,
        last_values: FloatArray,
        h: float,
    ) -> FloatArray:
        if len(dfs) != 1:
            raise_problem_definition(
                name="dfs",
                expected="exactly one (scalar) right-hand side",
                got=len(dfs),
            )
        df = dfs[0]
        if not isinstance(df, DifferentiableFunction):
            raise_problem_definition(
                name="dfs[0]",
                expected=_NOT_DIFFERENTIABLE_MSG,
                got=type(df).__name__,
            )
        x = float(last_values[0])
        value = x + h * df.value_at(t, x) + (h * h / 2.0) * df.derivative_at(t, x)
        return np.array([value], dtype=np.float64)


# =============================================================================
# Driver
# =============================================================================


class OneStepMethod(ODEMethod):
    """Drive a OneStepStep from the problem's start time to a target time."""

    def __init__(
        self,
        step_method: OneStepStep,
        problem: ProblemSource,
        h: float,
    ) -> None:
        """Initialize OneStepMethod.

        Args:
            step_method: Step strategy.
            problem: Problem descriptor or zero-argument factory.
            h: Step size (> 0).
        """
        self.step_method = step_method
        self.problem: InitialValueSystemProblem = resolve_problem(problem)
        self.h = require_positive_step(h)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(step_method="
            f"{self.step_method.__class__.__name__}, h={self.h})"
        )

    def interval(self, t_target: float, skip_n: int = 0) -> Trajectory:
        problem = self.problem
        dfs = problem.dfs
        h = self.h
        step = self.step_method.step
        t_target = float(t_target)

        logger.debug(
            "One-step run: %s from t=%s to t=%s (h=%s, skip_n=%s)",
            self.step_method.__class__.__name__,
            problem.start_time,
            t_target,
            h,
            skip_n,
        )

        builder = TrajectoryBuilder(skip_n)
        t = problem.start_time
        values = problem.initial_state()
        builder.push(t, values)

        while t + h < t_target:
            values = step(dfs, t, values, h)
            t += h
            builder.offer(t, values)

        # Shortened final step so the last snapshot lands exactly on t_target.
        values = step(dfs, t, values, t_target - t)
        builder.push(t_target, values)
        return builder.build()

    def derivative_at(self, t_target: float) -> FloatArray:
        """Right-sided slope of the computed polygon at t_target.

        Integrates one step past t_target and returns the slope of the
        polygon segment that starts at or before t_target.

        Args:
            t_target: Time at which to take the slope.

        Returns:
            Slope vector, one entry per state component.
        """
        result = self.interval(float(t_target) + self.h, 0)
        idx = int(np.searchsorted(result.times, t_target, side="right"))
        idx = min(max(idx, 1), len(result) - 1)
        dt = result.times[idx] - result.times[idx - 1]
        return cast("FloatArray", (result.states[idx] - result.states[idx - 1]) / dt)

    def residual_at(self, t: float) -> float:
        """Euclidean norm of ``polygon'(t) - F(t, polygon(t))``.

        This is the a-posteriori residual that enters the Euler error bound.

        Args:
            t: Time at which to evaluate the residual.

        Returns:
            Residual norm.
        """
        slope = self.derivative_at(t)
        value = self.value_at(t)
        return float(np.linalg.norm(slope - evaluate_all(self.problem.dfs, t, value)))


# =============================================================================
# Factories and convenience runners
# =============================================================================


def make_explicit_euler_method(problem: ProblemSource, h: float) -> OneStepMethod:
    """Explicit Euler for a system of equations."""
    return OneStepMethod(ExplicitEulerStep(), problem, h)


def explicit_euler_system(
    problem: ProblemSource,
    h: float,
    t_target: float,
) -> FloatArray:
    """Approximate the state of a system at t_target with explicit Euler."""
    return make_explicit_euler_method(problem, h).value_at(t_target)


def explicit_euler_interval(
    ivp: InitialValueProblem,
    h: float,
    t_target: float,
    skip_n: int = 0,
) -> Trajectory:
    """Explicit Euler snapshots for a scalar problem.

    Piggy-backs on the system implementation.
    """
    return make_explicit_euler_method(ivp.to_system_problem(), h).interval(
        t_target, skip_n
    )


def explicit_euler(ivp: InitialValueProblem, h: float, t_target: float) -> float:
    """Approximate x(t_target) for a scalar problem with explicit Euler."""
    return float(explicit_euler_interval(ivp, h, t_target).final_state[0])


def make_modified_explicit_euler_method(
    ivp: InitialValueProblem,
    h: float,
) -> OneStepMethod:
    """Taylor-2 Euler for a scalar problem with a differentiable right-hand side."""
    return OneStepMethod(ModifiedExplicitEulerStep(), ivp.to_scalar_system(), h)


def modified_explicit_euler(
    ivp: InitialValueProblem,
    h: float,
    t_target: float,
) -> float:
    """Approximate x(t_target) with the Taylor-2 Euler method."""
    return float(make_modified_explicit_euler_method(ivp, h).value_at(t_target)[0])
