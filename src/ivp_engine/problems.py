# src/ivp_engine/problems.py
"""Problem descriptors for initial- and boundary-value problems.

The descriptors are immutable value types. Drivers never mutate them; they
copy the start state into their own working arrays, so one descriptor can be
reused across many runs (e.g. a convergence study over a ladder of step sizes).

Right-hand sides of a system are positionally paired with state components,
but every ``dfs[i]`` is evaluated with the *full* current state vector so
coupled systems are expressed naturally::

    problem = InitialValueSystemProblem(
        start_time=0.0,
        start_values=(1.0, 0.0),
        dfs=(lambda t, v: -v[0] + v[1], lambda t, v: v[0] - v[1]),
    )
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import numpy as np
from numpy.typing import NDArray

from .errors import raise_problem_definition

FloatArray: TypeAlias = NDArray[np.float64]
RHSFunction: TypeAlias = Callable[[float, FloatArray], float]
ScalarRHSFunction: TypeAlias = Callable[[float, float], float]


@dataclass(frozen=True, slots=True)
class Interval:
    """Closed interval; reversed intervals (start > end) are allowed."""

    start: float
    end: float

    def span(self) -> float:
        """Return |end - start|."""
        return abs(self.end - self.start)


@dataclass(frozen=True, slots=True)
class Point2D:
    """A time/value (or x/y) sample."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class InitialValueSystemProblem:
    """Vector-valued IVP ``x' = F(t, x)``, ``x(start_time) = start_values``.

    Attributes:
        start_time: Initial time.
        start_values: Initial state, one entry per equation.
        dfs: Right-hand sides, one per state component. Each is called as
            ``df(t, state)`` with the full state vector.
    """

    start_time: float
    start_values: tuple[float, ...]
    dfs: tuple[Any, ...]

    def __post_init__(self) -> None:
        values = tuple(float(v) for v in np.asarray(self.start_values, dtype=float))
        dfs = tuple(self.dfs)
        if len(values) != len(dfs):
            raise_problem_definition(
                name="dfs",
                expected=f"one right-hand side per state component ({len(values)})",
                got=len(dfs),
            )
        if not values:
            raise_problem_definition(
                name="start_values",
                expected="at least one state component",
                got=values,
            )
        object.__setattr__(self, "start_time", float(self.start_time))
        object.__setattr__(self, "start_values", values)
        object.__setattr__(self, "dfs", dfs)

    @property
    def dim(self) -> int:
        """Number of state components."""
        return len(self.start_values)

    def initial_state(self) -> FloatArray:
        """Return a fresh float64 copy of the start state."""
        return np.array(self.start_values, dtype=np.float64)

    def restarted(
        self,
        start_time: float,
        start_values: Sequence[float] | FloatArray,
    ) -> InitialValueSystemProblem:
        """Return the same system started from a different point.

        Args:
            start_time: New initial time.
            start_values: New initial state.

        Returns:
            A new problem sharing the right-hand sides.
        """
        return InitialValueSystemProblem(
            start_time=start_time,
            start_values=tuple(np.asarray(start_values, dtype=float)),
            dfs=self.dfs,
        )


@dataclass(frozen=True, slots=True)
class InitialValueProblem:
    """Scalar IVP ``x' = df(t, x)``, ``x(start_time) = start_value``.

    ``df`` receives the scalar state, not a vector.
    """

    start_time: float
    start_value: float
    df: Any

    def to_system_problem(self) -> InitialValueSystemProblem:
        """Wrap this problem as a one-component system.

        The scalar right-hand side is adapted to the system calling
        convention ``df(t, state)`` by reading ``state[0]``.

        Returns:
            Equivalent InitialValueSystemProblem.
        """
        df = self.df
        return InitialValueSystemProblem(
            start_time=self.start_time,
            start_values=(self.start_value,),
            dfs=(lambda t, state: df(t, float(state[0])),),
        )

    def to_scalar_system(self) -> InitialValueSystemProblem:
        """Wrap as a one-component system that keeps ``df`` unadapted.

        Strategies that need the scalar calling convention (and possibly
        ``derivative_at``) read ``dfs[0]`` directly.

        Returns:
            One-component InitialValueSystemProblem holding ``df`` as-is.
        """
        return InitialValueSystemProblem(
            start_time=self.start_time,
            start_values=(self.start_value,),
            dfs=(self.df,),
        )


@dataclass(frozen=True, slots=True)
class BoundaryValueProblem:
    """Second-order BVP ``u''(x) = ddf(x)`` with Dirichlet values.

    Attributes:
        ddf: Right-hand side of the second derivative.
        interval: Domain.
        start_value: u(interval.start).
        end_value: u(interval.end).
    """

    ddf: Callable[[float], float]
    interval: Interval
    start_value: float
    end_value: float = field(default=0.0)


ProblemFactory: TypeAlias = Callable[[], InitialValueSystemProblem]
ProblemSource: TypeAlias = InitialValueSystemProblem | ProblemFactory


def resolve_problem(source: ProblemSource) -> InitialValueSystemProblem:
    """Return a problem instance from a value or a zero-argument factory.

    Args:
        source: Problem descriptor or factory returning one.

    Returns:
        The problem descriptor.
    """
    if isinstance(source, InitialValueSystemProblem):
        return source
    problem = source()
    if not isinstance(problem, InitialValueSystemProblem):
        raise_problem_definition(
            name="problem factory result",
            expected="an InitialValueSystemProblem",
            got=type(problem).__name__,
        )
    return problem


def make_supporting_points(n: int, interval: Interval) -> FloatArray:
    """Return n + 1 equidistant points from interval.start to interval.end.

    Args:
        n: Number of sub-intervals (>= 1).
        interval: Interval to split; reversed intervals produce a
            decreasing grid.

    Returns:
        1D array of n + 1 points; the last entry is exactly interval.end.
    """
    if n < 1:
        raise_problem_definition(name="n", expected="an integer >= 1", got=n)
    pts = np.linspace(interval.start, interval.end, int(n) + 1, dtype=np.float64)
    pts[-1] = interval.end
    return pts
