"""Numeric function abstraction.

Everything the integrators evaluate is "something that can be sampled at a
point": a right-hand side ``f(t, state)``, a scalar test function ``f(x)`` for
quadrature, or a differentiable function for Newton's method and the
Taylor-enhanced Euler step.

Plain Python callables satisfy the sampling contract directly. The wrappers in
this module add a ``value_at``/``derivative_at`` surface and optionally carry
auxiliary data for parameterized families, e.g.::

    decay = ClosureFunction(0.5, lambda t, y, rate: -rate * y[0])
    decay(0.0, [2.0])  # -1.0
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

import numpy as np
from numpy.typing import NDArray

D = TypeVar("D")


@runtime_checkable
class SampleableFunction(Protocol):
    """Anything that can be evaluated at a point."""

    def value_at(self, *args: Any) -> Any:
        """Evaluate the function."""
        ...


@runtime_checkable
class DifferentiableFunction(SampleableFunction, Protocol):
    """A sampleable function that also exposes its derivative."""

    def derivative_at(self, *args: Any) -> Any:
        """Evaluate the derivative at the same input as value_at."""
        ...


def sample(func: Callable[..., Any] | SampleableFunction, *args: Any) -> Any:
    """Evaluate a plain callable or a SampleableFunction.

    Args:
        func: Callable or object implementing value_at.
        *args: Evaluation point.

    Returns:
        Function value at args.
    """
    value_at = getattr(func, "value_at", None)
    if value_at is not None:
        return value_at(*args)
    return func(*args)


@dataclass(frozen=True, slots=True)
class SimpleFunction:
    """Wrap a plain function pointer."""

    f: Callable[..., Any]

    def value_at(self, *args: Any) -> Any:
        return self.f(*args)

    def __call__(self, *args: Any) -> Any:
        return self.f(*args)


@dataclass(frozen=True, slots=True)
class ClosureFunction(Generic[D]):
    """Wrap a function that receives auxiliary data as its last argument.

    Attributes:
        data: Auxiliary data passed on every evaluation.
        f: Function called as ``f(*args, data)``.
    """

    data: D
    f: Callable[..., Any]

    def value_at(self, *args: Any) -> Any:
        return self.f(*args, self.data)

    def __call__(self, *args: Any) -> Any:
        return self.f(*args, self.data)


@dataclass(frozen=True, slots=True)
class SimpleDifferentiableFunction:
    """Pair of plain functions: value and derivative."""

    f: Callable[..., Any]
    df: Callable[..., Any]

    def value_at(self, *args: Any) -> Any:
        return self.f(*args)

    def derivative_at(self, *args: Any) -> Any:
        return self.df(*args)

    def __call__(self, *args: Any) -> Any:
        return self.f(*args)


@dataclass(frozen=True, slots=True)
class ClosureDifferentiableFunction(Generic[D]):
    """Value/derivative pair that both receive auxiliary data last.

    This is how Newton's method is handed an equation that depends on the
    current integration state (see :mod:`ivp_engine.implicit_euler`).
    """

    data: D
    f: Callable[..., Any]
    df: Callable[..., Any]

    def value_at(self, *args: Any) -> Any:
        return self.f(*args, self.data)

    def derivative_at(self, *args: Any) -> Any:
        return self.df(*args, self.data)

    def __call__(self, *args: Any) -> Any:
        return self.f(*args, self.data)


@dataclass(frozen=True, slots=True)
class ComposedFunction:
    """Evaluate ``outer(inner(*args))``."""

    inner: Callable[..., Any] | SampleableFunction
    outer: Callable[[Any], Any] | SampleableFunction

    def value_at(self, *args: Any) -> Any:
        return sample(self.outer, sample(self.inner, *args))

    def __call__(self, *args: Any) -> Any:
        return self.value_at(*args)


@dataclass(frozen=True, slots=True)
class DifferenceFunction:
    """Evaluate ``minuend(*args) - subtrahend(*args)`` (component-wise)."""

    minuend: Callable[..., Any] | SampleableFunction
    subtrahend: Callable[..., Any] | SampleableFunction

    def value_at(self, *args: Any) -> Any:
        left = np.asarray(sample(self.minuend, *args), dtype=float)
        right = np.asarray(sample(self.subtrahend, *args), dtype=float)
        diff = left - right
        return float(diff) if diff.ndim == 0 else diff

    def __call__(self, *args: Any) -> Any:
        return self.value_at(*args)


def evaluate_all(
    funcs: Sequence[Callable[..., Any] | SampleableFunction],
    *args: Any,
) -> NDArray[np.float64]:
    """Evaluate every function at the same point.

    Args:
        funcs: Right-hand sides (plain callables or SampleableFunctions).
        *args: Shared evaluation point, e.g. ``(t, state)``.

    Returns:
        1D float64 array with one entry per function.
    """
    return np.fromiter(
        (sample(f, *args) for f in funcs),
        dtype=np.float64,
        count=len(funcs),
    )
