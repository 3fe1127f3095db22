# src/ivp_engine/quadrature.py
"""Composite Newton-Cotes quadrature.

A quadrature formula integrates ``f`` over one sub-interval; :func:`quadrature`
applies it on each of ``n_splits`` equal sub-intervals and sums the results.

Formulas:
    - trapezoid_formula: exact for degree 1, composite order 2
    - kepler_formula (Simpson): exact for degree 3, composite order 4
    - newton_three_eight_formula: exact for degree 3, composite order 4
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from .batch import convergence_order, parallel_map
from .functions import sample
from .problems import Interval, make_supporting_points

Function1D: TypeAlias = Callable[[float], float]
QuadratureFormula: TypeAlias = Callable[[Function1D, Interval], float]


@dataclass(frozen=True, slots=True)
class QuadratureTestResult:
    """One entry of a quadrature convergence run.

    Attributes:
        value: Approximate integral.
        abs_error: ``|value - exact|``.
        splits_n: Number of sub-intervals.
        h: Sub-interval width, ``span / splits_n``.
    """

    value: float
    abs_error: float
    splits_n: int
    h: float


def trapezoid_formula(f: Function1D, interval: Interval) -> float:
    """``(b - a) / 2 * (f(a) + f(b))``."""
    a, b = interval.start, interval.end
    return (b - a) / 2.0 * (sample(f, a) + sample(f, b))


def kepler_formula(f: Function1D, interval: Interval) -> float:
    """Kepler's barrel rule (Simpson): ``(b - a) / 6 * (f(a) + 4 f(m) + f(b))``."""
    a, b = interval.start, interval.end
    mid = a + 0.5 * (b - a)
    return (b - a) / 6.0 * (sample(f, a) + 4.0 * sample(f, mid) + sample(f, b))


def newton_three_eight_formula(f: Function1D, interval: Interval) -> float:
    """Newton's 3/8 rule on the points a, a + w/3, a + 2w/3, b."""
    a, b = interval.start, interval.end
    mid1 = a + (b - a) / 3.0
    mid2 = a + 2.0 * (b - a) / 3.0
    return (b - a) / 8.0 * (
        sample(f, a) + 3.0 * sample(f, mid1) + 3.0 * sample(f, mid2) + sample(f, b)
    )


def quadrature(
    method: QuadratureFormula,
    f: Function1D,
    interval: Interval,
    n_splits: int,
) -> float:
    """Integrate f over interval with a composite formula.

    Args:
        method: Single-interval formula, e.g. kepler_formula.
        f: Integrand.
        interval: Integration interval; a reversed interval flips the sign.
        n_splits: Number of equal sub-intervals (h = span / n_splits).

    Returns:
        Approximate integral.
    """
    pts = make_supporting_points(n_splits, interval)
    return math.fsum(
        method(f, Interval(float(a), float(b)))
        for a, b in zip(pts[:-1], pts[1:], strict=True)
    )


def quadrature_test_run(
    method: QuadratureFormula,
    f: Function1D,
    exact: float,
    interval: Interval,
    up_to_splits: int,
    *,
    max_workers: int | None = None,
) -> list[QuadratureTestResult]:
    """Run the formula for every split count from 1 to up_to_splits.

    Args:
        method: Single-interval formula.
        f: Integrand.
        exact: Exact integral value.
        interval: Integration interval.
        up_to_splits: Largest number of sub-intervals.
        max_workers: Thread pool size.

    Returns:
        One result per split count, ordered by splits_n.
    """

    def _run(n: int) -> QuadratureTestResult:
        value = quadrature(method, f, interval, n)
        return QuadratureTestResult(
            value=value,
            abs_error=abs(exact - value),
            splits_n=n,
            h=interval.span() / n,
        )

    return parallel_map(_run, range(1, up_to_splits + 1), max_workers=max_workers)


def get_convergence_order(
    run1: QuadratureTestResult,
    run2: QuadratureTestResult,
) -> float:
    """Empirical order between two quadrature runs."""
    return convergence_order(run1.abs_error, run1.h, run2.abs_error, run2.h)
