# tests/ivp_engine/test_quadrature.py
"""Tests for the composite Newton-Cotes formulas."""

from __future__ import annotations

import math

import pytest

from ivp_engine.functions import SimpleFunction
from ivp_engine.problems import Interval
from ivp_engine.quadrature import (
    QuadratureTestResult,
    get_convergence_order,
    kepler_formula,
    newton_three_eight_formula,
    quadrature,
    quadrature_test_run,
    trapezoid_formula,
)

FORMULAS = [trapezoid_formula, kepler_formula, newton_three_eight_formula]


@pytest.mark.parametrize("method", FORMULAS)
def test_linear_integrands_are_exact(method) -> None:
    """Every formula integrates 3x + 1 on [0, 2] exactly, even unsplit."""
    value = quadrature(method, lambda x: 3.0 * x + 1.0, Interval(0.0, 2.0), 1)

    assert value == pytest.approx(8.0, abs=1e-14)


@pytest.mark.parametrize("method", [kepler_formula, newton_three_eight_formula])
def test_cubic_integrands_are_exact(method) -> None:
    """Simpson and the 3/8 rule are exact for cubics."""
    f = SimpleFunction(lambda x: x**3 - 2.0 * x)

    assert quadrature(method, f, Interval(0.0, 2.0), 1) == pytest.approx(0.0, abs=1e-14)
    assert quadrature(method, f, Interval(-1.0, 3.0), 3) == pytest.approx(
        12.0, abs=1e-12
    )


def test_trapezoid_single_interval() -> None:
    """(b - a) / 2 * (f(a) + f(b))."""
    assert trapezoid_formula(lambda x: x * x, Interval(1.0, 3.0)) == 10.0


def test_reversed_interval_flips_sign() -> None:
    """Integrating from 1 to 0 gives the negated integral."""
    forward = quadrature(kepler_formula, lambda x: x * x, Interval(0.0, 1.0), 4)
    backward = quadrature(kepler_formula, lambda x: x * x, Interval(1.0, 0.0), 4)

    assert forward == pytest.approx(1.0 / 3.0)
    assert backward == pytest.approx(-forward)


@pytest.mark.parametrize(
    ("method", "order"),
    [
        (trapezoid_formula, 2),
        (kepler_formula, 4),
        (newton_three_eight_formula, 4),
    ],
)
def test_composite_order_on_sine(method, order: int) -> None:
    """sin on [0, pi]: results for 4 and 8 splits give the expected order."""
    results = quadrature_test_run(method, math.sin, 2.0, Interval(0.0, math.pi), 8)

    assert [r.splits_n for r in results] == list(range(1, 9))
    assert get_convergence_order(results[3], results[7]) == pytest.approx(
        order, abs=0.1
    )


def test_test_run_records_step_width() -> None:
    """h is span / splits_n and abs_error is |exact - value|."""
    results = quadrature_test_run(
        trapezoid_formula, lambda x: x * x, 1.0 / 3.0, Interval(0.0, 1.0), 4
    )
    last = results[-1]

    assert isinstance(last, QuadratureTestResult)
    assert last.h == 0.25
    assert last.abs_error == pytest.approx(abs(1.0 / 3.0 - last.value))


def test_serial_and_threaded_runs_agree() -> None:
    """max_workers only changes scheduling, not results."""
    args = (kepler_formula, math.exp, math.e - 1.0, Interval(0.0, 1.0), 6)

    assert quadrature_test_run(*args, max_workers=1) == quadrature_test_run(
        *args, max_workers=4
    )
