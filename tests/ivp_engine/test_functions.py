# tests/ivp_engine/test_functions.py
"""Tests for the sampleable function wrappers."""

from __future__ import annotations

import math

import numpy as np
import pytest

from ivp_engine import functions
from ivp_engine.functions import (
    ClosureDifferentiableFunction,
    ClosureFunction,
    ComposedFunction,
    DifferenceFunction,
    DifferentiableFunction,
    SampleableFunction,
    SimpleDifferentiableFunction,
    SimpleFunction,
    evaluate_all,
    sample,
)


def test_plain_callable_is_sampled_directly() -> None:
    """sample() falls back to calling the object."""
    assert sample(math.sin, 0.0) == 0.0
    assert not isinstance(math.sin, SampleableFunction)


def test_sample_prefers_value_at_over_call() -> None:
    """Objects exposing value_at are sampled through it, not through __call__."""

    class Doubler:
        def value_at(self, x: float) -> float:
            return 2.0 * x

        def __call__(self, x: float) -> float:
            return -1.0

    assert sample(Doubler(), 3.0) == 6.0


def test_sample_skips_protocol_isinstance(monkeypatch: pytest.MonkeyPatch) -> None:
    """Dispatch is a plain attribute lookup, not a runtime Protocol check."""

    class _NoChecks(type):
        def __instancecheck__(cls, instance: object) -> bool:
            raise AssertionError("isinstance called on the hot path")

    class _Guard(metaclass=_NoChecks):
        pass

    monkeypatch.setattr(functions, "SampleableFunction", _Guard)

    assert sample(lambda t, v: v[0] + t, 1.0, [2.0]) == 3.0
    assert sample(SimpleFunction(abs), -4.0) == 4.0
    np.testing.assert_array_equal(
        evaluate_all(
            (lambda t, v: -v[0], SimpleFunction(lambda t, v: v[1])), 0.0, [1.0, 5.0]
        ),
        [-1.0, 5.0],
    )


def test_simple_function_wraps_pointer() -> None:
    """value_at and __call__ agree."""
    f = SimpleFunction(lambda x: 3.0 * x)

    assert isinstance(f, SampleableFunction)
    assert not isinstance(f, DifferentiableFunction)
    assert f.value_at(2.0) == 6.0
    assert f(2.0) == 6.0
    assert sample(f, 2.0) == 6.0


def test_closure_function_passes_data_last() -> None:
    """The auxiliary data is appended after the evaluation point."""
    decay = ClosureFunction(0.5, lambda t, y, rate: -rate * y[0])

    assert decay(0.0, [2.0]) == -1.0
    assert decay.value_at(0.0, [4.0]) == -2.0


def test_differentiable_wrappers_satisfy_protocol() -> None:
    """Both differentiable wrappers expose derivative_at."""
    plain = SimpleDifferentiableFunction(lambda x: x**3, lambda x: 3.0 * x**2)
    closure = ClosureDifferentiableFunction(
        2.0, lambda x, c: c * x * x, lambda x, c: 2.0 * c * x
    )

    assert isinstance(plain, DifferentiableFunction)
    assert isinstance(closure, DifferentiableFunction)
    assert plain.value_at(2.0) == 8.0
    assert plain.derivative_at(2.0) == 12.0
    assert closure(3.0) == 18.0
    assert closure.derivative_at(3.0) == 12.0


def test_composed_function_applies_outer_to_inner() -> None:
    """outer(inner(x)), accepting both wrappers and callables."""
    composed = ComposedFunction(SimpleFunction(lambda x: x + 1.0), math.sqrt)

    assert composed(3.0) == 2.0
    assert composed.value_at(8.0) == 3.0


def test_difference_function_scalar_and_vector() -> None:
    """Scalars come back as float, vectors as arrays."""
    scalar = DifferenceFunction(lambda x: x * x, lambda x: x)
    vector = DifferenceFunction(
        lambda x: np.array([x, 2.0 * x]), lambda x: np.array([1.0, 1.0])
    )

    assert scalar(3.0) == 6.0
    assert isinstance(scalar(3.0), float)
    np.testing.assert_array_equal(vector(2.0), [1.0, 3.0])


def test_evaluate_all_builds_float_array() -> None:
    """One entry per function, all evaluated at the same point."""
    funcs = (
        lambda t, v: v[1],
        SimpleFunction(lambda t, v: -v[0]),
        ClosureFunction(10.0, lambda t, v, c: c * t),
    )
    out = evaluate_all(funcs, 0.5, np.array([1.0, 2.0]))

    assert out.dtype == np.float64
    np.testing.assert_array_equal(out, [2.0, -1.0, 5.0])


def test_evaluate_all_rejects_non_scalar_results() -> None:
    """Each right-hand side must produce one number."""
    with pytest.raises((TypeError, ValueError)):
        evaluate_all((lambda t, v: v,), 0.0, np.array([1.0, 2.0]))
