# src/ivp_engine/multistep.py
"""Multistep strategies for :class:`ivp_engine.k_step.KStepMethod`.

General-purpose explicit formulas:
    - AdamsBashforth2, AdamsBashforth3
    - Nystroem3
    - MilneSimpson (explicit Milne predictor, Simpson corrector)

Problem-specific closed forms:
    QuadraticDecayAdamsMoulton and QuadraticDecayMilneSimpson solve the
    implicit Adams-Moulton and Milne-Simpson formulas algebraically for the
    single scalar equation ``x' = -t^2 x``. The right-hand side is baked into
    the coefficients and ``dfs`` is ignored, so these are only valid for that
    equation. They exist as a reference for how an implicit formula becomes
    explicit when the right-hand side is linear in x, not as general implicit
    solvers.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np

from .errors import raise_problem_definition
from .functions import evaluate_all
from .k_step import HistoryWindow, KStepMethod, KStepStep, StartMethodFactory
from .problems import FloatArray, InitialValueSystemProblem, ProblemSource
from .runge_kutta import make_classic_runge_kutta

# =============================================================================
# Explicit multistep formulas
# =============================================================================


class AdamsBashforth2(KStepStep):
    """``x + h (3/2 f(t, x_n) - 1/2 f(t-h, x_{n-1}))``."""

    steps = 2

    def step(
        self,
        k: int,
        dfs: Sequence[Any],
        t: float,
        window: HistoryWindow,
        h: float,
    ) -> FloatArray:
        f_n = evaluate_all(dfs, t, window[-1])
        f_n1 = evaluate_all(dfs, t - h, window[-2])
        return window[-1] + h * (1.5 * f_n - 0.5 * f_n1)


class AdamsBashforth3(KStepStep):
    """Three-step Adams-Bashforth, order 3."""

    steps = 3

    def step(
        self,
        k: int,
        dfs: Sequence[Any],
        t: float,
        window: HistoryWindow,
        h: float,
    ) -> FloatArray:
        f_n = evaluate_all(dfs, t, window[-1])
        f_n1 = evaluate_all(dfs, t - h, window[-2])
        f_n2 = evaluate_all(dfs, t - 2.0 * h, window[-3])
        return window[-1] + h * (
            (23.0 / 12.0) * f_n - (16.0 / 12.0) * f_n1 + (5.0 / 12.0) * f_n2
        )


class Nystroem3(KStepStep):
    """Three-step Nystroem method, order 3; advances from ``x_{n-1}``."""

    steps = 3

    def step(
        self,
        k: int,
        dfs: Sequence[Any],
        t: float,
        window: HistoryWindow,
        h: float,
    ) -> FloatArray:
        f_n = evaluate_all(dfs, t, window[-1])
        f_n1 = evaluate_all(dfs, t - h, window[-2])
        f_n2 = evaluate_all(dfs, t - 2.0 * h, window[-3])
        return window[-2] + h * (
            (7.0 / 3.0) * f_n - (2.0 / 3.0) * f_n1 + (1.0 / 3.0) * f_n2
        )


class MilneSimpson(KStepStep):
    """Milne predictor followed by one Simpson corrector pass.

    predictor: ``p = x_{n-3} + 4h/3 (2 f_{n-2} - f_{n-1} + 2 f_n)``
    corrector: ``x_{n+1} = x_{n-1} + h/3 (f_{n-1} + 4 f_n + f(t+h, p))``
    """

    steps = 4

    def step(
        self,
        k: int,
        dfs: Sequence[Any],
        t: float,
        window: HistoryWindow,
        h: float,
    ) -> FloatArray:
        f_n = evaluate_all(dfs, t, window[-1])
        f_n1 = evaluate_all(dfs, t - h, window[-2])
        f_n2 = evaluate_all(dfs, t - 2.0 * h, window[-3])

        predicted = window[-4] + (4.0 * h / 3.0) * (2.0 * f_n2 - f_n1 + 2.0 * f_n)
        f_pred = evaluate_all(dfs, t + h, predicted)
        return window[-2] + (h / 3.0) * (f_n1 + 4.0 * f_n + f_pred)


# =============================================================================
# Closed forms for x' = -t^2 x
# =============================================================================


def _require_scalar(dfs: Sequence[Any], method: str) -> None:
    if len(dfs) != 1:
        raise_problem_definition(
            name=f"{method} dfs",
            expected="a single equation x' = -t^2 x",
            got=len(dfs),
        )


class QuadraticDecayAdamsMoulton(KStepStep):
    """Three-step Adams-Moulton solved for ``x' = -t^2 x``.

    With ``t3 = t + h`` the implicit formula
    ``x3 = x2 + h/24 (9 f3 + 19 f2 - 5 f1 + f0)`` becomes::

        x3 = (x2 + h/24 (-19 t2^2 x2 + 5 t1^2 x1 - t0^2 x0)) / (1 + 9 h t3^2 / 24)
    """

    steps = 3

    def step(
        self,
        k: int,
        dfs: Sequence[Any],
        t: float,
        window: HistoryWindow,
        h: float,
    ) -> FloatArray:
        _require_scalar(dfs, self.__class__.__name__)
        x2 = float(window[-1][0])
        x1 = float(window[-2][0])
        x0 = float(window[-3][0])
        t3 = t + h
        t2 = t
        t1 = t - h
        t0 = t - 2.0 * h

        numerator = x2 + (h / 24.0) * (
            -19.0 * t2 * t2 * x2 + 5.0 * t1 * t1 * x1 - t0 * t0 * x0
        )
        denominator = 1.0 + 9.0 * h * t3 * t3 / 24.0
        return np.array([numerator / denominator], dtype=np.float64)


class QuadraticDecayMilneSimpson(KStepStep):
    """Milne-Simpson corrector solved for ``x' = -t^2 x``.

    With ``t4 = t + h`` the implicit formula
    ``x4 = x2 + h/3 (f2 + 4 f3 + f4)`` becomes::

        x4 = (x2 - h/3 (t2^2 x2 + 4 t3^2 x3)) / (1 + h t4^2 / 3)

    Sized like :class:`MilneSimpson` so both run with the same window.
    """

    steps = 4

    def step(
        self,
        k: int,
        dfs: Sequence[Any],
        t: float,
        window: HistoryWindow,
        h: float,
    ) -> FloatArray:
        _require_scalar(dfs, self.__class__.__name__)
        x3 = float(window[-1][0])
        x2 = float(window[-2][0])
        t4 = t + h
        t3 = t
        t2 = t - h

        numerator = x2 - (h / 3.0) * (t2 * t2 * x2 + 4.0 * t3 * t3 * x3)
        denominator = 1.0 + h * t4 * t4 / 3.0
        return np.array([numerator / denominator], dtype=np.float64)


def quadratic_decay_problem(
    start_time: float = 0.0,
    start_value: float = 1.0,
) -> InitialValueSystemProblem:
    """The one-component system ``x' = -t^2 x`` the closed forms are built for."""
    return InitialValueSystemProblem(
        start_time=start_time,
        start_values=(start_value,),
        dfs=(lambda t, state: -t * t * state[0],),
    )


def quadratic_decay_exact(
    t: float,
    start_time: float = 0.0,
    start_value: float = 1.0,
) -> float:
    """Exact solution ``x0 exp(-(t^3 - t0^3) / 3)`` of ``x' = -t^2 x``."""
    return start_value * math.exp(-(t**3 - start_time**3) / 3.0)


# =============================================================================
# Factories
# =============================================================================


def _make(
    step_method: KStepStep,
    problem: ProblemSource,
    h: float,
    start_method_gen: StartMethodFactory,
) -> KStepMethod:
    return KStepMethod(problem, h, step_method.steps, step_method, start_method_gen)


def make_adams_bashforth_2_method(
    problem: ProblemSource,
    h: float,
    start_method_gen: StartMethodFactory = make_classic_runge_kutta,
) -> KStepMethod:
    """Two-step Adams-Bashforth with a 2-entry window."""
    return _make(AdamsBashforth2(), problem, h, start_method_gen)


def make_adams_bashforth_3_method(
    problem: ProblemSource,
    h: float,
    start_method_gen: StartMethodFactory = make_classic_runge_kutta,
) -> KStepMethod:
    """Three-step Adams-Bashforth with a 3-entry window."""
    return _make(AdamsBashforth3(), problem, h, start_method_gen)


def make_nystroem_3_method(
    problem: ProblemSource,
    h: float,
    start_method_gen: StartMethodFactory = make_classic_runge_kutta,
) -> KStepMethod:
    """Three-step Nystroem with a 3-entry window."""
    return _make(Nystroem3(), problem, h, start_method_gen)


def make_milne_simpson_method(
    problem: ProblemSource,
    h: float,
    start_method_gen: StartMethodFactory = make_classic_runge_kutta,
) -> KStepMethod:
    """Milne-Simpson predictor-corrector with a 4-entry window."""
    return _make(MilneSimpson(), problem, h, start_method_gen)


def make_quadratic_decay_adams_moulton_method(
    problem: ProblemSource,
    h: float,
    start_method_gen: StartMethodFactory = make_classic_runge_kutta,
) -> KStepMethod:
    """Closed-form Adams-Moulton; only valid for ``x' = -t^2 x``."""
    return _make(QuadraticDecayAdamsMoulton(), problem, h, start_method_gen)


def make_quadratic_decay_milne_simpson_method(
    problem: ProblemSource,
    h: float,
    start_method_gen: StartMethodFactory = make_classic_runge_kutta,
) -> KStepMethod:
    """Closed-form Milne-Simpson; only valid for ``x' = -t^2 x``."""
    return _make(QuadraticDecayMilneSimpson(), problem, h, start_method_gen)


MULTISTEP_FACTORIES = {
    "adams-bashforth-2": make_adams_bashforth_2_method,
    "adams-bashforth-3": make_adams_bashforth_3_method,
    "nystroem-3": make_nystroem_3_method,
    "milne-simpson": make_milne_simpson_method,
}
