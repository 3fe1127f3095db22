# src/ivp_engine/errors.py
"""Error types and standardized raise helpers for ivp_engine.

This module centralizes:
- explicit error classes with actionable messages, and
- small helpers that build the message text in one place.

Numerical divergence (NaN/Infinity in a right-hand side) is *not* an error in
ivp_engine: it propagates through the state vector. The classes here cover
configuration mistakes and the explicit budgets of iterative components.
"""

from __future__ import annotations

from typing import Final

_STEP_SIZE_MSG: Final[str] = "Step size must be a finite float > 0; got {h!r}."
_TABLEAU_MSG: Final[str] = "Invalid Runge-Kutta tableau: {detail}"
_WINDOW_MSG: Final[str] = (
    "k-step method '{method}' needs a history window of at least {steps} "
    "entries; got k={k}."
)
_RETRY_BUDGET_MSG: Final[str] = (
    "Adaptive step at t={t!r} was rejected {retries} times (max_retries="
    "{max_retries}); last error estimate {err!r} vs tolerance {tol!r}."
)
_UNDERFLOW_MSG: Final[str] = (
    "Adaptive step size {h!r} fell below h_min={h_min!r} at t={t!r}."
)


class IvpEngineError(Exception):
    """Base exception for ivp_engine errors."""


class StepSizeError(IvpEngineError, ValueError):
    """Raised when a step size is zero, negative, or non-finite."""


class TableauError(IvpEngineError, ValueError):
    """Raised when a Butcher tableau violates the explicit-RK shape invariants."""


class HistoryWindowError(IvpEngineError, ValueError):
    """Raised when a k-step window length does not fit the k-step strategy."""


class ProblemDefinitionError(IvpEngineError, ValueError):
    """Raised when a problem descriptor is malformed for the requested method."""


class RetryBudgetExceededError(IvpEngineError, RuntimeError):
    """Raised when the adaptive controller rejects too many attempts in a row."""


class StepSizeUnderflowError(IvpEngineError, RuntimeError):
    """Raised when the adaptive step size drops below the configured floor."""


class ConvergenceError(IvpEngineError, RuntimeError):
    """Raised when Newton's method fails to reach its tolerance."""


class SingularSystemError(IvpEngineError, RuntimeError):
    """Raised when a boundary-value linear system cannot be solved."""


def require_positive_step(h: float) -> float:
    """Validate a step size and return it as a float.

    Args:
        h: Candidate step size.

    Raises:
        StepSizeError: If h is not a finite float > 0.

    Returns:
        h as a float.
    """
    try:
        h_f = float(h)
    except (TypeError, ValueError) as exc:
        raise StepSizeError(_STEP_SIZE_MSG.format(h=h)) from exc
    # NaN fails both comparisons, so it is rejected here as well.
    if not (0.0 < h_f < float("inf")):
        raise StepSizeError(_STEP_SIZE_MSG.format(h=h))
    return h_f


def raise_invalid_tableau(detail: str) -> None:
    """Raise a standardized TableauError.

    Args:
        detail: Human-readable description of the broken invariant.

    Raises:
        TableauError: Always.
    """
    raise TableauError(_TABLEAU_MSG.format(detail=detail))


def raise_window_mismatch(*, method: str, steps: int, k: int) -> None:
    """Raise a standardized HistoryWindowError.

    Args:
        method: Name of the k-step strategy.
        steps: Minimum window length the strategy reads.
        k: Window length that was requested.

    Raises:
        HistoryWindowError: Always.
    """
    raise HistoryWindowError(_WINDOW_MSG.format(method=method, steps=steps, k=k))


def raise_problem_definition(
    *,
    name: str,
    expected: str,
    got: object,
) -> None:
    """Raise a standardized ProblemDefinitionError.

    Args:
        name: Name of the offending field.
        expected: Human-readable expected value description.
        got: Actual observed value.

    Raises:
        ProblemDefinitionError: Always.
    """
    msg = f"{name} is invalid. Expected {expected}. Got: {got!r}."
    raise ProblemDefinitionError(msg)


def raise_retry_budget_exceeded(
    *,
    t: float,
    retries: int,
    max_retries: int,
    err: float,
    tol: float,
) -> None:
    """Raise a standardized RetryBudgetExceededError.

    Args:
        t: Time at which the step was being attempted.
        retries: Number of rejected attempts so far.
        max_retries: Configured retry budget.
        err: Last error estimate.
        tol: Configured tolerance.

    Raises:
        RetryBudgetExceededError: Always.
    """
    raise RetryBudgetExceededError(
        _RETRY_BUDGET_MSG.format(
            t=t,
            retries=retries,
            max_retries=max_retries,
            err=err,
            tol=tol,
        )
    )


def raise_step_underflow(*, h: float, h_min: float, t: float) -> None:
    """Raise a standardized StepSizeUnderflowError.

    Args:
        h: Proposed step size.
        h_min: Configured floor.
        t: Time at which the step was being attempted.

    Raises:
        StepSizeUnderflowError: Always.
    """
    raise StepSizeUnderflowError(_UNDERFLOW_MSG.format(h=h, h_min=h_min, t=t))
