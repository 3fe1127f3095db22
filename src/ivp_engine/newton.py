# src/ivp_engine/newton.py
"""Scalar Newton iteration for equations ``g(t, x) = 0`` in x."""

from __future__ import annotations

import logging
import math

from .errors import ConvergenceError
from .functions import DifferentiableFunction

logger = logging.getLogger(__name__)

_MAX_ITER_MSG = (
    "Newton's method did not reach |g| <= {eps!r} within {max_iter} iterations "
    "(t={t!r}, last x={x!r}, |g|={residual!r})."
)
_ZERO_DERIVATIVE_MSG = "Newton's method hit a zero derivative at t={t!r}, x={x!r}."


def newton_step(func: DifferentiableFunction, t: float, x: float) -> float:
    """Return ``x - g(t, x) / g'(t, x)``.

    Raises:
        ConvergenceError: If the derivative is zero.
    """
    slope = float(func.derivative_at(t, x))
    if slope == 0.0:
        raise ConvergenceError(_ZERO_DERIVATIVE_MSG.format(t=t, x=x))
    return x - float(func.value_at(t, x)) / slope


def newton_method(
    func: DifferentiableFunction,
    t: float,
    start_x: float,
    eps: float,
    max_iter: int = 100,
) -> float:
    """Find a root of ``x -> func(t, x)`` starting from start_x.

    The start value is returned untouched when ``|g(t, start_x)| < eps``.
    Otherwise Newton steps are taken until ``|g(t, x)| <= eps``.

    Args:
        func: Function of (t, x), differentiable in x.
        t: Fixed first argument.
        start_x: Initial guess.
        eps: Residual tolerance.
        max_iter: Maximum number of Newton steps.

    Raises:
        ConvergenceError: If the tolerance is not reached within max_iter
            steps or a zero derivative is hit.

    Returns:
        Approximate root.
    """
    if abs(float(func.value_at(t, start_x))) < eps:
        return float(start_x)

    current = newton_step(func, t, float(start_x))
    for iteration in range(1, max_iter + 1):
        residual = abs(float(func.value_at(t, current)))
        if residual <= eps:
            logger.debug(
                "Newton converged after %s steps (|g|=%s)", iteration, residual
            )
            return current
        if iteration == max_iter or not math.isfinite(residual):
            break
        current = newton_step(func, t, current)

    raise ConvergenceError(
        _MAX_ITER_MSG.format(
            eps=eps,
            max_iter=max_iter,
            t=t,
            x=current,
            residual=abs(float(func.value_at(t, current))),
        )
    )
