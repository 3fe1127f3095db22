# src/ivp_engine/batch.py
"""Batch execution of independent integration runs.

The drivers themselves are single-threaded. Convergence studies run the same
driver over a ladder of step sizes; those runs share nothing mutable (problem
descriptors are immutable and every driver owns its working state), so they
are mapped over a thread pool. Results always come back in input order.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

import numpy as np

from .one_step import ODEMethod, explicit_euler_interval
from .problems import FloatArray, InitialValueProblem, ProblemSource
from .trajectory import Trajectory

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

MethodFactory = Callable[[ProblemSource, float], ODEMethod]

_LENGTH_ERROR_MSG = "hs and errors must have the same length; got {n_h} and {n_e}"
_ORDER_INPUT_ERROR_MSG = "errors and step sizes must be finite and > 0"


def parallel_map(
    fn: Callable[[T], R],
    items: Iterable[T],
    max_workers: int | None = None,
) -> list[R]:
    """Apply fn to every item on a thread pool, preserving input order.

    Args:
        fn: Function applied to each item.
        items: Inputs.
        max_workers: Pool size (None: executor default). ``1`` runs serially.

    Returns:
        List of results, positionally matching items.
    """
    work = list(items)
    if max_workers == 1 or len(work) <= 1:
        return [fn(item) for item in work]

    with ThreadPoolExecutor(max_workers=max_workers) as ex:
        return list(ex.map(fn, work))


def step_size_ladder(first: int = 1, last: int = 15) -> FloatArray:
    """Return ``[2^-first, ..., 2^-last]``."""
    return 2.0 ** -np.arange(first, last + 1, dtype=np.float64)


def run_step_sizes(
    method_factory: MethodFactory,
    problem: ProblemSource,
    hs: Sequence[float],
    t_target: float,
    skip_n: int = 0,
    *,
    max_workers: int | None = None,
) -> list[Trajectory]:
    """Run one driver per step size.

    Args:
        method_factory: Builds a driver from (problem, h), e.g.
            ``make_classic_runge_kutta``.
        problem: Problem descriptor or zero-argument factory.
        hs: Step sizes.
        t_target: Target time.
        skip_n: Decimation passed to every run.
        max_workers: Thread pool size.

    Returns:
        One trajectory per step size, in the order of hs.
    """
    logger.debug("Batch run over %s step sizes to t=%s", len(hs), t_target)

    def _run(h: float) -> Trajectory:
        return method_factory(problem, h).interval(t_target, skip_n)

    return parallel_map(_run, hs, max_workers=max_workers)


def explicit_euler_test_run(
    ivp: InitialValueProblem,
    hs: Sequence[float],
    t_target: float,
    skip_n: int = 0,
    *,
    max_workers: int | None = None,
) -> list[Trajectory]:
    """Explicit Euler snapshots of a scalar problem for every step size."""
    return parallel_map(
        lambda h: explicit_euler_interval(ivp, h, t_target, skip_n),
        hs,
        max_workers=max_workers,
    )


def final_state_errors(
    trajectories: Sequence[Trajectory],
    exact: Sequence[float] | FloatArray | float,
) -> FloatArray:
    """Max-norm error of every trajectory's final state against exact."""
    target = np.atleast_1d(np.asarray(exact, dtype=np.float64))
    return np.array(
        [float(np.max(np.abs(tr.final_state - target))) for tr in trajectories],
        dtype=np.float64,
    )


def convergence_order(err1: float, h1: float, err2: float, h2: float) -> float:
    """Empirical order ``p`` with ``err ~ h^p`` from two runs.

    Raises:
        ValueError: If an error or step size is not finite and > 0.
    """
    values = (err1, h1, err2, h2)
    if not all(math.isfinite(v) and v > 0.0 for v in values):
        raise ValueError(_ORDER_INPUT_ERROR_MSG)
    return (math.log(err2) - math.log(err1)) / (math.log(h2) - math.log(h1))


def convergence_orders(
    hs: Sequence[float],
    errors: Sequence[float],
) -> FloatArray:
    """Orders between successive (h, error) pairs; length ``len(hs) - 1``."""
    if len(hs) != len(errors):
        raise ValueError(_LENGTH_ERROR_MSG.format(n_h=len(hs), n_e=len(errors)))
    return np.array(
        [
            convergence_order(errors[i], hs[i], errors[i + 1], hs[i + 1])
            for i in range(len(hs) - 1)
        ],
        dtype=np.float64,
    )
