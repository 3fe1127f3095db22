# src/ivp_engine/k_step.py
"""Generic k-step (multistep) driver.

A k-step method computes the next state from the last ``k`` states:

    state_{n+1} = step(k, dfs, t_n, window, h),  window = (state_{n-k+1}, ..., state_n)

The first ``k - 1`` states after the start value come from a one-step
bootstrap method built over the same ``h``. Every bootstrap snapshot is
emitted with its true time ``start_time + i*h`` regardless of decimation.

Unlike :class:`ivp_engine.one_step.OneStepMethod`, the driver only ever
reaches times of the form ``start_time + n*h``. It loops while
``t < t_target``, so the last snapshot may overshoot ``t_target`` by less
than ``h``. Times are computed as ``start_time + n*h`` rather than
accumulated, so long runs do not drift.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from .errors import raise_window_mismatch, require_positive_step
from .one_step import ODEMethod
from .problems import FloatArray, ProblemSource, resolve_problem
from .trajectory import Trajectory, TrajectoryBuilder

logger = logging.getLogger(__name__)

StartMethodFactory = Callable[[ProblemSource, float], ODEMethod]
HistoryWindow = Sequence[FloatArray]


class KStepStep(ABC):
    """A k-step strategy reading the newest ``steps`` entries of the window.

    Strategies index the window from its end (``window[-1]`` is the state at
    ``t``, ``window[-2]`` the state at ``t - h`` and so on), so any window
    length ``k >= steps`` is accepted.
    """

    steps: int = 2

    @abstractmethod
    def step(
        self,
        k: int,
        dfs: Sequence[Any],
        t: float,
        window: HistoryWindow,
        h: float,
    ) -> FloatArray:
        """Compute the state at ``t + h``.

        Args:
            k: Window length.
            dfs: Right-hand sides.
            t: Time of the newest window entry.
            window: Last k states, oldest first.
            h: Step size.

        Returns:
            Next state vector.
        """


class KStepMethod(ODEMethod):
    """Drive a KStepStep with a sliding window of the last k states."""

    def __init__(
        self,
        problem: ProblemSource,
        h: float,
        k: int,
        step_method: KStepStep,
        start_method_gen: StartMethodFactory,
    ) -> None:
        """Initialize KStepMethod.

        Args:
            problem: Problem descriptor or zero-argument factory.
            h: Step size (> 0).
            k: Window length (>= 2 and >= step_method.steps).
            step_method: k-step strategy.
            start_method_gen: Builds the bootstrap one-step method from
                (problem, h).

        Raises:
            HistoryWindowError: If k is too small for the strategy.
        """
        name = step_method.__class__.__name__
        if isinstance(k, bool) or int(k) != k:
            raise_window_mismatch(method=name, steps=step_method.steps, k=k)
        k = int(k)
        if k < max(2, step_method.steps):
            raise_window_mismatch(method=name, steps=max(2, step_method.steps), k=k)

        self.problem = resolve_problem(problem)
        self.h = require_positive_step(h)
        self.k = k
        self.step_method = step_method
        self.start_method_gen = start_method_gen

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(step_method="
            f"{self.step_method.__class__.__name__}, h={self.h}, k={self.k})"
        )

    def bootstrap(self) -> list[FloatArray]:
        """Return the k initial window states, oldest first.

        Entry 0 is the start state; entry i is the bootstrap method sampled at
        ``start_time + i*h``.
        """
        problem = self.problem
        start_method = self.start_method_gen(problem, self.h)
        states = [problem.initial_state()]
        for idx in range(1, self.k):
            t_i = problem.start_time + idx * self.h
            states.append(np.array(start_method.value_at(t_i), dtype=np.float64))
        return states

    def interval(self, t_target: float, skip_n: int = 0) -> Trajectory:
        problem = self.problem
        dfs = problem.dfs
        h = self.h
        k = self.k
        start = problem.start_time
        step = self.step_method.step
        t_target = float(t_target)

        logger.debug(
            "k-step run: %s (k=%s) from t=%s to t=%s (h=%s, skip_n=%s)",
            self.step_method.__class__.__name__,
            k,
            start,
            t_target,
            h,
            skip_n,
        )

        builder = TrajectoryBuilder(skip_n)
        window: deque[FloatArray] = deque(maxlen=k)
        for idx, state in enumerate(self.bootstrap()):
            window.append(state)
            builder.push(start + idx * h, state)

        n = k - 1
        t = start + n * h
        while t < t_target:
            values = step(k, dfs, t, window, h)
            window.append(values)
            n += 1
            t = start + n * h
            builder.offer(t, values)

        builder.flush()
        return builder.build()
