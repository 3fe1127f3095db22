# src/ivp_engine/embedded_rk.py
"""Adaptive step-size control with an embedded Runge-Kutta pair.

Each step attempt integrates the current state over ``current_h`` twice, once
with the higher-order tableau and once with the lower-order one, and compares
the two results with a mixed absolute/relative scaling:

    err = max_i |high_i - low_i| / (1 + |last_i|)

The step size is then updated unconditionally:

    h <- clamp(safety * (tol / err)^(1 / (lower_order + 1)), fac_min, fac_max) * h

with safety 0.9 and the factor clamped to [0.5, 2.0] by default. If
``err <= tol`` the higher-order value is accepted and ``t`` advances by the
step size that produced it; otherwise the attempt is repeated from the same
``(t, last_values)`` with the shrunk step.

A non-finite error estimate counts as ``inf`` and is always rejected. The
retry loop is bounded by ``AdaptiveConfig.max_retries`` (``None`` for an
unbounded loop). A rejection that shrinks the step below
``DtControllerConfig.h_min`` raises; after an accepted step the next step
size is raised to ``h_min`` instead.

Like the k-step driver, the loop runs while ``t < t_target`` and the last
snapshot may overshoot the target.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace

import numpy as np

from .errors import (
    raise_retry_budget_exceeded,
    raise_step_underflow,
    require_positive_step,
)
from .one_step import ODEMethod, OneStepMethod
from .problems import FloatArray, ProblemSource, resolve_problem
from .runge_kutta import (
    DOPRI5_HIGH,
    DOPRI5_LOW,
    HEUN_EULER_HIGH,
    HEUN_EULER_LOW,
    ExplicitRungeKuttaStep,
    Tableau,
)
from .trajectory import Trajectory, TrajectoryBuilder

logger = logging.getLogger(__name__)

_TOLERANCE_ERROR_MSG = "tolerance must be a finite float > 0; got {tol!r}"
_RETRIES_ERROR_MSG = "max_retries must be None or an integer >= 0; got {value!r}"
_PROGRESS_ERROR_MSG = "progress_every must be an integer >= 0; got {value!r}"
_FACTOR_ERROR_MSG = (
    "controller factors must satisfy 0 < fac_min <= 1 <= fac_max and safety > 0; "
    "got fac_min={fac_min!r}, fac_max={fac_max!r}, safety={safety!r}"
)
_BOUNDS_ERROR_MSG = (
    "h bounds must satisfy 0 <= h_min <= h_max; got {h_min!r}, {h_max!r}"
)
_LOWER_ORDER_ERROR_MSG = "lower_order must be an integer >= 1; got {value!r}"


# =============================================================================
# Configuration dataclasses
# =============================================================================


@dataclass(slots=True, frozen=True)
class DtControllerConfig:
    """Configuration for the step-size update.

    Attributes:
        safety: Safety factor applied to the optimal step-size ratio.
        fac_min: Minimum multiplicative change factor per attempt.
        fac_max: Maximum multiplicative change factor per attempt.
        h_min: Step-size floor; a rejection below it raises
            StepSizeUnderflowError, an acceptance below it is clamped up.
        h_max: Step-size ceiling; larger proposals are clipped.
    """

    safety: float = 0.9
    fac_min: float = 0.5
    fac_max: float = 2.0
    h_min: float = 0.0
    h_max: float = float("inf")

    def __post_init__(self) -> None:
        if not (
            self.safety > 0.0 and 0.0 < self.fac_min <= 1.0 <= self.fac_max
        ):
            raise ValueError(
                _FACTOR_ERROR_MSG.format(
                    fac_min=self.fac_min, fac_max=self.fac_max, safety=self.safety
                )
            )
        if not (0.0 <= self.h_min <= self.h_max):
            raise ValueError(
                _BOUNDS_ERROR_MSG.format(h_min=self.h_min, h_max=self.h_max)
            )


@dataclass(slots=True, frozen=True)
class AdaptiveConfig:
    """Configuration for error-controlled stepping.

    Attributes:
        tolerance: Bound on the scaled error estimate of an accepted step.
        max_retries: Maximum rejected attempts per step (None: unbounded).
        progress_every: Log progress at INFO every this many accepted steps
            (0 disables).
        controller: Step-size update configuration.
    """

    tolerance: float
    max_retries: int | None = 50
    progress_every: int = 500
    controller: DtControllerConfig = field(default_factory=DtControllerConfig)

    def __post_init__(self) -> None:
        if not (0.0 < self.tolerance < math.inf):
            raise ValueError(_TOLERANCE_ERROR_MSG.format(tol=self.tolerance))
        if self.max_retries is not None and (
            isinstance(self.max_retries, bool)
            or int(self.max_retries) != self.max_retries
            or self.max_retries < 0
        ):
            raise ValueError(_RETRIES_ERROR_MSG.format(value=self.max_retries))
        if (
            isinstance(self.progress_every, bool)
            or int(self.progress_every) != self.progress_every
            or self.progress_every < 0
        ):
            raise ValueError(_PROGRESS_ERROR_MSG.format(value=self.progress_every))


@dataclass(slots=True)
class AdaptiveStats:
    """Bookkeeping for the most recent ``interval`` run.

    Attributes:
        accepted: Number of accepted steps.
        rejected: Number of rejected attempts.
        accepted_errors: Error estimate of every accepted step.
        step_sizes: Step size that produced every accepted step.
    """

    accepted: int = 0
    rejected: int = 0
    accepted_errors: list[float] = field(default_factory=list)
    step_sizes: list[float] = field(default_factory=list)

    @property
    def max_accepted_error(self) -> float:
        """Largest error estimate among accepted steps (0.0 if none)."""
        return max(self.accepted_errors, default=0.0)


# =============================================================================
# Controller
# =============================================================================


def scaled_error(
    high: FloatArray,
    low: FloatArray,
    last_values: FloatArray,
) -> float:
    """Mixed absolute/relative error estimate of an embedded pair.

    Args:
        high: Higher-order result.
        low: Lower-order result.
        last_values: State at the start of the step.

    Returns:
        ``max |high - low| / (1 + |last|)``, or inf if that is not finite.
    """
    ratio = np.abs(high - low) / (1.0 + np.abs(last_values))
    err = float(np.max(ratio))
    if not math.isfinite(err):
        return math.inf
    return err


def propose_step_size(
    h: float,
    err: float,
    tolerance: float,
    lower_order: int,
    *,
    cfg: DtControllerConfig,
) -> float:
    """Propose the next step size from the current error estimate.

    Args:
        h: Step size of the attempt.
        err: Scaled error estimate of the attempt.
        tolerance: Target tolerance.
        lower_order: Order of the lower-order tableau.
        cfg: Controller configuration.

    Returns:
        Proposed step size, clipped to h_max.
    """
    if err <= 0.0:
        fac = cfg.fac_max
    else:
        exp = 1.0 / float(lower_order + 1)
        fac = cfg.safety * (tolerance / err) ** exp
        fac = min(cfg.fac_max, max(cfg.fac_min, fac))
    return min(h * fac, cfg.h_max)


class EmbeddedRungeKuttaMethod(ODEMethod):
    """Error-controlled integrator built from a pair of explicit tableaus."""

    def __init__(
        self,
        problem: ProblemSource,
        h_start: float,
        high: Tableau,
        low: Tableau,
        lower_order: int,
        config: AdaptiveConfig,
    ) -> None:
        """Initialize EmbeddedRungeKuttaMethod.

        Args:
            problem: Problem descriptor or zero-argument factory.
            h_start: Initial step size (> 0).
            high: Higher-order tableau; its result is the one accepted.
            low: Lower-order tableau used for the error estimate.
            lower_order: Order of the lower-order tableau.
            config: Tolerance, retry budget and controller settings.
        """
        if isinstance(lower_order, bool) or int(lower_order) != lower_order:
            raise ValueError(_LOWER_ORDER_ERROR_MSG.format(value=lower_order))
        if lower_order < 1:
            raise ValueError(_LOWER_ORDER_ERROR_MSG.format(value=lower_order))

        self.problem = resolve_problem(problem)
        self.h_start = require_positive_step(h_start)
        self.high = high
        self.low = low
        self.lower_order = int(lower_order)
        self.config = config
        self.current_h = self.h_start
        self.stats = AdaptiveStats()

        self._high_step = ExplicitRungeKuttaStep(high)
        self._low_step = ExplicitRungeKuttaStep(low)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(stages={self.high.stages}, "
            f"lower_order={self.lower_order}, tolerance={self.config.tolerance})"
        )

    def _attempt(
        self,
        t: float,
        last_values: FloatArray,
        h: float,
    ) -> tuple[FloatArray, FloatArray]:
        restarted = self.problem.restarted(t, last_values)
        val_high = OneStepMethod(self._high_step, restarted, h).value_at(t + h)
        val_low = OneStepMethod(self._low_step, restarted, h).value_at(t + h)
        return val_high, val_low

    def step(self, t: float, last_values: FloatArray) -> tuple[FloatArray, float]:
        """Advance one accepted step from (t, last_values).

        Updates ``current_h`` and ``stats`` as a side effect.

        Args:
            t: Current time.
            last_values: Current state.

        Raises:
            RetryBudgetExceededError: If more than max_retries attempts fail.
            StepSizeUnderflowError: If a rejection shrinks the step below h_min.

        Returns:
            (accepted state, step size that produced it).
        """
        cfg = self.config
        tol = cfg.tolerance
        retries = 0
        while True:
            h_used = self.current_h
            val_high, val_low = self._attempt(t, last_values, h_used)
            err = scaled_error(val_high, val_low, last_values)

            h_new = propose_step_size(
                h_used, err, tol, self.lower_order, cfg=cfg.controller
            )
            if err <= tol:
                # Proposals below h_min only fail on the rejection path.
                self.current_h = max(h_new, cfg.controller.h_min)
                self.stats.accepted += 1
                self.stats.accepted_errors.append(err)
                self.stats.step_sizes.append(h_used)
                return val_high, h_used

            if h_new <= 0.0 or h_new < cfg.controller.h_min:
                raise_step_underflow(h=h_new, h_min=cfg.controller.h_min, t=t)
            self.current_h = h_new

            retries += 1
            self.stats.rejected += 1
            logger.debug(
                "Rejected step at t=%s: h=%s err=%s tol=%s (retry %s)",
                t,
                h_used,
                err,
                tol,
                retries,
            )
            if cfg.max_retries is not None and retries > cfg.max_retries:
                raise_retry_budget_exceeded(
                    t=t,
                    retries=retries,
                    max_retries=cfg.max_retries,
                    err=err,
                    tol=tol,
                )

    def interval(self, t_target: float, skip_n: int = 0) -> Trajectory:
        problem = self.problem
        t_target = float(t_target)
        progress_every = self.config.progress_every

        self.current_h = self.h_start
        self.stats = AdaptiveStats()

        logger.debug(
            "Adaptive run: %s from t=%s to t=%s (h_start=%s, tol=%s, skip_n=%s)",
            self,
            problem.start_time,
            t_target,
            self.h_start,
            self.config.tolerance,
            skip_n,
        )

        builder = TrajectoryBuilder(skip_n)
        t = problem.start_time
        values = problem.initial_state()
        builder.push(t, values)

        while t < t_target:
            values, h_used = self.step(t, values)
            t += h_used
            builder.offer(t, values)

            if progress_every and self.stats.accepted % progress_every == 0:
                logger.info(
                    "Adaptive progress: t=%s h=%.6e (accepted=%s, rejected=%s)",
                    t,
                    self.current_h,
                    self.stats.accepted,
                    self.stats.rejected,
                )

        builder.flush()
        return builder.build()


# =============================================================================
# Factories
# =============================================================================


def _resolve_config(tolerance: float, config: AdaptiveConfig | None) -> AdaptiveConfig:
    if config is None:
        return AdaptiveConfig(tolerance=tolerance)
    return replace(config, tolerance=tolerance)


def make_embedded_explicit_runge_kutta_with_tableau(
    problem: ProblemSource,
    h_start: float,
    high: Tableau,
    low: Tableau,
    lower_order: int,
    tolerance: float,
    *,
    config: AdaptiveConfig | None = None,
) -> EmbeddedRungeKuttaMethod:
    """Create an adaptive method from an arbitrary embedded pair.

    Args:
        problem: Problem descriptor or zero-argument factory.
        h_start: Initial step size.
        high: Higher-order tableau.
        low: Lower-order tableau.
        lower_order: Order of ``low``.
        tolerance: Error tolerance.
        config: Optional retry/controller settings; its tolerance is
            replaced by ``tolerance``.

    Returns:
        EmbeddedRungeKuttaMethod.
    """
    return EmbeddedRungeKuttaMethod(
        problem,
        h_start,
        high,
        low,
        lower_order,
        _resolve_config(tolerance, config),
    )


def make_embedded_rk_1st_order(
    problem: ProblemSource,
    h_start: float,
    tolerance: float,
    *,
    config: AdaptiveConfig | None = None,
) -> EmbeddedRungeKuttaMethod:
    """Heun/Euler pair (orders 2 and 1)."""
    return make_embedded_explicit_runge_kutta_with_tableau(
        problem,
        h_start,
        HEUN_EULER_HIGH,
        HEUN_EULER_LOW,
        1,
        tolerance,
        config=config,
    )


def make_dopri5(
    problem: ProblemSource,
    h_start: float,
    tolerance: float,
    *,
    config: AdaptiveConfig | None = None,
) -> EmbeddedRungeKuttaMethod:
    """Dormand-Prince 5(4)."""
    return make_embedded_explicit_runge_kutta_with_tableau(
        problem,
        h_start,
        DOPRI5_HIGH,
        DOPRI5_LOW,
        4,
        tolerance,
        config=config,
    )
