# src/ivp_engine/config.py
"""Declarative integrator configuration.

This module defines a pydantic model that selects an integrator by name and
collects its knobs in one validated object, e.g. when the settings come from
a YAML or JSON file. ``build`` turns it into a ready driver; adaptive
settings translate into the native :class:`AdaptiveConfig` dataclasses.

Notes:
    - Unknown fields are allowed and ignored (``extra="allow"``), so one
      settings file can carry options for several tools.
    - Settings that do not apply to the selected method are ignored (e.g.
      ``tolerance`` for a fixed-step method).
"""

from __future__ import annotations

from functools import partial
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .embedded_rk import (
    AdaptiveConfig,
    DtControllerConfig,
    make_dopri5,
    make_embedded_rk_1st_order,
)
from .k_step import StartMethodFactory
from .multistep import MULTISTEP_FACTORIES
from .one_step import ODEMethod, make_explicit_euler_method
from .problems import ProblemSource
from .runge_kutta import EXPLICIT_TABLEAUS, make_explicit_runge_kutta_with_tableau
from .trajectory import Trajectory

OneStepName = Literal[
    "explicit-euler",
    "rk2",
    "heun3",
    "rk4",
    "england",
    "three-eighths",
    "heun-euler",
    "dopri5",
]
MultistepName = Literal[
    "adams-bashforth-2",
    "adams-bashforth-3",
    "nystroem-3",
    "milne-simpson",
]
AdaptiveName = Literal["adaptive-heun-euler", "adaptive-dopri5"]
MethodName = OneStepName | MultistepName | AdaptiveName

_ADAPTIVE_FACTORIES = {
    "adaptive-heun-euler": make_embedded_rk_1st_order,
    "adaptive-dopri5": make_dopri5,
}
_UNKNOWN_METHOD_ERROR_MSG = "Unknown method: {method}"


def one_step_factory(name: str) -> StartMethodFactory:
    """Return a ``(problem, h) -> OneStepMethod`` factory by name.

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "explicit-euler":
        return make_explicit_euler_method
    tableau = EXPLICIT_TABLEAUS.get(name)
    if tableau is None:
        raise ValueError(_UNKNOWN_METHOD_ERROR_MSG.format(method=name))
    return partial(make_explicit_runge_kutta_with_tableau, tableau=tableau)


class IntegratorConfig(BaseModel):
    """Configuration schema for choosing and tuning an integrator."""

    model_config = ConfigDict(extra="allow")

    method: MethodName = Field(
        default="rk4",
        description="Integrator name",
    )
    h: float = Field(
        default=0.01,
        gt=0.0,
        description="Step size (start step size for adaptive methods)",
    )
    skip_n: int = Field(
        default=0,
        ge=0,
        description="Emit every (skip_n + 1)-th intermediate snapshot",
    )
    start_method: OneStepName = Field(
        default="rk4",
        description="One-step method bootstrapping multistep methods",
    )

    # Adaptive stepping controls
    tolerance: float = Field(default=1e-6, gt=0.0)
    max_retries: int | None = Field(default=50, ge=0)
    progress_every: int = Field(default=500, ge=0)

    # Step-size controller controls
    safety: float = Field(default=0.9, gt=0.0)
    fac_min: float = Field(default=0.5, gt=0.0, le=1.0)
    fac_max: float = Field(default=2.0, ge=1.0)
    h_min: float = Field(default=0.0, ge=0.0)
    h_max: float = Field(default=float("inf"), gt=0.0)

    def to_adaptive_config(self) -> AdaptiveConfig:
        """Convert the adaptive settings to the native dataclasses.

        Returns:
            Fully constructed AdaptiveConfig instance.
        """
        controller = DtControllerConfig(
            safety=self.safety,
            fac_min=self.fac_min,
            fac_max=self.fac_max,
            h_min=self.h_min,
            h_max=self.h_max,
        )
        return AdaptiveConfig(
            tolerance=self.tolerance,
            max_retries=self.max_retries,
            progress_every=self.progress_every,
            controller=controller,
        )

    def build(self, problem: ProblemSource) -> ODEMethod:
        """Build the configured driver for a problem.

        Args:
            problem: Problem descriptor or zero-argument factory.

        Returns:
            Driver exposing ``interval(t_target, skip_n)``.
        """
        method = self.method
        if method in _ADAPTIVE_FACTORIES:
            return _ADAPTIVE_FACTORIES[method](
                problem,
                self.h,
                self.tolerance,
                config=self.to_adaptive_config(),
            )
        if method in MULTISTEP_FACTORIES:
            return MULTISTEP_FACTORIES[method](
                problem, self.h, one_step_factory(self.start_method)
            )
        return one_step_factory(method)(problem, self.h)

    def run(self, problem: ProblemSource, t_target: float) -> Trajectory:
        """Build the driver and integrate to t_target with the configured skip_n."""
        return self.build(problem).interval(t_target, self.skip_n)
