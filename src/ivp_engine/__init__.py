"""ivp_engine: fixed-step, multistep and adaptive integrators for ODE IVPs."""

from __future__ import annotations

import logging

from .batch import (
    convergence_order,
    convergence_orders,
    explicit_euler_test_run,
    parallel_map,
    run_step_sizes,
)
from .boundary_value import solve_bvp
from .config import IntegratorConfig
from .embedded_rk import (
    AdaptiveConfig,
    AdaptiveStats,
    DtControllerConfig,
    EmbeddedRungeKuttaMethod,
    make_dopri5,
    make_embedded_explicit_runge_kutta_with_tableau,
    make_embedded_rk_1st_order,
)
from .errors import (
    ConvergenceError,
    HistoryWindowError,
    IvpEngineError,
    ProblemDefinitionError,
    RetryBudgetExceededError,
    SingularSystemError,
    StepSizeError,
    StepSizeUnderflowError,
    TableauError,
)
from .functions import (
    ClosureDifferentiableFunction,
    ClosureFunction,
    DifferentiableFunction,
    SampleableFunction,
    SimpleDifferentiableFunction,
    SimpleFunction,
)
from .implicit_euler import ImplicitEulerStep, implicit_euler, implicit_euler_interval
from .k_step import KStepMethod, KStepStep
from .multistep import (
    AdamsBashforth2,
    AdamsBashforth3,
    MilneSimpson,
    Nystroem3,
    QuadraticDecayAdamsMoulton,
    QuadraticDecayMilneSimpson,
    make_adams_bashforth_2_method,
    make_adams_bashforth_3_method,
    make_milne_simpson_method,
    make_nystroem_3_method,
)
from .newton import newton_method
from .one_step import (
    ExplicitEulerStep,
    ModifiedExplicitEulerStep,
    ODEMethod,
    OneStepMethod,
    OneStepStep,
    explicit_euler,
    explicit_euler_interval,
    explicit_euler_system,
    make_explicit_euler_method,
    make_modified_explicit_euler_method,
    modified_explicit_euler,
)
from .problems import (
    BoundaryValueProblem,
    InitialValueProblem,
    InitialValueSystemProblem,
    Interval,
    Point2D,
    make_supporting_points,
)
from .quadrature import (
    kepler_formula,
    newton_three_eight_formula,
    quadrature,
    quadrature_test_run,
    trapezoid_formula,
)
from .runge_kutta import (
    CLASSIC_RK4,
    DOPRI5_HIGH,
    DOPRI5_LOW,
    ENGLAND,
    HEUN3,
    THREE_EIGHTHS,
    ExplicitRungeKuttaStep,
    Tableau,
    make_2nd_order_runge_kutta,
    make_classic_runge_kutta,
    make_england_runge_kutta,
    make_explicit_runge_kutta_with_tableau,
    make_heun_method,
    make_three_eight_runge_kutta,
)
from .stability import rk_stability_function, sample_stability_area
from .trajectory import Trajectory

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CLASSIC_RK4",
    "DOPRI5_HIGH",
    "DOPRI5_LOW",
    "ENGLAND",
    "HEUN3",
    "THREE_EIGHTHS",
    "AdamsBashforth2",
    "AdamsBashforth3",
    "AdaptiveConfig",
    "AdaptiveStats",
    "BoundaryValueProblem",
    "ClosureDifferentiableFunction",
    "ClosureFunction",
    "ConvergenceError",
    "DifferentiableFunction",
    "DtControllerConfig",
    "EmbeddedRungeKuttaMethod",
    "ExplicitEulerStep",
    "ExplicitRungeKuttaStep",
    "HistoryWindowError",
    "ImplicitEulerStep",
    "InitialValueProblem",
    "InitialValueSystemProblem",
    "IntegratorConfig",
    "Interval",
    "IvpEngineError",
    "KStepMethod",
    "KStepStep",
    "MilneSimpson",
    "ModifiedExplicitEulerStep",
    "Nystroem3",
    "ODEMethod",
    "OneStepMethod",
    "OneStepStep",
    "Point2D",
    "ProblemDefinitionError",
    "QuadraticDecayAdamsMoulton",
    "QuadraticDecayMilneSimpson",
    "RetryBudgetExceededError",
    "SampleableFunction",
    "SimpleDifferentiableFunction",
    "SimpleFunction",
    "SingularSystemError",
    "StepSizeError",
    "StepSizeUnderflowError",
    "Tableau",
    "TableauError",
    "Trajectory",
    "convergence_order",
    "convergence_orders",
    "explicit_euler",
    "explicit_euler_interval",
    "explicit_euler_system",
    "explicit_euler_test_run",
    "implicit_euler",
    "implicit_euler_interval",
    "kepler_formula",
    "make_2nd_order_runge_kutta",
    "make_adams_bashforth_2_method",
    "make_adams_bashforth_3_method",
    "make_classic_runge_kutta",
    "make_dopri5",
    "make_embedded_explicit_runge_kutta_with_tableau",
    "make_embedded_rk_1st_order",
    "make_england_runge_kutta",
    "make_explicit_euler_method",
    "make_explicit_runge_kutta_with_tableau",
    "make_heun_method",
    "make_milne_simpson_method",
    "make_modified_explicit_euler_method",
    "make_nystroem_3_method",
    "make_supporting_points",
    "make_three_eight_runge_kutta",
    "modified_explicit_euler",
    "newton_method",
    "newton_three_eight_formula",
    "parallel_map",
    "quadrature",
    "quadrature_test_run",
    "rk_stability_function",
    "run_step_sizes",
    "sample_stability_area",
    "solve_bvp",
    "trapezoid_formula",
]

__version__ = "0.1.0"
