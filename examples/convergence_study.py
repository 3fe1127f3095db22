# ivp_engine/examples/convergence_study.py
"""Empirical convergence orders and an adaptive SIR run.

This example demonstrates the driver families side by side:

- One-step drivers (Euler, RK4) and k-step drivers (AB3, Milne-Simpson) are run
  over a ladder of step sizes on ``x' = -x`` and their errors at t = 1 are
  plotted on log-log axes. The slopes are the empirical orders.
- A normalized SIR system ``(S, I, R)`` is integrated with the adaptive
  DOPRI5 controller and with fixed-step RK4; the adaptive step sizes are
  plotted next to the compartments.

This script saves plots to disk (no interactive windows).
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from ivp_engine import (
    InitialValueSystemProblem,
    Trajectory,
    make_adams_bashforth_3_method,
    make_classic_runge_kutta,
    make_dopri5,
    make_explicit_euler_method,
    make_milne_simpson_method,
)
from ivp_engine.batch import (
    MethodFactory,
    convergence_orders,
    final_state_errors,
    run_step_sizes,
    step_size_ladder,
)

_OUTPUT_DIR = Path(__file__).resolve().parent / "output" / "convergence"

_METHODS: dict[str, MethodFactory] = {
    "explicit Euler": make_explicit_euler_method,
    "classic RK4": make_classic_runge_kutta,
    "Adams-Bashforth 3": make_adams_bashforth_3_method,
    "Milne-Simpson": make_milne_simpson_method,
}


def decay_problem() -> InitialValueSystemProblem:
    """``x' = -x``, ``x(0) = 1``."""
    return InitialValueSystemProblem(
        start_time=0.0,
        start_values=(1.0,),
        dfs=(lambda t, v: -v[0],),
    )


def sir_problem(
    *,
    beta: float,
    gamma: float,
    initial_infected: float,
) -> InitialValueSystemProblem:
    """Normalized SIR model with state (S, I, R).

    Args:
        beta: Transmission rate.
        gamma: Recovery rate.
        initial_infected: Initial infected fraction.

    Returns:
        Three-component problem starting at t = 0.
    """
    return InitialValueSystemProblem(
        start_time=0.0,
        start_values=(1.0 - initial_infected, initial_infected, 0.0),
        dfs=(
            lambda t, v: -beta * v[0] * v[1],
            lambda t, v: beta * v[0] * v[1] - gamma * v[1],
            lambda t, v: gamma * v[1],
        ),
    )


def conservation_drift(trajectory: Trajectory) -> float:
    """Compute max |S+I+R-1| over stored snapshots."""
    return float(np.max(np.abs(trajectory.states.sum(axis=1) - 1.0)))


def save_convergence_plot(
    hs: np.ndarray,
    errors: dict[str, np.ndarray],
    *,
    out_path: Path,
) -> None:
    """Save error-vs-h curves on log-log axes.

    Args:
        hs: Step sizes.
        errors: Final-state error per method name.
        out_path: Output path for the saved figure.
    """
    plt.figure(figsize=(7, 5))
    for name, errs in errors.items():
        mask = errs > 0.0
        plt.loglog(hs[mask], errs[mask], marker="o", label=name)
    plt.grid(visible=True, which="both")
    plt.legend()
    plt.title("Error at t = 1 for x' = -x")
    plt.xlabel("h")
    plt.ylabel("|x_h(1) - exp(-1)|")
    plt.tight_layout()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=150)
    plt.close()


def save_sir_plot(
    adaptive: Trajectory,
    fixed: Trajectory,
    *,
    out_path: Path,
) -> None:
    """Save the SIR compartments and the adaptive step sizes.

    Args:
        adaptive: DOPRI5 trajectory.
        fixed: RK4 trajectory (reference).
        out_path: Output path for the saved figure.
    """
    fig, (ax_states, ax_steps) = plt.subplots(2, 1, figsize=(8, 7), sharex=True)
    for idx, label in enumerate(("S", "I", "R")):
        ax_states.plot(fixed.times, fixed.component(idx), label=f"{label} (RK4)")
        ax_states.plot(
            adaptive.times,
            adaptive.component(idx),
            linestyle="none",
            marker=".",
            label=f"{label} (DOPRI5)",
        )
    ax_states.grid(visible=True)
    ax_states.legend(ncol=2)
    ax_states.set_ylabel("Proportion")
    ax_states.set_title(
        f"SIR, max |S+I+R-1| = {conservation_drift(adaptive):.3e} (DOPRI5)"
    )

    ax_steps.semilogy(adaptive.times[1:], adaptive.step_sizes(), marker=".")
    ax_steps.grid(visible=True, which="both")
    ax_steps.set_xlabel("Time")
    ax_steps.set_ylabel("accepted h")

    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=150)
    plt.close(fig)


def main() -> None:
    """Run the convergence study and the SIR comparison.

    Files are written to: examples/output/convergence/
    """
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    # ---------------------------------------------------------------------
    # (1) Convergence orders on x' = -x
    # ---------------------------------------------------------------------
    hs = step_size_ladder(2, 9)
    exact = math.exp(-1.0)
    errors: dict[str, np.ndarray] = {}
    for name, factory in _METHODS.items():
        trajectories = run_step_sizes(factory, decay_problem(), hs, 1.0)
        errors[name] = final_state_errors(trajectories, exact)
        mask = errors[name] > 1e-13
        orders = convergence_orders(list(hs[mask]), list(errors[name][mask]))
        print(f"{name:>18}: orders {np.round(orders, 2)}")

    save_convergence_plot(hs, errors, out_path=_OUTPUT_DIR / "orders.png")

    # ---------------------------------------------------------------------
    # (2) Adaptive DOPRI5 vs fixed-step RK4 on SIR
    # ---------------------------------------------------------------------
    problem = sir_problem(beta=0.30, gamma=1.0 / 7.0, initial_infected=0.01)
    total_time = 160.0

    dopri = make_dopri5(problem, 0.1, 1e-8)
    adaptive = dopri.interval(total_time)
    fixed = make_classic_runge_kutta(problem, 0.1).interval(total_time, skip_n=9)
    print(
        f"DOPRI5: accepted={dopri.stats.accepted} rejected={dopri.stats.rejected} "
        f"max error estimate={dopri.stats.max_accepted_error:.3e}"
    )

    save_sir_plot(adaptive, fixed, out_path=_OUTPUT_DIR / "sir_dopri5.png")


if __name__ == "__main__":
    main()
