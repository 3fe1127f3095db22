# src/ivp_engine/runge_kutta.py
"""Explicit Runge-Kutta methods parameterized by a Butcher tableau.

A tableau ``(cs, bs, coeffs)`` defines an s-stage explicit method:

    k_i  = F(t + cs[i] h, x + h * sum_{j<i} coeffs[i][j] k_j)
    next = x + h * sum_i bs[i] k_i

Row ``i`` of ``coeffs`` has exactly ``i`` entries, so no stage depends on
itself or on a later stage; stage 0 always samples the unmodified state.

Every named method below is just a different set of constants fed into the
same :class:`ExplicitRungeKuttaStep` engine.

References:
    Hairer, E., Norsett, S. P., & Wanner, G. (1993). "Solving Ordinary
    Differential Equations I: Non-stiff Problems".
    Dormand, J. R., & Prince, P. J. (1980). "A family of embedded Runge-Kutta
    formulae". J. Comput. Appl. Math. 6(1), 19-26.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from .errors import raise_invalid_tableau
from .functions import evaluate_all
from .one_step import OneStepMethod, OneStepStep
from .problems import FloatArray, ProblemSource

_CONSISTENCY_ATOL = 1e-12


@dataclass(frozen=True, slots=True)
class Tableau:
    """Butcher tableau of an explicit Runge-Kutta method.

    Attributes:
        cs: Stage abscissas, length s.
        bs: Output weights, length s.
        coeffs: Strictly lower-triangular stage coupling; row i has i entries.
        order: Optional nominal order of the method (informational).
    """

    cs: tuple[float, ...]
    bs: tuple[float, ...]
    coeffs: tuple[tuple[float, ...], ...]
    order: int | None = None

    def __post_init__(self) -> None:
        cs = tuple(float(c) for c in self.cs)
        bs = tuple(float(b) for b in self.bs)
        coeffs = tuple(tuple(float(a) for a in row) for row in self.coeffs)

        if not cs:
            raise_invalid_tableau("a tableau needs at least one stage")
        if not (len(cs) == len(bs) == len(coeffs)):
            raise_invalid_tableau(
                f"len(cs)={len(cs)}, len(bs)={len(bs)} and "
                f"len(coeffs)={len(coeffs)} must be equal"
            )
        for idx, row in enumerate(coeffs):
            if len(row) != idx:
                raise_invalid_tableau(
                    f"coeffs[{idx}] has {len(row)} entries; explicit methods "
                    f"need exactly {idx}"
                )

        object.__setattr__(self, "cs", cs)
        object.__setattr__(self, "bs", bs)
        object.__setattr__(self, "coeffs", coeffs)

    @property
    def stages(self) -> int:
        """Number of stages s."""
        return len(self.cs)

    def is_consistent(self) -> bool:
        """Return True if the output weights sum to one."""
        return abs(sum(self.bs) - 1.0) <= _CONSISTENCY_ATOL

    def satisfies_row_sum(self) -> bool:
        """Return True if ``cs[i] == sum(coeffs[i])`` for every stage."""
        return all(
            abs(c - sum(row)) <= _CONSISTENCY_ATOL
            for c, row in zip(self.cs, self.coeffs, strict=True)
        )

    def as_arrays(self) -> tuple[FloatArray, FloatArray, FloatArray]:
        """Return (A, b, c) as dense arrays; A is s x s strictly lower-triangular."""
        s = self.stages
        a_mat = np.zeros((s, s), dtype=np.float64)
        for idx, row in enumerate(self.coeffs):
            a_mat[idx, :idx] = row
        return (
            a_mat,
            np.asarray(self.bs, dtype=np.float64),
            np.asarray(self.cs, dtype=np.float64),
        )


class ExplicitRungeKuttaStep(OneStepStep):
    """One-step strategy evaluating an explicit tableau."""

    def __init__(self, tableau: Tableau) -> None:
        self.tableau = tableau
        self._cs = tableau.cs
        self._bs = np.asarray(tableau.bs, dtype=np.float64)
        self._rows = [np.asarray(row, dtype=np.float64) for row in tableau.coeffs]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(stages={self.tableau.stages})"

    def stage_slopes(
        self,
        dfs: Sequence[Any],
        t: float,
        last_values: FloatArray,
        h: float,
    ) -> FloatArray:
        """Compute the stage slopes k_0..k_{s-1}.

        Args:
            dfs: Right-hand sides.
            t: Current time.
            last_values: Current state.
            h: Step size.

        Returns:
            Array of shape (s, dim); row i is k_i.
        """
        ks = np.empty((self.tableau.stages, last_values.size), dtype=np.float64)
        for idx, c in enumerate(self._cs):
            if idx == 0:
                sample_state = last_values
            else:
                sample_state = last_values + h * (self._rows[idx] @ ks[:idx])
            ks[idx] = evaluate_all(dfs, t + h * c, sample_state)
        return ks

    def step(
        self,
        dfs: Sequence[Any],
        t: float,
        last_values: FloatArray,
        h: float,
    ) -> FloatArray:
        ks = self.stage_slopes(dfs, t, last_values, h)
        return last_values + h * (self._bs @ ks)


# =============================================================================
# Named tableaus
# =============================================================================

CLASSIC_RK4 = Tableau(
    cs=(0.0, 0.5, 0.5, 1.0),
    bs=(1.0 / 6.0, 1.0 / 3.0, 1.0 / 3.0, 1.0 / 6.0),
    coeffs=((), (0.5,), (0.0, 0.5), (0.0, 0.0, 1.0)),
    order=4,
)

ENGLAND = Tableau(
    cs=(0.0, 0.5, 0.5, 1.0),
    bs=(1.0 / 6.0, 0.0, 2.0 / 3.0, 1.0 / 6.0),
    coeffs=((), (0.5,), (0.25, 0.25), (0.0, -1.0, 2.0)),
    order=4,
)

THREE_EIGHTHS = Tableau(
    cs=(0.0, 1.0 / 3.0, 2.0 / 3.0, 1.0),
    bs=(1.0 / 8.0, 3.0 / 8.0, 3.0 / 8.0, 1.0 / 8.0),
    coeffs=((), (1.0 / 3.0,), (-1.0 / 3.0, 1.0), (1.0, -1.0, 1.0)),
    order=4,
)

HEUN3 = Tableau(
    cs=(0.0, 1.0 / 3.0, 2.0 / 3.0),
    bs=(0.25, 0.0, 0.75),
    coeffs=((), (1.0 / 3.0,), (0.0, 2.0 / 3.0)),
    order=3,
)

RK2_MIDPOINT = Tableau(
    cs=(0.0, 0.5),
    bs=(0.0, 1.0),
    coeffs=((), (0.5,)),
    order=2,
)

# Embedded Heun/Euler pair (orders 2 and 1) sharing both stages.
HEUN_EULER_HIGH = Tableau(
    cs=(0.0, 1.0),
    bs=(0.5, 0.5),
    coeffs=((), (1.0,)),
    order=2,
)
HEUN_EULER_LOW = Tableau(
    cs=(0.0, 1.0),
    bs=(1.0, 0.0),
    coeffs=((), (1.0,)),
    order=1,
)

_DOPRI5_CS = (0.0, 0.2, 0.3, 0.8, 8.0 / 9.0, 1.0, 1.0)
_DOPRI5_COEFFS = (
    (),
    (0.2,),
    (3.0 / 40.0, 9.0 / 40.0),
    (44.0 / 45.0, -56.0 / 15.0, 32.0 / 9.0),
    (19372.0 / 6561.0, -25360.0 / 2187.0, 64448.0 / 6561.0, -212.0 / 729.0),
    (
        9017.0 / 3168.0,
        -355.0 / 33.0,
        46732.0 / 5247.0,
        49.0 / 176.0,
        -5103.0 / 18656.0,
    ),
    (
        35.0 / 384.0,
        0.0,
        500.0 / 1113.0,
        125.0 / 192.0,
        -2187.0 / 6784.0,
        11.0 / 84.0,
    ),
)

DOPRI5_HIGH = Tableau(
    cs=_DOPRI5_CS,
    bs=(
        35.0 / 384.0,
        0.0,
        500.0 / 1113.0,
        125.0 / 192.0,
        -2187.0 / 6784.0,
        11.0 / 84.0,
        0.0,
    ),
    coeffs=_DOPRI5_COEFFS,
    order=5,
)
DOPRI5_LOW = Tableau(
    cs=_DOPRI5_CS,
    bs=(
        5179.0 / 57600.0,
        0.0,
        7571.0 / 16695.0,
        393.0 / 640.0,
        -92097.0 / 339200.0,
        187.0 / 2100.0,
        1.0 / 40.0,
    ),
    coeffs=_DOPRI5_COEFFS,
    order=4,
)

EXPLICIT_TABLEAUS: dict[str, Tableau] = {
    "rk4": CLASSIC_RK4,
    "england": ENGLAND,
    "three-eighths": THREE_EIGHTHS,
    "heun3": HEUN3,
    "rk2": RK2_MIDPOINT,
    "heun-euler": HEUN_EULER_HIGH,
    "dopri5": DOPRI5_HIGH,
}


# =============================================================================
# Factories
# =============================================================================


def make_explicit_runge_kutta_with_tableau(
    problem: ProblemSource,
    h: float,
    tableau: Tableau,
) -> OneStepMethod:
    """Create an explicit RK method for a problem and an arbitrary tableau.

    Args:
        problem: Problem descriptor or zero-argument factory.
        h: Step size.
        tableau: Butcher tableau.

    Returns:
        OneStepMethod that can be sampled at any t.
    """
    return OneStepMethod(ExplicitRungeKuttaStep(tableau), problem, h)


def make_classic_runge_kutta(problem: ProblemSource, h: float) -> OneStepMethod:
    """Classic 4th-order Runge-Kutta."""
    return make_explicit_runge_kutta_with_tableau(problem, h, CLASSIC_RK4)


def make_england_runge_kutta(problem: ProblemSource, h: float) -> OneStepMethod:
    """England's 4th-order method."""
    return make_explicit_runge_kutta_with_tableau(problem, h, ENGLAND)


def make_three_eight_runge_kutta(problem: ProblemSource, h: float) -> OneStepMethod:
    """Kutta's 3/8 rule."""
    return make_explicit_runge_kutta_with_tableau(problem, h, THREE_EIGHTHS)


def make_2nd_order_runge_kutta(problem: ProblemSource, h: float) -> OneStepMethod:
    """Two-stage midpoint method of order 2."""
    return make_explicit_runge_kutta_with_tableau(problem, h, RK2_MIDPOINT)


def make_heun_method(problem: ProblemSource, h: float) -> OneStepMethod:
    """Heun's method of order 3."""
    return make_explicit_runge_kutta_with_tableau(problem, h, HEUN3)
