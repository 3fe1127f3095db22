# src/ivp_engine/boundary_value.py
"""Finite-difference solver for ``u''(x) = ddf(x)`` with Dirichlet values.

The interval is split into ``n_grid + 1`` cells of width ``h``. With the
central difference ``u'' ~ (u_{i-1} - 2 u_i + u_{i+1}) / h^2`` at each of the
``n_grid`` interior points, the unknowns satisfy a tridiagonal system

    D2 u = ddf(x_i)

where the known boundary values, divided by ``h^2``, are moved to the
right-hand side of the first and last rows.
"""

from __future__ import annotations

import logging

import numpy as np

from .errors import raise_problem_definition
from .functions import sample
from .matrix_ops import build_second_difference, linear_solve
from .problems import BoundaryValueProblem, FloatArray, make_supporting_points

logger = logging.getLogger(__name__)


def bvp_grid(problem: BoundaryValueProblem, n_grid: int) -> FloatArray:
    """Return the n_grid interior points of the problem's interval."""
    return make_supporting_points(n_grid + 1, problem.interval)[1:-1]


def solve_bvp(problem: BoundaryValueProblem, n_grid: int) -> FloatArray:
    """Approximate u at the interior grid points.

    Args:
        problem: Boundary-value problem.
        n_grid: Number of interior points, excluding the two boundary points;
            ``h = span / (n_grid + 1)``.

    Raises:
        ProblemDefinitionError: If n_grid < 1.
        SingularSystemError: If the linear system cannot be solved.

    Returns:
        Array of n_grid values, matching :func:`bvp_grid`.
    """
    if isinstance(n_grid, bool) or int(n_grid) != n_grid or n_grid < 1:
        raise_problem_definition(name="n_grid", expected="an integer >= 1", got=n_grid)
    n_grid = int(n_grid)

    h = problem.interval.span() / (n_grid + 1)
    grid = bvp_grid(problem, n_grid)

    rhs = np.array([sample(problem.ddf, float(x)) for x in grid], dtype=np.float64)
    rhs[0] -= problem.start_value / (h * h)
    rhs[-1] -= problem.end_value / (h * h)

    matrix = build_second_difference(n_grid, h)
    logger.debug("Solving BVP on %s interior points (h=%s)", n_grid, h)
    return linear_solve(matrix, rhs)
