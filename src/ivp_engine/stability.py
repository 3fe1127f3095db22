# src/ivp_engine/stability.py
"""Linear stability regions of explicit Runge-Kutta methods.

Applied to the test equation ``x' = lambda x`` an s-stage explicit RK method
multiplies the state by the stability function

    R(z) = 1 + z b^T (I - z A)^{-1} 1,    z = h * lambda.

The method is stable where ``|R(z)| <= 1``. The region is sampled on a
rectangular grid of the complex plane rather than traced as a contour.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable

import numpy as np

from .functions import SimpleFunction, sample
from .problems import Interval, Point2D, make_supporting_points
from .runge_kutta import Tableau

logger = logging.getLogger(__name__)


def rk_stability_function(tableau: Tableau) -> SimpleFunction:
    """Return ``z -> |R(z)|`` for an explicit tableau.

    Args:
        tableau: Butcher tableau.

    Returns:
        SimpleFunction taking a complex z and returning a float.
    """
    a_mat, b_vec, _ = tableau.as_arrays()
    identity = np.eye(tableau.stages, dtype=np.complex128)
    ones = np.ones(tableau.stages, dtype=np.complex128)

    def _abs_r(z: complex) -> float:
        stage_weights = np.linalg.solve(identity - z * a_mat, ones)
        return float(abs(1.0 + z * (b_vec @ stage_weights)))

    return SimpleFunction(_abs_r)


def sample_stability_area(
    f: Callable[[complex], float] | SimpleFunction,
    n_samples: int,
    re_interval: Interval,
    im_interval: Interval,
) -> list[Point2D]:
    """Return the grid points z with ``f(z) <= 1``.

    Args:
        f: Absolute value of a stability function.
        n_samples: Grid resolution; each axis gets n_samples + 1 points.
        re_interval: Range of the real axis.
        im_interval: Range of the imaginary axis.

    Returns:
        Points (Re z, Im z) inside the stability region.
    """
    re_samples = make_supporting_points(n_samples, re_interval)
    im_samples = make_supporting_points(n_samples, im_interval)
    logger.info(
        "Sampling stability area. Projected samples: %s",
        re_samples.size * im_samples.size,
    )

    return [
        Point2D(x=float(re), y=float(im))
        for re, im in itertools.product(re_samples, im_samples)
        if sample(f, complex(re, im)) <= 1.0
    ]
