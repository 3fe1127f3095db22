"""
Linear-algebra helpers for the finite-difference boundary-value solver.

- Construction of the 1D second-difference operator on interior grid points.
- A direct linear solve with dense/sparse dispatch.

Design notes:
    * Dense systems are solved with a LAPACK LU factorization
      (scipy.linalg.lu_factor / lu_solve); sparse systems with SciPy's sparse
      LU (scipy.sparse.linalg.factorized).
    * Small sparse systems are densified first, since dense LU is faster
      below a few hundred unknowns.
    * A singular system is reported as SingularSystemError instead of
      returning inf/NaN.
"""

from __future__ import annotations

import warnings
from typing import TypeAlias, cast

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve
from scipy.sparse import csr_matrix, diags, issparse
from scipy.sparse.linalg import factorized as sparse_factorized

from .errors import SingularSystemError

DenseOperator: TypeAlias = NDArray[np.floating]
SparseOperator: TypeAlias = csr_matrix
Operator: TypeAlias = DenseOperator | SparseOperator

# Below this size, dense LU tends to be faster than sparse LU.
_DISPATCH_THRESHOLD = 350

_GRID_SIZE_ERROR = "n must be >= 1 and dx > 0; got n={n}, dx={dx}"
_OPERATOR_SQUARE_ERROR = "Operator must be square; got shape {shape}"
_RHS_SHAPE_ERROR = "rhs shape {rhs_shape} is incompatible with operator shape {shape}"
_SINGULAR_ERROR = "Linear system of size {n} is singular"


def build_second_difference(n: int, dx: float) -> csr_matrix:
    """Build the central second-difference operator on n interior points.

    Row i approximates ``u''(x_i) ~ (u_{i-1} - 2 u_i + u_{i+1}) / dx^2``. The
    neighbours of the first and last rows are the known Dirichlet values, so
    they are left out of the matrix and belong on the right-hand side.

    Args:
        n: Number of interior grid points.
        dx: Grid spacing.

    Raises:
        ValueError: If n < 1 or dx <= 0.

    Returns:
        Sparse CSR matrix of shape (n, n).
    """
    if n < 1 or not dx > 0.0:
        raise ValueError(_GRID_SIZE_ERROR.format(n=n, dx=dx))

    inv_dx2 = 1.0 / (dx * dx)
    off = np.full(n - 1, inv_dx2)
    return diags(
        [off, np.full(n, -2.0 * inv_dx2), off],
        [-1, 0, 1],
        shape=(n, n),
        format="csr",
        dtype=np.float64,
    )


def _validate_system(matrix: Operator, rhs: NDArray[np.floating]) -> int:
    shape = cast("tuple[int, int]", matrix.shape)
    if len(shape) != 2 or shape[0] != shape[1]:
        raise ValueError(_OPERATOR_SQUARE_ERROR.format(shape=shape))
    if rhs.ndim not in {1, 2} or rhs.shape[0] != shape[0]:
        raise ValueError(_RHS_SHAPE_ERROR.format(rhs_shape=rhs.shape, shape=shape))
    return shape[0]


def _dense_solve(
    matrix: DenseOperator,
    rhs: NDArray[np.floating],
) -> NDArray[np.floating]:
    n = matrix.shape[0]
    # lu_factor only warns on an exactly singular matrix.
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", LinAlgWarning)
        lu, piv = lu_factor(matrix)
    if np.any(np.diag(lu) == 0.0):
        raise SingularSystemError(_SINGULAR_ERROR.format(n=n))
    return cast("NDArray[np.floating]", lu_solve((lu, piv), rhs))


def _sparse_solve(
    matrix: SparseOperator,
    rhs: NDArray[np.floating],
) -> NDArray[np.floating]:
    n = matrix.shape[0]
    try:
        solve = sparse_factorized(matrix.tocsc())
    except RuntimeError as exc:
        raise SingularSystemError(_SINGULAR_ERROR.format(n=n)) from exc

    if rhs.ndim == 1:
        return np.asarray(solve(rhs), dtype=rhs.dtype)

    out = np.empty_like(rhs)
    for j in range(rhs.shape[1]):
        out[:, j] = solve(np.ascontiguousarray(rhs[:, j]))
    return out


def linear_solve(matrix: Operator, rhs: NDArray[np.floating]) -> NDArray[np.floating]:
    """Solve ``matrix @ y = rhs`` with dense/sparse dispatch.

    Args:
        matrix: Square dense ndarray or sparse matrix.
        rhs: 1D or 2D right-hand side.

    Raises:
        ValueError: If shapes are incompatible.
        SingularSystemError: If the matrix is singular.

    Returns:
        Solution with the same shape as rhs.
    """
    rhs_arr = np.asarray(rhs, dtype=np.float64)
    n = _validate_system(matrix, rhs_arr)

    if issparse(matrix):
        if n < _DISPATCH_THRESHOLD:
            out = _dense_solve(np.asarray(matrix.toarray(), dtype=np.float64), rhs_arr)
        else:
            out = _sparse_solve(cast("csr_matrix", matrix), rhs_arr)
    else:
        out = _dense_solve(np.asarray(matrix, dtype=np.float64), rhs_arr)

    if np.all(np.isfinite(rhs_arr)) and not np.all(np.isfinite(out)):
        raise SingularSystemError(_SINGULAR_ERROR.format(n=n))
    return out
