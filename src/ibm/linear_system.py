"""Small dense linear solver for stencil fits."""

import warnings

import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve

from .errors import SingularSystemError


def solve(A, B, rcond_tol=1e-12):
    """Solve A X = B for several right-hand sides at once.

    Parameters
    ----------
    A : np.ndarray
        Square (n, n) matrix, n <= 4 in practice.
    B : np.ndarray
        Right-hand sides, shape (n, m).
    rcond_tol : float, optional
        A pivot smaller than `rcond_tol * max|A|` counts as singular.

    Returns
    -------
    X : np.ndarray
        Solution, shape (n, m).

    Raises
    ------
    SingularSystemError
        If A is rank deficient or the solution is not finite.
    """
    A = np.asarray(A, dtype=np.float64)
    B = np.asarray(B, dtype=np.float64)
    if A.ndim != 2 or A.shape[0] != A.shape[1] or B.shape[0] != A.shape[0]:
        raise ValueError(f"incompatible system shapes A{A.shape}, B{B.shape}")

    scale = np.max(np.abs(A)) if A.size else 0.0
    if scale == 0.0:
        raise SingularSystemError("position matrix is zero")

    # lu_factor only warns on an exactly zero pivot; the pivot check below decides
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", LinAlgWarning)
        lu, piv = lu_factor(A, check_finite=True)

    pivots = np.abs(np.diag(lu))
    if np.min(pivots) <= rcond_tol * scale:
        raise SingularSystemError(
            f"position matrix is singular (min pivot {np.min(pivots):.3e}, scale {scale:.3e})"
        )

    X = lu_solve((lu, piv), B)
    if not np.all(np.isfinite(X)):
        raise SingularSystemError("linear solve produced non-finite coefficients")
    return X
