"""Dense linear algebra helpers used by the revised simplex and sensitivity code."""

import numpy as np

from ..errors import SingularMatrixError

PIVOT_TOL = 1e-12


def identity(n: int) -> np.ndarray:
    return np.eye(n, dtype=float)


def transpose(A: np.ndarray) -> np.ndarray:
    return np.array(A, dtype=float).T.copy()


def mat_vec(A: np.ndarray, x: np.ndarray) -> np.ndarray:
    A = np.asarray(A, dtype=float)
    x = np.asarray(x, dtype=float)
    if A.shape[1] != x.shape[0]:
        raise ValueError(f"Cannot multiply {A.shape} matrix by vector of length {x.shape[0]}.")
    return A @ x


def mat_mul(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    A = np.asarray(A, dtype=float)
    B = np.asarray(B, dtype=float)
    if A.shape[1] != B.shape[0]:
        raise ValueError(f"Cannot multiply {A.shape} by {B.shape}.")
    return A @ B


def invert(A: np.ndarray) -> np.ndarray:
    """
    Gauss-Jordan inversion with partial pivoting.
    The pivot for column i is the first row (from i down) of largest magnitude;
    a best candidate below PIVOT_TOL raises SingularMatrixError.
    """

    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Only square matrices can be inverted, got shape {A.shape}.")
    n = A.shape[0]
    aug = np.hstack([A.copy(), np.eye(n)])

    for i in range(n):
        # argmax returns the first index of the maximum, which is the tie-break we want
        piv = i + int(np.argmax(np.abs(aug[i:, i])))
        best = abs(aug[piv, i])
        if best < PIVOT_TOL:
            raise SingularMatrixError(f"Singular matrix (pivot {best:.3e} in column {i}).")
        if piv != i:
            aug[[i, piv]] = aug[[piv, i]]

        aug[i] = aug[i] / aug[i, i]
        for r in range(n):
            if r == i:
                continue
            factor = aug[r, i]
            if abs(factor) < 1e-15:
                continue
            aug[r] -= factor * aug[i]

    return aug[:, n:].copy()
