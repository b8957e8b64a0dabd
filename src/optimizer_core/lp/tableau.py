from typing import List, Optional, Sequence

import numpy as np

from ..schemas import PivotRule


def _tie(value: float) -> float:
    return 1e-9 * max(1.0, abs(value))


def choose_entering(reduced: np.ndarray, tol: float, rule: PivotRule = "dantzig") -> Optional[int]:
    """Most negative reduced cost, lowest index on ties; Bland picks the first negative one."""
    candidates = [j for j, value in enumerate(reduced) if value < -tol]
    if not candidates:
        return None
    if rule == "bland":
        return candidates[0]
    best = candidates[0]
    for j in candidates[1:]:
        if reduced[j] < reduced[best] - _tie(reduced[best]):
            best = j
    return best


def choose_leaving(
    column: np.ndarray,
    rhs: np.ndarray,
    basis: Sequence[int],
    tol: float,
    rule: PivotRule = "dantzig",
) -> Optional[int]:
    """Minimum ratio over positive entries, lowest row on ties (lowest basic column under Bland)."""
    best_row: Optional[int] = None
    best_ratio = np.inf
    for i, value in enumerate(column):
        if value <= tol:
            continue
        ratio = rhs[i] / value
        if best_row is None or ratio < best_ratio - _tie(best_ratio):
            best_row, best_ratio = i, ratio
        elif rule == "bland" and abs(ratio - best_ratio) <= _tie(best_ratio) and basis[i] < basis[best_row]:
            best_row, best_ratio = i, ratio
    return best_row


class Tableau:
    """
    Simplex tableau: rows 0..m-1 are constraints, row m is the objective row (z_j - c_j),
    the last column is the right-hand side. Only pivot() mutates it.
    """

    def __init__(self, matrix: np.ndarray, basis: List[int], col_names: List[str]) -> None:
        self.matrix = matrix
        self.basis = list(basis)
        self.col_names = list(col_names)

    @classmethod
    def initial(cls, A: np.ndarray, b: np.ndarray, c: np.ndarray, basis: List[int], col_names: List[str]) -> "Tableau":
        m, n = A.shape
        T = np.zeros((m + 1, n + 1))
        T[:m, :n] = A
        T[:m, n] = b
        c_B = c[basis] if basis else np.zeros(0)
        T[m, :n] = c_B @ A - c
        T[m, n] = c_B @ b
        return cls(T, basis, col_names)

    @classmethod
    def from_basis(
        cls, A: np.ndarray, b: np.ndarray, c: np.ndarray, basis: List[int], binv: np.ndarray, col_names: List[str]
    ) -> "Tableau":
        m, n = A.shape
        T = np.zeros((m + 1, n + 1))
        T[:m, :n] = binv @ A
        T[:m, n] = binv @ b
        c_B = c[basis] if basis else np.zeros(0)
        T[m, :n] = c_B @ T[:m, :n] - c
        T[m, n] = c_B @ T[:m, n]
        tableau = cls(T, basis, col_names)
        for row, col in enumerate(basis):
            tableau._clean_column(row, col)
        return tableau

    @property
    def m(self) -> int:
        return self.matrix.shape[0] - 1

    @property
    def n(self) -> int:
        return self.matrix.shape[1] - 1

    @property
    def rhs(self) -> np.ndarray:
        return self.matrix[: self.m, -1]

    @property
    def reduced_costs(self) -> np.ndarray:
        return self.matrix[self.m, :-1]

    @property
    def objective_value(self) -> float:
        return float(self.matrix[self.m, -1])

    def column(self, j: int) -> np.ndarray:
        return self.matrix[: self.m, j]

    def primal_values(self) -> np.ndarray:
        x = np.zeros(self.n)
        for row, col in enumerate(self.basis):
            x[col] = self.matrix[row, -1]
        return x

    def copy(self) -> "Tableau":
        return Tableau(self.matrix.copy(), list(self.basis), list(self.col_names))

    def pivot(self, row: int, col: int) -> None:
        T = self.matrix
        T[row] = T[row] / T[row, col]
        for i in range(T.shape[0]):
            if i == row:
                continue
            factor = T[i, col]
            if factor != 0.0:
                T[i] -= factor * T[row]
        self._clean_column(row, col)
        self.basis[row] = col

    def _clean_column(self, row: int, col: int) -> None:
        self.matrix[:, col] = 0.0
        self.matrix[row, col] = 1.0

    def add_row(self, coefficients: np.ndarray, rhs: float, slack_name: str) -> None:
        """Append a <= row with its own slack, expressed in terms of the current basis."""
        m, n = self.m, self.n
        T = np.zeros((m + 2, n + 2))
        T[:m, :n] = self.matrix[:m, :n]
        T[:m, -1] = self.matrix[:m, -1]
        T[m + 1, :n] = self.matrix[m, :n]
        T[m + 1, -1] = self.matrix[m, -1]

        new_row = np.zeros(n + 2)
        new_row[:n] = coefficients
        new_row[n] = 1.0
        new_row[-1] = rhs
        for r, col in enumerate(self.basis):
            factor = new_row[col]
            if factor != 0.0:
                new_row -= factor * T[r]
        T[m] = new_row

        self.matrix = T
        self.basis.append(n)
        self.col_names.append(slack_name)

    def row_names(self) -> List[str]:
        return [self.col_names[col] for col in self.basis] + ["z"]

    def header(self) -> List[str]:
        return self.col_names + ["RHS"]
