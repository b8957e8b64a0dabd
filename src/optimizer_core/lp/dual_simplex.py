import logging
from typing import Optional

import numpy as np

from ..errors import InfeasibleError, IterationLimitExceeded
from ..observer import IterationObserver, NullObserver
from ..schemas import SolveOptions
from .tableau import Tableau

logger = logging.getLogger(__name__)


class DualSimplex:
    """
    Dual simplex on a dual-feasible tableau (objective row >= 0) whose right-hand side
    has gone negative, e.g. after a constraint was appended to an optimal tableau.
    """

    title = "Dual Simplex"

    def __init__(self, options: Optional[SolveOptions] = None, observer: Optional[IterationObserver] = None) -> None:
        self.options = options or SolveOptions()
        self.observer = observer or NullObserver()

    def reoptimize(self, tableau: Tableau) -> int:
        """Pivot `tableau` in place until primal feasible; return the pivot count."""
        tol = self.options.tol
        self.observer.log_header(self.title)
        iterations = 0
        while True:
            rhs = tableau.rhs
            leaving = _most_negative(rhs, tol)
            if leaving is None:
                return iterations

            entering = self._choose_entering(tableau, leaving)
            if entering is None:
                raise InfeasibleError(
                    f"Row {tableau.col_names[tableau.basis[leaving]]} has no negative entry; problem is infeasible.",
                    iterations=iterations,
                )
            if iterations >= self.options.max_iters:
                raise IterationLimitExceeded(
                    f"Iteration limit of {self.options.max_iters} exceeded.", iterations=iterations
                )

            leaving_name = tableau.col_names[tableau.basis[leaving]]
            tableau.pivot(leaving, entering)
            iterations += 1
            logger.debug("dual pivot %d: enter %d leave row %d", iterations, entering, leaving)
            self.observer.log(
                f"Iteration D-{iterations}: entering {tableau.col_names[entering]}, leaving {leaving_name}"
            )
            self.observer.log_matrix(
                f"Tableau after iteration D-{iterations}", tableau.matrix, 3, tableau.header(), tableau.row_names()
            )

    def _choose_entering(self, tableau: Tableau, row: int) -> Optional[int]:
        tol = self.options.tol
        reduced = tableau.reduced_costs
        pivot_row = tableau.matrix[row, :-1]
        best: Optional[int] = None
        best_ratio = np.inf
        for j, a in enumerate(pivot_row):
            if a >= -tol:
                continue
            ratio = abs(reduced[j] / a)
            if best is None or ratio < best_ratio - 1e-12:
                best, best_ratio = j, ratio
        return best


def _most_negative(values: np.ndarray, tol: float) -> Optional[int]:
    best: Optional[int] = None
    for i, value in enumerate(values):
        if value < -tol and (best is None or value < values[best]):
            best = i
    return best
