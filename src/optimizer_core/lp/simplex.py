import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

import numpy as np

from . import matrix
from .tableau import Tableau, choose_entering, choose_leaving
from .utils import artificial_level, build_standard_form, reconstruct_solution
from ..errors import InfeasibleError, IterationLimitExceeded, OptimizerError, UnboundedError
from ..observer import IterationObserver, NullObserver
from ..schemas import CanonicalModel, Result, SolveOptions, SolveStatus

logger = logging.getLogger(__name__)

FEASIBILITY_TOL = 1e-7


class Solver(Protocol):
    def solve(self, model: CanonicalModel) -> Result: ...


@dataclass
class SimplexRun:
    """Result of a relaxation solve plus the terminal basis needed for post-optimal analysis."""

    result: Result
    model: CanonicalModel
    A: np.ndarray
    b: np.ndarray
    c: np.ndarray
    meta: Dict[str, Any]
    basis: Optional[List[int]]

    @property
    def is_optimal(self) -> bool:
        return self.result.status == SolveStatus.OPTIMAL and self.basis is not None

    def basis_inverse(self) -> np.ndarray:
        if self.basis is None:
            raise ValueError("Run has no terminal basis.")
        return matrix.invert(self.A[:, self.basis])

    def tableau(self) -> Tableau:
        """Terminal tableau rebuilt from the final basis."""
        return Tableau.from_basis(self.A, self.b, self.c, self.basis, self.basis_inverse(), self.meta["col_names"])


class _SimplexBase:
    title = "Simplex"

    def __init__(self, options: Optional[SolveOptions] = None, observer: Optional[IterationObserver] = None) -> None:
        self.options = options or SolveOptions()
        self.observer = observer or NullObserver()

    def solve(self, model: CanonicalModel) -> Result:
        return self.run(model).result

    def run(self, model: CanonicalModel) -> SimplexRun:
        self.observer.log_header(self.title)
        A = np.zeros((0, 0))
        b = np.zeros(0)
        c = np.zeros(0)
        meta: Dict[str, Any] = {}
        try:
            A, b, c, meta, start = build_standard_form(model, self.options)
            try:
                basis, x_B, iterations = self._iterate(A, b, c, start, meta)
            except UnboundedError as exc:
                # a Big-M ray can exist while an artificial is still positive
                if meta["artificial_indices"]:
                    gap = self._phase_one_gap(A, b, start, meta)
                    if gap > FEASIBILITY_TOL:
                        raise InfeasibleError(
                            f"Artificial variables cannot be driven below {gap:.6g}; problem is infeasible.",
                            iterations=exc.iterations,
                        ) from exc
                raise
        except (UnboundedError, InfeasibleError) as exc:
            self.observer.log(str(exc))
            result = Result.failed(exc.status, iterations=exc.iterations, message=str(exc))
            return SimplexRun(result, model, A, b, c, meta, None)
        except OptimizerError as exc:
            logger.warning("%s stopped: %s", self.title, exc)
            self.observer.log(f"{self.title} stopped: {exc}")
            result = Result.failed(exc.status, iterations=exc.iterations, message=str(exc))
            return SimplexRun(result, model, A, b, c, meta, None)
        except Exception as exc:
            logger.debug("%s failed", self.title, exc_info=True)
            self.observer.log(f"Error in {self.title}: {exc}")
            return SimplexRun(Result.failed(SolveStatus.ERROR, message=str(exc)), model, A, b, c, meta, None)

        return self._finish(model, A, b, c, meta, basis, x_B, iterations)

    def _iterate(
        self, A: np.ndarray, b: np.ndarray, c: np.ndarray, basis: List[int], meta: Dict[str, Any]
    ) -> Tuple[List[int], np.ndarray, int]:
        raise NotImplementedError

    def _phase_one_gap(self, A: np.ndarray, b: np.ndarray, basis: List[int], meta: Dict[str, Any]) -> float:
        """Smallest total artificial level reachable from the starting basis (Bland's rule)."""
        tol = self.options.tol
        cost = np.zeros(A.shape[1])
        cost[meta["artificial_indices"]] = -1.0
        tableau = Tableau.initial(A, b, cost, basis, meta["col_names"])

        iterations = 0
        while True:
            entering = choose_entering(tableau.reduced_costs, tol, "bland")
            if entering is None:
                break
            leaving = choose_leaving(tableau.column(entering), tableau.rhs, tableau.basis, tol, "bland")
            if leaving is None:
                # objective is bounded above by zero
                break
            self._check_iterations(iterations)
            tableau.pivot(leaving, entering)
            iterations += 1

        gap = max(0.0, -tableau.objective_value)
        self.observer.log(f"Phase one: total artificial level {gap:.6g} after {iterations} pivots")
        return gap

    def _check_iterations(self, iterations: int) -> None:
        if iterations >= self.options.max_iters:
            raise IterationLimitExceeded(
                f"Iteration limit of {self.options.max_iters} exceeded.", iterations=iterations
            )

    def _finish(
        self,
        model: CanonicalModel,
        A: np.ndarray,
        b: np.ndarray,
        c: np.ndarray,
        meta: Dict[str, Any],
        basis: List[int],
        x_B: np.ndarray,
        iterations: int,
    ) -> SimplexRun:
        x_std = np.zeros(A.shape[1])
        x_std[basis] = x_B
        x_std[np.abs(x_std) < self.options.tol] = 0.0

        level = artificial_level(meta, x_std)
        if level > FEASIBILITY_TOL:
            message = f"Artificial variable remains basic at {level:.6g}; problem is infeasible."
            self.observer.log(message)
            result = Result.failed(SolveStatus.INFEASIBLE, iterations=iterations, message=message)
            return SimplexRun(result, model, A, b, c, meta, basis)

        solution = reconstruct_solution(meta, x_std)
        objective = float(np.dot(model.c, solution))
        result = Result.solved(SolveStatus.OPTIMAL, objective, solution, iterations)

        self.observer.log(f"Status: optimal, Z = {result.objective:.3f} after {iterations} iterations")
        self.observer.log_vector("Solution", solution, 3, meta["original_names"])
        return SimplexRun(result, model, A, b, c, meta, basis)


class PrimalSimplex(_SimplexBase):
    """Big-M tableau simplex."""

    title = "Primal Simplex (Big-M tableau)"

    def _iterate(self, A, b, c, basis, meta):
        tol = self.options.tol
        rule = self.options.pivot_rule
        tableau = Tableau.initial(A, b, c, basis, meta["col_names"])
        self._log_tableau(tableau, "Initial tableau")

        iterations = 0
        while True:
            entering = choose_entering(tableau.reduced_costs, tol, rule)
            if entering is None:
                break
            leaving = choose_leaving(tableau.column(entering), tableau.rhs, tableau.basis, tol, rule)
            if leaving is None:
                raise UnboundedError(
                    f"Unbounded: no positive entry in entering column {tableau.col_names[entering]}.",
                    iterations=iterations,
                )
            self._check_iterations(iterations)

            leaving_name = tableau.col_names[tableau.basis[leaving]]
            tableau.pivot(leaving, entering)
            iterations += 1
            logger.debug("pivot %d: enter %d leave row %d", iterations, entering, leaving)
            self.observer.log(
                f"Iteration {iterations}: entering {tableau.col_names[entering]}, "
                f"leaving {leaving_name}, pivot ({leaving}, {entering})"
            )
            self._log_tableau(tableau, f"Tableau after iteration {iterations}")

        return tableau.basis, tableau.rhs.copy(), iterations

    def _log_tableau(self, tableau: Tableau, title: str) -> None:
        self.observer.log_matrix(title, tableau.matrix, 3, tableau.header(), tableau.row_names())


class RevisedSimplex(_SimplexBase):
    """Same pivoting rules as PrimalSimplex, driven by an explicit basis inverse."""

    title = "Revised Primal Simplex"

    def _iterate(self, A, b, c, basis, meta):
        tol = self.options.tol
        rule = self.options.pivot_rule
        names = meta["col_names"]
        basis = list(basis)
        m = A.shape[0]

        iterations = 0
        while True:
            binv = matrix.invert(A[:, basis]) if m else np.zeros((0, 0))
            x_B = matrix.mat_vec(binv, b) if m else np.zeros(0)
            y = matrix.mat_vec(matrix.transpose(binv), c[basis]) if m else np.zeros(0)
            reduced = matrix.mat_vec(matrix.transpose(A), y) - c if m else -c.copy()
            reduced[basis] = 0.0

            self.observer.log_vector(f"x_B (iteration {iterations})", x_B, 3, [names[j] for j in basis])
            self.observer.log_vector(f"y (iteration {iterations})", y, 3)

            entering = choose_entering(reduced, tol, rule)
            if entering is None:
                return basis, x_B, iterations

            d = matrix.mat_vec(binv, A[:, entering]) if m else np.zeros(0)
            leaving = choose_leaving(d, x_B, basis, tol, rule)
            if leaving is None:
                raise UnboundedError(
                    f"Unbounded: no positive entry in entering column {names[entering]}.",
                    iterations=iterations,
                )
            self._check_iterations(iterations)

            theta = x_B[leaving] / d[leaving]
            leaving_name = names[basis[leaving]]
            basis[leaving] = entering
            iterations += 1
            logger.debug("revised pivot %d: enter %d leave row %d", iterations, entering, leaving)
            self.observer.log(
                f"Iteration {iterations}: entering {names[entering]}, leaving {leaving_name}, theta = {theta:.3f}"
            )


def make_solver(options: Optional[SolveOptions] = None, observer: Optional[IterationObserver] = None) -> _SimplexBase:
    opts = options or SolveOptions()
    if opts.method == "revised":
        return RevisedSimplex(opts, observer)
    return PrimalSimplex(opts, observer)


def simplex_solve(
    model: CanonicalModel, opts: Optional[SolveOptions] = None, observer: Optional[IterationObserver] = None
) -> Result:
    return make_solver(opts, observer).solve(model)
