import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel

from ..errors import OptimizerError
from ..lp.dual_simplex import DualSimplex
from ..lp.simplex import FEASIBILITY_TOL, SimplexRun
from ..lp.utils import reconstruct_solution, structural_row
from ..observer import IterationObserver, NullObserver
from ..schemas import Cmp, Range, Result, Sense, SolveOptions, SolveStatus

logger = logging.getLogger(__name__)

PIVOT_EPS = 1e-12


@dataclass
class SensitivityState:
    """
    Post-optimal snapshot of a simplex run, in standard-form column indices.
    `y` holds shadow prices per standard-form row in the model's own sense;
    `r_n` holds the objective-row entries of the nonbasic columns (>= 0 at optimality).
    """

    basic_indices: List[int]
    nonbasic_indices: List[int]
    binv: np.ndarray
    x_b: np.ndarray
    y: np.ndarray
    r_n: np.ndarray
    z: float
    sense: Sense
    body: np.ndarray
    reduced: np.ndarray
    costs: List[float]
    rhs: List[float]
    meta: Dict[str, Any]
    model_rows: int

    @property
    def sense_factor(self) -> float:
        return 1.0 if self.sense == "max" else -1.0

    def column_of(self, var_index: int) -> tuple:
        parts = self.meta["components"][var_index]
        if len(parts) != 1:
            raise ValueError(f"Variable {var_index} is free and split over two columns; ranging is not defined.")
        return parts[0]


class SensitivityReport(BaseModel):
    objective: float
    shadow_prices: List[float]
    rhs_ranges: List[Range]
    objective_ranges: List[Range]
    basic_variables: List[str]


def sensitivity_state(run: SimplexRun) -> SensitivityState:
    if not run.is_optimal or run.basis is None:
        raise ValueError("Sensitivity analysis needs an optimal simplex run.")

    meta = run.meta
    basis = list(run.basis)
    artificials = set(meta["artificial_indices"])
    # artificial columns carry no cost once the basis is feasible
    c = np.asarray(meta["objective_structural"], dtype=float)

    binv = run.basis_inverse()
    x_b = binv @ run.b
    y_std = c[basis] @ binv
    body = binv @ run.A
    reduced = y_std @ run.A - c
    reduced[basis] = 0.0

    nonbasic = [j for j in range(run.A.shape[1]) if j not in basis and j not in artificials]
    sense_factor = 1.0 if run.model.sense == "max" else -1.0
    row_factor = np.array([-sense_factor if flipped else sense_factor for flipped in meta["row_flipped"]])

    return SensitivityState(
        basic_indices=basis,
        nonbasic_indices=nonbasic,
        binv=binv,
        x_b=x_b,
        y=y_std * row_factor,
        r_n=reduced[nonbasic],
        z=float(np.dot(run.model.c, run.result.solution)),
        sense=run.model.sense,
        body=body,
        reduced=reduced,
        costs=list(run.model.c),
        rhs=list(run.model.b),
        meta=meta,
        model_rows=run.model.m,
    )


def shadow_prices(state: SensitivityState) -> List[float]:
    """Marginal objective change per unit increase of each model constraint's RHS."""
    return [_clean(v) for v in state.y[: state.model_rows]]


def objective_range_nonbasic(state: SensitivityState, var_index: int) -> Range:
    """
    Range of c_j over which a nonbasic variable stays at zero, as absolute bounds on c_j
    (not as an allowed change). Only the side that can make the variable attractive is finite.
    """
    column, coef = state.column_of(var_index)
    if column in state.basic_indices:
        raise ValueError(f"Variable {var_index} is basic; use objective_range_basic.")

    r = float(state.reduced[column])
    current = float(state.costs[var_index])
    # a change d in c_j shifts the max-form column cost by sense_factor * coef * d
    factor = state.sense_factor * coef
    limit = r / factor
    if factor > 0:
        return Range(lower=None, upper=_clean(current + limit))
    return Range(lower=_clean(current + limit), upper=None)


def objective_range_basic(state: SensitivityState, var_index: int) -> Range:
    """Range of c_j over which the current basis stays optimal, for a basic variable."""
    column, coef = state.column_of(var_index)
    if column not in state.basic_indices:
        raise ValueError(f"Variable {var_index} is nonbasic; use objective_range_nonbasic.")

    row = state.body[state.basic_indices.index(column)]
    lower, upper = -np.inf, np.inf
    for j in state.nonbasic_indices:
        alpha = row[j]
        if abs(alpha) <= PIVOT_EPS:
            continue
        limit = -state.reduced[j] / alpha
        if alpha > 0:
            lower = max(lower, limit)
        else:
            upper = min(upper, limit)

    factor = state.sense_factor * coef
    current = float(state.costs[var_index])
    if factor < 0:
        lower, upper = -upper, -lower
    return Range(
        lower=None if np.isinf(lower) else _clean(current + lower),
        upper=None if np.isinf(upper) else _clean(current + upper),
    )


def rhs_range(state: SensitivityState, constraint: int) -> Range:
    """Range of b_k over which the current basis stays primal feasible."""
    if not 0 <= constraint < state.model_rows:
        raise ValueError(f"Constraint index {constraint} out of range.")

    u = state.binv[:, constraint]
    low, high = -np.inf, np.inf
    for i, value in enumerate(u):
        if value > PIVOT_EPS:
            low = max(low, -state.x_b[i] / value)
        elif value < -PIVOT_EPS:
            high = min(high, -state.x_b[i] / value)

    if state.meta["row_flipped"][constraint]:
        low, high = -high, -low
    current = float(state.rhs[constraint])
    return Range(
        lower=None if np.isinf(low) else _clean(current + low),
        upper=None if np.isinf(high) else _clean(current + high),
    )


def new_activity_reduced_cost(state: SensitivityState, column: Sequence[float], cost: float) -> float:
    """
    Reduced cost of a candidate variable with constraint column `column` and objective
    coefficient `cost`. For a max model a positive value means it would improve the objective;
    for a min model a negative value does.
    """
    if len(column) != state.model_rows:
        raise ValueError(f"Column has {len(column)} entries, expected {state.model_rows}.")
    return _clean(float(cost) - float(np.dot(state.y[: state.model_rows], column)))


def sensitivity_report(run: SimplexRun) -> SensitivityReport:
    state = sensitivity_state(run)
    objective_ranges: List[Range] = []
    for j in range(run.model.n):
        if len(state.meta["components"][j]) != 1:
            objective_ranges.append(Range(lower=None, upper=None))
        elif state.column_of(j)[0] in state.basic_indices:
            objective_ranges.append(objective_range_basic(state, j))
        else:
            objective_ranges.append(objective_range_nonbasic(state, j))
    return SensitivityReport(
        objective=state.z,
        shadow_prices=shadow_prices(state),
        rhs_ranges=[rhs_range(state, k) for k in range(state.model_rows)],
        objective_ranges=objective_ranges,
        basic_variables=[state.meta["col_names"][j] for j in state.basic_indices],
    )


def add_constraint(
    run: SimplexRun,
    coefficients: Sequence[float],
    sign: Cmp,
    rhs: float,
    options: Optional[SolveOptions] = None,
    observer: Optional[IterationObserver] = None,
) -> Result:
    """
    Add a constraint to a solved model. A satisfied constraint leaves the optimum unchanged;
    otherwise the row joins the terminal tableau and the dual simplex restores feasibility.
    """
    if not run.is_optimal or run.result.solution is None:
        raise ValueError("Adding a constraint needs an optimal simplex run.")
    if len(coefficients) != run.model.n:
        raise ValueError(f"New row has {len(coefficients)} coefficients, expected {run.model.n}.")

    options = options or SolveOptions()
    observer = observer or NullObserver()
    solution = run.result.solution
    lhs = float(np.dot(coefficients, solution))
    satisfied = {
        "<=": lhs <= rhs + options.tol,
        ">=": lhs >= rhs - options.tol,
        "==": abs(lhs - rhs) <= options.tol,
    }[sign]
    if satisfied:
        observer.log("Current solution satisfies the new constraint; optimum unchanged.")
        return run.result.model_copy(update={"message": "Current solution satisfies the new constraint."})

    tableau = run.tableau()
    entries = structural_row(run.meta["components"], coefficients)
    rows = []
    if sign in ("<=", "=="):
        rows.append((entries, float(rhs)))
    if sign in (">=", "=="):
        rows.append(({idx: -v for idx, v in entries.items()}, -float(rhs)))

    for row_entries, row_rhs in rows:
        dense = np.zeros(tableau.n)
        for idx, value in row_entries.items():
            dense[idx] = value
        tableau.add_row(dense, row_rhs, f"s{tableau.m + 1}")
    observer.log_matrix("Tableau with new constraint", tableau.matrix, 3, tableau.header(), tableau.row_names())

    try:
        pivots = DualSimplex(options, observer).reoptimize(tableau)
    except OptimizerError as exc:
        logger.warning("dual simplex stopped: %s", exc)
        return Result.failed(exc.status, iterations=exc.iterations, message=str(exc))

    x_std = tableau.primal_values()
    if any(x_std[idx] > FEASIBILITY_TOL for idx in run.meta["artificial_indices"]):
        return Result.failed(
            SolveStatus.INFEASIBLE, iterations=pivots, message="Artificial variable became positive."
        )
    new_solution = reconstruct_solution(run.meta, x_std)
    objective = float(np.dot(run.model.c, new_solution))
    observer.log(f"Re-optimised: Z = {objective:.3f} after {pivots} dual pivots")
    return Result.solved(SolveStatus.OPTIMAL, objective, new_solution, pivots, "Re-optimised with dual simplex.")


def _clean(value: float) -> float:
    value = float(value)
    if abs(value) < 1e-12:
        return 0.0
    return value
