import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

import numpy as np
from pydantic import BaseModel

from ..lp.simplex import SimplexRun, make_solver
from ..observer import IterationObserver, NullObserver
from ..schemas import CanonicalModel, Result, SolveOptions, SolveStatus

logger = logging.getLogger(__name__)

FRACTION_SNAP = 1e-9
INTEGRAL_TOL = 1e-6


class Cut(BaseModel):
    """A <= row appended to the model, and the relaxation vertex it cuts off."""

    kind: Literal["gomory", "bound"]
    coefficients: List[float]
    rhs: float
    vertex: List[float]
    variable: int

    def violated_by(self, point: List[float], tol: float = 1e-9) -> bool:
        return float(np.dot(self.coefficients, point)) > self.rhs + tol


@dataclass
class CutOutcome:
    result: Result
    cuts: List[Cut] = field(default_factory=list)


class CuttingPlane:
    """
    Iterated LP relaxation with cuts until the integer variables come out integral.
    Pure-integer models with integral data get Gomory fractional cuts; anything else
    falls back to the bound cut x_j <= floor(v).
    """

    title = "Cutting Plane"

    def __init__(self, options: Optional[SolveOptions] = None, observer: Optional[IterationObserver] = None) -> None:
        self.options = options or SolveOptions()
        self.observer = observer or NullObserver()
        self.solver = make_solver(self.options, NullObserver())

    def solve(self, model: CanonicalModel) -> Result:
        return self.search(model).result

    def search(self, model: CanonicalModel) -> CutOutcome:
        self.observer.log_header(self.title)
        try:
            return self._search(model)
        except Exception as exc:
            logger.debug("cutting plane failed", exc_info=True)
            self.observer.log(f"Error in {self.title}: {exc}")
            return CutOutcome(Result.failed(SolveStatus.ERROR, message=str(exc)))

    def _search(self, model: CanonicalModel) -> CutOutcome:
        opts = self.options
        integer_vars = model.integer_indices()
        current = model.clone()
        cuts: List[Cut] = []

        while True:
            run = self.solver.run(current)
            relaxation = run.result
            if relaxation.status != SolveStatus.OPTIMAL or relaxation.solution is None:
                self.observer.log(f"Relaxation is {relaxation.status.value} after {len(cuts)} cuts.")
                return CutOutcome(
                    Result.failed(relaxation.status, iterations=len(cuts), message=relaxation.message), cuts
                )

            solution = relaxation.solution
            objective = float(np.dot(model.c, solution))
            self.observer.log(f"Relaxation {len(cuts)}: Z = {relaxation.objective:.3f}")
            self.observer.log_vector("Solution", solution, 3, model.names())

            var_idx = _first_fractional(solution, integer_vars, opts.int_tol)
            if var_idx is None:
                snapped = [float(round(v)) if j in integer_vars else v for j, v in enumerate(solution)]
                self.observer.log(f"Integral solution after {len(cuts)} cuts.")
                return CutOutcome(
                    Result.solved(
                        SolveStatus.OPTIMAL_INTEGER,
                        float(np.dot(model.c, snapped)),
                        snapped,
                        len(cuts),
                        f"Cuts added: {len(cuts)}",
                    ),
                    cuts,
                )

            if len(cuts) >= opts.max_cuts:
                logger.warning("Cut limit of %d reached", opts.max_cuts)
                self.observer.log(f"Cut limit of {opts.max_cuts} reached.")
                return CutOutcome(
                    Result.solved(
                        SolveStatus.CUT_LIMIT,
                        objective,
                        solution,
                        len(cuts),
                        f"Cut limit of {opts.max_cuts} reached; last relaxation returned.",
                    ),
                    cuts,
                )

            cut = None
            if is_pure_integer(current):
                cut = gomory_cut(run, var_idx)
                if cut is not None and not cut.violated_by(solution):
                    logger.debug("gomory cut on %d does not separate the vertex", var_idx)
                    cut = None
            if cut is None:
                cut = bound_cut(current.n, var_idx, solution)

            cuts.append(cut)
            current = current.with_row(cut.coefficients, "<=", cut.rhs)
            self.observer.log(f"Cut {len(cuts)} ({cut.kind}): {_describe(cut, model.names())}")


def _first_fractional(values: List[float], integer_vars: List[int], tol: float) -> Optional[int]:
    for idx in integer_vars:
        if abs(values[idx] - round(values[idx])) > tol:
            return idx
    return None


def is_pure_integer(model: CanonicalModel) -> bool:
    """True when every variable is integer and A, b are integral, so every slack is integer too."""
    if any(kind not in ("int", "bin") for kind in model.variable_kinds):
        return False
    values = [v for row in model.A for v in row] + list(model.b)
    return all(abs(v - round(v)) <= FRACTION_SNAP for v in values)


def bound_cut(n: int, var_idx: int, solution: List[float]) -> Cut:
    row = [0.0] * n
    row[var_idx] = 1.0
    return Cut(
        kind="bound",
        coefficients=row,
        rhs=float(math.floor(solution[var_idx])),
        vertex=list(solution),
        variable=var_idx,
    )


def gomory_cut(run: SimplexRun, var_idx: int) -> Optional[Cut]:
    """
    Gomory fractional cut from the tableau row where `var_idx` is basic:
    sum f_k x_k >= f0 over nonbasic columns, rewritten in the original variables
    by substituting each slack or surplus through its defining row.
    """
    meta = run.meta
    column = meta["components"][var_idx][0][0]
    if run.basis is None or column not in run.basis:
        return None

    tableau = run.tableau()
    row = tableau.matrix[run.basis.index(column)]
    f0 = _fraction(row[-1])
    if f0 == 0.0:
        return None

    n = run.model.n
    artificials = set(meta["artificial_indices"])
    slack_rows: Dict[int, Tuple[int, float]] = {
        col: (i, sign) for i, (col, sign) in enumerate(meta["row_slack"]) if col >= 0
    }

    coefficients = np.zeros(n)
    constant = 0.0
    for k in range(tableau.n):
        if k in run.basis or k in artificials:
            continue
        f_k = _fraction(row[k])
        if f_k == 0.0:
            continue
        if k < n:
            coefficients[k] += f_k
        elif k in slack_rows:
            i, sign = slack_rows[k]
            coefficients -= f_k * run.A[i, :n] / sign
            constant += f_k * run.b[i] / sign

    # sum coef x >= f0 - constant, stored as a <= row
    le_coefficients = [_integral(-v) for v in coefficients]
    le_rhs = _integral(constant - f0)
    return Cut(
        kind="gomory",
        coefficients=le_coefficients,
        rhs=le_rhs,
        vertex=list(run.result.solution or []),
        variable=var_idx,
    )


def _fraction(value: float) -> float:
    f = value - math.floor(value)
    if f < FRACTION_SNAP or f > 1.0 - FRACTION_SNAP:
        return 0.0
    return float(f)


def _integral(value: float) -> float:
    nearest = round(value)
    if abs(value - nearest) <= INTEGRAL_TOL:
        return float(nearest) + 0.0
    return float(value)


def _describe(cut: Cut, names: List[str]) -> str:
    terms = [f"{coef:g}*{name}" for coef, name in zip(cut.coefficients, names) if coef != 0.0]
    return f"{' + '.join(terms) or '0'} <= {cut.rhs:g}"
