from typing import Dict, List, Optional

from pydantic import BaseModel

from ..lp.simplex import make_solver
from ..observer import IterationObserver, NullObserver
from ..schemas import CanonicalModel, Cmp, Result, Sense, SolveOptions, VarKind

# primal constraint sign -> dual variable kind, keyed by primal sense
_DUAL_KIND: Dict[Sense, Dict[Cmp, VarKind]] = {
    "max": {"<=": "nonneg", ">=": "nonpos", "==": "free"},
    "min": {">=": "nonneg", "<=": "nonpos", "==": "free"},
}

# primal variable kind -> dual constraint sign, keyed by primal sense
_DUAL_SIGN: Dict[Sense, Dict[VarKind, Cmp]] = {
    "max": {"nonneg": ">=", "int": ">=", "bin": ">=", "nonpos": "<=", "free": "=="},
    "min": {"nonneg": "<=", "int": "<=", "bin": "<=", "nonpos": ">=", "free": "=="},
}


class DualityCheck(BaseModel):
    weak: bool
    strong: bool
    note: str


class DualityReport(BaseModel):
    primal: Result
    dual: Result
    dual_model: CanonicalModel
    check: Optional[DualityCheck] = None


def build_dual(primal: CanonicalModel) -> CanonicalModel:
    """
    Construct the dual LP. Integer and binary variables are treated as continuous
    non-negative variables.
    """
    m, n = primal.m, primal.n
    transposed: List[List[float]] = [[float(primal.A[i][j]) for i in range(m)] for j in range(n)]
    return CanonicalModel(
        name=f"Dual of {primal.name}",
        sense="min" if primal.sense == "max" else "max",
        A=transposed,
        b=[float(v) for v in primal.c],
        c=[float(v) for v in primal.b],
        signs=[_DUAL_SIGN[primal.sense][kind] for kind in primal.variable_kinds],
        variable_kinds=[_DUAL_KIND[primal.sense][sign] for sign in primal.signs],
        variable_names=[f"y{i + 1}" for i in range(m)],
    )


def verify_duality(sense: Sense, z_primal: float, z_dual: float, tol: float = 1e-6) -> DualityCheck:
    if sense == "max":
        weak = z_primal <= z_dual + tol
    else:
        weak = z_primal >= z_dual - tol
    strong = abs(z_primal - z_dual) <= tol

    if strong:
        note = "Strong Duality verified (within tolerance)."
    elif weak:
        note = "Weak Duality holds but not equal within tolerance."
    else:
        note = "Weak Duality violated (check feasibility)."
    return DualityCheck(weak=weak, strong=strong, note=note)


def solve_primal_dual(
    primal: CanonicalModel,
    options: Optional[SolveOptions] = None,
    observer: Optional[IterationObserver] = None,
) -> DualityReport:
    """
    Solve the continuous relaxation of `primal` and the dual of that relaxation, then compare
    the objectives. Binary upper bounds become rows of the relaxation and so get their own dual variables.
    """
    observer = observer or NullObserver()
    solver = make_solver(options, observer)
    relaxed = primal.relaxed()
    dual_model = build_dual(relaxed)

    primal_result = solver.solve(relaxed)
    dual_result = solver.solve(dual_model)

    check = None
    if primal_result.objective is not None and dual_result.objective is not None:
        # objectives are reported to 3 decimals
        check = verify_duality(primal.sense, primal_result.objective, dual_result.objective, tol=2e-3)
        observer.log_header("Duality check")
        observer.log(f"Primal Z = {primal_result.objective:.3f}, Dual W = {dual_result.objective:.3f}")
        observer.log(check.note)
    return DualityReport(primal=primal_result, dual=dual_result, dual_model=dual_model, check=check)
