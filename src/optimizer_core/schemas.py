from enum import Enum
from typing import List, Literal, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field, model_validator

Sense = Literal["min", "max"]
Cmp = Literal["<=", ">=", "=="]
VarKind = Literal["free", "nonneg", "nonpos", "int", "bin"]
PivotRule = Literal["dantzig", "bland"]
Method = Literal["tableau", "revised"]


class CanonicalModel(BaseModel):
    """Dense LP/ILP description: optimise c^T x subject to A x (<=, >=, ==) b."""

    name: str = "problem"
    sense: Sense
    A: List[List[float]]
    b: List[float]
    c: List[float]
    signs: List[Cmp]
    variable_kinds: List[VarKind]
    variable_names: Optional[List[str]] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "CanonicalModel":
        m, n = len(self.b), len(self.c)
        if len(self.A) != m:
            raise ValueError(f"A has {len(self.A)} rows but b has {m} entries.")
        for idx, row in enumerate(self.A):
            if len(row) != n:
                raise ValueError(f"Row {idx} of A has {len(row)} entries, expected {n}.")
        if len(self.signs) != m:
            raise ValueError(f"Expected {m} constraint signs, got {len(self.signs)}.")
        if len(self.variable_kinds) != n:
            raise ValueError(f"Expected {n} variable kinds, got {len(self.variable_kinds)}.")
        if self.variable_names is not None and len(self.variable_names) != n:
            raise ValueError(f"Expected {n} variable names, got {len(self.variable_names)}.")
        return self

    @property
    def m(self) -> int:
        return len(self.b)

    @property
    def n(self) -> int:
        return len(self.c)

    def names(self) -> List[str]:
        if self.variable_names is not None:
            return list(self.variable_names)
        return [f"x{j + 1}" for j in range(self.n)]

    def integer_indices(self) -> List[int]:
        return [j for j, kind in enumerate(self.variable_kinds) if kind in ("int", "bin")]

    def matrices(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        A = np.array(self.A, dtype=float).reshape(self.m, self.n)
        return A, np.array(self.b, dtype=float), np.array(self.c, dtype=float)

    def clone(self) -> "CanonicalModel":
        return self.model_copy(deep=True)

    def with_row(self, coefficients: List[float], sign: Cmp, rhs: float) -> "CanonicalModel":
        """Return a clone with one extra constraint row appended."""
        if len(coefficients) != self.n:
            raise ValueError(f"New row has {len(coefficients)} coefficients, expected {self.n}.")
        new_model = self.clone()
        new_model.A.append([float(v) for v in coefficients])
        new_model.b.append(float(rhs))
        new_model.signs.append(sign)
        return new_model

    def with_bound(self, index: int, value: float, upper: bool) -> "CanonicalModel":
        row = [0.0] * self.n
        row[index] = 1.0
        return self.with_row(row, "<=" if upper else ">=", value)

    def relaxed(self) -> "CanonicalModel":
        """Continuous relaxation: integers become x >= 0, binaries also get x <= 1."""
        new_model = self.clone()
        for j, kind in enumerate(self.variable_kinds):
            if kind in ("int", "bin"):
                new_model.variable_kinds[j] = "nonneg"
            if kind == "bin":
                new_model = new_model.with_bound(j, 1.0, upper=True)
        return new_model


class SolveOptions(BaseModel):
    max_iters: int = 10_000
    tol: float = 1e-9
    pivot_rule: PivotRule = "dantzig"
    method: Method = "tableau"
    big_m: float = 1e6
    int_tol: float = 1e-6
    max_nodes: int = Field(default=20, ge=1)
    max_cuts: int = Field(default=20, ge=0)
    return_duals: bool = True


class SolveStatus(str, Enum):
    OPTIMAL = "optimal"
    OPTIMAL_INTEGER = "optimal_integer"
    UNBOUNDED = "unbounded"
    INFEASIBLE = "infeasible"
    CUT_LIMIT = "cut_limit"
    ITERATION_LIMIT = "iteration_limit"
    ERROR = "error"

    @property
    def has_solution(self) -> bool:
        return self in (SolveStatus.OPTIMAL, SolveStatus.OPTIMAL_INTEGER, SolveStatus.CUT_LIMIT)


class Result(BaseModel):
    status: SolveStatus
    objective: Optional[float] = None
    solution: Optional[List[float]] = None
    iterations: int = 0
    message: str = ""

    @model_validator(mode="after")
    def _check_outcome(self) -> "Result":
        if self.status.has_solution:
            if self.objective is None or self.solution is None:
                raise ValueError(f"Status '{self.status.value}' requires an objective and a solution.")
        elif self.objective is not None or self.solution is not None:
            raise ValueError(f"Status '{self.status.value}' cannot carry a solution.")
        return self

    @classmethod
    def failed(cls, status: SolveStatus, iterations: int = 0, message: str = "") -> "Result":
        return cls(status=status, objective=None, solution=None, iterations=iterations, message=message)

    @classmethod
    def solved(
        cls,
        status: SolveStatus,
        objective: float,
        solution: List[float],
        iterations: int,
        message: str = "",
    ) -> "Result":
        return cls(
            status=status,
            objective=round3(objective),
            solution=[_clean(v) for v in solution],
            iterations=iterations,
            message=message,
        )


class BranchDecision(BaseModel):
    variable: int
    value: float
    is_upper: bool


class Range(BaseModel):
    """Closed interval; None stands for an infinite end."""

    lower: Optional[float]
    upper: Optional[float]

    def contains(self, value: float, tol: float = 1e-9) -> bool:
        if self.lower is not None and value < self.lower - tol:
            return False
        if self.upper is not None and value > self.upper + tol:
            return False
        return True


def round3(value: float) -> float:
    rounded = float(np.round(value, 3))
    return 0.0 if rounded == 0 else rounded


def _clean(value: float) -> float:
    value = float(value)
    if abs(value) < 1e-12:
        return 0.0
    return value
