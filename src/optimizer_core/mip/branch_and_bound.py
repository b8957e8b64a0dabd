import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, Field

from ..lp.simplex import Solver, make_solver
from ..observer import IterationObserver, NullObserver
from ..schemas import BranchDecision, CanonicalModel, Result, SolveOptions, SolveStatus

logger = logging.getLogger(__name__)

PRUNE_TOL = 1e-9


class Node(BaseModel):
    """Branch-and-bound node; `bound` is the relaxation objective in maximisation form."""

    bound: float
    solution: List[float]
    depth: int = 0
    label: str = "Root"
    branch_history: List[BranchDecision] = Field(default_factory=list)
    problem: CanonicalModel


@dataclass
class SearchOutcome:
    result: Result
    visited: List[str] = field(default_factory=list)
    incumbent_history: List[float] = field(default_factory=list)


class BranchAndBound:
    """
    Best-bound branch and bound:
      - Solve the LP relaxation with the configured simplex variant
      - Branch on the most fractional integer variable with x<=floor and x>=ceil rows
      - Prune nodes whose bound cannot beat the incumbent
    """

    title = "Branch and Bound"

    def __init__(
        self,
        options: Optional[SolveOptions] = None,
        observer: Optional[IterationObserver] = None,
        solver: Optional[Solver] = None,
    ) -> None:
        self.options = options or SolveOptions()
        self.observer = observer or NullObserver()
        self.solver = solver or make_solver(self.options, NullObserver())

    def solve(self, model: CanonicalModel) -> Result:
        return self.search(model).result

    def search(self, model: CanonicalModel) -> SearchOutcome:
        self.observer.log_header(self.title)
        try:
            return self._search(model)
        except Exception as exc:
            logger.debug("branch and bound failed", exc_info=True)
            self.observer.log(f"Error in {self.title}: {exc}")
            return SearchOutcome(Result.failed(SolveStatus.ERROR, message=str(exc)))

    def _search(self, model: CanonicalModel) -> SearchOutcome:
        opts = self.options
        sense_factor = 1.0 if model.sense == "max" else -1.0
        integer_vars = model.integer_indices()

        root = self.solver.solve(model)
        if root.status != SolveStatus.OPTIMAL:
            self.observer.log(f"Root relaxation is {root.status.value}; no branching.")
            return SearchOutcome(root, ["Root"])
        if not integer_vars:
            return SearchOutcome(root, ["Root"])

        root_bound = sense_factor * _objective(model, root.solution)
        self.observer.log(f"Root relaxation: Z = {root.objective:.3f}")
        self.observer.log_vector("Root solution", root.solution, 3, model.names())

        if select_fractional(root.solution, integer_vars, opts.int_tol) is None:
            self.observer.log("Root relaxation is integral; it is the optimum.")
            solution = _snap(root.solution, integer_vars, opts.int_tol)
            result = Result.solved(
                SolveStatus.OPTIMAL_INTEGER,
                _objective(model, solution),
                solution,
                iterations=1,
                message="Root relaxation is integral.",
            )
            return SearchOutcome(result, ["Root"], [root_bound])

        frontier: List[Node] = [Node(bound=root_bound, solution=root.solution, problem=model)]
        incumbent: Optional[Node] = None
        best_value = -math.inf
        visited: List[str] = []
        history: List[float] = []
        capped = False

        while frontier:
            if len(visited) >= opts.max_nodes:
                capped = True
                logger.warning("Node cap of %d reached with %d open nodes", opts.max_nodes, len(frontier))
                self.observer.log(f"Node cap of {opts.max_nodes} reached; stopping search.")
                break

            # stable sort keeps insertion order among equal bounds
            frontier.sort(key=lambda item: -item.bound)
            node = frontier.pop(0)
            visited.append(node.label)
            self.observer.log(
                f"Node {node.label} (depth {node.depth}): Z = {sense_factor * node.bound:.3f}"
            )

            if node.bound <= best_value + PRUNE_TOL:
                self.observer.log("  Pruned: bound does not improve on the incumbent.")
                continue

            fractional = select_fractional(node.solution, integer_vars, opts.int_tol)
            if fractional is None:
                incumbent = node
                best_value = node.bound
                history.append(best_value)
                self.observer.log(f"  New incumbent: Z = {sense_factor * best_value:.3f}")
                continue

            var_idx, value = fractional
            self.observer.log(f"  Branching on {model.names()[var_idx]} = {value:.3f}")
            for upper, bound_value, suffix in (
                (True, math.floor(value), "L"),
                (False, math.ceil(value), "R"),
            ):
                child_model = node.problem.with_bound(var_idx, bound_value, upper)
                child = self._solve_child(child_model)
                decision = BranchDecision(variable=var_idx, value=bound_value, is_upper=upper)
                label = f"{node.label}.{suffix}"
                relation = "<=" if upper else ">="
                if child.status != SolveStatus.OPTIMAL or child.solution is None:
                    self.observer.log(
                        f"  {label}: {model.names()[var_idx]} {relation} {bound_value} is {child.status.value}; discarded."
                    )
                    continue
                frontier.append(
                    Node(
                        bound=sense_factor * _objective(model, child.solution),
                        solution=child.solution,
                        depth=node.depth + 1,
                        label=label,
                        branch_history=node.branch_history + [decision],
                        problem=child_model,
                    )
                )
                self.observer.log(f"  {label}: {model.names()[var_idx]} {relation} {bound_value}, Z = {child.objective:.3f}")

        if incumbent is None:
            if capped:
                result = Result.failed(
                    SolveStatus.ITERATION_LIMIT,
                    iterations=len(visited),
                    message=f"Node cap of {opts.max_nodes} reached before an integer solution was found.",
                )
            else:
                result = Result.failed(
                    SolveStatus.INFEASIBLE, iterations=len(visited), message="No integer solution found."
                )
            return SearchOutcome(result, visited, history)

        solution = _snap(incumbent.solution, integer_vars, opts.int_tol)
        message = f"Explored nodes: {len(visited)}"
        if capped:
            message += f"; node cap of {opts.max_nodes} reached, best incumbent returned"
        result = Result.solved(
            SolveStatus.OPTIMAL_INTEGER, _objective(model, solution), solution, len(visited), message
        )
        return SearchOutcome(result, visited, history)

    def _solve_child(self, model: CanonicalModel) -> Result:
        try:
            return self.solver.solve(model)
        except Exception as exc:
            logger.debug("child relaxation failed", exc_info=True)
            return Result.failed(SolveStatus.ERROR, message=str(exc))


def select_fractional(values: Sequence[float], integer_vars: Sequence[int], tol: float) -> Optional[Tuple[int, float]]:
    """Integer variable furthest from the nearest integer; lowest index wins ties."""
    best_var: Optional[int] = None
    best_gap = 0.0
    for idx in integer_vars:
        value = values[idx]
        gap = abs(value - round(value))
        if gap > tol and gap > best_gap + 1e-12:
            best_gap = gap
            best_var = idx
    if best_var is None:
        return None
    return best_var, values[best_var]


def _objective(model: CanonicalModel, solution: Sequence[float]) -> float:
    return float(np.dot(model.c, solution))


def _snap(solution: Sequence[float], integer_vars: Sequence[int], tol: float) -> List[float]:
    snapped = list(solution)
    for idx in integer_vars:
        if abs(snapped[idx] - round(snapped[idx])) <= tol:
            snapped[idx] = float(round(snapped[idx]))
    return snapped
