import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from ..observer import IterationObserver, NullObserver
from ..schemas import CanonicalModel, Result, SolveOptions, SolveStatus

logger = logging.getLogger(__name__)


class KnapsackItem(BaseModel):
    index: int
    weight: float
    value: float

    @property
    def ratio(self) -> float:
        if self.value <= 0:
            return -math.inf
        if self.weight <= 0:
            return math.inf
        return self.value / self.weight


@dataclass(frozen=True)
class _KnapsackNode:
    level: int
    weight: float
    value: float
    bound: float
    taken: Tuple[bool, ...]


class KnapsackBranchAndBound:
    """0/1 knapsack by best-bound search with the fractional (Dantzig) upper bound."""

    title = "Knapsack Branch and Bound"

    def __init__(self, options: Optional[SolveOptions] = None, observer: Optional[IterationObserver] = None) -> None:
        self.options = options or SolveOptions()
        self.observer = observer or NullObserver()

    def solve(self, model: CanonicalModel) -> Result:
        """Read capacity and weights from the first <= row and values from the objective."""
        self.observer.log_header(self.title)
        try:
            capacity, weights, values = knapsack_data(model)
        except ValueError as exc:
            self.observer.log(f"Error in {self.title}: {exc}")
            return Result.failed(SolveStatus.ERROR, message=str(exc))
        return self._run(capacity, weights, values)

    def solve_items(self, capacity: float, weights: Sequence[float], values: Sequence[float]) -> Result:
        self.observer.log_header(self.title)
        if len(weights) != len(values):
            message = f"Got {len(weights)} weights but {len(values)} values."
            self.observer.log(f"Error in {self.title}: {message}")
            return Result.failed(SolveStatus.ERROR, message=message)
        return self._run(float(capacity), list(weights), list(values))

    def _run(self, capacity: float, weights: List[float], values: List[float]) -> Result:
        if capacity < 0:
            return Result.failed(SolveStatus.ERROR, message="Knapsack capacity must be non-negative.")

        items = sorted(
            (KnapsackItem(index=i, weight=float(w), value=float(v)) for i, (w, v) in enumerate(zip(weights, values))),
            key=lambda item: -item.ratio,
        )
        self.observer.log("Items by value/weight ratio:")
        for item in items:
            self.observer.log(f"  item {item.index + 1}: w={item.weight:g}, v={item.value:g}, ratio={item.ratio:.3f}")

        count = len(items)
        root = _KnapsackNode(level=-1, weight=0.0, value=0.0, bound=0.0, taken=())
        root = _with_bound(root, items, capacity)
        frontier: List[_KnapsackNode] = [root]
        best_value = 0.0
        best_taken: Tuple[bool, ...] = tuple(False for _ in items)
        processed = 0

        while frontier:
            frontier.sort(key=lambda node: -node.bound)
            node = frontier.pop(0)
            processed += 1

            if node.bound <= best_value + 1e-9:
                continue

            if node.level == count - 1:
                if node.value > best_value:
                    best_value = node.value
                    best_taken = node.taken
                    self.observer.log(f"New best value {best_value:g} at node {processed}")
                continue

            item = items[node.level + 1]
            children = []
            if node.weight + item.weight <= capacity + 1e-12:
                children.append(
                    _KnapsackNode(
                        level=node.level + 1,
                        weight=node.weight + item.weight,
                        value=node.value + item.value,
                        bound=0.0,
                        taken=node.taken + (True,),
                    )
                )
            children.append(
                _KnapsackNode(
                    level=node.level + 1,
                    weight=node.weight,
                    value=node.value,
                    bound=0.0,
                    taken=node.taken + (False,),
                )
            )
            for child in children:
                child = _with_bound(child, items, capacity)
                if child.bound > best_value + 1e-9:
                    frontier.append(child)

        solution = [0.0] * count
        for item, taken in zip(items, best_taken):
            if taken:
                solution[item.index] = 1.0
        logger.debug("knapsack finished after %d nodes, value %s", processed, best_value)
        self.observer.log(f"Best value {best_value:g} after {processed} nodes")
        return Result.solved(
            SolveStatus.OPTIMAL_INTEGER, best_value, solution, processed, f"Explored nodes: {processed}"
        )


def _with_bound(node: _KnapsackNode, items: List[KnapsackItem], capacity: float) -> _KnapsackNode:
    """Value so far plus a greedy fill of the remaining profitable items, the last one fractionally."""
    remaining = capacity - node.weight
    bound = node.value
    for item in items[node.level + 1 :]:
        if item.value <= 0:
            break
        if item.weight <= remaining:
            remaining -= item.weight
            bound += item.value
        else:
            if item.weight > 0:
                bound += item.value * remaining / item.weight
            break
    return _KnapsackNode(node.level, node.weight, node.value, bound, node.taken)


def knapsack_data(model: CanonicalModel) -> Tuple[float, List[float], List[float]]:
    if model.sense != "max":
        raise ValueError("Knapsack models must maximise.")
    for row, sign, rhs in zip(model.A, model.signs, model.b):
        if sign == "<=":
            return float(rhs), list(row), list(model.c)
    raise ValueError("Knapsack model needs a <= capacity row.")
