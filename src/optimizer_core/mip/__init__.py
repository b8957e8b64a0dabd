"""Integer programming drivers built on the LP relaxation engines."""

from .branch_and_bound import BranchAndBound, Node, SearchOutcome
from .cutting_plane import Cut, CutOutcome, CuttingPlane
from .knapsack import KnapsackBranchAndBound

__all__ = [
    "BranchAndBound",
    "Node",
    "SearchOutcome",
    "Cut",
    "CutOutcome",
    "CuttingPlane",
    "KnapsackBranchAndBound",
]
