"""Dense LP/ILP optimisation engines: simplex variants, integer search and post-optimal analysis."""

from .errors import (
    InfeasibleError,
    IterationLimitExceeded,
    OptimizerError,
    SingularMatrixError,
    UnboundedError,
)
from .observer import IterationObserver, LoggingObserver, NullObserver, RecordingObserver
from .schemas import CanonicalModel, Range, Result, SolveOptions, SolveStatus
from .lp import DualSimplex, PrimalSimplex, RevisedSimplex, SimplexRun, make_solver, simplex_solve
from .mip import BranchAndBound, CuttingPlane, KnapsackBranchAndBound

__all__ = [
    "CanonicalModel",
    "Range",
    "Result",
    "SolveOptions",
    "SolveStatus",
    "OptimizerError",
    "SingularMatrixError",
    "IterationLimitExceeded",
    "UnboundedError",
    "InfeasibleError",
    "IterationObserver",
    "NullObserver",
    "RecordingObserver",
    "LoggingObserver",
    "PrimalSimplex",
    "RevisedSimplex",
    "SimplexRun",
    "DualSimplex",
    "make_solver",
    "simplex_solve",
    "BranchAndBound",
    "CuttingPlane",
    "KnapsackBranchAndBound",
]
