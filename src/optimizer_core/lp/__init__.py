"""Linear programming engines for optimizer_core."""

from .simplex import PrimalSimplex, RevisedSimplex, SimplexRun, make_solver, simplex_solve
from .dual_simplex import DualSimplex

__all__ = ["PrimalSimplex", "RevisedSimplex", "SimplexRun", "DualSimplex", "make_solver", "simplex_solve"]
