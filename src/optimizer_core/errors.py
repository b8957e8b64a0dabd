from .schemas import SolveStatus


class OptimizerError(Exception):
    """Base class for failures raised inside a solve; mapped to a Result status."""

    status = SolveStatus.ERROR

    def __init__(self, message: str = "", iterations: int = 0) -> None:
        super().__init__(message)
        self.iterations = iterations


class SingularMatrixError(OptimizerError, ArithmeticError):
    pass


class IterationLimitExceeded(OptimizerError):
    status = SolveStatus.ITERATION_LIMIT


class UnboundedError(OptimizerError):
    status = SolveStatus.UNBOUNDED


class InfeasibleError(OptimizerError):
    status = SolveStatus.INFEASIBLE
