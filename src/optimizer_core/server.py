from typing import List, Literal

from mcp.server.fastmcp import FastMCP

from .analysis.duality import solve_primal_dual
from .analysis.sensitivity import sensitivity_report, sensitivity_state, shadow_prices
from .lp.simplex import make_solver
from .mip.branch_and_bound import BranchAndBound
from .mip.cutting_plane import CuttingPlane
from .mip.knapsack import KnapsackBranchAndBound
from .observer import NullObserver, RecordingObserver
from .schemas import CanonicalModel, SolveOptions

mcp = FastMCP("Optimizer Core")


def _observer(trace: bool):
    return RecordingObserver() if trace else NullObserver()


def _with_trace(payload: dict, observer) -> dict:
    if isinstance(observer, RecordingObserver):
        payload["log"] = observer.lines
    return payload


@mcp.tool()
def solve_lp(model: CanonicalModel, options: SolveOptions | None = None, trace: bool = False) -> dict:
    "Solve a linear program with the tableau or revised simplex (options.method)."
    opts = options or SolveOptions()
    observer = _observer(trace)
    run = make_solver(opts, observer).run(model)
    payload = run.result.model_dump(mode="json")
    if opts.return_duals and run.is_optimal:
        payload["duals"] = shadow_prices(sensitivity_state(run))
    return _with_trace(payload, observer)


@mcp.tool()
def solve_mip(
    model: CanonicalModel,
    method: Literal["branch_and_bound", "cutting_plane"] = "branch_and_bound",
    options: SolveOptions | None = None,
    trace: bool = False,
) -> dict:
    "Solve an integer program by best-bound branch and bound or Gomory cutting planes."
    opts = options or SolveOptions()
    observer = _observer(trace)
    if method == "cutting_plane":
        result = CuttingPlane(opts, observer).solve(model)
    else:
        result = BranchAndBound(opts, observer).solve(model)
    return _with_trace(result.model_dump(mode="json"), observer)


@mcp.tool()
def solve_knapsack(capacity: float, weights: List[float], values: List[float], trace: bool = False) -> dict:
    "Solve a 0/1 knapsack: pick items maximising total value within the weight capacity."
    observer = _observer(trace)
    result = KnapsackBranchAndBound(observer=observer).solve_items(capacity, weights, values)
    return _with_trace(result.model_dump(mode="json"), observer)


@mcp.tool()
def build_dual_model(model: CanonicalModel, options: SolveOptions | None = None) -> dict:
    "Build the dual LP, solve both problems and report whether weak and strong duality hold."
    return solve_primal_dual(model, options).model_dump(mode="json")


@mcp.tool()
def analyze_sensitivity(model: CanonicalModel, options: SolveOptions | None = None) -> dict:
    "Shadow prices, RHS ranges and objective-coefficient ranges at the LP optimum."
    run = make_solver(options or SolveOptions()).run(model)
    if not run.is_optimal:
        return {"status": run.result.status.value, "message": run.result.message}
    report = sensitivity_report(run)
    return {"status": run.result.status.value, **report.model_dump(mode="json")}


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
