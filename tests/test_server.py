import json
from pathlib import Path

import pytest

from optimizer_core import server
from optimizer_core.schemas import CanonicalModel, SolveOptions


def load_example(name: str) -> CanonicalModel:
    data = json.loads(Path(__file__).parent.parent.joinpath("examples", name).read_text())
    return CanonicalModel.model_validate(data)


def test_solve_lp_tool():
    payload = server.solve_lp(load_example("production.json"), SolveOptions(method="revised"))

    assert payload["status"] == "optimal"
    assert payload["objective"] == pytest.approx(10.0)
    assert payload["duals"] == pytest.approx([1.0, 1.0])
    assert "log" not in payload


def test_solve_lp_tool_with_trace():
    payload = server.solve_lp(load_example("production.json"), trace=True)

    assert payload["log"][0] == "=== Primal Simplex (Big-M tableau) ==="


@pytest.mark.parametrize("method", ["branch_and_bound", "cutting_plane"])
def test_solve_mip_tool(method):
    payload = server.solve_mip(load_example("furniture_ilp.json"), method=method, options=SolveOptions(max_cuts=50))

    assert payload["status"] in ("optimal_integer", "cut_limit")
    if payload["status"] == "optimal_integer":
        assert payload["objective"] == pytest.approx(20.0)


def test_solve_knapsack_tool():
    payload = server.solve_knapsack(50.0, [10.0, 20.0, 30.0], [60.0, 100.0, 120.0])

    assert payload["status"] == "optimal_integer"
    assert payload["solution"] == [0.0, 1.0, 1.0]


def test_build_dual_model_tool():
    payload = server.build_dual_model(load_example("diet.json"))

    assert payload["dual_model"]["sense"] == "max"
    assert payload["check"]["strong"] is True


def test_analyze_sensitivity_tool():
    payload = server.analyze_sensitivity(load_example("production.json"))

    assert payload["status"] == "optimal"
    assert payload["shadow_prices"] == pytest.approx([1.0, 1.0])
    assert payload["rhs_ranges"][0] == pytest.approx({"lower": 3.0, "upper": 6.0})


def test_analyze_sensitivity_tool_on_unbounded_model():
    model = CanonicalModel(
        sense="max", A=[[0.0, 1.0]], b=[5.0], c=[1.0, 0.0], signs=["<="], variable_kinds=["nonneg", "nonneg"]
    )
    payload = server.analyze_sensitivity(model)

    assert payload["status"] == "unbounded"


def test_solve_lp_tool_without_duals():
    payload = server.solve_lp(load_example("diet.json"), SolveOptions(return_duals=False))

    assert payload["objective"] == pytest.approx(9.6)
    assert "duals" not in payload
