import json
from pathlib import Path

import numpy as np
import pytest
from scipy.optimize import linprog

from optimizer_core.lp.simplex import PrimalSimplex, RevisedSimplex, make_solver, simplex_solve
from optimizer_core.observer import RecordingObserver
from optimizer_core.schemas import CanonicalModel, SolveOptions, SolveStatus


def load_example(name: str) -> CanonicalModel:
    data = json.loads(Path(__file__).parent.parent.joinpath("examples", name).read_text())
    return CanonicalModel.model_validate(data)


def make_production() -> CanonicalModel:
    return CanonicalModel(
        sense="max",
        A=[[1.0, 1.0], [2.0, 1.0]],
        b=[4.0, 6.0],
        c=[3.0, 2.0],
        signs=["<=", "<="],
        variable_kinds=["nonneg", "nonneg"],
    )


def make_random_lp(seed: int, sense: str = "max") -> CanonicalModel:
    rng = np.random.default_rng(seed)
    m, n = 4, 5
    A = rng.uniform(0.5, 5.0, size=(m, n)).round(2)
    b = rng.uniform(5.0, 20.0, size=m).round(2)
    c = rng.uniform(1.0, 4.0, size=n).round(2)
    return CanonicalModel(
        name=f"random-{seed}",
        sense=sense,
        A=A.tolist(),
        b=b.tolist(),
        c=c.tolist(),
        signs=["<=" if sense == "max" else ">="] * m,
        variable_kinds=["nonneg"] * n,
    )


@pytest.mark.parametrize("method", ["tableau", "revised"])
def test_production_optimum(method):
    result = simplex_solve(make_production(), SolveOptions(method=method))

    assert result.status == SolveStatus.OPTIMAL
    assert result.objective == pytest.approx(10.0)
    assert result.solution == pytest.approx([2.0, 2.0])
    assert result.iterations == 2


def test_simplex_solves_fixture():
    model = load_example("diet.json")
    result = simplex_solve(model, SolveOptions())

    assert result.status == "optimal"
    assert result.objective == pytest.approx(9.6, rel=1e-6)
    assert result.solution == pytest.approx([0.8, 3.6], rel=1e-6)


def test_infeasible_model_has_no_solution():
    model = CanonicalModel(
        sense="max",
        A=[[1.0, 1.0], [1.0, 1.0]],
        b=[5.0, 10.0],
        c=[1.0, 1.0],
        signs=["<=", ">="],
        variable_kinds=["nonneg", "nonneg"],
    )
    for method in ("tableau", "revised"):
        result = simplex_solve(model, SolveOptions(method=method))
        assert result.status == SolveStatus.INFEASIBLE
        assert result.solution is None
        assert result.objective is None


def test_unbounded_model_has_no_solution():
    model = CanonicalModel(
        sense="max",
        A=[[0.0, 1.0]],
        b=[5.0],
        c=[1.0, 0.0],
        signs=["<="],
        variable_kinds=["nonneg", "nonneg"],
    )
    for method in ("tableau", "revised"):
        result = simplex_solve(model, SolveOptions(method=method))
        assert result.status == SolveStatus.UNBOUNDED
        assert result.solution is None


@pytest.mark.parametrize("method", ["tableau", "revised"])
def test_infeasible_model_with_improving_ray(method):
    # -x1 + 2x3 == -5 has no solution with x1 <= 0 and x3 >= 0, yet the penalised problem is unbounded
    model = CanonicalModel(
        sense="min",
        A=[[-3.0, 4.0, 1.0, 1.0], [2.0, -1.0, 5.0, -3.0], [-1.0, 0.0, 2.0, 0.0]],
        b=[-3.0, -5.0, -5.0],
        c=[-4.0, -3.0, 5.0, -3.0],
        signs=["<=", "<=", "=="],
        variable_kinds=["nonpos", "free", "nonneg", "nonneg"],
    )
    result = simplex_solve(model, SolveOptions(method=method))

    assert result.status == SolveStatus.INFEASIBLE
    assert result.solution is None
    assert result.objective is None


@pytest.mark.parametrize("method", ["tableau", "revised"])
def test_unbounded_model_with_covering_row(method):
    model = CanonicalModel(
        sense="max",
        A=[[1.0, 1.0]],
        b=[2.0],
        c=[1.0, 0.0],
        signs=[">="],
        variable_kinds=["nonneg", "nonneg"],
    )
    observer = RecordingObserver()
    result = simplex_solve(model, SolveOptions(method=method), observer)

    assert result.status == SolveStatus.UNBOUNDED
    assert any(line.startswith("Phase one: total artificial level 0") for line in observer.lines)


def test_equality_constraints():
    model = CanonicalModel(
        sense="min",
        A=[[1.0, 1.0], [1.0, -1.0]],
        b=[4.0, 0.0],
        c=[1.0, 1.0],
        signs=["==", "=="],
        variable_kinds=["nonneg", "nonneg"],
        variable_names=["x", "y"],
    )
    result = simplex_solve(model)

    assert result.status == SolveStatus.OPTIMAL
    assert result.objective == pytest.approx(4.0)
    assert result.solution == pytest.approx([2.0, 2.0])


def test_free_variable_goes_negative():
    model = CanonicalModel(
        sense="min", A=[[1.0]], b=[-3.0], c=[1.0], signs=[">="], variable_kinds=["free"]
    )
    result = simplex_solve(model)

    assert result.status == SolveStatus.OPTIMAL
    assert result.solution == pytest.approx([-3.0])
    assert result.objective == pytest.approx(-3.0)


def test_nonpositive_variable():
    model = CanonicalModel(
        sense="min", A=[[1.0]], b=[-2.0], c=[1.0], signs=[">="], variable_kinds=["nonpos"]
    )
    result = simplex_solve(model)

    assert result.status == SolveStatus.OPTIMAL
    assert result.solution == pytest.approx([-2.0])


def test_binary_relaxation_is_bounded_by_one():
    model = CanonicalModel(
        sense="max", A=[[1.0]], b=[5.0], c=[1.0], signs=["<="], variable_kinds=["bin"]
    )
    result = simplex_solve(model)

    assert result.solution == pytest.approx([1.0])


def test_iteration_limit_reported():
    result = simplex_solve(make_production(), SolveOptions(max_iters=1))

    assert result.status == SolveStatus.ITERATION_LIMIT
    assert result.solution is None
    assert result.iterations == 1


@pytest.mark.parametrize("rule", ["dantzig", "bland"])
def test_pivot_rules_reach_same_optimum(rule):
    result = simplex_solve(load_example("production.json"), SolveOptions(pivot_rule=rule))

    assert result.objective == pytest.approx(10.0)


@pytest.mark.parametrize("seed", range(5))
def test_matches_scipy_on_random_max_lp(seed):
    model = make_random_lp(seed)
    A, b, c = model.matrices()
    reference = linprog(-c, A_ub=A, b_ub=b, bounds=[(0, None)] * model.n, method="highs")

    result = simplex_solve(model)

    assert result.status == SolveStatus.OPTIMAL
    assert result.objective == pytest.approx(-reference.fun, abs=1e-3)


@pytest.mark.parametrize("seed", range(5))
def test_matches_scipy_on_random_min_lp(seed):
    model = make_random_lp(seed, sense="min")
    A, b, c = model.matrices()
    reference = linprog(c, A_ub=-A, b_ub=-b, bounds=[(0, None)] * model.n, method="highs")

    result = simplex_solve(model, SolveOptions(method="revised"))

    assert result.status == SolveStatus.OPTIMAL
    assert result.objective == pytest.approx(reference.fun, abs=1e-3)


def test_run_keeps_terminal_basis():
    run = PrimalSimplex().run(make_production())

    assert run.is_optimal
    assert sorted(run.basis) == [0, 1]
    tableau = run.tableau()
    assert tableau.objective_value == pytest.approx(10.0)
    assert np.all(tableau.reduced_costs >= -1e-9)


def test_observer_trace():
    observer = RecordingObserver()
    PrimalSimplex(observer=observer).solve(make_production())

    assert observer.lines[0] == "=== Primal Simplex (Big-M tableau) ==="
    assert any(line.startswith("Iteration 1: entering x1, leaving s2") for line in observer.lines)
    assert any(line.startswith("Status: optimal") for line in observer.lines)


def test_make_solver_selects_variant():
    assert isinstance(make_solver(SolveOptions(method="revised")), RevisedSimplex)
    assert isinstance(make_solver(SolveOptions()), PrimalSimplex)


def test_clone_solves_identically():
    model = make_production()
    clone = model.clone()
    clone.A[0][0] = 5.0

    assert simplex_solve(model) == simplex_solve(make_production())
    assert model.A[0][0] == 1.0
