import itertools
import json
from pathlib import Path

import numpy as np
import pytest

from optimizer_core.mip.cutting_plane import CuttingPlane, is_pure_integer
from optimizer_core.observer import RecordingObserver
from optimizer_core.schemas import CanonicalModel, SolveOptions, SolveStatus


def load_example(name: str) -> CanonicalModel:
    data = json.loads(Path(__file__).parent.parent.joinpath("examples", name).read_text())
    return CanonicalModel.model_validate(data)


def make_half_model() -> CanonicalModel:
    return CanonicalModel(
        sense="max",
        A=[[2.0, 2.0]],
        b=[3.0],
        c=[1.0, 1.0],
        signs=["<="],
        variable_kinds=["int", "int"],
    )


def integer_points(model: CanonicalModel, upper: int):
    A, b, _ = model.matrices()
    for point in itertools.product(range(upper + 1), repeat=model.n):
        lhs = A @ np.array(point, dtype=float)
        ok = all(
            (sign == "<=" and v <= r + 1e-9) or (sign == ">=" and v >= r - 1e-9) or (sign == "==" and abs(v - r) <= 1e-9)
            for v, r, sign in zip(lhs, b, model.signs)
        )
        if ok:
            yield list(point)


def test_gomory_cut_closes_gap():
    observer = RecordingObserver()
    outcome = CuttingPlane(observer=observer).search(make_half_model())

    assert outcome.result.status == SolveStatus.OPTIMAL_INTEGER
    assert outcome.result.objective == pytest.approx(1.0)
    assert outcome.result.iterations == 1
    assert len(outcome.cuts) == 1

    cut = outcome.cuts[0]
    assert cut.kind == "gomory"
    assert cut.coefficients == pytest.approx([1.0, 1.0])
    assert cut.rhs == pytest.approx(1.0)
    assert cut.vertex == pytest.approx([1.5, 0.0])
    assert any(line.startswith("Cut 1 (gomory)") for line in observer.lines)


def test_cuts_are_valid_and_exclude_their_vertex():
    model = load_example("furniture_ilp.json")
    outcome = CuttingPlane(SolveOptions(max_cuts=20)).search(model)

    assert outcome.cuts
    feasible = list(integer_points(model, 6))
    for cut in outcome.cuts:
        assert cut.violated_by(cut.vertex)
        for point in feasible:
            assert not cut.violated_by(point, tol=1e-6)
    assert outcome.result.status in (SolveStatus.OPTIMAL_INTEGER, SolveStatus.CUT_LIMIT)
    if outcome.result.status == SolveStatus.OPTIMAL_INTEGER:
        assert outcome.result.objective == pytest.approx(20.0)


def test_mixed_model_uses_bound_cut():
    model = CanonicalModel(
        sense="max",
        A=[[2.0, 1.0]],
        b=[3.0],
        c=[1.0, 0.0],
        signs=["<="],
        variable_kinds=["int", "nonneg"],
    )
    outcome = CuttingPlane().search(model)

    assert outcome.result.status == SolveStatus.OPTIMAL_INTEGER
    assert outcome.result.objective == pytest.approx(1.0)
    assert [cut.kind for cut in outcome.cuts] == ["bound"]
    assert outcome.cuts[0].coefficients == [1.0, 0.0]
    assert outcome.cuts[0].rhs == 1.0


def test_fractional_data_uses_bound_cut():
    model = CanonicalModel(sense="max", A=[[2.0]], b=[3.5], c=[1.0], signs=["<="], variable_kinds=["int"])

    assert not is_pure_integer(model)
    outcome = CuttingPlane().search(model)
    assert outcome.result.solution == [1.0]
    assert outcome.cuts[0].kind == "bound"


def test_cut_limit_returns_last_relaxation():
    result = CuttingPlane(SolveOptions(max_cuts=0)).solve(make_half_model())

    assert result.status == SolveStatus.CUT_LIMIT
    assert result.objective == pytest.approx(1.5)
    assert result.solution == pytest.approx([1.5, 0.0])


def test_integral_relaxation_needs_no_cuts():
    model = CanonicalModel(
        sense="max",
        A=[[1.0, 1.0], [2.0, 1.0]],
        b=[4.0, 6.0],
        c=[3.0, 2.0],
        signs=["<=", "<="],
        variable_kinds=["int", "int"],
    )
    outcome = CuttingPlane().search(model)

    assert outcome.result.status == SolveStatus.OPTIMAL_INTEGER
    assert outcome.result.solution == [2.0, 2.0]
    assert outcome.cuts == []


def test_infeasible_relaxation_aborts():
    model = CanonicalModel(
        sense="max",
        A=[[1.0, 1.0], [1.0, 1.0]],
        b=[5.0, 10.0],
        c=[1.0, 1.0],
        signs=["<=", ">="],
        variable_kinds=["int", "int"],
    )
    result = CuttingPlane().solve(model)

    assert result.status == SolveStatus.INFEASIBLE
    assert result.solution is None
