import numpy as np
from typing import Dict, Tuple, List, Any, Sequence

from ..schemas import CanonicalModel, Cmp, SolveOptions


def build_standard_form(
    model: CanonicalModel, opts: SolveOptions
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, Dict[str, Any], List[int]]:
    """
    Convert a canonical model to the augmented form A x = b, x >= 0 used by the simplex engines.
    Return A, b, the maximisation-form cost vector (artificials at -M), metadata and the initial basis.
    """

    col_names: List[str] = []
    col_types: List[str] = []
    rows: List[List[float]] = []
    rhs_values: List[float] = []
    basis: List[int] = []
    row_names: List[str] = []
    row_sources: List[str] = []
    row_flipped: List[bool] = []
    row_slack: List[Tuple[int, float]] = []
    structural_indices: List[int] = []
    artificial_indices: List[int] = []
    slack_indices: List[int] = []
    components: List[List[Tuple[int, float]]] = []

    def add_column(name: str, col_type: str) -> int:
        col_names.append(name)
        col_types.append(col_type)
        for row in rows:
            row.append(0.0)
        return len(col_names) - 1

    names = model.names()
    extra_rows: List[Tuple[str, List[float], Cmp, float]] = []
    for j, kind in enumerate(model.variable_kinds):
        if kind == "free":
            # Free variable -> split into difference of non-negative variables
            idx_pos = add_column(f"{names[j]}__pos", "structural")
            idx_neg = add_column(f"{names[j]}__neg", "structural")
            components.append([(idx_pos, 1.0), (idx_neg, -1.0)])
            structural_indices.extend([idx_pos, idx_neg])
        elif kind == "nonpos":
            idx = add_column(f"{names[j]}__neg", "structural")
            components.append([(idx, -1.0)])
            structural_indices.append(idx)
        else:
            idx = add_column(names[j], "structural")
            components.append([(idx, 1.0)])
            structural_indices.append(idx)

        if kind == "bin":
            unit = [0.0] * model.n
            unit[j] = 1.0
            extra_rows.append((f"bound_{names[j]}_ub", unit, "<=", 1.0))

    sense_factor = 1.0 if model.sense == "max" else -1.0
    c_structural = [0.0] * len(col_names)
    for j, coef in enumerate(model.c):
        for idx, comp_coef in components[j]:
            c_structural[idx] += sense_factor * coef * comp_coef

    constraint_specs: List[Tuple[str, Sequence[float], Cmp, float, str]] = [
        (f"c{i + 1}", model.A[i], model.signs[i], model.b[i], "model") for i in range(model.m)
    ]
    constraint_specs.extend((name, coeffs, cmp, rhs, "bound") for name, coeffs, cmp, rhs in extra_rows)

    for name, coeffs, cmp, rhs, source in constraint_specs:
        coeff_entries = structural_row(components, coeffs)
        rhs_value = float(rhs)

        flipped = rhs_value < 0
        if flipped:
            coeff_entries = {idx: -val for idx, val in coeff_entries.items()}
            rhs_value = -rhs_value
            if cmp == "<=":
                cmp = ">="
            elif cmp == ">=":
                cmp = "<="

        row_index = len(rows)
        if cmp == "<=":
            idx_slack = add_column(f"s{row_index + 1}", "slack")
            coeff_entries[idx_slack] = 1.0
            basis.append(idx_slack)
            slack_indices.append(idx_slack)
            row_slack.append((idx_slack, 1.0))
        elif cmp == ">=":
            idx_surplus = add_column(f"e{row_index + 1}", "surplus")
            coeff_entries[idx_surplus] = -1.0
            idx_art = add_column(f"a{row_index + 1}", "artificial")
            coeff_entries[idx_art] = 1.0
            basis.append(idx_art)
            artificial_indices.append(idx_art)
            row_slack.append((idx_surplus, -1.0))
        else:  # equality
            idx_art = add_column(f"a{row_index + 1}", "artificial")
            coeff_entries[idx_art] = 1.0
            basis.append(idx_art)
            artificial_indices.append(idx_art)
            row_slack.append((-1, 0.0))

        row = [0.0] * len(col_names)
        for idx, value in coeff_entries.items():
            row[idx] = value
        rows.append(row)
        rhs_values.append(rhs_value)
        row_names.append(name)
        row_sources.append(source)
        row_flipped.append(flipped)

    n_cols = len(col_names)
    if rows:
        A = np.array(rows, dtype=float)
        b = np.array(rhs_values, dtype=float)
    else:
        A = np.zeros((0, n_cols), dtype=float)
        b = np.zeros(0, dtype=float)

    c_struct = np.zeros(n_cols)
    c_struct[: len(c_structural)] = c_structural
    c = c_struct.copy()
    c[artificial_indices] = -opts.big_m

    metadata: Dict[str, Any] = {
        "original_names": names,
        "sense": model.sense,
        "col_names": col_names,
        "col_types": col_types,
        "components": components,
        "constraint_names": row_names,
        "constraint_sources": row_sources,
        "row_flipped": row_flipped,
        "row_slack": row_slack,
        "artificial_indices": artificial_indices,
        "slack_indices": slack_indices,
        "structural_indices": structural_indices,
        "objective_structural": c_struct,
    }

    return A, b, c, metadata, basis


def structural_row(components: List[List[Tuple[int, float]]], coeffs: Sequence[float]) -> Dict[int, float]:
    """Map coefficients over original variables onto standard-form structural columns."""
    entries: Dict[int, float] = {}
    for j, coef in enumerate(coeffs):
        if coef == 0:
            continue
        for idx, comp_coef in components[j]:
            entries[idx] = entries.get(idx, 0.0) + float(coef) * comp_coef
    return entries


def reconstruct_solution(meta: Dict[str, Any], x_std: np.ndarray) -> List[float]:
    result: List[float] = []
    for parts in meta["components"]:
        value = 0.0
        for idx, coef in parts:
            value += coef * x_std[idx]
        if abs(value) < 1e-12:
            value = 0.0
        result.append(float(value))
    return result


def artificial_level(meta: Dict[str, Any], x_std: np.ndarray) -> float:
    if not meta["artificial_indices"]:
        return 0.0
    return float(max(x_std[idx] for idx in meta["artificial_indices"]))
