#!/usr/bin/env python3
import json
import time
from pathlib import Path

from optimizer_core.lp.simplex import simplex_solve
from optimizer_core.mip.branch_and_bound import BranchAndBound
from optimizer_core.schemas import CanonicalModel, SolveOptions
from scripts.generate_instances import generate_random_lp


def load_example(name: str) -> CanonicalModel:
    path = Path(__file__).resolve().parent.parent / "examples" / name
    return CanonicalModel.model_validate(json.loads(path.read_text()))


def main() -> None:
    cases = [
        ("examples/production.json", load_example("production.json")),
        ("examples/diet.json", load_example("diet.json")),
    ]
    for seed in range(3):
        cases.append((f"random-{seed}", generate_random_lp(6, 5, seed)))

    print("name,method,status,objective,iterations,time_ms")
    for name, model in cases:
        for method in ("tableau", "revised"):
            start = time.perf_counter()
            result = simplex_solve(model, SolveOptions(method=method))
            elapsed_ms = (time.perf_counter() - start) * 1000
            print(f"{name},{method},{result.status.value},{result.objective},{result.iterations},{elapsed_ms:.2f}")

    for seed in range(3):
        model = generate_random_lp(4, 3, seed, integer=True)
        start = time.perf_counter()
        result = BranchAndBound(SolveOptions(max_nodes=200)).solve(model)
        elapsed_ms = (time.perf_counter() - start) * 1000
        print(f"random-ilp-{seed},branch_and_bound,{result.status.value},{result.objective},{result.iterations},{elapsed_ms:.2f}")


if __name__ == "__main__":
    main()
