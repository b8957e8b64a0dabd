#!/usr/bin/env python3
import argparse
import json
import random
from pathlib import Path
from typing import Optional

from optimizer_core.schemas import CanonicalModel


def generate_random_lp(
    num_vars: int, num_constraints: int, seed: Optional[int] = None, integer: bool = False
) -> CanonicalModel:
    """Random bounded, feasible max LP: positive <= rows keep the origin feasible and the region bounded."""
    rng = random.Random(seed)
    A = [[round(rng.uniform(0.5, 5.0), 2) for _ in range(num_vars)] for _ in range(num_constraints)]
    b = [round(rng.uniform(num_vars * 2.0, num_vars * 6.0), 2) for _ in range(num_constraints)]
    c = [round(rng.uniform(1.0, 4.0), 2) for _ in range(num_vars)]
    return CanonicalModel(
        name="random-ilp" if integer else "random-lp",
        sense="max",
        A=A,
        b=b,
        c=c,
        signs=["<="] * num_constraints,
        variable_kinds=["int" if integer else "nonneg"] * num_vars,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate random feasible LP instances.")
    parser.add_argument("--vars", type=int, default=3, help="Number of variables")
    parser.add_argument("--constraints", type=int, default=3, help="Number of constraints")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--count", type=int, default=1, help="Number of instances")
    parser.add_argument("--integer", action="store_true", help="Mark every variable as integer")
    parser.add_argument("--out", type=Path, default=None, help="Optional output file")
    args = parser.parse_args()

    instances = [
        generate_random_lp(args.vars, args.constraints, (args.seed or 0) + idx, args.integer)
        for idx in range(args.count)
    ]
    payload = [instance.model_dump() for instance in instances]

    if args.out:
        Path(args.out).write_text(json.dumps(payload, indent=2))
    else:
        print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
