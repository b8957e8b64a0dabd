"""Post-optimal analysis: LP duality and sensitivity ranging."""

from .duality import DualityCheck, DualityReport, build_dual, solve_primal_dual, verify_duality
from .sensitivity import (
    SensitivityReport,
    SensitivityState,
    add_constraint,
    new_activity_reduced_cost,
    objective_range_basic,
    objective_range_nonbasic,
    rhs_range,
    sensitivity_report,
    sensitivity_state,
    shadow_prices,
)

__all__ = [
    "DualityCheck",
    "DualityReport",
    "build_dual",
    "solve_primal_dual",
    "verify_duality",
    "SensitivityReport",
    "SensitivityState",
    "add_constraint",
    "new_activity_reduced_cost",
    "objective_range_basic",
    "objective_range_nonbasic",
    "rhs_range",
    "sensitivity_report",
    "sensitivity_state",
    "shadow_prices",
]
