import logging

import numpy as np

from optimizer_core.lp.simplex import simplex_solve
from optimizer_core.observer import LoggingObserver, NullObserver, RecordingObserver, format_matrix, format_vector
from optimizer_core.schemas import CanonicalModel


def test_recording_observer_keeps_lines():
    observer = RecordingObserver()
    observer.log_header("Demo")
    observer.log("hello")

    assert observer.lines == ["=== Demo ===", "hello"]
    assert observer.text() == "=== Demo ===\nhello"
    observer.clear()
    assert observer.lines == []


def test_format_matrix_uses_fixed_width_columns():
    lines = format_matrix("T", np.array([[1.0, 2.5], [-0.1234, 4.0]]), 3, ["x1", "RHS"], ["s1", "z"])

    assert lines[0] == "T:"
    assert lines[1] == "  " + f"{'x1':>10}{'RHS':>10}"
    assert lines[2] == "s1" + f"{1.0:>10.3f}{2.5:>10.3f}"
    assert lines[3] == "z " + f"{-0.123:>10.3f}{4.0:>10.3f}"


def test_format_vector_rounds_to_three_decimals():
    assert format_vector("x", [2.0, 1.23456], 3, ["a", "b"]) == ["x:", "a: 2.000", "b: 1.235"]
    assert format_vector("x", [0.5]) == ["x:", "[0]: 0.500"]


def test_logging_observer_forwards_to_logger(caplog):
    observer = LoggingObserver()
    with caplog.at_level(logging.INFO, logger="optimizer_core.trace"):
        observer.log_header("Trace")
        observer.log_vector("Solution", [1.0], 3, ["x1"])

    assert caplog.messages == ["=== Trace ===", "Solution:", "x1: 1.000"]
    assert observer.lines == []


def test_null_observer_is_silent():
    model = CanonicalModel(
        sense="max", A=[[1.0]], b=[2.0], c=[1.0], signs=["<="], variable_kinds=["nonneg"]
    )
    result = simplex_solve(model, observer=NullObserver())

    assert result.objective == 2.0
