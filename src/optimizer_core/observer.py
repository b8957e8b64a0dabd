import logging
from typing import List, Optional, Protocol, Sequence

import numpy as np


class IterationObserver(Protocol):
    """Receives a human-readable trace of every pivot, node and cut."""

    def log(self, line: str) -> None: ...

    def log_header(self, title: str) -> None: ...

    def log_matrix(
        self,
        title: str,
        matrix: Sequence[Sequence[float]],
        round: int = 3,
        col_names: Optional[Sequence[str]] = None,
        row_names: Optional[Sequence[str]] = None,
    ) -> None: ...

    def log_vector(
        self,
        title: str,
        vector: Sequence[float],
        round: int = 3,
        names: Optional[Sequence[str]] = None,
    ) -> None: ...


class NullObserver:
    def log(self, line: str) -> None:
        pass

    def log_header(self, title: str) -> None:
        pass

    def log_matrix(self, title, matrix, round=3, col_names=None, row_names=None) -> None:
        pass

    def log_vector(self, title, vector, round=3, names=None) -> None:
        pass


class RecordingObserver:
    """Keeps every emitted line; matrices and vectors are formatted as fixed-width text."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def log(self, line: str) -> None:
        self.lines.append(line)

    def log_header(self, title: str) -> None:
        self.log(f"=== {title} ===")

    def log_matrix(self, title, matrix, round=3, col_names=None, row_names=None) -> None:
        for line in format_matrix(title, matrix, round, col_names, row_names):
            self.log(line)

    def log_vector(self, title, vector, round=3, names=None) -> None:
        for line in format_vector(title, vector, round, names):
            self.log(line)

    def clear(self) -> None:
        self.lines.clear()

    def text(self) -> str:
        return "\n".join(self.lines)


class LoggingObserver(RecordingObserver):
    """Forwards the iteration trace to a stdlib logger instead of keeping it."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        super().__init__()
        self.logger = logger or logging.getLogger("optimizer_core.trace")
        self.level = level

    def log(self, line: str) -> None:
        self.logger.log(self.level, line)


def format_matrix(
    title: str,
    matrix: Sequence[Sequence[float]],
    digits: int = 3,
    col_names: Optional[Sequence[str]] = None,
    row_names: Optional[Sequence[str]] = None,
) -> List[str]:
    data = np.atleast_2d(np.asarray(matrix, dtype=float))
    lines = [f"{title}:"]
    label_width = max((len(name) for name in row_names), default=0) if row_names else 0
    if col_names:
        header = " " * label_width + "".join(f"{name:>10}" for name in col_names)
        lines.append(header.rstrip())
    for i, row in enumerate(data):
        label = f"{row_names[i]:<{label_width}}" if row_names else ""
        lines.append(label + "".join(f"{value:>10.{digits}f}" for value in np.round(row, digits)))
    return lines


def format_vector(
    title: str,
    vector: Sequence[float],
    digits: int = 3,
    names: Optional[Sequence[str]] = None,
) -> List[str]:
    lines = [f"{title}:"]
    for idx, value in enumerate(vector):
        name = names[idx] if names else f"[{idx}]"
        lines.append(f"{name}: {round(float(value), digits):.{digits}f}")
    return lines
