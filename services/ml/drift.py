from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import numpy as np


@dataclass
class GateReport:
    """Small helper structure describing the outcome of a guardrail."""

    name: str
    value: float
    threshold: float
    passed: bool
    details: Dict[str, Any] = field(default_factory=dict)


def split_history(history: Sequence[float], recent_fraction: float = 0.2) -> Tuple[np.ndarray, np.ndarray]:
    """Split *history* into (older, recent) arrays, recent being the tail."""

    values = np.asarray(list(history), dtype=float)
    if values.size < 2:
        return values[:0], values
    recent = max(1, int(np.ceil(values.size * recent_fraction)))
    recent = min(recent, values.size - 1)
    return values[:-recent], values[-recent:]


def accuracy_drift(history: Iterable[float], *, recent_fraction: float = 0.2) -> float:
    """Drop in mean accuracy of the recent slice relative to the older slice.

    Positive values mean recent performance is worse. Returns 0.0 when the
    history is too short to compare.
    """

    older, recent = split_history(list(history), recent_fraction)
    if older.size == 0 or recent.size == 0:
        return 0.0
    return float(older.mean() - recent.mean())


def evaluate_accuracy_drift(
    history: Iterable[float],
    *,
    threshold: float = 0.05,
    recent_fraction: float = 0.2,
    min_samples: int = 10,
) -> GateReport:
    """Guardrail report that fails when accuracy dropped by more than *threshold*."""

    values: List[float] = [float(v) for v in history]
    if len(values) < min_samples:
        return GateReport(
            name="performance.accuracy_drift",
            value=0.0,
            threshold=threshold,
            passed=True,
            details={"samples": len(values), "reason": "insufficient_history"},
        )
    older, recent = split_history(values, recent_fraction)
    drop = float(older.mean() - recent.mean())
    return GateReport(
        name="performance.accuracy_drift",
        value=drop,
        threshold=threshold,
        passed=drop <= threshold,
        details={
            "samples": len(values),
            "older_mean": float(older.mean()),
            "recent_mean": float(recent.mean()),
        },
    )


__all__ = [
    "GateReport",
    "split_history",
    "accuracy_drift",
    "evaluate_accuracy_drift",
]
