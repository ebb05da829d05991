"""Task-type-adaptive quality scoring."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, NamedTuple

from aumai_smartrecommend.models import QualityMetrics, TaskType

__all__ = [
    "DEFAULT_QUALITY",
    "MetricSource",
    "normalize_score",
    "metric_priority",
    "extract_quality_score",
]

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 0.5


class MetricSource(NamedTuple):
    """Where to read one metric from and the range it is reported on."""

    group: str | None
    field: str
    low: float
    high: float

    def read(self, metrics: QualityMetrics) -> float | None:
        container: Any = metrics if self.group is None else getattr(metrics, self.group)
        if container is None:
            return None
        return getattr(container, self.field)


HUMAN_EVAL = MetricSource("benchmarks", "human_eval", 0.0, 100.0)
SWE_BENCH = MetricSource("benchmarks", "swe_bench", 0.0, 100.0)
MATH_BENCH = MetricSource("benchmarks", "math", 0.0, 100.0)
GPQA = MetricSource("benchmarks", "gpqa", 0.0, 100.0)
G2 = MetricSource("user_rating", "g2", 1.0, 5.0)
CAPTERRA = MetricSource("user_rating", "capterra", 1.0, 5.0)
TRUSTPILOT = MetricSource("user_rating", "trustpilot", 1.0, 5.0)
PERFORMANCE = MetricSource(None, "performance_score", 0.0, 100.0)

_TYPE_PRIORITIES: dict[TaskType, tuple[MetricSource, ...]] = {
    TaskType.CODING: (HUMAN_EVAL, SWE_BENCH, G2),
    TaskType.MATH: (MATH_BENCH, GPQA, G2),
    TaskType.ANALYSIS: (MATH_BENCH, GPQA, G2),
}
_GENERAL_PRIORITY: tuple[MetricSource, ...] = (G2, CAPTERRA, TRUSTPILOT)
_FALLBACK_PRIORITY: tuple[MetricSource, ...] = (G2, PERFORMANCE)


def normalize_score(value: float, low: float, high: float) -> float:
    """Linearly map *value* from ``[low, high]`` onto ``[0, 1]``, clamping outliers."""
    return max(0.0, min(1.0, (value - low) / (high - low)))


def metric_priority(task_type: TaskType) -> tuple[MetricSource, ...]:
    """Return every metric consulted for *task_type*, in lookup order."""
    return _TYPE_PRIORITIES.get(task_type, _GENERAL_PRIORITY) + _FALLBACK_PRIORITY


def extract_quality_score(
    scores: QualityMetrics | Mapping[str, Any] | None,
    task_type: TaskType,
    default: float = DEFAULT_QUALITY,
) -> float:
    """Reduce a tool's quality metrics to a single value in ``[0, 1]``.

    Coding tools are judged by coding benchmarks, math and analysis tools by
    reasoning benchmarks, and everything else by user ratings.  The first metric
    present in :func:`metric_priority` order is normalised and returned.

    Args:
        scores: Validated metrics, a raw ``scores`` mapping, or *None*.
        task_type: Detected type of the task being matched.
        default: Value returned when no metric is available.

    Returns:
        The normalised quality score, or *default* when nothing usable was found
        or extraction failed.
    """
    if scores is None:
        return default

    try:
        metrics = (
            scores if isinstance(scores, QualityMetrics) else QualityMetrics.model_validate(scores)
        )
        for source in metric_priority(task_type):
            value = source.read(metrics)
            if value is not None and math.isfinite(value):
                return normalize_score(value, source.low, source.high)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Quality score extraction failed for task type %s: %s", task_type.value, exc
        )

    return default
