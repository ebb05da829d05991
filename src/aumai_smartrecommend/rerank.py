"""Second stage: blend retrieval similarity with tool quality."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from aumai_smartrecommend.config import EngineConfig
from aumai_smartrecommend.errors import stage_error
from aumai_smartrecommend.models import (
    ErrorKind,
    RankedCandidate,
    RerankResult,
    TaskType,
    ToolCandidate,
)
from aumai_smartrecommend.quality import extract_quality_score

__all__ = ["combine_scores", "rerank_candidates"]

logger = logging.getLogger(__name__)


def combine_scores(similarity: float, quality_score: float, config: EngineConfig) -> float:
    """Return the weighted final score for one candidate."""
    return similarity * config.similarity_weight + quality_score * config.quality_weight


def rerank_candidates(
    candidates: Sequence[ToolCandidate],
    task_type: TaskType,
    config: EngineConfig | None = None,
) -> RerankResult:
    """Score every candidate and sort them by descending final score.

    The sort is stable, so candidates with equal final scores keep the order the
    search stage returned them in.

    Args:
        candidates: Output of the search stage, best match first.
        task_type: Task type used to choose quality metrics.
        config: Weights to apply.  Defaults to :class:`EngineConfig` defaults.

    Returns:
        A :class:`~aumai_smartrecommend.models.RerankResult`.  If scoring raises,
        every candidate comes back with zero scores in its original order and the
        ``error`` field is set.
    """
    config = config or EngineConfig()
    start = time.perf_counter()

    try:
        ranked: list[RankedCandidate] = []
        for candidate in candidates:
            quality_score = extract_quality_score(
                candidate.scores, task_type, default=config.default_quality
            )
            final_score = combine_scores(candidate.similarity, quality_score, config)
            ranked.append(
                RankedCandidate(
                    **_candidate_fields(candidate),
                    quality_score=quality_score,
                    final_score=final_score,
                )
            )

        ranked.sort(key=lambda item: item.final_score, reverse=True)

        duration = _elapsed_ms(start)
        logger.debug(
            "Reranked %d candidate(s) for %s in %.1f ms",
            len(ranked),
            task_type.value,
            duration,
        )
        return RerankResult(ranked_candidates=ranked, reranking_duration=duration)
    except Exception as exc:  # noqa: BLE001
        duration = _elapsed_ms(start)
        logger.error(
            "Reranking %d candidate(s) for %s failed after %.1f ms: %s",
            len(candidates),
            task_type.value,
            duration,
            exc,
        )
        zeroed = [
            RankedCandidate(**_candidate_fields(candidate), quality_score=0.0, final_score=0.0)
            for candidate in candidates
        ]
        return RerankResult(
            ranked_candidates=zeroed,
            reranking_duration=duration,
            error=stage_error(ErrorKind.SCORING_FAILURE, exc),
        )


def _candidate_fields(candidate: ToolCandidate) -> dict[str, object]:
    return {name: getattr(candidate, name) for name in ToolCandidate.model_fields}


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0
