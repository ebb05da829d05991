"""Recommendation orchestrator: classify, search, rerank."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import Counter
from collections.abc import Sequence

from aumai_smartrecommend.classifier import detect_task_type
from aumai_smartrecommend.config import EngineConfig
from aumai_smartrecommend.errors import stage_error
from aumai_smartrecommend.models import (
    ErrorKind,
    RankedCandidate,
    SearchStrategy,
    SmartRecommendationResult,
    StageError,
    TaskSpec,
    TaskType,
    UserContext,
    UserPreferences,
)
from aumai_smartrecommend.rerank import rerank_candidates
from aumai_smartrecommend.search import CandidateSearch

__all__ = ["NO_MATCH_REASON", "ERROR_REASON", "SmartRecommendationEngine"]

logger = logging.getLogger(__name__)

NO_MATCH_REASON = "No suitable tool was found for this task."
ERROR_REASON = "An error occurred while recommending a tool: {message}"


class SmartRecommendationEngine:
    """Two-stage search-then-rerank tool recommender.

    The engine holds no per-request state, so one instance can serve any number
    of concurrent recommendations.  No public method raises: every failure is
    turned into a :class:`~aumai_smartrecommend.models.SmartRecommendationResult`
    without a tool and with the cause in ``reason``.

    Args:
        search: The candidate search stage.
        config: Engine configuration.  Defaults to :class:`EngineConfig` defaults.
    """

    def __init__(self, search: CandidateSearch, config: EngineConfig | None = None) -> None:
        self._search = search
        self._config = config or EngineConfig()

    @property
    def config(self) -> EngineConfig:
        return self._config

    def detect_task_type(self, task_name: str) -> TaskType:
        return detect_task_type(task_name)

    async def get_smart_recommendation(
        self,
        task_name: str,
        preferences: UserPreferences | None = None,
        user_context: UserContext | None = None,
    ) -> SmartRecommendationResult:
        """Recommend the best tool for *task_name*.

        Args:
            task_name: Free-text description of the task.
            preferences: Optional search filters.
            user_context: Caller identity, used for logging only.

        Returns:
            The recommendation.  ``tool_id`` is *None* when nothing matched or
            the pipeline failed.
        """
        task_id = str(uuid.uuid4())
        start = time.perf_counter()

        try:
            if self._config.task_timeout is None:
                return await self._recommend(task_id, task_name, preferences, user_context)
            return await asyncio.wait_for(
                self._recommend(task_id, task_name, preferences, user_context),
                timeout=self._config.task_timeout,
            )
        except Exception as exc:  # noqa: BLE001
            elapsed = _elapsed_ms(start)
            error = stage_error(ErrorKind.ORCHESTRATION_FAILURE, exc)
            if isinstance(exc, asyncio.TimeoutError):
                error = StageError(
                    kind=ErrorKind.ORCHESTRATION_FAILURE,
                    message=f"timed out after {self._config.task_timeout}s",
                )
            logger.error(
                "Recommendation for task %r failed after %.1f ms: %s",
                task_name,
                elapsed,
                error.message,
            )
            return SmartRecommendationResult(
                task_id=task_id,
                task_name=task_name,
                reason=ERROR_REASON.format(message=error.message),
                task_type=TaskType.GENERAL,
                search_duration=elapsed,
                search_strategy=SearchStrategy.KEYWORD,
                error=error,
            )

    async def process_tasks_in_parallel(
        self,
        tasks: Sequence[TaskSpec],
        preferences: UserPreferences | None = None,
        user_context: UserContext | None = None,
        workflow_id: str | None = None,
    ) -> list[SmartRecommendationResult]:
        """Recommend a tool for every task concurrently.

        Returns one result per task, in input order, each carrying the input
        task's id.
        """
        results = await asyncio.gather(
            *(self._recommend_task(task, preferences, user_context) for task in tasks)
        )

        matched = sum(1 for result in results if result.tool_id is not None)
        strategies = Counter(
            result.search_strategy.value for result in results if result.search_strategy
        )
        logger.info(
            "Workflow %s: recommended tools for %d of %d task(s); strategies %s",
            workflow_id or "-",
            matched,
            len(results),
            dict(strategies),
        )
        return list(results)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _recommend_task(
        self,
        task: TaskSpec,
        preferences: UserPreferences | None,
        user_context: UserContext | None,
    ) -> SmartRecommendationResult:
        result = await self.get_smart_recommendation(task.name, preferences, user_context)
        return result.model_copy(update={"task_id": task.id})

    async def _recommend(
        self,
        task_id: str,
        task_name: str,
        preferences: UserPreferences | None,
        user_context: UserContext | None,
    ) -> SmartRecommendationResult:
        task_type = detect_task_type(task_name)
        logger.debug(
            "Recommending for task %r (type %s, session %s)",
            task_name,
            task_type.value,
            user_context.session_id if user_context else "-",
        )

        search = await self._search.search_candidates(task_name, preferences)

        if not search.candidates:
            return SmartRecommendationResult(
                task_id=task_id,
                task_name=task_name,
                reason=_no_match_reason(search.error),
                task_type=task_type,
                search_duration=search.search_duration,
                search_strategy=search.strategy,
                error=search.error,
            )

        rerank = rerank_candidates(search.candidates, task_type, self._config)
        best = rerank.ranked_candidates[0]

        return SmartRecommendationResult(
            task_id=task_id,
            task_name=task_name,
            tool_id=best.id,
            tool_name=best.name,
            reason=self._explain(best, task_type, search.strategy),
            confidence_score=best.final_score,
            final_score=best.final_score,
            similarity=best.similarity,
            quality_score=best.quality_score,
            task_type=task_type,
            search_duration=search.search_duration,
            reranking_duration=rerank.reranking_duration,
            search_strategy=search.strategy,
            error=rerank.error,
        )

    def _explain(
        self, best: RankedCandidate, task_type: TaskType, strategy: SearchStrategy
    ) -> str:
        return (
            f"Final Score: {best.final_score:.3f} "
            f"(Similarity: {best.similarity:.3f} x {self._config.similarity_weight} + "
            f"Quality: {best.quality_score:.3f} x {self._config.quality_weight}) "
            f"| Task Type: {task_type.value} | Strategy: {strategy.value}"
        )


def _no_match_reason(error: StageError | None) -> str:
    if error is None:
        return NO_MATCH_REASON
    return f"{NO_MATCH_REASON} Search failed: {error.message}"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0
