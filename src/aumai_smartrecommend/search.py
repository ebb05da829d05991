"""First stage: retrieve candidate tools through a chain of search providers."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from aumai_smartrecommend.config import EngineConfig
from aumai_smartrecommend.errors import stage_error
from aumai_smartrecommend.models import (
    CandidateSearchResult,
    ErrorKind,
    KnowledgeBaseStats,
    SearchHit,
    SearchStrategy,
    ToolCandidate,
    ToolRecord,
    UserPreferences,
)

__all__ = [
    "CandidateProvider",
    "ToolCatalog",
    "KnowledgeBase",
    "STRATEGY_ORDER",
    "resolve_similarity",
    "CandidateSearch",
]

logger = logging.getLogger(__name__)

# Degrade order used when providers are registered out of order.
STRATEGY_ORDER: tuple[SearchStrategy, ...] = (
    SearchStrategy.RAG_ENHANCED,
    SearchStrategy.ADAPTIVE,
    SearchStrategy.HYBRID,
    SearchStrategy.VECTOR,
    SearchStrategy.KEYWORD,
)


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class CandidateProvider(Protocol):
    """A search backend able to answer a free-text query with ranked hits."""

    strategy: SearchStrategy
    requires_knowledge_base: bool

    async def search(
        self, query: str, limit: int, preferences: UserPreferences | None = None
    ) -> list[SearchHit]: ...


@runtime_checkable
class ToolCatalog(Protocol):
    """Batch lookup of catalog rows by tool id."""

    async def fetch_tools(self, tool_ids: Sequence[str]) -> list[ToolRecord]: ...


@runtime_checkable
class KnowledgeBase(Protocol):
    """Source of knowledge-base statistics for the RAG readiness check."""

    async def get_knowledge_stats(self) -> KnowledgeBaseStats | None: ...


def resolve_similarity(hit: SearchHit, index: int, candidate_count: int) -> float:
    """Pick the best available relevance signal for *hit* and clamp it to ``[0, 1]``.

    RAG score, hybrid score, vector similarity and the generic score are tried
    in that order; NaN and infinite values count as missing.  Hits that carry
    none of them fall back to a rank-derived value, ``1 - index / candidate_count``,
    so later hits score lower.
    """
    for value in (hit.rag_score, hit.hybrid_score, hit.vector_similarity, hit.score):
        if value is not None and math.isfinite(value):
            return max(0.0, min(1.0, value))
    return max(0.0, min(1.0, 1.0 - index / candidate_count))


class CandidateSearch:
    """Search stage of the recommendation pipeline.

    Providers are tried one after another, in :data:`STRATEGY_ORDER`, until one
    returns hits.  Providers that need the knowledge base are only consulted
    when RAG is enabled and :meth:`is_rag_ready` says the knowledge base is
    usable.  A provider that raises is logged and skipped.

    Args:
        providers: Search providers, in any order.
        catalog: Catalog used to attach quality metrics and display metadata.
        knowledge_base: Optional source of knowledge-base statistics.
        config: Engine configuration.
    """

    def __init__(
        self,
        providers: Sequence[CandidateProvider],
        catalog: ToolCatalog,
        knowledge_base: KnowledgeBase | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._providers: list[CandidateProvider] = sorted(
            providers, key=lambda provider: STRATEGY_ORDER.index(provider.strategy)
        )
        self._catalog = catalog
        self._knowledge_base = knowledge_base
        self._config = config or EngineConfig()

    @property
    def providers(self) -> list[CandidateProvider]:
        return list(self._providers)

    async def is_rag_ready(self) -> bool:
        """Return *True* when the knowledge base is large and good enough to use."""
        if self._knowledge_base is None:
            return False
        try:
            stats = await self._knowledge_base.get_knowledge_stats()
        except Exception as exc:  # noqa: BLE001
            logger.error("Knowledge base status check failed: %s", exc)
            return False

        if stats is None:
            logger.warning("Knowledge base statistics are not available")
            return False

        logger.info(
            "Knowledge base has %d entries (quality %.2f, updated %s)",
            stats.total_knowledge_entries,
            stats.knowledge_quality_score,
            stats.last_updated,
        )
        return (
            stats.total_knowledge_entries > self._config.rag_min_entries
            and stats.knowledge_quality_score > self._config.rag_min_quality
        )

    async def eligible_providers(self) -> list[CandidateProvider]:
        """Return the providers to try for the next search, in order."""
        config = self._config
        rag_ready: bool | None = None
        chain: list[CandidateProvider] = []

        for provider in self._providers:
            if provider.strategy is SearchStrategy.ADAPTIVE and not config.enable_adaptive:
                continue
            if provider.requires_knowledge_base:
                if not config.enable_rag:
                    continue
                if rag_ready is None:
                    rag_ready = await self.is_rag_ready()
                if not rag_ready:
                    continue
            chain.append(provider)

        if not config.enable_fallback:
            return chain[:1]
        return chain

    async def search_candidates(
        self, task_name: str, preferences: UserPreferences | None = None
    ) -> CandidateSearchResult:
        """Retrieve up to ``candidate_count`` candidates for *task_name*.

        Never raises.  A failing catalog lookup, a malformed provider response,
        or a chain in which every provider raised yields an empty candidate list
        with ``error`` set.  A search that simply finds nothing yields an empty
        list without an error.
        """
        start = time.perf_counter()
        limit = self._config.candidate_count

        try:
            hits, strategy, failure = await self._run_chain(task_name, limit, preferences)

            if not hits:
                logger.info("No search results for task %r", task_name)
                return CandidateSearchResult(
                    search_duration=_elapsed_ms(start),
                    strategy=strategy,
                    error=stage_error(ErrorKind.SEARCH_FAILURE, failure) if failure else None,
                )

            hits = hits[:limit]
            records = await self._catalog.fetch_tools([hit.tool_id for hit in hits])
            by_id = {record.tool_id: record for record in records}

            candidates: list[ToolCandidate] = []
            for index, hit in enumerate(hits):
                record = by_id.get(hit.tool_id)
                candidates.append(
                    ToolCandidate(
                        id=hit.tool_id,
                        name=record.name if record is not None else hit.name,
                        similarity=resolve_similarity(hit, index, limit),
                        scores=record.scores if record is not None else None,
                        url=record.url if record is not None else None,
                        logo_url=record.logo_url if record is not None else None,
                    )
                )

            duration = _elapsed_ms(start)
            logger.info(
                "Found %d candidate(s) for task %r via %s in %.1f ms",
                len(candidates),
                task_name,
                strategy.value,
                duration,
            )
            return CandidateSearchResult(
                candidates=candidates, search_duration=duration, strategy=strategy
            )
        except Exception as exc:  # noqa: BLE001
            duration = _elapsed_ms(start)
            logger.error(
                "Candidate search for task %r failed after %.1f ms: %s",
                task_name,
                duration,
                exc,
            )
            return CandidateSearchResult(
                search_duration=duration,
                strategy=SearchStrategy.KEYWORD,
                error=stage_error(ErrorKind.SEARCH_FAILURE, exc),
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _run_chain(
        self, task_name: str, limit: int, preferences: UserPreferences | None
    ) -> tuple[list[SearchHit], SearchStrategy, Exception | None]:
        """Run the provider chain.

        The third element is the last provider error when every provider that
        was tried raised, and *None* otherwise.
        """
        chain = await self.eligible_providers()
        failures = 0
        last_error: Exception | None = None
        for provider in chain:
            try:
                hits = await provider.search(task_name, limit, preferences)
            except Exception as exc:  # noqa: BLE001
                failures += 1
                last_error = exc
                logger.warning(
                    "%s search failed for task %r, trying next strategy: %s",
                    provider.strategy.value,
                    task_name,
                    exc,
                )
                continue

            if hits:
                strategy = hits[0].search_strategy or provider.strategy
                return list(hits), strategy, None

            logger.debug(
                "%s search returned nothing for task %r", provider.strategy.value, task_name
            )

        if chain and failures == len(chain):
            return [], SearchStrategy.KEYWORD, last_error
        return [], SearchStrategy.KEYWORD, None


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0
