"""Shared test fixtures for aumai-smartrecommend."""
from __future__ import annotations

from collections.abc import Sequence

import pytest

from aumai_smartrecommend.config import EngineConfig
from aumai_smartrecommend.engine import SmartRecommendationEngine
from aumai_smartrecommend.memory import InMemoryToolIndex
from aumai_smartrecommend.models import (
    KnowledgeBaseStats,
    SearchHit,
    SearchStrategy,
    ToolRecord,
    UserPreferences,
)
from aumai_smartrecommend.search import CandidateSearch


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class StaticProvider:
    """Search provider returning fixed hits, or raising a fixed error."""

    def __init__(
        self,
        strategy: SearchStrategy,
        hits: Sequence[SearchHit] = (),
        error: Exception | None = None,
        requires_knowledge_base: bool = False,
    ) -> None:
        self.strategy = strategy
        self.requires_knowledge_base = requires_knowledge_base
        self._hits = list(hits)
        self._error = error
        self.calls: list[tuple[str, int, UserPreferences | None]] = []

    async def search(
        self, query: str, limit: int, preferences: UserPreferences | None = None
    ) -> list[SearchHit]:
        self.calls.append((query, limit, preferences))
        if self._error is not None:
            raise self._error
        return list(self._hits)


class StaticCatalog:
    """Catalog backed by a dict, optionally failing every lookup."""

    def __init__(self, records: Sequence[ToolRecord] = (), error: Exception | None = None) -> None:
        self._records = {record.tool_id: record for record in records}
        self._error = error
        self.requested: list[list[str]] = []

    async def fetch_tools(self, tool_ids: Sequence[str]) -> list[ToolRecord]:
        self.requested.append(list(tool_ids))
        if self._error is not None:
            raise self._error
        return [self._records[tool_id] for tool_id in tool_ids if tool_id in self._records]


class StaticKnowledgeBase:
    def __init__(
        self, stats: KnowledgeBaseStats | None = None, error: Exception | None = None
    ) -> None:
        self._stats = stats
        self._error = error
        self.calls = 0

    async def get_knowledge_stats(self) -> KnowledgeBaseStats | None:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._stats


# ---------------------------------------------------------------------------
# Reusable tool records
# ---------------------------------------------------------------------------


@pytest.fixture()
def code_tool() -> ToolRecord:
    return ToolRecord(
        tool_id="codepilot",
        name="CodePilot",
        description="AI pair programmer that completes code in the editor",
        url="https://codepilot.example",
        categories=["coding"],
        tags=["ide", "autocomplete"],
        scores={"benchmarks": {"HumanEval": 90}, "user_rating": {"G2": 4.5}},
    )


@pytest.fixture()
def math_tool() -> ToolRecord:
    return ToolRecord(
        tool_id="mathsolver",
        name="MathSolver",
        description="Solves math problems step by step with statistics support",
        categories=["math", "analysis"],
        scores={"benchmarks": {"MATH": 80, "GPQA": 60}},
    )


@pytest.fixture()
def design_tool() -> ToolRecord:
    return ToolRecord(
        tool_id="canvasdraw",
        name="CanvasDraw",
        description="Create graphic mockups and wireframes for product screens",
        categories=["design"],
        is_free=True,
        scores={"user_rating": {"G2": 4.0, "Capterra": 3.0}},
    )


@pytest.fixture()
def writing_tool() -> ToolRecord:
    return ToolRecord(
        tool_id="wordsmith",
        name="WordSmith",
        description="Drafts blog posts and marketing articles",
        categories=["writing"],
    )


@pytest.fixture()
def retired_tool() -> ToolRecord:
    return ToolRecord(
        tool_id="oldpad",
        name="OldPad",
        description="Retired blog editor",
        categories=["writing"],
        is_active=False,
    )


@pytest.fixture()
def catalog_tools(
    code_tool: ToolRecord,
    math_tool: ToolRecord,
    design_tool: ToolRecord,
    writing_tool: ToolRecord,
    retired_tool: ToolRecord,
) -> list[ToolRecord]:
    return [code_tool, math_tool, design_tool, writing_tool, retired_tool]


@pytest.fixture()
def populated_index(catalog_tools: list[ToolRecord]) -> InMemoryToolIndex:
    """Return an InMemoryToolIndex holding every sample tool, index built."""
    index = InMemoryToolIndex()
    for tool in catalog_tools:
        index.add_tool(tool)
    index.build_index()
    return index


@pytest.fixture()
def config() -> EngineConfig:
    return EngineConfig()


def make_engine(
    providers: Sequence[StaticProvider],
    records: Sequence[ToolRecord] = (),
    config: EngineConfig | None = None,
    knowledge_base: StaticKnowledgeBase | None = None,
) -> SmartRecommendationEngine:
    """Wire fake collaborators into a real search stage and engine."""
    config = config or EngineConfig()
    search = CandidateSearch(
        providers=providers,
        catalog=StaticCatalog(records),
        knowledge_base=knowledge_base,
        config=config,
    )
    return SmartRecommendationEngine(search, config)
