"""Quickstart examples for aumai-smartrecommend.

Builds an in-memory tool catalog, then asks the engine for recommendations:
one task at a time, with preference filters, and as a concurrent batch.
Nothing here needs a database or an API key.

Run this file directly to verify your installation:

    python examples/quickstart.py
"""

import asyncio

from aumai_smartrecommend import (
    CandidateSearch,
    EngineConfig,
    HybridSearchProvider,
    InMemoryToolIndex,
    KeywordSearchProvider,
    SmartRecommendationEngine,
    TaskSpec,
    ToolRecord,
    UserPreferences,
    VectorSearchProvider,
)

# ---------------------------------------------------------------------------
# Shared fixture: a small catalog with quality metrics
# ---------------------------------------------------------------------------


def _build_catalog() -> InMemoryToolIndex:
    """Create and index a sample set of tools covering several task types."""
    index = InMemoryToolIndex()

    tools = [
        ToolRecord(
            tool_id="codepilot",
            name="CodePilot",
            description="AI pair programmer that completes and reviews code in the editor.",
            categories=["coding"],
            tags=["ide", "autocomplete"],
            scores={"benchmarks": {"HumanEval": 91, "SWE-Bench": 38}, "user_rating": {"G2": 4.6}},
        ),
        ToolRecord(
            tool_id="bughound",
            name="BugHound",
            description="Finds and explains bugs in Python and JavaScript code.",
            categories=["coding"],
            is_free=True,
            scores={"user_rating": {"G2": 4.1}},
        ),
        ToolRecord(
            tool_id="mathsolver",
            name="MathSolver",
            description="Solves algebra and calculus problems step by step.",
            categories=["math", "analysis"],
            scores={"benchmarks": {"MATH": 82, "GPQA": 57}},
        ),
        ToolRecord(
            tool_id="canvasdraw",
            name="CanvasDraw",
            description="Create graphic mockups and wireframes for product screens.",
            categories=["design"],
            is_free=True,
            scores={"user_rating": {"Capterra": 4.4}},
        ),
        ToolRecord(
            tool_id="wordsmith",
            name="WordSmith",
            description="Drafts blog posts and marketing articles.",
            categories=["writing"],
        ),
    ]

    for tool in tools:
        index.add_tool(tool)
    index.build_index()
    return index


def _build_engine(index: InMemoryToolIndex) -> SmartRecommendationEngine:
    config = EngineConfig(similarity_weight=0.6, quality_weight=0.4, candidate_count=5)
    search = CandidateSearch(
        providers=[
            HybridSearchProvider(index),
            VectorSearchProvider(index),
            KeywordSearchProvider(index),
        ],
        catalog=index,
        config=config,
    )
    return SmartRecommendationEngine(search, config)


# ---------------------------------------------------------------------------
# Demo 1: Single recommendation
# ---------------------------------------------------------------------------


async def demo_single(engine: SmartRecommendationEngine) -> None:
    """Recommend one tool and show how the score was built."""
    print("\n--- Demo 1: Single Recommendation ---")

    result = await engine.get_smart_recommendation("review python code for bugs")
    print(f"Task     : {result.task_name}  (type={result.task_type.value})")
    print(f"Tool     : {result.tool_name} (id={result.tool_id})")
    print(f"Strategy : {result.search_strategy.value if result.search_strategy else '-'}")
    print(f"Reason   : {result.reason}")


# ---------------------------------------------------------------------------
# Demo 2: Preference filters
# ---------------------------------------------------------------------------


async def demo_preferences(engine: SmartRecommendationEngine) -> None:
    """Restrict the candidate pool to free tools."""
    print("\n--- Demo 2: Free Tools Only ---")

    preferences = UserPreferences(free_tools_only=True)
    result = await engine.get_smart_recommendation("find bugs in my code", preferences)
    print(f"Free pick: {result.tool_name} (final={result.final_score:.3f})")


# ---------------------------------------------------------------------------
# Demo 3: Concurrent batch
# ---------------------------------------------------------------------------


async def demo_batch(engine: SmartRecommendationEngine) -> None:
    """Recommend tools for several tasks at once."""
    print("\n--- Demo 3: Batch ---")

    tasks = [
        TaskSpec(id="t1", name="Solve calculus problems"),
        TaskSpec(id="t2", name="Sketch wireframes for the signup screen"),
        TaskSpec(id="t3", name="Write a blog post about the launch"),
    ]
    results = await engine.process_tasks_in_parallel(tasks, workflow_id="quickstart")
    for result in results:
        tool = result.tool_name or "(none)"
        print(f"  {result.task_id}: {result.task_name:<42} -> {tool}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def main() -> None:
    """Run all aumai-smartrecommend quickstart demos."""
    print("=== aumai-smartrecommend Quickstart ===")

    index = _build_catalog()
    print(f"Catalog built with {len(index.get_all_tools())} tools.")
    engine = _build_engine(index)

    await demo_single(engine)
    await demo_preferences(engine)
    await demo_batch(engine)

    print("\nAll demos completed successfully.")


if __name__ == "__main__":
    asyncio.run(main())
