"""Pydantic models for aumai-smartrecommend."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
    field_validator,
)

__all__ = [
    "TaskType",
    "SearchStrategy",
    "ErrorKind",
    "StageError",
    "Benchmarks",
    "UserRatings",
    "QualityMetrics",
    "ToolRecord",
    "SearchHit",
    "ToolCandidate",
    "RankedCandidate",
    "UserPreferences",
    "UserContext",
    "TaskSpec",
    "KnowledgeBaseStats",
    "CandidateSearchResult",
    "RerankResult",
    "SmartRecommendationResult",
]

logger = logging.getLogger(__name__)


class TaskType(str, Enum):
    """Coarse task category used to pick which quality metrics matter."""

    CODING = "coding"
    MATH = "math"
    ANALYSIS = "analysis"
    DESIGN = "design"
    WRITING = "writing"
    COMMUNICATION = "communication"
    GENERAL = "general"


class SearchStrategy(str, Enum):
    """Retrieval strategy that produced a candidate list."""

    RAG_ENHANCED = "rag_enhanced"
    ADAPTIVE = "adaptive"
    HYBRID = "hybrid"
    VECTOR = "vector"
    KEYWORD = "keyword"


class ErrorKind(str, Enum):
    """Pipeline stage that recovered from a failure."""

    SEARCH_FAILURE = "search_failure"
    SCORING_FAILURE = "scoring_failure"
    ORCHESTRATION_FAILURE = "orchestration_failure"


class StageError(BaseModel):
    """A failure that a pipeline stage recovered from."""

    kind: ErrorKind = Field(..., description="Which stage gave up")
    message: str = Field(..., description="Message of the underlying exception")


# ---------------------------------------------------------------------------
# Quality metrics (the catalog's ``scores`` blob)
# ---------------------------------------------------------------------------


def _lenient_metric(value: Any, handler: ValidatorFunctionWrapHandler) -> float | None:
    """Parse one metric, turning unparsable or non-finite values into *None*."""
    try:
        parsed = handler(value)
    except ValidationError:
        logger.warning("Ignoring unparsable metric value %r", value)
        return None
    if parsed is not None and not math.isfinite(parsed):
        logger.warning("Ignoring non-finite metric value %r", value)
        return None
    return parsed


# A bad value drops only its own field; sibling metrics are kept.
MetricValue = Annotated[float | None, WrapValidator(_lenient_metric)]


class Benchmarks(BaseModel):
    """Benchmark results on a 0-100 scale. Unknown benchmarks are kept as extras."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    human_eval: MetricValue = Field(default=None, alias="HumanEval")
    # Catalog rows spell the SWE benchmark both ways.
    swe_bench: MetricValue = Field(
        default=None,
        validation_alias=AliasChoices("SWE_Bench", "SWE-Bench", "swe_bench"),
        serialization_alias="SWE_Bench",
    )
    math: MetricValue = Field(default=None, alias="MATH")
    gpqa: MetricValue = Field(default=None, alias="GPQA")


class UserRatings(BaseModel):
    """User ratings by review site on a 1-5 scale."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    g2: MetricValue = Field(default=None, alias="G2")
    capterra: MetricValue = Field(default=None, alias="Capterra")
    trustpilot: MetricValue = Field(default=None, alias="TrustPilot")


class QualityMetrics(BaseModel):
    """Heuristic quality signals attached to a catalog tool. Every field is optional."""

    model_config = ConfigDict(extra="allow")

    benchmarks: Benchmarks | None = None
    user_rating: UserRatings | None = None
    performance_score: MetricValue = Field(default=None, description="Generic 0-100 score")
    reliability_score: MetricValue = Field(
        default=None, description="Carried through from the catalog; not used for scoring"
    )

    @field_validator("benchmarks", "user_rating", mode="wrap")
    @classmethod
    def _lenient_group(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(value)
        except ValidationError:
            logger.warning("Ignoring malformed metric group %r", value)
            return None

    @classmethod
    def coerce(cls, raw: Any) -> QualityMetrics | None:
        """Validate *raw* into metrics, returning *None* when it is absent or not a mapping.

        Unparsable values inside the mapping only drop their own field.
        """
        if raw is None or isinstance(raw, QualityMetrics):
            return raw
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed quality metrics: %s", exc)
            return None


# ---------------------------------------------------------------------------
# Catalog and search collaborator shapes
# ---------------------------------------------------------------------------


class ToolRecord(BaseModel):
    """A tool row in the catalog."""

    tool_id: str = Field(..., description="Globally unique identifier for the tool")
    name: str = Field(..., description="Human-readable tool name")
    description: str = Field(default="", description="What the tool does")
    url: str | None = None
    logo_url: str | None = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_free: bool = False
    scores: QualityMetrics | None = Field(
        default=None, description="Validated quality metrics; None when absent or malformed"
    )
    embedding: list[float] | None = Field(
        default=None,
        description="Dense embedding vector. Set automatically by the in-memory index.",
    )

    @field_validator("scores", mode="before")
    @classmethod
    def _validate_scores(cls, value: Any) -> Any:
        return QualityMetrics.coerce(value)


class SearchHit(BaseModel):
    """A document returned by a search provider, before the catalog join."""

    tool_id: str
    name: str = ""
    rag_score: float | None = None
    hybrid_score: float | None = None
    vector_similarity: float | None = None
    text_similarity: float | None = None
    score: float | None = None
    search_strategy: SearchStrategy | None = None
    confidence_score: float | None = Field(
        default=None, description="Backend confidence; carried through, not used for ranking"
    )


class ToolCandidate(BaseModel):
    """A tool retrieved as a plausible match for a task, before reranking."""

    id: str
    name: str
    similarity: float = Field(..., ge=0.0, le=1.0, description="Retrieval relevance in [0, 1]")
    scores: QualityMetrics | None = None
    url: str | None = None
    logo_url: str | None = None


class RankedCandidate(ToolCandidate):
    """A candidate after reranking, with its quality and final scores."""

    quality_score: float = Field(..., description="Normalised quality in [0, 1]")
    final_score: float = Field(..., description="Weighted blend of similarity and quality")


# ---------------------------------------------------------------------------
# Request-side models
# ---------------------------------------------------------------------------


class UserPreferences(BaseModel):
    """Optional filters a caller can pass to the search stage."""

    model_config = ConfigDict(populate_by_name=True)

    categories: list[str] = Field(default_factory=list)
    difficulty_level: str = Field(
        default="intermediate", description="Passed through to providers; not used for filtering"
    )
    budget_range: str = "mixed"
    free_tools_only: bool = Field(default=False, alias="freeToolsOnly")


class UserContext(BaseModel):
    """Identity of the caller. Only used to annotate log records."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    session_id: str = Field(..., alias="sessionId")
    language: str = "en"


class TaskSpec(BaseModel):
    """One task of a batch request."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class KnowledgeBaseStats(BaseModel):
    """Summary of the auxiliary knowledge base used by RAG-enhanced search."""

    total_knowledge_entries: int = 0
    knowledge_quality_score: float = 0.0
    last_updated: str | None = None
    coverage_by_category: dict[str, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Stage and pipeline results
# ---------------------------------------------------------------------------


class CandidateSearchResult(BaseModel):
    """Output of the search stage. Empty candidates with no error means no match."""

    candidates: list[ToolCandidate] = Field(default_factory=list)
    search_duration: float = Field(default=0.0, description="Elapsed milliseconds")
    strategy: SearchStrategy = SearchStrategy.KEYWORD
    error: StageError | None = None


class RerankResult(BaseModel):
    """Output of the rerank stage, best candidate first."""

    ranked_candidates: list[RankedCandidate] = Field(default_factory=list)
    reranking_duration: float = Field(default=0.0, description="Elapsed milliseconds")
    error: StageError | None = None


class SmartRecommendationResult(BaseModel):
    """The recommendation returned for one task.

    ``tool_id`` is *None* exactly when no candidate was found or the pipeline
    failed; in that case every score field is ``0``.
    """

    task_id: str
    task_name: str
    tool_id: str | None = None
    tool_name: str | None = None
    reason: str
    confidence_score: float = 0.0
    final_score: float = 0.0
    similarity: float = 0.0
    quality_score: float = 0.0
    task_type: TaskType = TaskType.GENERAL
    search_duration: float = 0.0
    reranking_duration: float = 0.0
    search_strategy: SearchStrategy | None = None
    error: StageError | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the result as a JSON-ready dict with camelCase keys."""
        return {
            "taskId": self.task_id,
            "taskName": self.task_name,
            "toolId": self.tool_id,
            "toolName": self.tool_name,
            "reason": self.reason,
            "confidenceScore": self.confidence_score,
            "finalScore": self.final_score,
            "similarity": self.similarity,
            "qualityScore": self.quality_score,
            "taskType": self.task_type.value,
            "searchDuration": self.search_duration,
            "rerankingDuration": self.reranking_duration,
            "searchStrategy": self.search_strategy.value if self.search_strategy else None,
            "error": self.error.model_dump(mode="json") if self.error else None,
        }
