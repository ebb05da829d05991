"""AumAI SmartRecommend: two-stage search-then-rerank tool recommendations."""

from aumai_smartrecommend.classifier import detect_task_type
from aumai_smartrecommend.config import EngineConfig
from aumai_smartrecommend.engine import SmartRecommendationEngine
from aumai_smartrecommend.errors import (
    CatalogError,
    RecommendationError,
    SearchBackendError,
)
from aumai_smartrecommend.memory import (
    HybridSearchProvider,
    InMemoryToolIndex,
    KeywordSearchProvider,
    VectorSearchProvider,
)
from aumai_smartrecommend.models import (
    QualityMetrics,
    RankedCandidate,
    SearchStrategy,
    SmartRecommendationResult,
    TaskSpec,
    TaskType,
    ToolCandidate,
    ToolRecord,
    UserContext,
    UserPreferences,
)
from aumai_smartrecommend.quality import extract_quality_score
from aumai_smartrecommend.rerank import rerank_candidates
from aumai_smartrecommend.search import CandidateSearch

__version__ = "0.1.0"

__all__ = [
    "CandidateSearch",
    "CatalogError",
    "EngineConfig",
    "HybridSearchProvider",
    "InMemoryToolIndex",
    "KeywordSearchProvider",
    "QualityMetrics",
    "RankedCandidate",
    "RecommendationError",
    "SearchBackendError",
    "SearchStrategy",
    "SmartRecommendationEngine",
    "SmartRecommendationResult",
    "TaskSpec",
    "TaskType",
    "ToolCandidate",
    "ToolRecord",
    "UserContext",
    "UserPreferences",
    "VectorSearchProvider",
    "detect_task_type",
    "extract_quality_score",
    "rerank_candidates",
]
