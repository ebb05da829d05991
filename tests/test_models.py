"""Tests for aumai_smartrecommend models and configuration."""
from __future__ import annotations

import pydantic
import pytest

import aumai_smartrecommend
from aumai_smartrecommend.config import EngineConfig
from aumai_smartrecommend.errors import (
    CatalogError,
    RecommendationError,
    SearchBackendError,
    stage_error,
)
from aumai_smartrecommend.models import (
    ErrorKind,
    QualityMetrics,
    SearchStrategy,
    SmartRecommendationResult,
    TaskSpec,
    TaskType,
    ToolCandidate,
    ToolRecord,
    UserContext,
    UserPreferences,
)


class TestQualityMetrics:
    def test_aliases(self) -> None:
        metrics = QualityMetrics.model_validate(
            {
                "benchmarks": {"HumanEval": 88, "SWE-Bench": 40, "MATH": 71, "GPQA": 55},
                "user_rating": {"G2": 4.6, "Capterra": 4.2, "TrustPilot": 3.9},
                "performance_score": 80,
            }
        )
        assert metrics.benchmarks is not None
        assert metrics.benchmarks.human_eval == 88
        assert metrics.benchmarks.swe_bench == 40
        assert metrics.benchmarks.math == 71
        assert metrics.benchmarks.gpqa == 55
        assert metrics.user_rating is not None
        assert metrics.user_rating.trustpilot == 3.9
        assert metrics.performance_score == 80

    def test_unknown_keys_allowed(self) -> None:
        metrics = QualityMetrics.model_validate({"benchmarks": {"MMLU": 90}, "extra": True})
        assert metrics.benchmarks is not None
        assert metrics.benchmarks.human_eval is None

    def test_coerce_none(self) -> None:
        assert QualityMetrics.coerce(None) is None

    def test_coerce_non_mapping(self) -> None:
        assert QualityMetrics.coerce("five stars") is None
        assert QualityMetrics.coerce([4.5]) is None

    def test_unparsable_value_drops_only_its_field(self) -> None:
        metrics = QualityMetrics.coerce({"user_rating": {"G2": "five", "Capterra": 4.0}})
        assert metrics is not None
        assert metrics.user_rating is not None
        assert metrics.user_rating.g2 is None
        assert metrics.user_rating.capterra == 4.0

    def test_unparsable_top_level_field_keeps_benchmarks(self) -> None:
        metrics = QualityMetrics.coerce(
            {"benchmarks": {"HumanEval": 90}, "reliability_score": "n/a"}
        )
        assert metrics is not None
        assert metrics.reliability_score is None
        assert metrics.benchmarks is not None
        assert metrics.benchmarks.human_eval == 90

    def test_malformed_group_drops_only_that_group(self) -> None:
        metrics = QualityMetrics.coerce({"benchmarks": "n/a", "user_rating": {"G2": 4.2}})
        assert metrics is not None
        assert metrics.benchmarks is None
        assert metrics.user_rating is not None
        assert metrics.user_rating.g2 == 4.2

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "NaN"])
    def test_non_finite_values_are_dropped(self, value: object) -> None:
        metrics = QualityMetrics.coerce({"benchmarks": {"MATH": value, "GPQA": 50}})
        assert metrics is not None
        assert metrics.benchmarks is not None
        assert metrics.benchmarks.math is None
        assert metrics.benchmarks.gpqa == 50

    def test_coerce_passthrough(self) -> None:
        metrics = QualityMetrics(performance_score=10)
        assert QualityMetrics.coerce(metrics) is metrics


class TestToolRecord:
    def test_defaults(self) -> None:
        tool = ToolRecord(tool_id="t", name="T")
        assert tool.is_active is True
        assert tool.is_free is False
        assert tool.scores is None
        assert tool.categories == []

    def test_scores_validated_at_boundary(self) -> None:
        tool = ToolRecord(tool_id="t", name="T", scores={"user_rating": {"G2": 4.1}})
        assert isinstance(tool.scores, QualityMetrics)

    def test_non_mapping_scores_dropped(self) -> None:
        tool = ToolRecord(tool_id="t", name="T", scores="excellent")
        assert tool.scores is None

    def test_partially_malformed_scores_kept(self) -> None:
        tool = ToolRecord(
            tool_id="t",
            name="T",
            scores={"benchmarks": {"HumanEval": 90}, "reliability_score": "n/a"},
        )
        assert tool.scores is not None
        assert tool.scores.benchmarks is not None
        assert tool.scores.benchmarks.human_eval == 90

    def test_name_required(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ToolRecord.model_validate({"tool_id": "t"})


class TestRequestModels:
    def test_preferences_defaults(self) -> None:
        preferences = UserPreferences()
        assert preferences.difficulty_level == "intermediate"
        assert preferences.budget_range == "mixed"
        assert preferences.categories == []
        assert preferences.free_tools_only is False

    def test_preferences_camel_case_alias(self) -> None:
        assert UserPreferences.model_validate({"freeToolsOnly": True}).free_tools_only is True

    def test_user_context_alias(self) -> None:
        context = UserContext.model_validate({"sessionId": "s", "userId": "u"})
        assert context.session_id == "s"
        assert context.user_id == "u"
        assert context.language == "en"

    def test_task_spec_requires_name(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            TaskSpec(id="t1", name="")

    def test_candidate_similarity_bounds(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ToolCandidate(id="t", name="T", similarity=1.5)


class TestSmartRecommendationResult:
    def test_defaults_are_zero(self) -> None:
        result = SmartRecommendationResult(task_id="1", task_name="n", reason="r")
        assert result.tool_id is None
        assert result.final_score == result.similarity == result.quality_score == 0.0
        assert result.task_type == TaskType.GENERAL

    def test_payload_uses_camel_case(self) -> None:
        result = SmartRecommendationResult(
            task_id="1",
            task_name="Write",
            tool_id="w",
            tool_name="WordSmith",
            reason="r",
            final_score=0.7,
            confidence_score=0.7,
            task_type=TaskType.WRITING,
            search_strategy=SearchStrategy.HYBRID,
        )
        payload = result.to_payload()
        assert payload["taskId"] == "1"
        assert payload["toolId"] == "w"
        assert payload["confidenceScore"] == 0.7
        assert payload["taskType"] == "writing"
        assert payload["searchStrategy"] == "hybrid"
        assert payload["error"] is None


class TestStageError:
    def test_wraps_message(self) -> None:
        error = stage_error(ErrorKind.SEARCH_FAILURE, SearchBackendError("down"))
        assert error.kind == ErrorKind.SEARCH_FAILURE
        assert error.message == "down"

    def test_empty_message_uses_type_name(self) -> None:
        assert stage_error(ErrorKind.SCORING_FAILURE, KeyError()).message == "KeyError"

    def test_collaborator_errors_exported(self) -> None:
        assert aumai_smartrecommend.SearchBackendError is SearchBackendError
        assert aumai_smartrecommend.CatalogError is CatalogError
        assert issubclass(SearchBackendError, RecommendationError)
        assert issubclass(CatalogError, RecommendationError)
        assert "RecommendationError" in aumai_smartrecommend.__all__


class TestEngineConfig:
    def test_defaults(self) -> None:
        config = EngineConfig()
        assert config.similarity_weight == 0.6
        assert config.quality_weight == 0.4
        assert config.candidate_count == 10
        assert config.rag_min_entries == 0
        assert config.rag_min_quality == 0.5
        assert config.task_timeout is None

    def test_weights_must_sum_to_one(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="sum to 1.0"):
            EngineConfig(similarity_weight=0.7, quality_weight=0.4)

    def test_candidate_count_positive(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            EngineConfig(candidate_count=0)

    def test_from_env(self) -> None:
        environ = {
            "AUMAI_SMARTRECOMMEND_SIMILARITY_WEIGHT": "0.7",
            "AUMAI_SMARTRECOMMEND_QUALITY_WEIGHT": "0.3",
            "AUMAI_SMARTRECOMMEND_CANDIDATE_COUNT": "5",
            "AUMAI_SMARTRECOMMEND_ENABLE_RAG": "false",
            "AUMAI_SMARTRECOMMEND_TASK_TIMEOUT": "",
            "UNRELATED": "1",
        }
        config = EngineConfig.from_env(environ)
        assert config.similarity_weight == 0.7
        assert config.quality_weight == 0.3
        assert config.candidate_count == 5
        assert config.enable_rag is False
        assert config.task_timeout is None

    def test_from_env_custom_prefix(self) -> None:
        config = EngineConfig.from_env({"X_CANDIDATE_COUNT": "3"}, prefix="X_")
        assert config.candidate_count == 3

    def test_from_env_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUMAI_SMARTRECOMMEND_RAG_MIN_QUALITY", "0.75")
        assert EngineConfig.from_env().rag_min_quality == 0.75

    def test_from_env_invalid_value(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            EngineConfig.from_env({"AUMAI_SMARTRECOMMEND_CANDIDATE_COUNT": "many"})
