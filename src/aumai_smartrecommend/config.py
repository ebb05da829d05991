"""Engine configuration for aumai-smartrecommend."""

from __future__ import annotations

import math
import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, model_validator

__all__ = ["EngineConfig", "ENV_PREFIX"]

ENV_PREFIX = "AUMAI_SMARTRECOMMEND_"


class EngineConfig(BaseModel):
    """Tunable constants of the search-then-rerank pipeline.

    The defaults reproduce the production weights: similarity counts for 60% of
    the final score and quality for 40%, ten candidates are retrieved, and the
    knowledge base is considered ready once it holds any entries with a quality
    score above 0.5.
    """

    similarity_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    quality_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    candidate_count: int = Field(default=10, ge=1, description="Candidates requested from search")
    default_quality: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Quality used when no metric is available"
    )
    enable_rag: bool = True
    enable_adaptive: bool = True
    enable_fallback: bool = Field(
        default=True, description="Try later providers when an earlier one returns nothing"
    )
    rag_min_entries: int = Field(default=0, ge=0)
    rag_min_quality: float = Field(default=0.5, ge=0.0, le=1.0)
    task_timeout: float | None = Field(
        default=None, gt=0.0, description="Per-task time limit in seconds; None disables it"
    )

    @model_validator(mode="after")
    def _check_weights(self) -> EngineConfig:
        total = self.similarity_weight + self.quality_weight
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(
                f"similarity_weight and quality_weight must sum to 1.0, got {total}"
            )
        return self

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
    ) -> EngineConfig:
        """Build a config from ``<prefix><FIELD_NAME>`` environment variables.

        Args:
            environ: Mapping to read from.  Defaults to :data:`os.environ`.
            prefix: Variable name prefix.

        Returns:
            An :class:`EngineConfig` with every variable found applied on top of
            the defaults.  Values are validated by pydantic, so ``"0.7"`` and
            ``"true"`` are accepted.
        """
        source = os.environ if environ is None else environ
        overrides: dict[str, str] = {}
        for name in cls.model_fields:
            value = source.get(prefix + name.upper())
            if value is not None and value != "":
                overrides[name] = value
        return cls.model_validate(overrides)
