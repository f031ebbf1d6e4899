"""Ranking policy resource: weights, thresholds, and timeouts from the environment.

Builds the normalization and ranking engines for an op so every ranking run in
a deployment applies the same documented policy.
"""

import os
from typing import Any

from dagster import ConfigurableResource
from pydantic import Field

from jobsync_matching.normalization.engine import NormalizationEngine, NormalizationSettings
from jobsync_matching.ranking.engine import RankingEngine, RankingSettings
from jobsync_matching.ranking.weights import ExperienceCurve, RankingWeights
from jobsync_matching.taxonomy.loader import Taxonomies


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class RankingConfigResource(ConfigurableResource):
    """Scoring policy shared by all ranking runs."""

    education_weight: float = Field(
        default_factory=lambda: _env_float("RANKING_WEIGHT_EDUCATION", 0.35),
        description="Share of the education sub-score",
    )
    experience_weight: float = Field(
        default_factory=lambda: _env_float("RANKING_WEIGHT_EXPERIENCE", 0.25),
        description="Share of the experience sub-score",
    )
    skills_weight: float = Field(
        default_factory=lambda: _env_float("RANKING_WEIGHT_SKILLS", 0.20),
        description="Share of the skills sub-score",
    )
    eligibility_weight: float = Field(
        default_factory=lambda: _env_float("RANKING_WEIGHT_ELIGIBILITY", 0.20),
        description="Share of the eligibility sub-score",
    )
    embedding_accept_threshold: float = Field(
        default_factory=lambda: _env_float("EMBEDDING_ACCEPT_THRESHOLD", 0.75),
        description="Minimum cosine similarity for an embedding-tier match",
    )
    embedding_strong_threshold: float = Field(
        default_factory=lambda: _env_float("EMBEDDING_STRONG_THRESHOLD", 0.83),
        description="Embedding matches below this are flagged low-confidence",
    )
    low_confidence_threshold: float = Field(
        default_factory=lambda: _env_float("LOW_CONFIDENCE_THRESHOLD", 0.6),
        description="Generative matches below this confidence are flagged",
    )
    skill_semantic_threshold: float = Field(
        default_factory=lambda: _env_float("SKILL_SEMANTIC_THRESHOLD", 0.75),
        description="Minimum cosine similarity for a near-synonym skill match",
    )
    provider_timeout_seconds: float = Field(
        default_factory=lambda: _env_float("PROVIDER_TIMEOUT_SECONDS", 20.0),
        description="Timeout for each embedding or completion call",
    )
    max_concurrency: int = Field(
        default_factory=lambda: _env_int("RANKING_MAX_CONCURRENCY", 5),
        description="Applicants normalized at the same time",
    )
    insights_top_n: int = Field(
        default_factory=lambda: _env_int("RANKING_INSIGHTS_TOP_N", 0),
        description="Top results that get model-written reasoning (0 disables)",
    )
    reroute_min_score: float = Field(
        default_factory=lambda: _env_float("REROUTE_MIN_SCORE", 30.0),
        description="Minimum match score for a posting to be offered on re-routing",
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL", ""),
        description="Embedding model override (empty uses the operation default)",
    )
    generative_model: str = Field(
        default_factory=lambda: os.getenv("GENERATIVE_MODEL", ""),
        description="Completion model override for classification and insights",
    )

    def weights(self) -> RankingWeights:
        return RankingWeights(
            education=self.education_weight,
            experience=self.experience_weight,
            skills=self.skills_weight,
            eligibility=self.eligibility_weight,
        )

    def normalization_settings(self) -> NormalizationSettings:
        return NormalizationSettings(
            embedding_accept_threshold=self.embedding_accept_threshold,
            embedding_strong_threshold=self.embedding_strong_threshold,
            low_confidence_threshold=self.low_confidence_threshold,
            provider_timeout_seconds=self.provider_timeout_seconds,
            embedding_model=self.embedding_model or None,
            generative_model=self.generative_model or None,
        )

    def ranking_settings(self) -> RankingSettings:
        return RankingSettings(
            max_concurrency=self.max_concurrency,
            skill_semantic_threshold=self.skill_semantic_threshold,
            provider_timeout_seconds=self.provider_timeout_seconds,
            insights_top_n=self.insights_top_n,
            reroute_min_score=self.reroute_min_score,
            embedding_model=self.embedding_model or None,
            insights_model=self.generative_model or None,
        )

    def build_engines(
        self, taxonomies: Taxonomies, embedder: Any = None, llm: Any = None
    ) -> tuple[NormalizationEngine, RankingEngine]:
        normalizer = NormalizationEngine(
            taxonomies, embedder=embedder, llm=llm, settings=self.normalization_settings()
        )
        ranker = RankingEngine(
            normalizer,
            weights=self.weights(),
            curve=ExperienceCurve(),
            settings=self.ranking_settings(),
        )
        return normalizer, ranker
