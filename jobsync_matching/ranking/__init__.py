"""Weighted multi-factor ranking of applicants against a job."""

from jobsync_matching.ranking.engine import (
    ALGORITHM_VERSION,
    TIE_EPSILON,
    RankingEngine,
    RankingInputError,
    RankingSettings,
    ScoredApplicant,
    ranking_key,
    sort_scored,
    tie_bucket,
)
from jobsync_matching.ranking.statistics import (
    ScoreStatistics,
    compute_statistics,
    percentile_rank,
    score_distribution,
)
from jobsync_matching.ranking.weights import ExperienceCurve, RankingWeights

__all__ = [
    "ALGORITHM_VERSION",
    "TIE_EPSILON",
    "ExperienceCurve",
    "RankingEngine",
    "RankingInputError",
    "RankingSettings",
    "RankingWeights",
    "ScoreStatistics",
    "ScoredApplicant",
    "ranking_key",
    "compute_statistics",
    "percentile_rank",
    "score_distribution",
    "sort_scored",
    "tie_bucket",
]
