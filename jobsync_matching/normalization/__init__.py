"""Normalization of free-text degree and eligibility values to canonical keys."""

from jobsync_matching.normalization.engine import (
    NormalizationEngine,
    NormalizationSettings,
    cosine_similarity,
)
from jobsync_matching.normalization.records import (
    normalize_applicant,
    normalize_job,
    normalize_job_and_applicant,
    unresolved_value,
)

__all__ = [
    "NormalizationEngine",
    "NormalizationSettings",
    "cosine_similarity",
    "normalize_applicant",
    "normalize_job",
    "normalize_job_and_applicant",
    "unresolved_value",
]
