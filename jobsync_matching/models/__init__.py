"""Models for the job matching core: value records plus the LLM cost table."""

from jobsync_matching.models.base import Base
from jobsync_matching.models.enums import (
    DegreeLevelEnum,
    ListModeEnum,
    NormalizationMethodEnum,
    TaxonomyDomainEnum,
)
from jobsync_matching.models.llm_costs import LLMCost
from jobsync_matching.models.matching import (
    AlternativeJobMatch,
    ApplicantEligibility,
    ApplicantProfile,
    CanonicalEntry,
    JobRequirement,
    NormalizationResult,
    NormalizedValue,
    RankingResult,
    ReroutingResult,
)

__all__ = [
    # Base
    "Base",
    # Enums
    "DegreeLevelEnum",
    "ListModeEnum",
    "NormalizationMethodEnum",
    "TaxonomyDomainEnum",
    # Records
    "AlternativeJobMatch",
    "ApplicantEligibility",
    "ApplicantProfile",
    "CanonicalEntry",
    "JobRequirement",
    "NormalizationResult",
    "NormalizedValue",
    "RankingResult",
    "ReroutingResult",
    # Cost tracking
    "LLMCost",
]
