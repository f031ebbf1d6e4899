"""Records exchanged between the normalization and ranking engines.

These are plain value objects: the calling layer builds JobRequirement and
ApplicantProfile from stored rows, the engines hand back NormalizationResult and
RankingResult for it to persist. None of them are mutated after construction;
normalization returns annotated copies.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jobsync_matching.models.enums import ListModeEnum, NormalizationMethodEnum


class CanonicalEntry(BaseModel):
    """One degree or eligibility in a taxonomy."""

    model_config = ConfigDict(frozen=True)

    key: str
    canonical_label: str
    level: str | None = None
    category: str | None = None
    field_group: str | None = None
    aliases: tuple[str, ...] = ()


class NormalizationResult(BaseModel):
    """Outcome of mapping one raw string onto a taxonomy."""

    model_config = ConfigDict(frozen=True)

    raw: str = ""
    canonical_key: str | None = None
    canonical_label: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    method: NormalizationMethodEnum = NormalizationMethodEnum.FALLBACK
    low_confidence: bool = False

    @classmethod
    def fallback(cls, raw: str) -> "NormalizationResult":
        return cls(raw=raw)

    @property
    def matched(self) -> bool:
        return self.canonical_key is not None


class NormalizedValue(BaseModel):
    """A degree or eligibility field after normalization.

    A single raw value may name several options ("BS IT or BS CS"); each part is
    normalized on its own and the parts are recorded in ``results``. The first
    resolved part supplies ``level`` and ``field_group``.
    """

    model_config = ConfigDict(frozen=True)

    raw: str
    canonical_text: str
    mode: ListModeEnum = ListModeEnum.SINGLE
    results: tuple[NormalizationResult, ...] = ()
    level: str | None = None
    field_group: str | None = None

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(r.canonical_key for r in self.results if r.canonical_key)

    @property
    def primary(self) -> NormalizationResult | None:
        for result in self.results:
            if result.matched:
                return result
        return None

    @property
    def low_confidence(self) -> bool:
        return any(r.low_confidence for r in self.results)

    @property
    def parts(self) -> list[str]:
        """Per-option text: the canonical label where resolved, else the raw part."""
        return [r.canonical_label or r.raw for r in self.results]


class JobRequirement(BaseModel):
    """A posting's matching requirements."""

    model_config = ConfigDict(frozen=True)

    job_id: str | None = None
    title: str
    description: str = ""
    degree_requirement: str = ""
    eligibilities: tuple[str, ...] = ()
    skills: tuple[str, ...] = ()
    years_of_experience: float = Field(default=0.0, ge=0.0)
    normalized_degree: NormalizedValue | None = None
    normalized_eligibilities: tuple[NormalizedValue, ...] | None = None

    @property
    def is_normalized(self) -> bool:
        return self.normalized_degree is not None and self.normalized_eligibilities is not None


class ApplicantEligibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    normalized: NormalizedValue | None = None


class ApplicantProfile(BaseModel):
    """Projection of an applicant's personal data sheet used for ranking."""

    model_config = ConfigDict(frozen=True)

    applicant_id: str = Field(min_length=1)
    applicant_name: str | None = None
    highest_educational_attainment: str = ""
    normalized_degree: NormalizedValue | None = None
    eligibilities: tuple[ApplicantEligibility, ...] = ()
    skills: tuple[str, ...] = ()
    total_years_experience: float = Field(default=0.0, ge=0.0)
    work_experience_titles: tuple[str, ...] = ()

    @field_validator("eligibilities", mode="before")
    @classmethod
    def _coerce_eligibility_titles(cls, value: Any) -> Any:
        """Accept bare eligibility titles as well as {title, normalized} objects."""
        if isinstance(value, (list, tuple)):
            return [{"title": item} if isinstance(item, str) else item for item in value]
        return value


class RankingResult(BaseModel):
    """One applicant's position in a ranking run."""

    model_config = ConfigDict(frozen=True)

    applicant_id: str
    rank: int = Field(ge=1)
    match_score: float = Field(ge=0.0, le=100.0)
    education_score: float = Field(ge=0.0, le=100.0)
    experience_score: float = Field(ge=0.0, le=100.0)
    skills_score: float = Field(ge=0.0, le=100.0)
    eligibility_score: float = Field(ge=0.0, le=100.0)
    reasoning: str
    algorithm: str
    matched_skills_count: int = 0
    matched_eligibilities_count: int = 0
    low_confidence_fields: tuple[str, ...] = ()


class AlternativeJobMatch(BaseModel):
    """Best other open posting for an applicant whose posting is no longer available."""

    model_config = ConfigDict(frozen=True)

    job_id: str | None = None
    job_title: str
    match_score: float = Field(ge=0.0, le=100.0)
    education_score: float = Field(ge=0.0, le=100.0)
    experience_score: float = Field(ge=0.0, le=100.0)
    skills_score: float = Field(ge=0.0, le=100.0)
    eligibility_score: float = Field(ge=0.0, le=100.0)
    reason: str
    matched_skills_count: int = 0
    matched_eligibilities_count: int = 0


class ReroutingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    applicant_id: str
    applicant_name: str | None = None
    original_job_id: str | None = None
    original_job_title: str = ""
    best_alternative: AlternativeJobMatch | None = None
    no_alternative_reason: str | None = None
