"""Tunable scoring policy: composite weights and the experience curve."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

WEIGHT_SUM_TOLERANCE = 1e-6


class RankingWeights(BaseModel):
    """Share of each sub-score in the composite match score. Must sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    education: float = Field(default=0.35, ge=0.0, le=1.0)
    experience: float = Field(default=0.25, ge=0.0, le=1.0)
    skills: float = Field(default=0.20, ge=0.0, le=1.0)
    eligibility: float = Field(default=0.20, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_sum(self) -> "RankingWeights":
        total = self.education + self.experience + self.skills + self.eligibility
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Ranking weights must sum to 1.0, got {total:.4f}")
        return self

    def combine(
        self, education: float, experience: float, skills: float, eligibility: float
    ) -> float:
        return (
            self.education * education
            + self.experience * experience
            + self.skills * skills
            + self.eligibility * eligibility
        )


class ExperienceCurve(BaseModel):
    """Shape of the years-of-experience score.

    With ratio = applicant years / required years:
    - 0 years scores 0
    - 0 < ratio < 1 rises linearly from ``under_floor`` toward ``meets_score``
    - ratio >= 1 rises from ``meets_score`` to 100 at ratio 1 + ``bonus_ratio_span``
    The years score is blended with a relevance component (100 for any experience).

    A posting that requires 0 years is scored as if it required 1 year, so an
    applicant with 6 months of experience counts as under-qualified (a years score of 60)
    and only a full year or more reaches ``meets_score``.
    """

    model_config = ConfigDict(frozen=True)

    under_floor: float = Field(default=40.0, ge=0.0, le=100.0)
    meets_score: float = Field(default=80.0, ge=0.0, le=100.0)
    bonus_ratio_span: float = Field(default=2.0, gt=0.0)
    years_weight: float = Field(default=0.7, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_order(self) -> "ExperienceCurve":
        if self.under_floor > self.meets_score:
            raise ValueError("under_floor must not exceed meets_score")
        return self

    @property
    def relevance_weight(self) -> float:
        return 1.0 - self.years_weight
