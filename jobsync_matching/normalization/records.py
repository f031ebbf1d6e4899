"""Annotate job and applicant records with normalized degree and eligibility values."""

import asyncio
from typing import TYPE_CHECKING

from jobsync_matching.models.enums import ListModeEnum, TaxonomyDomainEnum
from jobsync_matching.models.matching import (
    ApplicantEligibility,
    ApplicantProfile,
    JobRequirement,
    NormalizationResult,
    NormalizedValue,
)
from jobsync_matching.taxonomy.text import detect_list_mode, split_list_expression

if TYPE_CHECKING:
    from jobsync_matching.normalization.engine import NormalizationEngine


def unresolved_value(raw: str) -> NormalizedValue:
    """A NormalizedValue carrying only the raw text, for when normalization could not run."""
    raw = raw or ""
    parts = split_list_expression(raw) or ([raw] if raw.strip() else [])
    if len(parts) > 1:
        mode = ListModeEnum.AND if detect_list_mode(raw) == ListModeEnum.AND else ListModeEnum.OR
    else:
        mode = ListModeEnum.SINGLE
    return NormalizedValue(
        raw=raw,
        canonical_text=raw.strip(),
        mode=mode,
        results=tuple(NormalizationResult.fallback(part) for part in parts),
    )


async def normalize_job(engine: "NormalizationEngine", job: JobRequirement) -> JobRequirement:
    """Return a copy of the job with its degree requirement and eligibilities normalized."""
    degree, *eligibilities = await asyncio.gather(
        engine.normalize_value(job.degree_requirement, TaxonomyDomainEnum.DEGREE),
        *(
            engine.normalize_value(title, TaxonomyDomainEnum.ELIGIBILITY)
            for title in job.eligibilities
        ),
    )
    return job.model_copy(
        update={"normalized_degree": degree, "normalized_eligibilities": tuple(eligibilities)}
    )


async def normalize_applicant(
    engine: "NormalizationEngine", applicant: ApplicantProfile
) -> ApplicantProfile:
    """Return a copy of the applicant with attainment and eligibilities normalized.

    Values that already carry a normalization are kept as they are.
    """

    async def _eligibility(item: ApplicantEligibility) -> ApplicantEligibility:
        if item.normalized is not None:
            return item
        value = await engine.normalize_value(item.title, TaxonomyDomainEnum.ELIGIBILITY)
        return item.model_copy(update={"normalized": value})

    async def _degree() -> NormalizedValue:
        if applicant.normalized_degree is not None:
            return applicant.normalized_degree
        return await engine.normalize_value(
            applicant.highest_educational_attainment, TaxonomyDomainEnum.DEGREE
        )

    degree, *eligibilities = await asyncio.gather(
        _degree(), *(_eligibility(item) for item in applicant.eligibilities)
    )
    return applicant.model_copy(
        update={"normalized_degree": degree, "eligibilities": tuple(eligibilities)}
    )


async def normalize_job_and_applicant(
    engine: "NormalizationEngine",
    job: JobRequirement,
    applicant: ApplicantProfile,
) -> tuple[JobRequirement, ApplicantProfile]:
    """Normalize both sides of a comparison so scoring only sees canonical text."""
    normalized_job, normalized_applicant = await asyncio.gather(
        normalize_job(engine, job), normalize_applicant(engine, applicant)
    )
    return normalized_job, normalized_applicant
