"""Rank a pool of applicants against one job.

Flow of one ``rank`` call:
1. Validate inputs (raises RankingInputError)
2. Normalize the job once, then every applicant concurrently (bounded)
3. Embed the distinct skills of the run once for near-synonym matching
4. Score education, experience, skills, eligibility and combine with the weights
5. Sort by match score with tie-break: education, experience, applicant id
6. Optionally replace the templated reasoning of the top results with model insights

A failure while normalizing one applicant falls back to that applicant's raw
strings; it never removes the applicant from the result.

``best_alternative`` runs the same scoring the other way round: one applicant
against several open postings, for re-routing when a posting is filled.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from jobsync_matching.llm.operations.embed_text import embed_text
from jobsync_matching.llm.operations.generate_insights import generate_ranking_insights
from jobsync_matching.llm.operations.generate_reroute_reason import generate_reroute_reason
from jobsync_matching.models.matching import (
    AlternativeJobMatch,
    ApplicantEligibility,
    ApplicantProfile,
    JobRequirement,
    RankingResult,
    ReroutingResult,
)
from jobsync_matching.normalization.records import (
    normalize_applicant,
    normalize_job,
    unresolved_value,
)
from jobsync_matching.ranking.reasoning import build_reasoning, build_reroute_reason
from jobsync_matching.ranking.scoring import (
    dedupe_skills,
    finite_or_zero,
    score_education,
    score_eligibility,
    score_experience,
    score_skills,
    skill_vector_key,
)
from jobsync_matching.ranking.weights import ExperienceCurve, RankingWeights

if TYPE_CHECKING:
    from jobsync_matching.normalization.engine import NormalizationEngine

logger = logging.getLogger(__name__)

ALGORITHM_VERSION = "weighted_sum_v1"
TIE_EPSILON = 0.01


class RankingInputError(ValueError):
    """The ranking request cannot be served as given."""


class RankingSettings(BaseModel):
    max_concurrency: int = Field(default=5, ge=1)
    skill_semantic_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    provider_timeout_seconds: float = Field(default=20.0, gt=0.0)
    insights_top_n: int = Field(default=0, ge=0)
    reroute_min_score: float = Field(default=30.0, ge=0.0, le=100.0)
    embedding_model: str | None = None
    insights_model: str | None = None


@dataclass
class ScoredApplicant:
    applicant: ApplicantProfile
    education: float
    experience: float
    skills: float
    eligibility: float
    match_score: float
    matched_skills: int = 0
    matched_eligibilities: int = 0
    low_confidence_fields: list[str] = field(default_factory=list)

    @property
    def applicant_id(self) -> str:
        return self.applicant.applicant_id


def tie_bucket(match_score: float) -> int:
    """Match score on the TIE_EPSILON grid; applicants in one bucket are tied."""
    return round(match_score / TIE_EPSILON)


def ranking_key(scored: ScoredApplicant) -> tuple[int, float, float, str]:
    """Sort key: match score desc (per bucket), education desc, experience desc, id asc."""
    return (
        -tie_bucket(scored.match_score),
        -scored.education,
        -scored.experience,
        scored.applicant_id,
    )


def sort_scored(scored: Sequence[ScoredApplicant]) -> list[ScoredApplicant]:
    return sorted(scored, key=ranking_key)


def _validate(job: JobRequirement | None, applicants: list[ApplicantProfile]) -> None:
    if job is None:
        raise RankingInputError("No job given to rank against")
    if not job.title or not job.title.strip():
        raise RankingInputError("Job has no title")
    if not applicants:
        raise RankingInputError(f"No applicants to rank for job {job.job_id or job.title!r}")
    ids = [a.applicant_id for a in applicants]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise RankingInputError(f"Duplicate applicant ids: {', '.join(duplicates)}")


class RankingEngine:
    """Scores and orders applicants for one job.

    Args:
        normalizer: NormalizationEngine; its embedder and llm are reused for skill
            embeddings and optional insights
        weights: Composite weights, applied identically to every applicant in a run
        curve: Experience curve constants
        settings: Concurrency, thresholds, timeouts, insights
    """

    def __init__(
        self,
        normalizer: "NormalizationEngine",
        weights: RankingWeights | None = None,
        curve: ExperienceCurve | None = None,
        settings: RankingSettings | None = None,
    ):
        self.normalizer = normalizer
        self.weights = weights or RankingWeights()
        self.curve = curve or ExperienceCurve()
        self.settings = settings or RankingSettings()

    async def rank(
        self, job: JobRequirement, applicants: list[ApplicantProfile]
    ) -> list[RankingResult]:
        """Return one RankingResult per applicant, ranked 1..N.

        Raises:
            RankingInputError: Missing job, job without title, no applicants, or
                duplicate applicant ids
        """
        _validate(job, applicants)
        logger.info(f"Ranking {len(applicants)} applicants for {job.job_id or job.title!r}")

        await self.normalizer.prepare()
        if not job.is_normalized:
            job = await normalize_job(self.normalizer, job)

        vectors = await self._skill_vectors(
            job.skills, [skill for applicant in applicants for skill in applicant.skills]
        )
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)
        scored = await asyncio.gather(
            *(self._score_applicant(job, applicant, vectors, semaphore) for applicant in applicants)
        )

        results = [
            RankingResult(
                applicant_id=s.applicant_id,
                rank=position,
                match_score=round(s.match_score, 2),
                education_score=round(s.education, 2),
                experience_score=round(s.experience, 2),
                skills_score=round(s.skills, 2),
                eligibility_score=round(s.eligibility, 2),
                reasoning=build_reasoning(s.education, s.experience, s.skills, s.eligibility),
                algorithm=ALGORITHM_VERSION,
                matched_skills_count=s.matched_skills,
                matched_eligibilities_count=s.matched_eligibilities,
                low_confidence_fields=tuple(s.low_confidence_fields),
            )
            for position, s in enumerate(sort_scored(list(scored)), start=1)
        ]

        if self.settings.insights_top_n and self.normalizer.llm is not None:
            results = await self._apply_insights(job, applicants, results)

        if results:
            top = results[0]
            logger.info(f"Top applicant {top.applicant_id} scored {top.match_score}")
        return results

    def score(
        self,
        job: JobRequirement,
        applicant: ApplicantProfile,
        vectors: Mapping[str, list[float]] | None = None,
    ) -> ScoredApplicant:
        """Score an already-normalized applicant against an already-normalized job."""
        job_degree = job.normalized_degree or unresolved_value(job.degree_requirement)
        job_eligibilities = job.normalized_eligibilities
        if job_eligibilities is None:
            job_eligibilities = tuple(unresolved_value(title) for title in job.eligibilities)
        applicant_degree = applicant.normalized_degree or unresolved_value(
            applicant.highest_educational_attainment
        )
        applicant_eligibilities = [
            item.normalized or unresolved_value(item.title) for item in applicant.eligibilities
        ]

        education = finite_or_zero(score_education(job_degree, applicant_degree))
        experience = finite_or_zero(
            score_experience(job.years_of_experience, applicant.total_years_experience, self.curve)
        )
        skills = score_skills(
            job.skills,
            applicant.skills,
            vectors,
            semantic_threshold=self.settings.skill_semantic_threshold,
        )
        eligibility = score_eligibility(job_eligibilities, applicant_eligibilities)

        match_score = self.weights.combine(education, experience, skills.score, eligibility.score)

        low_confidence = []
        if applicant_degree.low_confidence:
            low_confidence.append("education")
        if any(value.low_confidence for value in applicant_eligibilities):
            low_confidence.append("eligibility")

        return ScoredApplicant(
            applicant=applicant,
            education=education,
            experience=experience,
            skills=skills.score,
            eligibility=eligibility.score,
            match_score=max(0.0, min(100.0, match_score)),
            matched_skills=skills.matched,
            matched_eligibilities=eligibility.matched,
            low_confidence_fields=low_confidence,
        )

    async def best_alternative(
        self,
        applicant: ApplicantProfile,
        jobs: Sequence[JobRequirement],
        exclude_job_id: str | None = None,
        original_job_title: str = "",
    ) -> AlternativeJobMatch | None:
        """Pick the open posting that fits an applicant best, for re-routing.

        Every posting except ``exclude_job_id`` is scored with the same weights as
        ``rank``. Postings under ``settings.reroute_min_score`` are not viable.
        The reason comes from the model when one is configured and falls back to a
        templated sentence otherwise.

        Returns:
            The best viable posting, or None when there is none
        """
        candidates = [
            job for job in jobs if exclude_job_id is None or job.job_id != exclude_job_id
        ]
        if not candidates:
            logger.info(f"No open postings to re-route applicant {applicant.applicant_id}")
            return None

        await self.normalizer.prepare()
        candidates = await self._normalized_jobs(candidates)
        applicant = await self._normalized_applicant(applicant)
        vectors = await self._skill_vectors(
            [skill for job in candidates for skill in job.skills], applicant.skills
        )

        viable = [
            (job, scored)
            for job, scored in ((job, self.score(job, applicant, vectors)) for job in candidates)
            if scored.match_score >= self.settings.reroute_min_score
        ]
        if not viable:
            logger.info(
                f"No posting reaches {self.settings.reroute_min_score} for applicant "
                f"{applicant.applicant_id}"
            )
            return None

        job, best = min(
            viable,
            key=lambda pair: (
                -tie_bucket(pair[1].match_score),
                -pair[1].education,
                pair[0].job_id or "",
                pair[0].title,
            ),
        )
        reason = await self._reroute_reason(applicant, original_job_title, job, best)
        logger.info(
            f"Re-routing applicant {applicant.applicant_id} to {job.job_id or job.title!r} "
            f"({best.match_score:.1f})"
        )
        return AlternativeJobMatch(
            job_id=job.job_id,
            job_title=job.title,
            match_score=round(best.match_score, 2),
            education_score=round(best.education, 2),
            experience_score=round(best.experience, 2),
            skills_score=round(best.skills, 2),
            eligibility_score=round(best.eligibility, 2),
            reason=reason,
            matched_skills_count=best.matched_skills,
            matched_eligibilities_count=best.matched_eligibilities,
        )

    async def reroute_applicants(
        self,
        applicants: Sequence[ApplicantProfile],
        original_job: JobRequirement,
        jobs: Sequence[JobRequirement],
    ) -> list[ReroutingResult]:
        """Find the best alternative posting for each applicant of ``original_job``.

        Results are in input order; applicants without a viable posting carry a
        ``no_alternative_reason``.
        """
        open_jobs = [job for job in jobs if job.job_id is None or job.job_id != original_job.job_id]
        if open_jobs:
            await self.normalizer.prepare()
            open_jobs = await self._normalized_jobs(open_jobs)

        matches = await asyncio.gather(
            *(
                self.best_alternative(applicant, open_jobs, original_job_title=original_job.title)
                for applicant in applicants
            )
        )

        results = []
        for applicant, match in zip(applicants, matches):
            reason = None
            if match is None:
                reason = (
                    "No active job postings available"
                    if not open_jobs
                    else "No suitable alternative positions found matching your qualifications "
                    f"(minimum {self.settings.reroute_min_score:.0f}% match required)"
                )
            results.append(
                ReroutingResult(
                    applicant_id=applicant.applicant_id,
                    applicant_name=applicant.applicant_name,
                    original_job_id=original_job.job_id,
                    original_job_title=original_job.title,
                    best_alternative=match,
                    no_alternative_reason=reason,
                )
            )
        return results

    async def _normalized_applicant(self, applicant: ApplicantProfile) -> ApplicantProfile:
        """Normalized copy of the applicant; raw values when normalization fails."""
        try:
            return await normalize_applicant(self.normalizer, applicant)
        except Exception as e:
            logger.warning(
                f"Normalization failed for applicant {applicant.applicant_id}; "
                f"scoring raw values: {e!r}"
            )
            return applicant.model_copy(
                update={
                    "normalized_degree": unresolved_value(applicant.highest_educational_attainment),
                    "eligibilities": tuple(
                        ApplicantEligibility(
                            title=item.title, normalized=unresolved_value(item.title)
                        )
                        for item in applicant.eligibilities
                    ),
                }
            )

    async def _normalized_jobs(self, jobs: Sequence[JobRequirement]) -> list[JobRequirement]:
        """Normalize postings concurrently; a posting that fails keeps its raw values."""
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def _one(job: JobRequirement) -> JobRequirement:
            if job.is_normalized:
                return job
            async with semaphore:
                try:
                    return await normalize_job(self.normalizer, job)
                except Exception as e:
                    logger.warning(
                        f"Normalization failed for job {job.job_id or job.title!r}; "
                        f"scoring raw values: {e!r}"
                    )
                    return job

        return list(await asyncio.gather(*(_one(job) for job in jobs)))

    async def _reroute_reason(
        self,
        applicant: ApplicantProfile,
        original_job_title: str,
        job: JobRequirement,
        best: ScoredApplicant,
    ) -> str:
        fallback = build_reroute_reason(
            best.match_score, best.education, best.experience, best.skills
        )
        if self.normalizer.llm is None:
            return fallback

        scores = {
            "match": best.match_score,
            "education": best.education,
            "experience": best.experience,
            "skills": best.skills,
            "eligibility": best.eligibility,
        }
        try:
            generated = await asyncio.wait_for(
                generate_reroute_reason(
                    self.normalizer.llm,
                    applicant.applicant_name or "",
                    original_job_title,
                    job,
                    scores,
                    model=self.settings.insights_model,
                ),
                timeout=self.settings.provider_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Re-routing reason failed, using templated reason: {e!r}")
            return fallback
        return generated.reason

    async def _score_applicant(
        self,
        job: JobRequirement,
        applicant: ApplicantProfile,
        vectors: Mapping[str, list[float]],
        semaphore: asyncio.Semaphore,
    ) -> ScoredApplicant:
        async with semaphore:
            applicant = await self._normalized_applicant(applicant)
        return self.score(job, applicant, vectors)

    async def _skill_vectors(
        self, required_skills: Sequence[str], offered_skills: Sequence[str]
    ) -> dict[str, list[float]]:
        """Embed every distinct skill in the run once; empty on any provider failure."""
        embedder = self.normalizer.embedder
        required = dedupe_skills(required_skills)
        if embedder is None or not required:
            return {}

        skills = dedupe_skills([*required, *offered_skills])
        try:
            result = await asyncio.wait_for(
                embed_text(
                    embedder,
                    skills,
                    model=self.settings.embedding_model,
                    operation="embed_skills",
                ),
                timeout=self.settings.provider_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Skill embeddings unavailable, using lexical matching only: {e!r}")
            return {}
        return {skill_vector_key(s): v for s, v in zip(skills, result.embeddings)}

    async def _apply_insights(
        self,
        job: JobRequirement,
        applicants: list[ApplicantProfile],
        results: list[RankingResult],
    ) -> list[RankingResult]:
        top = results[: self.settings.insights_top_n]
        by_id = {a.applicant_id: a for a in applicants}
        try:
            generated = await asyncio.wait_for(
                generate_ranking_insights(
                    self.normalizer.llm,
                    job,
                    top,
                    by_id,
                    model=self.settings.insights_model,
                ),
                timeout=self.settings.provider_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Ranking insights failed, keeping templated reasoning: {e!r}")
            return results

        return [
            r.model_copy(update={"reasoning": generated.insights[r.applicant_id]})
            if r.applicant_id in generated.insights
            else r
            for r in results
        ]
