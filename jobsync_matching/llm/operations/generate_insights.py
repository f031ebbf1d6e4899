"""Ranking insights LLM operation.

Produces a short recruiter-facing explanation for each of the top-ranked
applicants. The templated reasoning from the ranking engine stays in place for
any applicant the model skips or when this call fails.

Bump PROMPT_VERSION when changing the prompt.
"""

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from jobsync_matching.llm.parsing import message_content, parse_json_content

if TYPE_CHECKING:
    from jobsync_matching.models.matching import ApplicantProfile, JobRequirement, RankingResult
    from jobsync_matching.resources.openrouter import OpenRouterResource

PROMPT_VERSION = "1.0.0"

DEFAULT_MODEL = "openai/gpt-4o-mini"

SYSTEM_PROMPT = """You are an HR analyst at a Philippine public employment service office.

You receive a job posting and the already-ranked top applicants with their sub-scores (0-100)
for education, experience, skills, and eligibility. Do not re-rank or re-score anyone.
For each applicant write 1-2 plain sentences an HR officer can read aloud: what makes them
a fit and the most important gap, if any.

Return JSON only:
{
  "insights": [
    {"applicant_id": "<id exactly as given>", "insight": "<1-2 sentences>"}
  ]
}"""


class ApplicantInsight(BaseModel):
    applicant_id: str
    insight: str = Field(min_length=1)


class RankingInsights(BaseModel):
    insights: list[ApplicantInsight] = Field(default_factory=list)


class GenerateInsightsResult:
    """Insights keyed by applicant id, with usage stats."""

    def __init__(self, insights: dict[str, str], usage: dict[str, Any], model: str):
        self.insights = insights
        self.usage = usage
        self.model = model

    @property
    def cost_usd(self) -> float:
        return float(self.usage.get("cost", 0))


def _build_user_prompt(
    job: "JobRequirement",
    results: list["RankingResult"],
    applicants: dict[str, "ApplicantProfile"],
) -> str:
    ranked = []
    for result in results:
        applicant = applicants[result.applicant_id]
        ranked.append(
            {
                "applicant_id": result.applicant_id,
                "rank": result.rank,
                "match_score": result.match_score,
                "education_score": result.education_score,
                "experience_score": result.experience_score,
                "skills_score": result.skills_score,
                "eligibility_score": result.eligibility_score,
                "education": applicant.highest_educational_attainment,
                "years_of_experience": applicant.total_years_experience,
                "work_experience": list(applicant.work_experience_titles),
                "eligibilities": [e.title for e in applicant.eligibilities],
                "skills": list(applicant.skills),
            }
        )
    posting = {
        "title": job.title,
        "degree_requirement": job.degree_requirement,
        "years_of_experience": job.years_of_experience,
        "eligibilities": list(job.eligibilities),
        "skills": list(job.skills),
    }
    return f"""Job posting:
{json.dumps(posting, indent=2)}

Ranked applicants:
{json.dumps(ranked, indent=2)}"""


async def generate_ranking_insights(
    openrouter: "OpenRouterResource",
    job: "JobRequirement",
    results: list["RankingResult"],
    applicants: dict[str, "ApplicantProfile"],
    model: str | None = None,
) -> GenerateInsightsResult:
    """Write a short explanation for each ranked applicant.

    Args:
        openrouter: OpenRouterResource (or compatible) for API calls
        job: The posting being ranked
        results: Ranked results to explain (usually the top few)
        applicants: Applicant profiles keyed by applicant id
        model: Override for DEFAULT_MODEL

    Returns:
        GenerateInsightsResult; ids the model invented are dropped
    """
    model = model or DEFAULT_MODEL

    response = await openrouter.complete(
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": _build_user_prompt(job, results, applicants)},
        ],
        model=model,
        operation="ranking_insights",
        response_format={"type": "json_object"},
        temperature=0.2,
    )

    parsed = RankingInsights.model_validate(parse_json_content(message_content(response)))
    known = {result.applicant_id for result in results}
    insights = {
        item.applicant_id: item.insight.strip()
        for item in parsed.insights
        if item.applicant_id in known and item.insight.strip()
    }
    return GenerateInsightsResult(insights=insights, usage=response.get("usage", {}), model=model)
