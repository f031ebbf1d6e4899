"""Re-routing reason LLM operation.

When an applicant's posting is filled or closed, the ranking engine picks the
best other open posting for them. This operation writes the short explanation
shown to the applicant. The caller keeps a templated sentence for when the call
fails.

Bump PROMPT_VERSION when changing the prompt.
"""

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from jobsync_matching.llm.parsing import message_content, parse_json_content

if TYPE_CHECKING:
    from jobsync_matching.models.matching import JobRequirement
    from jobsync_matching.resources.openrouter import OpenRouterResource

PROMPT_VERSION = "1.0.0"

DEFAULT_MODEL = "openai/gpt-4o-mini"

SYSTEM_PROMPT = """You are an HR assistant at a Philippine public employment service office.

An applicant is being re-routed from the posting they applied to into another open posting.
You receive both posting titles, the description of the new posting, and the applicant's
match scores (0-100) against it. Write 2-3 professional, encouraging sentences explaining
why the new posting suits the applicant, focusing on the strongest matching areas.
Do not mention the original posting being filled or closed.

Return JSON only:
{"reason": "<2-3 sentences>"}"""


class RerouteReason(BaseModel):
    reason: str = Field(min_length=1)


class GenerateRerouteReasonResult:
    """Reason text plus usage stats."""

    def __init__(self, reason: str, usage: dict[str, Any], model: str):
        self.reason = reason
        self.usage = usage
        self.model = model

    @property
    def cost_usd(self) -> float:
        return float(self.usage.get("cost", 0))


def _build_user_prompt(
    applicant_name: str,
    original_title: str,
    alternative: "JobRequirement",
    scores: dict[str, float],
) -> str:
    breakdown = {name: round(value, 1) for name, value in scores.items()}
    return f"""Applicant: {applicant_name or "the applicant"}
Original posting: {original_title or "not given"}
Alternative posting: {alternative.title}
Alternative posting description: {alternative.description or "not given"}

Match scores:
{json.dumps(breakdown, indent=2)}"""


async def generate_reroute_reason(
    openrouter: "OpenRouterResource",
    applicant_name: str,
    original_title: str,
    alternative: "JobRequirement",
    scores: dict[str, float],
    model: str | None = None,
) -> GenerateRerouteReasonResult:
    """Explain why an alternative posting fits a re-routed applicant.

    Args:
        openrouter: OpenRouterResource (or compatible) for API calls
        applicant_name: Name shown in the prompt
        original_title: Title of the posting the applicant applied to
        alternative: The posting the applicant is re-routed into
        scores: Sub-scores keyed match, education, experience, skills, eligibility
        model: Override for DEFAULT_MODEL

    Raises:
        pydantic.ValidationError: If the answer has no usable reason
    """
    model = model or DEFAULT_MODEL

    response = await openrouter.complete(
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": _build_user_prompt(applicant_name, original_title, alternative, scores),
            },
        ],
        model=model,
        operation="reroute_reason",
        response_format={"type": "json_object"},
        temperature=0.3,
    )

    parsed = RerouteReason.model_validate(parse_json_content(message_content(response)))
    reason = parsed.reason.strip()
    if not reason:
        raise ValueError("Model returned a blank re-routing reason")
    return GenerateRerouteReasonResult(reason=reason, usage=response.get("usage", {}), model=model)
