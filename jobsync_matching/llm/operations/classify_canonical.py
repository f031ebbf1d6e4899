"""Canonical-key classification LLM operation.

Last tier of normalization: the model sees the raw degree or eligibility text
and a shortlist of canonical labels, and either picks one key or answers
UNKNOWN.

Bump PROMPT_VERSION when changing the prompt so cost records can be compared
across prompt revisions.
"""

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator

from jobsync_matching.llm.parsing import message_content, parse_json_content
from jobsync_matching.models.enums import TaxonomyDomainEnum

if TYPE_CHECKING:
    from jobsync_matching.models.matching import CanonicalEntry
    from jobsync_matching.resources.openrouter import OpenRouterResource

# Bump this version when the prompt changes
# Format: MAJOR.MINOR.PATCH
# - MAJOR: Breaking changes to output schema
# - MINOR: New fields or significant prompt improvements
# - PATCH: Minor wording tweaks or bug fixes
PROMPT_VERSION = "1.1.0"

# Classification over a short list is cheap; a small model is enough
DEFAULT_MODEL = "openai/gpt-4o-mini"

UNKNOWN_KEY = "UNKNOWN"

SYSTEM_PROMPT = """You normalize free-text {domain} values for a Philippine local government HR system.

You receive a value typed by an applicant or HR staff member and a list of canonical {domain} entries.
Pick the single entry that means the same thing. Abbreviations, misspellings, and reordered words
still count as the same thing. A different field of study or a different kind of license does not.

Return JSON only:
{{
  "canonical_key": "<one key from the list, or UNKNOWN>",
  "confidence": <0.0 to 1.0>,
  "reasoning": "One short sentence"
}}

Answer UNKNOWN when no entry is a clear match."""


class CanonicalChoice(BaseModel):
    """Validated model answer."""

    canonical_key: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    reasoning: str = ""

    @field_validator("canonical_key")
    @classmethod
    def _strip_key(cls, value: str) -> str:
        return value.strip()

    @property
    def is_unknown(self) -> bool:
        return not self.canonical_key or self.canonical_key.upper() == UNKNOWN_KEY


class ClassifyCanonicalResult:
    """Result of classification with usage stats for cost reporting."""

    def __init__(self, choice: CanonicalChoice, usage: dict[str, Any], model: str):
        self.choice = choice
        self.usage = usage
        self.model = model

    @property
    def input_tokens(self) -> int:
        return self.usage.get("prompt_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("completion_tokens", 0)

    @property
    def cost_usd(self) -> float:
        return float(self.usage.get("cost", 0))


def _build_user_prompt(raw: str, candidates: list["CanonicalEntry"]) -> str:
    listing = [{"key": entry.key, "label": entry.canonical_label} for entry in candidates]
    return f"""Value: {json.dumps(raw)}

Canonical entries:
{json.dumps(listing, indent=2)}"""


async def classify_canonical(
    openrouter: "OpenRouterResource",
    raw: str,
    domain: TaxonomyDomainEnum,
    candidates: list["CanonicalEntry"],
    model: str | None = None,
) -> ClassifyCanonicalResult:
    """Ask the model which canonical entry a raw value refers to.

    Args:
        openrouter: OpenRouterResource (or compatible) for API calls
        raw: The value to classify
        domain: Degree or eligibility
        candidates: Shortlist of entries the model may choose from
        model: Override for DEFAULT_MODEL

    Returns:
        ClassifyCanonicalResult wrapping the validated CanonicalChoice

    Raises:
        ValueError: If the response is empty or not valid JSON
        pydantic.ValidationError: If the JSON does not match CanonicalChoice
    """
    model = model or DEFAULT_MODEL

    response = await openrouter.complete(
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT.format(domain=domain.value)},
            {"role": "user", "content": _build_user_prompt(raw, candidates)},
        ],
        model=model,
        operation=f"classify_{domain.value}",
        response_format={"type": "json_object"},
        temperature=0.0,
    )

    data = parse_json_content(message_content(response))
    choice = CanonicalChoice.model_validate(data)
    return ClassifyCanonicalResult(choice=choice, usage=response.get("usage", {}), model=model)
