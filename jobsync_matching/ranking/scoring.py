"""Sub-score functions for the ranking engine.

Each function is pure: it takes already-normalized values (plus, for skills,
precomputed embedding vectors) and returns a score in [0, 100]. All provider
calls happen in the engine before these run.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from jobsync_matching.models.enums import DegreeLevelEnum, ListModeEnum
from jobsync_matching.models.matching import NormalizedValue
from jobsync_matching.normalization.engine import cosine_similarity
from jobsync_matching.ranking.weights import ExperienceCurve
from jobsync_matching.taxonomy.text import (
    extract_degree_field,
    is_no_requirement,
    split_list_expression,
    string_similarity,
    token_overlap,
)

NEUTRAL_SCORE = 50.0

# Education
DEGREE_OPTION_HIT = 85.0  # field similarity at or above this counts as the same degree
RELATED_FIELD_SCORE = 85.0
SAME_LEVEL_BASE_WEIGHT = 0.6
UNRELATED_FIELD_THRESHOLD = 40.0
UNRELATED_FIELD_PENALTY = 0.25  # points per similarity point below the threshold
LEVEL_ABOVE_BONUS = 4.0
LEVEL_BELOW_PENALTY = 6.0
LEVEL_DELTA_CAP = 3
SAME_FIELD_GROUP_FLOOR = 70.0
SAME_FIELD_GROUP_BONUS = 5.0
PARTIAL_MATCH_FLOOR = 20.0

# Skills
SKILL_EXACT_SIMILARITY = 95.0
SKILL_TOKEN_CHECK_BELOW = 85.0
SKILL_TOKEN_POINTS = 30.0
SKILL_CREDIT_FLOOR = 55.0
SKILL_MATCHED_CREDIT = 0.5

# Eligibility
ELIGIBILITY_TEXT_HIT = 92.0

# Disciplines that substitute for each other in degree requirements.
RELATED_FIELDS: dict[str, tuple[str, ...]] = {
    "information technology": (
        "computer science",
        "information systems",
        "computer engineering",
        "software engineering",
        "information management",
        "information and communications technology",
    ),
    "computer science": (
        "information technology",
        "information systems",
        "computer engineering",
        "software engineering",
    ),
    "information systems": (
        "information technology",
        "computer science",
        "information management",
    ),
    "computer engineering": (
        "computer science",
        "information technology",
        "electronics engineering",
    ),
    "civil engineering": ("architecture", "geodetic engineering", "environmental planning"),
    "electrical engineering": ("electronics engineering", "mechanical engineering"),
    "accountancy": ("accounting", "financial management", "business administration"),
    "business administration": (
        "accountancy",
        "office administration",
        "public administration",
        "entrepreneurship",
        "management",
    ),
    "office administration": (
        "business administration",
        "public administration",
        "secretarial",
    ),
    "public administration": (
        "political science",
        "office administration",
        "business administration",
        "local governance",
        "development management",
    ),
    "political science": ("public administration", "local governance"),
    "nursing": ("midwifery", "public health", "medical technology"),
    "midwifery": ("nursing", "public health"),
    "social work": ("psychology", "sociology", "community development"),
    "psychology": ("social work", "guidance and counseling"),
    "agriculture": ("agricultural engineering", "agribusiness", "fisheries", "forestry"),
    "education": ("elementary education", "secondary education"),
    "hospitality management": ("tourism management", "hotel and restaurant management"),
    "tourism management": ("hospitality management", "hotel and restaurant management"),
    "communication": ("mass communication", "journalism", "broadcasting"),
    "criminology": ("criminal justice", "law enforcement"),
}

# Substrings used to infer a degree level when the taxonomy gave none.
_LEVEL_HINTS: tuple[tuple[DegreeLevelEnum, tuple[str, ...]], ...] = (
    (DegreeLevelEnum.GRADUATE_STUDIES, ("graduate studies", "postgraduate", "post-graduate")),
    (DegreeLevelEnum.DOCTORAL, ("doctor", "phd", "ph.d")),
    (DegreeLevelEnum.MASTER, ("master",)),
    (DegreeLevelEnum.BACHELOR, ("bachelor", "college", "b.s.", "bs ")),
    (DegreeLevelEnum.VOCATIONAL, ("vocational", "tech-voc", "tvet", "tesda")),
    (DegreeLevelEnum.SECONDARY, ("high school", "secondary", "senior high", "junior high")),
    (DegreeLevelEnum.ELEMENTARY, ("elementary", "primary")),
)


@dataclass(frozen=True)
class SubScore:
    score: float
    matched: int = 0


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


# ---------------------------------------------------------------------------
# Education
# ---------------------------------------------------------------------------


def resolve_degree_level(level: str | None, text: str) -> DegreeLevelEnum | None:
    """Prefer the taxonomy level; fall back to keywords in the degree text."""
    parsed = DegreeLevelEnum.parse(level)
    if parsed is not None:
        return parsed
    lowered = f"{text.lower()} "
    for candidate, hints in _LEVEL_HINTS:
        if any(hint in lowered for hint in hints):
            return candidate
    return None


def _degree_option_similarity(job_option: str, applicant_option: str) -> float:
    similarity = string_similarity(
        extract_degree_field(job_option), extract_degree_field(applicant_option)
    )
    return 100.0 if similarity >= DEGREE_OPTION_HIT else similarity


def match_degree_options(job: NormalizedValue, applicant: NormalizedValue) -> float:
    """Lexical degree match: OR takes the best option, AND scores hits / required."""
    job_options = job.parts or split_list_expression(job.canonical_text)
    applicant_options = applicant.parts or split_list_expression(applicant.canonical_text)
    if not job_options or not applicant_options:
        return 0.0

    best_per_option = [
        max(_degree_option_similarity(jo, ao) for ao in applicant_options) for jo in job_options
    ]
    if job.mode == ListModeEnum.AND:
        hits = sum(1 for best in best_per_option if best >= DEGREE_OPTION_HIT)
        return hits / len(job_options) * 100.0
    return max(best_per_option)


def related_field_score(job_text: str, applicant_text: str) -> float:
    job_lower = job_text.lower()
    applicant_lower = applicant_text.lower()
    for field_name, related in RELATED_FIELDS.items():
        if field_name in job_lower and any(r in applicant_lower for r in related):
            return RELATED_FIELD_SCORE
    return 0.0


def _field_similarity(job: NormalizedValue, applicant: NormalizedValue) -> float:
    job_options = job.parts or [job.canonical_text]
    applicant_options = applicant.parts or [applicant.canonical_text]
    return max(
        string_similarity(extract_degree_field(jo), extract_degree_field(ao))
        for jo in job_options
        for ao in applicant_options
    )


def adjust_for_level_and_field(
    base: float, job: NormalizedValue, applicant: NormalizedValue
) -> float:
    """Blend in field similarity at equal level, then apply level and field-group adjustments."""
    score = base
    job_level = resolve_degree_level(job.level, job.canonical_text)
    applicant_level = resolve_degree_level(applicant.level, applicant.canonical_text)

    if job_level and applicant_level:
        if job_level == applicant_level:
            field_sim = _field_similarity(job, applicant)
            if field_sim > 0:
                score = SAME_LEVEL_BASE_WEIGHT * score + (1 - SAME_LEVEL_BASE_WEIGHT) * field_sim
                if field_sim < UNRELATED_FIELD_THRESHOLD:
                    penalty = (UNRELATED_FIELD_THRESHOLD - field_sim) * UNRELATED_FIELD_PENALTY
                    score = max(score - penalty, 0.0)

        levels = DegreeLevelEnum.ordered()
        delta = levels.index(applicant_level) - levels.index(job_level)
        if delta > 0:
            score += min(delta, LEVEL_DELTA_CAP) * LEVEL_ABOVE_BONUS
        elif delta < 0:
            score -= min(-delta, LEVEL_DELTA_CAP) * LEVEL_BELOW_PENALTY

    if job.field_group and job.field_group == applicant.field_group:
        score = max(score, SAME_FIELD_GROUP_FLOOR) + SAME_FIELD_GROUP_BONUS

    if base > 0:
        score = max(score, PARTIAL_MATCH_FLOOR)
    return _clamp(score)


def score_education(job: NormalizedValue, applicant: NormalizedValue) -> float:
    """Education sub-score.

    - No stated requirement: neutral 50
    - Canonical key match (any option for OR, all options for AND): 100
    - Otherwise: lexical similarity of the canonical (or raw) text, lifted by the
      related-field table and adjusted for degree level and field group. An
      unmapped applicant degree still gets a similarity-based score.
    """
    if is_no_requirement(job.raw):
        return NEUTRAL_SCORE
    if is_no_requirement(applicant.raw):
        return 0.0

    job_keys = set(job.keys)
    applicant_keys = set(applicant.keys)
    if job_keys and applicant_keys:
        if job.mode == ListModeEnum.AND:
            if job_keys <= applicant_keys:
                return 100.0
        elif job_keys & applicant_keys:
            return 100.0

    base = match_degree_options(job, applicant)
    base = max(base, related_field_score(job.canonical_text, applicant.canonical_text))
    return adjust_for_level_and_field(base, job, applicant)


# ---------------------------------------------------------------------------
# Experience
# ---------------------------------------------------------------------------


def years_score(required_years: float, applicant_years: float, curve: ExperienceCurve) -> float:
    """Monotonic non-decreasing curve of applicant years for a fixed requirement."""
    required = required_years if required_years > 0 else 1.0
    if applicant_years <= 0:
        return 0.0
    ratio = applicant_years / required
    if ratio < 1:
        return curve.under_floor + (curve.meets_score - curve.under_floor) * ratio
    bonus = min(ratio - 1, curve.bonus_ratio_span) / curve.bonus_ratio_span
    return curve.meets_score + (100.0 - curve.meets_score) * bonus


def score_experience(
    required_years: float, applicant_years: float, curve: ExperienceCurve
) -> float:
    relevance = 100.0 if applicant_years > 0 else 0.0
    score = (
        years_score(required_years, applicant_years, curve) * curve.years_weight
        + relevance * curve.relevance_weight
    )
    return _clamp(score)


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


def skill_vector_key(skill_name: str) -> str:
    """Key under which a skill's embedding is stored for one ranking run."""
    return " ".join(skill_name.lower().split())


def dedupe_skills(skills: Sequence[str]) -> list[str]:
    """Case-insensitive dedupe keeping first spelling; drops "none" style entries."""
    seen: set[str] = set()
    result = []
    for skill in skills:
        cleaned = skill.strip()
        key = skill_vector_key(cleaned)
        if not cleaned or key in seen or is_no_requirement(cleaned):
            continue
        seen.add(key)
        result.append(cleaned)
    return result


def skill_pair_similarity(
    required: str,
    offered: str,
    vectors: Mapping[str, list[float]] | None = None,
    semantic_threshold: float = 0.75,
) -> float:
    """0-100 similarity: best of edit distance, shared words, and embedding cosine."""
    text_sim = string_similarity(required, offered)
    if text_sim >= SKILL_EXACT_SIMILARITY:
        return 100.0

    combined = text_sim
    if text_sim < SKILL_TOKEN_CHECK_BELOW:
        combined = max(combined, min(100.0, token_overlap(required, offered) * SKILL_TOKEN_POINTS))

    if vectors:
        a = vectors.get(skill_vector_key(required))
        b = vectors.get(skill_vector_key(offered))
        if a and b:
            cosine = cosine_similarity(a, b)
            if cosine >= semantic_threshold:
                combined = max(combined, cosine * 100.0)
    return combined


def skill_credit(similarity: float) -> float:
    """Map similarity 55..100 onto credit 0..1."""
    if similarity < SKILL_CREDIT_FLOOR:
        return 0.0
    return min(1.0, (similarity - SKILL_CREDIT_FLOOR) / (100.0 - SKILL_CREDIT_FLOOR))


def score_skills(
    required_skills: Sequence[str],
    applicant_skills: Sequence[str],
    vectors: Mapping[str, list[float]] | None = None,
    semantic_threshold: float = 0.75,
) -> SubScore:
    """Share of required skills covered, with one applicant skill per requirement.

    Pairs are assigned greedily by descending credit; ``matched`` counts required
    skills whose assigned credit is at least 0.5.
    """
    required = dedupe_skills(required_skills)
    offered = dedupe_skills(applicant_skills)
    if not required:
        return SubScore(NEUTRAL_SCORE)
    if not offered:
        return SubScore(0.0)

    pairs = []
    for i, req in enumerate(required):
        for j, off in enumerate(offered):
            credit = skill_credit(skill_pair_similarity(req, off, vectors, semantic_threshold))
            if credit > 0:
                pairs.append((credit, i, j))
    pairs.sort(key=lambda p: (-p[0], p[1], p[2]))

    used_required: set[int] = set()
    used_offered: set[int] = set()
    total = 0.0
    matched = 0
    for credit, i, j in pairs:
        if i in used_required or j in used_offered:
            continue
        used_required.add(i)
        used_offered.add(j)
        total += credit
        if credit >= SKILL_MATCHED_CREDIT:
            matched += 1

    return SubScore(_clamp(total / len(required) * 100.0), matched)


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def _options(value: NormalizedValue) -> list[tuple[str | None, str]]:
    if value.results:
        return [(r.canonical_key, r.canonical_label or r.raw) for r in value.results]
    return [(None, part) for part in split_list_expression(value.canonical_text)]


def _eligibility_hit(required: tuple[str | None, str], offered: tuple[str | None, str]) -> bool:
    required_key, required_text = required
    offered_key, offered_text = offered
    if required_key and offered_key:
        return required_key == offered_key
    return string_similarity(required_text, offered_text) >= ELIGIBILITY_TEXT_HIT


def score_eligibility(
    required: Sequence[NormalizedValue], offered: Sequence[NormalizedValue]
) -> SubScore:
    """Mean credit over requirement lines.

    An OR line earns full credit for any held option; an AND line earns the share
    of its options held. Missing eligibilities lower the score without zeroing
    the applicant. ``matched`` counts distinct applicant eligibilities used.
    """
    lines = [value for value in required if not is_no_requirement(value.raw)]
    if not lines:
        return SubScore(NEUTRAL_SCORE)

    held = [(index, option) for index, value in enumerate(offered) for option in _options(value)]
    if not held:
        return SubScore(0.0)

    used: set[int] = set()
    credits = []
    for line in lines:
        parts = _options(line)
        if not parts:
            continue
        hits = 0
        for part in parts:
            owners = {index for index, option in held if _eligibility_hit(part, option)}
            if owners:
                hits += 1
                used.update(owners)
        if line.mode == ListModeEnum.AND:
            credits.append(hits / len(parts))
        else:
            credits.append(1.0 if hits else 0.0)

    if not credits:
        return SubScore(NEUTRAL_SCORE)
    score = sum(credits) / len(credits) * 100.0
    return SubScore(_clamp(score), len(used))


def finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0
