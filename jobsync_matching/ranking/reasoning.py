"""Templated explanations of ranking and re-routing results."""

STRONG = 80.0
WEAK = 60.0


def _band(score: float) -> str:
    if score >= STRONG:
        return "strong"
    if score >= WEAK:
        return "moderate"
    return "weak"


_STRENGTH_PHRASES = {
    "education": "strong education match",
    "experience": "solid relevant experience",
    "skills": "most required skills",
    "eligibility": "the required eligibility",
}

_GAP_PHRASES = {
    "education": "education fit",
    "experience": "years of experience",
    "skills": "required skills",
    "eligibility": "eligibility requirements",
}


def build_reasoning(
    education: float,
    experience: float,
    skills: float,
    eligibility: float,
) -> str:
    """Summarize which sub-scores drove the result.

    Example: "Candidate shows strong education match, solid relevant experience.
    Moderate fit on required skills. Gaps in eligibility requirements."
    """
    scores = {
        "education": education,
        "experience": experience,
        "skills": skills,
        "eligibility": eligibility,
    }
    strengths = [_STRENGTH_PHRASES[k] for k, v in scores.items() if _band(v) == "strong"]
    moderate = [_GAP_PHRASES[k] for k, v in scores.items() if _band(v) == "moderate"]
    gaps = [_GAP_PHRASES[k] for k, v in scores.items() if _band(v) == "weak"]

    sentences = []
    if strengths:
        sentences.append(f"Candidate shows {', '.join(strengths)}.")
    if moderate:
        sentences.append(f"Moderate fit on {', '.join(moderate)}.")
    if gaps:
        sentences.append(f"Gaps in {', '.join(gaps)}.")
    driver = max(scores, key=lambda k: scores[k])
    sentences.append(f"Strongest factor: {driver} ({scores[driver]:.0f}/100).")
    return " ".join(sentences)


def build_reroute_reason(
    match_score: float, education: float, experience: float, skills: float
) -> str:
    """Fallback explanation for a re-routed applicant when no model reason is available."""
    if skills > 70:
        area = "skills"
    elif education > 70:
        area = "education"
    elif experience > 70:
        area = "experience"
    else:
        area = "multiple areas"
    return (
        f"Based on your qualifications, this position offers a {match_score:.0f}% match "
        f"to your profile, with strong alignment in {area}."
    )
