"""String helpers shared by taxonomy lookup, normalization, and scoring.

Every comparison between free-text degree, eligibility, and skill values goes
through these helpers so alias keys, list parsing, and lexical similarity stay
consistent between the dictionary index and the ranking sub-scores.
"""

import re

from rapidfuzz.distance import Levenshtein

from jobsync_matching.models.enums import ListModeEnum

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_LIST_JOIN_RE = re.compile(r"\s+(?:or|and)\s+", re.IGNORECASE)
_AND_RE = re.compile(r"\sand\s", re.IGNORECASE)
_OR_RE = re.compile(r"\sor\s", re.IGNORECASE)
_TRAILING_SECTIONS_RE = re.compile(r"\s+(?:Eligibilities|Skills|Experience):", re.IGNORECASE)
_FIELD_IN_RE = re.compile(r"\bin\s+(.+)$", re.IGNORECASE)
_FIELD_OF_RE = re.compile(r"\bof\s+(.+)$", re.IGNORECASE)

NO_REQUIREMENT_PHRASES = frozenset(
    {
        "none",
        "n a",
        "not required",
        "no degree required",
        "no eligibility required",
        "no eligibilities required",
        "no skills required",
        "no specific skills required",
    }
)

_STOP_TOKENS = frozenset({"the", "and", "for", "with"})


def normalize_key(raw: str) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace, trim."""
    lowered = raw.lower().strip()
    stripped = _NON_WORD_RE.sub(" ", lowered)
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def is_no_requirement(raw: str | None) -> bool:
    """True for empty values and the explicit "nothing required" phrasings."""
    if raw is None:
        return True
    key = normalize_key(raw)
    return not key or key in NO_REQUIREMENT_PHRASES


def split_list_expression(raw: str) -> list[str]:
    """Split "BS IT, BS IS, or BS CS" into ["BS IT", "BS IS", "BS CS"]."""
    text = raw.strip()
    if not text:
        return []
    replaced = _LIST_JOIN_RE.sub(",", text)
    return [part.strip() for part in replaced.split(",") if part.strip()]


def detect_list_mode(raw: str) -> ListModeEnum:
    """AND wins over OR when both connectives appear."""
    if _AND_RE.search(raw):
        return ListModeEnum.AND
    if _OR_RE.search(raw):
        return ListModeEnum.OR
    return ListModeEnum.SINGLE


def is_composite(raw: str) -> bool:
    return "," in raw or detect_list_mode(raw) != ListModeEnum.SINGLE


def clean_degree_requirement(raw: str) -> str:
    """Drop trailing "Eligibilities:/Skills:/Experience:" sections pasted into degree text."""
    return _TRAILING_SECTIONS_RE.split(raw, maxsplit=1)[0].strip()


def extract_degree_field(degree: str) -> str:
    """Return the discipline part of a degree ("... in Nursing" -> "Nursing")."""
    match = _FIELD_IN_RE.search(degree) or _FIELD_OF_RE.search(degree)
    if match:
        return match.group(1).strip()
    return degree.strip()


def string_similarity(a: str, b: str) -> float:
    """Levenshtein similarity on a 0-100 scale, case-insensitive."""
    s1 = a.lower().strip()
    s2 = b.lower().strip()
    if s1 == s2:
        return 100.0
    if not s1 or not s2:
        return 0.0
    return Levenshtein.normalized_similarity(s1, s2) * 100.0


def tokenize(text: str) -> list[str]:
    """Content tokens: punctuation stripped, short and filler words dropped."""
    return [
        token
        for token in normalize_key(text).split(" ")
        if len(token) > 2 and token not in _STOP_TOKENS
    ]


def token_jaccard(a: str, b: str) -> float:
    """Jaccard similarity (0-1) over normalized word sets."""
    tokens_a = set(normalize_key(a).split())
    tokens_b = set(normalize_key(b).split())
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def token_overlap(a: str, b: str) -> int:
    """Number of content tokens shared by both strings."""
    return len(set(tokenize(a)) & set(tokenize(b)))
