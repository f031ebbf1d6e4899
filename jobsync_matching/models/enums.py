"""Enums for the matching domain."""

import enum


class TaxonomyDomainEnum(str, enum.Enum):
    """Which taxonomy a raw value is normalized against."""

    DEGREE = "degree"
    ELIGIBILITY = "eligibility"


class NormalizationMethodEnum(str, enum.Enum):
    """Tier that produced a normalization result."""

    DICTIONARY = "dictionary"  # Exact alias / canonical label hit
    EMBEDDING = "embedding"  # Cosine similarity against canonical label vectors
    GENERATIVE = "generative"  # LLM picked a canonical key from candidates
    FALLBACK = "fallback"  # No confident match


class ListModeEnum(str, enum.Enum):
    """How a composite requirement combines its parts."""

    SINGLE = "single"
    AND = "and"
    OR = "or"


class DegreeLevelEnum(str, enum.Enum):
    """Education levels in ascending order."""

    ELEMENTARY = "elementary"
    SECONDARY = "secondary"
    VOCATIONAL = "vocational"
    BACHELOR = "bachelor"
    MASTER = "master"
    DOCTORAL = "doctoral"
    GRADUATE_STUDIES = "graduate studies"

    @classmethod
    def ordered(cls) -> list["DegreeLevelEnum"]:
        return list(cls)

    @classmethod
    def parse(cls, value: str | None) -> "DegreeLevelEnum | None":
        """Map taxonomy level labels ("college", "graduate_studies") onto the enum."""
        if not value:
            return None
        cleaned = value.lower().strip().replace("_", " ").replace("-", " ")
        if cleaned == "college":
            return cls.BACHELOR
        if cleaned in {"doctorate", "phd"}:
            return cls.DOCTORAL
        for level in cls:
            if level.value == cleaned:
                return level
        return None
