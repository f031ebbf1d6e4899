"""Tests for the three-tier normalization engine.

Provider calls are replaced by the mock resources or by small in-test fakes, so
every tier's accept and reject paths run without network access.
"""

import asyncio

import pytest
from conftest import FailingProvider, VectorEmbedder

from jobsync_matching.models.enums import (
    ListModeEnum,
    NormalizationMethodEnum,
    TaxonomyDomainEnum,
)
from jobsync_matching.models.matching import ApplicantProfile, JobRequirement
from jobsync_matching.normalization.engine import (
    NormalizationEngine,
    NormalizationSettings,
    cosine_similarity,
)
from jobsync_matching.normalization.records import (
    normalize_applicant,
    normalize_job,
    normalize_job_and_applicant,
    unresolved_value,
)
from jobsync_matching.resources import MockEmbeddingResource, MockLLMResource

DEGREE = TaxonomyDomainEnum.DEGREE
ELIGIBILITY = TaxonomyDomainEnum.ELIGIBILITY

BS_IT_LABEL = "Bachelor of Science in Information Technology"


def run(coro):
    return asyncio.run(coro)


class TestDictionaryTier:
    """Tests for exact alias lookups."""

    def test_bsit_resolves_by_alias(self, taxonomies):
        """Test the BSIT abbreviation resolving to BS_IT with full confidence."""
        engine = NormalizationEngine(taxonomies)
        result = run(engine.normalize("BSIT", DEGREE))

        assert result.canonical_key == "BS_IT"
        assert result.canonical_label == BS_IT_LABEL
        assert result.method == NormalizationMethodEnum.DICTIONARY
        assert result.confidence == 1.0
        assert result.low_confidence is False

    def test_dictionary_hit_makes_no_provider_calls(self, taxonomies):
        """Test that a dictionary hit never reaches the embedding or generative tiers."""
        embedder = MockEmbeddingResource()
        llm = MockLLMResource()
        engine = NormalizationEngine(taxonomies, embedder=embedder, llm=llm)

        run(engine.normalize("Civil Service Professional Eligibility", ELIGIBILITY))

        assert embedder.call_count == 0
        assert llm.call_count == 0

    def test_idempotent(self, taxonomies):
        """Test that normalizing the same value twice gives the same key and confidence."""
        engine = NormalizationEngine(taxonomies)
        first = run(engine.normalize("bs it", DEGREE))
        second = run(engine.normalize("bs it", DEGREE))

        assert first.canonical_key == second.canonical_key == "BS_IT"
        assert first.confidence == second.confidence

    def test_domains_are_separate(self, taxonomies):
        """Test that an eligibility alias is not found in the degree taxonomy."""
        engine = NormalizationEngine(taxonomies)
        result = run(engine.normalize("CSC Professional", DEGREE))

        assert result.canonical_key is None


class TestNullSafety:
    """Too-short input resolves to a null result without any provider call."""

    @pytest.mark.parametrize("raw", ["", "   ", "x", "\t\n"])
    def test_short_input_is_fallback(self, taxonomies, raw):
        """Test that empty and one-character inputs return the null result."""
        embedder = MockEmbeddingResource()
        llm = MockLLMResource()
        engine = NormalizationEngine(taxonomies, embedder=embedder, llm=llm)

        result = run(engine.normalize(raw, DEGREE))

        assert result.canonical_key is None
        assert result.confidence == 0.0
        assert result.method == NormalizationMethodEnum.FALLBACK
        assert embedder.call_count == 0
        assert llm.call_count == 0

    def test_none_input(self, taxonomies):
        """Test that None is treated like an empty string."""
        engine = NormalizationEngine(taxonomies)
        result = run(engine.normalize(None, ELIGIBILITY))

        assert result.raw == ""
        assert result.canonical_key is None


class TestEmbeddingTier:
    """Tests for cosine matching against canonical label vectors."""

    def _embedder(self, query: str, query_vector: list[float]) -> VectorEmbedder:
        return VectorEmbedder(
            {BS_IT_LABEL: [1.0, 0.0, 0.0], query: query_vector},
            default=[0.0, 0.0, 1.0],
        )

    def test_strong_match_is_accepted(self, taxonomies):
        """Test that a similarity above the strong threshold is accepted unflagged."""
        embedder = self._embedder("Infotech graduate", [0.95, 0.312, 0.0])
        engine = NormalizationEngine(taxonomies, embedder=embedder)

        result = run(engine.normalize("Infotech graduate", DEGREE))

        assert result.canonical_key == "BS_IT"
        assert result.method == NormalizationMethodEnum.EMBEDDING
        assert result.confidence == pytest.approx(0.95, abs=1e-3)
        assert result.low_confidence is False

    def test_weak_accept_is_flagged(self, taxonomies):
        """Test that a match between the accept and strong thresholds is flagged."""
        embedder = self._embedder("Infotech graduate", [0.8, 0.6, 0.0])
        engine = NormalizationEngine(taxonomies, embedder=embedder)

        result = run(engine.normalize("Infotech graduate", DEGREE))

        assert result.canonical_key == "BS_IT"
        assert result.confidence == pytest.approx(0.8)
        assert result.low_confidence is True

    def test_below_accept_threshold_falls_through(self, taxonomies):
        """Test that a similarity under the accept threshold is not a match."""
        embedder = self._embedder("Infotech graduate", [0.6, 0.8, 0.0])
        engine = NormalizationEngine(taxonomies, embedder=embedder)

        result = run(engine.normalize("Infotech graduate", DEGREE))

        assert result.canonical_key is None
        assert result.method == NormalizationMethodEnum.FALLBACK

    def test_label_vectors_are_computed_once(self, taxonomies):
        """Test that canonical labels are embedded once per engine and domain."""
        embedder = self._embedder("Infotech graduate", [1.0, 0.0, 0.0])
        engine = NormalizationEngine(taxonomies, embedder=embedder)

        run(engine.normalize("Infotech graduate", DEGREE))
        run(engine.normalize("Infotech graduate", DEGREE))

        label_batches = [batch for batch in embedder.inputs if BS_IT_LABEL in batch]
        assert len(label_batches) == 1

    def test_cosine_similarity(self):
        """Test the cosine helper on simple vectors."""
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0
        assert cosine_similarity([1.0], [1.0, 0.0]) == 0.0


class TestGenerativeTier:
    """Tests for model classification over a shortlist."""

    def test_model_choice_is_accepted(self, taxonomies):
        """Test that a known key from the model becomes a generative result."""
        llm = MockLLMResource(
            response_content='{"canonical_key": "BS_IT", "confidence": 0.9, "reasoning": "abbrev"}'
        )
        engine = NormalizationEngine(taxonomies, llm=llm)

        result = run(engine.normalize("B.S. Info Technology", DEGREE))

        assert result.canonical_key == "BS_IT"
        assert result.method == NormalizationMethodEnum.GENERATIVE
        assert result.confidence == 0.9
        assert result.low_confidence is False
        assert llm.calls[0]["operation"] == "classify_degree"

    def test_shortlist_is_sent_to_model(self, taxonomies):
        """Test that the prompt lists candidate keys sharing words with the input."""
        llm = MockLLMResource()
        engine = NormalizationEngine(taxonomies, llm=llm)

        run(engine.normalize("B.S. Info Technology", DEGREE))

        user_prompt = llm.calls[0]["messages"][1]["content"]
        assert "BS_IT" in user_prompt
        assert "B.S. Info Technology" in user_prompt

    def test_low_confidence_choice_is_flagged(self, taxonomies):
        """Test that a model confidence under the threshold sets the flag."""
        llm = MockLLMResource(
            response_content='{"canonical_key": "BS_IT", "confidence": 0.4, "reasoning": "guess"}'
        )
        engine = NormalizationEngine(taxonomies, llm=llm)

        result = run(engine.normalize("B.S. Info Technology", DEGREE))

        assert result.canonical_key == "BS_IT"
        assert result.low_confidence is True

    def test_fenced_json_is_accepted(self, taxonomies):
        """Test that Markdown fences around the JSON are tolerated."""
        llm = MockLLMResource(
            response_content='```json\n{"canonical_key": "BS_IT", "confidence": 0.85}\n```'
        )
        engine = NormalizationEngine(taxonomies, llm=llm)

        result = run(engine.normalize("B.S. Info Technology", DEGREE))

        assert result.canonical_key == "BS_IT"

    @pytest.mark.parametrize(
        "content",
        [
            '{"canonical_key": "UNKNOWN", "confidence": 0.0}',
            '{"canonical_key": "NOT_A_KEY", "confidence": 0.9}',
            '{"confidence": 0.9}',
            '{"canonical_key": "BS_IT", "confidence": 7}',
            "I think it is BS IT",
            "",
        ],
    )
    def test_unusable_answers_fall_back(self, taxonomies, content):
        """Test that UNKNOWN, invented keys, and malformed payloads become a fallback."""
        llm = MockLLMResource(response_content=content)
        engine = NormalizationEngine(taxonomies, llm=llm)

        result = run(engine.normalize("B.S. Info Technology", DEGREE))

        assert result.canonical_key is None
        assert result.method == NormalizationMethodEnum.FALLBACK

    def test_no_shortlist_skips_model(self, taxonomies):
        """Test that an input sharing no words with any entry is not sent to the model."""
        llm = MockLLMResource()
        engine = NormalizationEngine(taxonomies, llm=llm)

        result = run(engine.normalize("Random Invented Degree X", DEGREE))

        assert result.canonical_key is None
        assert llm.call_count == 0


class TestProviderOutage:
    """Provider failures degrade to the fallback result and never raise."""

    def test_both_providers_raising(self, taxonomies, failing_provider):
        """Test that errors from both tiers end in a fallback result."""
        engine = NormalizationEngine(taxonomies, embedder=failing_provider, llm=failing_provider)

        result = run(engine.normalize("B.S. Info Technology", DEGREE))

        assert result.canonical_key is None
        assert result.method == NormalizationMethodEnum.FALLBACK
        assert result.confidence == 0.0
        assert failing_provider.embed_calls >= 1
        assert failing_provider.complete_calls == 1

    def test_both_providers_timing_out(self, taxonomies, slow_provider):
        """Test that slow providers are cut off by the timeout."""
        settings = NormalizationSettings(provider_timeout_seconds=0.05)
        engine = NormalizationEngine(
            taxonomies, embedder=slow_provider, llm=slow_provider, settings=settings
        )

        result = run(engine.normalize("B.S. Info Technology", DEGREE))

        assert result.method == NormalizationMethodEnum.FALLBACK

    def test_malformed_embedding_payload(self, taxonomies):
        """Test that a response with the wrong number of vectors is treated as a failure."""

        class ShortEmbedder:
            async def embed(self, input, model=None, operation="embed"):
                return {"data": [{"index": 0, "embedding": [1.0]}]}

        engine = NormalizationEngine(taxonomies, embedder=ShortEmbedder())
        result = run(engine.normalize("Infotech graduate", DEGREE))

        assert result.method == NormalizationMethodEnum.FALLBACK

    def test_dictionary_still_works_during_outage(self, taxonomies):
        """Test that dictionary hits are unaffected by a failing provider."""
        provider = FailingProvider()
        engine = NormalizationEngine(taxonomies, embedder=provider, llm=provider)

        result = run(engine.normalize("BSIT", DEGREE))

        assert result.canonical_key == "BS_IT"
        assert provider.embed_calls == 0


class TestNormalizeValue:
    """Tests for multi-option fields."""

    def test_or_requirement_is_split(self, taxonomies):
        """Test that an OR list resolves every option."""
        engine = NormalizationEngine(taxonomies)
        value = run(
            engine.normalize_value(
                "Bachelor of Science in Office Administration or Public Administration", DEGREE
            )
        )

        assert value.mode == ListModeEnum.OR
        assert value.keys == ("BS_OA", "BPA")
        assert value.level == "bachelor"
        assert value.field_group == "public_administration"
        assert value.canonical_text == (
            "Bachelor of Science in Office Administration or Bachelor of Public Administration"
        )

    def test_and_requirement(self, taxonomies):
        """Test that an AND list keeps AND mode."""
        engine = NormalizationEngine(taxonomies)
        value = run(engine.normalize_value("BSIT and MBA", DEGREE))

        assert value.mode == ListModeEnum.AND
        assert value.keys == ("BS_IT", "MBA")

    def test_single_value(self, taxonomies):
        """Test that a plain value is a single-mode result."""
        engine = NormalizationEngine(taxonomies)
        value = run(engine.normalize_value("BSIT", DEGREE))

        assert value.mode == ListModeEnum.SINGLE
        assert value.primary.canonical_key == "BS_IT"
        assert value.field_group == "ict"

    def test_pasted_sections_are_cleaned(self, taxonomies):
        """Test that trailing "Eligibilities:" text is removed from degree input."""
        engine = NormalizationEngine(taxonomies)
        value = run(engine.normalize_value("BSIT Eligibilities: CSC Prof", DEGREE))

        assert value.keys == ("BS_IT",)

    @pytest.mark.parametrize("raw", ["", "None", "N/A", "Not required"])
    def test_no_requirement(self, taxonomies, raw):
        """Test that "nothing required" phrasings yield an empty value."""
        engine = NormalizationEngine(taxonomies)
        value = run(engine.normalize_value(raw, DEGREE))

        assert value.results == ()
        assert value.keys == ()

    def test_unresolved_part_keeps_raw_text(self, taxonomies):
        """Test that an unmatched option is carried as raw text."""
        engine = NormalizationEngine(taxonomies)
        value = run(engine.normalize_value("BSIT or Random Invented Degree X", DEGREE))

        assert value.keys == ("BS_IT",)
        assert value.parts == [BS_IT_LABEL, "Random Invented Degree X"]


class TestRecords:
    """Tests for annotating jobs and applicants."""

    def test_normalize_job(self, taxonomies):
        """Test that the job copy carries normalized degree and eligibilities."""
        engine = NormalizationEngine(taxonomies)
        job = JobRequirement(
            title="Administrative Aide",
            degree_requirement="BSOA",
            eligibilities=("CSC Professional",),
        )
        normalized = run(normalize_job(engine, job))

        assert normalized.is_normalized
        assert normalized.normalized_degree.keys == ("BS_OA",)
        assert normalized.normalized_eligibilities[0].keys == ("CSC_PROF",)
        assert job.normalized_degree is None

    def test_normalize_applicant_keeps_existing(self, taxonomies):
        """Test that an already normalized degree is not recomputed."""
        engine = NormalizationEngine(taxonomies)
        preset = unresolved_value("Custom Degree")
        applicant = ApplicantProfile(
            applicant_id="A1",
            highest_educational_attainment="BSIT",
            normalized_degree=preset,
            eligibilities=["CS Professional"],
        )
        normalized = run(normalize_applicant(engine, applicant))

        assert normalized.normalized_degree == preset
        assert normalized.eligibilities[0].normalized.keys == ("CSC_PROF",)

    def test_normalize_job_and_applicant(self, taxonomies):
        """Test normalizing both sides together."""
        engine = NormalizationEngine(taxonomies)
        job = JobRequirement(title="Nurse II", degree_requirement="BSN")
        applicant = ApplicantProfile(applicant_id="A1", highest_educational_attainment="BS Nursing")

        job_out, applicant_out = run(normalize_job_and_applicant(engine, job, applicant))

        assert job_out.normalized_degree.keys == applicant_out.normalized_degree.keys

    def test_unresolved_value_splits_lists(self):
        """Test the raw fallback value for composite text."""
        value = unresolved_value("BS IT or BS CS")

        assert value.mode == ListModeEnum.OR
        assert [r.raw for r in value.results] == ["BS IT", "BS CS"]
        assert value.keys == ()
