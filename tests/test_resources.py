"""Tests for Dagster resources."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import ValidationError

from jobsync_matching.llm.operations.embed_text import embed_text
from jobsync_matching.resources import (
    MockEmbeddingResource,
    MockLLMResource,
    OpenRouterResource,
    RankingConfigResource,
    TaxonomyResource,
)
from jobsync_matching.resources.openrouter import OPENROUTER_BASE_URL, RunCostAccumulator
from jobsync_matching.taxonomy.loader import TaxonomyLoadError


class TestMockEmbeddingResource:
    """Tests for the MockEmbeddingResource."""

    def test_embed_returns_openrouter_shape(self):
        """Test that the response carries one indexed vector per input."""
        resource = MockEmbeddingResource(dimensions=64)
        result = asyncio.run(resource.embed(["Text 1", "Text 2", "Text 3"]))

        assert [item["index"] for item in result["data"]] == [0, 1, 2]
        assert all(len(item["embedding"]) == 64 for item in result["data"])
        assert resource.call_count == 1

    def test_embed_is_normalized(self):
        """Test that embeddings are unit normalized."""
        vector = MockEmbeddingResource().embed_vector("Test text")

        magnitude = sum(x * x for x in vector) ** 0.5
        assert abs(magnitude - 1.0) < 0.0001

    def test_same_text_gives_same_vector(self):
        """Test that vectors are deterministic per text."""
        resource = MockEmbeddingResource()
        assert resource.embed_vector("Same text") == resource.embed_vector("Same text")
        assert resource.embed_vector("Same text") != resource.embed_vector("Other text")

    def test_works_with_embed_text(self):
        """Test that the embed_text operation accepts the mock response."""
        result = asyncio.run(embed_text(MockEmbeddingResource(dimensions=8), ["a", "b"]))

        assert len(result.embeddings) == 2
        assert result.dimensions == 8


class TestMockLLMResource:
    """Tests for the MockLLMResource."""

    def test_default_answer_is_unknown(self):
        """Test that the default content is an UNKNOWN classification."""
        resource = MockLLMResource()
        response = asyncio.run(resource.complete([{"role": "user", "content": "hi"}]))

        assert "UNKNOWN" in response["choices"][0]["message"]["content"]

    def test_calls_are_recorded(self):
        """Test that operation and messages are kept for inspection."""
        resource = MockLLMResource(response_content="{}")
        asyncio.run(resource.complete([{"role": "user", "content": "hi"}], operation="classify_degree"))

        assert resource.call_count == 1
        assert resource.calls[0]["operation"] == "classify_degree"


class TestOpenRouterResource:
    """Tests for the OpenRouterResource HTTP client."""

    @pytest.fixture
    def resource(self):
        return OpenRouterResource(api_key="sk-or-test", persist_costs=False)

    def _response(self, payload: dict) -> MagicMock:
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        return response

    def test_headers_include_auth(self, resource):
        """Test that headers include authorization and app attribution."""
        headers = resource._headers
        assert headers["Authorization"] == "Bearer sk-or-test"
        assert headers["Content-Type"] == "application/json"
        assert headers["X-Title"] == "JobSync Matching"

    @patch("jobsync_matching.resources.openrouter.httpx.AsyncClient.post", new_callable=AsyncMock)
    def test_complete_tracks_costs(self, mock_post, resource):
        """Test a completion request and the cost accumulated from its usage."""
        mock_post.return_value = self._response(
            {
                "choices": [{"message": {"content": "{}"}}],
                "usage": {"prompt_tokens": 120, "completion_tokens": 30, "cost": 0.00042},
            }
        )

        data = asyncio.run(
            resource.complete(
                [{"role": "user", "content": "BSIT"}],
                operation="classify_degree",
                response_format={"type": "json_object"},
            )
        )

        assert data["choices"][0]["message"]["content"] == "{}"
        url = mock_post.await_args.args[0]
        body = mock_post.await_args.kwargs["json"]
        assert url == f"{OPENROUTER_BASE_URL}/chat/completions"
        assert body["model"] == "openai/gpt-4o-mini"
        assert body["response_format"] == {"type": "json_object"}
        assert "max_tokens" not in body

        costs = resource.get_run_costs()
        assert costs.api_calls == 1
        assert costs.total_tokens == 150
        assert costs.total_cost_usd == Decimal("0.00042")
        assert costs.costs_by_operation == {"classify_degree": Decimal("0.00042")}

    @patch("jobsync_matching.resources.openrouter.httpx.AsyncClient.post", new_callable=AsyncMock)
    def test_embed_wraps_single_string(self, mock_post, resource):
        """Test that a single string is sent as a one-item batch."""
        mock_post.return_value = self._response(
            {"data": [{"index": 0, "embedding": [0.1, 0.2]}], "usage": {"prompt_tokens": 3}}
        )

        asyncio.run(resource.embed("BS Nursing"))

        body = mock_post.await_args.kwargs["json"]
        assert body == {"model": "openai/text-embedding-3-small", "input": ["BS Nursing"]}
        assert resource.get_run_costs().total_input_tokens == 3

    @patch("jobsync_matching.resources.openrouter.httpx.AsyncClient.post", new_callable=AsyncMock)
    def test_http_error_propagates(self, mock_post, resource):
        """Test that a non-2xx status raises to the caller."""
        request = httpx.Request("POST", f"{OPENROUTER_BASE_URL}/embeddings")
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "429", request=request, response=httpx.Response(429, request=request)
        )
        mock_post.return_value = response

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(resource.embed(["x"]))
        assert resource.get_run_costs().api_calls == 0

    def test_reset_run_costs(self, resource):
        """Test that resetting starts a fresh accumulator."""
        resource.get_run_costs().add("embed", Decimal("0.1"), 10, 0)
        resource.reset_run_costs()

        assert resource.get_run_costs().api_calls == 0

    @patch("jobsync_matching.resources.openrouter.get_session")
    def test_costs_are_persisted_when_enabled(self, mock_get_session):
        """Test that an llm_costs row is written with the current context."""
        session = MagicMock()
        mock_get_session.return_value = session
        resource = OpenRouterResource(api_key="k", persist_costs=True)
        resource.set_context(run_id="run-1", job_id="JOB-9", prompt_version="1.1.0")

        asyncio.run(resource._store_cost_record("classify_degree", "m", 5, 2, Decimal("0.01")))

        record = session.add.call_args.args[0]
        assert record.run_id == "run-1"
        assert record.job_id == "JOB-9"
        assert record.prompt_version == "1.1.0"
        assert record.total_tokens == 7
        session.commit.assert_called_once()


class TestRunCostAccumulator:
    """Tests for per-run cost totals."""

    def test_to_metadata(self):
        """Test the Dagster metadata rendering."""
        costs = RunCostAccumulator()
        costs.add("embed_degree_labels", Decimal("0.002"), 100, 0)
        costs.add("classify_degree", Decimal("0.001"), 50, 10)

        metadata = costs.to_metadata()
        assert metadata["llm/api_calls"] == 2
        assert metadata["llm/total_tokens"] == 160
        assert metadata["llm/total_cost_usd"] == pytest.approx(0.003)
        assert set(metadata["llm/costs_by_operation"]) == {"embed_degree_labels", "classify_degree"}
        assert metadata["llm/calls_by_operation"] == {"embed_degree_labels": 1, "classify_degree": 1}


class TestTaxonomyResource:
    """Tests for the TaxonomyResource."""

    def test_loads_shipped_dictionaries_once(self):
        """Test that the dictionaries load on first access and are reused."""
        resource = TaxonomyResource()
        first = resource.get_taxonomies()

        assert len(first.degrees) > 0
        assert len(first.eligibilities) > 0
        assert resource.get_taxonomies() is first

    def test_bad_path_fails_loudly(self, tmp_path):
        """Test that a missing dictionary raises instead of degrading."""
        resource = TaxonomyResource(degrees_path=str(tmp_path / "missing.yaml"))

        with pytest.raises(TaxonomyLoadError):
            resource.get_taxonomies()


class TestRankingConfigResource:
    """Tests for the RankingConfigResource."""

    def test_defaults(self):
        """Test the default weights and thresholds."""
        config = RankingConfigResource()
        weights = config.weights()

        assert (weights.education, weights.experience, weights.skills, weights.eligibility) == (
            0.35,
            0.25,
            0.20,
            0.20,
        )
        assert config.normalization_settings().embedding_accept_threshold == 0.75
        assert config.ranking_settings().insights_top_n == 0
        assert config.ranking_settings().reroute_min_score == 30.0

    def test_env_overrides(self, monkeypatch):
        """Test that environment variables feed the defaults."""
        monkeypatch.setenv("RANKING_WEIGHT_EDUCATION", "0.4")
        monkeypatch.setenv("RANKING_WEIGHT_EXPERIENCE", "0.2")
        monkeypatch.setenv("RANKING_MAX_CONCURRENCY", "2")
        monkeypatch.setenv("GENERATIVE_MODEL", "anthropic/claude-3-haiku")
        monkeypatch.setenv("REROUTE_MIN_SCORE", "45")

        config = RankingConfigResource()

        assert config.weights().education == 0.4
        assert config.ranking_settings().max_concurrency == 2
        assert config.normalization_settings().generative_model == "anthropic/claude-3-haiku"
        assert config.ranking_settings().reroute_min_score == 45.0

    def test_bad_weights_rejected(self):
        """Test that weights not summing to 1 fail when the policy is built."""
        config = RankingConfigResource(education_weight=0.9)

        with pytest.raises(ValidationError):
            config.weights()

    def test_build_engines_share_providers(self, taxonomies):
        """Test that both engines use the same providers and settings."""
        llm = MockLLMResource()
        normalizer, ranker = RankingConfigResource(insights_top_n=3).build_engines(
            taxonomies, embedder=None, llm=llm
        )

        assert ranker.normalizer is normalizer
        assert normalizer.llm is llm
        assert normalizer.embedder is None
        assert ranker.settings.insights_top_n == 3
