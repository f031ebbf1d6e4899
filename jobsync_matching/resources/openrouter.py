"""OpenRouter LLM resource with cost tracking.

This resource is a thin HTTP client for the OpenRouter API. It handles:
- Authentication
- Request formatting and timeouts
- Cost tracking (logged per call, optionally stored in the llm_costs table)

Prompts and response parsing live in jobsync_matching.llm.operations.
"""

import asyncio
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import httpx
from dagster import ConfigurableResource, get_dagster_logger
from pydantic import Field, PrivateAttr

from jobsync_matching.db import get_session
from jobsync_matching.models.llm_costs import LLMCost

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


@dataclass
class LLMContext:
    """Context for attributing costs to a run and a job posting."""

    run_id: str = ""
    job_id: str = ""
    prompt_version: str = ""


@dataclass
class RunCostAccumulator:
    """Provider spend for one ranking run, split by operation (classify_degree, embed_skills ...)."""

    total_cost_usd: Decimal = Decimal("0")
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    api_calls: int = 0
    costs_by_operation: dict[str, Decimal] = field(default_factory=dict)
    calls_by_operation: dict[str, int] = field(default_factory=dict)

    def add(self, operation: str, cost_usd: Decimal, input_tokens: int, output_tokens: int):
        self.total_cost_usd += cost_usd
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.api_calls += 1
        self.costs_by_operation[operation] = (
            self.costs_by_operation.get(operation, Decimal("0")) + cost_usd
        )
        self.calls_by_operation[operation] = self.calls_by_operation.get(operation, 0) + 1

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens

    def to_metadata(self) -> dict:
        """Return as Dagster metadata dict."""
        return {
            "llm/total_cost_usd": float(self.total_cost_usd),
            "llm/total_tokens": self.total_tokens,
            "llm/api_calls": self.api_calls,
            "llm/costs_by_operation": {k: float(v) for k, v in self.costs_by_operation.items()},
            "llm/calls_by_operation": dict(self.calls_by_operation),
        }


class OpenRouterResource(ConfigurableResource):
    """OpenRouter client used for both embeddings and completions.

    Example usage in an op:
        openrouter.set_context(run_id=context.run_id, job_id=job.job_id or "")
        engine = NormalizationEngine(taxonomies, embedder=openrouter, llm=openrouter)
        result = asyncio.run(engine.normalize("BSIT", TaxonomyDomainEnum.DEGREE))
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_API_KEY", ""),
        description="OpenRouter API key",
    )
    default_model: str = Field(
        default="openai/gpt-4o-mini",
        description="Default model to use for completions",
    )
    embedding_model: str = Field(
        default="openai/text-embedding-3-small",
        description="Default model to use for embeddings",
    )
    request_timeout: float = Field(
        default=60.0,
        description="HTTP timeout in seconds for a single request",
    )
    persist_costs: bool = Field(
        default_factory=lambda: os.getenv("LLM_COST_PERSIST", "false").lower() == "true",
        description="Write one llm_costs row per call",
    )
    site_url: str = Field(
        default="https://jobsync.local",
        description="Site URL for OpenRouter analytics",
    )
    app_name: str = Field(
        default="JobSync Matching",
        description="Application name for OpenRouter analytics",
    )
    # Internal state (not configurable, uses Pydantic PrivateAttr)
    _context: LLMContext = PrivateAttr(default_factory=LLMContext)
    _run_costs: RunCostAccumulator = PrivateAttr(default_factory=RunCostAccumulator)

    def set_context(self, run_id: str, job_id: str = "", prompt_version: str = "") -> None:
        """Set context for cost attribution. Call this at the start of each op.

        Args:
            run_id: Dagster run ID (or any id for ad hoc scripts)
            job_id: Posting being ranked, if any
            prompt_version: Prompt version of the operation about to run
        """
        self._context = LLMContext(run_id=run_id, job_id=job_id, prompt_version=prompt_version)

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.site_url,
            "X-Title": self.app_name,
        }

    async def _store_cost_record(
        self,
        operation: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        cost_usd: Decimal,
    ) -> None:
        """Insert one llm_costs row tagged with the current run and posting."""
        record = LLMCost(
            run_id=self._context.run_id or "unknown",
            job_id=self._context.job_id or None,
            operation=operation,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost_usd,
            prompt_version=self._context.prompt_version or None,
        )

        def _insert() -> None:
            session = get_session()
            try:
                session.add(record)
                session.commit()
            finally:
                session.close()

        # Sync driver; keep the event loop free while the row is written
        await asyncio.to_thread(_insert)

    def get_run_costs(self) -> RunCostAccumulator:
        """Get accumulated costs for the current run."""
        return self._run_costs

    def reset_run_costs(self) -> None:
        """Reset the run cost accumulator. Call at start of a new run."""
        self._run_costs = RunCostAccumulator()

    async def _record_usage(
        self, operation: str, model: str, usage: dict[str, Any], input_key: str = "prompt_tokens"
    ) -> None:
        input_tokens = int(usage.get(input_key) or usage.get("total_tokens") or 0)
        output_tokens = int(usage.get("completion_tokens") or 0)
        # OpenRouter reports the billed cost on every response
        cost_usd = Decimal(str(usage.get("cost") or 0))

        get_dagster_logger().info(
            f"LLM Cost: {operation} | {model} | "
            f"{input_tokens}+{output_tokens} tokens | ${cost_usd:.6f}"
        )
        self._run_costs.add(operation, cost_usd, input_tokens, output_tokens)
        if self.persist_costs:
            await self._store_cost_record(operation, model, input_tokens, output_tokens, cost_usd)

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.request_timeout) as client:
            response = await client.post(
                f"{OPENROUTER_BASE_URL}{path}", headers=self._headers, json=body
            )
            response.raise_for_status()
            return response.json()

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        operation: str = "completion",
        response_format: dict[str, str] | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Chat completion used by the generative tier and ranking insights.

        Args:
            messages: Chat messages ('role' and 'content')
            model: Model id (defaults to default_model)
            operation: Label for cost attribution, e.g. "classify_degree"
            response_format: Passed through, e.g. {"type": "json_object"}
            temperature: Sampling temperature; classification runs at 0.0
            max_tokens: Optional cap on the answer length

        Returns:
            The raw OpenRouter response, usage included

        Raises:
            httpx.HTTPError: On transport errors or a non-2xx response
        """
        model = model or self.default_model
        body: dict[str, Any] = {"model": model, "messages": messages, "temperature": temperature}
        if response_format:
            body["response_format"] = response_format
        if max_tokens:
            body["max_tokens"] = max_tokens

        data = await self._post("/chat/completions", body)
        await self._record_usage(operation, model, data.get("usage") or {})
        return data

    async def embed(
        self,
        input: str | list[str],
        model: str | None = None,
        operation: str = "embed",
    ) -> dict[str, Any]:
        """Embed one text or a batch; the response keeps OpenRouter's ``data`` list."""
        texts = [input] if isinstance(input, str) else list(input)
        model = model or self.embedding_model

        data = await self._post("/embeddings", {"model": model, "input": texts})
        await self._record_usage(operation, model, data.get("usage") or {})
        return data
