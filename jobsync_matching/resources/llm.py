"""Mock LLM resource for development and testing.

Simulates the OpenRouter chat completions endpoint without network calls. Every
call returns the configured JSON content; by default that is an UNKNOWN
classification, so the generative tier behaves as "no match".
"""

from typing import Any

from dagster import ConfigurableResource
from pydantic import Field, PrivateAttr


class MockLLMResource(ConfigurableResource):
    """Drop-in replacement for OpenRouterResource.complete."""

    model_version: str = Field(
        default="mock-v1",
        description="Version identifier for the mock model",
    )
    response_content: str = Field(
        default='{"canonical_key": "UNKNOWN", "confidence": 0.0, "reasoning": "mock"}',
        description="Message content returned for every completion",
    )
    _calls: list[dict[str, Any]] = PrivateAttr(default_factory=list)

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def calls(self) -> list[dict[str, Any]]:
        """Recorded requests (operation, model, messages) in call order."""
        return list(self._calls)

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        operation: str = "completion",
        response_format: dict[str, str] | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Return an OpenRouter-shaped completion response."""
        self._calls.append({"operation": operation, "model": model, "messages": messages})
        return {
            "choices": [{"message": {"role": "assistant", "content": self.response_content}}],
            "model": model or self.model_version,
            "usage": {"prompt_tokens": 0, "completion_tokens": 0, "cost": 0},
        }
