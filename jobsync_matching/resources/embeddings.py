"""Mock embedding resource for development and testing.

Simulates the OpenRouter embeddings endpoint without network calls. Vectors are
seeded from a hash of the text, so the same input always yields the same vector.
"""

import hashlib
import random
from typing import Any

from dagster import ConfigurableResource
from pydantic import Field, PrivateAttr


class MockEmbeddingResource(ConfigurableResource):
    """Drop-in replacement for OpenRouterResource.embed.

    Distinct texts get unrelated random unit vectors (cosine near 0), so only
    identical texts look similar. That is enough to exercise the embedding tier
    and the skill matcher deterministically; it says nothing about real synonymy.
    """

    model_version: str = Field(
        default="mock-embedding-v1",
        description="Version identifier for the mock embedding model",
    )
    dimensions: int = Field(
        default=256,
        description="Vector dimensions",
    )
    _calls: int = PrivateAttr(default=0)

    @property
    def call_count(self) -> int:
        return self._calls

    def embed_vector(self, text: str) -> list[float]:
        """Deterministic unit vector for one text."""
        text_hash = hashlib.sha256(text.encode()).hexdigest()
        rng = random.Random(int(text_hash[:8], 16))
        vector = [rng.gauss(0, 1) for _ in range(self.dimensions)]
        magnitude = sum(x * x for x in vector) ** 0.5
        return [x / magnitude for x in vector]

    async def embed(
        self,
        input: str | list[str],
        model: str | None = None,
        operation: str = "embed",
    ) -> dict[str, Any]:
        """Return an OpenRouter-shaped embeddings response."""
        self._calls += 1
        if isinstance(input, str):
            input = [input]
        return {
            "data": [
                {"index": i, "embedding": self.embed_vector(text)} for i, text in enumerate(input)
            ],
            "model": model or self.model_version,
            "usage": {"prompt_tokens": sum(len(t.split()) for t in input), "cost": 0},
        }
