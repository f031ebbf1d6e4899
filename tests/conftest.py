"""Shared fixtures and provider fakes for the matching tests."""

import asyncio
from typing import Any

import pytest

from jobsync_matching.taxonomy.loader import load_taxonomies


@pytest.fixture(scope="session")
def taxonomies():
    """The dictionaries shipped with the package."""
    return load_taxonomies()


class VectorEmbedder:
    """Embedder that returns fixed vectors per text, with a default for anything else."""

    def __init__(self, vectors: dict[str, list[float]], default: list[float]):
        self.vectors = vectors
        self.default = default
        self.inputs: list[list[str]] = []

    async def embed(self, input: str | list[str], model: str | None = None, operation: str = "embed") -> dict[str, Any]:
        texts = [input] if isinstance(input, str) else list(input)
        self.inputs.append(texts)
        return {
            "data": [
                {"index": i, "embedding": self.vectors.get(text, self.default)}
                for i, text in enumerate(texts)
            ],
            "usage": {"prompt_tokens": len(texts), "cost": 0},
        }


class FailingProvider:
    """Embedder and LLM that always raise, counting attempts."""

    def __init__(self, error: Exception | None = None):
        self.error = error or ConnectionError("provider unreachable")
        self.embed_calls = 0
        self.complete_calls = 0

    async def embed(self, input, model=None, operation="embed"):
        self.embed_calls += 1
        raise self.error

    async def complete(self, messages, model=None, operation="completion", **kwargs):
        self.complete_calls += 1
        raise self.error


class SlowProvider:
    """Embedder and LLM that never answer within a short timeout."""

    def __init__(self, delay: float = 5.0):
        self.delay = delay

    async def embed(self, input, model=None, operation="embed"):
        await asyncio.sleep(self.delay)
        return {"data": []}

    async def complete(self, messages, model=None, operation="completion", **kwargs):
        await asyncio.sleep(self.delay)
        return {"choices": []}


@pytest.fixture
def failing_provider():
    return FailingProvider()


@pytest.fixture
def slow_provider():
    return SlowProvider()
