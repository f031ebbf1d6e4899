"""Text embedding operation using OpenRouter's embeddings API.

Used for the semantic normalization tier (raw value vs canonical labels) and
for near-synonym skill matching during ranking.

Reference: https://openrouter.ai/docs/api/reference/embeddings
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from jobsync_matching.resources.openrouter import OpenRouterResource

# Version tracking for embedding changes
PROMPT_VERSION = "1.0.0"

# Default model for embeddings (cost-effective, 1536 dimensions)
DEFAULT_MODEL = "openai/text-embedding-3-small"


class EmbedTextResult:
    """Embeddings in input order plus usage stats."""

    def __init__(
        self,
        embeddings: list[list[float]],
        usage: dict[str, Any],
        model: str,
    ):
        self.embeddings = embeddings
        self.usage = usage
        self.model = model

    @property
    def input_tokens(self) -> int:
        return self.usage.get("prompt_tokens", 0)

    @property
    def cost_usd(self) -> float:
        return float(self.usage.get("cost", 0))

    @property
    def dimensions(self) -> int:
        if self.embeddings:
            return len(self.embeddings[0])
        return 0


def _extract_embeddings(response: dict[str, Any], expected: int) -> list[list[float]]:
    """Pull vectors out of the response, restoring input order by ``index``.

    Raises:
        ValueError: If the count or shape of the vectors is wrong
    """
    items = response.get("data")
    if not isinstance(items, list) or len(items) != expected:
        raise ValueError(f"Expected {expected} embeddings, got {len(items or [])}")
    ordered = sorted(items, key=lambda item: item.get("index", 0))
    embeddings = []
    for item in ordered:
        vector = item.get("embedding")
        if not isinstance(vector, list) or not vector:
            raise ValueError("Embedding response contains an empty vector")
        embeddings.append([float(x) for x in vector])
    if len({len(v) for v in embeddings}) > 1:
        raise ValueError("Embedding response mixes vector dimensions")
    return embeddings


async def embed_text(
    openrouter: "OpenRouterResource",
    texts: list[str],
    model: str | None = None,
    operation: str = "embed_text",
) -> EmbedTextResult:
    """Generate embeddings for one or more texts.

    Args:
        openrouter: OpenRouterResource (or compatible) for API calls
        texts: Texts to embed in one batch
        model: Embedding model to use (defaults to text-embedding-3-small)
        operation: Label recorded with the cost line

    Returns:
        EmbedTextResult with one vector per input text, in input order
    """
    model = model or DEFAULT_MODEL
    if not texts:
        return EmbedTextResult(embeddings=[], usage={}, model=model)

    response = await openrouter.embed(
        input=texts,
        model=model,
        operation=operation,
    )

    embeddings = _extract_embeddings(response, len(texts))
    return EmbedTextResult(embeddings=embeddings, usage=response.get("usage", {}), model=model)
