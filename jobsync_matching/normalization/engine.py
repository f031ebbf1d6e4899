"""Three-tier normalization of free-text degree and eligibility values.

Tiers run in order and stop at the first confident match:

1. Dictionary: exact lookup of the normalized string in the taxonomy alias index.
2. Embedding: cosine similarity between the raw value and every canonical label.
3. Generative: the model picks a key from a shortlist of token-similar labels.

Provider failures and timeouts in tiers 2 and 3 are logged and treated as "no
match at this tier". Nothing here raises for bad input or provider trouble; the
worst case is a fallback result with a null key.
"""

import asyncio
import logging
import math
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from jobsync_matching.llm.operations.classify_canonical import classify_canonical
from jobsync_matching.llm.operations.embed_text import embed_text
from jobsync_matching.models.enums import (
    ListModeEnum,
    NormalizationMethodEnum,
    TaxonomyDomainEnum,
)
from jobsync_matching.models.matching import (
    CanonicalEntry,
    NormalizationResult,
    NormalizedValue,
)
from jobsync_matching.taxonomy.text import (
    clean_degree_requirement,
    detect_list_mode,
    is_composite,
    is_no_requirement,
    normalize_key,
    split_list_expression,
    token_jaccard,
)

if TYPE_CHECKING:
    from jobsync_matching.taxonomy.loader import Taxonomies, Taxonomy

logger = logging.getLogger(__name__)


class NormalizationSettings(BaseModel):
    """Policy constants for the embedding and generative tiers."""

    min_input_length: int = Field(default=2, ge=1)
    embedding_accept_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    embedding_strong_threshold: float = Field(default=0.83, ge=0.0, le=1.0)
    low_confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    provider_timeout_seconds: float = Field(default=20.0, gt=0.0)
    generative_candidate_limit: int = Field(default=20, ge=1)
    embed_aliases: bool = False
    embedding_model: str | None = None
    generative_model: str | None = None


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity in [-1, 1]. Returns 0 if either vector is zero or shapes differ."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class NormalizationEngine:
    """Maps raw strings to canonical taxonomy keys.

    Args:
        taxonomies: Loaded degree and eligibility dictionaries (read-only)
        embedder: Object with an async ``embed(input, model, operation)`` method,
            e.g. OpenRouterResource or MockEmbeddingResource. None disables tier 2.
        llm: Object with an async ``complete(...)`` method. None disables tier 3.
        settings: Thresholds and timeouts
    """

    def __init__(
        self,
        taxonomies: "Taxonomies",
        embedder: Any = None,
        llm: Any = None,
        settings: NormalizationSettings | None = None,
    ):
        self.taxonomies = taxonomies
        self.embedder = embedder
        self.llm = llm
        self.settings = settings or NormalizationSettings()
        self._label_vectors: dict[TaxonomyDomainEnum, list[tuple[CanonicalEntry, list[float]]]] = {}
        self._vector_lock: asyncio.Lock | None = None
        self._vector_lock_loop: asyncio.AbstractEventLoop | None = None

    async def prepare(self) -> None:
        """Embed canonical labels for both domains ahead of a concurrent batch."""
        if self.embedder is None:
            return
        for domain in TaxonomyDomainEnum:
            await self._canonical_vectors(domain)

    async def normalize(self, raw: str, domain: TaxonomyDomainEnum) -> NormalizationResult:
        """Normalize one raw value against one taxonomy."""
        raw = raw or ""
        if len(normalize_key(raw)) < self.settings.min_input_length:
            return NormalizationResult.fallback(raw)

        taxonomy = self.taxonomies.for_domain(domain)

        entry = taxonomy.lookup(raw)
        if entry is not None:
            return NormalizationResult(
                raw=raw,
                canonical_key=entry.key,
                canonical_label=entry.canonical_label,
                confidence=1.0,
                method=NormalizationMethodEnum.DICTIONARY,
            )

        result = await self._embedding_tier(raw, domain)
        if result is not None:
            return result

        result = await self._generative_tier(raw, domain, taxonomy)
        if result is not None:
            return result

        logger.info(f"No {domain.value} match for {raw!r}")
        return NormalizationResult.fallback(raw)

    async def normalize_value(self, raw: str, domain: TaxonomyDomainEnum) -> NormalizedValue:
        """Normalize a field that may list several options ("BS IT or BS CS").

        The whole value is tried against the dictionary first; a composite value
        that misses is split and every part is normalized on its own.
        """
        raw = raw or ""
        text = clean_degree_requirement(raw) if domain == TaxonomyDomainEnum.DEGREE else raw.strip()
        if is_no_requirement(text):
            return NormalizedValue(raw=raw, canonical_text=text)

        taxonomy = self.taxonomies.for_domain(domain)
        if is_composite(text) and taxonomy.lookup(text) is None:
            parts = split_list_expression(text)
        else:
            parts = [text]

        if len(parts) > 1:
            mode = ListModeEnum.AND if detect_list_mode(text) == ListModeEnum.AND else ListModeEnum.OR
            results = await asyncio.gather(*(self.normalize(part, domain) for part in parts))
        else:
            mode = ListModeEnum.SINGLE
            results = [await self.normalize(parts[0], domain)]

        joiner = " and " if mode == ListModeEnum.AND else " or "
        canonical_text = joiner.join(r.canonical_label or r.raw for r in results)

        level = field_group = None
        primary = next((r for r in results if r.matched), None)
        if primary is not None:
            entry = taxonomy.get(primary.canonical_key)
            level = entry.level.lower() if entry.level else None
            field_group = entry.field_group

        return NormalizedValue(
            raw=raw,
            canonical_text=canonical_text,
            mode=mode,
            results=tuple(results),
            level=level,
            field_group=field_group,
        )

    def _label_lock(self) -> asyncio.Lock:
        # One lock per event loop
        loop = asyncio.get_running_loop()
        if self._vector_lock is None or self._vector_lock_loop is not loop:
            self._vector_lock = asyncio.Lock()
            self._vector_lock_loop = loop
        return self._vector_lock

    async def _canonical_vectors(
        self, domain: TaxonomyDomainEnum
    ) -> list[tuple[CanonicalEntry, list[float]]] | None:
        """Embed each entry's label (and aliases if configured) once per engine."""
        if domain in self._label_vectors:
            return self._label_vectors[domain]

        async with self._label_lock():
            if domain in self._label_vectors:
                return self._label_vectors[domain]

            taxonomy = self.taxonomies.for_domain(domain)
            owners: list[CanonicalEntry] = []
            texts: list[str] = []
            for entry in taxonomy:
                sources = [entry.canonical_label]
                if self.settings.embed_aliases:
                    sources.extend(entry.aliases)
                for text in sources:
                    owners.append(entry)
                    texts.append(text)

            try:
                result = await asyncio.wait_for(
                    embed_text(
                        self.embedder,
                        texts,
                        model=self.settings.embedding_model,
                        operation=f"embed_{domain.value}_labels",
                    ),
                    timeout=self.settings.provider_timeout_seconds,
                )
            except Exception as e:
                logger.warning(f"Could not embed {domain.value} labels: {e!r}")
                return None

            vectors = list(zip(owners, result.embeddings))
            self._label_vectors[domain] = vectors
            logger.info(f"Embedded {len(vectors)} {domain.value} labels ({result.dimensions} dims)")
            return vectors

    async def _embedding_tier(
        self, raw: str, domain: TaxonomyDomainEnum
    ) -> NormalizationResult | None:
        if self.embedder is None:
            return None

        label_vectors = await self._canonical_vectors(domain)
        if not label_vectors:
            return None

        try:
            result = await asyncio.wait_for(
                embed_text(
                    self.embedder,
                    [raw],
                    model=self.settings.embedding_model,
                    operation=f"embed_{domain.value}",
                ),
                timeout=self.settings.provider_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Embedding tier failed for {domain.value} {raw!r}: {e!r}")
            return None

        query = result.embeddings[0]
        best_entry: CanonicalEntry | None = None
        best_score = -1.0
        for entry, vector in label_vectors:
            score = cosine_similarity(query, vector)
            if score > best_score:
                best_entry, best_score = entry, score

        if best_entry is None or best_score < self.settings.embedding_accept_threshold:
            return None

        confidence = max(0.0, min(1.0, best_score))
        return NormalizationResult(
            raw=raw,
            canonical_key=best_entry.key,
            canonical_label=best_entry.canonical_label,
            confidence=round(confidence, 4),
            method=NormalizationMethodEnum.EMBEDDING,
            low_confidence=best_score < self.settings.embedding_strong_threshold,
        )

    def _shortlist(self, raw: str, taxonomy: "Taxonomy") -> list[CanonicalEntry]:
        """Entries sharing at least one word with the raw value, most similar first."""
        scored = []
        for entry in taxonomy:
            score = max(
                token_jaccard(raw, text) for text in (entry.canonical_label, *entry.aliases)
            )
            if score > 0:
                scored.append((score, entry))
        scored.sort(key=lambda pair: (-pair[0], pair[1].key))
        return [entry for _, entry in scored[: self.settings.generative_candidate_limit]]

    async def _generative_tier(
        self, raw: str, domain: TaxonomyDomainEnum, taxonomy: "Taxonomy"
    ) -> NormalizationResult | None:
        if self.llm is None:
            return None

        candidates = self._shortlist(raw, taxonomy)
        if not candidates:
            return None

        try:
            result = await asyncio.wait_for(
                classify_canonical(
                    self.llm,
                    raw,
                    domain,
                    candidates,
                    model=self.settings.generative_model,
                ),
                timeout=self.settings.provider_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Generative tier failed for {domain.value} {raw!r}: {e!r}")
            return None

        choice = result.choice
        if choice.is_unknown:
            return None

        entry = taxonomy.get(choice.canonical_key)
        if entry is None:
            logger.warning(
                f"Model returned unknown {domain.value} key {choice.canonical_key!r} for {raw!r}"
            )
            return None

        return NormalizationResult(
            raw=raw,
            canonical_key=entry.key,
            canonical_label=entry.canonical_label,
            confidence=choice.confidence,
            method=NormalizationMethodEnum.GENERATIVE,
            low_confidence=choice.confidence < self.settings.low_confidence_threshold,
        )
