"""LLM operations for the job matching core.

This module organizes all prompts and provider calls, enabling:
- Versioned prompts recorded alongside each cost row
- Schema validation of every model response before use
- Centralized prompt management

Each operation module exports:
- PROMPT_VERSION: String version to track prompt changes
- The operation function that uses OpenRouterResource (or a compatible mock)
"""

from jobsync_matching.llm.operations import (
    CLASSIFY_PROMPT_VERSION,
    EMBED_PROMPT_VERSION,
    INSIGHTS_PROMPT_VERSION,
    REROUTE_PROMPT_VERSION,
    CanonicalChoice,
    classify_canonical,
    embed_text,
    generate_ranking_insights,
    generate_reroute_reason,
)

__all__ = [
    # Canonical-key classification
    "CLASSIFY_PROMPT_VERSION",
    "CanonicalChoice",
    "classify_canonical",
    # Embeddings
    "EMBED_PROMPT_VERSION",
    "embed_text",
    # Ranking insights
    "INSIGHTS_PROMPT_VERSION",
    "generate_ranking_insights",
    # Re-routing reasons
    "REROUTE_PROMPT_VERSION",
    "generate_reroute_reason",
]
