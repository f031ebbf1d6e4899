"""Dagster resources for the job matching core."""

from jobsync_matching.resources.embeddings import MockEmbeddingResource
from jobsync_matching.resources.llm import MockLLMResource
from jobsync_matching.resources.openrouter import OpenRouterResource
from jobsync_matching.resources.ranking import RankingConfigResource
from jobsync_matching.resources.taxonomy import TaxonomyResource

__all__ = [
    "MockEmbeddingResource",
    "MockLLMResource",
    "OpenRouterResource",
    "RankingConfigResource",
    "TaxonomyResource",
]
