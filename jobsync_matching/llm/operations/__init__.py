"""LLM operation modules.

Each module contains:
- PROMPT_VERSION: Bump when the prompt changes (recorded with every cost row)
- SYSTEM_PROMPT: The prompt template (embed_text has none)
- An async function that performs the operation
"""

from jobsync_matching.llm.operations.classify_canonical import (
    PROMPT_VERSION as CLASSIFY_PROMPT_VERSION,
)
from jobsync_matching.llm.operations.classify_canonical import (
    CanonicalChoice,
    classify_canonical,
)
from jobsync_matching.llm.operations.embed_text import (
    PROMPT_VERSION as EMBED_PROMPT_VERSION,
)
from jobsync_matching.llm.operations.embed_text import (
    embed_text,
)
from jobsync_matching.llm.operations.generate_insights import (
    PROMPT_VERSION as INSIGHTS_PROMPT_VERSION,
)
from jobsync_matching.llm.operations.generate_insights import (
    generate_ranking_insights,
)
from jobsync_matching.llm.operations.generate_reroute_reason import (
    PROMPT_VERSION as REROUTE_PROMPT_VERSION,
)
from jobsync_matching.llm.operations.generate_reroute_reason import (
    generate_reroute_reason,
)

__all__ = [
    "CLASSIFY_PROMPT_VERSION",
    "CanonicalChoice",
    "classify_canonical",
    "EMBED_PROMPT_VERSION",
    "embed_text",
    "INSIGHTS_PROMPT_VERSION",
    "generate_ranking_insights",
    "REROUTE_PROMPT_VERSION",
    "generate_reroute_reason",
]
