#!/usr/bin/env python3
"""Normalize a single degree or eligibility string and print every tier's outcome.

Usage:
    python scripts/normalize_value.py degree "BSIT"
    python scripts/normalize_value.py degree "BS Office Admin or Public Administration"
    python scripts/normalize_value.py eligibility "CS Prof" --offline

Without --offline the embedding and generative tiers call OpenRouter
(OPENROUTER_API_KEY must be set).
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
load_dotenv()

from jobsync_matching.models.enums import TaxonomyDomainEnum  # noqa: E402
from jobsync_matching.resources.openrouter import OpenRouterResource  # noqa: E402
from jobsync_matching.resources.ranking import RankingConfigResource  # noqa: E402
from jobsync_matching.resources.taxonomy import TaxonomyResource  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


async def run(raw: str, domain: TaxonomyDomainEnum, offline: bool) -> dict:
    taxonomies = TaxonomyResource().get_taxonomies()
    provider = None if offline else OpenRouterResource()
    if provider is not None:
        provider.set_context(run_id="normalize_value_script")

    normalizer, _ = RankingConfigResource().build_engines(
        taxonomies, embedder=provider, llm=provider
    )
    value = await normalizer.normalize_value(raw, domain)
    output = value.model_dump(mode="json")
    if provider is not None:
        output["llm_costs"] = provider.get_run_costs().to_metadata()
    return output


def main() -> int:
    parser = argparse.ArgumentParser(description="Normalize one degree or eligibility value")
    parser.add_argument("domain", choices=[d.value for d in TaxonomyDomainEnum])
    parser.add_argument("value", help="Raw text as typed by the applicant or HR")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Dictionary tier only; no provider calls",
    )
    args = parser.parse_args()

    output = asyncio.run(run(args.value, TaxonomyDomainEnum(args.domain), args.offline))
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
