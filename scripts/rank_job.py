#!/usr/bin/env python3
"""Rank the applicants of one job from a request file and print a score breakdown.

Usage:
    python scripts/rank_job.py request.json
    python scripts/rank_job.py request.json --offline --top 10

The request file holds {"job": {...}, "applicants": [...]} using either snake_case
or the portal's camelCase field names. Same engines as rank_applicants_job, without
Dagster.
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

from jobsync_matching.ranking.statistics import compute_statistics  # noqa: E402
from jobsync_matching.resources.openrouter import OpenRouterResource  # noqa: E402
from jobsync_matching.resources.ranking import RankingConfigResource  # noqa: E402
from jobsync_matching.resources.taxonomy import TaxonomyResource  # noqa: E402
from jobsync_matching.utils.payloads import (  # noqa: E402
    load_ranking_request,
    results_to_records,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
log = logging.getLogger("rank_job")


def print_results(results, top: int) -> None:
    print(f"\n{'Rank':>4}  {'Applicant':<20} {'Match':>6} {'Edu':>6} {'Exp':>6} {'Skill':>6} {'Elig':>6}")
    print("-" * 64)
    for r in results[:top]:
        flag = " *" if r.low_confidence_fields else ""
        print(
            f"{r.rank:>4}  {r.applicant_id:<20} {r.match_score:>6.1f} {r.education_score:>6.1f} "
            f"{r.experience_score:>6.1f} {r.skills_score:>6.1f} {r.eligibility_score:>6.1f}{flag}"
        )
    stats = compute_statistics(r.match_score for r in results)
    print(f"\n{stats.count} ranked | mean {stats.mean} | median {stats.median} | stdev {stats.std_dev}")
    print("* = normalized with low confidence")


async def run(path: str, offline: bool):
    job, applicants = load_ranking_request(path)
    provider = None if offline else OpenRouterResource()
    if provider is not None:
        provider.set_context(run_id="rank_job_script", job_id=job.job_id or "")

    taxonomies = TaxonomyResource().get_taxonomies()
    _, ranker = RankingConfigResource().build_engines(taxonomies, embedder=provider, llm=provider)
    results = await ranker.rank(job, applicants)
    if provider is not None:
        costs = provider.get_run_costs()
        log.info(f"{costs.api_calls} provider calls, ${float(costs.total_cost_usd):.6f}")
    return results


def main() -> int:
    parser = argparse.ArgumentParser(description="Rank applicants for one job")
    parser.add_argument("request", help="Path to a {job, applicants} JSON file")
    parser.add_argument("--offline", action="store_true", help="Dictionary tier only")
    parser.add_argument("--top", type=int, default=20, help="Rows to print")
    parser.add_argument("--json", action="store_true", help="Print full results as JSON")
    args = parser.parse_args()

    results = asyncio.run(run(args.request, args.offline))
    if args.json:
        print(json.dumps(results_to_records(results), indent=2))
    else:
        print_results(results, args.top)
    return 0


if __name__ == "__main__":
    sys.exit(main())
