"""Dagster jobs for the job matching core.

OPS JOBS:
- rank_applicants_job: Rank the applicants in a JSON request file against its job
  and write the results next to it (bulk re-ranking after a weight change)
- taxonomy_audit_job: Load both dictionaries and fail when an alias normalizes to
  more than one canonical key

USAGE:
1. Export {"job": {...}, "applicants": [...]} for a posting from the portal
2. Launchpad -> rank_applicants_job with ops.rank_applicants_op.config.input_path
"""

import asyncio
import json
from pathlib import Path

from dagster import (
    Backoff,
    Config,
    Failure,
    Jitter,
    MetadataValue,
    OpExecutionContext,
    RetryPolicy,
    job,
    op,
)
from pydantic import ValidationError

from jobsync_matching.llm.operations.classify_canonical import PROMPT_VERSION
from jobsync_matching.ranking.engine import RankingInputError
from jobsync_matching.ranking.statistics import compute_statistics
from jobsync_matching.taxonomy.loader import TaxonomyLoadError
from jobsync_matching.utils.payloads import load_ranking_request, results_to_records


class RankApplicantsConfig(Config):
    input_path: str
    output_path: str = ""


@op(
    required_resource_keys={"openrouter", "taxonomy", "ranking_config"},
    tags={"dagster/concurrency_key": "openrouter_api"},
    retry_policy=RetryPolicy(
        max_retries=2, delay=10, backoff=Backoff.EXPONENTIAL, jitter=Jitter.PLUS_MINUS
    ),
    description="Normalize and rank every applicant in a request file",
)
def rank_applicants_op(context: OpExecutionContext, config: RankApplicantsConfig) -> list[dict]:
    """Run the ranking engine on one job and its applicants.

    Input and dictionary errors fail the step without a retry.
    """
    openrouter = context.resources.openrouter
    try:
        job_record, applicants = load_ranking_request(config.input_path)
        taxonomies = context.resources.taxonomy.get_taxonomies()
        _, ranker = context.resources.ranking_config.build_engines(
            taxonomies, embedder=openrouter, llm=openrouter
        )
    except (OSError, json.JSONDecodeError, ValidationError, TaxonomyLoadError) as e:
        raise Failure(
            description=f"Cannot rank {config.input_path}: {e}",
            allow_retries=False,
        ) from e

    openrouter.set_context(
        run_id=context.run_id,
        job_id=job_record.job_id or "",
        prompt_version=PROMPT_VERSION,
    )
    openrouter.reset_run_costs()

    try:
        results = asyncio.run(ranker.rank(job_record, applicants))
    except RankingInputError as e:
        raise Failure(
            description=f"Ranking request rejected: {e}",
            metadata={"input_path": MetadataValue.path(config.input_path)},
            allow_retries=False,
        ) from e
    records = results_to_records(results)

    output_path = Path(config.output_path or Path(config.input_path).with_suffix(".ranked.json"))
    output_path.write_text(json.dumps(records, indent=2), encoding="utf-8")

    stats = compute_statistics(r.match_score for r in results)
    context.log.info(
        f"Ranked {len(results)} applicants for {job_record.job_id or job_record.title!r}: "
        f"mean {stats.mean}, max {stats.max}"
    )
    context.add_output_metadata(
        {
            "output_path": MetadataValue.path(str(output_path)),
            "weights": ranker.weights.model_dump(),
            **stats.to_metadata(),
            **openrouter.get_run_costs().to_metadata(),
        }
    )
    return records


@op(
    required_resource_keys={"taxonomy"},
    description="Fail when any alias maps to more than one canonical key",
)
def audit_taxonomy_aliases(context: OpExecutionContext) -> dict:
    """Report entry counts and alias collisions for both dictionaries."""
    taxonomies = context.resources.taxonomy.get_taxonomies()
    report = {}
    collisions = {}
    for taxonomy in (taxonomies.degrees, taxonomies.eligibilities):
        domain = taxonomy.domain.value
        report[f"{domain}/entries"] = len(taxonomy)
        report[f"{domain}/aliases"] = taxonomy.alias_count
        report[f"{domain}/collisions"] = len(taxonomy.collisions)
        for alias, keys in taxonomy.collisions.items():
            collisions[f"{domain}:{alias}"] = keys

    context.log.info(f"Taxonomy audit: {report}")
    if collisions:
        raise Failure(
            description=f"{len(collisions)} aliases are claimed by more than one key",
            metadata={"collisions": MetadataValue.json(collisions)},
            allow_retries=False,
        )
    context.add_output_metadata(report)
    return report


@job(description="Rank the applicants of one job from an exported request file")
def rank_applicants_job():
    rank_applicants_op()


@job(description="Check degree and eligibility dictionaries for duplicate aliases")
def taxonomy_audit_job():
    audit_taxonomy_aliases()
