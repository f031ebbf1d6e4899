"""Dagster definitions for the JobSync matching core.

This module is the entry point for Dagster. It wires together:
- Resources (OpenRouter for embeddings + completions, taxonomy dictionaries,
  ranking configuration)
- Jobs (bulk ranking from a request file, taxonomy alias audit)
"""

import os

from dagster import Definitions, EnvVar
from dotenv import load_dotenv

from jobsync_matching.jobs import rank_applicants_job, taxonomy_audit_job
from jobsync_matching.resources import (
    OpenRouterResource,
    RankingConfigResource,
    TaxonomyResource,
)

# Load environment variables from .env file (must be before resource initialization)
load_dotenv()


def get_environment() -> str:
    """Get current environment from env var."""
    return os.getenv("ENVIRONMENT", "development")


resources = {
    # OpenRouter LLM resource with cost tracking (also handles embeddings)
    "openrouter": OpenRouterResource(
        api_key=EnvVar("OPENROUTER_API_KEY"),
        default_model="openai/gpt-4o-mini",
    ),
    # Degree and eligibility dictionaries; paths default to the shipped YAML files
    "taxonomy": TaxonomyResource(),
    # Weights and thresholds, each overridable through RANKING_* / *_THRESHOLD env vars
    "ranking_config": RankingConfigResource(),
}

all_jobs = [
    rank_applicants_job,
    taxonomy_audit_job,
]

defs = Definitions(
    resources=resources,
    jobs=all_jobs,
)


def main():
    """Entry point for CLI usage."""
    print("JobSync matching Dagster project loaded successfully!")
    print(f"Environment: {get_environment()}")
    print(f"Jobs: {len(all_jobs)}")
    print("\nAvailable jobs:")
    for job in all_jobs:
        print(f"  - {job.name}")
    print("\nRun 'dagster dev' to start the development server.")


if __name__ == "__main__":
    main()
