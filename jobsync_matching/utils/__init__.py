"""Utility functions for the job matching core."""

from jobsync_matching.utils.payloads import (
    load_ranking_request,
    map_applicant,
    map_job,
    parse_comma_separated,
    results_to_records,
)

__all__ = [
    "load_ranking_request",
    "map_applicant",
    "map_job",
    "parse_comma_separated",
    "results_to_records",
]
