"""Mapping utilities between route payloads and the matching records.

The web layer sends jobs and applicants as JSON with camelCase keys taken from
the database rows (``degreeRequirement``, ``totalYearsExperience`` ...). These
helpers accept either camelCase or snake_case and produce the pydantic records
the engines expect, and turn results back into plain dicts for persistence.
"""

import json
from pathlib import Path
from typing import Any

from jobsync_matching.models.matching import ApplicantProfile, JobRequirement, RankingResult

_JOB_FIELDS = {
    "jobId": "job_id",
    "id": "job_id",
    "degreeRequirement": "degree_requirement",
    "yearsOfExperience": "years_of_experience",
}

_APPLICANT_FIELDS = {
    "applicantId": "applicant_id",
    "id": "applicant_id",
    "applicantName": "applicant_name",
    "highestEducationalAttainment": "highest_educational_attainment",
    "totalYearsExperience": "total_years_experience",
    "workExperienceTitles": "work_experience_titles",
}


def parse_comma_separated(field_value: str | list[str] | None) -> list[str]:
    """Parse a comma-separated string (or pass through a list) into trimmed values.

    Examples:
        >>> parse_comma_separated("Excel, Filing, Customer Service")
        ['Excel', 'Filing', 'Customer Service']

        >>> parse_comma_separated(None)
        []
    """
    if not field_value:
        return []
    items = field_value if isinstance(field_value, list) else field_value.split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def _rename(record: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    renamed: dict[str, Any] = {}
    # Bare "id" is the row id; an explicit jobId / applicantId takes precedence
    for key, value in sorted(record.items(), key=lambda item: item[0] == "id"):
        target = mapping.get(key, key)
        if target in renamed and key in mapping:
            continue
        renamed[target] = value
    return renamed


def _eligibility_title(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("title") or item.get("eligibility_title") or item.get("eligibilityTitle") or "")
    return str(item)


def map_job(record: dict[str, Any]) -> JobRequirement:
    """Build a JobRequirement from a route/database job record."""
    data = _rename(record, _JOB_FIELDS)
    if data.get("job_id") is not None:
        data["job_id"] = str(data["job_id"])
    data["skills"] = parse_comma_separated(data.get("skills"))
    data["eligibilities"] = [
        title for title in (_eligibility_title(e) for e in data.get("eligibilities") or []) if title
    ]
    data["years_of_experience"] = float(data.get("years_of_experience") or 0)
    return JobRequirement.model_validate(data)


def map_applicant(record: dict[str, Any]) -> ApplicantProfile:
    """Build an ApplicantProfile from a route/database applicant record."""
    data = _rename(record, _APPLICANT_FIELDS)
    data["applicant_id"] = str(data.get("applicant_id") or "")
    data["skills"] = parse_comma_separated(data.get("skills"))
    data["work_experience_titles"] = parse_comma_separated(data.get("work_experience_titles"))
    data["total_years_experience"] = float(data.get("total_years_experience") or 0)
    data["highest_educational_attainment"] = data.get("highest_educational_attainment") or ""
    data["eligibilities"] = [
        title for title in (_eligibility_title(e) for e in data.get("eligibilities") or []) if title
    ]
    return ApplicantProfile.model_validate(data)


def load_ranking_request(path: str | Path) -> tuple[JobRequirement, list[ApplicantProfile]]:
    """Read ``{"job": {...}, "applicants": [...]}`` from a JSON file."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    job = map_job(payload.get("job") or {})
    applicants = [map_applicant(a) for a in payload.get("applicants") or []]
    return job, applicants


def results_to_records(results: list[RankingResult]) -> list[dict[str, Any]]:
    """Plain dicts ready to write to the applications table or a JSON file."""
    return [result.model_dump(mode="json") for result in results]
