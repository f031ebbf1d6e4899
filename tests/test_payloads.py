"""Tests for mapping portal payloads onto matching records."""

import json

import pytest
from pydantic import ValidationError

from jobsync_matching.models.matching import RankingResult
from jobsync_matching.utils.payloads import (
    load_ranking_request,
    map_applicant,
    map_job,
    parse_comma_separated,
    results_to_records,
)


class TestParseCommaSeparated:
    """Tests for comma-separated field parsing."""

    def test_basic_parsing(self):
        """Test basic comma-separated parsing."""
        assert parse_comma_separated("Excel,Filing,Typing") == ["Excel", "Filing", "Typing"]

    def test_handles_whitespace(self):
        """Test that whitespace around items is trimmed."""
        assert parse_comma_separated("  Excel ,  Filing ") == ["Excel", "Filing"]

    def test_passes_lists_through(self):
        """Test that a list is cleaned but not split."""
        assert parse_comma_separated(["Excel", " ", "Data Entry, Encoding"]) == [
            "Excel",
            "Data Entry, Encoding",
        ]

    @pytest.mark.parametrize("value", [None, "", []])
    def test_empty_values(self, value):
        """Test that empty input returns an empty list."""
        assert parse_comma_separated(value) == []


class TestMapJob:
    """Tests for job record mapping."""

    def test_camel_case_record(self):
        """Test a job row as sent by the web layer."""
        job = map_job(
            {
                "id": 17,
                "title": "Administrative Aide IV",
                "degreeRequirement": "BSOA or BPA",
                "eligibilities": [{"eligibilityTitle": "CSC Subprofessional"}, "CSC Professional"],
                "skills": "Filing, MS Office",
                "yearsOfExperience": "2",
                "status": "open",
            }
        )

        assert job.job_id == "17"
        assert job.degree_requirement == "BSOA or BPA"
        assert job.eligibilities == ("CSC Subprofessional", "CSC Professional")
        assert job.skills == ("Filing", "MS Office")
        assert job.years_of_experience == 2.0
        assert not job.is_normalized

    def test_explicit_job_id_wins_over_id(self):
        """Test that jobId is kept when both id spellings are present."""
        job = map_job({"jobId": "J-1", "id": "row-5", "title": "Clerk"})
        assert job.job_id == "J-1"

    def test_missing_title_is_rejected(self):
        """Test that a job without a title fails validation."""
        with pytest.raises(ValidationError):
            map_job({"degreeRequirement": "BSIT"})


class TestMapApplicant:
    """Tests for applicant record mapping."""

    def test_camel_case_record(self):
        """Test an applicant row with PDS fields."""
        applicant = map_applicant(
            {
                "applicantId": 42,
                "applicantName": "Dela Cruz, Juan",
                "highestEducationalAttainment": "BSIT",
                "totalYearsExperience": 3.5,
                "eligibilities": [{"title": "CSC Professional"}],
                "skills": ["Networking", "Excel"],
                "workExperienceTitles": "IT Assistant, Encoder",
            }
        )

        assert applicant.applicant_id == "42"
        assert applicant.highest_educational_attainment == "BSIT"
        assert applicant.total_years_experience == 3.5
        assert [e.title for e in applicant.eligibilities] == ["CSC Professional"]
        assert applicant.eligibilities[0].normalized is None
        assert applicant.work_experience_titles == ("IT Assistant", "Encoder")

    def test_nulls_become_defaults(self):
        """Test that null PDS fields map to empty values."""
        applicant = map_applicant(
            {
                "id": "A-1",
                "highestEducationalAttainment": None,
                "totalYearsExperience": None,
                "eligibilities": None,
                "skills": None,
            }
        )

        assert applicant.highest_educational_attainment == ""
        assert applicant.total_years_experience == 0.0
        assert applicant.eligibilities == ()
        assert applicant.skills == ()

    def test_missing_id_is_rejected(self):
        """Test that an applicant without an id fails validation."""
        with pytest.raises(ValidationError):
            map_applicant({"applicantName": "No Id"})


class TestRequestFiles:
    """Tests for reading requests and writing results."""

    def test_load_ranking_request(self, tmp_path):
        """Test loading a job and its applicants from JSON."""
        path = tmp_path / "request.json"
        path.write_text(
            json.dumps(
                {
                    "job": {"id": "J-1", "title": "Nurse I", "degreeRequirement": "BSN"},
                    "applicants": [
                        {"id": "A-1", "highestEducationalAttainment": "BS Nursing"},
                        {"id": "A-2", "highestEducationalAttainment": "BS Midwifery"},
                    ],
                }
            ),
            encoding="utf-8",
        )

        job, applicants = load_ranking_request(path)

        assert job.title == "Nurse I"
        assert [a.applicant_id for a in applicants] == ["A-1", "A-2"]

    def test_results_to_records(self):
        """Test that results serialize to plain JSON-ready dicts."""
        result = RankingResult(
            applicant_id="A-1",
            rank=1,
            match_score=88.5,
            education_score=100,
            experience_score=80,
            skills_score=50,
            eligibility_score=100,
            reasoning="Candidate shows strong education match.",
            algorithm="weighted_sum_v1",
            low_confidence_fields=("education",),
        )

        records = results_to_records([result])

        assert records[0]["applicant_id"] == "A-1"
        assert records[0]["low_confidence_fields"] == ["education"]
        json.dumps(records)
