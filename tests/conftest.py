"""Shared pytest fixtures for InternMatch tests."""

from unittest.mock import MagicMock

import pytest

from internmatch.config import ScoringConfig
from internmatch.models import ExperienceEntry, JobListing, ProjectEntry, StructuredResume


@pytest.fixture()
def sample_resume() -> StructuredResume:
    return StructuredResume(
        name="Jane Doe",
        email="jane@x.edu",
        graduation_date="2026-05",
        degree="Bachelor's",
        major="Computer Science",
        university="State University",
        work_authorization="US_CITIZEN",
        gpa=3.6,
        skills=["Python", "React.js", "SQL", "Git"],
        experience=[
            ExperienceEntry(company="Acme Corp", role="Software Engineering Intern", duration="Jun 2025 - Aug 2025"),
        ],
        projects=[
            ProjectEntry(
                name="Weather Dashboard",
                description="Dashboard showing live weather data",
                tech=["React", "TypeScript", "Node.js"],
            ),
        ],
    )


@pytest.fixture()
def sample_job() -> JobListing:
    return JobListing(
        id="job-1",
        company="Globex",
        title="Software Engineer Intern",
        locations=["New York, NY", "Remote"],
        description="Build internal tools for the platform team.",
        requirements="Experience with Python and React. Familiarity with Docker is a plus.",
        required_skills=["Python", "React", "Docker"],
        required_grad_year=2026,
        degree_requirement="BACHELOR",
        sponsorship_available=False,
        apply_url="https://example.com/jobs/1",
    )


@pytest.fixture()
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture()
def mock_service() -> MagicMock:
    """Stand-in for GeminiService; set ``generate_json`` return values per test."""
    return MagicMock()
