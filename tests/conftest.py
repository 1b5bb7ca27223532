"""Shared pytest fixtures for Atsmatch tests."""

from unittest.mock import MagicMock

import httpx
import pytest
from google import genai
from google.genai import types

from atsmatch.models import (
    CandidateProfile,
    EducationEntry,
    ExperienceEntry,
    ExperienceRange,
    JobPosting,
    JobSkill,
    PersonalInfo,
    SkillEntry,
)

SAMPLE_RESUME = """Jane Doe
jane.doe@example.com
(555) 123-4567

Summary
Backend developer who enjoys building APIs.

Skills
Python, React, PostgreSQL

Education
Bachelor of Science in Computer Science
"""


@pytest.fixture()
def resume_text() -> str:
    return SAMPLE_RESUME


@pytest.fixture()
def sample_profile() -> CandidateProfile:
    return CandidateProfile(
        personal_info=PersonalInfo(name="Jane Doe", email="jane.doe@example.com", location="Austin, TX"),
        summary="Backend developer with 4 years of experience in Python services.",
        experience=[
            ExperienceEntry(
                title="Backend Engineer",
                company="Payly",
                start_date="2022-01-01",
                current=True,
                description="Owns the payments API.",
            ),
            ExperienceEntry(
                title="Software Engineer",
                company="Shopfront",
                start_date="2020-06-01",
                end_date="2021-12-31",
                description="Built the order pipeline.",
            ),
        ],
        education=[
            EducationEntry(degree="BSc Computer Science", school="UT Austin", end_date="2020-05-15"),
        ],
        skills=[
            SkillEntry(name="Python", category="Technical", level="Expert"),
            SkillEntry(name="PostgreSQL", category="Technical", level="Advanced"),
            SkillEntry(name="Docker", category="Technical", level="Intermediate"),
        ],
    )


@pytest.fixture()
def sample_job() -> JobPosting:
    return JobPosting(
        id="job-1",
        title="Senior Python Developer",
        company="FinCorp",
        location="Remote",
        description="Build and run payment services.",
        requirements="3+ years of Python, SQL databases.",
        skills=[
            JobSkill(name="Python", required=True, weight=2),
            JobSkill(name="SQL", required=True),
            JobSkill(name="Kubernetes"),
            JobSkill(name="Go"),
        ],
        experience=ExperienceRange(min=3, max=6),
    )


@pytest.fixture()
def mock_client() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def make_client():
    """Factory for Gemini client doubles whose every call answers with the given text."""

    def _make(text: str) -> MagicMock:
        client = MagicMock()
        client.models.generate_content.return_value.text = text
        return client

    return _make


@pytest.fixture()
def proxy_error_client() -> genai.Client:
    """A real Gemini client whose transport answers 200 with an HTML error page."""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>proxy error</html>"))
    return genai.Client(
        api_key="test-key",
        http_options=types.HttpOptions(client_args={"transport": transport}),
    )
