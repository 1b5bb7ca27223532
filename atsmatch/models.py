"""Pydantic models for Atsmatch data structures."""

import math
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def _coerce_named(items: Any) -> Any:
    """Accept ``["Python", ...]`` wherever ``[{"name": "Python"}, ...]`` is expected."""
    if isinstance(items, list):
        return [{"name": item} if isinstance(item, str) else item for item in items]
    return items


def _round_half_up(value: Any) -> Any:
    if isinstance(value, float) and math.isfinite(value):
        return math.floor(value + 0.5)
    return value


def _as_text(value: Any) -> Any:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return value


Score = Annotated[int, BeforeValidator(_round_half_up), Field(ge=0, le=100)]


class Record(BaseModel):
    """Base for every record exchanged with the job portal.

    Wire names are camelCase, explicit nulls fall back to the field default and
    unknown keys from the model's response are kept as-is.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ---------------------------------------------------------------------------
# Candidate profile
# ---------------------------------------------------------------------------


class PersonalInfo(Record):
    """Contact details; every field is optional."""

    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    github: str = ""
    website: str = ""


class ExperienceEntry(Record):
    """A single work-experience entry. ``end_date`` is ignored when ``current`` is set."""

    title: str = Field(default="", description="Job title held")
    company: str = Field(default="", description="Employer / organisation name")
    location: str = ""
    start_date: str = Field(default="", description="Start date, e.g. '2020-03-01'")
    end_date: str | None = Field(default=None, description="End date, or null if this is the current role")
    current: bool = False
    description: str = ""


class EducationEntry(Record):
    """A single education entry."""

    degree: str = Field(default="", description="Degree name, e.g. 'BSc Computer Science'")
    school: str = Field(default="", description="University or school name")
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    gpa: Annotated[str, BeforeValidator(_as_text)] = ""
    description: str = ""


class SkillEntry(Record):
    """A skill with its category and level (Beginner/Intermediate/Advanced/Expert)."""

    name: str
    category: str = ""
    level: str = ""


class ProjectEntry(Record):
    name: str = ""
    description: str = ""
    technologies: list[str] = Field(default_factory=list)
    url: str = ""
    github: str = ""


class CertificationEntry(Record):
    name: str = ""
    issuer: str = ""
    issue_date: str = ""
    credential_id: str = ""


class LanguageEntry(Record):
    name: str = ""
    proficiency: str = Field(default="", description="Basic/Conversational/Fluent/Native")


class CandidateProfile(Record):
    """Structured summary of a candidate's resume.

    Every top-level field is optional and defaults to an empty value, so
    consumers never see a missing key. Skills are not de-duplicated.
    """

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    summary: str = ""
    experience: list[ExperienceEntry] = Field(default_factory=list, description="Most recent first")
    education: list[EducationEntry] = Field(default_factory=list)
    skills: Annotated[list[SkillEntry], BeforeValidator(_coerce_named)] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    certifications: list[CertificationEntry] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Job posting
# ---------------------------------------------------------------------------


class JobSkill(Record):
    """A skill requested by a job posting."""

    name: str
    required: bool = False
    weight: float = Field(default=1, ge=0)


class ExperienceRange(Record):
    """Requested years of experience."""

    min: float | None = None
    max: float | None = None


class JobPosting(Record):
    """An employer's job listing, as supplied by the portal."""

    title: str
    description: str
    requirements: str
    skills: Annotated[list[JobSkill], BeforeValidator(_coerce_named)] = Field(default_factory=list)
    experience: ExperienceRange = Field(default_factory=ExperienceRange)
    id: str = ""
    company: str = ""
    location: str = ""


# ---------------------------------------------------------------------------
# Match result
# ---------------------------------------------------------------------------


class SkillsMatch(Record):
    score: Score = 0
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    details: str = ""


class ExperienceMatch(Record):
    score: Score = 0
    # echoed back by the model, sometimes as text ("3+")
    required_years: int | float | str = 0
    candidate_years: int | float | str = 0
    details: str = ""


class EducationMatch(Record):
    score: Score = 0
    details: str = ""


class MatchResult(Record):
    """ATS compatibility of one job posting against one candidate profile.

    ``matched_skills`` and ``missing_skills`` are best effort: the rule-based
    scorer leaves them empty.
    """

    overall_score: Score = Field(default=0, description="Weighted combination of the sub-scores")
    skills_match: SkillsMatch = Field(default_factory=SkillsMatch)
    experience_match: ExperienceMatch = Field(default_factory=ExperienceMatch)
    education_match: EducationMatch = Field(default_factory=EducationMatch)
    recommended_actions: list[str] = Field(default_factory=list)
    match_summary: str = ""


class ScoredJob(Record):
    """A job posting annotated with the viewer's ATS score."""

    job: JobPosting
    ats_score: int = 0
    match_details: MatchResult | None = None


class ApplicationMatchDetails(Record):
    """The part of a match result stored on an application at apply time."""

    skills_match: SkillsMatch = Field(default_factory=SkillsMatch)
    experience_match: ExperienceMatch = Field(default_factory=ExperienceMatch)
    education_match: EducationMatch = Field(default_factory=EducationMatch)
    overall_match: str = ""
