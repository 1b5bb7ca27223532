"""Match Scorer module - Scores a job posting against a candidate profile."""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from google import genai
from pydantic import ValidationError

from .llm import NeedsFallback, complete_json
from .models import (
    ApplicationMatchDetails,
    CandidateProfile,
    EducationMatch,
    ExperienceMatch,
    JobPosting,
    MatchResult,
    ScoredJob,
    SkillsMatch,
)

logger = logging.getLogger(__name__)

# Job fields sent for scoring; portal identifiers stay local
JOB_PROMPT_FIELDS = {"title", "description", "requirements", "skills", "experience"}

SCORER_SYSTEM_PROMPT = """Calculate an ATS (Applicant Tracking System) score for a job candidate
based on the job requirements and the candidate profile.

Return ONLY a JSON object with the following structure:
{
  "overallScore": number between 0-100,
  "skillsMatch": {
    "score": number between 0-100,
    "matchedSkills": ["skill1", "skill2"],
    "missingSkills": ["skill3", "skill4"],
    "details": "explanation of skills matching"
  },
  "experienceMatch": {
    "score": number between 0-100,
    "requiredYears": number,
    "candidateYears": number,
    "details": "explanation of experience matching"
  },
  "educationMatch": {
    "score": number between 0-100,
    "details": "explanation of education matching"
  },
  "recommendedActions": ["action1", "action2"],
  "matchSummary": "Overall summary of the match"
}"""

# Rule-based scoring policy
SKILLS_WEIGHT = 0.5
EXPERIENCE_WEIGHT = 0.3
EDUCATION_WEIGHT = 0.2
EDUCATION_PRESENT_SCORE = 80
FALLBACK_ACTIONS = ("Complete your profile", "Add more relevant skills")


def _round(value: float) -> int:
    """Round half up (``round()`` would round 0.5 to even)."""
    return math.floor(value + 0.5)


def build_prompt(job: JobPosting, profile: CandidateProfile) -> str:
    job_json = job.model_dump_json(by_alias=True, include=JOB_PROMPT_FIELDS)
    profile_json = profile.model_dump_json(by_alias=True)
    return (
        f"{SCORER_SYSTEM_PROMPT}\n\n"
        f"Job Description:\n{job_json}\n\n"
        f"Candidate Profile:\n{profile_json}"
    )


def score_with_llm(
    client: genai.Client | None, job: JobPosting, profile: CandidateProfile
) -> MatchResult | NeedsFallback:
    """Ask Gemini for the match result. Returns ``NeedsFallback`` instead of raising."""
    outcome = complete_json(client, build_prompt(job, profile))
    if isinstance(outcome, NeedsFallback):
        return outcome

    try:
        return MatchResult.model_validate(outcome.data)
    except ValidationError as exc:
        return NeedsFallback(reason=f"response does not match the result schema: {exc.error_count()} errors")


def skills_score(job: JobPosting, profile: CandidateProfile) -> int:
    """Percentage of job skills contained in, or containing, some candidate skill (case-insensitive)."""
    if not job.skills or not profile.skills:
        return 0

    job_skills = [s.name.lower() for s in job.skills]
    candidate_skills = [s.name.lower() for s in profile.skills]
    matched = [
        skill for skill in job_skills
        if any(cand in skill or skill in cand for cand in candidate_skills)
    ]
    return _round(len(matched) / len(job_skills) * 100)


def experience_score(required_years: float, candidate_years: int) -> int:
    """Crude proxy: one listed position counts as one year."""
    if candidate_years >= required_years:
        return 100
    if candidate_years > 0:
        return _round(candidate_years / required_years * 100)
    return 0


def education_score(profile: CandidateProfile) -> int:
    return EDUCATION_PRESENT_SCORE if profile.education else 0


def weighted_overall(skills: int, experience: int, education: int) -> int:
    return _round(skills * SKILLS_WEIGHT + experience * EXPERIENCE_WEIGHT + education * EDUCATION_WEIGHT)


def fallback_score(job: JobPosting, profile: CandidateProfile) -> MatchResult:
    """Deterministic 50/30/20 scoring used when Gemini is unavailable. Never fails.

    Matched/missing skill lists are not computed here.
    """
    required_years = job.experience.min or 0
    candidate_years = len(profile.experience)

    skills = skills_score(job, profile)
    experience = experience_score(required_years, candidate_years)
    education = education_score(profile)
    overall = weighted_overall(skills, experience, education)

    return MatchResult(
        overall_score=overall,
        skills_match=SkillsMatch(score=skills, details="Basic skills matching performed"),
        experience_match=ExperienceMatch(
            score=experience,
            required_years=required_years,
            candidate_years=candidate_years,
            details="Basic experience matching performed",
        ),
        education_match=EducationMatch(score=education, details="Basic education matching performed"),
        recommended_actions=list(FALLBACK_ACTIONS),
        match_summary=f"Overall match score: {overall}%. This is a basic calculation.",
    )


class MatchScorer:
    """Scores job postings against candidate profiles, with or without Gemini.

    Pass ``client=None`` to score fully offline with the rule-based scorer.
    """

    def __init__(self, client: genai.Client | None = None) -> None:
        self.client = client

    def score(self, job: JobPosting, profile: CandidateProfile) -> MatchResult:
        outcome = score_with_llm(self.client, job, profile)
        if isinstance(outcome, MatchResult):
            return outcome
        logger.warning("ATS scoring fell back to rule-based scoring for '%s': %s", job.title, outcome.reason)
        return fallback_score(job, profile)


# ---------------------------------------------------------------------------
# Job portal helpers
# ---------------------------------------------------------------------------


def scoring_view(profile: CandidateProfile) -> CandidateProfile:
    """The part of a profile that is sent for scoring (no contact details)."""
    return CandidateProfile(
        experience=profile.experience,
        skills=profile.skills,
        education=profile.education,
        summary=profile.summary,
    )


def application_match_details(result: MatchResult) -> ApplicationMatchDetails:
    """Project a match result onto what an application stores."""
    return ApplicationMatchDetails(
        skills_match=result.skills_match,
        experience_match=result.experience_match,
        education_match=result.education_match,
        overall_match=result.match_summary,
    )


def rank_jobs(
    scorer: MatchScorer,
    profile: CandidateProfile,
    jobs: list[JobPosting],
    progress_callback=None,
    max_workers: int = 10,
) -> list[ScoredJob]:
    """
    Score every job against the profile in parallel.

    Args:
        scorer: Scorer to use for each job.
        profile: Candidate's structured profile.
        jobs: Job postings to score.
        progress_callback: Optional callback(current, total) for progress updates.
        max_workers: Number of concurrent API calls.

    Returns:
        Scored jobs, best match first. Ties keep their input order.
    """
    view = scoring_view(profile)
    scored: list[tuple[int, ScoredJob]] = []
    counter_lock = threading.Lock()
    completed_count = 0

    def _score_one(job: JobPosting) -> ScoredJob:
        nonlocal completed_count
        try:
            result = scorer.score(job, view)
            scored_job = ScoredJob(job=job, ats_score=result.overall_score, match_details=result)
        except Exception:
            logger.exception("Error calculating ATS score for job '%s'", job.id or job.title)
            scored_job = ScoredJob(job=job, ats_score=0, match_details=None)
        if progress_callback:
            with counter_lock:
                completed_count += 1
                progress_callback(completed_count, len(jobs))
        return scored_job

    if not jobs:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(_score_one, job): index for index, job in enumerate(jobs)}
        for future in as_completed(futures):
            scored.append((futures[future], future.result()))

    scored.sort(key=lambda pair: pair[0])
    ranked = [scored_job for _, scored_job in scored]
    ranked.sort(key=lambda x: x.ats_score, reverse=True)
    return ranked
