"""Resume Interpreter - Turns plain resume text into a structured CandidateProfile."""

import logging
import re

from google import genai
from pydantic import ValidationError

from .llm import NeedsFallback, complete_json
from .models import CandidateProfile, EducationEntry, PersonalInfo, SkillEntry

logger = logging.getLogger(__name__)

PARSER_SYSTEM_PROMPT = """You are a resume parser. Extract structured information from the resume text below.
Return ONLY a valid JSON object with the following structure:

{
  "personalInfo": {
    "name": "Full Name",
    "email": "email@example.com",
    "phone": "phone number",
    "location": "city, state/country",
    "linkedin": "linkedin profile url",
    "github": "github profile url",
    "website": "personal website url"
  },
  "summary": "Professional summary or objective",
  "experience": [
    {
      "title": "Job Title",
      "company": "Company Name",
      "location": "City, State",
      "startDate": "YYYY-MM-DD",
      "endDate": "YYYY-MM-DD or null if current",
      "current": boolean,
      "description": "Job description and achievements"
    }
  ],
  "education": [
    {
      "degree": "Degree Type",
      "school": "Institution Name",
      "location": "City, State",
      "startDate": "YYYY-MM-DD",
      "endDate": "YYYY-MM-DD",
      "gpa": "GPA if mentioned",
      "description": "Additional details"
    }
  ],
  "skills": [
    {
      "name": "Skill Name",
      "category": "Technical/Soft/Language/etc",
      "level": "Beginner/Intermediate/Advanced/Expert"
    }
  ],
  "projects": [
    {
      "name": "Project Name",
      "description": "Project description",
      "technologies": ["tech1", "tech2"],
      "url": "project url if available",
      "github": "github url if available"
    }
  ],
  "certifications": [
    {
      "name": "Certification Name",
      "issuer": "Issuing Organization",
      "issueDate": "YYYY-MM-DD",
      "credentialId": "ID if available"
    }
  ],
  "languages": [
    {
      "name": "Language Name",
      "proficiency": "Basic/Conversational/Fluent/Native"
    }
  ]
}"""

# Rule-based extraction
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"[+]?[1-9]?[\d\s\-()]{10,}")
NAME_RE = re.compile(r"^([A-Z][a-z]+ [A-Z][a-z]+)", re.MULTILINE)

SKILL_KEYWORDS = [
    "Python",
    "JavaScript",
    "Java",
    "C++",
    "C#",
    "HTML",
    "CSS",
    "PHP",
    "MySQL",
    "React",
    "Node.js",
    "Angular",
    "Vue.js",
    "AWS",
    "Docker",
    "Git",
]

DEGREE_KEYWORDS = ["Bachelor", "Master", "PhD", "Diploma", "Certificate"]


def build_prompt(resume_text: str) -> str:
    return f"{PARSER_SYSTEM_PROMPT}\n\nResume Text:\n{resume_text}"


def parse_resume_with_llm(client: genai.Client | None, resume_text: str) -> CandidateProfile | NeedsFallback:
    """Ask Gemini for the profile. Returns ``NeedsFallback`` instead of raising."""
    outcome = complete_json(client, build_prompt(resume_text))
    if isinstance(outcome, NeedsFallback):
        return outcome

    try:
        return CandidateProfile.model_validate(outcome.data)
    except ValidationError as exc:
        return NeedsFallback(reason=f"response does not match the profile schema: {exc.error_count()} errors")


def fallback_parse_resume(resume_text: str) -> CandidateProfile:
    """Extract what plain pattern matching can find. Never fails.

    Only contact details, a fixed list of technology keywords and lines that
    mention a degree are recognised; everything else is left empty.
    """
    info = PersonalInfo()

    email = EMAIL_RE.search(resume_text)
    if email:
        info.email = email.group(0)

    phone = PHONE_RE.search(resume_text)
    if phone:
        info.phone = phone.group(0).strip()

    name = NAME_RE.search(resume_text)
    if name:
        info.name = name.group(1)

    lowered = resume_text.lower()
    skills = [
        SkillEntry(name=keyword, category="Technical", level="Intermediate")
        for keyword in SKILL_KEYWORDS
        if keyword.lower() in lowered
    ]

    lines = [line.strip() for line in resume_text.split("\n") if line.strip()]
    education = [
        EducationEntry(degree=line)
        for line in lines
        for keyword in DEGREE_KEYWORDS
        if keyword in line
    ]

    return CandidateProfile(personal_info=info, skills=skills, education=education)


class ResumeInterpreter:
    """Turns resume text into a CandidateProfile, with or without Gemini.

    Pass ``client=None`` to run fully offline on the rule-based parser.
    """

    def __init__(self, client: genai.Client | None = None) -> None:
        self.client = client

    def interpret(self, resume_text: str) -> CandidateProfile:
        outcome = parse_resume_with_llm(self.client, resume_text)
        if isinstance(outcome, CandidateProfile):
            return outcome
        logger.warning("Resume parsing fell back to rule-based extraction: %s", outcome.reason)
        return fallback_parse_resume(resume_text)
