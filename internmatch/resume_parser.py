"""Resume Parser module - Turns resume text into a normalised StructuredResume."""

import json
import logging
from collections.abc import Mapping
from typing import Any

from .errors import ErrorKind, ExtractionError, ServiceError
from .llm import GeminiService
from .models import NOT_SPECIFIED, ExperienceEntry, ExtractedText, ProjectEntry, StructuredResume

logger = logging.getLogger(__name__)

PARSER_SYSTEM_PROMPT = """You are a resume parser. Extract information and return only valid JSON.
If information is not found, use reasonable defaults: empty arrays for lists, null for optional fields, and "Not specified" for required text fields."""

RESUME_SCHEMA = {
    "name": "full name",
    "email": "email address",
    "graduation_date": "YYYY-MM format or 'Not specified'",
    "degree": "Bachelor's or Master's or PhD or 'Not specified'",
    "major": "field of study or 'Not specified'",
    "university": "university name or 'Not specified'",
    "work_authorization": "US_CITIZEN, GREEN_CARD, NEEDS_VISA, NEEDS_SPONSORSHIP or 'Not specified'",
    "gpa": "X.XX on a 4.0 scale if mentioned, otherwise null",
    "skills": ["array", "of", "skills"],
    "experience": [{"company": "...", "role": "...", "duration": "..."}],
    "projects": [{"name": "...", "description": "...", "tech": ["..."]}],
}

_SCALAR_FIELDS = ("name", "email", "graduation_date", "degree", "major", "university")
_WORK_AUTHORIZATIONS = {"US_CITIZEN", "GREEN_CARD", "NEEDS_VISA", "NEEDS_SPONSORSHIP"}


def build_parser_prompt(resume_text: str) -> str:
    return (
        "Extract this data from the resume and return as JSON:\n"
        f"{json.dumps(RESUME_SCHEMA, indent=2)}\n\n"
        "Keep skill names exactly as written on the resume.\n\n"
        f"Resume text:\n{resume_text}"
    )


def extract_resume(service: GeminiService, text: ExtractedText | str) -> StructuredResume:
    """
    Extract a structured resume from raw resume text.

    Args:
        service: Generative service used for the extraction call.
        text: Output of the text extractor, or plain text.

    Returns:
        Normalised structured resume.

    Raises:
        ExtractionError: kind EmptyInput, ServiceUnavailable, Timeout or InvalidResponse.
    """
    resume_text = text.text if isinstance(text, ExtractedText) else text
    if not resume_text or not resume_text.strip():
        raise ExtractionError(ErrorKind.EMPTY_INPUT, "Resume text is empty")

    logger.info("Parsing resume (%d characters)", len(resume_text))
    try:
        raw = service.generate_json(PARSER_SYSTEM_PROMPT, build_parser_prompt(resume_text), temperature=0.1)
    except ServiceError as exc:
        raise ExtractionError(exc.kind, f"Resume parsing failed: {exc.message}", detail=exc.detail, cause=exc) from exc

    resume = normalize_resume(raw)
    logger.info(
        "Parsed resume: %d skills, %d experience entries, %d projects",
        len(resume.skills),
        len(resume.experience),
        len(resume.projects),
    )
    return resume


def normalize_resume(raw: Mapping[str, Any] | StructuredResume) -> StructuredResume:
    """Coerce a loosely-shaped resume object into a valid StructuredResume.

    Never raises on malformed fields: missing scalars become the
    ``NOT_SPECIFIED`` sentinel and non-list collections become ``[]``.
    Applying it to its own output returns an equal record.
    """
    if isinstance(raw, StructuredResume):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        logger.warning("Resume payload is %s, not an object; using empty profile", type(raw).__name__)
        raw = {}

    fields: dict[str, Any] = {name: _text(raw.get(name)) for name in _SCALAR_FIELDS}
    fields["work_authorization"] = _work_authorization(raw.get("work_authorization"))
    fields["gpa"] = _gpa(raw.get("gpa"))
    fields["skills"] = _string_list(raw.get("skills"), "skills")
    fields["experience"] = [
        ExperienceEntry(
            company=_text(item.get("company")),
            role=_text(item.get("role")),
            duration=_text(item.get("duration")),
        )
        for item in _object_list(raw.get("experience"), "experience")
    ]
    fields["projects"] = [
        ProjectEntry(
            name=_text(item.get("name")),
            description=_text(item.get("description")),
            tech=_string_list(item.get("tech", item.get("technologies")), "projects.tech"),
        )
        for item in _object_list(raw.get("projects"), "projects")
    ]
    return StructuredResume(**fields)


def _text(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return NOT_SPECIFIED


def _string_list(value: Any, field: str) -> list[str]:
    if not isinstance(value, list):
        if value is not None:
            logger.warning("%s is %s, not a list; using []", field, type(value).__name__)
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _object_list(value: Any, field: str) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        if value is not None:
            logger.warning("%s is %s, not a list; using []", field, type(value).__name__)
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _gpa(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        gpa = float(str(value).split("/")[0].strip())
    except ValueError:
        return None
    if 0.0 <= gpa <= 4.0:
        return round(gpa, 2)
    return None


def _work_authorization(value: Any) -> str:
    if isinstance(value, str):
        candidate = value.strip().upper().replace(" ", "_")
        if candidate in _WORK_AUTHORIZATIONS:
            return candidate
    return NOT_SPECIFIED
