"""Pydantic models for InternMatch data structures."""

import hashlib
import mimetypes
import re
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

NOT_SPECIFIED = "Not specified"

WorkAuthorization = Literal["US_CITIZEN", "GREEN_CARD", "NEEDS_VISA", "NEEDS_SPONSORSHIP"]
DegreeRequirement = Literal["BACHELOR", "MASTER", "PHD"]

_YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")
# spellings the model uses for the hyphenated analysis labels
_LABEL_ALIASES = {"nice to have": "nice-to-have", "nice_to_have": "nice-to-have", "nicetohave": "nice-to-have"}


class Document(BaseModel):
    """An uploaded binary document awaiting text extraction."""

    content: bytes = Field(repr=False)
    media_type: str
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str | Path) -> "Document":
        path = Path(path)
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            content=path.read_bytes(),
            media_type=media_type or "application/octet-stream",
            filename=path.name,
        )


class ExtractedText(BaseModel):
    """Validated plain-text rendering of a document."""

    text: str
    source_size: int = Field(description="Byte length of the source document")
    page_count: int | None = Field(default=None, description="Number of pages, if known")


class ExperienceEntry(BaseModel):
    """A single role from the resume's experience section."""

    model_config = ConfigDict(frozen=True)

    company: str = NOT_SPECIFIED
    role: str = NOT_SPECIFIED
    duration: str = NOT_SPECIFIED


class ProjectEntry(BaseModel):
    """A single project from the resume."""

    model_config = ConfigDict(frozen=True)

    name: str = NOT_SPECIFIED
    description: str = NOT_SPECIFIED
    tech: list[str] = Field(default_factory=list, description="Technologies used in the project")


class StructuredResume(BaseModel):
    """Normalised candidate profile extracted from resume text.

    Scalar text fields never go missing: absent values are the
    ``NOT_SPECIFIED`` sentinel. ``gpa`` uses ``None`` as its absent value.
    """

    model_config = ConfigDict(frozen=True)

    name: str = NOT_SPECIFIED
    email: str = NOT_SPECIFIED
    graduation_date: str = Field(default=NOT_SPECIFIED, description="YYYY-MM, or the sentinel")
    degree: str = Field(default=NOT_SPECIFIED, description="Highest degree, e.g. \"Bachelor's\"")
    major: str = NOT_SPECIFIED
    university: str = NOT_SPECIFIED
    work_authorization: WorkAuthorization | Literal["Not specified"] = NOT_SPECIFIED
    gpa: float | None = Field(default=None, ge=0.0, le=4.0)
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)

    @property
    def graduation_year(self) -> int | None:
        match = _YEAR_RE.search(self.graduation_date)
        return int(match.group()) if match else None


class JobListing(BaseModel):
    """An internship listing supplied by an upstream job source."""

    id: str = ""
    company: str
    title: str
    locations: list[str] = Field(min_length=1)
    description: str = ""
    requirements: str = ""
    required_skills: list[str] = Field(default_factory=list)
    required_grad_year: int | None = None
    degree_requirement: DegreeRequirement | None = None
    sponsorship_available: bool | None = None
    apply_url: str = ""
    source: str = ""

    @property
    def key(self) -> str:
        """Stable identity: the explicit id, or a digest of the listing's content.

        Postings that share company, title and locations but ask for
        different things get different keys.
        """
        if self.id:
            return self.id
        raw = "\x1f".join(
            [
                self.company,
                self.title,
                ",".join(self.locations),
                self.description,
                self.requirements,
                ",".join(self.required_skills),
            ]
        )
        return hashlib.sha256(raw.encode()).hexdigest()[:16]


# ---------------------------------------------------------------------------
# Skills-gap analysis (camelCase on the wire, matching the prompt contract)
# ---------------------------------------------------------------------------


def _enum_label(value: object) -> object:
    """Fold model-written labels onto the lower-case vocabulary ("Nice to have" -> "nice-to-have")."""
    if not isinstance(value, str):
        return value
    label = value.strip().lower()
    return _LABEL_ALIASES.get(label, label)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AlignedSkill(_CamelModel):
    skill: str
    matched_from: Literal["resume", "experience", "projects", "education"]
    relevance: Literal["high", "medium", "low"]
    evidence: str | None = None

    @field_validator("matched_from", "relevance", mode="before")
    @classmethod
    def fold_labels(cls, value: object) -> object:
        return _enum_label(value)


class MissingSkill(_CamelModel):
    skill: str
    priority: Literal["required", "preferred", "nice-to-have"]
    category: Literal["technical", "soft", "domain"]

    @field_validator("priority", "category", mode="before")
    @classmethod
    def fold_labels(cls, value: object) -> object:
        return _enum_label(value)


class Strength(_CamelModel):
    title: str
    description: str
    impact: str


class Suggestion(_CamelModel):
    category: Literal["skills", "projects", "experience", "education"]
    priority: Literal["high", "medium", "low"]
    suggestion: str
    rationale: str

    @field_validator("category", "priority", mode="before")
    @classmethod
    def fold_labels(cls, value: object) -> object:
        return _enum_label(value)


class SkillsAnalysis(_CamelModel):
    """Qualitative comparison between one resume and one job."""

    aligned_skills: list[AlignedSkill] = Field(default_factory=list, max_length=20)
    missing_skills: list[MissingSkill] = Field(default_factory=list, max_length=15)
    strengths_to_highlight: list[Strength] = Field(default_factory=list, max_length=5)
    improvement_suggestions: list[Suggestion] = Field(default_factory=list, max_length=10)
    overall_fit: str


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class MatchStatus(str, Enum):
    NEW = "NEW"
    VIEWED = "VIEWED"
    APPLIED = "APPLIED"
    DISMISSED = "DISMISSED"


class ScoreBreakdown(BaseModel):
    """Points earned per scoring component; each lies within its weight."""

    model_config = ConfigDict(frozen=True)

    skills: float = Field(ge=0)
    experience: float = Field(ge=0)
    education: float = Field(ge=0)
    eligibility: float = Field(ge=0)
    matching_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list, description="Eligibility and education remarks")
    total: int = Field(ge=0, le=100)


class MatchResult(BaseModel):
    """Outcome of evaluating one resume against one job.

    Only ``status`` may change after construction.
    """

    model_config = ConfigDict(validate_assignment=True)

    resume_id: str = Field(frozen=True)
    job_id: str = Field(frozen=True)
    score: int = Field(ge=0, le=100, frozen=True)
    matching_skills: list[str] = Field(default_factory=list, frozen=True)
    suggestions: str = Field(default="", frozen=True)
    status: MatchStatus = MatchStatus.NEW
    breakdown: ScoreBreakdown | None = Field(default=None, frozen=True)
