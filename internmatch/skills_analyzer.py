"""Skills Analyzer module - Compares a structured resume against a job using the LLM."""

import json
import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import ValidationError

from .errors import AnalysisError, ErrorKind, ServiceError
from .llm import GeminiService
from .models import JobListing, SkillsAnalysis, StructuredResume

logger = logging.getLogger(__name__)

MAX_ALIGNED_SKILLS = 20
MAX_MISSING_SKILLS = 15
MAX_STRENGTHS = 5
MAX_SUGGESTIONS = 10
DEFAULT_OVERALL_FIT = "Unable to determine fit based on available data."

_LIST_CAPS = {
    "alignedSkills": MAX_ALIGNED_SKILLS,
    "missingSkills": MAX_MISSING_SKILLS,
    "strengthsToHighlight": MAX_STRENGTHS,
    "improvementSuggestions": MAX_SUGGESTIONS,
}

ANALYZER_SYSTEM_PROMPT = """You are an expert career advisor specializing in resume analysis and job matching.
Provide detailed, actionable insights in valid JSON format only."""

ANALYSIS_INSTRUCTIONS = """**YOUR TASK:**
Analyze this resume against the job listing and provide a comprehensive skills analysis. Be specific, actionable, and context-aware.

**ANALYSIS REQUIREMENTS:**

1. **Aligned Skills**: Skills from the resume that match job requirements. Use semantic matching: two skills are the same if they are equivalent (e.g. "React" matches "React.js"), not only if the strings are identical. For each aligned skill give the skill name, where it appears (resume skills list, experience, projects, or education), relevance (high/medium/low) and specific evidence (e.g. "Used in Weather Dashboard project").

2. **Missing Skills**: Skills required by the job but not demonstrated on the resume. Classify priority as required, preferred or nice-to-have, and category as technical, soft or domain.

3. **Strengths to Highlight**: The 3-5 strengths most relevant to THIS role, each with a title, a description, and why it matters for the role.

4. **Improvement Suggestions**: 3-7 concrete, implementable recommendations (e.g. "Build a React project using TypeScript", NOT "Learn more frameworks"), each with a rationale, a priority (high/medium/low) and a category (skills, projects, experience, education).

5. **Overall Fit**: A 2-3 sentence summary of the candidate-role fit naming the strongest alignment and the biggest gap.

**GUIDELINES:**
- This is an internship role: value projects, coursework and potential over extensive experience.
- Understand skill synonyms and hierarchies (knowing React implies knowing JavaScript).
- Be encouraging but honest about gaps.

**OUTPUT FORMAT:**
Respond with ONLY valid JSON matching this exact structure:

{
  "alignedSkills": [{"skill": "string", "matchedFrom": "resume" | "experience" | "projects" | "education", "relevance": "high" | "medium" | "low", "evidence": "string (optional)"}],
  "missingSkills": [{"skill": "string", "priority": "required" | "preferred" | "nice-to-have", "category": "technical" | "soft" | "domain"}],
  "strengthsToHighlight": [{"title": "string", "description": "string", "impact": "string"}],
  "improvementSuggestions": [{"category": "skills" | "projects" | "experience" | "education", "priority": "high" | "medium" | "low", "suggestion": "string", "rationale": "string"}],
  "overallFit": "string (2-3 sentences)"
}"""


def validate_resume(resume: StructuredResume | Mapping[str, Any]) -> None:
    """Re-check list-shaped resume fields; the resume may not come from our parser."""
    get = resume.get if isinstance(resume, Mapping) else (lambda name: getattr(resume, name, None))
    for field in ("skills", "experience", "projects"):
        if not isinstance(get(field), list):
            raise AnalysisError(ErrorKind.INVALID_RESUME, f"Resume must contain a {field} list")


def validate_job(job: JobListing) -> None:
    if not job.company.strip() or not job.title.strip():
        raise AnalysisError(ErrorKind.INVALID_JOB, "Job listing must have company and title")
    if not job.description.strip() and not job.requirements.strip() and not job.required_skills:
        raise AnalysisError(
            ErrorKind.INVALID_JOB,
            "Job listing must have description, requirements, or required skills",
        )


def build_analysis_prompt(resume: StructuredResume, job: JobListing) -> str:
    resume_summary = {
        "name": resume.name,
        "degree": resume.degree,
        "major": resume.major,
        "graduationDate": resume.graduation_date,
        "gpa": resume.gpa,
        "skills": resume.skills,
        "experience": [entry.model_dump() for entry in resume.experience],
        "projects": [
            {"name": p.name, "description": p.description, "technologies": p.tech} for p in resume.projects
        ],
    }
    job_summary = {
        "company": job.company,
        "title": job.title,
        "location": ", ".join(job.locations),
        "description": job.description or "Not provided",
        "requirements": job.requirements or "Not provided",
        "requiredSkills": job.required_skills,
    }
    return (
        "You are analyzing how well a candidate's resume matches a specific internship position.\n\n"
        f"**RESUME DATA:**\n{json.dumps(resume_summary, indent=2)}\n\n"
        f"**JOB LISTING:**\n{json.dumps(job_summary, indent=2)}\n\n"
        f"{ANALYSIS_INSTRUCTIONS}"
    )


def normalize_analysis(raw: Any) -> SkillsAnalysis:
    """Validate the response shape, then clamp lists and fill the default fit.

    A malformed top level is rejected outright rather than partially recovered.
    """
    if not isinstance(raw, Mapping):
        raise AnalysisError(ErrorKind.INVALID_RESPONSE, "Analysis response is not an object")
    for key in _LIST_CAPS:
        if not isinstance(raw.get(key), list):
            raise AnalysisError(ErrorKind.INVALID_RESPONSE, f"Analysis response is missing the {key} list")
    if not isinstance(raw.get("overallFit"), str):
        raise AnalysisError(ErrorKind.INVALID_RESPONSE, "Analysis response is missing overallFit")

    data: dict[str, Any] = {key: raw[key][:cap] for key, cap in _LIST_CAPS.items()}
    data["overallFit"] = raw["overallFit"].strip() or DEFAULT_OVERALL_FIT
    try:
        return SkillsAnalysis.model_validate(data)
    except ValidationError as exc:
        raise AnalysisError(
            ErrorKind.INVALID_RESPONSE, "Analysis response contains malformed entries", cause=exc
        ) from exc


def analyze_skills(service: GeminiService, resume: StructuredResume, job: JobListing) -> SkillsAnalysis:
    """
    Produce a skills-gap analysis of a resume against one job.

    Args:
        service: Generative service used for the analysis call.
        resume: Structured resume.
        job: Job listing to compare against.

    Returns:
        Analysis with every list capped at its documented maximum.

    Raises:
        AnalysisError: kind InvalidResume, InvalidJob, ServiceUnavailable,
            Timeout or InvalidResponse.
    """
    validate_resume(resume)
    validate_job(job)

    logger.info("Analyzing %s against %s at %s", resume.name, job.title, job.company)
    try:
        raw = service.generate_json(ANALYZER_SYSTEM_PROMPT, build_analysis_prompt(resume, job), temperature=0.2)
    except ServiceError as exc:
        raise AnalysisError(exc.kind, f"Skills analysis failed: {exc.message}", detail=exc.detail, cause=exc) from exc

    analysis = normalize_analysis(raw)
    logger.debug(
        "Analysis for %s: %d aligned, %d missing, %d strengths, %d suggestions",
        job.key,
        len(analysis.aligned_skills),
        len(analysis.missing_skills),
        len(analysis.strengths_to_highlight),
        len(analysis.improvement_suggestions),
    )
    return analysis


def analyze_all_jobs(
    service: GeminiService,
    resume: StructuredResume,
    jobs: list[JobListing],
    progress_callback: Callable[[int, int], None] | None = None,
    max_workers: int = 5,
    analyze: Callable[[GeminiService, StructuredResume, JobListing], SkillsAnalysis] | None = None,
) -> list[tuple[JobListing, SkillsAnalysis | AnalysisError]]:
    """
    Analyze several jobs in parallel with a bounded worker pool.

    Args:
        service: Generative service instance.
        resume: Structured resume.
        jobs: Job listings to analyze.
        progress_callback: Optional callback(current, total) for progress updates.
        max_workers: Upper bound on concurrent analysis calls.
        analyze: Per-job function; defaults to ``analyze_skills`` (the pipeline
            passes a retrying wrapper).

    Returns:
        (job, analysis or error) pairs in the order of ``jobs``.
    """
    analyze = analyze or analyze_skills
    counter_lock = threading.Lock()
    completed_count = 0

    def _analyze_one(job: JobListing) -> SkillsAnalysis | AnalysisError:
        nonlocal completed_count
        try:
            result: SkillsAnalysis | AnalysisError = analyze(service, resume, job)
        except AnalysisError as exc:
            logger.warning("Analysis failed for %s (%s): %s", job.key, exc.kind.value, exc.message)
            result = exc
        if progress_callback:
            with counter_lock:
                completed_count += 1
                progress_callback(completed_count, len(jobs))
        return result

    if not jobs:
        return []

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(jobs)))) as executor:
        results = list(executor.map(_analyze_one, jobs))

    return list(zip(jobs, results))
