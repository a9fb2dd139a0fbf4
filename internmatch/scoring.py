"""
Deterministic match scoring.

Same inputs always produce the same score. No LLM is used here; the
skills-gap analysis is explanatory only and never feeds back into the number.
"""

import logging
import re

from .config import DEGREE_RANKS, ScoringConfig
from .models import JobListing, MatchResult, ScoreBreakdown, SkillsAnalysis, StructuredResume

logger = logging.getLogger(__name__)

DEFAULT_MIN_MATCH_SCORE = 75

_NEEDS_SPONSORSHIP = {"NEEDS_VISA", "NEEDS_SPONSORSHIP"}
_AUTHORIZED = {"US_CITIZEN", "GREEN_CARD"}
# words in a job title that say nothing about the kind of work
_GENERIC_TITLE_WORDS = {
    "intern", "internship", "summer", "fall", "spring", "winter", "co-op", "coop",
    "the", "and", "for", "with", "junior", "student", "new", "grad", "program",
}
_WORD_RE = re.compile(r"[a-z0-9+#.]+")


def canonical_skill(skill: str, config: ScoringConfig) -> str:
    key = skill.lower().strip()
    return config.skill_synonyms.get(key, key)


def _words(text: str) -> set[str]:
    return {w.strip(".") for w in _WORD_RE.findall(text.lower())} - {""}


def calculate_skills_fraction(
    required_skills: list[str],
    candidate_skills: list[str],
    config: ScoringConfig,
) -> tuple[float, list[str], list[str]]:
    """
    Fraction of the job's required skills found in the candidate's skills.

    Returns:
        (fraction in [0, 1], matched required skills, missing required skills),
        the skill lists keeping the job's original spelling and order.
    """
    candidate = {canonical_skill(s, config) for s in candidate_skills}
    matched: list[str] = []
    missing: list[str] = []
    seen: set[str] = set()
    for skill in required_skills:
        canonical = canonical_skill(skill, config)
        if not canonical or canonical in seen:
            continue
        seen.add(canonical)
        (matched if canonical in candidate else missing).append(skill)

    if not seen:
        logger.debug("No required skills specified, using neutral fraction")
        return config.neutral_skill_fraction, [], []
    return len(matched) / len(seen), matched, missing


def calculate_experience_fraction(resume: StructuredResume, job: JobListing, config: ScoringConfig) -> float:
    """Credit for prior roles, with projects standing in for missing experience."""
    title_words = _words(job.title) - _GENERIC_TITLE_WORDS
    required = {canonical_skill(s, config) for s in job.required_skills}
    # multi-word skills ("machine learning", "spring boot") and their multi-word aliases
    phrases = {s for s in required if " " in s}
    phrases.update(
        alias for alias, canonical in config.skill_synonyms.items() if canonical in required and " " in alias
    )
    phrase_patterns = [re.compile(rf"(?<![a-z0-9]){re.escape(p)}(?![a-z0-9])") for p in phrases]

    def _names_required_skill(text: str) -> bool:
        if any(canonical_skill(w, config) in required for w in _words(text)):
            return True
        lowered = " ".join(text.lower().split())
        return any(pattern.search(lowered) for pattern in phrase_patterns)

    experience_credit = 0.0
    for entry in resume.experience:
        relevant = bool(title_words & _words(entry.role)) or _names_required_skill(entry.role)
        credit = config.relevant_experience_credit if relevant else config.any_experience_credit
        experience_credit = max(experience_credit, credit)

    project_credit = 0.0
    for project in resume.projects:
        tech = {canonical_skill(t, config) for t in project.tech}
        relevant = bool(tech & required) or _names_required_skill(project.description)
        credit = config.relevant_project_credit if relevant else config.any_project_credit
        project_credit = max(project_credit, credit)

    return max(experience_credit, project_credit)


def degree_rank(degree: str, config: ScoringConfig) -> int | None:
    """Map free-text degree to a rank; None when it cannot be recognised."""
    text = degree.lower()
    best: int | None = None
    for keyword, level in config.degree_keywords.items():
        if keyword in text:
            rank = DEGREE_RANKS[level]
            best = rank if best is None else max(best, rank)
    return best


def calculate_education_fraction(
    resume: StructuredResume, job: JobListing, config: ScoringConfig
) -> tuple[float, str | None]:
    """Degree-level fit modulated by GPA."""
    note = None
    if job.degree_requirement is None:
        degree_fit = 1.0
    else:
        required_rank = DEGREE_RANKS[job.degree_requirement]
        candidate_rank = degree_rank(resume.degree, config)
        if candidate_rank is None:
            degree_fit = 0.25
            note = f"Degree not stated; the role asks for {job.degree_requirement.title()}"
        elif candidate_rank >= required_rank:
            degree_fit = 1.0
        elif candidate_rank == required_rank - 1:
            degree_fit = 0.5
            note = f"The role prefers a {job.degree_requirement.title()} degree"
        else:
            degree_fit = 0.0
            note = f"The role requires a {job.degree_requirement.title()} degree"

    if resume.gpa is None:
        gpa_factor = config.gpa_absent_factor
    else:
        gpa_factor = 0.8 + 0.2 * (resume.gpa / 4.0)
    return degree_fit * gpa_factor, note


def calculate_eligibility_fraction(resume: StructuredResume, job: JobListing) -> tuple[float, list[str]]:
    """Half graduation-year alignment, half work-authorization compatibility."""
    notes: list[str] = []

    grad_year = resume.graduation_year
    if job.required_grad_year is None:
        grad_fit = 1.0
    elif grad_year is None:
        grad_fit = 0.5
        notes.append(f"Graduation year not stated; the role targets the class of {job.required_grad_year}")
    elif grad_year == job.required_grad_year:
        grad_fit = 1.0
    else:
        grad_fit = 0.0
        notes.append(f"The role targets the class of {job.required_grad_year}, not {grad_year}")

    auth = resume.work_authorization
    if job.sponsorship_available is True:
        auth_fit = 1.0
    elif job.sponsorship_available is False:
        if auth in _AUTHORIZED:
            auth_fit = 1.0
        elif auth in _NEEDS_SPONSORSHIP:
            auth_fit = 0.0
            notes.append("The employer does not offer visa sponsorship")
        else:
            auth_fit = 0.5
    else:
        auth_fit = 0.5 if auth in _NEEDS_SPONSORSHIP else 1.0

    return 0.5 * grad_fit + 0.5 * auth_fit, notes


def score_components(
    resume: StructuredResume,
    job: JobListing,
    config: ScoringConfig | None = None,
) -> ScoreBreakdown:
    """Compute the per-component points and the clamped integer total."""
    config = config or ScoringConfig()
    weights = config.weights

    candidate_skills = list(resume.skills)
    for project in resume.projects:
        candidate_skills.extend(project.tech)

    skills_fraction, matched, missing = calculate_skills_fraction(job.required_skills, candidate_skills, config)
    experience_fraction = calculate_experience_fraction(resume, job, config)
    education_fraction, education_note = calculate_education_fraction(resume, job, config)
    eligibility_fraction, notes = calculate_eligibility_fraction(resume, job)
    if education_note:
        notes.insert(0, education_note)

    skills_points = weights["skills"] * _unit(skills_fraction)
    experience_points = weights["experience"] * _unit(experience_fraction)
    education_points = weights["education"] * _unit(education_fraction)
    eligibility_points = weights["eligibility"] * _unit(eligibility_fraction)

    total = round(skills_points + experience_points + education_points + eligibility_points)
    total = max(0, min(100, total))

    logger.debug(
        "Score for %s: skills=%.1f experience=%.1f education=%.1f eligibility=%.1f total=%d",
        job.key,
        skills_points,
        experience_points,
        education_points,
        eligibility_points,
        total,
    )
    return ScoreBreakdown(
        skills=round(skills_points, 2),
        experience=round(experience_points, 2),
        education=round(education_points, 2),
        eligibility=round(eligibility_points, 2),
        matching_skills=matched,
        missing_skills=missing,
        notes=notes,
        total=total,
    )


def score(resume: StructuredResume, job: JobListing, config: ScoringConfig | None = None) -> int:
    """Deterministic 0-100 match score."""
    return score_components(resume, job, config).total


def _unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def build_suggestions(breakdown: ScoreBreakdown, analysis: SkillsAnalysis | None = None) -> str:
    """Human-readable advice for one match."""
    parts: list[str] = []
    if analysis is not None:
        parts.append(analysis.overall_fit)
        if analysis.improvement_suggestions:
            parts.append(f"Top suggestion: {analysis.improvement_suggestions[0].suggestion}")
    if breakdown.missing_skills:
        parts.append(f"Missing required skills: {', '.join(breakdown.missing_skills)}.")
    parts.extend(f"{note}." for note in breakdown.notes)
    if not parts:
        parts.append("Strong match on every scored criterion.")
    return " ".join(parts)


def build_match_result(
    resume_id: str,
    job: JobListing,
    breakdown: ScoreBreakdown,
    analysis: SkillsAnalysis | None = None,
) -> MatchResult:
    return MatchResult(
        resume_id=resume_id,
        job_id=job.key,
        score=breakdown.total,
        matching_skills=breakdown.matching_skills,
        suggestions=build_suggestions(breakdown, analysis),
        breakdown=breakdown,
    )


def score_and_rank(
    resume: StructuredResume,
    jobs: list[JobListing],
    config: ScoringConfig | None = None,
) -> list[tuple[JobListing, ScoreBreakdown]]:
    """
    Score every job and order them best first.

    Jobs with equal scores keep their input order: the original index is an
    explicit secondary sort key.
    """
    config = config or ScoringConfig()
    scored = [(index, job, score_components(resume, job, config)) for index, job in enumerate(jobs)]
    scored.sort(key=lambda item: (-item[2].total, item[0]))
    if scored:
        logger.info("Ranked %d jobs for %s; top score %d", len(scored), resume.name, scored[0][2].total)
    return [(job, breakdown) for _, job, breakdown in scored]


def rank_jobs(
    resume: StructuredResume,
    jobs: list[JobListing],
    config: ScoringConfig | None = None,
    resume_id: str = "",
) -> list[MatchResult]:
    """Ranked match results without any LLM analysis."""
    return [build_match_result(resume_id, job, breakdown) for job, breakdown in score_and_rank(resume, jobs, config)]


def filter_matches(results: list[MatchResult], min_score: int = DEFAULT_MIN_MATCH_SCORE) -> list[MatchResult]:
    """Keep results at or above ``min_score``, preserving order."""
    return [r for r in results if r.score >= min_score]
