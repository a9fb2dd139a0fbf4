"""End-to-end matching pipeline: PDF -> text -> structured resume -> ranked matches."""

import hashlib
import logging
import random
import time
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .config import ScoringConfig, Settings
from .cv_parser import extract_text
from .errors import AnalysisError, InternMatchError
from .llm import GeminiService
from .models import Document, ExtractedText, JobListing, MatchResult, SkillsAnalysis, StructuredResume
from .resume_parser import extract_resume
from .scoring import build_match_result, score_and_rank
from .skills_analyzer import analyze_all_jobs, analyze_skills

logger = logging.getLogger(__name__)

BASE_DELAY = 2  # seconds

T = TypeVar("T")


class PipelineResult(BaseModel):
    """Everything one pipeline run produced.

    ``jobs`` and ``matches`` are aligned and ordered best first; analyses and
    analysis errors are keyed by that position, so two listings that share a
    job id never overwrite each other's analysis.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    resume_id: str
    text: ExtractedText
    resume: StructuredResume
    jobs: list[JobListing] = Field(default_factory=list)
    matches: list[MatchResult] = Field(default_factory=list)
    analyses: dict[int, SkillsAnalysis] = Field(default_factory=dict)
    analysis_errors: dict[int, AnalysisError] = Field(default_factory=dict)


def resume_id_for(text: str) -> str:
    """Short SHA-256 digest of the resume text."""
    return hashlib.sha256(text.encode()).hexdigest()[:16]


def call_with_retries(
    fn: Callable[..., T],
    *args: Any,
    max_retries: int = 3,
    base_delay: float = BASE_DELAY,
    **kwargs: Any,
) -> T:
    """Call ``fn``, retrying only transient service failures.

    ServiceUnavailable and Timeout are retried with exponential backoff;
    every other error kind is permanent for the same input and raised at once.
    """
    for attempt in range(max_retries):
        try:
            return fn(*args, **kwargs)
        except InternMatchError as exc:
            if not exc.retryable or attempt == max_retries - 1:
                raise
            delay = base_delay * (2**attempt) + random.uniform(0, 1)  # noqa: S311
            logger.warning(
                "%s failed with %s (attempt %d/%d), retrying in %.1fs",
                getattr(fn, "__name__", "call"),
                exc.kind.value,
                attempt + 1,
                max_retries,
                delay,
            )
            time.sleep(delay)
    raise ValueError("max_retries must be at least 1")


def run_pipeline(
    document: Document,
    jobs: list[JobListing],
    service: GeminiService,
    settings: Settings | None = None,
    scoring_config: ScoringConfig | None = None,
    analyze: bool = False,
    analyze_top: int | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> PipelineResult:
    """
    Run the full matching pipeline for one uploaded resume.

    Args:
        document: Uploaded resume PDF.
        jobs: Candidate job listings.
        service: Generative service for resume extraction and analysis.
        settings: Limits, timeouts and retry budget.
        scoring_config: Weights and synonym tables for the scorer.
        analyze: Whether to run the skills-gap analysis.
        analyze_top: Only analyze the N best-scoring jobs (all when None).
        progress_callback: Optional callback(current, total) during analysis.

    Returns:
        PipelineResult with jobs and matches ranked by score, analyses keyed
        by ranked position.

    Raises:
        ExtractionError: If the document or the resume extraction fails.
    """
    settings = settings or Settings()
    scoring_config = scoring_config or ScoringConfig()

    text = extract_text(document, settings)
    resume_id = resume_id_for(text.text)
    resume = call_with_retries(extract_resume, service, text, max_retries=settings.max_retries)

    ranked = score_and_rank(resume, jobs, scoring_config)

    ranked_jobs = [job for job, _ in ranked]
    analyses: dict[int, SkillsAnalysis] = {}
    errors: dict[int, AnalysisError] = {}
    if analyze and ranked:
        to_analyze = ranked_jobs[: analyze_top if analyze_top is not None else len(ranked)]

        def _analyze_with_retries(svc: GeminiService, res: StructuredResume, job: JobListing) -> SkillsAnalysis:
            return call_with_retries(analyze_skills, svc, res, job, max_retries=settings.max_retries)

        outcomes = analyze_all_jobs(
            service,
            resume,
            to_analyze,
            progress_callback=progress_callback,
            max_workers=settings.max_concurrency,
            analyze=_analyze_with_retries,
        )
        # outcomes follow the order of to_analyze, i.e. ranked positions
        for position, (_, outcome) in enumerate(outcomes):
            if isinstance(outcome, AnalysisError):
                errors[position] = outcome
            else:
                analyses[position] = outcome

    matches = [
        build_match_result(resume_id, job, breakdown, analyses.get(position))
        for position, (job, breakdown) in enumerate(ranked)
    ]
    logger.info(
        "Pipeline finished for %s: %d matches, %d analyses, %d analysis errors",
        resume_id,
        len(matches),
        len(analyses),
        len(errors),
    )
    return PipelineResult(
        resume_id=resume_id,
        text=text,
        resume=resume,
        jobs=ranked_jobs,
        matches=matches,
        analyses=analyses,
        analysis_errors=errors,
    )
