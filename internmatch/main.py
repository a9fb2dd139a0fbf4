"""Command-line entry point for InternMatch."""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import Settings, load_scoring_config
from .errors import InternMatchError
from .llm import GeminiService
from .models import Document, JobListing, MatchResult, SkillsAnalysis, StructuredResume
from .pipeline import run_pipeline
from .scoring import DEFAULT_MIN_MATCH_SCORE, filter_matches

console = Console()


def load_jobs(path: Path) -> list[JobListing]:
    """Read a JSON array of job objects."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of jobs")
    return [JobListing(**item) for item in data]


def display_resume(resume: StructuredResume) -> None:
    parts = [
        f"[bold]{resume.name}[/bold]  [dim]{resume.email}[/dim]",
        "",
        f"[bold]Degree:[/bold] {resume.degree} ({resume.major}), {resume.university}",
        f"[bold]Graduation:[/bold] {resume.graduation_date}",
    ]
    if resume.gpa is not None:
        parts.append(f"[bold]GPA:[/bold] {resume.gpa:.2f}")
    parts.append(f"[bold]Skills:[/bold] {', '.join(resume.skills) or '-'}")
    if resume.experience:
        parts.append(f"[bold]Experience:[/bold] {'; '.join(f'{e.role} @ {e.company}' for e in resume.experience)}")
    if resume.projects:
        parts.append(f"[bold]Projects:[/bold] {', '.join(p.name for p in resume.projects)}")

    console.print(Panel("\n".join(parts), title="📋 Resume Profile", border_style="blue"))
    console.print()


def display_results(results: list[tuple[JobListing, MatchResult]], min_score: int) -> None:
    """Display the ranked matches in a table."""
    kept = {id(match) for match in filter_matches([match for _, match in results], min_score)}
    good = [(job, match) for job, match in results if id(match) in kept]
    if not good:
        console.print(f"[yellow]No jobs scored >= {min_score}. Showing the top 5 regardless of score.[/yellow]")
        good = results[:5]

    table = Table(title=f"🎯 Matches (Score >= {min_score})", show_header=True, header_style="bold magenta")
    table.add_column("Score", justify="center", style="cyan", width=7)
    table.add_column("Title", style="white", max_width=35)
    table.add_column("Company", style="green", max_width=20)
    table.add_column("Matching Skills", style="yellow", max_width=30)
    table.add_column("Suggestions", style="dim", max_width=50)

    for job, match in good:
        if match.score >= 80:
            score_str = f"[bold green]{match.score}[/bold green]"
        elif match.score >= 60:
            score_str = f"[yellow]{match.score}[/yellow]"
        else:
            score_str = f"[red]{match.score}[/red]"
        suggestions = match.suggestions if len(match.suggestions) <= 50 else match.suggestions[:50] + "..."
        table.add_row(score_str, job.title[:35], job.company[:20], ", ".join(match.matching_skills), suggestions)

    console.print(table)
    console.print()


def display_analysis(job: JobListing, analysis: SkillsAnalysis) -> None:
    lines = [f"[italic]{analysis.overall_fit}[/italic]", ""]
    if analysis.aligned_skills:
        lines.append("[bold]Aligned:[/bold] " + ", ".join(s.skill for s in analysis.aligned_skills))
    if analysis.missing_skills:
        lines.append(
            "[bold]Missing:[/bold] " + ", ".join(f"{s.skill} ({s.priority})" for s in analysis.missing_skills)
        )
    for strength in analysis.strengths_to_highlight:
        lines.append(f"  ✓ {strength.title}: {strength.impact}")
    for suggestion in analysis.improvement_suggestions:
        lines.append(f"  → [{suggestion.priority}] {suggestion.suggestion}")
    console.print(Panel("\n".join(lines), title=f"{job.title} @ {job.company}", border_style="green"))


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the InternMatch CLI."""
    parser = argparse.ArgumentParser(
        description="InternMatch: match a resume PDF against internship listings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  internmatch resume.pdf --jobs jobs.json
  internmatch resume.pdf --jobs jobs.json --min-score 60
  internmatch resume.pdf --jobs jobs.json --analyze --top 3
        """,
    )
    parser.add_argument("resume_path", type=Path, help="Path to your resume (PDF)")
    parser.add_argument("--jobs", "-j", type=Path, required=True, help="JSON file with a list of job listings")
    parser.add_argument(
        "--min-score",
        "-s",
        type=int,
        default=DEFAULT_MIN_MATCH_SCORE,
        help=f"Minimum match score to display (default: {DEFAULT_MIN_MATCH_SCORE})",
    )
    parser.add_argument("--analyze", "-a", action="store_true", help="Run the AI skills-gap analysis")
    parser.add_argument("--top", "-t", type=int, default=3, help="Number of top jobs to analyze (default: 3)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
    )

    try:
        settings = Settings.from_env()
        scoring_config = load_scoring_config(settings)
        jobs = load_jobs(args.jobs)
    except (OSError, ValueError, ValidationError) as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        return 1

    console.print()
    console.print(Panel.fit("[bold blue]InternMatch[/bold blue]\n[dim]Resume-to-internship matching[/dim]"))
    console.print()

    try:
        document = Document.from_path(args.resume_path)
        service = GeminiService.from_settings(settings)

        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as p:
            task = p.add_task("Reading resume and extracting profile with AI...", total=None)

            def _on_progress(done: int, total: int) -> None:
                p.update(task, description=f"Analyzing {done}/{total} jobs...")

            result = run_pipeline(
                document,
                jobs,
                service,
                settings=settings,
                scoring_config=scoring_config,
                analyze=args.analyze,
                analyze_top=args.top,
                progress_callback=_on_progress,
            )
            p.update(task, description="[green]✓[/green] Matching complete")
    except InternMatchError as exc:
        console.print(f"[red]{exc.kind.value}:[/red] {exc.message}")
        console.print(f"[dim]{exc.hint}[/dim]")
        return 1
    except (OSError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    display_resume(result.resume)

    for position, error in sorted(result.analysis_errors.items()):
        job = result.jobs[position]
        console.print(f"[yellow]Analysis skipped for {job.title} @ {job.company}: {error.hint}[/yellow]")

    display_results(list(zip(result.jobs, result.matches)), args.min_score)

    for position, analysis in sorted(result.analyses.items()):
        display_analysis(result.jobs[position], analysis)

    return 0


if __name__ == "__main__":
    sys.exit(main())
