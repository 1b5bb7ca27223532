"""Command-line front end for Atsmatch."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .llm import create_client
from .match_scorer import MatchScorer, rank_jobs, scoring_view
from .models import CandidateProfile, JobPosting, MatchResult, ScoredJob
from .resume_interpreter import ResumeInterpreter

console = Console()


def display_profile(profile: CandidateProfile) -> None:
    """Display the extracted candidate profile."""
    info = profile.personal_info
    parts = []

    if info.name:
        parts.append(f"[bold]{info.name}[/bold]")
    contact = " | ".join(v for v in (info.email, info.phone, info.location) if v)
    if contact:
        parts.append(f"[dim]{contact}[/dim]")
    if profile.summary:
        parts.append("")
        parts.append(f"[italic]{profile.summary}[/italic]")

    parts.append("")
    parts.append(f"[bold]Skills:[/bold] {', '.join(s.name for s in profile.skills) or '-'}")
    for entry in profile.experience:
        end = "present" if entry.current else (entry.end_date or "?")
        parts.append(f"[bold]Experience:[/bold] {entry.title} @ {entry.company} ({entry.start_date or '?'} - {end})")
    for entry in profile.education:
        school = f", {entry.school}" if entry.school else ""
        parts.append(f"[bold]Education:[/bold] {entry.degree}{school}")
    if profile.certifications:
        parts.append(f"[bold]Certifications:[/bold] {', '.join(c.name for c in profile.certifications)}")
    if profile.languages:
        parts.append(f"[bold]Languages:[/bold] {', '.join(lang.name for lang in profile.languages)}")

    console.print(Panel("\n".join(parts), title="Candidate Profile", border_style="blue"))
    console.print()


def _score_style(score: int) -> str:
    if score >= 80:
        return f"[bold green]{score}[/bold green]"
    if score >= 50:
        return f"[yellow]{score}[/yellow]"
    return f"[red]{score}[/red]"


def display_match(job: JobPosting, result: MatchResult) -> None:
    """Display a single match result."""
    table = Table(title=f"ATS Score for {job.title}", show_header=True, header_style="bold magenta")
    table.add_column("Area", style="white")
    table.add_column("Score", justify="center", width=7)
    table.add_column("Details", style="dim", max_width=60)

    table.add_row("Overall", _score_style(result.overall_score), result.match_summary)
    table.add_row("Skills", _score_style(result.skills_match.score), result.skills_match.details)
    table.add_row("Experience", _score_style(result.experience_match.score), result.experience_match.details)
    table.add_row("Education", _score_style(result.education_match.score), result.education_match.details)
    console.print(table)

    if result.skills_match.matched_skills:
        console.print(f"   Matched: {', '.join(result.skills_match.matched_skills)}")
    if result.skills_match.missing_skills:
        console.print(f"   Missing: {', '.join(result.skills_match.missing_skills)}")
    for action in result.recommended_actions:
        console.print(f"   • {action}")
    console.print()


def display_ranking(ranked: list[ScoredJob], min_score: int) -> None:
    """Display ranked jobs in a table."""
    shown = [sj for sj in ranked if sj.ats_score >= min_score]
    if not shown:
        console.print(f"[yellow]No jobs found with score >= {min_score}.[/yellow]")
        return

    table = Table(title=f"Job Matches (Score >= {min_score})", show_header=True, header_style="bold magenta")
    table.add_column("Score", justify="center", width=7)
    table.add_column("Title", style="white", max_width=35)
    table.add_column("Company", style="green", max_width=20)
    table.add_column("Location", style="yellow", max_width=15)
    table.add_column("Summary", style="dim", max_width=50)

    for sj in shown:
        summary = sj.match_details.match_summary if sj.match_details else ""
        table.add_row(
            _score_style(sj.ats_score),
            sj.job.title[:35],
            sj.job.company[:20],
            sj.job.location[:15],
            summary[:50] + "..." if len(summary) > 50 else summary,
        )

    console.print(table)
    console.print()


def _dump(model) -> None:
    console.print_json(model.model_dump_json(by_alias=True))


def _read_json(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_profile(path: Path, interpreter: ResumeInterpreter) -> CandidateProfile:
    """Load a profile JSON file, or interpret a plain-text resume."""
    if path.suffix.lower() == ".json":
        return CandidateProfile.model_validate(_read_json(path))
    if not path.exists():
        raise FileNotFoundError(f"Resume file not found: {path}")
    return interpreter.interpret(path.read_text(encoding="utf-8"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atsmatch",
        description="Atsmatch: resume parsing and ATS scoring for job portals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  atsmatch parse resume.txt
  atsmatch score job.json resume.txt
  atsmatch score job.json profile.json --json
  atsmatch rank jobs.json resume.txt --min-score 60
  atsmatch rank jobs.json resume.txt --offline
        """,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--offline",
        action="store_true",
        help="Skip Gemini and use the rule-based parser and scorer",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", parents=[common], help="Extract a structured profile from a plain-text resume")
    p_parse.add_argument("resume", type=Path, help="Plain-text resume")
    p_parse.add_argument("--json", action="store_true", help="Print the profile as JSON")

    p_score = sub.add_parser("score", parents=[common], help="Score one job posting against a resume or profile")
    p_score.add_argument("job", type=Path, help="Job posting JSON file")
    p_score.add_argument("resume", type=Path, help="Plain-text resume or profile JSON file")
    p_score.add_argument("--json", action="store_true", help="Print the match result as JSON")

    p_rank = sub.add_parser("rank", parents=[common], help="Rank a list of job postings for a resume or profile")
    p_rank.add_argument("jobs", type=Path, help="JSON file holding a list of job postings")
    p_rank.add_argument("resume", type=Path, help="Plain-text resume or profile JSON file")
    p_rank.add_argument(
        "--min-score", "-s",
        type=int,
        default=0,
        help="Minimum ATS score to display (default: 0)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the Atsmatch CLI."""
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    args = build_parser().parse_args(argv)

    client = None if args.offline else create_client()
    interpreter = ResumeInterpreter(client)
    scorer = MatchScorer(client)

    try:
        if args.command == "parse":
            profile = load_profile(args.resume, interpreter)
            if args.json:
                _dump(profile)
            else:
                display_profile(profile)

        elif args.command == "score":
            job = JobPosting.model_validate(_read_json(args.job))
            profile = load_profile(args.resume, interpreter)
            result = scorer.score(job, scoring_view(profile))
            if args.json:
                _dump(result)
            else:
                display_match(job, result)

        elif args.command == "rank":
            data = _read_json(args.jobs)
            if not isinstance(data, list):
                raise ValueError(f"Expected a JSON list of job postings in {args.jobs}")
            jobs = [JobPosting.model_validate(item) for item in data]
            profile = load_profile(args.resume, interpreter)
            with console.status(f"Scoring {len(jobs)} jobs..."):
                ranked = rank_jobs(scorer, profile, jobs)
            display_ranking(ranked, args.min_score)

        return 0

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1
    except ValueError as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        return 130


def cli():
    """CLI entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
