"""
medq: Command line front end for the adaptive learning engine.

Reads JSON snapshots exported from storage, runs one engine component and
prints the result as a Rich table or as JSON (--json).

Commands:
- medq levels     - List assessment levels
- medq topics     - List the topic library
- medq grade      - Map quiz performance to an FSRS grade
- medq review     - Review a card and print its next state
- medq weakness   - Rank weak topics from answer history
- medq assess     - Select questions for an assessment session
- medq profile    - Session weakness profile and remediation plan
"""
from __future__ import annotations

import json
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from medq_engine.cli.schemas import (
    AttemptIn,
    CardIn,
    QuestionIn,
    StudyTaskIn,
    load_snapshot,
    load_snapshot_list,
)
from medq_engine.config import get_settings
from medq_engine.core.errors import InputFileError
from medq_engine.core.models import Question
from medq_engine.study.assessment_catalog import (
    ASSESSMENT_LEVELS,
    TOPIC_LIBRARY,
    get_assessment_level,
)
from medq_engine.study.assessment_selector import select_assessment_questions
from medq_engine.study.card_scheduler import CardScheduler
from medq_engine.study.recommendation import build_recommendation_plan, compute_weakness_profile
from medq_engine.study.weakness_analyzer import (
    accumulate_topic_stats,
    compute_completion_stats,
    compute_overall_accuracy,
    rank_weak_topics,
)
from medq_engine.study.weakness_scoring import CourseWeaknessScore


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="medq",
    help="medq: adaptive learning engine for medical exam prep",
    no_args_is_help=True,
)
console = Console()


JSON_OPTION = typer.Option(False, "--json", help="Print machine-readable JSON")


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _fail(error: InputFileError) -> NoReturn:
    console.print(f"[bold red]Input error:[/bold red] {error}")
    raise typer.Exit(1)


def _parse_now(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        console.print(f"[bold red]Invalid --now timestamp:[/bold red] {value}")
        raise typer.Exit(2)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _question_index(path: Path) -> dict[str, Question]:
    questions = [q.to_question() for q in load_snapshot_list(path, QuestionIn)]
    return {q.id: q for q in questions}


# =============================================================================
# Catalog
# =============================================================================


@app.command()
def levels(as_json: bool = JSON_OPTION) -> None:
    """List assessment levels."""
    if as_json:
        _emit_json([level.to_dict() for level in ASSESSMENT_LEVELS])
        return

    table = Table(title="Assessment Levels")
    table.add_column("ID", style="cyan")
    table.add_column("Label")
    table.add_column("Difficulty", justify="center")
    table.add_column("Target", justify="right")
    table.add_column("Daily min", justify="right")

    for level in ASSESSMENT_LEVELS:
        table.add_row(
            level.id,
            level.label,
            f"{level.min_difficulty}-{level.max_difficulty}",
            f"{level.target_time_sec}s",
            str(level.recommended_daily_minutes),
        )

    console.print(table)


@app.command()
def topics(as_json: bool = JSON_OPTION) -> None:
    """List the topic library."""
    if as_json:
        _emit_json([{"id": t[0], "label": t[1], "description": t[2]} for t in TOPIC_LIBRARY])
        return

    table = Table(title="Topic Library")
    table.add_column("ID", style="cyan")
    table.add_column("Label")
    table.add_column("Description", style="dim")
    for topic_id, label, description in TOPIC_LIBRARY:
        table.add_row(topic_id, label, description)
    console.print(table)


# =============================================================================
# Scheduling
# =============================================================================


@app.command()
def grade(
    accuracy: float = typer.Option(..., "--accuracy", "-a", help="Fraction correct (0-1)"),
    avg_time: float = typer.Option(0.0, "--avg-time", "-t", help="Average seconds per question"),
    confidence: float = typer.Option(0.0, "--confidence", "-c", help="Average confidence 1-5 (0 = unknown)"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Map quiz performance to an FSRS grade."""
    scheduler = CardScheduler()
    result = scheduler.grade_from_performance(accuracy, avg_time, confidence)

    if as_json:
        _emit_json({"grade": int(result), "name": result.display_name})
        return

    console.print(f"Grade: [bold cyan]{int(result)}[/bold cyan] ({result.display_name})")


@app.command()
def review(
    card_file: Path = typer.Argument(..., help="JSON file with the current card"),
    grade_value: int = typer.Option(..., "--grade", "-g", min=1, max=4, help="FSRS grade 1-4"),
    elapsed_days: float = typer.Option(0.0, "--elapsed-days", "-e", help="Days since last review"),
    retention: Optional[float] = typer.Option(None, "--retention", "-r", help="Desired retention (0-1)"),
    now: Optional[str] = typer.Option(None, "--now", help="Review time (ISO 8601, default: now)"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Review a card and print its next state."""
    try:
        card = load_snapshot(card_file, CardIn).to_card()
    except InputFileError as e:
        _fail(e)

    scheduler = CardScheduler(desired_retention=retention)
    updated = scheduler.review(card, grade_value, elapsed_days, _parse_now(now))

    if as_json:
        _emit_json(updated.to_dict())
        return

    table = Table(title="Card Review")
    table.add_column("Field")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right", style="bold")
    table.add_row("State", card.state.value, updated.state.value)
    table.add_row("Stability", f"{card.stability:.2f}", f"{updated.stability:.2f}")
    table.add_row("Difficulty", f"{card.difficulty:.2f}", f"{updated.difficulty:.2f}")
    table.add_row("Reps", str(card.reps), str(updated.reps))
    table.add_row("Lapses", str(card.lapses), str(updated.lapses))
    table.add_row("Interval", f"{card.interval}d", f"{updated.interval}d")
    console.print(table)
    console.print(f"Next review: [cyan]{updated.next_review:%Y-%m-%d %H:%M}[/cyan]")


# =============================================================================
# Weakness
# =============================================================================


@app.command()
def weakness(
    attempts_file: Path = typer.Argument(..., help="JSON array of attempts"),
    questions_file: Path = typer.Argument(..., help="JSON array of questions"),
    tasks_file: Optional[Path] = typer.Option(None, "--tasks", help="JSON array of study tasks"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Number of weak topics"),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO 8601)"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Rank weak topics from answer history."""
    settings = get_settings()
    try:
        attempts = [a.to_attempt() for a in load_snapshot_list(attempts_file, AttemptIn)]
        question_index = _question_index(questions_file)
        tasks = (
            [t.to_task() for t in load_snapshot_list(tasks_file, StudyTaskIn)]
            if tasks_file
            else []
        )
    except InputFileError as e:
        _fail(e)

    stats = accumulate_topic_stats(attempts, question_index)
    ranked = rank_weak_topics(
        stats,
        _parse_now(now),
        limit=settings.weak_topics_limit if limit is None else limit,
        strategy=CourseWeaknessScore(expected_time_sec=settings.expected_time_sec),
    )
    overall = compute_overall_accuracy(attempts)
    completion = compute_completion_stats(tasks)

    if as_json:
        _emit_json({
            **overall.to_dict(),
            **completion.to_dict(),
            "weakTopics": [topic.to_dict() for topic in ranked],
        })
        return

    console.print(
        f"Answered: [bold]{overall.total_answered}[/bold]  "
        f"Correct: [bold]{overall.total_correct}[/bold]  "
        f"Accuracy: [bold]{overall.overall_accuracy * 100:.0f}%[/bold]"
    )
    if tasks:
        console.print(
            f"Study minutes: [bold]{completion.total_study_minutes}[/bold]  "
            f"Tasks done: {completion.completed_tasks}/{completion.total_tasks}"
        )

    if not ranked:
        console.print("\n[green]No topic history yet.[/green]")
        return

    table = Table(title="Weakest Topics")
    table.add_column("#", justify="right")
    table.add_column("Topic", style="cyan")
    table.add_column("Weakness", justify="right")
    table.add_column("Accuracy", justify="right")
    for rank, topic in enumerate(ranked, start=1):
        table.add_row(str(rank), topic.tag, f"{topic.weakness_score:.3f}", f"{topic.accuracy * 100:.0f}%")
    console.print(table)


# =============================================================================
# Assessment
# =============================================================================


@app.command()
def assess(
    questions_file: Path = typer.Argument(..., help="JSON array of candidate questions"),
    level: Optional[str] = typer.Option(None, "--level", "-L", help="Assessment level (e.g. MD3, resident)"),
    count: Optional[int] = typer.Option(None, "--count", "-n", help="Questions to select (5-40)"),
    focus: Optional[str] = typer.Option(None, "--focus", "-f", help="Focus topic tag"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Shuffle seed for reproducible picks"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Select questions for an assessment session."""
    settings = get_settings()
    try:
        pool = [q.to_question() for q in load_snapshot_list(questions_file, QuestionIn)]
    except InputFileError as e:
        _fail(e)

    seed = seed if seed is not None else settings.random_seed
    profile = get_assessment_level(level or settings.default_level)
    selected = select_assessment_questions(
        pool,
        profile,
        count=count if count is not None else settings.default_assessment_count,
        focus_topic_tag=focus,
        rng=random.Random(seed),
    )

    if as_json:
        _emit_json({"level": profile.id, "questionIds": [q.id for q in selected]})
        return

    table = Table(title=f"{profile.label}: {len(selected)} questions")
    table.add_column("ID", style="cyan")
    table.add_column("Diff", justify="center")
    table.add_column("Topic")
    table.add_column("Stem", style="dim", overflow="fold")
    for question in selected:
        table.add_row(
            question.id,
            str(question.difficulty),
            question.primary_tag or "-",
            question.stem[:80],
        )
    console.print(table)


@app.command()
def profile(
    responses_file: Path = typer.Argument(..., help="JSON array of session responses"),
    questions_file: Path = typer.Argument(..., help="JSON array of session questions"),
    level: Optional[str] = typer.Option(None, "--level", "-L", help="Assessment level"),
    focus: Optional[str] = typer.Option(None, "--focus", "-f", help="Focus topic tag"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Session weakness profile and remediation plan."""
    settings = get_settings()
    try:
        responses = [a.to_attempt() for a in load_snapshot_list(responses_file, AttemptIn)]
        question_index = _question_index(questions_file)
    except InputFileError as e:
        _fail(e)

    weakness_profile = compute_weakness_profile(
        responses, question_index, level or settings.default_level, focus_topic_tag=focus
    )
    plan = build_recommendation_plan(weakness_profile)

    if as_json:
        _emit_json({"profile": weakness_profile.to_dict(), "plan": plan.to_dict()})
        return

    console.print(
        Panel(
            f"Level: [bold]{weakness_profile.level}[/bold]   "
            f"Accuracy: [bold]{weakness_profile.overall_accuracy * 100:.1f}%[/bold]   "
            f"Avg time: [bold]{weakness_profile.avg_time_sec}s[/bold]   "
            f"Readiness: [bold cyan]{weakness_profile.readiness_score}/100[/bold cyan]",
            title="Session Profile",
        )
    )

    if weakness_profile.topic_breakdown:
        table = Table()
        table.add_column("Topic", style="cyan")
        table.add_column("Attempts", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Weakness", justify="right")
        table.add_column("Severity")
        for topic in weakness_profile.topic_breakdown:
            color = topic.severity.color
            table.add_row(
                topic.tag,
                str(topic.attempts),
                f"{topic.accuracy * 100:.0f}%",
                f"{topic.weakness_score:.3f}",
                f"[{color}]{topic.severity.value}[/{color}]",
            )
        console.print(table)

    console.print(f"\n[bold]{plan.summary}[/bold]")
    for action in plan.actions:
        console.print(f"\n[bold cyan]{action.title}[/bold cyan] ({action.recommended_minutes} min)")
        console.print(f"  [dim]{action.rationale}[/dim]")
        for drill in action.drills:
            console.print(f"  - {drill}")
    if plan.exam_tips:
        console.print("\n[bold]Exam tips[/bold]")
        for tip in plan.exam_tips:
            console.print(f"  - {tip}")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
