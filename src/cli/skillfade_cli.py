"""
Skillfade CLI - track how your skills fade and check them with quick tests.

Usage:
    skillfade init                     # Create database tables
    skillfade add "Python" -p 80       # Register a skill
    skillfade skills                   # Skills with current strength
    skillfade practice <skill-id>      # Mark a skill as practiced
    skillfade quiz <skill-id>          # Take a five-question quick test
    skillfade history <skill-id>       # Completed tests for a skill
    skillfade overview                 # Retention dashboard
"""

from __future__ import annotations

import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt
from rich.table import Table

from config import Settings, get_settings
from src.db.database import create_db_engine, init_db
from src.db.sql_store import SqlAlchemyStorage
from src.retention import RetentionTracker, TrackerError
from src.retention.models import RetentionStatus

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="skillfade",
    help="📉 Skillfade - knowledge decay tracker with adaptive quick tests",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

STATUS_STYLES = {
    RetentionStatus.STRONG: "green",
    RetentionStatus.STABLE: "cyan",
    RetentionStatus.FADING: "yellow",
    RetentionStatus.CRITICAL: "red",
}

UserOption = Annotated[
    str | None, typer.Option("--user", "-u", help="User id (defaults to DEFAULT_USER_ID)")
]
JsonOption = Annotated[bool, typer.Option("--json", help="Print raw JSON")]


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)


def get_tracker() -> RetentionTracker:
    settings = get_settings()
    return RetentionTracker(SqlAlchemyStorage.from_url(settings.database_url), settings=settings)


def _user(user: str | None) -> str:
    return user or get_settings().default_user_id


def _strength_style(strength: int) -> str:
    if strength >= 70:
        return "green"
    if strength >= 60:
        return "yellow"
    return "red"


@contextmanager
def engine_errors() -> Iterator[None]:
    """Render engine errors and exit non-zero."""
    try:
        yield
    except TrackerError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(1) from e


# =============================================================================
# Skill Commands
# =============================================================================


@app.command()
def init() -> None:
    """Initialize database tables."""
    init_db(create_db_engine(get_settings().database_url))
    console.print("[green]✓[/green] Database initialized")


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Skill name")],
    category: Annotated[str | None, typer.Option("--category", "-c", help="Skill category")] = None,
    proficiency: Annotated[
        int | None, typer.Option("--proficiency", "-p", help="Initial proficiency 0-100")
    ] = None,
    user: UserOption = None,
) -> None:
    """Register a new skill."""
    with engine_errors():
        skill = get_tracker().create_skill(_user(user), name, category, proficiency)

    console.print(f"[green]✓[/green] Skill created: [bold]{skill.name}[/] ({skill.category})")
    console.print(f"  ID: {skill.id}")
    console.print(f"  Strength: {skill.current_strength}%  Half-life: {skill.half_life:g} days")


@app.command()
def skills(user: UserOption = None, as_json: JsonOption = False) -> None:
    """List skills with their current strength."""
    views = get_tracker().get_user_skills(_user(user))

    if as_json:
        console.print_json(data=[v.to_dict() for v in views])
        return
    if not views:
        console.print("[yellow]No skills yet. Add one with `skillfade add`.[/]")
        return

    table = Table(title="Skills")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Strength", justify="right")
    table.add_column("Days Since", justify="right")
    table.add_column("Half-life", justify="right")
    table.add_column("Multiplier", justify="right")

    for v in views:
        style = _strength_style(v.current_strength)
        table.add_row(
            v.id,
            v.name,
            v.category,
            f"[{style}]{v.current_strength}%[/]",
            f"{v.days_since_last_practice:.1f}",
            f"{v.half_life:.1f}",
            f"{v.adaptive_decay_multiplier:.2f}",
        )
    console.print(table)


@app.command()
def practice(
    skill_id: Annotated[str, typer.Argument(help="Skill ID")],
    user: UserOption = None,
) -> None:
    """Mark a skill as practiced today."""
    with engine_errors():
        skill = get_tracker().mark_as_practiced(skill_id, _user(user))
    console.print(f"[green]✓[/green] {skill.name} practiced, strength back to {skill.current_strength}%")


@app.command()
def delete(
    skill_id: Annotated[str, typer.Argument(help="Skill ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    user: UserOption = None,
) -> None:
    """Delete a skill and its test history."""
    if not yes and not typer.confirm(f"Delete skill {skill_id} and all of its tests?"):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    with engine_errors():
        get_tracker().delete_skill(skill_id, _user(user))
    console.print(f"[green]✓[/green] Skill {skill_id} deleted")


# =============================================================================
# Quick Test Commands
# =============================================================================


@app.command()
def quiz(
    skill_id: Annotated[str, typer.Argument(help="Skill ID")],
    user: UserOption = None,
) -> None:
    """Take a five-question quick test; results retune the decay model."""
    user_id = _user(user)
    tracker = get_tracker()

    with engine_errors():
        test = tracker.generate_test(skill_id, user_id)

    console.print(Panel(f"[bold cyan]QUICK TEST[/]\n{test.skill_name}", border_style="cyan"))

    answers: dict[str, int] = {}
    started = time.monotonic()
    for number, question in enumerate(test.questions, start=1):
        console.print(f"\n[bold]{number}. {question.text}[/]")
        for index, option in enumerate(question.options, start=1):
            console.print(f"   {index}) {option}")
        choice = IntPrompt.ask(
            "Your answer",
            choices=[str(i) for i in range(1, len(question.options) + 1)],
            show_choices=False,
            console=console,
        )
        answers[question.id] = choice - 1
    total_time = time.monotonic() - started

    with engine_errors():
        outcome = tracker.submit_test(test.id, user_id, answers, total_time)

    r = outcome.results
    console.print(
        Panel(
            f"Score: [bold]{r.score}/{r.total_questions}[/] ({r.accuracy}%)\n"
            f"Time: {r.total_time:.1f}s ({r.average_time_per_question:.1f}s per question)\n"
            f"Confidence: {r.confidence.value}\n"
            f"Performance: [bold]{r.performance.value}[/]\n\n"
            f"Half-life now {outcome.skill.half_life:.1f} days, "
            f"multiplier {outcome.skill.adaptive_decay_multiplier:.2f}",
            title="Results",
            border_style="green",
        )
    )


@app.command()
def history(
    skill_id: Annotated[str, typer.Argument(help="Skill ID")],
    user: UserOption = None,
    as_json: JsonOption = False,
) -> None:
    """Show completed tests for a skill, most recent first."""
    with engine_errors():
        tests = get_tracker().get_test_history(skill_id, _user(user))

    if as_json:
        console.print_json(data=[t.to_dict() for t in tests])
        return
    if not tests:
        console.print("[yellow]No completed tests for this skill.[/]")
        return

    table = Table(title=f"Test History - {tests[0].skill_name}")
    table.add_column("Completed", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Avg Time", justify="right")
    table.add_column("Confidence")
    for t in tests:
        table.add_row(
            t.completed_at.strftime("%Y-%m-%d %H:%M"),
            f"{t.score}/{len(t.questions)}",
            f"{t.accuracy}%",
            f"{t.average_time_per_question:.1f}s",
            t.confidence.value,
        )
    console.print(table)


# =============================================================================
# Overview
# =============================================================================


@app.command()
def overview(user: UserOption = None, as_json: JsonOption = False) -> None:
    """Retention dashboard: status per skill, stats and recent activity."""
    data = get_tracker().get_knowledge_overview(_user(user))

    if as_json:
        console.print_json(data=data.to_dict())
        return

    s = data.stats
    console.print(
        Panel(
            f"Skills: [bold]{s.total_skills}[/]   Tests: [bold]{s.total_tests}[/]   "
            f"Average strength: [bold]{s.average_strength}%[/]\n"
            f"Strong: [green]{s.skills_strong}[/]   "
            f"Needing attention: [red]{s.skills_needing_attention}[/]",
            title="Knowledge Overview",
            border_style="cyan",
        )
    )

    if data.skills:
        table = Table(title="Retention")
        table.add_column("Name", style="bold")
        table.add_column("Strength", justify="right")
        table.add_column("Status")
        table.add_column("Avg Accuracy", justify="right")
        table.add_column("Why")
        for skill in data.skills:
            style = STATUS_STYLES[skill.retention_status]
            table.add_row(
                skill.name,
                f"{skill.current_strength}%",
                f"[{style}]{skill.retention_status.value}[/]",
                f"{skill.avg_test_accuracy:.0f}%",
                skill.decay_explanation,
            )
        console.print(table)

    if data.recent_activity:
        console.print("\n[bold]Recent activity[/]")
        for t in data.recent_activity:
            console.print(
                f"  {t.completed_at:%Y-%m-%d %H:%M}  {t.skill_name}: "
                f"{t.accuracy}% ({t.confidence.value} confidence)"
            )


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """
    [bold cyan]Skillfade[/] - estimate how much each skill has decayed since
    you last practiced it, and retune the decay from quick test results.
    """
    configure_logging(get_settings(), verbose)


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
