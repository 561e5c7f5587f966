"""
nclex-study CLI.

Terminal front end for spaced-repetition reviews, exam simulations and
question generation. All commands work against the configured database.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from nclex_study.adaptive import Question, SimulationService, parse_difficulty
from nclex_study.config import get_settings
from nclex_study.core.errors import NclexStudyError
from nclex_study.core.logging_setup import configure_logging

app = typer.Typer(
    help="NCLEX study companion: spaced repetition and adaptive simulations",
    no_args_is_help=True,
)
simulate_app = typer.Typer(help="Standard and computer-adaptive exam simulations", no_args_is_help=True)
app.add_typer(simulate_app, name="simulate")

console = Console()


@contextmanager
def _handle_errors():
    try:
        yield
    except NclexStudyError as e:
        hint = " (retry later)" if e.retryable else ""
        console.print(f"[red]Error ({e.code}): {escape(e.message)}{hint}[/red]")
        raise typer.Exit(1) from e


def _review_service():
    from nclex_study.db import SqlAlchemyReviewStore
    from nclex_study.scheduling import SM2Config, SM2Scheduler, SpacedRepetitionService

    settings = get_settings()
    return SpacedRepetitionService(SqlAlchemyReviewStore(), SM2Scheduler(SM2Config.from_settings(settings)))


def _simulation_service() -> SimulationService:
    from nclex_study.db import SqlAlchemyAttemptStore, SqlAlchemyQuestionStore

    return SimulationService(
        SqlAlchemyAttemptStore(),
        SqlAlchemyQuestionStore(),
        review_service=_review_service(),
        settings=get_settings(),
    )


def _print_question(question: Question) -> None:
    body = [f"[bold]{question.text}[/bold]", ""]
    body += [f"  [cyan]{o.get('value')}[/cyan]) {o.get('label')}" for o in question.options]
    console.print(
        Panel(
            "\n".join(body),
            title=f"{question.question_id} (difficulty {question.difficulty})",
            border_style="blue",
        )
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    configure_logging(level="DEBUG" if verbose else None)


# =============================================================================
# Setup
# =============================================================================


@app.command("init-db")
def init_db_command():
    """Create database tables."""
    from nclex_study.db import init_db

    with _handle_errors():
        init_db()
    console.print(f"[green]Database ready:[/green] {get_settings().database_url}")


# =============================================================================
# Spaced repetition
# =============================================================================


@app.command("answer")
def answer(
    user_id: str = typer.Argument(..., help="Learner id"),
    question_id: str = typer.Argument(..., help="Question id"),
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Whether the answer was correct"),
    quality: Optional[float] = typer.Option(None, "--quality", "-q", help="Recall quality 0-5"),
    response_ms: int = typer.Option(0, "--response-ms", help="Response time, used when --quality is omitted"),
):
    """Record a reviewed answer and show the new schedule."""
    service = _review_service()
    if quality is None:
        quality = service.scheduler.grade_from_response(
            correct, response_ms, expected_ms=get_settings().expected_response_ms
        )

    with _handle_errors():
        outcome = service.process_answer(user_id, question_id, correct, quality)

    console.print(
        f"[green]Next review:[/green] {outcome.next_review:%Y-%m-%d %H:%M} "
        f"(interval {outcome.interval}d, EF {outcome.ease_factor:.2f}, reps {outcome.repetitions})"
    )


@app.command("due")
def due(
    user_id: str = typer.Argument(..., help="Learner id"),
    limit: int = typer.Option(20, "--limit", "-l", help="Max rows to show"),
):
    """List questions due for review, earliest first."""
    with _handle_errors():
        items = _review_service().get_due_questions(user_id)

    if not items:
        console.print("[yellow]Nothing due. Come back later.[/yellow]")
        return

    table = Table(title=f"Due for {user_id} ({len(items)})")
    table.add_column("Question", style="cyan")
    table.add_column("Due", style="magenta")
    table.add_column("Interval", justify="right")
    table.add_column("EF", justify="right")
    table.add_column("Reps", justify="right")

    for state in items[:limit]:
        table.add_row(
            state.question_id,
            f"{state.next_review:%Y-%m-%d %H:%M}",
            f"{state.interval}d",
            f"{state.ease_factor:.2f}",
            str(state.repetitions),
        )
    console.print(table)


@app.command("progress")
def progress(user_id: str = typer.Argument(..., help="Learner id")):
    """Show learning progress."""
    with _handle_errors():
        stats = _review_service().get_learning_progress(user_id)

    table = Table(title=f"Learning progress: {user_id}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total cards", str(stats.total_cards))
    table.add_row("Mastered", str(stats.mastered))
    table.add_row("Learning", str(stats.learning))
    table.add_row("Needs review", str(stats.needs_review))
    table.add_row("Retention", f"{stats.retention:.1f}%")
    console.print(table)


# =============================================================================
# Simulations
# =============================================================================


@simulate_app.command("start")
def simulate_start(
    user_id: str = typer.Argument(..., help="Learner id"),
    session_type: str = typer.Option("standard", "--type", "-t", help="standard or cat"),
    difficulty: Optional[str] = typer.Option(None, "--difficulty", "-d", help="easy, medium or hard"),
    total: Optional[int] = typer.Option(None, "--total", "-n", help="Questions in the session"),
):
    """Start a simulation and print its opening question(s)."""
    with _handle_errors():
        started = _simulation_service().start_attempt(
            user_id, session_type=session_type, difficulty=difficulty, total_questions=total
        )

    attempt = started.attempt
    console.print(
        f"\n[bold cyan]Attempt {attempt.attempt_id}[/bold cyan] "
        f"({attempt.session_type.value}, {attempt.total_questions} questions, "
        f"difficulty {attempt.current_difficulty})\n"
    )
    for question in started.questions:
        _print_question(question)


@simulate_app.command("answer")
def simulate_answer(
    attempt_id: str = typer.Argument(..., help="Attempt id"),
    question_id: str = typer.Argument(..., help="Question id"),
    answer: str = typer.Argument(..., help="Chosen option value"),
    time_spent: float = typer.Option(0.0, "--time-spent", "-s", help="Seconds spent on the question"),
):
    """Answer a simulation question."""
    with _handle_errors():
        result = _simulation_service().advance_attempt(
            attempt_id, question_id, answer, time_spent=time_spent
        )

    verdict = "[green]Correct[/green]" if result.is_correct else "[red]Incorrect[/red]"
    console.print(f"{verdict}  score {result.score}%  difficulty {result.current_difficulty}")
    if result.explanation:
        console.print(f"[dim]{result.explanation}[/dim]")

    if result.completed:
        console.print(f"\n[bold green]Simulation complete.[/bold green] Mastery {result.mastery_estimate:.2f}")
    elif result.next_question is not None:
        _print_question(result.next_question)


# =============================================================================
# Content
# =============================================================================


@app.command("generate")
def generate(
    topic: str = typer.Argument(..., help="Topic to generate questions about"),
    count: int = typer.Option(5, "--count", "-c", help="Number of questions"),
    difficulty: str = typer.Option("medium", "--difficulty", "-d", help="easy, medium or hard"),
    question_type: str = typer.Option("standard", "--type", "-t", help="standard or cat"),
    category: Optional[str] = typer.Option(None, "--category", help="Question category"),
    save: bool = typer.Option(True, "--save/--no-save", help="Add questions to the question bank"),
):
    """Generate NCLEX questions with the configured LLM."""
    from nclex_study.content import LLMContentProvider, QuestionGenerator
    from nclex_study.db import SqlAlchemyQuestionStore

    settings = get_settings()
    if not settings.has_ai_configured():
        console.print(f"[yellow]No API key for {settings.ai_provider}; backup questions may be served.[/yellow]")

    with _handle_errors(), LLMContentProvider(settings) as provider:
        level = parse_difficulty(difficulty)
        generator = QuestionGenerator(provider, allow_fallback=settings.ai_allow_fallback)
        batch = generator.generate(topic, count)
        if save:
            generator.save(batch, SqlAlchemyQuestionStore(), level, question_type, category)

    if batch.degraded:
        console.print(f"[yellow]Degraded: served backup questions ({batch.reason})[/yellow]")

    table = Table(title=f"Questions: {topic}")
    table.add_column("ID", style="cyan")
    table.add_column("Question")
    table.add_column("Answer", justify="center")
    for q in batch.questions:
        table.add_row(q.id, q.question[:80], q.correctAnswer)
    console.print(table)
    if save:
        console.print(f"[green]Saved {len(batch.questions)} questions at difficulty {level}[/green]")


# =============================================================================
# Server
# =============================================================================


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the REST API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "nclex_study.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def run():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
