"""vibedeck CLI: study sessions, review scheduling and content scoring."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

from vibedeck.application.config import AppConfig, resolve_config
from vibedeck.application.factory import Services, build_services
from vibedeck.application.quality import score_exercise, score_solve
from vibedeck.domain.errors import VibedeckError
from vibedeck.domain.session.models import FlashcardItem, LearningItem, MCQItem

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="vibedeck: spaced-repetition review sessions for interview prep.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

session_app = typer.Typer(help="Work through the current study session.", no_args_is_help=True)
app.add_typer(session_app, name="session")

review_app = typer.Typer(help="Spaced-repetition scheduling.", no_args_is_help=True)
app.add_typer(review_app, name="review")

config_app = typer.Typer(help="Manage vibedeck configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_dir: Annotated[
        Path | None, typer.Option(help="Where review and session state is stored.")
    ] = None,
    content_dir: Annotated[
        Path | None, typer.Option(help="Directory holding <category>/problems.json.")
    ] = None,
    seed: Annotated[int | None, typer.Option(help="Seed for reproducible shuffles.")] = None,
):
    """Global settings for vibedeck."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "data_dir": data_dir,
        "content_dir": content_dir,
        "seed": seed,
        # 0 means "not given", so env or config file can still raise it
        "verbose": verbose or None,
    }
    config = ctx.obj["config"] = resolve_config(ctx.obj["overrides"])
    logging.getLogger("vibedeck").setLevel(_log_level(config.verbose))


def _log_level(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def _config(ctx: typer.Context) -> AppConfig:
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        obj["config"] = resolve_config(obj.get("overrides"))
    return obj["config"]


def _services(ctx: typer.Context) -> Services:
    return build_services(_config(ctx))


def _fail(e: VibedeckError) -> typer.Exit:
    typer.secho(str(e), fg="red", err=True)
    return typer.Exit(1)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_item(item: LearningItem | None, position: str, reveal: bool = False) -> None:
    if item is None:
        typer.secho("No items match the current filters.", fg="yellow")
        return

    typer.secho(
        f"[{position}] {item.kind.upper()} · {item.problem_title} · {item.pattern} · "
        f"{item.difficulty} · quality {item.quality.score} ({item.quality.tier})",
        fg="cyan",
    )
    if isinstance(item, FlashcardItem):
        typer.echo(item.front)
        if reveal:
            typer.echo("---")
            typer.echo(item.back)
    elif isinstance(item, MCQItem):
        typer.echo(item.question)
        for i, option in enumerate(item.options):
            typer.echo(f"  {i}. {option}")
        if reveal:
            typer.echo(f"Answer: {item.correct_index}. {item.explanation}")
    else:
        typer.echo(item.description)


def _show_current(services: Services, reveal: bool = False) -> None:
    session = services.session
    position = (
        f"{session.current_index + 1}/{len(session.queue_ids)}" if not session.is_empty else "0/0"
    )
    _render_item(session.current_item, position, reveal=reveal)


# ---------------------------------------------------------------------------
# Session commands
# ---------------------------------------------------------------------------


@session_app.command("show")
def session_show(
    ctx: typer.Context,
    reveal: Annotated[bool, typer.Option("--reveal", help="Show the answer too.")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output the session as JSON.")] = False,
):
    """Show the current item."""
    services = _services(ctx)
    if json_output:
        typer.echo(json.dumps(services.session.record.to_dict(), indent=2))
        return
    _show_current(services, reveal=reveal)


@session_app.command("next")
def session_next(ctx: typer.Context):
    """Move to the next item (wraps around)."""
    services = _services(ctx)
    services.session.advance()
    _show_current(services)


@session_app.command("back")
def session_back(ctx: typer.Context):
    """Move to the previous item (wraps around)."""
    services = _services(ctx)
    services.session.go_back()
    _show_current(services)


@session_app.command("shuffle")
def session_shuffle(ctx: typer.Context):
    """Reshuffle the queue and start from the top."""
    services = _services(ctx)
    services.session.reshuffle()
    _show_current(services)


@session_app.command("reset")
def session_reset(ctx: typer.Context):
    """Restore default filters and discard the saved session."""
    services = _services(ctx)
    services.session.reset()
    typer.secho("Session reset.", fg="green")


@session_app.command("filter")
def session_filter(
    ctx: typer.Context,
    kind: Annotated[
        list[str] | None, typer.Option("--kind", help="flashcard, mcq or solve. Repeatable.")
    ] = None,
    category: Annotated[
        list[str] | None, typer.Option("--category", help="dsa or hld. Repeatable.")
    ] = None,
    pattern: Annotated[str | None, typer.Option(help="Pattern id, or 'all'.")] = None,
    difficulty: Annotated[
        str | None, typer.Option(help="Easy, Medium, Hard, or 'all'.")
    ] = None,
    due_only: Annotated[
        bool | None, typer.Option("--due-only/--all-items", help="Only due material.")
    ] = None,
    quality: Annotated[str | None, typer.Option(help="'high' or 'all'.")] = None,
):
    """Change session filters."""
    changes: dict[str, Any] = {
        "kinds": tuple(kind) if kind else None,
        "categories": tuple(category) if category else None,
        "pattern": pattern,
        "difficulty": difficulty,
        "due_only": due_only,
        "quality": quality,
    }
    changes = {k: v for k, v in changes.items() if v is not None}

    services = _services(ctx)
    filters = services.session.update_filters(**changes)
    typer.echo(json.dumps(filters.to_dict(), indent=2))
    typer.secho(f"{len(services.session.queue_ids)} items in queue.", fg="green")


@session_app.command("grade")
def session_grade(
    ctx: typer.Context,
    quality: Annotated[int, typer.Argument(help="0=again, 1=hard, 2=good, 3=easy.")],
):
    """Grade the current flashcard and move on."""
    services = _services(ctx)
    try:
        state = services.session.review_flashcard(quality)
    except VibedeckError as e:
        raise _fail(e) from None
    typer.secho(f"Next review in {state.interval} day(s).", fg="green")
    _show_current(services)


@session_app.command("answer")
def session_answer(
    ctx: typer.Context,
    option: Annotated[int, typer.Argument(help="Index of the chosen option.")],
):
    """Answer the current multiple-choice question."""
    services = _services(ctx)
    item = services.session.current_item
    try:
        correct = services.session.answer_mcq(option)
    except VibedeckError as e:
        raise _fail(e) from None
    if correct:
        typer.secho("Correct!", fg="green")
    elif isinstance(item, MCQItem):
        typer.secho(f"Incorrect. Answer: {item.options[item.correct_index]}", fg="red")
    _show_current(services)


@session_app.command("solve")
def session_solve(
    ctx: typer.Context,
    know: Annotated[
        bool, typer.Option("--know/--need-work", help="Whether you can solve this problem.")
    ] = False,
):
    """Report how the current solve prompt went."""
    services = _services(ctx)
    try:
        status = services.session.solve_feedback(know)
    except VibedeckError as e:
        raise _fail(e) from None
    typer.secho(f"Marked {status}.", fg="green")
    _show_current(services)


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@review_app.command("due")
def review_due(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Maximum cards to list.")] = None,
):
    """List flashcards due now."""
    services = _services(ctx)
    due = services.scheduler.due_items(services.catalog.flashcards, limit=limit)
    for card in due:
        typer.echo(f"{card.card_id}\t{card.problem_title}\t{card.front}")
    typer.secho(f"{len(due)} due.", fg="green", err=True)


@review_app.command("stats")
def review_stats(ctx: typer.Context):
    """Show total reviews and the current day streak."""
    services = _services(ctx)
    stats = services.scheduler.review_stats()
    typer.echo(
        json.dumps(
            {
                "total_reviews": stats.total_reviews,
                "streak": stats.streak,
                "last_review_date": (
                    stats.last_review_date.isoformat() if stats.last_review_date else None
                ),
                "problems": services.progress.get_stats(),
            },
            indent=2,
        )
    )


@review_app.command("grade")
def review_grade(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Flashcard id.")],
    quality: Annotated[int, typer.Argument(help="0=again, 1=hard, 2=good, 3=easy.")],
):
    """Grade a flashcard directly, outside the session queue."""
    services = _services(ctx)
    state = services.scheduler.grade(card_id, quality)
    typer.echo(json.dumps(state.to_dict(), indent=2))


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _score_payload(payload: dict[str, Any]) -> dict[str, Any]:
    if "description" in payload and "question" not in payload:
        result = score_solve(payload["description"])
    else:
        question = payload.get("question", payload.get("front", ""))
        answer = payload.get("explanation", payload.get("answer", payload.get("back", "")))
        result = score_exercise(question, answer, payload.get("options"))
    return {
        "id": payload.get("id"),
        "score": result.score,
        "tier": result.tier,
        "signals": list(result.signals),
    }


@app.command()
def score(
    path: Annotated[Path, typer.Argument(help="JSON file with one item or a list of items.")],
):
    """Score the content quality of flashcards, MCQs or solve prompts."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        typer.secho(f"Could not read {path}: {e}", fg="red", err=True)
        raise typer.Exit(1) from None

    items = data if isinstance(data, list) else [data]
    results = [_score_payload(item) for item in items if isinstance(item, dict)]
    typer.echo(json.dumps(results, indent=2))


# ---------------------------------------------------------------------------
# Config & server
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Print the resolved configuration as JSON."""
    config = _config(ctx)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("vibedeck.server:app", host=host, port=port, reload=reload)
