"""
Suzi - Main Entry Point

Operator CLI for the question router: ask a question, send an
administrative request, inspect routing status and roll dice.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from suzi.config.settings import Settings
from suzi.dice import parse_dice, roll_dice
from suzi.exceptions import ConfigurationError, DiceExpressionError
from suzi.llm.local_resolver import format_roll
from suzi.llm.router import QuestionRouter, build_router
from suzi.llm.types import (
    AdminAskInput,
    AdminUseCase,
    AskInput,
    AskResult,
    Intent,
    Message,
    QuestionType,
    ResponseSource,
)
from suzi.observability.logging_config import configure_logging

root_env = Path(__file__).parent / ".env"
if root_env.exists():
    load_dotenv(root_env, override=True)
else:
    load_dotenv()

app = typer.Typer(
    name="suzi",
    help="Suzi - question router for games, movies and tutorials",
)
console = Console()
logger = logging.getLogger("suzi")

_SOURCE_STYLES = {
    ResponseSource.LLM: "green",
    ResponseSource.CACHE: "cyan",
    ResponseSource.LOCAL: "magenta",
    ResponseSource.FALLBACK: "yellow",
}


def _get_router() -> QuestionRouter:
    """Load settings and build the router, with a friendly error on failure."""
    configure_logging()
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        console.print(Panel(
            f"[red]Invalid configuration:[/] {escape(str(e))}\n\n"
            f"Setting: [bold]{e.setting or 'unknown'}[/]\n\n"
            f"Fix it in your .env file and try again.",
            title="⚠ Configuration Error",
            border_style="red",
        ))
        raise typer.Exit(code=1)
    return build_router(settings)


def _print_result(result: AskResult) -> None:
    style = _SOURCE_STYLES.get(result.source, "white")
    console.print(Panel(
        escape(result.text),
        title=f"[{style}]{result.source.value}[/]",
        subtitle=(
            f"{result.provider.value} · {result.model} · "
            f"{result.intent.value} · {result.latency_ms:.0f}ms"
        ),
        border_style=style,
    ))


# =========================================================================
# Commands
# =========================================================================


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    question_type: Optional[QuestionType] = typer.Option(
        None, "--type", help="Question topic"
    ),
    intent: Optional[Intent] = typer.Option(
        None, help="Skip classification and force an intent"
    ),
    guild: Optional[str] = typer.Option(None, help="Guild id (cache scope)"),
    user: Optional[str] = typer.Option(None, help="User id (cache scope)"),
    name: Optional[str] = typer.Option(None, help="Display name used in the prompt"),
):
    """Ask a question through the router."""
    router = _get_router()
    result = asyncio.run(router.ask(AskInput(
        question=question,
        question_type=question_type,
        user_display_name=name,
        guild_id=guild,
        user_id=user,
        intent_override=intent,
    )))
    _print_result(result)


@app.command()
def admin(
    message: str = typer.Argument(..., help="Administrative request"),
    use_case: AdminUseCase = typer.Option(
        AdminUseCase.MONITOR, "--use-case", help="MONITOR (fast) or TEMPLATES (smart)"
    ),
    system: Optional[str] = typer.Option(None, help="Optional system instruction"),
):
    """Send an administrative request to the admin provider."""
    router = _get_router()
    messages = [Message.user(message)]
    if system:
        messages.insert(0, Message.system(system))
    result = asyncio.run(router.ask_admin(AdminAskInput(
        messages=messages,
        use_case=use_case,
    )))
    _print_result(result)


@app.command()
def status():
    """
    Show routing configuration for this process.

    Cache, cooldown and counter state lives in memory and is not shared
    between runs, so a fresh CLI invocation reports it empty.
    """
    router = _get_router()
    snapshot = router.get_status()
    console.print("[dim]State below covers this process only; it starts empty on every run.[/]")

    console.print(f"\n[bold]Primary provider:[/] [cyan]{snapshot.primary.value}[/]")
    console.print(
        f"[bold]Cache:[/] {snapshot.cache_size} entries, "
        f"{snapshot.cache_hits} hits, {snapshot.cache_misses} misses\n"
    )

    table = Table(title="Providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Configured", style="white")
    table.add_column("Cooldown (s)", style="yellow", justify="right")
    table.add_column("Calls today", style="green", justify="right")

    configured = {p.value for p in router.providers.configured()}
    for provider, remaining in snapshot.cooldowns.items():
        table.add_row(
            provider,
            "yes" if provider in configured else "[dim]no[/]",
            f"{remaining:.0f}" if remaining else "-",
            str(snapshot.provider_counts.get(provider, 0)),
        )
    console.print(table)

    models = Table(title="Models")
    models.add_column("Slot", style="cyan")
    models.add_column("Model", style="white")
    for slot, model in snapshot.models.items():
        models.add_row(slot, model)
    console.print(models)


@app.command()
def roll(
    expression: str = typer.Argument(..., help="Dice notation, e.g. 2d6"),
):
    """Roll dice locally."""
    try:
        count, sides = parse_dice(expression)
    except DiceExpressionError as e:
        console.print(f"[red]Invalid dice expression:[/] {escape(str(e))}")
        raise typer.Exit(code=1)
    console.print(format_roll(roll_dice(count, sides)))


if __name__ == "__main__":
    app()
