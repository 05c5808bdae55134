"""
PrepDeck CLI - timed interview practice in the terminal.

Usage:
    prepdeck run mcq                    # 10 multiple-choice questions, 30 minutes
    prepdeck run coding -n 3 -d 2700    # 3 coding problems, 45 minutes
    prepdeck run interview --learning   # Mock interview with tips shown
    prepdeck history --kind mcq         # Past results, newest first
    prepdeck export SESSION_ID -f csv   # Export one result
"""

from __future__ import annotations

import asyncio
import sys
import threading
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from prepdeck.bank import FallbackGenerator, HttpItemBank, ItemFilter, StaticItemBank
from prepdeck.bank.provider import ItemBankProvider
from prepdeck.config import Settings, get_settings
from prepdeck.controller import SessionController
from prepdeck.engine.errors import PrepDeckError
from prepdeck.engine.models import (
    CodeSubmission,
    Difficulty,
    InterviewRating,
    SessionConfig,
    SessionKind,
    SessionStatus,
)
from prepdeck.history import JsonHistoryStore, summary_to_csv, summary_to_json
from prepdeck.history.export import export_filename

from .views import render_history, render_progress, render_summary

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="prepdeck",
    help="Timed interview practice: quizzes, coding tests and mock interviews",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

COMMAND_HELP = (
    "[dim]a=answer (or option number)  n=next  p=previous  g N=go to  "
    "s=pause/resume  h=hint  f=finish  q=quit[/dim]"
)

LANGUAGES_BY_SUFFIX = {
    ".py": "python",
    ".js": "javascript",
    ".ts": "typescript",
    ".java": "java",
    ".cpp": "cpp",
    ".cc": "cpp",
}


def _build_provider(settings: Settings, kind: SessionKind, bank: Path | None) -> ItemBankProvider:
    if bank is not None:
        return StaticItemBank.from_file(bank, kind)
    if settings.bank_url:
        return HttpItemBank(
            settings.bank_url,
            api_key=settings.bank_api_key,
            timeout_seconds=settings.bank_timeout_seconds,
            retry_attempts=settings.bank_retry_attempts,
        )
    # No bank configured: every item comes from the fallback generator
    return StaticItemBank()


# =============================================================================
# Interactive Session
# =============================================================================


def _settle(future: asyncio.Future, result, error: BaseException | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


async def _ask(prompt_cls, *args, **kwargs):
    """
    Prompt in a daemon thread so the timer keeps ticking on the loop.

    The thread is not part of the loop's executor, so Ctrl-C does not wait
    for a pending ``input()`` to return before the CLI can exit.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def worker() -> None:
        try:
            result = prompt_cls.ask(*args, **kwargs)
        except BaseException as e:
            error: BaseException | None = e
            result = None
        else:
            error = None
        if not loop.is_closed():
            loop.call_soon_threadsafe(_settle, future, result, error)

    threading.Thread(target=worker, name="prepdeck-prompt", daemon=True).start()
    return await future


async def _ask_answer(controller: SessionController) -> None:
    progress = controller.progress
    item = progress.current_item

    if item.kind == SessionKind.MCQ:
        choice = await _ask(IntPrompt, f"Option [1-{len(item.options)}]")
        if controller.submit_current(choice - 1) is None:
            console.print("[yellow]That option does not exist[/yellow]")
        return

    if item.kind == SessionKind.INTERVIEW:
        rating = await _ask(IntPrompt, "Rate your answer", choices=["1", "2", "3", "4", "5"])
        notes = await _ask(Prompt, "Notes", default="")
        controller.submit_current(InterviewRating(rating=rating, notes=notes))
        return

    path = Path(await _ask(Prompt, "Path to your solution file"))
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        return
    language = LANGUAGES_BY_SUFFIX.get(path.suffix.lower(), "text")
    controller.submit_current(CodeSubmission(source=source, language=language))
    console.print("[green]Solution recorded[/green]")


def _show_hint(controller: SessionController) -> None:
    item = controller.progress.current_item
    if item.hints:
        console.print(f"[cyan]Hint:[/cyan] {item.hints[0]}")
    elif item.tips:
        console.print(f"[cyan]Tip:[/cyan] {item.tips}")
    else:
        console.print("[dim]No hint available for this item[/dim]")


async def _dispatch(controller: SessionController, command: str) -> None:
    """Apply one typed command to the controller."""
    if not command:
        return
    head, _, arg = command.partition(" ")
    head = head.lower()

    if head.isdigit() and controller.progress.kind == SessionKind.MCQ:
        if controller.submit_current(int(head) - 1) is None:
            console.print("[yellow]That option does not exist[/yellow]")
    elif head == "a":
        await _ask_answer(controller)
    elif head == "n":
        controller.next()
    elif head == "p":
        controller.previous()
    elif head == "g":
        if arg.strip().isdigit():
            controller.go_to(int(arg) - 1)
        else:
            console.print("[yellow]Usage: g <question number>[/yellow]")
    elif head == "s":
        if controller.progress.status == SessionStatus.PAUSED:
            controller.resume()
        else:
            controller.pause()
    elif head == "h":
        _show_hint(controller)
    elif head == "f":
        if await _ask(Confirm, "Finish and score now?", default=True):
            controller.finish()
    elif head == "q":
        if await _ask(Confirm, "Abandon this session? Nothing will be recorded", default=False):
            controller.abort()
    else:
        console.print(f"[yellow]Unknown command: {command}[/yellow]")


async def _drive(controller: SessionController) -> None:
    while controller.is_active:
        progress = controller.progress
        if progress.status == SessionStatus.PAUSED:
            console.print("[magenta]Paused.[/magenta] Press s to resume.")
        else:
            render_progress(console, progress)
        console.print(COMMAND_HELP)

        command = await _ask(Prompt, "[bold cyan]>[/bold cyan]", default="")
        if not controller.is_active:
            break
        await _dispatch(controller, command.strip())


async def _run_session(
    provider: ItemBankProvider,
    history: JsonHistoryStore,
    item_filter: ItemFilter,
    config: SessionConfig,
) -> None:
    def on_complete(summary) -> None:
        if summary.status == SessionStatus.EXPIRED:
            console.print("\n[bold red]Time's up![/bold red] Press Enter to see your results.")

    controller = SessionController(
        provider,
        history,
        fallback=FallbackGenerator(),
        on_complete=on_complete,
    )

    try:
        await controller.start(item_filter, config)
    finally:
        if isinstance(provider, HttpItemBank):
            await provider.close()

    try:
        while True:
            await _drive(controller)
            summary = controller.last_summary
            if summary is None:
                console.print("[yellow]Session abandoned. Nothing was recorded.[/yellow]")
                return
            render_summary(console, summary)
            if controller.last_error is not None:
                console.print(f"[red]Result was not saved to history: {controller.last_error}[/red]")
            if not await _ask(Confirm, "Retake the same questions?", default=False):
                return
            await controller.replay()
    finally:
        controller.close()


# =============================================================================
# Commands
# =============================================================================


@app.command()
def run(
    kind: Annotated[SessionKind, typer.Argument(help="Session kind: mcq, coding or interview")],
    limit: Annotated[
        Optional[int], typer.Option("--limit", "-n", min=1, help="Number of items")
    ] = None,
    duration: Annotated[
        Optional[int], typer.Option("--duration", "-d", min=1, help="Time limit in seconds")
    ] = None,
    category: Annotated[Optional[str], typer.Option("--category", "-c", help="Only this category")] = None,
    difficulty: Annotated[Optional[Difficulty], typer.Option("--difficulty", help="Easy, Medium or Hard")] = None,
    company: Annotated[Optional[str], typer.Option("--company", help="Company-specific items")] = None,
    query: Annotated[Optional[str], typer.Option("--query", "-q", help="Free-text search")] = None,
    role: Annotated[Optional[str], typer.Option("--role", help="Target role, saved with the result")] = None,
    learning: Annotated[
        bool, typer.Option("--learning", "-l", help="Show explanations after each answer")
    ] = False,
    bank: Annotated[
        Optional[Path], typer.Option("--bank", exists=True, dir_okay=False, help="JSON item bank file")
    ] = None,
) -> None:
    """
    Start a timed practice session.

    Examples:
        prepdeck run mcq --category Databases
        prepdeck run coding -n 2 --difficulty Easy
        prepdeck run interview --company Cisco --role "Backend Engineer"
    """
    settings = get_settings()
    item_filter = ItemFilter(
        kind=kind,
        query=query,
        category=category,
        difficulty=difficulty,
        company=company,
        role=role,
        limit=limit or settings.default_item_count,
    )
    config = SessionConfig(
        duration_seconds=duration or settings.duration_for(kind),
        show_explanations=learning or settings.learning_mode,
        item_count=item_filter.limit,
    )

    try:
        provider = _build_provider(settings, kind, bank)
        store = JsonHistoryStore(settings.history_dir)
        asyncio.run(_run_session(provider, store, item_filter, config))
    except PrepDeckError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted. Session abandoned.[/yellow]")
        raise typer.Exit(130)


@app.command()
def history(
    kind: Annotated[Optional[SessionKind], typer.Option("--kind", "-k", help="Only this kind")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Rows to show")] = 20,
) -> None:
    """Show completed sessions, newest first."""
    settings = get_settings()
    store = JsonHistoryStore(settings.history_dir)
    render_history(console, store.list(kind)[:limit])


@app.command()
def export(
    session_id: Annotated[str, typer.Argument(help="Session ID from `prepdeck history`")],
    fmt: Annotated[str, typer.Option("--format", "-f", help="json or csv")] = "json",
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Output file")] = None,
) -> None:
    """Export one session's results as JSON or CSV."""
    fmt = fmt.lower()
    if fmt not in ("json", "csv"):
        console.print(f"[red]Unsupported format: {fmt}[/red]")
        raise typer.Exit(1)

    settings = get_settings()
    summary = JsonHistoryStore(settings.history_dir).get(session_id)
    if summary is None:
        console.print(f"[red]No session with id {session_id}[/red]")
        raise typer.Exit(1)

    content = summary_to_json(summary) if fmt == "json" else summary_to_csv(summary)
    target = output or Path(export_filename(summary, fmt))
    target.write_text(content, encoding="utf-8")
    console.print(f"[green]Exported to {target}[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level.upper(),
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
