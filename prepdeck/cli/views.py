"""
Rich rendering for sessions, summaries and history.
"""

from __future__ import annotations

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from prepdeck.engine.models import (
    Answer,
    CodeSubmission,
    InterviewRating,
    Item,
    Outcome,
    SessionKind,
    SessionProgress,
    SessionSummary,
)
from prepdeck.engine.scoring import grade_answer

KIND_TITLES = {
    SessionKind.MCQ: "MULTIPLE CHOICE",
    SessionKind.CODING: "CODING PROBLEM",
    SessionKind.INTERVIEW: "INTERVIEW QUESTION",
}

DIFFICULTY_STYLES = {"Easy": "green", "Medium": "yellow", "Hard": "red"}

OUTCOME_STYLES = {
    Outcome.CORRECT: "[green]correct[/green]",
    Outcome.INCORRECT: "[red]incorrect[/red]",
    Outcome.UNANSWERED: "[dim]unanswered[/dim]",
}


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


def _describe_answer(item: Item, answer: Answer) -> str:
    value = answer.value
    if isinstance(value, InterviewRating):
        return f"rated {value.rating}/5"
    if isinstance(value, CodeSubmission):
        if value.test_results is None:
            return f"{value.language} submission (not run)"
        passed = sum(1 for r in value.test_results if r)
        return f"{value.language} submission, {passed}/{len(value.test_results)} tests passed"
    if isinstance(value, int) and 0 <= value < len(item.options):
        return f"[{value + 1}] {item.options[value]}"
    return str(value)


def render_progress(console: Console, progress: SessionProgress) -> None:
    """Show the current item with the timer and answer state."""
    item = progress.current_item
    if item is None:
        return

    difficulty_style = DIFFICULTY_STYLES.get(item.difficulty.value, "white")
    header = Text()
    header.append(f"{progress.current_index + 1}/{progress.total_items}", style="bold")
    header.append(f"  {item.category}", style="cyan")
    header.append(f"  {item.difficulty.value}", style=difficulty_style)
    header.append(f"  {format_time(progress.remaining_seconds)} remaining", style="magenta")
    header.append(f"  answered {progress.answered_count}/{progress.total_items}", style="dim")

    parts: list = [header, Text(""), Text(item.prompt, style="white")]

    if item.kind == SessionKind.MCQ:
        table = Table(box=box.MINIMAL, show_header=False)
        table.add_column("Index", style="cyan", justify="right", width=4)
        table.add_column("Option", style="white")
        for i, option in enumerate(item.options):
            table.add_row(f"[{i + 1}]", option)
        parts.append(table)
    elif item.kind == SessionKind.CODING and item.test_cases:
        parts.append(Text(f"\n{len(item.test_cases)} test cases", style="dim"))
    elif item.kind == SessionKind.INTERVIEW and item.tips:
        parts.append(Text(f"\nTip: {item.tips}", style="dim italic"))

    answer = progress.current_answer
    if answer is not None:
        parts.append(Text(f"\nYour answer: {_describe_answer(item, answer)}", style="yellow"))
        if progress.show_explanations and item.kind != SessionKind.INTERVIEW:
            verdict = "Correct" if grade_answer(item, answer) else "Incorrect"
            parts.append(Text(verdict, style="green" if verdict == "Correct" else "red"))
            if item.explanation:
                parts.append(Text(item.explanation, style="dim"))

    console.print(
        Panel(
            Group(*parts),
            title=f"[bold cyan]{KIND_TITLES[item.kind]}[/bold cyan]",
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        )
    )


def render_summary(console: Console, summary: SessionSummary) -> None:
    """Show the score card and per-item results."""
    style = "green" if summary.score_percent >= 60 else "yellow" if summary.score_percent >= 40 else "red"
    content = Text()
    content.append(f"{summary.score_percent}%\n", style=f"bold {style}")
    content.append(f"Status: {summary.status.value}\n")
    if summary.company or summary.role:
        content.append(f"Target: {_target(summary)}\n")
    content.append(
        f"Correct {summary.items_correct}  Incorrect {summary.items_incorrect}  "
        f"Unanswered {summary.items_unanswered}  of {summary.items_total}\n"
    )
    content.append(f"Time used: {format_time(summary.duration_used_seconds)}\n\n")
    content.append(summary.feedback, style="italic")
    console.print(Panel(content, title=f"[bold]{summary.kind.value.upper()} RESULTS[/bold]", border_style=style))

    breakdown = Table(title="By category", box=box.SIMPLE)
    breakdown.add_column("Category", style="cyan")
    breakdown.add_column("Answered", justify="right")
    breakdown.add_column("Correct", justify="right")
    breakdown.add_column("Score", justify="right")
    for row in summary.categories:
        breakdown.add_row(row.label, f"{row.answered}/{row.total}", str(row.correct), f"{row.score_percent}%")
    console.print(breakdown)

    details = Table(title="Items", box=box.SIMPLE)
    details.add_column("#", justify="right", style="dim")
    details.add_column("Prompt", overflow="fold")
    details.add_column("Your answer")
    details.add_column("Expected")
    details.add_column("Result")
    for i, detail in enumerate(summary.per_item_detail, 1):
        details.add_row(
            str(i),
            detail.prompt,
            detail.submitted or "-",
            detail.expected or "-",
            OUTCOME_STYLES[detail.outcome],
        )
    console.print(details)


def _target(summary: SessionSummary) -> str:
    parts = [p for p in (summary.role, summary.company) if p]
    return " @ ".join(parts) or "-"


def render_history(console: Console, summaries: list[SessionSummary]) -> None:
    if not summaries:
        console.print("[yellow]No completed sessions yet.[/yellow]")
        return

    table = Table(title="Session history", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Kind", style="cyan")
    table.add_column("Target")
    table.add_column("Status")
    table.add_column("Items", justify="right")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Time", justify="right")
    for s in summaries:
        table.add_row(
            s.id,
            s.date.strftime("%Y-%m-%d %H:%M"),
            s.kind.value,
            _target(s),
            s.status.value,
            f"{s.items_correct}/{s.items_total}",
            f"{s.score_percent}%",
            format_time(s.duration_used_seconds),
        )
    console.print(table)
