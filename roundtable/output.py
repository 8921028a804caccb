"""Rich console output and markdown file save for finished discussions."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from roundtable.models import DiscussionAnalytics, Report, Session, Turn
from roundtable.prompts import author_name

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _turn_title(turn: Turn) -> str:
    if turn.is_intervention:
        return f"Turn {turn.turn_number}: user intervention"
    return f"Turn {turn.turn_number}: {turn.phase.replace('_', ' ')}"


def print_turn(turn: Turn, session: Session) -> None:
    """Print every message of a turn, with any attached poll."""
    console.print(Rule(f"[bold cyan]{_turn_title(turn)}[/bold cyan]"))
    for message in turn.messages:
        style = "yellow" if message.is_user_intervention else "dim"
        console.print(
            Panel(
                message.content,
                title=f"[bold]{author_name(message, session.roles)}[/bold]",
                border_style=style,
            )
        )
        if message.voting_prompt is not None:
            vp = message.voting_prompt
            table = Table(title=f"Poll: {vp.question}", show_header=True)
            table.add_column("Option")
            table.add_column("Votes", justify="right")
            for option in vp.options:
                table.add_row(option.text, str(option.votes))
            console.print(table)


def print_report(report: Report, analytics: DiscussionAnalytics) -> None:
    """Print the report and headline analytics."""
    console.print(Rule("[bold green]Discussion Report[/bold green]"))
    console.print(
        Text(
            f"Turns: {analytics.total_turns} | "
            f"Messages: {analytics.total_messages} | "
            f"Interventions: {analytics.user_interventions} | "
            f"Most active: {analytics.most_active_role or '-'} | "
            f"Duration: {analytics.duration_sec:.1f}s",
            style="dim",
        )
    )
    console.print(Markdown(_report_markdown(report)))


def _report_markdown(report: Report) -> str:
    lines = ["### Summary", "", report.summary, "", "### Key points", ""]
    lines += [f"- {p}" for p in report.key_points]
    lines += ["", "### Recommendations", ""]
    lines += [f"{i}. {r}" for i, r in enumerate(report.recommendations, start=1)]
    return "\n".join(lines)


def save_to_file(
    session: Session,
    report: Report | None,
    analytics: DiscussionAnalytics,
    output_dir: Path,
    slug_override: str | None = None,
    report_error: str | None = None,
) -> Path:
    """Save the transcript, analytics and report as a markdown file.

    Args:
        session: The finished session.
        report: Report generated for the session, or None if generation failed.
        analytics: Analytics for the session.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the topic title.
        report_error: Shown in place of the report when report is None.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    now = datetime.now()
    timestamp = now.strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(session.topic.title)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    lines: list[str] = [
        f"# Roundtable: {session.topic.title}",
        "",
        f"**Date:** {(report.generated_at if report else now).strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Goal:** {session.goal.name} ({session.goal.id})",
        f"**Participants:** {', '.join(r.name for r in session.roles)}",
        f"**Turns:** {session.actual_turn_number} phase turns, {session.user_intervention_count} interventions",
        f"**Language:** {session.language}",
        "",
        "---",
        "",
    ]
    if report is None:
        lines += ["## Summary", "", f"_Report generation failed: {report_error or 'unknown error'}_"]
    else:
        lines += ["## Summary", "", report.summary, "", "## Key Points", ""]
        lines += [f"- {p}" for p in report.key_points]
        lines += ["", "## Recommendations", ""]
        lines += [f"{i}. {r}" for i, r in enumerate(report.recommendations, start=1)]

    lines += ["", "## Analytics", ""]
    lines.append(f"- Messages: {analytics.total_messages}")
    lines.append(f"- Average message length: {analytics.average_message_length:.0f} characters")
    lines.append(f"- Most active role: {analytics.most_active_role or '-'}")
    for topic in analytics.controversial_topics:
        lines.append(
            f"- Controversy (level {topic.controversy_level}): {topic.topic} "
            f"({' vs. '.join(topic.participants)})"
        )
    for result in analytics.voting_results:
        tallies = ", ".join(f"{k}: {v}" for k, v in result.tallies.items())
        lines.append(f"- Poll (turn {result.turn_number}): {result.question} [{tallies}]")

    lines += ["", "## Transcript", ""]
    for turn in session.turns:
        lines.append(f"### {_turn_title(turn)}")
        lines.append("")
        for message in turn.messages:
            lines.append(f"**{author_name(message, session.roles)}:** {message.content}")
            lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Discussion saved to: %s", filepath)
    return filepath
