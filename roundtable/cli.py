"""Click CLI: loads config and catalog, picks providers, runs a discussion, saves output."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from config.config_loader import AppConfig, Catalog, load_catalog, load_config
from roundtable.analytics import get_analytics
from roundtable.brief import DiscussionBrief, parse_brief
from roundtable.errors import DiscussionError, ReportGenerationError
from roundtable.gateway import ProviderRouter
from roundtable.healthcheck import run_health_checks
from roundtable.intervention import ALL_ROLES
from roundtable.models import STATUS_COMPLETED, Report, Role, Session, Topic
from roundtable.output import print_report, print_turn, save_to_file
from roundtable.providers.anthropic import AnthropicProvider
from roundtable.providers.base import AIProvider
from roundtable.providers.gemini import GeminiProvider
from roundtable.providers.openai_provider import OpenAIProvider
from roundtable.report import generate_report
from roundtable.session import MAX_ROLES, MAX_TURNS, MIN_ROLES, DiscussionEngine

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

# Keyed by the ``sdk`` field of a model entry in settings.yaml
PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build all available providers. Returns dict keyed by name."""
    providers: dict[str, AIProvider] = {}
    for name in sorted(config.available_providers):
        model_cfg = config.models[name]
        if model_cfg.sdk not in PROVIDER_CLASSES:
            logger.warning("Provider '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
            continue
        try:
            providers[name] = PROVIDER_CLASSES[model_cfg.sdk](model_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _check_and_filter_providers(all_providers: dict[str, AIProvider]) -> dict[str, AIProvider]:
    """Ping every provider, show the outcome, and keep only the ones that answered.

    Exits when none answered or when the user declines to go on without the others.
    """
    console.print("\n[bold]Checking providers...[/bold]")
    statuses = asyncio.run(run_health_checks(all_providers))
    for status in statuses.values():
        if status.ok:
            console.print(f"  [green]OK  [/green] {status.name} [dim]({status.latency_sec:.1f}s)[/dim]")
        else:
            console.print(f"  [red]FAIL[/red] {status.name}: {status.short_error}")

    failed = [s.name for s in statuses.values() if not s.ok]
    working = {n: p for n, p in all_providers.items() if n not in failed}
    if failed and not working:
        console.print("\n[bold red]Error:[/bold red] No providers passed the health check.")
        sys.exit(1)
    if failed:
        console.print(f"\n[yellow]{len(failed)} provider(s) failed:[/yellow] {', '.join(failed)}")
        if not click.confirm(f"Continue with {', '.join(sorted(working))} only?", default=True):
            sys.exit(0)
    console.print()
    return working


def _split_ids(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _resolve_roles(catalog: Catalog, role_ids: list[str]) -> list[Role]:
    """Catalog roles for the given ids, in the given order, without duplicates.

    Raises:
        click.BadParameter: for unknown ids or a count outside 2..4.
    """
    unique = list(dict.fromkeys(role_ids))
    unknown = [r for r in unique if r not in catalog.roles]
    if unknown:
        raise click.BadParameter(f"Unknown role(s): {', '.join(unknown)}", param_hint="--roles")
    if not MIN_ROLES <= len(unique) <= MAX_ROLES:
        raise click.BadParameter(
            f"Select between {MIN_ROLES} and {MAX_ROLES} roles, got {len(unique)}",
            param_hint="--roles",
        )
    return [catalog.role(r) for r in unique]


def _print_catalog(catalog: Catalog) -> None:
    goals = Table(title="Goals", show_header=True)
    goals.add_column("ID")
    goals.add_column("Category")
    goals.add_column("Name")
    for goal in catalog.goals.values():
        goals.add_row(goal.id, catalog.goal_categories.get(goal.category, goal.category), goal.name)
    console.print(goals)

    roles = Table(title="Roles", show_header=True)
    roles.add_column("ID")
    roles.add_column("Category")
    roles.add_column("Name")
    roles.add_column("Focus")
    for role in catalog.roles.values():
        roles.add_row(role.id, role.category, role.name, role.focus_area)
    console.print(roles)


def _ask_intervention() -> tuple[str, list[str]] | None:
    """Read an optional intervention from the terminal; empty input skips."""
    content = click.prompt(
        "Intervention (enter to continue)", default="", show_default=False
    ).strip()
    if not content:
        return None
    targets = click.prompt("Address which roles (comma-separated ids or 'all')", default=ALL_ROLES)
    return content, _split_ids(targets)


async def _prompt_intervention(engine: DiscussionEngine, session: Session) -> None:
    # click.prompt blocks, so it runs off the event loop
    answer = await asyncio.to_thread(_ask_intervention)
    if answer is None:
        return
    content, targets = answer
    try:
        turn = await engine.intervene(session, content, targets)
    except DiscussionError as exc:
        console.print(f"[yellow]Intervention rejected:[/yellow] {exc}")
        return
    print_turn(turn, session)


async def _run_discussion(
    engine: DiscussionEngine,
    gateway: AIProvider,
    config: AppConfig,
    topic: Topic,
    goal_id: str,
    roles: list[Role],
    catalog: Catalog,
    language: str,
    turns: int,
    interactive: bool,
    output_dir: Path,
    slug_override: str | None = None,
) -> Path:
    goal = catalog.goal(goal_id)
    console.print(
        f"\n[bold cyan]Roundtable[/bold cyan] - {len(roles)} roles, up to {turns} turns"
    )
    console.print(f"Roles: {', '.join(r.name for r in roles)}")
    console.print(f"Goal: {goal.name}")
    console.print(f"Topic: [italic]{topic.title}[/italic]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Introductions...", total=None)
        session = await engine.create_session(topic, goal, roles, language=language)
    print_turn(session.turns[-1], session)

    for _ in range(turns):
        if session.status == STATUS_COMPLETED:
            break
        if interactive:
            await _prompt_intervention(engine, session)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"Turn {session.actual_turn_number + 1}...", total=None)
            turn = await engine.advance(session)
            progress.update(task, description="Done")
        print_turn(turn, session)

    engine.finalize(session)
    analytics = get_analytics(session)
    report: Report | None = None
    report_error: str | None = None
    try:
        report = await generate_report(session, gateway, config.prompts, tier=config.defaults.tier)
    except ReportGenerationError as exc:
        logger.error("Report generation failed for session %s: %s", session.id, exc)
        console.print("[yellow]Report generation failed; saving the transcript and analytics only.[/yellow]")
        report_error = str(exc)
    else:
        print_report(report, analytics)

    saved_path = save_to_file(
        session, report, analytics, output_dir, slug_override=slug_override, report_error=report_error
    )
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return saved_path


@click.command()
@click.argument("title", required=False)
@click.option("--description", default=None, help="Topic description")
@click.option("--file", "brief_file", type=click.Path(exists=True), help="Read the topic from a brief .md file")
@click.option("--goal", "goal_id", default=None, help="Goal id from the catalog (see --list-catalog)")
@click.option("--roles", "roles_arg", default=None, help="Comma-separated role ids, 2 to 4")
@click.option("--language", default=None, help="Response language: nl, en, de or fr (default: from config)")
@click.option("--turns", default=MAX_TURNS, type=click.IntRange(0, MAX_TURNS), show_default=True,
              help="Number of phase turns to run after the introduction")
@click.option("--interactive", is_flag=True, help="Offer an intervention before each turn")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
@click.option("--list-catalog", is_flag=True, default=False, help="Print goals and roles, then exit")
def main(
    title: str | None,
    description: str | None,
    brief_file: str | None,
    goal_id: str | None,
    roles_arg: str | None,
    language: str | None,
    turns: int,
    interactive: bool,
    output_path: str | None,
    verbose: bool,
    skip_health_check: bool,
    list_catalog: bool,
) -> None:
    """Roundtable -- multi-role AI discussion simulator.

    \b
    Examples:
      roundtable "Launch in Germany" --goal a4 --roles ceo,cfo,marketing_specialist
      roundtable --file brief.md --turns 3 --language en
      roundtable "Hybrid work policy" --goal m3 --roles hr_hoofd,ceo --interactive
      roundtable --list-catalog
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
        catalog = load_catalog()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    if list_catalog:
        _print_catalog(catalog)
        return

    brief = parse_brief(Path(brief_file)) if brief_file else DiscussionBrief(title=title or "", description="")
    topic_title = title or brief.title
    if not topic_title:
        console.print("[bold red]Error:[/bold red] Provide a TITLE argument or --file.")
        sys.exit(1)

    effective_goal = goal_id or brief.goal
    if not effective_goal:
        raise click.UsageError("A goal is required: pass --goal or set 'goal' in the brief.")
    if effective_goal not in catalog.goals:
        raise click.BadParameter(f"Unknown goal: {effective_goal}", param_hint="--goal")

    roles = _resolve_roles(catalog, _split_ids(roles_arg) or brief.roles)
    effective_language = language or brief.language or config.defaults.language
    effective_output = Path(output_path) if output_path else config.defaults.output_dir

    all_providers = _build_all_providers(config)
    if not all_providers:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)

    if not skip_health_check:
        all_providers = _check_and_filter_providers(all_providers)

    gateway = ProviderRouter(all_providers, config.routing, user_id=config.defaults.user_id)
    engine = DiscussionEngine(gateway, config.prompts, tier=config.defaults.tier)
    topic = Topic(
        id="topic-cli",
        title=topic_title,
        description=description or brief.description or topic_title,
    )

    asyncio.run(
        _run_discussion(
            engine=engine,
            gateway=gateway,
            config=config,
            topic=topic,
            goal_id=effective_goal,
            roles=roles,
            catalog=catalog,
            language=effective_language,
            turns=turns,
            interactive=interactive,
            output_dir=effective_output,
            slug_override=Path(brief_file).stem if brief_file else None,
        )
    )


if __name__ == "__main__":
    main()
