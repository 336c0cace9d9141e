"""
askme: Main CLI for spaced repetition review.

A Rich terminal interface that asks one due question per run.

Commands:
- askme [TAG...]      - Review one due item (optionally restricted to tags)
- askme add           - Write a new item in $EDITOR
- askme scan          - Index item files added by hand
- askme status        - Show counts
- askme list          - Show items ordered by due time
- askme recover       - Restore the index from its backup
"""
from __future__ import annotations

import sys
from datetime import timedelta
from typing import NoReturn, Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .config import Settings, get_settings
from .errors import AskmeError, EmptyItemError, InvalidRatingError
from .index_store import IndexStore, ItemRecord, format_timestamp, utcnow
from .item_deck import ItemDeck
from .scheduler import SM2Config, SM2Scheduler, due_records, filter_by_tags, parse_rating, select_next, upcoming

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="askme",
    help="askme: spaced repetition flashcards in the terminal",
    add_completion=False,
)
console = Console()

NOTHING_TO_STUDY = "No questions to study."
RATING_PROMPT = "Enter your rating (1-5, 1 is hard, 5 is easy)"
NEW_ITEM_TEMPLATE = "Tags: \n\n"

STYLES = {
    "due": "bold yellow",
    "new": "bold green",
    "scheduled": "dim",
    "error": "bold red",
}


# =============================================================================
# Wiring
# =============================================================================


def report_error(error: Exception) -> None:
    """Log an error and print it in red."""
    logger.error(str(error))
    console.print(f"[{STYLES['error']}]{escape(str(error))}[/{STYLES['error']}]")


def _fail(error: Exception) -> NoReturn:
    """Report a fatal error and exit non-zero."""
    report_error(error)
    raise typer.Exit(1)


def _settings() -> Settings:
    try:
        return get_settings()
    except (AskmeError, ValidationError) as e:
        _fail(e)


def _index_store(settings: Settings) -> IndexStore:
    return IndexStore(settings.index_path, parsing=settings.index_parsing)


def _item_deck(settings: Settings) -> ItemDeck:
    return ItemDeck(
        settings.index_path.parent,
        extension=settings.editor_extension,
        initial_easiness=settings.initial_easiness,
    )


def _scheduler(settings: Settings) -> SM2Scheduler:
    return SM2Scheduler(SM2Config(
        minimum_easiness=settings.minimum_easiness,
        interval_unit=timedelta(hours=settings.interval_unit_hours),
        easiness_formula=settings.easiness_formula,
    ))


def _load(store: IndexStore) -> dict[str, ItemRecord]:
    try:
        return store.load()
    except AskmeError as e:
        _fail(e)


def _save(store: IndexStore, records: dict[str, ItemRecord]) -> None:
    try:
        store.save(records)
    except AskmeError as e:
        _fail(e)


# =============================================================================
# Display Helpers
# =============================================================================


def display_item(record: ItemRecord, text: str, width: int) -> None:
    """Render an item's markdown content."""
    console.print(Panel(
        Markdown(text),
        title=f"Asking {escape(record.identifier)}",
        title_align="left",
        border_style="cyan",
        width=width,
        padding=(1, 2),
    ))
    console.print(f"[dim]{escape(str(record))}[/dim]")


def ask_rating() -> int:
    """Prompt until the user enters an integer rating in [1, 5]."""
    while True:
        text = Prompt.ask(RATING_PROMPT, console=console)
        try:
            return parse_rating(text)
        except InvalidRatingError as e:
            console.print(escape(str(e)))


def _status_of(record: ItemRecord, now) -> str:
    if not record.is_scheduled:
        return f"[{STYLES['new']}]new[/{STYLES['new']}]"
    if record.is_due(now):
        return f"[{STYLES['due']}]due[/{STYLES['due']}]"
    return f"[{STYLES['scheduled']}]scheduled[/{STYLES['scheduled']}]"


# =============================================================================
# Commands
# =============================================================================


@app.command()
def review(
    tags: Optional[list[str]] = typer.Argument(
        None,
        help="Only review items carrying all of these tags",
        show_default=False,
    ),
) -> None:
    """
    Ask the next due question and reschedule it.

    Tags are read from each item's `Tags:` line; they are only loaded
    when a filter is given.
    """
    settings = _settings()
    store = _index_store(settings)
    deck = _item_deck(settings)
    scheduler = _scheduler(settings)

    records = _load(store)
    try:
        if tags:
            deck.annotate(records.values())
        selected = select_next(records.values(), tags or ())
        if selected is None:
            console.print(NOTHING_TO_STUDY)
            raise typer.Exit(0)
        text = deck.read_content(selected)
    except AskmeError as e:
        _fail(e)

    display_item(selected, text, settings.render_width)

    try:
        quality = ask_rating()
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Review interrupted, the index was not changed.[/yellow]")
        raise typer.Exit(1)

    updated = scheduler.apply_rating(selected, quality)
    records[updated.identifier] = updated
    _save(store, records)

    logger.info(f"updated record = {updated}")
    console.print(
        f"Next review of [bold]{escape(updated.identifier)}[/bold] "
        f"in {updated.interval:g} x {settings.interval_unit_hours:g}h "
        f"({format_timestamp(updated.due)})"
    )


@app.command()
def add() -> None:
    """Write a new item in $EDITOR and schedule it for review."""
    settings = _settings()
    store = _index_store(settings)
    deck = _item_deck(settings)

    records = _load(store)
    text = typer.edit(NEW_ITEM_TEMPLATE, extension=settings.editor_extension, require_save=True)
    if text is None:
        console.print("Nothing added.")
        raise typer.Exit(0)

    try:
        record = deck.add_item(text, records)
    except EmptyItemError as e:
        console.print(str(e))
        raise typer.Exit(0)
    except AskmeError as e:
        _fail(e)

    _save(store, records)
    console.print(f"[green]Added {escape(record.identifier)}[/green]")


@app.command()
def scan() -> None:
    """Create index records for item files that have none."""
    settings = _settings()
    store = _index_store(settings)
    deck = _item_deck(settings)

    records = _load(store)
    added = deck.discover(records)
    if not added:
        console.print("Index is up to date.")
        return

    _save(store, records)
    console.print(f"[green]Indexed {len(added)} new item(s)[/green]")
    for record in added:
        console.print(f"  {escape(record.identifier)}")


@app.command()
def status() -> None:
    """Show item counts."""
    settings = _settings()
    records = _load(_index_store(settings))
    now = utcnow()

    items = list(records.values())
    due = due_records(items, now)
    never = [r for r in items if not r.is_scheduled]

    console.print("\n[bold cyan]askme[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Index", str(settings.index_path))
    table.add_row("Items", str(len(items)))
    table.add_row("Due now", str(len(due)))
    table.add_row("Never reviewed", str(len(never)))

    console.print(table)


@app.command("list")
def list_items(
    tag: Optional[list[str]] = typer.Option(
        None,
        "--tag", "-t",
        help="Only list items carrying this tag (repeatable)",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit", "-l",
        help="Maximum number of items to show",
    ),
) -> None:
    """List items ordered by due time."""
    settings = _settings()
    records = _load(_index_store(settings))
    deck = _item_deck(settings)
    now = utcnow()

    items = list(records.values())
    if tag:
        try:
            deck.annotate(items)
        except AskmeError as e:
            _fail(e)
        items = filter_by_tags(items, tag)

    if not items:
        console.print(NOTHING_TO_STUDY)
        return

    table = Table()
    table.add_column("Item")
    table.add_column("Status")
    table.add_column("n", justify="right")
    table.add_column("EF", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Due")

    for record in upcoming(items, limit):
        table.add_row(
            escape(record.identifier),
            _status_of(record, now),
            str(record.repetitions),
            f"{record.easiness:.2f}",
            f"{record.interval:g}",
            format_timestamp(record.due) if record.is_scheduled else "-",
        )

    console.print(table)


@app.command()
def recover() -> None:
    """Restore the index from index.csv.old after an interrupted save."""
    store = _index_store(_settings())
    try:
        restored = store.recover()
    except AskmeError as e:
        _fail(e)

    if restored:
        console.print(f"[green]Restored {escape(str(store.path))} from its backup[/green]")
    else:
        console.print("Nothing to recover.")


# =============================================================================
# Entry Point
# =============================================================================

COMMANDS = {"review", "add", "scan", "status", "list", "recover"}


def route_args(argv: list[str]) -> list[str]:
    """
    Map the bare invocation forms onto commands.

    `askme` and `askme TAG...` both mean `askme review [TAG...]`. A first
    argument naming a command or starting with `-` is left alone; tags like
    that need the explicit `askme review` form.
    """
    if not argv:
        return ["review"]
    if argv[0] in COMMANDS or argv[0].startswith("-"):
        return argv
    return ["review", *argv]


def configure_logging(settings: Settings) -> None:
    """Send loguru output to stderr and, if configured, a rotating file."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="1 MB", retention=3)


def main() -> None:
    """CLI entry point."""
    try:
        settings = get_settings()
    except (AskmeError, ValidationError) as e:
        # typer.Exit only becomes an exit status inside the app
        report_error(e)
        raise SystemExit(1) from e

    configure_logging(settings)
    app(args=route_args(sys.argv[1:]), prog_name="askme")


if __name__ == "__main__":
    main()
