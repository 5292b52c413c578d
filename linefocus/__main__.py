"""Entry point for linefocus CLI."""

import logging
import warnings
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import rich_click as click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from linefocus import __version__
from linefocus.core.compose import PatternValidationError
from linefocus.core.config import Config, ConfigError, ConfigLoader, FilterConfig
from linefocus.core.engine import FilterEngine, FilterResult, FilterWorkspace
from linefocus.core.persistence import (
    JsonFilterPersistence,
    PersistenceError,
    PersistenceWriter,
)
from linefocus.core.state import FilterState
from linefocus.core.template import TemplateFormatWarning, dates_for, find_variables, resolve
from linefocus.utils.documents import document_id, read_lines

click.rich_click.TEXT_MARKUP = "rich"
click.rich_click.SHOW_ARGUMENTS = True

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]


def _configure_logging(verbose: bool) -> None:
    """Send library logging to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_config(config_path: Optional[Path]) -> Config:
    """Load an explicit config file, or merge the discovered ones.

    Raises:
        ConfigError: If a config file is invalid.
    """
    loader = ConfigLoader()
    if config_path is not None:
        return loader.load(config_path)
    return loader.load_merged()


@contextmanager
def _report_template_warnings(console: Console) -> Iterator[None]:
    """Print template format warnings as user-facing notices."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", TemplateFormatWarning)
        yield
    for warning in caught:
        if issubclass(warning.category, TemplateFormatWarning):
            console.print(f"[yellow]Warning:[/yellow] {escape(str(warning.message))}", highlight=False)


def _effective_filter_config(
    base: FilterConfig,
    hide_empty: Optional[bool],
    children: Optional[bool],
    headings: Optional[bool],
    templates: Optional[bool],
) -> FilterConfig:
    """Apply CLI flag overrides on top of configured values."""
    return FilterConfig(
        hide_empty_lines=base.hide_empty_lines if hide_empty is None else hide_empty,
        include_child_items=base.include_child_items if children is None else children,
        include_heading_child_items=(
            base.include_heading_child_items if headings is None else headings
        ),
        enable_template_variables=(
            base.enable_template_variables if templates is None else templates
        ),
    )


def _clock_for(now: Optional[datetime]):
    return (lambda: now) if now is not None else None


def _output_lines(
    console: Console,
    lines: list[str],
    result: FilterResult,
    line_numbers: bool,
) -> None:
    """Print the visible lines of a document.

    Note: markup is disabled so document text like [x] is printed verbatim.
    """
    width = len(str(len(lines)))
    for number in result.visibility.visible_line_numbers():
        text = lines[number - 1]
        if line_numbers:
            text = f"{number:>{width}}  {text}"
        console.print(text, markup=False, highlight=False, soft_wrap=True)


def _print_summary(console: Console, result: FilterResult) -> None:
    visibility = result.visibility
    total = len(visibility)
    console.print(
        f"{result.describe()} | total={total} "
        f"visible={total - visibility.hidden_count} hidden={visibility.hidden_count}",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Config file to use instead of the discovered linefocus.toml files.",
)
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where remembered filters and pattern history are stored.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr.")
@click.version_option(__version__, "--version", prog_name="linefocus")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    state_file: Optional[Path],
    verbose: bool,
) -> None:
    """linefocus - show only the lines of a document that match your filters.

    Combine several regex patterns, pull in indented children and heading
    sections, and use date templates such as [bold]{{today}}[/bold] or
    [bold]{{this-week}}[/bold].
    """
    _configure_logging(verbose)
    console = Console()

    try:
        config = _load_config(config_path)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        ctx.exit(1)

    if state_file is not None:
        config.storage.state_file = str(state_file)

    ctx.obj = config


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-f", "--filter", "patterns",
    multiple=True,
    metavar="REGEX",
    help="Show lines matching this pattern. Repeat to combine (any may match).",
)
@click.option(
    "-s", "--saved", "saved_ids",
    multiple=True,
    metavar="ID",
    help="Add a saved pattern from the config by its id.",
)
@click.option(
    "--hide-empty/--show-empty",
    default=None,
    help="Hide blank lines that are not matched (default from config: hide).",
)
@click.option(
    "--children/--no-children",
    default=None,
    help="Show lines indented under a matching line (default from config: on).",
)
@click.option(
    "--headings/--no-headings",
    default=None,
    help="Show the section under a matching markdown heading (default from config: off).",
)
@click.option(
    "--templates/--no-templates",
    default=None,
    help="Expand date templates like {{today}} (default from config: off).",
)
@click.option(
    "--now",
    type=click.DateTime(formats=DATE_FORMATS),
    help="Reference date for date templates (default: today).",
)
@click.option("-n", "--line-numbers", is_flag=True, help="Prefix lines with their line number.")
@click.option(
    "--restore",
    is_flag=True,
    help="When no pattern is given, use the patterns remembered for this file.",
)
@click.option("--remember", is_flag=True, help="Remember the active patterns for this file.")
@click.option("--summary", is_flag=True, help="Print counts instead of the lines.")
@click.pass_context
def show(
    ctx: click.Context,
    file: Path,
    patterns: tuple[str, ...],
    saved_ids: tuple[str, ...],
    hide_empty: Optional[bool],
    children: Optional[bool],
    headings: Optional[bool],
    templates: Optional[bool],
    now: Optional[datetime],
    line_numbers: bool,
    restore: bool,
    remember: bool,
    summary: bool,
) -> None:
    """Print the lines of FILE that pass the active filters."""
    console = Console()
    stderr_console = Console(stderr=True)
    config: Config = ctx.obj

    filter_config = _effective_filter_config(
        config.filter, hide_empty, children, headings, templates
    )
    engine = FilterEngine(
        enable_template_variables=filter_config.enable_template_variables,
        clock=_clock_for(now),
    )

    with _report_template_warnings(stderr_console):
        for pattern in patterns:
            try:
                engine.validate(pattern)
            except PatternValidationError as e:
                console.print(f"[red]Error:[/red] {escape(f'/{pattern}/: {e}')}", highlight=False)
                ctx.exit(1)

    state = FilterState.from_config(filter_config, patterns)

    library = config.saved_library()
    for saved_id in saved_ids:
        item = library.get(saved_id)
        if item is None:
            console.print(f"[red]Error:[/red] Saved pattern '{escape(saved_id)}' not found.")
            if len(library):
                console.print("\nAvailable saved patterns:")
                for known in library:
                    console.print(f"  - {known.id} ({known.display_name})", markup=False)
            ctx.exit(1)
        if item.pattern not in state:
            state = state.toggle_specific(item.pattern)

    doc_id = document_id(file)
    store = None
    if restore or remember:
        store = JsonFilterPersistence(config.storage.state_path)

    if restore and not state.is_active:
        stored = store.get(doc_id)
        if stored:
            state = state.replace_all(stored)

    lines = read_lines(file)

    with _report_template_warnings(stderr_console):
        result = engine.evaluate(lines, state)

    if remember:
        writer = PersistenceWriter(store)
        writer.save(doc_id, state.patterns)
        if writer.failed:
            stderr_console.print(
                "[yellow]Warning:[/yellow] Could not remember filters for this file."
            )

    if result.error is not None:
        stderr_console.print(
            f"[yellow]Warning:[/yellow] {escape(str(result.error))}; showing all lines.",
            highlight=False,
        )

    if summary:
        _print_summary(console, result)
    else:
        _output_lines(console, lines, result, line_numbers)


@cli.command("resolve")
@click.argument("template")
@click.option(
    "--now",
    type=click.DateTime(formats=DATE_FORMATS),
    help="Reference date (default: today).",
)
@click.option("--explain", is_flag=True, help="List the recognized template variables.")
def resolve_command(template: str, now: Optional[datetime], explain: bool) -> None:
    """Expand the date templates in TEMPLATE and print the result."""
    console = Console()
    stderr_console = Console(stderr=True)

    with _report_template_warnings(stderr_console):
        resolved = resolve(template, now)

    if explain:
        variables = find_variables(template)
        if not variables:
            console.print("[yellow]No template variables found.[/yellow]")
        else:
            table = Table(title="Template Variables")
            table.add_column("Variable", style="cyan", no_wrap=True)
            table.add_column("Kind", style="green")
            table.add_column("Format")
            table.add_column("Days", justify="right")
            for variable in variables:
                table.add_row(
                    variable.name,
                    variable.kind,
                    Text(variable.effective_format),
                    str(len(dates_for(variable, now))),
                )
            console.print(table)

    click.echo(resolved)


@cli.command("saved")
@click.option("--pinned", is_flag=True, help="Only list pinned patterns.")
@click.pass_context
def saved_command(ctx: click.Context, pinned: bool) -> None:
    """List the saved patterns defined in the config."""
    console = Console()
    library = ctx.obj.saved_library()
    items = library.pinned() if pinned else list(library)

    if not items:
        console.print("[yellow]No saved patterns found.[/yellow]")
        return

    table = Table(title="Saved Patterns")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Pattern")
    table.add_column("Pinned", justify="center")

    for item in items:
        table.add_row(
            item.id,
            Text(item.name or ""),
            Text(item.pattern),
            "yes" if item.pinned else "",
        )

    console.print(table)


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def forget(ctx: click.Context, file: Path) -> None:
    """Forget the filters remembered for FILE."""
    console = Console()
    store = JsonFilterPersistence(ctx.obj.storage.state_path)
    doc_id = document_id(file)

    if store.get(doc_id) is None:
        console.print(f"[yellow]No remembered filters for {escape(str(file))}.[/yellow]")
        return

    try:
        store.remove(doc_id)
    except PersistenceError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        ctx.exit(1)
    console.print(f"Forgot filters for {escape(str(file))}.", highlight=False)


@cli.command()
@click.argument("old", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("new", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def rename(ctx: click.Context, old: Path, new: Path) -> None:
    """Move the filters remembered for OLD to NEW after a file rename."""
    console = Console()
    workspace = FilterWorkspace(JsonFilterPersistence(ctx.obj.storage.state_path))
    old_id, new_id = document_id(old), document_id(new)

    if workspace.persistence.get(old_id) is None:
        console.print(f"[yellow]No remembered filters for {escape(str(old))}.[/yellow]")
        return

    workspace.rename_document(old_id, new_id)
    workspace.writer.flush()
    if workspace.writer.failed:
        console.print(f"[red]Error:[/red] Could not move filters to {escape(str(new))}.")
        ctx.exit(1)
    console.print(f"Moved filters from {escape(str(old))} to {escape(str(new))}.", highlight=False)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def tui(ctx: click.Context, file: Path) -> None:
    """Open FILE in the interactive viewer."""
    from linefocus.tui.app import run_tui

    run_tui(file, ctx.obj)


if __name__ == "__main__":
    cli()
