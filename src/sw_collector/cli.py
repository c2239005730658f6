"""Command-line interface for sw-collector"""

import json
import sys
from pathlib import Path
from typing import List, Optional

import click
import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import CollectorConfig, load_config
from .exceptions import SwCollectorError
from .features import load_features
from .history import ExtractionEngine, ExtractionState
from .inventory import InventoryLister
from .logging_config import setup_logging
from .persistence.identity import make_namer

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

USAGE = """\
Usage:
  sw-collector --help
  sw-collector [--debug <level>] [--quiet] --list
  sw-collector [--debug <level>] [--quiet] [--count <event count>]"""

app = typer.Typer(
    name="sw-collector",
    help="Collect software events from the package manager history log",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
err_console = Console(stderr=True)


@app.command()
def collect(
    list_: bool = typer.Option(
        False,
        "--list",
        "-l",
        help="List all software identities stored in the collector database",
    ),
    count: Optional[int] = typer.Option(
        None,
        "--count",
        "-c",
        help="Maximum number of new events processed in this run (0 = unlimited)",
        min=0,
    ),
    debug: Optional[int] = typer.Option(
        None,
        "--debug",
        "-d",
        help="Debug level (0 warnings, 1 info, 2 debug)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress diagnostics on stderr, keep file/syslog logging",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Configuration file path (TOML format)",
        dir_okay=False,
    ),
    fmt: str = typer.Option(
        "csv",
        "--format",
        "-f",
        help="Output format for --list: csv (default), json, table",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Extract software events from the apt history log, or list identities.

    [bold cyan]Examples:[/bold cyan]

      sw-collector

      sw-collector --count 100

      sw-collector --list --format table
    """
    if version:
        console.print(f"[bold cyan]sw-collector[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(EXIT_SUCCESS)

    valid_formats = {"csv", "json", "table"}
    if fmt not in valid_formats:
        err_console.print(f"[red]Error:[/red] --format must be one of: {', '.join(sorted(valid_formats))}")
        raise typer.Exit(EXIT_FAILURE)

    try:
        config = load_config(
            config_file=config_file,
            count=count,
            debug_level=debug,
            quiet=True if quiet else None,
        )
    except SwCollectorError as e:
        err_console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(EXIT_FAILURE)

    logger = setup_logging(config.log_settings)

    try:
        features = load_features(config.load)
        with features.open_store(config.require("database")) as store:
            if list_:
                status = _list_identities(store, fmt)
            else:
                status = _extract_history(store, config)

    except SwCollectorError as e:
        logger.error("%s", e, extra={"error": e.to_json()})
        err_console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(EXIT_FAILURE)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        raise typer.Exit(130)

    raise typer.Exit(status)


def _extract_history(store, config: CollectorConfig) -> int:
    """Extract software events from the history log into the store."""
    engine = ExtractionEngine(
        store,
        config.require("history_path"),
        make_namer(config.tag_creator, config.product),
        count=config.count,
    )
    result = engine.run()
    if result.state is ExtractionState.CAPPED:
        err_console.print(f"added {result.events_added} events", highlight=False)
    return EXIT_SUCCESS if result.succeeded else EXIT_FAILURE


def _list_identities(store, fmt: str) -> int:
    """Print every software identity stored in the collector database."""
    lister = InventoryLister(store)
    identities = lister.identities()

    if fmt == "json":
        rows = [
            {
                "name": sw.name,
                "package": sw.package,
                "version": sw.version,
                "installed": sw.installed,
            }
            for sw in identities
        ]
        print(json.dumps(rows, indent=2))
    elif fmt == "table":
        table = Table(title="Software Identities", show_lines=False, pad_edge=True)
        table.add_column("Name", style="bold")
        table.add_column("Package", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("Installed", justify="center")
        for sw in identities:
            table.add_row(sw.name, sw.package, sw.version, "yes" if sw.installed else "[dim]no[/dim]")
        console.print(table)
        console.print(
            f"{lister.total} identities, [green]{lister.installed} installed[/green], "
            f"[yellow]{lister.deleted} deleted[/yellow]"
        )
    else:
        for sw in identities:
            print(f"{sw.name},{sw.package},{sw.version},{int(sw.installed)}")
    return EXIT_SUCCESS


def main(argv: Optional[List[str]] = None) -> None:
    """Console entry point.

    Unknown options print the usage text and exit with the generic failure
    code instead of click's usage-error code.
    """
    command = typer.main.get_command(app)
    try:
        rv = command.main(args=argv, prog_name="sw-collector", standalone_mode=False)
    except click.UsageError as e:
        click.echo(f"Error: {e.format_message()}", err=True)
        click.echo(USAGE)
        sys.exit(EXIT_FAILURE)
    except click.ClickException as e:
        e.show()
        sys.exit(EXIT_FAILURE)
    except click.Abort:
        sys.exit(EXIT_FAILURE)
    sys.exit(rv if isinstance(rv, int) else EXIT_SUCCESS)


if __name__ == "__main__":
    main()
