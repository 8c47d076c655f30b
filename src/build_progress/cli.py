"""Main CLI entry point for build-progress."""

import sys
import logging
from pathlib import Path
from typing import Optional, TextIO, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from build_progress import __version__
from build_progress.core.cache import CacheStore
from build_progress.core.scanner import count_source_files
from build_progress.plugin import ProgressPlugin
from build_progress.utils.config import Config

# Configure logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

console = Console()

EVENT_VERBS = ("transform", "chunk", "error", "close")

project_dir_option = click.option(
    "--project-dir", "-C",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)"
)


def setup_config(project_dir: Optional[Path] = None) -> Config:
    """Setup and return configuration instance.

    Args:
        project_dir: Directory holding the project's config file

    Returns:
        Configuration instance
    """
    return Config(project_dir=project_dir)


def open_cache(project_dir: Optional[Path] = None) -> CacheStore:
    """Create the cache store for a project, honouring its config."""
    project_dir = project_dir or Path.cwd()
    config = setup_config(project_dir)
    return CacheStore(project_dir, config.get("cache_dir"))


def parse_event(line: str) -> Optional[Tuple[str, str]]:
    """Parse one line of an event log.

    Args:
        line: Raw line, e.g. "transform src/main.ts"

    Returns:
        (verb, argument) tuple, or None for blank and comment lines

    Raises:
        click.BadParameter: If the verb is unknown
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    verb, _, argument = line.partition(" ")
    verb = verb.lower()
    if verb not in EVENT_VERBS:
        raise click.BadParameter(f"Unknown event '{verb}' in line: {line}")
    return verb, argument.strip()


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def main(verbose: bool) -> None:
    """build-progress - Build progress estimation with cross-run totals."""
    if verbose:
        console.print(f"[bold green]build-progress v{__version__}[/bold green]")
        logging.getLogger().setLevel(logging.INFO)


@main.command("status")
@project_dir_option
def status_command(project_dir: Optional[Path]) -> None:
    """Show the totals cached from the last successful build."""
    cache = open_cache(project_dir)

    if not cache.exists():
        console.print("[yellow]No build totals cached yet.[/yellow]")
        console.print("The next build uses a cold estimate from the source tree.")
        return

    record = cache.load()
    panel_content = f"""
[bold cyan]Transforms:[/bold cyan] {record.transform_count:,}
[bold cyan]Chunks:[/bold cyan] {record.chunk_count:,}
[bold cyan]Cache file:[/bold cyan] {cache.cache_path}
    """.strip()

    console.print(Panel(panel_content, title="Cached Build Totals", border_style="green"))


@main.command("scan")
@project_dir_option
def scan_command(project_dir: Optional[Path]) -> None:
    """Count the tracked source files used for a cold estimate."""
    project_dir = project_dir or Path.cwd()
    config = setup_config(project_dir)
    source_root = project_dir / config.get("source_root")

    count = count_source_files(source_root, config.get("extensions"))
    console.print(f"[green]{count:,}[/green] tracked source files under {source_root}")


@main.command("init")
@project_dir_option
@click.option(
    "--format", "config_format",
    type=click.Choice(["json", "yaml"]),
    default="json",
    help="Config file format"
)
@click.option(
    "--force", is_flag=True,
    help="Rewrite an existing config file, filling in missing settings"
)
def init_command(project_dir: Optional[Path], config_format: str, force: bool) -> None:
    """Write a config file with the default settings."""
    project_dir = project_dir or Path.cwd()
    config_file = project_dir / f"build-progress.{config_format}"

    if config_file.exists() and not force:
        console.print(f"[yellow]{config_file} already exists.[/yellow] Use --force to overwrite.")
        sys.exit(1)

    config = Config(config_file=config_file, project_dir=project_dir)
    try:
        config.save()
    except OSError as e:
        console.print(f"[red]Error: could not write {config_file}: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print(f"[green]✓[/green] Wrote {config_file}")


@main.command("clear")
@project_dir_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def clear_command(project_dir: Optional[Path], yes: bool) -> None:
    """Remove the cached build totals."""
    cache = open_cache(project_dir)

    if not cache.cache_path.exists():
        console.print("[yellow]No build totals cached.[/yellow]")
        return

    if not yes and not Confirm.ask(f"Remove {cache.cache_path}?", console=console):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    if cache.clear():
        console.print("[green]✓[/green] Cache removed")
    else:
        console.print("[red]Error: could not remove cache file.[/red]")
        sys.exit(1)


@main.command("replay")
@click.argument("events", type=click.File("r"))
@project_dir_option
def replay_command(events: TextIO, project_dir: Optional[Path]) -> None:
    """Drive a progress bar from a build event log.

    EVENTS is a file (or - for stdin) with one event per line:

        transform <module-id>
        chunk [name]
        error <message>
        close

    A missing final close is implied.
    """
    plugin = ProgressPlugin(project_dir=project_dir, console=console)
    plugin.config("build")
    closed = False

    try:
        for line in events:
            event = parse_event(line)
            if event is None:
                continue

            verb, argument = event
            if verb == "transform":
                plugin.transform("", argument)
            elif verb == "chunk":
                plugin.render_chunk(chunk=argument or None)
            elif verb == "error":
                plugin.build_end(RuntimeError(argument or "build error"))
            elif verb == "close":
                closed = True
                break

    except click.BadParameter as e:
        plugin.bar.stop()
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        sys.exit(2)
    except KeyboardInterrupt:
        plugin.bar.stop()
        console.print("\n[yellow]Replay cancelled by user.[/yellow]")
        sys.exit(1)

    if not closed:
        logger.info("Event log ended without close, closing build")

    record = plugin.close_bundle()
    if record is None:
        sys.exit(1)

    console.print(
        f"[bold green]Build complete[/bold green] "
        f"({record.transform_count} transforms, {record.chunk_count} chunks)"
    )


if __name__ == "__main__":
    main()
