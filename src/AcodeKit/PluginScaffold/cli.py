# === NAVMAP v1 ===
# {
#   "module": "AcodeKit.PluginScaffold.cli",
#   "purpose": "Typer CLI that collects plugin metadata and scaffolds a project from an official template",
#   "sections": [
#     {"id": "context", "name": "CLI Context", "anchor": "CTX", "kind": "class"},
#     {"id": "output", "name": "Console Output Helpers", "anchor": "OUT", "kind": "helpers"},
#     {"id": "commands", "name": "CLI Commands", "anchor": "CMDS", "kind": "commands"}
#   ]
# }
# === /NAVMAP ===

"""Main Typer CLI app for the Acode plugin scaffolder.

Example:
    $ acode-plugin create
    $ acode-plugin create my-plugin --template ts
    $ acode-plugin templates
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .errors import ScaffoldError, UserConfigError
from .logging_utils import setup_logging
from .manifests import write_manifest
from .pipeline import ensure_fresh_destination, prepare_project_directory
from .prompts import choose_template, collect_metadata
from .settings import ScaffoldConfiguration, load_config
from .templates import TEMPLATES, get_template, template_choices

DOCS_URL = "https://docs.acode.app/docs/getting-started/intro"
MARKETPLACE_URL = "https://acode.app/plugins"

_console = Console()
logger = logging.getLogger("AcodeKit.PluginScaffold.cli")


class CliContext:
    """Shared state for one CLI invocation: settings and the console printer."""

    def __init__(self, settings: ScaffoldConfiguration, console: Console) -> None:
        self.settings = settings
        self.console = console


app = typer.Typer(
    name="acode-plugin",
    help="Create an Acode plugin from the official JavaScript or TypeScript templates",
    no_args_is_help=True,
)

_context: Optional[CliContext] = None


def get_context() -> CliContext:
    """Return the current CLI context, building a default one when the callback was skipped."""

    global _context
    if _context is None:
        _context = CliContext(settings=load_config(None), console=_console)
    return _context


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"acode-plugin {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="ACODE_KIT_CONFIG",
        help="Path to a YAML configuration file",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level for the JSON log file (DEBUG, INFO, WARNING, ERROR)"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Acode plugin scaffolder."""

    global _context
    try:
        settings = load_config(config)
        if log_level is not None:
            settings.logging.level = log_level
    except (UserConfigError, ValueError) as exc:
        _console.print(f"[red]Configuration error: {exc}[/red]")
        raise typer.Exit(2)

    setup_logging(
        level=settings.logging.level,
        max_log_size_mb=settings.logging.max_log_size_mb,
        backup_count=settings.logging.backup_count,
        log_dir=settings.logging.log_dir,
    )
    _context = CliContext(settings=settings, console=_console)


# --- Console output helpers ------------------------------------------------------


def _print_banner(console: Console) -> None:
    console.print()
    console.print("[cyan]╔════════════════════════════╗[/cyan]")
    console.print("[cyan]║    ACODE PLUGIN CREATOR    ║[/cyan]")
    console.print("[cyan]╚════════════════════════════╝[/cyan]")
    console.print()
    console.print("[bold bright_blue]Welcome to the Acode Plugin Creator![/bold bright_blue]")
    console.print("This tool will help you create a new Acode plugin from official templates.")
    console.print()


def _print_success(console: Console, name: str, project_dir: Path) -> None:
    console.print()
    console.print("[bold bright_green]SUCCESS![/bold bright_green]")
    console.print()
    console.print(f"[bold bright_green]Plugin '{name}' created successfully![/bold bright_green]")
    console.print("[bold]Next steps:[/bold]")
    console.print("  1. [bright_cyan]cd[/bright_cyan] Navigate to your plugin directory")
    console.print(f"     [dim]cd {project_dir}[/dim]")
    console.print("  2. [bright_cyan]npm[/bright_cyan] Install dependencies")
    console.print("     [dim]npm install[/dim]")
    console.print("  3. Start developing your plugin!")
    console.print()
    console.print("[bold]Useful resources:[/bold]")
    console.print(f"  • Acode Plugin Documentation: {DOCS_URL}")
    console.print(f"  • Plugin Marketplace: {MARKETPLACE_URL}")
    console.print()


def _report_failure(console: Console, exc: ScaffoldError) -> None:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    if exc.partial_path is not None:
        console.print(
            f"[yellow]{exc.partial_path} may be left in an inconsistent state; "
            "inspect or remove it before retrying.[/yellow]"
        )


# --- CLI commands ----------------------------------------------------------------


@app.command()
def create(
    directory: Optional[Path] = typer.Argument(
        None, help="Target directory (defaults to the plugin name)"
    ),
    template: Optional[str] = typer.Option(
        None, "--template", "-t", help=f"Template to use: {', '.join(template_choices())}"
    ),
    in_place: bool = typer.Option(
        False, "--in-place", help="Extract straight into the target instead of a staging directory"
    ),
) -> None:
    """Create a new plugin project interactively."""

    ctx = get_context()
    console = ctx.console
    settings = ctx.settings.model_copy(deep=True)
    if in_place:
        settings.extraction.staged_extraction = False

    try:
        spec = get_template(template) if template else None
        if directory is not None:
            ensure_fresh_destination(directory)

        _print_banner(console)
        metadata = collect_metadata(console)
        if spec is None:
            spec = choose_template(console)
        destination = directory if directory is not None else Path(metadata.name)
        ensure_fresh_destination(destination)

        console.print()
        with console.status(f"Fetching {spec.language} template and setting up your plugin..."):
            project = prepare_project_directory(spec, destination, config=settings)
        with console.status("Configuring plugin.json..."):
            write_manifest(project.path, metadata)
    except ScaffoldError as exc:
        logger.error("scaffold failed", exc_info=True, extra={"stage": "cli"})
        _report_failure(console, exc)
        raise typer.Exit(1)
    except (KeyboardInterrupt, EOFError):
        console.print()
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(130)

    _print_success(console, metadata.name, project.path)


@app.command("templates")
def list_templates() -> None:
    """List the available plugin templates."""

    ctx = get_context()
    table = Table(title="Acode plugin templates")
    table.add_column("Key")
    table.add_column("Language")
    table.add_column("Archive URL")
    table.add_column("Wrapper directory")
    for spec in TEMPLATES.values():
        key = spec.key if not spec.aliases else f"{spec.key} ({', '.join(spec.aliases)})"
        table.add_row(key, spec.language, spec.url, spec.wrapper_dir)
    ctx.console.print(table)


@app.command("version")
def version_cmd() -> None:
    """Show version information."""

    get_context().console.print(f"[bold]acode-plugin[/bold] version {__version__}")


__all__ = ["app", "CliContext", "get_context", "main", "create", "list_templates"]
