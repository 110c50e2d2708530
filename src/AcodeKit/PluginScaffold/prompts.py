"""Interactive collection of plugin metadata.

Validation lives in small pure functions that raise :class:`ValueError` with
the message shown to the user; the ``collect_*`` helpers wrap them in Rich
prompts that re-ask until the answer is acceptable.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from .manifests import PluginAuthor, PluginMetadata
from .templates import DEFAULT_TEMPLATE, TEMPLATES, TemplateSpec, get_template

__all__ = [
    "LICENSE_CHOICES",
    "validate_plugin_name",
    "validate_plugin_id",
    "validate_version",
    "validate_author_name",
    "validate_email",
    "default_plugin_id",
    "parse_csv_list",
    "collect_metadata",
    "choose_template",
]

LICENSE_CHOICES = ["MIT", "Apache-2.0", "GPL-3.0", "BSD-3-Clause", "ISC", "Custom"]
DEFAULT_MIN_VERSION_CODE = 292


def validate_plugin_name(value: str) -> str:
    if not value.strip():
        raise ValueError("Plugin name cannot be empty")
    return value.strip()


def validate_plugin_id(value: str) -> str:
    if not value.strip():
        raise ValueError("Plugin ID cannot be empty")
    if "." not in value:
        raise ValueError(
            "Plugin ID should follow reverse domain notation (e.g., com.example.plugin)"
        )
    return value.strip()


def validate_version(value: str) -> str:
    if not value.strip():
        raise ValueError("Version cannot be empty")
    return value.strip()


def validate_author_name(value: str) -> str:
    if not value.strip():
        raise ValueError("Author name cannot be empty")
    return value.strip()


def validate_email(value: str) -> str:
    """Accept an empty answer or anything that looks like an address."""

    if value.strip() and "@" not in value:
        raise ValueError("Please enter a valid email address")
    return value.strip()


def default_plugin_id(name: str) -> str:
    """Derive ``com.<n>.<n>`` from the plugin name."""

    compact = name.replace("-", "").replace("_", "").replace(" ", "").lower()
    return f"com.{compact}.{compact}"


def parse_csv_list(text: str) -> List[str]:
    return [item.strip() for item in text.split(",") if item.strip()]


def _ask_text(
    console: Console,
    label: str,
    *,
    default: Optional[str] = None,
    validator: Optional[Callable[[str], str]] = None,
) -> str:
    while True:
        if default is None:
            answer = Prompt.ask(label, console=console, default="", show_default=False)
        else:
            answer = Prompt.ask(label, console=console, default=default)
        if validator is None:
            return answer.strip()
        try:
            return validator(answer)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")


def _ask_count(console: Console, label: str, *, default: int) -> int:
    while True:
        value = IntPrompt.ask(label, console=console, default=default)
        if value >= 0:
            return value
        console.print("[red]Please enter a number greater than or equal to 0[/red]")


def collect_metadata(console: Optional[Console] = None) -> PluginMetadata:
    """Prompt for every manifest field and return the validated metadata."""

    console = console or Console()
    console.print("[bold yellow]Let's gather some information about your plugin:[/bold yellow]")
    console.print()

    name = _ask_text(console, "Plugin name", validator=validate_plugin_name)
    plugin_id = _ask_text(
        console, "Plugin ID", default=default_plugin_id(name), validator=validate_plugin_id
    )
    version = _ask_text(console, "Version", default="1.0.0", validator=validate_version)
    description = _ask_text(console, "Description")
    repository = _ask_text(console, "Repository")

    console.print()
    console.print("[bold bright_cyan]Author Information:[/bold bright_cyan]")
    author = PluginAuthor(
        name=_ask_text(console, "Author name", validator=validate_author_name),
        email=_ask_text(console, "Author email", validator=validate_email),
        url=_ask_text(console, "Author website"),
        github=_ask_text(console, "GitHub username"),
    )

    console.print("[bold bright_cyan]Plugin Configuration:[/bold bright_cyan]")
    license_name = Prompt.ask(
        "License", console=console, choices=LICENSE_CHOICES, default=LICENSE_CHOICES[0]
    )
    price = _ask_count(console, "Price (0 for free)", default=0)
    min_version_code = _ask_count(
        console, "Minimum Acode version code", default=DEFAULT_MIN_VERSION_CODE
    )
    keywords = parse_csv_list(_ask_text(console, "Keywords (comma-separated)"))

    files: List[str] = []
    if Confirm.ask("Add additional files to include?", console=console, default=False):
        files = parse_csv_list(_ask_text(console, "Additional files (comma-separated)"))

    return PluginMetadata(
        name=name,
        plugin_id=plugin_id,
        version=version,
        description=description,
        repository=repository,
        author=author,
        license=license_name,
        price=price,
        min_version_code=min_version_code,
        keywords=keywords,
        files=files,
    )


def choose_template(console: Optional[Console] = None) -> TemplateSpec:
    """Ask which official template to start from."""

    console = console or Console()
    console.print("[bold yellow]Choose your preferred template:[/bold yellow]")
    labels = [spec.label for spec in TEMPLATES.values()]
    answer = Prompt.ask(
        "Programming Language",
        console=console,
        choices=labels,
        default=TEMPLATES[DEFAULT_TEMPLATE].label,
    )
    return get_template(answer)
