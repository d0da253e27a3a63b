"""Rich console output utilities for the siteext CLI."""

from typing import Any

from rich.console import Console
from rich.table import Table

from schemas.extension_info import ExtensionInfo

console = Console()
error_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_json(data: Any) -> None:
    """Print formatted JSON."""
    import json

    console.print_json(json.dumps(data, indent=2, default=str))


def print_key_value(key: str, value: Any, key_style: str = "bold") -> None:
    """Print a key-value pair."""
    console.print(f"[{key_style}]{key}:[/{key_style}] {value}")


def print_config(config: dict[str, Any]) -> None:
    """Print configuration as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")

    for key, value in sorted(config.items()):
        table.add_row(key, str(value))

    console.print(table)


def print_extensions(extensions: list[ExtensionInfo], title: str, installed: bool = False) -> None:
    """Print extensions as a table."""
    table = Table(title=title)
    table.add_column("Id", style="cyan")
    table.add_column("Version")
    table.add_column("Title")
    if installed:
        table.add_column("Latest", justify="center")
        table.add_column("Installed")
    else:
        table.add_column("Downloads", justify="right")
        table.add_column("Authors")

    for ext in extensions:
        if installed:
            latest = "[green]yes[/green]" if ext.is_latest_version else "[yellow]no[/yellow]"
            when = ext.installed_at.strftime("%Y-%m-%d %H:%M") if ext.installed_at else "-"
            table.add_row(ext.id, ext.version, ext.title or "-", latest, when)
        else:
            table.add_row(
                ext.id,
                ext.version,
                ext.title or "-",
                f"{ext.download_count:,}",
                ", ".join(ext.authors) or "-",
            )

    console.print(table)
    console.print(f"\n[dim]Total: {len(extensions)} extensions[/dim]")


def print_extension_detail(ext: ExtensionInfo) -> None:
    """Print full details of one extension."""
    console.print(f"\n[bold cyan]{ext.title or ext.id}[/bold cyan] v{ext.version}")
    if ext.authors:
        console.print(f"[dim]by {', '.join(ext.authors)}[/dim]\n")

    if ext.description:
        console.print(f"{ext.description}\n")

    print_key_value("  Id", ext.id)
    print_key_value("  Latest version", "yes" if ext.is_latest_version else "no")
    if ext.download_count:
        print_key_value("  Downloads", f"{ext.download_count:,}")
    if ext.published_at:
        print_key_value("  Published", ext.published_at.isoformat())
    for label, url in (
        ("  Project", ext.project_url),
        ("  License", ext.license_url),
        ("  Icon", ext.icon_url),
    ):
        if url:
            print_key_value(label, url)

    if ext.is_installed:
        console.print("\n[bold]Installation[/bold]")
        print_key_value("  Path", ext.local_path)
        print_key_value("  Installed", ext.installed_at.isoformat() if ext.installed_at else "-")
