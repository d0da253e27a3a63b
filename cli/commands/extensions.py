"""Extensions CLI commands for siteext.

Manage locally installed site extensions.
"""

from typing import Optional

import typer

from cli.commands.base import command_errors, get_manager
from cli.siteext.output import (
    console,
    print_error,
    print_extension_detail,
    print_extensions,
    print_info,
    print_json,
    print_success,
)

extensions_app = typer.Typer(
    name="extensions",
    help="Manage locally installed site extensions.",
)


@extensions_app.command("list")
def list_extensions(
    ctx: typer.Context,
    filter: Optional[str] = typer.Argument(None, help="Text filter on id, title or description"),
    check_latest: bool = typer.Option(
        True,
        "--check-latest/--no-check-latest",
        help="Ask the feed whether each extension is up to date",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """List installed extensions.

    Examples:
        siteext extensions list
        siteext extensions list monaco --no-check-latest
    """
    manager = get_manager(ctx)

    with command_errors():
        installed = manager.get_local_extensions(filter, check_latest=check_latest)

    if as_json:
        print_json([ext.to_json_dict() for ext in installed])
        return

    if not installed:
        console.print("[yellow]No extensions installed[/yellow]")
        console.print("[dim]Install extensions with: siteext gallery install <id>[/dim]")
        return

    print_extensions(installed, title="Installed Extensions", installed=True)


@extensions_app.command("show")
def show(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Extension id"),
    check_latest: bool = typer.Option(
        True,
        "--check-latest/--no-check-latest",
        help="Ask the feed whether the extension is up to date",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Show details of an installed extension.

    Example:
        siteext extensions show MonacoExtension
    """
    manager = get_manager(ctx)

    with command_errors():
        ext = manager.get_local_extension(id, check_latest=check_latest)

    if not ext:
        print_error(f"Extension '{id}' is not installed")
        raise typer.Exit(1)

    if as_json:
        print_json(ext.to_json_dict())
        return

    print_extension_detail(ext)


@extensions_app.command("uninstall")
def uninstall(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Extension id to uninstall"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Uninstall an extension.

    Example:
        siteext extensions uninstall MonacoExtension
    """
    manager = get_manager(ctx)

    if not yes and not typer.confirm(f"Uninstall '{id}'?"):
        raise typer.Exit(0)

    with command_errors():
        removed = manager.uninstall_extension(id)

    if removed:
        print_success(f"Uninstalled {id}")
    else:
        print_error(f"Could not remove '{id}'; files may be in use")
        raise typer.Exit(1)


@extensions_app.command("path")
def path(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Extension id"),
) -> None:
    """Print the installation directory of an extension.

    Example:
        siteext extensions path MonacoExtension
    """
    manager = get_manager(ctx)

    with command_errors():
        directory = manager.get_installation_directory(id)

    console.print(str(directory))


@extensions_app.command("updates")
def updates(ctx: typer.Context) -> None:
    """List installed extensions with a newer version in the feed.

    Example:
        siteext extensions updates
    """
    manager = get_manager(ctx)

    with command_errors():
        available = manager.check_updates()

    if not available:
        print_success("All extensions are up to date")
        return

    for installed, latest in available:
        console.print(
            f"[cyan]{installed.id}[/cyan] {installed.version} → [green]{latest.version}[/green]"
        )
    print_info("Update with: siteext gallery install <id>")
