"""Gallery CLI commands for siteext.

Browse, search, and install extensions from the remote feed.
"""

from typing import Optional

import typer

from cli.commands.base import command_errors, get_manager
from cli.siteext.output import (
    console,
    print_error,
    print_extension_detail,
    print_extensions,
    print_json,
    print_success,
)

gallery_app = typer.Typer(
    name="gallery",
    help="Browse and install extensions from the extension feed.",
)


@gallery_app.command("list")
def list_remote(
    ctx: typer.Context,
    filter: Optional[str] = typer.Argument(None, help="Search terms"),
    prerelease: bool = typer.Option(
        False,
        "--prerelease",
        help="Include pre-release versions",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """List or search extensions in the feed.

    Examples:
        siteext gallery list
        siteext gallery list monaco --prerelease
    """
    manager = get_manager(ctx)

    with command_errors():
        results = manager.get_remote_extensions(filter, allow_prerelease=prerelease)

    if as_json:
        print_json([ext.to_json_dict() for ext in results])
        return

    if not results:
        suffix = f" for: {filter}" if filter else ""
        console.print(f"[yellow]No extensions found{suffix}[/yellow]")
        return

    print_extensions(results, title="Available Extensions")


@gallery_app.command("show")
def show(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Extension id"),
    version: Optional[str] = typer.Option(
        None,
        "--version",
        "-v",
        help="Specific version (default: latest stable)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Show details of an extension in the feed.

    Example:
        siteext gallery show MonacoExtension
    """
    manager = get_manager(ctx)

    with command_errors():
        ext = manager.get_remote_extension(id, version)

    if not ext:
        print_error(f"Extension '{id}' not found in the feed")
        raise typer.Exit(1)

    if as_json:
        print_json(ext.to_json_dict())
        return

    print_extension_detail(ext)
    console.print(f"\n[dim]Install with: siteext gallery install {ext.id}[/dim]")


@gallery_app.command("install")
def install(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Extension id to install"),
) -> None:
    """Install the latest version of an extension.

    An existing installation of the same id is replaced.

    Example:
        siteext gallery install MonacoExtension
    """
    manager = get_manager(ctx)

    console.print(f"Installing {id}...")
    with command_errors():
        ext = manager.install_extension(id)

    if not ext:
        print_error(f"Installation of '{id}' failed or it was not found in the feed")
        raise typer.Exit(1)

    print_success(f"Installed {ext.id} v{ext.version}")
    console.print(f"[dim]Path: {ext.local_path}[/dim]")
