"""siteext CLI.

Main command-line interface for managing site extensions.
"""

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from cli.siteext.output import (
    console,
    print_config,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    name="siteext",
    help="siteext - install and manage site extensions",
    no_args_is_help=True,
)

# Config sub-app
config_app = typer.Typer(
    name="config",
    help="Manage configuration settings.",
)
app.add_typer(config_app, name="config")

# Register extension sub-apps
from cli.commands.extensions import extensions_app
from cli.commands.gallery import gallery_app

app.add_typer(extensions_app, name="extensions")
app.add_typer(gallery_app, name="gallery")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    root: Optional[str] = typer.Option(
        None,
        "--root",
        help="Extensions root directory (overrides config)",
    ),
    feed: Optional[str] = typer.Option(
        None,
        "--feed",
        help="Extension feed URL (overrides config)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level: DEBUG|INFO|WARNING|ERROR",
    ),
) -> None:
    """Install and manage site extensions."""
    from siteextensions.config import get_config

    _configure_logging(log_level or get_config().logging.level)
    ctx.obj = {"root": root, "feed": feed}


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration.

    Example:
        siteext config show
    """
    from siteextensions.config import find_config_file, get_config

    config_file = find_config_file()
    if config_file:
        print_info(f"Config file: {config_file}")
    else:
        print_info("No config.toml found, using defaults")

    flat = {
        f"{section}.{key}": value
        for section, values in asdict(get_config()).items()
        for key, value in values.items()
    }
    print_config(flat)


@config_app.command("init")
def config_init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing config",
    ),
) -> None:
    """Create a default config.toml in the current directory.

    Example:
        siteext config init
        siteext config init --force
    """
    config_path = Path.cwd() / "config.toml"

    if config_path.exists() and not force:
        print_warning(f"Config file already exists: {config_path}")
        print_info("Use --force to overwrite")
        raise typer.Exit(1)

    default_config = '''# siteext configuration
# Auto-generated by 'siteext config init'

[extensions]
root_dir = "~/site/SiteExtensions"
feed_url = "http://siteextensions.azurewebsites.net/api/v2/"

[feed]
timeout = 30.0
page_size = 100
max_pages = 10

[io]
retry_attempts = 3
retry_delay = 0.25

[logging]
level = "INFO"
'''

    config_path.write_text(default_config)
    print_success(f"Created config file: {config_path}")


@app.command()
def version() -> None:
    """Show siteext version."""
    from cli.siteext import __version__

    console.print(f"siteext v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
