"""Shared helpers for siteext commands."""

import copy
from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from cli.siteext.output import print_error


def build_manager(root: Optional[str] = None, feed: Optional[str] = None):
    """Create an extension manager from config, with CLI overrides."""
    from siteextensions import ExtensionManager
    from siteextensions.config import get_config

    config = copy.deepcopy(get_config())
    if root:
        config.extensions.root_dir = root
    if feed:
        config.extensions.feed_url = feed
    return ExtensionManager.from_config(config)


def get_manager(ctx: typer.Context):
    """Get the extension manager for the current invocation."""
    options = ctx.obj or {}
    return build_manager(options.get("root"), options.get("feed"))


@contextmanager
def command_errors() -> Iterator[None]:
    """Turn expected manager errors into a message and exit code 1."""
    from siteextensions import CatalogUnavailableError, InvalidExtensionIdError

    try:
        yield
    except InvalidExtensionIdError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except CatalogUnavailableError as e:
        print_error(f"Extension feed unavailable: {e}")
        raise typer.Exit(1)
