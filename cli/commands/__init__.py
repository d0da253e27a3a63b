"""CLI command modules for siteext."""

from cli.commands.extensions import extensions_app
from cli.commands.gallery import gallery_app

__all__ = ["extensions_app", "gallery_app"]
