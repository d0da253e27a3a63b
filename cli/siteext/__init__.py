"""siteext CLI.

Command-line interface for the site extension manager. The typer app lives
in ``cli.siteext.cli``.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
