"""Directory-backed store of installed site extensions.

Each installed extension lives in ``<root>/<id>/`` next to a copy of its
original ``<id>.<version>.nupkg`` archive. The store only reads those
archives and directory metadata; it never touches installed content.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from siteextensions.fileutils import last_write_time
from siteextensions.package import (
    ARCHIVE_EXTENSION,
    Package,
    PackageArchive,
    PackageError,
    compare_versions,
)

logger = logging.getLogger(__name__)


class LocalStore:
    """Index of installed extensions under a root directory.

    Example:
        >>> store = LocalStore(Path.home() / "site" / "SiteExtensions")
        >>> [p.id for p in store.list_installed()]
        >>> store.find("MonacoExtension")
    """

    def __init__(self, root: Path | str):
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        """Base directory all extension directories live under."""
        return self._root

    def matching_directories(self, id: str) -> list[Path]:
        """Existing directories whose name equals the id, ignoring case."""
        if not self._root.is_dir():
            return []
        return sorted(
            d for d in self._root.iterdir() if d.is_dir() and d.name.lower() == id.lower()
        )

    def directory_for(self, id: str) -> Path:
        """Directory holding an extension, matching the id case-insensitively.

        Falls back to ``<root>/<id>`` when nothing is installed yet.
        """
        existing = self.matching_directories(id)
        return existing[0] if existing else self._root / id

    def _read_directory(self, ext_dir: Path) -> list[Package]:
        packages: list[Package] = []
        for archive_path in sorted(ext_dir.glob(f"*.{ARCHIVE_EXTENSION}")):
            try:
                archive = PackageArchive(archive_path.read_bytes())
                package = archive.read_manifest()
            except (OSError, PackageError) as e:
                logger.warning("Skipping unreadable package %s: %s", archive_path, e)
                continue
            # Only the directory named after the id counts as an installation
            if package.id.lower() != ext_dir.name.lower():
                logger.debug(
                    "Ignoring %s: id %s does not match its directory",
                    archive_path,
                    package.id,
                )
                continue
            packages.append(package)
        return packages

    def list_installed(self, filter: str | None = None) -> list[Package]:
        """List installed packages, optionally filtered by text.

        Args:
            filter: Case-insensitive text matched against id, title,
                description and authors.

        Returns:
            Installed packages ordered by id.
        """
        if not self._root.is_dir():
            return []

        installed: list[Package] = []
        for ext_dir in self._root.iterdir():
            if not ext_dir.is_dir():
                continue
            installed.extend(self._read_directory(ext_dir))

        if filter:
            installed = [p for p in installed if p.matches(filter)]

        return sorted(installed, key=lambda p: (p.id.lower(), p.version))

    def find(self, id: str) -> Package | None:
        """Find an installed package by id (case-insensitive).

        When more than one archive exists for the id, the highest version wins.
        """
        if not id:
            return None

        matches: list[Package] = []
        for ext_dir in self.matching_directories(id):
            matches.extend(self._read_directory(ext_dir))

        if not matches:
            return None

        best = matches[0]
        for package in matches[1:]:
            if compare_versions(package.version, best.version) > 0:
                best = package
        return best

    def last_modified(self, id: str) -> datetime | None:
        """Last write time (UTC) of an extension's directory."""
        return last_write_time(self.directory_for(id))
