"""Site extension manager.

Public entry point: combines the remote catalog, the local store and the
installer into list/get/install/uninstall operations.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from schemas.extension_info import ExtensionInfo
from siteextensions.catalog import CatalogUnavailableError, RemoteCatalog
from siteextensions.config import Config
from siteextensions.installer import ExtensionInstaller
from siteextensions.local_store import LocalStore
from siteextensions.package import Package, compare_versions, versions_equal

logger = logging.getLogger(__name__)

MAX_ID_LENGTH = 100
_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class InvalidExtensionIdError(ValueError):
    """Raised when an extension id cannot be used as a directory name."""

    pass


def validate_extension_id(id: str) -> str:
    """Check an extension id is safe to join onto the installation root.

    Allowed: letters, digits, ``.``, ``_`` and ``-``, starting with a letter
    or digit, no ``..`` sequence.

    Raises:
        InvalidExtensionIdError: If the id is not allowed.
    """
    if len(id) > MAX_ID_LENGTH:
        raise InvalidExtensionIdError(
            f"Extension id is longer than {MAX_ID_LENGTH} characters"
        )
    if not _ID_RE.match(id) or ".." in id:
        raise InvalidExtensionIdError(
            f"Invalid extension id: {id!r}. "
            "Use only letters, numbers, dots, hyphens, and underscores."
        )
    return id


def package_to_info(package: Package) -> ExtensionInfo:
    """Convert feed or manifest metadata into an ExtensionInfo."""
    return ExtensionInfo(
        id=package.id,
        version=package.version,
        title=package.title,
        description=package.description,
        authors=list(package.authors),
        project_url=package.project_url,
        icon_url=package.icon_url,
        license_url=package.license_url,
        published_at=package.published,
        is_latest_version=package.is_latest_version,
        download_count=package.download_count,
    )


class ExtensionManager:
    """Install, remove and query site extensions.

    Example:
        >>> manager = ExtensionManager.from_config(get_config())
        >>> manager.get_remote_extensions("monaco")
        >>> manager.install_extension("MonacoExtension")
        >>> manager.uninstall_extension("MonacoExtension")
    """

    def __init__(
        self,
        catalog: RemoteCatalog,
        store: LocalStore,
        installer: ExtensionInstaller | None = None,
    ):
        """Initialize the manager.

        Args:
            catalog: Remote feed client.
            store: Local store of installed extensions.
            installer: Installer; a default one is created if omitted.
        """
        self.catalog = catalog
        self.store = store
        self.installer = installer or ExtensionInstaller()

    @classmethod
    def from_config(cls, config: Config) -> ExtensionManager:
        """Build a manager and its collaborators from configuration."""
        catalog = RemoteCatalog(
            feed_url=config.extensions.feed_url,
            timeout=config.feed.timeout,
            page_size=config.feed.page_size,
            max_pages=config.feed.max_pages,
        )
        store = LocalStore(config.root_path)
        installer = ExtensionInstaller(
            retries=config.io.retry_attempts,
            retry_delay=config.io.retry_delay,
        )
        return cls(catalog, store, installer)

    # Remote queries

    def get_remote_extensions(
        self, filter: str | None = None, allow_prerelease: bool = False
    ) -> list[ExtensionInfo]:
        """List the latest version of each extension in the catalog.

        Args:
            filter: Search terms; without one, everything is listed by
                descending download count.
            allow_prerelease: Include pre-release versions in search results.
        """
        if filter:
            packages = self.catalog.search(filter, allow_prerelease)
        else:
            packages = self.catalog.list_latest()
        return [package_to_info(p) for p in packages]

    def get_remote_extension(
        self, id: str | None, version: str | None = None
    ) -> ExtensionInfo | None:
        if not id:
            return None
        package = self.catalog.find(id, version)
        return package_to_info(package) if package else None

    # Local queries

    def get_local_extensions(
        self, filter: str | None = None, check_latest: bool = True
    ) -> list[ExtensionInfo]:
        """List installed extensions.

        Args:
            filter: Text filter on id, title, description and authors.
            check_latest: Ask the catalog whether each one is up to date.
        """
        return [
            self._local_info(package, check_latest)
            for package in self.store.list_installed(filter)
        ]

    def get_local_extension(
        self, id: str | None, check_latest: bool = True
    ) -> ExtensionInfo | None:
        if not id:
            return None
        validate_extension_id(id)
        package = self.store.find(id)
        if package is None:
            return None
        return self._local_info(package, check_latest)

    def _local_info(self, package: Package, check_latest: bool) -> ExtensionInfo:
        """Build the info for an installed package, then optionally enrich it."""
        local_path = self.store.directory_for(package.id)
        info = package_to_info(package).model_copy(
            update={
                "local_path": str(local_path),
                "installed_at": self.store.last_modified(package.id),
                "is_latest_version": False,
            }
        )
        if check_latest:
            info = self._enrich_latest(info)
        return info

    def _enrich_latest(self, info: ExtensionInfo) -> ExtensionInfo:
        """Compare an installed version against the catalog's latest.

        Catalog problems degrade to ``is_latest_version=False``.
        """
        try:
            latest = self.catalog.find(info.id)
        except CatalogUnavailableError as e:
            logger.warning("Could not check latest version of %s: %s", info.id, e)
            return info.model_copy(update={"is_latest_version": False})

        if latest is None:
            logger.warning("Extension %s is no longer in the catalog", info.id)
            return info.model_copy(update={"is_latest_version": False})

        return info.model_copy(
            update={"is_latest_version": versions_equal(info.version, latest.version)}
        )

    def check_updates(self) -> list[tuple[ExtensionInfo, ExtensionInfo]]:
        """Find installed extensions with a newer version in the catalog.

        Returns:
            List of (installed, latest) pairs where an update is available.
        """
        updates: list[tuple[ExtensionInfo, ExtensionInfo]] = []

        for installed in self.get_local_extensions(check_latest=False):
            try:
                latest = self.catalog.find(installed.id)
            except CatalogUnavailableError as e:
                logger.warning("Skipping update check for %s: %s", installed.id, e)
                continue
            if latest and compare_versions(latest.version, installed.version) > 0:
                updates.append((installed, package_to_info(latest)))

        return updates

    # Commands

    def get_installation_directory(self, id: str | None) -> Path | None:
        """Directory an extension is (or would be) installed into.

        Raises:
            InvalidExtensionIdError: If the id could escape the root.
        """
        if not id:
            return None
        return self._directory_for(id)

    def _directory_for(self, id: str) -> Path:
        """Validate an id and resolve its directory, ignoring case."""
        return self.store.directory_for(validate_extension_id(id))

    def install_extension(self, id: str | ExtensionInfo | None) -> ExtensionInfo | None:
        """Install the latest version of an extension from the catalog.

        Args:
            id: Extension id, or an ExtensionInfo whose id is used.

        Returns:
            Info on the installed extension, or None if it was not found or
            the install failed.

        Raises:
            InvalidExtensionIdError: If the id is not allowed.
            CatalogUnavailableError: If the catalog cannot provide the package.
        """
        if isinstance(id, ExtensionInfo):
            id = id.id
        if not id:
            return None

        target_dir = self._directory_for(id)

        package = self.catalog.find(id)
        if package is None:
            logger.info("Extension %s not found in the catalog", id)
            return None

        package = self.catalog.download(package)
        result = self.installer.install(package, target_dir)
        if not result:
            if result.cleanup_failed:
                logger.error(
                    "Install of %s left %s behind; remove it manually", id, target_dir
                )
            return None

        # Leftover installs of the same id under another case
        for stale in self.store.matching_directories(id):
            if stale != target_dir and not self.installer.uninstall(stale):
                logger.warning("Could not remove stale directory %s", stale)

        return package_to_info(package).model_copy(
            update={
                "local_path": str(target_dir),
                "installed_at": self.store.last_modified(id),
            }
        )

    def uninstall_extension(self, id: str | None) -> bool:
        """Remove an installed extension.

        Every directory matching the id, ignoring case, is removed.

        Returns:
            True if no directory for the extension exists afterwards.
        """
        if not id:
            return True
        validate_extension_id(id)
        directories = self.store.matching_directories(id)
        return all([self.installer.uninstall(d) for d in directories])
