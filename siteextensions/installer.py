"""Extension installer.

Materializes a package into its installation directory. An install is always
a clean reinstall, and any failure removes the whole directory again so no
partial installation is left behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from siteextensions.fileutils import (
    DEFAULT_DELAY,
    DEFAULT_RETRIES,
    attempt,
    delete_directory,
    delete_directory_safe,
    write_file,
)
from siteextensions.package import CONTENT_ROOT, Package
from siteextensions.xdt import XDT_FILE_NAME, render_default_xdt

logger = logging.getLogger(__name__)


class InstallError(Exception):
    """Raised when extension installation fails."""

    pass


@dataclass(frozen=True)
class InstallResult:
    """Outcome of a single install.

    Attributes:
        success: Whether the extension is installed.
        package_id: Id of the package that was installed.
        directory: Target installation directory.
        reason: Root cause of a failure.
        cleanup_failed: The failed install could not be rolled back and the
            directory needs manual removal.
    """

    success: bool
    package_id: str
    directory: Path
    reason: str | None = None
    cleanup_failed: bool = False

    @classmethod
    def ok(cls, package_id: str, directory: Path) -> InstallResult:
        return cls(success=True, package_id=package_id, directory=directory)

    @classmethod
    def failed(
        cls,
        package_id: str,
        directory: Path,
        reason: str,
        cleanup_failed: bool = False,
    ) -> InstallResult:
        return cls(
            success=False,
            package_id=package_id,
            directory=directory,
            reason=reason,
            cleanup_failed=cleanup_failed,
        )

    def __bool__(self) -> bool:
        return self.success


class _RollbackGuard:
    """Removes the target directory if the guarded block raises."""

    def __init__(self, directory: Path, retries: int, delay: float):
        self.directory = directory
        self.retries = retries
        self.delay = delay
        self.cleanup_failed = False

    def __enter__(self) -> _RollbackGuard:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            return False

        if not delete_directory_safe(self.directory, self.retries, self.delay):
            self.cleanup_failed = True
            logger.error(
                "Rollback could not remove %s; remove it manually", self.directory
            )
        return False


def _relative_content_path(path: str) -> PurePosixPath:
    """Strip the content root and check the path stays inside the target.

    Raises:
        InstallError: If the path is absolute or climbs out of the target.
    """
    relative = PurePosixPath(path[len(CONTENT_ROOT):])
    if relative.is_absolute() or ".." in relative.parts or ":" in path:
        raise InstallError(f"Unsafe path in package: {path}")
    return relative


class ExtensionInstaller:
    """Install and remove extensions on disk.

    Example:
        >>> installer = ExtensionInstaller()
        >>> result = installer.install(package, Path("/site/SiteExtensions/foo"))
        >>> installer.uninstall(Path("/site/SiteExtensions/foo"))
    """

    def __init__(
        self,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = DEFAULT_DELAY,
    ):
        """Initialize the installer.

        Args:
            retries: Tries per file operation before giving up.
            retry_delay: Seconds between tries.
        """
        self.retries = retries
        self.retry_delay = retry_delay

    def install(self, package: Package, target_dir: Path) -> InstallResult:
        """Install a package into a directory.

        Args:
            package: Package with its archive downloaded.
            target_dir: Installation directory; replaced if it exists.

        Returns:
            The install outcome. Errors never propagate.
        """
        guard = _RollbackGuard(target_dir, self.retries, self.retry_delay)
        try:
            with guard:
                self._install_files(package, target_dir)
        except Exception as e:
            logger.exception("Failed to install %s into %s", package.id, target_dir)
            return InstallResult.failed(
                package.id, target_dir, str(e) or type(e).__name__, guard.cleanup_failed
            )

        logger.info("Installed %s %s into %s", package.id, package.version, target_dir)
        return InstallResult.ok(package.id, target_dir)

    def _install_files(self, package: Package, target_dir: Path) -> None:
        if package.archive is None:
            raise InstallError(f"Package {package.id} has no archive to install")

        if target_dir.exists():
            attempt(
                lambda: delete_directory(target_dir),
                retries=self.retries,
                delay=self.retry_delay,
            )
        target_dir.mkdir(parents=True, exist_ok=True)

        for package_file in package.archive.content_files():
            relative = _relative_content_path(package_file.path)
            if not relative.parts:
                continue
            with package_file.open() as stream:
                data = stream.read()
            write_file(
                target_dir.joinpath(*relative.parts),
                data,
                retries=self.retries,
                delay=self.retry_delay,
            )

        # The host picks the transform up from the extension root
        xdt_path = target_dir / XDT_FILE_NAME
        if not xdt_path.exists():
            write_file(
                xdt_path,
                render_default_xdt(package.id),
                retries=self.retries,
                delay=self.retry_delay,
            )

        write_file(
            target_dir / package.archive_file_name,
            package.archive.data,
            retries=self.retries,
            delay=self.retry_delay,
        )

    def uninstall(self, target_dir: Path) -> bool:
        """Remove an installation directory.

        Returns:
            True if the directory does not exist afterwards.
        """
        removed = delete_directory_safe(target_dir, self.retries, self.retry_delay)
        if removed:
            logger.info("Removed %s", target_dir)
        return removed
