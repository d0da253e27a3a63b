"""Site extension package manager.

This module discovers, installs and removes site extensions: optional
add-on packages for a hosted site, published as ``.nupkg`` archives in a
NuGet v2 style feed.

Components:
- catalog: read-only client for the remote feed
- local_store: index of installed extensions on disk
- installer: clean install with rollback, and uninstall
- manager: the public operations combining the three

Extensions are installed under ~/site/SiteExtensions/<id>/ by default.
"""

from siteextensions.catalog import CatalogUnavailableError, RemoteCatalog
from siteextensions.installer import ExtensionInstaller, InstallError, InstallResult
from siteextensions.local_store import LocalStore
from siteextensions.manager import (
    ExtensionManager,
    InvalidExtensionIdError,
    validate_extension_id,
)
from siteextensions.package import Package, PackageArchive, PackageError

__all__ = [
    "CatalogUnavailableError",
    "ExtensionInstaller",
    "ExtensionManager",
    "InstallError",
    "InstallResult",
    "InvalidExtensionIdError",
    "LocalStore",
    "Package",
    "PackageArchive",
    "PackageError",
    "RemoteCatalog",
    "validate_extension_id",
]
