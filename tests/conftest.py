"""
Pytest configuration and shared fixtures for siteext tests.
"""

import sys
from pathlib import Path

import pytest

# Make the project packages importable without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from siteextensions.installer import ExtensionInstaller  # noqa: E402
from siteextensions.local_store import LocalStore  # noqa: E402
from siteextensions.manager import ExtensionManager  # noqa: E402
from tests.mocks import FakeCatalog  # noqa: E402


@pytest.fixture
def extensions_root(tmp_path: Path) -> Path:
    """Installation root for extensions."""
    root = tmp_path / "SiteExtensions"
    root.mkdir()
    return root


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def installer() -> ExtensionInstaller:
    """Installer without retry delays."""
    return ExtensionInstaller(retries=2, retry_delay=0)


@pytest.fixture
def manager(catalog: FakeCatalog, extensions_root: Path, installer: ExtensionInstaller) -> ExtensionManager:
    return ExtensionManager(catalog, LocalStore(extensions_root), installer)
