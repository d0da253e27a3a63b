"""Test doubles for siteext tests."""

from tests.mocks.fake_catalog import FakeCatalog
from tests.mocks.packages import make_nupkg, make_package

__all__ = ["FakeCatalog", "make_nupkg", "make_package"]
