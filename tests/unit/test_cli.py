"""Tests for the siteext command line."""

import subprocess
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cli.commands import base
from cli.siteext.cli import app
from tests.mocks import make_package

runner = CliRunner()


@pytest.fixture(autouse=True)
def use_manager(manager, monkeypatch):
    """Route every command to the test manager."""
    monkeypatch.setattr(base, "build_manager", lambda root=None, feed=None: manager)


def install_version(manager, id: str, version: str) -> None:
    package = make_package(id, version, {"content/index.html": b"hi"})
    assert manager.installer.install(package, manager.store.root / id)


class TestGallery:
    def test_list(self, catalog):
        catalog.add(make_package("foo", "1.0.0", download_count=42))

        result = runner.invoke(app, ["gallery", "list"])

        assert result.exit_code == 0
        assert "foo" in result.output

    def test_list_json(self, catalog):
        catalog.add(make_package("foo", "1.0.0"))

        result = runner.invoke(app, ["gallery", "list", "--json"])

        assert result.exit_code == 0
        assert '"isLatestVersion"' in result.output

    def test_list_empty(self):
        result = runner.invoke(app, ["gallery", "list", "nothing"])

        assert result.exit_code == 0
        assert "No extensions found" in result.output

    def test_show_missing(self):
        result = runner.invoke(app, ["gallery", "show", "missing"])

        assert result.exit_code == 1

    def test_install(self, catalog, extensions_root):
        catalog.add(make_package("foo", "1.0.0", {"content/index.html": b"hi"}))

        result = runner.invoke(app, ["gallery", "install", "foo"])

        assert result.exit_code == 0
        assert (extensions_root / "foo" / "index.html").exists()

    def test_install_not_found(self):
        result = runner.invoke(app, ["gallery", "install", "missing"])

        assert result.exit_code == 1

    def test_feed_unavailable(self, catalog):
        catalog.unavailable = True

        result = runner.invoke(app, ["gallery", "list"])

        assert result.exit_code == 1


class TestExtensions:
    def test_list(self, manager):
        install_version(manager, "foo", "1.0.0")

        result = runner.invoke(app, ["extensions", "list", "--no-check-latest"])

        assert result.exit_code == 0
        assert "foo" in result.output

    def test_list_empty(self):
        result = runner.invoke(app, ["extensions", "list"])

        assert result.exit_code == 0
        assert "No extensions installed" in result.output

    def test_show_json(self, manager, catalog):
        install_version(manager, "foo", "1.0.0")
        catalog.add(make_package("foo", "1.0.0"))

        result = runner.invoke(app, ["extensions", "show", "foo", "--json"])

        assert result.exit_code == 0
        assert '"localPath"' in result.output

    def test_show_not_installed(self):
        result = runner.invoke(app, ["extensions", "show", "foo"])

        assert result.exit_code == 1

    def test_invalid_id(self):
        result = runner.invoke(app, ["extensions", "path", "../etc"])

        assert result.exit_code == 1

    def test_path(self, extensions_root):
        result = runner.invoke(app, ["extensions", "path", "foo"])

        assert result.exit_code == 0
        assert str(extensions_root / "foo") in result.output.replace("\n", "")

    def test_uninstall(self, manager, extensions_root):
        install_version(manager, "foo", "1.0.0")

        result = runner.invoke(app, ["extensions", "uninstall", "foo", "--yes"])

        assert result.exit_code == 0
        assert not (extensions_root / "foo").exists()

    def test_uninstall_declined(self, manager, extensions_root):
        install_version(manager, "foo", "1.0.0")

        result = runner.invoke(app, ["extensions", "uninstall", "foo"], input="n\n")

        assert result.exit_code == 0
        assert (extensions_root / "foo").exists()

    def test_updates(self, manager, catalog):
        install_version(manager, "foo", "1.0.0")
        catalog.add(make_package("foo", "2.0.0"))

        result = runner.invoke(app, ["extensions", "updates"])

        assert result.exit_code == 0
        assert "2.0.0" in result.output


@pytest.mark.parametrize(
    "modules",
    [
        "import cli.commands; import cli.siteext.cli",
        "import cli.siteext.cli; import cli.commands",
        "import cli.commands.base",
    ],
)
def test_import_order(modules):
    """The command modules and the app import cleanly in any order."""
    project_root = Path(__file__).resolve().parents[2]

    result = subprocess.run(
        [sys.executable, "-c", modules],
        cwd=project_root,
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "siteext v" in result.output
