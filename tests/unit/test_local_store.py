"""Unit tests for the local extension store."""

from datetime import datetime, timezone
from pathlib import Path

from siteextensions.local_store import LocalStore
from tests.mocks import make_nupkg


def install_archive(root: Path, id: str, version: str, directory: str | None = None) -> Path:
    ext_dir = root / (directory or id)
    ext_dir.mkdir(parents=True, exist_ok=True)
    (ext_dir / f"{id}.{version}.nupkg").write_bytes(make_nupkg(id, version))
    return ext_dir


class TestListInstalled:
    def test_missing_root(self, tmp_path):
        store = LocalStore(tmp_path / "nowhere")

        assert store.list_installed() == []
        assert store.find("foo") is None

    def test_lists_by_id(self, extensions_root):
        install_archive(extensions_root, "zeta", "1.0.0")
        install_archive(extensions_root, "Alpha", "2.1.0")

        installed = LocalStore(extensions_root).list_installed()

        assert [(p.id, p.version) for p in installed] == [("Alpha", "2.1.0"), ("zeta", "1.0.0")]

    def test_filter(self, extensions_root):
        install_archive(extensions_root, "MonacoEditor", "1.0.0")
        install_archive(extensions_root, "PhpManager", "1.0.0")

        installed = LocalStore(extensions_root).list_installed("monaco")

        assert [p.id for p in installed] == ["MonacoEditor"]

    def test_skips_directories_without_archive(self, extensions_root):
        (extensions_root / "empty").mkdir()
        (extensions_root / "stray.txt").write_text("not an extension")

        assert LocalStore(extensions_root).list_installed() == []

    def test_skips_corrupt_archive(self, extensions_root):
        ext_dir = extensions_root / "broken"
        ext_dir.mkdir()
        (ext_dir / "broken.1.0.0.nupkg").write_bytes(b"not a zip")
        install_archive(extensions_root, "good", "1.0.0")

        assert [p.id for p in LocalStore(extensions_root).list_installed()] == ["good"]

    def test_skips_archive_in_foreign_directory(self, extensions_root):
        install_archive(extensions_root, "foo", "1.0.0", directory="bar")

        assert LocalStore(extensions_root).list_installed() == []

    def test_manifest_is_attached(self, extensions_root):
        install_archive(extensions_root, "foo", "1.0.0")

        (package,) = LocalStore(extensions_root).list_installed()

        assert package.title == "foo"
        assert package.authors == ["Test Author"]
        assert package.archive is not None


class TestFind:
    def test_case_insensitive(self, extensions_root):
        install_archive(extensions_root, "MonacoEditor", "1.0.0")

        package = LocalStore(extensions_root).find("monacoeditor")

        assert package is not None
        assert package.id == "MonacoEditor"

    def test_highest_version_wins(self, extensions_root):
        install_archive(extensions_root, "foo", "1.2.0")
        install_archive(extensions_root, "foo", "1.10.0")

        assert LocalStore(extensions_root).find("foo").version == "1.10.0"

    def test_empty_id(self, extensions_root):
        assert LocalStore(extensions_root).find("") is None

    def test_not_installed(self, extensions_root):
        install_archive(extensions_root, "foo", "1.0.0")

        assert LocalStore(extensions_root).find("bar") is None


class TestDirectories:
    def test_directory_for_existing(self, extensions_root):
        install_archive(extensions_root, "Foo", "1.0.0")

        assert LocalStore(extensions_root).directory_for("foo") == extensions_root / "Foo"

    def test_directory_for_new(self, extensions_root):
        assert LocalStore(extensions_root).directory_for("foo") == extensions_root / "foo"

    def test_root_expands_user(self):
        store = LocalStore("~/site/SiteExtensions")

        assert store.root == Path.home() / "site" / "SiteExtensions"

    def test_last_modified(self, extensions_root):
        install_archive(extensions_root, "foo", "1.0.0")

        modified = LocalStore(extensions_root).last_modified("foo")

        assert modified is not None
        assert modified.tzinfo == timezone.utc
        assert modified <= datetime.now(timezone.utc)

    def test_last_modified_not_installed(self, extensions_root):
        assert LocalStore(extensions_root).last_modified("foo") is None
