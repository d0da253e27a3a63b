"""Unit tests for the package model."""

import io
import zipfile

import pytest

from siteextensions.package import (
    Package,
    PackageArchive,
    PackageError,
    compare_versions,
    is_prerelease,
    parse_nuspec,
    versions_equal,
)
from tests.mocks import make_nupkg


class TestPackageArchive:
    """Reading .nupkg payloads."""

    def test_rejects_non_zip_data(self):
        with pytest.raises(PackageError):
            PackageArchive(b"not a zip file")

    def test_content_files_only_returns_content_root(self):
        archive = PackageArchive(
            make_nupkg(
                "foo",
                "1.0.0",
                {
                    "content/index.html": b"<html/>",
                    "content/bin/app.dll": b"dll",
                    "lib/net45/foo.dll": b"lib",
                },
            )
        )

        paths = sorted(f.path for f in archive.content_files())

        assert paths == ["content/bin/app.dll", "content/index.html"]

    def test_files_skip_packaging_entries(self):
        archive = PackageArchive(make_nupkg("foo", "1.0.0", {"content/a.txt": b"a"}))

        paths = {f.path for f in archive.files()}

        assert "[Content_Types].xml" not in paths
        assert "_rels/.rels" not in paths
        assert "foo.nuspec" in paths

    def test_paths_are_url_decoded(self):
        archive = PackageArchive(make_nupkg("foo", "1.0.0", {"content/my%20file.txt": b"x"}))

        assert [f.path for f in archive.content_files()] == ["content/my file.txt"]

    def test_file_streams_return_contents(self):
        archive = PackageArchive(make_nupkg("foo", "1.0.0", {"content/a.txt": b"alpha"}))

        (package_file,) = archive.content_files()
        with package_file.open() as stream:
            assert stream.read() == b"alpha"

    def test_open_returns_whole_archive(self):
        data = make_nupkg("foo", "1.0.0")
        archive = PackageArchive(data)

        assert archive.open().read() == data
        assert archive.data == data

    def test_read_manifest(self):
        archive = PackageArchive(
            make_nupkg("Foo.Bar", "1.2.0", title="Foo Bar", authors="Ann, Bob")
        )

        package = archive.read_manifest()

        assert package.id == "Foo.Bar"
        assert package.version == "1.2.0"
        assert package.title == "Foo Bar"
        assert package.authors == ["Ann", "Bob"]
        assert package.project_url == "https://example.com/Foo.Bar"
        assert package.archive is archive

    def test_read_manifest_without_nuspec(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("content/a.txt", "a")

        with pytest.raises(PackageError, match="nuspec"):
            PackageArchive(buffer.getvalue()).read_manifest()


class TestParseNuspec:
    def test_invalid_xml(self):
        with pytest.raises(PackageError, match="Invalid nuspec"):
            parse_nuspec(b"<package><metadata>")

    def test_missing_version(self):
        raw = b"<package><metadata><id>foo</id></metadata></package>"
        with pytest.raises(PackageError, match="version"):
            parse_nuspec(raw)

    def test_namespace_is_ignored(self):
        raw = (
            b'<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">'
            b"<metadata><id>foo</id><version>2.0.0-beta</version></metadata></package>"
        )
        package = parse_nuspec(raw)

        assert package.id == "foo"
        assert package.is_prerelease is True


class TestPackage:
    def test_archive_file_name(self):
        assert Package(id="foo", version="1.0.0").archive_file_name == "foo.1.0.0.nupkg"

    def test_matches_is_case_insensitive(self):
        package = Package(
            id="MonacoExtension",
            version="1.0.0",
            title="Monaco Editor",
            description="Edit files in the browser",
            authors=["Jane Doe"],
        )

        assert package.matches("monaco")
        assert package.matches("BROWSER")
        assert package.matches("jane")
        assert not package.matches("terminal")


class TestVersions:
    def test_numeric_ordering(self):
        assert compare_versions("1.10.0", "1.2.0") == 1
        assert compare_versions("1.0.0", "1.2.0") == -1

    def test_equal_versions(self):
        assert versions_equal("1.0.0", "1.0.0")
        assert versions_equal("1.0", "1.0.0")

    def test_prerelease_sorts_before_release(self):
        assert compare_versions("2.0.0-beta", "2.0.0") == -1

    def test_unparseable_versions_fall_back_to_strings(self):
        assert compare_versions("abc", "ABC") == 0
        assert compare_versions("abc", "abd") == -1

    def test_is_prerelease(self):
        assert is_prerelease("2.0.0-beta")
        assert not is_prerelease("2.0.0")
