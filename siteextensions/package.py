"""Package model for site extensions.

A site extension is distributed as a ``.nupkg`` archive: a zip file holding a
``<id>.nuspec`` manifest at its root and the files to install under
``content/``.
"""

from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import IO, Callable
from urllib.parse import unquote

from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = "nupkg"
CONTENT_ROOT = "content/"

# Zip members written by the packaging tools, not part of the payload
_PACKAGING_ENTRIES = ("[content_types].xml", "_rels/", "package/")


class PackageError(Exception):
    """Raised when a package archive or its manifest cannot be read."""

    pass


@dataclass(frozen=True)
class PackageFile:
    """One file inside a package archive."""

    path: str
    opener: Callable[[], IO[bytes]] = field(repr=False, compare=False)

    def open(self) -> IO[bytes]:
        """Open a fresh read stream over the file contents."""
        return self.opener()


class PackageArchive:
    """Read-only view over the bytes of a ``.nupkg`` archive.

    Example:
        >>> archive = PackageArchive(Path("foo.1.0.0.nupkg").read_bytes())
        >>> [f.path for f in archive.content_files()]
        ['content/index.html']
    """

    def __init__(self, data: bytes):
        if not zipfile.is_zipfile(io.BytesIO(data)):
            raise PackageError("Package archive is not a valid zip file")
        self._data = data

    @property
    def data(self) -> bytes:
        return self._data

    def open(self) -> IO[bytes]:
        """Open a stream over the whole archive."""
        return io.BytesIO(self._data)

    def _read_member(self, name: str) -> IO[bytes]:
        with zipfile.ZipFile(self.open()) as zf:
            return io.BytesIO(zf.read(name))

    def files(self) -> list[PackageFile]:
        """List every payload file in the archive.

        Paths are URL-decoded and use forward slashes.
        """
        result: list[PackageFile] = []
        with zipfile.ZipFile(self.open()) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                path = unquote(info.filename.replace("\\", "/"))
                if path.lower().startswith(_PACKAGING_ENTRIES):
                    continue
                result.append(
                    PackageFile(
                        path=path,
                        opener=lambda name=info.filename: self._read_member(name),
                    )
                )
        return result

    def content_files(self) -> list[PackageFile]:
        """List files under the ``content/`` root."""
        return [f for f in self.files() if f.path.lower().startswith(CONTENT_ROOT)]

    def read_manifest(self) -> Package:
        """Parse the ``.nuspec`` manifest at the archive root.

        Raises:
            PackageError: If the manifest is missing or invalid.
        """
        with zipfile.ZipFile(self.open()) as zf:
            nuspecs = [
                name
                for name in zf.namelist()
                if "/" not in name and name.lower().endswith(".nuspec")
            ]
            if not nuspecs:
                raise PackageError("Package archive does not contain a .nuspec manifest")
            raw = zf.read(nuspecs[0])

        package = parse_nuspec(raw)
        package.archive = self
        return package


@dataclass
class Package:
    """Package metadata, as published in the feed or found on disk.

    Attributes:
        id: Package identifier.
        version: Version string (e.g., "1.2.0" or "2.0.0-beta").
        title: Display title.
        description: Short description.
        authors: Author names.
        project_url: Project homepage.
        icon_url: Icon image URL.
        license_url: License URL.
        published: Publication time in the feed.
        is_latest_version: Feed flag for the latest stable version of the id.
        is_prerelease: Whether the version is a pre-release.
        download_count: Total downloads reported by the feed.
        download_url: Where the archive can be fetched from.
        archive: Archive payload, once downloaded or read from disk.
    """

    id: str
    version: str
    title: str | None = None
    description: str | None = None
    authors: list[str] = field(default_factory=list)
    project_url: str | None = None
    icon_url: str | None = None
    license_url: str | None = None
    published: datetime | None = None
    is_latest_version: bool = False
    is_prerelease: bool = False
    download_count: int = 0
    download_url: str | None = None
    archive: PackageArchive | None = field(default=None, repr=False, compare=False)

    @property
    def archive_file_name(self) -> str:
        """File name the archive is persisted under in an installation."""
        return f"{self.id}.{self.version}.{ARCHIVE_EXTENSION}"

    def matches(self, query: str) -> bool:
        """Case-insensitive text match against id, title, description and authors."""
        needle = query.lower()
        haystack = [self.id, self.title or "", self.description or "", *self.authors]
        return any(needle in value.lower() for value in haystack)

    def __repr__(self) -> str:
        return f"Package(id={self.id!r}, version={self.version!r})"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_nuspec(raw: bytes) -> Package:
    """Build a Package from nuspec XML.

    Element matching ignores the XML namespace, which differs between nuspec
    schema versions.

    Raises:
        PackageError: If the XML is invalid or id/version are missing.
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise PackageError(f"Invalid nuspec XML: {e}")

    metadata = next(
        (el for el in root.iter() if _local_name(el.tag) == "metadata"), None
    )
    if metadata is None:
        raise PackageError("nuspec has no <metadata> element")

    values: dict[str, str] = {}
    for child in metadata:
        if child.text and child.text.strip():
            values[_local_name(child.tag)] = child.text.strip()

    if not values.get("id"):
        raise PackageError("nuspec is missing the package id")
    if not values.get("version"):
        raise PackageError("nuspec is missing the package version")

    authors = [a.strip() for a in values.get("authors", "").split(",") if a.strip()]
    version = values["version"]

    return Package(
        id=values["id"],
        version=version,
        title=values.get("title"),
        description=values.get("description"),
        authors=authors,
        project_url=values.get("projectUrl"),
        icon_url=values.get("iconUrl"),
        license_url=values.get("licenseUrl"),
        is_prerelease=is_prerelease(version),
    )


def _parse_version(value: str) -> Version | None:
    try:
        return Version(value)
    except InvalidVersion:
        return None


def is_prerelease(version: str) -> bool:
    """Check whether a version string denotes a pre-release."""
    parsed = _parse_version(version)
    if parsed is None:
        return "-" in version
    return parsed.is_prerelease


def compare_versions(v1: str, v2: str) -> int:
    """Compare two version strings.

    Returns:
        -1 if v1 < v2, 0 if equal, 1 if v1 > v2.
    """
    p1, p2 = _parse_version(v1), _parse_version(v2)
    if p1 is not None and p2 is not None:
        return (p1 > p2) - (p1 < p2)

    # Fallback to string comparison
    a, b = v1.lower(), v2.lower()
    return (a > b) - (a < b)


def versions_equal(v1: str, v2: str) -> bool:
    return compare_versions(v1, v2) == 0
