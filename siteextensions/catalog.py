"""Remote catalog client for the site extension feed.

The feed is a NuGet v2 style OData service returning Atom XML documents.
The client is read-only and keeps no state between calls.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote, urljoin

import httpx

from siteextensions.package import (
    Package,
    PackageArchive,
    PackageError,
    compare_versions,
    is_prerelease,
)

logger = logging.getLogger(__name__)

DEFAULT_FEED_URL = "http://siteextensions.azurewebsites.net/api/v2/"

ATOM_NS = "http://www.w3.org/2005/Atom"
DATA_NS = "http://schemas.microsoft.com/ado/2007/08/dataservices"
META_NS = "http://schemas.microsoft.com/ado/2007/08/dataservices/metadata"

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


class CatalogUnavailableError(Exception):
    """Raised when the remote feed cannot be reached or returns garbage."""

    pass


def _atom(name: str) -> str:
    return f"{{{ATOM_NS}}}{name}"


def _data(name: str) -> str:
    return f"{{{DATA_NS}}}{name}"


def odata_literal(value: str) -> str:
    """Quote a string as an OData literal."""
    return "'" + value.replace("'", "''") + "'"


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    text = _FRACTION_RE.sub(r"\1", value.strip()).replace("Z", "+00:00")
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_entry(entry: ET.Element) -> Package:
    """Convert one Atom ``<entry>`` into a Package.

    Raises:
        ValueError: If the entry lacks an id or version, or a field is malformed.
    """
    props = entry.find(f"{{{META_NS}}}properties")
    if props is None:
        raise ValueError("entry has no m:properties element")

    def prop(name: str) -> str | None:
        el = props.find(_data(name))
        if el is None or el.get(f"{{{META_NS}}}null") == "true":
            return None
        return el.text.strip() if el.text else None

    package_id = prop("Id") or (entry.findtext(_atom("title")) or "").strip()
    version = prop("Version")
    if not package_id or not version:
        raise ValueError("entry is missing Id or Version")

    authors_text = prop("Authors")
    if authors_text is None:
        authors_text = ",".join(
            (name.text or "")
            for name in entry.findall(f"{_atom('author')}/{_atom('name')}")
        )
    authors = [a.strip() for a in authors_text.split(",") if a.strip()]

    content = entry.find(_atom("content"))
    download_url = content.get("src") if content is not None else None

    prerelease = prop("IsPrerelease")

    return Package(
        id=package_id,
        version=version,
        title=prop("Title"),
        description=prop("Description") or (entry.findtext(_atom("summary")) or None),
        authors=authors,
        project_url=prop("ProjectUrl"),
        icon_url=prop("IconUrl"),
        license_url=prop("LicenseUrl"),
        published=_parse_datetime(prop("Published")),
        is_latest_version=_parse_bool(prop("IsLatestVersion")),
        is_prerelease=_parse_bool(prerelease) if prerelease else is_prerelease(version),
        download_count=int(prop("DownloadCount") or 0),
        download_url=download_url,
    )


def parse_feed(document: bytes) -> tuple[list[Package], str | None]:
    """Parse an Atom feed (or single entry) document.

    Malformed entries are logged and skipped.

    Returns:
        The parsed packages and the URL of the next page, if any.

    Raises:
        CatalogUnavailableError: If the document is not valid XML.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise CatalogUnavailableError(f"Invalid feed document: {e}")

    if root.tag == _atom("entry"):
        entries = [root]
    else:
        entries = root.findall(_atom("entry"))

    packages: list[Package] = []
    for entry in entries:
        try:
            packages.append(parse_entry(entry))
        except (ValueError, TypeError) as e:
            logger.warning(
                "Skipping malformed feed entry %r: %s",
                entry.findtext(_atom("id")),
                e,
            )

    next_url = None
    for link in root.findall(_atom("link")):
        if link.get("rel") == "next" and link.get("href"):
            next_url = link.get("href")
            break

    return packages, next_url


class RemoteCatalog:
    """Read-only client for the site extension feed.

    Example:
        >>> catalog = RemoteCatalog()
        >>> catalog.search("monaco")
        >>> catalog.find("MonacoExtension")
    """

    def __init__(
        self,
        feed_url: str | None = None,
        timeout: float = 30.0,
        page_size: int = 100,
        max_pages: int = 10,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the catalog client.

        Args:
            feed_url: Base URL of the OData feed.
            timeout: Per-request timeout in seconds.
            page_size: Entries requested per page when listing.
            max_pages: Upper bound on pages followed via ``rel="next"`` links.
            transport: Optional httpx transport (used by tests).
        """
        self.feed_url = (feed_url or DEFAULT_FEED_URL).rstrip("/") + "/"
        self.timeout = timeout
        self.page_size = page_size
        self.max_pages = max_pages
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def _get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> bytes | None:
        """Fetch a URL and return the body, or None on an allowed 404."""
        try:
            with self._client() as client:
                response = client.get(url, params=params)
                if allow_not_found and response.status_code == 404:
                    return None
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            raise CatalogUnavailableError(
                f"Feed returned HTTP {e.response.status_code} for {url}"
            )
        except httpx.RequestError as e:
            raise CatalogUnavailableError(f"Connection error: {e}")

    def _query(self, endpoint: str, params: dict[str, Any]) -> list[Package]:
        """Run a feed query, following next-page links."""
        url: str | None = urljoin(self.feed_url, endpoint)
        packages: list[Package] = []
        pages = 0

        while url and pages < self.max_pages:
            body = self._get(url, params=params if pages == 0 else None)
            page, url = parse_feed(body or b"")
            packages.extend(page)
            pages += 1

        if url:
            logger.info("Stopped paging %s after %d pages", endpoint, pages)
        return packages

    def list_latest(self) -> list[Package]:
        """List the latest version of every package, most downloaded first."""
        packages = self._query(
            "Packages()",
            {
                "$filter": "IsLatestVersion",
                "$orderby": "DownloadCount desc",
                "$top": self.page_size,
            },
        )
        packages = _latest_per_id(packages)
        return sorted(packages, key=lambda p: p.download_count, reverse=True)

    def search(self, filter: str, allow_prerelease: bool = False) -> list[Package]:
        """Full-text search, returning only latest-version entries.

        Args:
            filter: Search terms.
            allow_prerelease: Consider pre-release versions as latest.
        """
        latest_flag = "IsAbsoluteLatestVersion" if allow_prerelease else "IsLatestVersion"
        packages = self._query(
            "Search()",
            {
                "searchTerm": odata_literal(filter),
                "targetFramework": "''",
                "includePrerelease": "true" if allow_prerelease else "false",
                "$filter": latest_flag,
            },
        )
        return _latest_per_id(packages)

    def find(self, id: str, version: str | None = None) -> Package | None:
        """Look up a package by id, and version if given.

        Without a version the latest stable version of the id is returned.
        """
        if version is not None:
            endpoint = "Packages(Id={},Version={})".format(
                quote(odata_literal(id), safe="'"),
                quote(odata_literal(version), safe="'"),
            )
            body = self._get(urljoin(self.feed_url, endpoint), allow_not_found=True)
            if body is None:
                return None
            packages, _ = parse_feed(body)
            return packages[0] if packages else None

        candidates = [
            p
            for p in self._query("FindPackagesById()", {"id": odata_literal(id)})
            if p.id.lower() == id.lower() and not p.is_prerelease
        ]
        if not candidates:
            return None

        flagged = [p for p in candidates if p.is_latest_version]
        if flagged:
            return flagged[0]

        latest = candidates[0]
        for candidate in candidates[1:]:
            if compare_versions(candidate.version, latest.version) > 0:
                latest = candidate
        return latest

    def download(self, package: Package) -> Package:
        """Fetch the archive for a package.

        Returns:
            A copy of the package with ``archive`` populated.

        Raises:
            CatalogUnavailableError: If the download fails or is not a package.
        """
        url = package.download_url or urljoin(
            self.feed_url,
            f"package/{quote(package.id)}/{quote(package.version)}",
        )
        logger.info("Downloading %s %s from %s", package.id, package.version, url)
        body = self._get(url)
        try:
            archive = PackageArchive(body or b"")
        except PackageError as e:
            raise CatalogUnavailableError(
                f"Download of {package.id} {package.version} is not a package: {e}"
            )
        return dataclasses.replace(package, archive=archive)


def _latest_per_id(packages: list[Package]) -> list[Package]:
    """Keep the highest version per id, preserving first-seen order."""
    latest: dict[str, Package] = {}
    for package in packages:
        key = package.id.lower()
        current = latest.get(key)
        if current is None or compare_versions(package.version, current.version) > 0:
            latest[key] = package
    return list(latest.values())
