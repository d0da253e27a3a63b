"""Unit tests for the ExtensionInfo schema."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from schemas.extension_info import ExtensionInfo


class TestExtensionInfo:
    def test_defaults(self):
        info = ExtensionInfo(id="foo", version="1.0.0")

        assert info.authors == []
        assert info.is_latest_version is False
        assert info.download_count == 0
        assert not info.is_installed

    def test_installed(self):
        info = ExtensionInfo(
            id="foo",
            version="1.0.0",
            local_path="/site/SiteExtensions/foo",
            installed_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
        )

        assert info.is_installed

    def test_install_fields_set_together(self):
        with pytest.raises(ValidationError):
            ExtensionInfo(id="foo", version="1.0.0", local_path="/site/SiteExtensions/foo")

        with pytest.raises(ValidationError):
            ExtensionInfo(
                id="foo",
                version="1.0.0",
                installed_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
            )

    def test_json_uses_camel_case(self):
        info = ExtensionInfo(
            id="foo",
            version="1.0.0",
            project_url="https://example.com",
            is_latest_version=True,
            download_count=12,
            local_path="/site/SiteExtensions/foo",
            installed_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )

        data = info.to_json_dict()

        assert data["projectUrl"] == "https://example.com"
        assert data["isLatestVersion"] is True
        assert data["downloadCount"] == 12
        assert data["localPath"] == "/site/SiteExtensions/foo"
        assert data["installedAt"].startswith("2024-01-02T03:04:05")
        assert "is_latest_version" not in data

    def test_accepts_aliases(self):
        info = ExtensionInfo.model_validate(
            {"id": "foo", "version": "1.0.0", "isLatestVersion": True, "downloadCount": 3}
        )

        assert info.is_latest_version is True
        assert info.download_count == 3
