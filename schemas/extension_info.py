"""Extension info schema.

Public representation of a site extension, remote or installed. Serializes
with the camelCase field names consumers of the extension API expect.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ExtensionInfo(BaseModel):
    """One site extension as seen by callers.

    An extension is installed iff both ``local_path`` and ``installed_at``
    are set. ``is_latest_version`` is recomputed on every read that asks
    for it and is never persisted.
    """

    model_config = ConfigDict(populate_by_name=True)

    # Identity
    id: str = Field(..., description="Unique extension id (case-insensitive)")
    version: str = Field(..., description="Semantic version string")

    # Display metadata
    title: str | None = Field(None, description="Display title")
    description: str | None = Field(None, description="Short description")
    authors: list[str] = Field(default_factory=list, description="Author names")
    project_url: str | None = Field(None, alias="projectUrl")
    icon_url: str | None = Field(None, alias="iconUrl")
    license_url: str | None = Field(None, alias="licenseUrl")

    # Catalog data
    published_at: datetime | None = Field(
        None, alias="publishedAt", description="Publication time in the feed"
    )
    is_latest_version: bool = Field(
        False,
        alias="isLatestVersion",
        description="No newer stable version exists in the catalog",
    )
    download_count: int = Field(0, alias="downloadCount")

    # Installation state
    local_path: str | None = Field(
        None, alias="localPath", description="Installation directory"
    )
    installed_at: datetime | None = Field(
        None, alias="installedAt", description="Directory last write time (UTC)"
    )

    @model_validator(mode="after")
    def _check_install_state(self) -> "ExtensionInfo":
        if (self.local_path is None) != (self.installed_at is None):
            raise ValueError("local_path and installed_at must be set together")
        return self

    @property
    def is_installed(self) -> bool:
        return self.local_path is not None

    def to_json_dict(self) -> dict:
        """Dump using the camelCase API field names."""
        return self.model_dump(mode="json", by_alias=True)
