"""Data models for release metadata and resolution outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .errors import MalformedResponseError, ResolveError


@dataclass(frozen=True)
class ReleaseAsset:
    """One downloadable file of a release."""

    download_url: str


@dataclass(frozen=True)
class ReleaseMetadata:
    """The upstream's description of its latest published release."""

    tag_name: str
    assets: List[ReleaseAsset] = field(default_factory=list)

    @classmethod
    def from_json(cls, project_id: str, data: Any) -> "ReleaseMetadata":
        """Build release metadata from a decoded ``releases/latest`` body.

        Args:
            project_id: Project the body was fetched for, used in errors.
            data: Decoded JSON document.

        Returns:
            ReleaseMetadata with assets in upstream order.

        Raises:
            MalformedResponseError: If the document does not have the release shape.
        """
        if not isinstance(data, dict):
            raise MalformedResponseError(project_id, "expected a JSON object")

        tag_name = data.get("tag_name")
        if tag_name is None:
            tag_name = ""
        if not isinstance(tag_name, str):
            raise MalformedResponseError(project_id, "'tag_name' is not a string")

        raw_assets = data.get("assets")
        if raw_assets is None:
            raw_assets = []
        if not isinstance(raw_assets, list):
            raise MalformedResponseError(project_id, "'assets' is not a list")

        assets = []
        for index, raw in enumerate(raw_assets):
            if not isinstance(raw, dict):
                raise MalformedResponseError(project_id, f"asset {index} is not an object")
            url = raw.get("browser_download_url")
            if not isinstance(url, str):
                raise MalformedResponseError(
                    project_id, f"asset {index} has no string 'browser_download_url'"
                )
            assets.append(ReleaseAsset(download_url=url))

        return cls(tag_name=tag_name, assets=assets)


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving one project: a download URL or the error that occurred."""

    url: Optional[str] = None
    error: Optional[ResolveError] = None

    @classmethod
    def success(cls, url: str) -> "ResolutionOutcome":
        return cls(url=url)

    @classmethod
    def failure(cls, error: ResolveError) -> "ResolutionOutcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
