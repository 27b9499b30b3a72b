"""Upstream resolver fetching the latest release of a project from the GitHub API."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Dict, Optional

import aiohttp

from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import Constants

from .errors import MalformedResponseError, NoAssetsError, UpstreamUnavailableError
from .models import ReleaseMetadata

logger = logging.getLogger(__name__)


class UpstreamResolver:
    """Resolves a project identifier to the download URL of its latest release asset.

    Holds no state besides the shared HTTP session, so one instance serves
    every request concurrently.
    """

    def __init__(
        self,
        base_url: str = Constants.GITHUB_API_BASE,
        timeout: float = Constants.REQUEST_TIMEOUT,
        token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the resolver.

        Args:
            base_url: Release API base URL.
            timeout: Request timeout in seconds.
            token: Optional API token (defaults to the GITHUB_TOKEN env var).
            session: Optional externally owned session; not closed by ``stop``.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._token = token if token is not None else os.environ.get(Constants.ENV_GITHUB_TOKEN)
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def release_url(self, project_id: str) -> str:
        """Build the ``releases/latest`` URL for a project."""
        return f"{self._base_url}/repos/{project_id}/releases/latest"

    def _build_request_headers(self) -> Dict[str, str]:
        """Build request headers to send upstream."""
        headers = {
            "User-Agent": Constants.USER_AGENT,
            "Accept": Constants.GITHUB_ACCEPT,
        }
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return headers

    async def fetch_latest_asset_url(self, project_id: str) -> str:
        """Fetch the latest release of ``project_id`` and return its first asset's URL.

        Issues exactly one request and never retries.

        Args:
            project_id: Project identifier in ``owner/name`` form.

        Returns:
            Download URL of the first asset, in upstream order.

        Raises:
            UpstreamUnavailableError: On transport failure or a non-2xx status.
            MalformedResponseError: If the body is not release metadata.
            NoAssetsError: If the latest release lists no assets.
        """
        if self._session is None:
            await self.start()
        assert self._session is not None

        url = self.release_url(project_id)
        safe_target = safe_url(url)

        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "Upstream request",
                    extra=extra_context(
                        event="http_request",
                        component="upstream",
                        action="GET",
                        target=safe_target,
                        project=project_id,
                    ),
                )
            try:
                async with self._session.get(
                    url,
                    headers=self._build_request_headers(),
                    timeout=self._timeout,
                ) as response:
                    status = response.status
                    body = await self._read_body(project_id, response)
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.warning("Upstream request for %s failed: %r", project_id, exc)
                raise UpstreamUnavailableError(project_id, cause=exc) from exc

        if is_debug_enabled(logger):
            logger.debug(
                "Upstream response",
                extra=extra_context(
                    event="http_response",
                    component="upstream",
                    action="GET",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    project=project_id,
                ),
            )

        if not 200 <= status < 300:
            raise UpstreamUnavailableError(
                project_id, status=status, detail=self._error_message(body)
            )

        try:
            data = json.loads(body)
        except (ValueError, RecursionError) as exc:
            raise MalformedResponseError(project_id, f"invalid JSON ({exc})") from exc

        release = ReleaseMetadata.from_json(project_id, data)
        if not release.assets:
            raise NoAssetsError(project_id, release.tag_name)

        return release.assets[0].download_url

    async def _read_body(self, project_id: str, response: aiohttp.ClientResponse) -> bytes:
        """Read at most MAX_RESPONSE_BYTES of the body.

        Raises:
            MalformedResponseError: If the body is larger than the limit.
        """
        limit = Constants.MAX_RESPONSE_BYTES
        if response.content_length is not None and response.content_length > limit:
            raise MalformedResponseError(
                project_id, f"response of {response.content_length} bytes exceeds {limit}"
            )
        body = bytearray()
        async for chunk in response.content.iter_chunked(64 * 1024):
            body.extend(chunk)
            if len(body) > limit:
                raise MalformedResponseError(project_id, f"response exceeds {limit} bytes")
        return bytes(body)

    @staticmethod
    def _error_message(body: bytes) -> Optional[str]:
        """Extract the ``message`` field of an upstream error body, if any."""
        try:
            data = json.loads(body)
        except (ValueError, RecursionError):
            return None
        if isinstance(data, dict) and isinstance(data.get("message"), str):
            return data["message"]
        return None

    async def __aenter__(self) -> "UpstreamResolver":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
