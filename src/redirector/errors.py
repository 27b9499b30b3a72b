"""Resolution errors raised by the upstream resolver and cached as outcomes."""

from __future__ import annotations

from typing import Optional


class ResolveError(Exception):
    """Base class for failures resolving a project's latest asset URL."""

    kind = "resolve_error"
    status_code = 500

    def __init__(self, project_id: str, message: str):
        super().__init__(message)
        self.project_id = project_id


class UpstreamUnavailableError(ResolveError):
    """The release API could not be reached or answered with an error status."""

    kind = "upstream_unavailable"
    status_code = 502

    def __init__(
        self,
        project_id: str,
        cause: Optional[BaseException] = None,
        status: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        if status is not None:
            message = f"Upstream returned HTTP {status} for '{project_id}'"
            if detail:
                message = f"{message}: {detail}"
        else:
            message = f"Upstream request for '{project_id}' failed: {cause or detail or 'unknown error'}"
        super().__init__(project_id, message)
        self.cause = cause
        self.status = status


class MalformedResponseError(ResolveError):
    """The release API answered with a body that is not release metadata."""

    kind = "malformed_response"
    status_code = 502

    def __init__(self, project_id: str, reason: str):
        super().__init__(project_id, f"Malformed release response for '{project_id}': {reason}")
        self.reason = reason


class NoAssetsError(ResolveError):
    """The latest release exists but has no downloadable assets."""

    kind = "no_assets"
    status_code = 500

    def __init__(self, project_id: str, tag_name: str):
        super().__init__(project_id, f"Latest release '{tag_name}' has no assets")
        self.tag_name = tag_name
