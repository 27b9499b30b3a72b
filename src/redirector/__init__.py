"""Release redirect server package.

This package maps stable file keys to the download URL of the latest release
asset of a GitHub project and answers requests with a redirect. Outcomes are
cached for a fixed TTL and concurrent misses share a single upstream fetch.
"""

from .errors import (
    MalformedResponseError,
    NoAssetsError,
    ResolveError,
    UpstreamUnavailableError,
)
from .models import ReleaseAsset, ReleaseMetadata, ResolutionOutcome
from .cache import CacheEntry, ResolutionCache
from .upstream import UpstreamResolver
from .config import ConfigError, load_file_map
from .server import RedirectServer, ServerConfig

__all__ = [
    "ResolveError",
    "UpstreamUnavailableError",
    "MalformedResponseError",
    "NoAssetsError",
    "ReleaseAsset",
    "ReleaseMetadata",
    "ResolutionOutcome",
    "CacheEntry",
    "ResolutionCache",
    "UpstreamResolver",
    "ConfigError",
    "load_file_map",
    "RedirectServer",
    "ServerConfig",
]
