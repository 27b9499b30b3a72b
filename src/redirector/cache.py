"""TTL cache of resolution outcomes with single-flight upstream fetches."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants

from .errors import ResolveError
from .models import ResolutionOutcome

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    """Anything that can fetch the latest asset URL of a project."""

    def fetch_latest_asset_url(self, project_id: str) -> Awaitable[str]:
        ...


@dataclass(frozen=True)
class CacheEntry:
    """A resolution outcome and the clock reading it was computed at."""

    outcome: ResolutionOutcome
    computed_at: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        """An entry older than ``ttl`` is never valid."""
        return now - self.computed_at <= ttl


class ResolutionCache:
    """Caches resolution outcomes for a fixed TTL.

    Successes and failures are both cached. Concurrent misses for the same
    project share one pending fetch, so at most one upstream call per project
    is in flight at any time. The lock guards the entry map and the pending
    map; the upstream call itself always runs outside it.
    """

    def __init__(
        self,
        resolver: Resolver,
        ttl: float = Constants.RESOLUTION_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the resolution cache.

        Args:
            resolver: Upstream resolver called on misses.
            ttl: Seconds an outcome stays valid.
            clock: Monotonic time source, injectable for tests.
        """
        self._resolver = resolver
        self._ttl = ttl
        self._clock = clock
        self._lock = asyncio.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._pending: Dict[str, asyncio.Task] = {}
        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._upstream_calls = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    async def resolve(self, project_id: str) -> ResolutionOutcome:
        """Return the outcome for ``project_id``, fetching it upstream on a miss.

        Args:
            project_id: Project identifier.

        Returns:
            Cached or freshly computed outcome.
        """
        async with self._lock:
            entry = self._entries.get(project_id)
            if entry is not None and entry.is_fresh(self._clock(), self._ttl):
                self._hits += 1
                if is_debug_enabled(logger):
                    logger.debug(
                        "Resolution cache hit",
                        extra=extra_context(
                            event="cache_hit", component="cache", target=project_id
                        ),
                    )
                return entry.outcome

            pending = self._pending.get(project_id)
            if pending is None:
                self._misses += 1
                pending = asyncio.get_running_loop().create_task(self._refresh(project_id))
                self._pending[project_id] = pending
                outcome_kind = "stale" if entry is not None else "absent"
                action = "fetch"
            else:
                self._coalesced += 1
                outcome_kind = "pending"
                action = "wait"

        if is_debug_enabled(logger):
            logger.debug(
                "Resolution cache miss",
                extra=extra_context(
                    event="cache_miss",
                    component="cache",
                    action=action,
                    outcome=outcome_kind,
                    target=project_id,
                ),
            )

        # Shielded so a cancelled caller does not abort the shared fetch.
        return await asyncio.shield(pending)

    async def _refresh(self, project_id: str) -> ResolutionOutcome:
        """Run one upstream resolution round and publish its outcome."""
        outcome: Optional[ResolutionOutcome] = None
        try:
            outcome = await self._fetch(project_id)
            return outcome
        finally:
            async with self._lock:
                if outcome is not None:
                    self._entries[project_id] = CacheEntry(
                        outcome=outcome, computed_at=self._clock()
                    )
                self._pending.pop(project_id, None)

    async def _fetch(self, project_id: str) -> ResolutionOutcome:
        self._upstream_calls += 1
        try:
            url = await self._resolver.fetch_latest_asset_url(project_id)
        except ResolveError as exc:
            logger.warning("Resolution failed for %s: %s", project_id, exc)
            return ResolutionOutcome.failure(exc)
        logger.info("Resolved %s -> %s", project_id, url)
        return ResolutionOutcome.success(url)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        now = self._clock()
        fresh = sum(1 for e in self._entries.values() if e.is_fresh(now, self._ttl))
        failed = sum(1 for e in self._entries.values() if not e.outcome.ok)
        return {
            "total_entries": len(self._entries),
            "fresh_entries": fresh,
            "stale_entries": len(self._entries) - fresh,
            "failed_entries": failed,
            "pending": len(self._pending),
            "hits": self._hits,
            "misses": self._misses,
            "coalesced": self._coalesced,
            "upstream_calls": self._upstream_calls,
            "ttl": self._ttl,
        }
