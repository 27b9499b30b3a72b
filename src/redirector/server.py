"""Redirect server using aiohttp."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from aiohttp import web

from constants import Constants

from .cache import ResolutionCache
from .upstream import UpstreamResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListenAddress:
    """Where the server listens: a TCP host/port or a unix socket path."""

    host: Optional[str] = None
    port: int = 0
    unix_path: Optional[str] = None

    @property
    def is_unix(self) -> bool:
        return self.unix_path is not None

    def __str__(self) -> str:
        if self.unix_path is not None:
            return f"{Constants.UNIX_SOCKET_PREFIX}{self.unix_path}"
        return f"{self.host or '*'}:{self.port}"


def parse_listen_address(addr: str) -> ListenAddress:
    """Parse ``host:port``, ``:port`` or ``unix:/path/to/socket.sock``.

    An empty host binds all interfaces.

    Raises:
        ValueError: If the address cannot be parsed.
    """
    if addr.startswith(Constants.UNIX_SOCKET_PREFIX):
        path = addr[len(Constants.UNIX_SOCKET_PREFIX):]
        if not path:
            raise ValueError(f"Missing socket path in listen address: {addr!r}")
        return ListenAddress(unix_path=path)

    host, sep, port_text = addr.rpartition(":")
    if not sep:
        raise ValueError(f"Listen address must be host:port, :port or unix:/path, got {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError as e:
        raise ValueError(f"Invalid port in listen address: {addr!r}") from e
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range in listen address: {addr!r}")
    return ListenAddress(host=host or None, port=port)


@dataclass
class ServerConfig:
    """Configuration for the redirect server."""

    listen_addr: str = Constants.DEFAULT_LISTEN_ADDR
    upstream_url: str = Constants.GITHUB_API_BASE
    timeout: float = Constants.REQUEST_TIMEOUT
    cache_ttl: float = Constants.RESOLUTION_TTL_SEC
    github_token: Optional[str] = None

    @classmethod
    def from_args(cls, args: Any) -> "ServerConfig":
        """Create config from CLI arguments.

        Args:
            args: Parsed CLI arguments namespace.

        Returns:
            ServerConfig instance.
        """
        config = cls(
            listen_addr=getattr(args, "LISTEN_ADDR", None) or Constants.DEFAULT_LISTEN_ADDR,
            github_token=os.environ.get(Constants.ENV_GITHUB_TOKEN) or None,
        )
        if getattr(args, "TIMEOUT", None) is not None:
            config.timeout = args.TIMEOUT
        if getattr(args, "UPSTREAM_URL", None):
            config.upstream_url = args.UPSTREAM_URL.rstrip("/")
        return config

    @property
    def address(self) -> ListenAddress:
        return parse_listen_address(self.listen_addr)


class RedirectServer:
    """HTTP server redirecting file keys to the latest release asset of a project.

    The resolver and cache are built once here and shared by every request.
    """

    def __init__(
        self,
        config: ServerConfig,
        file_map: Mapping[str, str],
        resolver: Optional[UpstreamResolver] = None,
        cache: Optional[ResolutionCache] = None,
    ):
        """Initialize the redirect server.

        Args:
            config: Server configuration.
            file_map: Validated mapping of file key to project identifier.
            resolver: Optional upstream resolver; built from ``config`` if omitted.
            cache: Optional resolution cache; built around ``resolver`` if omitted.
        """
        self._config = config
        self._file_map: Dict[str, str] = dict(file_map)
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None

        self._resolver = resolver or UpstreamResolver(
            base_url=config.upstream_url,
            timeout=config.timeout,
            token=config.github_token,
        )
        self._cache = cache or ResolutionCache(self._resolver, ttl=config.cache_ttl)

    def _create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application()
        app.router.add_get(Constants.HEALTH_PATH, self._health_check)
        app.router.add_route("*", "/{key:.*}", self._handle_request)
        app.on_response_prepare.append(self._set_server_header)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _set_server_header(self, request: web.Request, response: web.StreamResponse) -> None:
        response.headers["Server"] = Constants.USER_AGENT

    async def _health_check(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({
            "status": "ok",
            "files": len(self._file_map),
            "cache": self._cache.stats(),
        })

    async def _on_startup(self, app: web.Application) -> None:
        """Called when the server starts."""
        await self._resolver.start()

    async def _on_cleanup(self, app: web.Application) -> None:
        """Called when the server stops."""
        await self._resolver.stop()
        logger.info("Redirect server stopped")

    async def _handle_request(self, request: web.Request) -> web.Response:
        """Redirect a file key to its resolved download URL.

        Args:
            request: Incoming HTTP request.

        Returns:
            302 redirect, 404 for unknown keys, or 5xx on resolution failure.
        """
        file_key = request.path[1:]
        project_id = self._file_map.get(file_key)
        if project_id is None:
            logger.debug("Unknown file key: %s", file_key)
            return web.Response(status=404, text="File not found\n")

        try:
            outcome = await self._cache.resolve(project_id)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Error in request handler for %s", file_key)
            return web.Response(status=500, text="Internal server error\n")

        if outcome.error is not None:
            return web.Response(
                status=outcome.error.status_code,
                text=f"{outcome.error}\n",
            )

        return web.Response(status=302, headers={"Location": outcome.url})

    def cache_stats(self) -> Dict[str, Any]:
        """Get resolution cache statistics."""
        return self._cache.stats()

    async def start(self) -> None:
        """Start the redirect server."""
        self._app = self._create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        address = self._config.address
        site: web.BaseSite
        try:
            if address.is_unix:
                site = web.UnixSite(self._runner, address.unix_path)
                await site.start()
                os.chmod(address.unix_path, Constants.UNIX_SOCKET_MODE)
            else:
                site = web.TCPSite(self._runner, address.host, address.port)
                await site.start()
        except BaseException:
            # Runner cleanup also closes the resolver session opened at startup.
            await self.stop()
            raise

        logger.info("Starting server on %s", address)
        logger.info("Upstream: %s", self._resolver.base_url)
        logger.info("Serving %d file key(s)", len(self._file_map))

    async def stop(self) -> None:
        """Stop the redirect server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._app = None


def run_server_sync(config: ServerConfig, file_map: Mapping[str, str]) -> None:
    """Run the redirect server synchronously.

    Installs signal handlers for SIGTERM and SIGINT for clean shutdown.

    Args:
        config: Server configuration.
        file_map: Validated mapping of file key to project identifier.
    """
    server = RedirectServer(config, file_map)
    loop = asyncio.new_event_loop()

    async def run():
        await server.start()
        stop_event = asyncio.Event()
        running_loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            running_loop.add_signal_handler(sig, stop_event.set)
        await stop_event.wait()
        logger.info("Shutdown signal received, stopping...")
        await server.stop()

    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work (Windows)
        loop.run_until_complete(server.stop())
    finally:
        loop.close()
        logger.info("Redirect server shutdown complete")
