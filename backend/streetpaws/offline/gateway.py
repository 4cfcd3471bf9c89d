"""
StreetPaws Offline — Caching Gateway
======================================

What:  An httpx transport that sits between an AsyncClient and the network
       and answers GET requests from a versioned local cache when it can.
How:   Wraps an inner transport (the "network"). After install() and
       activate(), every GET is classified by its path and served with one
       of these strategies:

       Classification (first match wins)       Strategy
       ─────────────────────────────────────   ─────────────────────────────
       1. App shell: /, /register, /search,    stale-while-revalidate
          /helplines
       2. API: path starts with /api/          network-first, 503 offline body
       3. Static asset: last segment has an    cache-first
          extension (/icon-192.svg)
       4. Anything else                        network-first, re-raise offline

       Non-GET requests always go straight to the network.

Lifecycle (WorkerState):

       PARSED ──install()──▶ INSTALLING ──▶ INSTALLED ──activate()──▶
       ACTIVATING ──▶ ACTIVATED ──unregister()──▶ REDUNDANT

       A failed install also ends in REDUNDANT. Until ACTIVATED, requests
       pass through untouched.

Failure Contract:
    Cache writes and background revalidations are best-effort. A failure
    is logged and never changes the response returned to the caller.
"""

import asyncio
import enum
import logging
from pathlib import PurePosixPath
from typing import Iterable, Optional, Set

import httpx

from streetpaws.exceptions import GatewayInstallError
from streetpaws.offline.cache_storage import CachedResponse, CacheStorage

logger = logging.getLogger(__name__)

DEFAULT_CACHE_VERSION = "streetpaws-pwa-v1"

# Applied to install()'s precache fetches, which have no client request to inherit from
DEFAULT_TIMEOUT = httpx.Timeout(10.0)

PRECACHE_MANIFEST = ("/", "/manifest.json", "/api/health")

APP_SHELL_PATHS = frozenset({"/", "/register", "/search", "/helplines"})

API_PREFIX = "/api/"

OFFLINE_BODY = {
    "error": "Offline",
    "message": "This feature requires an internet connection",
}


class WorkerState(str, enum.Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class Strategy(str, enum.Enum):
    STALE_WHILE_REVALIDATE = "stale-while-revalidate"
    NETWORK_FIRST_API = "network-first-api"
    CACHE_FIRST = "cache-first"
    NETWORK_FIRST = "network-first"


def classify(path: str) -> Strategy:
    """Pick the caching strategy for a GET request path."""
    if path in APP_SHELL_PATHS:
        return Strategy.STALE_WHILE_REVALIDATE
    if path.startswith(API_PREFIX):
        return Strategy.NETWORK_FIRST_API
    if PurePosixPath(path).suffix:
        return Strategy.CACHE_FIRST
    return Strategy.NETWORK_FIRST


def offline_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json=OFFLINE_BODY, request=request)


class CachingGateway(httpx.AsyncBaseTransport):
    """
    Offline-capable transport.

    Args:
        transport:      The real network transport.
        base_url:       Origin the precache manifest is resolved against.
        cache_version:  Name of the current cache namespace.
        caches:         Shared CacheStorage (a fresh one if omitted).
        precache:       Paths fetched by install().
        timeout:        Timeout for the precache fetches. Intercepted requests
                        keep the timeout the client attached to them.

    Usage:
        gateway = CachingGateway(httpx.AsyncHTTPTransport(), base_url="http://localhost:8000")
        await gateway.install()
        await gateway.activate()
        async with httpx.AsyncClient(transport=gateway, base_url=...) as client:
            ...
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        base_url: str,
        cache_version: str = DEFAULT_CACHE_VERSION,
        caches: Optional[CacheStorage] = None,
        precache: Iterable[str] = PRECACHE_MANIFEST,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        self._transport = transport
        self.base_url = httpx.URL(base_url)
        self.cache_version = cache_version
        self.caches = caches if caches is not None else CacheStorage()
        self.precache = tuple(precache)
        self.timeout = timeout
        self.state = WorkerState.PARSED
        self._pending: Set[asyncio.Task] = set()

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def install(self) -> None:
        """
        Pre-populate the current namespace with the precache manifest.

        All-or-nothing: every entry is fetched first and only stored if all
        of them succeeded with a 2xx status.

        Raises:
            GatewayInstallError: a manifest entry failed; state is REDUNDANT.
        """
        if self.state is not WorkerState.PARSED:
            raise RuntimeError(f"install() called in state {self.state.value}")
        self.state = WorkerState.INSTALLING
        logger.info("Installing caching gateway %s", self.cache_version)

        fetched = {}
        for path in self.precache:
            url = self.base_url.join(path)
            try:
                request = httpx.Request("GET", url, extensions={"timeout": self.timeout.as_dict()})
                response = await self._transport.handle_async_request(request)
                snapshot = await CachedResponse.capture(response)
            except httpx.TransportError as e:
                self.state = WorkerState.REDUNDANT
                raise GatewayInstallError(str(url), f"network error: {e!r}")
            if not snapshot.ok:
                self.state = WorkerState.REDUNDANT
                raise GatewayInstallError(str(url), f"status {snapshot.status_code}")
            fetched[str(url)] = snapshot

        try:
            self.caches.open(self.cache_version).put_all(fetched)
        except Exception as e:
            self.state = WorkerState.REDUNDANT
            raise GatewayInstallError(str(self.base_url), f"cache write failed: {e}")

        # Skip waiting: eligible to activate immediately
        self.state = WorkerState.INSTALLED
        logger.info("Precached %d resources", len(fetched))

    async def activate(self) -> None:
        """Delete every namespace except the current one, then start intercepting."""
        if self.state is not WorkerState.INSTALLED:
            raise RuntimeError(f"activate() called in state {self.state.value}")
        self.state = WorkerState.ACTIVATING

        for name in self.caches.keys():
            if name != self.cache_version:
                self.caches.delete(name)

        self.state = WorkerState.ACTIVATED
        logger.info("Caching gateway %s active", self.cache_version)

    async def unregister(self) -> None:
        """Evict the current namespace and stop intercepting."""
        await self.drain()
        self.caches.delete(self.cache_version)
        self.state = WorkerState.REDUNDANT

    async def drain(self) -> None:
        """Wait for every background revalidation started so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        await self._transport.aclose()

    @property
    def pending_revalidations(self) -> int:
        return len(self._pending)

    # ── Request Handling ──────────────────────────────────────────────────

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self.state is not WorkerState.ACTIVATED or request.method != "GET":
            return await self._transport.handle_async_request(request)

        strategy = classify(request.url.path)
        logger.debug("%s %s → %s", request.method, request.url, strategy.value)

        if strategy is Strategy.STALE_WHILE_REVALIDATE:
            return await self._stale_while_revalidate(request)
        if strategy is Strategy.NETWORK_FIRST_API:
            return await self._network_first(request, offline_fallback=True)
        if strategy is Strategy.CACHE_FIRST:
            return await self._cache_first(request)
        return await self._network_first(request, offline_fallback=False)

    async def _stale_while_revalidate(self, request: httpx.Request) -> httpx.Response:
        cached = self._match(request)
        if cached is not None:
            self._schedule_revalidation(request)
            return cached.to_response(request)

        snapshot = await self._fetch(request)
        self._store(request, snapshot)
        return snapshot.to_response(request)

    async def _network_first(
        self, request: httpx.Request, offline_fallback: bool
    ) -> httpx.Response:
        try:
            snapshot = await self._fetch(request)
        except httpx.TransportError as e:
            cached = self._match(request)
            if cached is not None:
                logger.debug("Network failed for %s, serving cached copy", request.url)
                return cached.to_response(request)
            if offline_fallback:
                logger.debug("Network failed for %s, no cached copy: %r", request.url, e)
                return offline_response(request)
            raise

        if snapshot.status_code == 200:
            self._store(request, snapshot)
        return snapshot.to_response(request)

    async def _cache_first(self, request: httpx.Request) -> httpx.Response:
        cached = self._match(request)
        if cached is not None:
            return cached.to_response(request)

        snapshot = await self._fetch(request)
        self._store(request, snapshot)
        return snapshot.to_response(request)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _fetch(self, request: httpx.Request) -> CachedResponse:
        response = await self._transport.handle_async_request(_copy_request(request))
        return await CachedResponse.capture(response)

    def _match(self, request: httpx.Request) -> Optional[CachedResponse]:
        return self.caches.open(self.cache_version).match(str(request.url))

    def _store(self, request: httpx.Request, snapshot: CachedResponse) -> None:
        try:
            self.caches.open(self.cache_version).put(str(request.url), snapshot)
        except Exception as e:
            logger.warning("Cache write failed for %s: %s", request.url, str(e))

    def _schedule_revalidation(self, request: httpx.Request) -> None:
        task = asyncio.create_task(self._revalidate(_copy_request(request)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _revalidate(self, request: httpx.Request) -> None:
        try:
            snapshot = await self._fetch(request)
        except Exception as e:
            logger.debug("Background refresh of %s failed: %r", request.url, e)
            return
        self._store(request, snapshot)


def _copy_request(request: httpx.Request) -> httpx.Request:
    # Extensions carry the client's timeout down to the network transport
    return httpx.Request(
        request.method, request.url, headers=request.headers, extensions=request.extensions
    )
