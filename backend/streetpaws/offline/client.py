"""
StreetPaws Offline — Client Factory
=====================================

offline_client() is the one-call way to get an httpx.AsyncClient whose GET
requests survive network outages:

    async with offline_client("https://streetpaws.example.org") as client:
        animals = (await client.get("/api/animals")).json()

On enter it builds a CachingGateway, installs it (precache) and activates
it (evict old namespaces). On exit it waits for background revalidations
and closes the network transport.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from streetpaws.config import settings
from streetpaws.offline.cache_storage import CacheStorage
from streetpaws.offline.gateway import DEFAULT_TIMEOUT, CachingGateway


@asynccontextmanager
async def offline_client(
    base_url: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    caches: Optional[CacheStorage] = None,
    cache_version: Optional[str] = None,
    **client_kwargs: Any,
) -> AsyncIterator[httpx.AsyncClient]:
    """
    Args:
        base_url:       Origin of the StreetPaws service.
        transport:      Network transport (defaults to httpx.AsyncHTTPTransport).
        caches:         CacheStorage to reuse across clients, e.g. to keep
                        cached responses between sessions.
        cache_version:  Namespace name; defaults to settings.cache_version.
        client_kwargs:  Passed to httpx.AsyncClient (timeout, headers, ...). A
                        timeout also bounds the install() precache fetches.

    Raises:
        GatewayInstallError: the precache manifest could not be fetched.
    """
    gateway = CachingGateway(
        transport or httpx.AsyncHTTPTransport(),
        base_url=base_url,
        cache_version=cache_version or settings.cache_version,
        caches=caches,
        timeout=httpx.Timeout(client_kwargs.get("timeout", DEFAULT_TIMEOUT)),
    )
    await gateway.install()
    await gateway.activate()

    # AsyncClient.__aexit__ closes the gateway, which drains it first
    async with httpx.AsyncClient(transport=gateway, base_url=base_url, **client_kwargs) as client:
        yield client
