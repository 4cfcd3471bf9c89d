"""
StreetPaws Offline — Client-Side Caching
==========================================

What:  Lets an HTTP client keep working against previously seen responses
       of the StreetPaws service while the network is down.

Public API:
    - offline_client():  installed + activated httpx.AsyncClient
    - CachingGateway:    the transport, with install/activate/unregister/drain
    - CacheStorage:      versioned response caches
    - WorkerState, Strategy, classify()
"""

from streetpaws.offline.cache_storage import (
    Cache,
    CachedResponse,
    CacheQuotaExceededError,
    CacheStorage,
)
from streetpaws.offline.client import offline_client
from streetpaws.offline.gateway import (
    APP_SHELL_PATHS,
    OFFLINE_BODY,
    PRECACHE_MANIFEST,
    CachingGateway,
    Strategy,
    WorkerState,
    classify,
)

__all__ = [
    "APP_SHELL_PATHS",
    "OFFLINE_BODY",
    "PRECACHE_MANIFEST",
    "Cache",
    "CachedResponse",
    "CacheQuotaExceededError",
    "CacheStorage",
    "CachingGateway",
    "Strategy",
    "WorkerState",
    "classify",
    "offline_client",
]
