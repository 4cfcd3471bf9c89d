"""
StreetPaws Offline — Versioned Response Caches
================================================

What:  Named caches of HTTP responses keyed by request URL.
How:   CacheStorage holds one Cache per namespace name
       ("streetpaws-pwa-v1", ...). Each Cache maps a URL to a
       CachedResponse snapshot (status, headers, decoded body).

Bumping the namespace version is the only migration mechanism: the
gateway's activate() deletes every namespace except the current one.

Writes are idempotent; the last writer for a URL wins.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

# Describe the transfer, not the content; recomputed on replay
_HOP_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


class CacheQuotaExceededError(Exception):
    """A new entry would exceed the cache's max_entries."""


@dataclass(frozen=True)
class CachedResponse:
    """Immutable snapshot of a response that can be replayed any number of times."""
    status_code: int
    headers: Tuple[Tuple[str, str], ...]
    content: bytes

    @classmethod
    async def capture(cls, response: httpx.Response) -> "CachedResponse":
        """
        Read the body of `response` and snapshot it.

        The body is stored decoded, so Content-Encoding and Content-Length
        are dropped from the stored headers.
        """
        content = await response.aread()
        headers = tuple(
            (name, value)
            for name, value in response.headers.multi_items()
            if name.lower() not in _HOP_HEADERS
        )
        return cls(status_code=response.status_code, headers=headers, content=content)

    def to_response(self, request: Optional[httpx.Request] = None) -> httpx.Response:
        return httpx.Response(
            self.status_code,
            headers=list(self.headers),
            content=self.content,
            request=request,
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class Cache:
    """One cache namespace."""
    name: str
    max_entries: Optional[int] = None
    _entries: Dict[str, CachedResponse] = field(default_factory=dict, repr=False)

    def match(self, url: str) -> Optional[CachedResponse]:
        return self._entries.get(url)

    def put(self, url: str, response: CachedResponse) -> None:
        if (
            self.max_entries is not None
            and url not in self._entries
            and len(self._entries) >= self.max_entries
        ):
            raise CacheQuotaExceededError(
                f"cache '{self.name}' is full ({self.max_entries} entries)"
            )
        self._entries[url] = response

    def put_all(self, entries: Dict[str, CachedResponse]) -> None:
        """Store several entries, or none of them if the quota would be exceeded."""
        new = [url for url in entries if url not in self._entries]
        if self.max_entries is not None and len(self._entries) + len(new) > self.max_entries:
            raise CacheQuotaExceededError(
                f"cache '{self.name}' cannot hold {len(new)} more entries"
            )
        self._entries.update(entries)

    def delete(self, url: str) -> bool:
        return self._entries.pop(url, None) is not None

    def keys(self) -> List[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class CacheStorage:
    """
    All cache namespaces visible to one client.

    Args:
        max_entries_per_cache: Optional quota applied to every namespace
                               opened through this storage.
    """

    def __init__(self, max_entries_per_cache: Optional[int] = None):
        self.max_entries_per_cache = max_entries_per_cache
        self._caches: Dict[str, Cache] = {}

    def open(self, name: str) -> Cache:
        """Return the namespace, creating it if needed."""
        cache = self._caches.get(name)
        if cache is None:
            cache = Cache(name=name, max_entries=self.max_entries_per_cache)
            self._caches[name] = cache
        return cache

    def has(self, name: str) -> bool:
        return name in self._caches

    def delete(self, name: str) -> bool:
        deleted = self._caches.pop(name, None) is not None
        if deleted:
            logger.info("Deleted cache namespace %s", name)
        return deleted

    def keys(self) -> List[str]:
        return list(self._caches)
