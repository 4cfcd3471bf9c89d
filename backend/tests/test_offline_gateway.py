"""
StreetPaws Offline — Caching Gateway Tests
============================================

What:  Strategy selection, install/activate lifecycle and offline behaviour
       of CachingGateway.
How:   httpx.MockTransport plays the network. FakeNetwork counts hits per
       path, can be switched offline (every request raises ConnectError),
       and can hold responses until released to prove a cached response
       did not wait for the network.
"""

import asyncio
import gzip
import json
from collections import Counter

import httpx
import pytest

from streetpaws.exceptions import GatewayInstallError
from streetpaws.offline import (
    OFFLINE_BODY,
    CacheStorage,
    CachingGateway,
    Strategy,
    WorkerState,
    classify,
    offline_client,
)

BASE_URL = "http://streetpaws.test"


class FakeNetwork:
    """Versioned fake origin: every response body names the current version."""

    def __init__(self):
        self.hits = Counter()
        self.online = True
        self.version = 1
        self.status_overrides = {}
        self.gate = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.hits[(request.method, path)] += 1
        if self.gate is not None:
            await self.gate.wait()
        if not self.online:
            raise httpx.ConnectError("network unreachable", request=request)

        status = self.status_overrides.get(path, 200)
        if path.startswith("/api/"):
            return httpx.Response(status, json={"path": path, "version": self.version})
        return httpx.Response(status, text=f"{path} v{self.version}")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def caches():
    return CacheStorage()


async def _active_gateway(network, caches, version="streetpaws-pwa-v1"):
    gateway = CachingGateway(network.transport, BASE_URL, cache_version=version, caches=caches)
    await gateway.install()
    await gateway.activate()
    return gateway


def _client(gateway):
    return httpx.AsyncClient(transport=gateway, base_url=BASE_URL)


class TestClassify:

    @pytest.mark.parametrize(
        "path, strategy",
        [
            ("/", Strategy.STALE_WHILE_REVALIDATE),
            ("/register", Strategy.STALE_WHILE_REVALIDATE),
            ("/search", Strategy.STALE_WHILE_REVALIDATE),
            ("/helplines", Strategy.STALE_WHILE_REVALIDATE),
            ("/api/animals", Strategy.NETWORK_FIRST_API),
            ("/api/uploads.json", Strategy.NETWORK_FIRST_API),
            ("/icon-192.svg", Strategy.CACHE_FIRST),
            ("/uploads/animal-1-2.jpg", Strategy.CACHE_FIRST),
            ("/manifest.json", Strategy.CACHE_FIRST),
            ("/animal/SP-2024-000001", Strategy.NETWORK_FIRST),
            ("/register/extra", Strategy.NETWORK_FIRST),
            ("/api", Strategy.NETWORK_FIRST),
        ],
    )
    def test_precedence(self, path, strategy):
        assert classify(path) is strategy


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_install_precaches_manifest(self, network, caches):
        gateway = CachingGateway(network.transport, BASE_URL, caches=caches)

        await gateway.install()

        assert gateway.state is WorkerState.INSTALLED
        assert sorted(caches.open("streetpaws-pwa-v1").keys()) == [
            f"{BASE_URL}/",
            f"{BASE_URL}/api/health",
            f"{BASE_URL}/manifest.json",
        ]

    @pytest.mark.asyncio
    async def test_install_is_all_or_nothing_on_bad_status(self, network, caches):
        network.status_overrides["/manifest.json"] = 404
        gateway = CachingGateway(network.transport, BASE_URL, caches=caches)

        with pytest.raises(GatewayInstallError) as exc_info:
            await gateway.install()

        assert exc_info.value.url == f"{BASE_URL}/manifest.json"
        assert gateway.state is WorkerState.REDUNDANT
        assert len(caches.open("streetpaws-pwa-v1")) == 0

    @pytest.mark.asyncio
    async def test_install_fails_offline(self, network, caches):
        network.online = False
        gateway = CachingGateway(network.transport, BASE_URL, caches=caches)

        with pytest.raises(GatewayInstallError):
            await gateway.install()

        assert gateway.state is WorkerState.REDUNDANT

    @pytest.mark.asyncio
    async def test_activate_deletes_stale_namespaces(self, network, caches):
        caches.open("streetpaws-pwa-v0").put("x", None)
        caches.open("some-other-app").put("y", None)

        gateway = await _active_gateway(network, caches, version="streetpaws-pwa-v1")

        assert gateway.state is WorkerState.ACTIVATED
        assert caches.keys() == ["streetpaws-pwa-v1"]
        assert len(caches.open("streetpaws-pwa-v1")) == 3

    @pytest.mark.asyncio
    async def test_version_bump_evicts_previous_generation(self, network, caches):
        await _active_gateway(network, caches, version="streetpaws-pwa-v1")
        await _active_gateway(network, caches, version="streetpaws-pwa-v2")
        assert caches.keys() == ["streetpaws-pwa-v2"]

    @pytest.mark.asyncio
    async def test_activate_requires_install(self, network, caches):
        gateway = CachingGateway(network.transport, BASE_URL, caches=caches)
        with pytest.raises(RuntimeError):
            await gateway.activate()

    @pytest.mark.asyncio
    async def test_passthrough_before_activation(self, network, caches):
        gateway = CachingGateway(network.transport, BASE_URL, caches=caches)
        await gateway.install()

        async with _client(gateway) as client:
            await client.get("/api/animals")
            network.online = False
            with pytest.raises(httpx.ConnectError):
                await client.get("/api/animals")

    @pytest.mark.asyncio
    async def test_unregister_evicts_and_stops_intercepting(self, network, caches):
        gateway = await _active_gateway(network, caches)

        await gateway.unregister()

        assert gateway.state is WorkerState.REDUNDANT
        assert not caches.has("streetpaws-pwa-v1")
        network.online = False
        async with _client(gateway) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("/api/health")


class TestStaleWhileRevalidate:

    @pytest.mark.asyncio
    async def test_first_request_populates_second_served_from_cache(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            first = await client.get("/register")
            assert first.text == "/register v1"
            assert network.hits[("GET", "/register")] == 1

            network.version = 2
            network.gate = asyncio.Event()
            second = await asyncio.wait_for(client.get("/register"), timeout=1)
            assert second.text == "/register v1"
            assert gateway.pending_revalidations == 1

            network.gate.set()
            await gateway.drain()
            third = await client.get("/register")

        assert third.text == "/register v2"

    @pytest.mark.asyncio
    async def test_background_failure_is_swallowed(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            network.online = False
            response = await client.get("/")
            await gateway.drain()
            again = await client.get("/")

        assert response.status_code == 200
        assert again.text == "/ v1"


class TestNetworkFirstApi:

    @pytest.mark.asyncio
    async def test_offline_without_cache_returns_503(self, network, caches):
        gateway = await _active_gateway(network, caches)
        network.online = False

        async with _client(gateway) as client:
            response = await client.get("/api/animals")

        assert response.status_code == 503
        assert response.json() == OFFLINE_BODY
        assert response.json()["error"] == "Offline"

    @pytest.mark.asyncio
    async def test_offline_with_cache_returns_cached_copy(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            await client.get("/api/animals")
            network.online = False
            response = await client.get("/api/animals")

        assert response.status_code == 200
        assert response.json() == {"path": "/api/animals", "version": 1}

    @pytest.mark.asyncio
    async def test_online_always_hits_network(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            await client.get("/api/stats")
            network.version = 2
            response = await client.get("/api/stats")

        assert response.json()["version"] == 2
        assert network.hits[("GET", "/api/stats")] == 2

    @pytest.mark.asyncio
    async def test_non_200_not_cached(self, network, caches):
        gateway = await _active_gateway(network, caches)
        network.status_overrides["/api/animals/9"] = 404

        async with _client(gateway) as client:
            assert (await client.get("/api/animals/9")).status_code == 404
            network.online = False
            response = await client.get("/api/animals/9")

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_query_string_is_part_of_the_key(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            await client.get("/api/animals/search", params={"species": "dog"})
            network.online = False
            cached = await client.get("/api/animals/search", params={"species": "dog"})
            missing = await client.get("/api/animals/search", params={"species": "cat"})

        assert cached.status_code == 200
        assert missing.status_code == 503

    @pytest.mark.asyncio
    async def test_cache_write_failure_does_not_break_response(self, network, caplog):
        caches = CacheStorage(max_entries_per_cache=3)
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            response = await client.get("/api/animals")

        assert response.status_code == 200
        assert response.json()["path"] == "/api/animals"
        assert "Cache write failed" in caplog.text


class TestCacheFirst:

    @pytest.mark.asyncio
    async def test_static_asset_fetched_once(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            first = await client.get("/icon-192.svg")
            network.version = 2
            second = await client.get("/icon-192.svg")

        assert first.text == second.text == "/icon-192.svg v1"
        assert network.hits[("GET", "/icon-192.svg")] == 1

    @pytest.mark.asyncio
    async def test_precached_manifest_served_offline(self, network, caches):
        gateway = await _active_gateway(network, caches)
        network.online = False

        async with _client(gateway) as client:
            response = await client.get("/manifest.json")

        assert response.text == "/manifest.json v1"


class TestNetworkFirstOther:

    @pytest.mark.asyncio
    async def test_offline_falls_back_to_cache(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            await client.get("/animal/SP-2024-000001")
            network.online = False
            response = await client.get("/animal/SP-2024-000001")

        assert response.text == "/animal/SP-2024-000001 v1"

    @pytest.mark.asyncio
    async def test_offline_without_cache_reraises(self, network, caches):
        gateway = await _active_gateway(network, caches)
        network.online = False

        async with _client(gateway) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("/animal/SP-2024-000002")


class TestNonGet:

    @pytest.mark.asyncio
    async def test_post_passes_through_and_is_not_cached(self, network, caches):
        gateway = await _active_gateway(network, caches)

        async with _client(gateway) as client:
            response = await client.post("/api/animals", json={"species": "dog"})
            assert response.status_code == 200
            network.online = False
            with pytest.raises(httpx.ConnectError):
                await client.post("/api/animals", json={"species": "dog"})

        assert f"{BASE_URL}/api/animals" not in caches.open("streetpaws-pwa-v1").keys()
        assert network.hits[("POST", "/api/animals")] == 2


class TestEncodedBodies:

    @pytest.mark.asyncio
    async def test_gzip_response_replayed_from_cache(self, caches):
        payload = json.dumps([{"animalId": "SP-2024-000001"}]).encode()
        online = True

        def handler(request):
            if not online:
                raise httpx.ConnectError("offline", request=request)
            if request.url.path == "/api/animals":
                return httpx.Response(
                    200,
                    headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
                    content=gzip.compress(payload),
                )
            return httpx.Response(200, text="ok")

        gateway = CachingGateway(httpx.MockTransport(handler), BASE_URL, caches=caches)
        await gateway.install()
        await gateway.activate()

        async with _client(gateway) as client:
            live = await client.get("/api/animals")
            online = False
            cached = await client.get("/api/animals")

        assert live.json() == cached.json() == [{"animalId": "SP-2024-000001"}]


class TestOfflineClient:

    @pytest.mark.asyncio
    async def test_context_manager_installs_and_activates(self, network, caches):
        async with offline_client(BASE_URL, transport=network.transport, caches=caches) as client:
            live = await client.get("/api/animals")
            network.online = False
            offline = await client.get("/api/animals")
            unknown = await client.get("/api/helplines")

        assert live.status_code == offline.status_code == 200
        assert unknown.status_code == 503
        assert caches.keys() == ["streetpaws-pwa-v1"]

    @pytest.mark.asyncio
    async def test_cache_survives_between_clients(self, network, caches):
        async with offline_client(BASE_URL, transport=network.transport, caches=caches) as client:
            await client.get("/api/stats")

        async with offline_client(BASE_URL, transport=network.transport, caches=caches) as client:
            network.online = False
            response = await client.get("/api/stats")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_install_failure_propagates(self, network, caches):
        network.online = False
        with pytest.raises(GatewayInstallError):
            async with offline_client(BASE_URL, transport=network.transport, caches=caches):
                pass


class TestRequestExtensions:

    @pytest.fixture
    def seen(self):
        return {}

    @pytest.fixture
    def recording_transport(self, seen):
        def handler(request):
            seen.setdefault(request.url.path, []).append(request.extensions.get("timeout"))
            return httpx.Response(200, json={"path": request.url.path})

        return httpx.MockTransport(handler)

    @pytest.mark.asyncio
    async def test_precache_fetches_have_a_timeout(self, recording_transport, seen, caches):
        gateway = CachingGateway(
            recording_transport, BASE_URL, caches=caches, timeout=httpx.Timeout(3.0)
        )
        await gateway.install()

        for path in ("/", "/manifest.json", "/api/health"):
            assert seen[path][0]["read"] == 3.0

    @pytest.mark.asyncio
    async def test_client_timeouts_reach_the_network(self, recording_transport, seen, caches):
        gateway = CachingGateway(recording_transport, BASE_URL, caches=caches)
        await gateway.install()
        await gateway.activate()

        async with httpx.AsyncClient(transport=gateway, base_url=BASE_URL, timeout=2.0) as client:
            await client.get("/api/animals")
            await client.get("/api/animals", timeout=0.5)
            await client.get("/icon-192.svg")
            await client.get("/register")
            await gateway.drain()

        assert [t["read"] for t in seen["/api/animals"]] == [2.0, 0.5]
        assert seen["/icon-192.svg"][0]["read"] == 2.0
        assert seen["/register"][0]["read"] == 2.0

    @pytest.mark.asyncio
    async def test_background_refresh_keeps_timeout(self, recording_transport, seen, caches):
        gateway = CachingGateway(recording_transport, BASE_URL, caches=caches)
        await gateway.install()
        await gateway.activate()

        async with httpx.AsyncClient(transport=gateway, base_url=BASE_URL, timeout=1.5) as client:
            await client.get("/")
            await gateway.drain()

        # precache fetch, then the revalidation triggered by the cached hit
        assert len(seen["/"]) == 2
        assert seen["/"][1]["read"] == 1.5

    @pytest.mark.asyncio
    async def test_offline_client_timeout_bounds_install(self, recording_transport, seen, caches):
        async with offline_client(
            BASE_URL, transport=recording_transport, caches=caches, timeout=4.0
        ) as client:
            await client.get("/api/stats")

        assert seen["/api/health"][0]["read"] == 4.0
        assert seen["/api/stats"][0]["read"] == 4.0
