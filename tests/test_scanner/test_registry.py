"""Tests for the TTL cache and package registry client."""

from __future__ import annotations

import httpx
import pytest

from llmguardian.scanner.registry import OfflineRegistry, PackageRegistry, TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _registry(handler, clock: FakeClock | None = None) -> PackageRegistry:
    cache = TTLCache(ttl=300.0, clock=clock or FakeClock())
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PackageRegistry(base_url="https://registry.test", cache=cache, client=client)


class TestTTLCache:
    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl=10.0, clock=clock)
        cache.set("stripe", 1)

        clock.now = 9.9
        assert cache.get("stripe") == 1
        clock.now = 10.0
        assert cache.get("stripe") is None
        assert len(cache) == 0

    def test_caches_are_independent(self):
        a = TTLCache(ttl=10.0)
        b = TTLCache(ttl=10.0)
        a.set("x", 1)

        assert b.get("x") is None


class TestPackageRegistry:
    def test_existing_package(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/stripe"
            return httpx.Response(200, json={
                "description": "Stripe API wrapper",
                "dist-tags": {"latest": "14.0.0"},
                "versions": {"14.0.0": {}},
            })

        info = _registry(handler).lookup("stripe")

        assert info.exists
        assert info.version == "14.0.0"
        assert info.deprecated is None
        assert info.description == "Stripe API wrapper"

    def test_deprecated_package(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "dist-tags": {"latest": "2.88.2"},
                "versions": {"2.88.2": {"deprecated": "request has been deprecated"}},
            })

        info = _registry(handler).lookup("request")
        assert info.deprecated == "request has been deprecated"

    def test_not_found_is_cached(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(404, json={"error": "Not found"})

        registry = _registry(handler)
        assert not registry.lookup("stripe-pro").exists
        assert not registry.lookup("stripe-pro").exists
        assert len(calls) == 1

    def test_network_errors_are_not_cached(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.ConnectError("offline", request=request)

        registry = _registry(handler)
        assert not registry.lookup("react").exists
        assert not registry.lookup("react").exists
        assert len(calls) == 2
        assert len(registry.cache) == 0

    def test_cache_expiry_triggers_new_request(self):
        clock = FakeClock()
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(200, json={"dist-tags": {"latest": "1.0.0"}, "versions": {}})

        registry = _registry(handler, clock)
        registry.lookup("react")
        clock.now = 301.0
        registry.lookup("react")

        assert len(calls) == 2

    def test_scoped_package_path(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path.decode())
            return httpx.Response(200, json={"dist-tags": {"latest": "1.0.0"}})

        _registry(handler).lookup("@stripe/stripe-js")
        assert seen == ["/@stripe%2Fstripe-js"]

    def test_lookup_many_deduplicates(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(404)

        result = _registry(handler).lookup_many(["a", "b", "a"])
        assert list(result) == ["a", "b"]
        assert len(calls) == 2


class TestOfflineRegistry:
    @pytest.mark.parametrize("name", ["stripe", "definitely-not-real-pkg"])
    def test_everything_exists(self, name):
        assert OfflineRegistry().lookup(name).exists
