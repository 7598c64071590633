"""Package registry lookups used as a hallucination signal."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar
from urllib.parse import quote

import httpx

logger = logging.getLogger("llmguardian.registry")

K = TypeVar("K")
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """In-memory cache whose entries expire ``ttl`` seconds after insertion.

    The clock is injected so expiry can be tested without sleeping.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[K, tuple[V, float]] = {}

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = (value, self._clock())

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class PackageInfo:
    name: str
    exists: bool
    version: str = ""
    deprecated: str | None = None
    description: str = ""


class PackageRegistry:
    """Existence and deprecation lookups against an npm-style registry."""

    def __init__(
        self,
        base_url: str = "https://registry.npmjs.org",
        cache: TTLCache[str, PackageInfo] | None = None,
        client: httpx.Client | None = None,
        timeout: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else TTLCache(ttl=300.0)
        self._client = client or httpx.Client(
            timeout=timeout, headers={"Accept": "application/json"}
        )

    def lookup(self, name: str) -> PackageInfo:
        cached = self.cache.get(name)
        if cached is not None:
            return cached

        try:
            response = self._client.get(f"{self.base_url}/{quote(name, safe='@')}")
        except httpx.HTTPError as e:
            # Not cached: the failure may be transient.
            logger.warning("Registry lookup for %s failed: %s", name, e)
            return PackageInfo(name=name, exists=False)

        if response.status_code != 200:
            info = PackageInfo(name=name, exists=False)
            self.cache.set(name, info)
            return info

        try:
            data = response.json()
        except ValueError:
            logger.warning("Registry returned invalid JSON for %s", name)
            return PackageInfo(name=name, exists=False)

        latest = (data.get("dist-tags") or {}).get("latest", "")
        version_info = (data.get("versions") or {}).get(latest) or {}
        info = PackageInfo(
            name=name,
            exists=True,
            version=latest,
            deprecated=version_info.get("deprecated"),
            description=data.get("description") or version_info.get("description") or "",
        )
        self.cache.set(name, info)
        return info

    def lookup_many(self, names: list[str]) -> dict[str, PackageInfo]:
        return {name: self.lookup(name) for name in dict.fromkeys(names)}

    def close(self) -> None:
        self._client.close()


class OfflineRegistry:
    """Registry stand-in that reports every package as existing."""

    def lookup(self, name: str) -> PackageInfo:
        return PackageInfo(name=name, exists=True)

    def lookup_many(self, names: list[str]) -> dict[str, PackageInfo]:
        return {name: self.lookup(name) for name in dict.fromkeys(names)}

    def close(self) -> None:
        pass
