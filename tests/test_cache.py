from __future__ import annotations

import asyncio

import pytest

from npm_mirror.errors import NetworkError, NotFoundError
from npm_mirror.registry.cache import ManifestCache
from npm_mirror.registry.client import RETRY_ATTEMPTS

from conftest import TARGET


def test_concurrent_lookups_share_one_fetch(client, registry):
    registry.publish("react", "18.2.0", integrity="sha512-react")
    registry.delay = 0.02
    cache = ManifestCache(client)

    async def lookup_many():
        return await asyncio.gather(*(cache.get_or_fetch(TARGET, "react") for _ in range(10)))

    results = asyncio.run(lookup_many())

    assert all(info is results[0] for info in results)
    assert registry.calls_to("https://new/react") == 1
    assert "react" in cache
    assert len(cache) == 1


def test_get_manifest_missing_version_is_not_found(client, registry):
    registry.publish("react", "18.2.0", integrity="sha512-react")
    cache = ManifestCache(client)

    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(cache.get_manifest(TARGET, "react", "0.0.1"))

    assert excinfo.value.version == "0.0.1"


def test_network_failures_do_not_populate_the_cache(client, registry):
    registry.publish("react", "18.2.0", integrity="sha512-react")
    registry.failures["https://new/react"] = RETRY_ATTEMPTS
    cache = ManifestCache(client)

    async def lookup_twice():
        with pytest.raises(NetworkError):
            await cache.get_or_fetch(TARGET, "react")
        assert "react" not in cache
        return await cache.get_or_fetch(TARGET, "react")

    info = asyncio.run(lookup_twice())

    assert info.get_version_manifest("18.2.0") is not None
    assert registry.calls_to("https://new/react") == RETRY_ATTEMPTS + 1
