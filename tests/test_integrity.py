from __future__ import annotations

import asyncio
import base64
import hashlib

import pytest

from npm_mirror.errors import IntegrityComputeError
from npm_mirror.integrity import (
    compute_content_hash,
    integrity_from_shasum,
    integrity_of,
    resolve_integrity,
)
from npm_mirror.models.manifest import PackageManifest
from npm_mirror.registry.client import RETRY_ATTEMPTS

EMPTY_SHA1 = "da39a3ee5e6b4b0d3255bfef95601890afd80709"


def test_integrity_of_empty_content():
    assert integrity_of(b"") == "sha1-2jmj7l5rSw0yVb/vlWAYkK/YBwk="


def test_integrity_of_other_algorithms():
    digest = base64.b64encode(hashlib.sha512(b"abc").digest()).decode()
    assert integrity_of(b"abc", "sha512") == f"sha512-{digest}"


def test_integrity_from_shasum_matches_content_hash():
    assert integrity_from_shasum(EMPTY_SHA1) == integrity_of(b"")


@pytest.mark.parametrize("shasum", ["xyz", "abcd", EMPTY_SHA1 + "00"])
def test_integrity_from_shasum_rejects_bad_input(shasum):
    with pytest.raises(ValueError):
        integrity_from_shasum(shasum)


def test_compute_content_hash_downloads_tarball(client, registry):
    tarball = registry.publish("a", "1.0.0", content=b"package contents")

    integrity = asyncio.run(compute_content_hash(client, tarball))

    expected = base64.b64encode(hashlib.sha1(b"package contents").digest()).decode()
    assert integrity == f"sha1-{expected}"


def test_compute_content_hash_failure_is_integrity_error(client, registry):
    tarball = registry.publish("a", "1.0.0")
    registry.failures[tarball] = RETRY_ATTEMPTS

    with pytest.raises(IntegrityComputeError) as excinfo:
        asyncio.run(compute_content_hash(client, tarball))

    assert excinfo.value.url == tarball


def test_resolve_integrity_prefers_registry_value(client, registry):
    manifest = PackageManifest(
        tarball="https://new/a.tgz", integrity="sha512-published", shasum=EMPTY_SHA1
    )

    assert asyncio.run(resolve_integrity(client, manifest)) == "sha512-published"
    assert registry.calls == []


def test_resolve_integrity_uses_shasum_before_downloading(client, registry):
    manifest = PackageManifest(tarball="https://new/a.tgz", shasum=EMPTY_SHA1)

    assert asyncio.run(resolve_integrity(client, manifest)) == integrity_of(b"")
    assert registry.calls == []


def test_resolve_integrity_falls_back_to_download(client, registry):
    tarball = registry.publish("a", "1.0.0", content=b"")
    manifest = PackageManifest(tarball=tarball, shasum="not-hex")

    assert asyncio.run(resolve_integrity(client, manifest)) == integrity_of(b"")
    assert registry.calls == [tarball]
