"""Subresource-integrity strings for registry tarballs."""

from __future__ import annotations

import base64
import hashlib
import logging

from .errors import IntegrityComputeError, NetworkError
from .models.manifest import PackageManifest
from .registry.client import RegistryClient

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "sha1"


def format_integrity(algorithm: str, digest: bytes) -> str:
    """Return ``<algorithm>-<base64 digest>``."""
    return f"{algorithm}-{base64.b64encode(digest).decode('ascii')}"


def integrity_of(content: bytes, algorithm: str = HASH_ALGORITHM) -> str:
    return format_integrity(algorithm, hashlib.new(algorithm, content).digest())


def integrity_from_shasum(shasum: str) -> str:
    """Convert a registry ``dist.shasum`` (hex SHA-1) into an integrity string."""
    try:
        digest = bytes.fromhex(shasum)
    except ValueError as exc:
        raise ValueError(f"Invalid shasum '{shasum}'") from exc
    if len(digest) != hashlib.sha1().digest_size:
        raise ValueError(f"Invalid shasum '{shasum}'")
    return format_integrity("sha1", digest)


async def compute_content_hash(client: RegistryClient, url: str) -> str:
    """Download the tarball at ``url`` and return its SHA-1 integrity string.

    Raises:
        IntegrityComputeError: if the download fails after every retry.
    """
    logger.info("Registry has no integrity for %s, hashing the tarball", url)
    try:
        content = await client.fetch_bytes(url)
    except NetworkError as exc:
        raise IntegrityComputeError(url, exc.reason) from exc
    return integrity_of(content)


async def resolve_integrity(client: RegistryClient, manifest: PackageManifest) -> str:
    """Return the integrity for a manifest, preferring what the registry published.

    Order: ``dist.integrity``, then ``dist.shasum``, then a hash of the
    downloaded tarball.
    """
    if manifest.integrity:
        return manifest.integrity
    if manifest.shasum:
        try:
            return integrity_from_shasum(manifest.shasum)
        except ValueError:
            logger.warning("Ignoring malformed shasum for %s", manifest.tarball)
    return await compute_content_hash(client, manifest.tarball)
