"""Per-run cache of registry package documents."""

from __future__ import annotations

import asyncio
import logging

from ..errors import NetworkError, NotFoundError
from ..models.manifest import PackageInfo, PackageManifest
from .client import RegistryClient

logger = logging.getLogger(__name__)


class ManifestCache:
    """Share package documents across every branch of one traversal.

    Entries are keyed by package name only, so the same package at different
    depths of the tree is fetched once. The in-flight fetch is stored before
    the first await, which lets concurrent lookups of a package join it
    instead of issuing a second request. Failed network fetches are evicted
    so they never populate the cache.

    A cache belongs to a single run against a single target registry and is
    discarded with it.
    """

    def __init__(self, client: RegistryClient) -> None:
        self._client = client
        self._entries: dict[str, asyncio.Future[PackageInfo]] = {}

    def __contains__(self, package: str) -> bool:
        entry = self._entries.get(package)
        if entry is None or not entry.done() or entry.cancelled():
            return False
        return entry.exception() is None

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(self, registry: str, package: str) -> PackageInfo:
        entry = self._entries.get(package)
        if entry is None:
            logger.debug("Cache miss for %s", package)
            entry = asyncio.ensure_future(self._client.fetch_package_info(registry, package))
            entry.add_done_callback(lambda future: self._evict_on_failure(package, future))
            self._entries[package] = entry
        # one cancelled waiter must not cancel the fetch shared with the others
        return await asyncio.shield(entry)

    async def get_manifest(self, registry: str, package: str, version: str) -> PackageManifest:
        """Return the manifest of ``package@version`` on ``registry``.

        Raises:
            NotFoundError: if the package or that version is not published.
            NetworkError: if the package document could not be fetched.
        """
        info = await self.get_or_fetch(registry, package)
        manifest = info.get_version_manifest(version)
        if manifest is None:
            raise NotFoundError(package, version)
        return manifest

    def _evict_on_failure(self, package: str, future: asyncio.Future[PackageInfo]) -> None:
        if self._entries.get(package) is not future:
            return
        if future.cancelled() or isinstance(future.exception(), NetworkError):
            del self._entries[package]
