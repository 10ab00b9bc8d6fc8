"""Relocate or check every registry-sourced entry of a lockfile tree.

Write mode walks the tree concurrently: siblings are rewritten in parallel and
a node completes only once its own entry and its whole subtree are done. A
package or version missing from the target registry is recorded and the entry
is left as is. Any other failure (a metadata fetch that exhausts its retries,
a tarball that cannot be hashed) aborts the run and cancels every branch
still in flight, so callers never see a partially rewritten tree.

Check mode never touches the network and reports every mismatch it finds.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Mapping
from typing import TypeVar

from .errors import NotFoundError
from .integrity import resolve_integrity
from .models.lockfile import Dependency, Lockfile
from .models.results import Mismatch, RewriteError
from .registry.cache import ManifestCache
from .registry.client import RegistryClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

TreePath = tuple[str, ...]


async def _join(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Run awaitables concurrently; on the first failure cancel and drain the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    if not tasks:
        return []
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def registry_prefix(registry: str) -> str:
    return registry.rstrip("/")


def is_under_registry(url: str, registry: str) -> bool:
    prefix = registry_prefix(registry)
    return url == prefix or url.startswith(prefix + "/")


class DependencyRewriter:
    """Rewrite a lockfile dependency tree onto one target registry.

    An instance owns the manifest cache and the error list of a single run.
    """

    def __init__(self, client: RegistryClient, registry: str) -> None:
        self.client = client
        self.registry = registry_prefix(registry)
        self.cache = ManifestCache(client)
        self.errors: list[RewriteError] = []
        self.rewritten = 0

    async def update_lock(self, lockfile: Lockfile) -> Lockfile:
        """Return ``lockfile`` with its dependency tree relocated.

        Unsupported lockfile versions are returned untouched.
        """
        if not lockfile.is_supported:
            logger.info(
                "Skipping lockfile version %s; only version 1 is rewritten",
                lockfile.lockfile_version,
            )
            return lockfile
        dependencies = await self.rewrite_tree(lockfile.dependencies)
        return lockfile.with_dependencies(dependencies)

    async def rewrite_tree(
        self, dependencies: Mapping[str, Dependency], path: TreePath = ()
    ) -> dict[str, Dependency]:
        pairs = await _join(
            self._rewrite_dependency(name, dependency, (*path, name))
            for name, dependency in dependencies.items()
        )
        return dict(sorted(pairs))

    async def _rewrite_dependency(
        self, name: str, dependency: Dependency, path: TreePath
    ) -> tuple[str, Dependency]:
        updated = dependency
        if dependency.is_registry_sourced:
            updated = await self._relocate(name, dependency, path)
        if dependency.dependencies:
            children = await self.rewrite_tree(dependency.dependencies, path)
            updated = updated.with_dependencies(children)
        return name, updated

    async def _relocate(self, name: str, dependency: Dependency, path: TreePath) -> Dependency:
        try:
            manifest = await self.cache.get_manifest(self.registry, name, dependency.version)
        except NotFoundError as exc:
            logger.warning("%s; leaving %s unchanged", exc, " > ".join(path))
            self.errors.append(
                RewriteError(name=name, version=dependency.version, path=path, message=str(exc))
            )
            return dependency

        integrity = await resolve_integrity(self.client, manifest)
        self.rewritten += 1
        logger.debug("Rewrote %s@%s -> %s", name, dependency.version, manifest.tarball)
        return dependency.relocate(resolved=manifest.tarball, integrity=integrity)


def check_tree(
    dependencies: Mapping[str, Dependency], registry: str, path: TreePath = ()
) -> list[Mismatch]:
    """Return every registry-sourced entry whose URL is outside ``registry``.

    The whole tree is always visited; the tree matches when the result is empty.
    """
    mismatches: list[Mismatch] = []
    for name, dependency in sorted(dependencies.items()):
        here = (*path, name)
        resolved = dependency.resolved
        if resolved is not None and not is_under_registry(resolved, registry):
            mismatches.append(Mismatch(name=name, path=here, resolved=resolved))
        if dependency.dependencies:
            mismatches.extend(check_tree(dependency.dependencies, registry, here))
    return mismatches


def check_lock(lockfile: Lockfile, registry: str) -> list[Mismatch]:
    if not lockfile.is_supported:
        return []
    return check_tree(lockfile.dependencies, registry)
