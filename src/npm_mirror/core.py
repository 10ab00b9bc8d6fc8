"""Core entrypoints: rewrite or check lockfile bytes against a target registry.

This module has no CLI or printing concerns so it can back both the
``npm-mirror`` command and library callers. Fatal errors (``ParseError``,
``NetworkError``, ``IntegrityComputeError``) propagate to the caller; no
partial output is ever returned.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .models.results import CheckResult, RewriteResult
from .parsers.package_lock import dump, parse
from .registry.client import RegistryClient
from .rewriter import DependencyRewriter, check_lock
from .settings import Settings
from .storage import read_lockfile, write_lockfile

logger = logging.getLogger(__name__)


def _client_for(settings: Settings | None) -> RegistryClient:
    settings = settings or Settings()
    return RegistryClient(
        concurrency=settings.concurrency,
        timeout=settings.timeout,
        user_agent=settings.user_agent,
    )


async def rewrite_lockfile_async(
    data: bytes, registry: str, client: RegistryClient
) -> RewriteResult:
    """Relocate every registry-sourced entry of ``data`` onto ``registry``.

    Lockfiles with an unsupported ``lockfileVersion`` come back as the very
    same bytes.
    """
    lockfile = parse(data)
    if not lockfile.is_supported:
        logger.info("Lockfile version %s is not rewritten", lockfile.lockfile_version)
        return RewriteResult(content=data, supported=False)

    rewriter = DependencyRewriter(client, registry)
    updated = await rewriter.update_lock(lockfile)
    logger.info(
        "Rewrote %d dependencies onto %s (%d skipped)",
        rewriter.rewritten,
        rewriter.registry,
        len(rewriter.errors),
    )
    errors = sorted(rewriter.errors, key=lambda error: error.path)
    return RewriteResult(content=dump(updated), errors=tuple(errors), rewritten=rewriter.rewritten)


def rewrite_lockfile(
    data: bytes,
    registry: str,
    *,
    client: RegistryClient | None = None,
    settings: Settings | None = None,
) -> RewriteResult:
    """Blocking wrapper around :func:`rewrite_lockfile_async`.

    A client is created from ``settings`` (or defaults) when none is given and
    closed again before returning.
    """
    if client is not None:
        return asyncio.run(rewrite_lockfile_async(data, registry, client))
    with _client_for(settings) as owned:
        return asyncio.run(rewrite_lockfile_async(data, registry, owned))


def update_lockfile(
    data: bytes,
    registry: str,
    *,
    client: RegistryClient | None = None,
    settings: Settings | None = None,
) -> bytes:
    """Return the rewritten lockfile bytes."""
    return rewrite_lockfile(data, registry, client=client, settings=settings).content


def check_lockfile(data: bytes, registry: str) -> CheckResult:
    """Verify that every resolved URL in ``data`` already points at ``registry``."""
    lockfile = parse(data)
    if not lockfile.is_supported:
        return CheckResult(supported=False)
    mismatches = check_lock(lockfile, registry)
    checked = sum(1 for _, dep in lockfile.iter_dependencies() if dep.resolved is not None)
    for mismatch in mismatches:
        logger.debug("%s resolves outside %s: %s", mismatch.name, registry, mismatch.resolved)
    return CheckResult(mismatches=tuple(mismatches), checked=checked)


def update_lockfile_path(
    path: Path,
    registry: str,
    *,
    client: RegistryClient | None = None,
    settings: Settings | None = None,
) -> RewriteResult:
    """Rewrite the lockfile at ``path`` in place.

    The file is only replaced after the whole tree was rewritten; any fatal
    error leaves it untouched. Unsupported versions are not written back.
    """
    data = read_lockfile(path)
    result = rewrite_lockfile(data, registry, client=client, settings=settings)
    if result.supported and result.content != data:
        write_lockfile(path, result.content)
    return result


def check_lockfile_path(path: Path, registry: str) -> CheckResult:
    return check_lockfile(read_lockfile(path), registry)

