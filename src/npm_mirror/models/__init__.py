"""Data models for lockfiles, registry manifests and run outcomes."""

from __future__ import annotations

from .lockfile import SUPPORTED_LOCKFILE_VERSION, Dependency, Lockfile
from .manifest import PackageInfo, PackageManifest
from .results import CheckResult, Mismatch, RewriteError, RewriteResult

__all__ = [
    "CheckResult",
    "Dependency",
    "Lockfile",
    "Mismatch",
    "PackageInfo",
    "PackageManifest",
    "RewriteError",
    "RewriteResult",
    "SUPPORTED_LOCKFILE_VERSION",
]
