"""npm-mirror core package.

Relocates every registry-sourced entry of an npm ``package-lock.json`` onto an
alternate registry, or checks that a lockfile already points at one.
"""

from .core import (
    check_lockfile,
    check_lockfile_path,
    rewrite_lockfile,
    rewrite_lockfile_async,
    update_lockfile,
    update_lockfile_path,
)
from .errors import (
    ConfigError,
    IntegrityComputeError,
    NetworkError,
    NotFoundError,
    NpmMirrorError,
    ParseError,
)

__all__ = [
    "ConfigError",
    "IntegrityComputeError",
    "NetworkError",
    "NotFoundError",
    "NpmMirrorError",
    "ParseError",
    "check_lockfile",
    "check_lockfile_path",
    "rewrite_lockfile",
    "rewrite_lockfile_async",
    "update_lockfile",
    "update_lockfile_path",
]
