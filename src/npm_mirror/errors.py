"""Error taxonomy shared by the lockfile rewriter and its collaborators."""

from __future__ import annotations


class NpmMirrorError(RuntimeError):
    """Base error for every failure raised by npm-mirror."""


class ParseError(NpmMirrorError, ValueError):
    """Raised when lockfile bytes cannot be parsed into a lockfile model."""


class NetworkError(NpmMirrorError):
    """Raised when a registry request still fails after every retry attempt."""

    def __init__(self, url: str, reason: str = "") -> None:
        message = f"Request to {url} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
        self.reason = reason


class NotFoundError(NpmMirrorError):
    """Raised when a package, or one of its versions, is absent from a registry."""

    def __init__(self, package: str, version: str | None = None) -> None:
        target = package if version is None else f"{package} {version}"
        super().__init__(f"{target} cannot be found.")
        self.package = package
        self.version = version


class IntegrityComputeError(NpmMirrorError):
    """Raised when a tarball cannot be downloaded or hashed for its integrity."""

    def __init__(self, url: str, reason: str = "") -> None:
        message = f"Unable to compute integrity for {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
        self.reason = reason


class ConfigError(NpmMirrorError):
    """Raised when the configuration cannot be loaded or is invalid."""
