"""Registry metadata models."""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Mapping
from typing import Any


@dataclass(frozen=True)
class PackageManifest:
    """Distribution metadata of one published package version."""

    tarball: str
    integrity: str | None = None
    shasum: str | None = None

    def __post_init__(self) -> None:
        if not self.tarball:
            raise ValueError("Manifest tarball URL must be non-empty")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PackageManifest | None:
        """Build a manifest from a registry version document.

        Returns None when the document carries no usable ``dist.tarball``.
        """
        dist = data.get("dist")
        if not isinstance(dist, Mapping):
            return None
        tarball = dist.get("tarball")
        if not isinstance(tarball, str) or not tarball:
            return None
        integrity = dist.get("integrity")
        shasum = dist.get("shasum")
        return cls(
            tarball=tarball,
            integrity=integrity if isinstance(integrity, str) and integrity else None,
            shasum=shasum if isinstance(shasum, str) and shasum else None,
        )


@dataclass(frozen=True)
class PackageInfo:
    """All published versions of a package, keyed by version string."""

    name: str
    versions: dict[str, PackageManifest]

    def get_version_manifest(self, version: str) -> PackageManifest | None:
        return self.versions.get(version)

    @classmethod
    def from_dict(cls, name: str, data: Any) -> PackageInfo:
        if not isinstance(data, Mapping):
            raise ValueError(f"Registry document for {name} must be a JSON object")
        raw_versions = data.get("versions") or {}
        if not isinstance(raw_versions, Mapping):
            raise ValueError(f"Registry document for {name} has invalid 'versions' field")

        versions: dict[str, PackageManifest] = {}
        for version, document in raw_versions.items():
            if not isinstance(document, Mapping):
                continue
            manifest = PackageManifest.from_dict(document)
            if manifest is not None:
                versions[str(version)] = manifest
        return cls(name=name, versions=versions)
