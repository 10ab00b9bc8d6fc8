"""Lockfile model for npm ``package-lock.json`` documents."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from collections.abc import Iterator, Mapping
from typing import Any

SUPPORTED_LOCKFILE_VERSION = 1

_DEPENDENCY_FIELDS = ("version", "resolved", "integrity", "dependencies")


@dataclass(frozen=True)
class Dependency:
    """A single resolved entry of the lockfile dependency tree.

    ``resolved`` is only set for entries fetched from a registry; local and
    workspace links carry no ``resolved`` URL and are never relocated.
    ``dependencies`` is ``None`` for leaves and keeps an empty mapping when the
    source document had one. ``key_order`` remembers the source field order so
    untouched entries serialize back unchanged.
    """

    version: str
    resolved: str | None = None
    integrity: str | None = None
    dependencies: dict[str, Dependency] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    key_order: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.version, str):
            raise ValueError("Dependency version must be a string")

    @property
    def is_registry_sourced(self) -> bool:
        return self.resolved is not None

    def relocate(self, *, resolved: str, integrity: str) -> Dependency:
        return replace(self, resolved=resolved, integrity=integrity)

    def with_dependencies(self, dependencies: dict[str, Dependency]) -> Dependency:
        return replace(self, dependencies=dependencies)

    def _field_order(self) -> list[str]:
        order = list(self.key_order) or ["version", "resolved", "integrity"]
        # fields added by a rewrite go where npm puts them
        for name, anchor in (("resolved", "version"), ("integrity", "resolved")):
            if getattr(self, name) is not None and name not in order:
                order.insert(order.index(anchor) + 1 if anchor in order else len(order), name)
        order.extend(key for key in self.extra if key not in order)
        if "dependencies" not in order:
            order.append("dependencies")
        return order

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key in self._field_order():
            if key == "version":
                data[key] = self.version
            elif key in ("resolved", "integrity"):
                value = getattr(self, key)
                # an explicit null in the source is kept, but means "absent"
                if value is not None or key in self.key_order:
                    data[key] = value
            elif key == "dependencies":
                if self.dependencies is not None:
                    data[key] = {
                        name: dep.to_dict() for name, dep in sorted(self.dependencies.items())
                    }
            elif key in self.extra:
                data[key] = self.extra[key]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Dependency:
        children = data.get("dependencies")
        return cls(
            version=data["version"],
            resolved=data.get("resolved"),
            integrity=data.get("integrity"),
            dependencies=None if children is None else dependencies_from_dict(children),
            extra={k: v for k, v in data.items() if k not in _DEPENDENCY_FIELDS},
            key_order=tuple(data.keys()),
        )


def dependencies_from_dict(data: Mapping[str, Any]) -> dict[str, Dependency]:
    return {name: Dependency.from_dict(entry) for name, entry in sorted(data.items())}


@dataclass(frozen=True)
class Lockfile:
    """Parsed lockfile: version, dependency tree and passthrough fields.

    ``extra`` keeps every other top-level field in document order;
    ``key_order`` remembers where ``lockfileVersion`` and ``dependencies``
    appeared so serialization keeps the original layout.
    """

    lockfile_version: int
    dependencies: dict[str, Dependency] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    key_order: tuple[str, ...] = ()

    @property
    def is_supported(self) -> bool:
        return self.lockfile_version == SUPPORTED_LOCKFILE_VERSION

    def with_dependencies(self, dependencies: dict[str, Dependency]) -> Lockfile:
        return replace(self, dependencies=dependencies)

    def iter_dependencies(self) -> Iterator[tuple[tuple[str, ...], Dependency]]:
        """Yield ``(path, dependency)`` for every entry, depth first."""
        stack: list[tuple[tuple[str, ...], Dependency]] = [
            ((name,), dep) for name, dep in reversed(sorted(self.dependencies.items()))
        ]
        while stack:
            path, dep = stack.pop()
            yield path, dep
            if dep.dependencies:
                stack.extend(
                    ((*path, name), child)
                    for name, child in reversed(sorted(dep.dependencies.items()))
                )

    def to_dict(self) -> dict[str, Any]:
        order = list(self.key_order) or ["lockfileVersion", *self.extra, "dependencies"]
        for key in ("lockfileVersion", *self.extra):
            if key not in order:
                order.append(key)
        if self.dependencies and "dependencies" not in order:
            order.append("dependencies")

        data: dict[str, Any] = {}
        for key in order:
            if key == "lockfileVersion":
                data[key] = self.lockfile_version
            elif key == "dependencies" and key not in self.extra:
                # npm drops an empty top-level tree
                if self.dependencies:
                    data[key] = {
                        name: dep.to_dict() for name, dep in sorted(self.dependencies.items())
                    }
            elif key in self.extra:
                data[key] = self.extra[key]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Lockfile:
        version = data["lockfileVersion"]
        dependencies: dict[str, Dependency] = {}
        extra = {k: v for k, v in data.items() if k not in ("lockfileVersion", "dependencies")}
        if version == SUPPORTED_LOCKFILE_VERSION:
            dependencies = dependencies_from_dict(data.get("dependencies") or {})
        elif "dependencies" in data:
            extra = {k: v for k, v in data.items() if k != "lockfileVersion"}
        return cls(
            lockfile_version=version,
            dependencies=dependencies,
            extra=extra,
            key_order=tuple(data.keys()),
        )
