"""Outcome records produced by the rewrite and check modes."""

from __future__ import annotations

from dataclasses import dataclass, field


def _format_path(path: tuple[str, ...]) -> str:
    return " > ".join(path)


@dataclass(frozen=True)
class RewriteError:
    """A dependency left unmodified because the target registry lacks it."""

    name: str
    version: str
    path: tuple[str, ...]
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "package": self.name,
            "version": self.version,
            "path": _format_path(self.path),
            "message": self.message,
        }


@dataclass(frozen=True)
class Mismatch:
    """A dependency whose resolved URL points outside the target registry."""

    name: str
    path: tuple[str, ...]
    resolved: str

    def to_dict(self) -> dict[str, object]:
        return {
            "package": self.name,
            "path": _format_path(self.path),
            "resolved": self.resolved,
        }


@dataclass(frozen=True)
class RewriteResult:
    """Serialized lockfile plus what happened while relocating it."""

    content: bytes
    errors: tuple[RewriteError, ...] = ()
    rewritten: int = 0
    supported: bool = True

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class CheckResult:
    """Verdict of check mode: passes only when no mismatch was found."""

    mismatches: tuple[Mismatch, ...] = field(default_factory=tuple)
    checked: int = 0
    supported: bool = True

    @property
    def passed(self) -> bool:
        return not self.mismatches

    def __bool__(self) -> bool:
        return self.passed
