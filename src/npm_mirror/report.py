"""Report aggregation and JSON-friendly output."""

from __future__ import annotations

from typing import Any

from .models.results import CheckResult, RewriteResult


def aggregate_update(result: RewriteResult, *, lockfile: str, registry: str) -> dict[str, Any]:
    """Aggregate a write-mode run into a single report.

    ``hasFindings`` is set when at least one dependency had to be skipped
    because the target registry does not publish it.
    """
    errors = [error.to_dict() for error in result.errors]
    return {
        "version": "1",
        "mode": "update",
        "lockfile": lockfile,
        "registry": registry,
        "supported": result.supported,
        "hasFindings": bool(errors),
        "findings": errors,
        "totals": {
            "rewritten": result.rewritten,
            "findings": len(errors),
        },
    }


def aggregate_check(result: CheckResult, *, lockfile: str, registry: str) -> dict[str, Any]:
    """Aggregate a check-mode run; ``hasFindings`` mirrors a failed check."""
    mismatches = [mismatch.to_dict() for mismatch in result.mismatches]
    return {
        "version": "1",
        "mode": "check",
        "lockfile": lockfile,
        "registry": registry,
        "supported": result.supported,
        "hasFindings": not result.passed,
        "findings": mismatches,
        "totals": {
            "checked": result.checked,
            "findings": len(mismatches),
        },
    }
