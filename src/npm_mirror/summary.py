"""Human-readable Markdown summary of a run report."""

from __future__ import annotations

from typing import Any


def render_summary(report: dict[str, Any]) -> str:
    """Return a Markdown string with totals and a table of findings."""
    totals = report.get("totals", {})
    findings = report.get("findings") or []
    mode = report.get("mode", "check")

    lines = []
    lines.append(f"# npm-mirror {mode} summary")
    lines.append("")
    lines.append(f"Lockfile: `{report.get('lockfile', '')}` | Registry: {report.get('registry', '')}")
    lines.append("")

    if not report.get("supported", True):
        lines.append("Unsupported lockfile version; left unchanged.")
        return "\n".join(lines) + "\n"

    if mode == "update":
        lines.append(
            f"Rewritten: {totals.get('rewritten', 0)} | Skipped: {totals.get('findings', 0)}"
        )
        lines.append("")
        lines.append("| Path | Package | Version | Reason |")
        lines.append("| --- | --- | --- | --- |")
        for finding in findings:
            lines.append(
                f"| {finding.get('path', '')} | {finding.get('package', '')} "
                f"| {finding.get('version', '')} | {finding.get('message', '')} |"
            )
        if not findings:
            lines.append("| (none) | All dependencies rewritten | n/a | n/a |")
    else:
        lines.append(
            f"Checked: {totals.get('checked', 0)} | Mismatches: {totals.get('findings', 0)}"
        )
        lines.append("")
        lines.append("| Path | Package | Resolved |")
        lines.append("| --- | --- | --- |")
        for finding in findings:
            lines.append(
                f"| {finding.get('path', '')} | {finding.get('package', '')} "
                f"| {finding.get('resolved', '')} |"
            )
        if not findings:
            lines.append("| (none) | All dependencies match | n/a |")

    return "\n".join(lines) + "\n"
