"""Turn a batch report into proxy routing rules and a short summary."""

from datetime import datetime, timezone
from typing import List, Optional

from regioncheck.probe.coordinator import BatchReport

DEFAULT_RULE_VERB = "DOMAIN-SUFFIX"


def format_rule(domain: str, target: str, verb: str = DEFAULT_RULE_VERB) -> str:
    return f"{verb},{domain},{target}"


def build_rule_lines(report: BatchReport, target: str, verb: str = DEFAULT_RULE_VERB) -> List[str]:
    """Return one ``<verb>,<domain>,<target>`` line per rerouted domain, in input order."""
    if not target:
        raise ValueError("target policy must be non-empty")
    return [format_rule(verdict.domain, target, verb) for verdict in report.rerouted]


def render_rule_file(
    report: BatchReport,
    target: str,
    verb: str = DEFAULT_RULE_VERB,
    generated_at: Optional[datetime] = None,
    primary_label: Optional[str] = None,
) -> str:
    """Render rerouted domains as a commented rule list ready to paste into a profile."""
    generated_at = generated_at or datetime.now(timezone.utc)
    rerouted = report.rerouted
    lines = [
        "# Region-restricted domain rules",
        f"# Generated: {generated_at.isoformat(timespec='seconds')}",
        f"# Domains: {len(rerouted)}",
        f"# Blocked via {primary_label or 'the primary egress'}; route through {target}",
        "",
    ]
    for verdict in rerouted:
        lines.append(f"# {verdict.block_reason or 'blocked'}")
        lines.append(format_rule(verdict.domain, target, verb))
    return "\n".join(lines) + "\n"


def render_summary(report: BatchReport, *, max_failed: int = 10) -> str:
    """Short multi-line count summary; lists failed domains when there are few."""
    lines = [
        f"Total: {report.total}",
        f"Needs reroute: {len(report.rerouted)}",
        f"Reachable: {len(report.reachable)}",
        f"Blocked, no alternate: {len(report.unresolved)}",
    ]
    failed = report.failed
    if failed:
        lines.append(f"Failed: {len(failed)}")
        if len(failed) <= max_failed:
            lines.extend(f"  - {verdict.domain}: {verdict.error}" for verdict in failed)
    return "\n".join(lines)


__all__ = [
    "DEFAULT_RULE_VERB",
    "build_rule_lines",
    "format_rule",
    "render_rule_file",
    "render_summary",
]
