"""Rule list and summary rendering for batch reports."""

from regioncheck.report.rules import (
    build_rule_lines,
    format_rule,
    render_rule_file,
    render_summary,
)

__all__ = ["build_rule_lines", "format_rule", "render_rule_file", "render_summary"]
