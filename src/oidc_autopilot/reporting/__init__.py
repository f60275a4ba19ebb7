"""
Reporting module - Console output for plan executions.
"""

from oidc_autopilot.reporting.summary import (
    build_summary_table,
    print_summary,
    summary_lines,
)

__all__ = [
    "build_summary_table",
    "print_summary",
    "summary_lines",
]
