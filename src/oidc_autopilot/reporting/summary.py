"""
Execution Summary - Console rendering of a finished plan.
"""

from typing import List, Optional

from rich.console import Console
from rich.table import Table

from oidc_autopilot.engine.types import ExecutionSummary, TestResult, TestState

RESULT_STYLES = {
    TestResult.PASSED: "green",
    TestResult.FAILED: "red",
    TestResult.WARNING: "yellow",
    TestResult.SKIPPED: "dim",
    TestResult.REVIEW: "cyan",
    TestResult.UNKNOWN: "magenta",
}


def build_summary_table(summary: ExecutionSummary) -> Table:
    """One row per module in execution order."""
    table = Table(title=f"Plan {summary.plan_id}", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Module")
    table.add_column("Runner ID", style="dim")
    table.add_column("State")
    table.add_column("Result")
    table.add_column("Error", overflow="fold")
    
    for index, module in enumerate(summary.modules, start=1):
        style = RESULT_STYLES.get(module.result, "")
        state = module.state.value
        if module.state == TestState.INTERRUPTED:
            state = f"[yellow]{state}[/yellow]"
        table.add_row(
            str(index),
            module.name,
            module.runner_id or "-",
            state,
            f"[{style}]{module.result.value}[/{style}]" if style else module.result.value,
            module.error_message or "",
        )
    return table


def summary_lines(summary: ExecutionSummary) -> List[str]:
    """Plain totals lines, also used by the dashboard log feed."""
    lines = [
        f"Total Modules: {summary.total}",
        f"PASS: {summary.passed}",
        f"FAIL: {summary.failed}",
    ]
    if summary.warning > 0:
        lines.append(f"WARNING: {summary.warning}")
    if summary.review > 0:
        lines.append(f"REVIEW: {summary.review}")
    lines.append(f"SKIPPED/INTERRUPTED: {summary.skipped}/{summary.interrupted}")
    return lines


def print_summary(summary: ExecutionSummary, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print()
    console.print(build_summary_table(summary))
    for line in summary_lines(summary):
        console.print(line, markup=False, highlight=False)
