"""
Display Module for leakscope

Formats and displays analysis reports in the terminal with rich.
"""

import math
from typing import Optional

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from colors import DARK_GREEN, DARK_PINK, DARK_YELLOW, GRAY, GREEN, LIGHT_YELLOW, MAGENTA, RED
from type_defs import AnalysisReport, LeakRecord, ReportSummary, WarningKind

BYTE_UNITS = ["B", "KB", "MB", "GB", "TB"]

TIMELINE_WIDTH = 40

LEAK_SORT_KEYS = {
    "line": lambda leak: leak["line"],
    "size": lambda leak: -leak["size"],
    "variable": lambda leak: leak["var"],
}


# =============================================================================
# REPORT HELPERS
# =============================================================================

def format_bytes(size) -> str:
    """Format a byte count for humans.

    Args:
        size: Number of bytes.

    Returns:
        ``"0 B"`` for zero, negative or non-numeric input, otherwise the
        value in the largest fitting unit with up to two decimals
        (e.g. ``"1.5 KB"``).
    """
    if isinstance(size, bool) or not isinstance(size, (int, float)):
        return "0 B"
    if isinstance(size, float) and not math.isfinite(size):
        return "0 B"
    if size <= 0:
        return "0 B"

    # Beyond float range, divide as integers
    value = size
    unit = 0
    while value >= 1024 and unit < len(BYTE_UNITS) - 1:
        value = value // 1024 if isinstance(value, int) and value > 2 ** 1000 else value / 1024
        unit += 1

    value = round(value, 2)
    if value == int(value):
        value = int(value)

    return f"{value} {BYTE_UNITS[unit]}"


def summarize_report(report: AnalysisReport) -> ReportSummary:
    """Aggregate the counters shown above a report."""
    sizes_by_id = {a["allocId"]: a["size"] for a in report["allocations"]}

    return {
        "total_allocations": len(report["allocations"]),
        "total_frees": len(report["frees"]),
        "total_leaks": len(report["leaks"]),
        "total_warnings": len(report["warnings"]),
        "allocated_bytes": sum(a["size"] for a in report["allocations"]),
        "freed_bytes": sum(sizes_by_id.get(f["freedAllocId"], 0) for f in report["frees"]),
        "leaked_bytes": sum(leak["size"] for leak in report["leaks"]),
        "critical_issues": sum(1 for w in report["warnings"] if w["type"] == WarningKind.DOUBLE_FREE),
    }


def sort_leaks(leaks: list[LeakRecord], key: str = "line") -> list[LeakRecord]:
    """Leaks sorted by ``line``, ``size`` (largest first) or ``variable``."""
    return sorted(leaks, key=LEAK_SORT_KEYS.get(key, LEAK_SORT_KEYS["line"]))


# =============================================================================
# SECTIONS
# =============================================================================

def _build_summary_section(summary: ReportSummary) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style=LIGHT_YELLOW)
    table.add_column(style=DARK_YELLOW, justify="right")

    table.add_row("Allocations", f"{summary['total_allocations']} calls")
    table.add_row("Frees", f"{summary['total_frees']} calls")
    table.add_row("Memory leaks", f"{summary['total_leaks']} leaks")
    table.add_row("Leaked memory", format_bytes(summary["leaked_bytes"]))
    table.add_row("Allocated / freed",
                  f"{format_bytes(summary['allocated_bytes'])} / {format_bytes(summary['freed_bytes'])}")
    table.add_row("Critical issues", f"{summary['critical_issues']} issues")

    return table


def _build_leaks_section(leaks: list[LeakRecord]) -> Group:
    """
    Builds one block per leak: location line, then the suggested fix.
    """
    if not leaks:
        return Group(Text("No memory leaks detected!", style=GREEN))

    blocks = []
    for leak in leaks:
        header = Text()
        header.append(f"{leak['var']}", style=f"bold {RED}")
        header.append(f"  line {leak['line']} | {leak['function']}() | {format_bytes(leak['size'])}",
                      style=LIGHT_YELLOW)
        if leak["inLoop"]:
            header.append("  [in loop]", style=DARK_PINK)

        blocks.append(header)
        blocks.append(Text(f" ➤ {leak['fix']}", style=DARK_YELLOW))
        blocks.append(Text(""))

    return Group(*blocks)


def _build_warnings_section(report: AnalysisReport) -> Optional[Table]:
    if not report["warnings"]:
        return None

    table = Table(box=None, header_style=f"bold {GREEN}", padding=(0, 1))
    table.add_column("Line", justify="right", style=DARK_YELLOW)
    table.add_column("Type", style=MAGENTA)
    table.add_column("Message", style=LIGHT_YELLOW)
    table.add_column("Source", style=GRAY, overflow="fold")

    for warning in report["warnings"]:
        kind = getattr(warning["type"], "value", warning["type"])
        table.add_row(str(warning["line"]), kind, Text(warning["message"]), Text(warning["lineText"]))

    return table


def _build_timeline_section(report: AnalysisReport) -> Optional[Table]:
    """
    Renders the memory proxy as one horizontal bar per event.
    """
    timeline = report["timeline"]
    if not timeline:
        return None

    peak = max(max(point["memory"] for point in timeline), 1)

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(justify="right", style=GRAY)
    table.add_column(style=DARK_GREEN)
    table.add_column(justify="right", style=LIGHT_YELLOW)

    for point in timeline:
        width = max(0, round(point["memory"] / peak * TIMELINE_WIDTH))
        table.add_row(f"line {point['line']}", "█" * width, format_bytes(point["memory"]))

    return table


# =============================================================================
# ENTRY POINT
# =============================================================================

def display_report(report: AnalysisReport, title: str = "leakscope Analysis",
                   sort_by: str = "line", console: Optional[Console] = None) -> None:
    """
    Print a complete report: summary, leaks, warnings and timeline.

    Args:
        report: Result of analyze().
        title: Panel title, usually the analysed file name.
        sort_by: Leak ordering (``line``, ``size`` or ``variable``).
        console: Target console, stdout when omitted.
    """
    console = console or Console()

    console.print(Panel(_build_summary_section(summarize_report(report)),
                        title=f"[bold {DARK_GREEN}]{escape(title)}[/]", border_style=DARK_GREEN))

    console.print(Text("• Memory Leaks", style=GREEN))
    console.print()
    console.print(_build_leaks_section(sort_leaks(report["leaks"], sort_by)))

    warnings = _build_warnings_section(report)
    if warnings is not None:
        console.print(Text("• Warnings", style=GREEN))
        console.print()
        console.print(warnings)
        console.print()

    timeline = _build_timeline_section(report)
    if timeline is not None:
        console.print(Text("• Memory Timeline", style=GREEN))
        console.print()
        console.print(timeline)
