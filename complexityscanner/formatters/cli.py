"""
CLI output formatter for human-readable results.
"""

import os
import sys
from typing import List

from complexityscanner.core.cfg import ControlFlowGraph, GraphNodeKind
from complexityscanner.core.results import FileAnalysisResult, ProjectResult, RiskLevel
from complexityscanner.utils import truncate_string


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"


def supports_color() -> bool:
    """Check if the terminal supports color output."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    if not sys.stdout.isatty():
        return False
    return True


class CLIFormatter:
    """
    Formats analysis results and graphs for human-readable CLI output.
    """

    def __init__(self, use_color: bool = True, verbose: bool = False):
        self.use_color = use_color and supports_color()
        self.verbose = verbose

    def _color(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if self.use_color:
            return f"{color}{text}{Colors.RESET}"
        return text

    def _risk_color(self, risk: RiskLevel) -> str:
        colors = {
            RiskLevel.VERY_HIGH: Colors.RED,
            RiskLevel.HIGH: Colors.YELLOW,
            RiskLevel.LOW: Colors.GREEN,
        }
        return colors.get(risk, "")

    def format_result(self, result: ProjectResult) -> str:
        """Format a project result as a summary plus one table row per function."""
        lines = []

        lines.append("")
        lines.append(self._color("=" * 70, Colors.DIM))
        lines.append(self._color(" CYCLOMATIC COMPLEXITY (PROJECT) ", Colors.BOLD))
        lines.append(self._color("=" * 70, Colors.DIM))
        lines.append("")

        lines.append(self._color("Summary", Colors.BOLD))
        lines.append(self._color("-" * 40, Colors.DIM))
        lines.append(f"  Files analyzed:     {result.files_analyzed}")
        lines.append(f"  Total functions:    {result.total_functions}")
        lines.append(f"  Average complexity: {result.display_average:.2f}")
        lines.append(f"  Analysis time:      {result.elapsed_seconds:.2f}s")
        for risk in (RiskLevel.VERY_HIGH, RiskLevel.HIGH, RiskLevel.LOW):
            label = risk.value.replace("_", " ").upper()
            lines.append(
                f"  {self._color(f'[{label}]', self._risk_color(risk))} {result.count_by_risk(risk)}"
            )
        lines.append("")

        if result.total_functions:
            lines.append(self._color("Functions", Colors.BOLD))
            lines.append(self._color("-" * 70, Colors.DIM))
            lines.append(f"  {'Function':<36} {'CC':>4}  File:Line")
            for file_path, function in result.functions():
                risk = result.risk_of(function)
                name = truncate_string(function.name, 36)
                location = f"{os.path.basename(file_path)}:{function.line}"
                row = f"  {name:<36} {function.complexity:>4}  {location}"
                lines.append(self._color(row, self._risk_color(risk)))
            lines.append("")
        else:
            lines.append(self._color("  No functions detected.", Colors.DIM))
            lines.append("")

        if result.errors:
            lines.append(self._color("=" * 70, Colors.DIM))
            lines.append(self._color(" ERRORS ", Colors.RED))
            lines.append(self._color("=" * 70, Colors.DIM))
            for error in result.errors:
                lines.append(f"  - {error}")
            lines.append("")

        return "\n".join(lines)

    def format_file_result(self, result: FileAnalysisResult) -> str:
        """Format the report for a single file."""
        lines = [self._color(f"Complexity analysis: {result.file_path}", Colors.BOLD)]

        if result.error:
            lines.append(self._color(f"  Could not parse file: {result.error}", Colors.RED))
            return "\n".join(lines)

        if not result.functions:
            lines.append("  No functions detected in this file.")
            return "\n".join(lines)

        lines.append(f"  Total functions:    {result.total_functions}")
        lines.append(f"  Average complexity: {result.display_average:.2f}")
        lines.append("")
        for function in result.functions:
            entry = f"  [CC: {function.complexity}] {function.name} (Line {function.line})"
            lines.append(self._color(entry, self._risk_color(function.risk)))
        return "\n".join(lines)

    def format_graph(self, graph: ControlFlowGraph) -> str:
        """Format a control-flow graph as a node list followed by an edge list."""
        lines: List[str] = []
        title = graph.function_name or "function"
        if graph.file_path:
            title = f"{title} ({graph.file_path})"
        lines.append(self._color(f"Control-flow graph: {title}", Colors.BOLD))
        lines.append(self._color("-" * 70, Colors.DIM))

        for node in graph.nodes:
            color = Colors.CYAN if node.kind == GraphNodeKind.DECISION else ""
            lines.append(f"  {node.id:<10} {self._color(node.label, color)}")
            if self.verbose and node.code:
                for code_line in node.code.splitlines():
                    lines.append(self._color(f"             | {code_line}", Colors.DIM))

        lines.append("")
        for edge in graph.edges:
            label = f" [{edge.label}]" if edge.label else ""
            lines.append(f"  {edge.source} -> {edge.target}{label}")

        lines.append("")
        lines.append(
            f"  {len(graph.nodes)} nodes, {len(graph.edges)} edges, "
            f"{len(graph.basic_blocks())} basic blocks"
        )
        return "\n".join(lines)
