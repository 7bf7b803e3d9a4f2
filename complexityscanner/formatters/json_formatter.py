"""
JSON output formatter for machine-readable results.
"""

import json

from complexityscanner.core.cfg import ControlFlowGraph
from complexityscanner.core.results import FileAnalysisResult, ProjectResult


class JSONFormatter:
    """
    Formats analysis results and graphs as JSON for machine consumption.
    """

    def __init__(self, indent: int = 2, include_errors: bool = True):
        self.indent = indent
        self.include_errors = include_errors

    def format_result(self, result: ProjectResult) -> str:
        """Format a complete project result as JSON."""
        data = result.to_dict()
        if not self.include_errors:
            data.pop("errors", None)
        return json.dumps(data, indent=self.indent, default=str)

    def format_file_result(self, result: FileAnalysisResult) -> str:
        """Format a single file's result as JSON."""
        return json.dumps(result.to_dict(), indent=self.indent, default=str)

    def format_graph(self, graph: ControlFlowGraph) -> str:
        """Format a control-flow graph as JSON."""
        return json.dumps(graph.to_dict(), indent=self.indent, default=str)
