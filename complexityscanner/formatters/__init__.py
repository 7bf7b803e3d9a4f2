"""
Output formatters for analysis results and control-flow graphs.

Provides multiple output formats including:
- Human-readable CLI output
- JSON for machine processing
- Graphviz DOT and Mermaid for control-flow graphs
"""

from complexityscanner.formatters.cli import CLIFormatter
from complexityscanner.formatters.dot import DotFormatter, MermaidFormatter
from complexityscanner.formatters.json_formatter import JSONFormatter

__all__ = [
    "CLIFormatter",
    "DotFormatter",
    "JSONFormatter",
    "MermaidFormatter",
    "get_formatter",
]

# Formats that can render project and file results
RESULT_FORMATS = ("text", "json")

# Formats that can render control-flow graphs
GRAPH_FORMATS = ("text", "json", "dot", "mermaid")


def get_formatter(format_name: str):
    """Get a formatter by name."""
    formatters = {
        "text": CLIFormatter,
        "cli": CLIFormatter,
        "json": JSONFormatter,
        "dot": DotFormatter,
        "mermaid": MermaidFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if formatter_class:
        return formatter_class()

    raise ValueError(f"Unknown format: {format_name}")
