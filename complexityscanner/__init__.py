"""
Complexity Scanner

Static analysis for JavaScript and TypeScript: cyclomatic complexity for
every function, and control-flow graphs with merged basic blocks for
path-coverage review.
"""

__version__ = "1.0.0"
__author__ = "Complexity Scanner Team"

from complexityscanner.core.cfg import ControlFlowGraph, build_control_flow_graph
from complexityscanner.core.decisions import calculate_complexity, count_decision_points
from complexityscanner.core.engine import AnalysisEngine
from complexityscanner.core.locator import enumerate_functions, find_function
from complexityscanner.core.results import FileAnalysisResult, FunctionDescriptor, ProjectResult
from complexityscanner.config import AnalysisConfig

__all__ = [
    "AnalysisConfig",
    "AnalysisEngine",
    "ControlFlowGraph",
    "FileAnalysisResult",
    "FunctionDescriptor",
    "ProjectResult",
    "build_control_flow_graph",
    "calculate_complexity",
    "count_decision_points",
    "enumerate_functions",
    "find_function",
]
