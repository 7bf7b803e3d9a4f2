"""Core analyses, result data structures and the analysis engine."""

from complexityscanner.core.cfg import (
    ControlFlowGraph,
    GraphEdge,
    GraphNode,
    GraphNodeKind,
    build_control_flow_graph,
)
from complexityscanner.core.decisions import calculate_complexity, count_decision_points
from complexityscanner.core.engine import AnalysisEngine, create_engine
from complexityscanner.core.locator import enumerate_functions, find_function
from complexityscanner.core.results import (
    ANONYMOUS_FUNCTION,
    FileAnalysisResult,
    FunctionDescriptor,
    ProjectResult,
    RiskLevel,
)

__all__ = [
    "ANONYMOUS_FUNCTION",
    "AnalysisEngine",
    "ControlFlowGraph",
    "FileAnalysisResult",
    "FunctionDescriptor",
    "GraphEdge",
    "GraphNode",
    "GraphNodeKind",
    "ProjectResult",
    "RiskLevel",
    "build_control_flow_graph",
    "calculate_complexity",
    "count_decision_points",
    "create_engine",
    "enumerate_functions",
    "find_function",
]
