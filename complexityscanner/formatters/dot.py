"""
Graph renderers for control-flow graphs.

Graphviz DOT and Mermaid flowchart output. Decision nodes are drawn as
diamonds, ENTRY/EXIT as filled ellipses, basic blocks as boxes.
"""

from typing import Optional

from complexityscanner.core.cfg import (
    EDGE_FALSE,
    EDGE_LOOP,
    EDGE_TRUE,
    ControlFlowGraph,
    GraphNode,
    GraphNodeKind,
)


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _mermaid_escape(text: str) -> str:
    return text.replace('"', "#quot;").replace("\n", "<br/>")


class DotFormatter:
    """Formats a control-flow graph as Graphviz DOT."""

    def __init__(self, show_code: bool = False):
        self.show_code = show_code

    def _node_label(self, node: GraphNode) -> str:
        if self.show_code and node.code:
            return f"{node.label}\n{node.code}"
        return node.label

    def format_graph(self, graph: ControlFlowGraph, title: Optional[str] = None) -> str:
        """Return the DOT source for ``graph``."""
        title = title or graph.function_name
        lines = ["digraph CFG {"]
        if title:
            lines.append(f'  label="{_dot_escape(title)}";')
        lines.append("  node [shape=box, fontname=monospace, fontsize=10];")

        for node in graph.nodes:
            attrs = f'label="{_dot_escape(self._node_label(node))}"'
            if node.kind == GraphNodeKind.ENTRY:
                attrs += ', shape=ellipse, style=filled, fillcolor="#ccffcc"'
            elif node.kind == GraphNodeKind.EXIT:
                attrs += ', shape=ellipse, style=filled, fillcolor="#ffcccc"'
            elif node.kind == GraphNodeKind.DECISION:
                attrs += ", shape=diamond"
            lines.append(f"  {node.id} [{attrs}];")

        for edge in graph.edges:
            attrs = f'label="{_dot_escape(edge.label)}"'
            if edge.label == EDGE_TRUE:
                attrs += ", color=green, fontcolor=green"
            elif edge.label == EDGE_FALSE:
                attrs += ", color=red, fontcolor=red"
            elif edge.label == EDGE_LOOP:
                attrs += ", style=dashed, color=blue, fontcolor=blue"
            lines.append(f"  {edge.source} -> {edge.target} [{attrs}];")

        lines.append("}")
        return "\n".join(lines)


class MermaidFormatter:
    """Formats a control-flow graph as a Mermaid flowchart."""

    def format_graph(self, graph: ControlFlowGraph) -> str:
        lines = ["graph TD"]

        for node in graph.nodes:
            label = _mermaid_escape(node.label)
            if node.kind == GraphNodeKind.DECISION:
                lines.append(f'    {node.id}{{"{label}"}}')
            elif node.kind in (GraphNodeKind.ENTRY, GraphNodeKind.EXIT):
                lines.append(f'    {node.id}(["{label}"])')
            else:
                lines.append(f'    {node.id}["{label}"]')

        for edge in graph.edges:
            if edge.label:
                lines.append(f'    {edge.source} -->|"{_mermaid_escape(edge.label)}"| {edge.target}')
            else:
                lines.append(f"    {edge.source} --> {edge.target}")

        lines.append(f"    style {graph.entry.id} fill:#90EE90")
        lines.append(f"    style {graph.exit.id} fill:#FFB6C1")
        return "\n".join(lines)
