"""
Control-flow graphs for path-coverage review.

Builds a deterministic graph for one function body: ENTRY and EXIT sentinels,
one decision node per branching or looping construct, and one merged
basic-block node per run of straight-line statements.

The builder works by structured recursive descent. Each construct returns
its dangling exits, the ``(node_id, pending_label)`` pairs from which control
leaves it; whatever comes next is connected from every one of them.
"""

import itertools
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from complexityscanner.parsers.base import (
    LOOP_KINDS,
    NodeKind,
    SyntaxNode,
    statement_list,
)

logger = logging.getLogger(__name__)


EDGE_TRUE = "T"
EDGE_FALSE = "F"
EDGE_LOOP = "LOOP"
EDGE_RETURN = "Return/End"

DECISION_LABELS: Dict[NodeKind, str] = {
    NodeKind.BRANCH: "IF",
    NodeKind.LOOP_PRETEST: "WHILE",
    NodeKind.LOOP_POSTTEST: "DO-WHILE",
    NodeKind.LOOP_COUNTING: "FOR",
    NodeKind.TERNARY: "TERNARY",
    NodeKind.MULTIWAY_BRANCH: "SWITCH",
    NodeKind.MULTIWAY_CASE: "CASE",
    NodeKind.EXCEPTION_GUARD: "CATCH",
}

PROCESS_LABEL = "BB-PROCESS"

# Statements that end a basic block and get their own subgraph.
CONSTRUCT_KINDS = LOOP_KINDS | {
    NodeKind.BRANCH,
    NodeKind.TERNARY,
    NodeKind.MULTIWAY_BRANCH,
    NodeKind.GUARDED_BLOCK,
    NodeKind.BLOCK,
}

DanglingExit = Tuple[str, str]


class GraphNodeKind(Enum):
    """Kinds of control-flow graph nodes."""
    ENTRY = "entry"
    DECISION = "decision"
    PROCESS = "process"
    EXIT = "exit"


@dataclass(frozen=True)
class GraphNode:
    """A node in a control-flow graph."""
    id: str
    label: str
    kind: GraphNodeKind
    source_range: Optional[Tuple[int, int]] = None
    line: Optional[int] = None
    end_line: Optional[int] = None
    code: Optional[str] = None
    is_basic_block: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "kind": self.kind.value,
            "range": list(self.source_range) if self.source_range else None,
            "line": self.line,
            "end_line": self.end_line,
            "code": self.code,
            "is_basic_block": self.is_basic_block,
        }


@dataclass(frozen=True)
class GraphEdge:
    """A directed edge; ``label`` is "", "T", "F", "LOOP", "Return/End" or a case label."""
    source: str
    target: str
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "label": self.label}


@dataclass
class ControlFlowGraph:
    """Nodes and edges of one function's control flow."""
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    function_name: Optional[str] = None
    file_path: Optional[str] = None

    def node(self, node_id: str) -> GraphNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    @property
    def entry(self) -> GraphNode:
        return next(n for n in self.nodes if n.kind == GraphNodeKind.ENTRY)

    @property
    def exit(self) -> GraphNode:
        return next(n for n in self.nodes if n.kind == GraphNodeKind.EXIT)

    def successors(self, node_id: str) -> List[str]:
        return [e.target for e in self.edges if e.source == node_id]

    def predecessors(self, node_id: str) -> List[str]:
        return [e.source for e in self.edges if e.target == node_id]

    def basic_blocks(self) -> List[GraphNode]:
        """Merged basic-block nodes in creation (source) order."""
        return [n for n in self.nodes if n.is_basic_block]

    def decision_nodes(self) -> List[GraphNode]:
        return [n for n in self.nodes if n.kind == GraphNodeKind.DECISION]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "function_name": self.function_name,
            "file_path": self.file_path,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def build_control_flow_graph(
    function_node: SyntaxNode,
    source: Union[bytes, str],
    function_name: Optional[str] = None,
    file_path: Optional[str] = None,
) -> ControlFlowGraph:
    """
    Build the control-flow graph of a function.

    Node ids are ``node_0``, ``node_1``, ... and restart for every call;
    they are unique within one graph only.

    Args:
        function_node: A function-like node (its ``body`` slot is walked).
        source: The source the node's byte ranges refer to.
        function_name: Recorded on the graph for reporting.
        file_path: Recorded on the graph for reporting.

    Returns:
        The control-flow graph.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    builder = _GraphBuilder(source)
    graph = builder.build(function_node)
    graph.function_name = function_name
    graph.file_path = file_path
    return graph


def _unique(exits: List[DanglingExit]) -> List[DanglingExit]:
    seen = set()
    result = []
    for item in exits:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class _GraphBuilder:
    """State for a single graph build: id counter, nodes, edges."""

    def __init__(self, source: bytes):
        self.source = source
        self.nodes: List[GraphNode] = []
        self.edges: List[GraphEdge] = []
        self.returning: List[str] = []
        self._ids = itertools.count()

    def build(self, function_node: SyntaxNode) -> ControlFlowGraph:
        entry_id = self._add(label="ENTRY", kind=GraphNodeKind.ENTRY)
        exits: List[DanglingExit] = [(entry_id, "")]

        if function_node.body is not None:
            exits = self._sequence(statement_list(function_node.body), exits)

        exit_id = self._add(label="EXIT", kind=GraphNodeKind.EXIT)

        ends: List[str] = []
        for node_id in [node_id for node_id, _ in exits] + self.returning:
            if node_id not in ends:
                ends.append(node_id)

        if ends == [entry_id]:
            self.edges.append(GraphEdge(entry_id, exit_id, ""))
        else:
            for node_id in ends:
                if node_id != entry_id:
                    self.edges.append(GraphEdge(node_id, exit_id, EDGE_RETURN))

        return ControlFlowGraph(nodes=self.nodes, edges=self.edges)

    # Node and edge helpers

    def _add(
        self,
        label: str,
        kind: GraphNodeKind,
        source_range: Optional[Tuple[int, int]] = None,
        line: Optional[int] = None,
        end_line: Optional[int] = None,
        code: Optional[str] = None,
        is_basic_block: bool = False,
    ) -> str:
        node_id = f"node_{next(self._ids)}"
        self.nodes.append(GraphNode(
            id=node_id,
            label=label,
            kind=kind,
            source_range=source_range,
            line=line,
            end_line=end_line,
            code=code,
            is_basic_block=is_basic_block,
        ))
        return node_id

    def _connect(self, exits: List[DanglingExit], target_id: str) -> None:
        for source_id, label in exits:
            self.edges.append(GraphEdge(source_id, target_id, label))

    def _slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8", errors="replace")

    def _decision(self, node: SyntaxNode, exits: List[DanglingExit]) -> str:
        code = None
        if node.condition is not None:
            code = node.condition.text(self.source)
        elif node.kind is NodeKind.EXCEPTION_GUARD and node.operands:
            code = node.operands[0].text(self.source)
        node_id = self._add(
            label=f"{DECISION_LABELS[node.kind]} (L{node.start_line})",
            kind=GraphNodeKind.DECISION,
            source_range=node.source_range,
            line=node.start_line,
            end_line=node.end_line,
            code=code,
        )
        self._connect(exits, node_id)
        return node_id

    def _process(self, node: SyntaxNode, exits: List[DanglingExit]) -> List[DanglingExit]:
        node_id = self._add(
            label=f"{PROCESS_LABEL} (L{node.start_line})",
            kind=GraphNodeKind.PROCESS,
            source_range=node.source_range,
            line=node.start_line,
            end_line=node.end_line,
            code=node.text(self.source),
        )
        self._connect(exits, node_id)
        return [(node_id, "")]

    # Statement sequences

    def _sequence(
        self,
        statements: Tuple[SyntaxNode, ...],
        exits: List[DanglingExit],
    ) -> List[DanglingExit]:
        """Merge straight-line runs into basic blocks, descending into constructs."""
        pending: List[SyntaxNode] = []
        for index, statement in enumerate(statements):
            if not exits:
                logger.debug(
                    "Skipping %d unreachable statement(s) from line %d",
                    len(statements) - index, statement.start_line,
                )
                break

            construct = _construct_of(statement)
            if construct is None:
                pending.append(statement)
                if statement.exits_function:
                    exits = self._flush(pending, exits, returns=True)
                    pending = []
                continue

            exits = self._flush(pending, exits)
            pending = []
            exits = self._construct(construct, exits)

        return self._flush(pending, exits)

    def _flush(
        self,
        pending: List[SyntaxNode],
        exits: List[DanglingExit],
        returns: bool = False,
    ) -> List[DanglingExit]:
        if not pending:
            return exits
        first, last = pending[0], pending[-1]
        node_id = self._add(
            label=f"{PROCESS_LABEL} (L{first.start_line}-L{last.end_line})",
            kind=GraphNodeKind.PROCESS,
            source_range=(first.start_byte, last.end_byte),
            line=first.start_line,
            end_line=last.end_line,
            code=self._slice(first.start_byte, last.end_byte),
            is_basic_block=True,
        )
        self._connect(exits, node_id)
        if returns:
            self.returning.append(node_id)
            return []
        return [(node_id, "")]

    # Constructs

    def _construct(self, node: SyntaxNode, exits: List[DanglingExit]) -> List[DanglingExit]:
        if node.kind is NodeKind.BLOCK:
            return self._sequence(node.statements, exits)
        if node.kind is NodeKind.BRANCH:
            return self._branch(node, exits)
        if node.kind in LOOP_KINDS:
            return self._loop(node, exits)
        if node.kind is NodeKind.TERNARY:
            return self._ternary(node, exits)
        if node.kind is NodeKind.MULTIWAY_BRANCH:
            return self._switch(node, exits)
        if node.kind is NodeKind.GUARDED_BLOCK:
            return self._guarded(node, exits)
        return self._process(node, exits)

    def _branch(self, node: SyntaxNode, exits: List[DanglingExit]) -> List[DanglingExit]:
        decision_id = self._decision(node, exits)
        ends = self._sequence(statement_list(node.consequent), [(decision_id, EDGE_TRUE)])
        if node.alternate is not None:
            ends += self._sequence(statement_list(node.alternate), [(decision_id, EDGE_FALSE)])
        else:
            # The decision node is its own false-path exit.
            ends.append((decision_id, EDGE_FALSE))
        return _unique(ends)

    def _loop(self, node: SyntaxNode, exits: List[DanglingExit]) -> List[DanglingExit]:
        # Pretest, posttest and counting loops share one template.
        decision_id = self._decision(node, exits)
        mark = len(self.returning)
        body_ends = self._sequence(statement_list(node.body), [(decision_id, EDGE_TRUE)])
        if not body_ends:
            # Every path through the body returns; the returning blocks still loop back.
            body_ends = [(source_id, "") for source_id in self.returning[mark:]]
        back_sources: List[str] = []
        for source_id, _ in body_ends:
            if source_id not in back_sources:
                back_sources.append(source_id)
        for source_id in back_sources:
            self.edges.append(GraphEdge(source_id, decision_id, EDGE_LOOP))
        return [(decision_id, EDGE_FALSE)]

    def _ternary(self, node: SyntaxNode, exits: List[DanglingExit]) -> List[DanglingExit]:
        decision_id = self._decision(node, exits)
        ends = self._operand(node.consequent, [(decision_id, EDGE_TRUE)])
        ends += self._operand(node.alternate, [(decision_id, EDGE_FALSE)])
        return _unique(ends)

    def _operand(self, node: Optional[SyntaxNode], exits: List[DanglingExit]) -> List[DanglingExit]:
        if node is None:
            return exits
        if node.kind is NodeKind.TERNARY:
            return self._ternary(node, exits)
        return self._process(node, exits)

    def _switch(self, node: SyntaxNode, exits: List[DanglingExit]) -> List[DanglingExit]:
        switch_id = self._decision(node, exits)
        ends: List[DanglingExit] = []
        for case in node.cases:
            label = case.condition.text(self.source) if case.condition is not None else "default"
            case_id = self._decision(case, [(switch_id, label)])
            ends += self._sequence(case.statements, [(case_id, "")])
        if all(case.condition is not None for case in node.cases):
            # Without a default no case may match.
            ends.append((switch_id, ""))
        return _unique(ends)

    def _guarded(self, node: SyntaxNode, exits: List[DanglingExit]) -> List[DanglingExit]:
        mark = len(self.returning)
        ends = self._sequence(statement_list(node.body), exits)
        if node.handler is not None:
            # The exception path leaves from wherever the try was entered.
            catch_id = self._decision(node.handler, exits)
            ends += self._sequence(statement_list(node.handler.body), [(catch_id, "")])
        ends = _unique(ends)
        if node.finalizer is None:
            return ends
        if ends:
            return self._sequence(statement_list(node.finalizer), ends)

        # Every path returned; the finally block runs before leaving the function.
        returned = self.returning[mark:]
        del self.returning[mark:]
        final_ends = self._sequence(statement_list(node.finalizer), [(i, "") for i in returned])
        for source_id, _ in final_ends:
            if source_id not in self.returning:
                self.returning.append(source_id)
        return []


def _construct_of(statement: SyntaxNode) -> Optional[SyntaxNode]:
    """Return the construct a statement opens, or None for straight-line code."""
    if statement.kind in CONSTRUCT_KINDS:
        return statement
    if (
        statement.kind is NodeKind.PLAIN_STATEMENT
        and not statement.exits_function
        and len(statement.operands) == 1
        and statement.operands[0].kind is NodeKind.TERNARY
    ):
        return statement.operands[0]
    return None
