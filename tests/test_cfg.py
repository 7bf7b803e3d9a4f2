"""
Tests for control-flow graph construction.
"""

import os
import sys
from collections import deque

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from complexityscanner.core.cfg import (
    EDGE_FALSE,
    EDGE_LOOP,
    EDGE_RETURN,
    EDGE_TRUE,
    ControlFlowGraph,
    GraphNodeKind,
    build_control_flow_graph,
)
from complexityscanner.core.locator import iter_functions
from complexityscanner.parsers import NodeKind, SyntaxNode, TypeScriptParser
from complexityscanner.parsers.base import statement_list


def graph_of(source: str, file_path: str = "test.ts") -> ControlFlowGraph:
    """Build the graph of the first function in ``source``."""
    parsed = TypeScriptParser().parse(source, file_path)
    function_node, _ = next(iter_functions(parsed.root))
    return build_control_flow_graph(function_node, parsed.source, function_name="f")


def edges(graph: ControlFlowGraph) -> set:
    return {(e.source, e.target, e.label) for e in graph.edges}


def labels(graph: ControlFlowGraph) -> list:
    return [n.label for n in graph.nodes]


def assert_well_formed(graph: ControlFlowGraph) -> None:
    """Single entry and exit, everything reachable, no dead ends."""
    ids = [n.id for n in graph.nodes]
    assert len(ids) == len(set(ids))

    no_incoming = [i for i in ids if not graph.predecessors(i)]
    no_outgoing = [i for i in ids if not graph.successors(i)]
    assert no_incoming == [graph.entry.id]
    assert no_outgoing == [graph.exit.id]

    seen = {graph.entry.id}
    queue = deque([graph.entry.id])
    while queue:
        for target in graph.successors(queue.popleft()):
            if target not in seen:
                seen.add(target)
                queue.append(target)
    assert seen == set(ids)


class TestScenarios:
    """End-to-end graphs for small functions."""

    def test_single_return(self):
        """ENTRY -> one basic block -> EXIT."""
        graph = graph_of("function f() { return 1; }")
        assert labels(graph) == ["ENTRY", "BB-PROCESS (L1-L1)", "EXIT"]
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", EDGE_RETURN),
        }
        assert graph.node("node_1").code == "return 1;"
        assert_well_formed(graph)

    def test_if_without_else_and_early_return(self):
        """The decision node is its own false exit into the trailing block."""
        graph = graph_of("function f(x) { if (x > 0) { return 1; } return 0; }")
        assert labels(graph) == [
            "ENTRY",
            "IF (L1)",
            "BB-PROCESS (L1-L1)",
            "BB-PROCESS (L1-L1)",
            "EXIT",
        ]
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", EDGE_TRUE),
            ("node_2", "node_4", EDGE_RETURN),
            ("node_1", "node_3", EDGE_FALSE),
            ("node_3", "node_4", EDGE_RETURN),
        }
        assert graph.node("node_1").code == "x > 0"
        assert graph.node("node_2").code == "return 1;"
        assert graph.node("node_3").code == "return 0;"
        assert_well_formed(graph)

    def test_short_circuit_is_a_single_block(self):
        """Logical operators do not split the graph."""
        graph = graph_of("function f(x) { return x > 0 && x < 10; }")
        assert labels(graph) == ["ENTRY", "BB-PROCESS (L1-L1)", "EXIT"]
        assert_well_formed(graph)

    def test_switch(self):
        """Each case hangs off the switch with its label and returns to EXIT."""
        source = """function f(x) {
    switch (x) {
        case 1: return 'a';
        case 2: return 'b';
        default: return 'c';
    }
}
"""
        graph = graph_of(source)
        assert labels(graph) == [
            "ENTRY",
            "SWITCH (L2)",
            "CASE (L3)",
            "BB-PROCESS (L3-L3)",
            "CASE (L4)",
            "BB-PROCESS (L4-L4)",
            "CASE (L5)",
            "BB-PROCESS (L5-L5)",
            "EXIT",
        ]
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", "1"),
            ("node_2", "node_3", ""),
            ("node_3", "node_8", EDGE_RETURN),
            ("node_1", "node_4", "2"),
            ("node_4", "node_5", ""),
            ("node_5", "node_8", EDGE_RETURN),
            ("node_1", "node_6", "default"),
            ("node_6", "node_7", ""),
            ("node_7", "node_8", EDGE_RETURN),
        }
        assert_well_formed(graph)

    def test_while_loop(self):
        """The loop body flows back to the decision node over a LOOP edge."""
        source = """function f(x) {
    while (x > 0) {
        x = x - 1;
    }
    return x;
}
"""
        graph = graph_of(source)
        assert labels(graph) == [
            "ENTRY",
            "WHILE (L2)",
            "BB-PROCESS (L3-L3)",
            "BB-PROCESS (L5-L5)",
            "EXIT",
        ]
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", EDGE_TRUE),
            ("node_2", "node_1", EDGE_LOOP),
            ("node_1", "node_3", EDGE_FALSE),
            ("node_3", "node_4", EDGE_RETURN),
        }
        assert_well_formed(graph)


class TestBasicBlocks:
    """Tests for straight-line merging."""

    SOURCE = """function f(items) {
    const total = items.length;
    let doubled = total * 2;
    console.log(doubled);
    if (doubled > 10) {
        log("big");
    }
    notify(total);
    return doubled;
}
"""

    def test_runs_are_merged_between_constructs(self):
        """Consecutive statements form one block; constructs split runs."""
        graph = graph_of(self.SOURCE)
        assert [b.label for b in graph.basic_blocks()] == [
            "BB-PROCESS (L2-L4)",
            "BB-PROCESS (L6-L6)",
            "BB-PROCESS (L8-L9)",
        ]
        assert_well_formed(graph)

    def test_block_code_is_exact_source_slice(self):
        """Block code reproduces the statements with their original spacing."""
        graph = graph_of(self.SOURCE)
        first = graph.basic_blocks()[0]
        assert first.code == (
            "const total = items.length;\n"
            "    let doubled = total * 2;\n"
            "    console.log(doubled);"
        )
        start, end = first.source_range
        assert self.SOURCE.encode("utf-8")[start:end].decode("utf-8") == first.code
        assert first.line == 2
        assert first.end_line == 4

    def test_concatenated_blocks_reproduce_straight_line_body(self):
        """A body without constructs round-trips through its single block."""
        source = "function f() {\n    a();\n    b();\n    c();\n}\n"
        graph = graph_of(source)
        blocks = graph.basic_blocks()
        assert len(blocks) == 1
        assert blocks[0].code == "a();\n    b();\n    c();"

    def test_true_branch_and_fallthrough_both_reach_next_block(self):
        """The branch body and the implicit false path join at the next block."""
        graph = graph_of(self.SOURCE)
        decision = graph.decision_nodes()[0]
        then_block, after_block = graph.basic_blocks()[1:]
        assert (decision.id, then_block.id, EDGE_TRUE) in edges(graph)
        assert (decision.id, after_block.id, EDGE_FALSE) in edges(graph)
        assert (then_block.id, after_block.id, "") in edges(graph)

    def test_unreachable_statements_are_dropped(self):
        """Statements after a return are not emitted."""
        graph = graph_of("function f() {\n    return 1;\n    dead();\n}\n")
        assert [b.code for b in graph.basic_blocks()] == ["return 1;"]
        assert_well_formed(graph)

    def test_block_and_construct_ranges_tile_a_mixed_body(self):
        """Top-level blocks and constructs cover the body's source in order."""
        source = """function f(x) {
    a();
    b();
    if (x) {
        return 1;
    }
    c();
    while (x > 0) {
        return 2;
    }
    switch (x) {
        case 1:
            return 3;
    }
    d();
    return 4;
}
"""
        parsed = TypeScriptParser().parse(source, "test.ts")
        function_node, _ = next(iter_functions(parsed.root))
        graph = build_control_flow_graph(function_node, parsed.source)
        assert [b.code for b in graph.basic_blocks()] == [
            "a();\n    b();",
            "return 1;",
            "c();",
            "return 2;",
            "return 3;",
            "d();\n    return 4;",
        ]

        statements = statement_list(function_node.body)
        constructs = [s.source_range for s in statements if s.kind is not NodeKind.PLAIN_STATEMENT]
        top_level = [
            b.source_range for b in graph.basic_blocks()
            if not any(start <= b.source_range[0] < end for start, end in constructs)
        ]
        ranges = sorted(top_level + constructs)
        assert ranges[0][0] == statements[0].start_byte
        assert ranges[-1][1] == statements[-1].end_byte
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert parsed.source[end:start].strip() == b""
        assert_well_formed(graph)

    def test_throw_ends_the_block(self):
        """A throw is wired to EXIT like a return."""
        source = "function f(x) {\n    if (!x) {\n        throw new Error('no');\n    }\n    use(x);\n}\n"
        graph = graph_of(source)
        throw_block = graph.basic_blocks()[0]
        assert graph.successors(throw_block.id) == [graph.exit.id]
        assert_well_formed(graph)


class TestConstructs:
    """Graph shapes for each construct."""

    def test_empty_function(self):
        """An empty body is a single unlabeled ENTRY -> EXIT edge."""
        graph = graph_of("function f() {}")
        assert labels(graph) == ["ENTRY", "EXIT"]
        assert edges(graph) == {("node_0", "node_1", "")}

    def test_if_else_chain(self):
        """else-if becomes a nested decision on the false edge."""
        source = """function f(a, b) {
    if (a) {
        p();
    } else if (b) {
        q();
    } else {
        r();
    }
}
"""
        graph = graph_of(source)
        assert labels(graph) == [
            "ENTRY",
            "IF (L2)",
            "BB-PROCESS (L3-L3)",
            "IF (L4)",
            "BB-PROCESS (L5-L5)",
            "BB-PROCESS (L7-L7)",
            "EXIT",
        ]
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", EDGE_TRUE),
            ("node_1", "node_3", EDGE_FALSE),
            ("node_3", "node_4", EDGE_TRUE),
            ("node_3", "node_5", EDGE_FALSE),
            ("node_2", "node_6", EDGE_RETURN),
            ("node_4", "node_6", EDGE_RETURN),
            ("node_5", "node_6", EDGE_RETURN),
        }
        assert_well_formed(graph)

    @pytest.mark.parametrize("source,label", [
        ("function f(n) {\n    for (let i = 0; i < n; i++) {\n        step(i);\n    }\n}\n", "FOR (L2)"),
        ("function f(xs) {\n    for (const x of xs) {\n        step(x);\n    }\n}\n", "FOR (L2)"),
        ("function f(o) {\n    for (const k in o) {\n        step(k);\n    }\n}\n", "FOR (L2)"),
        ("function f(n) {\n    do {\n        n--;\n    } while (n > 0);\n}\n", "DO-WHILE (L2)"),
    ])
    def test_loops_share_one_template(self, source, label):
        """Every loop gates its body with T, loops back, and leaves with F."""
        graph = graph_of(source)
        loop = graph.decision_nodes()[0]
        body = graph.basic_blocks()[0]
        assert loop.label == label
        assert (loop.id, body.id, EDGE_TRUE) in edges(graph)
        assert (body.id, loop.id, EDGE_LOOP) in edges(graph)
        assert (loop.id, graph.exit.id, EDGE_RETURN) in edges(graph)
        assert_well_formed(graph)

    def test_loop_with_returning_body_still_loops_back(self):
        """A body that always returns keeps its LOOP edge next to Return/End."""
        graph = graph_of("function f(x) { while (x > 0) { return 1; } return 0; }")
        assert labels(graph) == [
            "ENTRY",
            "WHILE (L1)",
            "BB-PROCESS (L1-L1)",
            "BB-PROCESS (L1-L1)",
            "EXIT",
        ]
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", EDGE_TRUE),
            ("node_2", "node_1", EDGE_LOOP),
            ("node_2", "node_4", EDGE_RETURN),
            ("node_1", "node_3", EDGE_FALSE),
            ("node_3", "node_4", EDGE_RETURN),
        }
        assert_well_formed(graph)

    def test_switch_without_default_falls_through_to_next_statement(self):
        """When no case matches, control continues after the switch."""
        graph = graph_of("function f(x) { switch (x) { case 1: return 1; } return 0; }")
        assert labels(graph) == [
            "ENTRY",
            "SWITCH (L1)",
            "CASE (L1)",
            "BB-PROCESS (L1-L1)",
            "BB-PROCESS (L1-L1)",
            "EXIT",
        ]
        assert graph.node("node_4").code == "return 0;"
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", "1"),
            ("node_2", "node_3", ""),
            ("node_3", "node_5", EDGE_RETURN),
            ("node_1", "node_4", ""),
            ("node_4", "node_5", EDGE_RETURN),
        }
        assert_well_formed(graph)

    def test_finally_runs_after_return(self):
        """A finally block is emitted between a returning try and EXIT."""
        graph = graph_of("function f() { try { return g(); } finally { cleanup(); } }")
        assert labels(graph) == [
            "ENTRY",
            "BB-PROCESS (L1-L1)",
            "BB-PROCESS (L1-L1)",
            "EXIT",
        ]
        assert graph.node("node_1").code == "return g();"
        assert graph.node("node_2").code == "cleanup();"
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", ""),
            ("node_2", "node_3", EDGE_RETURN),
        }
        assert_well_formed(graph)

    def test_finally_after_returning_try_and_catch(self):
        """Both returning paths pass through finally; later code stays unreachable."""
        source = """function f() {
    try {
        return a();
    } catch (e) {
        return b();
    } finally {
        c();
    }
    d();
}
"""
        graph = graph_of(source)
        codes = [b.code for b in graph.basic_blocks()]
        assert codes == ["return a();", "return b();", "c();"]
        finally_block = graph.basic_blocks()[2]
        assert graph.successors(finally_block.id) == [graph.exit.id]
        assert len(graph.predecessors(finally_block.id)) == 2
        assert_well_formed(graph)

    def test_empty_loop_body_loops_on_itself(self):
        """With no body the back-edge is a self-loop."""
        graph = graph_of("function f() {\n    while (poll()) {}\n}\n")
        loop = graph.decision_nodes()[0]
        assert (loop.id, loop.id, EDGE_LOOP) in edges(graph)
        assert_well_formed(graph)

    def test_ternary_statement(self):
        """A ternary expression statement branches into two process nodes."""
        graph = graph_of("function f(x) {\n    x ? yes() : no();\n}\n")
        assert labels(graph) == [
            "ENTRY",
            "TERNARY (L2)",
            "BB-PROCESS (L2)",
            "BB-PROCESS (L2)",
            "EXIT",
        ]
        assert graph.basic_blocks() == []
        assert graph.node("node_2").code == "yes()"
        assert graph.node("node_3").code == "no()"
        assert ("node_1", "node_2", EDGE_TRUE) in edges(graph)
        assert ("node_1", "node_3", EDGE_FALSE) in edges(graph)
        assert_well_formed(graph)

    def test_arrow_expression_body(self):
        """An arrow returning a ternary is graphed like the statement form."""
        graph = graph_of("const f = (x) => x ? 1 : 2;\n")
        assert labels(graph) == [
            "ENTRY",
            "TERNARY (L1)",
            "BB-PROCESS (L1)",
            "BB-PROCESS (L1)",
            "EXIT",
        ]
        assert_well_formed(graph)

    def test_try_catch_finally(self):
        """Try and catch both start from the incoming edge and join in finally."""
        source = """function f() {
    try {
        risky();
    } catch (e) {
        recover(e);
    } finally {
        cleanup();
    }
}
"""
        graph = graph_of(source)
        assert labels(graph) == [
            "ENTRY",
            "BB-PROCESS (L3-L3)",
            "CATCH (L4)",
            "BB-PROCESS (L5-L5)",
            "BB-PROCESS (L7-L7)",
            "EXIT",
        ]
        assert graph.node("node_2").code == "e"
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_0", "node_2", ""),
            ("node_2", "node_3", ""),
            ("node_1", "node_4", ""),
            ("node_3", "node_4", ""),
            ("node_4", "node_5", EDGE_RETURN),
        }
        assert_well_formed(graph)

    def test_switch_fallthrough_case(self):
        """An empty case dangles and joins whatever follows the switch."""
        source = """function f(x) {
    switch (x) {
        case 1:
        case 2:
            two();
            break;
    }
    done();
}
"""
        graph = graph_of(source)
        case_one = graph.decision_nodes()[1]
        after = graph.basic_blocks()[-1]
        assert after.code == "done();"
        assert (case_one.id, after.id, "") in edges(graph)
        assert_well_formed(graph)

    def test_empty_switch(self):
        """A switch without cases is its own exit."""
        graph = graph_of("function f(x) {\n    switch (x) {}\n    go();\n}\n")
        switch = graph.decision_nodes()[0]
        assert graph.successors(switch.id) == [graph.basic_blocks()[0].id]
        assert_well_formed(graph)

    def test_every_node_reaches_exit_in_a_mixed_function(self):
        """A larger function keeps the single-entry single-exit shape."""
        source = """function process(items, opts) {
    let count = 0;
    for (const item of items) {
        if (!item) {
            continue;
        }
        try {
            count += opts.strict ? check(item) : 1;
        } catch (err) {
            return -1;
        }
    }
    switch (opts.mode) {
        case "fast":
            count *= 2;
            break;
        default:
            count += 1;
    }
    return count > 10 && count < 100 ? count : 0;
}
"""
        graph = graph_of(source)
        kinds = {n.kind for n in graph.nodes}
        assert kinds == {
            GraphNodeKind.ENTRY,
            GraphNodeKind.DECISION,
            GraphNodeKind.PROCESS,
            GraphNodeKind.EXIT,
        }
        assert any(e.label == EDGE_LOOP for e in graph.edges)
        assert_well_formed(graph)


class TestBuilderContext:
    """Tests for id allocation and metadata."""

    def test_ids_restart_per_graph(self):
        """Each build numbers its nodes from node_0."""
        first = graph_of("function f(x) { if (x) { a(); } }")
        second = graph_of("function f() { b(); }")
        assert first.entry.id == "node_0"
        assert second.entry.id == "node_0"
        assert second.exit.id == "node_2"

    def test_metadata_and_serialization(self):
        """The graph records its function and file, and serializes to a dict."""
        parsed = TypeScriptParser().parse("function f() { go(); }", "a.ts")
        function_node, _ = next(iter_functions(parsed.root))
        graph = build_control_flow_graph(function_node, parsed.source, "f", "a.ts")
        data = graph.to_dict()
        assert data["function_name"] == "f"
        assert data["file_path"] == "a.ts"
        assert data["nodes"][1]["is_basic_block"] is True
        assert data["nodes"][1]["kind"] == "process"
        assert data["edges"][0] == {"from": "node_0", "to": "node_1", "label": ""}

    def test_function_without_body(self):
        """A function node with no body gives ENTRY -> EXIT."""
        fn = SyntaxNode(kind=NodeKind.FUNCTION_LIKE, type="function_declaration")
        graph = build_control_flow_graph(fn, b"")
        assert labels(graph) == ["ENTRY", "EXIT"]
        assert edges(graph) == {("node_0", "node_1", "")}

    def test_hand_built_branch(self):
        """Hand-built trees are graphed without a parser."""
        source = b"if (c) { a(); }"
        stmt = SyntaxNode(kind=NodeKind.PLAIN_STATEMENT, type="expression_statement",
                          start_byte=9, end_byte=13, start_line=1, end_line=1)
        branch = SyntaxNode(
            kind=NodeKind.BRANCH, type="if_statement",
            start_byte=0, end_byte=15, start_line=1, end_line=1,
            condition=SyntaxNode(kind=NodeKind.IDENTIFIER, type="identifier",
                                 start_byte=4, end_byte=5, name="c"),
            consequent=SyntaxNode(kind=NodeKind.BLOCK, type="statement_block", statements=(stmt,)),
        )
        fn = SyntaxNode(
            kind=NodeKind.FUNCTION_LIKE, type="function_declaration",
            body=SyntaxNode(kind=NodeKind.BLOCK, type="statement_block", statements=(branch,)),
        )
        graph = build_control_flow_graph(fn, source)
        assert labels(graph) == ["ENTRY", "IF (L1)", "BB-PROCESS (L1-L1)", "EXIT"]
        assert graph.node("node_1").code == "c"
        assert graph.node("node_2").code == "a();"
        assert edges(graph) == {
            ("node_0", "node_1", ""),
            ("node_1", "node_2", EDGE_TRUE),
            ("node_2", "node_3", EDGE_RETURN),
            ("node_1", "node_3", EDGE_RETURN),
        }
