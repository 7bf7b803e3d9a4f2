"""
Cyclomatic complexity.

Counts decision points over a normalized syntax tree. The walk covers the
whole subtree it is given, nested function bodies included, so a decision
inside a closure also counts toward the function that defines it.
"""

from complexityscanner.parsers.base import NodeKind, SyntaxNode, iter_nodes


# Kinds that add one decision point each time they appear.
DECISION_KINDS = frozenset({
    NodeKind.BRANCH,
    NodeKind.LOOP_PRETEST,
    NodeKind.LOOP_POSTTEST,
    NodeKind.LOOP_COUNTING,
    NodeKind.TERNARY,
    NodeKind.EXCEPTION_GUARD,
    NodeKind.MULTIWAY_CASE,  # every case, default included
    NodeKind.SHORT_CIRCUIT_AND,  # per operator occurrence
    NodeKind.SHORT_CIRCUIT_OR,
})


def count_decision_points(node: SyntaxNode) -> int:
    """
    Count the decision points in a subtree.

    A multiway branch contributes nothing itself; its cases do. Each
    ``&&`` / ``||`` operator is its own node, so ``a && b && c`` counts 2.

    Args:
        node: Root of the subtree.

    Returns:
        Total decision points, ``node`` included.
    """
    return sum(1 for current in iter_nodes(node) if current.kind in DECISION_KINDS)


def calculate_complexity(function_node: SyntaxNode) -> int:
    """
    Calculate the cyclomatic complexity of a function node.

    CC = 1 (the baseline path) + number of decision points.
    """
    return 1 + count_decision_points(function_node)
