"""
Function discovery.

Walks a whole syntax tree to find function-like nodes. Enumeration visits
every node, nested functions included, and scores each function on its own
subtree, so a decision inside an inner function counts for both the inner
and the enclosing function.
"""

from typing import Iterator, List, Optional, Tuple

from complexityscanner.core.decisions import calculate_complexity
from complexityscanner.core.results import ANONYMOUS_FUNCTION, FunctionDescriptor
from complexityscanner.parsers.base import NodeKind, SyntaxNode, iter_children


def resolve_function_name(node: SyntaxNode, parent: Optional[SyntaxNode] = None) -> str:
    """
    Determine the display name of a function-like node.

    Precedence: the function's own name (declarations and methods), then the
    identifier of the variable binding it is assigned to, then the
    anonymous sentinel.
    """
    if node.name:
        return node.name
    if (
        parent is not None
        and parent.kind is NodeKind.VARIABLE_BINDING
        and parent.value is node
        and parent.name
    ):
        return parent.name
    return ANONYMOUS_FUNCTION


def iter_functions(root: SyntaxNode) -> Iterator[Tuple[SyntaxNode, Optional[SyntaxNode]]]:
    """Yield ``(function_node, parent)`` pairs depth-first, in source order."""
    stack: List[Tuple[SyntaxNode, Optional[SyntaxNode]]] = [(root, None)]
    while stack:
        node, parent = stack.pop()
        if node.kind is NodeKind.FUNCTION_LIKE:
            yield node, parent
        stack.extend((child, node) for child in reversed(list(iter_children(node))))


def enumerate_functions(root: SyntaxNode) -> List[FunctionDescriptor]:
    """Collect one descriptor per function-like node in the tree."""
    return [
        FunctionDescriptor(
            name=resolve_function_name(node, parent),
            line=node.start_line,
            complexity=calculate_complexity(node),
            end_line=node.end_line,
        )
        for node, parent in iter_functions(root)
    ]


def find_function(root: SyntaxNode, name: str, line: int) -> Optional[SyntaxNode]:
    """
    Find a function by resolved name and declaration line.

    Returns:
        The first matching node in depth-first order, or None when nothing
        matches (for example after the file was edited and lines moved).
    """
    for node, parent in iter_functions(root):
        if node.start_line == line and resolve_function_name(node, parent) == name:
            return node
    return None
