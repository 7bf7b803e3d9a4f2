"""
Base parser class and the normalized syntax tree.

Parsers turn source text into a tree of ``SyntaxNode`` objects. Every node
carries one ``NodeKind`` from a closed set, and every kind exposes a fixed,
ordered list of child slots (``KIND_SLOTS``). Analyses walk those slots and
nothing else, so metadata on a node is never mistaken for structure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple


class NodeKind(Enum):
    """Closed set of construct kinds understood by the analyses."""
    BRANCH = "branch"
    LOOP_PRETEST = "loop-pretest"
    LOOP_POSTTEST = "loop-posttest"
    LOOP_COUNTING = "loop-counting"
    TERNARY = "ternary"
    MULTIWAY_BRANCH = "multiway-branch"
    MULTIWAY_CASE = "multiway-case"
    GUARDED_BLOCK = "guarded-block"
    EXCEPTION_GUARD = "exception-guard"
    SHORT_CIRCUIT_AND = "short-circuit-and"
    SHORT_CIRCUIT_OR = "short-circuit-or"
    BLOCK = "block"
    PLAIN_STATEMENT = "plain-statement"
    FUNCTION_LIKE = "function-like"
    IDENTIFIER = "identifier"
    VARIABLE_BINDING = "variable-binding"


LOOP_KINDS = frozenset({
    NodeKind.LOOP_PRETEST,
    NodeKind.LOOP_POSTTEST,
    NodeKind.LOOP_COUNTING,
})

# Ordered child slots per kind. Tuple-valued slots hold several children.
KIND_SLOTS: Dict[NodeKind, Tuple[str, ...]] = {
    NodeKind.BRANCH: ("condition", "consequent", "alternate"),
    NodeKind.LOOP_PRETEST: ("condition", "body"),
    NodeKind.LOOP_POSTTEST: ("body", "condition"),
    NodeKind.LOOP_COUNTING: ("operands", "condition", "body"),
    NodeKind.TERNARY: ("condition", "consequent", "alternate"),
    NodeKind.MULTIWAY_BRANCH: ("condition", "cases"),
    NodeKind.MULTIWAY_CASE: ("condition", "statements"),
    NodeKind.GUARDED_BLOCK: ("body", "handler", "finalizer"),
    NodeKind.EXCEPTION_GUARD: ("operands", "body"),
    NodeKind.SHORT_CIRCUIT_AND: ("operands",),
    NodeKind.SHORT_CIRCUIT_OR: ("operands",),
    NodeKind.BLOCK: ("statements",),
    NodeKind.PLAIN_STATEMENT: ("operands",),
    NodeKind.FUNCTION_LIKE: ("operands", "body"),
    NodeKind.IDENTIFIER: (),
    NodeKind.VARIABLE_BINDING: ("operands", "value"),
}

_SEQUENCE_SLOTS = frozenset({"statements", "cases", "operands"})


@dataclass(frozen=True)
class SyntaxNode:
    """
    Immutable normalized syntax node.

    Positions: lines are 1-based, columns 0-based, and ``start_byte`` /
    ``end_byte`` index into the UTF-8 encoded source.
    """
    kind: NodeKind
    type: str
    start_byte: int = 0
    end_byte: int = 0
    start_line: int = 0
    start_column: int = 0
    end_line: int = 0
    end_column: int = 0
    name: Optional[str] = None
    operator: Optional[str] = None
    exits_function: bool = False

    condition: Optional["SyntaxNode"] = None
    consequent: Optional["SyntaxNode"] = None
    alternate: Optional["SyntaxNode"] = None
    body: Optional["SyntaxNode"] = None
    handler: Optional["SyntaxNode"] = None
    finalizer: Optional["SyntaxNode"] = None
    value: Optional["SyntaxNode"] = None
    statements: Tuple["SyntaxNode", ...] = ()
    cases: Tuple["SyntaxNode", ...] = ()
    operands: Tuple["SyntaxNode", ...] = ()

    def __repr__(self) -> str:
        return f"SyntaxNode(kind={self.kind.value!r}, type={self.type!r}, line={self.start_line})"

    @property
    def source_range(self) -> Tuple[int, int]:
        return (self.start_byte, self.end_byte)

    def text(self, source: bytes) -> str:
        """Extract the source text covered by this node."""
        return source[self.start_byte:self.end_byte].decode("utf-8", errors="replace")


def iter_children(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield the children of ``node`` in slot order."""
    for slot in KIND_SLOTS[node.kind]:
        child = getattr(node, slot)
        if slot in _SEQUENCE_SLOTS:
            yield from child
        elif child is not None:
            yield child


def iter_nodes(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Pre-order walk over a subtree, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_children(current))))


def statement_list(node: Optional[SyntaxNode]) -> Tuple[SyntaxNode, ...]:
    """View a branch/body slot as a statement sequence."""
    if node is None:
        return ()
    if node.kind is NodeKind.BLOCK:
        return node.statements
    return (node,)


class ParseError(Exception):
    """Raised when source text cannot be turned into a syntax tree."""

    def __init__(self, file_path: str, message: str, line: Optional[int] = None):
        self.file_path = file_path
        self.message = message
        self.line = line
        location = f"{file_path}:{line}" if line else file_path
        super().__init__(f"{location}: {message}")


@dataclass(frozen=True)
class ParsedSource:
    """A parsed file: normalized root plus the bytes its ranges refer to."""
    file_path: str
    language: str
    source: bytes
    root: SyntaxNode

    @property
    def text(self) -> str:
        return self.source.decode("utf-8", errors="replace")


class BaseParser(ABC):
    """
    Base class for language-specific parsers.

    Each parser is responsible for parsing source code into
    a normalized syntax tree that the analyses can walk.
    """

    @property
    @abstractmethod
    def language(self) -> str:
        """Return the language this parser handles."""
        pass

    @abstractmethod
    def parse(self, source: str, file_path: str = "<unknown>") -> ParsedSource:
        """
        Parse source code into a normalized syntax tree.

        Args:
            source: The source code to parse.
            file_path: The file path (for grammar selection and error messages).

        Returns:
            The parsed source.

        Raises:
            ParseError: If the source contains syntax errors.
        """
        pass
