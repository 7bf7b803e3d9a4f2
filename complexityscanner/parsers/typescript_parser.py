"""
JavaScript/TypeScript parser.

Uses tree-sitter grammars to parse source text and normalizes the concrete
tree into ``SyntaxNode`` objects. JSX is handled by the JavaScript grammar
and by the TSX dialect of the TypeScript grammar.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Parser

from complexityscanner.parsers import register_parser
from complexityscanner.parsers.base import (
    BaseParser,
    NodeKind,
    ParsedSource,
    ParseError,
    SyntaxNode,
)

logger = logging.getLogger(__name__)


# Grammar dialect by file extension
DIALECT_EXTENSIONS: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

FUNCTION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
}

# Functions whose own name counts; expressions only take a binding's name.
NAMED_FUNCTION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "method_definition",
}

METHOD_NAME_TYPES = {"property_identifier", "identifier"}

IDENTIFIER_TYPES = {"identifier", "shorthand_property_identifier"}

SKIPPED_TYPES = {"comment", "html_comment", "hash_bang_line"}

EXIT_STATEMENT_TYPES = {"return_statement", "throw_statement"}

_languages: Dict[str, Language] = {}


def _get_language(dialect: str) -> Language:
    if dialect not in _languages:
        if dialect == "javascript":
            _languages[dialect] = Language(tree_sitter_javascript.language())
        elif dialect == "typescript":
            _languages[dialect] = Language(tree_sitter_typescript.language_typescript())
        elif dialect == "tsx":
            _languages[dialect] = Language(tree_sitter_typescript.language_tsx())
        else:
            raise ValueError(f"Unknown grammar dialect: {dialect}")
    return _languages[dialect]


def dialect_for_path(file_path: str, default: str = "tsx") -> str:
    """Pick the grammar dialect for a file path."""
    return DIALECT_EXTENSIONS.get(Path(file_path).suffix.lower(), default)


@register_parser("javascript")
@register_parser("typescript")
class TypeScriptParser(BaseParser):
    """
    Parser for JavaScript/TypeScript source code, including JSX/TSX.

    The grammar is chosen from the file extension; sources without a
    recognized extension use ``default_dialect``.
    """

    def __init__(self, default_dialect: str = "tsx"):
        self.default_dialect = default_dialect
        self._language = "typescript"

    @property
    def language(self) -> str:
        return self._language

    def parse(self, source: str, file_path: str = "<unknown>") -> ParsedSource:
        """Parse source code into a normalized syntax tree."""
        dialect = dialect_for_path(file_path, self.default_dialect)
        self._language = "javascript" if dialect == "javascript" else "typescript"

        data = source.encode("utf-8")
        parser = Parser()
        parser.language = _get_language(dialect)
        tree = parser.parse(data)

        if tree.root_node.has_error:
            error_line = _first_error_line(tree.root_node)
            raise ParseError(file_path, "syntax error", error_line)

        logger.debug("Parsed %s with the %s grammar", file_path, dialect)
        root = _Normalizer(data).convert(tree.root_node)
        return ParsedSource(
            file_path=file_path,
            language=self._language,
            source=data,
            root=root,
        )


def _first_error_line(node) -> Optional[int]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0] + 1
        stack.extend(reversed(current.children))
    return None


class _Normalizer:
    """Converts tree-sitter nodes into ``SyntaxNode`` trees."""

    def __init__(self, source: bytes):
        self.source = source

    def text(self, node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def children(self, node) -> List:
        return [c for c in node.named_children if c.type not in SKIPPED_TYPES]

    def field(self, node, name: str) -> Optional[SyntaxNode]:
        child = node.child_by_field_name(name)
        if child is None or child.type in SKIPPED_TYPES:
            return None
        return self.convert(child)

    def make(self, node, kind: NodeKind, **slots) -> SyntaxNode:
        return SyntaxNode(
            kind=kind,
            type=node.type,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            start_line=node.start_point[0] + 1,
            start_column=node.start_point[1],
            end_line=node.end_point[0] + 1,
            end_column=node.end_point[1],
            **slots,
        )

    def convert(self, node) -> SyntaxNode:
        handler = getattr(self, f"_convert_{node.type}", None)
        if handler is not None:
            return handler(node)
        if node.type in FUNCTION_TYPES:
            return self._convert_function(node)
        if node.type in IDENTIFIER_TYPES:
            return self.make(node, NodeKind.IDENTIFIER, name=self.text(node))
        return self.make(
            node,
            NodeKind.PLAIN_STATEMENT,
            operands=tuple(self.convert(c) for c in self.children(node)),
            exits_function=node.type in EXIT_STATEMENT_TYPES,
        )

    # Blocks

    def _convert_program(self, node) -> SyntaxNode:
        return self.make(
            node,
            NodeKind.BLOCK,
            statements=tuple(self.convert(c) for c in self.children(node)),
        )

    _convert_statement_block = _convert_program

    def _convert_parenthesized_expression(self, node) -> SyntaxNode:
        inner = self.children(node)
        if len(inner) == 1:
            return self.convert(inner[0])
        return self.make(
            node,
            NodeKind.PLAIN_STATEMENT,
            operands=tuple(self.convert(c) for c in inner),
        )

    # Functions and bindings

    def _convert_function(self, node) -> SyntaxNode:
        name = None
        if node.type in NAMED_FUNCTION_TYPES:
            name_node = node.child_by_field_name("name")
            if name_node is not None and (
                node.type != "method_definition" or name_node.type in METHOD_NAME_TYPES
            ):
                name = self.text(name_node)

        params = node.child_by_field_name("parameters")
        if params is None:
            params = node.child_by_field_name("parameter")
        operands = (self.convert(params),) if params is not None else ()
        return self.make(
            node,
            NodeKind.FUNCTION_LIKE,
            name=name,
            operands=operands,
            body=self.field(node, "body"),
        )

    def _convert_variable_declarator(self, node) -> SyntaxNode:
        target = node.child_by_field_name("name")
        name = self.text(target) if target is not None and target.type == "identifier" else None
        return self.make(
            node,
            NodeKind.VARIABLE_BINDING,
            name=name,
            operands=(self.convert(target),) if target is not None else (),
            value=self.field(node, "value"),
        )

    # Branches

    def _convert_if_statement(self, node) -> SyntaxNode:
        return self.make(
            node,
            NodeKind.BRANCH,
            condition=self.field(node, "condition"),
            consequent=self.field(node, "consequence"),
            alternate=self.field(node, "alternative"),
        )

    def _convert_else_clause(self, node) -> SyntaxNode:
        inner = self.children(node)
        if len(inner) == 1:
            return self.convert(inner[0])
        return self.make(
            node,
            NodeKind.BLOCK,
            statements=tuple(self.convert(c) for c in inner),
        )

    def _convert_ternary_expression(self, node) -> SyntaxNode:
        return self.make(
            node,
            NodeKind.TERNARY,
            condition=self.field(node, "condition"),
            consequent=self.field(node, "consequence"),
            alternate=self.field(node, "alternative"),
        )

    def _convert_binary_expression(self, node) -> SyntaxNode:
        operator_node = node.child_by_field_name("operator")
        operator = operator_node.type if operator_node is not None else None
        kind = NodeKind.PLAIN_STATEMENT
        if operator == "&&":
            kind = NodeKind.SHORT_CIRCUIT_AND
        elif operator == "||":
            kind = NodeKind.SHORT_CIRCUIT_OR
        return self.make(
            node,
            kind,
            operator=operator,
            operands=tuple(self.convert(c) for c in self.children(node)),
        )

    # Loops

    def _convert_while_statement(self, node) -> SyntaxNode:
        return self.make(
            node,
            NodeKind.LOOP_PRETEST,
            condition=self.field(node, "condition"),
            body=self.field(node, "body"),
        )

    def _convert_do_statement(self, node) -> SyntaxNode:
        return self.make(
            node,
            NodeKind.LOOP_POSTTEST,
            condition=self.field(node, "condition"),
            body=self.field(node, "body"),
        )

    def _convert_for_statement(self, node) -> SyntaxNode:
        header = []
        for name in ("initializer", "increment"):
            part = node.child_by_field_name(name)
            if part is not None:
                header.append(self.convert(part))
        return self.make(
            node,
            NodeKind.LOOP_COUNTING,
            operands=tuple(header),
            condition=self.field(node, "condition"),
            body=self.field(node, "body"),
        )

    def _convert_for_in_statement(self, node) -> SyntaxNode:
        header = []
        for name in ("left", "right"):
            part = node.child_by_field_name(name)
            if part is not None:
                header.append(self.convert(part))
        return self.make(
            node,
            NodeKind.LOOP_COUNTING,
            operands=tuple(header),
            body=self.field(node, "body"),
        )

    # Switch

    def _convert_switch_statement(self, node) -> SyntaxNode:
        body = node.child_by_field_name("body")
        cases = self.children(body) if body is not None else []
        return self.make(
            node,
            NodeKind.MULTIWAY_BRANCH,
            condition=self.field(node, "value"),
            cases=tuple(self.convert(c) for c in cases),
        )

    def _convert_switch_case(self, node) -> SyntaxNode:
        test = node.child_by_field_name("value")
        statements = [
            c for c in self.children(node)
            if test is None or c.start_byte != test.start_byte or c.type != test.type
        ]
        return self.make(
            node,
            NodeKind.MULTIWAY_CASE,
            condition=self.convert(test) if test is not None else None,
            statements=tuple(self.convert(c) for c in statements),
        )

    def _convert_switch_default(self, node) -> SyntaxNode:
        return self.make(
            node,
            NodeKind.MULTIWAY_CASE,
            statements=tuple(self.convert(c) for c in self.children(node)),
        )

    # Exceptions

    def _convert_try_statement(self, node) -> SyntaxNode:
        finalizer = node.child_by_field_name("finalizer")
        return self.make(
            node,
            NodeKind.GUARDED_BLOCK,
            body=self.field(node, "body"),
            handler=self.field(node, "handler"),
            finalizer=self.field(finalizer, "body") if finalizer is not None else None,
        )

    def _convert_catch_clause(self, node) -> SyntaxNode:
        parameter = node.child_by_field_name("parameter")
        return self.make(
            node,
            NodeKind.EXCEPTION_GUARD,
            operands=(self.convert(parameter),) if parameter is not None else (),
            body=self.field(node, "body"),
        )
