"""
Language parsers producing normalized syntax trees.

This module provides the parser registry. Parsers register themselves
for the languages they handle; ``get_parser`` resolves aliases.
"""

from typing import Dict, Optional, Type

from complexityscanner.parsers.base import (
    BaseParser,
    NodeKind,
    ParsedSource,
    ParseError,
    SyntaxNode,
)

# Registry of available parsers
_parsers: Dict[str, Type[BaseParser]] = {}

# Aliases
_ALIASES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
}


def register_parser(language: str):
    """Decorator to register a parser for a language."""
    def decorator(cls: Type[BaseParser]) -> Type[BaseParser]:
        _parsers[language.lower()] = cls
        return cls
    return decorator


def get_parser(language: str) -> Optional[BaseParser]:
    """Get a parser instance for a language, or None if unsupported."""
    language = language.lower()
    language = _ALIASES.get(language, language)

    if language in _parsers:
        return _parsers[language]()
    return None


# Import parsers to register them
from complexityscanner.parsers.typescript_parser import TypeScriptParser  # noqa: E402

__all__ = [
    "BaseParser",
    "NodeKind",
    "ParsedSource",
    "ParseError",
    "SyntaxNode",
    "get_parser",
    "register_parser",
    "TypeScriptParser",
]
