"""
Utility functions for the complexity scanner.
"""

import os
import re


_UNSAFE_FILE_CHARS = re.compile(r'[<>:"/\\|?*]')


def sanitize_file_name(name: str) -> str:
    """Replace characters that are not allowed in file names with ``_``."""
    return _UNSAFE_FILE_CHARS.sub("_", name)


def normalize_path(path: str) -> str:
    """Normalize a file path."""
    return os.path.normpath(os.path.abspath(path))


def truncate_string(s: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate a string to a maximum length."""
    if len(s) <= max_length:
        return s
    return s[:max_length - len(suffix)] + suffix
