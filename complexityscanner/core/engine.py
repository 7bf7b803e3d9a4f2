"""
Main analysis engine.

This module orchestrates the analysis process: discovering source files,
parsing them, scoring every function, and building control-flow graphs on
request. Parse failures never abort a batch; the affected file degrades to
an empty result carrying the error.
"""

import fnmatch
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from complexityscanner.core.cfg import ControlFlowGraph, build_control_flow_graph
from complexityscanner.core.locator import enumerate_functions, find_function
from complexityscanner.core.results import (
    DEFAULT_HIGH_THRESHOLD,
    DEFAULT_VERY_HIGH_THRESHOLD,
    FileAnalysisResult,
    ProjectResult,
)
from complexityscanner.parsers import ParsedSource, ParseError, SyntaxNode, get_parser

logger = logging.getLogger(__name__)


# Language detection by file extension
LANGUAGE_EXTENSIONS: Dict[str, List[str]] = {
    "javascript": [".js", ".jsx", ".mjs", ".cjs"],
    "typescript": [".ts", ".tsx", ".mts", ".cts"],
}

# Reverse mapping for quick lookup
EXTENSION_TO_LANGUAGE: Dict[str, str] = {}
for lang, exts in LANGUAGE_EXTENSIONS.items():
    for ext in exts:
        EXTENSION_TO_LANGUAGE[ext] = lang

# Used for content with no recognizable file name.
DEFAULT_LANGUAGE = "typescript"


# Default ignore patterns
DEFAULT_IGNORE_PATTERNS = [
    "node_modules/**",
    ".git/**",
    "dist/**",
    "build/**",
    "out/**",
    "coverage/**",
    ".next/**",
    "*.min.js",
    "*.bundle.js",
    "*.d.ts",
]


class AnalysisEngine:
    """
    Engine that scores functions across files and builds their graphs.

    The engine:
    1. Discovers JavaScript/TypeScript files under a target path
    2. Parses each file into a normalized syntax tree
    3. Enumerates functions and their cyclomatic complexity
    4. Aggregates per-file results into a project result
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.errors: List[str] = []

        self.max_file_size = self.config.get("max_file_size", 10 * 1024 * 1024)  # 10MB
        self.max_workers = self.config.get("max_workers", 4)
        self.ignore_patterns = self.config.get("ignore_patterns", DEFAULT_IGNORE_PATTERNS)
        self.include_patterns = self.config.get("include_patterns", None)
        self.high_threshold = self.config.get("high_complexity_threshold", DEFAULT_HIGH_THRESHOLD)
        self.very_high_threshold = self.config.get(
            "very_high_complexity_threshold", DEFAULT_VERY_HIGH_THRESHOLD
        )

    def detect_language(self, file_path: str) -> Optional[str]:
        """Detect the language of a file from its extension."""
        ext = os.path.splitext(file_path)[1].lower()
        return EXTENSION_TO_LANGUAGE.get(ext)

    def should_ignore(self, file_path: str, base_path: str) -> bool:
        """Check if a file should be ignored based on patterns."""
        rel_path = os.path.relpath(file_path, base_path)
        name = os.path.basename(file_path)
        parts = Path(rel_path).parts

        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern):
                return True
            # "dir/**" also matches a directory of that name at any depth
            if pattern.endswith("/**") and any(fnmatch.fnmatch(p, pattern[:-3]) for p in parts):
                return True

        if self.include_patterns and os.path.isfile(file_path):
            return not any(
                fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern)
                for pattern in self.include_patterns
            )

        return False

    def discover_files(self, target_path: str) -> Generator[str, None, None]:
        """Discover all source files to analyze under the target path."""
        target = Path(target_path)

        if target.is_file():
            yield str(target)
            return

        for root, dirs, files in os.walk(target):
            dirs[:] = sorted(
                d for d in dirs if not self.should_ignore(os.path.join(root, d), target_path)
            )

            for file in sorted(files):
                file_path = os.path.join(root, file)

                if not self.detect_language(file_path):
                    continue
                if self.should_ignore(file_path, target_path):
                    continue

                try:
                    if os.path.getsize(file_path) > self.max_file_size:
                        logger.info("Skipping %s: larger than %d bytes", file_path, self.max_file_size)
                        continue
                except OSError as e:
                    logger.warning("Cannot stat %s: %s", file_path, e)
                    continue

                yield file_path

    def parse(self, content: str, file_path: str = "<stdin>", language: Optional[str] = None) -> ParsedSource:
        """
        Parse source text.

        Raises:
            ParseError: If the source has syntax errors.
            ValueError: If no parser handles the language.
        """
        language = language or self.detect_language(file_path) or DEFAULT_LANGUAGE
        parser = get_parser(language)
        if parser is None:
            raise ValueError(f"Unsupported language: {language}")
        return parser.parse(content, file_path)

    def analyze_content(
        self,
        content: str,
        file_path: str = "<stdin>",
        language: Optional[str] = None,
    ) -> FileAnalysisResult:
        """
        Analyze source text directly without reading from a file.

        Unparseable content yields an empty result whose ``error`` holds the
        cause, so the caller can keep going.
        """
        try:
            parsed = self.parse(content, file_path, language)
        except ParseError as e:
            logger.warning("Could not parse %s: %s", file_path, e)
            return FileAnalysisResult(
                file_path=file_path,
                language=language or self.detect_language(file_path),
                error=str(e),
            )

        functions = enumerate_functions(parsed.root)
        logger.debug("%s: %d function(s)", file_path, len(functions))
        return FileAnalysisResult(
            file_path=file_path,
            functions=functions,
            language=parsed.language,
        )

    def read_file(self, file_path: str) -> str:
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()

    def analyze_file(self, file_path: str) -> FileAnalysisResult:
        """Read and analyze a single file."""
        try:
            content = self.read_file(file_path)
        except OSError as e:
            logger.warning("Could not read %s: %s", file_path, e)
            return FileAnalysisResult(file_path=file_path, error=str(e))
        return self.analyze_content(content, file_path)

    def scan(self, target_path: str) -> ProjectResult:
        """
        Analyze every source file under a target path.

        Args:
            target_path: Path to a file or directory.

        Returns:
            ProjectResult with one entry per discovered file, in path order.
        """
        if not os.path.exists(target_path):
            raise FileNotFoundError(f"Target not found: {target_path}")

        start_time = time.time()
        self.errors = []
        files = list(self.discover_files(target_path))
        results: Dict[str, FileAnalysisResult] = {}

        if len(files) > 1 and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {executor.submit(self.analyze_file, f): f for f in files}

                for future in as_completed(futures):
                    file_path = futures[future]
                    try:
                        results[file_path] = future.result()
                    except RecursionError:
                        self.errors.append(f"Error analyzing {file_path}: nesting too deep")
                    except ValueError as e:
                        self.errors.append(f"Error analyzing {file_path}: {e}")
        else:
            for file_path in files:
                try:
                    results[file_path] = self.analyze_file(file_path)
                except RecursionError:
                    self.errors.append(f"Error analyzing {file_path}: nesting too deep")
                except ValueError as e:
                    self.errors.append(f"Error analyzing {file_path}: {e}")

        ordered = [results[f] for f in files if f in results]
        for file_result in ordered:
            if file_result.error:
                self.errors.append(f"Error parsing {file_result.file_path}: {file_result.error}")

        elapsed_time = time.time() - start_time
        logger.info("Analyzed %d file(s) in %.3fs", len(ordered), elapsed_time)

        return ProjectResult(
            files=ordered,
            files_analyzed=len(ordered),
            elapsed_seconds=round(elapsed_time, 3),
            errors=list(self.errors),
            high_threshold=self.high_threshold,
            very_high_threshold=self.very_high_threshold,
        )

    def find_function(
        self,
        content: str,
        name: str,
        line: int,
        file_path: str = "<stdin>",
    ) -> Optional[SyntaxNode]:
        """Find a function in source text by resolved name and declaration line."""
        parsed = self.parse(content, file_path)
        return find_function(parsed.root, name, line)

    def build_graph(
        self,
        content: str,
        name: str,
        line: int,
        file_path: str = "<stdin>",
    ) -> Optional[ControlFlowGraph]:
        """
        Build the control-flow graph of the function ``name`` declared at ``line``.

        Returns:
            The graph, or None when no such function exists.

        Raises:
            ParseError: If the source has syntax errors.
        """
        parsed = self.parse(content, file_path)
        node = find_function(parsed.root, name, line)
        if node is None:
            logger.info("Function %s at line %d not found in %s", name, line, file_path)
            return None
        return build_control_flow_graph(
            node,
            parsed.source,
            function_name=name,
            file_path=file_path,
        )


def create_engine(config_path: Optional[str] = None, **kwargs) -> AnalysisEngine:
    """
    Create an analysis engine with configuration.

    Args:
        config_path: Optional path to a configuration file.
        **kwargs: Additional configuration options.

    Returns:
        Configured AnalysisEngine instance.
    """
    config: Dict[str, Any] = {}

    if config_path:
        from complexityscanner.config import load_analysis_config
        config = load_analysis_config(config_path).to_engine_config()

    config.update(kwargs)

    return AnalysisEngine(config)
