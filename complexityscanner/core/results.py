"""
Result data structures for complexity analysis.

This module defines the per-function descriptors and the per-file and
per-project aggregates returned by the analysis engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple
import json


ANONYMOUS_FUNCTION = "Anonymous Function"

DEFAULT_HIGH_THRESHOLD = 11
DEFAULT_VERY_HIGH_THRESHOLD = 21


class RiskLevel(Enum):
    """Maintainability risk derived from a complexity score."""
    LOW = "low"
    HIGH = "high"
    VERY_HIGH = "very_high"

    def __lt__(self, other):
        order = [RiskLevel.LOW, RiskLevel.HIGH, RiskLevel.VERY_HIGH]
        return order.index(self) < order.index(other)

    def __le__(self, other):
        return self == other or self < other

    @classmethod
    def from_complexity(
        cls,
        complexity: int,
        high: int = DEFAULT_HIGH_THRESHOLD,
        very_high: int = DEFAULT_VERY_HIGH_THRESHOLD,
    ) -> "RiskLevel":
        if complexity >= very_high:
            return cls.VERY_HIGH
        if complexity >= high:
            return cls.HIGH
        return cls.LOW


@dataclass(frozen=True)
class FunctionDescriptor:
    """Complexity of a single function-like node."""
    name: str
    line: int
    complexity: int
    end_line: int = 0

    @property
    def risk(self) -> RiskLevel:
        return RiskLevel.from_complexity(self.complexity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "line": self.line,
            "end_line": self.end_line,
            "complexity": self.complexity,
        }


@dataclass
class FileAnalysisResult:
    """
    Results for one analyzed file.

    ``average_complexity`` keeps full precision; ``display_average`` is the
    two-decimal value used in reports. ``error`` is set when the file could
    not be parsed and the result was degraded to empty.
    """
    file_path: str
    functions: List[FunctionDescriptor] = field(default_factory=list)
    language: Optional[str] = None
    error: Optional[str] = None

    @property
    def total_functions(self) -> int:
        return len(self.functions)

    @property
    def total_complexity(self) -> int:
        return sum(f.complexity for f in self.functions)

    @property
    def average_complexity(self) -> float:
        if not self.functions:
            return 0
        return self.total_complexity / self.total_functions

    @property
    def display_average(self) -> float:
        return round(self.average_complexity, 2)

    @property
    def max_complexity(self) -> int:
        return max((f.complexity for f in self.functions), default=0)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "file_path": self.file_path,
            "language": self.language,
            "total_functions": self.total_functions,
            "total_complexity": self.total_complexity,
            "average_complexity": self.display_average,
            "functions": [f.to_dict() for f in self.functions],
        }
        if self.error:
            result["error"] = self.error
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class ProjectResult:
    """Results from analyzing a set of files."""
    files: List[FileAnalysisResult]
    files_analyzed: int
    elapsed_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)
    high_threshold: int = DEFAULT_HIGH_THRESHOLD
    very_high_threshold: int = DEFAULT_VERY_HIGH_THRESHOLD

    @property
    def total_functions(self) -> int:
        return sum(f.total_functions for f in self.files)

    @property
    def total_complexity(self) -> int:
        return sum(f.total_complexity for f in self.files)

    @property
    def average_complexity(self) -> float:
        total = self.total_functions
        if total == 0:
            return 0
        return self.total_complexity / total

    @property
    def display_average(self) -> float:
        return round(self.average_complexity, 2)

    def functions(self) -> Iterator[Tuple[str, FunctionDescriptor]]:
        """Iterate over ``(file_path, descriptor)`` for every function."""
        for file_result in self.files:
            for function in file_result.functions:
                yield file_result.file_path, function

    def risk_of(self, function: FunctionDescriptor) -> RiskLevel:
        """Risk level of a function under this project's thresholds."""
        return RiskLevel.from_complexity(
            function.complexity, self.high_threshold, self.very_high_threshold
        )

    def count_by_risk(self, risk: RiskLevel) -> int:
        return sum(1 for _, f in self.functions() if self.risk_of(f) == risk)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "files_analyzed": self.files_analyzed,
                "elapsed_seconds": self.elapsed_seconds,
                "total_functions": self.total_functions,
                "total_complexity": self.total_complexity,
                "average_complexity": self.display_average,
                "by_risk": {
                    risk.value: self.count_by_risk(risk) for risk in RiskLevel
                },
            },
            "files": [f.to_dict() for f in self.files],
            "errors": self.errors,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
