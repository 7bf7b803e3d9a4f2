"""
Metrics export.

Writes one small text record per high-complexity function into an export
directory, so that an external metrics dashboard can pick them up. A
function is exported when its complexity is at least twice the threshold;
the threshold defaults to the project's average complexity.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from complexityscanner.core.results import FileAnalysisResult, FunctionDescriptor, ProjectResult
from complexityscanner.utils import sanitize_file_name

logger = logging.getLogger(__name__)


DEFAULT_EXPORT_DIRECTORY = "complexity-metrics"
RECORD_SEPARATOR = "------------------------------"
METRIC_NAME = "complexity metric"


def should_export(complexity: int, threshold: float) -> bool:
    """A function is exportable iff ``threshold > 0`` and ``complexity >= 2 * threshold``."""
    if threshold <= 0:
        return False
    return complexity >= threshold * 2


@dataclass
class MetricRecord:
    """One exported metric entry."""
    metric: str
    region: str
    value: int
    modified: str
    trend: str
    limit: float

    def render(self) -> str:
        return "\n".join([
            f"Metric : {self.metric}",
            f"Region : {self.region}",
            f"Value : {self.value}",
            f"Modified : {self.modified}",
            f"Trend : {self.trend}",
            f"Limit : {round(self.limit, 2)}",
        ])


def metric_file_name(file_path: str, function: FunctionDescriptor) -> str:
    """Build ``<file>_<function>_L<line>.txt`` with unsafe characters replaced."""
    stem = sanitize_file_name(Path(file_path).stem)
    name = sanitize_file_name(function.name)
    return f"{stem}_{name}_L{function.line}.txt"


def build_record(file_path: str, function: FunctionDescriptor, threshold: float) -> MetricRecord:
    return MetricRecord(
        metric=METRIC_NAME,
        region=f"{function.name} ({os.path.basename(file_path)}:{function.line})",
        value=function.complexity,
        modified=datetime.now(timezone.utc).isoformat(),
        trend="N/A",
        limit=threshold,
    )


def write_record(path: Path, record: MetricRecord) -> None:
    """Write a record, appending after a separator when the file exists."""
    content = record.render()
    if path.exists():
        previous = path.read_text(encoding="utf-8")
        content = f"{previous}\n{RECORD_SEPARATOR}\n{content}"
    path.write_text(content, encoding="utf-8")


def export_metrics(
    files: Iterable[FileAnalysisResult],
    threshold: float,
    directory: str = DEFAULT_EXPORT_DIRECTORY,
) -> List[Path]:
    """
    Export metric records for every function at or above twice the threshold.

    Args:
        files: Per-file results to export from.
        threshold: Reference complexity; nothing is exported when it is 0.
        directory: Export directory, created on demand.

    Returns:
        Paths of the files written, in the order they were written.
    """
    selected: List[Tuple[str, FunctionDescriptor]] = [
        (file_result.file_path, function)
        for file_result in files
        for function in file_result.functions
        if should_export(function.complexity, threshold)
    ]
    if not selected:
        logger.info("No functions reach twice the threshold %.2f", threshold)
        return []

    export_dir = Path(directory)
    export_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for file_path, function in selected:
        path = export_dir / metric_file_name(file_path, function)
        write_record(path, build_record(file_path, function, threshold))
        logger.debug("Exported %s", path)
        written.append(path)
    return written


def export_project_metrics(
    result: ProjectResult,
    threshold: Optional[float] = None,
    directory: str = DEFAULT_EXPORT_DIRECTORY,
) -> List[Path]:
    """Export a project's metrics; ``threshold`` defaults to the project average."""
    if threshold is None or threshold <= 0:
        threshold = result.average_complexity
    return export_metrics(result.files, threshold, directory)
