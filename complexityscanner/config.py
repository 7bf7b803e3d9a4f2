"""
Configuration system for the complexity scanner.

Supports YAML and JSON configuration files for customizing which files
are analyzed, the risk thresholds, metrics export and output.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from complexityscanner.core.results import DEFAULT_HIGH_THRESHOLD, DEFAULT_VERY_HIGH_THRESHOLD
from complexityscanner.export import DEFAULT_EXPORT_DIRECTORY


# Default configuration file names to search for
CONFIG_FILE_NAMES = [
    ".complexityscanner.yaml",
    ".complexityscanner.yml",
    ".complexityscanner.json",
]


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: str = "text"  # text, json
    output_file: Optional[str] = None
    verbose: bool = False
    color: bool = True


@dataclass
class AnalysisConfig:
    """
    Main configuration for the complexity scanner.

    Example YAML config:

    ```yaml
    analysis:
      target: ./src
      exclude:
        - "node_modules/**"
        - "dist/**"
      max_workers: 4

    thresholds:
      high: 11
      very_high: 21

    export:
      threshold: 0      # 0 means "use the project average"
      directory: complexity-metrics

    output:
      format: text
      color: true
    ```
    """
    target: str = "."
    exclude_patterns: List[str] = field(default_factory=lambda: [
        "node_modules/**",
        ".git/**",
        "dist/**",
        "build/**",
        "coverage/**",
        "*.min.js",
        "*.d.ts",
    ])
    include_patterns: Optional[List[str]] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    max_workers: int = 4

    high_complexity_threshold: int = DEFAULT_HIGH_THRESHOLD
    very_high_complexity_threshold: int = DEFAULT_VERY_HIGH_THRESHOLD

    export_threshold: float = 0.0
    export_directory: str = DEFAULT_EXPORT_DIRECTORY

    output: OutputConfig = field(default_factory=OutputConfig)

    def __post_init__(self):
        if self.high_complexity_threshold > self.very_high_complexity_threshold:
            raise ValueError(
                "high_complexity_threshold must not exceed very_high_complexity_threshold"
            )
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    def to_engine_config(self) -> Dict[str, Any]:
        """Convert to engine configuration format."""
        return {
            "max_file_size": self.max_file_size,
            "max_workers": self.max_workers,
            "ignore_patterns": self.exclude_patterns,
            "include_patterns": self.include_patterns,
            "high_complexity_threshold": self.high_complexity_threshold,
            "very_high_complexity_threshold": self.very_high_complexity_threshold,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        """Create config from a dictionary."""
        data = dict(data)

        # Flatten nested sections
        if isinstance(data.get("analysis"), dict):
            data.update(data.pop("analysis"))
        thresholds = data.pop("thresholds", None)
        if isinstance(thresholds, dict):
            if "high" in thresholds:
                data["high_complexity_threshold"] = thresholds["high"]
            if "very_high" in thresholds:
                data["very_high_complexity_threshold"] = thresholds["very_high"]
        export = data.pop("export", None)
        if isinstance(export, dict):
            if "threshold" in export:
                data["export_threshold"] = export["threshold"]
            if "directory" in export:
                data["export_directory"] = export["directory"]
        if isinstance(data.get("output"), dict):
            data["output"] = OutputConfig(**data["output"])

        # Map some common alternative names
        if "exclude" in data:
            data["exclude_patterns"] = data.pop("exclude")
        if "include" in data:
            data["include_patterns"] = data.pop("include")

        # Filter to only known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}

        return cls(**filtered_data)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML and JSON formats.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    content = path.read_text(encoding="utf-8")

    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(content)
    elif path.suffix == ".json":
        data = json.loads(content)
    else:
        # JSON is a subset of YAML
        data = yaml.safe_load(content)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.exists():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


def load_analysis_config(path: Optional[str] = None, start_dir: str = ".") -> AnalysisConfig:
    """
    Load an AnalysisConfig from a file or create a default one.

    If path is None, searches for a config file starting from start_dir.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return AnalysisConfig()

    return AnalysisConfig.from_dict(load_config(path))


def create_default_config() -> str:
    """
    Create a default configuration file content.
    """
    config = {
        "analysis": {
            "target": ".",
            "exclude": [
                "node_modules/**",
                ".git/**",
                "dist/**",
                "build/**",
                "coverage/**",
                "*.min.js",
                "*.d.ts",
            ],
            "max_file_size": 10485760,
            "max_workers": 4,
        },
        "thresholds": {
            "high": DEFAULT_HIGH_THRESHOLD,
            "very_high": DEFAULT_VERY_HIGH_THRESHOLD,
        },
        "export": {
            "threshold": 0,
            "directory": DEFAULT_EXPORT_DIRECTORY,
        },
        "output": {
            "format": "text",
            "verbose": False,
            "color": True,
        },
    }

    return yaml.dump(config, default_flow_style=False, sort_keys=False)
