"""
Tests for configuration loading.
"""

import json
import os
import sys

import pytest
import yaml

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from complexityscanner.config import (
    AnalysisConfig,
    OutputConfig,
    create_default_config,
    find_config,
    load_analysis_config,
    load_config,
)


class TestAnalysisConfig:
    """Tests for the configuration dataclass."""

    def test_defaults(self):
        """Defaults match the documented thresholds and export settings."""
        config = AnalysisConfig()
        assert config.high_complexity_threshold == 11
        assert config.very_high_complexity_threshold == 21
        assert config.export_threshold == 0.0
        assert config.export_directory == "complexity-metrics"
        assert "node_modules/**" in config.exclude_patterns
        assert isinstance(config.output, OutputConfig)

    def test_from_dict_with_sections(self):
        """Nested sections and alternative names are flattened."""
        config = AnalysisConfig.from_dict({
            "analysis": {"target": "src", "exclude": ["gen/**"], "max_workers": 2},
            "thresholds": {"high": 8, "very_high": 16},
            "export": {"threshold": 3.5, "directory": "out"},
            "output": {"format": "json", "color": False},
            "unknown": True,
        })
        assert config.target == "src"
        assert config.exclude_patterns == ["gen/**"]
        assert config.max_workers == 2
        assert config.high_complexity_threshold == 8
        assert config.very_high_complexity_threshold == 16
        assert config.export_threshold == 3.5
        assert config.export_directory == "out"
        assert config.output.format == "json"
        assert config.output.color is False

    def test_invalid_thresholds(self):
        """High must not exceed very high."""
        with pytest.raises(ValueError):
            AnalysisConfig(high_complexity_threshold=30)

    def test_to_engine_config(self):
        """The engine config carries patterns and thresholds."""
        engine_config = AnalysisConfig(max_workers=3).to_engine_config()
        assert engine_config["max_workers"] == 3
        assert engine_config["ignore_patterns"] == AnalysisConfig().exclude_patterns
        assert engine_config["high_complexity_threshold"] == 11


class TestConfigFiles:
    """Tests for reading and locating config files."""

    def test_load_yaml(self, tmp_path):
        """YAML files are loaded as dicts."""
        path = tmp_path / "c.yaml"
        path.write_text("thresholds:\n  high: 5\n")
        assert load_config(str(path)) == {"thresholds": {"high": 5}}

    def test_load_json(self, tmp_path):
        """JSON files are loaded as dicts."""
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"analysis": {"max_workers": 1}}))
        assert load_analysis_config(str(path)).max_workers == 1

    def test_empty_file(self, tmp_path):
        """An empty YAML file is an empty config."""
        path = tmp_path / "c.yml"
        path.write_text("")
        assert load_config(str(path)) == {}

    def test_non_mapping_is_rejected(self, tmp_path):
        """A config file must hold a mapping."""
        path = tmp_path / "c.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_find_config_searches_upward(self, tmp_path):
        """The nearest config file in a parent directory is found."""
        config_file = tmp_path / ".complexityscanner.yaml"
        config_file.write_text("{}\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(str(nested)) == str(config_file.resolve())

    def test_default_config_round_trips(self):
        """The generated default config loads back into the defaults."""
        data = yaml.safe_load(create_default_config())
        config = AnalysisConfig.from_dict(data)
        assert config.high_complexity_threshold == 11
        assert config.very_high_complexity_threshold == 21
        assert config.export_directory == "complexity-metrics"
        assert config.exclude_patterns == AnalysisConfig().exclude_patterns
