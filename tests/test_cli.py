"""
Tests for the command-line interface.
"""

import json
import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from complexityscanner.cli import create_parser, main


SOURCE = """function grade(score) {
    if (score > 90) {
        return "A";
    } else if (score > 80) {
        return "B";
    }
    return score > 50 || score === 0 ? "C" : "F";
}

const id = (x) => x;
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "grade.js").write_text(SOURCE)
    return tmp_path


class TestParser:
    """Tests for argument parsing."""

    def test_graph_requires_function_and_line(self):
        """graph needs --function and --line."""
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["graph", "a.ts"])
        args = parser.parse_args(["graph", "a.ts", "--function", "f", "--line", "3", "-f", "dot"])
        assert args.function_name == "f"
        assert args.line == 3
        assert args.format == "dot"

    def test_no_command_prints_help(self, capsys):
        """Without a command the help is shown."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()


class TestCommands:
    """Tests for the CLI commands."""

    def test_analyze_file(self, workspace, capsys):
        """Analyzing one file prints its report."""
        assert main(["analyze", "src/grade.js", "--no-color"]) == 0
        out = capsys.readouterr().out
        assert "[CC: 5] grade (Line 1)" in out
        assert "[CC: 1] id (Line 10)" in out

    def test_analyze_project_json(self, workspace, capsys):
        """Analyzing a directory as JSON prints the project result."""
        assert main(["analyze", "src", "-f", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["files_analyzed"] == 1
        assert data["summary"]["total_functions"] == 2
        assert data["summary"]["average_complexity"] == 3.0

    def test_analyze_output_file(self, workspace):
        """Output can be written to a file."""
        assert main(["analyze", "src", "-f", "json", "-o", "report.json"]) == 0
        data = json.loads((workspace / "report.json").read_text())
        assert data["files"][0]["functions"][0]["name"] == "grade"

    def test_graph_dot(self, workspace, capsys):
        """graph renders the requested function."""
        assert main(["graph", "src/grade.js", "--function", "grade", "--line", "1", "-f", "dot"]) == 0
        out = capsys.readouterr().out
        assert "digraph CFG" in out
        assert "IF (L2)" in out
        assert "TERNARY" not in out

    def test_graph_not_found(self, workspace, capsys):
        """A missing function exits with 1."""
        assert main(["graph", "src/grade.js", "--function", "grade", "--line", "2"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_missing_file_is_an_error(self, workspace, capsys):
        """Errors are reported on stderr with exit code 1."""
        assert main(["graph", "nope.js", "--function", "f", "--line", "1"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_export(self, workspace, capsys):
        """export writes metric files for functions at twice the threshold."""
        assert main(["export", "src", "--threshold", "2", "--directory", "metrics"]) == 0
        assert "Exported 1 metric file(s)" in capsys.readouterr().out
        assert (workspace / "metrics" / "grade_grade_L1.txt").exists()

    def test_init(self, workspace, capsys):
        """init creates a config file once unless forced."""
        assert main(["init"]) == 0
        assert (workspace / ".complexityscanner.yaml").exists()
        assert main(["init"]) == 1
        assert main(["init", "--force"]) == 0

    def test_config_thresholds_apply(self, workspace, capsys):
        """Thresholds from the config file drive the project risk counts."""
        (workspace / ".complexityscanner.yaml").write_text("thresholds:\n  high: 2\n  very_high: 5\n")
        assert main(["analyze", "src", "-f", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["by_risk"] == {"low": 1, "high": 0, "very_high": 1}
