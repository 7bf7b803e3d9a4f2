"""
Command-line interface for the complexity scanner.

Provides commands to analyze files or projects, render the control-flow
graph of one function, export metrics for outliers, and create a
configuration file.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from complexityscanner import __version__
from complexityscanner.config import (
    AnalysisConfig,
    create_default_config,
    load_analysis_config,
)
from complexityscanner.core.engine import AnalysisEngine
from complexityscanner.export import export_project_metrics
from complexityscanner.formatters import GRAPH_FORMATS, RESULT_FORMATS, get_formatter
from complexityscanner.utils import normalize_path

logger = logging.getLogger(__name__)

CONFIG_FILE = ".complexityscanner.yaml"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="complexityscanner",
        description="Cyclomatic complexity and control-flow graphs for JavaScript/TypeScript.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  complexityscanner analyze ./src                          # Analyze a project
  complexityscanner analyze app.ts                         # Report for one file
  complexityscanner analyze . --format json -o out.json    # JSON output to file
  complexityscanner graph app.ts --function main --line 12 # Text CFG
  complexityscanner graph app.ts --function main --line 12 -f dot
  complexityscanner export ./src                           # Export outliers
  complexityscanner init                                   # Create config file
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a file or directory")
    analyze_parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Target file or directory (default: configured target or current directory)",
    )
    analyze_parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    analyze_parser.add_argument(
        "-f", "--format",
        choices=list(RESULT_FORMATS),
        default=None,
        help="Output format (default: text)",
    )
    analyze_parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    analyze_parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Number of parallel workers (default: 4)",
    )
    analyze_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    analyze_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # Graph command
    graph_parser = subparsers.add_parser("graph", help="Build the control-flow graph of a function")
    graph_parser.add_argument("file", help="Source file containing the function")
    graph_parser.add_argument(
        "--function",
        required=True,
        dest="function_name",
        help="Function name as reported by 'analyze'",
    )
    graph_parser.add_argument(
        "--line",
        type=int,
        required=True,
        help="Line the function is declared on",
    )
    graph_parser.add_argument(
        "-f", "--format",
        choices=list(GRAPH_FORMATS),
        default="text",
        help="Output format (default: text)",
    )
    graph_parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    graph_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    graph_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output (includes block source in text format)",
    )

    # Export command
    export_parser = subparsers.add_parser("export", help="Export metrics for high-complexity functions")
    export_parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Target file or directory",
    )
    export_parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    export_parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Reference complexity (default: project average); functions at twice this are exported",
    )
    export_parser.add_argument(
        "--directory",
        default=None,
        help="Export directory (default: complexity-metrics)",
    )
    export_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # Init command
    init_parser = subparsers.add_parser("init", help="Create a configuration file")
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite existing config file",
    )

    return parser


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(args: argparse.Namespace, start_dir: str) -> AnalysisConfig:
    if os.path.isfile(start_dir):
        start_dir = os.path.dirname(start_dir) or "."
    return load_analysis_config(getattr(args, "config", None), start_dir)


def _write_output(output: str, output_file: Optional[str]) -> None:
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Results written to {output_file}")
    else:
        print(output)


def cmd_analyze(args: argparse.Namespace) -> int:
    """Execute the analyze command."""
    config = _load_config(args, args.target or ".")
    target = args.target or config.target

    engine_config = config.to_engine_config()
    if args.jobs is not None:
        engine_config["max_workers"] = args.jobs
    engine = AnalysisEngine(engine_config)

    output_format = args.format or config.output.format
    formatter = get_formatter(output_format)
    if hasattr(formatter, "verbose"):
        formatter.verbose = args.verbose or config.output.verbose
    if hasattr(formatter, "use_color"):
        formatter.use_color = formatter.use_color and config.output.color and not args.no_color

    if os.path.isfile(target):
        output = formatter.format_file_result(engine.analyze_file(target))
    else:
        if args.verbose and output_format == "text":
            print(f"Analyzing {normalize_path(target)}...")
        output = formatter.format_result(engine.scan(target))

    _write_output(output, args.output or config.output.output_file)
    return 0


def cmd_graph(args: argparse.Namespace) -> int:
    """Execute the graph command."""
    engine = AnalysisEngine()
    with open(args.file, "r", encoding="utf-8", errors="replace") as f:
        content = f.read()

    graph = engine.build_graph(content, args.function_name, args.line, file_path=args.file)
    if graph is None:
        print(
            f"Function '{args.function_name}' at line {args.line} not found in {args.file}. "
            "The file may have changed since it was analyzed.",
            file=sys.stderr,
        )
        return 1

    formatter = get_formatter(args.format)
    if hasattr(formatter, "verbose"):
        formatter.verbose = args.verbose
    if hasattr(formatter, "use_color"):
        formatter.use_color = formatter.use_color and not args.no_color

    _write_output(formatter.format_graph(graph), args.output)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Execute the export command."""
    config = _load_config(args, args.target or ".")
    target = args.target or config.target
    engine = AnalysisEngine(config.to_engine_config())

    result = engine.scan(target)
    threshold = args.threshold if args.threshold is not None else config.export_threshold
    directory = args.directory or config.export_directory

    written = export_project_metrics(result, threshold, directory)
    if written:
        print(f"Exported {len(written)} metric file(s) to {directory}")
    else:
        print("No functions exceeded the export threshold.")
    for error in result.errors:
        print(f"Warning: {error}", file=sys.stderr)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Execute the init command."""
    if os.path.exists(CONFIG_FILE) and not args.force:
        print(f"Configuration file {CONFIG_FILE} already exists.")
        print("Use --force to overwrite.")
        return 1

    content = create_default_config()

    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        f.write(content)

    print(f"Created configuration file: {CONFIG_FILE}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(getattr(args, "verbose", False))

    try:
        if args.command == "analyze":
            return cmd_analyze(args)
        elif args.command == "graph":
            return cmd_graph(args)
        elif args.command == "export":
            return cmd_export(args)
        elif args.command == "init":
            return cmd_init(args)
        else:
            parser.print_help()
            return 0

    except KeyboardInterrupt:
        print("\nAnalysis interrupted.")
        return 130
    except Exception as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        if os.environ.get("DEBUG"):
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
