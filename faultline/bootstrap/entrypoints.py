"""
bootstrap/entrypoints.py - Application entry points

Module 6: Bootstrap Layer

Provides logging setup and the `faultline` CLI.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import argparse
import asyncio
import json
import logging
import sys

logger = logging.getLogger("bootstrap.entrypoints")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    json_format: bool = False,
    log_format: str = LOG_FORMAT,
) -> None:
    """
    Configure application logging.

    Console output goes to stderr so command output on stdout stays parseable.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        log_format: Format string for text logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = JSONFormatter() if json_format else logging.Formatter(log_format)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Mock error simulation and recovery engine",
        prog="faultline",
    )

    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file (JSON or YAML)",
        default=None,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (defaults to the configured level)",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path",
        default=None,
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write logs as JSON",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    demo = commands.add_parser("demo", help="Display the demo error sequence")
    demo.add_argument("--interval", type=float, default=None, help="Seconds between errors")

    generate = commands.add_parser("generate", help="Generate errors for a category")
    generate.add_argument("category", help="Error category, e.g. network")
    generate.add_argument("--type", dest="error_type", default=None, help="Specific error subtype")
    generate.add_argument("-n", "--count", type=int, default=1, help="Number of errors")

    scenario = commands.add_parser("scenario", help="Run an error scenario for a while")
    scenario.add_argument("name", help="Scenario name, e.g. network_outage")
    scenario.add_argument("--duration", type=float, default=10.0, help="Seconds to run")

    recover = commands.add_parser("recover", help="Run recovery actions against a fresh error")
    recover.add_argument("category", help="Error category")
    recover.add_argument("actions", nargs="+", help="Recovery actions to execute in order")

    export = commands.add_parser("export", help="Export error data")
    export.add_argument("path", help="Output file path")
    export.add_argument("--format", choices=["json", "yaml"], default=None, help="Defaults to the path suffix")
    export.add_argument("-n", "--errors", type=int, default=5, help="Random errors to generate first")

    return parser


def _emit(data: Any, as_json: bool, text: str) -> None:
    if as_json:
        print(json.dumps(data, indent=2))
    else:
        print(text)


def _error_line(error) -> str:
    actions = ", ".join(a.value for a in error.recovery_actions)
    return f"[{error.severity.value:>8}] {error.category.value}/{error.error_type.value}: {error.title} ({actions})"


async def _run_command(app, parsed: argparse.Namespace) -> int:
    from faultline.errors.taxonomy import ErrorCategory, ErrorScenario, ErrorType, RecoveryActionKind
    from faultline.lifecycle.export import ErrorDataExporter, ExportConfig, ExportFormat

    coordinator = app.coordinator
    generator = app.generator

    if parsed.command == "demo":
        errors = await coordinator.run_error_demo(parsed.interval)
        _emit([e.to_dict() for e in errors], parsed.json, "\n".join(_error_line(e) for e in errors))
        return 0

    if parsed.command == "generate":
        error_type = ErrorType(parsed.error_type) if parsed.error_type else None
        errors = [generator.generate_error(parsed.category, error_type) for _ in range(max(1, parsed.count))]
        _emit([e.to_dict() for e in errors], parsed.json, "\n".join(_error_line(e) for e in errors))
        return 0

    if parsed.command == "scenario":
        coordinator.start_error_scenario(ErrorScenario(parsed.name))
        try:
            await asyncio.sleep(parsed.duration)
        finally:
            coordinator.stop_error_scenario()
        errors = coordinator.history
        _emit(
            [e.to_dict() for e in errors],
            parsed.json,
            "\n".join(_error_line(e) for e in errors) or "No errors emitted",
        )
        return 0

    if parsed.command == "recover":
        actions = [RecoveryActionKind(a) for a in parsed.actions]
        error = coordinator.display_error_for_category(ErrorCategory.coerce(parsed.category))
        results = []
        for action in actions:
            result = await coordinator.recovery_manager.execute_recovery_action(action, error)
            results.append(result)

        progress = coordinator.recovery_manager.recovery_progress
        lines = [_error_line(error)]
        for r in results:
            status = "ok" if r.is_successful else "failed"
            hint = f" -> try {r.next_recommended_action.value}" if r.next_recommended_action else ""
            lines.append(f"  step {r.step}: {r.action.value} {status}: {r.message}{hint}")
        lines.append(f"  complete={progress.is_complete} succeeded={progress.has_succeeded}")

        _emit(
            {
                "error": error.to_dict(),
                "results": [r.to_dict() for r in results],
                "progress": progress.to_dict(),
            },
            parsed.json,
            "\n".join(lines),
        )
        return 0 if progress.has_succeeded else 2

    if parsed.command == "export":
        for _ in range(max(0, parsed.errors)):
            coordinator.generate_and_display_random_error()
        fmt = ExportFormat.parse(parsed.format) if parsed.format else ExportFormat.from_path(parsed.path)
        path = ErrorDataExporter(ExportConfig(format=fmt)).export(coordinator.export_error_data(), parsed.path)
        _emit({"path": str(path), "format": fmt.value}, parsed.json, f"Exported to {path}")
        return 0

    return 1


def cli_main(args: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parsed = build_parser().parse_args(args)

    from faultline.errors.exceptions import FaultlineError
    from .app import FaultlineApp
    from .config import load_config

    try:
        config = load_config(parsed.config)

        # Command line flags override the logging section
        log_config = config.logging
        log_level = "DEBUG" if parsed.verbose else (parsed.log_level or log_config.level)
        setup_logging(
            level=log_level,
            log_file=parsed.log_file or log_config.log_file,
            json_format=parsed.log_json or log_config.json_logs,
            log_format=log_config.format,
        )

        app = FaultlineApp(config=config).build()

        async def run() -> int:
            await app.start()
            try:
                return await _run_command(app, parsed)
            finally:
                await app.stop()

        return asyncio.run(run())

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except FaultlineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        # Unknown scenario, subtype or action names
        print(f"error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


def main():
    """Main entry point for the package."""
    sys.exit(cli_main(sys.argv[1:]))


if __name__ == "__main__":
    main()
