"""Command line entry point: run, validate and inspect playbooks."""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Optional, Sequence, Tuple

import yaml

from .actions.builtin import register_builtin_actions
from .actions.registry import ActionRegistry
from .config import get_settings
from .logging_config import setup_logging
from .playbooks.engine import PlaybookEngine
from .playbooks.loader import PlaybookLoader, PlaybookLoadError
from .playbooks.metrics import MetricsCollector, PrometheusExporter
from .playbooks.models import ExecutionOptions, PlaybookExecutionResult
from .playbooks.report import (
    format_result_compact,
    format_result_json,
    format_result_markdown,
    format_result_text,
)
from .playbooks.validator import PlaybookValidator

logger = logging.getLogger(__name__)

FORMATTERS = {
    "text": format_result_text,
    "markdown": format_result_markdown,
    "json": format_result_json,
    "compact": format_result_compact,
}


def parse_assignment(raw: str) -> Tuple[str, Any]:
    """
    Parse a ``key=value`` argument.

    The value is read as a YAML scalar, so ``3`` is an int, ``true`` a
    bool and ``null`` None; anything else stays a string.
    """
    key, sep, value = raw.partition("=")
    key = key.strip()
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got '{raw}'")
    try:
        parsed = yaml.safe_load(value) if value else ""
    except yaml.YAMLError:
        parsed = value
    return key, parsed


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``maestro-playbook``."""
    parser = argparse.ArgumentParser(
        prog="maestro-playbook",
        description="Run and validate action playbooks",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument(
        "--log-format",
        choices=["simple", "detailed", "json"],
        help="Override the configured log format",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Execute a playbook")
    run_parser.add_argument("playbook", help="Path to playbook YAML file")
    run_parser.add_argument(
        "--var",
        dest="variables",
        action="append",
        type=parse_assignment,
        default=[],
        metavar="KEY=VALUE",
        help="Initial variable binding (repeatable)",
    )
    run_parser.add_argument(
        "--input",
        dest="inputs",
        action="append",
        type=parse_assignment,
        default=[],
        metavar="KEY=VALUE",
        help="Playbook input (repeatable)",
    )
    run_parser.add_argument("--cwd", help="Working directory handed to actions")
    run_parser.add_argument("--session-id", default="", help="Session id handed to actions")
    run_parser.add_argument(
        "--format",
        choices=sorted(FORMATTERS),
        default="text",
        help="Report format (default: text)",
    )
    run_parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print Prometheus metrics to stderr after the run",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate a playbook")
    validate_parser.add_argument("playbook", help="Path to playbook YAML file")
    validate_parser.add_argument(
        "--show-info",
        action="store_true",
        help="Show INFO level messages",
    )

    subparsers.add_parser("actions", help="List registered actions")

    list_parser = subparsers.add_parser("list", help="List playbooks in a directory")
    list_parser.add_argument(
        "directory",
        nargs="?",
        help="Directory to scan (default: MAESTRO_PLAYBOOKS_DIR)",
    )

    return parser


async def run_playbook(
    args: argparse.Namespace,
    registry: ActionRegistry,
    metrics: Optional[MetricsCollector] = None,
) -> PlaybookExecutionResult:
    """Load and execute a playbook; Ctrl-C stops it at the next step boundary."""
    playbook = PlaybookLoader().load_from_file(args.playbook)
    abort_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, abort_event.set)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers unavailable; Ctrl-C will not abort gracefully")

    options = ExecutionOptions(
        cwd=args.cwd or get_settings().default_cwd,
        session_id=args.session_id,
        variables=dict(args.variables),
        inputs=dict(args.inputs),
        abort_signal=abort_event,
    )

    try:
        return await PlaybookEngine(registry, metrics=metrics).execute_playbook(playbook, options)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def cmd_run(args: argparse.Namespace, registry: ActionRegistry) -> int:
    metrics = MetricsCollector() if args.metrics else None
    try:
        result = asyncio.run(run_playbook(args, registry, metrics))
    except PlaybookLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(FORMATTERS[args.format](result))

    if metrics is not None:
        print(PrometheusExporter(metrics).export(), file=sys.stderr)

    return 0 if result.success else 1


def cmd_validate(args: argparse.Namespace, registry: ActionRegistry) -> int:
    try:
        playbook = PlaybookLoader().load_from_file(args.playbook)
    except PlaybookLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    validator = PlaybookValidator(registry=registry)
    is_valid = validator.validate(playbook)
    validator.print_messages(show_info=args.show_info, color=sys.stdout.isatty())

    print()
    print(f"Errors: {validator.get_error_count()}, Warnings: {validator.get_warning_count()}")
    return 0 if is_valid else 1


def cmd_actions(args: argparse.Namespace, registry: ActionRegistry) -> int:
    names = sorted(registry.list_actions())
    if not names:
        print("No actions registered")
        return 0

    width = max(len(name) for name in names)
    for name in names:
        definition = registry.get(name)
        description = definition.description if definition else ""
        print(f"{name:<{width}}  {description}")
    return 0


def cmd_list(args: argparse.Namespace, registry: ActionRegistry) -> int:
    directory = args.directory or get_settings().playbooks_dir
    playbooks = PlaybookLoader().list_playbooks(directory)
    if not playbooks:
        print(f"No playbooks found in {directory}")
        return 0

    for info in playbooks:
        version = f" v{info.version}" if info.version else ""
        print(f"{info.id}: {info.name}{version}")
        if info.description:
            print(f"    {info.description}")
    return 0


COMMANDS = {
    "run": cmd_run,
    "validate": cmd_validate,
    "actions": cmd_actions,
    "list": cmd_list,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, fmt=args.log_format)

    registry = register_builtin_actions()
    return COMMANDS[args.command](args, registry)


if __name__ == "__main__":
    sys.exit(main())
