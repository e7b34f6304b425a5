"""
Command-line interface for the batch minter.

Provides commands for running a minting plan and previewing its batches.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog

from minter import __version__
from minter.config import ConfigurationError, MinterConfig, load_config
from minter.core.collection import RunReport
from minter.core.orchestrator import CollectionCreationError, MintOrchestrator
from minter.engine.planner import plan_batches
from minter.node.interface import NodeConnectionError

EXIT_OK = 0
EXIT_BATCHES_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_CONNECTION_ERROR = 3
EXIT_COLLECTION_ERROR = 4
EXIT_INTERRUPTED = 130

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stdout,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="batch-minter",
        description="Create MultiTokens collections and mint their tokens in batches",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Run command
    run_parser = subparsers.add_parser("run", help="Create collections and mint tokens")
    run_parser.add_argument(
        "--endpoint",
        help="Node WebSocket endpoint (default: WS_ENDPOINT or ws://localhost:9944)",
    )
    run_parser.add_argument(
        "--collections",
        type=int,
        help="Number of collections (default: COLLECTION_COUNT or 1)",
    )
    run_parser.add_argument(
        "--tokens",
        type=int,
        help="Tokens per collection (default: TOKEN_COUNT_PER_COLLECTION or 1000)",
    )
    run_parser.add_argument(
        "--batch-size",
        type=int,
        help="Tokens per batch, at most 250 (default: TOKEN_COUNT_IN_BATCH or 100)",
    )
    run_parser.add_argument(
        "--max-attempts",
        type=int,
        help="Submission attempts per extrinsic (default: MAX_ATTEMPTS or 11)",
    )
    run_parser.add_argument(
        "--report",
        help="Write the run report as JSON to this path",
    )
    run_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    run_parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format",
    )

    # Plan command (no network access)
    plan_parser = subparsers.add_parser("plan", help="Show the batches a run would submit")
    plan_parser.add_argument(
        "--tokens",
        type=int,
        default=1000,
        help="Tokens per collection (default: 1000)",
    )
    plan_parser.add_argument(
        "--batch-size",
        type=int,
        default=100,
        help="Tokens per batch (default: 100)",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> MinterConfig:
    """Merge command-line overrides into the environment configuration."""
    return load_config(
        ws_endpoint=args.endpoint,
        collection_count=args.collections,
        token_count_per_collection=args.tokens,
        token_count_in_batch=args.batch_size,
        max_attempts=args.max_attempts,
        log_level=args.log_level,
        log_json=args.log_json,
    )


def write_report(report: RunReport, path: str) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(report.to_dict(), fh, indent=2)


async def run_minter(config: MinterConfig, report_path: Optional[str] = None) -> int:
    """Run the minting plan and map its outcome to an exit code."""
    orchestrator = MintOrchestrator(config)

    try:
        report = await orchestrator.run()
    except NodeConnectionError as e:
        logger.error("connection_failed", endpoint=config.ws_endpoint, error=str(e))
        return EXIT_CONNECTION_ERROR
    except CollectionCreationError as e:
        logger.error("run_aborted", error=str(e))
        return EXIT_COLLECTION_ERROR

    if report_path:
        write_report(report, report_path)

    if report.failed:
        for batch in report.batches:
            if not batch.succeeded:
                logger.warning(
                    "unminted_tokens",
                    collection_id=batch.collection_id,
                    first_token_id=batch.first_token_id,
                    last_token_id=batch.last_token_id,
                )
        return EXIT_BATCHES_FAILED

    return EXIT_OK


def show_plan(args: argparse.Namespace) -> int:
    """Print the batches for a token count without touching the network."""
    try:
        entries = plan_batches(args.tokens, args.batch_size)
    except ValueError as e:
        print(f"Invalid plan: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print(f"{len(entries)} batch(es) for {args.tokens} token(s):")
    for number, entry in enumerate(entries, start=1):
        print(f"  {number:>4}: tokens {entry.start_offset}..{entry.end_offset} ({entry.length})")
    return EXIT_OK


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_CONFIG_ERROR)

    if args.command == "plan":
        sys.exit(show_plan(args))

    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    setup_logging(config.log_level, config.log_json)

    try:
        exit_code = asyncio.run(run_minter(config, args.report))
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        exit_code = EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.warning("minter_interrupted")
        exit_code = EXIT_INTERRUPTED

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
