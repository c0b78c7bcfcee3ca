"""
Construction Stages CLI

Command-line interface: run the HTTP server, create the database, or
check a payload against the stage rules.
"""

import argparse
import json
import os
import sys
from typing import List, Optional

from . import __version__
from .logging_config import get_logger, setup_logging
from .main import AppConfig
from .repository import ConstructionStageRepository
from .service import STAGE_RULES
from .validation import RuleConfigurationError, RuleValidator

logger = get_logger("cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    config = AppConfig()

    parser = argparse.ArgumentParser(
        prog="construction-stages",
        description="Construction Stages - CRUD API with rule-based validation",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument("--log-file", default=config.log_file, help="Also log to this file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=config.host, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=config.port, help="Bind port")
    serve_parser.add_argument("--db", default=config.database_path, help="SQLite database path")

    # Init-db command
    init_parser = subparsers.add_parser("init-db", help="Create the database schema")
    init_parser.add_argument("--db", default=config.database_path, help="SQLite database path")

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Validate a JSON stage payload against the stage rules"
    )
    validate_parser.add_argument("payload", help="JSON file, or - for stdin")

    return parser.parse_args(argv)


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    # get_service() reads the database path from the environment
    os.environ["CONSTRUCTION_STAGES_DB"] = args.db
    logger.info(f"Starting server on {args.host}:{args.port} (db={args.db})")
    uvicorn.run(
        "construction_stages.server:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        # keep the handlers installed by setup_logging
        log_config=None,
    )
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    ConstructionStageRepository(args.db).init_schema()
    print(f"Database ready: {args.db}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        if args.payload == "-":
            payload = json.load(sys.stdin)
        else:
            with open(args.payload) as f:
                payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read payload: {e}", file=sys.stderr)
        return 2

    if not isinstance(payload, dict):
        print("Payload must be a JSON object", file=sys.stderr)
        return 2

    validator = RuleValidator(payload, STAGE_RULES)
    try:
        valid = validator.validate()
    except RuleConfigurationError as e:
        print(f"Rule configuration error: {e}", file=sys.stderr)
        return 2

    if not valid:
        print(validator.format_errors())
        return 1

    print(json.dumps(validator.data, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    commands = {
        "serve": cmd_serve,
        "init-db": cmd_init_db,
        "validate": cmd_validate,
    }
    command = commands.get(args.command)
    if command is None:
        parse_args(["--help"])
        return 1
    return command(args)


if __name__ == "__main__":
    sys.exit(main())
