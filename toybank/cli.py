"""
Command Line Entry Point

``toybank run`` connects, lists every loan and walks the user through loan
adjustments. ``toybank init-db`` creates the tables and loads demo data.
Exit status is 1 when no connection could be established.
"""

import argparse
import sys
from typing import List, Optional

from .config import get_config
from .console import ConsoleChannel, TerminalConsole
from .errors import CommitError, ConfigurationError, DatabaseConnectionError, QueryError
from .logging_config import get_logger, setup_logging
from .schema import create_schema, seed_demo_data
from .session import ConnectionManager
from .store import Credentials, create_backend
from .workflow import LoanWorkflowController


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="toybank",
        description="List ToyBank loans and adjust their amounts in one transaction."
    )
    parser.add_argument("--database-url", default=config.database_url,
                        help="sqlite:///path.db or postgresql://host:port/dbname")
    parser.add_argument("--log-level", type=str.upper, default=config.log_level.upper(),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-format", choices=["json", "text"], default=config.log_format)
    parser.add_argument("--log-file", default=config.log_file)

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("run", help="Run the interactive loan adjustment workflow (default)")
    init_db = commands.add_parser("init-db", help="Create the tables and load demo data")
    init_db.add_argument("--no-seed", action="store_true", help="Only create the tables")
    return parser


def init_database(manager: ConnectionManager, console: ConsoleChannel, seed: bool = True) -> int:
    """Create the schema, optionally seed it, and commit"""
    user = console.prompt("Connecting to DB:: name of database user: ")
    password = console.prompt_secret("Connecting to DB:: password: ")
    try:
        with manager.session(Credentials(user=user, password=password)) as session:
            try:
                create_schema(session)
                if seed:
                    customers, loans = seed_demo_data(session)
                    console.write(f"Loaded {customers} customers and {loans} loans.")
                manager.commit(session)
            except (QueryError, CommitError) as e:
                # Closing the session discards the uncommitted statements
                console.write(f"Unable to initialize the database: {e.message}")
                return EXIT_FAILURE
    except DatabaseConnectionError:
        console.write("Exiting, connection was not established!")
        return EXIT_FAILURE

    console.write("Database ready.")
    return EXIT_OK


def main(argv: Optional[List[str]] = None, console: Optional[ConsoleChannel] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()

    setup_logging(args.log_level, fmt=args.log_format, log_file=args.log_file)
    logger = get_logger("toybank.cli")
    console = console or TerminalConsole()

    try:
        backend = create_backend(args.database_url)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        console.write(f"Invalid configuration: {e}")
        return EXIT_USAGE

    manager = ConnectionManager(backend, shutdown_on_close=config.shutdown_on_close)

    if args.command == "init-db":
        return init_database(manager, console, seed=not args.no_seed)

    controller = LoanWorkflowController(
        manager, console,
        precision=config.amount_precision,
        rounding=config.amount_rounding
    )
    result = controller.run()
    return EXIT_OK if result.connected else EXIT_FAILURE


def run() -> None:
    """Console script entry point"""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted, uncommitted changes were discarded.")
        sys.exit(EXIT_FAILURE)
