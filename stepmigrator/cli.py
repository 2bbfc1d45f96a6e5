"""Command line interface for stepmigrator.

Usage:
    stepmigrator up [TARGET] [--dry-run]
    stepmigrator down [TARGET] [--dry-run]
    stepmigrator create NAME
    stepmigrator version
    stepmigrator status
"""

import argparse
import logging
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from stepmigrator import __version__
from stepmigrator.config import MigratorConfig, load_config
from stepmigrator.database import SQLAlchemyDatabase
from stepmigrator.exceptions import ConfigError
from stepmigrator.migrator import Migrator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(config: MigratorConfig, verbose: bool = False) -> None:
    """Configure root logging from the config level or --verbose."""
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def build_config(args: argparse.Namespace) -> MigratorConfig:
    """Load configuration and apply command line overrides."""
    return load_config(
        config_file=args.config,
        overrides={
            "database.url": args.database,
            "paths.migrations_dir": args.migrations_dir,
            "paths.version_file": args.version_file,
        },
    )


def open_database(config: MigratorConfig) -> SQLAlchemyDatabase | None:
    """Create the database client, reporting a bad URL or missing driver."""
    try:
        return SQLAlchemyDatabase(config.database.url, echo=config.database.echo)
    except (SQLAlchemyError, ImportError) as e:
        print(f"Error: cannot open database {config.database.url}: {e}")
        return None


def cmd_up(args: argparse.Namespace, config: MigratorConfig) -> int:
    """Migrate up to target version."""
    database = open_database(config)
    if database is None:
        return 1

    with database as db:
        migrator = Migrator(db, config)
        return 0 if migrator.up(args.target, dry_run=args.dry_run) else 1


def cmd_down(args: argparse.Namespace, config: MigratorConfig) -> int:
    """Revert down to target version."""
    database = open_database(config)
    if database is None:
        return 1

    with database as db:
        migrator = Migrator(db, config)
        return 0 if migrator.down(args.target, dry_run=args.dry_run) else 1


def cmd_create(args: argparse.Namespace, config: MigratorConfig) -> int:
    """Create a new migration file."""
    name = args.name.strip()
    if not name:
        print("Please enter a migration name.")
        print("Usage: stepmigrator create <name>")
        return 1

    migrator = Migrator(config=config)
    return 0 if migrator.create(name) else 1


def cmd_version(args: argparse.Namespace, config: MigratorConfig) -> int:
    """Show the current version."""
    migrator = Migrator(config=config)
    print(f"Current version: {migrator.get_version()}")
    return 0


def cmd_status(args: argparse.Namespace, config: MigratorConfig) -> int:
    """Show current version and applied/pending migrations."""
    migrator = Migrator(config=config)
    return 0 if migrator.status() else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepmigrator",
        description="Sequential database schema migrations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s status                    Show current version and pending migrations
  %(prog)s up                        Migrate to latest version
  %(prog)s up 2                      Migrate to specific version
  %(prog)s down                      Revert the last applied migration
  %(prog)s down 0                    Revert every migration
  %(prog)s create add_users_table    Create the next migration file
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to config file (default: search ./migrator.toml, ~/.config/stepmigrator/config.toml)",
    )
    parser.add_argument(
        "-d", "--database",
        help="SQLAlchemy database URL (default: sqlite:///data/app.db)",
    )
    parser.add_argument(
        "--migrations-dir",
        type=Path,
        help="Directory holding migration files (default: migrations)",
    )
    parser.add_argument(
        "--version-file",
        type=Path,
        help="Path to the version marker file (default: .migrator_version)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # up command
    up_parser = subparsers.add_parser("up", help="Migrate up to target version")
    up_parser.add_argument(
        "target",
        nargs="?",
        type=int,
        help="Target version (default: latest)",
    )
    up_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without applying changes",
    )
    up_parser.set_defaults(func=cmd_up)

    # down command
    down_parser = subparsers.add_parser("down", help="Revert down to target version")
    down_parser.add_argument(
        "target",
        nargs="?",
        type=int,
        help="Target version (default: current version - 1)",
    )
    down_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without applying changes",
    )
    down_parser.set_defaults(func=cmd_down)

    # create command
    create_parser = subparsers.add_parser("create", help="Create a new migration file")
    create_parser.add_argument("name", help="Migration name, e.g. add_users_table")
    create_parser.set_defaults(func=cmd_create)

    # version command
    version_parser = subparsers.add_parser("version", help="Show the current version")
    version_parser.set_defaults(func=cmd_version)

    # status command
    status_parser = subparsers.add_parser("status", help="Show applied and pending migrations")
    status_parser.set_defaults(func=cmd_status)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    configure_logging(config, args.verbose)
    logger.debug(f"Running '{args.command}' with config {config.model_dump()}")

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
