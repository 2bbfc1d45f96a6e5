"""Sequential migration runner.

The Migrator steps the schema version up or down one migration file at a
time, inside a single transaction per invocation:
- Version tracking via a plain text marker file
- Forward migrations (up)
- Reverse migrations (down)
- Creating new migration files from a template
- Status reporting

Every outcome is reported on stdout; the public methods return True on
success and False on failure and never raise MigratorError.
"""

import logging
import os
import re
from datetime import datetime

from stepmigrator.catalog import MigrationCatalog
from stepmigrator.config.schema import MigratorConfig
from stepmigrator.database import DatabaseInterface
from stepmigrator.exceptions import (
    InvalidMigrationError,
    MigrationFileMissingError,
    VersionStoreError,
)
from stepmigrator.loader import MigrationRegistry
from stepmigrator.version_store import VersionStore

logger = logging.getLogger(__name__)

MIGRATION_TEMPLATE = '''"""Migration {index}: {name}."""

from stepmigrator import Migration


class {class_name}(Migration):

    def up(self, db) -> bool:
        # Apply the change, e.g. db.execute("CREATE TABLE ...")

        return True

    def down(self, db) -> bool:
        # Undo the change made in up()

        return True
'''


def class_name_for(name: str) -> str:
    """Turn a migration name such as ``add-users_table`` into ``AddUsersTable``."""
    parts = [part for part in re.split(r"[^0-9A-Za-z]+", name) if part]
    class_name = "".join(part[0].upper() + part[1:] for part in parts)
    if not class_name or class_name[0].isdigit():
        class_name = "Migration" + class_name
    if class_name == "Migration":
        class_name = "MigrationStep"
    return class_name


def timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class Migrator:
    """Applies and reverts migrations against one database."""

    def __init__(self, db: DatabaseInterface | None = None, config: MigratorConfig | None = None):
        """Initialize the migrator.

        Args:
            db: Database client the migrations run against. Only up() and
                down() need one.
            config: Paths and naming convention. Defaults to MigratorConfig(),
                    i.e. ./migrations and ./.migrator_version with
                    ``migration-<index>-<name>.py`` files.
        """
        self.db = db
        self.config = config or MigratorConfig()
        self.catalog = MigrationCatalog(
            self.config.paths.migrations_dir,
            prefix=self.config.naming.prefix,
            suffix=self.config.naming.suffix,
        )
        self.store = VersionStore(self.config.paths.version_file)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_version(self) -> int:
        """Get the currently applied version from the marker."""
        return self.store.get()

    def status(self) -> bool:
        """Print the current version and which migrations are applied."""
        current = self.store.get()
        entries = self.catalog.entries()

        print(f"Version file: {self.store.path}")
        print(f"Migrations directory: {self.catalog.directory}")
        print(f"Current version: {current}")
        print(f"Latest version: {len(entries)}")

        if current > len(entries):
            print()
            print(f"Warning: current version {current} is beyond the {len(entries)} migration files found.")

        if not entries:
            print()
            print("No migration file is found.")
            return True

        print()
        for position, entry in enumerate(entries):
            mark = "x" if position < current else " "
            print(f"  [{mark}] {position + 1:>4}  {entry.filename}")

        if current == len(entries):
            print()
            print("Database is up to date.")

        return True

    # =========================================================================
    # Commands
    # =========================================================================

    def up(self, target: int | None = None, dry_run: bool = False) -> bool:
        """Migrate up to ``target``, or to the latest version if not given."""
        registry = MigrationRegistry(self.catalog)
        total = len(registry)
        if total == 0:
            print("No migration file is found.")
            return True

        current = self.store.get()
        if target is None:
            target = total

        if target == current:
            if target == total:
                print("Already at the latest version.")
            else:
                print(f"Already at version {current}.")
            return True

        if target < current:
            print(f"Target version {target} is less than current version {current}")
            print("Use 'down' to revert.")
            return False

        if target > total:
            print(f"Target version {target} is greater than the latest version {total}")
            return False

        steps = [(position, position + 1) for position in range(current, target)]
        logger.info(f"Migrating up from {current} to {target}")

        if dry_run:
            self._report_dry_run(registry, steps, "Would apply", current, target)
            return True

        if not self._run_batch(registry, steps, forward=True, start_version=current):
            return False

        print(f"Migration up to version {target} succeeded")
        print(f"Date: {timestamp()}")
        return True

    def down(self, target: int | None = None, dry_run: bool = False) -> bool:
        """Revert down to ``target``, or by a single migration if not given."""
        current = self.store.get()

        if target is None:
            if current == 0:
                print("Already at version 0. Nothing to revert.")
                return True
            target = current - 1
        elif target > current:
            print(f"Target version {target} is greater than current version {current}")
            print("Use 'up' to migrate forward.")
            return False
        elif target < 0:
            print(f"Target version {target} is less than 0")
            return False

        registry = MigrationRegistry(self.catalog)
        if len(registry) == 0:
            print("No migration file is found.")
            return True

        if target == current:
            print(f"Already at version {current}.")
            return True

        steps = [(position, position) for position in range(current - 1, target - 1, -1)]
        logger.info(f"Reverting down from {current} to {target}")

        if dry_run:
            self._report_dry_run(registry, steps, "Would revert", current, target)
            return True

        if not self._run_batch(registry, steps, forward=False, start_version=current):
            return False

        print(f"Rollback to version {target} succeeded")
        print(f"Date: {timestamp()}")
        return True

    def create(self, name: str) -> bool:
        """Create the next migration file from the template."""
        if not name or "/" in name or "\\" in name or os.sep in name:
            print(f"Invalid migration name: {name!r}")
            return False

        directory = self.catalog.directory
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Cannot create directory {directory}: {e}")
            return False

        index = self.catalog.last_index() + 1
        filename = f"{self.catalog.prefix}{index}-{name}{self.catalog.suffix}"
        path = directory / filename

        if path.exists():
            print(f"File {path} already exists")
            return False

        content = MIGRATION_TEMPLATE.format(
            index=index,
            name=name,
            class_name=class_name_for(name),
        )
        try:
            path.write_text(content)
        except OSError as e:
            print(f"Cannot write {path}: {e}")
            return False

        logger.info(f"Created migration {filename}")
        print(f"File {path} created")
        return True

    # =========================================================================
    # Batch execution
    # =========================================================================

    def _run_batch(
        self,
        registry: MigrationRegistry,
        steps: list[tuple[int, int]],
        forward: bool,
        start_version: int,
    ) -> bool:
        """Run every step inside one transaction.

        Each step is ``(position, version_after_step)``. Any failure rolls
        back the whole batch and puts the marker back to ``start_version``.
        """
        label = "Migration" if forward else "Rollback"

        if self.db is None:
            print("No database connection configured.")
            return False

        try:
            self.db.begin_transaction()
        except Exception as e:
            print(f"Cannot begin transaction: {e}")
            return False

        for position, version in steps:
            filename = self._filename(registry, position)
            try:
                succeeded = self._run_step(registry, position, version, forward)
            except Exception as e:
                logger.exception(f"{label} {filename} raised")
                print(f"{label} {filename} failed: {e}")
                succeeded = False
            if not succeeded:
                self._abort(start_version)
                return False

        try:
            self.db.commit()
        except Exception as e:
            print(f"Commit failed: {e}")
            self._abort(start_version)
            return False

        return True

    def _run_step(
        self, registry: MigrationRegistry, position: int, version: int, forward: bool
    ) -> bool:
        """Load, run and record one step. Prints the reason when it fails."""
        label = "Migration" if forward else "Rollback"
        filename = self._filename(registry, position)
        try:
            migration = registry.load(position)
        except MigrationFileMissingError as e:
            print(str(e))
            return False
        except InvalidMigrationError as e:
            print(f"File {filename} is not a valid migration: {e}")
            return False

        logger.debug(f"Running {label.lower()} {filename}")
        succeeded = migration.migrate(self.db) if forward else migration.revert(self.db)
        if not succeeded:
            error = migration.last_error or getattr(self.db, "last_error", None)
            print(f"{label} {filename} failed: {error}")
            return False

        try:
            self.store.set(version)
        except VersionStoreError as e:
            print(str(e))
            return False

        print(f"{label} {filename} succeeded")
        return True

    def _abort(self, start_version: int) -> None:
        """Roll back the transaction and restore the marker."""
        try:
            self.db.rollback()
        except Exception:
            logger.exception("Rollback failed")
            print("Rollback failed; the database may hold a partial batch.")

        if self.store.get() == start_version:
            return
        try:
            self.store.set(start_version)
        except VersionStoreError as e:
            print(f"{e}; the version file no longer matches the database.")
            return
        logger.info(f"Version marker restored to {start_version}")

    def _report_dry_run(
        self,
        registry: MigrationRegistry,
        steps: list[tuple[int, int]],
        verb: str,
        current: int,
        target: int,
    ) -> None:
        print(f"[DRY RUN] Version {current} -> {target}")
        for position, _ in steps:
            print(f"  {verb} {self._filename(registry, position)}")

    @staticmethod
    def _filename(registry: MigrationRegistry, position: int) -> str:
        if 0 <= position < len(registry):
            return registry.files[position]
        return f"<missing version {position + 1}>"
