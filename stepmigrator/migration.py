"""Base class for user-authored migrations.

A migration file defines exactly one subclass of Migration:

    from stepmigrator import Migration


    class CreateUsersTable(Migration):
        def up(self, db) -> bool:
            return db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY)")

        def down(self, db) -> bool:
            return db.execute("DROP TABLE users")
"""

import logging
from abc import ABC, abstractmethod

from stepmigrator.database import DatabaseInterface

logger = logging.getLogger(__name__)


class Migration(ABC):
    """One forward/backward schema change step."""

    last_error: str | None = None

    def __init__(self) -> None:
        self.last_error = None

    @abstractmethod
    def up(self, db: DatabaseInterface) -> bool:
        """Apply the migration. Return False to fail the batch."""

    @abstractmethod
    def down(self, db: DatabaseInterface) -> bool:
        """Revert the migration. Return False to fail the batch."""

    def migrate(self, db: DatabaseInterface) -> bool:
        """Run up(), recording any exception as last_error."""
        try:
            return bool(self.up(db))
        except Exception as e:
            logger.debug(f"{type(self).__name__}.up raised", exc_info=True)
            self.last_error = f"Error: {e}"
            return False

    def revert(self, db: DatabaseInterface) -> bool:
        """Run down(), recording any exception as last_error."""
        try:
            return bool(self.down(db))
        except Exception as e:
            logger.debug(f"{type(self).__name__}.down raised", exc_info=True)
            self.last_error = f"Error: {e}"
            return False
