"""Migration 0: test."""

from stepmigrator import Migration


class CreateTestTable(Migration):

    def up(self, db) -> bool:
        return db.execute(
            """
            CREATE TABLE IF NOT EXISTS test (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name VARCHAR(255) NOT NULL
            )
            """
        )

    def down(self, db) -> bool:
        return db.execute("DROP TABLE IF EXISTS test")
