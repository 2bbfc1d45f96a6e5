"""Pytest configuration and fixtures for stepmigrator tests."""

import textwrap
from pathlib import Path

import pytest

from stepmigrator.config import MigratorConfig, PathsConfig
from stepmigrator.migrator import Migrator


class FakeDatabase:
    """In-memory DatabaseInterface that records every call.

    Statements executed inside a transaction only reach ``committed`` when
    the transaction commits, so tests can see what a rollback discarded.
    """

    def __init__(self, fail_commit: bool = False, fail_statements: set[str] | None = None):
        self.fail_commit = fail_commit
        self.fail_statements = fail_statements or set()
        self.calls: list[tuple[str, ...]] = []
        self.pending: list[str] = []
        self.committed: list[str] = []

    def execute(self, statement: str) -> bool:
        self.calls.append(("execute", statement))
        if statement in self.fail_statements:
            return False
        self.pending.append(statement)
        return True

    def begin_transaction(self) -> None:
        self.calls.append(("begin",))
        self.pending = []

    def commit(self) -> None:
        self.calls.append(("commit",))
        if self.fail_commit:
            raise RuntimeError("disk I/O error")
        self.committed.extend(self.pending)
        self.pending = []

    def rollback(self) -> None:
        self.calls.append(("rollback",))
        self.pending = []

    @property
    def executed(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "execute"]

    @property
    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


RECORDING_MIGRATION = '''
from stepmigrator import Migration


class Step{index}(Migration):

    def up(self, db) -> bool:
        return db.execute("up {index}")

    def down(self, db) -> bool:
        return db.execute("down {index}")
'''

FAILING_MIGRATION = '''
from stepmigrator import Migration


class Step{index}(Migration):

    def up(self, db) -> bool:
        db.execute("up {index}")
        self.last_error = "up {index} refused"
        return False

    def down(self, db) -> bool:
        db.execute("down {index}")
        self.last_error = "down {index} refused"
        return False
'''


def write_migration(directory: Path, index: int, name: str = "step", body: str = RECORDING_MIGRATION) -> Path:
    """Write ``migration-<index>-<name>.py`` into directory.

    ``body`` is formatted with ``index``; use ``{{`` and ``}}`` for literal braces.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"migration-{index}-{name}.py"
    path.write_text(textwrap.dedent(body).format(index=index))
    return path


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    """Empty migrations directory."""
    directory = tmp_path / "migrations"
    directory.mkdir()
    return directory


@pytest.fixture
def version_file(tmp_path: Path) -> Path:
    return tmp_path / ".migrator_version"


@pytest.fixture
def config(migrations_dir: Path, version_file: Path) -> MigratorConfig:
    """Config pointing at the temporary migrations directory and marker."""
    return MigratorConfig(
        paths=PathsConfig(migrations_dir=migrations_dir, version_file=version_file)
    )


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def migrator(fake_db: FakeDatabase, config: MigratorConfig) -> Migrator:
    return Migrator(fake_db, config)


@pytest.fixture
def make_migration(migrations_dir: Path):
    """Factory writing migration files into the temporary directory.

    Call as ``make_migration(index)`` for a recording migration,
    ``make_migration(index, failing=True)`` for one whose up/down fail, or
    pass ``body=`` for custom source.
    """

    def _make(index: int, name: str = "step", failing: bool = False, body: str | None = None) -> Path:
        if body is None:
            body = FAILING_MIGRATION if failing else RECORDING_MIGRATION
        return write_migration(migrations_dir, index, name, body)

    return _make


@pytest.fixture
def three_migrations(migrations_dir: Path) -> list[Path]:
    """Three recording migrations, indexed 0..2."""
    return [write_migration(migrations_dir, index) for index in range(3)]
