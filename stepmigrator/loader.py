"""Load migration classes from catalog files.

MigrationRegistry snapshots the catalog once per run and maps each
position (0 for the first file) to its file. Classes are imported on
first use and checked when they are registered: a file must define
exactly one concrete Migration subclass.
"""

import importlib.util
import inspect
import logging
import re
import sys
from pathlib import Path
from types import ModuleType

from stepmigrator.catalog import MigrationCatalog
from stepmigrator.exceptions import InvalidMigrationError, MigrationFileMissingError
from stepmigrator.migration import Migration

logger = logging.getLogger(__name__)

MODULE_PREFIX = "stepmigrator_migration_"


def module_name_for(path: Path) -> str:
    """Build a unique, importable module name for a migration file."""
    return MODULE_PREFIX + re.sub(r"\W", "_", path.stem)


def import_migration_file(path: Path) -> ModuleType:
    """Execute a migration file as a module.

    Raises:
        MigrationFileMissingError: If the file does not exist.
        InvalidMigrationError: If the file cannot be imported.
    """
    if not path.is_file():
        raise MigrationFileMissingError(f"File {path} does not exist")

    module_name = module_name_for(path)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise InvalidMigrationError(f"File {path.name} cannot be loaded as Python")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise InvalidMigrationError(f"File {path.name} failed to import: {e}") from e

    return module


def find_migration_class(module: ModuleType, filename: str) -> type[Migration]:
    """Return the single concrete Migration subclass defined in ``module``."""
    candidates = [
        obj
        for obj in vars(module).values()
        if inspect.isclass(obj)
        and issubclass(obj, Migration)
        and obj.__module__ == module.__name__
        and not inspect.isabstract(obj)
    ]

    if not candidates:
        raise InvalidMigrationError(f"File {filename} does not define a Migration class")
    if len(candidates) > 1:
        names = ", ".join(sorted(c.__name__ for c in candidates))
        raise InvalidMigrationError(
            f"File {filename} defines more than one Migration class: {names}"
        )
    return candidates[0]


class MigrationRegistry:
    """Migration classes indexed by catalog position."""

    def __init__(self, catalog: MigrationCatalog):
        self.catalog = catalog
        self.files = catalog.list_files()
        self._classes: dict[int, type[Migration]] = {}

    def __len__(self) -> int:
        return len(self.files)

    def filename(self, position: int) -> str:
        if position < 0 or position >= len(self.files):
            raise MigrationFileMissingError(f"No migration file for version {position + 1}")
        return self.files[position]

    def register(self, position: int, migration_class: type[Migration]) -> None:
        """Register the class for a position, checking it is a usable Migration."""
        if not (inspect.isclass(migration_class) and issubclass(migration_class, Migration)):
            raise InvalidMigrationError(f"{migration_class!r} is not a Migration class")
        if inspect.isabstract(migration_class):
            raise InvalidMigrationError(
                f"{migration_class.__name__} does not implement both up() and down()"
            )
        self._classes[position] = migration_class

    def get_class(self, position: int) -> type[Migration]:
        if position not in self._classes:
            filename = self.filename(position)
            module = import_migration_file(self.catalog.path_for(filename))
            try:
                self.register(position, find_migration_class(module, filename))
            finally:
                sys.modules.pop(module.__name__, None)
            logger.debug(f"Registered {filename} at position {position}")
        return self._classes[position]

    def load(self, position: int) -> Migration:
        """Instantiate the migration at ``position``.

        Raises:
            MigrationFileMissingError: If no file exists for the position.
            InvalidMigrationError: If the file does not define a usable Migration.
        """
        migration_class = self.get_class(position)
        try:
            return migration_class()
        except Exception as e:
            raise InvalidMigrationError(
                f"{migration_class.__name__} cannot be instantiated: {e}"
            ) from e
