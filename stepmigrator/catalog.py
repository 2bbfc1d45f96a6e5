"""Migration catalog: the ordered list of migration files in a directory.

Files are named ``<prefix><index>-<name><suffix>`` and ordered by plain
filename comparison, so ``migration-10-x.py`` sorts before
``migration-2-y.py``. Keep indices the same width if a project grows past
ten migrations.
"""

import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"^(\d*)-?(.*)$")


class MigrationFile(BaseModel):
    """One entry of the catalog."""

    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    filename: str
    path: Path


class MigrationCatalog:
    """Lists migration files matching a prefix and suffix."""

    def __init__(self, directory: Path, prefix: str = "migration-", suffix: str = ".py"):
        self.directory = Path(directory)
        self.prefix = prefix
        self.suffix = suffix

    def matches(self, filename: str) -> bool:
        """Check whether a filename follows the naming convention."""
        return (
            len(filename) > len(self.prefix) + len(self.suffix)
            and filename.startswith(self.prefix)
            and filename.endswith(self.suffix)
        )

    def list_files(self) -> list[str]:
        """Get matching filenames sorted ascending by filename."""
        if not self.directory.is_dir():
            logger.debug(f"Migrations directory {self.directory} does not exist")
            return []

        files = sorted(
            entry.name
            for entry in self.directory.iterdir()
            if entry.is_file() and self.matches(entry.name)
        )
        logger.debug(f"Found {len(files)} migration files in {self.directory}")
        return files

    def path_for(self, filename: str) -> Path:
        return self.directory / filename

    def parse(self, filename: str) -> tuple[int, str]:
        """Split a filename into its numeric index and free-text name.

        A filename without leading digits after the prefix has index 0.
        """
        stem = filename[len(self.prefix):len(filename) - len(self.suffix)]
        digits, name = _INDEX_RE.match(stem).groups()
        return (int(digits) if digits else 0), name

    def entries(self) -> list[MigrationFile]:
        """Get parsed records for every catalog file, in catalog order."""
        entries = []
        for filename in self.list_files():
            index, name = self.parse(filename)
            entries.append(
                MigrationFile(
                    index=index,
                    name=name,
                    filename=filename,
                    path=self.path_for(filename),
                )
            )
        return entries

    def last_index(self) -> int:
        """Get the index of the highest-sorted file, or -1 if there is none."""
        files = self.list_files()
        if not files:
            return -1
        index, _ = self.parse(files[-1])
        return index
