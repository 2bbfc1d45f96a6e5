"""Persisted version marker.

The marker is a plain text file holding the decimal version number. A
missing file or unparsable content means version 0.
"""

import logging
from pathlib import Path

from stepmigrator.exceptions import VersionStoreError

logger = logging.getLogger(__name__)


class VersionStore:
    """Reads and writes the current schema version marker."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get(self) -> int:
        """Get the current version.

        Returns 0 if the marker does not exist or cannot be parsed.
        """
        if not self.path.exists():
            return 0

        try:
            content = self.path.read_text().strip()
        except OSError as e:
            logger.warning(f"Cannot read version marker {self.path}: {e}")
            return 0

        try:
            version = int(content)
        except ValueError:
            logger.warning(f"Ignoring non-numeric version marker {self.path}: {content!r}")
            return 0

        if version < 0:
            logger.warning(f"Ignoring negative version marker {self.path}: {version}")
            return 0

        return version

    def set(self, version: int) -> None:
        """Overwrite the marker with ``version``.

        Raises:
            VersionStoreError: If the marker cannot be written.
        """
        if version < 0:
            raise VersionStoreError(f"Version cannot be negative: {version}")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(str(version))
        except OSError as e:
            raise VersionStoreError(f"Cannot write version marker {self.path}: {e}") from e

        logger.debug(f"Version marker {self.path} set to {version}")
