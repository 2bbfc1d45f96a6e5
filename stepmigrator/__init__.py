"""stepmigrator - sequential database schema migrations."""

from stepmigrator.migration import Migration
from stepmigrator.migrator import Migrator

__version__ = "0.1.0"

__all__ = ["Migration", "Migrator", "__version__"]
