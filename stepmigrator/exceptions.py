"""Exception hierarchy for stepmigrator.

These never reach the command line: the Migrator catches them at its
public boundary, prints the message and reports failure.
"""


class MigratorError(Exception):
    """Base class for all migrator errors."""


class ConfigError(MigratorError):
    """Configuration file or override could not be used."""


class VersionStoreError(MigratorError):
    """The version marker could not be written."""


class MigrationFileMissingError(MigratorError):
    """No migration file exists for the requested index."""


class InvalidMigrationError(MigratorError):
    """A migration file does not define a usable Migration subclass."""
