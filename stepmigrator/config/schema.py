"""Pydantic models for stepmigrator configuration.

These models define the structure of migrator.toml.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class PathsConfig(BaseModel):
    """Filesystem locations used by the migrator."""

    migrations_dir: Path = Field(default_factory=lambda: Path("migrations"))
    version_file: Path = Field(default_factory=lambda: Path(".migrator_version"))


class NamingConfig(BaseModel):
    """Migration file naming convention: <prefix><index>-<name><suffix>."""

    prefix: str = "migration-"
    suffix: str = ".py"

    @field_validator("prefix", "suffix")
    @classmethod
    def no_path_separators(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError("must not contain path separators")
        return value

    @field_validator("suffix")
    @classmethod
    def suffix_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value


class DatabaseConfig(BaseModel):
    """SQLAlchemy database configuration."""

    url: str = "sqlite:///data/app.db"
    echo: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


class MigratorConfig(BaseModel):
    """Main configuration loaded from migrator.toml."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
