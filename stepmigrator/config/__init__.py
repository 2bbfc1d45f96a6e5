"""stepmigrator configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Command line flags (highest priority)
2. Environment variables (STEPMIGRATOR_*)
3. ./migrator.toml (project root)
4. ~/.config/stepmigrator/config.toml (user config)
5. /etc/stepmigrator/config.toml (system config)
"""

from stepmigrator.config.loader import load_config
from stepmigrator.config.schema import (
    DatabaseConfig,
    LoggingConfig,
    MigratorConfig,
    NamingConfig,
    PathsConfig,
)

__all__ = [
    "DatabaseConfig",
    "LoggingConfig",
    "MigratorConfig",
    "NamingConfig",
    "PathsConfig",
    "load_config",
]
