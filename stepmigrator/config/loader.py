"""Configuration loader for stepmigrator.

Loads configuration from a TOML file. Environment variables can override
any configuration value.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from stepmigrator.config.schema import MigratorConfig
from stepmigrator.exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "STEPMIGRATOR"


def get_config_search_paths() -> list[Path]:
    """Get the list of paths to search for configuration files.

    Returns paths in priority order (first found wins):
    1. ./migrator.toml (project root)
    2. ~/.config/stepmigrator/config.toml (user config)
    3. /etc/stepmigrator/config.toml (system config)
    """
    return [
        Path.cwd() / "migrator.toml",
        Path.home() / ".config" / "stepmigrator" / "config.toml",
        Path("/etc/stepmigrator/config.toml"),
    ]


def find_config_file() -> Path | None:
    """Find the first existing config file from search paths."""
    for path in get_config_search_paths():
        if path.exists() and path.is_file():
            logger.debug(f"Found config file: {path}")
            return path
    return None


def load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def apply_env_overrides(config_dict: dict[str, Any], prefix: str = ENV_PREFIX) -> None:
    """Apply environment variable overrides to configuration dictionary.

    Environment variables are mapped as follows:
    - STEPMIGRATOR_MIGRATIONS_DIR -> config_dict["paths"]["migrations_dir"]
    - STEPMIGRATOR_DATABASE_URL -> config_dict["database"]["url"]
    - etc.

    Note: This modifies config_dict in place. Values are left as strings;
    pydantic coerces them when the config object is built.
    """
    env_mappings = {
        # Paths
        f"{prefix}_MIGRATIONS_DIR": ("paths", "migrations_dir"),
        f"{prefix}_VERSION_FILE": ("paths", "version_file"),
        # Naming
        f"{prefix}_FILE_PREFIX": ("naming", "prefix"),
        f"{prefix}_FILE_SUFFIX": ("naming", "suffix"),
        # Database
        f"{prefix}_DATABASE_URL": ("database", "url"),
        f"{prefix}_DATABASE_ECHO": ("database", "echo"),
        # Logging
        f"{prefix}_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section_dict = config_dict.setdefault(section, {})
        if key == "level":
            value = value.upper()
        section_dict[key] = value


def apply_overrides(config_dict: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Apply dotted-key overrides such as ``{"database.url": "sqlite://"}``.

    None values are skipped so unset command line flags leave the file and
    environment values untouched.
    """
    for dotted_key, value in overrides.items():
        if value is None:
            continue
        section, key = dotted_key.split(".", 1)
        config_dict.setdefault(section, {})[key] = value


def load_config(
    config_file: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> MigratorConfig:
    """Load configuration from TOML file with environment variable overrides.

    Args:
        config_file: Optional path to config file. If not provided,
                     searches default locations.
        overrides: Optional dotted-key values applied last (command line flags).

    Returns:
        MigratorConfig instance with all settings loaded.

    Raises:
        ConfigError: If an explicit config file is missing or the merged
                     configuration does not validate.
    """
    config_dict: dict[str, Any] = {}

    if config_file is not None and not config_file.exists():
        raise ConfigError(f"Config file not found: {config_file}")

    if config_file is None:
        config_file = find_config_file()

    if config_file is not None:
        logger.info(f"Loading config from: {config_file}")
        config_dict = load_toml_file(config_file)
    else:
        logger.info("No config file found, using defaults with env overrides")

    apply_env_overrides(config_dict)
    apply_overrides(config_dict, overrides or {})

    try:
        return MigratorConfig(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
