"""Tests for the stepmigrator configuration system."""

import os
from pathlib import Path

import pytest

from stepmigrator.config.loader import (
    apply_env_overrides,
    apply_overrides,
    find_config_file,
    get_config_search_paths,
    load_config,
    load_toml_file,
)
from stepmigrator.config.schema import (
    DatabaseConfig,
    LoggingConfig,
    MigratorConfig,
    NamingConfig,
    PathsConfig,
)
from stepmigrator.exceptions import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    """Remove any STEPMIGRATOR_* variables from the environment."""
    for key in list(os.environ):
        if key.startswith("STEPMIGRATOR_"):
            monkeypatch.delenv(key)


class TestSchemaDefaults:
    """Test default values in schema models."""

    def test_paths_config_defaults(self):
        """Test PathsConfig has correct defaults."""
        config = PathsConfig()
        assert config.migrations_dir == Path("migrations")
        assert config.version_file == Path(".migrator_version")

    def test_naming_config_defaults(self):
        """Test NamingConfig has correct defaults."""
        config = NamingConfig()
        assert config.prefix == "migration-"
        assert config.suffix == ".py"

    def test_database_config_defaults(self):
        """Test DatabaseConfig has correct defaults."""
        config = DatabaseConfig()
        assert config.url == "sqlite:///data/app.db"
        assert config.echo is False

    def test_logging_config_defaults(self):
        assert LoggingConfig().level == "WARNING"

    def test_migrator_config_defaults(self):
        """Test MigratorConfig nests every section."""
        config = MigratorConfig()
        assert isinstance(config.paths, PathsConfig)
        assert isinstance(config.naming, NamingConfig)
        assert isinstance(config.database, DatabaseConfig)
        assert isinstance(config.logging, LoggingConfig)


class TestSchemaValidation:
    """Test validation of configuration values."""

    def test_prefix_with_separator_rejected(self):
        with pytest.raises(ValueError):
            NamingConfig(prefix="sub/migration-")

    def test_empty_suffix_rejected(self):
        with pytest.raises(ValueError):
            NamingConfig(suffix="")

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="LOUD")


class TestConfigSearchPaths:
    """Test configuration file search paths."""

    def test_config_search_paths_order(self):
        """Test config search paths are in correct priority order."""
        paths = get_config_search_paths()
        assert len(paths) == 3
        assert paths[0] == Path.cwd() / "migrator.toml"
        assert paths[1] == Path.home() / ".config" / "stepmigrator" / "config.toml"
        assert paths[2] == Path("/etc/stepmigrator/config.toml")

    def test_find_config_file_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "migrator.toml").write_text("")
        assert find_config_file() == tmp_path / "migrator.toml"


class TestTomlLoading:
    """Test loading TOML files."""

    def test_load_toml_file(self, tmp_path):
        path = tmp_path / "migrator.toml"
        path.write_text('[paths]\nmigrations_dir = "db/migrations"\n')
        assert load_toml_file(path) == {"paths": {"migrations_dir": "db/migrations"}}

    def test_invalid_toml_raises_config_error(self, tmp_path):
        path = tmp_path / "migrator.toml"
        path.write_text("[paths\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_toml_file(path)


class TestEnvOverrides:
    """Test environment variable overrides."""

    def test_env_overrides_sections(self, clean_env, monkeypatch):
        monkeypatch.setenv("STEPMIGRATOR_DATABASE_URL", "sqlite:///other.db")
        monkeypatch.setenv("STEPMIGRATOR_MIGRATIONS_DIR", "db/migrations")
        monkeypatch.setenv("STEPMIGRATOR_LOG_LEVEL", "debug")

        config_dict = {"database": {"echo": True}}
        apply_env_overrides(config_dict)

        assert config_dict == {
            "database": {"echo": True, "url": "sqlite:///other.db"},
            "paths": {"migrations_dir": "db/migrations"},
            "logging": {"level": "DEBUG"},
        }

    def test_no_env_leaves_dict_untouched(self, clean_env):
        config_dict = {"paths": {"version_file": "v"}}
        apply_env_overrides(config_dict)
        assert config_dict == {"paths": {"version_file": "v"}}

    def test_apply_overrides_skips_none(self):
        config_dict = {"database": {"url": "sqlite:///a.db"}}
        apply_overrides(config_dict, {"database.url": None, "paths.version_file": Path("v")})
        assert config_dict == {
            "database": {"url": "sqlite:///a.db"},
            "paths": {"version_file": Path("v")},
        }


class TestLoadConfig:
    """Test the full loading sequence."""

    def test_defaults_without_file(self, clean_env, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(
            "stepmigrator.config.loader.get_config_search_paths",
            lambda: [tmp_path / "migrator.toml"],
        )
        assert load_config() == MigratorConfig()

    def test_file_then_env_then_overrides(self, clean_env, tmp_path, monkeypatch):
        """Later sources win: file < environment < explicit overrides."""
        path = tmp_path / "migrator.toml"
        path.write_text(
            "[paths]\n"
            'migrations_dir = "from_file"\n'
            'version_file = "from_file.version"\n'
            "[database]\n"
            'url = "sqlite:///file.db"\n'
            "[naming]\n"
            'prefix = "m"\n'
        )
        monkeypatch.setenv("STEPMIGRATOR_VERSION_FILE", "from_env.version")
        monkeypatch.setenv("STEPMIGRATOR_DATABASE_URL", "sqlite:///env.db")

        config = load_config(path, overrides={"database.url": "sqlite:///flag.db"})

        assert config.paths.migrations_dir == Path("from_file")
        assert config.paths.version_file == Path("from_env.version")
        assert config.database.url == "sqlite:///flag.db"
        assert config.naming.prefix == "m"
        assert config.naming.suffix == ".py"

    def test_env_boolean_is_coerced(self, clean_env, tmp_path, monkeypatch):
        monkeypatch.setenv("STEPMIGRATOR_DATABASE_ECHO", "true")
        path = tmp_path / "migrator.toml"
        path.write_text("")
        assert load_config(path).database.echo is True

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "absent.toml")

    def test_invalid_values_raise_config_error(self, clean_env, tmp_path):
        path = tmp_path / "migrator.toml"
        path.write_text('[logging]\nlevel = "LOUD"\n')
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)
