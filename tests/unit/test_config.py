"""
Tests for licensing_config.

Verifies:
- Bundled defaults load
- Environment overrides for the file path and database URL
- Invalid values fail at load time
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from licensing_config import DEFAULT_CONFIG_PATH, EngineSettings, get_settings
from licensing_config.loader import parse_decimal, parse_settings


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:

    def test_bundled_defaults(self):
        settings = get_settings(environ={})
        assert settings.recurring_client_bonus == Decimal("0.05")
        assert settings.max_years_supported == 3
        assert settings.database_url.startswith("postgresql://")
        assert settings.log_level == "INFO"

    def test_defaults_file_exists(self):
        assert DEFAULT_CONFIG_PATH.is_file()

    def test_settings_are_frozen(self):
        settings = get_settings(environ={})
        with pytest.raises(AttributeError):
            settings.pool_size = 1


class TestOverrides:

    def test_database_url_from_environment(self):
        settings = get_settings(environ={"DATABASE_URL": "sqlite:///other.db"})
        assert settings.database_url == "sqlite:///other.db"

    def test_config_path_from_environment(self, tmp_path):
        path = _write(tmp_path, {
            "database": {"url": "sqlite:///x.db", "pool_size": 5},
            "pricing": {"recurring_client_bonus": "0.07"},
            "contracts": {"max_years_supported": 5},
            "logging": {"level": "debug"},
        })
        settings = get_settings(environ={"LICENSING_CONFIG": str(path)})
        assert settings.pool_size == 5
        assert settings.recurring_client_bonus == Decimal("0.07")
        assert settings.max_years_supported == 5
        assert settings.log_level == "DEBUG"

    def test_explicit_path_wins_over_environment(self, tmp_path):
        path = _write(tmp_path, {"database": {"url": "sqlite:///explicit.db"}})
        settings = get_settings(path, environ={"LICENSING_CONFIG": "/nonexistent.yaml"})
        assert settings.database_url == "sqlite:///explicit.db"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_settings(tmp_path / "missing.yaml", environ={})


class TestValidation:

    def test_float_bonus_rejected(self):
        with pytest.raises(ValueError):
            parse_settings({
                "database": {"url": "sqlite://"},
                "pricing": {"recurring_client_bonus": 0.05},
            })

    def test_bonus_out_of_range(self):
        with pytest.raises(ValueError):
            parse_settings({
                "database": {"url": "sqlite://"},
                "pricing": {"recurring_client_bonus": "1.5"},
            })

    def test_missing_url(self):
        with pytest.raises(ValueError):
            parse_settings({})

    @pytest.mark.parametrize("years", [0, -1, "3", True])
    def test_bad_max_years(self, years):
        with pytest.raises(ValueError):
            parse_settings({
                "database": {"url": "sqlite://"},
                "contracts": {"max_years_supported": years},
            })

    def test_negative_pool_size(self):
        with pytest.raises(ValueError):
            EngineSettings(database_url="sqlite://", pool_size=-1)

    def test_unknown_log_level(self):
        with pytest.raises(ValueError):
            EngineSettings(database_url="sqlite://", log_level="LOUD")

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError):
            parse_settings({"database": ["sqlite://"]})

    def test_parse_decimal(self):
        assert parse_decimal("0.05", "x") == Decimal("0.05")
        assert parse_decimal(1, "x") == Decimal("1")
        with pytest.raises(ValueError):
            parse_decimal("five percent", "x")
