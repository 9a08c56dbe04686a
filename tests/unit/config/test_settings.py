"""
Unit tests for configuration settings and validation.
"""
from pathlib import Path

import pytest
from pydantic import ValidationError

from person_registry.config.settings import (
    ApplicationSettings,
    DatabaseSettings,
    IngestionSettings,
    MonitoringSettings,
    get_environment_info,
    validate_settings,
)


class TestDatabaseSettings:
    def test_defaults(self):
        settings = DatabaseSettings()

        assert settings.is_sqlite()
        assert not settings.is_in_memory()

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("sqlite:///./persons.db", "sqlite+aiosqlite:///./persons.db"),
            ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
            ("postgresql://user:pw@db/persons", "postgresql+asyncpg://user:pw@db/persons"),
        ],
    )
    def test_async_database_url(self, url, expected):
        assert DatabaseSettings(database_url=url).async_database_url() == expected

    def test_in_memory_detection(self):
        assert DatabaseSettings(database_url="sqlite:///:memory:").is_in_memory()
        assert DatabaseSettings(database_url="sqlite://").is_in_memory()
        assert not DatabaseSettings(database_url="postgresql://db/persons").is_in_memory()

    def test_unsupported_backend(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(database_url="mysql://db/persons")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DB_DATABASE_URL", "sqlite:///./other.db")
        assert DatabaseSettings().database_url == "sqlite:///./other.db"


class TestIngestionSettings:
    def test_defaults(self):
        settings = IngestionSettings()

        assert settings.enabled is True
        assert settings.source_file is None
        assert settings.delimiter == ","

    def test_delimiter_is_one_character(self):
        with pytest.raises(ValidationError):
            IngestionSettings(delimiter=";;")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("INGESTION_SOURCE_FILE", "/data/persons.csv")
        monkeypatch.setenv("INGESTION_ENABLED", "false")

        settings = IngestionSettings()

        assert settings.source_file == Path("/data/persons.csv")
        assert settings.enabled is False


class TestMonitoringSettings:
    def test_log_level_is_normalized(self):
        assert MonitoringSettings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            MonitoringSettings(log_level="LOUD")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            MonitoringSettings(log_format="xml")


class TestApplicationSettings:
    def test_defaults(self):
        settings = ApplicationSettings()

        assert settings.app_name == "Person Registry"
        assert settings.is_development()
        assert not settings.is_production()

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            ApplicationSettings(environment="qa")

    def test_debug_mode_not_allowed_in_production(self):
        with pytest.raises(ValidationError):
            ApplicationSettings(environment="production", debug_mode=True)

    def test_port_range(self):
        with pytest.raises(ValidationError):
            ApplicationSettings(port=80)


class TestValidateSettings:
    def test_valid(self, test_settings):
        assert validate_settings(test_settings) == []

    def test_in_memory_database_rejected_in_production(self):
        settings = ApplicationSettings(
            environment="production",
            database=DatabaseSettings(database_url="sqlite:///:memory:"),
        )

        with pytest.raises(ValueError):
            validate_settings(settings)

    def test_missing_source_is_a_warning(self, tmp_path):
        missing = tmp_path / "missing.csv"
        settings = ApplicationSettings(ingestion=IngestionSettings(source_file=missing))

        assert validate_settings(settings) == [f"Ingestion source file not found: {missing}"]


class TestEnvironmentInfo:
    def test_info(self, test_settings):
        info = get_environment_info(test_settings)

        assert info["app_name"] == "Person Registry"
        assert info["database_backend"] == "sqlite"
        assert info["ingestion_enabled"] is False
        assert info["ingestion_source"] == "bundled sample"
        assert info["log_level"] == "WARNING"
