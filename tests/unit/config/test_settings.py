"""Unit tests for Settings and get_settings."""

from collections.abc import Generator
from pathlib import Path

import pytest

from followup.config import get_settings, reload_settings
from followup.config.settings import Settings, set_toml_config


@pytest.fixture
def no_toml() -> Generator[None, None, None]:
    """Make Settings see code defaults only."""
    set_toml_config({})
    yield
    set_toml_config({})


@pytest.fixture
def config_env(
    test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point the loader at the temporary config directory."""
    monkeypatch.setenv("FOLLOWUP_CONFIG_DIR", str(test_config_dir))
    monkeypatch.setenv("FOLLOWUP_ENV", "nonexistent")
    return test_config_dir


class TestSettingsDefaults:
    """Tests for code defaults."""

    def test_top_level(self, no_toml) -> None:
        settings = Settings()
        assert settings.app_name == "followup"
        assert settings.debug is False
        assert settings.log_level == "INFO"

    def test_reports(self, no_toml) -> None:
        reports = Settings().reports
        assert reports.accounts.report_number == 175
        assert reports.ledger.report_number == 180
        assert reports.accounts.url is None
        assert reports.token is None

    def test_query_and_storage(self, no_toml) -> None:
        settings = Settings()
        assert settings.query.default_limit == 20
        assert settings.query.default_balance_mode == "balance_non_zero"
        assert settings.storage.backend == "inmemory"
        assert settings.api.port == 3001


class TestGetSettings:
    """Tests for get_settings."""

    def test_reads_toml(self, config_env: Path, mock_toml_files) -> None:
        mock_toml_files({"default.toml": "app_name = 'collections'\n[api]\nport = 8080"})

        settings = get_settings()

        assert settings.app_name == "collections"
        assert settings.api.port == 8080

    def test_cached(self, config_env: Path, mock_toml_files) -> None:
        mock_toml_files({"default.toml": "debug = true"})
        assert get_settings() is get_settings()

    def test_reload_picks_up_changes(self, config_env: Path, mock_toml_files) -> None:
        mock_toml_files({"default.toml": "[query]\ndefault_limit = 10"})
        assert get_settings().query.default_limit == 10

        mock_toml_files({"default.toml": "[query]\ndefault_limit = 30"})
        assert reload_settings().query.default_limit == 30

    def test_missing_default_falls_back_to_code(
        self, config_env: Path
    ) -> None:
        settings = get_settings()
        assert settings.app_name == "followup"


class TestEnvironmentOverrides:
    """Tests for FOLLOWUP_* environment variables."""

    def test_top_level(self, config_env: Path, mock_toml_files, env_override) -> None:
        mock_toml_files({"default.toml": "log_level = 'INFO'"})

        with env_override({"FOLLOWUP_LOG_LEVEL": "DEBUG"}):
            assert get_settings().log_level == "DEBUG"

    def test_nested_report_endpoint(
        self, config_env: Path, mock_toml_files, env_override
    ) -> None:
        mock_toml_files({"default.toml": "[reports.accounts]\nreport_number = 175"})

        with env_override(
            {
                "FOLLOWUP_REPORTS__ACCOUNTS__URL": "https://erp.example/175",
                "FOLLOWUP_REPORTS__TOKEN": "s3cret",
            }
        ):
            reports = get_settings().reports

        assert reports.accounts.url == "https://erp.example/175"
        assert reports.accounts.report_number == 175
        assert reports.token.get_secret_value() == "s3cret"

    def test_cors_origins_from_json_list(
        self, config_env: Path, mock_toml_files, env_override
    ) -> None:
        mock_toml_files({"default.toml": ""})

        origins = '["https://a.test", "https://b.test"]'
        with env_override({"FOLLOWUP_API__CORS_ORIGINS": origins}):
            assert get_settings().api.cors_origins == ["https://a.test", "https://b.test"]
