"""Shared test fixtures for the Followup test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest

from followup.config.models.reports import ReportEndpointConfig, ReportsConfig
from followup.customers.stores.inmemory import InMemoryCustomerStore
from followup.reports.cache import ReportCache
from followup.reports.client import ReportClient

UPSTREAM = "https://erp.test/reports"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"FOLLOWUP_DEBUG": "true"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test."""
    from followup.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# Report engine fixtures


@pytest.fixture
def reports_config() -> ReportsConfig:
    """Reports configuration pointing every kind at the fake upstream."""
    return ReportsConfig(
        token="erp-token",
        default_timeout_seconds=5.0,
        accounts=ReportEndpointConfig(report_number=175, url=f"{UPSTREAM}/175"),
        contacts_a=ReportEndpointConfig(report_number=184, url=f"{UPSTREAM}/184"),
        contacts_b=ReportEndpointConfig(report_number=185, url=f"{UPSTREAM}/185"),
        ledger=ReportEndpointConfig(report_number=180, url=f"{UPSTREAM}/180"),
    )


@pytest.fixture
def report_cache() -> ReportCache:
    """Fresh, never-synced report cache."""
    return ReportCache()


@pytest.fixture
def customer_store() -> InMemoryCustomerStore:
    """Empty in-memory customer store."""
    return InMemoryCustomerStore()


@pytest.fixture
def make_client(reports_config: ReportsConfig) -> Callable[[Handler], ReportClient]:
    """Factory for a ReportClient backed by an httpx.MockTransport."""

    def _make(handler: Handler) -> ReportClient:
        return ReportClient(reports_config, transport=httpx.MockTransport(handler))

    return _make
