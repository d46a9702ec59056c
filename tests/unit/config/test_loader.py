"""Unit tests for the TOML configuration loader."""

import tomllib
from pathlib import Path

import pytest

from followup.config.loader import (
    deep_merge,
    get_config_dir,
    get_environment,
    load_config,
    load_toml,
)

PROJECT_CONFIG = Path(__file__).resolve().parents[3] / "config"


class TestDeepMerge:
    """Tests for deep_merge."""

    @pytest.mark.parametrize(
        ("base", "override", "expected"),
        [
            ({"a": 1, "b": 2}, {"b": 3}, {"a": 1, "b": 3}),
            (
                {"reports": {"token": "x", "accounts": {"report_number": 175}}},
                {"reports": {"accounts": {"url": "https://erp"}}},
                {
                    "reports": {
                        "token": "x",
                        "accounts": {"report_number": 175, "url": "https://erp"},
                    }
                },
            ),
            ({"storage": {"backend": "inmemory"}}, {"storage": "off"}, {"storage": "off"}),
            ({}, {"a": 1}, {"a": 1}),
        ],
    )
    def test_merges(self, base: dict, override: dict, expected: dict) -> None:
        assert deep_merge(base, override) == expected

    def test_inputs_untouched(self) -> None:
        base = {"query": {"default_limit": 20}}
        deep_merge(base, {"query": {"default_limit": 50}})
        assert base == {"query": {"default_limit": 20}}


class TestLoadToml:
    """Tests for load_toml."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_toml(tmp_path / "absent.toml")

    def test_invalid_syntax(self, tmp_path: Path) -> None:
        broken = tmp_path / "broken.toml"
        broken.write_text("[reports\ntoken = ")

        with pytest.raises(tomllib.TOMLDecodeError):
            load_toml(broken)


class TestEnvironmentAndDirectory:
    """Tests for environment and config directory discovery."""

    def test_environment_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FOLLOWUP_ENV", raising=False)
        assert get_environment() == "development"

    def test_environment_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FOLLOWUP_ENV", "production")
        assert get_environment() == "production"

    def test_config_dir_from_env(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FOLLOWUP_CONFIG_DIR", str(test_config_dir))
        assert get_config_dir() == test_config_dir

    def test_missing_config_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FOLLOWUP_CONFIG_DIR", str(tmp_path / "nowhere"))
        with pytest.raises(FileNotFoundError):
            get_config_dir()


class TestLoadConfig:
    """Tests for load_config."""

    def test_environment_file_overrides_default(
        self, test_config_dir: Path, mock_toml_files, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        mock_toml_files(
            {
                "default.toml": "[query]\ndefault_limit = 20\nmax_limit = 500",
                "staging.toml": "[query]\ndefault_limit = 50",
            }
        )
        monkeypatch.setenv("FOLLOWUP_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("FOLLOWUP_ENV", "staging")

        assert load_config() == {"query": {"default_limit": 50, "max_limit": 500}}

    def test_missing_default(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FOLLOWUP_CONFIG_DIR", str(test_config_dir))

        with pytest.raises(FileNotFoundError, match="default.toml"):
            load_config()

    def test_project_defaults_name_every_report(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FOLLOWUP_CONFIG_DIR", str(PROJECT_CONFIG))
        monkeypatch.setenv("FOLLOWUP_ENV", "nonexistent")

        reports = load_config()["reports"]

        numbers = {name: reports[name]["report_number"] for name in ("accounts", "ledger")}
        assert numbers == {"accounts": 175, "ledger": 180}
        assert reports["contacts_a"]["report_number"] == 184
        assert reports["contacts_b"]["report_number"] == 185
        assert reports["ledger"]["timeout_seconds"] == 60.0
