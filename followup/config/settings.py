"""Root settings model.

Values resolve from, highest priority first: constructor arguments,
``FOLLOWUP_*`` environment variables (``__`` separates nested keys), the
TOML layers handed over through ``set_toml_config`` and the model defaults.
"""

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from followup.config.models.api import APIConfig
from followup.config.models.observability import ObservabilityConfig
from followup.config.models.query import QueryConfig
from followup.config.models.reports import ReportsConfig
from followup.config.models.storage import StorageConfig

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_loaded_toml: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Install the merged TOML tree read by the next ``Settings()``."""
    global _loaded_toml
    _loaded_toml = dict(config)


class LoadedTomlSource(PydanticBaseSettingsSource):
    """Serves top-level sections of the installed TOML tree."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:  # noqa: ARG002
        if field_name not in _loaded_toml:
            return None, field_name, False
        return _loaded_toml[field_name], field_name, True

    def __call__(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, field in self.settings_cls.model_fields.items():
            value, key, found = self.get_field_value(field, name)
            if found:
                values[key] = value
        return values


class Settings(BaseSettings):
    """All configuration sections of the service."""

    model_config = SettingsConfigDict(
        env_prefix="FOLLOWUP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "followup"
    debug: bool = False
    log_level: LogLevel = "INFO"

    api: APIConfig = Field(default_factory=APIConfig)
    reports: ReportsConfig = Field(default_factory=ReportsConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, LoadedTomlSource(settings_cls)
