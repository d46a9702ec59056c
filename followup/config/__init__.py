"""Configuration loading for Followup.

Configuration is loaded from TOML files with environment variable overrides.

Usage:
    from followup.config import get_settings

    settings = get_settings()
    timeout = settings.reports.default_timeout_seconds
"""

from functools import lru_cache

from followup.config.loader import load_config
from followup.config.settings import Settings, set_toml_config
from followup.observability.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{FOLLOWUP_ENV}.toml (environment overrides)
    4. FOLLOWUP_* environment variables (runtime overrides)

    Without a config directory the code defaults apply. The result is
    cached for the lifetime of the process.
    Call `get_settings.cache_clear()` to reload configuration.
    """
    try:
        set_toml_config(load_config())
    except FileNotFoundError as e:
        logger.warning("config_file_not_found", error=str(e))
        set_toml_config({})

    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
