"""
appsettings/utils/settings.py

WHAT THIS FILE IS FOR
---------------------
This module defines the runtime configuration of the settings binder
*itself*: where the default setting source reads from.

It is responsible for:
- Defining the supported configuration fields (via Pydantic BaseSettings)
- Reading them from environment variables (APPSETTINGS_*)
- Exposing a cached, validated LoaderSettings object

Fields:
- environment_prefix:
    Prefix prepended to every key looked up in the environment
    (e.g. "MYAPP_" -> MYAPP_Port).
- connection_string_prefix:
    Environment variables starting with this prefix are connection strings.
- yaml_path:
    Optional YAML file with appSettings / connectionStrings defaults.
- remote_url:
    Optional configuration service URL returning a JSON settings document.
- http_timeout_seconds / max_retries:
    Remote source networking behavior.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT the application's settings class. Application settings
are plain classes populated by AppSettingsLoader from a SettingSource.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog
from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)


class LoaderSettings(BaseSettings):
    """
    Runtime settings for the default setting source.

    Environment variables: APPSETTINGS_*
    """

    model_config = SettingsConfigDict(
        env_prefix="APPSETTINGS_",
        extra="ignore",
    )

    environment_prefix: str = ""
    connection_string_prefix: str = Field(default="CONNSTR_", min_length=1)

    # File defaults, overridden by the environment
    yaml_path: Optional[Path] = None

    # Remote configuration service
    remote_url: Optional[AnyHttpUrl] = None
    http_timeout_seconds: float = 10.0
    max_retries: int = Field(default=2, ge=0)


@lru_cache(maxsize=1)
def get_settings() -> LoaderSettings:
    """
    Construct and return the validated LoaderSettings object.

    Cached (singleton per process); call get_settings.cache_clear() after
    changing APPSETTINGS_* variables in tests.
    """
    settings = LoaderSettings()

    logger.info(
        "loader_settings_loaded",
        environment_prefix=settings.environment_prefix,
        connection_string_prefix=settings.connection_string_prefix,
        yaml_path=str(settings.yaml_path) if settings.yaml_path else None,
        remote_url=str(settings.remote_url) if settings.remote_url else None,
        http_timeout_seconds=settings.http_timeout_seconds,
        max_retries=settings.max_retries,
    )

    return settings
