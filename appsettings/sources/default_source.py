"""
appsettings/sources/default_source.py

Builds the SettingSource most applications want, from LoaderSettings.

Precedence (last wins):
    1) YAML file          (APPSETTINGS_YAML_PATH, when set)
    2) Remote service     (APPSETTINGS_REMOTE_URL, when set)
    3) Environment        (always)

This allows safe local defaults in a file and overrides in deployment
environments without code changes.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from appsettings.sources.base import SettingSource
from appsettings.sources.environment_source import EnvironmentSettingSource
from appsettings.sources.layered_source import LayeredSettingSource
from appsettings.sources.remote_source import RemoteSettingSource
from appsettings.sources.yaml_source import YamlFileSettingSource
from appsettings.utils.settings import LoaderSettings, get_settings

logger = structlog.get_logger(__name__)


def build_default_source(settings: Optional[LoaderSettings] = None) -> SettingSource:
    settings = settings or get_settings()
    layers: List[SettingSource] = []

    if settings.yaml_path is not None:
        layers.append(YamlFileSettingSource(settings.yaml_path))

    if settings.remote_url is not None:
        layers.append(
            RemoteSettingSource(
                str(settings.remote_url),
                timeout_seconds=settings.http_timeout_seconds,
                max_retries=settings.max_retries,
            )
        )

    layers.append(
        EnvironmentSettingSource(
            prefix=settings.environment_prefix,
            connection_string_prefix=settings.connection_string_prefix,
        )
    )

    logger.info("default_setting_source_built", layers=[type(layer).__name__ for layer in layers])

    if len(layers) == 1:
        return layers[0]
    return LayeredSettingSource(*layers)
