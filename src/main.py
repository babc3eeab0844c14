"""
src/main.py

Sample application: declares its settings as a plain class and loads them
from the default source (YAML defaults < remote service < environment).

    APPSETTINGS_ENVIRONMENT_PREFIX=SAMPLE_ \
    SAMPLE_string_setting=hello SAMPLE_int_setting=42 \
    CONNSTR_db="host=localhost" python -m src.main
"""

from __future__ import annotations

import datetime as dt
import enum
import uuid
from decimal import Decimal
from typing import Annotated, Mapping, Optional

import structlog
from pydantic import NonNegativeInt

from appsettings.binder.errors import SettingsLoadError
from appsettings.binder.markers import AppSetting
from appsettings.binder.settings_loader import AppSettingsLoader
from appsettings.sources.base import SettingSource
from appsettings.sources.default_source import build_default_source

logger = structlog.get_logger(__name__)


class EnumValues(enum.Enum):
    VALUE1 = 1
    VALUE2 = 2


@AppSetting()
class Settings:
    """Settings required for the running of this application."""

    string_setting: str = ""
    overridden_setting: Annotated[str, AppSetting(key="string_setting_override")] = ""
    int_setting: int = 0
    uint_setting: NonNegativeInt = 0
    datetime_setting: Optional[dt.datetime] = None
    guid_setting: Optional[uuid.UUID] = None
    float_setting: float = 0.0
    decimal_setting: Decimal = Decimal("0")
    enum_setting: EnumValues = EnumValues.VALUE1
    enum_setting_int: EnumValues = EnumValues.VALUE1
    connection_strings: Annotated[Mapping[str, str], AppSetting(is_connection_string=True)] = {}


def main(source: Optional[SettingSource] = None) -> Settings:
    settings = Settings()

    try:
        AppSettingsLoader.load(source or build_default_source(), settings)
    except SettingsLoadError as exc:
        for err in exc.exceptions:
            logger.error("sample_setting_invalid", key=err.key, error=str(err.error))
        raise

    logger.info("sample_settings", **{name: str(value) for name, value in vars(settings).items()})
    return settings


if __name__ == "__main__":
    main()
