# tests/test_sample_app.py
from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

import pytest

from appsettings.binder.errors import SettingsLoadError
from appsettings.sources.memory_source import InMemorySettingSource
from src.main import EnumValues, main


def test_sample_main_loads_every_supported_type() -> None:
    source = InMemorySettingSource(
        {
            "string_setting": "hello",
            "string_setting_override": "overridden",
            "int_setting": "-5",
            "uint_setting": "5",
            "datetime_setting": "2024-05-01T10:30:00",
            "guid_setting": "12345678-1234-5678-1234-567812345678",
            "float_setting": "1.25",
            "decimal_setting": "10.50",
            "enum_setting": "VALUE2",
            "enum_setting_int": "2",
        },
        {"db": "host=localhost"},
    )

    settings = main(source)

    assert settings.string_setting == "hello"
    assert settings.overridden_setting == "overridden"
    assert settings.int_setting == -5
    assert settings.uint_setting == 5
    assert settings.datetime_setting == dt.datetime(2024, 5, 1, 10, 30)
    assert settings.guid_setting == uuid.UUID("12345678-1234-5678-1234-567812345678")
    assert settings.float_setting == 1.25
    assert settings.decimal_setting == Decimal("10.50")
    assert settings.enum_setting is EnumValues.VALUE2
    assert settings.enum_setting_int is EnumValues.VALUE2
    assert dict(settings.connection_strings) == {"db": "host=localhost"}


def test_sample_main_reports_every_invalid_setting() -> None:
    source = InMemorySettingSource({"int_setting": "abc", "uint_setting": "-1", "enum_setting": "VALUE9"})

    with pytest.raises(SettingsLoadError) as exc_info:
        main(source)

    assert exc_info.value.keys == ["int_setting", "uint_setting", "enum_setting"]
