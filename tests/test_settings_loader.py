# tests/test_settings_loader.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, Dict, List, Mapping, Optional

import pytest
from structlog.testing import capture_logs

from appsettings.binder.errors import (
    SettingBindingError,
    SettingsLoadError,
    SettingValueError,
    UnsupportedSettingTypeError,
)
from appsettings.binder.field_discoverer import discover_fields
from appsettings.binder.markers import AppSetting
from appsettings.binder.settings_loader import AppSettingsLoader
from appsettings.sources.memory_source import InMemorySettingSource

if TYPE_CHECKING:
    from decimal import Context


class Level(enum.Enum):
    LOW = 1
    HIGH = 2


@AppSetting()
class ServiceSettings:
    Name: str = "default"
    Port: int = 0


@AppSetting()
class ManyFields:
    first: int = 1
    second: int = 2
    third: str = "three"
    fourth: Level = Level.LOW


class NothingEligible:
    name: str = "untouched"


class CherryPicked:
    plain: str = "plain"
    service_name: Annotated[str, AppSetting(key="ServiceName")] = ""


class ConnectionSettings:
    Conn: Annotated[Mapping[str, str], AppSetting(is_connection_string=True)] = {}


class WrongConnectionShape:
    Conn: Annotated[Dict[str, str], AppSetting(is_connection_string=True)] = {}


@AppSetting()
class WithReadOnlyProperty:
    Name: str = ""

    @property
    def Computed(self) -> str:
        return "computed"


@AppSetting()
@dataclass(frozen=True)
class FrozenSettings:
    Name: str = "frozen"


@AppSetting()
class OptionalSettings:
    Timeout: Optional[float] = None


class OptionalMarkedField:
    timeout: Optional[Annotated[float, AppSetting(key="Timeout")]] = None


class PartlyResolvable:
    name: Annotated[str, AppSetting(key="ServiceName")] = "default"
    helper: Optional[Context] = None


@AppSetting()
class MarkedPartlyResolvable:
    Name: str = ""
    Port: int = 0
    helper: Optional[Context] = None


class UnresolvableMarkedField:
    limit: Annotated[Context, AppSetting(key="Limit")] = None


class _RecordingSource:
    """
    Records every call; values come from a dict.
    """

    def __init__(
        self,
        settings: Optional[Dict[str, Optional[str]]] = None,
        connection_strings: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings or {}
        self.connection_strings = connection_strings if connection_strings is not None else {}
        self.calls: List[str] = []

    def get_setting(self, key: str) -> Optional[str]:
        self.calls.append(key)
        return self.settings.get(key)

    def get_connection_strings(self) -> Mapping[str, str]:
        self.calls.append("<connection_strings>")
        return self.connection_strings


class _ExplodingSource(_RecordingSource):
    def __init__(self, failing_key: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.failing_key = failing_key

    def get_setting(self, key: str) -> Optional[str]:
        self.calls.append(key)
        if key == self.failing_key:
            raise RuntimeError(f"source unavailable for {key}")
        return self.settings.get(key)


# ------------------------------------------------------------------ #
# Argument validation
# ------------------------------------------------------------------ #
def test_load_rejects_none_source() -> None:
    with pytest.raises(ValueError):
        AppSettingsLoader.load(None, ServiceSettings())  # type: ignore[arg-type]


def test_load_rejects_none_target_before_touching_source() -> None:
    source = _RecordingSource({"Name": "svc"})

    with pytest.raises(ValueError):
        AppSettingsLoader.load(source, None)

    assert source.calls == []


def test_load_rejects_class_instead_of_instance() -> None:
    with pytest.raises(ValueError):
        AppSettingsLoader.load(_RecordingSource(), ServiceSettings)


# ------------------------------------------------------------------ #
# Scenarios
# ------------------------------------------------------------------ #
def test_scenario_a_all_values_convert() -> None:
    target = ServiceSettings()

    ok = AppSettingsLoader.load(InMemorySettingSource({"Name": "svc", "Port": "8080"}), target)

    assert ok is True
    assert target.Name == "svc"
    assert target.Port == 8080


def test_scenario_b_bad_port_is_aggregated_and_name_still_assigned() -> None:
    target = ServiceSettings()

    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(InMemorySettingSource({"Name": "svc", "Port": "notanumber"}), target)

    err = exc_info.value
    assert err.count == 1
    assert err.keys == ["Port"]
    assert str(err).startswith("1 errors loading settings")

    failure = err.exceptions[0]
    assert isinstance(failure, SettingBindingError)
    assert isinstance(failure.error, SettingValueError)
    assert failure.__cause__ is failure.error

    assert target.Name == "svc"
    assert target.Port == 0  # left at its pre-call value


def test_scenario_c_connection_strings_are_assigned_verbatim() -> None:
    connection_strings = {"db": "host=a"}
    source = _RecordingSource(connection_strings=connection_strings)
    target = ConnectionSettings()

    assert AppSettingsLoader.load(source, target) is True

    assert target.Conn == {"db": "host=a"}
    assert target.Conn is connection_strings
    # no scalar lookup for the connection-string sink
    assert source.calls == ["<connection_strings>"]


def test_scenario_d_empty_value_leaves_field_untouched() -> None:
    target = ServiceSettings()

    assert AppSettingsLoader.load(InMemorySettingSource({"Name": "", "Port": "81"}), target) is True

    assert target.Name == "default"
    assert target.Port == 81


# ------------------------------------------------------------------ #
# Properties
# ------------------------------------------------------------------ #
def test_zero_eligible_fields_never_consults_source() -> None:
    source = _RecordingSource({"name": "x"})
    target = NothingEligible()

    assert AppSettingsLoader.load(source, target) is True
    assert source.calls == []
    assert target.name == "untouched"


def test_key_override_is_used_for_lookup_and_unmarked_fields_are_ignored() -> None:
    source = _RecordingSource({"ServiceName": "billing", "plain": "changed", "service_name": "wrong"})
    target = CherryPicked()

    AppSettingsLoader.load(source, target)

    assert source.calls == ["ServiceName"]
    assert target.service_name == "billing"
    assert target.plain == "plain"


def test_every_field_is_attempted_after_a_failure() -> None:
    source = _RecordingSource({"first": "bad", "second": "22", "third": "3", "fourth": "HIGH"})
    target = ManyFields()

    with pytest.raises(SettingsLoadError):
        AppSettingsLoader.load(source, target)

    assert source.calls == ["first", "second", "third", "fourth"]
    assert target.first == 1
    assert target.second == 22
    assert target.third == "3"
    assert target.fourth is Level.HIGH


def test_aggregate_count_matches_failures_and_keys_are_in_discovery_order() -> None:
    source = _RecordingSource({"first": "x", "second": "y", "third": "ok", "fourth": "MEDIUM"})

    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(source, ManyFields())

    err = exc_info.value
    assert err.count == 3
    assert len(err.exceptions) == 3
    assert err.keys == ["first", "second", "fourth"]
    assert str(err).startswith("3 errors loading settings")


def test_fetch_failure_is_recorded_and_traversal_continues() -> None:
    source = _ExplodingSource("Name", settings={"Port": "9000"})
    target = ServiceSettings()

    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(source, target)

    assert exc_info.value.keys == ["Name"]
    assert isinstance(exc_info.value.exceptions[0].error, RuntimeError)
    assert target.Port == 9000


def test_missing_values_contribute_no_failures() -> None:
    target = ManyFields()

    assert AppSettingsLoader.load(_RecordingSource({}), target) is True
    assert (target.first, target.second, target.third, target.fourth) == (1, 2, "three", Level.LOW)


def test_load_is_idempotent_for_the_same_source_values() -> None:
    source = InMemorySettingSource({"Name": "svc", "Port": "8080"})
    target = ServiceSettings()

    AppSettingsLoader.load(source, target)
    first = dict(vars(target))
    AppSettingsLoader.load(source, target)

    assert vars(target) == first


def test_connection_string_marker_on_wrong_shape_falls_through_to_scalar_conversion() -> None:
    source = _RecordingSource({"Conn": "host=a"}, connection_strings={"db": "host=a"})

    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(source, WrongConnectionShape())

    assert source.calls == ["Conn"]
    assert exc_info.value.keys == ["Conn"]
    assert isinstance(exc_info.value.exceptions[0].error, UnsupportedSettingTypeError)


def test_read_only_property_is_skipped_without_error() -> None:
    target = WithReadOnlyProperty()
    source = _RecordingSource({"Name": "n", "Computed": "ignored"})

    assert AppSettingsLoader.load(source, target) is True
    assert target.Name == "n"
    assert "Computed" not in source.calls


def test_frozen_dataclass_fields_are_skipped() -> None:
    target = FrozenSettings()

    assert AppSettingsLoader.load(InMemorySettingSource({"Name": "changed"}), target) is True
    assert target.Name == "frozen"


def test_optional_field_is_converted_to_inner_type() -> None:
    target = OptionalSettings()

    AppSettingsLoader.load(InMemorySettingSource({"Timeout": "2.5"}), target)

    assert target.Timeout == 2.5


# ------------------------------------------------------------------ #
# Report + diagnostics
# ------------------------------------------------------------------ #
def test_bind_returns_report_without_raising() -> None:
    report = AppSettingsLoader.bind(
        InMemorySettingSource({"first": "bad", "third": "x"}),
        ManyFields(),
    )

    assert report.target_type == "ManyFields"
    assert [r.status for r in report.results] == ["failed", "missing", "assigned", "missing"]
    assert [r.key for r in report.failures] == ["first"]
    assert report.failures[0].error_type == "SettingValueError"
    assert report.succeeded is False


def test_aggregate_error_carries_report() -> None:
    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(InMemorySettingSource({"Port": "x"}), ServiceSettings())

    report = exc_info.value.report
    assert report is not None
    assert report.keys_with_status("missing") == ["Name"]
    assert report.keys_with_status("failed") == ["Port"]


def test_diagnostics_are_emitted_for_loaded_missing_and_failed_fields() -> None:
    with capture_logs() as logs:
        with pytest.raises(SettingsLoadError):
            AppSettingsLoader.load(
                InMemorySettingSource({"first": "1", "second": "bad"}),
                ManyFields(),
            )

    events = [(entry["event"], entry.get("key")) for entry in logs]

    assert ("setting_loaded", "first") in events
    assert ("setting_load_failed", "second") in events
    assert ("setting_value_missing", "third") in events
    assert any(event == "settings_load_failed" for event, _ in events)

    levels = {entry["event"]: entry["log_level"] for entry in logs}
    assert levels["setting_value_missing"] == "warning"
    assert levels["setting_load_failed"] == "error"


def test_not_writable_field_logs_warning() -> None:
    with capture_logs() as logs:
        AppSettingsLoader.load(InMemorySettingSource({"Name": "x"}), FrozenSettings())

    warnings = [e for e in logs if e["event"] == "setting_member_not_writable"]
    assert len(warnings) == 1
    assert warnings[0]["log_level"] == "warning"
    assert warnings[0]["member"] == "Name"


def test_marker_inside_optional_is_found() -> None:
    target = OptionalMarkedField()

    assert AppSettingsLoader.load(InMemorySettingSource({"Timeout": "2.5", "timeout": "9"}), target) is True
    assert target.timeout == 2.5


def test_connection_strings_without_len_leave_field_untouched() -> None:
    class _NoLenSource(_RecordingSource):
        def get_connection_strings(self) -> Mapping[str, str]:
            return iter([("db", "host=a")])  # type: ignore[return-value]

    target = ConnectionSettings()

    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(_NoLenSource(), target)

    assert exc_info.value.keys == ["Conn"]
    assert "Conn" not in vars(target)
    assert target.Conn == {}


# ------------------------------------------------------------------ #
# Annotations that only resolve under TYPE_CHECKING
# ------------------------------------------------------------------ #
def test_unresolvable_sibling_does_not_hide_marked_field() -> None:
    target = PartlyResolvable()

    assert AppSettingsLoader.load(InMemorySettingSource({"ServiceName": "svc", "helper": "x"}), target) is True
    assert target.name == "svc"
    assert target.helper is None


def test_unresolvable_field_in_marked_class_fails_alone() -> None:
    source = _RecordingSource({"Name": "svc", "Port": "80", "helper": "x"})
    target = MarkedPartlyResolvable()

    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(source, target)

    assert exc_info.value.keys == ["helper"]
    assert isinstance(exc_info.value.exceptions[0].error, NameError)
    assert target.Name == "svc"
    assert target.Port == 80
    assert source.calls == ["Name", "Port"]


def test_unresolvable_marked_field_is_reported_under_its_key() -> None:
    fields = discover_fields(UnresolvableMarkedField)
    assert [(f.member_name, f.external_key) for f in fields] == [("limit", "Limit")]
    assert isinstance(fields[0].resolution_error, NameError)

    source = _RecordingSource({"Limit": "10"})
    with pytest.raises(SettingsLoadError) as exc_info:
        AppSettingsLoader.load(source, UnresolvableMarkedField())

    assert exc_info.value.keys == ["Limit"]
    assert exc_info.value.report.failures[0].error_type == "NameError"
    assert source.calls == []
