"""
appsettings/binder/settings_loader.py

WHAT THIS FILE IS FOR
---------------------
This module is the *binding engine*: it populates the public fields of a
caller-supplied settings object from a SettingSource.

Public entrypoints:

    AppSettingsLoader.load(source, target) -> True
        Raises SettingsLoadError once, after every field was attempted,
        if any field failed.

    AppSettingsLoader.bind(source, target) -> BindingReport
        Same traversal, returns the per-field results without raising
        for field failures.

PER-FIELD FLOW
--------------
For every eligible field (see field_discoverer.py), in discovery order:

1) unresolvable annotation -> recorded as failed, source not consulted
2) not writable            -> warning, skipped (not an error)
3) connection-string sink  -> source.get_connection_strings() assigned as-is
4) otherwise               -> source.get_setting(external_key)
     - None / ""           -> warning, field left untouched (not an error)
     - value               -> convert(declared_type, value), then assign
     - any exception       -> error log, recorded, traversal continues

Only argument problems (None source / target, class instead of instance)
raise immediately. Field problems are collected and surfaced together so an
operator sees every broken setting in one report.

WHAT THIS FILE IS NOT FOR
-------------------------
This module does NOT:
- Decide where values come from (sources/*)
- Implement string parsing rules (type_converter.py)
- Validate business rules on loaded values
- Cache anything between calls
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

import structlog

from appsettings.binder.errors import SettingBindingError, SettingsLoadError
from appsettings.binder.field_discoverer import FieldDescriptor, discover_fields
from appsettings.binder.type_converter import convert
from appsettings.schemas.binding_report import BindingReport, FieldBindingResult
from appsettings.sources.base import SettingSource

logger = structlog.get_logger(__name__)


class AppSettingsLoader:
    """
    Loads application settings into your own settings class.

    Usage:

        @AppSetting()
        class Settings:
            name: str = "svc"
            port: int = 80

        settings = Settings()
        AppSettingsLoader.load(EnvironmentSettingSource(prefix="MYAPP_"), settings)
    """

    @staticmethod
    def load(source: SettingSource, target: Any) -> bool:
        """
        Load every eligible field of `target` from `source`.

        Returns:
            True when every attempted field loaded (missing values and
            unwritable fields are not failures).

        Raises:
            ValueError: source or target is None, or target is a class.
            SettingsLoadError: one or more fields failed; raised after
                all fields were attempted.
        """
        report, errors = AppSettingsLoader._bind(source, target)

        if errors:
            logger.error(
                "settings_load_failed",
                target=report.target_type,
                error_count=len(errors),
                keys=[e.key for e in errors],
            )
            raise SettingsLoadError(f"{len(errors)} errors loading settings", errors, report)

        return True

    @staticmethod
    def bind(source: SettingSource, target: Any) -> BindingReport:
        report, _ = AppSettingsLoader._bind(source, target)
        return report

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _bind(source: SettingSource, target: Any) -> Tuple[BindingReport, List[SettingBindingError]]:
        if source is None:
            raise ValueError("source is required")
        if target is None:
            raise ValueError("target is required")
        if isinstance(target, type):
            raise ValueError("target must be a settings instance, not a class")

        target_type = type(target)
        report = BindingReport(target_type=target_type.__qualname__)
        errors: List[SettingBindingError] = []

        for field in discover_fields(target_type):
            result, error = AppSettingsLoader._bind_field(source, target, field)
            report.results.append(result)
            if error is not None:
                errors.append(error)

        logger.info(
            "settings_loaded" if not errors else "settings_loaded_with_errors",
            target=report.target_type,
            assigned=report.keys_with_status("assigned"),
            missing=report.keys_with_status("missing"),
            skipped=report.keys_with_status("not_writable"),
            error_count=len(errors),
        )
        return report, errors

    @staticmethod
    def _bind_field(
        source: SettingSource,
        target: Any,
        field: FieldDescriptor,
    ) -> Tuple[FieldBindingResult, Optional[SettingBindingError]]:
        key = field.external_key

        logger.info("setting_member_loading", member=field.member_name, key=key)

        if field.resolution_error is not None:
            exc = field.resolution_error
            logger.error(
                "setting_type_unresolved",
                key=key,
                member=field.member_name,
                annotation=str(field.declared_type),
                error=str(exc),
            )
            result = _result(field, "failed", error_type=type(exc).__name__, error_message=str(exc))
            return result, SettingBindingError(key, field.member_name, exc)

        if not field.writable:
            logger.warning(
                "setting_member_not_writable",
                target=type(target).__qualname__,
                member=field.member_name,
            )
            return _result(field, "not_writable"), None

        try:
            if field.is_connection_string_collection:
                connection_strings = source.get_connection_strings()
                count = len(connection_strings)
                setattr(target, field.member_name, connection_strings)
                logger.info(
                    "setting_connection_strings_loaded",
                    member=field.member_name,
                    count=count,
                )
                return _result(field, "connection_strings"), None

            raw = source.get_setting(key)
            if raw is None or raw == "":
                logger.warning("setting_value_missing", key=key, member=field.member_name)
                return _result(field, "missing"), None

            value = convert(field.declared_type, raw)
            setattr(target, field.member_name, value)

        except Exception as exc:  # noqa: BLE001
            logger.error(
                "setting_load_failed",
                key=key,
                member=field.member_name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            result = _result(field, "failed", error_type=type(exc).__name__, error_message=str(exc))
            return result, SettingBindingError(key, field.member_name, exc)

        logger.info("setting_loaded", key=key, member=field.member_name)
        return _result(field, "assigned"), None


def _result(field: FieldDescriptor, status: str, **error: Optional[str]) -> FieldBindingResult:
    return FieldBindingResult(
        member_name=field.member_name,
        key=field.external_key,
        status=status,
        **error,
    )
