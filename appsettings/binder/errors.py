"""
appsettings/binder/errors.py

Exception types raised by the settings binder.

- UnsupportedSettingTypeError / SettingValueError:
    raised by the type converter for a single value.
- SettingBindingError:
    one failed field, tagged with its external key. The underlying
    converter or source error is attached as __cause__.
- SettingsLoadError:
    the aggregate raised once by AppSettingsLoader.load after every field
    has been attempted.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class UnsupportedSettingTypeError(TypeError):
    """The declared field type is not one the converter can produce."""

    def __init__(self, target_type: Any):
        self.target_type = target_type
        super().__init__(f"Unsupported setting type: {target_type!r}")


class SettingValueError(ValueError):
    """The raw value could not be parsed as the declared type."""

    def __init__(self, target_type: Any, raw: str, reason: str):
        self.target_type = target_type
        self.raw = raw
        self.reason = reason
        type_name = getattr(target_type, "__name__", repr(target_type))
        super().__init__(f"Cannot convert {raw!r} to {type_name}: {reason}")


class SettingBindingError(Exception):
    def __init__(self, key: str, member_name: str, error: BaseException):
        self.key = key
        self.member_name = member_name
        self.error = error
        super().__init__(f"Loading setting {key} ({member_name}) failed: {error}")
        self.__cause__ = error


class SettingsLoadError(ExceptionGroup):
    """
    Aggregate of every SettingBindingError from one load call.

    `report` carries the full per-field BindingReport (assigned, missing,
    skipped and failed fields) so callers can present it to operators.
    """

    def __new__(
        cls,
        message: str,
        exceptions: Sequence[SettingBindingError],
        report: Optional[Any] = None,
    ):
        obj = super().__new__(cls, message, exceptions)
        obj.report = report
        return obj

    def __init__(
        self,
        message: str,
        exceptions: Sequence[SettingBindingError],
        report: Optional[Any] = None,
    ):
        # ExceptionGroup.__init__ rejects keyword arguments
        super().__init__(message, exceptions)

    def derive(self, excs):
        return SettingsLoadError(self.message, excs, self.report)

    @property
    def keys(self) -> list[str]:
        return [getattr(exc, "key", "") for exc in self.exceptions]

    @property
    def count(self) -> int:
        return len(self.exceptions)
