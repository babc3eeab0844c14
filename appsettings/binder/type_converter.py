"""
appsettings/binder/type_converter.py

WHAT THIS FILE IS FOR
---------------------
This module is the *coercion capability* of the settings binder:

    convert(target_type, raw) -> value

It turns one raw string from a setting source into a value of the declared
field type, or fails with a descriptive error.

SUPPORTED TYPES
---------------
The supported set is closed:

- int, float, decimal.Decimal, bool, str
- datetime.datetime, datetime.date, datetime.time, datetime.timedelta
- uuid.UUID
- any enum.Enum subclass
- Optional[X] of the above
- Annotated[X, ...] of the above (pydantic constraints are honored, so
  `NonNegativeInt` models an unsigned integer)

Scalar parsing is delegated to pydantic TypeAdapter in lax mode, so e.g.
"8080" -> 8080, "yes"/"true"/"1" -> True, ISO 8601 strings -> datetime.

Enumerations are parsed by member name (exact, then case-insensitive) or
by the string form of a member value ("2" -> Color.GREEN when GREEN = 2).

FAILURE MODES
-------------
- UnsupportedSettingTypeError: the type is outside the supported set
- SettingValueError: the value does not parse (pydantic error as __cause__)

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT read sources, log, or assign fields. It is a pure
conversion utility and can be swapped without touching the binder.
"""

from __future__ import annotations

import datetime as dt
import enum
import types
import uuid
from decimal import Decimal
from functools import lru_cache
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import TypeAdapter, ValidationError

from appsettings.binder.errors import SettingValueError, UnsupportedSettingTypeError

SCALAR_TYPES = frozenset(
    {
        int,
        float,
        Decimal,
        bool,
        str,
        dt.datetime,
        dt.date,
        dt.time,
        dt.timedelta,
        uuid.UUID,
    }
)


def _strip_optional(target_type: Any) -> Any:
    origin = get_origin(target_type)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(target_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return target_type


def _base_type(target_type: Any) -> Any:
    """Unwrap Optional[...] and Annotated[...] down to the plain type."""
    tp = _strip_optional(target_type)
    if get_origin(tp) is Annotated:
        tp = _strip_optional(get_args(tp)[0])
    return tp


def is_supported_type(target_type: Any) -> bool:
    base = _base_type(target_type)
    if isinstance(base, type) and issubclass(base, enum.Enum):
        return True
    return base in SCALAR_TYPES


@lru_cache(maxsize=128)
def _adapter(target_type: Any) -> TypeAdapter:
    return TypeAdapter(target_type)


def _convert_enum(enum_type: type[enum.Enum], raw: str) -> enum.Enum:
    text = raw.strip()

    if text in enum_type.__members__:
        return enum_type.__members__[text]

    folded = text.casefold()
    for name, member in enum_type.__members__.items():
        if name.casefold() == folded:
            return member

    # underlying value, e.g. "2" for an int-valued member
    for member in enum_type:
        if str(member.value) == text:
            return member

    names = ", ".join(enum_type.__members__)
    raise SettingValueError(enum_type, raw, f"expected one of [{names}] or a member value")


def convert(target_type: Any, raw: str) -> Any:
    """
    Convert `raw` into a value of `target_type`.

    Raises:
        UnsupportedSettingTypeError: target_type is outside the supported set.
        SettingValueError: raw is not a valid value for target_type.
    """
    if not is_supported_type(target_type):
        raise UnsupportedSettingTypeError(target_type)

    base = _base_type(target_type)
    if isinstance(base, type) and issubclass(base, enum.Enum):
        return _convert_enum(base, raw)

    try:
        adapter = _adapter(_strip_optional(target_type))
    except TypeError:
        # unhashable Annotated metadata; build an uncached adapter
        adapter = TypeAdapter(_strip_optional(target_type))

    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        reason = "; ".join(err.get("msg", "") for err in exc.errors()) or str(exc)
        raise SettingValueError(base, raw, reason) from exc
