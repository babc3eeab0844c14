"""
appsettings/binder/markers.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *declarative binding marker* used to tell the
settings loader which members of a class should be populated.

The same marker is used at two levels:

- Structure level (class decorator):

      @AppSetting()
      class Settings:
          name: str
          port: int

  Every public field declared on the decorated class is a binding candidate.

- Field level (typing.Annotated metadata):

      class Settings:
          name: Annotated[str, AppSetting(key="ServiceName")]
          databases: Annotated[Mapping[str, str], AppSetting(is_connection_string=True)]
          internal_only: str = "not bound"

  Only annotated fields are candidates when the class itself is unmarked.

Recognized options:
- key:
    Overrides the external lookup name (defaults to the member name).
- is_connection_string:
    Marks the field as the connection-string sink. Only honored when the
    field type is exactly Mapping[str, str].

WHAT THIS FILE IS NOT FOR
-------------------------
This module does NOT inspect classes or read values. Discovery lives in
field_discoverer.py and binding in settings_loader.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypeVar

MARKER_ATTRIBUTE = "__app_setting__"

C = TypeVar("C", bound=type)


@dataclass(frozen=True)
class AppSetting:
    """
    Binding marker for a settings class or one of its fields.
    """

    key: Optional[str] = None
    is_connection_string: bool = False

    def __call__(self, cls: C) -> C:
        if not isinstance(cls, type):
            raise TypeError("AppSetting can only decorate a class")
        # stored in the class __dict__ so subclasses do not inherit the marker
        setattr(cls, MARKER_ATTRIBUTE, self)
        return cls


def get_class_marker(cls: type) -> Optional[AppSetting]:
    """Return the marker declared directly on `cls` (not inherited)."""
    marker = cls.__dict__.get(MARKER_ATTRIBUTE)
    return marker if isinstance(marker, AppSetting) else None


def find_marker(metadata: tuple[Any, ...]) -> Optional[AppSetting]:
    for item in metadata:
        if isinstance(item, AppSetting):
            return item
    return None
