"""
appsettings/sources/base.py

The SettingSource contract consumed by AppSettingsLoader.

A source is read-only from the loader's point of view:

- get_setting(key) returns the raw text for a key, or None / "" when unset.
  Repeated calls for the same key must return the same value.
- get_connection_strings() returns every connection string as a read-only
  name -> value mapping.

Concrete sources live next to this module (memory, environment, YAML file,
remote HTTP, layered).
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class SettingSource(Protocol):
    def get_setting(self, key: str) -> Optional[str]:
        """Return the raw value for `key`, or None / "" when it is not set."""

    def get_connection_strings(self) -> Mapping[str, str]:
        """Return all connection strings as a read-only mapping."""
