"""
appsettings/sources/layered_source.py

SettingSource combining several sources with "last wins" precedence:

    LayeredSettingSource(yaml_defaults, environment)

- get_setting(key): scans from the last source to the first and returns the
  first non-empty value
- get_connection_strings(): merges every source's mapping in order, later
  sources overriding earlier names
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Optional

from appsettings.sources.base import SettingSource


class LayeredSettingSource:
    def __init__(self, *sources: SettingSource) -> None:
        if not sources:
            raise ValueError("at least one source is required")
        self.sources = tuple(sources)

    def get_setting(self, key: str) -> Optional[str]:
        for source in reversed(self.sources):
            value = source.get_setting(key)
            if value is not None and value != "":
                return value
        return None

    def get_connection_strings(self) -> Mapping[str, str]:
        merged: Dict[str, str] = {}
        for source in self.sources:
            merged.update(source.get_connection_strings())
        return MappingProxyType(merged)
