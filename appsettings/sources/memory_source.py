from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional


class InMemorySettingSource:
    """
    SettingSource backed by plain dicts.

    Useful for tests and for applications that already hold their settings
    in memory (e.g. parsed from a custom format).
    """

    def __init__(
        self,
        settings: Optional[Mapping[str, Optional[str]]] = None,
        connection_strings: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._settings = dict(settings or {})
        self._connection_strings = MappingProxyType(dict(connection_strings or {}))

    def get_setting(self, key: str) -> Optional[str]:
        return self._settings.get(key)

    def get_connection_strings(self) -> Mapping[str, str]:
        return self._connection_strings
