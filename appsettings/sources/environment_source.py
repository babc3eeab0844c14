"""
appsettings/sources/environment_source.py

WHAT THIS FILE IS FOR
---------------------
SettingSource reading process environment variables.

Lookup rules:
- get_setting("Port") reads  {prefix}Port           e.g. MYAPP_Port
- connection strings are all variables starting with connection_string_prefix,
  keyed by the remainder of the name:

      CONNSTR_db=host=a;port=5432   ->  {"db": "host=a;port=5432"}

Names are matched exactly (case-sensitive), as the operating system stores
them.

The environment is read at call time so that values exported after the
source was created are still visible.
"""

from __future__ import annotations

import os
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_CONNECTION_STRING_PREFIX = "CONNSTR_"


class EnvironmentSettingSource:
    def __init__(
        self,
        prefix: str = "",
        connection_string_prefix: str = DEFAULT_CONNECTION_STRING_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not connection_string_prefix:
            raise ValueError("connection_string_prefix must not be empty")

        self.prefix = prefix
        self.connection_string_prefix = connection_string_prefix
        self._environ = environ if environ is not None else os.environ

    def get_setting(self, key: str) -> Optional[str]:
        return self._environ.get(f"{self.prefix}{key}")

    def get_connection_strings(self) -> Mapping[str, str]:
        start = len(self.connection_string_prefix)
        found = {
            name[start:]: value
            for name, value in self._environ.items()
            if name.startswith(self.connection_string_prefix) and len(name) > start
        }
        return MappingProxyType(found)
