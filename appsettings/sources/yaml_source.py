"""
appsettings/sources/yaml_source.py

WHAT THIS FILE IS FOR
---------------------
SettingSource backed by a YAML document on disk, typically used for local
defaults that environment variables override (see default_source.py).

FILE FORMAT
-----------
    appSettings:
      Name: svc
      Port: 8080
      Enabled: true
    connectionStrings:
      db: "host=a;port=5432"

snake_case section names (app_settings / connection_strings) are accepted
as well.

YAML scalars are handed to the binder as text, so the binder's type
conversion stays the single parsing step:
- booleans  -> "true" / "false"
- dates     -> ISO 8601
- null      -> treated as not set
- numbers   -> str(value)

LOAD BEHAVIOR
-------------
- The file is read once, on first use, and kept for the source's lifetime
- A missing file, or a document that is not a mapping, logs a warning and
  behaves as an empty source
- Malformed YAML logs an error and behaves as an empty source
"""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import structlog
import yaml

logger = structlog.get_logger(__name__)

SETTINGS_SECTIONS = ("appSettings", "app_settings")
CONNECTION_STRING_SECTIONS = ("connectionStrings", "connection_strings")


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dt.date, dt.datetime, dt.time)):
        return value.isoformat()
    return str(value)


def _section(document: Dict[str, Any], names: tuple[str, ...], path: Path) -> Dict[str, Any]:
    for name in names:
        section = document.get(name)
        if section is None:
            continue
        if isinstance(section, dict):
            return section
        logger.warning("settings_yaml_section_not_dict", path=str(path), section=name)
    return {}


class YamlFileSettingSource:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._document: Optional[Dict[str, Any]] = None

    def get_setting(self, key: str) -> Optional[str]:
        settings = _section(self._load(), SETTINGS_SECTIONS, self.path)
        return _to_text(settings.get(key))

    def get_connection_strings(self) -> Mapping[str, str]:
        section = _section(self._load(), CONNECTION_STRING_SECTIONS, self.path)
        out: Dict[str, str] = {}
        for name, value in section.items():
            text = _to_text(value)
            if text is not None:
                out[str(name)] = text
        return MappingProxyType(out)

    def _load(self) -> Dict[str, Any]:
        if self._document is None:
            self._document = self._read()
        return self._document

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.warning("settings_yaml_missing", expected=str(self.path))
            return {}

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                logger.warning(
                    "settings_yaml_not_dict",
                    path=str(self.path),
                    type=type(data).__name__,
                )
                return {}
            logger.info("settings_yaml_loaded", path=str(self.path))
            return data
        except Exception as exc:  # noqa: BLE001
            logger.error("settings_yaml_load_error", path=str(self.path), error=str(exc))
            return {}
