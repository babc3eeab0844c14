"""
appsettings/sources/remote_source.py

WHAT THIS FILE IS FOR
---------------------
SettingSource that reads settings from a remote configuration service over
HTTP GET.

EXPECTED PAYLOAD
----------------
    {
      "settings": {"Name": "svc", "Port": "8080"},
      "connectionStrings": {"db": "host=a"}
    }

Accepted variants (services in the wild are not consistent):
- "appSettings" / "app_settings" instead of "settings"
- "connection_strings" instead of "connectionStrings"
- the whole document wrapped as {"data": {...}}

Non-string scalar values are handed over as text ("true"/"false" for
booleans), null is treated as not set.

FETCH BEHAVIOR
--------------
- The document is fetched lazily on first use and cached after the first
  successful fetch
- Retries: max_retries=2 => attempts=3
- Exhausted retries raise RuntimeError; the loader records it against the
  field that triggered the fetch and moves on
- A failed fetch is remembered for the source's lifetime: later calls
  re-raise it without going back to the network
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import structlog

from appsettings.utils.http_client import HttpClient

logger = structlog.get_logger(__name__)


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _first_dict(payload: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, dict):
            return value
    return {}


class RemoteSettingSource:
    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        if not url:
            raise ValueError("url is required")

        self.url = url
        self._max_retries = max_retries
        self.http = http_client or HttpClient(timeout_seconds=timeout_seconds)
        self._settings: Optional[Dict[str, Any]] = None
        self._connection_strings: Optional[Dict[str, Any]] = None
        self._fetch_error: Optional[Exception] = None

    def get_setting(self, key: str) -> Optional[str]:
        self._ensure_loaded()
        assert self._settings is not None
        return _to_text(self._settings.get(key))

    def get_connection_strings(self) -> Mapping[str, str]:
        self._ensure_loaded()
        assert self._connection_strings is not None
        out: Dict[str, str] = {}
        for name, value in self._connection_strings.items():
            text = _to_text(value)
            if text is not None:
                out[str(name)] = text
        return MappingProxyType(out)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _ensure_loaded(self) -> None:
        if self._settings is not None:
            return

        if self._fetch_error is not None:
            raise RuntimeError(f"Could not fetch settings from {self.url}") from self._fetch_error

        try:
            payload = self._fetch()
        except RuntimeError as exc:
            self._fetch_error = exc.__cause__ if isinstance(exc.__cause__, Exception) else exc
            raise

        # Normalize {"data": {...}} so the section lookup doesn't guess structure.
        inner = payload.get("data")
        if isinstance(inner, dict):
            payload = inner

        self._settings = _first_dict(payload, "settings", "appSettings", "app_settings")
        self._connection_strings = _first_dict(payload, "connectionStrings", "connection_strings")

    def _fetch(self) -> Dict[str, Any]:
        last_exc: Exception | None = None

        for attempt in range(1, self._max_retries + 2):
            try:
                resp = self.http.get(self.url, headers={"Accept": "application/json"})

                if resp.status_code >= 400:
                    snippet = (resp.text or "")[:500]
                    logger.warning(
                        "settings_remote_http_error",
                        url=self.url,
                        attempt=attempt,
                        status_code=resp.status_code,
                        response_snippet=snippet,
                    )
                    resp.raise_for_status()

                data = resp.json()
                if not isinstance(data, dict):
                    raise TypeError(f"Settings document must be a JSON object, got {type(data).__name__}")

                logger.info("settings_remote_loaded", url=self.url, attempt=attempt)
                return data

            except Exception as exc:  # noqa: BLE001
                last_exc = exc
                logger.warning(
                    "settings_remote_attempt_failed",
                    url=self.url,
                    attempt=attempt,
                    max_retries=self._max_retries,
                    error=str(exc),
                )

        logger.error(
            "settings_remote_exhausted_retries",
            url=self.url,
            attempts=self._max_retries + 1,
            error=str(last_exc),
        )
        raise RuntimeError(f"Could not fetch settings from {self.url}") from last_exc
