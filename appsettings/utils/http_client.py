"""
appsettings/utils/http_client.py

WHAT THIS FILE IS FOR
---------------------
Minimal synchronous HTTP client used by RemoteSettingSource to fetch a
settings document from a configuration service.

It exists to:
- Keep raw `requests.get(...)` calls out of the source implementation
- Standardize timeout handling

This client is intentionally kept *very thin*: no retries, no logging and
no payload interpretation. RemoteSettingSource owns those.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Union

import requests

# Timeout can be:
# - single float -> applied to both connect + read
# - (connect_timeout, read_timeout)
TimeoutType = Union[float, Tuple[float, float]]


class HttpClient:
    def __init__(self, timeout_seconds: TimeoutType = 10):
        self.timeout_seconds = timeout_seconds

    def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout_seconds: Optional[TimeoutType] = None,
    ) -> requests.Response:
        """
        Send a GET request.

        Raises:
            requests.RequestException:
                Any network-level error (timeout, DNS, connection error).
                Caller is responsible for translating it.
        """
        return requests.get(
            url,
            headers=headers or {},
            timeout=timeout_seconds if timeout_seconds is not None else self.timeout_seconds,
        )
