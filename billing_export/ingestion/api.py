"""Thin client for the UCRM REST API."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from billing_export.core.errors import ApiError, ExportConfigError
from billing_export.core.utils import get_config_value, load_env_file

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = Path("secrets/ucrm.env")
DEFAULT_TIMEOUT = 30.0
_ENV_LOADED = False


def ensure_env_loaded() -> None:
    """Load API credentials from a local env file once per process."""

    global _ENV_LOADED
    if _ENV_LOADED:
        return

    _ENV_LOADED = True
    env_path = Path(os.getenv("BILLING_EXPORT_ENV_FILE", DEFAULT_ENV_FILE)).expanduser()
    load_env_file(env_path)


class CrmApi:
    """Fetch JSON resources and PDF documents from a UCRM instance."""

    def __init__(
        self,
        base_url: str,
        app_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"X-Auth-App-Key": app_key, "Accept": "application/json"})

    @classmethod
    def from_env(cls) -> "CrmApi":
        ensure_env_loaded()
        base_url = get_config_value("UCRM_API_URL")
        app_key = get_config_value("UCRM_APP_KEY")
        if not base_url or not app_key:
            raise ExportConfigError("UCRM_API_URL and UCRM_APP_KEY must be configured")
        try:
            timeout = float(get_config_value("UCRM_TIMEOUT", str(DEFAULT_TIMEOUT)))
        except ValueError as exc:
            raise ExportConfigError("UCRM_TIMEOUT must be a number of seconds") from exc
        return cls(base_url, app_key, timeout=timeout)

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise ApiError(f"GET {path} failed with status {status}", status_code=status) from exc
        except requests.RequestException as exc:
            raise ApiError(f"GET {path} failed: {exc}") from exc
        return response

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Return the decoded JSON body of ``GET path``."""

        logger.debug("GET %s %s", path, params or "")
        response = self._request(path, params)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"GET {path} returned invalid JSON") from exc

    def get_bytes(self, path: str) -> bytes:
        """Return the raw body of ``GET path`` (used for PDF downloads)."""

        logger.debug("GET %s (binary)", path)
        return self._request(path).content
