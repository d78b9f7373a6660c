"""Small JSON-over-HTTP client for the backend collaborators.

Covers the status handling every collaborator shares: 503 is reported as
``CollaboratorUnavailable`` (offline mode), other non-2xx responses and
network failures as ``CollaboratorError``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import HTTPRedirectHandler, Request, build_opener, urlopen

from ..errors import CollaboratorError, CollaboratorUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpConfig:
    base_url: str
    timeout_s: float = 10.0


class _NoRedirect(HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        return None


def _error_message(e: HTTPError) -> str:
    fallback = f"HTTP error! status: {e.code}"
    try:
        body = e.read().decode("utf-8")
    except OSError:
        return fallback
    try:
        payload = json.loads(body) if body else None
    except json.JSONDecodeError:
        return fallback
    if isinstance(payload, dict) and payload.get("error"):
        error = payload["error"]
        if isinstance(error, dict):
            return str(error.get("message") or error.get("name") or json.dumps(error))
        return str(error)
    return fallback


class JsonHttpClient:
    """Minimal JSON client bound to one base URL."""

    def __init__(self, cfg: HttpConfig) -> None:
        self._cfg = cfg
        self._base = cfg.base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base

    def url_for(self, path: str, params: dict[str, Any] | None = None) -> str:
        url = f"{self._base}/{path.lstrip('/')}"
        if params:
            query = {k: v for k, v in params.items() if v is not None}
            if query:
                url = f"{url}?{urlencode(query)}"
        return url

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None, body: Any) -> Request:
        headers = {"Accept": "application/json"}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        return Request(self.url_for(path, params), data=data, method=method, headers=headers)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` when empty)."""
        req = self._request(method, path, params=params, body=body)
        logger.debug("%s %s", method, req.full_url)
        try:
            with urlopen(req, timeout=self._cfg.timeout_s) as resp:
                raw = resp.read().decode("utf-8")
        except HTTPError as e:
            if e.code == 503:
                raise CollaboratorUnavailable() from e
            raise CollaboratorError(_error_message(e), status=e.code) from e
        except URLError as e:
            raise CollaboratorError(f"Connection error: {e.reason}") from e
        except (OSError, TimeoutError) as e:
            raise CollaboratorError(f"Connection error: {e}") from e

        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CollaboratorError(f"Invalid JSON response from {req.full_url}") from e

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Any) -> Any:
        return self.request("POST", path, body=body)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def get_redirect(self, path: str, *, params: dict[str, Any] | None = None) -> str:
        """Return the ``Location`` of a redirect response without following it."""
        req = self._request("GET", path, params=params, body=None)
        opener = build_opener(_NoRedirect)
        try:
            with opener.open(req, timeout=self._cfg.timeout_s) as resp:
                status = resp.status
        except HTTPError as e:
            if 300 <= e.code < 400 and e.headers.get("Location"):
                return e.headers["Location"]
            if e.code == 503:
                raise CollaboratorUnavailable() from e
            raise CollaboratorError(_error_message(e), status=e.code) from e
        except URLError as e:
            raise CollaboratorError(f"Connection error: {e.reason}") from e
        except (OSError, TimeoutError) as e:
            raise CollaboratorError(f"Connection error: {e}") from e
        raise CollaboratorError(f"Expected a redirect, got status {status}", status=status)
