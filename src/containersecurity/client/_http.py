"""Shared JSON REST plumbing for the Google API clients."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator, Optional
from urllib.parse import urljoin

import httpx
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request

from containersecurity.errors import RemoteServiceError

logger = logging.getLogger(__name__)


def error_message(response: httpx.Response) -> str:
    """Render ``"<status> <reason>"`` plus the API error message if any."""
    message = f"{response.status_code} {response.reason_phrase}"
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        detail = body["error"].get("message")
        if detail:
            message = f"{message}\n{detail}"
    elif response.text:
        message = f"{message}\n{response.text}"
    return message


class GoogleApiClient:
    """Base class for an authenticated JSON API client."""

    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        http: httpx.Client,
    ) -> None:
        self.base_url = base_url
        self._credentials = credentials
        self._http = http

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        try:
            if not self._credentials.valid:
                self._credentials.refresh(Request())
        except GoogleAuthError as e:
            raise RemoteServiceError(f"Failed to refresh access token: {e}") from e
        self._credentials.apply(headers)
        return headers

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return urljoin(self.base_url, path)

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Send an authenticated request.

        Raises:
            RemoteServiceError: On transport failure or a non-2xx status.
        """
        url = self._url(path)
        request_headers = self._auth_headers()
        if headers:
            request_headers.update(headers)
        try:
            response = self._http.request(
                method, url, params=params, json=body, headers=request_headers
            )
        except httpx.RequestError as e:
            raise RemoteServiceError(f"{method} {url} failed: {e}") from e

        if response.is_error:
            message = error_message(response)
            logger.debug("%s %s returned %s", method, url, response.status_code)
            raise RemoteServiceError(message, status_code=response.status_code)
        return response

    def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return self._request("GET", path, params=params).json()

    def _paginate(self, path: str, items_key: str) -> Iterator[dict[str, Any]]:
        """Yield every item of a paginated list response."""
        params: dict[str, Any] = {}
        while True:
            data = self._get_json(path, params=params)
            yield from data.get(items_key, [])
            token = data.get("nextPageToken")
            if not token:
                return
            params = {"pageToken": token}
