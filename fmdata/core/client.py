"""
Core HTTP client for the FileMaker Data API.

Handles configuration, session tokens, request/response and error handling.
"""

import json
import logging
import os
import time
import urllib.parse
from collections.abc import Callable
from typing import Any

from fmdata.core.errors import ProtocolError, RemoteError, ValidationError, error_from_response
from fmdata.core.session import SessionManager
from fmdata.core.transport import DEFAULT_TIMEOUT, HttpxTransport, Transport
from fmdata.core.types import ContainerResponse, HTTPResponse, MultipartForm

# Remote error code for an invalid or expired data access token
INVALID_TOKEN_CODE = "952"

logger = logging.getLogger(__name__)


def merge_headers(headers: dict[str, str] | None, defaults: dict[str, str]) -> dict[str, str]:
    """Add default headers the caller has not set (case-insensitive)."""
    merged = dict(headers or {})
    present = {name.lower() for name in merged}
    for name, value in defaults.items():
        if name.lower() not in present:
            merged[name] = value
    return merged


def _cookie_from(set_cookies: list[str]) -> str:
    """Build a Cookie header from the name=value pairs of Set-Cookie values."""
    return "; ".join(value.split(";", 1)[0].strip() for value in set_cookies)


class APIClient:
    """
    Low-level HTTP client for the FileMaker Data API.

    Handles:
    - Session tokens via a SessionManager
    - HTTP methods (GET, POST, PATCH, DELETE)
    - Error handling and response parsing
    - One transparent retry when the server reports an invalid token
    - Container downloads
    """

    def __init__(
        self,
        uri: str | None = None,
        database: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        transport: Transport | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize the API client.

        Args:
            uri: Server base URI, e.g. https://fms.example.com (or FM_DATA_URI env var)
            database: Database name (or FM_DATA_DATABASE env var)
            username: Account name (or FM_DATA_USERNAME env var)
            password: Account password (or FM_DATA_PASSWORD env var)
            timeout: Request timeout in seconds for the default transport
            transport: Transport override, mostly for tests
            clock: Source of the current time in seconds

        Raises:
            ValidationError: A required setting is missing

        """
        uri = uri or os.environ.get("FM_DATA_URI")
        database = database or os.environ.get("FM_DATA_DATABASE")
        username = username or os.environ.get("FM_DATA_USERNAME")
        password = password if password is not None else os.environ.get("FM_DATA_PASSWORD")

        missing = [
            name
            for name, value in (
                ("FM_DATA_URI", uri),
                ("FM_DATA_DATABASE", database),
                ("FM_DATA_USERNAME", username),
            )
            if not value
        ]
        # An empty password is a valid FileMaker credential
        if password is None:
            missing.append("FM_DATA_PASSWORD")
        if missing:
            raise ValidationError("Missing client configuration", {"missing": missing})

        self.uri = uri.rstrip("/")
        self.database = database
        self.timeout = timeout
        self._owned_transport = HttpxTransport(timeout) if transport is None else None
        self._transport = transport or self._owned_transport
        self.session = SessionManager(
            self._build_url("sessions"),
            username,
            password,
            self._transport,
            clock or time.time,
        )

    def _build_url(self, path: str) -> str:
        """Build full URL from a path relative to the database."""
        database = urllib.parse.quote(self.database, safe="")
        return f"{self.uri}/fmi/data/v1/databases/{database}/{path.lstrip('/')}"

    def _encode_body(self, body: Any) -> bytes | MultipartForm | None:
        if body is None or isinstance(body, (bytes, MultipartForm)):
            return body
        if isinstance(body, str):
            return body.encode("utf-8")
        return json.dumps(body).encode("utf-8")

    def _decode(self, response: HTTPResponse) -> Any:
        if not response.body:
            return None
        try:
            data = json.loads(response.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ProtocolError(f"Invalid JSON response: {e}", status=response.status)
        return data.get("response") if isinstance(data, dict) else None

    def request(
        self,
        path: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None,
        retry: bool = True,
    ) -> Any:
        """
        Make an authenticated request to the API.

        Args:
            path: Path relative to the database, e.g. layouts/foo/records
            method: HTTP method
            headers: Extra headers; they take precedence over injected ones
            body: JSON-serializable data, raw bytes, or a MultipartForm
            retry: Allow one retry with a new token on an invalid-token error

        Returns:
            The ``response`` field of the decoded JSON body

        Raises:
            RemoteError: The server rejected the request
            ProtocolError: The response could not be decoded

        """
        url = self._build_url(path)
        payload = self._encode_body(body)
        attempts = 2 if retry else 1

        for attempt in range(attempts):
            token = self.session.acquire()
            defaults = {"Authorization": f"Bearer {token}"}
            if not isinstance(payload, MultipartForm):
                defaults["Content-Type"] = "application/json"

            response = self._transport(method, url, merge_headers(headers, defaults), payload)

            if response.ok:
                self.session.touch()
                return self._decode(response)

            error = error_from_response(response.status, response.body)
            if isinstance(error, RemoteError) and error.code == INVALID_TOKEN_CODE and attempt < attempts - 1:
                logger.debug("Data access token rejected for %s %s, retrying with a new token", method, path)
                self.session.invalidate(token)
                continue
            raise error

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    @staticmethod
    def with_params(path: str, params: dict[str, Any] | None = None) -> str:
        """Append URL-encoded params to a path, skipping None values."""
        if params:
            filtered_params = {k: v for k, v in params.items() if v is not None}
            if filtered_params:
                query_string = urllib.parse.urlencode(filtered_params)
                separator = "&" if "?" in path else "?"
                path = f"{path}{separator}{query_string}"
        return path

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request."""
        return self.request(self.with_params(path, params))

    def post(self, path: str, data: Any = None) -> Any:
        """Make a POST request."""
        return self.request(path, "POST", body=data)

    def patch(self, path: str, data: Any = None) -> Any:
        """Make a PATCH request."""
        return self.request(path, "PATCH", body=data)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make a DELETE request."""
        return self.request(self.with_params(path, params), "DELETE")

    # =========================================================================
    # Containers
    # =========================================================================

    def fetch_container(self, url: str) -> ContainerResponse:
        """
        Download the contents of a container field.

        Container URLs point at the streaming service of the same host. The
        server answers the first request with a redirect that sets a session
        cookie; the request is replayed once carrying that cookie.

        Args:
            url: Container URL as returned in a record's field data

        Returns:
            ContainerResponse with content type and body

        Raises:
            ValidationError: The URL does not belong to the configured host
            ProtocolError: The download failed

        """
        target, base = url.lower(), self.uri.lower()
        if target != base and not target.startswith(base + "/"):
            raise ValidationError("Container url must start with the same url as the FileMaker host")

        headers = {"Authorization": f"Bearer {self.session.acquire()}"}
        response = self._transport("GET", url, headers, None, follow_redirects=False)

        set_cookies = response.header_list("set-cookie")
        if response.status == 302 and set_cookies:
            headers["Cookie"] = _cookie_from(set_cookies)
            response = self._transport("GET", url, headers, None, follow_redirects=False)

        if not response.ok:
            raise ProtocolError(f"Could not fetch container data (HTTP {response.status})", status=response.status)

        return ContainerResponse(content_type=response.header("content-type"), body=response.body)

    def close(self) -> None:
        """Log out and close the connections of the default transport."""
        self.session.release()
        if self._owned_transport is not None:
            self._owned_transport.close()
