"""
HTTP transport for the FileMaker Data API client.

A transport is any callable ``(method, url, headers, body, follow_redirects)``
returning an :class:`HTTPResponse`. HTTP error statuses are returned, not
raised; network failures propagate to the caller unchanged.
"""

import http.cookiejar
import logging
from typing import Protocol

import httpx

from fmdata.core.types import HTTPResponse, MultipartForm

DEFAULT_TIMEOUT = 60

logger = logging.getLogger(__name__)

Body = bytes | MultipartForm | None


class Transport(Protocol):
    def __call__(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Body = None,
        follow_redirects: bool = True,
    ) -> HTTPResponse: ...


def _cookieless_jar() -> http.cookiejar.CookieJar:
    """A cookie jar that accepts no cookies; callers replay cookies themselves."""
    return http.cookiejar.CookieJar(policy=http.cookiejar.DefaultCookiePolicy(allowed_domains=[]))


def _files(form: MultipartForm) -> list[tuple[str, tuple[str, bytes, str]]]:
    return [(part.field_name, (part.filename, part.content, part.content_type)) for part in form.parts]


class HttpxTransport:
    """Default transport built on a pooled httpx client."""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT, client: httpx.Client | None = None):
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds
            client: Preconfigured httpx client, e.g. with a mock transport

        """
        self.timeout = timeout
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            cookies=_cookieless_jar(),
        )

    def __call__(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Body = None,
        follow_redirects: bool = True,
    ) -> HTTPResponse:
        content, files = (None, _files(body)) if isinstance(body, MultipartForm) else (body, None)
        logger.debug("%s %s", method, url)

        response = self._client.request(
            method,
            url,
            headers=headers,
            content=content,
            files=files,
            follow_redirects=follow_redirects,
        )
        return HTTPResponse(
            status=response.status_code,
            headers=[(name.lower(), value) for name, value in response.headers.multi_items()],
            body=response.content,
        )

    def close(self) -> None:
        """Close pooled connections."""
        self._client.close()
