"""
Session token management for the FileMaker Data API.

The Data API hands out a bearer token in exchange for Basic-Auth
credentials. Tokens expire after 15 minutes without use, so a cached token
is only reused while it was last used less than 14 minutes ago.
"""

import base64
import logging
import threading
import time
from collections.abc import Callable

from fmdata.core.errors import ProtocolError, error_from_response
from fmdata.core.transport import Transport

FRESHNESS_WINDOW = 14 * 60
TOKEN_HEADER = "X-FM-Data-Access-Token"

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Owns the data access token of one client.

    Token and last-use timestamp are only read and written under a lock, so
    concurrent callers never see one updated without the other. Callers that
    find the token stale while an exchange is in flight wait for it and reuse
    its result.
    """

    def __init__(
        self,
        sessions_url: str,
        username: str,
        password: str,
        transport: Transport,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the session manager.

        Args:
            sessions_url: Full URL of the database's ``sessions`` endpoint
            username: FileMaker account name
            password: FileMaker account password
            transport: Transport used for the session calls
            clock: Source of the current time in seconds

        """
        self._sessions_url = sessions_url
        self._username = username
        self._password = password
        self._transport = transport
        self._clock = clock
        self._lock = threading.Lock()
        self._token: str | None = None
        self._last_call = 0.0

    @property
    def token(self) -> str | None:
        """The cached token, fresh or not."""
        return self._token

    def _basic_auth(self) -> str:
        credentials = f"{self._username}:{self._password}".encode()
        return "Basic " + base64.b64encode(credentials).decode("ascii")

    def _is_fresh(self) -> bool:
        return self._token is not None and self._clock() - self._last_call < FRESHNESS_WINDOW

    def acquire(self) -> str:
        """
        Return a valid token, logging in if needed.

        Raises:
            RemoteError: The server rejected the credentials
            ProtocolError: The server accepted the login but issued no token

        """
        with self._lock:
            if self._is_fresh():
                return self._token

            if self._token is not None:
                logger.debug("Data access token is stale, requesting a new one")

            response = self._transport(
                "POST",
                self._sessions_url,
                {"Content-Type": "application/json", "Authorization": self._basic_auth()},
                b"{}",
            )
            if not response.ok:
                raise error_from_response(response.status, response.body)

            token = response.header(TOKEN_HEADER)
            if not token:
                raise ProtocolError("Could not get token", status=response.status)

            logger.debug("Acquired new data access token")
            self._token = token
            self._last_call = self._clock()
            return token

    def touch(self) -> None:
        """Record a successful request, extending the token's freshness."""
        with self._lock:
            if self._token is not None:
                self._last_call = self._clock()

    def invalidate(self, token: str | None = None) -> None:
        """
        Forget the cached token.

        Args:
            token: Only forget the cache if it still holds this token

        """
        with self._lock:
            if token is None or token == self._token:
                self._token = None
                self._last_call = 0.0

    def release(self) -> None:
        """Log out of the current session. Never raises."""
        with self._lock:
            token, self._token, self._last_call = self._token, None, 0.0

        if token is None:
            return

        try:
            response = self._transport(
                "DELETE",
                f"{self._sessions_url}/{token}",
                {"Content-Type": "application/json"},
            )
        except Exception as e:
            logger.debug("Ignoring failure while closing session: %s", e)
            return

        if not response.ok:
            logger.debug("Ignoring HTTP %s while closing session", response.status)
