"""Pytest configuration - loads .env for live tests and provides fake HTTP plumbing."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from fmdata.core.client import APIClient
from fmdata.core.types import HTTPResponse
from fmdata.sdk import Client

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

BASE_URI = "https://localhost"
DATABASE_URL = f"{BASE_URI}/fmi/data/v1/databases/db"
SESSIONS_URL = f"{DATABASE_URL}/sessions"


@dataclass
class Call:
    """A request seen by the fake transport."""

    method: str
    url: str
    headers: dict[str, str]
    body: Any
    follow_redirects: bool


class FakeTransport:
    """In-memory transport answering from queued responses per method and URL."""

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._routes: dict[tuple[str, str], list[HTTPResponse | Exception]] = {}

    def add(
        self,
        method: str,
        url: str,
        status: int = 200,
        headers: dict[str, str] | list[tuple[str, str]] | None = None,
        body: Any = None,
        repeat: int = 1,
    ) -> None:
        if isinstance(body, bytes):
            raw = body
        elif body is None:
            raw = b""
        else:
            raw = json.dumps(body).encode("utf-8")
        pairs = headers.items() if isinstance(headers, dict) else headers or []
        lowered = [(name.lower(), value) for name, value in pairs]
        for _ in range(repeat):
            self._routes.setdefault((method, url), []).append(HTTPResponse(status, list(lowered), raw))

    def fail(self, method: str, url: str, error: Exception) -> None:
        self._routes.setdefault((method, url), []).append(error)

    def login(self, token: str = "foo") -> None:
        self.add("POST", SESSIONS_URL, headers={"X-FM-Data-Access-Token": token}, body={})

    def __call__(self, method, url, headers, body=None, follow_redirects=True) -> HTTPResponse:
        self.calls.append(Call(method, url, dict(headers), body, follow_redirects))
        queue = self._routes.get((method, url))
        if not queue:
            raise AssertionError(f"Unexpected call: {method} {url}")
        result = queue.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def calls_to(self, method: str, url: str) -> list[Call]:
        return [c for c in self.calls if c.method == method and c.url == url]


class FakeClock:
    """Controllable time source in seconds."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api(transport: FakeTransport, clock: FakeClock) -> APIClient:
    return APIClient(BASE_URI, "db", "user", "pass", transport=transport, clock=clock)


@pytest.fixture
def client(transport: FakeTransport, clock: FakeClock) -> Client:
    return Client(BASE_URI, "db", "user", "pass", transport=transport, clock=clock)
