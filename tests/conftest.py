"""Pytest configuration - loads .env for live tests and fakes the Geocore server for unit tests."""

from pathlib import Path
from typing import Any

import httpx
import pytest
from dotenv import load_dotenv

from geocore.core.client import APIClient
from geocore.sdk import GeocoreClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

BASE_URL = "http://geocore.test/api"
PROJECT_ID = "PRO-TEST-1"

CONFIG_ENV_VARS = ("GEOCORE_BASE_URL", "GEOCORE_PROJECT_ID", "GEOCORE_ACCESS_TOKEN", "GEOCORE_TIMEOUT")


class FakeServer:
    """
    Stand-in for the Geocore service behind an httpx.MockTransport.

    Every request is recorded. The reply is a success envelope around
    ``result`` unless the test sets ``status_code``/``body``/``text`` or an
    ``error`` to raise instead.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.result: Any = {"id": "OBJ-1"}
        self.status_code = 200
        self.body: Any = None
        self.text: str | None = None
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        body = self.body if self.body is not None else {"status": "success", "result": self.result}
        return httpx.Response(self.status_code, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_url(self) -> str:
        return str(self.last.url)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's .env from leaking config into unit tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def api(server) -> APIClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    return APIClient(base_url=BASE_URL, project_id=PROJECT_ID, http_client=http_client)


@pytest.fixture
def client(server) -> GeocoreClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    return GeocoreClient(base_url=BASE_URL, project_id=PROJECT_ID, http_client=http_client)
