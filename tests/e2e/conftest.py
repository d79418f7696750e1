"""
E2E fixtures: FastAPI app over an in-memory store and a mocked NBS API.

- bank: set bank.handler per test to control what the NBS API answers
- client: TestClient (lifespan runs, so app.state.context exists)
"""

from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from ipsqr.api.client import NbsQrClient
from ipsqr.app.context import AppContext
from ipsqr.app.main import create_app
from ipsqr.core.storage import MemoryStore

Handler = Callable[[httpx.Request], httpx.Response]


class MockBank:
    """Programmable stand-in for the NBS QR API."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler: Handler = lambda request: httpx.Response(
            200, json={"s": {"code": 0, "desc": "OK"}}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def bank() -> MockBank:
    return MockBank()


@pytest.fixture
def e2e_config_path(tmp_path: Path) -> Path:
    """Minimal config: no debounce so language tests can switch freely."""
    path = tmp_path / "config.yaml"
    path.write_text("language:\n  debounce_seconds: 0\n", encoding="utf-8")
    return path


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def client(
    bank: MockBank, store: MemoryStore, e2e_config_path: Path
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient."""
    app = create_app(
        config_path=e2e_config_path,
        store=store,
        client=NbsQrClient(transport=httpx.MockTransport(bank)),
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def context(client: TestClient) -> AppContext:
    return client.app.state.context
