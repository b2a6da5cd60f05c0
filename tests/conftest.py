"""
Pytest configuration and fixtures for the PO Dashboard client tests.

HTTP is served by FakeApi through httpx.MockTransport, so no server is
needed. Every test gets its own credential slot under tmp_path.
"""

import inspect
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

from po_dashboard.models.session import Credential, Identity
from po_dashboard.services.api_client import ApiClient
from po_dashboard.services.session_controller import SessionController
from po_dashboard.services.session_store import SessionStore

BASE_URL = "http://testserver"


class FakeApi:
    """
    Routes requests to per-endpoint handlers and records them.

    A handler receives the httpx.Request and returns an httpx.Response,
    either directly or from a coroutine. Unrouted paths answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Callable[[httpx.Request], Any]] = {}

    def route(self, method: str, path: str, handler: Callable[[httpx.Request], Any]) -> None:
        self._routes[(method, path)] = handler

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        self.requests.append(request)
        handler = self._routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def page_payload(
    items: list[dict],
    total_count: int | None = None,
    total_pages: int = 1,
    page: int = 1,
) -> dict:
    """Build a `GET /api/merged-data` response body."""
    return {
        "items": items,
        "total_count": len(items) if total_count is None else total_count,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


@pytest.fixture
def session_dir(tmp_path: Path) -> Path:
    return tmp_path / "session"


@pytest.fixture
def store(session_dir: Path):
    store = SessionStore(session_dir)
    yield store
    store.close()


@pytest.fixture
def credential() -> Credential:
    return Credential(
        token="token-alice",
        identity=Identity(id="7", email="alice@example.com", display_name="Alice"),
    )


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest_asyncio.fixture
async def client(store: SessionStore, api: FakeApi):
    client = ApiClient(store, BASE_URL, timeout=5.0, transport=api.transport())
    yield client
    await client.aclose()


@pytest.fixture
def signed_in(store: SessionStore, credential: Credential) -> Credential:
    """Persist and activate the default credential."""
    store.save(credential)
    return credential


@pytest_asyncio.fixture
async def controller(client: ApiClient, store: SessionStore) -> SessionController:
    return SessionController(client, store)
