"""Test fixtures — ASGI client, signed tokens, a fresh gateway per test.

Learn: REST routes are exercised in-process through httpx's ASGITransport.
Websocket handshakes go through Starlette's TestClient (test_websocket_endpoint),
and gateway/client internals run against the fakes in fakes.py so no real
sockets or servers are needed.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from plotdesk.auth.jwt import create_access_token
from plotdesk.main import app
from plotdesk.realtime.gateway import EventGateway


@pytest_asyncio.fixture()
async def client():
    """HTTP client wired straight into the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def gateway():
    """An isolated gateway with its own empty registry."""
    return EventGateway()


@pytest.fixture()
def admin_token():
    return create_access_token("admin-1", "admin", name="Asha Admin", email="asha@example.com")


@pytest.fixture()
def sales_token():
    return create_access_token("sp-7", "salesperson", name="Ravi", email="ravi@example.com")


@pytest.fixture()
def auth_header(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}
