"""API test fixtures — spy remote caller + FastAPI test client.

Invariants:
    - Every test gets a fresh FakeRemoteCaller; nothing leaves the process
    - get_remote_caller / get_uploader overridden through dependency_overrides
    - remote.calls records every call in order, so tests can assert zero calls
"""

import pytest
from httpx import ASGITransport, AsyncClient

from restapi.api.dependencies import get_remote_caller, get_uploader
from restapi.main import app
from tests.api.fakes import FakeRemoteCaller, FakeUploader


@pytest.fixture
def remote():
    return FakeRemoteCaller()


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
async def client(remote, uploader):
    """FastAPI test client with transports replaced by fakes."""
    app.dependency_overrides[get_remote_caller] = lambda: remote
    app.dependency_overrides[get_uploader] = lambda: uploader

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
