import os
import sys
import uuid
from pathlib import Path
from typing import AsyncIterator, Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager


@pytest_asyncio.fixture(scope="session")
def test_db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture(scope="session")
def app(test_db_url: str):
    # Ensure env is set before importing the app
    os.environ["DATABASE_URL"] = test_db_url
    os.environ["APP_DEBUG"] = "true"
    os.environ.pop("FUNCTIONS_BASE_URL", None)
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    from soluly.main import app as litestar_app
    return litestar_app


@pytest_asyncio.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac


@pytest_asyncio.fixture()
async def org(client: AsyncClient) -> Dict[str, str]:
    """A fresh organization per test; returns the tenant header."""
    slug = f"org-{uuid.uuid4().hex[:8]}"
    resp = await client.post(
        "/api/organizations",
        json={"name": "Acme Studio", "slug": slug, "owner_name": "Olivia Owner", "owner_email": "olivia@acme.io"},
    )
    assert resp.status_code == 201, resp.text
    return {"X-Organization-Id": resp.json()["id"]}
