"""API-specific test fixtures.

Requests go through the real app in-process (httpx ASGITransport) against the
in-memory database from the root conftest. The AI provider is swapped for a
ProviderFake via dependency_overrides.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from interview_studio.api.deps import get_provider
from interview_studio.main import app
from interview_studio.providers.fake import ProviderFake


@pytest.fixture
def api_provider():
    return ProviderFake()


@pytest.fixture
async def client(engine, api_provider):
    app.dependency_overrides[get_provider] = lambda: api_provider
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def create_session(client):
    async def _create(question_ids=("q1", "q2"), user_id="user-1", content_type="product") -> str:
        response = await client.post(
            "/api/interview/sessions",
            json={
                "organization_id": "org-1",
                "user_id": user_id,
                "content_type": content_type,
                "question_ids": list(question_ids),
            },
        )
        assert response.status_code == 201
        return response.json()["data"]["session_id"]

    return _create
