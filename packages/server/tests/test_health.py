"""
Health check and root endpoint tests.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from app.main import app


@pytest.fixture
async def public_client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(public_client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await public_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_ready_check(public_client: AsyncClient):
    """Ready endpoint should return status ready."""
    response = await public_client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_root_returns_name_and_version(public_client: AsyncClient):
    response = await public_client.get("/")
    assert response.status_code == 200
    assert response.json() == {"name": "illustrious.cloud", "version": "1.0.10"}


@pytest.mark.asyncio
async def test_security_headers_and_request_id(public_client: AsyncClient):
    response = await public_client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_openapi_is_public(public_client: AsyncClient):
    response = await public_client.get("/openapi.json")
    assert response.status_code == 200
    paths = response.json()["paths"]
    assert "/invoice/{invoice_id}" in paths
    assert "/org/user" in paths
    assert "/user/{user_id}/{by}" in paths
    assert "/auth/session" in paths


@pytest.mark.asyncio
async def test_openapi_documents_error_shape(public_client: AsyncClient):
    schema = (await public_client.get("/openapi.json")).json()
    error = schema["components"]["schemas"]["ErrorResponse"]
    assert set(error["properties"]) == {"message", "code"}

    responses = schema["paths"]["/invoice/{invoice_id}"]["get"]["responses"]
    assert responses["401"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    assert "401" not in schema["paths"]["/auth/callback"]["get"]["responses"]
