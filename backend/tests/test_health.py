"""Tests for the health endpoint."""
import pytest
from httpx import AsyncClient, ASGITransport

from procurement.main import app


@pytest.mark.asyncio
async def test_health_returns_ok():
    """GET /health should return 200 with status ok and the current env."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "env" in data
