"""Middleware tests: request ID, rate limiting, CORS, error bodies."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_no_rate_limit_without_redis(client: AsyncClient) -> None:
    """Without Redis, requests pass through and carry no rate limit headers."""
    for _ in range(120):
        response = await client.get("/version")
        assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, redis_client: object) -> None:
    """Rate limit headers are present on non-exempt endpoints."""
    response = await client.get("/version")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, redis_client: object) -> None:
    """101st request returns 429 with Retry-After header."""
    for _ in range(100):
        await client.get("/version")
    response = await client.get("/version")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert response.json()["code"] == "rate_limited"


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, redis_client: object) -> None:
    """Health endpoint is exempt from rate limiting, 200 requests all succeed."""
    for _ in range(200):
        response = await client.get("/health")
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


@pytest.mark.asyncio
async def test_404_returns_json(client: AsyncClient) -> None:
    """Unknown paths return 404 with JSON body."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.headers["content-type"] == "application/json"
    assert response.json()["detail"] == "Not Found"


@pytest.mark.asyncio
async def test_engine_errors_carry_code(client: AsyncClient) -> None:
    """Engine errors map to their HTTP status with a code and a detail."""
    response = await client.get("/api/v1/leaderboard/nobody")
    assert response.status_code == 404
    assert response.json() == {"code": "account_not_found", "detail": "Account not found: nobody"}


@pytest.mark.asyncio
async def test_validation_errors_are_422(client: AsyncClient) -> None:
    response = await client.post("/api/v1/accounts", json={})
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "invalid_request"
    assert body["errors"][0]["loc"] == ["body", "user_id"]


@pytest.mark.asyncio
async def test_oversized_request_id_replaced(client: AsyncClient) -> None:
    """An incoming id longer than 128 characters is not echoed into logs or headers."""
    response = await client.get("/health", headers={"X-Request-Id": "x" * 500})
    assert len(response.headers["x-request-id"]) == 36


@pytest.mark.asyncio
async def test_cors_exposes_rate_limit_headers(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"Origin": "http://localhost:5173"})
    exposed = response.headers["access-control-expose-headers"]
    assert "X-Request-Id" in exposed
    assert "Retry-After" in exposed
