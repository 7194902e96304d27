"""Tests for middleware — security headers, request IDs, rate limits.

Learn: Without Redis the rate limiter steps aside, so most tests here
never see it. The rate limit tests install FakeRedis as the client
that redis_client.get_redis() hands out.
"""

from collections import Counter
from types import SimpleNamespace

import pytest

from doorkeeper.config import settings


@pytest.mark.asyncio
async def test_security_headers(client):
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 204
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.post("/api/v1/auth/logout")
    r2 = await client.post("/api/v1/auth/logout")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.post(
        "/api/v1/auth/logout",
        headers={"X-Request-ID": custom_id},
    )
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.post("/api/v1/auth/logout")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_session_cookie_is_httponly(client):
    r = await client.post(
        "/api/v1/auth/signup",
        json={"email": "a@b.com", "password": "jumanji"},
    )
    cookie = r.headers["set-cookie"]
    assert cookie.startswith("doorkeeper_session=")
    assert "httponly" in cookie.lower()
    assert "jumanji" not in cookie


# ═══════════════════════════════════════════════════════════
# Rate limiting
# ═══════════════════════════════════════════════════════════


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the rate limiter."""

    def __init__(self):
        self.counts = Counter()
        self.ttls = {}

    async def incr(self, key):
        self.counts[key] += 1
        return self.counts[key]

    async def expire(self, key, seconds):
        self.ttls[key] = seconds


@pytest.fixture()
def fake_redis(monkeypatch):
    from doorkeeper import redis_client
    from doorkeeper.middleware import rate_limit

    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_redis", fake)
    # Pin the window so the counters can't roll over mid-test
    monkeypatch.setattr(rate_limit, "time", SimpleNamespace(time=lambda: 1_700_000_000.0))
    return fake


@pytest.mark.asyncio
async def test_login_and_signup_share_strict_bucket(client, fake_redis):
    """Login and signup draw from one auth_rpm budget; the next one gets 429."""
    limit = settings.rate_limit_auth_rpm
    for i in range(limit):
        if i % 2:
            r = await client.post(
                "/api/v1/auth/login", json={"email": "a@b.com", "password": "x"}
            )
        else:
            r = await client.post(
                "/api/v1/auth/signup", json={"email": f"u{i}@b.com", "password": "x"}
            )
        assert r.status_code != 429
        assert r.headers["X-RateLimit-Limit"] == str(limit)

    r = await client.post(
        "/api/v1/auth/signup", json={"email": "late@b.com", "password": "x"}
    )
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "60"

    r = await client.post("/api/v1/auth/login", json={"email": "a@b.com", "password": "x"})
    assert r.status_code == 429

    auth_keys = [k for k in fake_redis.counts if ":auth:" in k]
    assert len(auth_keys) == 1
    assert fake_redis.ttls[auth_keys[0]] == 120


@pytest.mark.asyncio
async def test_other_routes_use_default_bucket(client, fake_redis):
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 204
    assert r.headers["X-RateLimit-Limit"] == str(settings.rate_limit_rpm)
    assert r.headers["X-RateLimit-Remaining"] == str(settings.rate_limit_rpm - 1)
    assert any(":api:" in k for k in fake_redis.counts)


@pytest.mark.asyncio
async def test_default_bucket_exhausts_separately(client, fake_redis):
    """Using up the auth budget doesn't block the rest of the API."""
    for _ in range(settings.rate_limit_auth_rpm + 1):
        await client.post("/api/v1/auth/login", json={"email": "a@b.com", "password": "x"})
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 204
