"""
Tests for health, CSRF bootstrap, error envelopes and rate limiting
"""
import pytest

from soundscore.core.config import Settings, settings
from soundscore.core.rate_limit import RATE_LIMITS, InMemoryRateLimiter, limiter


class TestHealth:

    async def test_root(self, client):
        response = await client.get("/")
        assert response.json() == {"message": "Welcome to SoundScore API"}

    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "connected"}

    async def test_unknown_route_envelope(self, client):
        response = await client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["code"] == "NOT_FOUND"
        assert response.json()["path"] == "/api/does-not-exist"

    async def test_wrong_method(self, client):
        response = await client.patch("/api/health")
        assert response.status_code == 405
        assert response.json()["code"] == "METHOD_NOT_ALLOWED"


class TestCsrfToken:
    """Tests for GET /api/csrf-token"""

    async def test_token_creates_session(self, client):
        """Visitors without a session get one along with the token"""
        response = await client.get("/api/csrf-token")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["header_name"] == "x-csrf-token"
        assert len(data["token"]) == 64
        assert settings.SESSION_COOKIE_NAME in response.cookies

    async def test_token_is_stable_for_session(self, client):
        first = await client.get("/api/csrf-token")
        second = await client.get("/api/csrf-token")

        assert first.json()["token"] == second.json()["token"]
        assert "set-cookie" not in second.headers

    async def test_fetched_token_passes_csrf(self, client):
        """An anonymous visitor with a valid token gets past CSRF and stops at login"""
        token = (await client.get("/api/csrf-token")).json()["token"]

        with_token = await client.post("/api/auth/nickname", json={"nickname": "visitor"}, headers={"x-csrf-token": token})
        without_token = await client.post("/api/auth/nickname", json={"nickname": "visitor"})

        assert with_token.status_code == 401
        assert without_token.status_code == 403


class TestRateLimiter:
    """Unit tests for the sliding-window limiter"""

    def test_allows_up_to_limit(self):
        rate_limiter = InMemoryRateLimiter()

        results = [rate_limiter.hit("search:1.2.3.4", 3, 60) for _ in range(4)]

        assert [allowed for allowed, _, _ in results] == [True, True, True, False]
        assert [remaining for _, remaining, _ in results] == [2, 1, 0, 0]
        assert 1 <= results[-1][2] <= 60

    def test_keys_are_independent(self):
        rate_limiter = InMemoryRateLimiter()
        rate_limiter.hit("auth:1.1.1.1", 1, 60)

        assert rate_limiter.hit("auth:2.2.2.2", 1, 60)[0] is True
        assert rate_limiter.hit("auth:1.1.1.1", 1, 60)[0] is False

    def test_window_expiry(self, monkeypatch):
        clock = [1000.0]
        monkeypatch.setattr("soundscore.core.rate_limit.time.monotonic", lambda: clock[0])
        rate_limiter = InMemoryRateLimiter()

        assert rate_limiter.hit("k", 1, 10)[0] is True
        assert rate_limiter.hit("k", 1, 10)[0] is False
        clock[0] += 10.5
        assert rate_limiter.hit("k", 1, 10)[0] is True

    def test_reset(self):
        rate_limiter = InMemoryRateLimiter()
        rate_limiter.hit("k", 1, 60)
        rate_limiter.reset()
        assert rate_limiter.hit("k", 1, 60)[0] is True


class TestRateLimitedEndpoints:
    """The dependency only applies when RATE_LIMIT_ENABLED is set"""

    @pytest.fixture(autouse=True)
    def enable_rate_limits(self, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        limiter.reset()
        yield
        limiter.reset()

    async def test_headers_present(self, client, artist):
        response = await client.get("/api/artists/search", params={"q": "radio"})

        assert response.status_code == 200
        assert response.headers["x-ratelimit-limit"] == str(RATE_LIMITS["search"][0])
        assert int(response.headers["x-ratelimit-remaining"]) == RATE_LIMITS["search"][0] - 1

    async def test_search_limit_exceeded(self, client, artist):
        limit = RATE_LIMITS["search"][0]
        for _ in range(limit):
            assert (await client.get("/api/artists/search", params={"q": "radio"})).status_code == 200

        response = await client.get("/api/artists/search", params={"q": "radio"})

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMIT_EXCEEDED"
        assert "retry-after" in response.headers
        assert response.headers["x-ratelimit-remaining"] == "0"

    async def test_clients_counted_separately(self, client):
        limit = RATE_LIMITS["auth"][0]
        for _ in range(limit):
            await client.get("/api/login", headers={"X-Forwarded-For": "10.0.0.1"})

        blocked = await client.get("/api/login", headers={"X-Forwarded-For": "10.0.0.1"})
        other = await client.get("/api/login", headers={"X-Forwarded-For": "10.0.0.2"})

        assert blocked.status_code == 429
        assert other.status_code == 302


class TestSettings:

    def test_database_url_normalised_for_asyncpg(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://user:pw@db.example.com:5432/soundscore")

        assert Settings().DATABASE_URL == "postgresql+asyncpg://user:pw@db.example.com:5432/soundscore"

    def test_sqlite_url_untouched(self):
        assert settings.DATABASE_URL == "sqlite+aiosqlite:///:memory:"
