"""Tests for the fixed-window rate limiters."""
import threading

import pytest
from fastapi.testclient import TestClient

from blog_platform.core.rate_limit import FixedWindowRateLimiter, RedisRateLimiter
from blog_platform.main import create_app


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the limiter."""

    def __init__(self):
        self.counters = {}
        self.ttls = {}
        self.closed = False

    async def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def pexpire(self, key, ms):
        self.ttls[key] = ms
        return True

    async def pttl(self, key):
        return self.ttls.get(key, -1)

    async def delete(self, key):
        self.counters.pop(key, None)
        self.ttls.pop(key, None)

    async def aclose(self):
        self.closed = True

    def expire_all(self):
        self.counters.clear()
        self.ttls.clear()


class TestFixedWindowRateLimiter:

    def test_allows_up_to_limit_then_denies(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(3, 1.0, clock=clock)

        results = [limiter.hit("1.2.3.4") for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.count for r in results] == [1, 2, 3, 3]
        assert results[2].remaining == 0

    def test_window_resets_after_deadline(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(3, 1.0, clock=clock)
        for _ in range(4):
            limiter.hit("client")

        clock.advance(1.5)
        result = limiter.hit("client")

        assert result.allowed is True
        assert result.count == 1

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        redis = FakeRedis()
        limiter = RedisRateLimiter(redis, 1, 1.0)

        await limiter.close()

        assert redis.closed is True
        assert result.reset_at == pytest.approx(clock.now + 1.0)

    def test_denied_hits_do_not_extend_window(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, 10.0, clock=clock)
        first = limiter.hit("client")

        clock.advance(5)
        denied = limiter.hit("client")

        assert denied.allowed is False
        assert denied.reset_at == first.reset_at

    def test_identifiers_are_independent(self):
        limiter = FixedWindowRateLimiter(1, 60.0, clock=FakeClock())

        assert limiter.is_allowed("a") is True
        assert limiter.is_allowed("b") is True
        assert limiter.is_allowed("a") is False

    def test_reset_and_purge(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, 1.0, clock=clock)
        limiter.hit("a")
        limiter.hit("b")

        limiter.reset("a")
        assert limiter.is_allowed("a") is True

        clock.advance(2)
        assert limiter.purge_expired() == 2

    def test_expired_identifiers_are_swept_on_hit(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(5, 1.0, clock=clock)
        for n in range(1000):
            limiter.hit(f"10.0.{n // 256}.{n % 256}")

        clock.advance(3600)
        limiter.hit("10.1.0.1")

        assert len(limiter._windows) == 1

    def test_live_windows_survive_sweep(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, 10.0, clock=clock)
        limiter.hit("old")
        clock.advance(6)
        limiter.hit("recent")
        clock.advance(6)

        limiter.hit("new")

        assert set(limiter._windows) == {"recent", "new"}
        assert limiter.hit("recent").allowed is False

    def test_concurrent_hits_are_not_undercounted(self):
        limiter = FixedWindowRateLimiter(50, 60.0)
        allowed = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                result = limiter.hit("burst")
                with lock:
                    allowed.append(result.allowed)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert allowed.count(True) == 50
        assert allowed.count(False) == 150

    def test_rejects_bad_configuration(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(0, 1.0)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(1, 0)


class TestRedisRateLimiter:

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_denies(self):
        redis = FakeRedis()
        limiter = RedisRateLimiter(redis, 3, 1.0, clock=FakeClock())

        results = [await limiter.hit("client") for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert redis.ttls["ratelimit:client"] == 1000

    @pytest.mark.asyncio
    async def test_counter_restarts_when_key_expires(self):
        redis = FakeRedis()
        limiter = RedisRateLimiter(redis, 1, 1.0, clock=FakeClock())
        await limiter.hit("client")
        assert (await limiter.hit("client")).allowed is False

        redis.expire_all()
        result = await limiter.hit("client")

        assert result.allowed is True
        assert result.count == 1


def test_middleware_limits_login(settings):
    settings.rate_limit.enabled = True
    settings.rate_limit.requests = 3
    app = create_app(settings)

    with TestClient(app) as client:
        payload = {"email": "nobody@example.com", "password": "whatever"}
        statuses = [
            client.post("/api/v1/auth/login", json=payload).status_code
            for _ in range(4)
        ]
        other = client.get("/api/v1/posts")

    assert statuses == [401, 401, 401, 429]
    assert other.status_code == 200
