"""
Фиксированное окно: счёт, сброс по истечении окна, независимость ключей.
"""
import threading

import pytest

from comicstop.core.errors import RateLimitError
from comicstop.services.rate_limiter import InMemoryRateLimitStore, RateLimitPolicy, RateLimiter

POLICY = RateLimitPolicy("login", limit=3, window_seconds=60)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(InMemoryRateLimitStore(), clock=clock)


def test_allows_up_to_limit_then_rejects(limiter):
    assert [limiter.check("10.0.0.1", POLICY) for _ in range(3)] == [2, 1, 0]

    with pytest.raises(RateLimitError) as exc_info:
        limiter.check("10.0.0.1", POLICY)
    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Too many requests, please try again later."


def test_retry_after_points_to_window_end(limiter, clock):
    for _ in range(3):
        limiter.check("10.0.0.1", POLICY)
    clock.now += 20

    with pytest.raises(RateLimitError) as exc_info:
        limiter.check("10.0.0.1", POLICY)
    assert exc_info.value.headers == {"Retry-After": "40"}


def test_window_rollover_resets_count(limiter, clock):
    for _ in range(3):
        limiter.check("10.0.0.1", POLICY)
    with pytest.raises(RateLimitError):
        limiter.check("10.0.0.1", POLICY)

    clock.now += POLICY.window_seconds
    assert limiter.check("10.0.0.1", POLICY) == 2


def test_clients_and_categories_are_independent(limiter):
    other_category = RateLimitPolicy("signup", limit=3, window_seconds=60)
    for _ in range(3):
        limiter.check("10.0.0.1", POLICY)

    assert limiter.check("10.0.0.2", POLICY) == 2
    assert limiter.check("10.0.0.1", other_category) == 2


def test_limit_override(limiter):
    for _ in range(10):
        limiter.check("10.0.0.1", POLICY, limit=100)


def test_concurrent_hits_are_counted_once_each(limiter):
    policy = RateLimitPolicy("forgot-password", limit=50, window_seconds=60)
    rejected = []

    def worker():
        for _ in range(10):
            try:
                limiter.check("10.0.0.9", policy)
            except RateLimitError:
                rejected.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # 80 запросов при лимите 50
    assert len(rejected) == 30


def test_store_reset(limiter):
    for _ in range(3):
        limiter.check("10.0.0.1", POLICY)
    limiter.store.reset()
    assert limiter.check("10.0.0.1", POLICY) == 2


def test_expired_windows_are_evicted(clock):
    store = InMemoryRateLimitStore(sweep_threshold=100)
    limiter = RateLimiter(store, clock=clock)
    for i in range(100):
        limiter.check(f"10.0.1.{i}", POLICY)
    assert len(store) == 100

    clock.now += 10000
    limiter.check("10.0.2.1", POLICY)
    assert len(store) == 1


def test_live_windows_survive_sweep(clock):
    store = InMemoryRateLimitStore(sweep_threshold=10)
    limiter = RateLimiter(store, clock=clock)
    for _ in range(3):
        limiter.check("10.0.0.1", POLICY)

    clock.now += POLICY.window_seconds - 1
    for i in range(10):
        limiter.check(f"10.0.1.{i}", POLICY)

    # Окно 10.0.0.1 ещё не истекло, бюджет исчерпан
    with pytest.raises(RateLimitError):
        limiter.check("10.0.0.1", POLICY)
