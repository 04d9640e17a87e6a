"""요청 제한 테스트"""
import pytest

from app.core.rate_limit import InMemoryRateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_fixed_window_limit():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)

    results = [await limiter.hit("quiz_start:user_1", limit=2, window_seconds=60) for _ in range(3)]

    assert [r.success for r in results] == [True, True, False]
    assert [r.remaining for r in results] == [1, 0, 0]
    assert results[2].reset_at == 1060.0


@pytest.mark.asyncio
async def test_window_resets_after_expiry():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)
    for _ in range(2):
        await limiter.hit("k", limit=2, window_seconds=60)
    assert not (await limiter.hit("k", limit=2, window_seconds=60)).success

    clock.now += 61
    assert (await limiter.hit("k", limit=2, window_seconds=60)).success


@pytest.mark.asyncio
async def test_keys_are_independent():
    limiter = InMemoryRateLimiter(clock=FakeClock())
    assert (await limiter.hit("a", limit=1, window_seconds=60)).success
    assert (await limiter.hit("b", limit=1, window_seconds=60)).success
    assert not (await limiter.hit("a", limit=1, window_seconds=60)).success

    limiter.reset()
    assert (await limiter.hit("a", limit=1, window_seconds=60)).success
