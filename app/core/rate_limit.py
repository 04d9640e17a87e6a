"""요청 횟수 제한

RateLimiter는 의존성으로 주입된다. 기본 구현은 프로세스 메모리 기반 고정 윈도우라
단일 인스턴스에서만 유효하며 재시작 시 초기화된다. 다중 인스턴스 배포에서는
공유 카운터 저장소 구현으로 get_rate_limiter를 교체한다.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from fastapi import Depends

from app.core.auth import CurrentUser, require_approved_user
from app.core.config import settings
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset_at: float

    @property
    def retry_after(self) -> int:
        return max(0, math.ceil(self.reset_at - time.time()))


class RateLimiter(Protocol):
    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        ...


class InMemoryRateLimiter:
    """프로세스 메모리 고정 윈도우 카운터"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._store: dict[str, tuple[int, float]] = {}

    def _cleanup(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._store.items() if reset_at <= now]
        for key in expired:
            del self._store[key]

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        # await 지점이 없으므로 이벤트 루프 안에서 원자적으로 실행된다
        now = self._clock()
        self._cleanup(now)

        count, reset_at = self._store.get(key, (0, now + window_seconds))
        count += 1
        self._store[key] = (count, reset_at)

        return RateLimitResult(
            success=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_at=reset_at,
        )

    def reset(self) -> None:
        self._store.clear()


_rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    """RateLimiter 주입 지점"""
    return _rate_limiter


def rate_limit(scope: str, limit: Callable[[], int], window_seconds: int = 60):
    """사용자 단위 요청 제한 의존성 팩토리"""

    async def dependency(
        current_user: CurrentUser = Depends(require_approved_user),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> CurrentUser:
        result = await limiter.hit(f"{scope}:user_{current_user.id}", limit(), window_seconds)
        if not result.success:
            logger.warning(f"Rate limit exceeded: scope={scope}, user_id={current_user.id}")
            raise RateLimitExceededError(retry_after=result.retry_after)
        return current_user

    return dependency


quiz_start_rate_limit = rate_limit(
    "quiz_start",
    limit=lambda: settings.rate_limit_quiz_start_per_minute,
)
