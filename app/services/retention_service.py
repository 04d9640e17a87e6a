import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.crud import quiz_attempt as attempt_crud
from app.exceptions import InvalidCleanupTokenError
from app.models.base import utcnow

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    """정리 결과"""
    deleted_attempts: int
    deleted_answers: int
    retention_days: int
    cutoff_date: datetime
    dry_run: bool = False


def verify_secret(provided: str | None, expected: str | None, source: str) -> None:
    """공유 비밀값 상수 시간 비교 (미설정이면 항상 거부)"""
    if not expected:
        logger.warning(f"정리 토큰이 설정되지 않아 요청 거부: source={source}")
        raise InvalidCleanupTokenError()
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning(f"정리 토큰 불일치: source={source}")
        raise InvalidCleanupTokenError()


def get_cutoff(retention_days: int, now: datetime | None = None) -> datetime:
    """보관 기간 기준 시각"""
    return (now or utcnow()) - timedelta(days=retention_days)


async def cleanup_old_attempts(
    session: AsyncSession,
    retention_days: int | None = None,
    now: datetime | None = None,
    dry_run: bool = False,
) -> CleanupResult:
    """보관 기간이 지난 시도와 답안 삭제

    Args:
        session: 데이터베이스 세션
        retention_days: 보관 기간 (None이면 QUIZ_RETENTION_DAYS)
        now: 기준 시각 (테스트용)
        dry_run: True면 삭제 없이 대상 개수만 집계
    """
    days = settings.quiz_retention_days if retention_days is None else retention_days
    if days < 0:
        raise ValueError(f"보관 기간은 0 이상이어야 합니다: {days}")
    cutoff = get_cutoff(days, now)

    attempt_ids = await attempt_crud.get_attempt_ids_started_before(session, cutoff)
    if dry_run:
        answer_count = await attempt_crud.count_answers_by_attempt_ids(session, attempt_ids)
        logger.info(f"정리 대상 집계(dry-run): attempts={len(attempt_ids)}, answers={answer_count}, cutoff={cutoff.isoformat()}")
        return CleanupResult(len(attempt_ids), answer_count, days, cutoff, dry_run=True)

    try:
        deleted_attempts, deleted_answers = await attempt_crud.delete_attempts_with_answers(session, attempt_ids)
        await session.commit()
    except Exception as e:
        logger.error(f"오래된 시도 정리 실패: {e}, cutoff={cutoff.isoformat()}", exc_info=True)
        await session.rollback()
        raise

    logger.info(
        f"오래된 시도 정리 완료: deleted_attempts={deleted_attempts}, "
        f"deleted_answers={deleted_answers}, cutoff={cutoff.isoformat()}"
    )
    return CleanupResult(deleted_attempts, deleted_answers, days, cutoff)
