from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.quiz_answer import QuizAnswer
from app.models.quiz_attempt import QuizAttempt

# IN 절 파라미터 개수 제한 대응
DELETE_CHUNK_SIZE = 500


async def create_attempt(
    session: AsyncSession,
    user_id: str,
    mode: str,
    total_questions: int,
    subject_id: str | None = None,
    block_id: str | None = None,
) -> QuizAttempt:
    """진행 중 시도 생성 (커밋하지 않음)"""
    attempt = QuizAttempt(
        user_id=user_id,
        mode=mode,
        subject_id=subject_id,
        block_id=block_id,
        total_questions=total_questions,
        correct_answers=0,
        wrong_answers=0,
        skipped_answers=0,
        score=0.0,
        is_completed=False,
    )
    session.add(attempt)
    await session.flush()
    return attempt


async def create_answer_placeholders(
    session: AsyncSession,
    attempt_id: str,
    question_ids: list[str],
) -> list[QuizAnswer]:
    """문제별 빈 답안 행 생성 (출제 순서 보존, 커밋하지 않음)"""
    answers = [
        QuizAnswer(
            attempt_id=attempt_id,
            question_id=question_id,
            question_order=order,
            user_answer=None,
            is_correct=False,
        )
        for order, question_id in enumerate(question_ids)
    ]
    session.add_all(answers)
    await session.flush()
    return answers


async def get_attempt_by_id(
    session: AsyncSession,
    attempt_id: str,
    for_update: bool = False,
) -> QuizAttempt | None:
    """ID로 시도 조회"""
    stmt = select(QuizAttempt).where(QuizAttempt.id == attempt_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_attempt_with_answers(session: AsyncSession, attempt_id: str) -> QuizAttempt | None:
    """시도 + 과목/블록 + 답안(문제 포함) 조회"""
    stmt = (
        select(QuizAttempt)
        .where(QuizAttempt.id == attempt_id)
        .options(
            selectinload(QuizAttempt.subject),
            selectinload(QuizAttempt.block),
            selectinload(QuizAttempt.answers).selectinload(QuizAnswer.question),
        )
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_answers_by_attempt(session: AsyncSession, attempt_id: str) -> Sequence[QuizAnswer]:
    """시도의 답안 행 목록 (출제 순서)"""
    stmt = (
        select(QuizAnswer)
        .where(QuizAnswer.attempt_id == attempt_id)
        .order_by(QuizAnswer.question_order)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def bulk_update_answers(session: AsyncSession, rows: list[dict[str, Any]]) -> None:
    """(attempt_id, question_id) 키 기준 답안 일괄 갱신 (커밋하지 않음)"""
    if not rows:
        return
    await session.execute(update(QuizAnswer), rows)


async def complete_attempt(
    session: AsyncSession,
    attempt_id: str,
    values: dict[str, Any],
) -> bool:
    """미완료 상태인 경우에만 시도를 완료 처리 (커밋하지 않음)

    Returns:
        갱신 여부 (이미 완료된 경우 False)
    """
    result = await session.execute(
        update(QuizAttempt)
        .where(QuizAttempt.id == attempt_id, QuizAttempt.is_completed.is_(False))
        .values(is_completed=True, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def get_active_attempt(session: AsyncSession, user_id: str) -> QuizAttempt | None:
    """사용자의 가장 최근 미완료 시도"""
    stmt = (
        select(QuizAttempt)
        .where(QuizAttempt.user_id == user_id, QuizAttempt.is_completed.is_(False))
        .options(selectinload(QuizAttempt.subject), selectinload(QuizAttempt.block))
        .order_by(QuizAttempt.started_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_completed_attempts(
    session: AsyncSession,
    user_id: str,
    mode: str | None = None,
    subject_id: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[Sequence[QuizAttempt], int]:
    """사용자의 완료된 시도 목록 (최근 완료순, 페이지네이션)"""
    conditions = [QuizAttempt.user_id == user_id, QuizAttempt.is_completed.is_(True)]
    if mode:
        conditions.append(QuizAttempt.mode == mode)
    if subject_id:
        conditions.append(QuizAttempt.subject_id == subject_id)

    total = await session.scalar(select(func.count(QuizAttempt.id)).where(*conditions)) or 0

    stmt = (
        select(QuizAttempt)
        .where(*conditions)
        .options(selectinload(QuizAttempt.subject), selectinload(QuizAttempt.block))
        .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().all(), total


async def count_attempts(session: AsyncSession, user_id: str, completed_only: bool = False) -> int:
    """사용자 시도 수"""
    stmt = select(func.count(QuizAttempt.id)).where(QuizAttempt.user_id == user_id)
    if completed_only:
        stmt = stmt.where(QuizAttempt.is_completed.is_(True))
    return await session.scalar(stmt) or 0


async def get_average_score(session: AsyncSession, user_id: str) -> float:
    """사용자 완료 시도 평균 점수"""
    average = await session.scalar(
        select(func.avg(QuizAttempt.score)).where(
            QuizAttempt.user_id == user_id,
            QuizAttempt.is_completed.is_(True),
        )
    )
    return float(average or 0.0)


async def get_subject_stats(session: AsyncSession, user_id: str) -> list[tuple[str, int, float]]:
    """과목별 (subject_id, 시도 수, 평균 점수)"""
    stmt = (
        select(
            QuizAttempt.subject_id,
            func.count(QuizAttempt.id),
            func.avg(QuizAttempt.score),
        )
        .where(
            QuizAttempt.user_id == user_id,
            QuizAttempt.is_completed.is_(True),
            QuizAttempt.subject_id.is_not(None),
        )
        .group_by(QuizAttempt.subject_id)
        .order_by(QuizAttempt.subject_id)
    )
    result = await session.execute(stmt)
    return [(subject_id, count, float(avg or 0.0)) for subject_id, count, avg in result.all()]


async def get_user_block_progress(
    session: AsyncSession,
    user_id: str,
    block_ids: list[str],
) -> dict[str, tuple[int, float]]:
    """블록별 사용자 완료 시도 수와 최고 점수"""
    if not block_ids:
        return {}
    stmt = (
        select(QuizAttempt.block_id, func.count(QuizAttempt.id), func.max(QuizAttempt.score))
        .where(
            QuizAttempt.user_id == user_id,
            QuizAttempt.is_completed.is_(True),
            QuizAttempt.block_id.in_(block_ids),
        )
        .group_by(QuizAttempt.block_id)
    )
    result = await session.execute(stmt)
    return {block_id: (count, float(best)) for block_id, count, best in result.all()}


async def get_attempt_ids_started_before(session: AsyncSession, cutoff: datetime) -> list[str]:
    """cutoff 이전에 시작된 시도 ID 목록"""
    result = await session.execute(
        select(QuizAttempt.id).where(QuizAttempt.started_at < cutoff)
    )
    return list(result.scalars().all())


async def count_answers_by_attempt_ids(session: AsyncSession, attempt_ids: list[str]) -> int:
    """시도 목록에 속한 답안 수"""
    total = 0
    for start in range(0, len(attempt_ids), DELETE_CHUNK_SIZE):
        chunk = attempt_ids[start:start + DELETE_CHUNK_SIZE]
        total += await session.scalar(
            select(func.count()).select_from(QuizAnswer).where(QuizAnswer.attempt_id.in_(chunk))
        ) or 0
    return total


async def delete_attempts_with_answers(session: AsyncSession, attempt_ids: list[str]) -> tuple[int, int]:
    """답안 삭제 후 시도 삭제 (참조 무결성 순서, 커밋하지 않음)

    Returns:
        (삭제된 시도 수, 삭제된 답안 수)
    """
    deleted_attempts = 0
    deleted_answers = 0
    for start in range(0, len(attempt_ids), DELETE_CHUNK_SIZE):
        chunk = attempt_ids[start:start + DELETE_CHUNK_SIZE]
        answer_result = await session.execute(
            delete(QuizAnswer)
            .where(QuizAnswer.attempt_id.in_(chunk))
            .execution_options(synchronize_session=False)
        )
        deleted_answers += answer_result.rowcount
        attempt_result = await session.execute(
            delete(QuizAttempt)
            .where(QuizAttempt.id.in_(chunk))
            .execution_options(synchronize_session=False)
        )
        deleted_attempts += attempt_result.rowcount
    return deleted_attempts, deleted_answers
