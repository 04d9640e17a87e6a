from typing import Any, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.quiz_attempt import QuizAttempt
from app.models.quiz_block import QuizBlock
from app.models.quiz_question import QuizQuestion


async def get_block_by_id(
    session: AsyncSession,
    block_id: str,
    load_questions: bool = False,
) -> QuizBlock | None:
    """ID로 블록 조회

    Args:
        session: 데이터베이스 세션
        block_id: 블록 ID
        load_questions: 연결된 문제 목록을 eager load할지 여부
    """
    stmt = select(QuizBlock).where(QuizBlock.id == block_id).options(selectinload(QuizBlock.subject))
    if load_questions:
        stmt = stmt.options(selectinload(QuizBlock.questions))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_blocks(
    session: AsyncSession,
    subject_id: str | None = None,
    active_only: bool = False,
) -> Sequence[QuizBlock]:
    """블록 목록 조회 (order_index, title 순)"""
    stmt = select(QuizBlock).options(selectinload(QuizBlock.subject))
    if subject_id:
        stmt = stmt.where(QuizBlock.subject_id == subject_id)
    if active_only:
        stmt = stmt.where(QuizBlock.is_active.is_(True))
    stmt = stmt.order_by(QuizBlock.order_index, QuizBlock.title)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_question_counts_by_block(
    session: AsyncSession,
    block_ids: list[str],
    active_only: bool = False,
) -> dict[str, int]:
    """블록별 문제 개수 일괄 조회"""
    if not block_ids:
        return {}
    stmt = (
        select(QuizQuestion.block_id, func.count(QuizQuestion.id))
        .where(QuizQuestion.block_id.in_(block_ids))
        .group_by(QuizQuestion.block_id)
    )
    if active_only:
        stmt = stmt.where(QuizQuestion.is_active.is_(True))
    result = await session.execute(stmt)
    return {block_id: count for block_id, count in result.all()}


async def create_block(session: AsyncSession, **fields: Any) -> QuizBlock:
    """블록 생성"""
    block = QuizBlock(**fields)
    session.add(block)
    await session.commit()
    return await get_block_by_id(session, block.id)


async def update_block(session: AsyncSession, block: QuizBlock, fields: dict[str, Any]) -> QuizBlock:
    """블록 수정 (전달된 필드만 반영)"""
    for key, value in fields.items():
        setattr(block, key, value)
    await session.commit()
    await session.refresh(block)
    return block


async def delete_block(session: AsyncSession, block: QuizBlock) -> None:
    """블록 삭제 (문제 연결 해제, 시도 기록은 block_id만 비움)"""
    await session.execute(
        update(QuizQuestion).where(QuizQuestion.block_id == block.id).values(block_id=None)
    )
    await session.execute(
        update(QuizAttempt).where(QuizAttempt.block_id == block.id).values(block_id=None)
    )
    await session.delete(block)
    await session.commit()


async def refresh_block_statistics(session: AsyncSession, block_id: str) -> float:
    """완료된 시도 전체로 블록 평균 점수 재계산 및 시도 수 증가 (커밋하지 않음)

    동일 블록 동시 제출 시 마지막 쓰기가 반영된다.
    """
    average = await session.scalar(
        select(func.avg(QuizAttempt.score)).where(
            QuizAttempt.block_id == block_id,
            QuizAttempt.is_completed.is_(True),
        )
    )
    average_score = float(average or 0.0)
    await session.execute(
        update(QuizBlock)
        .where(QuizBlock.id == block_id)
        .values(
            total_attempts=QuizBlock.total_attempts + 1,
            average_score=average_score,
        )
        .execution_options(synchronize_session=False)
    )
    return average_score
