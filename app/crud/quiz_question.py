from typing import Any, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.quiz_answer import QuizAnswer
from app.models.quiz_question import QuizQuestion


async def get_question_by_id(
    session: AsyncSession,
    question_id: str,
    load_relationships: bool = False,
) -> QuizQuestion | None:
    """ID로 문제 조회"""
    stmt = select(QuizQuestion).where(QuizQuestion.id == question_id)
    if load_relationships:
        stmt = stmt.options(selectinload(QuizQuestion.subject), selectinload(QuizQuestion.block))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_questions_by_ids(session: AsyncSession, question_ids: list[str]) -> Sequence[QuizQuestion]:
    """ID 목록으로 문제 조회 (순서 보장 없음)"""
    if not question_ids:
        return []
    result = await session.execute(select(QuizQuestion).where(QuizQuestion.id.in_(question_ids)))
    return result.scalars().all()


async def get_active_question_ids_by_subject(session: AsyncSession, subject_id: str) -> list[str]:
    """과목의 활성 문제 ID 목록 (생성순 고정 정렬)"""
    stmt = (
        select(QuizQuestion.id)
        .where(QuizQuestion.subject_id == subject_id, QuizQuestion.is_active.is_(True))
        .order_by(QuizQuestion.created_at, QuizQuestion.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_active_questions_by_subject(session: AsyncSession, subject_id: str) -> Sequence[QuizQuestion]:
    """과목의 활성 문제 목록 (생성순)"""
    stmt = (
        select(QuizQuestion)
        .where(QuizQuestion.subject_id == subject_id, QuizQuestion.is_active.is_(True))
        .order_by(QuizQuestion.created_at, QuizQuestion.id)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_active_questions_by_block(session: AsyncSession, block_id: str) -> Sequence[QuizQuestion]:
    """블록의 활성 문제 목록 (생성순)"""
    stmt = (
        select(QuizQuestion)
        .where(QuizQuestion.block_id == block_id, QuizQuestion.is_active.is_(True))
        .order_by(QuizQuestion.created_at, QuizQuestion.id)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def count_questions_by_block(session: AsyncSession, block_id: str) -> int:
    """블록에 연결된 문제 수 (비활성 포함)"""
    total = await session.scalar(
        select(func.count(QuizQuestion.id)).where(QuizQuestion.block_id == block_id)
    )
    return total or 0


async def increment_times_shown(session: AsyncSession, question_ids: list[str]) -> None:
    """출제 횟수 증가 (커밋하지 않음)"""
    if not question_ids:
        return
    await session.execute(
        update(QuizQuestion)
        .where(QuizQuestion.id.in_(question_ids))
        .values(times_shown=QuizQuestion.times_shown + 1)
        .execution_options(synchronize_session=False)
    )


async def increment_answer_counters(
    session: AsyncSession,
    correct_ids: list[str],
    wrong_ids: list[str],
) -> None:
    """정답/오답 횟수 증가 (커밋하지 않음, 건너뛴 문제는 대상 아님)"""
    if correct_ids:
        await session.execute(
            update(QuizQuestion)
            .where(QuizQuestion.id.in_(correct_ids))
            .values(times_correct=QuizQuestion.times_correct + 1)
            .execution_options(synchronize_session=False)
        )
    if wrong_ids:
        await session.execute(
            update(QuizQuestion)
            .where(QuizQuestion.id.in_(wrong_ids))
            .values(times_wrong=QuizQuestion.times_wrong + 1)
            .execution_options(synchronize_session=False)
        )


async def get_questions(
    session: AsyncSession,
    block_id: str | None = None,
    subject_id: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[Sequence[QuizQuestion], int]:
    """관리자 문제 목록 조회 (필터 + 페이지네이션)"""
    conditions = []
    if block_id:
        conditions.append(QuizQuestion.block_id == block_id)
    if subject_id:
        conditions.append(QuizQuestion.subject_id == subject_id)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                QuizQuestion.question_text.ilike(pattern),
                QuizQuestion.option_a.ilike(pattern),
                QuizQuestion.option_b.ilike(pattern),
                QuizQuestion.option_c.ilike(pattern),
                QuizQuestion.option_d.ilike(pattern),
            )
        )

    total = await session.scalar(select(func.count(QuizQuestion.id)).where(*conditions)) or 0

    stmt = (
        select(QuizQuestion)
        .where(*conditions)
        .order_by(QuizQuestion.created_at.desc(), QuizQuestion.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return result.scalars().all(), total


def build_question(**fields: Any) -> QuizQuestion:
    """문제 객체 생성 (세션에 추가하지 않음)"""
    fields.setdefault("tags", [])
    fields.setdefault("difficulty", "MEDIUM")
    return QuizQuestion(**fields)


async def create_question(session: AsyncSession, **fields: Any) -> QuizQuestion:
    """문제 생성"""
    question = build_question(**fields)
    session.add(question)
    await session.commit()
    await session.refresh(question)
    return question


async def update_question(
    session: AsyncSession,
    question: QuizQuestion,
    fields: dict[str, Any],
) -> QuizQuestion:
    """문제 수정 (전달된 필드만 반영)"""
    for key, value in fields.items():
        setattr(question, key, value)
    await session.commit()
    await session.refresh(question)
    return question


async def is_question_used_in_attempts(session: AsyncSession, question_id: str) -> bool:
    """시도 답안에서 참조 중인지 확인"""
    count = await session.scalar(
        select(func.count()).select_from(QuizAnswer).where(QuizAnswer.question_id == question_id)
    )
    return bool(count)


async def delete_question(session: AsyncSession, question: QuizQuestion) -> None:
    """문제 삭제"""
    await session.delete(question)
    await session.commit()
