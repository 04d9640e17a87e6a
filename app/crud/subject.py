from typing import Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.quiz_question import QuizQuestion
from app.models.subject import Subject


async def get_subject_by_id(session: AsyncSession, subject_id: str) -> Subject | None:
    """ID로 과목 조회"""
    result = await session.execute(select(Subject).where(Subject.id == subject_id))
    return result.scalar_one_or_none()


async def get_subjects_by_ids(session: AsyncSession, subject_ids: list[str]) -> Sequence[Subject]:
    """ID 목록으로 과목 조회"""
    if not subject_ids:
        return []
    result = await session.execute(select(Subject).where(Subject.id.in_(subject_ids)))
    return result.scalars().all()


async def get_all_subjects_with_question_count(session: AsyncSession) -> list[dict]:
    """모든 과목 조회 (활성 문제 개수 포함)"""
    stmt = (
        select(
            Subject.id,
            Subject.name,
            Subject.slug,
            Subject.description,
            Subject.created_at,
            func.count(QuizQuestion.id).label("question_count"),
        )
        .outerjoin(
            QuizQuestion,
            and_(Subject.id == QuizQuestion.subject_id, QuizQuestion.is_active.is_(True)),
        )
        .group_by(Subject.id, Subject.name, Subject.slug, Subject.description, Subject.created_at)
        .order_by(Subject.name)
    )
    result = await session.execute(stmt)

    subjects = []
    for row in result.all():
        subjects.append({
            "id": row.id,
            "name": row.name,
            "slug": row.slug,
            "description": row.description,
            "created_at": row.created_at,
            "question_count": row.question_count or 0,
        })
    return subjects
