from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_db
from app.schemas import subject as subject_schema
from app.services import quiz_service

router = APIRouter(prefix="/subjects", tags=["subjects"])


@router.get("", response_model=list[subject_schema.SubjectResponse])
async def get_subjects(
    db: AsyncSession = Depends(get_db),
):
    """과목 목록 조회 API (활성 문제 개수 포함)"""
    return await quiz_service.list_subjects(db)
