from datetime import datetime

from pydantic import Field

from app.schemas.base import CamelModel


class SubjectBrief(CamelModel):
    """과목 요약"""
    id: str
    name: str
    slug: str


class SubjectResponse(CamelModel):
    """과목 응답 스키마"""
    id: str
    name: str
    slug: str
    description: str | None
    question_count: int | None = Field(None, description="활성 문제 개수")
    created_at: datetime
