from datetime import datetime

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.quiz import Difficulty, QuestionAdminResponse
from app.schemas.subject import SubjectBrief


class BlockBrief(CamelModel):
    """블록 요약"""
    id: str
    title: str


class BlockResponse(CamelModel):
    """관리자용 블록 응답 스키마"""
    id: str
    subject_id: str
    title: str
    description: str | None
    difficulty: str
    order_index: int
    is_active: bool
    total_attempts: int
    average_score: float
    question_count: int = 0
    created_at: datetime
    updated_at: datetime


class BlockDetailResponse(BlockResponse):
    """블록 상세 (문제 포함)"""
    questions: list[QuestionAdminResponse] = Field(default_factory=list)


class BlockCreateRequest(CamelModel):
    """블록 생성 요청 스키마"""
    title: str | None = None
    subject_id: str | None = None
    description: str | None = None
    difficulty: Difficulty = "MEDIUM"
    order_index: int = 0


class BlockUpdateRequest(CamelModel):
    """블록 수정 요청 스키마 (전달된 필드만 반영)"""
    title: str | None = None
    description: str | None = None
    difficulty: Difficulty | None = None
    is_active: bool | None = None
    order_index: int | None = None


class StudentBlockResponse(CamelModel):
    """학생용 블록 목록 항목 (본인 진행 현황 포함)"""
    id: str
    title: str
    description: str | None
    difficulty: str
    order_index: int
    subject: SubjectBrief
    question_count: int
    user_attempts: int
    best_score: float | None
