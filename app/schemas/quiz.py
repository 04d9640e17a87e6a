from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.base import CamelModel, PaginationResponse

Difficulty = Literal["EASY", "MEDIUM", "HARD"]


class QuestionPublicResponse(CamelModel):
    """학생용 문제 스키마 (정답/해설 제외)"""
    id: str
    question_text: str
    question_image: str | None
    question_type: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    option_e: str | None


class QuestionWithAnswerResponse(QuestionPublicResponse):
    """정답/해설 포함 문제 스키마 (완료된 시도, 연습 확인용)"""
    correct_answer: str | None = Field(None, description="정답 (진행 중 시도에서는 None)")
    explanation: str | None = None


class QuestionAdminResponse(CamelModel):
    """관리자용 문제 스키마"""
    id: str
    subject_id: str
    block_id: str | None
    question_text: str
    question_image: str | None
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    option_e: str | None
    correct_answer: str
    explanation: str | None
    difficulty: str
    tags: list[str]
    is_active: bool
    times_shown: int
    times_correct: int
    times_wrong: int
    created_at: datetime
    updated_at: datetime


class QuestionPayload(CamelModel):
    """문제 생성/일괄 등록 항목 (필수값 검증은 서비스에서 수행)"""
    question_text: str | None = None
    question_image: str | None = None
    option_a: str | None = None
    option_b: str | None = None
    option_c: str | None = None
    option_d: str | None = None
    option_e: str | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    difficulty: Difficulty | None = None
    tags: list[str] | None = None


class QuestionCreateRequest(QuestionPayload):
    """문제 생성 요청 스키마"""
    subject_id: str | None = None
    block_id: str | None = None


class QuestionUpdateRequest(CamelModel):
    """문제 수정 요청 스키마 (전달된 필드만 반영)"""
    subject_id: str | None = None
    block_id: str | None = None
    question_text: str | None = None
    question_image: str | None = None
    option_a: str | None = None
    option_b: str | None = None
    option_c: str | None = None
    option_d: str | None = None
    option_e: str | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    difficulty: Difficulty | None = None
    tags: list[str] | None = None
    is_active: bool | None = None


class QuestionListResponse(CamelModel):
    """관리자 문제 목록 응답 스키마"""
    questions: list[QuestionAdminResponse]
    pagination: PaginationResponse


class BulkImportRequest(CamelModel):
    """문제 일괄 등록 요청 스키마"""
    subject_id: str | None = None
    block_id: str | None = None
    questions: list[QuestionPayload] = Field(default_factory=list)


class BulkImportResponse(CamelModel):
    """문제 일괄 등록 응답 스키마"""
    success: bool = True
    imported: int
    questions: list[QuestionAdminResponse]
