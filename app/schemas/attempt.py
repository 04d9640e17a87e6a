from datetime import datetime

from pydantic import Field

from app.schemas.base import CamelModel, PaginationResponse
from app.schemas.block import BlockBrief
from app.schemas.quiz import QuestionPublicResponse, QuestionWithAnswerResponse
from app.schemas.subject import SubjectBrief


class QuizStartRequest(CamelModel):
    """시험 시작 요청 스키마 (mode별 필수값 검증은 서비스에서 수행)"""
    mode: str | None = Field(None, description="RANDOM_30 | BLOCK")
    block_id: str | None = Field(None, description="BLOCK 모드일 때 필수")
    subject_id: str | None = Field(None, description="RANDOM_30 모드일 때 필수")


class QuizStartResponse(CamelModel):
    """시험 시작 응답 스키마"""
    attempt_id: str
    mode: str
    total_questions: int
    questions: list[QuestionPublicResponse]
    started_at: datetime


class TakeViewResponse(CamelModel):
    """시험 응시 화면 응답 스키마 (정답 제외)"""
    attempt_id: str
    mode: str
    total_questions: int
    is_completed: bool
    started_at: datetime
    subject: SubjectBrief | None
    block: BlockBrief | None
    questions: list[QuestionPublicResponse]


class SubmittedAnswer(CamelModel):
    """제출 답안 항목"""
    question_id: str
    user_answer: str | None = None
    time_spent: int | None = Field(None, ge=0)


class QuizSubmitRequest(CamelModel):
    """답안 제출 요청 스키마"""
    attempt_id: str
    answers: list[SubmittedAnswer]
    time_spent: int | None = Field(None, ge=0)


class AnswerDetailResponse(CamelModel):
    """답안 상세 (문제 포함)"""
    question_id: str
    question_order: int
    user_answer: str | None
    is_correct: bool
    time_spent: int | None
    answered_at: datetime | None
    question: QuestionWithAnswerResponse


class AttemptSummaryResponse(CamelModel):
    """시도 요약 스키마"""
    id: str
    user_id: str
    mode: str
    subject_id: str | None
    block_id: str | None
    total_questions: int
    correct_answers: int
    wrong_answers: int
    skipped_answers: int
    score: float
    time_spent: int | None
    is_completed: bool
    started_at: datetime
    completed_at: datetime | None
    subject: SubjectBrief | None = None
    block: BlockBrief | None = None


class AttemptDetailResponse(AttemptSummaryResponse):
    """시도 상세 스키마 (답안 포함)"""
    answers: list[AnswerDetailResponse]


class MyResultsResponse(CamelModel):
    """내 결과 목록 응답 스키마"""
    attempts: list[AttemptSummaryResponse]
    pagination: PaginationResponse


class SubjectStatResponse(CamelModel):
    """과목별 통계"""
    subject_id: str
    subject_name: str | None
    attempts: int
    average_score: float


class QuizStatsResponse(CamelModel):
    """사용자 퀴즈 통계 응답 스키마"""
    total_attempts: int
    completed_attempts: int
    average_score: float
    recent_attempts: list[AttemptSummaryResponse]
    stats_by_subject: list[SubjectStatResponse]
