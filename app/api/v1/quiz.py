from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, require_approved_user
from app.core.rate_limit import quiz_start_rate_limit
from app.models.base import get_db
from app.schemas import attempt as attempt_schema, block as block_schema, quiz as quiz_schema
from app.services import attempt_service, quiz_service

router = APIRouter(prefix="/quiz", tags=["quiz"])


@router.post("/start", response_model=attempt_schema.QuizStartResponse)
async def start_quiz(
    request: attempt_schema.QuizStartRequest,
    current_user: CurrentUser = Depends(quiz_start_rate_limit),
    db: AsyncSession = Depends(get_db),
):
    """시험 시작 API (RANDOM_30 / BLOCK)"""
    return await attempt_service.start_attempt(db, current_user, request)


@router.get("/take", response_model=attempt_schema.TakeViewResponse)
async def get_take_view(
    attempt_id: str = Query(..., alias="attemptId"),
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """응시 화면 복원 API"""
    return await attempt_service.get_take_view(db, current_user, attempt_id)


@router.get("/take/{attempt_id}", response_model=attempt_schema.TakeViewResponse)
async def get_take_view_by_path(
    attempt_id: str,
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """응시 화면 복원 API (경로 파라미터)"""
    return await attempt_service.get_take_view(db, current_user, attempt_id)


@router.post("/submit", response_model=attempt_schema.AttemptDetailResponse)
async def submit_quiz(
    request: attempt_schema.QuizSubmitRequest,
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """답안 제출 API"""
    return await attempt_service.submit_attempt(db, current_user, request)


@router.get("/attempt", response_model=attempt_schema.AttemptDetailResponse | None)
async def get_attempt(
    attempt_id: str | None = Query(None, alias="attemptId"),
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """시도 상세 조회 API (attemptId 없으면 진행 중인 시도)"""
    if not attempt_id:
        return await attempt_service.get_active_attempt(db, current_user)
    return await attempt_service.get_attempt_detail(db, current_user, attempt_id)


@router.get("/attempt/{attempt_id}", response_model=attempt_schema.AttemptDetailResponse)
async def get_attempt_by_path(
    attempt_id: str,
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """시도 상세 조회 API (경로 파라미터)"""
    return await attempt_service.get_attempt_detail(db, current_user, attempt_id)


@router.get("/my-results", response_model=attempt_schema.MyResultsResponse)
async def get_my_results(
    mode: str | None = Query(None),
    subject_id: str | None = Query(None, alias="subjectId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """내 완료 시도 목록 API"""
    return await attempt_service.get_my_results(
        db,
        current_user,
        mode=mode,
        subject_id=subject_id,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=attempt_schema.QuizStatsResponse)
async def get_stats(
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """내 퀴즈 통계 API"""
    return await attempt_service.get_stats(db, current_user)


@router.get("/blocks", response_model=list[block_schema.StudentBlockResponse])
async def get_blocks(
    subject_id: str | None = Query(None, alias="subjectId"),
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """활성 블록 목록 API"""
    return await quiz_service.list_student_blocks(db, current_user, subject_id=subject_id)


@router.get("/question", response_model=quiz_schema.QuestionWithAnswerResponse)
async def get_question_by_query(
    question_id: str | None = Query(None, alias="id"),
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """단일 문제 조회 API (?id=)"""
    return await quiz_service.get_question_for_practice(db, question_id)


@router.get("/question/{question_id}", response_model=quiz_schema.QuestionWithAnswerResponse)
async def get_question(
    question_id: str,
    current_user: CurrentUser = Depends(require_approved_user),
    db: AsyncSession = Depends(get_db),
):
    """단일 문제 조회 API (정답 포함)"""
    return await quiz_service.get_question_for_practice(db, question_id)
