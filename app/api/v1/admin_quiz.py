from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, require_admin
from app.models.base import get_db
from app.schemas import block as block_schema, quiz as quiz_schema
from app.services import quiz_admin_service

router = APIRouter(prefix="/admin/quiz", tags=["admin-quiz"])


@router.get("/blocks", response_model=list[block_schema.BlockResponse])
async def list_blocks(
    subject_id: str | None = Query(None, alias="subjectId"),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """블록 목록 조회 API"""
    return await quiz_admin_service.list_blocks(db, subject_id=subject_id)


@router.post("/blocks", response_model=block_schema.BlockResponse, status_code=status.HTTP_201_CREATED)
async def create_block(
    request: block_schema.BlockCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """블록 생성 API"""
    return await quiz_admin_service.create_block(db, request)


@router.get("/blocks/{block_id}", response_model=block_schema.BlockDetailResponse)
async def get_block(
    block_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """블록 상세 조회 API"""
    return await quiz_admin_service.get_block_detail(db, block_id)


@router.patch("/blocks/{block_id}", response_model=block_schema.BlockResponse)
async def update_block(
    block_id: str,
    request: block_schema.BlockUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """블록 수정 API"""
    return await quiz_admin_service.update_block(db, block_id, request)


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """블록 삭제 API"""
    await quiz_admin_service.delete_block(db, block_id)


@router.get("/questions", response_model=quiz_schema.QuestionListResponse)
async def list_questions(
    block_id: str | None = Query(None, alias="blockId"),
    subject_id: str | None = Query(None, alias="subjectId"),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """문제 목록 조회 API"""
    return await quiz_admin_service.list_questions(
        db,
        block_id=block_id,
        subject_id=subject_id,
        search=search,
        page=page,
        limit=limit,
    )


@router.post("/questions", response_model=quiz_schema.QuestionAdminResponse, status_code=status.HTTP_201_CREATED)
async def create_question(
    request: quiz_schema.QuestionCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """문제 생성 API"""
    return await quiz_admin_service.create_question(db, request)


@router.post(
    "/questions/bulk-import",
    response_model=quiz_schema.BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def bulk_import_questions(
    request: quiz_schema.BulkImportRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """문제 일괄 등록 API"""
    return await quiz_admin_service.bulk_import_questions(db, request)


@router.get("/questions/{question_id}", response_model=quiz_schema.QuestionAdminResponse)
async def get_question(
    question_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """문제 상세 조회 API"""
    return await quiz_admin_service.get_question(db, question_id)


@router.patch("/questions/{question_id}", response_model=quiz_schema.QuestionAdminResponse)
async def update_question(
    question_id: str,
    request: quiz_schema.QuestionUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """문제 수정 API"""
    return await quiz_admin_service.update_question(db, question_id, request)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(
    question_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """문제 삭제 API"""
    await quiz_admin_service.delete_question(db, question_id)
