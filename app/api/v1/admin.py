from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.base import get_db, utcnow
from app.schemas import cleanup as cleanup_schema
from app.services import retention_service

router = APIRouter(prefix="/admin", tags=["admin"])


def _to_response(result: retention_service.CleanupResult, message: str) -> cleanup_schema.CleanupResponse:
    return cleanup_schema.CleanupResponse(
        message=message,
        deleted_attempts=result.deleted_attempts,
        deleted_answers=result.deleted_answers,
        retention_days=result.retention_days,
        cutoff_date=result.cutoff_date,
        timestamp=utcnow(),
    )


@router.post("/apply-cleanup-migration", response_model=cleanup_schema.CleanupResponse)
async def apply_cleanup_migration(
    token: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """보관 기간 초과 시도 일괄 정리 API (일회성, ?token=)"""
    retention_service.verify_secret(token, settings.admin_secret_token, source="apply-cleanup-migration")
    result = await retention_service.cleanup_old_attempts(db)
    return _to_response(result, f"{result.retention_days}일 이전 시도 정리 완료")


@router.get("/cleanup-old-attempts", response_model=cleanup_schema.CleanupResponse)
async def cleanup_old_attempts(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
):
    """보관 기간 초과 시도 정기 정리 API (Authorization: Bearer)"""
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):]
    retention_service.verify_secret(token, settings.cron_secret, source="cleanup-old-attempts")
    result = await retention_service.cleanup_old_attempts(db)
    return _to_response(result, f"{result.retention_days}일 이전 시도 정리 완료")
