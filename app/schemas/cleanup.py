from datetime import datetime

from app.schemas.base import CamelModel


class CleanupResponse(CamelModel):
    """오래된 시도 정리 결과"""
    success: bool = True
    message: str
    deleted_attempts: int
    deleted_answers: int
    retention_days: int
    cutoff_date: datetime
    timestamp: datetime
