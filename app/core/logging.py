# -*- coding: utf-8 -*-
import logging
import sys
from pathlib import Path

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# 요청마다 쿼리/커넥션 로그를 남기는 라이브러리
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg")

_HANDLER_MARK = "_sechenov_quiz_handler"


def resolve_log_level() -> int:
    """LOG_LEVEL 우선, 없으면 environment 기준"""
    if settings.log_level:
        level = logging.getLevelName(settings.log_level.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if settings.environment == "development" else logging.INFO


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARK, True)
    return handler


def setup_logging() -> None:
    """루트 로거 설정

    API 서버와 정리 스크립트가 모두 호출한다. 두 번 호출되어도 핸들러는 한 번만 붙는다.
    """
    log_level = resolve_log_level()
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if any(getattr(h, _HANDLER_MARK, False) for h in root_logger.handlers):
        return

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = _mark(logging.StreamHandler(sys.stdout))
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # 프로덕션은 파일에도 기록 (정리 작업 결과 보관)
    if settings.environment == "production":
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = _mark(logging.FileHandler(log_dir / "app.log", encoding="utf-8"))
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
