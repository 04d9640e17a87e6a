#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""보관 기간이 지난 퀴즈 시도 정리 스크립트

사용법:
    python scripts/tools/cleanup_old_attempts.py            # QUIZ_RETENTION_DAYS 기준 삭제
    python scripts/tools/cleanup_old_attempts.py --days 7   # 보관 기간 지정
    python scripts/tools/cleanup_old_attempts.py --dry-run  # 삭제 없이 대상 개수만 확인
"""
import argparse
import asyncio
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# 환경변수 로드
from dotenv import load_dotenv
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)

from app.core.logging import setup_logging
from app.models.base import get_async_session_maker, get_engine
from app.services.retention_service import cleanup_old_attempts


async def run(days: int | None, dry_run: bool) -> int:
    try:
        async with get_async_session_maker()() as session:
            result = await cleanup_old_attempts(session, retention_days=days, dry_run=dry_run)
    finally:
        await get_engine().dispose()

    label = "정리 대상" if result.dry_run else "삭제 완료"
    print(f"[OK] {label}: attempts={result.deleted_attempts}, answers={result.deleted_answers}")
    print(f"[INFO] 보관 기간: {result.retention_days}일, 기준 시각: {result.cutoff_date.isoformat()}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="오래된 퀴즈 시도 정리")
    parser.add_argument("--days", type=int, default=None, help="보관 기간(일), 기본값 QUIZ_RETENTION_DAYS")
    parser.add_argument("--dry-run", action="store_true", help="삭제 없이 대상 개수만 출력")
    args = parser.parse_args()

    setup_logging()
    try:
        return asyncio.run(run(args.days, args.dry_run))
    except Exception as e:
        print(f"[ERROR] 정리 실패: {e.__class__.__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
