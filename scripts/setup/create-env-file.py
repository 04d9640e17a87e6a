#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""로컬 개발용 .env 파일 생성 (기존 파일은 .env.backup으로 보관)"""
import argparse
import os
import secrets
from pathlib import Path

project_root = Path(__file__).parent.parent.parent
env_file = project_root / ".env"

ENV_TEMPLATE = """# Database
DATABASE_URL=postgresql+asyncpg://<DB_USER>:<DB_PASSWORD>@localhost:5432/sechenov_plus

# CORS
ALLOWED_ORIGINS=http://localhost:3000

# development | production | test
ENVIRONMENT=development

# 로그 (LOG_LEVEL 미지정 시 ENVIRONMENT 기준)
# LOG_LEVEL=INFO
LOG_DIR=/app/logs

# 시도 정리 엔드포인트 비밀값
ADMIN_SECRET_TOKEN={admin_secret_token}
CRON_SECRET={cron_secret}

# 퀴즈
QUIZ_RETENTION_DAYS=2
QUIZ_RANDOM_QUESTION_COUNT=30
QUIZ_TAKE_RETRY_ATTEMPTS=6
QUIZ_TAKE_RETRY_DELAY_SECONDS=0.5
RATE_LIMIT_QUIZ_START_PER_MINUTE=10
"""


def create_env_file(force: bool = False):
    """.env 파일 생성 (UTF-8, LF 줄바꿈)"""
    if env_file.exists():
        if not force:
            print(f"[INFO] 이미 존재함: {env_file} (덮어쓰려면 --force)")
            return
        backup_file = project_root / ".env.backup"
        backup_file.write_text(env_file.read_text(encoding="utf-8"), encoding="utf-8")
        print(f"[INFO] 기존 .env 파일 백업: {backup_file}")

    content = ENV_TEMPLATE.format(
        admin_secret_token=secrets.token_urlsafe(32),
        cron_secret=secrets.token_urlsafe(32),
    )
    with open(env_file, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)

    if os.name != "nt":
        os.chmod(env_file, 0o600)
    print(f"[OK] .env 파일 생성 완료: {env_file}")
    print("[INFO] DATABASE_URL의 <DB_USER>, <DB_PASSWORD>는 직접 입력하세요")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="로컬 .env 파일 생성")
    parser.add_argument("--force", action="store_true", help="기존 .env 덮어쓰기")
    args = parser.parse_args()
    create_env_file(force=args.force)
