"""보관 기간 정리 테스트"""
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.exceptions import InvalidCleanupTokenError
from app.models import QuizAnswer, QuizAttempt
from app.models.base import utcnow
from app.services import retention_service
from conftest import ADMIN_TOKEN, CRON_SECRET


async def seed_old_and_recent(quiz_factory):
    """3일 전 시도 1개, 1일 전 시도 1개 (각 답안 3개)"""
    subject = await quiz_factory.subject()
    questions = await quiz_factory.questions(subject.id, 3)
    question_ids = [q.id for q in questions]
    now = utcnow()
    old = await quiz_factory.attempt("user-1", question_ids, started_at=now - timedelta(days=3), is_completed=True)
    recent = await quiz_factory.attempt("user-1", question_ids, started_at=now - timedelta(days=1))
    return now, old, recent


async def count_rows(session_factory, attempt_id):
    async with session_factory() as session:
        attempts = await session.scalar(select(func.count(QuizAttempt.id)).where(QuizAttempt.id == attempt_id))
        answers = await session.scalar(
            select(func.count()).select_from(QuizAnswer).where(QuizAnswer.attempt_id == attempt_id)
        )
    return attempts, answers


@pytest.mark.asyncio
async def test_cleanup_deletes_only_expired_attempts(quiz_factory, session_factory):
    """2일 기준: 3일 전 시도만 삭제, 1일 전 시도는 유지"""
    now, old, recent = await seed_old_and_recent(quiz_factory)

    async with session_factory() as session:
        result = await retention_service.cleanup_old_attempts(session, retention_days=2, now=now)

    assert result.deleted_attempts == 1
    assert result.deleted_answers == 3
    assert result.cutoff_date == now - timedelta(days=2)
    assert await count_rows(session_factory, old.id) == (0, 0)
    assert await count_rows(session_factory, recent.id) == (1, 3)


@pytest.mark.asyncio
async def test_cleanup_is_idempotent(quiz_factory, session_factory):
    now, _, recent = await seed_old_and_recent(quiz_factory)

    async with session_factory() as session:
        await retention_service.cleanup_old_attempts(session, retention_days=2, now=now)
    async with session_factory() as session:
        second = await retention_service.cleanup_old_attempts(session, retention_days=2, now=now)

    assert second.deleted_attempts == 0
    assert second.deleted_answers == 0
    assert await count_rows(session_factory, recent.id) == (1, 3)


@pytest.mark.asyncio
async def test_cleanup_uses_configured_retention(quiz_factory, session_factory, monkeypatch, test_settings):
    now, old, recent = await seed_old_and_recent(quiz_factory)
    monkeypatch.setattr(test_settings, "quiz_retention_days", 5)

    async with session_factory() as session:
        result = await retention_service.cleanup_old_attempts(session, now=now)

    assert result.retention_days == 5
    assert result.deleted_attempts == 0
    assert await count_rows(session_factory, old.id) == (1, 3)


@pytest.mark.asyncio
async def test_cleanup_dry_run_counts_only(quiz_factory, session_factory):
    now, old, _ = await seed_old_and_recent(quiz_factory)

    async with session_factory() as session:
        result = await retention_service.cleanup_old_attempts(session, retention_days=2, now=now, dry_run=True)

    assert result.dry_run is True
    assert (result.deleted_attempts, result.deleted_answers) == (1, 3)
    assert await count_rows(session_factory, old.id) == (1, 3)


def test_verify_secret():
    retention_service.verify_secret("secret", "secret", source="test")
    with pytest.raises(InvalidCleanupTokenError):
        retention_service.verify_secret("wrong", "secret", source="test")
    with pytest.raises(InvalidCleanupTokenError):
        retention_service.verify_secret(None, "secret", source="test")
    # 비밀값 미설정이면 항상 거부
    with pytest.raises(InvalidCleanupTokenError):
        retention_service.verify_secret("", None, source="test")


@pytest.mark.asyncio
async def test_apply_cleanup_migration_endpoint(client, quiz_factory, session_factory):
    _, old, recent = await seed_old_and_recent(quiz_factory)

    denied = await client.post("/api/v1/admin/apply-cleanup-migration", params={"token": "wrong"})
    assert denied.status_code == 401
    assert await count_rows(session_factory, old.id) == (1, 3)

    response = await client.post("/api/v1/admin/apply-cleanup-migration", params={"token": ADMIN_TOKEN})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["deletedAttempts"] == 1
    assert data["deletedAnswers"] == 3
    assert data["retentionDays"] == 2
    assert "cutoffDate" in data
    assert await count_rows(session_factory, recent.id) == (1, 3)

    again = (await client.post("/api/v1/admin/apply-cleanup-migration", params={"token": ADMIN_TOKEN})).json()
    assert again["deletedAttempts"] == 0


@pytest.mark.asyncio
async def test_cron_cleanup_endpoint(client, quiz_factory, session_factory):
    _, old, _ = await seed_old_and_recent(quiz_factory)

    assert (await client.get("/api/v1/admin/cleanup-old-attempts")).status_code == 401
    wrong = await client.get(
        "/api/v1/admin/cleanup-old-attempts", headers={"Authorization": f"Bearer {ADMIN_TOKEN}"}
    )
    assert wrong.status_code == 401

    response = await client.get(
        "/api/v1/admin/cleanup-old-attempts", headers={"Authorization": f"Bearer {CRON_SECRET}"}
    )
    assert response.status_code == 200
    assert response.json()["deletedAttempts"] == 1
    assert await count_rows(session_factory, old.id) == (0, 0)


@pytest.mark.asyncio
async def test_cleanup_endpoint_rejects_when_secret_unset(client, monkeypatch, test_settings):
    monkeypatch.setattr(test_settings, "cron_secret", None)
    response = await client.get("/api/v1/admin/cleanup-old-attempts", headers={"Authorization": "Bearer anything"})
    assert response.status_code == 401
