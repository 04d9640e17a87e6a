"""테스트 공통 fixture: 인메모리 SQLite DB, ASGI 클라이언트, 데이터 팩토리"""
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.rate_limit import InMemoryRateLimiter, get_rate_limiter
from app.main import app
from app.models import Base, QuizAnswer, QuizAttempt, QuizBlock, QuizQuestion, Subject
from app.models.base import get_db

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_TOKEN = "test-admin-token"
CRON_SECRET = "test-cron-secret"


def make_headers(user_id: str = "user-1", role: str = "USER", status: str = "APPROVED") -> dict:
    """게이트웨이 인증 헤더"""
    return {"X-User-Id": user_id, "X-User-Role": role, "X-User-Status": status}


class QuizFactory:
    """테스트 데이터 생성기"""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self._seq = 0

    async def _save(self, *objects):
        async with self.session_factory() as session:
            session.add_all(objects)
            await session.commit()

    async def subject(self, name: str = "해부학", slug: str | None = None) -> Subject:
        self._seq += 1
        subject = Subject(name=name, slug=slug or f"subject-{self._seq}")
        await self._save(subject)
        return subject

    async def block(self, subject_id: str, title: str = "블록 1", is_active: bool = True, order_index: int = 0) -> QuizBlock:
        block = QuizBlock(subject_id=subject_id, title=title, is_active=is_active, order_index=order_index)
        await self._save(block)
        return block

    async def questions(
        self,
        subject_id: str,
        count: int,
        block_id: str | None = None,
        correct_answer: str = "A",
        is_active: bool = True,
    ) -> list[QuizQuestion]:
        questions = [
            QuizQuestion(
                subject_id=subject_id,
                block_id=block_id,
                question_text=f"문제 {i + 1}",
                option_a="보기 A",
                option_b="보기 B",
                option_c="보기 C",
                option_d="보기 D",
                correct_answer=correct_answer,
                explanation=f"해설 {i + 1}",
                is_active=is_active,
            )
            for i in range(count)
        ]
        await self._save(*questions)
        return questions

    async def attempt(
        self,
        user_id: str,
        question_ids: list[str],
        started_at: datetime,
        subject_id: str | None = None,
        is_completed: bool = False,
    ) -> QuizAttempt:
        attempt = QuizAttempt(
            user_id=user_id,
            mode="RANDOM_30",
            subject_id=subject_id,
            total_questions=len(question_ids),
            started_at=started_at,
            is_completed=is_completed,
        )
        await self._save(attempt)
        answers = [
            QuizAnswer(attempt_id=attempt.id, question_id=qid, question_order=order)
            for order, qid in enumerate(question_ids)
        ]
        await self._save(*answers)
        return attempt


@pytest_asyncio.fixture
async def engine():
    """테스트용 인메모리 엔진 (StaticPool로 단일 연결 공유)"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db_session(session_factory):
    """테스트용 DB 세션"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def quiz_factory(session_factory):
    return QuizFactory(session_factory)


@pytest.fixture
def rate_limiter():
    return InMemoryRateLimiter()


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """테스트 설정 (재시도 대기 없음, 정리 토큰 고정)"""
    monkeypatch.setattr(settings, "environment", "test")
    monkeypatch.setattr(settings, "quiz_take_retry_delay_seconds", 0)
    monkeypatch.setattr(settings, "quiz_retention_days", 2)
    monkeypatch.setattr(settings, "quiz_random_question_count", 30)
    monkeypatch.setattr(settings, "rate_limit_quiz_start_per_minute", 10)
    monkeypatch.setattr(settings, "admin_secret_token", ADMIN_TOKEN)
    monkeypatch.setattr(settings, "cron_secret", CRON_SECRET)
    return settings


@pytest_asyncio.fixture
async def client(session_factory, rate_limiter):
    """테스트용 HTTP 클라이언트"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
