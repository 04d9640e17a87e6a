"""Attempt Service 테스트"""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.crud import quiz_attempt as attempt_crud, quiz_block as block_crud, quiz_question as question_crud
from app.crud import subject as subject_crud
from app.exceptions import (
    AttemptAlreadyCompletedError,
    InvalidQuizRequestError,
    PermissionDeniedError,
    QuizAttemptNotFoundError,
    QuizBlockNotFoundError,
    QuizSubmissionError,
    SubjectNotFoundError,
)
from app.schemas import attempt as attempt_schema
from app.services import attempt_service


@pytest.fixture
def mock_db_session():
    """모킹된 DB 세션"""
    session = AsyncMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def user():
    return CurrentUser(id="user-1")


def make_question(question_id: str, correct_answer: str = "A"):
    return SimpleNamespace(
        id=question_id,
        question_text=f"문제 {question_id}",
        question_image=None,
        question_type="SINGLE",
        option_a="A",
        option_b="B",
        option_c="C",
        option_d="D",
        option_e=None,
        correct_answer=correct_answer,
    )


def make_attempt(**overrides):
    values = dict(
        id="attempt-1",
        user_id="user-1",
        mode="RANDOM_30",
        total_questions=2,
        is_completed=False,
        block_id=None,
        started_at=datetime.now(timezone.utc),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


# ----- 시작 -----

@pytest.mark.asyncio
async def test_start_invalid_mode(mock_db_session, user):
    request = attempt_schema.QuizStartRequest(mode="FREE", subject_id="s1")
    with pytest.raises(InvalidQuizRequestError):
        await attempt_service.start_attempt(mock_db_session, user, request)


@pytest.mark.asyncio
async def test_start_block_mode_requires_block_id(mock_db_session, user):
    request = attempt_schema.QuizStartRequest(mode="BLOCK")
    with pytest.raises(InvalidQuizRequestError):
        await attempt_service.start_attempt(mock_db_session, user, request)


@pytest.mark.asyncio
async def test_start_random_mode_requires_subject_id(mock_db_session, user):
    request = attempt_schema.QuizStartRequest(mode="RANDOM_30")
    with pytest.raises(InvalidQuizRequestError):
        await attempt_service.start_attempt(mock_db_session, user, request)


@pytest.mark.asyncio
async def test_start_random_subject_not_found(mock_db_session, user):
    with patch.object(subject_crud, "get_subject_by_id", return_value=None):
        request = attempt_schema.QuizStartRequest(mode="RANDOM_30", subject_id="missing")
        with pytest.raises(SubjectNotFoundError):
            await attempt_service.start_attempt(mock_db_session, user, request)


@pytest.mark.asyncio
async def test_start_block_not_found(mock_db_session, user):
    with patch.object(block_crud, "get_block_by_id", return_value=None):
        request = attempt_schema.QuizStartRequest(mode="BLOCK", block_id="missing")
        with pytest.raises(QuizBlockNotFoundError):
            await attempt_service.start_attempt(mock_db_session, user, request)


@pytest.mark.asyncio
async def test_start_inactive_block_creates_nothing(mock_db_session, user):
    """비활성 블록은 400이며 시도를 만들지 않음"""
    block = SimpleNamespace(id="b1", subject_id="s1", is_active=False)
    with patch.object(block_crud, "get_block_by_id", return_value=block):
        with patch.object(attempt_crud, "create_attempt") as mock_create:
            request = attempt_schema.QuizStartRequest(mode="BLOCK", block_id="b1")
            with pytest.raises(InvalidQuizRequestError):
                await attempt_service.start_attempt(mock_db_session, user, request)
            mock_create.assert_not_called()
    mock_db_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_start_random_draws_configured_count(mock_db_session, user):
    """45개 중 30개 추출, 빈 답안 30개 생성"""
    question_ids = [f"q{i}" for i in range(45)]

    with patch.object(subject_crud, "get_subject_by_id", return_value=SimpleNamespace(id="s1")), \
            patch.object(question_crud, "get_active_question_ids_by_subject", return_value=question_ids), \
            patch.object(
                question_crud,
                "get_questions_by_ids",
                side_effect=lambda session, ids: [make_question(qid) for qid in reversed(ids)],
            ), \
            patch.object(
                attempt_crud,
                "create_attempt",
                return_value=make_attempt(total_questions=30),
            ) as mock_create, \
            patch.object(attempt_crud, "create_answer_placeholders") as mock_placeholders, \
            patch.object(question_crud, "increment_times_shown") as mock_shown:
        request = attempt_schema.QuizStartRequest(mode="RANDOM_30", subject_id="s1")
        response = await attempt_service.start_attempt(mock_db_session, user, request)

    assert mock_create.call_args.kwargs["total_questions"] == 30
    placeholder_ids = mock_placeholders.call_args.args[2]
    assert len(placeholder_ids) == 30
    assert len(set(placeholder_ids)) == 30
    assert set(placeholder_ids) <= set(question_ids)
    # 응답 문제 순서는 빈 답안 순서와 동일
    assert [q.id for q in response.questions] == placeholder_ids
    mock_shown.assert_awaited_once()
    mock_db_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_rolls_back_when_placeholders_fail(mock_db_session, user):
    """빈 답안 생성 실패 시 전체 롤백"""
    with patch.object(subject_crud, "get_subject_by_id", return_value=SimpleNamespace(id="s1")), \
            patch.object(question_crud, "get_active_question_ids_by_subject", return_value=["q1"]), \
            patch.object(question_crud, "get_questions_by_ids", return_value=[make_question("q1")]), \
            patch.object(attempt_crud, "create_attempt", return_value=make_attempt(total_questions=1)), \
            patch.object(attempt_crud, "create_answer_placeholders", side_effect=SQLAlchemyError("boom")):
        request = attempt_schema.QuizStartRequest(mode="RANDOM_30", subject_id="s1")
        with pytest.raises(SQLAlchemyError):
            await attempt_service.start_attempt(mock_db_session, user, request)

    mock_db_session.rollback.assert_awaited_once()
    mock_db_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_start_without_questions(mock_db_session, user):
    with patch.object(subject_crud, "get_subject_by_id", return_value=SimpleNamespace(id="s1")), \
            patch.object(question_crud, "get_active_question_ids_by_subject", return_value=[]), \
            patch.object(question_crud, "get_questions_by_ids", return_value=[]):
        request = attempt_schema.QuizStartRequest(mode="RANDOM_30", subject_id="s1")
        with pytest.raises(InvalidQuizRequestError):
            await attempt_service.start_attempt(mock_db_session, user, request)


# ----- 응시 화면 -----

@pytest.mark.asyncio
async def test_take_view_retries_then_not_found(mock_db_session, user, test_settings, monkeypatch):
    monkeypatch.setattr(test_settings, "quiz_take_retry_attempts", 3)
    with patch.object(attempt_crud, "get_attempt_with_answers", return_value=None) as mock_get:
        with pytest.raises(QuizAttemptNotFoundError):
            await attempt_service.get_take_view(mock_db_session, user, "attempt-1")
    assert mock_get.await_count == 4


@pytest.mark.asyncio
async def test_take_view_other_user_forbidden(mock_db_session, user):
    attempt = make_attempt(user_id="someone-else")
    with patch.object(attempt_crud, "get_attempt_with_answers", return_value=attempt):
        with pytest.raises(PermissionDeniedError):
            await attempt_service.get_take_view(mock_db_session, user, "attempt-1")


# ----- 제출 -----

def submit_request(*answers):
    return attempt_schema.QuizSubmitRequest(
        attempt_id="attempt-1",
        answers=[attempt_schema.SubmittedAnswer(question_id=qid, user_answer=ans) for qid, ans in answers],
        time_spent=120,
    )


@pytest.mark.asyncio
async def test_submit_attempt_not_found(mock_db_session, user):
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=None):
        with pytest.raises(QuizAttemptNotFoundError):
            await attempt_service.submit_attempt(mock_db_session, user, submit_request())


@pytest.mark.asyncio
async def test_submit_by_admin_of_other_user_forbidden(mock_db_session):
    """제출은 소유자만 가능 (관리자 포함)"""
    admin = CurrentUser(id="admin-1", role="ADMIN")
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=make_attempt()):
        with pytest.raises(PermissionDeniedError):
            await attempt_service.submit_attempt(mock_db_session, admin, submit_request())


@pytest.mark.asyncio
async def test_submit_completed_attempt(mock_db_session, user):
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=make_attempt(is_completed=True)):
        with pytest.raises(AttemptAlreadyCompletedError):
            await attempt_service.submit_attempt(mock_db_session, user, submit_request(("q1", "A")))


@pytest.mark.asyncio
async def test_submit_rejects_foreign_and_duplicate_questions(mock_db_session, user):
    placeholders = [SimpleNamespace(question_id="q1"), SimpleNamespace(question_id="q2")]
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=make_attempt()), \
            patch.object(attempt_crud, "get_answers_by_attempt", return_value=placeholders):
        with pytest.raises(InvalidQuizRequestError):
            await attempt_service.submit_attempt(mock_db_session, user, submit_request(("q9", "A")))
        with pytest.raises(InvalidQuizRequestError):
            await attempt_service.submit_attempt(
                mock_db_session, user, submit_request(("q1", "A"), ("q1", "B"))
            )


@pytest.mark.asyncio
async def test_submit_rejects_malformed_answers(mock_db_session, user):
    placeholders = [SimpleNamespace(question_id="q1"), SimpleNamespace(question_id="q2")]
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=make_attempt()), \
            patch.object(attempt_crud, "get_answers_by_attempt", return_value=placeholders), \
            patch.object(attempt_crud, "bulk_update_answers") as mock_bulk:
        with pytest.raises(InvalidQuizRequestError):
            await attempt_service.submit_attempt(mock_db_session, user, submit_request(("q1", "A,Z")))
        with pytest.raises(InvalidQuizRequestError):
            await attempt_service.submit_attempt(mock_db_session, user, submit_request(("q1", "A," * 11)))

    mock_bulk.assert_not_called()
    mock_db_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_submit_concurrent_completion(mock_db_session, user):
    """조건부 완료 갱신 실패 시 이미 완료로 처리하고 롤백"""
    placeholders = [SimpleNamespace(question_id="q1"), SimpleNamespace(question_id="q2")]
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=make_attempt()), \
            patch.object(attempt_crud, "get_answers_by_attempt", return_value=placeholders), \
            patch.object(question_crud, "get_questions_by_ids", return_value=[make_question("q1"), make_question("q2")]), \
            patch.object(attempt_crud, "bulk_update_answers"), \
            patch.object(attempt_crud, "complete_attempt", return_value=False), \
            patch.object(question_crud, "increment_answer_counters") as mock_counters:
        with pytest.raises(AttemptAlreadyCompletedError):
            await attempt_service.submit_attempt(mock_db_session, user, submit_request(("q1", "A")))

    mock_counters.assert_not_called()
    mock_db_session.rollback.assert_awaited_once()
    mock_db_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_submit_database_failure_is_generic(mock_db_session, user):
    placeholders = [SimpleNamespace(question_id="q1"), SimpleNamespace(question_id="q2")]
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=make_attempt()), \
            patch.object(attempt_crud, "get_answers_by_attempt", return_value=placeholders), \
            patch.object(question_crud, "get_questions_by_ids", return_value=[make_question("q1"), make_question("q2")]), \
            patch.object(attempt_crud, "bulk_update_answers", side_effect=SQLAlchemyError("deadlock")):
        with pytest.raises(QuizSubmissionError) as exc_info:
            await attempt_service.submit_attempt(mock_db_session, user, submit_request(("q1", "A")))

    assert "deadlock" not in exc_info.value.message
    mock_db_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_submit_grades_and_builds_rows(mock_db_session, user):
    """채점 결과가 답안 갱신 행과 완료 값에 반영됨"""
    placeholders = [
        SimpleNamespace(question_id="q1"),
        SimpleNamespace(question_id="q2"),
        SimpleNamespace(question_id="q3"),
    ]
    questions = [make_question("q1", "A,B"), make_question("q2", "C"), make_question("q3", "D")]
    with patch.object(attempt_crud, "get_attempt_by_id", return_value=make_attempt(total_questions=3)), \
            patch.object(attempt_crud, "get_answers_by_attempt", return_value=placeholders), \
            patch.object(question_crud, "get_questions_by_ids", return_value=questions), \
            patch.object(attempt_crud, "bulk_update_answers") as mock_bulk, \
            patch.object(attempt_crud, "complete_attempt", return_value=True) as mock_complete, \
            patch.object(question_crud, "increment_answer_counters") as mock_counters, \
            patch.object(attempt_crud, "get_attempt_with_answers", return_value=None) as mock_reload, \
            patch.object(attempt_service, "_build_attempt_detail", return_value="detail"):
        result = await attempt_service.submit_attempt(
            mock_db_session, user, submit_request(("q1", "B,A"), ("q2", "A"))
        )

    assert result == "detail"
    rows = {row["question_id"]: row for row in mock_bulk.call_args.args[1]}
    assert rows["q1"]["is_correct"] is True
    assert rows["q2"]["is_correct"] is False
    assert rows["q3"]["user_answer"] is None
    assert rows["q3"]["answered_at"] is None

    values = mock_complete.call_args.args[2]
    assert values["correct_answers"] == 1
    assert values["wrong_answers"] == 1
    assert values["skipped_answers"] == 1
    assert values["score"] == pytest.approx(100 / 3)
    assert values["time_spent"] == 120

    mock_counters.assert_awaited_once_with(mock_db_session, ["q1"], ["q2"])
    mock_db_session.commit.assert_awaited_once()
    mock_reload.assert_awaited_once_with(mock_db_session, "attempt-1")


@pytest.mark.asyncio
async def test_submit_reloads_result_in_same_session(test_db_session, quiz_factory, user):
    """시작과 제출을 한 세션에서 수행해도 완료된 결과를 다시 읽어 반환"""
    subject = await quiz_factory.subject()
    block = await quiz_factory.block(subject.id)
    questions = await quiz_factory.questions(subject.id, 2, block_id=block.id, correct_answer="B")

    started = await attempt_service.start_attempt(
        test_db_session, user, attempt_schema.QuizStartRequest(mode="BLOCK", block_id=block.id)
    )
    result = await attempt_service.submit_attempt(
        test_db_session,
        user,
        attempt_schema.QuizSubmitRequest(
            attempt_id=started.attempt_id,
            answers=[attempt_schema.SubmittedAnswer(question_id=questions[0].id, user_answer="b")],
        ),
    )

    assert result.id == started.attempt_id
    assert result.is_completed is True
    assert result.correct_answers == 1
    assert result.skipped_answers == 1
    assert result.block.id == block.id
    assert all(answer.question.correct_answer == "B" for answer in result.answers)
