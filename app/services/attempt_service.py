import asyncio
import logging
import random

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.config import settings
from app.crud import quiz_attempt as attempt_crud, quiz_block as block_crud, quiz_question as question_crud
from app.crud import subject as subject_crud
from app.exceptions import (
    AttemptAlreadyCompletedError,
    BaseAppError,
    InvalidQuizRequestError,
    PermissionDeniedError,
    QuizAttemptNotFoundError,
    QuizBlockNotFoundError,
    QuizSubmissionError,
    SubjectNotFoundError,
)
from app.models.base import utcnow
from app.models.quiz_answer import USER_ANSWER_MAX_LENGTH
from app.models.quiz_attempt import QuizAttempt, QuizMode
from app.models.quiz_question import OPTION_LETTERS
from app.schemas import attempt as attempt_schema, quiz as quiz_schema
from app.schemas.base import PaginationResponse
from app.schemas.block import BlockBrief
from app.schemas.subject import SubjectBrief
from app.services.grading import GradingResult, calculate_score, is_skipped, normalize_answer

logger = logging.getLogger(__name__)


def _ensure_can_view(attempt: QuizAttempt, user: CurrentUser) -> None:
    """본인 또는 관리자만 조회 가능"""
    if attempt.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError()


async def _select_random_questions(session: AsyncSession, subject_id: str) -> list:
    """과목 활성 문제 중 최대 N개를 무작위 추출"""
    subject = await subject_crud.get_subject_by_id(session, subject_id)
    if not subject:
        raise SubjectNotFoundError(subject_id)

    question_ids = await question_crud.get_active_question_ids_by_subject(session, subject_id)
    count = min(settings.quiz_random_question_count, len(question_ids))
    selected_ids = random.sample(question_ids, count)

    questions = await question_crud.get_questions_by_ids(session, selected_ids)
    by_id = {q.id: q for q in questions}
    return [by_id[qid] for qid in selected_ids if qid in by_id]


async def _select_block_questions(session: AsyncSession, block_id: str) -> list:
    """블록 활성 문제 조회 (연결된 문제가 하나도 없으면 과목 전체 활성 문제로 대체)"""
    block = await block_crud.get_block_by_id(session, block_id)
    if not block:
        raise QuizBlockNotFoundError(block_id)
    if not block.is_active:
        raise InvalidQuizRequestError(f"비활성화된 블록입니다: {block_id}")

    linked_count = await question_crud.count_questions_by_block(session, block_id)
    if linked_count == 0:
        logger.warning(
            f"블록에 연결된 문제 없음, 과목 전체 문제로 대체: block_id={block_id}, subject_id={block.subject_id}"
        )
        return list(await question_crud.get_active_questions_by_subject(session, block.subject_id))

    return list(await question_crud.get_active_questions_by_block(session, block_id))


async def start_attempt(
    session: AsyncSession,
    user: CurrentUser,
    request: attempt_schema.QuizStartRequest,
) -> attempt_schema.QuizStartResponse:
    """시험 시작: 문제 선정 → 시도/빈 답안 생성 → 출제 횟수 증가 (단일 트랜잭션)"""
    valid_modes = [m.value for m in QuizMode]
    if request.mode not in valid_modes:
        raise InvalidQuizRequestError(f"mode는 {' 또는 '.join(valid_modes)} 이어야 합니다")

    if request.mode == QuizMode.BLOCK.value:
        if not request.block_id:
            raise InvalidQuizRequestError("BLOCK 모드에서는 blockId가 필수입니다")
        questions = await _select_block_questions(session, request.block_id)
    else:
        if not request.subject_id:
            raise InvalidQuizRequestError("RANDOM_30 모드에서는 subjectId가 필수입니다")
        questions = await _select_random_questions(session, request.subject_id)

    if not questions:
        raise InvalidQuizRequestError("출제 가능한 문제가 없습니다")

    question_ids = [q.id for q in questions]

    try:
        attempt = await attempt_crud.create_attempt(
            session,
            user_id=user.id,
            mode=request.mode,
            total_questions=len(question_ids),
            subject_id=request.subject_id if request.mode == QuizMode.RANDOM_30.value else None,
            block_id=request.block_id if request.mode == QuizMode.BLOCK.value else None,
        )
        await attempt_crud.create_answer_placeholders(session, attempt.id, question_ids)
        await question_crud.increment_times_shown(session, question_ids)
        await session.commit()
    except Exception as e:
        logger.error(f"시험 시작 중 오류: {e}, user_id={user.id}", exc_info=True)
        await session.rollback()
        raise

    logger.info(
        f"시험 시작 성공: attempt_id={attempt.id}, mode={attempt.mode}, "
        f"question_count={len(question_ids)}, user_id={user.id}"
    )
    return attempt_schema.QuizStartResponse(
        attempt_id=attempt.id,
        mode=attempt.mode,
        total_questions=attempt.total_questions,
        questions=[quiz_schema.QuestionPublicResponse.model_validate(q) for q in questions],
        started_at=attempt.started_at,
    )


async def _load_attempt_with_retry(session: AsyncSession, attempt_id: str) -> QuizAttempt | None:
    """읽기 복제 지연을 고려해 시도 조회를 재시도"""
    attempt = await attempt_crud.get_attempt_with_answers(session, attempt_id)
    retry = 0
    while attempt is None and retry < settings.quiz_take_retry_attempts:
        retry += 1
        # 다음 조회가 새 트랜잭션에서 수행되도록 종료
        await session.rollback()
        await asyncio.sleep(settings.quiz_take_retry_delay_seconds)
        logger.debug(f"시도 재조회: attempt_id={attempt_id}, retry={retry}")
        attempt = await attempt_crud.get_attempt_with_answers(session, attempt_id)
    return attempt


async def get_take_view(
    session: AsyncSession,
    user: CurrentUser,
    attempt_id: str,
) -> attempt_schema.TakeViewResponse:
    """응시 화면 복원 (저장된 문제 세트, 정답 제외)"""
    attempt = await _load_attempt_with_retry(session, attempt_id)
    if not attempt:
        raise QuizAttemptNotFoundError(attempt_id)
    _ensure_can_view(attempt, user)

    return attempt_schema.TakeViewResponse(
        attempt_id=attempt.id,
        mode=attempt.mode,
        total_questions=attempt.total_questions,
        is_completed=attempt.is_completed,
        started_at=attempt.started_at,
        subject=SubjectBrief.model_validate(attempt.subject) if attempt.subject else None,
        block=BlockBrief.model_validate(attempt.block) if attempt.block else None,
        questions=[
            quiz_schema.QuestionPublicResponse.model_validate(answer.question)
            for answer in attempt.answers
        ],
    )


def _build_attempt_detail(attempt: QuizAttempt, reveal_answers: bool) -> attempt_schema.AttemptDetailResponse:
    """시도 상세 응답 생성 (reveal_answers=False면 정답/해설 숨김)"""
    detail = attempt_schema.AttemptDetailResponse.model_validate(attempt)
    if not reveal_answers:
        for answer in detail.answers:
            answer.question.correct_answer = None
            answer.question.explanation = None
    return detail


def _validate_user_answer(item: attempt_schema.SubmittedAnswer) -> None:
    """답안 형식 검증: 보기 문자(A-E) 쉼표 구분, 저장 컬럼 길이 이내"""
    if is_skipped(item.user_answer):
        return
    if len(item.user_answer.strip()) > USER_ANSWER_MAX_LENGTH:
        raise InvalidQuizRequestError(
            f"답안이 너무 깁니다 (최대 {USER_ANSWER_MAX_LENGTH}자): {item.question_id}"
        )
    invalid = [token for token in normalize_answer(item.user_answer).split(",") if token not in OPTION_LETTERS]
    if invalid:
        raise InvalidQuizRequestError(
            f"답안은 {', '.join(OPTION_LETTERS)} 중에서 선택해야 합니다: {item.question_id}"
        )


async def submit_attempt(
    session: AsyncSession,
    user: CurrentUser,
    request: attempt_schema.QuizSubmitRequest,
) -> attempt_schema.AttemptDetailResponse:
    """답안 제출 및 채점"""
    attempt = await attempt_crud.get_attempt_by_id(session, request.attempt_id, for_update=True)
    if not attempt:
        raise QuizAttemptNotFoundError(request.attempt_id)
    if attempt.user_id != user.id:
        raise PermissionDeniedError()
    if attempt.is_completed:
        raise AttemptAlreadyCompletedError(attempt.id)

    placeholders = await attempt_crud.get_answers_by_attempt(session, attempt.id)
    placeholder_ids = {answer.question_id for answer in placeholders}

    submitted: dict[str, attempt_schema.SubmittedAnswer] = {}
    for item in request.answers:
        if item.question_id not in placeholder_ids:
            raise InvalidQuizRequestError(f"이 시험에 포함되지 않은 문제입니다: {item.question_id}")
        if item.question_id in submitted:
            raise InvalidQuizRequestError(f"중복 제출된 문제입니다: {item.question_id}")
        _validate_user_answer(item)
        submitted[item.question_id] = item

    questions = await question_crud.get_questions_by_ids(session, list(placeholder_ids))
    correct_answers = {q.id: q.correct_answer for q in questions}

    grading = GradingResult()
    answered_at = utcnow()
    rows = []
    for placeholder in placeholders:
        item = submitted.get(placeholder.question_id)
        user_answer = item.user_answer if item else None
        is_correct = grading.record(
            placeholder.question_id,
            user_answer,
            correct_answers.get(placeholder.question_id),
        )
        rows.append({
            "attempt_id": attempt.id,
            "question_id": placeholder.question_id,
            "user_answer": None if is_skipped(user_answer) else user_answer.strip(),
            "is_correct": is_correct,
            "time_spent": item.time_spent if item else None,
            "answered_at": answered_at if item else None,
        })

    score = calculate_score(grading.correct_count, attempt.total_questions)

    try:
        await attempt_crud.bulk_update_answers(session, rows)
        completed = await attempt_crud.complete_attempt(
            session,
            attempt.id,
            {
                "correct_answers": grading.correct_count,
                "wrong_answers": grading.wrong_count,
                "skipped_answers": grading.skipped_count,
                "score": score,
                "time_spent": request.time_spent,
                "completed_at": answered_at,
            },
        )
        if not completed:
            raise AttemptAlreadyCompletedError(attempt.id)
        await question_crud.increment_answer_counters(session, grading.correct_ids, grading.wrong_ids)
        if attempt.block_id:
            await block_crud.refresh_block_statistics(session, attempt.block_id)
        await session.commit()
    except BaseAppError:
        await session.rollback()
        raise
    except Exception as e:
        logger.error(f"답안 제출 트랜잭션 실패: {e}, attempt_id={attempt.id}", exc_info=True)
        await session.rollback()
        raise QuizSubmissionError() from e

    logger.info(
        f"답안 제출 완료: attempt_id={attempt.id}, correct={grading.correct_count}, "
        f"wrong={grading.wrong_count}, skipped={grading.skipped_count}, score={score:.1f}"
    )

    # expire_all 이후 attempt 속성 접근은 동기 lazy load가 되므로 id를 먼저 보관
    attempt_id = attempt.id
    session.expire_all()
    completed_attempt = await attempt_crud.get_attempt_with_answers(session, attempt_id)
    return _build_attempt_detail(completed_attempt, reveal_answers=True)


async def get_attempt_detail(
    session: AsyncSession,
    user: CurrentUser,
    attempt_id: str,
) -> attempt_schema.AttemptDetailResponse:
    """시도 상세 조회 (정답은 완료 후 또는 관리자에게만 공개)"""
    attempt = await attempt_crud.get_attempt_with_answers(session, attempt_id)
    if not attempt:
        raise QuizAttemptNotFoundError(attempt_id)
    _ensure_can_view(attempt, user)
    return _build_attempt_detail(attempt, reveal_answers=attempt.is_completed or user.is_admin)


async def get_active_attempt(
    session: AsyncSession,
    user: CurrentUser,
) -> attempt_schema.AttemptDetailResponse | None:
    """진행 중인 최근 시도 (정답 숨김)"""
    active = await attempt_crud.get_active_attempt(session, user.id)
    if not active:
        return None
    attempt = await attempt_crud.get_attempt_with_answers(session, active.id)
    return _build_attempt_detail(attempt, reveal_answers=False)


async def get_my_results(
    session: AsyncSession,
    user: CurrentUser,
    mode: str | None = None,
    subject_id: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> attempt_schema.MyResultsResponse:
    """완료된 내 시도 목록"""
    attempts, total = await attempt_crud.get_completed_attempts(
        session,
        user.id,
        mode=mode,
        subject_id=subject_id,
        page=page,
        limit=limit,
    )
    return attempt_schema.MyResultsResponse(
        attempts=[attempt_schema.AttemptSummaryResponse.model_validate(a) for a in attempts],
        pagination=PaginationResponse.build(total=total, page=page, limit=limit),
    )


async def get_stats(session: AsyncSession, user: CurrentUser) -> attempt_schema.QuizStatsResponse:
    """사용자 퀴즈 통계"""
    total_attempts = await attempt_crud.count_attempts(session, user.id)
    completed_attempts = await attempt_crud.count_attempts(session, user.id, completed_only=True)
    average_score = await attempt_crud.get_average_score(session, user.id)
    recent_attempts, _ = await attempt_crud.get_completed_attempts(session, user.id, page=1, limit=5)

    subject_rows = await attempt_crud.get_subject_stats(session, user.id)
    subjects = await subject_crud.get_subjects_by_ids(session, [row[0] for row in subject_rows])
    subject_names = {s.id: s.name for s in subjects}

    return attempt_schema.QuizStatsResponse(
        total_attempts=total_attempts,
        completed_attempts=completed_attempts,
        average_score=average_score,
        recent_attempts=[attempt_schema.AttemptSummaryResponse.model_validate(a) for a in recent_attempts],
        stats_by_subject=[
            attempt_schema.SubjectStatResponse(
                subject_id=subject_id,
                subject_name=subject_names.get(subject_id),
                attempts=count,
                average_score=avg,
            )
            for subject_id, count, avg in subject_rows
        ],
    )
