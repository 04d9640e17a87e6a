import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import quiz_block as block_crud, quiz_question as question_crud
from app.crud import subject as subject_crud
from app.exceptions import (
    InvalidQuizRequestError,
    QuizBlockNotFoundError,
    QuizQuestionNotFoundError,
    SubjectNotFoundError,
)
from app.models.quiz_block import QuizBlock
from app.models.quiz_question import OPTION_LETTERS
from app.schemas import block as block_schema, quiz as quiz_schema
from app.schemas.base import PaginationResponse
from app.services.grading import normalize_answer

logger = logging.getLogger(__name__)

REQUIRED_QUESTION_FIELDS = ("question_text", "option_a", "option_b", "option_c", "option_d", "correct_answer")
NULLABLE_QUESTION_FIELDS = ("block_id", "question_image", "option_e", "explanation")
NULLABLE_BLOCK_FIELDS = ("description",)


def validate_question_fields(fields: dict) -> list[str]:
    """문제 필드 검증 후 오류 메시지 목록 반환 (빈 목록이면 통과)

    correct_answer는 "A" 또는 "A,C" 형식이며 각 보기 문자는 값이 있는 보기를 가리켜야 한다.
    """
    errors = []
    for name in REQUIRED_QUESTION_FIELDS:
        value = fields.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"{name} 누락")

    correct_answer = fields.get("correct_answer")
    if correct_answer and correct_answer.strip():
        for letter in normalize_answer(correct_answer).split(","):
            if letter not in OPTION_LETTERS:
                errors.append(f"correct_answer는 {', '.join(OPTION_LETTERS)} 중에서 선택해야 합니다: {letter}")
            elif not fields.get(f"option_{letter.lower()}"):
                errors.append(f"정답 {letter}에 해당하는 보기가 없습니다")
    return errors


async def _ensure_subject(session: AsyncSession, subject_id: str | None) -> None:
    if not subject_id:
        raise InvalidQuizRequestError("subjectId는 필수입니다")
    if not await subject_crud.get_subject_by_id(session, subject_id):
        raise SubjectNotFoundError(subject_id)


async def _ensure_block(session: AsyncSession, block_id: str | None) -> None:
    if block_id and not await block_crud.get_block_by_id(session, block_id):
        raise QuizBlockNotFoundError(block_id)


def _partial_fields(fields: dict, nullable: tuple[str, ...]) -> dict:
    """부분 수정 필드 정리 (NOT NULL 컬럼의 null 값은 무시)"""
    return {key: value for key, value in fields.items() if value is not None or key in nullable}


def _to_block_response(block: QuizBlock, question_count: int) -> block_schema.BlockResponse:
    response = block_schema.BlockResponse.model_validate(block)
    response.question_count = question_count
    return response


# ----- 블록 -----

async def list_blocks(session: AsyncSession, subject_id: str | None = None) -> list[block_schema.BlockResponse]:
    """블록 목록 (비활성 포함)"""
    blocks = await block_crud.get_blocks(session, subject_id=subject_id)
    counts = await block_crud.get_question_counts_by_block(session, [b.id for b in blocks])
    return [_to_block_response(b, counts.get(b.id, 0)) for b in blocks]


async def create_block(
    session: AsyncSession,
    request: block_schema.BlockCreateRequest,
) -> block_schema.BlockResponse:
    """블록 생성"""
    if not request.title or not request.title.strip():
        raise InvalidQuizRequestError("title은 필수입니다")
    await _ensure_subject(session, request.subject_id)

    block = await block_crud.create_block(
        session,
        subject_id=request.subject_id,
        title=request.title.strip(),
        description=request.description,
        difficulty=request.difficulty,
        order_index=request.order_index,
    )
    logger.info(f"블록 생성: block_id={block.id}, subject_id={block.subject_id}")
    return _to_block_response(block, 0)


async def get_block_detail(session: AsyncSession, block_id: str) -> block_schema.BlockDetailResponse:
    """블록 상세 (연결된 문제 포함)"""
    block = await block_crud.get_block_by_id(session, block_id, load_questions=True)
    if not block:
        raise QuizBlockNotFoundError(block_id)
    detail = block_schema.BlockDetailResponse.model_validate(block)
    detail.question_count = len(detail.questions)
    return detail


async def update_block(
    session: AsyncSession,
    block_id: str,
    request: block_schema.BlockUpdateRequest,
) -> block_schema.BlockResponse:
    """블록 수정"""
    block = await block_crud.get_block_by_id(session, block_id)
    if not block:
        raise QuizBlockNotFoundError(block_id)

    fields = _partial_fields(request.model_dump(exclude_unset=True), NULLABLE_BLOCK_FIELDS)
    if "title" in fields and (not fields["title"] or not fields["title"].strip()):
        raise InvalidQuizRequestError("title은 비워둘 수 없습니다")

    block = await block_crud.update_block(session, block, fields)
    counts = await block_crud.get_question_counts_by_block(session, [block.id])
    logger.info(f"블록 수정: block_id={block.id}, fields={sorted(fields)}")
    return _to_block_response(block, counts.get(block.id, 0))


async def delete_block(session: AsyncSession, block_id: str) -> None:
    """블록 삭제"""
    block = await block_crud.get_block_by_id(session, block_id)
    if not block:
        raise QuizBlockNotFoundError(block_id)
    await block_crud.delete_block(session, block)
    logger.info(f"블록 삭제: block_id={block_id}")


# ----- 문제 -----

async def list_questions(
    session: AsyncSession,
    block_id: str | None = None,
    subject_id: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> quiz_schema.QuestionListResponse:
    """문제 목록 (필터 + 페이지네이션)"""
    questions, total = await question_crud.get_questions(
        session,
        block_id=block_id,
        subject_id=subject_id,
        search=search,
        page=page,
        limit=limit,
    )
    return quiz_schema.QuestionListResponse(
        questions=[quiz_schema.QuestionAdminResponse.model_validate(q) for q in questions],
        pagination=PaginationResponse.build(total=total, page=page, limit=limit),
    )


async def get_question(session: AsyncSession, question_id: str) -> quiz_schema.QuestionAdminResponse:
    question = await question_crud.get_question_by_id(session, question_id)
    if not question:
        raise QuizQuestionNotFoundError(question_id)
    return quiz_schema.QuestionAdminResponse.model_validate(question)


async def create_question(
    session: AsyncSession,
    request: quiz_schema.QuestionCreateRequest,
) -> quiz_schema.QuestionAdminResponse:
    """문제 생성"""
    fields = request.model_dump(exclude_none=True)
    errors = validate_question_fields(fields)
    if errors:
        raise InvalidQuizRequestError(", ".join(errors))
    await _ensure_subject(session, request.subject_id)
    await _ensure_block(session, request.block_id)

    question = await question_crud.create_question(session, **fields)
    logger.info(f"문제 생성: question_id={question.id}, subject_id={question.subject_id}")
    return quiz_schema.QuestionAdminResponse.model_validate(question)


async def update_question(
    session: AsyncSession,
    question_id: str,
    request: quiz_schema.QuestionUpdateRequest,
) -> quiz_schema.QuestionAdminResponse:
    """문제 수정 (병합 결과 기준으로 재검증)"""
    question = await question_crud.get_question_by_id(session, question_id)
    if not question:
        raise QuizQuestionNotFoundError(question_id)

    fields = _partial_fields(request.model_dump(exclude_unset=True), NULLABLE_QUESTION_FIELDS)
    merged = {
        name: getattr(question, name)
        for name in ("question_text", "option_a", "option_b", "option_c", "option_d", "option_e", "correct_answer")
    }
    merged.update(fields)
    errors = validate_question_fields(merged)
    if errors:
        raise InvalidQuizRequestError(", ".join(errors))

    if fields.get("subject_id"):
        await _ensure_subject(session, fields["subject_id"])
    if fields.get("block_id"):
        await _ensure_block(session, fields["block_id"])

    question = await question_crud.update_question(session, question, fields)
    logger.info(f"문제 수정: question_id={question.id}, fields={sorted(fields)}")
    return quiz_schema.QuestionAdminResponse.model_validate(question)


async def delete_question(session: AsyncSession, question_id: str) -> None:
    """문제 삭제 (응시 기록에서 참조 중이면 거부)"""
    question = await question_crud.get_question_by_id(session, question_id)
    if not question:
        raise QuizQuestionNotFoundError(question_id)
    if await question_crud.is_question_used_in_attempts(session, question_id):
        raise InvalidQuizRequestError("응시 기록에 사용된 문제는 삭제할 수 없습니다. 비활성화하세요.")
    await question_crud.delete_question(session, question)
    logger.info(f"문제 삭제: question_id={question_id}")


async def bulk_import_questions(
    session: AsyncSession,
    request: quiz_schema.BulkImportRequest,
) -> quiz_schema.BulkImportResponse:
    """문제 일괄 등록: 전체 검증 후 단일 트랜잭션으로 저장"""
    if not request.questions:
        raise InvalidQuizRequestError("questions는 비어 있을 수 없습니다")
    await _ensure_subject(session, request.subject_id)
    await _ensure_block(session, request.block_id)

    errors = []
    for index, payload in enumerate(request.questions, start=1):
        for error in validate_question_fields(payload.model_dump(exclude_none=True)):
            errors.append(f"문제 {index}: {error}")
    if errors:
        logger.warning(f"일괄 등록 검증 실패: error_count={len(errors)}")
        raise InvalidQuizRequestError("검증 실패 - " + "; ".join(errors))

    questions = [
        question_crud.build_question(
            subject_id=request.subject_id,
            block_id=request.block_id,
            **payload.model_dump(exclude_none=True),
        )
        for payload in request.questions
    ]
    try:
        session.add_all(questions)
        await session.commit()
    except Exception as e:
        logger.error(f"일괄 등록 실패: {e}", exc_info=True)
        await session.rollback()
        raise

    logger.info(f"일괄 등록 완료: imported={len(questions)}, subject_id={request.subject_id}")
    return quiz_schema.BulkImportResponse(
        imported=len(questions),
        questions=[quiz_schema.QuestionAdminResponse.model_validate(q) for q in questions],
    )
