import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.crud import quiz_attempt as attempt_crud, quiz_block as block_crud, quiz_question as question_crud
from app.crud import subject as subject_crud
from app.exceptions import InvalidQuizRequestError, QuizQuestionNotFoundError
from app.schemas import block as block_schema, quiz as quiz_schema, subject as subject_schema

logger = logging.getLogger(__name__)


async def list_subjects(session: AsyncSession) -> list[subject_schema.SubjectResponse]:
    """과목 목록 (활성 문제 개수 포함)"""
    subjects = await subject_crud.get_all_subjects_with_question_count(session)
    return [subject_schema.SubjectResponse(**s) for s in subjects]


async def list_student_blocks(
    session: AsyncSession,
    user: CurrentUser,
    subject_id: str | None = None,
) -> list[block_schema.StudentBlockResponse]:
    """활성 블록 목록과 사용자 진행 현황"""
    blocks = await block_crud.get_blocks(session, subject_id=subject_id, active_only=True)
    block_ids = [b.id for b in blocks]
    question_counts = await block_crud.get_question_counts_by_block(session, block_ids, active_only=True)
    progress = await attempt_crud.get_user_block_progress(session, user.id, block_ids)

    responses = []
    for block in blocks:
        attempts, best_score = progress.get(block.id, (0, None))
        responses.append(
            block_schema.StudentBlockResponse(
                id=block.id,
                title=block.title,
                description=block.description,
                difficulty=block.difficulty,
                order_index=block.order_index,
                subject=subject_schema.SubjectBrief.model_validate(block.subject),
                question_count=question_counts.get(block.id, 0),
                user_attempts=attempts,
                best_score=best_score,
            )
        )
    return responses


async def get_question_for_practice(
    session: AsyncSession,
    question_id: str | None,
) -> quiz_schema.QuestionWithAnswerResponse:
    """단일 문제 조회 (정답/해설 포함, 연습용)"""
    if not question_id:
        raise InvalidQuizRequestError("id는 필수입니다")
    question = await question_crud.get_question_by_id(session, question_id)
    if not question:
        raise QuizQuestionNotFoundError(question_id)
    return quiz_schema.QuestionWithAnswerResponse.model_validate(question)
