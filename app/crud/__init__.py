from app.crud.quiz_attempt import (
    bulk_update_answers,
    complete_attempt,
    create_answer_placeholders,
    create_attempt,
    delete_attempts_with_answers,
    get_active_attempt,
    get_answers_by_attempt,
    get_attempt_by_id,
    get_attempt_ids_started_before,
    get_attempt_with_answers,
    get_completed_attempts,
)
from app.crud.quiz_block import (
    create_block,
    delete_block,
    get_block_by_id,
    get_blocks,
    refresh_block_statistics,
    update_block,
)
from app.crud.quiz_question import (
    create_question,
    delete_question,
    get_question_by_id,
    get_questions,
    get_questions_by_ids,
    increment_answer_counters,
    increment_times_shown,
    update_question,
)
from app.crud.subject import (
    get_all_subjects_with_question_count,
    get_subject_by_id,
)

__all__ = [
    "get_subject_by_id",
    "get_all_subjects_with_question_count",
    "get_block_by_id",
    "get_blocks",
    "create_block",
    "update_block",
    "delete_block",
    "refresh_block_statistics",
    "get_question_by_id",
    "get_questions",
    "get_questions_by_ids",
    "create_question",
    "update_question",
    "delete_question",
    "increment_times_shown",
    "increment_answer_counters",
    "create_attempt",
    "create_answer_placeholders",
    "get_attempt_by_id",
    "get_attempt_with_answers",
    "get_answers_by_attempt",
    "bulk_update_answers",
    "complete_attempt",
    "get_active_attempt",
    "get_completed_attempts",
    "get_attempt_ids_started_before",
    "delete_attempts_with_answers",
]
