from app.services.attempt_service import (
    get_active_attempt,
    get_attempt_detail,
    get_my_results,
    get_stats,
    get_take_view,
    start_attempt,
    submit_attempt,
)
from app.services.grading import (
    calculate_score,
    is_answer_correct,
    normalize_answer,
)
from app.services.quiz_service import (
    get_question_for_practice,
    list_student_blocks,
    list_subjects,
)
from app.services.retention_service import cleanup_old_attempts

__all__ = [
    "normalize_answer",
    "is_answer_correct",
    "calculate_score",
    "start_attempt",
    "get_take_view",
    "submit_attempt",
    "get_attempt_detail",
    "get_active_attempt",
    "get_my_results",
    "get_stats",
    "list_subjects",
    "list_student_blocks",
    "get_question_for_practice",
    "cleanup_old_attempts",
]
