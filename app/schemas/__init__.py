from app.schemas.attempt import (
    AnswerDetailResponse,
    AttemptDetailResponse,
    AttemptSummaryResponse,
    MyResultsResponse,
    QuizStartRequest,
    QuizStartResponse,
    QuizStatsResponse,
    QuizSubmitRequest,
    SubjectStatResponse,
    SubmittedAnswer,
    TakeViewResponse,
)
from app.schemas.base import CamelModel, PaginationResponse
from app.schemas.block import (
    BlockBrief,
    BlockCreateRequest,
    BlockDetailResponse,
    BlockResponse,
    BlockUpdateRequest,
    StudentBlockResponse,
)
from app.schemas.cleanup import CleanupResponse
from app.schemas.quiz import (
    BulkImportRequest,
    BulkImportResponse,
    QuestionAdminResponse,
    QuestionCreateRequest,
    QuestionListResponse,
    QuestionPayload,
    QuestionPublicResponse,
    QuestionUpdateRequest,
    QuestionWithAnswerResponse,
)
from app.schemas.subject import (
    SubjectBrief,
    SubjectResponse,
)

__all__ = [
    "CamelModel",
    "PaginationResponse",
    "SubjectBrief",
    "SubjectResponse",
    "BlockBrief",
    "BlockResponse",
    "BlockDetailResponse",
    "BlockCreateRequest",
    "BlockUpdateRequest",
    "StudentBlockResponse",
    "QuestionPublicResponse",
    "QuestionWithAnswerResponse",
    "QuestionAdminResponse",
    "QuestionPayload",
    "QuestionCreateRequest",
    "QuestionUpdateRequest",
    "QuestionListResponse",
    "BulkImportRequest",
    "BulkImportResponse",
    "QuizStartRequest",
    "QuizStartResponse",
    "TakeViewResponse",
    "SubmittedAnswer",
    "QuizSubmitRequest",
    "AnswerDetailResponse",
    "AttemptSummaryResponse",
    "AttemptDetailResponse",
    "MyResultsResponse",
    "SubjectStatResponse",
    "QuizStatsResponse",
    "CleanupResponse",
]
