"""커스텀 예외 클래스 정의"""


class BaseAppError(Exception):
    """애플리케이션 기본 예외 클래스"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AuthenticationRequiredError(BaseAppError):
    """인증 정보가 없을 때 (401)"""

    def __init__(self, message: str = "로그인이 필요합니다"):
        super().__init__(message, status_code=401)


class AccountNotApprovedError(BaseAppError):
    """승인되지 않은 계정 (403)"""

    def __init__(self, message: str = "승인되지 않은 계정입니다"):
        super().__init__(message, status_code=403)


class PermissionDeniedError(BaseAppError):
    """권한 없음 (403)"""

    def __init__(self, message: str = "접근 권한이 없습니다"):
        super().__init__(message, status_code=403)


class InvalidCleanupTokenError(BaseAppError):
    """정리 작업 토큰 불일치 (401)"""

    def __init__(self, message: str = "유효하지 않은 토큰입니다"):
        super().__init__(message, status_code=401)


class RateLimitExceededError(BaseAppError):
    """요청 한도 초과 (429)"""

    def __init__(self, retry_after: int, message: str = "요청이 너무 많습니다. 잠시 후 다시 시도해주세요."):
        self.retry_after = retry_after
        super().__init__(message, status_code=429)


class SubjectNotFoundError(BaseAppError):
    """과목을 찾을 수 없을 때 발생하는 예외 (404)"""

    def __init__(self, subject_id: str):
        super().__init__(f"과목을 찾을 수 없습니다: {subject_id}", status_code=404)


class QuizBlockNotFoundError(BaseAppError):
    """블록을 찾을 수 없을 때 발생하는 예외 (404)"""

    def __init__(self, block_id: str):
        super().__init__(f"블록을 찾을 수 없습니다: {block_id}", status_code=404)


class QuizQuestionNotFoundError(BaseAppError):
    """문제를 찾을 수 없을 때 발생하는 예외 (404)"""

    def __init__(self, question_id: str):
        super().__init__(f"문제를 찾을 수 없습니다: {question_id}", status_code=404)


class QuizAttemptNotFoundError(BaseAppError):
    """시험 시도를 찾을 수 없을 때 발생하는 예외 (404)"""

    def __init__(self, attempt_id: str):
        super().__init__(f"시험 기록을 찾을 수 없습니다: {attempt_id}", status_code=404)


class InvalidQuizRequestError(BaseAppError):
    """잘못된 문제 요청일 때 발생하는 예외 (400)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class AttemptAlreadyCompletedError(InvalidQuizRequestError):
    """이미 제출된 시도 (400)"""

    def __init__(self, attempt_id: str):
        super().__init__(f"이미 완료된 시험입니다: {attempt_id}")


class QuizSubmissionError(BaseAppError):
    """제출 처리 중 내부 오류 (500, 상세 원인은 로그에만 기록)"""

    def __init__(self, message: str = "답안 제출 처리 중 오류가 발생했습니다"):
        super().__init__(message, status_code=500)
