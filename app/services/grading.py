"""답안 채점 유틸리티"""
from dataclasses import dataclass, field


def normalize_answer(value: str | None) -> str:
    """쉼표 구분 답안을 정렬된 정규형으로 변환

    "B, a" -> "A,B". 빈 토큰은 버린다.
    """
    if not value:
        return ""
    tokens = [token.strip().upper() for token in value.split(",")]
    return ",".join(sorted(token for token in tokens if token))


def is_skipped(user_answer: str | None) -> bool:
    """선택한 보기가 없으면 건너뜀"""
    return normalize_answer(user_answer) == ""


def is_answer_correct(user_answer: str | None, correct_answer: str | None) -> bool:
    """단일/복수 정답을 순서와 무관하게 비교"""
    if is_skipped(user_answer) or not correct_answer:
        return False
    return normalize_answer(user_answer) == normalize_answer(correct_answer)


def calculate_score(correct_count: int, total_questions: int) -> float:
    """백분율 점수"""
    if total_questions <= 0:
        return 0.0
    return correct_count / total_questions * 100


@dataclass
class GradingResult:
    """채점 집계"""
    correct_ids: list[str] = field(default_factory=list)
    wrong_ids: list[str] = field(default_factory=list)
    skipped_ids: list[str] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return len(self.correct_ids)

    @property
    def wrong_count(self) -> int:
        return len(self.wrong_ids)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_ids)

    def record(self, question_id: str, user_answer: str | None, correct_answer: str | None) -> bool:
        """한 문제 채점 결과를 누적하고 정답 여부 반환"""
        if is_skipped(user_answer):
            self.skipped_ids.append(question_id)
            return False
        if is_answer_correct(user_answer, correct_answer):
            self.correct_ids.append(question_id)
            return True
        self.wrong_ids.append(question_id)
        return False
