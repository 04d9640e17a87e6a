from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, utcnow


USER_ANSWER_MAX_LENGTH = 20


class QuizAnswer(Base):
    __tablename__ = "quiz_answers"

    # (attempt_id, question_id) 복합키: 시도당 문제별 답안 1행
    attempt_id: Mapped[str] = mapped_column(ForeignKey("quiz_attempts.id"), primary_key=True)
    question_id: Mapped[str] = mapped_column(ForeignKey("quiz_questions.id"), primary_key=True, index=True)
    question_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_answer: Mapped[str | None] = mapped_column(String(USER_ANSWER_MAX_LENGTH), default=None)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    time_spent: Mapped[int | None] = mapped_column(Integer, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    answered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    attempt: Mapped["QuizAttempt"] = relationship("QuizAttempt", back_populates="answers")
    question: Mapped["QuizQuestion"] = relationship("QuizQuestion")
