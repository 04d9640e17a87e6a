from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, generate_id

OPTION_LETTERS = ("A", "B", "C", "D", "E")


class QuizQuestion(Base, TimestampMixin):
    __tablename__ = "quiz_questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    subject_id: Mapped[str] = mapped_column(ForeignKey("subjects.id"), nullable=False, index=True)
    block_id: Mapped[str | None] = mapped_column(ForeignKey("quiz_blocks.id"), nullable=True, index=True)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_image: Mapped[str | None] = mapped_column(String(1024), default=None)
    option_a: Mapped[str] = mapped_column(Text, nullable=False)
    option_b: Mapped[str] = mapped_column(Text, nullable=False)
    option_c: Mapped[str] = mapped_column(Text, nullable=False)
    option_d: Mapped[str] = mapped_column(Text, nullable=False)
    option_e: Mapped[str | None] = mapped_column(Text, default=None)
    # 단일 정답 "A" 또는 복수 정답 "A,C"
    correct_answer: Mapped[str] = mapped_column(String(20), nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text, default=None)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default="MEDIUM")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    times_shown: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    times_correct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    times_wrong: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    subject: Mapped["Subject"] = relationship("Subject", back_populates="questions")
    block: Mapped["QuizBlock | None"] = relationship("QuizBlock", back_populates="questions")

    @property
    def question_type(self) -> str:
        """정답 개수로 판단한 문제 유형"""
        return "MULTIPLE" if "," in self.correct_answer else "SINGLE"
