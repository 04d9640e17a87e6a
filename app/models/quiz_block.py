from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, generate_id


class QuizBlock(Base, TimestampMixin):
    __tablename__ = "quiz_blocks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    subject_id: Mapped[str] = mapped_column(ForeignKey("subjects.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default="MEDIUM")  # EASY, MEDIUM, HARD
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    total_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    subject: Mapped["Subject"] = relationship("Subject", back_populates="blocks")
    questions: Mapped[list["QuizQuestion"]] = relationship(
        "QuizQuestion",
        back_populates="block",
        order_by="QuizQuestion.created_at",
    )
