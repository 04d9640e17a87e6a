from app.models.base import Base, get_db
from app.models.quiz_answer import QuizAnswer
from app.models.quiz_attempt import QuizAttempt, QuizMode
from app.models.quiz_block import QuizBlock
from app.models.quiz_question import QuizQuestion
from app.models.subject import Subject

__all__ = ["Base", "Subject", "QuizBlock", "QuizQuestion", "QuizAttempt", "QuizAnswer", "QuizMode", "get_db"]
