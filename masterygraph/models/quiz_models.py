"""
Data models for batch quiz attempts.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from masterygraph.models.question_models import Question


class QuizStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class QuizAttempt:
    """A fixed set of questions answered and submitted together"""
    attempt_id: str
    course_id: str
    question_num: int
    status: QuizStatus
    questions: Tuple[Question, ...] = ()
    score: Optional[float] = None  # set once the attempt is graded

    @property
    def is_open(self) -> bool:
        return self.status is QuizStatus.IN_PROGRESS

    def question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.question_id == question_id:
                return question
        return None


@dataclass(frozen=True)
class QuizReceipt:
    """Server acknowledgement of a submitted attempt"""
    attempt_id: str
    message: str = ""
