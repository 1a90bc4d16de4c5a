"""
Data models for adaptive questions and answers.

Questions and answers are closed tagged unions keyed by ``question_type``.
Consumers dispatch on the concrete class and finish with ``assert_never`` so
an unhandled variant fails loudly instead of falling through.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, NoReturn, Optional, Tuple, Union

from masterygraph.core.errors import AnswerMismatchError, DomainContractError


class QuestionType(str, Enum):
    """Discriminant shared by questions and answers."""
    MULTIPLE_CHOICE = "multiple_choice"
    FILL_IN_THE_BLANK = "fill_in_the_blank"
    CALCULATION = "calculation"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def assert_never(value: object) -> NoReturn:
    raise AssertionError(f"Unhandled variant: {value!r}")


# Questions

@dataclass(frozen=True)
class MultipleChoiceQuestion:
    """Question answered by picking one of the ordered options"""
    question_id: str
    text: str
    difficulty: Difficulty
    options: Tuple[str, ...]
    correct_answer: Optional[int] = None  # only present in review payloads
    knowledge_node_id: Optional[str] = None

    question_type: ClassVar[QuestionType] = QuestionType.MULTIPLE_CHOICE


@dataclass(frozen=True)
class FillInTheBlankQuestion:
    """Question answered with free text"""
    question_id: str
    text: str
    difficulty: Difficulty
    expected_answers: Tuple[str, ...] = ()
    knowledge_node_id: Optional[str] = None

    question_type: ClassVar[QuestionType] = QuestionType.FILL_IN_THE_BLANK


@dataclass(frozen=True)
class CalculationQuestion:
    """Question answered with a number"""
    question_id: str
    text: str
    difficulty: Difficulty
    expected_answers: Tuple[str, ...] = ()
    precision: Optional[int] = None  # decimal places the grader compares at
    knowledge_node_id: Optional[str] = None

    question_type: ClassVar[QuestionType] = QuestionType.CALCULATION


Question = Union[MultipleChoiceQuestion, FillInTheBlankQuestion, CalculationQuestion]


# Answers

@dataclass(frozen=True)
class MultipleChoiceAnswer:
    selected_option: int

    question_type: ClassVar[QuestionType] = QuestionType.MULTIPLE_CHOICE


@dataclass(frozen=True)
class FillInTheBlankAnswer:
    text_answer: str

    question_type: ClassVar[QuestionType] = QuestionType.FILL_IN_THE_BLANK


@dataclass(frozen=True)
class CalculationAnswer:
    numeric_answer: float

    question_type: ClassVar[QuestionType] = QuestionType.CALCULATION


Answer = Union[MultipleChoiceAnswer, FillInTheBlankAnswer, CalculationAnswer]


@dataclass(frozen=True)
class NextQuestionSelection:
    """
    Result of asking the selector for the next question.

    ``question is None`` is the terminal "nothing to ask" state, not an error.
    ``selection_reason`` and ``priority_score`` are passed through untouched.
    """
    question: Optional[Question]
    node_id: Optional[str]
    selection_reason: str
    priority_score: Optional[float] = None

    @property
    def has_question(self) -> bool:
        return self.question is not None


@dataclass(frozen=True)
class SubmissionResult:
    """Grading outcome for a single submitted answer"""
    answer_id: str
    is_correct: bool
    mastery_updated: bool
    correct_answer: Optional[Answer] = None


def ensure_answer_matches(question: Question, answer: Answer) -> None:
    """Raise AnswerMismatchError unless both sides share a discriminant."""
    if answer.question_type is not question.question_type:
        raise AnswerMismatchError(question.question_type.value, answer.question_type.value)


def build_answer(question: Question, value: Union[int, float, str]) -> Answer:
    """
    Build the answer variant that matches ``question``.

    Args:
        question: The active question
        value: Option index, free text or number depending on the variant

    Returns:
        Answer carrying the question's discriminant
    """
    if isinstance(question, MultipleChoiceQuestion):
        if isinstance(value, bool) or not isinstance(value, int):
            raise DomainContractError(f"Option index must be an int, got {value!r}")
        if not 0 <= value < len(question.options):
            raise DomainContractError(
                f"Option {value} out of range for {len(question.options)} options"
            )
        return MultipleChoiceAnswer(selected_option=value)
    elif isinstance(question, FillInTheBlankQuestion):
        return FillInTheBlankAnswer(text_answer=str(value).strip())
    elif isinstance(question, CalculationQuestion):
        try:
            return CalculationAnswer(numeric_answer=float(value))
        except (TypeError, ValueError):
            raise DomainContractError(f"Calculation answer is not a number: {value!r}")
    else:
        assert_never(question)
