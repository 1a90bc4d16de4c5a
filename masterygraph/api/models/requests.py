"""
Pydantic request models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List


class CourseEnrollmentRequest(BaseModel):
    """Request body for course enrollment."""
    course_id: str = Field(..., description="Course ID")


class GraphEnrollmentRequest(BaseModel):
    """Request body for graph enrollment."""
    graph_id: str = Field(..., description="Knowledge graph ID")


class SingleAnswerSubmitRequest(BaseModel):
    """Request body for submitting one answer in practice mode."""
    question_id: str = Field(..., description="Question ID")
    user_answer: Dict[str, Any] = Field(..., description="Answer tagged with question_type")
    graph_id: str = Field(..., description="Graph the question was drawn from")


class CreateGraphRequest(BaseModel):
    """Request body for creating an owned graph."""
    name: str = Field(..., min_length=1, description="Graph name")
    description: str = Field(default="", description="Graph description")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    is_public: bool = Field(default=False, description="Visible to other learners")


class QuizStartRequest(BaseModel):
    """Request body for starting a quiz attempt."""
    question_num: int = Field(..., ge=1, description="Number of questions to draw")


class ClientAnswerInput(BaseModel):
    """One answer inside a quiz submission."""
    question_id: str = Field(..., description="Question ID")
    answer: Dict[str, Any] = Field(..., description="Answer tagged with question_type")


class QuizSubmissionRequest(BaseModel):
    """Request body for submitting a whole quiz attempt."""
    answers: List[ClientAnswerInput] = Field(..., description="Answers in question order")
