"""
Pydantic models for API response payloads.

Field names follow the wire contract exactly.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Literal, Optional, Union


class CourseResponse(BaseModel):
    """Course as returned by /courses/."""
    course_id: str
    course_name: str = Field(validation_alias=AliasChoices("course_name", "name"))
    course_description: Optional[str] = None
    is_enrolled: Optional[bool] = None
    num_of_knowledge: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("num_of_knowledge", "node_count")
    )


class GraphResponse(BaseModel):
    """Knowledge graph summary as returned by /graphs/ and /me/graphs."""
    id: str
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = []
    is_public: Optional[bool] = None
    is_template: Optional[bool] = None
    owner_id: Optional[str] = None
    enrollment_count: Optional[int] = None
    node_count: Optional[int] = None
    is_enrolled: Optional[bool] = None
    created_at: Optional[str] = None


class EnrollmentResponse(BaseModel):
    """Enrollment record."""
    id: str
    student_id: str
    course_id: Optional[str] = None
    graph_id: Optional[str] = None
    enrollment_date: Optional[str] = None


class GraphNodeVisualization(BaseModel):
    """Node in a graph visualization payload."""
    id: str
    name: str = ""
    description: Optional[str] = None
    mastery_score: float


class GraphEdgeVisualization(BaseModel):
    """Edge in a graph visualization payload."""
    source_id: str
    target_id: str
    type: str


class GraphVisualization(BaseModel):
    """Payload of /graphs/{id}/visualization."""
    nodes: List[GraphNodeVisualization] = []
    edges: Optional[List[GraphEdgeVisualization]] = None


class QuestionDetails(BaseModel):
    """Variant-specific question fields."""
    model_config = ConfigDict(extra="allow")

    question_type: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[int] = None
    expected_answer: Optional[List[Union[str, float]]] = None
    precision: Optional[int] = None


class QuestionResponse(BaseModel):
    """Question payload; the discriminant may sit at either level."""
    question_id: Optional[str] = None
    question_type: Optional[str] = None
    text: str
    difficulty: Literal["easy", "medium", "hard"]
    knowledge_node_id: Optional[str] = None
    details: Optional[QuestionDetails] = None


class AnswerPayload(BaseModel):
    """Answer tagged with question_type."""
    question_type: Optional[str] = None
    selected_option: Optional[int] = None
    text_answer: Optional[str] = None
    numeric_answer: Optional[float] = None


class NextQuestionResponse(BaseModel):
    """Payload of the next-question endpoints."""
    question: Optional[QuestionResponse] = None
    node_id: Optional[str] = None
    selection_reason: str = ""
    priority_score: Optional[float] = None


class SingleAnswerSubmitResponse(BaseModel):
    """Grading result for POST /answer."""
    answer_id: str
    is_correct: bool
    mastery_updated: bool = False
    correct_answer: Optional[AnswerPayload] = None


class QuizAttemptResponse(BaseModel):
    """Payload of POST /course/{id}/quizzes and GET /quizzes/{attempt_id}."""
    attempt_id: str
    user_id: Optional[str] = None
    course_id: str
    question_num: int
    status: Literal["in_progress", "completed", "cancelled"]
    score: Optional[float] = None
    created_at: Optional[str] = None
    questions: List[QuestionResponse] = []


class QuizSubmissionResponse(BaseModel):
    """Acknowledgement of POST /submissions/{attempt_id}."""
    attempt_id: str
    message: str = ""


class GraphContentNode(BaseModel):
    id: str
    node_id_str: Optional[str] = None
    node_name: str
    description: Optional[str] = None
    level: int = 0
    dependents_count: int = 0


class GraphContentPrerequisite(BaseModel):
    from_node_id: str
    to_node_id: str
    weight: float = 1.0


class GraphContentSubtopic(BaseModel):
    parent_node_id: str
    child_node_id: str
    weight: float = 1.0


class GraphContentResponse(BaseModel):
    """Payload of /graphs/{id}/content and /me/graphs/{id}/content."""
    graph: GraphResponse
    nodes: List[GraphContentNode] = []
    prerequisites: List[GraphContentPrerequisite] = []
    subtopics: List[GraphContentSubtopic] = []
