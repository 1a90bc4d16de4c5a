"""
Conversions between wire payloads and domain objects.

Every mapper accepts either a raw mapping (decoded JSON) or the matching
pydantic model. Missing ids or discriminants raise ShapeError; nothing here
returns a half-built domain object.
"""
import logging
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from masterygraph.api.models.responses import (
    AnswerPayload,
    CourseResponse,
    EnrollmentResponse,
    GraphContentResponse,
    GraphResponse,
    GraphVisualization,
    NextQuestionResponse,
    QuestionResponse,
    QuizAttemptResponse,
    QuizSubmissionResponse,
    SingleAnswerSubmitResponse,
)
from masterygraph.core.errors import ShapeError
from masterygraph.models.course_models import Course, Enrollment, Graph
from masterygraph.models.graph_models import (
    ContentEdge,
    ContentNode,
    EdgeType,
    GraphContent,
    KnowledgeEdge,
    KnowledgeGraph,
    KnowledgeNode,
)
from masterygraph.models.question_models import (
    Answer,
    CalculationAnswer,
    CalculationQuestion,
    Difficulty,
    FillInTheBlankAnswer,
    FillInTheBlankQuestion,
    MultipleChoiceAnswer,
    MultipleChoiceQuestion,
    NextQuestionSelection,
    Question,
    QuestionType,
    SubmissionResult,
    assert_never,
)
from masterygraph.models.quiz_models import QuizAttempt, QuizReceipt, QuizStatus

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Payload = Union[Mapping[str, Any], BaseModel]

# Older payloads spell the fill-in-the-blank discriminant differently
_QUESTION_TYPE_ALIASES = {
    "fill_blank": QuestionType.FILL_IN_THE_BLANK,
}


def _validate(model: Type[ModelT], payload: Any, what: str) -> ModelT:
    """Validate ``payload`` against ``model``, re-raising failures as ShapeError."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ShapeError(f"Malformed {what} payload (bad fields: {fields})") from e


def _resolve_question_type(raw: Optional[str]) -> QuestionType:
    if not raw:
        raise ShapeError("Question is missing its question_type")
    if raw in _QUESTION_TYPE_ALIASES:
        return _QUESTION_TYPE_ALIASES[raw]
    try:
        return QuestionType(raw)
    except ValueError:
        raise ShapeError(f"Unknown question type: {raw}") from None


# Catalog

def map_course(payload: Payload) -> Course:
    dto = _validate(CourseResponse, payload, "course")
    return Course(
        course_id=dto.course_id,
        name=dto.course_name,
        description=dto.course_description or "",
        node_count=dto.num_of_knowledge or 0,
        is_enrolled=dto.is_enrolled or False,
        is_primary=False,
    )


def map_graph(payload: Payload) -> Graph:
    dto = _validate(GraphResponse, payload, "graph")
    return Graph(
        graph_id=dto.id,
        name=dto.name,
        node_count=dto.node_count or 0,
        is_enrolled=dto.is_enrolled or False,
        is_primary=dto.is_template or False,
        description=dto.description or "",
        owner_id=dto.owner_id,
    )


def map_enrollment(payload: Payload) -> Enrollment:
    dto = _validate(EnrollmentResponse, payload, "enrollment")
    target_id = dto.course_id or dto.graph_id
    if not target_id:
        raise ShapeError("Enrollment names neither a course_id nor a graph_id")
    return Enrollment(
        enrollment_id=dto.id,
        student_id=dto.student_id,
        target_id=target_id,
        enrollment_date=dto.enrollment_date,
    )


# Knowledge graph

def map_knowledge_graph(payload: Payload) -> KnowledgeGraph:
    """
    Convert a visualization payload into a KnowledgeGraph.

    Duplicate node ids keep their first occurrence. Mastery is clamped into
    [0, 1]. Edges of an unknown type are skipped. Dangling edges are kept
    here; closing the graph is the assembler's job.
    """
    dto = _validate(GraphVisualization, payload, "graph visualization")

    nodes: Dict[str, KnowledgeNode] = {}
    for node in dto.nodes:
        if node.id in nodes:
            logger.warning(f"Duplicate knowledge node {node.id}, keeping first occurrence")
            continue
        mastery = node.mastery_score
        if not 0.0 <= mastery <= 1.0:
            logger.warning(f"Mastery {mastery} for node {node.id} outside [0, 1], clamping")
            mastery = max(0.0, min(1.0, mastery))
        nodes[node.id] = KnowledgeNode(
            id=node.id,
            name=node.name,
            description=node.description or "",
            mastery_score=mastery,
        )

    edges = []
    for edge in dto.edges or []:
        try:
            edge_type = EdgeType(edge.type)
        except ValueError:
            logger.warning(f"Skipping edge {edge.source_id}->{edge.target_id} of unknown type {edge.type}")
            continue
        edges.append(KnowledgeEdge(source_id=edge.source_id, target_id=edge.target_id, type=edge_type))

    return KnowledgeGraph(nodes=nodes, edges=edges)


def map_graph_content(payload: Payload) -> GraphContent:
    """Convert a content outline; prerequisites and subtopics become typed edges."""
    dto = _validate(GraphContentResponse, payload, "graph content")
    nodes = [
        ContentNode(
            id=node.id,
            name=node.node_name,
            description=node.description or "",
            level=node.level,
            dependents_count=node.dependents_count,
        )
        for node in dto.nodes
    ]
    edges = [
        ContentEdge(p.from_node_id, p.to_node_id, EdgeType.PREREQUISITE, p.weight)
        for p in dto.prerequisites
    ]
    edges += [
        ContentEdge(s.parent_node_id, s.child_node_id, EdgeType.SUBTOPIC, s.weight)
        for s in dto.subtopics
    ]
    return GraphContent(graph=map_graph(dto.graph), nodes=nodes, edges=edges)


# Questions

def map_question(payload: Payload) -> Question:
    dto = _validate(QuestionResponse, payload, "question")
    if not dto.question_id:
        raise ShapeError("Question is missing an id")

    details = dto.details
    question_type = _resolve_question_type(
        dto.question_type or (details.question_type if details else None)
    )
    difficulty = Difficulty(dto.difficulty)

    if question_type is QuestionType.MULTIPLE_CHOICE:
        if details is None or details.options is None:
            raise ShapeError(f"Multiple choice question {dto.question_id} is missing options")
        return MultipleChoiceQuestion(
            question_id=dto.question_id,
            text=dto.text,
            difficulty=difficulty,
            options=tuple(details.options),
            correct_answer=details.correct_answer,
            knowledge_node_id=dto.knowledge_node_id,
        )
    elif question_type is QuestionType.FILL_IN_THE_BLANK:
        return FillInTheBlankQuestion(
            question_id=dto.question_id,
            text=dto.text,
            difficulty=difficulty,
            expected_answers=tuple(str(a) for a in details.expected_answer or ()) if details else (),
            knowledge_node_id=dto.knowledge_node_id,
        )
    elif question_type is QuestionType.CALCULATION:
        return CalculationQuestion(
            question_id=dto.question_id,
            text=dto.text,
            difficulty=difficulty,
            expected_answers=tuple(str(a) for a in details.expected_answer or ()) if details else (),
            precision=details.precision if details else None,
            knowledge_node_id=dto.knowledge_node_id,
        )
    else:
        assert_never(question_type)


def map_answer(payload: Payload) -> Answer:
    dto = _validate(AnswerPayload, payload, "answer")
    question_type = _resolve_question_type(dto.question_type)

    if question_type is QuestionType.MULTIPLE_CHOICE:
        if dto.selected_option is None:
            raise ShapeError("Multiple choice answer is missing selected_option")
        return MultipleChoiceAnswer(selected_option=dto.selected_option)
    elif question_type is QuestionType.FILL_IN_THE_BLANK:
        if dto.text_answer is None:
            raise ShapeError("Fill-in-the-blank answer is missing text_answer")
        return FillInTheBlankAnswer(text_answer=dto.text_answer)
    elif question_type is QuestionType.CALCULATION:
        if dto.numeric_answer is None:
            raise ShapeError("Calculation answer is missing numeric_answer")
        return CalculationAnswer(numeric_answer=dto.numeric_answer)
    else:
        assert_never(question_type)


def answer_to_wire(answer: Answer) -> Dict[str, Any]:
    """Serialize an answer with its discriminant for POST /answer."""
    if isinstance(answer, MultipleChoiceAnswer):
        body = {"selected_option": answer.selected_option}
    elif isinstance(answer, FillInTheBlankAnswer):
        body = {"text_answer": answer.text_answer}
    elif isinstance(answer, CalculationAnswer):
        body = {"numeric_answer": answer.numeric_answer}
    else:
        assert_never(answer)
    return {"question_type": answer.question_type.value, **body}


def map_next_question(payload: Payload) -> NextQuestionSelection:
    dto = _validate(NextQuestionResponse, payload, "next question")
    return NextQuestionSelection(
        question=map_question(dto.question) if dto.question else None,
        node_id=dto.node_id,
        selection_reason=dto.selection_reason,
        priority_score=dto.priority_score,
    )


def map_submission_result(payload: Payload) -> SubmissionResult:
    dto = _validate(SingleAnswerSubmitResponse, payload, "answer submission")
    return SubmissionResult(
        answer_id=dto.answer_id,
        is_correct=dto.is_correct,
        mastery_updated=dto.mastery_updated,
        correct_answer=map_answer(dto.correct_answer) if dto.correct_answer else None,
    )


# Quizzes

def map_quiz_attempt(payload: Payload) -> QuizAttempt:
    dto = _validate(QuizAttemptResponse, payload, "quiz attempt")
    return QuizAttempt(
        attempt_id=dto.attempt_id,
        course_id=dto.course_id,
        question_num=dto.question_num,
        status=QuizStatus(dto.status),
        questions=tuple(map_question(q) for q in dto.questions),
        score=dto.score,
    )


def map_quiz_receipt(payload: Payload) -> QuizReceipt:
    dto = _validate(QuizSubmissionResponse, payload, "quiz submission")
    return QuizReceipt(attempt_id=dto.attempt_id, message=dto.message)
