"""
Async HTTP client for the learning API.

Each method maps one endpoint to a coroutine returning the decoded JSON body.
Failures are raised as TransportError carrying the server's message.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from masterygraph.api.models.requests import (
    CourseEnrollmentRequest,
    CreateGraphRequest,
    GraphEnrollmentRequest,
    QuizStartRequest,
    QuizSubmissionRequest,
    SingleAnswerSubmitRequest,
)
from masterygraph.core.config import HTTP_TIMEOUT_SECONDS, api_root
from masterygraph.core.errors import TransportError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Prefer the API's own ``detail`` or ``message`` over a generic fallback."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            return str(detail)
    return fallback


class LearningApiClient:
    """Client for the course, graph and question endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.base_url = (base_url or api_root()).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "LearningApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Generic method to call any endpoint and decode its JSON body."""
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = await self.client.request(method, url, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response, fallback)
            logger.warning(f"{method} {path} failed with HTTP {e.response.status_code}: {message}")
            raise TransportError(message, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(f"{fallback}: {e}") from e
        except ValueError as e:
            raise TransportError(f"{fallback}: response was not valid JSON") from e

    # Courses

    async def get_courses(self) -> Any:
        return await self._request("GET", "/courses/", "Failed to load courses")

    async def get_course(self, course_id: str) -> Any:
        return await self._request("GET", f"/courses/{course_id}/", "Failed to load course")

    async def enroll_in_course(self, course_id: str) -> Any:
        body = CourseEnrollmentRequest(course_id=course_id)
        return await self._request(
            "POST",
            f"/courses/{course_id}/enrollments/",
            "Failed to enroll in course",
            json=body.model_dump(),
        )

    # Graphs

    async def get_template_graphs(self) -> Any:
        return await self._request("GET", "/graphs/templates", "Failed to load graphs")

    async def get_graph(self, graph_id: str) -> Any:
        return await self._request("GET", f"/graphs/{graph_id}/", "Failed to load graph")

    async def enroll_in_graph(self, graph_id: str) -> Any:
        body = GraphEnrollmentRequest(graph_id=graph_id)
        return await self._request(
            "POST",
            f"/graphs/{graph_id}/enrollments/",
            "Failed to enroll in graph",
            json=body.model_dump(),
        )

    async def get_graph_visualization(self, graph_id: str, is_owner: bool = False) -> Any:
        prefix = "/me/graphs" if is_owner else "/graphs"
        return await self._request(
            "GET", f"{prefix}/{graph_id}/visualization", "Failed to load knowledge graph"
        )

    async def get_graph_content(self, graph_id: str, is_owner: bool = False) -> Any:
        prefix = "/me/graphs" if is_owner else "/graphs"
        return await self._request(
            "GET", f"{prefix}/{graph_id}/content", "Failed to load graph content"
        )

    async def get_my_graphs(self) -> Any:
        return await self._request("GET", "/me/graphs", "Failed to load your graphs")

    async def get_my_graph(self, graph_id: str) -> Any:
        return await self._request("GET", f"/me/graphs/{graph_id}", "Failed to load graph")

    async def create_graph(self, request: CreateGraphRequest) -> Any:
        return await self._request(
            "POST", "/me/graphs", "Failed to create graph", json=request.model_dump()
        )

    # Questions

    async def get_next_question(self, graph_id: str, is_owner: bool = False) -> Any:
        """Owners draw from their own graph, learners from the enrolled copy."""
        prefix = "/me/graphs" if is_owner else "/graphs"
        return await self._request(
            "GET", f"{prefix}/{graph_id}/next-question", "Failed to get next question"
        )

    async def submit_answer(self, request: SingleAnswerSubmitRequest) -> Any:
        return await self._request(
            "POST", "/answer", "Failed to submit answer", json=request.model_dump()
        )

    # Quizzes

    async def start_quiz(self, course_id: str, question_num: int) -> Any:
        body = QuizStartRequest(question_num=question_num)
        return await self._request(
            "POST",
            f"/course/{course_id}/quizzes",
            "Failed to start quiz",
            json=body.model_dump(),
        )

    async def get_quiz_attempt(self, attempt_id: str) -> Any:
        return await self._request(
            "GET", f"/quizzes/{attempt_id}", "Failed to fetch quiz attempt"
        )

    async def submit_quiz(self, attempt_id: str, request: QuizSubmissionRequest) -> Any:
        return await self._request(
            "POST", f"/submissions/{attempt_id}", "Failed to submit quiz", json=request.model_dump()
        )
