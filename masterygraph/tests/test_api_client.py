"""
Unit tests for the HTTP client's error handling and request shapes.
"""
import json

import httpx
import pytest

from masterygraph.api.models.requests import (
    ClientAnswerInput,
    QuizSubmissionRequest,
    SingleAnswerSubmitRequest,
)
from masterygraph.core.api_client import LearningApiClient
from masterygraph.core.errors import TransportError

BASE = "http://api.test/api/v1"


def client_for(handler):
    return LearningApiClient(
        base_url=BASE,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestErrorMessages:
    """Test that server messages surface unchanged."""

    @pytest.mark.asyncio
    async def test_detail_preferred(self):
        api = client_for(lambda request: httpx.Response(400, json={"detail": "Already enrolled"}))

        with pytest.raises(TransportError) as exc_info:
            await api.enroll_in_course("c1")

        assert exc_info.value.message == "Already enrolled"
        assert exc_info.value.status_code == 400
        await api.client.aclose()

    @pytest.mark.asyncio
    async def test_message_field(self):
        api = client_for(lambda request: httpx.Response(500, json={"message": "Selector crashed"}))

        with pytest.raises(TransportError) as exc_info:
            await api.get_next_question("g1")

        assert str(exc_info.value) == "Selector crashed"
        await api.client.aclose()

    @pytest.mark.asyncio
    async def test_fallback_message(self):
        api = client_for(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(TransportError) as exc_info:
            await api.submit_answer(SingleAnswerSubmitRequest(
                question_id="q1",
                user_answer={"question_type": "calculation", "numeric_answer": 1.0},
                graph_id="g1",
            ))

        assert exc_info.value.message == "Failed to submit answer"
        assert exc_info.value.status_code == 502
        await api.client.aclose()

    @pytest.mark.asyncio
    async def test_network_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        api = client_for(refuse)

        with pytest.raises(TransportError) as exc_info:
            await api.get_courses()

        assert exc_info.value.message.startswith("Failed to load courses")
        assert exc_info.value.status_code is None
        await api.client.aclose()


class TestRequests:
    """Test endpoint paths and bodies."""

    @pytest.mark.asyncio
    async def test_enrollment_body(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"id": "e1", "student_id": "s1", "graph_id": "g1"})

        api = client_for(handler)
        await api.enroll_in_graph("g1")

        assert seen == [("POST", "/api/v1/graphs/g1/enrollments/", {"graph_id": "g1"})]
        await api.client.aclose()

    @pytest.mark.asyncio
    async def test_question_paths(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"question": None, "selection_reason": "done"})

        api = client_for(handler)
        await api.get_next_question("g1")
        await api.get_next_question("g1", is_owner=True)

        assert paths == ["/api/v1/graphs/g1/next-question", "/api/v1/me/graphs/g1/next-question"]
        await api.client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        async with LearningApiClient(base_url=BASE) as api:
            assert api.client.is_closed is False

        assert api.client.is_closed is True

    @pytest.mark.asyncio
    async def test_quiz_endpoints(self):
        seen = []

        def handler(request):
            body = json.loads(request.content) if request.content else None
            seen.append((request.method, request.url.path, body))
            return httpx.Response(200, json={"attempt_id": "t1", "message": "ok"})

        api = client_for(handler)
        await api.start_quiz("c1", 5)
        await api.get_quiz_attempt("t1")
        await api.submit_quiz("t1", QuizSubmissionRequest(answers=[
            ClientAnswerInput(question_id="q1", answer={"question_type": "calculation", "numeric_answer": 2.0}),
        ]))

        assert seen == [
            ("POST", "/api/v1/course/c1/quizzes", {"question_num": 5}),
            ("GET", "/api/v1/quizzes/t1", None),
            ("POST", "/api/v1/submissions/t1", {
                "answers": [{"question_id": "q1", "answer": {"question_type": "calculation", "numeric_answer": 2.0}}],
            }),
        ]
        await api.client.aclose()

    @pytest.mark.asyncio
    async def test_content_paths(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={})

        api = client_for(handler)
        await api.get_graph_content("g1")
        await api.get_graph_content("g1", is_owner=True)

        assert paths == ["/api/v1/graphs/g1/content", "/api/v1/me/graphs/g1/content"]
        await api.client.aclose()
