"""
Tests for batch quiz attempts against the fake API.
"""
import asyncio

import pytest

from masterygraph.core.errors import AnswerMismatchError, DomainContractError, TransportError
from masterygraph.models.question_models import (
    FillInTheBlankAnswer,
    FillInTheBlankQuestion,
    MultipleChoiceAnswer,
    MultipleChoiceQuestion,
)
from masterygraph.models.quiz_models import QuizStatus
from masterygraph.services.quiz.quiz_service import quiz_key


class TestStartQuiz:
    """Test starting and loading attempts."""

    @pytest.mark.asyncio
    async def test_start_seeds_cache(self, app, backend, cache):
        attempt = await app.quizzes.start_quiz("c1", 2)

        assert attempt.status is QuizStatus.IN_PROGRESS
        assert attempt.course_id == "c1"
        assert [type(q) for q in attempt.questions] == [MultipleChoiceQuestion, FillInTheBlankQuestion]
        assert cache.get_data(quiz_key(attempt.attempt_id)) is attempt

        loaded = await app.quizzes.get_attempt(attempt.attempt_id)

        assert loaded is attempt
        assert backend.calls["get_quiz"] == 0

    @pytest.mark.asyncio
    async def test_load_uncached_attempt(self, app, backend):
        started = await app.quizzes.start_quiz("c1", 1)
        app.cache.clear()

        loaded = await app.quizzes.get_attempt(started.attempt_id)

        assert loaded == started
        assert backend.calls["get_quiz"] == 1

    @pytest.mark.asyncio
    async def test_start_unknown_course(self, app, cache):
        with pytest.raises(TransportError) as exc_info:
            await app.quizzes.start_quiz("nope", 2)

        assert exc_info.value.message == "Course not found"
        assert cache.keys() == []


class TestSubmitQuiz:
    """Test whole-attempt submission."""

    @pytest.mark.asyncio
    async def test_submit_answers(self, app, backend, cache):
        attempt = await app.quizzes.start_quiz("c1", 2)

        receipt = await app.quizzes.submit(attempt.attempt_id, {
            "qz1": MultipleChoiceAnswer(selected_option=2),
            "qz2": FillInTheBlankAnswer(text_answer="derivative"),
        })

        assert receipt.attempt_id == attempt.attempt_id
        assert receipt.message == "Quiz submitted"
        assert backend.quiz_submissions == [{
            "answers": [
                {"question_id": "qz1", "answer": {"question_type": "multiple_choice", "selected_option": 2}},
                {"question_id": "qz2", "answer": {"question_type": "fill_in_the_blank", "text_answer": "derivative"}},
            ]
        }]
        assert cache.get_state(quiz_key(attempt.attempt_id)).is_stale is True

        refreshed = await app.quizzes.get_attempt(attempt.attempt_id)

        assert refreshed.status is QuizStatus.COMPLETED
        assert refreshed.score == 1.0

    @pytest.mark.asyncio
    async def test_mismatched_answer_rejected(self, app, backend):
        attempt = await app.quizzes.start_quiz("c1", 2)

        with pytest.raises(AnswerMismatchError):
            await app.quizzes.submit(attempt.attempt_id, {"qz1": FillInTheBlankAnswer(text_answer="2")})

        assert backend.calls["submit_quiz"] == 0

    @pytest.mark.asyncio
    async def test_unknown_question_rejected(self, app, backend):
        attempt = await app.quizzes.start_quiz("c1", 1)

        with pytest.raises(DomainContractError):
            await app.quizzes.submit(attempt.attempt_id, {"qz3": MultipleChoiceAnswer(selected_option=0)})

        assert backend.calls["submit_quiz"] == 0

    @pytest.mark.asyncio
    async def test_closed_attempt_rejected(self, app, backend):
        attempt = await app.quizzes.start_quiz("c1", 1)
        answers = {"qz1": MultipleChoiceAnswer(selected_option=2)}
        await app.quizzes.submit(attempt.attempt_id, answers)

        with pytest.raises(DomainContractError) as exc_info:
            await app.quizzes.submit(attempt.attempt_id, answers)

        assert "completed" in str(exc_info.value)
        assert backend.calls["submit_quiz"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_submit_sends_once(self, app, backend):
        attempt = await app.quizzes.start_quiz("c1", 1)
        answers = {"qz1": MultipleChoiceAnswer(selected_option=2)}

        first, second = await asyncio.gather(
            app.quizzes.submit(attempt.attempt_id, answers),
            app.quizzes.submit(attempt.attempt_id, answers),
        )

        assert first is not None
        assert second is None
        assert backend.calls["submit_quiz"] == 1
