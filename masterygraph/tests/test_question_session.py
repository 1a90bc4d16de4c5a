"""
Tests for the adaptive question session.
"""
import asyncio

import pytest

from fake_api import fill_blank, mcq
from masterygraph.core.errors import AnswerMismatchError, DomainContractError, TransportError
from masterygraph.models.question_models import (
    CalculationAnswer,
    CalculationQuestion,
    Difficulty,
    FillInTheBlankAnswer,
    MultipleChoiceAnswer,
    MultipleChoiceQuestion,
    build_answer,
)
from masterygraph.services.catalog.graph_service import knowledge_graph_key
from masterygraph.services.session.question_session import SlotState


class TestFetch:
    """Test next-question loading and routing."""

    @pytest.mark.asyncio
    async def test_fetch_question(self, app, backend):
        backend.queue_questions("g1", mcq("q1", ["a", "b", "c"], correct=1))
        session = app.question_session("g1")

        selection = await session.fetch_next()

        assert isinstance(selection.question, MultipleChoiceQuestion)
        assert selection.selection_reason == "lowest_mastery"
        assert session.question.question_id == "q1"
        assert session.slot_state is SlotState.UNANSWERED
        assert backend.calls["next_question"] == 1

    @pytest.mark.asyncio
    async def test_owner_routing(self, app, backend):
        backend.queue_questions("g1", mcq("q1", ["a", "b"], correct=0))
        session = app.question_session("g1", is_owner=True)

        await session.fetch_next()

        assert backend.calls["my_next_question"] == 1
        assert backend.calls["next_question"] == 0

    @pytest.mark.asyncio
    async def test_terminal_state(self, app, backend):
        """Test that no question is a terminal state, not an error."""
        session = app.question_session("g1")

        selection = await session.fetch_next()

        assert selection.question is None
        assert session.is_terminal is True
        assert session.fetch_state.error is None

    @pytest.mark.asyncio
    async def test_advance_from_terminal_fetches_once(self, app, backend):
        session = app.question_session("g1")
        await session.fetch_next()

        await session.advance()

        assert backend.calls["next_question"] == 2
        assert session.is_terminal is True


class TestSubmit:
    """Test the UNANSWERED -> SUBMITTED -> UNANSWERED cycle."""

    @pytest.mark.asyncio
    async def test_submit_and_advance(self, app, backend, cache):
        backend.queue_questions(
            "g1",
            mcq("q1", ["a", "b", "c"], correct=1),
            fill_blank("q2", ["2x"]),
        )
        cache.set_data(knowledge_graph_key("g1"), "assembled graph")
        session = app.question_session("g1")
        await session.fetch_next()

        result = await session.submit("q1", session.answer(1))

        assert result.is_correct is True
        assert result.correct_answer == MultipleChoiceAnswer(selected_option=1)
        assert session.slot_state is SlotState.SUBMITTED
        assert session.result is result
        assert backend.submissions[0]["user_answer"] == {
            "question_type": "multiple_choice",
            "selected_option": 1,
        }
        assert backend.submissions[0]["graph_id"] == "g1"
        assert cache.get_state(knowledge_graph_key("g1")).is_stale is True

        selection = await session.advance()

        assert selection.question.question_id == "q2"
        assert session.slot_state is SlotState.UNANSWERED
        assert session.result is None

        result = await session.submit("q2", session.answer("  2x "))
        assert result.is_correct is True

    @pytest.mark.asyncio
    async def test_mismatched_answer_rejected(self, app, backend):
        """Test that a text answer cannot be sent for a multiple choice question."""
        backend.queue_questions("g1", mcq("q1", ["a", "b"], correct=0))
        session = app.question_session("g1")
        await session.fetch_next()

        with pytest.raises(AnswerMismatchError) as exc_info:
            await session.submit("q1", FillInTheBlankAnswer(text_answer="a"))

        assert exc_info.value.question_type == "multiple_choice"
        assert exc_info.value.answer_type == "fill_in_the_blank"
        assert backend.calls["submit_answer"] == 0
        assert session.slot_state is SlotState.UNANSWERED

    @pytest.mark.asyncio
    async def test_wrong_question_id_rejected(self, app, backend):
        backend.queue_questions("g1", mcq("q1", ["a", "b"], correct=0))
        session = app.question_session("g1")
        await session.fetch_next()

        with pytest.raises(DomainContractError):
            await session.submit("q9", MultipleChoiceAnswer(selected_option=0))

    @pytest.mark.asyncio
    async def test_submit_without_question(self, app):
        session = app.question_session("g1")
        await session.fetch_next()

        with pytest.raises(DomainContractError):
            await session.submit("q1", MultipleChoiceAnswer(selected_option=0))

    @pytest.mark.asyncio
    async def test_double_submit_sends_once(self, app, backend):
        backend.queue_questions("g1", mcq("q1", ["a", "b"], correct=0))
        session = app.question_session("g1")
        await session.fetch_next()
        answer = session.answer(0)

        first, second = await asyncio.gather(
            session.submit("q1", answer),
            session.submit("q1", answer),
        )

        assert backend.calls["submit_answer"] == 1
        assert first is not None
        assert second is None
        assert await session.submit("q1", answer) is None

    @pytest.mark.asyncio
    async def test_failed_submit_keeps_slot_open(self, app, backend):
        backend.queue_questions("g1", mcq("q1", ["a", "b"], correct=0))
        backend.fail_submission = "Grader unavailable"
        session = app.question_session("g1")
        await session.fetch_next()

        with pytest.raises(TransportError) as exc_info:
            await session.submit("q1", session.answer(0))

        assert str(exc_info.value) == "Grader unavailable"
        assert session.slot_state is SlotState.UNANSWERED
        assert session.is_submitting is False

        backend.fail_submission = None
        result = await session.submit("q1", session.answer(0))
        assert result.is_correct is True


class TestSlotBoundaries:
    """Test that each slot keeps its own submit guard and question."""

    @pytest.mark.asyncio
    async def test_new_slot_accepts_submit_while_old_one_in_flight(self, app, backend):
        """Test that a slow answer for q1 does not block answering q2."""
        backend.queue_questions(
            "g1",
            mcq("q1", ["a", "b"], correct=0),
            mcq("q2", ["a", "b"], correct=1),
        )
        backend.submission_gates["q1"] = asyncio.Event()
        session = app.question_session("g1")
        await session.fetch_next()

        pending = asyncio.ensure_future(session.submit("q1", session.answer(0)))
        while backend.calls["submit_answer"] < 1:
            await asyncio.sleep(0)

        await session.advance()

        assert session.question.question_id == "q2"
        assert session.is_submitting is False

        result = await session.submit("q2", session.answer(1))

        assert result is not None
        assert result.is_correct is True
        assert backend.calls["submit_answer"] == 2
        assert session.slot_state is SlotState.SUBMITTED

        backend.submission_gates["q1"].set()
        late = await pending

        assert late.is_correct is True
        assert session.result is result

    @pytest.mark.asyncio
    async def test_failed_advance_does_not_expose_graded_question(self, app, backend):
        """Test that a graded question cannot be answered again after a failed advance."""
        backend.queue_questions("g1", mcq("q1", ["a", "b"], correct=0))
        session = app.question_session("g1")
        await session.fetch_next()
        await session.submit("q1", session.answer(0))
        backend.fail_next_question = "Selector offline"

        with pytest.raises(TransportError):
            await session.advance()

        assert session.question is None
        assert session.is_terminal is False
        with pytest.raises(DomainContractError):
            await session.submit("q1", MultipleChoiceAnswer(selected_option=0))
        assert backend.calls["submit_answer"] == 1

        backend.fail_next_question = None
        backend.queue_questions("g1", mcq("q2", ["a", "b"], correct=1))
        selection = await session.advance()

        assert selection.question.question_id == "q2"
        assert session.question.question_id == "q2"

    @pytest.mark.asyncio
    async def test_no_question_while_advance_in_flight(self, app, backend):
        backend.queue_questions(
            "g1",
            mcq("q1", ["a", "b"], correct=0),
            mcq("q2", ["a", "b"], correct=1),
        )
        session = app.question_session("g1")
        await session.fetch_next()
        await session.submit("q1", session.answer(0))

        pending = asyncio.ensure_future(session.advance())
        await asyncio.sleep(0)

        assert session.fetch_state.is_fetching is True
        assert session.question is None

        await pending
        assert session.question.question_id == "q2"


class TestBuildAnswer:
    """Test answer construction from raw input."""

    def test_option_out_of_range(self):
        question = MultipleChoiceQuestion(
            question_id="q1", text="?", difficulty=Difficulty.EASY, options=("a", "b")
        )

        with pytest.raises(DomainContractError):
            build_answer(question, 2)
        with pytest.raises(DomainContractError):
            build_answer(question, True)

    def test_calculation_parses_numbers(self):
        question = CalculationQuestion(question_id="q3", text="?", difficulty=Difficulty.HARD)

        assert build_answer(question, "2.50") == CalculationAnswer(numeric_answer=2.5)
        with pytest.raises(DomainContractError):
            build_answer(question, "two")
