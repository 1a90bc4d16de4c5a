"""
Adaptive question loop for one knowledge graph.

A session holds a single question slot:

    UNANSWERED --submit()--> SUBMITTED --advance()--> UNANSWERED (next question)

The current selection lives in the shared cache under
``("nextQuestion", graph_id)``; the slot state and the last grading result
live on the session.
"""
import logging
from enum import Enum
from typing import Optional, Union

from masterygraph.api.mappers import answer_to_wire, map_next_question, map_submission_result
from masterygraph.api.models.requests import SingleAnswerSubmitRequest
from masterygraph.core.api_client import LearningApiClient
from masterygraph.core.errors import DomainContractError
from masterygraph.models.question_models import (
    Answer,
    NextQuestionSelection,
    Question,
    SubmissionResult,
    build_answer,
    ensure_answer_matches,
)
from masterygraph.services.cache.query_cache import QueryCache, QueryState, QueryStatus
from masterygraph.services.catalog.graph_service import knowledge_graph_key

logger = logging.getLogger(__name__)


class SlotState(Enum):
    UNANSWERED = "unanswered"
    SUBMITTED = "submitted"


def next_question_key(graph_id: str) -> tuple:
    return ("nextQuestion", graph_id)


class QuestionSession:
    """Drives fetch-next / submit / advance for one graph."""

    def __init__(
        self,
        api: LearningApiClient,
        cache: QueryCache,
        graph_id: str,
        is_owner: bool = False,
    ):
        self.api = api
        self.cache = cache
        self.graph_id = graph_id
        self.is_owner = is_owner

        self.slot_state = SlotState.UNANSWERED
        self.result: Optional[SubmissionResult] = None
        self._slot = 0  # bumped by advance(); stale submissions check it
        self._submitting_slot: Optional[int] = None

    @property
    def key(self) -> tuple:
        return next_question_key(self.graph_id)

    @property
    def fetch_state(self) -> QueryState:
        return self.cache.get_state(self.key)

    @property
    def selection(self) -> Optional[NextQuestionSelection]:
        """Selection for the current slot; None while it loads or after its fetch failed."""
        state = self.fetch_state
        if state.is_fetching or state.status is QueryStatus.ERROR:
            return None
        return state.data

    @property
    def question(self) -> Optional[Question]:
        selection = self.selection
        return selection.question if selection else None

    @property
    def is_terminal(self) -> bool:
        """A selection arrived and it carries no question."""
        selection = self.selection
        return selection is not None and selection.question is None

    @property
    def is_submitting(self) -> bool:
        return self._submitting_slot == self._slot

    async def _fetch(self):
        return await self.api.get_next_question(self.graph_id, is_owner=self.is_owner)

    async def fetch_next(self) -> NextQuestionSelection:
        """Load the current selection, reusing a fresh cached one."""
        return await self.cache.query(self.key, self._fetch, select=map_next_question)

    def answer(self, value: Union[int, float, str]) -> Answer:
        """Build an answer of the active question's own variant."""
        question = self.question
        if question is None:
            raise DomainContractError("No active question to answer")
        return build_answer(question, value)

    async def submit(self, question_id: str, answer: Answer) -> Optional[SubmissionResult]:
        """
        Submit ``answer`` for the active question.

        Returns:
            The grading result, or None when the slot was already submitted
            or a submission is still in flight (the call is ignored)

        Raises:
            DomainContractError: no active question, or a different question id
            AnswerMismatchError: answer variant differs from the question's
            TransportError: the request failed; the slot stays UNANSWERED
        """
        if self.slot_state is SlotState.SUBMITTED or self.is_submitting:
            logger.debug(f"Ignoring submit for {question_id}: slot already {self.slot_state.value}")
            return None

        question = self.question
        if question is None:
            raise DomainContractError("No active question to answer")
        if question.question_id != question_id:
            raise DomainContractError(
                f"Question {question_id} is not the active question ({question.question_id})"
            )
        ensure_answer_matches(question, answer)

        request = SingleAnswerSubmitRequest(
            question_id=question_id,
            user_answer=answer_to_wire(answer),
            graph_id=self.graph_id,
        )

        slot = self._slot
        self._submitting_slot = slot
        try:
            raw = await self.api.submit_answer(request)
            result = map_submission_result(raw)
        finally:
            if self._submitting_slot == slot:
                self._submitting_slot = None

        if slot != self._slot:
            logger.debug(f"Discarding result for {question_id}: session advanced meanwhile")
            return result

        self.result = result
        self.slot_state = SlotState.SUBMITTED
        logger.info(
            f"Answer {result.answer_id} for question {question_id}: "
            f"{'correct' if result.is_correct else 'incorrect'}"
        )

        self.cache.invalidate(self.key)
        if result.mastery_updated:
            # Prefix covers the learner and owner views
            self.cache.invalidate(knowledge_graph_key(self.graph_id))
        return result

    async def advance(self) -> NextQuestionSelection:
        """Drop the previous result and fetch a new selection."""
        self._slot += 1
        self.slot_state = SlotState.UNANSWERED
        self.result = None
        return await self.cache.refetch(self.key, self._fetch, select=map_next_question)
