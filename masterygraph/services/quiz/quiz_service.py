"""
Batch quiz attempts for a course.

An attempt is started with a fixed number of questions, answered locally and
submitted in one request. Attempts are cached under ``("quiz", attempt_id)``.
"""
import logging
from typing import Mapping, Optional, Set

from masterygraph.api.mappers import answer_to_wire, map_quiz_attempt, map_quiz_receipt
from masterygraph.api.models.requests import ClientAnswerInput, QuizSubmissionRequest
from masterygraph.core.api_client import LearningApiClient
from masterygraph.core.errors import DomainContractError
from masterygraph.models.question_models import Answer, ensure_answer_matches
from masterygraph.models.quiz_models import QuizAttempt, QuizReceipt
from masterygraph.services.cache.query_cache import QueryCache

logger = logging.getLogger(__name__)


def quiz_key(attempt_id: str) -> tuple:
    return ("quiz", attempt_id)


class QuizService:
    """Starts, loads and submits quiz attempts through the shared cache."""

    def __init__(self, api: LearningApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache
        self._submitting: Set[str] = set()

    async def start_quiz(self, course_id: str, question_num: int) -> QuizAttempt:
        """Start an attempt and seed its cache entry with the returned questions."""
        raw = await self.api.start_quiz(course_id, question_num)
        attempt = map_quiz_attempt(raw)
        logger.info(
            f"Started quiz {attempt.attempt_id} for course {course_id} "
            f"with {len(attempt.questions)} questions"
        )
        self.cache.set_data(quiz_key(attempt.attempt_id), attempt)
        return attempt

    async def get_attempt(self, attempt_id: str) -> QuizAttempt:
        return await self.cache.query(
            quiz_key(attempt_id),
            lambda: self.api.get_quiz_attempt(attempt_id),
            select=map_quiz_attempt,
        )

    async def submit(self, attempt_id: str, answers: Mapping[str, Answer]) -> Optional[QuizReceipt]:
        """
        Submit answers keyed by question id.

        Returns:
            The server receipt, or None while the same attempt is already
            being submitted

        Raises:
            DomainContractError: attempt is closed or an answer names a
                question outside the attempt
            AnswerMismatchError: an answer variant differs from its question's
            TransportError: the request failed
        """
        if attempt_id in self._submitting:
            logger.debug(f"Ignoring submit for quiz {attempt_id}: already in flight")
            return None

        self._submitting.add(attempt_id)
        try:
            attempt = await self.get_attempt(attempt_id)
            if not attempt.is_open:
                raise DomainContractError(f"Quiz {attempt_id} is {attempt.status.value}")

            inputs = []
            for question_id, answer in answers.items():
                question = attempt.question(question_id)
                if question is None:
                    raise DomainContractError(f"Question {question_id} is not part of quiz {attempt_id}")
                ensure_answer_matches(question, answer)
                inputs.append(ClientAnswerInput(question_id=question_id, answer=answer_to_wire(answer)))

            try:
                raw = await self.api.submit_quiz(attempt_id, QuizSubmissionRequest(answers=inputs))
            except Exception as e:
                logger.error(f"Failed to submit quiz {attempt_id}: {e}")
                raise
        finally:
            self._submitting.discard(attempt_id)

        logger.info(f"Submitted {len(inputs)} answer(s) for quiz {attempt_id}")
        self.cache.invalidate(quiz_key(attempt_id))
        return map_quiz_receipt(raw)
