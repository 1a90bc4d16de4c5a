"""
Error taxonomy for the client layer.
"""
from typing import Optional


class MasteryGraphError(Exception):
    """Base class for all errors raised by masterygraph."""
    pass


class TransportError(MasteryGraphError):
    """Network or HTTP failure. The message is shown to the user as-is."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ShapeError(MasteryGraphError):
    """A wire payload is missing a required discriminant or id."""
    pass


class DomainContractError(MasteryGraphError):
    """A caller broke a domain contract."""
    pass


class AnswerMismatchError(DomainContractError):
    """An answer does not belong to the question it is submitted against."""

    def __init__(self, question_type: str, answer_type: str):
        super().__init__(
            f"Answer of type '{answer_type}' cannot answer a '{question_type}' question"
        )
        self.question_type = question_type
        self.answer_type = answer_type
