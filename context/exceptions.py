"""
Exceptions raised by the context packing pipeline.

Collaborator failures are not caught here: whatever the search
service raises reaches the caller unchanged.
"""


class ContextPackingError(Exception):
    """Base class for context packing errors."""


class InvalidBudgetError(ContextPackingError, ValueError):
    """Raised when a token budget is negative."""

    def __init__(self, budget: int):
        self.budget = budget
        super().__init__(f"Token budget must be non-negative, got {budget}")


class SearchServiceError(ContextPackingError):
    """Raised by search service implementations when the backend fails."""


def check_budget(budget: int) -> int:
    """Validate a token budget and return it."""
    if budget < 0:
        raise InvalidBudgetError(budget)
    return budget
