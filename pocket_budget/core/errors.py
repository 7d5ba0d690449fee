"""Exceptions raised by the budget engine."""


class BudgetError(Exception):
    """Base class for recoverable budget errors.

    The engine converts these into failed ``MutationResult`` values; they
    never reach callers of a mutation.
    """


class ValidationError(BudgetError):
    """Malformed mutation input (bad amount, empty name, unknown reference)."""


class NotFoundError(BudgetError):
    """An update or delete referenced an id that does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"No {entity_type} found with id '{entity_id}'.")


class UsageError(Exception):
    """The engine was used in a way that indicates a caller bug.

    Not a ``BudgetError``: it is always raised, never returned.
    """
