"""Exception hierarchy for the table engine."""


class BlackjackError(Exception):
    """Base class for engine errors."""


class InvariantViolation(BlackjackError, RuntimeError):
    """An internal invariant was broken. Never caused by player input."""


class ShoeExhausted(InvariantViolation, IndexError):
    """A card was drawn from an empty shoe."""

    def __init__(self, message: str = "Cannot draw from empty shoe") -> None:
        super().__init__(message)
