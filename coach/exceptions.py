"""Exception types raised by the coach application."""


class CoachError(Exception):
    """Base class for coach errors."""


class GatewayError(CoachError):
    """The generation service failed or returned output that does not validate."""


class InvalidTransition(CoachError):
    """An operation was requested in a practice state that does not allow it."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"Cannot {operation} while practice is {state}")
        self.operation = operation
        self.state = state


class StudyRunError(CoachError):
    """A flashcard answer does not match the current study run."""
