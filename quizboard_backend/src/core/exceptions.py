"""
Custom exceptions for the quizboard backend.

The API layer maps these onto HTTP status codes; services raise them and never
build HTTP responses themselves.
"""


class QuizboardError(Exception):
    """Base exception for all quizboard errors."""
    pass


class ConfigError(QuizboardError):
    """Raised at startup when required configuration is missing or invalid."""
    pass


class NotFoundError(QuizboardError):
    """Raised when a referenced entity does not exist."""
    pass


class QuizNotFound(NotFoundError):
    """Raised when a quiz id does not match any stored quiz."""

    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__("Quiz not found")


class PlayerNotFound(NotFoundError):
    """Raised when a player id does not match any player of the quiz."""

    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__("Player not found")


class DuplicateSubmission(QuizboardError):
    """Raised when a player submits answers for a quiz a second time."""

    def __init__(self, player_id: str, quiz_id: str):
        self.player_id = player_id
        self.quiz_id = quiz_id
        super().__init__("Player has already submitted answers for this quiz")


class ValidationError(QuizboardError):
    """Raised when a submission is malformed (empty, duplicated or out of range)."""
    pass
