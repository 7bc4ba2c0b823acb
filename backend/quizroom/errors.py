"""Error taxonomy shared by the socket handlers and the HTTP blueprint.

Every error here is reported only to the connection (or request) that
triggered it and is raised before any session state is touched.
"""


class QuizError(Exception):
    """Base exception for quiz errors."""
    status_code = 400
    default_message = 'Request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(QuizError):
    """Raised when the addressed session does not exist."""
    status_code = 404
    default_message = 'Session not found'


class Unauthorized(QuizError):
    """Raised when a non-host connection attempts a host-only action."""
    status_code = 403
    default_message = 'Not authorized'


class ValidationError(QuizError):
    status_code = 400
    default_message = 'Invalid request'


class DuplicateName(ValidationError):
    default_message = 'That name is already taken, choose another one'


class AlreadyStarted(ValidationError):
    default_message = 'Quiz has already started'


class NoPlayers(ValidationError):
    default_message = 'Need at least one player'


class InvalidQuestionSet(ValidationError):
    default_message = 'Invalid question format'


class ExternalServiceError(QuizError):
    """Raised when the question generation service fails or returns garbage."""
    status_code = 502
    default_message = 'Failed to generate quiz'
