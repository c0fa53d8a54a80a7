"""
Service Exceptions
Errors raised by the quiz core and mapped to HTTP responses by the routers
"""


class QuizServiceError(Exception):
    """Base exception for quiz service errors"""
    pass


class FetchFailure(QuizServiceError):
    """Raised when the question source is unreachable or returns garbage"""
    pass


class EmptyBatchError(QuizServiceError):
    """Raised when a valid configuration yields zero questions"""
    pass


class PersistenceFailure(QuizServiceError):
    """Raised when the attempt store cannot be read or written"""
    pass


class InvalidTransitionError(QuizServiceError, ValueError):
    """Raised when a session operation is not valid in the current state"""
    pass


class SessionNotFoundError(QuizServiceError):
    """Raised when a session id is unknown or belongs to another user"""
    pass
