"""
Exceptions raised by the matching engine.

The web layer maps these to HTTP responses in web/backend/exceptions.py.
"""


class MatchingError(Exception):
    """Base exception for matching engine errors."""
    pass


class NotFoundError(MatchingError):
    """An id does not resolve to an existing entity."""
    pass


class SubjectNotFoundError(NotFoundError):
    """Raised when a student, company, job or internship is not found."""
    pass


class MatchNotFoundError(NotFoundError):
    """Raised when a match is not found."""
    pass


class ProviderUnavailableError(MatchingError):
    """External AI provider unreachable, timed out or returned garbage."""
    pass


class ScoringUnavailableError(ProviderUnavailableError):
    """Raised by the remote scorer; callers fall back to local scoring."""
    pass


class QualityUnavailableError(ProviderUnavailableError):
    """Raised by the remote quality assessment call."""
    pass


class PersistenceConflictError(MatchingError):
    """Concurrent upsert race on the same (student, company) pair."""
    pass


class InvalidRequestError(MatchingError):
    """Raised when caller-supplied parameters are invalid."""
    pass


class InvalidStatusError(InvalidRequestError):
    """Raised for an unknown match status or performer."""
    pass
